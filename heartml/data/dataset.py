"""Record and Dataset containers for fully-numeric binary classification data."""

import math
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Sequence, Tuple, Union

import numpy as np

from ..exceptions import DimensionMismatch, HeartMLError

LABELS = (0, 1)


@dataclass(frozen=True)
class Record:
    """
    One patient record: a fixed-length numeric feature vector and a binary label.

    Features are stored as a tuple so records are immutable and hashable.

    Attributes:
        features: Feature values (13 for the Cleveland data)
        label: 0 = no disease, 1 = disease present
    """
    features: Tuple[float, ...]
    label: int

    def __post_init__(self):
        features = tuple(float(v) for v in self.features)
        if not all(math.isfinite(v) for v in features):
            raise HeartMLError("Record features must be finite numbers",
                               details={"features": features})
        try:
            label = int(self.label)
        except (TypeError, ValueError, OverflowError):
            label = None
        if label not in LABELS or label != self.label:
            raise HeartMLError(f"Record label must be 0 or 1, got {self.label!r}")
        object.__setattr__(self, 'features', features)
        object.__setattr__(self, 'label', label)

    @property
    def n_features(self) -> int:
        return len(self.features)

    def as_array(self) -> np.ndarray:
        """Feature vector as a float array."""
        return np.asarray(self.features, dtype=float)


class Dataset:
    """
    Ordered, read-only sequence of records with identical dimensionality.

    The feature matrix and label vector are materialised once at construction
    and flagged non-writeable, so models can share a dataset safely.
    """

    def __init__(self, records: Sequence[Record], n_features: Optional[int] = None):
        self._records: Tuple[Record, ...] = tuple(records)

        if n_features is None:
            n_features = self._records[0].n_features if self._records else 0

        for idx, record in enumerate(self._records):
            if record.n_features != n_features:
                raise DimensionMismatch(n_features, record.n_features, context=f"record {idx}")

        self._n_features = n_features
        if self._records:
            X = np.array([r.features for r in self._records], dtype=float)
        else:
            X = np.empty((0, n_features), dtype=float)
        y = np.array([r.label for r in self._records], dtype=int)
        X.setflags(write=False)
        y.setflags(write=False)
        self._X = X
        self._y = y

    @classmethod
    def from_arrays(cls, X: Union[np.ndarray, Sequence[Sequence[float]]],
                    y: Union[np.ndarray, Sequence[int]]) -> 'Dataset':
        """
        Build a dataset from a feature matrix and a label vector.

        Args:
            X: Features of shape (n_samples, n_features)
            y: Binary labels of shape (n_samples,)

        Returns:
            Dataset with one record per row
        """
        X = np.asarray(X, dtype=float)
        y = np.asarray(y)
        if X.ndim == 1:
            X = X.reshape(-1, 1)
        if len(X) != len(y):
            raise HeartMLError(f"Feature rows ({len(X)}) and labels ({len(y)}) differ in length")
        records = [Record(tuple(row), int(label)) for row, label in zip(X, y)]
        return cls(records, n_features=X.shape[1])

    @property
    def records(self) -> Tuple[Record, ...]:
        return self._records

    @property
    def features(self) -> np.ndarray:
        """Read-only feature matrix of shape (n_samples, n_features)."""
        return self._X

    @property
    def labels(self) -> np.ndarray:
        """Read-only label vector of shape (n_samples,)."""
        return self._y

    @property
    def n_features(self) -> int:
        return self._n_features

    def is_empty(self) -> bool:
        return not self._records

    def class_counts(self) -> Dict[int, int]:
        """Number of records per label, always keyed by both classes."""
        return {label: int(np.sum(self._y == label)) for label in LABELS}

    def subset(self, indices: Sequence[int]) -> 'Dataset':
        """New dataset holding the records at ``indices``, in that order."""
        return Dataset([self._records[i] for i in indices], n_features=self._n_features)

    def concat(self, other: 'Dataset') -> 'Dataset':
        """Records of ``self`` followed by the records of ``other``."""
        if other.n_features != self._n_features and not (self.is_empty() or other.is_empty()):
            raise DimensionMismatch(self._n_features, other.n_features, context="concatenated dataset")
        n_features = self._n_features if not self.is_empty() else other.n_features
        return Dataset(self._records + other.records, n_features=n_features)

    def __len__(self) -> int:
        return len(self._records)

    def __iter__(self) -> Iterator[Record]:
        return iter(self._records)

    def __getitem__(self, item):
        if isinstance(item, slice):
            return Dataset(self._records[item], n_features=self._n_features)
        return self._records[item]

    def __repr__(self) -> str:
        counts = self.class_counts()
        return (f"Dataset(n_samples={len(self)}, n_features={self._n_features}, "
                f"class_0={counts[0]}, class_1={counts[1]})")


def check_dimension(record: Record, expected: int, context: str = "record") -> None:
    """Raise DimensionMismatch unless ``record`` has ``expected`` features."""
    if record.n_features != expected:
        raise DimensionMismatch(expected, record.n_features, context=context)


def as_records(rows: Sequence[Sequence[float]], labels: Sequence[int]) -> List[Record]:
    """Convenience constructor for a list of records."""
    return [Record(tuple(row), label) for row, label in zip(rows, labels)]
