"""CART-style decision tree classifier.

The tree is stored as an arena: a flat list of nodes where internal nodes
address their children by index. Nodes are only ever appended, each child
index is assigned once, and children always come after their parent, so the
structure is a strict tree. Both induction and prediction are iterative.
"""

import numpy as np
from dataclasses import dataclass
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union
from loguru import logger

from .base import BaseModel, ModelFactory, Prediction, safe_int
from ..data.dataset import Dataset, Record
from ..exceptions import DegenerateSplit, InvalidHyperparameter

IMPURITY_MEASURES = ('gini', 'entropy')


# ============================================================================
# IMPURITY
# ============================================================================

# Both functions are symmetric in the two class counts, so mirrored
# partitions score bit-for-bit identically and tie-breaking stays exact.

def _gini_from_counts(n_ones: np.ndarray, n_total: np.ndarray) -> np.ndarray:
    # 1 - p0^2 - p1^2 == 2 * n0 * n1 / n^2
    with np.errstate(invalid='ignore', divide='ignore'):
        g = 2.0 * n_ones * (n_total - n_ones) / (n_total.astype(float) ** 2)
    return np.where(n_total > 0, g, 0.0)


def _entropy_from_counts(n_ones: np.ndarray, n_total: np.ndarray) -> np.ndarray:
    with np.errstate(invalid='ignore', divide='ignore'):
        p1 = np.where(n_total > 0, n_ones / n_total, 0.0)
        p0 = np.where(n_total > 0, (n_total - n_ones) / n_total, 0.0)
        # 0 * log2(0) is taken as 0
        h1 = np.where(p1 > 0, -p1 * np.log2(p1), 0.0)
        h0 = np.where(p0 > 0, -p0 * np.log2(p0), 0.0)
    return np.where(n_total > 0, h0 + h1, 0.0)


_FROM_COUNTS = {
    'gini': _gini_from_counts,
    'entropy': _entropy_from_counts,
}


def impurity(labels: Union[Sequence[int], np.ndarray], measure: str = 'gini') -> float:
    """
    Impurity of a binary label partition.

    Args:
        labels: Labels (0/1) of the partition
        measure: 'gini' (``1 - sum p_c^2``) or 'entropy' (``-sum p_c log2 p_c``)

    Returns:
        0.0 for a pure or empty partition; 0.5 (gini) or 1.0 (entropy) at an even mix
    """
    if measure not in _FROM_COUNTS:
        raise InvalidHyperparameter('impurity_measure', measure, f"expected one of {IMPURITY_MEASURES}")
    labels = np.asarray(labels)
    return float(_FROM_COUNTS[measure](np.asarray(np.sum(labels == 1)), np.asarray(len(labels))))


def gini(labels: Union[Sequence[int], np.ndarray]) -> float:
    return impurity(labels, 'gini')


def entropy(labels: Union[Sequence[int], np.ndarray]) -> float:
    return impurity(labels, 'entropy')


def majority_label(labels: np.ndarray) -> int:
    """Most common label; an even count resolves to 0."""
    n_ones = int(np.sum(labels))
    return 1 if n_ones > len(labels) - n_ones else 0


def _midpoint(lower: float, upper: float) -> float:
    """Threshold between two adjacent distinct values, with ``lower <= t < upper``."""
    if (lower < 0) == (upper < 0):
        # same sign: the difference cannot overflow
        threshold = lower + (upper - lower) / 2.0
    else:
        threshold = (lower + upper) / 2.0
    # adjacent floats can round the midpoint onto the upper value
    if not lower <= threshold < upper:
        threshold = lower
    return threshold


# ============================================================================
# NODES
# ============================================================================

@dataclass(frozen=True)
class Leaf:
    label: int
    n_samples: int


@dataclass(frozen=True)
class Internal:
    """
    Split node. Records with ``x[feature_index] <= threshold`` go to ``left``.

    Attributes:
        impurity: Impurity of the partition reaching this node
        split_impurity: Record-weighted impurity of the two children
        left, right: Arena indices of the children
    """
    feature_index: int
    threshold: float
    impurity: float
    split_impurity: float
    n_samples: int
    left: int
    right: int


Node = Union[Leaf, Internal]


@dataclass(frozen=True)
class _Candidate:
    feature_index: int
    threshold: float
    impurity: float


class DecisionTreeModel(BaseModel):
    """
    CART decision tree for binary labels.

    Stopping conditions are checked in order: maximum depth reached,
    partition smaller than ``min_samples_split``, pure partition. A split is
    only accepted if it strictly lowers impurity; among equally good splits
    the first in (feature index, threshold) order wins.

    Config:
        max_depth: Maximum tree depth (default 10)
        min_samples_split: Minimum partition size to attempt a split (default 2)
        impurity_measure: 'gini' (default) or 'entropy'
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        super().__init__(config)
        self.max_depth = safe_int(self.config.get('max_depth'), 10)
        self.min_samples_split = safe_int(self.config.get('min_samples_split'), 2)
        self.impurity_measure = self.config.get('impurity_measure', 'gini')

        if self.max_depth < 0:
            raise InvalidHyperparameter('max_depth', self.max_depth, "must be non-negative")
        if self.min_samples_split < 1:
            raise InvalidHyperparameter('min_samples_split', self.min_samples_split, "must be at least 1")
        if self.impurity_measure not in IMPURITY_MEASURES:
            raise InvalidHyperparameter('impurity_measure', self.impurity_measure,
                                        f"expected one of {IMPURITY_MEASURES}")

        self._impurity_fn = _FROM_COUNTS[self.impurity_measure]
        self.nodes_: List[Node] = []

    # ------------------------------------------------------------------
    # Induction
    # ------------------------------------------------------------------

    def _fit(self, dataset: Dataset) -> None:
        X = dataset.features
        y = dataset.labels

        nodes: List[Optional[Node]] = [None]
        # (record indices, depth, arena slot)
        stack: List[Tuple[np.ndarray, int, int]] = [(np.arange(len(y)), 0, 0)]

        while stack:
            indices, depth, slot = stack.pop()
            y_part = y[indices]

            if (depth >= self.max_depth
                    or len(indices) < self.min_samples_split
                    or np.all(y_part == y_part[0])):
                nodes[slot] = Leaf(majority_label(y_part), len(indices))
                continue

            parent_impurity = float(self._impurity_fn(np.asarray(np.sum(y_part)),
                                                      np.asarray(len(y_part))))
            try:
                best = self._best_split(X[indices], y_part)
            except DegenerateSplit as e:
                logger.debug(f"{self.model_name}: {e.message} at depth {depth}")
                nodes[slot] = Leaf(majority_label(y_part), len(indices))
                continue

            if best.impurity >= parent_impurity:
                nodes[slot] = Leaf(majority_label(y_part), len(indices))
                continue

            go_left = X[indices, best.feature_index] <= best.threshold
            left_slot, right_slot = len(nodes), len(nodes) + 1
            nodes.extend([None, None])
            nodes[slot] = Internal(
                feature_index=best.feature_index,
                threshold=best.threshold,
                impurity=parent_impurity,
                split_impurity=best.impurity,
                n_samples=len(indices),
                left=left_slot,
                right=right_slot,
            )
            stack.append((indices[~go_left], depth + 1, right_slot))
            stack.append((indices[go_left], depth + 1, left_slot))

        self.nodes_ = nodes
        logger.info(f"{self.model_name} built: {len(nodes)} nodes, depth {self.depth()}, "
                    f"{self.n_leaves()} leaves ({self.impurity_measure})")

    def _best_split(self, X: np.ndarray, y: np.ndarray) -> _Candidate:
        """
        Lowest weighted impurity over all features and midpoint thresholds.

        Raises:
            DegenerateSplit: If no feature has two distinct values
        """
        n_samples, n_features = X.shape
        best: Optional[_Candidate] = None

        for feature_index in range(n_features):
            order = np.argsort(X[:, feature_index], kind='stable')
            values = X[order, feature_index]
            cum_ones = np.cumsum(y[order])

            # boundary i separates values[:i+1] from values[i+1:]
            boundaries = np.nonzero(values[:-1] != values[1:])[0]
            if len(boundaries) == 0:
                continue

            n_left = boundaries + 1
            n_right = n_samples - n_left
            ones_left = cum_ones[boundaries]
            ones_right = cum_ones[-1] - ones_left

            weighted = (n_left * self._impurity_fn(ones_left, n_left)
                        + n_right * self._impurity_fn(ones_right, n_right)) / n_samples

            pos = int(np.argmin(weighted))
            if best is None or weighted[pos] < best.impurity:
                lower = float(values[boundaries[pos]])
                upper = float(values[boundaries[pos] + 1])
                best = _Candidate(feature_index, _midpoint(lower, upper), float(weighted[pos]))

        if best is None:
            raise DegenerateSplit("no split with records on both sides")
        return best

    # ------------------------------------------------------------------
    # Inference
    # ------------------------------------------------------------------

    def leaf_for(self, record: Record) -> Leaf:
        """Walk from the root to the leaf that ``record`` falls into."""
        x = record.features
        node = self.nodes_[0]
        # each step moves to a higher arena index, so the walk terminates
        while isinstance(node, Internal):
            node = self.nodes_[node.left if x[node.feature_index] <= node.threshold else node.right]
        return node

    def _predict(self, record: Record) -> Prediction:
        return Prediction(label=self.leaf_for(record).label)

    # ------------------------------------------------------------------
    # Inspection
    # ------------------------------------------------------------------

    @property
    def root(self) -> Node:
        return self.nodes_[0]

    def depth(self) -> int:
        """Length of the longest root-to-leaf path."""
        deepest = 0
        stack = [(0, 0)]
        while stack:
            index, depth = stack.pop()
            node = self.nodes_[index]
            if isinstance(node, Internal):
                stack.extend([(node.left, depth + 1), (node.right, depth + 1)])
            else:
                deepest = max(deepest, depth)
        return deepest

    def n_leaves(self) -> int:
        return sum(isinstance(node, Leaf) for node in self.nodes_)

    def export_text(self, feature_names: Optional[Sequence[str]] = None) -> str:
        """Indented text rendering of the tree, one node per line."""
        lines = []
        stack = [(0, 0, '')]
        while stack:
            index, depth, prefix = stack.pop()
            node = self.nodes_[index]
            indent = '|   ' * depth
            if isinstance(node, Leaf):
                lines.append(f"{indent}{prefix}class: {node.label} (n={node.n_samples})")
                continue
            name = feature_names[node.feature_index] if feature_names else f"feature_{node.feature_index}"
            lines.append(f"{indent}{prefix}{name} <= {node.threshold:.4f} "
                         f"({self.impurity_measure}={node.impurity:.4f}, n={node.n_samples})")
            stack.append((node.right, depth + 1, 'else: '))
            stack.append((node.left, depth + 1, 'then: '))
        return '\n'.join(lines)


ModelFactory.register_model('decision_tree', DecisionTreeModel)
