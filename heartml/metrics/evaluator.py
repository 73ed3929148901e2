"""Confusion counts and classification metrics for binary predictors."""

import numpy as np
import pandas as pd
from dataclasses import dataclass, field
from typing import Callable, Dict, List, Mapping, Optional, Sequence, Union
from loguru import logger

from ..data.dataset import Dataset
from ..exceptions import EmptyDataset, HeartMLError
from ..models.base import BaseModel, Prediction


@dataclass(frozen=True)
class ConfusionCounts:
    """True/false positive/negative tallies for one predictor."""
    tp: int = 0
    tn: int = 0
    fp: int = 0
    fn: int = 0

    @classmethod
    def from_labels(cls, y_true: Sequence[int], y_pred: Sequence[int]) -> 'ConfusionCounts':
        y_true = np.asarray(y_true, dtype=int)
        y_pred = np.asarray(y_pred, dtype=int)
        if y_true.shape != y_pred.shape:
            raise HeartMLError(f"Label count mismatch: {len(y_true)} true vs {len(y_pred)} predicted")
        return cls(
            tp=int(np.sum((y_pred == 1) & (y_true == 1))),
            tn=int(np.sum((y_pred == 0) & (y_true == 0))),
            fp=int(np.sum((y_pred == 1) & (y_true == 0))),
            fn=int(np.sum((y_pred == 0) & (y_true == 1))),
        )

    @property
    def total(self) -> int:
        return self.tp + self.tn + self.fp + self.fn

    def accuracy(self) -> float:
        return (self.tp + self.tn) / self.total if self.total else 0.0

    def precision(self) -> float:
        denom = self.tp + self.fp
        return self.tp / denom if denom else 0.0

    def recall(self) -> float:
        denom = self.tp + self.fn
        return self.tp / denom if denom else 0.0

    def f1(self) -> float:
        p, r = self.precision(), self.recall()
        return 2 * p * r / (p + r) if (p + r) > 0 else 0.0

    def as_matrix(self) -> np.ndarray:
        """2x2 matrix with rows = actual (0, 1) and columns = predicted (0, 1)."""
        return np.array([[self.tn, self.fp], [self.fn, self.tp]])


@dataclass
class ModelEvaluation:
    """Predictions, confusion counts and metrics of one predictor on the test set."""
    name: str
    predictions: List[Prediction]
    confusion: ConfusionCounts
    metrics: Dict[str, float] = field(default_factory=dict)

    @property
    def labels(self) -> List[int]:
        return [p.label for p in self.predictions]


class MetricsEvaluator:
    """
    Scores predictors against ground truth.

    Every metric is derived from confusion counts; zero denominators give
    a defined 0.0 rather than an error.
    """

    METRICS: Dict[str, Callable[[ConfusionCounts], float]] = {
        'accuracy': ConfusionCounts.accuracy,
        'precision': ConfusionCounts.precision,
        'recall': ConfusionCounts.recall,
        'f1': ConfusionCounts.f1,
    }

    def __init__(self, metrics_names: Optional[Sequence[str]] = None):
        names = list(metrics_names) if metrics_names is not None else list(self.METRICS)
        for name in names:
            if name not in self.METRICS:
                raise ValueError(f"Metric '{name}' not found. Available metrics: {list(self.METRICS)}")
        self.metrics_names = names

    def compute(self, confusion: ConfusionCounts) -> Dict[str, float]:
        return {name: self.METRICS[name](confusion) for name in self.metrics_names}

    def score_labels(self, y_true: Sequence[int], y_pred: Sequence[int]) -> Dict[str, float]:
        """Metrics for two label sequences."""
        return self.compute(ConfusionCounts.from_labels(y_true, y_pred))

    def evaluate(self, name: str, model: BaseModel, test: Dataset) -> ModelEvaluation:
        """
        Predict every test record and score the predictions.

        Args:
            name: Row name in the results table
            model: Trained predictor
            test: Test set with ground-truth labels

        Returns:
            ModelEvaluation for this predictor
        """
        if test.is_empty():
            raise EmptyDataset("test set")

        predictions = model.predict_dataset(test)
        confusion = ConfusionCounts.from_labels(test.labels, [p.label for p in predictions])
        metrics = self.compute(confusion)

        logger.info(f"{name}: " + ", ".join(f"{k}={v:.4f}" for k, v in metrics.items()))
        return ModelEvaluation(name=name, predictions=predictions, confusion=confusion, metrics=metrics)

    def evaluate_all(self, models: Mapping[str, BaseModel], test: Dataset) -> Dict[str, ModelEvaluation]:
        """Evaluate each predictor in order."""
        return {name: self.evaluate(name, model, test) for name, model in models.items()}

    @staticmethod
    def to_frame(results: Union[Mapping[str, ModelEvaluation], Sequence[ModelEvaluation]]) -> pd.DataFrame:
        """
        Comparison table indexed by model name.

        Columns are the computed metrics followed by tp/tn/fp/fn.
        """
        evaluations = list(results.values()) if isinstance(results, Mapping) else list(results)
        rows = []
        for ev in evaluations:
            row = {'model': ev.name, **ev.metrics}
            row.update(tp=ev.confusion.tp, tn=ev.confusion.tn, fp=ev.confusion.fp, fn=ev.confusion.fn)
            rows.append(row)
        return pd.DataFrame(rows).set_index('model') if rows else pd.DataFrame()

    @staticmethod
    def format_table(results: Union[Mapping[str, ModelEvaluation], Sequence[ModelEvaluation]]) -> str:
        """Fixed-width text comparison table of accuracy, precision, recall and F1."""
        evaluations = list(results.values()) if isinstance(results, Mapping) else list(results)
        header = f"| {'Model':<25} | Accuracy | Precision | Recall   | F1-Score |"
        rule = "|" + "-" * 27 + "|" + "-" * 10 + "|" + "-" * 11 + "|" + "-" * 10 + "|" + "-" * 10 + "|"
        lines = [header, rule]
        for ev in evaluations:
            m = ev.metrics
            lines.append(
                f"| {ev.name:<25} | {m.get('accuracy', float('nan')):<8.4f} "
                f"| {m.get('precision', float('nan')):<9.4f} "
                f"| {m.get('recall', float('nan')):<8.4f} "
                f"| {m.get('f1', float('nan')):<8.4f} |"
            )
        lines.append(rule)
        return "\n".join(lines)
