"""Evaluation metrics."""

from .evaluator import ConfusionCounts, ModelEvaluation, MetricsEvaluator

__all__ = ['ConfusionCounts', 'ModelEvaluation', 'MetricsEvaluator']
