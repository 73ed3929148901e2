"""Heart disease classification with from-scratch classifiers and majority voting."""

from .data import Record, Dataset, Split, train_test_split, ClevelandLoader, FeatureScaler
from .models import (
    ModelFactory,
    LogisticRegressionModel,
    KNNModel,
    NaiveBayesModel,
    DecisionTreeModel,
    VotingEnsemble,
)
from .metrics import ConfusionCounts, MetricsEvaluator
from .utils import Config, ExperimentConfig
from .pipeline import Experiment, ExperimentResult, run_experiment

__version__ = '1.0.0'

__all__ = [
    'Record',
    'Dataset',
    'Split',
    'train_test_split',
    'ClevelandLoader',
    'FeatureScaler',
    'ModelFactory',
    'LogisticRegressionModel',
    'KNNModel',
    'NaiveBayesModel',
    'DecisionTreeModel',
    'VotingEnsemble',
    'ConfusionCounts',
    'MetricsEvaluator',
    'Config',
    'ExperimentConfig',
    'Experiment',
    'ExperimentResult',
    'run_experiment',
]
