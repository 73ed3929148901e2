"""Models module.

This module provides the four from-scratch classifiers and their ensemble:
- Logistic regression, KNN and Gaussian naive Bayes (classical.py)
- CART decision tree (tree.py)
- Hard-voting ensemble (ensemble.py)
"""

# Base classes and factories
from .base import (
    BaseModel,
    ModelFactory,
    Prediction,
    safe_int,
    safe_float
)

# Classical models
from .classical import (
    LogisticRegressionModel,
    KNNModel,
    NaiveBayesModel,
    ClassStats,
    sigmoid,
    cross_entropy
)

# Decision tree
from .tree import (
    DecisionTreeModel,
    Leaf,
    Internal,
    impurity,
    gini,
    entropy
)

# Ensemble
from .ensemble import (
    VotingEnsemble,
    ENSEMBLE_MEMBERS,
    DEFAULT_TIEBREAK_MODEL
)

__all__ = [
    # Base classes
    'BaseModel',
    'ModelFactory',
    'Prediction',

    # Utilities
    'safe_int',
    'safe_float',
    'sigmoid',
    'cross_entropy',
    'impurity',
    'gini',
    'entropy',

    # Models
    'LogisticRegressionModel',
    'KNNModel',
    'NaiveBayesModel',
    'ClassStats',
    'DecisionTreeModel',
    'Leaf',
    'Internal',

    # Ensemble
    'VotingEnsemble',
    'ENSEMBLE_MEMBERS',
    'DEFAULT_TIEBREAK_MODEL',
]
