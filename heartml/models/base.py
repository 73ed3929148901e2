"""Base model interface and factory.

This module provides the foundation for all classifiers in the framework.
It includes the abstract model contract, the prediction value type, a factory
for creating models by name, and helpers for safe type conversion of
configuration values.

Key Components:
    - Prediction: Label plus optional probability/score
    - BaseModel: Abstract train/predict contract shared by every classifier
    - ModelFactory: Registry for model creation by name
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass
from typing import Any, Dict, List, Optional

from loguru import logger

from ..data.dataset import Dataset, Record, check_dimension
from ..exceptions import EmptyDataset, ModelAlreadyTrained, NotFittedError


def safe_int(value: Any, default: int) -> int:
    """
    Safely convert value to integer.

    Handles strings with scientific notation, floats, and None values.
    Returns default if conversion fails.

    Args:
        value: Value to convert
        default: Default value if conversion fails

    Returns:
        Converted integer value or default
    """
    if value is None:
        return default
    try:
        return int(float(str(value)))
    except (TypeError, ValueError):
        return default


def safe_float(value: Any, default: float) -> float:
    """
    Safely convert value to float.

    Handles strings with scientific notation (YAML reads ``1e-9`` as a
    string), integers, and None values. Returns default if conversion fails.

    Args:
        value: Value to convert
        default: Default value if conversion fails

    Returns:
        Converted float value or default
    """
    if value is None:
        return default
    try:
        return float(str(value))
    except (TypeError, ValueError):
        return default


@dataclass(frozen=True)
class Prediction:
    """
    Output of a single prediction.

    Attributes:
        label: Predicted class, 0 or 1
        score: Probability (or vote fraction) for class 1 where the model defines one
    """
    label: int
    score: Optional[float] = None


class BaseModel(ABC):
    """
    Abstract base class for all classifiers.

    Provides a consistent interface for training and prediction. Subclasses
    implement ``_fit`` and ``_predict``; the public ``train`` and ``predict``
    methods enforce the shared lifecycle: parameters are populated exactly
    once, and prediction is a pure read of them.

    Attributes:
        config: Configuration dictionary for the model
        fitted: Whether the model has been trained
        model_name: Name of the model class
        n_features_: Feature dimensionality seen during training
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        """
        Initialize base model.

        Args:
            config: Model configuration dictionary containing hyperparameters
                   specific to each model type
        """
        self.config = config or {}
        self.fitted = False
        self.model_name = self.__class__.__name__
        self.n_features_: Optional[int] = None

    def train(self, dataset: Dataset) -> None:
        """
        Train the model on the provided data.

        Args:
            dataset: Training set; read-only for the model

        Raises:
            ModelAlreadyTrained: If the model was trained before
            EmptyDataset: If the training set has no records
        """
        self.check_trainable(dataset)

        self._fit(dataset)
        self.n_features_ = dataset.n_features
        self.fitted = True
        logger.info(f"{self.model_name} trained on {len(dataset)} samples")

    def check_trainable(self, dataset: Dataset) -> None:
        """
        Raise the error ``train(dataset)`` would raise before fitting starts.

        Leaves the model untouched.
        """
        if self.fitted:
            raise ModelAlreadyTrained(self.model_name)
        if dataset.is_empty():
            raise EmptyDataset("train set")
        self._check_train_set(dataset)

    def _check_train_set(self, dataset: Dataset) -> None:
        """Model-specific checks of hyperparameters against the training set."""

    def predict(self, record: Record) -> Prediction:
        """
        Predict the label of one record.

        Args:
            record: Record with the training dimensionality

        Returns:
            Prediction with label and, where defined, a score

        Raises:
            NotFittedError: If the model has not been trained
            DimensionMismatch: If the record has the wrong number of features
        """
        if not self.fitted:
            raise NotFittedError(self.model_name)
        check_dimension(record, self.n_features_, context=f"{self.model_name} input")
        return self._predict(record)

    def predict_label(self, record: Record) -> int:
        return self.predict(record).label

    def predict_dataset(self, dataset: Dataset) -> List[Prediction]:
        """Predict every record of ``dataset`` in order."""
        return [self.predict(record) for record in dataset]

    @abstractmethod
    def _fit(self, dataset: Dataset) -> None:
        """Populate model parameters from a non-empty training set."""

    @abstractmethod
    def _predict(self, record: Record) -> Prediction:
        """Predict one record whose dimensionality has been checked."""

    def __repr__(self) -> str:
        state = 'trained' if self.fitted else 'untrained'
        return f"{self.model_name}({state})"


# ============================================================================
# FACTORY
# ============================================================================

class ModelFactory:
    """
    Factory class for creating and managing model instances.

    Models register themselves under a short name when their module is
    imported and can then be created from a configuration dictionary.
    """

    _models = {}

    @classmethod
    def register_model(cls, name: str, model_class: type) -> None:
        """
        Register a model class with the factory.

        Args:
            name: Name to register the model under
            model_class: Model class that inherits from BaseModel
        """
        cls._models[name] = model_class

    @classmethod
    def create_model(cls, name: str, config: Optional[Dict[str, Any]] = None, **kwargs) -> BaseModel:
        """
        Create a model instance by name.

        Args:
            name: Registered name of the model
            config: Configuration dictionary for the model
            **kwargs: Additional keyword arguments merged into config

        Returns:
            Instantiated, untrained model

        Raises:
            ValueError: If the model name is not registered
        """
        if name not in cls._models:
            raise ValueError(f"Unknown model: {name}")

        full_config = {**(config or {}), **kwargs}
        return cls._models[name](config=full_config)

    @classmethod
    def list_models(cls) -> list:
        """Get list of all registered model names."""
        return list(cls._models.keys())
