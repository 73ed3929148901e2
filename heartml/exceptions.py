"""Exception hierarchy for the heartml framework.

Every error raised by the core derives from :class:`HeartMLError`, so the
pipeline can isolate one model's failure without catching unrelated bugs.
Errors caused by bad input also derive from ``ValueError``.
"""

from typing import Any, Dict, Optional


class HeartMLError(Exception):
    """
    Base exception for all heartml errors.

    Attributes:
        message: Human-readable error description
        details: Additional context as a dictionary
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} | Details: {self.details}"
        return self.message

    def to_dict(self) -> Dict[str, Any]:
        """Convert exception to dictionary for logging/reporting."""
        return {
            "error_type": self.__class__.__name__,
            "message": self.message,
            "details": self.details,
        }


# ============================================================================
# DATA ERRORS
# ============================================================================

class DimensionMismatch(HeartMLError, ValueError):
    """Record feature count disagrees with the dataset or model expectation."""

    def __init__(self, expected: int, actual: int, context: str = "record"):
        super().__init__(
            f"Dimension mismatch for {context}: expected {expected} features, got {actual}",
            details={"expected": expected, "actual": actual, "context": context},
        )
        self.expected = expected
        self.actual = actual


class EmptyDataset(HeartMLError, ValueError):
    """A train or test set has zero records."""

    def __init__(self, what: str = "dataset"):
        super().__init__(f"{what} has no records", details={"dataset": what})


# ============================================================================
# MODEL ERRORS
# ============================================================================

class InvalidHyperparameter(HeartMLError, ValueError):
    """A hyperparameter lies outside its valid range."""

    def __init__(self, name: str, value: Any, reason: str):
        super().__init__(
            f"Invalid hyperparameter {name}={value!r}: {reason}",
            details={"parameter": name, "value": value},
        )
        self.name = name
        self.value = value


class NumericInstability(HeartMLError):
    """Model parameters became non-finite during training."""

    def __init__(self, model_name: str, iteration: int):
        super().__init__(
            f"{model_name} diverged: non-finite parameters at iteration {iteration}",
            details={"model": model_name, "iteration": iteration},
        )
        self.iteration = iteration


class DegenerateSplit(HeartMLError):
    """No candidate split leaves records on both sides.

    The decision tree resolves this internally by emitting a leaf; it is
    never propagated out of ``DecisionTreeModel.train``.
    """


class NotFittedError(HeartMLError):
    """Prediction requested from a model that has not been trained."""

    def __init__(self, model_name: str):
        super().__init__(f"{model_name} must be trained before prediction")


class ModelAlreadyTrained(HeartMLError):
    """``train`` called on a model whose parameters are already populated."""

    def __init__(self, model_name: str):
        super().__init__(f"{model_name} is already trained; create a new instance to retrain")
