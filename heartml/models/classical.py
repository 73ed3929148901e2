"""Classical classifiers implemented from first principles."""

import numpy as np
from dataclasses import dataclass
from typing import Dict, Any, Optional, Union
from loguru import logger

from .base import BaseModel, ModelFactory, Prediction, safe_float, safe_int
from ..data.dataset import Dataset, Record, LABELS, check_dimension
from ..exceptions import InvalidHyperparameter, NotFittedError, NumericInstability


def sigmoid(z: Union[float, np.ndarray]) -> Union[float, np.ndarray]:
    """
    Logistic function ``1 / (1 + e^-z)``.

    Evaluated in two branches so that ``exp`` is only ever taken of a
    non-positive argument and never overflows.
    """
    scalar = np.ndim(z) == 0
    z = np.atleast_1d(np.asarray(z, dtype=float))
    out = np.empty_like(z)

    pos = z >= 0
    out[pos] = 1.0 / (1.0 + np.exp(-z[pos]))
    ez = np.exp(z[~pos])
    out[~pos] = ez / (1.0 + ez)

    return float(out[0]) if scalar else out


def cross_entropy(p: np.ndarray, y: np.ndarray, eps: float = 1e-15) -> float:
    """Mean binary cross-entropy of probabilities ``p`` against labels ``y``."""
    p = np.clip(p, eps, 1 - eps)
    return float(-np.mean(y * np.log(p) + (1 - y) * np.log(1 - p)))


class LogisticRegressionModel(BaseModel):
    """
    Logistic regression trained by batch gradient descent.

    Weights and bias start at zero and are updated for exactly ``iterations``
    steps of mean cross-entropy gradient descent; there is no convergence
    check. Features are expected to be on comparable scales.

    Config:
        learning_rate: Gradient step size (default 0.01)
        iterations: Number of full-batch updates (default 1000)
        log_every: Log the training loss every N iterations at debug level (0 = off)
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        super().__init__(config)
        self.learning_rate = safe_float(self.config.get('learning_rate'), 0.01)
        self.iterations = safe_int(self.config.get('iterations'), 1000)
        self.log_every = safe_int(self.config.get('log_every'), 0)

        if not np.isfinite(self.learning_rate) or self.learning_rate <= 0:
            raise InvalidHyperparameter('learning_rate', self.learning_rate, "must be a positive finite number")
        if self.iterations < 1:
            raise InvalidHyperparameter('iterations', self.iterations, "must be a positive integer")

        self.weights_: Optional[np.ndarray] = None
        self.bias_: float = 0.0

    def _fit(self, dataset: Dataset) -> None:
        X = dataset.features
        y = dataset.labels.astype(float)
        n_samples, n_features = X.shape

        w = np.zeros(n_features)
        b = 0.0

        with np.errstate(over='ignore', invalid='ignore'):
            for iteration in range(1, self.iterations + 1):
                p = sigmoid(X @ w + b)
                error = p - y

                w = w - self.learning_rate * (X.T @ error) / n_samples
                b = b - self.learning_rate * float(np.mean(error))

                if not (np.all(np.isfinite(w)) and np.isfinite(b)):
                    raise NumericInstability(self.model_name, iteration)

                if self.log_every and iteration % self.log_every == 0:
                    logger.debug(f"{self.model_name} iteration {iteration}: "
                                 f"loss={cross_entropy(sigmoid(X @ w + b), y):.6f}")

        self.weights_ = w
        self.bias_ = float(b)

    def predict_proba(self, record: Record) -> float:
        """Probability of class 1."""
        return self.predict(record).score

    def _predict(self, record: Record) -> Prediction:
        p = sigmoid(float(np.dot(self.weights_, record.as_array())) + self.bias_)
        return Prediction(label=int(p >= 0.5), score=p)


class KNNModel(BaseModel):
    """
    K-Nearest Neighbors classifier with Euclidean distance.

    Training only keeps a reference to the training set. Distance ties are
    broken by position in the training set; an exact vote tie goes to the
    label of the nearest neighbour.

    Config:
        k: Number of neighbours (default 5)
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        super().__init__(config)
        self.k = safe_int(self.config.get('k'), 5)
        if self.k <= 0:
            raise InvalidHyperparameter('k', self.k, "must be a positive integer")
        self.train_set_: Optional[Dataset] = None

    def _validate_k(self, k: int, n_train: int) -> int:
        if k <= 0:
            raise InvalidHyperparameter('k', k, "must be a positive integer")
        if k > n_train:
            raise InvalidHyperparameter('k', k, f"exceeds training set size {n_train}")
        return k

    def _check_train_set(self, dataset: Dataset) -> None:
        self._validate_k(self.k, len(dataset))

    def _fit(self, dataset: Dataset) -> None:
        self.train_set_ = dataset

    def predict(self, record: Record, k: Optional[int] = None) -> Prediction:
        """
        Predict by majority vote of the ``k`` nearest training records.

        Args:
            record: Query record
            k: Neighbour count overriding the configured one
        """
        if k is None:
            return super().predict(record)
        if not self.fitted:
            raise NotFittedError(self.model_name)
        check_dimension(record, self.n_features_, context=f"{self.model_name} input")
        return self._vote(record, self._validate_k(k, len(self.train_set_)))

    def neighbors(self, record: Record, k: int) -> np.ndarray:
        """Indices of the ``k`` nearest training records, nearest first."""
        diff = self.train_set_.features - record.as_array()
        distances = np.sqrt(np.sum(diff * diff, axis=1))
        # stable sort keeps earlier training records first on equal distance
        return np.argsort(distances, kind='stable')[:k]

    def _predict(self, record: Record) -> Prediction:
        return self._vote(record, self.k)

    def _vote(self, record: Record, k: int) -> Prediction:
        nearest = self.neighbors(record, k)
        labels = self.train_set_.labels[nearest]

        ones = int(np.sum(labels))
        zeros = k - ones
        if ones > zeros:
            label = 1
        elif zeros > ones:
            label = 0
        else:
            label = int(labels[0])

        return Prediction(label=label, score=ones / k)


@dataclass(frozen=True)
class ClassStats:
    """Per-class Gaussian parameters."""
    mean: np.ndarray
    variance: np.ndarray
    prior: float


class NaiveBayesModel(BaseModel):
    """
    Gaussian Naive Bayes classifier scored in log space.

    Variances use the population estimator (divide by the class count). A
    variance of exactly zero is replaced by ``var_epsilon``. Equal class
    scores resolve to class 0.

    Config:
        var_epsilon: Substitute for zero variances (default 1e-9)
    """

    def __init__(self, config: Optional[Dict[str, Any]] = None):
        super().__init__(config)
        self.var_epsilon = safe_float(self.config.get('var_epsilon'), 1e-9)
        if not self.var_epsilon > 0:
            raise InvalidHyperparameter('var_epsilon', self.var_epsilon, "must be positive")
        self.class_stats_: Dict[int, ClassStats] = {}

    def _fit(self, dataset: Dataset) -> None:
        X = dataset.features
        y = dataset.labels
        n_samples, n_features = X.shape

        for label in LABELS:
            X_c = X[y == label]
            if len(X_c) == 0:
                logger.warning(f"{self.model_name}: no training records for class {label}")
                self.class_stats_[label] = ClassStats(
                    mean=np.zeros(n_features), variance=np.ones(n_features), prior=0.0
                )
                continue

            variance = X_c.var(axis=0)
            variance = np.where(variance == 0, self.var_epsilon, variance)
            self.class_stats_[label] = ClassStats(
                mean=X_c.mean(axis=0), variance=variance, prior=len(X_c) / n_samples
            )

    @property
    def priors(self) -> Dict[int, float]:
        return {label: stats.prior for label, stats in self.class_stats_.items()}

    def log_scores(self, record: Record) -> Dict[int, float]:
        """Unnormalised log posterior of each class."""
        x = record.as_array()
        scores = {}
        for label, stats in self.class_stats_.items():
            if stats.prior == 0:
                scores[label] = float('-inf')
                continue
            log_density = (-0.5 * np.log(2 * np.pi * stats.variance)
                           - (x - stats.mean) ** 2 / (2 * stats.variance))
            scores[label] = float(np.log(stats.prior) + np.sum(log_density))
        return scores

    def _predict(self, record: Record) -> Prediction:
        scores = self.log_scores(record)
        label = 1 if scores[1] > scores[0] else 0
        if scores[0] == scores[1]:
            # covers both scores at -inf
            return Prediction(label=label, score=0.5)
        # P(1) = 1 / (1 + exp(s0 - s1))
        return Prediction(label=label, score=sigmoid(scores[1] - scores[0]))


# Register all models
ModelFactory.register_model('logistic_regression', LogisticRegressionModel)
ModelFactory.register_model('knn', KNNModel)
ModelFactory.register_model('naive_bayes', NaiveBayesModel)
