"""Configuration management for heartml."""

import copy
import math
from dataclasses import dataclass, asdict, fields
from pathlib import Path
from typing import Any, Dict, Optional, Union

import yaml
from loguru import logger

from ..exceptions import InvalidHyperparameter
from ..models.base import safe_float, safe_int
from ..models.ensemble import ENSEMBLE_MEMBERS, DEFAULT_TIEBREAK_MODEL
from ..models.tree import IMPURITY_MEASURES

_TRUE_STRINGS = ('true', 'yes', 'on', '1')
_FALSE_STRINGS = ('false', 'no', 'off', '0')

# Options read from each models.<name> section
MODEL_OPTIONS = {
    'logistic_regression': ('learning_rate', 'iterations'),
    'knn': ('k',),
    'naive_bayes': ('var_epsilon',),
    'decision_tree': ('max_depth', 'min_samples_split', 'impurity_measure'),
}


class Config:
    """
    YAML configuration loader.

    Sections: ``data``, ``models`` (one block per member), ``ensemble``,
    ``training`` and ``output``. All keys are preserved; the validated
    hyperparameters are obtained through :meth:`experiment_config`.
    """

    def __init__(self, config_path: Union[str, Path]):
        """Load configuration from YAML file."""
        self.config_path = Path(config_path)
        if not self.config_path.exists():
            raise FileNotFoundError(f"Config file not found: {self.config_path}")
        with open(self.config_path, 'r') as f:
            self.config = yaml.safe_load(f) or {}

    def get_model_config(self, model_name: str) -> Dict[str, Any]:
        """
        Get a deep copy of one model's configuration block.

        Raises:
            ValueError: If model not found
        """
        models = self.config.get('models', {})
        if model_name not in models:
            raise ValueError(f"Model '{model_name}' not found")
        return copy.deepcopy(models[model_name] or {})

    # Simple getters for other sections
    def get_data_config(self) -> Dict[str, Any]:
        """Get data configuration."""
        return self.config.get('data', {})

    def get_ensemble_config(self) -> Dict[str, Any]:
        """Get ensemble configuration."""
        return self.config.get('ensemble', {})

    def get_training_config(self) -> Dict[str, Any]:
        """Get training configuration."""
        return self.config.get('training', {})

    def get_output_config(self) -> Dict[str, Any]:
        """Get output configuration."""
        return self.config.get('output', {})

    def experiment_config(self) -> 'ExperimentConfig':
        """Validated hyperparameters for an experiment run."""
        return ExperimentConfig.from_dict(self.config)

    def __getitem__(self, key: str) -> Any:
        """Allow dict-like access to config."""
        return self.config[key]

    def get(self, key: str, default: Any = None) -> Any:
        """Get configuration value with default."""
        return self.config.get(key, default)


@dataclass
class ExperimentConfig:
    """
    Hyperparameters consumed by the core.

    Attributes:
        learning_rate: Logistic regression step size
        iterations: Logistic regression gradient steps
        k: KNN neighbour count (checked against the train size at training time)
        var_epsilon: Naive Bayes substitute for zero variances
        max_depth: Decision tree depth limit
        min_samples_split: Smallest partition the decision tree will split
        impurity_measure: 'gini' or 'entropy'
        split_ratio: Fraction of records in the train set
        split_seed: Seed for a shuffled split; None keeps record order
        ensemble_tiebreak_model: Member that settles a 2-2 vote
        scale: Standardise features with train-set statistics before training
        parallel: Train the four models on a thread pool
    """
    learning_rate: float = 0.01
    iterations: int = 1000
    k: int = 5
    var_epsilon: float = 1e-9
    max_depth: int = 10
    min_samples_split: int = 2
    impurity_measure: str = 'gini'
    split_ratio: float = 0.8
    split_seed: Optional[int] = None
    ensemble_tiebreak_model: str = DEFAULT_TIEBREAK_MODEL
    scale: bool = False
    parallel: bool = False

    _FLOATS = ('learning_rate', 'var_epsilon', 'split_ratio')
    _INTS = ('iterations', 'k', 'max_depth', 'min_samples_split')
    _BOOLS = ('scale', 'parallel')

    def __post_init__(self):
        for name in self._FLOATS:
            setattr(self, name, self._coerce(name, getattr(self, name), safe_float))
        for name in self._INTS:
            setattr(self, name, self._coerce(name, getattr(self, name), safe_int))
        if self.split_seed is not None:
            self.split_seed = self._coerce('split_seed', self.split_seed, safe_int)
        for name in self._BOOLS:
            setattr(self, name, self._coerce_bool(name, getattr(self, name)))
        self.validate()

    @staticmethod
    def _coerce(name: str, value: Any, convert) -> Any:
        converted = convert(value, None)
        if converted is None:
            raise InvalidHyperparameter(name, value, "not a number")
        return converted

    @staticmethod
    def _coerce_bool(name: str, value: Any) -> bool:
        if isinstance(value, bool):
            return value
        if isinstance(value, str):
            lowered = value.strip().lower()
            if lowered in _TRUE_STRINGS:
                return True
            if lowered in _FALSE_STRINGS:
                return False
        raise InvalidHyperparameter(name, value, "expected true or false")

    def validate(self) -> None:
        """
        Check every option against its valid range.

        Raises:
            InvalidHyperparameter: On the first invalid option
        """
        if not math.isfinite(self.learning_rate) or self.learning_rate <= 0:
            raise InvalidHyperparameter('learning_rate', self.learning_rate, "must be a positive finite number")
        if self.iterations < 1:
            raise InvalidHyperparameter('iterations', self.iterations, "must be a positive integer")
        if self.k < 1:
            raise InvalidHyperparameter('k', self.k, "must be a positive integer")
        if not self.var_epsilon > 0:
            raise InvalidHyperparameter('var_epsilon', self.var_epsilon, "must be positive")
        if self.max_depth < 0:
            raise InvalidHyperparameter('max_depth', self.max_depth, "must be non-negative")
        if self.min_samples_split < 1:
            raise InvalidHyperparameter('min_samples_split', self.min_samples_split, "must be at least 1")
        if self.impurity_measure not in IMPURITY_MEASURES:
            raise InvalidHyperparameter('impurity_measure', self.impurity_measure,
                                        f"expected one of {IMPURITY_MEASURES}")
        if not 0.0 < self.split_ratio < 1.0:
            raise InvalidHyperparameter('split_ratio', self.split_ratio, "must lie strictly between 0 and 1")
        if self.ensemble_tiebreak_model not in ENSEMBLE_MEMBERS:
            raise InvalidHyperparameter('ensemble_tiebreak_model', self.ensemble_tiebreak_model,
                                        f"expected one of {ENSEMBLE_MEMBERS}")

    @classmethod
    def from_dict(cls, config: Optional[Dict[str, Any]] = None) -> 'ExperimentConfig':
        """
        Build from a nested YAML-style dict or a flat dict of option names.

        Nested layout::

            data: {split_ratio: 0.8, split_seed: 42, scale: true}
            models:
              logistic_regression: {learning_rate: 0.01, iterations: 1000}
              knn: {k: 5}
              naive_bayes: {var_epsilon: 1.0e-9}
              decision_tree: {max_depth: 10, min_samples_split: 2, impurity_measure: gini}
            ensemble: {tiebreak_model: logistic_regression}
            training: {parallel: false}

        Top-level keys matching an option name override nested values.
        """
        config = config or {}
        known = {f.name for f in fields(cls)}
        options: Dict[str, Any] = {}

        data = config.get('data') or {}
        options.update({k: v for k, v in data.items() if k in ('split_ratio', 'split_seed', 'scale')})

        for model_name, model_config in (config.get('models') or {}).items():
            allowed = MODEL_OPTIONS.get(model_name, ())
            for key, value in (model_config or {}).items():
                if key in allowed:
                    options[key] = value
                else:
                    logger.warning(f"Ignoring unknown option '{key}' in models.{model_name}")

        ensemble = config.get('ensemble') or {}
        if 'tiebreak_model' in ensemble:
            options['ensemble_tiebreak_model'] = ensemble['tiebreak_model']

        training = config.get('training') or {}
        if 'parallel' in training:
            options['parallel'] = training['parallel']

        options.update({k: v for k, v in config.items() if k in known})
        return cls(**options)

    @classmethod
    def from_yaml(cls, config_path: Union[str, Path]) -> 'ExperimentConfig':
        return Config(config_path).experiment_config()

    def model_config(self, model_name: str) -> Dict[str, Any]:
        """Constructor config for one ensemble member."""
        if model_name not in MODEL_OPTIONS:
            raise ValueError(f"Unknown model: {model_name}")
        return {key: getattr(self, key) for key in MODEL_OPTIONS[model_name]}

    def to_dict(self) -> Dict[str, Any]:
        return asdict(self)
