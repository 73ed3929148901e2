"""
Feature Scaler Module
====================

Column-wise feature scaling fit on the training set only.

Logistic regression and KNN assume features on comparable scales; the core
models do not rescale their input, so scaling happens here, upstream of them.
"""

import numpy as np
from typing import Tuple, Union
from loguru import logger

from .dataset import Dataset
from ..exceptions import EmptyDataset, InvalidHyperparameter


class FeatureScaler:
    """Standard (z-score) or min-max scaler operating on Datasets."""

    SCALERS = ('standard', 'minmax')

    def __init__(self, scaler_type: str = 'standard'):
        """
        Initialize scaler.

        Args:
            scaler_type: Type of scaler ('standard', 'minmax')
        """
        if scaler_type not in self.SCALERS:
            raise InvalidHyperparameter('scaler_type', scaler_type, f"expected one of {self.SCALERS}")

        self.scaler_type = scaler_type
        self.offset_ = None
        self.scale_ = None
        self.fitted = False

    def fit(self, train: Dataset) -> 'FeatureScaler':
        if train.is_empty():
            raise EmptyDataset("train set")

        X = train.features
        if self.scaler_type == 'standard':
            offset = X.mean(axis=0)
            scale = X.std(axis=0)
        else:
            offset = X.min(axis=0)
            scale = X.max(axis=0) - offset

        # constant columns pass through unscaled
        scale = np.where(scale > 0, scale, 1.0)

        self.offset_ = offset
        self.scale_ = scale
        self.fitted = True
        logger.info(f"Fitted {self.scaler_type} scaler on {train.n_features} features")
        return self

    def transform(self, dataset: Dataset) -> Dataset:
        """Return a new dataset with scaled features and unchanged labels."""
        if not self.fitted:
            raise ValueError("Scaler must be fitted before transform")
        if dataset.is_empty():
            return dataset
        X = (dataset.features - self.offset_) / self.scale_
        return Dataset.from_arrays(X, dataset.labels)

    def fit_transform(self, train: Dataset, *datasets: Dataset) -> Union[Dataset, Tuple[Dataset, ...]]:
        """
        Fit on training data and transform all provided datasets.

        Args:
            train: Training data to fit on
            *datasets: Additional datasets to transform (e.g. the test set)

        Returns:
            Single dataset if only ``train`` provided, tuple of datasets otherwise
        """
        self.fit(train)
        train_scaled = self.transform(train)

        if not datasets:
            return train_scaled

        return (train_scaled,) + tuple(self.transform(d) for d in datasets)
