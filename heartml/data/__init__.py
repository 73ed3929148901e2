"""Data handling module."""

from .dataset import Record, Dataset, check_dimension, as_records
from .splitter import Split, train_test_split
from .loader import ClevelandLoader, CLEVELAND_COLUMNS, FEATURE_COLUMNS
from .feature_scaler import FeatureScaler

__all__ = [
    "Record",
    "Dataset",
    "check_dimension",
    "as_records",
    "Split",
    "train_test_split",
    "ClevelandLoader",
    "CLEVELAND_COLUMNS",
    "FEATURE_COLUMNS",
    "FeatureScaler",
]
