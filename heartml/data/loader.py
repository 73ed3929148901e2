"""Loading of the Cleveland heart-disease file into a Dataset."""

import pandas as pd
from pathlib import Path
from typing import Any, Dict, List, Union
from loguru import logger

from .dataset import Dataset
from ..exceptions import EmptyDataset, InvalidHyperparameter

CLEVELAND_COLUMNS: List[str] = [
    'age', 'sex', 'cp', 'trestbps', 'chol', 'fbs', 'restecg',
    'thalach', 'exang', 'oldpeak', 'slope', 'ca', 'thal', 'num'
]
TARGET_COLUMN = 'num'
FEATURE_COLUMNS: List[str] = [c for c in CLEVELAND_COLUMNS if c != TARGET_COLUMN]


class ClevelandLoader:
    """
    Reads the 14-field comma-delimited Cleveland file.

    ``?`` marks a missing value. Rows with missing values are dropped, or the
    column mean is imputed. The multi-valued diagnosis ``num`` (0-4) is
    collapsed to 0 (no disease) / 1 (disease present).
    """

    MISSING_STRATEGIES = ('drop', 'impute_mean')

    def __init__(self, missing_values: str = 'drop', binarize_target: bool = True):
        if missing_values not in self.MISSING_STRATEGIES:
            raise InvalidHyperparameter('missing_values', missing_values,
                                        f"expected one of {self.MISSING_STRATEGIES}")
        self.missing_values = missing_values
        self.binarize_target = binarize_target

    def load_from_config(self, config: Dict[str, Any], project_root: Path = Path('.')) -> Dataset:
        """
        Load data described by the ``data`` section of a configuration.

        Config format:
            {file: 'data/processed.cleveland.data', missing_values: drop}
        """
        file_path = config.get('file') or config.get('data_file')
        if not file_path:
            raise ValueError("Data config must provide 'file' or 'data_file'")
        return self.load(project_root / file_path)

    def load(self, file_path: Union[str, Path]) -> Dataset:
        """Read ``file_path`` and return a cleaned, fully-numeric dataset."""
        file_path = Path(file_path)
        if not file_path.exists():
            raise FileNotFoundError(f"File not found: {file_path}")

        df = pd.read_csv(file_path, header=None, names=CLEVELAND_COLUMNS,
                         na_values='?', skipinitialspace=True)
        return self.clean(df)

    def clean(self, df: pd.DataFrame) -> Dataset:
        """Resolve missing markers, binarise the target and build a Dataset."""
        df = df.apply(pd.to_numeric, errors='coerce')
        n_raw = len(df)

        if self.missing_values == 'drop':
            df = df.dropna()
            logger.info(f"Dropped {n_raw - len(df)} rows with missing values")
        else:
            df = df.dropna(subset=[TARGET_COLUMN])
            n_missing = int(df[FEATURE_COLUMNS].isna().sum().sum())
            df[FEATURE_COLUMNS] = df[FEATURE_COLUMNS].fillna(df[FEATURE_COLUMNS].mean())
            logger.info(f"Imputed {n_missing} missing feature values with column means")

        if df.empty:
            raise EmptyDataset("cleaned Cleveland data")

        y = df[TARGET_COLUMN].to_numpy()
        if self.binarize_target:
            y = (y > 0).astype(int)

        X = df[FEATURE_COLUMNS].to_numpy(dtype=float)
        dataset = Dataset.from_arrays(X, y.astype(int))

        logger.info(f"Loaded: {X.shape[0]} samples, {X.shape[1]} features, "
                    f"classes {dataset.class_counts()}")
        return dataset
