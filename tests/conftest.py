# =============================================================================
# tests/conftest.py
# Pytest fixtures shared across the heartml test suite
# =============================================================================

import numpy as np
import pytest

from heartml.data import Dataset, as_records
from heartml.models import BaseModel, Prediction


class FixedModel(BaseModel):
    """Model that always predicts the same label."""

    def __init__(self, label: int):
        super().__init__()
        self.label = label

    def _fit(self, dataset):
        pass

    def _predict(self, record):
        return Prediction(label=self.label)


@pytest.fixture
def fixed_model():
    """Factory for trained FixedModel instances on a 1-feature dataset."""
    def make(label: int, n_features: int = 1) -> FixedModel:
        model = FixedModel(label)
        model.train(Dataset.from_arrays(np.zeros((2, n_features)), [0, 1]))
        return model
    return make


@pytest.fixture
def knn_toy_dataset():
    """Features [0],[1],[10],[11] with labels [0,0,1,1]."""
    return Dataset(as_records([[0], [1], [10], [11]], [0, 0, 1, 1]))


@pytest.fixture
def tree_toy_dataset():
    """Single-feature records (1,0),(2,0),(8,1),(9,1)."""
    return Dataset(as_records([[1], [2], [8], [9]], [0, 0, 1, 1]))


@pytest.fixture
def synthetic_dataset():
    """200 records with 13 features; class 1 is shifted by 2.5 in every feature."""
    rng = np.random.default_rng(7)
    n_samples, n_features = 200, 13
    y = rng.integers(0, 2, n_samples)
    X = rng.normal(size=(n_samples, n_features)) + 2.5 * y[:, None]
    return Dataset.from_arrays(X, y)


@pytest.fixture
def cleveland_file(tmp_path):
    """Small Cleveland-format file with missing markers and multi-valued targets."""
    rows = [
        "63.0,1.0,1.0,145.0,233.0,1.0,2.0,150.0,0.0,2.3,3.0,0.0,6.0,0",
        "67.0,1.0,4.0,160.0,286.0,0.0,2.0,108.0,1.0,1.5,2.0,3.0,3.0,2",
        "67.0,1.0,4.0,120.0,229.0,0.0,2.0,129.0,1.0,2.6,2.0,2.0,7.0,1",
        "37.0,1.0,3.0,130.0,250.0,0.0,0.0,187.0,0.0,3.5,3.0,0.0,3.0,0",
        "41.0,0.0,2.0,130.0,204.0,0.0,2.0,172.0,0.0,1.4,1.0,?,3.0,0",
        "56.0,1.0,2.0,120.0,236.0,0.0,0.0,178.0,0.0,0.8,1.0,0.0,?,4",
    ]
    path = tmp_path / "processed.cleveland.data"
    path.write_text("\n".join(rows) + "\n")
    return path
