"""Train/test splitting."""

from dataclasses import dataclass
from typing import Optional

import numpy as np
from loguru import logger

from .dataset import Dataset
from ..exceptions import EmptyDataset, InvalidHyperparameter


@dataclass(frozen=True)
class Split:
    """Disjoint train and test subsets that together cover the source dataset."""
    train: Dataset
    test: Dataset

    def __iter__(self):
        # allows ``train, test = split``
        return iter((self.train, self.test))


def train_test_split(dataset: Dataset, split_ratio: float = 0.8,
                     seed: Optional[int] = None) -> Split:
    """
    Partition a dataset into train and test subsets.

    Without a seed the split preserves record order: the first
    ``n - round(n * (1 - split_ratio))`` records form the train set. With a
    seed the records are shuffled reproducibly before cutting.

    Args:
        dataset: Source dataset
        split_ratio: Fraction of records assigned to the train set
        seed: Optional random seed for a shuffled split

    Returns:
        Split with non-empty train and test sets

    Raises:
        InvalidHyperparameter: If split_ratio is not strictly between 0 and 1
        EmptyDataset: If the dataset or either side of the split is empty
    """
    if not 0.0 < split_ratio < 1.0:
        raise InvalidHyperparameter('split_ratio', split_ratio, "must lie strictly between 0 and 1")
    if dataset.is_empty():
        raise EmptyDataset("source dataset")

    n = len(dataset)
    # round half away from zero
    n_test = int(n * (1.0 - split_ratio) + 0.5)
    n_train = n - n_test

    if seed is None:
        order = np.arange(n)
    else:
        order = np.random.default_rng(seed).permutation(n)

    train = dataset.subset(order[:n_train].tolist())
    test = dataset.subset(order[n_train:].tolist())

    if train.is_empty():
        raise EmptyDataset("train set")
    if test.is_empty():
        raise EmptyDataset("test set")

    logger.info(f"Train/test split: {len(train)}/{len(test)} samples "
                f"({'seed=' + str(seed) if seed is not None else 'ordered'})")
    for name, part in [('Train', train), ('Test', test)]:
        logger.info(f"  {name} classes: {part.class_counts()}")

    return Split(train=train, test=test)
