# =============================================================================
# tests/test_ensemble.py
# Voting ensemble aggregation and tie-break policy
# =============================================================================

import itertools

import numpy as np
import pytest

from heartml.data import Dataset, Record, as_records
from heartml.exceptions import InvalidHyperparameter, NotFittedError
from heartml.models import (
    DEFAULT_TIEBREAK_MODEL,
    ENSEMBLE_MEMBERS,
    KNNModel,
    VotingEnsemble,
)


@pytest.fixture
def make_ensemble(fixed_model):
    """Build an ensemble whose members vote the given labels (LR, KNN, NB, DT order)."""
    def make(labels, tiebreak_model=DEFAULT_TIEBREAK_MODEL):
        models = {name: fixed_model(label) for name, label in zip(ENSEMBLE_MEMBERS, labels)}
        return VotingEnsemble.from_trained(models, tiebreak_model)
    return make


def test_members_order():
    assert ENSEMBLE_MEMBERS == ('logistic_regression', 'knn', 'naive_bayes', 'decision_tree')
    assert DEFAULT_TIEBREAK_MODEL == 'logistic_regression'


def test_three_of_four_majority_over_test_set(make_ensemble):
    ensemble = make_ensemble([1, 1, 0, 1])
    rng = np.random.default_rng(0)
    test = Dataset.from_arrays(rng.normal(size=(10, 1)), rng.integers(0, 2, 10))

    predictions = ensemble.predict_dataset(test)
    assert [p.label for p in predictions] == [1] * 10
    assert all(p.score == 0.75 for p in predictions)


@pytest.mark.parametrize("labels", [
    labels for labels in itertools.product([0, 1], repeat=4) if max(sum(labels), 4 - sum(labels)) >= 3
])
@pytest.mark.parametrize("tiebreak", ENSEMBLE_MEMBERS)
def test_clear_majority_ignores_tiebreak(make_ensemble, labels, tiebreak):
    ensemble = make_ensemble(labels, tiebreak)
    majority = 1 if sum(labels) >= 3 else 0
    assert ensemble.predict(Record((0.0,), 0)).label == majority


@pytest.mark.parametrize("tiebreak", ENSEMBLE_MEMBERS)
def test_two_two_tie_defers_to_designated_model(make_ensemble, tiebreak):
    labels = [1, 0, 1, 0]
    ensemble = make_ensemble(labels, tiebreak)
    expected = dict(zip(ENSEMBLE_MEMBERS, labels))[tiebreak]

    prediction = ensemble.predict(Record((0.0,), 0))
    assert prediction.label == expected
    assert prediction.score == 0.5


def test_votes_are_reported_per_member(make_ensemble):
    ensemble = make_ensemble([0, 1, 1, 0])
    assert ensemble.votes(Record((0.0,), 0)) == {
        'logistic_regression': 0, 'knn': 1, 'naive_bayes': 1, 'decision_tree': 0
    }


def test_unknown_tiebreak_model(make_ensemble):
    with pytest.raises(InvalidHyperparameter):
        make_ensemble([1, 0, 1, 0], tiebreak_model='random_forest')


def test_from_trained_requires_trained_members(fixed_model):
    models = {name: fixed_model(0) for name in ENSEMBLE_MEMBERS}
    models['knn'] = KNNModel({'k': 1})
    with pytest.raises(NotFittedError):
        VotingEnsemble.from_trained(models)


def test_from_trained_requires_all_four_members(fixed_model):
    models = {name: fixed_model(0) for name in ENSEMBLE_MEMBERS[:3]}
    with pytest.raises(ValueError):
        VotingEnsemble.from_trained(models)


def test_from_trained_does_not_retrain(make_ensemble):
    ensemble = make_ensemble([1, 1, 1, 1])
    assert ensemble.fitted
    assert all(model.fitted for model in ensemble.models.values())


def test_invalid_member_leaves_every_member_untrained():
    two_records = Dataset(as_records([[0.0], [1.0]], [0, 1]))
    ensemble = VotingEnsemble({'knn_config': {'k': 5}})

    with pytest.raises(InvalidHyperparameter):
        ensemble.train(two_records)

    assert not ensemble.fitted
    assert not any(model.fitted for model in ensemble.models.values())


def test_train_delegates_to_every_member(knn_toy_dataset):
    ensemble = VotingEnsemble({
        'knn_config': {'k': 1},
        'logistic_regression_config': {'learning_rate': 0.1, 'iterations': 100},
    })
    ensemble.train(knn_toy_dataset)

    assert all(model.fitted for model in ensemble.models.values())
    assert ensemble.models['knn'].k == 1
    assert ensemble.predict(Record((0.5,), 0)).label == 0
    assert ensemble.predict(Record((10.5,), 1)).label == 1
