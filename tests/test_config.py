# =============================================================================
# tests/test_config.py
# YAML configuration and hyperparameter validation
# =============================================================================

from pathlib import Path

import pytest

from heartml.exceptions import InvalidHyperparameter
from heartml.utils import Config, ExperimentConfig

DEFAULT_CONFIG = Path(__file__).resolve().parent.parent / 'configs' / 'default.yaml'


def test_defaults():
    config = ExperimentConfig()
    assert config.learning_rate == 0.01
    assert config.iterations == 1000
    assert config.k == 5
    assert config.max_depth == 10
    assert config.min_samples_split == 2
    assert config.impurity_measure == 'gini'
    assert config.split_ratio == 0.8
    assert config.split_seed is None
    assert config.ensemble_tiebreak_model == 'logistic_regression'


def test_from_nested_dict():
    config = ExperimentConfig.from_dict({
        'data': {'split_ratio': 0.7, 'split_seed': 3, 'file': 'ignored.csv'},
        'models': {
            'logistic_regression': {'learning_rate': 0.05, 'iterations': 10},
            'knn': {'k': 7},
            'decision_tree': {'max_depth': 4, 'impurity_measure': 'entropy'},
        },
        'ensemble': {'tiebreak_model': 'knn'},
        'training': {'parallel': True},
    })
    assert config.split_ratio == 0.7
    assert config.split_seed == 3
    assert config.learning_rate == 0.05
    assert config.iterations == 10
    assert config.k == 7
    assert config.max_depth == 4
    assert config.impurity_measure == 'entropy'
    assert config.ensemble_tiebreak_model == 'knn'
    assert config.parallel is True


def test_flat_keys_override_nested():
    config = ExperimentConfig.from_dict({'models': {'knn': {'k': 7}}, 'k': 3})
    assert config.k == 3


def test_numeric_strings_are_coerced():
    config = ExperimentConfig.from_dict({'learning_rate': '1e-3', 'iterations': '50', 'split_seed': '9'})
    assert config.learning_rate == 0.001
    assert config.iterations == 50
    assert config.split_seed == 9


@pytest.mark.parametrize("raw, expected", [
    (True, True), (False, False),
    ('true', True), ('Yes', True), ('on', True), ('1', True),
    ('false', False), ('no', False), ('OFF', False), ('0', False),
])
def test_flags_are_coerced_to_bool(raw, expected):
    config = ExperimentConfig.from_dict({'training': {'parallel': raw}, 'data': {'scale': raw}})
    assert config.parallel is expected
    assert config.scale is expected


@pytest.mark.parametrize("raw", ['maybe', '', 2, None, 0.5])
def test_invalid_flag(raw):
    with pytest.raises(InvalidHyperparameter):
        ExperimentConfig.from_dict({'training': {'parallel': raw}})


def test_model_sections_only_set_their_own_options():
    config = ExperimentConfig.from_dict({
        'models': {
            'decision_tree': {'k': 1, 'max_depth': 3},
            'knn': {'learning_rate': 0.5},
            'svm': {'iterations': 7},
        },
    })
    assert config.k == 5
    assert config.max_depth == 3
    assert config.learning_rate == 0.01
    assert config.iterations == 1000


@pytest.mark.parametrize("options", [
    {'learning_rate': -0.01},
    {'learning_rate': 'fast'},
    {'iterations': 0},
    {'k': 0},
    {'max_depth': -2},
    {'min_samples_split': 0},
    {'impurity_measure': 'misclassification'},
    {'split_ratio': 1.0},
    {'ensemble_tiebreak_model': 'svm'},
    {'var_epsilon': 0.0},
])
def test_invalid_options(options):
    with pytest.raises(InvalidHyperparameter):
        ExperimentConfig.from_dict(options)


def test_model_config():
    config = ExperimentConfig(k=3, max_depth=2)
    assert config.model_config('knn') == {'k': 3}
    assert config.model_config('decision_tree') == {
        'max_depth': 2, 'min_samples_split': 2, 'impurity_measure': 'gini'
    }
    with pytest.raises(ValueError):
        config.model_config('svm')


def test_default_yaml_loads():
    config = Config(DEFAULT_CONFIG)
    assert config.get_data_config()['missing_values'] == 'drop'
    assert config.get_model_config('knn') == {'k': 5}

    experiment = config.experiment_config()
    assert experiment.split_seed == 42
    assert experiment.var_epsilon == 1e-9
    assert experiment.scale is True


def test_yaml_round_trip(tmp_path):
    path = tmp_path / 'experiment.yaml'
    path.write_text("models:\n  knn:\n    k: 9\nensemble:\n  tiebreak_model: decision_tree\n")
    config = ExperimentConfig.from_yaml(path)
    assert config.k == 9
    assert config.ensemble_tiebreak_model == 'decision_tree'


def test_missing_yaml(tmp_path):
    with pytest.raises(FileNotFoundError):
        Config(tmp_path / 'absent.yaml')


def test_unknown_model_section():
    config = Config(DEFAULT_CONFIG)
    with pytest.raises(ValueError):
        config.get_model_config('svm')
