# =============================================================================
# tests/test_tree.py
# CART decision tree and impurity measures
# =============================================================================

import numpy as np
import pytest

from heartml.data import Dataset, Record, as_records
from heartml.exceptions import InvalidHyperparameter
from heartml.models import DecisionTreeModel, Internal, Leaf, entropy, gini, impurity


class TestImpurity:

    @pytest.mark.parametrize("labels", [[0, 0, 0], [1], [1, 1, 1, 1]])
    def test_pure_partition_is_zero(self, labels):
        assert gini(labels) == 0.0
        assert entropy(labels) == 0.0

    def test_even_mix_is_maximal(self):
        assert gini([0, 1, 0, 1]) == pytest.approx(0.5)
        assert entropy([0, 1, 0, 1]) == pytest.approx(1.0)

    def test_uneven_mix(self):
        assert gini([0, 0, 1]) == pytest.approx(4 / 9)
        assert entropy([0, 0, 0, 1]) == pytest.approx(0.8112781, rel=1e-6)

    def test_empty_partition(self):
        assert gini([]) == 0.0

    def test_unknown_measure(self):
        with pytest.raises(InvalidHyperparameter):
            impurity([0, 1], 'misclassification')


class TestDecisionTree:

    @pytest.mark.parametrize("measure", ['gini', 'entropy'])
    def test_scenario_single_split_at_midpoint(self, tree_toy_dataset, measure):
        model = DecisionTreeModel({'max_depth': 1, 'impurity_measure': measure})
        model.train(tree_toy_dataset)

        root = model.root
        assert isinstance(root, Internal)
        assert root.feature_index == 0
        assert root.threshold == 5.0
        assert root.split_impurity == 0.0

        left, right = model.nodes_[root.left], model.nodes_[root.right]
        assert left == Leaf(label=0, n_samples=2)
        assert right == Leaf(label=1, n_samples=2)

        assert model.predict(Record((3.0,), 0)).label == 0
        assert model.predict(Record((7.0,), 1)).label == 1

    def test_value_equal_to_threshold_goes_left(self, tree_toy_dataset):
        model = DecisionTreeModel({'max_depth': 1})
        model.train(tree_toy_dataset)
        assert model.predict(Record((5.0,), 0)).label == 0

    def test_first_feature_wins_ties(self):
        dataset = Dataset(as_records([[1, 1], [2, 2], [8, 8], [9, 9]], [0, 0, 1, 1]))
        model = DecisionTreeModel({'max_depth': 1})
        model.train(dataset)
        assert model.root.feature_index == 0

    def test_lowest_threshold_wins_ties(self):
        # thresholds 1.5 and 3.5 both give weighted gini 1/3
        dataset = Dataset(as_records([[1], [2], [3], [4]], [0, 1, 0, 1]))
        model = DecisionTreeModel({'max_depth': 1})
        model.train(dataset)
        assert model.root.threshold == 1.5
        assert model.root.split_impurity == pytest.approx(1 / 3)

    @pytest.mark.parametrize("sign", [1.0, -1.0])
    def test_huge_values_split_with_records_on_both_sides(self, sign):
        values = [[sign * v] for v in (1.6e308, 1.5e308, 1.0e308, 0.9e308)]
        labels = [0, 0, 1, 1] if sign < 0 else [1, 1, 0, 0]
        model = DecisionTreeModel({'max_depth': 1})
        model.train(Dataset(as_records(values, labels)))

        root = model.root
        assert isinstance(root, Internal)
        assert np.isfinite(root.threshold)
        assert model.nodes_[root.left].n_samples == 2
        assert model.nodes_[root.right].n_samples == 2

    def test_midpoint_never_reaches_upper_value(self):
        lower = 1.0
        upper = np.nextafter(lower, 2.0)
        dataset = Dataset(as_records([[lower], [upper]], [0, 1]))
        model = DecisionTreeModel({'max_depth': 1})
        model.train(dataset)
        assert model.root.threshold == lower
        assert model.predict(Record((upper,), 1)).label == 1

    def test_max_depth_zero_gives_majority_leaf(self):
        dataset = Dataset(as_records([[1], [2], [3]], [1, 0, 1]))
        model = DecisionTreeModel({'max_depth': 0})
        model.train(dataset)
        assert model.root == Leaf(label=1, n_samples=3)

    def test_majority_tie_resolves_to_zero(self):
        dataset = Dataset(as_records([[1], [2]], [1, 0]))
        model = DecisionTreeModel({'max_depth': 0})
        model.train(dataset)
        assert model.root.label == 0

    def test_min_samples_split_stops_growth(self, tree_toy_dataset):
        model = DecisionTreeModel({'min_samples_split': 5})
        model.train(tree_toy_dataset)
        assert isinstance(model.root, Leaf)
        assert model.root.n_samples == 4

    def test_pure_partition_is_leaf(self):
        dataset = Dataset(as_records([[1], [2], [3]], [1, 1, 1]))
        model = DecisionTreeModel()
        model.train(dataset)
        assert model.root == Leaf(label=1, n_samples=3)

    def test_constant_features_emit_leaf(self):
        dataset = Dataset(as_records([[5, 2], [5, 2], [5, 2]], [0, 1, 1]))
        model = DecisionTreeModel()
        model.train(dataset)
        assert model.root == Leaf(label=1, n_samples=3)

    def test_depth_is_bounded(self, synthetic_dataset):
        for max_depth in (1, 2, 3, 5):
            model = DecisionTreeModel({'max_depth': max_depth})
            model.train(synthetic_dataset)
            assert model.depth() <= max_depth
            assert {model.predict(r).label for r in synthetic_dataset} <= {0, 1}

    def test_every_prediction_reaches_exactly_one_leaf(self, synthetic_dataset):
        model = DecisionTreeModel({'max_depth': 6})
        model.train(synthetic_dataset)
        for record in synthetic_dataset:
            leaf = model.leaf_for(record)
            assert isinstance(leaf, Leaf)

    def test_children_are_not_shared(self, synthetic_dataset):
        model = DecisionTreeModel()
        model.train(synthetic_dataset)
        children = [i for node in model.nodes_ if isinstance(node, Internal) for i in (node.left, node.right)]
        assert len(children) == len(set(children))
        assert 0 not in children
        # every node except the root is somebody's child
        assert len(children) == len(model.nodes_) - 1

    def test_deep_tree_fits_training_data(self, synthetic_dataset):
        model = DecisionTreeModel({'max_depth': 50, 'min_samples_split': 2})
        model.train(synthetic_dataset)
        predictions = np.array([p.label for p in model.predict_dataset(synthetic_dataset)])
        np.testing.assert_array_equal(predictions, synthetic_dataset.labels)

    def test_leaf_counts_cover_training_set(self, synthetic_dataset):
        model = DecisionTreeModel({'max_depth': 4})
        model.train(synthetic_dataset)
        leaves = [node for node in model.nodes_ if isinstance(node, Leaf)]
        assert len(leaves) == model.n_leaves()
        assert sum(leaf.n_samples for leaf in leaves) == len(synthetic_dataset)

    def test_export_text(self, tree_toy_dataset):
        model = DecisionTreeModel({'max_depth': 1})
        model.train(tree_toy_dataset)
        text = model.export_text(feature_names=['chol'])
        assert text.splitlines()[0].startswith('chol <= 5.0000')
        assert 'class: 0 (n=2)' in text
        assert 'class: 1 (n=2)' in text

    @pytest.mark.parametrize("config", [
        {'max_depth': -1},
        {'min_samples_split': 0},
        {'impurity_measure': 'variance'},
    ])
    def test_invalid_hyperparameters(self, config):
        with pytest.raises(InvalidHyperparameter):
            DecisionTreeModel(config)
