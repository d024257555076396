"""
Tests for permutation_importance.result: summaries, immutability and export.
"""

import dataclasses

import numpy as np
import pandas as pd
import pytest

from permutation_importance import FeatureImportance, ImportanceResult
from permutation_importance.utils import standard_error


def _result(*features):
    return ImportanceResult(
        features=tuple(features),
        baseline_score=0.25,
        metric='rmse',
        greater_is_better=False,
        n_trials=3,
        sample_fraction=1.0,
        n_rows=100
    )


class TestFeatureImportance:
    def test_summary_statistics(self):
        fi = FeatureImportance('x', [1.0, 2.0, 3.0])
        assert fi.mean == 2.0
        assert fi.std == pytest.approx(1.0)
        assert fi.stderr == pytest.approx(1.0 / np.sqrt(3))
        assert fi.n_trials == 3

    def test_single_trial_has_zero_spread(self):
        fi = FeatureImportance('x', [0.7])
        assert fi.std == 0.0
        assert fi.stderr == 0.0

    def test_samples_are_read_only(self):
        source = [1.0, 2.0]
        fi = FeatureImportance('x', source)
        with pytest.raises(ValueError):
            fi.samples[0] = 5.0
        source[0] = 9.0
        assert fi.samples[0] == 1.0

    def test_frozen(self):
        fi = FeatureImportance('x', [1.0])
        with pytest.raises(dataclasses.FrozenInstanceError):
            fi.mean = 3.0

    def test_equality(self):
        assert FeatureImportance('x', [1.0, 2.0]) == FeatureImportance('x', np.array([1.0, 2.0]))
        assert FeatureImportance('x', [1.0, 2.0]) != FeatureImportance('x', [1.0, 2.5])
        assert FeatureImportance('x', [1.0], [0.2]) != FeatureImportance('x', [1.0])

    def test_stderr_matches_utils(self):
        samples = [0.3, 1.1, 0.4, 0.9]
        assert FeatureImportance('x', samples).stderr == standard_error(samples)

    def test_hash_follows_equality(self):
        first = FeatureImportance('x', [1.0, 2.0], [0.5, 0.5])
        second = FeatureImportance('x', np.array([1.0, 2.0]), np.array([0.5, 0.5]))
        assert hash(first) == hash(second)
        assert len({first, second}) == 1


class TestImportanceResult:
    def test_ranking_and_lookup(self):
        result = _result(FeatureImportance('b', [2.0]), FeatureImportance('a', [1.0]))
        assert result.ranking == ['b', 'a']
        assert result['a'].mean == 1.0
        assert len(result) == 2
        assert [fi.feature for fi in result] == ['b', 'a']

    def test_missing_feature_lookup(self):
        with pytest.raises(KeyError):
            _result(FeatureImportance('a', [1.0]))['z']

    def test_top(self):
        result = _result(
            FeatureImportance('c', [3.0]),
            FeatureImportance('b', [2.0]),
            FeatureImportance('a', [1.0])
        )
        assert result.top(2) == [('c', 3.0), ('b', 2.0)]

    def test_mean_and_std_dicts(self):
        result = _result(FeatureImportance('a', [1.0, 3.0]))
        assert result.importances_mean == {'a': 2.0}
        assert result.importances_std['a'] == pytest.approx(np.sqrt(2))

    def test_normalized_clips_negatives(self):
        result = _result(
            FeatureImportance('a', [3.0]),
            FeatureImportance('b', [1.0]),
            FeatureImportance('c', [-0.5])
        )
        assert result.normalized() == pytest.approx({'a': 0.75, 'b': 0.25, 'c': 0.0})

    def test_normalized_empty(self):
        assert _result().normalized() == {}

    def test_to_frame(self):
        result = _result(FeatureImportance('b', [2.0, 4.0]), FeatureImportance('a', [1.0, 1.0]))
        frame = result.to_frame()
        assert list(frame.index) == ['b', 'a']
        assert frame.index.name == 'feature'
        assert list(frame.columns) == [
            'importance_mean', 'importance_std', 'importance_stderr', 'n_trials', 'rank'
        ]
        assert frame.loc['b', 'importance_mean'] == 3.0
        assert frame['rank'].tolist() == [1, 2]

    def test_to_frame_empty(self):
        assert _result().to_frame().empty

    def test_samples_frame(self):
        result = _result(FeatureImportance('a', [1.0, 2.0]), FeatureImportance('b', [0.0, 0.5]))
        expected = pd.DataFrame({'a': [1.0, 2.0], 'b': [0.0, 0.5]})
        pd.testing.assert_frame_equal(result.samples_frame(), expected)

    def test_hashable(self):
        first = _result(FeatureImportance('a', [1.0, 2.0]), FeatureImportance('b', [0.5]))
        second = _result(FeatureImportance('a', [1.0, 2.0]), FeatureImportance('b', [0.5]))
        assert hash(first) == hash(second)
        assert {first: 'cached'}[second] == 'cached'

    def test_repr(self):
        assert repr(_result()) == (
            "ImportanceResult(metric='rmse', baseline_score=0.25, n_features=0, "
            "n_trials=3, sample_fraction=1.0)"
        )
