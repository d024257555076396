"""
Tests for the error taxonomy: InvalidInput, ModelInvocationError and
MetricComputationError, and the absence of partial results.
"""

import numpy as np
import pandas as pd
import pytest

from permutation_importance import (
    FunctionAdapter,
    InvalidInput,
    MetricComputationError,
    ModelInvocationError,
    PermutationImportanceError,
    PermutationImportanceEstimator,
    compute_permutation_importance,
)


class FailingAfter:
    """predict() capability that raises on the n-th call."""

    def __init__(self, n_ok):
        self.n_ok = n_ok
        self.calls = 0

    def predict(self, frame):
        self.calls += 1
        if self.calls > self.n_ok:
            raise RuntimeError("backend crashed")
        return frame['x'].to_numpy()


# ── InvalidInput ─────────────────────────────────────────────────────────────


class TestInvalidInput:
    def test_empty_dataset(self, identity_on_x):
        empty = pd.DataFrame({'x': [], 'y': []})
        with pytest.raises(InvalidInput, match="empty"):
            compute_permutation_importance(empty, identity_on_x, target='y')

    def test_missing_target(self, four_rows, identity_on_x):
        with pytest.raises(InvalidInput, match="target column 'label'"):
            compute_permutation_importance(four_rows, identity_on_x, target='label')

    def test_missing_feature(self, four_rows, identity_on_x):
        with pytest.raises(InvalidInput, match="not found"):
            compute_permutation_importance(four_rows, identity_on_x, target='y', features=['x', 'w'])

    def test_target_as_feature(self, four_rows, identity_on_x):
        with pytest.raises(InvalidInput, match="cannot be permuted"):
            compute_permutation_importance(four_rows, identity_on_x, target='y', features=['y'])

    def test_duplicate_features(self, four_rows, identity_on_x):
        with pytest.raises(InvalidInput, match="duplicate"):
            compute_permutation_importance(four_rows, identity_on_x, target='y', features=['x', 'x'])

    def test_features_as_string(self, four_rows, identity_on_x):
        with pytest.raises(InvalidInput, match="not a string"):
            compute_permutation_importance(four_rows, identity_on_x, target='y', features='x')

    @pytest.mark.parametrize("n_trials", [0, -1, 1.5, True, '3'])
    def test_bad_trials(self, n_trials):
        with pytest.raises(InvalidInput, match="n_trials"):
            PermutationImportanceEstimator(n_trials=n_trials)

    @pytest.mark.parametrize("fraction", [0, 0.0, -0.1, 1.01, 2, '0.5', None])
    def test_bad_sample_fraction(self, fraction):
        with pytest.raises(InvalidInput, match="sample_fraction"):
            PermutationImportanceEstimator(sample_fraction=fraction)

    @pytest.mark.parametrize("n_jobs", [0, -2, 1.5])
    def test_bad_n_jobs(self, n_jobs):
        with pytest.raises(InvalidInput, match="n_jobs"):
            PermutationImportanceEstimator(n_jobs=n_jobs)

    def test_unknown_metric(self):
        with pytest.raises(InvalidInput, match="Unknown metric"):
            PermutationImportanceEstimator(metric='f1_macro_weird')

    def test_bare_callable_model_rejected(self, four_rows):
        with pytest.raises(InvalidInput, match="FunctionAdapter"):
            compute_permutation_importance(four_rows, lambda f: f['x'], target='y')

    def test_unsupported_dataset_type(self, identity_on_x):
        with pytest.raises(InvalidInput, match="dataset must be"):
            compute_permutation_importance(42, identity_on_x, target='y')

    def test_ragged_columns(self, identity_on_x):
        with pytest.raises(InvalidInput, match="Cannot build a table"):
            compute_permutation_importance({'x': [1, 2], 'y': [1]}, identity_on_x, target='y')

    def test_bad_random_state(self, four_rows, identity_on_x):
        with pytest.raises(InvalidInput, match="random_state"):
            compute_permutation_importance(four_rows, identity_on_x, target='y', random_state='seed')

    def test_validation_happens_before_prediction(self, four_rows):
        model = FailingAfter(n_ok=0)
        with pytest.raises(InvalidInput):
            compute_permutation_importance(four_rows, model, target='y', features=['missing'])
        assert model.calls == 0

    def test_is_a_value_error(self):
        assert issubclass(InvalidInput, ValueError)
        assert issubclass(InvalidInput, PermutationImportanceError)


# ── ModelInvocationError ─────────────────────────────────────────────────────


class TestModelInvocationError:
    def test_predict_raises_on_baseline(self, four_rows):
        with pytest.raises(ModelInvocationError, match="backend crashed") as excinfo:
            compute_permutation_importance(four_rows, FailingAfter(n_ok=0), target='y')
        assert isinstance(excinfo.value.__cause__, RuntimeError)

    def test_predict_raises_mid_computation(self, linear_data):
        estimator = PermutationImportanceEstimator(n_trials=3, random_state=0)
        with pytest.raises(ModelInvocationError):
            estimator.compute(linear_data, FailingAfter(n_ok=4), target='y')
        # no partial result is kept
        assert estimator.importances_ is None

    def test_predict_raises_in_worker_thread(self, linear_data):
        with pytest.raises(ModelInvocationError):
            compute_permutation_importance(
                linear_data, FailingAfter(n_ok=4), target='y', n_trials=3, n_jobs=4, random_state=0
            )

    def test_wrong_number_of_predictions(self, four_rows):
        model = FunctionAdapter(lambda f: np.zeros(len(f) - 1))
        with pytest.raises(ModelInvocationError, match="3 predictions for 4 rows"):
            compute_permutation_importance(four_rows, model, target='y')

    def test_scalar_prediction(self, four_rows):
        model = FunctionAdapter(lambda f: 1.0)
        with pytest.raises(ModelInvocationError, match="scalar"):
            compute_permutation_importance(four_rows, model, target='y')

    def test_three_dimensional_prediction(self, four_rows):
        model = FunctionAdapter(lambda f: np.zeros((len(f), 2, 2)))
        with pytest.raises(ModelInvocationError, match=r"shape \(4, 2, 2\)"):
            compute_permutation_importance(four_rows, model, target='y')

    def test_two_column_probabilities_accepted(self):
        data = pd.DataFrame({'x': [0.1, 0.9, 0.2, 0.8], 'y': [0, 1, 0, 1]})
        model = FunctionAdapter(lambda f: np.column_stack([1 - f['x'], f['x']]))
        result = compute_permutation_importance(data, model, target='y', metric='brier', random_state=0)
        assert result.baseline_score == pytest.approx(0.025)

    def test_is_a_runtime_error(self):
        assert issubclass(ModelInvocationError, RuntimeError)
        assert issubclass(ModelInvocationError, PermutationImportanceError)


# ── MetricComputationError ──────────────────────────────────────────────────


class TestMetricComputationError:
    def test_metric_raises(self, four_rows, identity_on_x):
        def broken(actual, predicted):
            raise ZeroDivisionError("degenerate actual vector")

        with pytest.raises(MetricComputationError, match="degenerate") as excinfo:
            compute_permutation_importance(four_rows, identity_on_x, target='y', metric=broken)
        assert isinstance(excinfo.value.__cause__, ZeroDivisionError)

    def test_metric_returns_nan(self, four_rows, identity_on_x):
        with pytest.raises(MetricComputationError, match="nan"):
            compute_permutation_importance(
                four_rows, identity_on_x, target='y', metric=lambda a, p: float('nan')
            )

    def test_metric_returns_non_number(self, four_rows, identity_on_x):
        with pytest.raises(MetricComputationError):
            compute_permutation_importance(
                four_rows, identity_on_x, target='y', metric=lambda a, p: 'good'
            )

    def test_single_class_roc_auc(self, identity_on_x):
        data = pd.DataFrame({'x': [0.1, 0.4, 0.8], 'y': [1, 1, 1]})
        with pytest.raises(MetricComputationError, match="roc_auc"):
            compute_permutation_importance(data, identity_on_x, target='y', metric='roc_auc')
