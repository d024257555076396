"""
Shared fixtures for the permutation importance test suite.

Models are small FunctionAdapter closures or quickly fitted scikit-learn
estimators so every test runs in well under a second.
"""

import numpy as np
import pandas as pd
import pytest
from sklearn.linear_model import LinearRegression

from permutation_importance import EstimatorAdapter, FunctionAdapter


class FixedPermutation:
    """Stand-in random source returning a fixed permutation and the first rows."""

    def __init__(self, order):
        self.order = np.asarray(order)

    def permutation(self, n):
        assert n == len(self.order)
        return self.order.copy()

    def choice(self, n, size, replace=False):
        return np.arange(size)


@pytest.fixture
def four_rows():
    """x = y = [1, 2, 3, 4]."""
    return pd.DataFrame({'x': [1.0, 2.0, 3.0, 4.0], 'y': [1.0, 2.0, 3.0, 4.0]})


@pytest.fixture
def identity_on_x():
    """Predicts y = x, ignoring every other column."""
    return FunctionAdapter(lambda frame: frame['x'].to_numpy())


@pytest.fixture
def linear_data():
    """y = 3*x + 1*z + small noise; 'noise' is unused by the generating process."""
    rng = np.random.RandomState(0)
    n = 200
    x = rng.randn(n)
    z = rng.randn(n)
    noise = rng.randn(n)
    y = 3 * x + z + 0.1 * rng.randn(n)
    return pd.DataFrame({'x': x, 'z': z, 'noise': noise, 'y': y})


@pytest.fixture
def linear_model(linear_data):
    """Exact linear predictor 3*x + z (ignores 'noise')."""
    return FunctionAdapter(lambda frame: 3 * frame['x'].to_numpy() + frame['z'].to_numpy())


@pytest.fixture
def fitted_regression(linear_data):
    """LinearRegression fitted on linear_data, wrapped in an EstimatorAdapter."""
    model = LinearRegression().fit(linear_data.drop(columns='y'), linear_data['y'])
    return EstimatorAdapter(model, response='predict')


@pytest.fixture
def fixed_permutation():
    return FixedPermutation
