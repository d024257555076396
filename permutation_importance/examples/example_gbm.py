"""
Example: Permutation importance for boosted and stacked models

Trains a gradient boosting machine and a stacked ensemble with scikit-learn
and ranks their features with PermutationImportanceEstimator. The models are
reached only through adapters, so the same estimator code serves both.
"""

import numpy as np
import pandas as pd
from sklearn.datasets import make_classification, make_friedman1
from sklearn.ensemble import (
    GradientBoostingClassifier,
    GradientBoostingRegressor,
    RandomForestRegressor,
    StackingRegressor,
)
from sklearn.linear_model import RidgeCV
from sklearn.model_selection import train_test_split

from permutation_importance import (
    EstimatorAdapter,
    FunctionAdapter,
    PermutationImportanceEstimator,
)


def _frame(X: np.ndarray, y: np.ndarray, target: str = 'y') -> pd.DataFrame:
    data = pd.DataFrame(X, columns=[f"x{j}" for j in range(X.shape[1])])
    data[target] = y
    return data


def _print_ranking(result, n: int = 10):
    print(f"\nBaseline {result.metric}: {result.baseline_score:.4f}")
    print(f"{'Rank':<6} {'Feature':<10} {'Mean':>10} {'Std':>10}")
    print("-" * 38)
    for rank, fi in enumerate(result.features[:n], 1):
        print(f"{rank:<6} {fi.feature:<10} {fi.mean:>10.4f} {fi.std:>10.4f}")


def example_gbm_regression():
    """GBM on the Friedman #1 problem: x0-x4 matter, x5-x9 are noise."""
    print("=" * 60)
    print("Example 1: Gradient Boosting Regressor")
    print("=" * 60)

    X, y = make_friedman1(n_samples=1000, n_features=10, noise=1.0, random_state=42)
    train, test = train_test_split(_frame(X, y), test_size=0.3, random_state=42)

    print("\nTraining Gradient Boosting Regressor...")
    model = GradientBoostingRegressor(n_estimators=200, max_depth=3, random_state=42)
    model.fit(train.drop(columns='y'), train['y'])
    print(f"Test R²: {model.score(test.drop(columns='y'), test['y']):.4f}")

    estimator = PermutationImportanceEstimator(metric='rmse', n_trials=10, random_state=42)
    result = estimator.compute(test, EstimatorAdapter(model), target='y')
    _print_ranking(result)


def example_stacked_ensemble():
    """Stacked ensemble scored on 50% row subsamples, evaluated in parallel."""
    print("\n\n")
    print("=" * 60)
    print("Example 2: Stacked Ensemble")
    print("=" * 60)

    X, y = make_friedman1(n_samples=1000, n_features=10, noise=1.0, random_state=7)
    train, test = train_test_split(_frame(X, y), test_size=0.3, random_state=7)

    print("\nTraining stacked ensemble (GBM + random forest -> ridge)...")
    model = StackingRegressor(
        estimators=[
            ('gbm', GradientBoostingRegressor(random_state=7)),
            ('rf', RandomForestRegressor(n_estimators=100, random_state=7)),
        ],
        final_estimator=RidgeCV()
    )
    model.fit(train.drop(columns='y'), train['y'])
    print(f"Test R²: {model.score(test.drop(columns='y'), test['y']):.4f}")

    estimator = PermutationImportanceEstimator(
        metric='mae',
        n_trials=10,
        sample_fraction=0.5,
        random_state=7,
        n_jobs=-1,
        verbose=1
    )
    result = estimator.compute(test, EstimatorAdapter(model), target='y')
    _print_ranking(result)


def example_gbm_classification():
    """GBM classifier scored on predicted probabilities with a custom closure."""
    print("\n\n")
    print("=" * 60)
    print("Example 3: Gradient Boosting Classifier")
    print("=" * 60)

    X, y = make_classification(
        n_samples=1000,
        n_features=8,
        n_informative=4,
        n_redundant=0,
        random_state=42
    )
    train, test = train_test_split(_frame(X, y), test_size=0.3, random_state=42)

    print("\nTraining Gradient Boosting Classifier...")
    model = GradientBoostingClassifier(random_state=42)
    model.fit(train.drop(columns='y'), train['y'])
    print(f"Test Accuracy: {model.score(test.drop(columns='y'), test['y']):.4f}")

    # A closure works as well as an estimator; the adapter says how to call it
    def predict_positive(frame):
        return model.predict_proba(frame)[:, 1]

    for metric in ['brier', 'roc_auc']:
        estimator = PermutationImportanceEstimator(metric=metric, n_trials=5, random_state=42)
        result = estimator.compute(test, FunctionAdapter(predict_positive), target='y')
        _print_ranking(result)


if __name__ == "__main__":
    example_gbm_regression()
    example_stacked_ensemble()
    example_gbm_classification()

    print("\n\n" + "=" * 60)
    print("All examples completed successfully!")
    print("=" * 60)
