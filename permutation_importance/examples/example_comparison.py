"""
Example: Comparison with scikit-learn

Checks that PermutationImportanceEstimator and sklearn's
permutation_importance agree on feature rankings for the same model.
"""

import pandas as pd
from sklearn.datasets import make_regression
from sklearn.ensemble import GradientBoostingRegressor
from sklearn.model_selection import train_test_split

from permutation_importance.utils import compare_with_sklearn


def compare_regression(n_samples=1000, n_features=12):
    """Compare both implementations on a regression task."""
    print("=" * 70)
    print(f"Regression Comparison (n={n_samples}, p={n_features})")
    print("=" * 70)

    X, y = make_regression(
        n_samples=n_samples,
        n_features=n_features,
        n_informative=n_features // 2,
        noise=10.0,
        random_state=42
    )
    data = pd.DataFrame(X, columns=[f"x{j}" for j in range(n_features)])
    data['y'] = y
    train, test = train_test_split(data, test_size=0.3, random_state=42)

    print("\nTraining Gradient Boosting Regressor...")
    model = GradientBoostingRegressor(random_state=42)
    model.fit(train.drop(columns='y'), train['y'])

    results = compare_with_sklearn(model, test, target='y', n_repeats=10, metric='rmse')

    print(f"\n{'Feature':<10} {'sklearn':>10} {'ours':>10}")
    print("-" * 32)
    for name, theirs, ours in zip(results['features'], results['sklearn_scores'], results['our_scores']):
        print(f"{name:<10} {theirs:>10.4f} {ours:>10.4f}")

    print(f"\nRank correlation: {results['rank_correlation']:.4f}")
    print(f"sklearn time: {results['sklearn_time']:.3f}s, ours: {results['our_time']:.3f}s "
          f"(speedup {results['speedup']:.2f}x)")


if __name__ == "__main__":
    compare_regression()
