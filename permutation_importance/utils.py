"""
Utility functions for permutation importance.

This module provides helper functions for:
- Normalising importance scores and their standard errors
- The Friedman benchmark function and its ground-truth importances
- Comparison with scikit-learn's permutation_importance
"""

import numpy as np
import pandas as pd
from scipy.stats import spearmanr
from typing import Sequence
import time


def normalize_importances(scores: Sequence[float]) -> np.ndarray:
    """
    Clip negative importances to zero and scale to sum to 1.

    Negative permutation importances are sampling noise (the shuffled
    feature happened to help), so they count as zero. When every score is
    zero the result is uniform.

    Parameters
    ----------
    scores : sequence of float
        Raw importance scores

    Returns
    -------
    normalized : np.ndarray
        Non-negative scores summing to 1

    Examples
    --------
    >>> normalize_importances([2.0, 1.0, -0.5, 1.0])
    array([0.5 , 0.25, 0.  , 0.25])
    """
    scores = np.maximum(np.asarray(scores, dtype=float), 0)
    if len(scores) == 0:
        return scores
    if scores.sum() > 0:
        return scores / scores.sum()
    return np.ones(len(scores)) / len(scores)


def standard_error(samples: Sequence[float]) -> float:
    """
    Standard error of the mean, using the sample standard deviation (ddof=1).

    Returns 0.0 for fewer than two samples.
    """
    samples = np.asarray(samples, dtype=float)
    if len(samples) < 2:
        return 0.0
    return float(np.std(samples, ddof=1) / np.sqrt(len(samples)))


def friedman_function(X: np.ndarray) -> np.ndarray:
    """
    Compute the Friedman benchmark function.

    The function is: y = 10*sin(π*x1*x2) + 20*(x3 - 0.5)^2 + 10*x4 + 5*x5

    Only the first 5 features are used; remaining features are noise.

    Parameters
    ----------
    X : np.ndarray of shape (n_samples, n_features)
        Feature matrix with features in [0, 1], at least 5 columns

    Returns
    -------
    y : np.ndarray of shape (n_samples,)
        Target values

    References
    ----------
    Friedman, J. H. (1991). "Multivariate adaptive regression splines."
    The Annals of Statistics, 19(1), 1-67.
    """
    X = np.asarray(X)
    if X.ndim != 2 or X.shape[1] < 5:
        raise ValueError("X must be 2D with at least 5 features for Friedman function")

    x1, x2, x3, x4, x5 = X[:, 0], X[:, 1], X[:, 2], X[:, 3], X[:, 4]

    return (
        10 * np.sin(np.pi * x1 * x2) +
        20 * (x3 - 0.5) ** 2 +
        10 * x4 +
        5 * x5
    )


def compute_friedman_ground_truth(
    n_samples: int = 100000,
    p: int = 5,
    n_bins: int = 50,
    random_state: int = 42
) -> np.ndarray:
    """
    Ground-truth importance for the Friedman function via variance decomposition.

    For each feature j, estimate Var(E[y | x_j]) by binning x_j and taking the
    variance of the per-bin means (first-order Sobol index), then normalise.
    Features beyond the fifth contribute only binning noise and are set to 0.

    Parameters
    ----------
    n_samples : int, default=100000
        Number of Monte Carlo samples
    p : int, default=5
        Total number of features (first 5 are informative)
    n_bins : int, default=50
        Number of quantile bins per feature
    random_state : int, default=42
        Random seed for reproducibility

    Returns
    -------
    importance : np.ndarray of shape (p,)
        Normalised importance scores summing to 1

    References
    ----------
    Sobol, I. M. (2001). "Global sensitivity indices for nonlinear
    mathematical models and their Monte Carlo estimates"
    """
    if p < 5:
        raise ValueError("Friedman function requires at least 5 features")

    rng = np.random.RandomState(random_state)
    X = rng.uniform(0, 1, size=(n_samples, p))
    y = friedman_function(X)

    variances = np.zeros(p)
    bin_size = n_samples // n_bins

    for j in range(5):
        y_sorted = y[np.argsort(X[:, j])]

        conditional_means = []
        for b in range(n_bins):
            start = b * bin_size
            end = (b + 1) * bin_size if b < n_bins - 1 else n_samples
            conditional_means.append(np.mean(y_sorted[start:end]))

        variances[j] = np.var(conditional_means)

    return normalize_importances(variances)


def compare_with_sklearn(
    model,
    dataset: pd.DataFrame,
    target: str,
    n_repeats: int = 10,
    metric: str = 'rmse',
    random_state: int = 42
) -> dict:
    """
    Benchmark the estimator against sklearn's permutation_importance.

    Both methods use the full dataset and ``n_repeats`` shuffles per
    feature. Scores are normalised before comparison.

    Parameters
    ----------
    model : estimator
        Fitted scikit-learn estimator, trained on the non-target columns
        of ``dataset``
    dataset : pd.DataFrame
        Evaluation data including the target column
    target : str
        Name of the response column
    n_repeats : int, default=10
        Permutations per feature for both methods
    metric : str, default='rmse'
        Registered metric name (see permutation_importance.metrics)
    random_state : int, default=42
        Random seed for both methods

    Returns
    -------
    results : dict
        Dictionary containing:
        - 'features': feature names in column order
        - 'sklearn_scores': normalised sklearn importances
        - 'sklearn_time': sklearn runtime (seconds)
        - 'our_scores': normalised importances from this package
        - 'our_time': runtime of this package (seconds)
        - 'rank_correlation': Spearman correlation between the two
        - 'speedup': sklearn_time / our_time
    """
    from sklearn.inspection import permutation_importance
    from sklearn.metrics import make_scorer
    from .adapters import EstimatorAdapter
    from .estimator import PermutationImportanceEstimator
    from .metrics import get_metric

    resolved = get_metric(metric)
    X = dataset.drop(columns=[target])
    y = dataset[target].to_numpy()
    features = list(X.columns)

    # Sklearn baseline
    start = time.time()
    perm_imp = permutation_importance(
        model, X, y,
        n_repeats=n_repeats,
        scoring=make_scorer(resolved.score_func, greater_is_better=resolved.greater_is_better),
        random_state=random_state
    )
    sklearn_time = time.time() - start
    sklearn_scores = normalize_importances(perm_imp.importances_mean)

    # This package
    estimator = PermutationImportanceEstimator(
        metric=resolved,
        n_trials=n_repeats,
        random_state=random_state
    )
    start = time.time()
    result = estimator.compute(dataset, EstimatorAdapter(model, response='predict'), target=target)
    our_time = time.time() - start
    ours = result.normalized()
    our_scores = np.array([ours[f] for f in features])

    with np.errstate(divide='ignore', invalid='ignore'):
        corr, _ = spearmanr(sklearn_scores, our_scores)

    return {
        'features': features,
        'sklearn_scores': sklearn_scores,
        'sklearn_time': sklearn_time,
        'our_scores': our_scores,
        'our_time': our_time,
        'rank_correlation': float(corr),
        'speedup': sklearn_time / our_time if our_time > 0 else float('inf')
    }
