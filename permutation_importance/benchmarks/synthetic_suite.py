"""
Synthetic Benchmark Suite for permutation importance.

Generates data with known ground-truth importance, fits a model, and checks
how well the estimator recovers the truth, alongside scikit-learn's
``permutation_importance`` as a reference.

Scenarios vary across:
- Sample sizes (n ∈ {200, 1000})
- Dimensionality (p ∈ {6, 12})
- Noise levels (σ_ε ∈ {0.1, 2})
- Response types (linear, nonlinear/Friedman)
- Task types (regression, classification)
- Model types (linear, gradient boosting)
"""

import numpy as np
import pandas as pd
import time
from scipy.stats import norm, spearmanr
from sklearn.ensemble import GradientBoostingClassifier, GradientBoostingRegressor
from sklearn.inspection import permutation_importance
from sklearn.linear_model import LinearRegression, LogisticRegression
from sklearn.model_selection import train_test_split
from typing import Dict, List, Tuple

from ..adapters import EstimatorAdapter
from ..estimator import PermutationImportanceEstimator
from ..utils import compute_friedman_ground_truth, friedman_function, normalize_importances


TARGET = 'y'

# (label, n_trials, sample_fraction) for the estimator variants under test
ESTIMATOR_VARIANTS = [
    ('full', 5, 1.0),
    ('subsample', 5, 0.5),
]
METHODS = [name for name, _, _ in ESTIMATOR_VARIANTS] + ['sklearn']


def _feature_names(p: int) -> List[str]:
    return [f"x{j}" for j in range(p)]


def _to_frame(X: np.ndarray, y: np.ndarray) -> pd.DataFrame:
    frame = pd.DataFrame(X, columns=_feature_names(X.shape[1]))
    frame[TARGET] = y
    return frame


def _block_covariance(p: int, n_informative: int, rho: float) -> np.ndarray:
    # Correlation rho within the informative block, rho/3 among noise features
    cov = np.zeros((p, p))
    cov[:n_informative, :n_informative] = rho
    cov[n_informative:, n_informative:] = rho / 3
    np.fill_diagonal(cov, 1.0)
    return cov


def generate_linear_data(
    n: int,
    p: int,
    sigma_epsilon: float = 1.0,
    rho: float = 0.0,
    random_state: int = 42
) -> Tuple[pd.DataFrame, pd.Series]:
    """
    Generate synthetic data with linear response.

    Creates data where y = X @ beta + noise, with optional feature correlation.

    Parameters
    ----------
    n : int
        Number of samples
    p : int
        Number of features
    sigma_epsilon : float, default=1.0
        Standard deviation of Gaussian noise
    rho : float, default=0.0
        Feature correlation strength within the informative block
    random_state : int, default=42
        Random seed

    Returns
    -------
    data : pd.DataFrame of shape (n, p + 1)
        Features x0..x{p-1} and target column 'y'
    true_importance : pd.Series of length p
        Ground-truth normalized importance (|beta_j| / sum|beta|)

    Notes
    -----
    The first half of the features is informative, the second half is noise
    with zero coefficients.
    """
    rng = np.random.RandomState(random_state)
    n_informative = p // 2

    if rho > 0:
        X = rng.multivariate_normal(np.zeros(p), _block_covariance(p, n_informative, rho), size=n)
    else:
        X = rng.randn(n, p)

    beta = np.zeros(p)
    beta[:n_informative] = rng.randn(n_informative)

    y = X @ beta + sigma_epsilon * rng.randn(n)

    true_importance = pd.Series(normalize_importances(np.abs(beta)), index=_feature_names(p))
    return _to_frame(X, y), true_importance


def generate_friedman_data(
    n: int,
    p: int,
    sigma_epsilon: float = 1.0,
    rho: float = 0.0,
    random_state: int = 42
) -> Tuple[pd.DataFrame, pd.Series]:
    """
    Generate synthetic data with nonlinear Friedman function response.

    Uses y = 10*sin(π*x1*x2) + 20*(x3-0.5)^2 + 10*x4 + 5*x5 + noise.

    Parameters
    ----------
    n : int
        Number of samples
    p : int
        Number of features (must be >= 5)
    sigma_epsilon : float, default=1.0
        Standard deviation of Gaussian noise added to response
    rho : float, default=0.0
        Feature correlation (Gaussian copula, same block structure as linear)
    random_state : int, default=42
        Random seed

    Returns
    -------
    data : pd.DataFrame of shape (n, p + 1)
        Uniform [0, 1] features x0..x{p-1} and target column 'y'
    true_importance : pd.Series of length p
        First-order Sobol indices of the five informative features, zero
        for the rest
    """
    if p < 5:
        raise ValueError("Friedman function requires at least 5 features")

    rng = np.random.RandomState(random_state)

    if rho > 0:
        X_gaussian = rng.multivariate_normal(np.zeros(p), _block_covariance(p, 5, rho), size=n)
        X = norm.cdf(X_gaussian)
    else:
        X = rng.uniform(0, 1, size=(n, p))

    y = friedman_function(X) + sigma_epsilon * rng.randn(n)

    true_importance = pd.Series(
        compute_friedman_ground_truth(p=p, random_state=random_state),
        index=_feature_names(p)
    )
    return _to_frame(X, y), true_importance


def create_scenario_grid() -> List[Dict]:
    """
    Create the full scenario grid.

    2 sample sizes × 2 dimensionalities × 2 noise levels × 2 response types
    × 2 task types × 2 model types = 64 scenarios.

    Returns
    -------
    scenarios : List[Dict]
        Scenario configurations with keys n, p, sigma_epsilon, rho,
        response_type, task_type, model_type, scenario_id
    """
    scenarios = []

    for n in [200, 1000]:
        for p in [6, 12]:
            for sigma in [0.1, 2.0]:
                for response in ['linear', 'friedman']:
                    for task in ['regression', 'classification']:
                        for model_type in ['linear', 'gbm']:
                            scenarios.append({
                                'n': n,
                                'p': p,
                                'sigma_epsilon': sigma,
                                'rho': 0.0,
                                'response_type': response,
                                'task_type': task,
                                'model_type': model_type,
                                'scenario_id': len(scenarios)
                            })

    return scenarios


def _build_model(task_type: str, model_type: str, random_state: int):
    if task_type == 'regression':
        if model_type == 'linear':
            return LinearRegression()
        return GradientBoostingRegressor(n_estimators=100, random_state=random_state)
    if model_type == 'linear':
        return LogisticRegression(max_iter=1000, random_state=random_state)
    return GradientBoostingClassifier(n_estimators=100, random_state=random_state)


def _compare_to_truth(
    true_importance: pd.Series,
    scores: pd.Series,
    time_ms: float
) -> Dict[str, float]:
    truth = true_importance.to_numpy()
    scores = scores.reindex(true_importance.index).to_numpy()

    with np.errstate(divide='ignore', invalid='ignore'):
        cor, _ = spearmanr(truth, scores)

    # Undefined when one side is constant
    if np.isnan(cor):
        cor = 1.0 if np.allclose(truth, scores) else 0.0

    noise = truth == 0
    return {
        'cor': float(cor),
        'max_diff': float(np.max(np.abs(truth - scores))),
        'noise_mass': float(scores[noise].sum()) if noise.any() else 0.0,
        'time': time_ms
    }


def run_single_scenario(
    scenario: Dict,
    n_repetitions: int = 10,
    random_state_base: int = 42,
    verbose: bool = False
) -> Dict:
    """
    Run a single scenario with multiple repetitions.

    For each repetition:
    1. Generate data and split 70/30 into train and test
    2. Fit the scenario's model on train
    3. Compute importance on test with each estimator variant and sklearn
    4. Compare normalized scores against ground truth

    Parameters
    ----------
    scenario : Dict
        Scenario configuration from create_scenario_grid()
    n_repetitions : int, default=10
        Number of independent repetitions
    random_state_base : int, default=42
        Base random seed (each repetition gets base + repetition_idx)
    verbose : bool, default=False
        If True, print progress

    Returns
    -------
    results : Dict
        'scenario' plus, for each method in METHODS, aggregated
        'cor_mean', 'cor_std', 'max_diff_mean', 'max_diff_std',
        'noise_mass_mean', 'noise_mass_std', 'time_mean', 'time_std'
        (times in milliseconds)
    """
    if verbose:
        print(f"Running scenario {scenario['scenario_id']}: n={scenario['n']}, p={scenario['p']}, "
              f"σ={scenario['sigma_epsilon']}, {scenario['response_type']}, "
              f"{scenario['task_type']}, {scenario['model_type']}")

    classification = scenario['task_type'] == 'classification'
    metric = 'brier' if classification else 'rmse'
    sklearn_scoring = 'neg_brier_score' if classification else 'neg_root_mean_squared_error'

    per_method = {method: [] for method in METHODS}

    for rep in range(n_repetitions):
        random_state = random_state_base + rep

        generate = generate_linear_data if scenario['response_type'] == 'linear' else generate_friedman_data
        data, true_importance = generate(
            n=scenario['n'],
            p=scenario['p'],
            sigma_epsilon=scenario['sigma_epsilon'],
            rho=scenario['rho'],
            random_state=random_state
        )

        # For classification, binarize at median
        if classification:
            data[TARGET] = (data[TARGET] > data[TARGET].median()).astype(int)

        train, test = train_test_split(data, test_size=0.3, random_state=random_state)
        X_train = train.drop(columns=[TARGET])

        model = _build_model(scenario['task_type'], scenario['model_type'], random_state)
        model.fit(X_train, train[TARGET])
        adapter = EstimatorAdapter(model, response='predict_proba' if classification else 'predict')

        for name, n_trials, fraction in ESTIMATOR_VARIANTS:
            estimator = PermutationImportanceEstimator(
                metric=metric,
                n_trials=n_trials,
                sample_fraction=fraction,
                random_state=random_state
            )
            start = time.time()
            result = estimator.compute(test, adapter, target=TARGET)
            elapsed = (time.time() - start) * 1000  # milliseconds

            scores = pd.Series(result.normalized())
            per_method[name].append(_compare_to_truth(true_importance, scores, elapsed))

        start = time.time()
        perm = permutation_importance(
            model, test.drop(columns=[TARGET]), test[TARGET],
            scoring=sklearn_scoring,
            n_repeats=ESTIMATOR_VARIANTS[0][1],
            random_state=random_state
        )
        elapsed = (time.time() - start) * 1000

        scores = pd.Series(normalize_importances(perm.importances_mean), index=X_train.columns)
        per_method['sklearn'].append(_compare_to_truth(true_importance, scores, elapsed))

    def aggregate(results_list):
        out = {}
        for key in ['cor', 'max_diff', 'noise_mass', 'time']:
            values = [r[key] for r in results_list]
            out[f'{key}_mean'] = float(np.mean(values))
            out[f'{key}_std'] = float(np.std(values))
        return out

    aggregated = {'scenario': scenario}
    for method in METHODS:
        aggregated[method] = aggregate(per_method[method])
    return aggregated


def aggregate_results(scenario_results: List[Dict]) -> Dict:
    """
    Aggregate results across multiple scenarios.

    Computes mean ± std across all scenarios for each method.

    Parameters
    ----------
    scenario_results : List[Dict]
        List of results from run_single_scenario()

    Returns
    -------
    summary : Dict
        For each method in METHODS, formatted 'ground_truth_cor',
        'max_score_diff', 'noise_mass' and 'time_ms' strings
    """
    summary = {}
    for method in METHODS:
        cors = [r[method]['cor_mean'] for r in scenario_results]
        max_diffs = [r[method]['max_diff_mean'] for r in scenario_results]
        noise = [r[method]['noise_mass_mean'] for r in scenario_results]
        times = [r[method]['time_mean'] for r in scenario_results]

        summary[method] = {
            'ground_truth_cor': f"{np.mean(cors):.3f} ± {np.std(cors):.3f}",
            'max_score_diff': f"{np.mean(max_diffs):.3f} ± {np.std(max_diffs):.3f}",
            'noise_mass': f"{np.mean(noise):.3f} ± {np.std(noise):.3f}",
            'time_ms': f"{np.mean(times):.1f} ± {np.std(times):.1f}"
        }

    return summary
