"""
Model-agnostic permutation feature importance.

For each feature, the estimator shuffles that feature's values across rows,
re-scores the model and records how much worse it got. Repeating the shuffle
over several trials gives a spread as well as a mean, and features are ranked
by mean degradation.

The model and the metric are injected: the estimator only calls
``model.predict(frame)`` and ``metric(actual, predicted)``.
"""

import numbers
import os
import threading
import warnings
from collections import namedtuple
from collections.abc import Mapping, Sequence
from concurrent.futures import ThreadPoolExecutor
from contextlib import nullcontext

import numpy as np
import pandas as pd
from typing import Callable, List, Optional, Tuple, Union

from .exceptions import InvalidInput, MetricComputationError, ModelInvocationError
from .metrics import Metric, get_metric
from .result import FeatureImportance, ImportanceResult


# One (feature, trial) evaluation. source is an int seed for a private
# generator, or the caller's own random source when it cannot be seeded
_Task = namedtuple('_Task', ['feature', 'trial', 'source'])

_MAX_SEED = np.iinfo(np.int64).max


def _check_random_state(random_state):
    """Turn a seed into a numpy Generator; pass generator objects through."""
    if random_state is None or isinstance(random_state, numbers.Integral):
        return np.random.default_rng(random_state)
    if hasattr(random_state, 'permutation') and hasattr(random_state, 'choice'):
        return random_state
    raise InvalidInput(
        f"random_state must be None, an int, or a generator with permutation() "
        f"and choice(), got {type(random_state).__name__}"
    )


def _draw_seeds(rng, n: int) -> Optional[List[int]]:
    """n int seeds from a numpy Generator or RandomState; None for other sources."""
    if isinstance(rng, np.random.Generator):
        return rng.integers(_MAX_SEED, size=n, dtype=np.int64).tolist()
    if isinstance(rng, np.random.RandomState):
        return rng.randint(_MAX_SEED, size=n, dtype=np.int64).tolist()
    return None


def _as_frame(dataset) -> pd.DataFrame:
    if isinstance(dataset, pd.DataFrame):
        return dataset
    if isinstance(dataset, Mapping) or (
        isinstance(dataset, Sequence) and not isinstance(dataset, (str, bytes))
    ):
        try:
            return pd.DataFrame(dataset)
        except (ValueError, TypeError) as exc:
            raise InvalidInput(f"Cannot build a table from dataset: {exc}") from exc
    raise InvalidInput(
        f"dataset must be a DataFrame, a mapping of columns, or a sequence of rows, "
        f"got {type(dataset).__name__}"
    )


class PermutationImportanceEstimator:
    """
    Permutation feature importance over repeated random shuffles.

    Parameters
    ----------
    metric : str, Metric or callable, default='rmse'
        Scoring function ``metric(actual, predicted)``. Names are resolved
        with :func:`permutation_importance.metrics.get_metric`.

    n_trials : int, default=5
        Number of independent shuffles per feature. Must be >= 1.

    sample_fraction : float, default=1.0
        Fraction of rows, in (0, 1], drawn for each trial. Rows are drawn
        without replacement, independently for every (feature, trial) pair.
        Below 1.0 the baseline is re-scored on each draw so that baseline and
        permuted scores always come from the same rows.

    random_state : int, generator or None, default=None
        Seed or ``numpy.random.Generator`` / ``RandomState``. An int gives
        the same result on every call; a generator advances between calls.

    n_jobs : int or None, default=None
        Worker threads for the (feature, trial) evaluations. None or 1 runs
        serially, -1 uses all CPUs. Results do not depend on n_jobs. A
        random_state that is not a numpy generator is drawn from in task
        order, so it always runs serially.

    greater_is_better : bool or None, default=None
        Direction of ``metric``. None keeps the registered direction for
        named metrics and means False (error metric) for plain callables.

    verbose : int, default=0
        1 prints a summary line per call, 2 also one line per feature.

    Attributes
    ----------
    importances_ : ImportanceResult or None
        Result of the last call to compute()

    Examples
    --------
    >>> from sklearn.ensemble import GradientBoostingRegressor
    >>> from permutation_importance import EstimatorAdapter
    >>> model = GradientBoostingRegressor().fit(train.drop(columns='y'), train['y'])
    >>> pie = PermutationImportanceEstimator(metric='rmse', n_trials=10, random_state=0)
    >>> result = pie.compute(test, EstimatorAdapter(model), target='y')
    >>> result.top(3)
    [('x3', 2.41), ('x0', 1.12), ('x1', 0.87)]
    """

    def __init__(
        self,
        metric: Union[str, Metric, Callable] = 'rmse',
        n_trials: int = 5,
        sample_fraction: float = 1.0,
        random_state=None,
        n_jobs: Optional[int] = None,
        greater_is_better: Optional[bool] = None,
        verbose: int = 0
    ):
        if isinstance(n_trials, bool) or not isinstance(n_trials, numbers.Integral) or n_trials < 1:
            raise InvalidInput(f"n_trials must be an integer >= 1, got {n_trials!r}")
        if isinstance(sample_fraction, bool) or not isinstance(sample_fraction, numbers.Real):
            raise InvalidInput(f"sample_fraction must be a number in (0, 1], got {sample_fraction!r}")
        if not 0 < sample_fraction <= 1:
            raise InvalidInput(f"sample_fraction must be in (0, 1], got {sample_fraction}")
        if n_jobs is not None and (
            not isinstance(n_jobs, numbers.Integral) or (n_jobs < 1 and n_jobs != -1)
        ):
            raise InvalidInput(f"n_jobs must be None, -1, or a positive integer, got {n_jobs!r}")

        self.metric = get_metric(metric, greater_is_better)
        self.n_trials = int(n_trials)
        self.sample_fraction = float(sample_fraction)
        self.random_state = random_state
        self.n_jobs = n_jobs
        self.verbose = verbose

        # Set during compute()
        self.importances_ = None

    def _validate(self, dataset, model, target, features) -> Tuple[pd.DataFrame, List]:
        frame = _as_frame(dataset)
        if frame.shape[0] == 0:
            raise InvalidInput("dataset is empty")
        if target not in frame.columns:
            raise InvalidInput(f"target column '{target}' not found in dataset")

        if features is None:
            features = [c for c in frame.columns if c != target]
        else:
            if isinstance(features, str):
                raise InvalidInput("features must be a sequence of column names, not a string")
            features = list(features)
            missing = [f for f in features if f not in frame.columns]
            if missing:
                raise InvalidInput(f"features not found in dataset: {missing}")
            if target in features:
                raise InvalidInput(f"target column '{target}' cannot be permuted as a feature")
            if len(set(features)) != len(features):
                raise InvalidInput(f"duplicate features requested: {features}")

        if not callable(getattr(model, 'predict', None)):
            raise InvalidInput(
                f"model must expose predict(dataset); wrap {type(model).__name__} "
                f"in an EstimatorAdapter or FunctionAdapter"
            )

        return frame, features

    def _subsample_size(self, n_rows: int) -> int:
        return max(1, int(round(self.sample_fraction * n_rows)))

    def _plan_tasks(self, rng, features: List) -> List[_Task]:
        """
        Give every (feature, trial) pair its own random source.

        Numpy generators hand each task an int seed, drawn in feature-major,
        trial-minor order in the calling thread. Rows and permutations are
        drawn from that seed when the task runs, so the plan holds no arrays
        and the result does not depend on n_jobs. Any other random source is
        shared by every task and drawn from in task order.
        """
        pairs = [(feature, trial) for feature in features for trial in range(self.n_trials)]
        seeds = _draw_seeds(rng, len(pairs))
        if seeds is None:
            return [_Task(feature, trial, rng) for feature, trial in pairs]
        return [_Task(feature, trial, seed) for (feature, trial), seed in zip(pairs, seeds)]

    def _draw(self, source, n_rows: int) -> Tuple[Optional[np.ndarray], np.ndarray]:
        """Subsample rows (None for the full dataset) and a permutation of them."""
        rng = np.random.default_rng(source) if isinstance(source, int) else source
        size = self._subsample_size(n_rows)
        rows = None
        if size < n_rows:
            rows = np.asarray(rng.choice(n_rows, size=size, replace=False))
        return rows, np.asarray(rng.permutation(size))

    def _predict(self, model, X: pd.DataFrame, lock) -> np.ndarray:
        try:
            with lock:
                out = model.predict(X)
            out = np.asarray(out)
        except Exception as exc:
            raise ModelInvocationError(f"model.predict failed: {exc}") from exc

        # One value per row, or one row of class scores per row (predict_proba)
        if out.ndim == 0 or out.ndim > 2 or len(out) != len(X):
            if out.ndim == 0:
                got = 'a scalar'
            elif out.ndim > 2:
                got = f"an array of shape {out.shape}"
            else:
                got = f"{len(out)} predictions"
            raise ModelInvocationError(f"model.predict returned {got} for {len(X)} rows")
        return out

    def _score(self, actual: np.ndarray, predicted: np.ndarray) -> float:
        try:
            value = float(self.metric(actual, predicted))
        except Exception as exc:
            raise MetricComputationError(f"metric '{self.metric.name}' failed: {exc}") from exc

        if not np.isfinite(value):
            raise MetricComputationError(f"metric '{self.metric.name}' returned {value}")
        return value

    def _evaluate(
        self,
        task: _Task,
        model,
        X: pd.DataFrame,
        y: np.ndarray,
        baseline_score: float,
        lock
    ) -> Tuple[float, float]:
        """Importance sample and baseline for one (feature, trial) pair."""
        rows, permutation = self._draw(task.source, len(X))
        if rows is None:
            X_sub, y_sub, baseline = X, y, baseline_score
        else:
            X_sub = X.iloc[rows].reset_index(drop=True)
            y_sub = y[rows]
            baseline = self._score(y_sub, self._predict(model, X_sub, lock))

        # Shuffle one column on a copy; the index stays 0..m-1 so assignment
        # lines up row by row and keeps the column dtype (e.g. categorical)
        X_perm = X_sub.copy()
        X_perm[task.feature] = X_sub[task.feature].iloc[permutation].reset_index(drop=True)

        permuted = self._score(y_sub, self._predict(model, X_perm, lock))
        return self.metric.degradation(baseline, permuted), baseline

    def _n_workers(self, n_tasks: int) -> int:
        if self.n_jobs is None:
            return 1
        n_jobs = (os.cpu_count() or 1) if self.n_jobs == -1 else self.n_jobs
        return max(1, min(n_jobs, n_tasks))

    def _run(self, tasks: List[_Task], model, X, y, baseline_score) -> List[Tuple[float, float]]:
        n_workers = self._n_workers(len(tasks))
        shared_source = bool(tasks) and not isinstance(tasks[0].source, int)
        if n_workers == 1 or shared_source:
            lock = nullcontext()
            return [self._evaluate(t, model, X, y, baseline_score, lock) for t in tasks]

        lock = nullcontext() if getattr(model, 'thread_safe', True) else threading.Lock()
        with ThreadPoolExecutor(max_workers=n_workers) as executor:
            futures = [
                executor.submit(self._evaluate, t, model, X, y, baseline_score, lock)
                for t in tasks
            ]
            try:
                return [f.result() for f in futures]
            except BaseException:
                for f in futures:
                    f.cancel()
                raise

    def compute(
        self,
        dataset,
        model,
        target: str,
        features: Optional[List[str]] = None
    ) -> ImportanceResult:
        """
        Compute permutation importance for each feature.

        Parameters
        ----------
        dataset : pd.DataFrame, mapping of columns, or sequence of row mappings
            Evaluation data including the target column. Never modified.
        model : object
            Prediction capability exposing ``predict(frame)``, typically an
            EstimatorAdapter or FunctionAdapter. ``frame`` holds every column
            except the target. The output is one value per row, or a 2-D
            array of class scores for metrics that take probabilities. If ``model.thread_safe`` is False, predict()
            calls are serialised when n_jobs > 1.
        target : str
            Name of the response column
        features : list of str, optional
            Columns to permute. Defaults to every column except the target.
            An empty list gives an empty ranking.

        Returns
        -------
        result : ImportanceResult
            Features ranked by descending mean importance, ties broken by name

        Raises
        ------
        InvalidInput
            Empty dataset, missing target or feature, target listed as a
            feature, duplicate features, or a model without predict()
        ModelInvocationError
            predict() raised, returned the wrong number of predictions, or
            returned an array with more than two dimensions
        MetricComputationError
            The metric raised or returned a non-finite value
        """
        frame, features = self._validate(dataset, model, target, features)
        rng = _check_random_state(self.random_state)

        X = frame.drop(columns=[target]).reset_index(drop=True)
        y = frame[target].to_numpy()
        n_rows = len(X)

        size = self._subsample_size(n_rows)
        if size < 2 and features:
            warnings.warn(
                f"Each trial uses {size} row; permuting a single row leaves it "
                f"unchanged, so every importance will be 0",
                UserWarning
            )

        # Full-data baseline, computed once and shared by every feature
        no_lock = nullcontext()
        baseline_score = self._score(y, self._predict(model, X, no_lock))

        if self.verbose:
            print(f"Permutation importance: {len(features)} features x {self.n_trials} trials "
                  f"on {size}/{n_rows} rows, {self.metric.name} baseline = {baseline_score:.6g}")

        tasks = self._plan_tasks(rng, features)
        outcomes = self._run(tasks, model, X, y, baseline_score)

        subsampled = size < n_rows
        samples = {f: np.empty(self.n_trials) for f in features}
        baselines = {f: np.empty(self.n_trials) for f in features}
        for task, (importance, baseline) in zip(tasks, outcomes):
            samples[task.feature][task.trial] = importance
            baselines[task.feature][task.trial] = baseline

        ranked = sorted(
            (
                FeatureImportance(f, samples[f], baselines[f] if subsampled else None)
                for f in features
            ),
            key=lambda fi: (-fi.mean, str(fi.feature))
        )

        if self.verbose > 1:
            for rank, fi in enumerate(ranked, 1):
                print(f"  [{rank}/{len(ranked)}] {fi.feature}: "
                      f"{fi.mean:.6g} ± {fi.std:.6g} (stderr {fi.stderr:.3g})")

        result = ImportanceResult(
            features=tuple(ranked),
            baseline_score=baseline_score,
            metric=self.metric.name,
            greater_is_better=self.metric.greater_is_better,
            n_trials=self.n_trials,
            sample_fraction=self.sample_fraction,
            n_rows=n_rows
        )
        self.importances_ = result
        return result

    def get_top_features(self, n: int = 5) -> list:
        """
        Get names and mean importances of the n most important features.

        Returns
        -------
        top_features : list of tuple
            (feature, mean importance) pairs, most important first
        """
        if self.importances_ is None:
            raise ValueError("Call compute() before accessing importances")
        return self.importances_.top(n)

    def __repr__(self) -> str:
        parts = [
            f"metric='{self.metric.name}'",
            f"n_trials={self.n_trials}",
            f"sample_fraction={self.sample_fraction}",
        ]
        if self.random_state is not None:
            parts.append(f"random_state={self.random_state!r}")
        if self.n_jobs is not None:
            parts.append(f"n_jobs={self.n_jobs}")
        return f"PermutationImportanceEstimator({', '.join(parts)})"


def compute_permutation_importance(
    dataset,
    model,
    target: str,
    metric: Union[str, Metric, Callable] = 'rmse',
    features: Optional[List[str]] = None,
    n_trials: int = 5,
    sample_fraction: float = 1.0,
    random_state=None,
    n_jobs: Optional[int] = None,
    greater_is_better: Optional[bool] = None,
    verbose: int = 0
) -> ImportanceResult:
    """
    Functional form of :meth:`PermutationImportanceEstimator.compute`.

    See :class:`PermutationImportanceEstimator` for the parameters.
    """
    estimator = PermutationImportanceEstimator(
        metric=metric,
        n_trials=n_trials,
        sample_fraction=sample_fraction,
        random_state=random_state,
        n_jobs=n_jobs,
        greater_is_better=greater_is_better,
        verbose=verbose
    )
    return estimator.compute(dataset, model, target=target, features=features)
