"""
Scoring functions used to measure performance degradation.

A metric is a callable ``score(actual, predicted) -> float`` tagged with its
direction. Error metrics (MAE, RMSE, ...) are lower-is-better; scores such as
R² or accuracy are greater-is-better. The estimator uses the direction so that
an importance sample is always positive when permuting a feature hurts the
model.
"""

import numpy as np
from sklearn.metrics import (
    accuracy_score,
    brier_score_loss,
    log_loss,
    mean_absolute_error,
    mean_squared_error,
    r2_score,
    roc_auc_score,
)
from typing import Callable, Dict, List, Optional, Union

from .exceptions import InvalidInput


class Metric:
    """
    Named scoring function with a direction.

    Parameters
    ----------
    name : str
        Name reported in results
    score_func : callable
        ``score_func(actual, predicted) -> float``
    greater_is_better : bool, default=False
        False for error metrics (lower is better), True for scores

    Examples
    --------
    >>> from sklearn.metrics import median_absolute_error
    >>> medae = Metric('medae', median_absolute_error)
    >>> medae([1, 2, 3], [1, 2, 4])
    0.0
    """

    def __init__(
        self,
        name: str,
        score_func: Callable,
        greater_is_better: bool = False
    ):
        if not callable(score_func):
            raise InvalidInput(f"score_func must be callable, got {type(score_func).__name__}")
        self.name = name
        self.score_func = score_func
        self.greater_is_better = bool(greater_is_better)

    def __call__(self, actual, predicted) -> float:
        return self.score_func(actual, predicted)

    def degradation(self, baseline: float, permuted: float) -> float:
        """
        Importance sample for one permutation.

        Positive when the permuted score is worse than the baseline,
        whatever the metric's direction.
        """
        if self.greater_is_better:
            return baseline - permuted
        return permuted - baseline

    def __repr__(self) -> str:
        return f"Metric(name='{self.name}', greater_is_better={self.greater_is_better})"


def _positive_column(y_pred) -> np.ndarray:
    # Binary predict_proba output: keep the positive class
    y_pred = np.asarray(y_pred)
    if y_pred.ndim == 2 and y_pred.shape[1] == 2:
        return y_pred[:, 1]
    return y_pred


def compute_rmse(y_true, y_pred) -> float:
    """Root Mean Squared Error."""
    return float(np.sqrt(mean_squared_error(y_true, y_pred)))


def compute_brier_score(y_true, y_pred) -> float:
    """Brier score (MSE on probabilities, lower is better)."""
    return brier_score_loss(y_true, _positive_column(y_pred))


def compute_roc_auc(y_true, y_pred) -> float:
    """ROC Area Under Curve on positive-class scores."""
    return roc_auc_score(y_true, _positive_column(y_pred))


_REGISTRY: Dict[str, Metric] = {
    'mae': Metric('mae', mean_absolute_error),
    'mse': Metric('mse', mean_squared_error),
    'rmse': Metric('rmse', compute_rmse),
    'r2': Metric('r2', r2_score, greater_is_better=True),
    'accuracy': Metric('accuracy', accuracy_score, greater_is_better=True),
    'roc_auc': Metric('roc_auc', compute_roc_auc, greater_is_better=True),
    'brier': Metric('brier', compute_brier_score),
    'log_loss': Metric('log_loss', log_loss),
}


def available_metrics() -> List[str]:
    """Names accepted by :func:`get_metric`."""
    return sorted(_REGISTRY)


def get_metric(
    metric: Union[str, Metric, Callable],
    greater_is_better: Optional[bool] = None
) -> Metric:
    """
    Resolve a metric from a name, Metric or callable.

    Parameters
    ----------
    metric : str, Metric or callable
        Registered name (see :func:`available_metrics`), a Metric instance,
        or a plain ``score(actual, predicted)`` function
    greater_is_better : bool or None, default=None
        Direction for plain callables (None means False). For names and
        Metric instances, overrides the registered direction when given.

    Returns
    -------
    metric : Metric

    Raises
    ------
    InvalidInput
        If the name is unknown or the object is not callable
    """
    if isinstance(metric, str):
        key = metric.lower()
        if key not in _REGISTRY:
            raise InvalidInput(
                f"Unknown metric '{metric}'. Available: {', '.join(available_metrics())}"
            )
        resolved = _REGISTRY[key]
    elif isinstance(metric, Metric):
        resolved = metric
    elif callable(metric):
        name = getattr(metric, '__name__', type(metric).__name__)
        return Metric(name, metric, greater_is_better=bool(greater_is_better))
    else:
        raise InvalidInput(
            f"metric must be a name, a Metric or a callable, got {type(metric).__name__}"
        )

    if greater_is_better is not None and greater_is_better != resolved.greater_is_better:
        return Metric(resolved.name, resolved.score_func, greater_is_better=greater_is_better)
    return resolved
