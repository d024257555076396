"""
Permutation Importance

Model-agnostic permutation feature importance for any model that can
predict from a table.

This package provides:
- PermutationImportanceEstimator: repeated random-shuffle importance with
  optional row subsampling and threaded evaluation
- EstimatorAdapter / FunctionAdapter: the predict(dataset) capability for
  scikit-learn style estimators and plain prediction closures
- Named metrics with a direction (error metrics vs. scores)
"""

from .adapters import EstimatorAdapter, FunctionAdapter, ModelAdapter, as_predictor
from .estimator import PermutationImportanceEstimator, compute_permutation_importance
from .exceptions import (
    InvalidInput,
    MetricComputationError,
    ModelInvocationError,
    PermutationImportanceError
)
from .metrics import Metric, available_metrics, get_metric
from .result import FeatureImportance, ImportanceResult
from .utils import (
    normalize_importances,
    standard_error,
    compare_with_sklearn
)

__version__ = "1.0.0"

__all__ = [
    "PermutationImportanceEstimator",
    "compute_permutation_importance",
    "ImportanceResult",
    "FeatureImportance",
    "ModelAdapter",
    "EstimatorAdapter",
    "FunctionAdapter",
    "as_predictor",
    "Metric",
    "get_metric",
    "available_metrics",
    "PermutationImportanceError",
    "InvalidInput",
    "ModelInvocationError",
    "MetricComputationError",
    "normalize_importances",
    "standard_error",
    "compare_with_sklearn"
]
