"""
Immutable result objects returned by the permutation importance estimator.
"""

import numpy as np
import pandas as pd
from dataclasses import dataclass, field
from typing import Dict, Iterator, List, Optional, Tuple

from .utils import normalize_importances, standard_error


def _frozen(values) -> np.ndarray:
    arr = np.array(values, dtype=float)
    arr.setflags(write=False)
    return arr


@dataclass(frozen=True, eq=False)
class FeatureImportance:
    """
    Importance samples and summary for a single feature.

    Attributes
    ----------
    feature : str
        Feature (column) name
    samples : np.ndarray of shape (n_trials,)
        Performance degradation for each trial (read-only)
    baseline_scores : np.ndarray of shape (n_trials,) or None
        Baseline score of each subsample draw; None when the full
        dataset was used
    """

    feature: str
    samples: np.ndarray
    baseline_scores: Optional[np.ndarray] = None
    mean: float = field(init=False)
    std: float = field(init=False)
    stderr: float = field(init=False)

    def __post_init__(self):
        samples = _frozen(self.samples)
        object.__setattr__(self, 'samples', samples)
        if self.baseline_scores is not None:
            object.__setattr__(self, 'baseline_scores', _frozen(self.baseline_scores))

        n = len(samples)
        object.__setattr__(self, 'mean', float(np.mean(samples)) if n else float('nan'))
        object.__setattr__(self, 'std', float(np.std(samples, ddof=1)) if n > 1 else 0.0)
        object.__setattr__(self, 'stderr', standard_error(samples))

    @property
    def n_trials(self) -> int:
        return len(self.samples)

    def __eq__(self, other) -> bool:
        if not isinstance(other, FeatureImportance):
            return NotImplemented
        if (self.baseline_scores is None) != (other.baseline_scores is None):
            return False
        return (
            self.feature == other.feature
            and np.array_equal(self.samples, other.samples)
            and (self.baseline_scores is None
                 or np.array_equal(self.baseline_scores, other.baseline_scores))
        )

    def __hash__(self) -> int:
        # Arrays are read-only, so hashing their values is stable
        baselines = None if self.baseline_scores is None else tuple(self.baseline_scores.tolist())
        return hash((self.feature, tuple(self.samples.tolist()), baselines))


@dataclass(frozen=True)
class ImportanceResult:
    """
    Ranked permutation importances for one ``compute`` call.

    Features are ordered by descending mean importance, ties broken by
    feature name. Positive importance means permuting the feature made the
    model worse under ``metric``.

    Attributes
    ----------
    features : tuple of FeatureImportance
        Per-feature results in rank order
    baseline_score : float
        Metric on the full, unpermuted dataset
    metric : str
        Metric name
    greater_is_better : bool
        Direction of the metric
    n_trials : int
        Trials per feature
    sample_fraction : float
        Fraction of rows drawn per trial
    n_rows : int
        Rows in the dataset

    Examples
    --------
    >>> result = compute_permutation_importance(df, model, target='y')
    >>> result.ranking
    ['x1', 'x0', 'noise']
    >>> result['x1'].mean
    0.8123
    """

    features: Tuple[FeatureImportance, ...]
    baseline_score: float
    metric: str
    greater_is_better: bool
    n_trials: int
    sample_fraction: float
    n_rows: int

    @property
    def ranking(self) -> List[str]:
        """Feature names, most important first."""
        return [f.feature for f in self.features]

    @property
    def importances_mean(self) -> Dict[str, float]:
        return {f.feature: f.mean for f in self.features}

    @property
    def importances_std(self) -> Dict[str, float]:
        return {f.feature: f.std for f in self.features}

    def __len__(self) -> int:
        return len(self.features)

    def __iter__(self) -> Iterator[FeatureImportance]:
        return iter(self.features)

    def __getitem__(self, feature: str) -> FeatureImportance:
        for f in self.features:
            if f.feature == feature:
                return f
        raise KeyError(feature)

    def top(self, n: int = 5) -> List[Tuple[str, float]]:
        """(feature, mean importance) for the n most important features."""
        return [(f.feature, f.mean) for f in self.features[:n]]

    def normalized(self) -> Dict[str, float]:
        """
        Mean importances clipped at zero and scaled to sum to 1.

        Comparable with the normalised scores used in the benchmark suite.
        """
        if not self.features:
            return {}
        scores = normalize_importances([f.mean for f in self.features])
        return dict(zip(self.ranking, scores))

    def to_frame(self) -> pd.DataFrame:
        """
        One row per feature, in rank order.

        Columns: importance_mean, importance_std, importance_stderr,
        n_trials, rank; indexed by feature name.
        """
        frame = pd.DataFrame(
            {
                'importance_mean': [f.mean for f in self.features],
                'importance_std': [f.std for f in self.features],
                'importance_stderr': [f.stderr for f in self.features],
                'n_trials': [f.n_trials for f in self.features],
                'rank': np.arange(1, len(self.features) + 1),
            },
            index=pd.Index(self.ranking, name='feature'),
        )
        return frame

    def samples_frame(self) -> pd.DataFrame:
        """Raw importance samples, one column per feature, one row per trial."""
        return pd.DataFrame({f.feature: f.samples for f in self.features})

    def __repr__(self) -> str:
        return (
            f"ImportanceResult(metric='{self.metric}', baseline_score={self.baseline_score:.6g}, "
            f"n_features={len(self.features)}, n_trials={self.n_trials}, "
            f"sample_fraction={self.sample_fraction})"
        )
