"""
Model adapters implementing the ``predict(dataset)`` capability.

The estimator only ever calls ``model.predict(frame)`` where ``frame`` is a
DataFrame of feature columns. Adapters translate that call into whatever a
given modeling backend expects. The caller picks the adapter; the estimator
never inspects the model beyond ``predict`` and the optional ``thread_safe``
attribute.
"""

import numpy as np
import pandas as pd
from typing import Callable, Literal, Optional, Sequence

from .exceptions import InvalidInput


class ModelAdapter:
    """
    Base class for prediction adapters.

    Subclasses implement :meth:`predict`. ``thread_safe`` tells the estimator
    whether concurrent ``predict`` calls are allowed when ``n_jobs > 1``.
    """

    thread_safe: bool = True

    def predict(self, dataset: pd.DataFrame) -> np.ndarray:
        raise NotImplementedError


class EstimatorAdapter(ModelAdapter):
    """
    Adapter for scikit-learn style estimators.

    Parameters
    ----------
    estimator : object
        Fitted model exposing ``predict()`` and/or ``predict_proba()``
    response : {'auto', 'predict', 'predict_proba'}, default='auto'
        Which method to call. 'auto' uses predict_proba when the estimator
        has it, predict otherwise.
    positive_class : int, default=1
        Column kept from a two-column probability output
    columns : sequence of str, optional
        Columns (and their order) passed to the estimator. Defaults to all
        columns of the dataset handed to predict().
    as_array : bool, default=False
        Pass a NumPy array instead of a DataFrame (for models fitted on arrays)
    thread_safe : bool, default=True
        Whether the wrapped estimator tolerates concurrent predict() calls

    Examples
    --------
    >>> from sklearn.ensemble import GradientBoostingClassifier
    >>> clf = GradientBoostingClassifier().fit(X_train, y_train)
    >>> adapter = EstimatorAdapter(clf, response='predict_proba')
    >>> adapter.predict(X_test).shape
    (250,)
    """

    def __init__(
        self,
        estimator,
        response: Literal['auto', 'predict', 'predict_proba'] = 'auto',
        positive_class: int = 1,
        columns: Optional[Sequence[str]] = None,
        as_array: bool = False,
        thread_safe: bool = True
    ):
        if response not in ['auto', 'predict', 'predict_proba']:
            raise InvalidInput(
                f"response must be 'auto', 'predict', or 'predict_proba', got {response}"
            )
        if response == 'auto':
            response = 'predict_proba' if hasattr(estimator, 'predict_proba') else 'predict'
        if not hasattr(estimator, response):
            raise InvalidInput(f"{type(estimator).__name__} has no {response}() method")

        self.estimator = estimator
        self.response = response
        self.positive_class = positive_class
        self.columns = list(columns) if columns is not None else None
        self.as_array = as_array
        self.thread_safe = thread_safe

    def predict(self, dataset: pd.DataFrame) -> np.ndarray:
        X = dataset[self.columns] if self.columns is not None else dataset
        if self.as_array:
            X = X.to_numpy()

        out = np.asarray(getattr(self.estimator, self.response)(X))

        # Binary probabilities collapse to the positive class
        if self.response == 'predict_proba' and out.ndim == 2 and out.shape[1] == 2:
            out = out[:, self.positive_class]
        return out

    def __repr__(self) -> str:
        return (
            f"EstimatorAdapter({type(self.estimator).__name__}, "
            f"response='{self.response}', thread_safe={self.thread_safe})"
        )


class FunctionAdapter(ModelAdapter):
    """
    Adapter for a plain ``func(dataset) -> predictions`` closure.

    Parameters
    ----------
    func : callable
        Prediction function taking a DataFrame
    thread_safe : bool, default=True
        Whether ``func`` may be called concurrently
    """

    def __init__(self, func: Callable, thread_safe: bool = True):
        if not callable(func):
            raise InvalidInput(f"func must be callable, got {type(func).__name__}")
        self.func = func
        self.thread_safe = thread_safe

    def predict(self, dataset: pd.DataFrame) -> np.ndarray:
        return np.asarray(self.func(dataset))

    def __repr__(self) -> str:
        name = getattr(self.func, '__name__', type(self.func).__name__)
        return f"FunctionAdapter({name}, thread_safe={self.thread_safe})"


def as_predictor(model, **kwargs) -> ModelAdapter:
    """
    Wrap ``model`` in the matching adapter.

    Estimators (objects with predict) get an EstimatorAdapter calling
    ``predict``; bare callables get a FunctionAdapter. Extra keyword
    arguments go to the adapter.
    """
    if isinstance(model, ModelAdapter):
        return model
    if hasattr(model, 'predict'):
        kwargs.setdefault('response', 'predict')
        return EstimatorAdapter(model, **kwargs)
    if callable(model):
        return FunctionAdapter(model, **kwargs)
    raise InvalidInput(f"Cannot build a predictor from {type(model).__name__}")
