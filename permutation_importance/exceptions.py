"""
Exception hierarchy for permutation importance computations.

Every error raised by the estimator derives from PermutationImportanceError,
so callers can catch a single type. The concrete classes also subclass the
matching builtin (ValueError / RuntimeError) for compatibility with code
written against scikit-learn style validation.
"""


class PermutationImportanceError(Exception):
    """Base class for all errors raised by this package."""


class InvalidInput(PermutationImportanceError, ValueError):
    """
    Malformed or out-of-range call arguments.

    Raised eagerly, before any prediction is made.
    """


class ModelInvocationError(PermutationImportanceError, RuntimeError):
    """
    The injected prediction capability failed.

    Raised when ``model.predict`` raises or returns a sequence whose length
    does not match the number of rows it was given. Not retried.
    """


class MetricComputationError(PermutationImportanceError, RuntimeError):
    """
    The injected metric failed or returned a non-finite value.

    Typical causes are degenerate actual vectors (e.g. a single class for
    ROC-AUC). Not retried.
    """
