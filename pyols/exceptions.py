"""
Exception hierarchy.

Every error raised by the estimator derives from PyOLSError, so callers can
catch the whole family at once or pick out the specific failure.
"""

import numpy as np


class PyOLSError(Exception):
    """Base class for all pyols errors."""
    pass


class ValidationError(PyOLSError, ValueError):
    """Input data violates the estimator's contract."""
    pass


class DimensionMismatch(ValidationError):
    """Response and predictor sequences have different lengths."""

    def __init__(self, message: str, expected: int = None, got: int = None):
        super().__init__(message)
        self.expected = expected
        self.got = got


class InsufficientObservations(ValidationError):
    """Too few observations for the number of predictors (n <= p + 1)."""

    def __init__(self, n_obs: int, n_predictors: int):
        super().__init__(
            f"Need more than {n_predictors + 1} observations for "
            f"{n_predictors} predictor(s) plus intercept, got {n_obs} "
            f"(residual degrees of freedom would be {n_obs - n_predictors - 1})"
        )
        self.n_obs = n_obs
        self.n_predictors = n_predictors


class NumericalError(PyOLSError):
    """Numerical problem prevents a solution."""
    pass


class SingularDesignMatrix(NumericalError, np.linalg.LinAlgError):
    """
    Design matrix is rank deficient.

    Attributes
    ----------
    rank : int
        Numerical rank detected by pivoted QR
    n_columns : int
        Number of design-matrix columns (predictors + intercept)
    """

    def __init__(self, rank: int, n_columns: int, detail: str = ""):
        if rank < n_columns:
            message = (
                f"Singular design matrix: rank {rank} < {n_columns} columns. "
                f"At least one predictor is a linear combination of the "
                f"others and the intercept."
            )
        else:
            message = (
                f"Singular design matrix: {n_columns} columns are "
                f"numerically dependent in double precision."
            )
        if detail:
            message = f"{message} {detail}"
        super().__init__(message)
        self.rank = rank
        self.n_columns = n_columns


__all__ = [
    "PyOLSError",
    "ValidationError",
    "DimensionMismatch",
    "InsufficientObservations",
    "NumericalError",
    "SingularDesignMatrix",
]
