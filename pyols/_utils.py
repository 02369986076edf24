"""
Input validation utilities.

Shape and length problems are reported before non-finite values, so a
predictor that is both too short and contains NaN is a DimensionMismatch.
"""

import numpy as np

from .exceptions import DimensionMismatch, ValidationError


def check_finite(a: np.ndarray, name: str) -> np.ndarray:
    """Raise ValidationError if a contains NaN or Inf."""
    if not np.all(np.isfinite(a)):
        raise ValidationError(f"{name} contains NaN or Inf")
    return a


def check_vector(y, name='y', dtype=np.float64, finite=True):
    """Validate vector input."""
    try:
        y = np.asarray(y, dtype=dtype)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{name} must be numeric: {e}") from e
    if y.ndim != 1:
        raise ValidationError(f"{name} must be 1-dimensional")
    if finite:
        check_finite(y, name)
    return y


def check_predictors(X, n_obs, name='X', dtype=np.float64, finite=True):
    """
    Validate predictor input against the response length.

    A 1-D input is a single predictor; a 2-D input has one column per
    predictor. Returns a float64 array of shape (n, p).
    """
    try:
        X = np.asarray(X, dtype=dtype)
    except (TypeError, ValueError) as e:
        raise ValidationError(f"{name} must be numeric: {e}") from e

    if X.ndim == 1:
        X = X[:, np.newaxis]
    elif X.ndim != 2:
        raise ValidationError(f"{name} must be 1- or 2-dimensional")

    if X.shape[0] != n_obs:
        raise DimensionMismatch(
            f"{name} has {X.shape[0]} rows but response has {n_obs} "
            f"observations",
            expected=n_obs,
            got=X.shape[0],
        )
    if X.shape[1] == 0:
        raise ValidationError("At least one predictor is required")
    if finite:
        check_finite(X, name)
    return X


def predictor_names(p: int) -> list:
    """Default names for unnamed predictors: x1 .. xp."""
    return [f'x{i}' for i in range(1, p + 1)]


def stack_predictors(predictors, n_obs):
    """
    Stack predictor sequences column-wise into an (n, p) matrix.

    Every length is checked before any value, so a mismatch always names
    the offending predictor.
    """
    if len(predictors) == 0:
        raise ValidationError("At least one predictor is required")

    names = predictor_names(len(predictors))
    columns = [
        check_vector(x, name=name, finite=False)
        for x, name in zip(predictors, names)
    ]

    for x, name in zip(columns, names):
        if len(x) != n_obs:
            raise DimensionMismatch(
                f"Predictor {name} has length {len(x)} but response has "
                f"length {n_obs}",
                expected=n_obs,
                got=len(x),
            )

    for x, name in zip(columns, names):
        check_finite(x, name)
    return np.column_stack(columns)
