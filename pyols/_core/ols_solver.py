"""
Ordinary least squares estimator.

Builds the design matrix, delegates the normal-equations solve to a
backend, and derives the residual statistics.
"""

import warnings
import numpy as np
from typing import Optional, Tuple, Union
from dataclasses import dataclass

from .design import build_design_matrix
from .._utils import check_finite, check_vector, check_predictors, stack_predictors
from ..exceptions import InsufficientObservations, ValidationError


DEFAULT_TOL = 1e-7
METHODS = ('qr', 'cholesky', 'inv')


@dataclass(frozen=True, eq=False)
class OLSEstimate:
    """
    Result of an OLS fit.

    All arrays are read-only; a new fit always produces a new estimate.
    """
    coefficients: np.ndarray  # Length p + 1, intercept first
    fitted_values: np.ndarray # Length n
    residuals: np.ndarray     # Length n, observed - fitted
    rss: float                # Residual sum of squares
    sigma2_ml: float          # RSS / n
    sigma2: float             # RSS / (n - p - 1)
    cov_unscaled: np.ndarray  # (X'X)^-1, from the factorisation used for the solve

    n_obs: int
    n_predictors: int
    rank: int
    df_residual: int          # n - p - 1
    method: str
    backend_name: str

    @property
    def sigma(self) -> float:
        """Residual standard error."""
        return float(np.sqrt(self.sigma2))

    def as_tuple(self) -> Tuple[np.ndarray, np.ndarray, np.ndarray, float, float, float]:
        """(coefficients, fitted values, residuals, RSS, sigma2_ml, sigma2)."""
        return (
            self.coefficients,
            self.fitted_values,
            self.residuals,
            self.rss,
            self.sigma2_ml,
            self.sigma2,
        )

    def __repr__(self):
        return (
            f"OLSEstimate(n={self.n_obs}, p={self.n_predictors}, "
            f"rss={self.rss:.6g}, sigma2={self.sigma2:.6g})"
        )


def _readonly(a: np.ndarray) -> np.ndarray:
    a = np.array(a, dtype=np.float64, copy=True)
    a.setflags(write=False)
    return a


def fit_ols(
    y,
    X,
    method: str = 'qr',
    tol: Optional[float] = None,
    backend=None,
    use_fp64: Optional[bool] = None,
    check_condition: bool = True,
) -> OLSEstimate:
    """
    Fit a linear model with intercept by ordinary least squares.

    Parameters
    ----------
    y : array-like, shape (n,)
        Response vector
    X : array-like, shape (n,) or (n, p)
        Predictors (WITHOUT intercept - added automatically). A 1-D input
        is a single predictor.
    method : str, default='qr'
        How the normal equations X'X beta = X'y are solved:
        - 'qr': pivoted QR of X, then back-substitution (most stable)
        - 'cholesky': Cholesky factorisation of X'X
        - 'inv': explicit (X'X)^-1 X'y; only for well-conditioned data
    tol : float, optional
        Relative tolerance for rank determination (default 1e-7)
    backend : str or BackendBase, optional
        Backend name for get_backend() or a backend instance (default 'cpu')
    use_fp64 : bool, optional
        Precision request forwarded to get_backend() (FP64 only)
    check_condition : bool, default=True
        Warn when the design is full rank but ill-conditioned

    Returns
    -------
    OLSEstimate
        Coefficients, fitted values, residuals, RSS and both variance
        estimates

    Raises
    ------
    DimensionMismatch
        If predictor and response lengths disagree
    InsufficientObservations
        If n <= p + 1
    SingularDesignMatrix
        If the design matrix is rank deficient

    Examples
    --------
    >>> est = fit_ols([3, 5, 7, 9], [1, 2, 3, 4])
    >>> est.coefficients
    array([1., 2.])
    """
    y = check_vector(y, name='y', finite=False)
    X = check_predictors(X, n_obs=len(y), name='X')
    check_finite(y, 'y')

    if method not in METHODS:
        raise ValidationError(
            f"Unknown method: '{method}'. "
            f"Valid options: {', '.join(repr(m) for m in METHODS)}"
        )

    n, p = X.shape
    if n <= p + 1:
        raise InsufficientObservations(n, p)

    if tol is None:
        tol = DEFAULT_TOL

    backend = _resolve_backend(backend, use_fp64)

    X_design = build_design_matrix(X)
    result = backend.fit_ols(X_design, y, method=method, tol=tol)

    if check_condition:
        from .._backends.conditioning import check_conditioning, format_conditioning_message
        conditioning = check_conditioning(X_design)
        if not conditioning['well_conditioned']:
            warnings.warn(format_conditioning_message(conditioning), UserWarning)

    residuals = result.residuals
    rss = float(residuals @ residuals)
    df_residual = n - p - 1

    return OLSEstimate(
        coefficients=_readonly(result.coef),
        fitted_values=_readonly(result.fitted_values),
        residuals=_readonly(residuals),
        rss=rss,
        sigma2_ml=rss / n,
        sigma2=rss / df_residual,
        cov_unscaled=_readonly(result.cov_unscaled),
        n_obs=n,
        n_predictors=p,
        rank=result.rank,
        df_residual=df_residual,
        method=method,
        backend_name=backend.name,
    )


def estimate(y, *predictors, **kwargs) -> OLSEstimate:
    """
    Fit OLS from individual predictor sequences.

    Column-wise form of fit_ols(): each positional argument after the
    response is one predictor of length n.

    Examples
    --------
    >>> est = estimate(y, age, bmi, method='cholesky')
    """
    y = check_vector(y, name='y', finite=False)
    X = stack_predictors(predictors, n_obs=len(y))
    return fit_ols(y, X, **kwargs)


def _resolve_backend(backend: Union[str, None, object], use_fp64: Optional[bool] = None):
    from .._backends import get_backend, BackendBase

    if backend is None:
        return get_backend('cpu', use_fp64=use_fp64)
    if isinstance(backend, str):
        return get_backend(backend, use_fp64=use_fp64)
    if isinstance(backend, BackendBase):
        return backend
    raise ValidationError(
        f"backend must be a backend name or BackendBase instance, "
        f"got {type(backend).__name__}"
    )
