"""
CPU backend using NumPy + SciPy.

This is the reference implementation.
"""

import numpy as np
from scipy.linalg import cho_factor, cho_solve, solve_triangular, LinAlgError

from .base import CPUBackend, BackendResult
from .._core.qr import qr_decomposition_with_pivoting
from ..exceptions import SingularDesignMatrix, ValidationError


class CPUBackendFP64(CPUBackend):
    """
    CPU backend using NumPy + SciPy.

    Reference implementation. Always uses FP64 precision.
    """

    def __init__(self):
        self.name = "cpu_fp64"
        self.precision = "fp64"

    def fit_ols(
        self,
        X: np.ndarray,
        y: np.ndarray,
        method: str = 'qr',
        tol: float = 1e-7,
    ) -> BackendResult:
        """
        Solve the normal equations using NumPy/LAPACK.

        The rank is always decided by pivoted QR first, whatever the
        solve method.
        """
        X = np.asarray(X, dtype=np.float64)
        y = np.asarray(y, dtype=np.float64)
        k = X.shape[1]

        decomp = qr_decomposition_with_pivoting(X, tol=tol)
        if decomp.rank < k:
            aliased = np.sort(decomp.pivot[decomp.rank:])
            raise SingularDesignMatrix(
                decomp.rank, k,
                detail=f"Aliased design column(s): {aliased.tolist()}."
            )

        eye = np.eye(k)

        if method == 'qr':
            # R beta_p = Q'y, then undo the pivot
            coef = np.empty(k, dtype=np.float64)
            coef[decomp.pivot] = solve_triangular(decomp.R, decomp.Q.T @ y, lower=False)

            # (X'X)^-1 = P R^-1 R^-T P'
            R_inv = solve_triangular(decomp.R, eye, lower=False)
            cov_unscaled = np.empty((k, k), dtype=np.float64)
            cov_unscaled[np.ix_(decomp.pivot, decomp.pivot)] = R_inv @ R_inv.T

        elif method == 'cholesky':
            XtX = X.T @ X
            try:
                factor = cho_factor(XtX, lower=False)
            except LinAlgError as e:
                raise SingularDesignMatrix(
                    decomp.rank, k,
                    detail="X'X is not positive definite."
                ) from e
            coef = cho_solve(factor, X.T @ y)
            cov_unscaled = cho_solve(factor, eye)

        elif method == 'inv':
            try:
                cov_unscaled = np.linalg.inv(X.T @ X)
            except np.linalg.LinAlgError as e:
                raise SingularDesignMatrix(
                    decomp.rank, k,
                    detail="X'X is not invertible."
                ) from e
            coef = cov_unscaled @ (X.T @ y)

        else:
            raise ValidationError(
                f"Unknown method: '{method}'. "
                f"Valid options: 'qr', 'cholesky', 'inv'"
            )

        fitted = X @ coef

        return BackendResult(
            coef=coef,
            fitted_values=fitted,
            residuals=y - fitted,
            cov_unscaled=cov_unscaled,
            rank=decomp.rank,
            tol=tol,
        )

    def get_device_info(self) -> dict:
        """Get backend information."""
        import scipy
        return {
            'backend': 'cpu',
            'precision': 'fp64',
            'library': f'NumPy {np.__version__}, SciPy {scipy.__version__}',
        }
