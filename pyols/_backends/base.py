"""
Backend interface.

A backend receives the finished design matrix and returns the OLS solution
as numpy arrays, whatever it uses internally.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass

import numpy as np


@dataclass
class BackendResult:
    """Solution of X'X beta = X'y as returned by a backend."""
    coef: np.ndarray           # Length k, design column order
    fitted_values: np.ndarray  # X beta
    residuals: np.ndarray      # y - X beta
    cov_unscaled: np.ndarray   # (X'X)^-1 from the factorisation used for the solve
    rank: int
    tol: float


class BackendBase(ABC):
    """Solver for the normal equations of a full-rank design."""

    name: str = "base"
    precision: str = "fp64"

    @abstractmethod
    def fit_ols(
        self,
        X: np.ndarray,
        y: np.ndarray,
        method: str = 'qr',
        tol: float = 1e-7,
    ) -> BackendResult:
        """
        Check the rank of X, then solve X'X beta = X'y with `method`.

        Parameters
        ----------
        X : ndarray, shape (n, k)
            Design matrix, intercept column included
        y : ndarray, shape (n,)
            Response
        method : str
            'qr', 'cholesky' or 'inv'
        tol : float
            Relative rank tolerance on unit-norm columns

        Raises
        ------
        SingularDesignMatrix
            If the numerical rank of X is below k
        ValidationError
            If method is not one of the three above
        """

    @abstractmethod
    def get_device_info(self) -> dict:
        """Backend, precision, device and library versions."""


class CPUBackend(BackendBase):
    """Backends running on the host."""


class GPUBackendFP64(BackendBase):
    """Backends running on an accelerator in double precision."""
