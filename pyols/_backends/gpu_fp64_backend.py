"""
GPU backend using PyTorch with FP64 precision.

For data center GPUs: A100, H100, V100.
"""

import numpy as np
import warnings
from typing import Optional

from .base import GPUBackendFP64, BackendResult
from .device import has_full_fp64
from ..exceptions import SingularDesignMatrix, ValidationError


class PyTorchBackendFP64(GPUBackendFP64):
    """
    PyTorch backend with FP64 precision.

    Converts numpy -> torch on entry and torch -> numpy on exit; everything
    in between stays on the device.
    """

    def __init__(self, device: Optional[str] = None):
        self.name = "pytorch_fp64"
        self.precision = "fp64"

        try:
            import torch
        except ImportError:
            raise ImportError(
                "PyTorch required for GPU backend. "
                "Install: pip install pyols[gpu]"
            )
        self.torch = torch

        if device == 'mps':
            raise RuntimeError(
                "FP64 not supported on Apple Metal. Use backend='cpu'."
            )

        if device is None:
            if torch.cuda.is_available():
                device = 'cuda'
            else:
                warnings.warn("No CUDA GPU available, using CPU")
                device = 'cpu'

        self.device = torch.device(device)

        if self.device.type == 'cuda':
            gpu_name = torch.cuda.get_device_name(self.device)
            if not has_full_fp64(gpu_name):
                warnings.warn(
                    f"{gpu_name} runs FP64 at a fraction of its FP32 rate; "
                    f"backend='cpu' is usually faster.",
                    UserWarning
                )

    def _rank(self, X, tol: float) -> int:
        # torch has no pivoted QR: count singular values of the unit-norm
        # columns, so the decision matches the CPU backend's scale invariance
        torch = self.torch
        norms = torch.linalg.vector_norm(X, dim=0)
        norms = torch.where(norms == 0, torch.ones_like(norms), norms)
        s = torch.linalg.svdvals(X / norms)
        if s.numel() == 0 or s[0] == 0:
            return 0
        return int(torch.sum(s >= tol * s[0]).item())

    def fit_ols(
        self,
        X: np.ndarray,
        y: np.ndarray,
        method: str = 'qr',
        tol: float = 1e-7,
    ) -> BackendResult:
        """
        Solve the normal equations on the device in double precision.
        """
        torch = self.torch

        X_dev = torch.from_numpy(np.ascontiguousarray(X, dtype=np.float64)).to(self.device)
        y_dev = torch.from_numpy(np.ascontiguousarray(y, dtype=np.float64)).to(self.device)
        k = X_dev.shape[1]
        eye = torch.eye(k, dtype=torch.float64, device=self.device)

        rank = self._rank(X_dev, tol)
        if rank < k:
            raise SingularDesignMatrix(rank, k)

        if method == 'qr':
            Q, R = torch.linalg.qr(X_dev, mode='reduced')
            coef = torch.linalg.solve_triangular(
                R, (Q.T @ y_dev).unsqueeze(1), upper=True
            ).squeeze(1)
            R_inv = torch.linalg.solve_triangular(R, eye, upper=True)
            cov_unscaled = R_inv @ R_inv.T

        elif method == 'cholesky':
            L, info = torch.linalg.cholesky_ex(X_dev.T @ X_dev)
            if int(info.item()) != 0:
                raise SingularDesignMatrix(
                    rank, k, detail="X'X is not positive definite."
                )
            coef = torch.cholesky_solve((X_dev.T @ y_dev).unsqueeze(1), L).squeeze(1)
            cov_unscaled = torch.cholesky_inverse(L)

        elif method == 'inv':
            cov_unscaled, info = torch.linalg.inv_ex(X_dev.T @ X_dev)
            if int(info.item()) != 0:
                raise SingularDesignMatrix(
                    rank, k, detail="X'X is not invertible."
                )
            coef = cov_unscaled @ (X_dev.T @ y_dev)

        else:
            raise ValidationError(
                f"Unknown method: '{method}'. "
                f"Valid options: 'qr', 'cholesky', 'inv'"
            )

        fitted = X_dev @ coef

        return BackendResult(
            coef=coef.cpu().numpy(),
            fitted_values=fitted.cpu().numpy(),
            residuals=(y_dev - fitted).cpu().numpy(),
            cov_unscaled=cov_unscaled.cpu().numpy(),
            rank=rank,
            tol=tol,
        )

    def get_device_info(self) -> dict:
        """Get backend information."""
        return {
            'backend': 'gpu',
            'precision': 'fp64',
            'device': str(self.device),
            'library': f'PyTorch {self.torch.__version__}',
        }
