"""
Core algorithms (backend-agnostic).
"""

from .qr import qr_decomposition_with_pivoting, QRDecomposition
from .design import build_design_matrix, design_column_names
from .ols_solver import fit_ols, estimate, OLSEstimate, DEFAULT_TOL, METHODS

__all__ = [
    "qr_decomposition_with_pivoting",
    "QRDecomposition",
    "build_design_matrix",
    "design_column_names",
    "fit_ols",
    "estimate",
    "OLSEstimate",
    "DEFAULT_TOL",
    "METHODS",
]
