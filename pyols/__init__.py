"""
pyols: closed-form ordinary least squares with R-style output.

Copyright (C) 2024 SGCX
Licensed under GPL-3.0
"""

__version__ = "1.0.0"

# Import main user-facing API
from ._core import fit_ols, estimate, OLSEstimate, build_design_matrix
from .lm import lm, LinearModel
from .exceptions import (
    PyOLSError,
    ValidationError,
    DimensionMismatch,
    InsufficientObservations,
    NumericalError,
    SingularDesignMatrix,
)

# Import backend utilities (for advanced users)
from ._backends import get_backend, list_available_backends, check_conditioning

__all__ = [
    'fit_ols',
    'estimate',
    'OLSEstimate',
    'build_design_matrix',
    'lm',
    'LinearModel',
    'PyOLSError',
    'ValidationError',
    'DimensionMismatch',
    'InsufficientObservations',
    'NumericalError',
    'SingularDesignMatrix',
    'get_backend',
    'list_available_backends',
    'check_conditioning',
]
