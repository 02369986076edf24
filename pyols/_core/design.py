"""
Design matrix construction.

The design matrix is derived, never stored: it is rebuilt from the
predictors on every fit.
"""

import numpy as np
from typing import List, Sequence


def build_design_matrix(X: np.ndarray) -> np.ndarray:
    """
    Prepend the intercept column to the predictors.

    Parameters
    ----------
    X : ndarray, shape (n, p)
        Predictor matrix (WITHOUT intercept)

    Returns
    -------
    ndarray, shape (n, p + 1)
        Column 0 is all ones, columns 1..p are the predictors in order
    """
    n = X.shape[0]
    return np.column_stack([np.ones(n, dtype=np.float64), X])


def design_column_names(names: Sequence[str]) -> List[str]:
    """Column labels of the design matrix, intercept first."""
    return ['Intercept'] + list(names)
