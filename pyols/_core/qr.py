"""
QR decomposition with column pivoting.

Used to decide the numerical rank of the design matrix before any
normal-equations solve.
"""

import numpy as np
from scipy.linalg import qr
from dataclasses import dataclass


@dataclass
class QRDecomposition:
    """Result of QR decomposition with pivoting."""
    Q: np.ndarray            # Orthonormal factor (economic, n x k)
    R: np.ndarray            # Upper triangular factor (k x k)
    pivot: np.ndarray        # Column permutation (0-indexed): X[:, pivot] = Q R
    rank: int                # Determined rank
    tol: float               # Relative tolerance used


def column_scale(X: np.ndarray) -> np.ndarray:
    """Euclidean column norms, with zero columns mapped to 1."""
    norms = np.linalg.norm(X, axis=0)
    norms[norms == 0] = 1.0
    return norms


def qr_decomposition_with_pivoting(
    X: np.ndarray,
    tol: float = 1e-7,
) -> QRDecomposition:
    """
    QR decomposition with column pivoting.

    Parameters
    ----------
    X : ndarray, shape (n, k)
        Matrix to decompose
    tol : float, default=1e-7
        Relative tolerance for rank determination

    Returns
    -------
    result : QRDecomposition
        QR decomposition with pivoting

    Notes
    -----
    The columns are scaled to unit norm before factorising, so a column
    counts towards the rank when the part of it not explained by the
    earlier pivots keeps at least ``tol`` of its own length. Rescaling a
    predictor (cents instead of dollars, seconds since 1970) never changes
    the rank.

    The returned R carries the scale back (R = R_unit * norms[pivot]), so
    X[:, pivot] = Q R holds for the original X.
    """
    X = np.asarray(X, dtype=np.float64)
    norms = column_scale(X)

    Q, R_unit, P = qr(X / norms, mode='economic', pivoting=True)

    R_diag = np.abs(np.diag(R_unit))
    if R_diag.size == 0 or R_diag[0] == 0:
        rank = 0
    else:
        rank = int(np.sum(R_diag >= tol * R_diag[0]))

    return QRDecomposition(
        Q=Q,
        R=R_unit * norms[P],
        pivot=P.astype(np.int64),
        rank=rank,
        tol=tol,
    )
