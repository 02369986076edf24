"""
Design matrix conditioning diagnostics.

Flags full-rank designs whose normal equations are still numerically
fragile: severe multicollinearity, badly scaled columns, inflated variances.
"""

import numpy as np
from typing import Dict, List


CONDITION_WARN_THRESHOLD = 1e10
SCALE_RATIO_WARN_THRESHOLD = 1e6
VIF_WARN_THRESHOLD = 100.0


def check_conditioning(X: np.ndarray) -> Dict:
    """
    Assess the numerical conditioning of a design matrix.

    Evaluates:
    - Condition number of X'X (multicollinearity)
    - Column scaling
    - Variance Inflation Factors (VIF) of the predictors

    Parameters
    ----------
    X : ndarray, shape (n, p + 1)
        Design matrix (WITH intercept in column 0)

    Returns
    -------
    dict with keys:
        - well_conditioned: bool - condition number below the threshold
        - condition_number: float
        - scale_ratio: float
        - max_vif: float
        - warnings: list[str]
    """
    X = np.asarray(X, dtype=np.float64)

    # Form Gram matrix
    XtX = X.T @ X

    # 1. CONDITION NUMBER
    try:
        eigvals = np.linalg.eigvalsh(XtX)
        if eigvals.min() <= 0:
            cond = np.inf
        else:
            cond = eigvals.max() / eigvals.min()
    except np.linalg.LinAlgError:
        cond = np.inf

    # 2. SCALING RATIO
    col_norms = np.linalg.norm(X, axis=0)
    if np.any(col_norms == 0):
        scale_ratio = np.inf
    else:
        scale_ratio = col_norms.max() / col_norms.min()

    # 3. VARIANCE INFLATION FACTORS
    # Diagonal of the inverse predictor correlation matrix
    predictors = X[:, 1:]
    if predictors.shape[1] < 2:
        max_vif = 1.0
    else:
        with np.errstate(divide='ignore', invalid='ignore'):
            corr = np.corrcoef(predictors, rowvar=False)
        if not np.all(np.isfinite(corr)):
            # Constant predictor column: aliased with the intercept
            max_vif = np.inf
        else:
            try:
                max_vif = float(np.diag(np.linalg.inv(corr)).max())
            except np.linalg.LinAlgError:
                max_vif = np.inf

    warning_messages: List[str] = []

    if cond > CONDITION_WARN_THRESHOLD:
        warning_messages.append(
            f"Severe multicollinearity detected (condition number of X'X: "
            f"{cond:.2e}). Coefficient estimates may be numerically unstable."
        )

    if scale_ratio > SCALE_RATIO_WARN_THRESHOLD:
        warning_messages.append(
            f"Poor column scaling detected (ratio: {scale_ratio:.2e}). "
            f"Consider standardizing predictors."
        )

    if max_vif > VIF_WARN_THRESHOLD:
        warning_messages.append(
            f"High multicollinearity detected (max VIF: {max_vif:.1f})."
        )

    return {
        'well_conditioned': bool(cond <= CONDITION_WARN_THRESHOLD),
        'condition_number': float(cond),
        'scale_ratio': float(scale_ratio),
        'max_vif': float(max_vif),
        'warnings': warning_messages,
    }


def format_conditioning_message(conditioning: Dict) -> str:
    """
    Format conditioning check results as user-friendly message.

    Parameters
    ----------
    conditioning : dict
        Output from check_conditioning()

    Returns
    -------
    str
        Formatted message for user
    """
    msg = (
        f"Design matrix is ill-conditioned "
        f"(condition number {conditioning['condition_number']:.2e}).\n"
    )

    if conditioning['warnings']:
        msg += "\nWarnings:\n"
        for warning in conditioning['warnings']:
            msg += f"  - {warning}\n"

    msg += "\nPrefer method='qr'; 'cholesky' and 'inv' square the condition number."
    return msg
