"""
R-style model interface on top of fit_ols().

Adds the inference layer of R's summary.lm(): standard errors, t tests,
R-squared and the overall F test.
"""

import numpy as np
import pandas as pd
from typing import Optional, Union, List
from scipy import stats

from ._core.design import build_design_matrix, design_column_names
from ._core.ols_solver import fit_ols
from ._backends import get_backend
from ._utils import check_vector, check_predictors, predictor_names


SIGNIFICANCE_CODES = ((0.001, '***'), (0.01, '**'), (0.05, '*'), (0.1, '.'))


def _significance(p: float) -> str:
    if np.isnan(p):
        return ''
    for cutoff, code in SIGNIFICANCE_CODES:
        if p < cutoff:
            return code
    return ''


def _response(y, data):
    """(values, name) for a column name or a numeric vector."""
    if isinstance(y, str):
        if data is None:
            raise ValueError("Must provide data when y is a string")
        return check_vector(data[y].values, name=y), y
    return check_vector(y, name='y'), 'y'


def _predictors(X, data, n_obs):
    """(values, names) for column names or a numeric vector/matrix."""
    if isinstance(X, str):
        X = [X]
    if isinstance(X, list) and X and all(isinstance(col, str) for col in X):
        if data is None:
            raise ValueError("Must provide data when X is list of strings")
        return check_predictors(data[X].values, n_obs=n_obs), list(X)
    values = check_predictors(X, n_obs=n_obs)
    return values, predictor_names(values.shape[1])


class LinearModel:
    """
    Linear regression with intercept, fitted by closed-form OLS.

    Examples
    --------
    >>> model = lm(y='sbp', X=['age', 'bmi'], data=trial)
    >>> model.summary()
    >>> model.coef          # Named coefficients
    >>> model.sigma2        # Unbiased error variance
    >>> model.sigma2_ml     # Maximum-likelihood error variance
    >>> model.conf_int()
    >>> model.predict(new_patients)
    """

    def __init__(
        self,
        y: Union[str, np.ndarray],
        X: Union[List[str], np.ndarray],
        data: Optional[pd.DataFrame] = None,
        method: str = 'qr',
        tol: Optional[float] = None,
        backend: str = 'auto',
        use_fp64: Optional[bool] = None
    ):
        """
        Parameters
        ----------
        y : str or array
            Response: a column of data, or the values themselves
        X : list of str or array
            Predictors: columns of data, or a vector (one predictor) or an
            (n, p) matrix. Unnamed predictors are called x1 .. xp.
        data : DataFrame, optional
            Required when y or X are given by name
        method : str
            'qr', 'cholesky' or 'inv' (see fit_ols)
        tol : float, optional
            Rank determination tolerance
        backend : str
            'auto', 'cpu', 'gpu' or 'pytorch'
        use_fp64 : bool, optional
            Only FP64 is supported
        """
        self.y_values, self.y_name = _response(y, data)
        self.X_values, self.X_names = _predictors(X, data, len(self.y_values))
        self.var_names = design_column_names(self.X_names)

        self.backend = get_backend(backend, use_fp64=use_fp64)
        self.estimate = fit_ols(
            self.y_values,
            self.X_values,
            method=method,
            tol=tol,
            backend=self.backend,
        )

        self._compute_statistics()

    def _compute_statistics(self):
        est = self.estimate

        self.n_obs = est.n_obs
        self.n_coef = est.n_predictors + 1
        self.coefficients = est.coefficients
        self.fitted_values = est.fitted_values
        self.residuals = est.residuals
        self.rank = est.rank
        self.df_residual = est.df_residual
        self.rss = est.rss
        self.sigma2_ml = est.sigma2_ml
        self.sigma2 = est.sigma2
        self.sigma = est.sigma

        # (X'X)^-1 comes from the backend's own factorisation
        self.vcov = est.cov_unscaled * self.sigma2
        self.std_errors = np.sqrt(np.diag(self.vcov))

        with np.errstate(divide='ignore', invalid='ignore'):
            self.t_values = self.coefficients / self.std_errors
        self.pvalues = 2 * stats.t.sf(np.abs(self.t_values), self.df_residual)

        centred = self.y_values - self.y_values.mean()
        self.tss = float(centred @ centred)
        if self.tss > 0:
            self.r_squared = 1 - self.rss / self.tss
        else:
            # Constant response: perfect fit by the intercept alone
            self.r_squared = 1.0 if self.rss == 0 else 0.0

        df_model = self.n_coef - 1
        self.adj_r_squared = 1 - (1 - self.r_squared) * (self.n_obs - 1) / self.df_residual

        if self.tss > 0 and self.rss > 0:
            self.f_statistic = ((self.tss - self.rss) / df_model) / self.sigma2
            self.f_pvalue = stats.f.sf(self.f_statistic, df_model, self.df_residual)
        else:
            self.f_statistic = np.nan
            self.f_pvalue = np.nan

    @property
    def coef(self) -> pd.Series:
        """Coefficients indexed by design column name."""
        return pd.Series(self.coefficients, index=self.var_names)

    def coef_table(self) -> pd.DataFrame:
        """Estimate, standard error, t value and p-value per coefficient."""
        return pd.DataFrame({
            'Estimate': self.coefficients,
            'Std. Error': self.std_errors,
            't value': self.t_values,
            'Pr(>|t|)': self.pvalues,
        }, index=self.var_names)

    def conf_int(self, alpha: float = 0.05) -> pd.DataFrame:
        """
        Two-sided (1 - alpha) confidence intervals from the t distribution.

        Returns a DataFrame with columns 'lower' and 'upper'.
        """
        if not 0 < alpha < 1:
            raise ValueError("alpha must be between 0 and 1")

        half_width = stats.t.ppf(1 - alpha / 2, self.df_residual) * self.std_errors
        return pd.DataFrame({
            'lower': self.coefficients - half_width,
            'upper': self.coefficients + half_width,
        }, index=self.var_names)

    def summary(self):
        """Print an R-style summary of the fit."""
        rule = "=" * 72
        quartiles = pd.Series(
            np.percentile(self.residuals, [0, 25, 50, 75, 100]),
            index=['Min', '1Q', 'Median', '3Q', 'Max'],
        )
        table = self.coef_table()
        table[''] = [_significance(p) for p in self.pvalues]

        print(rule)
        print("LINEAR REGRESSION RESULTS")
        print(rule)
        print(f"Dependent variable: {self.y_name}")
        print(f"Observations: {self.n_obs}    "
              f"DF: {self.df_residual} residual, {self.n_coef - 1} model")
        print()
        print("Residuals:")
        print(quartiles.to_frame().T.to_string(index=False, float_format=lambda v: f"{v:.4f}"))
        print()
        print("Coefficients:")
        print(table.to_string(float_format=lambda v: f"{v:.4g}"))
        print("---")
        print("Signif. codes:  0 '***' 0.001 '**' 0.01 '*' 0.05 '.' 0.1 ' ' 1")
        print()
        print(f"Residual standard error: {self.sigma:.4f} on {self.df_residual} degrees of freedom")
        print(f"Residual sum of squares: {self.rss:.4f}")
        print(f"Error variance (ML):     {self.sigma2_ml:.4f}")
        print(f"Multiple R-squared: {self.r_squared:.4f},  "
              f"Adjusted R-squared: {self.adj_r_squared:.4f}")
        if not np.isnan(self.f_statistic):
            print(f"F-statistic: {self.f_statistic:.2f} on {self.n_coef - 1} and "
                  f"{self.df_residual} DF,  p-value: {self.f_pvalue:.3g}")
        print()
        print(f"Backend: {self.backend.name} ({self.estimate.method})")
        print(rule)

    def predict(self, newdata: Union[pd.DataFrame, np.ndarray]) -> np.ndarray:
        """
        Predicted response for new predictor values.

        A DataFrame is matched to the model's predictors by column name;
        an array must have one column per predictor, in order.
        """
        if isinstance(newdata, pd.DataFrame):
            X_new = newdata[self.X_names].values
        else:
            X_new = np.asarray(newdata, dtype=np.float64)
            if X_new.ndim == 1:
                X_new = X_new[:, np.newaxis]

        if X_new.shape[1] != len(self.X_names):
            raise ValueError(
                f"newdata has {X_new.shape[1]} columns, model has "
                f"{len(self.X_names)} predictors"
            )

        return build_design_matrix(X_new) @ self.coefficients

    def __repr__(self):
        return f"LinearModel(n={self.n_obs}, p={self.n_coef - 1}, R²={self.r_squared:.3f})"


def lm(y, X, data=None, **kwargs) -> LinearModel:
    """
    Fit a linear model, R style.

    Keyword arguments are passed to LinearModel (method, tol, backend,
    use_fp64).

    Examples
    --------
    >>> model = lm(y='sbp', X=['age', 'bmi'], data=trial)
    >>> model.predict(pd.DataFrame({'age': [50.0], 'bmi': [27.0]}))
    """
    return LinearModel(y=y, X=X, data=data, **kwargs)
