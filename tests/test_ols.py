"""
Test the closed-form OLS estimator.

Covers the estimator contract: exact recovery, result shapes, variance
estimates, idempotence and every error condition.
"""

import dataclasses

import pytest
import numpy as np

from pyols import (
    fit_ols,
    estimate,
    OLSEstimate,
    PyOLSError,
    ValidationError,
    DimensionMismatch,
    InsufficientObservations,
    SingularDesignMatrix,
)
from pyols._core.design import build_design_matrix


METHODS = ['qr', 'cholesky', 'inv']


class TestExactFit:
    """Noise-free responses are recovered exactly."""

    def test_line_through_four_points(self):
        """y = 1 + 2x on x = 1..4."""
        est = estimate([3, 5, 7, 9], [1, 2, 3, 4])

        np.testing.assert_allclose(est.coefficients, [1.0, 2.0], atol=1e-9)
        assert est.rss == pytest.approx(0.0, abs=1e-12)
        assert est.sigma2_ml == pytest.approx(0.0, abs=1e-12)
        assert est.sigma2 == pytest.approx(0.0, abs=1e-12)
        np.testing.assert_allclose(est.fitted_values, [3, 5, 7, 9], atol=1e-9)
        np.testing.assert_allclose(est.residuals, 0, atol=1e-9)

    @pytest.mark.parametrize("method", METHODS)
    def test_recovers_true_coefficients(self, exact_regression_data, method):
        """All solve methods recover the generating coefficients."""
        X, y, beta_true = exact_regression_data

        est = fit_ols(y, X, method=method)

        np.testing.assert_allclose(est.coefficients, beta_true, atol=1e-9)
        assert est.rss == pytest.approx(0.0, abs=1e-12)
        assert est.method == method

    def test_single_predictor_as_matrix_column(self):
        """A (n, 1) matrix and a 1-D vector give the same fit."""
        x = np.array([1.0, 2.0, 3.0, 4.0, 5.0])
        y = 4.0 - 0.5 * x

        est_vec = fit_ols(y, x)
        est_mat = fit_ols(y, x[:, np.newaxis])

        np.testing.assert_allclose(est_vec.coefficients, [4.0, -0.5], atol=1e-9)
        np.testing.assert_allclose(est_vec.coefficients, est_mat.coefficients)


class TestResultStructure:
    """Shapes, statistics and immutability of OLSEstimate."""

    def test_shapes(self, simple_regression_data):
        X, y, _ = simple_regression_data
        n, p = X.shape

        est = fit_ols(y, X)

        assert isinstance(est, OLSEstimate)
        assert est.coefficients.shape == (p + 1,)
        assert est.fitted_values.shape == (n,)
        assert est.residuals.shape == (n,)
        assert est.n_obs == n
        assert est.n_predictors == p
        assert est.rank == p + 1
        assert est.df_residual == n - p - 1

    def test_variance_estimates(self, simple_regression_data):
        X, y, _ = simple_regression_data
        n, p = X.shape

        est = fit_ols(y, X)

        rss = np.sum((y - est.fitted_values) ** 2)
        assert est.rss == pytest.approx(rss, rel=1e-12)
        assert est.sigma2_ml == pytest.approx(rss / n, rel=1e-12)
        assert est.sigma2 == pytest.approx(rss / (n - p - 1), rel=1e-12)
        assert est.sigma == pytest.approx(np.sqrt(est.sigma2))
        assert est.sigma2_ml <= est.sigma2

    def test_residuals_are_observed_minus_fitted(self, simple_regression_data):
        X, y, _ = simple_regression_data

        est = fit_ols(y, X)

        np.testing.assert_allclose(est.residuals, y - est.fitted_values, atol=1e-12)
        np.testing.assert_allclose(
            est.fitted_values, build_design_matrix(X) @ est.coefficients, atol=1e-12
        )

    def test_residuals_orthogonal_to_design(self, simple_regression_data):
        """Normal equations hold: X'e = 0."""
        X, y, _ = simple_regression_data

        est = fit_ols(y, X)

        np.testing.assert_allclose(
            build_design_matrix(X).T @ est.residuals, 0, atol=1e-10
        )

    def test_noisy_fit_close_to_truth(self, simple_regression_data):
        X, y, beta_true = simple_regression_data

        est = fit_ols(y, X)

        assert np.allclose(est.coefficients, beta_true, atol=0.1)
        assert est.sigma2 == pytest.approx(0.01, rel=0.5)

    def test_as_tuple(self, simple_regression_data):
        X, y, _ = simple_regression_data

        est = fit_ols(y, X)
        coef, fitted, resid, rss, s2_ml, s2 = est.as_tuple()

        assert coef is est.coefficients
        assert fitted is est.fitted_values
        assert resid is est.residuals
        assert (rss, s2_ml, s2) == (est.rss, est.sigma2_ml, est.sigma2)

    def test_arrays_are_read_only(self, simple_regression_data):
        X, y, _ = simple_regression_data

        est = fit_ols(y, X)

        with pytest.raises(ValueError):
            est.coefficients[0] = 0.0
        with pytest.raises(ValueError):
            est.residuals[0] = 0.0

    def test_estimate_is_frozen(self, simple_regression_data):
        X, y, _ = simple_regression_data

        est = fit_ols(y, X)

        with pytest.raises(dataclasses.FrozenInstanceError):
            est.rss = 0.0

    def test_inputs_not_modified(self, simple_regression_data):
        X, y, _ = simple_regression_data
        X_copy, y_copy = X.copy(), y.copy()

        fit_ols(y, X)

        np.testing.assert_array_equal(X, X_copy)
        np.testing.assert_array_equal(y, y_copy)

    @pytest.mark.parametrize("method", METHODS)
    def test_cov_unscaled_is_inverse_gram(self, simple_regression_data, method):
        X, y, _ = simple_regression_data
        X_design = build_design_matrix(X)

        est = fit_ols(y, X, method=method)

        np.testing.assert_allclose(
            est.cov_unscaled, np.linalg.inv(X_design.T @ X_design), rtol=1e-8, atol=1e-12
        )
        assert not est.cov_unscaled.flags.writeable

    def test_repr(self):
        est = estimate([3, 5, 7, 9], [1, 2, 3, 4])
        assert repr(est).startswith("OLSEstimate(n=4, p=1")


class TestNumericalAgreement:
    """Solve methods agree with each other and with NumPy."""

    def test_idempotent(self, simple_regression_data):
        X, y, _ = simple_regression_data

        est1 = fit_ols(y, X)
        est2 = fit_ols(y, X)

        np.testing.assert_allclose(est1.coefficients, est2.coefficients, rtol=1e-14, atol=0)
        np.testing.assert_allclose(est1.residuals, est2.residuals, rtol=1e-14, atol=1e-15)
        assert est1.rss == pytest.approx(est2.rss, rel=1e-14)

    def test_matches_numpy_lstsq(self, simple_regression_data):
        X, y, _ = simple_regression_data
        X_design = build_design_matrix(X)

        est = fit_ols(y, X)
        beta_np, rss_np, rank_np, _ = np.linalg.lstsq(X_design, y, rcond=None)

        np.testing.assert_allclose(est.coefficients, beta_np, rtol=1e-10, atol=1e-12)
        assert est.rss == pytest.approx(rss_np[0], rel=1e-10)
        assert est.rank == rank_np

    @pytest.mark.parametrize("method", ['cholesky', 'inv'])
    def test_methods_agree_with_qr(self, simple_regression_data, method):
        X, y, _ = simple_regression_data

        est_qr = fit_ols(y, X, method='qr')
        est_other = fit_ols(y, X, method=method)

        np.testing.assert_allclose(est_qr.coefficients, est_other.coefficients,
                                   rtol=1e-8, atol=1e-10)
        assert est_qr.rss == pytest.approx(est_other.rss, rel=1e-8)

    def test_estimate_matches_fit_ols(self, simple_regression_data):
        """Column-wise and matrix forms give the same fit."""
        X, y, _ = simple_regression_data

        est_cols = estimate(y, X[:, 0], X[:, 1], X[:, 2])
        est_mat = fit_ols(y, X)

        np.testing.assert_allclose(est_cols.coefficients, est_mat.coefficients)

    def test_accepts_lists(self):
        est = fit_ols([1.0, 3.0, 2.0, 5.0, 4.0], [[1, 0], [2, 1], [3, 0], [4, 1], [5, 0]])
        assert est.coefficients.shape == (3,)


class TestErrors:
    """Every contract violation surfaces as a typed error."""

    def test_dimension_mismatch(self):
        """Response length 10, predictor length 9."""
        y = np.arange(10.0)
        x = np.arange(9.0)

        with pytest.raises(DimensionMismatch) as exc_info:
            estimate(y, x)

        assert exc_info.value.expected == 10
        assert exc_info.value.got == 9

    def test_dimension_mismatch_matrix(self):
        with pytest.raises(DimensionMismatch, match="9 rows"):
            fit_ols(np.arange(10.0), np.ones((9, 2)))

    def test_dimension_mismatch_names_predictor(self):
        y = np.arange(10.0)
        with pytest.raises(DimensionMismatch, match="x2"):
            estimate(y, np.arange(10.0), np.arange(8.0))

    def test_length_checked_before_non_finite(self):
        """A short predictor full of NaN is a dimension error first."""
        y = np.arange(10.0)

        with pytest.raises(DimensionMismatch):
            estimate(y, [np.nan] * 9)
        with pytest.raises(DimensionMismatch, match="x2"):
            estimate(y, np.r_[np.nan, np.arange(9.0)], [np.inf] * 9)
        with pytest.raises(DimensionMismatch):
            fit_ols(y, np.full((9, 2), np.nan))

    def test_non_finite_response_with_short_predictor(self):
        y = np.r_[np.nan, np.arange(9.0)]

        with pytest.raises(DimensionMismatch):
            estimate(y, np.arange(9.0))
        with pytest.raises(DimensionMismatch):
            fit_ols(y, np.arange(9.0))

    def test_insufficient_observations(self):
        """n=2 with p=2 leaves no residual degrees of freedom."""
        with pytest.raises(InsufficientObservations) as exc_info:
            estimate([1.0, 2.0], [1.0, 2.0], [3.0, 5.0])

        assert exc_info.value.n_obs == 2
        assert exc_info.value.n_predictors == 2

    def test_insufficient_observations_boundary(self):
        """n = p + 1 is rejected, n = p + 2 is accepted."""
        with pytest.raises(InsufficientObservations):
            estimate([1.0, 2.0], [1.0, 2.0])

        est = estimate([1.0, 2.0, 4.0], [1.0, 2.0, 3.0])
        assert est.df_residual == 1

    @pytest.mark.parametrize("method", METHODS)
    def test_singular_constant_multiple(self, method):
        """Second predictor is 3x the first."""
        x1 = np.array([1.0, 2.0, 3.0, 4.0, 5.0, 6.0])
        x2 = 3.0 * x1
        y = np.array([1.1, 1.9, 3.2, 3.8, 5.1, 6.0])

        with pytest.raises(SingularDesignMatrix) as exc_info:
            estimate(y, x1, x2, method=method)

        assert exc_info.value.rank == 2
        assert exc_info.value.n_columns == 3

    def test_singular_collinear_combination(self, collinear_data):
        X, y = collinear_data

        with pytest.raises(SingularDesignMatrix, match="rank 3 < 4"):
            fit_ols(y, X)

    def test_singular_constant_predictor(self):
        """A constant predictor is aliased with the intercept."""
        with pytest.raises(SingularDesignMatrix):
            estimate([1.0, 2.0, 3.0, 4.0], [5.0, 5.0, 5.0, 5.0])

    def test_singular_is_linalg_error(self, collinear_data):
        X, y = collinear_data
        with pytest.raises(np.linalg.LinAlgError):
            fit_ols(y, X)

    def test_no_predictors(self):
        with pytest.raises(ValidationError, match="At least one predictor"):
            estimate([1.0, 2.0, 3.0])

    def test_non_finite_values(self):
        with pytest.raises(ValidationError, match="NaN or Inf"):
            estimate([1.0, np.nan, 3.0, 4.0], [1.0, 2.0, 3.0, 4.0])
        with pytest.raises(ValidationError, match="NaN or Inf"):
            estimate([1.0, 2.0, 3.0, 4.0], [1.0, 2.0, np.inf, 4.0])

    def test_response_must_be_vector(self):
        with pytest.raises(ValidationError, match="1-dimensional"):
            fit_ols(np.ones((4, 2)), np.arange(4.0))

    def test_unknown_method(self):
        with pytest.raises(ValidationError, match="Unknown method"):
            estimate([3, 5, 7, 9], [1, 2, 3, 4], method='svd')

    def test_invalid_backend_type(self):
        with pytest.raises(ValidationError, match="backend"):
            estimate([3, 5, 7, 9], [1, 2, 3, 4], backend=42)

    def test_errors_share_base_class(self):
        assert issubclass(DimensionMismatch, PyOLSError)
        assert issubclass(InsufficientObservations, PyOLSError)
        assert issubclass(SingularDesignMatrix, PyOLSError)
        assert issubclass(DimensionMismatch, ValueError)


class TestPredictorScale:
    """Rank decisions do not depend on the units of the predictors."""

    def test_large_magnitude_predictor(self):
        """y = 1 + 2e-8 x with x in the hundreds of millions."""
        x = np.array([1e8, 2e8, 3e8, 4e8])
        y = [3.0, 5.0, 7.0, 9.0]

        with pytest.warns(UserWarning, match="ill-conditioned"):
            est = estimate(y, x)

        assert est.rank == 2
        np.testing.assert_allclose(est.coefficients, [1.0, 2e-8], rtol=1e-6)
        np.testing.assert_allclose(est.fitted_values, y, rtol=1e-9)

    def test_timestamp_predictor(self, rng):
        t = np.linspace(1.6e9, 1.7e9, 100)
        y = 5.0 + 3e-8 * (t - 1.6e9) + 0.01 * rng.standard_normal(100)

        est = estimate(y, t, check_condition=False)

        assert est.rank == 2
        # Same fitted values as the regression on centred time
        centred = estimate(y, t - t.mean(), check_condition=False)
        np.testing.assert_allclose(est.fitted_values, centred.fitted_values, rtol=1e-8)
        assert est.rss == pytest.approx(centred.rss, rel=1e-6)

    def test_rescaling_predictor_rescales_slope(self, simple_regression_data):
        X, y, _ = simple_regression_data
        scale = np.array([1e9, 1.0, 1e-6])

        est = fit_ols(y, X)
        est_scaled = fit_ols(y, X * scale, check_condition=False)

        assert est_scaled.rank == est.rank
        np.testing.assert_allclose(est_scaled.coefficients[1:] * scale, est.coefficients[1:], rtol=1e-8)
        np.testing.assert_allclose(est_scaled.fitted_values, est.fitted_values, rtol=1e-8)

    def test_rescaled_collinear_still_singular(self, collinear_data):
        X, y = collinear_data

        with pytest.raises(SingularDesignMatrix):
            fit_ols(y, X * np.array([1e8, 1.0, 1e-4]), check_condition=False)


class TestConditioningWarning:
    """Full-rank but ill-conditioned designs warn instead of failing."""

    def test_near_collinear_warns(self, rng):
        n = 100
        x1 = rng.standard_normal(n)
        x2 = x1 + 1e-7 * rng.standard_normal(n)
        y = x1 + rng.standard_normal(n)

        with pytest.warns(UserWarning, match="ill-conditioned"):
            est = estimate(y, x1, x2, tol=1e-10)

        assert est.rank == 3

    def test_near_collinear_warning_can_be_disabled(self, rng):
        import warnings

        n = 100
        x1 = rng.standard_normal(n)
        x2 = x1 + 1e-7 * rng.standard_normal(n)
        y = x1 + rng.standard_normal(n)

        with warnings.catch_warnings():
            warnings.simplefilter("error")
            estimate(y, x1, x2, tol=1e-10, check_condition=False)

    def test_well_conditioned_does_not_warn(self, simple_regression_data):
        import warnings

        X, y, _ = simple_regression_data
        with warnings.catch_warnings():
            warnings.simplefilter("error")
            fit_ols(y, X)
