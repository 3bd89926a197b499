"""
Tests for impulse responses, variance decomposition, the ECT path and the figures.
"""

from types import SimpleNamespace

import numpy as np
import pytest

from errors import EstimationError, SpecificationError
from irf_fevd import (
    ImpulseResponse,
    asymptotic_irf_bands,
    bootstrap_irf_bands,
    error_correction_path,
    impulse_responses,
    plot_error_correction_path,
    plot_fevd,
    plot_irf,
    plot_series,
    var_variance_decomposition,
    variance_decomposition,
)
from var_model import fit_var, fit_vecm

NAMES = ['Minimum Wage', 'Home Price Index']


class TestImpulseResponses:
    """Orthogonalised IRF from the VAR representation"""

    def setup_method(self):
        from conftest import cointegrated_pair
        self.data = cointegrated_pair()
        self.vecm = fit_vecm(self.data, k_ar_diff=1)

    def test_shape_and_horizons(self):
        irf = impulse_responses(self.vecm, NAMES, steps=50)
        assert irf.responses.shape == (51, 2, 2)
        assert irf.steps == 50
        assert irf.lower is None

    def test_impact_matrix_is_cholesky_factor(self):
        irf = impulse_responses(self.vecm, NAMES, steps=5)
        np.testing.assert_allclose(irf.responses[0], np.linalg.cholesky(self.vecm.sigma_u))
        assert irf.responses[0, 0, 1] == 0

    def test_frame_for_one_impulse(self):
        irf = impulse_responses(self.vecm, NAMES, steps=10)
        frame = irf.frame('Home Price Index')
        assert list(frame.columns) == NAMES
        assert len(frame) == 11
        np.testing.assert_array_equal(frame['Minimum Wage'].to_numpy(), irf.responses[:, 0, 1])

    def test_responses_match_statsmodels_irf(self):
        irf = impulse_responses(self.vecm, NAMES, steps=10)
        np.testing.assert_array_equal(irf.responses, self.vecm.irf(10).orth_irfs)

    def test_singular_covariance_raises(self):
        def singular_irf(steps):
            raise np.linalg.LinAlgError("Matrix is not positive definite")
        with pytest.raises(EstimationError):
            impulse_responses(SimpleNamespace(irf=singular_irf), NAMES, steps=4)

    def test_bootstrap_bands_are_reproducible(self):
        first = bootstrap_irf_bands(self.vecm, self.data, 1, NAMES, steps=10, runs=5, seed=1)
        second = bootstrap_irf_bands(self.vecm, self.data, 1, NAMES, steps=10, runs=5, seed=1)
        np.testing.assert_array_equal(first.lower, second.lower)
        np.testing.assert_array_equal(first.upper, second.upper)
        assert np.all(first.lower <= first.upper)
        assert first.confidence_level == 0.95

    def test_bootstrap_with_no_runs_returns_point_estimate(self):
        irf = bootstrap_irf_bands(self.vecm, self.data, 1, NAMES, steps=10, runs=0)
        assert irf.lower is None
        assert irf.responses.shape == (11, 2, 2)

    def test_asymptotic_bands_for_var(self, stationary_data):
        var = fit_var(stationary_data, 1)
        irf = asymptotic_irf_bands(var, NAMES, steps=10)
        assert irf.lower.shape == irf.responses.shape
        assert np.all(irf.lower <= irf.responses + 1e-12)
        assert np.all(irf.responses <= irf.upper + 1e-12)


class TestVarianceDecomposition:
    """FEVD shares"""

    def setup_method(self):
        from conftest import cointegrated_pair
        self.vecm = fit_vecm(cointegrated_pair(), k_ar_diff=1)
        self.irf = impulse_responses(self.vecm, NAMES, steps=30)

    def test_shares_sum_to_one_at_every_horizon(self):
        fevd = variance_decomposition(self.irf.responses, NAMES, steps=30)
        for var in NAMES:
            shares = fevd[var]
            assert list(shares.index) == list(range(1, 31))
            np.testing.assert_allclose(shares.sum(axis=1).to_numpy(), 1.0)
            assert (shares.to_numpy() >= 0).all()

    def test_first_variable_own_share_at_impact(self):
        fevd = variance_decomposition(self.irf.responses, NAMES, steps=30)
        # Cholesky ordering: the first variable does not react to the second on impact
        assert fevd['Minimum Wage'].loc[1, 'Minimum Wage'] == pytest.approx(1.0)

    def test_var_fevd_matches_response_based_shares(self, stationary_data):
        var = fit_var(stationary_data, 2)
        from_statsmodels = var_variance_decomposition(var, NAMES, steps=12)
        from_responses = variance_decomposition(impulse_responses(var, NAMES, 12).responses, NAMES, steps=12)
        for name in NAMES:
            assert list(from_statsmodels[name].index) == list(range(1, 13))
            np.testing.assert_allclose(from_statsmodels[name].to_numpy(),
                                       from_responses[name].to_numpy(), atol=1e-10)
            np.testing.assert_allclose(from_statsmodels[name].sum(axis=1).to_numpy(), 1.0)

    def test_horizon_longer_than_irf_raises(self):
        with pytest.raises(SpecificationError):
            variance_decomposition(self.irf.responses, NAMES, steps=40)


class TestErrorCorrectionPath:
    """β'y over the sample"""

    def test_length_index_and_mean(self, cointegrated_data):
        beta = np.array([1.0, -0.05])
        ect = error_correction_path(cointegrated_data, beta)
        assert len(ect.values) == len(cointegrated_data)
        assert ect.values.index.equals(cointegrated_data.index)
        assert ect.mean == pytest.approx(ect.values.mean())
        # wage = 2 + 0.05 * price + gap
        assert ect.mean == pytest.approx(2.0, abs=0.01)

    def test_beta_length_must_match(self, cointegrated_data):
        with pytest.raises(SpecificationError):
            error_correction_path(cointegrated_data, np.array([1.0, -0.05, 0.2]))


class TestPlots:
    """Figures built for the report"""

    def setup_method(self):
        rng = np.random.default_rng(0)
        responses = rng.normal(size=(11, 2, 2))
        self.irf = ImpulseResponse(names=NAMES, responses=responses)
        self.banded = ImpulseResponse(names=NAMES, responses=responses, lower=responses - 1,
                                      upper=responses + 1, confidence_level=0.95)

    def test_irf_traces(self):
        assert len(plot_irf(self.irf).data) == 4
        fig = plot_irf(self.banded)
        assert len(fig.data) == 8
        assert '95% Confidence Bands' in fig.layout.title.text

    def test_fevd_stacked_bars(self):
        fevd = variance_decomposition(self.irf.responses, NAMES, steps=10)
        fig = plot_fevd(fevd)
        assert len(fig.data) == 4
        assert fig.layout.barmode == 'stack'

    def test_ect_figure_has_mean_line(self, cointegrated_data):
        ect = error_correction_path(cointegrated_data, np.array([1.0, -0.05]))
        fig = plot_error_correction_path(ect)
        assert len(fig.data) == 1
        assert len(fig.layout.shapes) == 1

    def test_series_figure(self, cointegrated_data):
        fig = plot_series(cointegrated_data)
        assert [trace.name for trace in fig.data] == NAMES
