"""
End-to-end tests of the analysis pipeline.
"""

import os
from types import SimpleNamespace
from unittest.mock import patch

import numpy as np
import pytest

from config import load_run_context
from errors import SpecificationError
from pipeline import run, run_analysis


class TestVECMRun:
    """Cointegrated unit-root pair goes down the VEC model branch"""

    def setup_method(self):
        from conftest import cointegrated_pair
        self.data = cointegrated_pair()

    def test_full_run(self, context):
        result = run_analysis(self.data, context)
        assert result.family == 'VECM'
        assert result.completed
        assert result.cointegration.cointegrated
        assert not result.stationarity[1].stationary

        assert result.irf.responses.shape == (context.irf_steps + 1, 2, 2)
        assert result.irf.lower is not None
        assert set(result.fevd) == set(context.names)
        for shares in result.fevd.values():
            assert len(shares) == context.fevd_steps
            np.testing.assert_allclose(shares.sum(axis=1).to_numpy(), 1.0)

        assert len(result.ect.values) == len(self.data)
        assert result.ect.mean == pytest.approx(result.ect.values.mean())
        assert result.adjustment.loc['Minimum Wage', 'Role'] == 'Error-correcting'
        assert result.johansen is not None

    def test_vecm_lag_is_one_less_than_var_lag(self, context):
        result = run_analysis(self.data, context)
        assert result.model.k_ar == result.lag_selection.var_lag
        assert result.lag_selection.k_ar_diff == result.lag_selection.var_lag - 1

    def test_identical_input_gives_identical_estimates(self, context):
        first = run_analysis(self.data, context)
        second = run_analysis(self.data.copy(), context)
        np.testing.assert_array_equal(first.model.alpha, second.model.alpha)
        np.testing.assert_array_equal(first.model.beta, second.model.beta)
        np.testing.assert_array_equal(first.irf.lower, second.irf.lower)
        assert first.cointegration.pvalue == second.cointegration.pvalue

    def test_input_frame_is_not_modified(self, context):
        before = self.data.copy()
        run_analysis(self.data, context)
        assert self.data.equals(before)


class TestOtherBranches:

    def test_stationary_pair_uses_var(self, context, stationary_data):
        result = run_analysis(stationary_data, context)
        assert result.family == 'VAR'
        assert result.ect is None
        assert result.irf.lower is not None
        for shares in result.fevd.values():
            np.testing.assert_allclose(shares.sum(axis=1).to_numpy(), 1.0)
        np.testing.assert_allclose(result.fevd['Minimum Wage'].to_numpy(),
                                   result.model.fevd(context.fevd_steps).decomp[0])

    def test_not_cointegrated_is_inconclusive(self, context, random_walk_data):
        with patch('pipeline.engle_granger_test', return_value=SimpleNamespace(cointegrated=False)):
            result = run_analysis(random_walk_data, context)
        assert result.family == 'inconclusive'
        assert not result.completed
        assert result.model is None
        assert result.irf is None

    def test_three_columns_rejected(self, context, cointegrated_data):
        data = cointegrated_data.assign(extra=1.0)
        with pytest.raises(SpecificationError):
            run_analysis(data, context)


@pytest.mark.skipif(not os.getenv('FRED_API_KEY'), reason="FRED_API_KEY not set")
class TestFREDRun:
    """Minimum wage and home prices, 1991-2019, fetched live"""

    def setup_method(self):
        self.result = run(load_run_context())

    def test_levels_have_unit_roots(self):
        assert len(self.result.data) >= 300
        assert all(not ur.stationary for ur in self.result.stationarity)
        assert all(ur.pvalue >= 0.05 for ur in self.result.stationarity)

    def test_wage_and_prices_are_cointegrated(self):
        coint = self.result.cointegration
        assert coint.dependent == 'Minimum Wage'
        assert coint.cointegrated
        assert coint.pvalue == pytest.approx(0.0489, abs=5e-3)
        assert self.result.family == 'VECM'

    def test_vecm_uses_hq_selected_lag(self):
        selection = self.result.lag_selection
        assert selection.criterion == 'hqic'
        assert 1 <= selection.var_lag <= 12
        assert self.result.model.k_ar == selection.var_lag
        assert selection.k_ar_diff == selection.var_lag - 1
