# ============================================================================
# pipeline.py - Analysis Pipeline Module
# ============================================================================
"""
Runs the stages in order for one RunContext:

    unit-root tests -> cointegration test -> lag selection
        -> model family -> VEC (or VAR) model -> IRF / FEVD / ECT path
"""

import logging
from dataclasses import dataclass

import pandas as pd

from config import load_run_context
from data_loader import fetch_data
from errors import SpecificationError
from statistical_tests import adf_regression, perform_kpss_test
from cointegration import engle_granger_test, perform_johansen_test
from var_model import (
    select_lag_order,
    choose_model_family,
    fit_vecm,
    fit_var,
    adjustment_table,
    cointegrating_vector_table,
    deterministic_table,
)
from irf_fevd import (
    asymptotic_irf_bands,
    bootstrap_irf_bands,
    error_correction_path,
    impulse_responses,
    var_variance_decomposition,
    variance_decomposition,
)

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AnalysisResult:
    """Every stage output of one run; model-dependent fields are None when not reached"""
    context: object
    data: pd.DataFrame
    stationarity: tuple
    kpss: tuple
    cointegration: object
    lag_selection: object
    family: str
    johansen: object = None
    model: object = None
    cointegrating_vector: pd.DataFrame = None
    adjustment: pd.DataFrame = None
    deterministic: pd.DataFrame = None
    irf: object = None
    fevd: dict = None
    ect: object = None

    @property
    def completed(self):
        return self.family != 'inconclusive'


def run_analysis(data, context):
    """All statistics for an aligned two-column DataFrame (wage first, price second)"""
    if data.shape[1] != 2:
        raise SpecificationError(f"Expected two series, got {data.shape[1]}")
    data = data.copy()
    data.columns = context.names
    wage_name, price_name = context.names

    test_options = dict(
        max_lags=context.adf_max_lags,
        criterion=context.adf_criterion,
        significance=context.significance,
        pvalue_method=context.pvalue_method,
    )

    stationarity = tuple(adf_regression(data[col], name=col, **test_options) for col in data.columns)
    kpss = tuple(perform_kpss_test(data[col], col, significance=context.significance)
                 for col in data.columns)

    cointegration = engle_granger_test(data[wage_name], data[price_name], **test_options)

    lag_selection = select_lag_order(data, max_lags=context.var_max_lags, criterion=context.lag_criterion)
    family = choose_model_family(stationarity, cointegration)

    base = dict(
        context=context,
        data=data,
        stationarity=stationarity,
        kpss=kpss,
        cointegration=cointegration,
        lag_selection=lag_selection,
        family=family,
    )

    if family == 'inconclusive':
        logger.warning("Neither a levels VAR nor a VEC model is supported by the tests")
        return AnalysisResult(**base)

    names = context.names

    if family == 'VAR':
        model = fit_var(data, lag_selection.var_lag)
        irf = asymptotic_irf_bands(model, names, steps=context.irf_steps,
                                   confidence_level=context.confidence_level)
        fevd = var_variance_decomposition(model, names, steps=context.fevd_steps)
        return AnalysisResult(model=model, irf=irf, fevd=fevd, **base)

    k_ar_diff = lag_selection.k_ar_diff
    johansen = perform_johansen_test(data, det_order=-1 if context.deterministic == 'n' else 0,
                                     k_ar_diff=k_ar_diff)
    model = fit_vecm(data, k_ar_diff, coint_rank=context.coint_rank, deterministic=context.deterministic)

    irf = bootstrap_irf_bands(
        model, data, k_ar_diff, names,
        steps=context.irf_steps,
        runs=context.bootstrap_runs,
        confidence_level=context.confidence_level,
        coint_rank=context.coint_rank,
        deterministic=context.deterministic,
        seed=context.seed,
    )
    fevd = variance_decomposition(impulse_responses(model, names, context.fevd_steps).responses,
                                  names, steps=context.fevd_steps)
    ect = error_correction_path(data, model.beta[:, 0])

    return AnalysisResult(
        johansen=johansen,
        model=model,
        cointegrating_vector=cointegrating_vector_table(model, names),
        adjustment=adjustment_table(model, names, significance=context.significance),
        deterministic=deterministic_table(model, names),
        irf=irf,
        fevd=fevd,
        ect=ect,
        **base
    )


def run(context=None, client=None):
    """Load the configuration, fetch the data and run the analysis"""
    if context is None:
        context = load_run_context()
    data = fetch_data(context, client=client)
    return run_analysis(data, context)
