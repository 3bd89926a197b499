# ============================================================================
# cointegration.py - Engle-Granger and Johansen Cointegration Module
# ============================================================================
"""
This module handles:
- The cointegrating (levels) regression of one series on the other
- The residual-based (Engle-Granger) cointegration decision
- The Johansen trace / max-eigenvalue test as a cross-check of the rank
"""

import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd
import statsmodels.api as sm
from statsmodels.tsa.vector_ar.vecm import coint_johansen

from errors import EstimationError, SpecificationError
from statistical_tests import UnitRootResult, adf_regression

logger = logging.getLogger(__name__)

# ============================================================================
# ENGLE-GRANGER RESIDUAL TEST
# ============================================================================

@dataclass(frozen=True)
class CointegrationResult:
    """Levels regression of `dependent` on `regressor` and the ADF test of its residuals"""
    dependent: str
    regressor: str
    regression: pd.DataFrame
    r_squared: float
    residuals: pd.Series
    unit_root: UnitRootResult

    @property
    def cointegrated(self):
        return self.unit_root.stationary

    @property
    def pvalue(self):
        return self.unit_root.pvalue


def cointegrating_regression(y, x):
    """OLS of y on a constant and x"""
    y = pd.Series(y)
    x = pd.Series(x)
    if len(y) != len(x):
        raise SpecificationError(f"Series lengths differ: {len(y)} vs {len(x)}")
    if not y.index.equals(x.index):
        raise SpecificationError("Series must share the same index")
    return sm.OLS(y, sm.add_constant(x, has_constant='add')).fit()


def engle_granger_test(y, x, max_lags=1, criterion='bic', significance=0.05,
                       pvalue_method='regression'):
    """
    Regress y on x and test the residuals for a unit root.

    The pair is cointegrated when the residuals are stationary. The direction
    is fixed by the argument order; regressing x on y can give a different
    answer and is not attempted.
    """
    dependent = y.name if getattr(y, 'name', None) is not None else 'y'
    regressor = x.name if getattr(x, 'name', None) is not None else 'x'

    fit = cointegrating_regression(y, x)
    residuals = pd.Series(np.asarray(fit.resid), index=pd.Series(y).index, name='residuals')

    regression = pd.DataFrame({
        'estimate': fit.params,
        'std_error': fit.bse,
        't_value': fit.tvalues,
        'p_value': fit.pvalues,
    })

    unit_root = adf_regression(
        residuals,
        name=f'residuals({dependent} ~ {regressor})',
        max_lags=max_lags,
        criterion=criterion,
        significance=significance,
        pvalue_method=pvalue_method,
        n_series=2,
    )

    result = CointegrationResult(
        dependent=dependent,
        regressor=regressor,
        regression=regression,
        r_squared=float(fit.rsquared),
        residuals=residuals,
        unit_root=unit_root,
    )
    logger.info(f"Engle-Granger {dependent} ~ {regressor}: p={result.pvalue:.4f} -> "
                f"{'cointegrated' if result.cointegrated else 'not cointegrated'}")
    return result

# ============================================================================
# JOHANSEN COINTEGRATION TEST
# ============================================================================

@dataclass(frozen=True)
class JohansenResult:
    """Trace and max-eigenvalue statistics by null rank 0..K-1 with their 95% critical values"""
    trace: np.ndarray
    trace_cv: np.ndarray
    max_eigen: np.ndarray
    max_eigen_cv: np.ndarray

    @property
    def rank(self):
        """Number of leading trace-test rejections"""
        rejected = self.trace > self.trace_cv
        return int(np.argmin(rejected)) if not rejected.all() else len(rejected)


def perform_johansen_test(data, det_order=0, k_ar_diff=1):
    """Johansen test used to cross-check the fixed cointegrating rank"""
    try:
        result = coint_johansen(np.asarray(data, dtype=float), det_order=det_order, k_ar_diff=k_ar_diff)
    except np.linalg.LinAlgError as e:
        raise EstimationError(f"Johansen test failed: {e}") from e

    johansen = JohansenResult(
        trace=result.lr1,
        trace_cv=result.cvt[:, 1],
        max_eigen=result.lr2,
        max_eigen_cv=result.cvm[:, 1],
    )
    logger.info(f"Johansen trace test suggests rank {johansen.rank}")
    return johansen


def johansen_table(johansen):
    """Trace and max-eigenvalue statistics by null rank"""
    return pd.DataFrame({
        'H0: rank ≤': list(range(len(johansen.trace))),
        'Trace Statistic': johansen.trace,
        'Trace 95% CV': johansen.trace_cv,
        'Trace Reject (5%)': johansen.trace > johansen.trace_cv,
        'Max-Eigen Statistic': johansen.max_eigen,
        'Max-Eigen 95% CV': johansen.max_eigen_cv,
        'Max-Eigen Reject (5%)': johansen.max_eigen > johansen.max_eigen_cv,
    }).set_index('H0: rank ≤')
