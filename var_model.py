# ============================================================================
# var_model.py - Lag Selection, VAR and VEC Model Estimation Module
# ============================================================================
"""
This module handles:
- VAR lag-order selection by information criteria
- Choosing between a VAR in levels and a VEC model
- VEC model estimation (rank 1, maximum likelihood)
- Coefficient tables for the cointegrating vector and adjustment speeds
"""

import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd
from statsmodels.tsa.api import VAR, VECM

from errors import EstimationError, SpecificationError

logger = logging.getLogger(__name__)

CRITERION_LABELS = {
    'aic': 'AIC(n)',
    'hqic': 'HQ(n)',
    'bic': 'SC(n)',
    'fpe': 'FPE(n)',
}

# ============================================================================
# LAG ORDER SELECTION
# ============================================================================

@dataclass(frozen=True)
class LagOrderSelection:
    """Information criteria by VAR lag and the orders derived from them"""
    criteria: pd.DataFrame
    criterion: str
    var_lag: int

    @property
    def k_ar_diff(self):
        # the VEC model counts lagged differences, one fewer than the VAR lags
        return max(self.var_lag - 1, 0)

    @property
    def selected(self):
        """Arg-min lag of every criterion over lags 1..max"""
        candidates = self.criteria.loc[1:]
        return {CRITERION_LABELS[c]: int(candidates[c].idxmin()) for c in self.criteria.columns}


def select_lag_order(data, max_lags=12, criterion='hqic'):
    """
    Fit VARs with a constant at every lag 0..max_lags on a common sample and
    pick the lag in 1..max_lags minimising `criterion`.
    """
    if criterion not in CRITERION_LABELS:
        raise SpecificationError(f"Unknown lag criterion '{criterion}'")
    if len(data) <= max_lags + data.shape[1] * max_lags + 1:
        raise SpecificationError(f"{len(data)} observations are too few to compare {max_lags} VAR lags")

    try:
        order = VAR(data).select_order(maxlags=max_lags, trend='c')
    except np.linalg.LinAlgError as e:
        raise EstimationError(f"Lag order selection failed: {e}") from e

    criteria = pd.DataFrame({c: order.ics[c] for c in CRITERION_LABELS})
    criteria.index.name = 'lag'

    var_lag = int(criteria[criterion].loc[1:].idxmin())
    selection = LagOrderSelection(criteria=criteria, criterion=criterion, var_lag=var_lag)
    logger.info(f"Lag selection ({CRITERION_LABELS[criterion]}): VAR lag {var_lag}, "
                f"VECM lagged differences {selection.k_ar_diff}")
    return selection

# ============================================================================
# MODEL FAMILY
# ============================================================================

def choose_model_family(stationarity, cointegration):
    """
    'VAR' when every series is stationary in levels, 'VECM' when the pair is
    cointegrated, otherwise 'inconclusive'.
    """
    if all(result.stationary for result in stationarity):
        family = 'VAR'
    elif cointegration.cointegrated:
        family = 'VECM'
    else:
        family = 'inconclusive'
    logger.info(f"Model family: {family}")
    return family

# ============================================================================
# ESTIMATION
# ============================================================================

def fit_vecm(data, k_ar_diff, coint_rank=1, deterministic='co'):
    """Maximum-likelihood VEC model; any numerical failure is fatal"""
    if coint_rank < 1 or coint_rank >= data.shape[1]:
        raise SpecificationError(f"Cointegration rank {coint_rank} is invalid for {data.shape[1]} variables")
    try:
        model = VECM(
            data,
            k_ar_diff=int(k_ar_diff),
            coint_rank=int(coint_rank),
            deterministic=deterministic
        )
        result = model.fit()
    except (np.linalg.LinAlgError, ValueError) as e:
        raise EstimationError(f"VEC model estimation failed: {e}") from e

    if not np.all(np.isfinite(result.beta)) or not np.all(np.isfinite(result.alpha)):
        raise EstimationError("VEC model estimation produced non-finite coefficients")

    logger.info(f"VECM fitted: rank={coint_rank}, lagged differences={k_ar_diff}, "
                f"nobs={result.nobs}, llf={result.llf:.2f}")
    return result


def fit_var(data, lags):
    """VAR in levels with a constant"""
    try:
        result = VAR(data).fit(int(lags), trend='c')
    except (np.linalg.LinAlgError, ValueError) as e:
        raise EstimationError(f"VAR estimation failed: {e}") from e
    logger.info(f"VAR fitted: lags={lags}, nobs={result.nobs}, stable={result.is_stable()}")
    return result

# ============================================================================
# COEFFICIENT TABLES
# ============================================================================

def half_life(alpha):
    """Periods for half of a deviation to close, for -1 < alpha < 0"""
    if -1 < alpha < 0:
        return np.log(0.5) / np.log(1 + alpha)
    return np.nan


def adjustment_table(vecm_result, names, significance=0.05):
    """Adjustment coefficients (α) of the first cointegrating relation"""
    rows = []
    for i, var in enumerate(names):
        alpha = vecm_result.alpha[i, 0]
        pvalue = vecm_result.pvalues_alpha[i, 0]
        significant = pvalue < significance

        if significant and alpha < 0:
            role = 'Error-correcting'
        elif significant:
            role = 'Diverging'
        else:
            role = 'Long-run driver (weakly exogenous)'

        rows.append({
            'Variable': var,
            'α': alpha,
            'Std. Error': vecm_result.stderr_alpha[i, 0],
            't-statistic': vecm_result.tvalues_alpha[i, 0],
            'p-value': pvalue,
            'Significant': significant,
            'Half-life (periods)': half_life(alpha) if significant else np.nan,
            'Role': role,
        })
    return pd.DataFrame(rows).set_index('Variable')


def cointegrating_vector_table(vecm_result, names):
    """Cointegrating vector (β), normalised on the first variable"""
    stderr = np.asarray(vecm_result.stderr_beta)[:, 0]
    # the normalised entry is fixed, not estimated
    fixed = stderr == 0
    return pd.DataFrame({
        'β': vecm_result.beta[:, 0],
        'Std. Error': np.where(fixed, np.nan, stderr),
        'p-value': np.where(fixed, np.nan, np.asarray(vecm_result.pvalues_beta)[:, 0]),
    }, index=pd.Index(names, name='Variable'))


def deterministic_table(vecm_result, names):
    """Intercepts of the short-run equations"""
    if vecm_result.det_coef.size == 0:
        return pd.DataFrame(columns=['Intercept', 'Std. Error', 'p-value'])
    return pd.DataFrame({
        'Intercept': vecm_result.det_coef[:, 0],
        'Std. Error': vecm_result.stderr_det_coef[:, 0],
        'p-value': vecm_result.pvalues_det_coef[:, 0],
    }, index=pd.Index(names, name='Equation'))


def equilibrium_equation(beta, names):
    """Human-readable long-run relation, e.g. 'w - 0.031·p = 0'"""
    beta_norm = beta / beta[0]
    terms = [names[0]]
    for coef, var in zip(beta_norm[1:], names[1:]):
        sign = '-' if coef < 0 else '+'
        terms.append(f"{sign} {abs(coef):.4f}·{var}")
    return " ".join(terms) + " = 0"
