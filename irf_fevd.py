# ============================================================================
# irf_fevd.py - Impulse Responses, Variance Decomposition and ECT Module
# ============================================================================
"""
This module handles:
- Orthogonalised impulse response functions (IRF) from a fitted VAR or VEC model
- Bootstrap confidence bands for VEC-model IRFs, asymptotic bands for VARs
- Forecast error variance decomposition (FEVD)
- The error-correction-term path
- Plotly figures for all of the above
"""

import logging
from dataclasses import dataclass

import numpy as np
import pandas as pd
from scipy import stats
import plotly.graph_objects as go
from plotly.subplots import make_subplots

from errors import EstimationError, SpecificationError
from var_model import fit_vecm

logger = logging.getLogger(__name__)

# ============================================================================
# IMPULSE RESPONSES
# ============================================================================

@dataclass(frozen=True)
class ImpulseResponse:
    """
    Orthogonalised responses indexed [horizon, response, impulse], horizon 0..steps.
    `lower` / `upper` are None when no bands were computed.
    """
    names: list
    responses: np.ndarray
    lower: np.ndarray = None
    upper: np.ndarray = None
    confidence_level: float = None

    @property
    def steps(self):
        return self.responses.shape[0] - 1

    def frame(self, impulse):
        """Responses of every variable to a shock in `impulse`"""
        j = self.names.index(impulse)
        return pd.DataFrame(self.responses[:, :, j], columns=self.names,
                            index=pd.RangeIndex(self.steps + 1, name='horizon'))


def orthogonal_impulse_responses(result, steps):
    """Cholesky-orthogonalised responses of a fitted VAR or VEC model; shape (steps + 1, K, K)"""
    try:
        return np.asarray(result.irf(steps).orth_irfs)
    except np.linalg.LinAlgError as e:
        raise EstimationError(f"Residual covariance is not positive definite: {e}") from e


def impulse_responses(result, names, steps=50):
    """Point IRF of a fitted VECMResults or VARResults"""
    return ImpulseResponse(names=list(names), responses=orthogonal_impulse_responses(result, steps))


def simulate_levels(coefs, intercept, residuals, initial, nobs, rng):
    """Generate a levels path from a VAR, resampling centred residuals"""
    k_ar = coefs.shape[0]
    centred = residuals - residuals.mean(axis=0)
    path = np.empty((nobs, coefs.shape[1]))
    path[:k_ar] = initial[:k_ar]
    draws = rng.integers(0, len(centred), size=nobs - k_ar)
    for t in range(k_ar, nobs):
        value = intercept + centred[draws[t - k_ar]]
        for i in range(k_ar):
            value = value + coefs[i] @ path[t - 1 - i]
        path[t] = value
    return path


def bootstrap_irf_bands(vecm_result, data, k_ar_diff, names, steps=50, runs=100,
                        confidence_level=0.95, coint_rank=1, deterministic='co', seed=12345):
    """
    IRF with residual-bootstrap percentile bands for a VEC model.

    Each replication simulates a levels path from the fitted model, refits
    the VEC model with the same specification and recomputes the
    orthogonalised responses.
    """
    point = impulse_responses(vecm_result, names, steps)
    if runs == 0:
        return point
    if deterministic not in ('co', 'n'):
        raise SpecificationError(f"Bootstrap does not support deterministic term '{deterministic}'")

    coefs = np.asarray(vecm_result.var_rep)
    if deterministic == 'co':
        intercept = np.asarray(vecm_result.det_coef)[:, 0]
    else:
        intercept = np.zeros(coefs.shape[1])
    residuals = np.asarray(vecm_result.resid)
    levels = np.asarray(data, dtype=float)

    rng = np.random.default_rng(seed)
    draws = np.empty((runs,) + point.responses.shape)
    for run in range(runs):
        simulated = simulate_levels(coefs, intercept, residuals, levels, len(levels), rng)
        refit = fit_vecm(pd.DataFrame(simulated, columns=names), k_ar_diff,
                         coint_rank=coint_rank, deterministic=deterministic)
        draws[run] = orthogonal_impulse_responses(refit, steps)

    tail = (1 - confidence_level) / 2 * 100
    lower = np.percentile(draws, tail, axis=0)
    upper = np.percentile(draws, 100 - tail, axis=0)
    logger.info(f"Bootstrap IRF bands from {runs} replications at {confidence_level:.0%}")
    return ImpulseResponse(names=list(names), responses=point.responses, lower=lower,
                           upper=upper, confidence_level=confidence_level)


def asymptotic_irf_bands(var_result, names, steps=50, confidence_level=0.95):
    """IRF of a levels VAR with asymptotic standard-error bands"""
    irf = var_result.irf(steps)
    responses = np.asarray(irf.orth_irfs)
    irf_se = irf.stderr(orth=True)

    z_critical = stats.norm.ppf(1 - (1 - confidence_level) / 2)
    return ImpulseResponse(
        names=list(names),
        responses=responses,
        lower=responses - z_critical * irf_se,
        upper=responses + z_critical * irf_se,
        confidence_level=confidence_level
    )

# ============================================================================
# FORECAST ERROR VARIANCE DECOMPOSITION
# ============================================================================

def _share_frames(shares, names):
    """{response: DataFrame(index=horizon 1..steps, columns=shocks)} from shares[horizon, response, shock]"""
    horizons = pd.RangeIndex(1, shares.shape[0] + 1, name='horizon')
    return {
        var: pd.DataFrame(shares[:, i, :], index=horizons, columns=list(names))
        for i, var in enumerate(names)
    }


def variance_decomposition(orth_irfs, names, steps=30):
    """
    Share of each shock in each variable's forecast error variance, built
    from orthogonalised responses. VECMResults has no FEVD of its own.

    Returns {response: DataFrame(index=horizon 1..steps, columns=shocks)};
    every row sums to one.
    """
    orth_irfs = np.asarray(orth_irfs)
    if orth_irfs.shape[0] < steps:
        raise SpecificationError(f"Need at least {steps} IRF horizons, got {orth_irfs.shape[0]}")

    contributions = np.cumsum(orth_irfs[:steps] ** 2, axis=0)
    mse = contributions.sum(axis=2, keepdims=True)
    return _share_frames(contributions / mse, names)


def var_variance_decomposition(var_result, names, steps=30):
    """FEVD of a levels VAR from statsmodels, in the same layout as variance_decomposition"""
    decomp = np.asarray(var_result.fevd(steps).decomp)
    # decomp is [response, horizon, shock]
    return _share_frames(decomp.transpose(1, 0, 2), names)

# ============================================================================
# ERROR CORRECTION TERM
# ============================================================================

@dataclass(frozen=True)
class ErrorCorrectionPath:
    """β'y_t for every observation and its sample mean"""
    values: pd.Series
    mean: float


def error_correction_path(data, beta):
    """Apply the cointegrating vector to the undifferenced series"""
    beta = np.asarray(beta, dtype=float).reshape(-1)
    if beta.shape[0] != data.shape[1]:
        raise SpecificationError(f"β has {beta.shape[0]} entries for {data.shape[1]} variables")
    values = pd.Series(np.asarray(data, dtype=float) @ beta, index=data.index, name='ECT')
    return ErrorCorrectionPath(values=values, mean=float(values.mean()))

# ============================================================================
# PLOTS
# ============================================================================

def plot_series(data, title="Minimum Wage and Home Prices"):
    """Both series over time on separate y-axes"""
    fig = make_subplots(specs=[[{"secondary_y": True}]])
    colors = ['darkblue', 'darkorange']
    for i, col in enumerate(data.columns[:2]):
        fig.add_trace(go.Scatter(
            x=data.index,
            y=data[col],
            mode='lines',
            name=col,
            line=dict(color=colors[i], width=2)
        ), secondary_y=(i == 1))
        fig.update_yaxes(title_text=col, secondary_y=(i == 1))

    fig.update_layout(title=title, hovermode='x unified', height=450)
    return fig


def plot_irf(irf, title="Orthogonalised Impulse Responses"):
    """Grid of impulse -> response panels with optional confidence bands"""
    names = irf.names
    n_vars = len(names)
    fig = make_subplots(
        rows=n_vars, cols=n_vars,
        subplot_titles=[f"{names[j]} → {names[i]}" for i in range(n_vars) for j in range(n_vars)],
        vertical_spacing=0.12,
        horizontal_spacing=0.08
    )

    periods = list(range(irf.steps + 1))

    for i in range(n_vars):
        for j in range(n_vars):
            row = i + 1
            col = j + 1

            if irf.lower is not None:
                fig.add_trace(go.Scatter(
                    x=periods + periods[::-1],
                    y=np.concatenate([irf.upper[:, i, j], irf.lower[:, i, j][::-1]]),
                    fill='toself',
                    fillcolor='rgba(0,100,200,0.15)',
                    line=dict(color='rgba(255,255,255,0)'),
                    showlegend=False,
                    hoverinfo='skip'
                ), row=row, col=col)

            fig.add_trace(go.Scatter(
                x=periods,
                y=irf.responses[:, i, j],
                mode='lines',
                line=dict(color='darkblue', width=1.5),
                showlegend=False,
                name=f"{names[j]} → {names[i]}"
            ), row=row, col=col)

            fig.add_hline(y=0, line_dash="dash", line_color="red",
                          opacity=0.3, row=row, col=col)

    if irf.confidence_level is not None:
        title = f"{title} with {int(irf.confidence_level * 100)}% Confidence Bands"
    fig.update_layout(title_text=title, height=350 * n_vars, showlegend=False)
    fig.update_xaxes(title_text="Months")
    fig.update_yaxes(title_text="Response")
    return fig


def plot_fevd(fevd, title="Forecast Error Variance Decomposition"):
    """Stacked shares by horizon, one panel per responding variable"""
    responses = list(fevd.keys())
    fig = make_subplots(rows=1, cols=len(responses),
                        subplot_titles=[f"FEVD of {var}" for var in responses])
    colors = ['#1f77b4', '#ff7f0e', '#2ca02c', '#d62728']

    for col, var in enumerate(responses, start=1):
        shares = fevd[var]
        for k, shock in enumerate(shares.columns):
            fig.add_trace(go.Bar(
                x=list(shares.index),
                y=shares[shock] * 100,
                name=f"{shock} shock",
                marker_color=colors[k % len(colors)],
                legendgroup=shock,
                showlegend=(col == 1)
            ), row=1, col=col)

    fig.update_layout(title_text=title, barmode='stack', height=450)
    fig.update_xaxes(title_text="Horizon (months)")
    fig.update_yaxes(title_text="Share of variance (%)", range=[0, 100])
    return fig


def plot_error_correction_path(ect, title="Error Correction Term"):
    """ECT over time with its long-run mean as reference"""
    fig = go.Figure()
    fig.add_trace(go.Scatter(
        x=ect.values.index,
        y=ect.values,
        mode='lines',
        name="β'y",
        line=dict(color='darkblue', width=1.5)
    ))
    fig.add_hline(y=ect.mean, line_dash="dash", line_color="red",
                  annotation_text=f"Mean = {ect.mean:.3f}")
    fig.update_layout(title=title, xaxis_title="Date", yaxis_title="Deviation from equilibrium",
                      hovermode='x unified', height=400)
    return fig
