# ============================================================================
# app.py - Streamlit Report
# ============================================================================
"""
Narrative report on minimum wages and home prices:
- Data overview
- Unit root tests
- Engle-Granger cointegration test
- Lag order selection
- VEC model estimation
- Impulse responses, variance decomposition and the error correction term

Run with:  streamlit run app.py
"""

import logging
import warnings
warnings.filterwarnings('ignore')

import streamlit as st
import pandas as pd

from config import load_run_context
from data_loader import fetch_data
from errors import AnalysisError
from pipeline import run_analysis
from statistical_tests import stationarity_table
from cointegration import johansen_table
from var_model import CRITERION_LABELS, equilibrium_equation
from irf_fevd import (
    plot_series,
    plot_irf,
    plot_fevd,
    plot_error_correction_path
)

logging.basicConfig(level=logging.INFO, format='%(asctime)s %(name)s %(levelname)s %(message)s')

# ============================================================================
# PAGE CONFIGURATION
# ============================================================================

st.set_page_config(
    page_title="Minimum Wage and Home Prices - VEC Model Analysis",
    page_icon="📊",
    layout="wide",
    initial_sidebar_state="collapsed"
)

st.markdown("""
<style>
    .main-header {
        font-size: 2.5rem;
        font-weight: bold;
        color: #1f77b4;
        text-align: center;
        margin-bottom: 2rem;
    }
    .section-header {
        font-size: 1.8rem;
        font-weight: bold;
        color: #ff7f0e;
        margin-top: 2rem;
        margin-bottom: 1rem;
        border-bottom: 2px solid #ff7f0e;
        padding-bottom: 0.5rem;
    }
</style>
""", unsafe_allow_html=True)

# ============================================================================
# HELPERS
# ============================================================================

def data_key(context):
    """Every setting that changes the fetched and aligned frame"""
    return (context.wage_id, context.price_id, context.start, context.end,
            context.alignment, context.min_observations)


@st.cache_data(ttl=3600)
def load_data(_context, wage_id, price_id, start, end, alignment, min_observations):
    """Cached fetch; the arguments after _context come from data_key and form the cache key"""
    return fetch_data(_context)


def section(title):
    st.markdown(f'<div class="section-header">{title}</div>', unsafe_allow_html=True)


def coefficient_frame(table):
    """Regression table with report column names"""
    return table.rename(columns={
        'estimate': 'Estimate',
        'std_error': 'Std. Error',
        't_value': 't value',
        'p_value': 'Pr(>|t|)',
    })


def verdict(flag, yes, no):
    if flag:
        st.success(yes)
    else:
        st.info(no)

# ============================================================================
# REPORT SECTIONS
# ============================================================================

def render_introduction(context, data):
    st.markdown('<div class="main-header">Minimum Wage and Home Prices</div>', unsafe_allow_html=True)
    st.markdown("*A cointegration and Vector Error Correction Model analysis*")
    st.markdown("---")

    section("1. Introduction")
    st.markdown(f"""
    Do rising minimum wages feed into local housing costs, or do home prices pull wage floors
    along with them? This report examines the long-run relationship between

    - **{context.wage_name}** (`{context.wage_id}`): {context.wage_description}
    - **{context.price_name}** (`{context.price_id}`): {context.price_description}

    using monthly data from **{data.index[0]:%B %Y}** to **{data.index[-1]:%B %Y}**
    ({len(data)} observations, source: FRED).

    The approach follows the standard sequence: test each series for a unit root, test the pair
    for cointegration, choose a lag order, and if the series share a stochastic trend, estimate a
    VEC model to separate the long-run equilibrium from the short-run dynamics.
    """)

    section("2. Data")
    st.plotly_chart(plot_series(data), use_container_width=True)
    st.dataframe(data.describe().T.style.format('{:.3f}'), use_container_width=True)


def render_unit_roots(result):
    context = result.context
    section("3. Unit Root Tests")
    st.markdown(f"""
    Each series is tested with the augmented Dickey-Fuller regression with drift

    Δyₜ = α + ρ·yₜ₋₁ + Σ γᵢ·Δyₜ₋ᵢ + εₜ

    with up to {context.adf_max_lags} lagged difference(s) chosen by {context.adf_criterion.upper()}.
    A series has a unit root unless ρ is significant at the {context.significance:.0%} level.
    """)

    for ur in result.stationarity:
        st.markdown(f"**{ur.name}** ({ur.lags} lagged difference(s), {ur.nobs} observations)")
        st.dataframe(coefficient_frame(ur.coefficients).style.format('{:.4f}'), use_container_width=True)

    table = stationarity_table(result.stationarity)
    st.markdown("**Summary**")
    st.dataframe(table, use_container_width=True)
    decided_by = {'regression': 'Regression p-value', 'mackinnon': 'MacKinnon p-value'}[context.pvalue_method]
    st.caption(f"The p-value column is the {decided_by} for ρ.")

    kpss = pd.DataFrame(list(result.kpss)).set_index('Variable')
    with st.expander("KPSS test (null hypothesis: stationary)"):
        st.dataframe(kpss, use_container_width=True)
        if kpss['p-value Bounded'].any():
            st.caption("p-values outside the tabulated range are reported at the table bound.")

    non_stationary = [ur.name for ur in result.stationarity if not ur.stationary]
    if len(non_stationary) == len(result.stationarity):
        st.markdown("Neither series rejects the unit-root null: both are treated as integrated of order one, "
                    "so a VAR in levels would risk spurious results.")
    elif non_stationary:
        st.markdown(f"Only {', '.join(non_stationary)} has a unit root.")
    else:
        st.markdown("Both series are stationary in levels.")


def render_cointegration(result):
    coint = result.cointegration
    context = result.context
    section("4. Cointegration Test")
    st.markdown(f"""
    Following Engle and Granger, **{coint.dependent}** is regressed on **{coint.regressor}** in levels
    and the residuals are tested for a unit root with the same ADF regression. Stationary residuals
    mean the two series are tied together in the long run.
    """)

    col1, col2 = st.columns(2)
    with col1:
        st.markdown("**Cointegrating regression**")
        st.dataframe(coefficient_frame(coint.regression).style.format('{:.4f}'), use_container_width=True)
        st.caption(f"R² = {coint.r_squared:.4f}")
    with col2:
        st.markdown("**ADF regression on the residuals**")
        st.dataframe(coefficient_frame(coint.unit_root.coefficients).style.format('{:.4f}'),
                     use_container_width=True)

    verdict(
        coint.cointegrated,
        f"✓ Residuals are stationary (p = {coint.pvalue:.4f} < {context.significance}): "
        f"the series are cointegrated.",
        f"Residuals keep a unit root (p = {coint.pvalue:.4f}): no evidence of cointegration."
    )
    st.caption(f"Engle-Granger t-statistic {coint.unit_root.tau:.3f}, MacKinnon p-value "
               f"{coint.unit_root.tau_pvalue:.4f}, 5% critical value "
               f"{coint.unit_root.critical_values['5%']:.3f}.")


def render_lag_selection(result):
    selection = result.lag_selection
    section("5. Lag Order Selection")
    st.markdown(f"""
    VARs with a constant are fitted for 1 to {len(selection.criteria) - 1} lags on a common sample.
    The lag minimising **{CRITERION_LABELS[selection.criterion]}** is kept.
    """)
    st.dataframe(selection.criteria.style.format('{:.6g}').highlight_min(axis=0, color='#d4edda'),
                 use_container_width=True)

    col1, col2 = st.columns(2)
    with col1:
        st.metric("VAR lag order", selection.var_lag)
    with col2:
        st.metric("VECM lagged differences", selection.k_ar_diff)
    st.caption("Selections by criterion: " +
               ", ".join(f"{k} = {v}" for k, v in selection.selected.items()))


def render_vecm(result):
    context = result.context
    names = context.names
    model = result.model

    section("6. Vector Error Correction Model")
    st.markdown(f"""
    With cointegration established, the VEC model

    Δyₜ = α·β'yₜ₋₁ + Σ Γᵢ·Δyₜ₋ᵢ + μ + εₜ

    is estimated by maximum likelihood with cointegrating rank {context.coint_rank} and
    {result.lag_selection.k_ar_diff} lagged difference(s). The constant μ stays outside the
    long-run relation.
    """)

    col1, col2, col3 = st.columns(3)
    with col1:
        st.metric("Rank", context.coint_rank)
    with col2:
        st.metric("Observations", model.nobs)
    with col3:
        st.metric("Log-Likelihood", f"{model.llf:.2f}")

    st.markdown("#### A. Cointegrating Vector (β)")
    st.dataframe(result.cointegrating_vector.style.format('{:.4f}', na_rep='–'), use_container_width=True)
    st.code(equilibrium_equation(model.beta[:, 0], names))

    st.markdown("#### B. Adjustment Coefficients (α)")
    st.dataframe(result.adjustment.style.format({
        'α': '{:.4f}',
        'Std. Error': '{:.4f}',
        't-statistic': '{:.3f}',
        'p-value': '{:.4f}',
        'Half-life (periods)': '{:.1f}'
    }), use_container_width=True)

    for var, row in result.adjustment.iterrows():
        if row['Role'] == 'Error-correcting':
            st.markdown(f"- **{var}** moves back toward equilibrium: α = {row['α']:.4f} "
                        f"(p = {row['p-value']:.4f}), closing half a deviation in about "
                        f"{row['Half-life (periods)']:.1f} months.")
        elif row['Role'] == 'Diverging':
            st.markdown(f"- **{var}** moves away from equilibrium (α = {row['α']:.4f}, "
                        f"p = {row['p-value']:.4f}).")
        else:
            st.markdown(f"- **{var}** does not adjust (p = {row['p-value']:.4f}); it acts as the "
                        f"long-run driver of the relationship.")

    st.markdown("#### C. Intercepts")
    st.dataframe(result.deterministic.style.format('{:.4f}'), use_container_width=True)

    if result.johansen is not None:
        with st.expander("Johansen test (cross-check of the rank)"):
            st.dataframe(johansen_table(result.johansen), use_container_width=True)
            st.caption(f"The trace test suggests rank {result.johansen.rank}. The model keeps rank "
                       f"{context.coint_rank}; the statistics are shown for reference.")


def render_var(result):
    section("6. VAR in Levels")
    st.markdown(f"""
    Both series are stationary, so a VAR in levels with {result.lag_selection.var_lag} lag(s)
    is estimated instead of a VEC model.
    """)
    st.text(str(result.model.summary()))


def render_dynamics(result):
    context = result.context
    section("7. Impulse Responses")
    st.markdown(f"""
    Responses to a one-standard-deviation orthogonalised shock (Cholesky ordering:
    {' → '.join(context.names)}) over {context.irf_steps} months.
    """)
    st.plotly_chart(plot_irf(result.irf), use_container_width=True)

    checkpoints = [h for h in (0, 1, 6, 12, 24, context.irf_steps) if h <= context.irf_steps]
    for impulse in context.names:
        with st.expander(f"Responses to a {impulse} shock"):
            frame = result.irf.frame(impulse).loc[sorted(set(checkpoints))]
            st.dataframe(frame.style.format('{:.4f}'), use_container_width=True)

    section("8. Forecast Error Variance Decomposition")
    st.plotly_chart(plot_fevd(result.fevd), use_container_width=True)

    horizons = [h for h in (1, 6, 12, context.fevd_steps) if h <= context.fevd_steps]
    for var, shares in result.fevd.items():
        st.markdown(f"**{var}**")
        st.dataframe((shares.loc[sorted(set(horizons))] * 100).style.format('{:.1f}%'),
                     use_container_width=True)
        other = [c for c in shares.columns if c != var]
        if other:
            long_run = shares.iloc[-1][other].sum() * 100
            st.caption(f"After {context.fevd_steps} months, {long_run:.1f}% of the forecast error "
                       f"variance of {var} comes from other shocks.")

    if result.ect is not None:
        section("9. Error Correction Term")
        st.markdown("""
        The cointegrating vector applied to the levels gives the deviation from the long-run
        equilibrium at every date. Persistent departures from the mean line are what the
        adjustment coefficients work against.
        """)
        st.plotly_chart(plot_error_correction_path(result.ect), use_container_width=True)


def render_conclusion(result):
    section("10. Conclusion")
    coint = result.cointegration
    lines = [
        f"- Unit root: {', '.join(f'{ur.name} p = {ur.pvalue:.4f}' for ur in result.stationarity)}",
        f"- Cointegration ({coint.dependent} on {coint.regressor}): p = {coint.pvalue:.4f}",
        f"- Lag order: VAR {result.lag_selection.var_lag}, VECM {result.lag_selection.k_ar_diff}",
        f"- Model: {result.family}",
    ]
    if result.adjustment is not None:
        drivers = result.adjustment.index[result.adjustment['Role'].str.startswith('Long-run')].tolist()
        correcting = result.adjustment.index[result.adjustment['Role'] == 'Error-correcting'].tolist()
        if correcting:
            lines.append(f"- Error-correcting: {', '.join(correcting)}")
        if drivers:
            lines.append(f"- Long-run driver: {', '.join(drivers)}")
    st.markdown("\n".join(lines))

# ============================================================================
# MAIN
# ============================================================================

def main():
    try:
        context = load_run_context()
        with st.spinner("Fetching data from FRED..."):
            data = load_data(context, *data_key(context))
        with st.spinner("Running tests and estimating models..."):
            result = run_analysis(data, context)
    except AnalysisError as e:
        st.error(f"❌ Analysis failed: {e}")
        st.stop()

    render_introduction(context, result.data)
    render_unit_roots(result)
    render_cointegration(result)
    render_lag_selection(result)

    if not result.completed:
        st.warning("⚠️ The series are non-stationary and not cointegrated: neither a VAR in levels "
                   "nor a VEC model is appropriate. The analysis stops here.")
        return

    if result.family == 'VECM':
        render_vecm(result)
    else:
        render_var(result)

    render_dynamics(result)
    render_conclusion(result)


if __name__ == "__main__":
    main()
