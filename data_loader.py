# ============================================================================
# data_loader.py - Data Loading and Alignment Module
# ============================================================================
"""
This module handles:
- Fetching economic series from FRED
- Cleaning the raw observations
- Aligning the wage and home-price series on a common monthly index
"""

import logging

import pandas as pd
from fredapi import Fred

from errors import DataAvailabilityError, SpecificationError

logger = logging.getLogger(__name__)

MONTH_START = 'MS'

# ============================================================================
# DATA FETCHING
# ============================================================================

def make_fred_client(api_key):
    """Build a FRED client; a key is required by the FRED API"""
    if not api_key:
        raise DataAvailabilityError(
            "No FRED API key available. Set the FRED_API_KEY environment variable."
        )
    return Fred(api_key=api_key)


def fetch_series(client, series_id, start, end):
    """Fetch one series and return it as a clean, sorted float Series"""
    try:
        raw = client.get_series(series_id, observation_start=start, observation_end=end)
    except ValueError as e:
        # fredapi reports unknown ids and bad requests as ValueError
        raise DataAvailabilityError(f"FRED request for {series_id} failed: {e}") from e

    if raw is None or len(raw) == 0:
        raise DataAvailabilityError(f"No data returned for {series_id}")

    series = pd.to_numeric(pd.Series(raw), errors='coerce').dropna()
    if series.empty:
        raise DataAvailabilityError(f"No numeric values returned for {series_id}")

    series.index = pd.to_datetime(series.index)
    series = series[~series.index.duplicated(keep='first')].sort_index()
    series.name = series_id

    logger.info(f"Fetched {len(series)} observations for {series_id} "
                f"({series.index[0].date()} to {series.index[-1].date()})")
    return series

# ============================================================================
# ALIGNMENT
# ============================================================================

def to_month_start(series):
    """Place observations on a month-start grid, keeping the last value per month"""
    monthly = series.resample(MONTH_START).last().dropna()
    monthly.name = series.name
    return monthly


def align_series(left, right, how='asof'):
    """
    Join two series on timestamps.

    'exact' inner-joins the month-start grids of both series.
    'asof' keeps the month-start grid of `right` and gives each month the most
    recent `left` observation at or before it; `left` is treated as a step
    function (a legislated rate stays in force until it changes).
    """
    left_name = left.name if left.name is not None else 'left'
    right_name = right.name if right.name is not None else 'right'
    if left_name == right_name:
        raise SpecificationError(f"Cannot align two series both named '{left_name}'")

    right_monthly = to_month_start(right)

    if how == 'exact':
        left_monthly = to_month_start(left)
        joined = pd.concat([left_monthly, right_monthly], axis=1, join='inner')
    elif how == 'asof':
        left_frame = left.rename(left_name).rename_axis('date').reset_index()
        right_frame = right_monthly.rename(right_name).rename_axis('date').reset_index()
        joined = pd.merge_asof(right_frame, left_frame, on='date', direction='backward')
        joined = joined.set_index('date')[[left_name, right_name]]
    else:
        raise SpecificationError(f"Unknown alignment '{how}'")

    joined = joined.dropna()
    if len(joined) >= 3:
        freq = pd.infer_freq(joined.index)
        if freq is not None:
            # no gaps, so this only attaches the frequency
            joined = joined.asfreq(freq)
    joined.index.name = 'date'
    return joined


def fetch_data(context, client=None):
    """Fetch wage and home-price series and return them as one aligned DataFrame"""
    if client is None:
        client = make_fred_client(context.fred_api_key)

    wage = fetch_series(client, context.wage_id, context.start, context.end)
    price = fetch_series(client, context.price_id, context.start, context.end)

    df = align_series(wage, price, how=context.alignment)
    df = df.loc[context.start:context.end]
    df.columns = [context.wage_name, context.price_name]

    if df.empty:
        raise DataAvailabilityError(
            f"No overlapping observations for {context.wage_id} and {context.price_id} "
            f"between {context.start} and {context.end}"
        )
    if len(df) < context.min_observations:
        raise DataAvailabilityError(
            f"Only {len(df)} aligned observations; at least {context.min_observations} are required"
        )

    expected = len(pd.date_range(context.start, context.end, freq=MONTH_START))
    if len(df) < expected:
        logger.warning(f"Aligned sample covers {len(df)} of {expected} months in the requested range")

    logger.info(f"Aligned {len(df)} monthly observations from {df.index[0].date()} to {df.index[-1].date()}")
    return df
