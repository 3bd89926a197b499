"""
Shared fixtures: synthetic monthly series with known properties.
"""

import numpy as np
import pandas as pd
import pytest

from config import RunContext

N_MONTHS = 336


def monthly_index(n=N_MONTHS, start='1991-01-01'):
    return pd.date_range(start, periods=n, freq='MS', name='date')


def cointegrated_pair(n=N_MONTHS, seed=42):
    """Wage tied to a drifting home-price random walk through a stationary AR(1) gap"""
    rng = np.random.default_rng(seed)
    price = 80 + np.cumsum(0.5 + rng.normal(0, 1, n))
    gap = np.zeros(n)
    shocks = rng.normal(0, 0.02, n)
    for t in range(1, n):
        gap[t] = 0.5 * gap[t - 1] + shocks[t]
    wage = 2.0 + 0.05 * price + gap
    return pd.DataFrame({'Minimum Wage': wage, 'Home Price Index': price}, index=monthly_index(n))


def stationary_pair(n=N_MONTHS, seed=7):
    """Two correlated stationary AR(1) series"""
    rng = np.random.default_rng(seed)
    e = rng.normal(0, 1, (n, 2))
    data = np.zeros((n, 2))
    for t in range(1, n):
        data[t, 0] = 0.4 * data[t - 1, 0] + 0.2 * data[t - 1, 1] + e[t, 0]
        data[t, 1] = 0.3 * data[t - 1, 1] + 0.5 * e[t, 0] + e[t, 1]
    return pd.DataFrame(data + [8.0, 150.0], columns=['Minimum Wage', 'Home Price Index'],
                        index=monthly_index(n))


def drifting_random_walks(n=N_MONTHS, seed=3):
    """Two independent random walks with drift"""
    rng = np.random.default_rng(seed)
    wage = 4 + np.cumsum(0.3 + rng.normal(0, 1, n))
    price = 80 + np.cumsum(0.5 + rng.normal(0, 1, n))
    return pd.DataFrame({'Minimum Wage': wage, 'Home Price Index': price}, index=monthly_index(n))


@pytest.fixture
def context():
    return RunContext(
        wage_id='WAGE',
        wage_name='Minimum Wage',
        price_id='HPI',
        price_name='Home Price Index',
        start='1991-01-01',
        end='2018-12-01',
        pvalue_method='mackinnon',
        irf_steps=20,
        fevd_steps=12,
        bootstrap_runs=5,
        seed=2024,
    )


@pytest.fixture
def cointegrated_data():
    return cointegrated_pair()


@pytest.fixture
def stationary_data():
    return stationary_pair()


@pytest.fixture
def random_walk_data():
    return drifting_random_walks()
