# ============================================================================
# config.py - Run Configuration Module
# ============================================================================
"""
This module handles:
- Loading the analysis settings from analysis.yaml
- Validating policy constants
- Building the immutable RunContext shared by every pipeline stage
"""

import os
import logging
from dataclasses import dataclass, replace
from pathlib import Path

import pandas as pd
import yaml

from errors import SpecificationError

logger = logging.getLogger(__name__)

CONFIG_PATH = Path(__file__).resolve().parent / "analysis.yaml"

ADF_CRITERIA = ("aic", "bic")
LAG_CRITERIA = ("aic", "bic", "hqic", "fpe")
PVALUE_METHODS = ("regression", "mackinnon")
ALIGNMENTS = ("asof", "exact")
# Deterministic terms the VECM may carry; none of them enter the
# cointegrating relation.
DETERMINISTIC_TERMS = ("n", "co")


@dataclass(frozen=True)
class RunContext:
    """Every constant of one analysis run"""
    wage_id: str
    wage_name: str
    price_id: str
    price_name: str
    start: str
    end: str
    wage_description: str = ""
    price_description: str = ""
    alignment: str = "asof"
    min_observations: int = 60
    significance: float = 0.05
    adf_max_lags: int = 1
    adf_criterion: str = "bic"
    pvalue_method: str = "regression"
    var_max_lags: int = 12
    lag_criterion: str = "hqic"
    coint_rank: int = 1
    deterministic: str = "co"
    irf_steps: int = 50
    fevd_steps: int = 30
    bootstrap_runs: int = 100
    confidence_level: float = 0.95
    seed: int = 12345
    fred_api_key: str = None

    @property
    def names(self):
        return [self.wage_name, self.price_name]

    def with_overrides(self, **overrides):
        context = replace(self, **overrides)
        validate_context(context)
        return context


def validate_context(context):
    """Reject settings the pipeline cannot honour"""
    if context.wage_name == context.price_name:
        raise SpecificationError("Series display names must differ")
    if pd.Timestamp(context.start) >= pd.Timestamp(context.end):
        raise SpecificationError(f"Start date {context.start} is not before end date {context.end}")
    if context.alignment not in ALIGNMENTS:
        raise SpecificationError(f"Unknown alignment '{context.alignment}', expected one of {ALIGNMENTS}")
    if not 0 < context.significance < 1:
        raise SpecificationError(f"Significance level must lie in (0, 1), got {context.significance}")
    if not 0 < context.confidence_level < 1:
        raise SpecificationError(f"Confidence level must lie in (0, 1), got {context.confidence_level}")
    if context.adf_max_lags < 0:
        raise SpecificationError("adf_max_lags must be non-negative")
    if context.adf_criterion not in ADF_CRITERIA:
        raise SpecificationError(f"Unknown ADF criterion '{context.adf_criterion}'")
    if context.pvalue_method not in PVALUE_METHODS:
        raise SpecificationError(f"Unknown p-value method '{context.pvalue_method}'")
    if context.var_max_lags < 1:
        raise SpecificationError("var_max_lags must be at least 1")
    if context.lag_criterion not in LAG_CRITERIA:
        raise SpecificationError(f"Unknown lag criterion '{context.lag_criterion}'")
    if context.coint_rank != 1:
        raise SpecificationError("The analysis is designed for cointegration rank 1")
    if context.deterministic not in DETERMINISTIC_TERMS:
        raise SpecificationError(
            f"Deterministic term '{context.deterministic}' would enter the cointegrating relation; "
            f"use one of {DETERMINISTIC_TERMS}"
        )
    if context.irf_steps < 1 or context.fevd_steps < 1:
        raise SpecificationError("IRF and FEVD horizons must be positive")
    if context.bootstrap_runs < 0:
        raise SpecificationError("bootstrap_runs must be non-negative")


def load_run_context(path=None, **overrides):
    """Read analysis.yaml and build a validated RunContext"""
    yaml_path = Path(path) if path is not None else CONFIG_PATH
    if not yaml_path.exists():
        raise SpecificationError(f"Configuration file not found: {yaml_path}")

    with open(yaml_path, 'r', encoding='utf-8') as file:
        config = yaml.safe_load(file) or {}

    try:
        series = config['series']
        wage = series['wage']
        price = series['price']
        sample = config['sample']
    except KeyError as e:
        raise SpecificationError(f"Missing configuration section: {e}") from e

    tests = config.get('tests', {})
    model = config.get('model', {})
    analysis = config.get('analysis', {})

    settings = {
        'wage_id': wage['id'],
        'wage_name': wage.get('name', wage['id']),
        'wage_description': wage.get('description', ''),
        'price_id': price['id'],
        'price_name': price.get('name', price['id']),
        'price_description': price.get('description', ''),
        'start': str(sample['start']),
        'end': str(sample['end']),
        'alignment': sample.get('alignment', 'asof'),
        'min_observations': int(sample.get('min_observations', 60)),
        'significance': float(tests.get('significance', 0.05)),
        'adf_max_lags': int(tests.get('adf_max_lags', 1)),
        'adf_criterion': str(tests.get('adf_criterion', 'bic')).lower(),
        'pvalue_method': tests.get('pvalue_method', 'regression'),
        'var_max_lags': int(model.get('var_max_lags', 12)),
        'lag_criterion': str(model.get('lag_criterion', 'hqic')).lower(),
        'coint_rank': int(model.get('coint_rank', 1)),
        'deterministic': model.get('deterministic', 'co'),
        'irf_steps': int(analysis.get('irf_steps', 50)),
        'fevd_steps': int(analysis.get('fevd_steps', 30)),
        'bootstrap_runs': int(analysis.get('bootstrap_runs', 100)),
        'confidence_level': float(analysis.get('confidence_level', 0.95)),
        'seed': int(analysis.get('seed', 12345)),
        'fred_api_key': os.getenv('FRED_API_KEY'),
    }
    settings.update(overrides)

    context = RunContext(**settings)
    validate_context(context)
    logger.info(f"Loaded run configuration from {yaml_path}: {context.wage_id} vs {context.price_id}, "
                f"{context.start} to {context.end}")
    return context
