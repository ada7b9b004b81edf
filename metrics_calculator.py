"""
Metrics calculator module for computing advertising metrics
"""

import math
from typing import Any, Dict, Mapping

import pandas as pd

from config import METRIC_FORMULAS, MICROS_PER_UNIT, STANDARD_COLUMNS


def to_number(value: Any) -> float:
    """Coerce a raw report value to a finite float, falling back to 0."""
    if value is None or isinstance(value, bool):
        return 0.0
    try:
        number = float(value)
    except (TypeError, ValueError):
        return 0.0
    if math.isnan(number) or math.isinf(number):
        return 0.0
    return number


def _lookup(row: Mapping[str, Any], standard_col: str) -> Any:
    """Find a standard field in a row keyed either by GAQL path or by standard name."""
    if standard_col in row:
        return row[standard_col]
    for alias in STANDARD_COLUMNS.get(standard_col, []):
        if alias in row:
            return row[alias]
    return None


def compute_metric(values: Dict[str, float], metric_name: str) -> float:
    """
    Compute a single metric using the formula from config.

    Args:
        values: Base values keyed by standard column name
        metric_name: Name of the metric to compute (e.g., 'ctr', 'cpc')

    Returns:
        Computed metric value (0 when the denominator is zero)
    """
    metric_config = METRIC_FORMULAS[metric_name]
    args = {col: values.get(col, 0.0) for col in metric_config['required_columns']}
    return metric_config['formula'](**args)


def compute_row_metrics(row: Mapping[str, Any]) -> Dict[str, float]:
    """
    Compute derived metrics for one report row.

    Missing or malformed numeric fields count as 0; this never raises.

    Returns:
        Dictionary with cost, cpc, ctr, conv_rate, cpa, roas and aov
    """
    values = {
        'impressions': to_number(_lookup(row, 'impressions')),
        'clicks': to_number(_lookup(row, 'clicks')),
        'conversions': to_number(_lookup(row, 'conversions')),
        'conversion_value': to_number(_lookup(row, 'conversion_value')),
    }
    values['cost'] = to_number(_lookup(row, 'cost_micros')) / MICROS_PER_UNIT

    metrics = {'cost': values['cost']}
    for metric_name in METRIC_FORMULAS:
        metrics[metric_name] = compute_metric(values, metric_name)
    return metrics


def _safe_ratio(numerator: pd.Series, denominator: pd.Series) -> pd.Series:
    return numerator.div(denominator.where(denominator > 0)).fillna(0.0).astype(float)


def add_row_level_metrics(df: pd.DataFrame) -> pd.DataFrame:
    """
    Add cost and derived metric columns to a normalized report frame.

    Expects standard column names (see data_processor.normalize_report_rows).
    Zero denominators produce 0, so the result carries no NaN or infinity.
    """
    df_with_metrics = df.copy()

    def column(name: str) -> pd.Series:
        if name in df_with_metrics.columns:
            return pd.to_numeric(df_with_metrics[name], errors='coerce').fillna(0.0)
        return pd.Series(0.0, index=df_with_metrics.index)

    impressions = column('impressions')
    clicks = column('clicks')
    conversions = column('conversions')
    conversion_value = column('conversion_value')
    cost = column('cost_micros') / MICROS_PER_UNIT

    df_with_metrics['cost'] = cost
    df_with_metrics['cpc'] = _safe_ratio(cost, clicks)
    df_with_metrics['ctr'] = _safe_ratio(clicks, impressions)
    df_with_metrics['conv_rate'] = _safe_ratio(conversions, clicks)
    df_with_metrics['cpa'] = _safe_ratio(cost, conversions)
    df_with_metrics['roas'] = _safe_ratio(conversion_value, cost)
    df_with_metrics['aov'] = _safe_ratio(conversion_value, conversions)

    return df_with_metrics


def get_aggregate_metrics(df: pd.DataFrame) -> Dict[str, float]:
    """
    Get aggregate totals and account-level ratios for a metrics frame.

    Returns:
        Dictionary of totals plus ratios computed on the totals
    """
    totals = {}
    for col in ['impressions', 'clicks', 'cost', 'conversions', 'conversion_value']:
        if col in df.columns:
            totals[col] = float(pd.to_numeric(df[col], errors='coerce').fillna(0).sum())
        else:
            totals[col] = 0.0

    for metric_name in METRIC_FORMULAS:
        totals[metric_name] = compute_metric(totals, metric_name)
    return totals
