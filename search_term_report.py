"""
Report jobs: search term performance and daily campaign performance tabs
"""

import logging
from typing import Any, Iterable, List, Mapping, Optional

import pandas as pd

from config import (
    DAILY_HEADER,
    DAILY_QUERY,
    DAILY_TAB,
    DATE_RANGE,
    MIN_IMPRESSIONS,
    MICROS_PER_UNIT,
    SEARCH_TERMS_HEADER,
    SEARCH_TERMS_QUERY,
    SEARCH_TERMS_TAB,
)
from data_processor import normalize_report_rows
from exceptions import ReportingError
from metrics_calculator import add_row_level_metrics, get_aggregate_metrics
from report_source import ReportSource
from sheet_writer import write_table
from workbooks import Workbook

logger = logging.getLogger(__name__)

SEARCH_TERMS_COLUMNS = [
    'search_term', 'campaign_name', 'ad_group_name', 'impressions', 'clicks', 'cost',
    'conversions', 'conversion_value', 'cpc', 'ctr', 'conv_rate', 'cpa', 'roas', 'aov',
]

DAILY_COLUMNS = [
    'campaign_name', 'campaign_id', 'clicks', 'lost_budget', 'impression_share', 'lost_rank',
    'conversion_value', 'conversions', 'cost', 'impressions', 'date',
]


def build_search_terms_query(date_range: str = DATE_RANGE, min_impressions: int = MIN_IMPRESSIONS) -> str:
    return SEARCH_TERMS_QUERY.format(date_range=date_range, min_impressions=int(min_impressions))


def build_daily_query(date_range: str = DATE_RANGE) -> str:
    return DAILY_QUERY.format(date_range=date_range)


def build_search_term_report(rows: Iterable[Mapping[str, Any]], sort_by_cost: bool = False) -> pd.DataFrame:
    """
    Compute the search term report frame from raw report rows.

    Row order follows the report (so a GAQL ORDER BY is kept) unless
    sort_by_cost is set, which sorts by cost descending.
    """
    df = add_row_level_metrics(normalize_report_rows(rows))
    if sort_by_cost and not df.empty:
        df = df.sort_values(by='cost', ascending=False, kind='stable')
    return df[SEARCH_TERMS_COLUMNS].reset_index(drop=True)


def build_daily_report(rows: Iterable[Mapping[str, Any]]) -> pd.DataFrame:
    """Daily campaign rows with cost converted from micros."""
    df = normalize_report_rows(rows)
    df['cost'] = df['cost_micros'] / MICROS_PER_UNIT
    return df[DAILY_COLUMNS].reset_index(drop=True)


def _write_report(workbook: Workbook, tab: str, header: List[str], df: pd.DataFrame) -> bool:
    return write_table(workbook, tab, header, df.values.tolist())


def run_search_term_report(
    workbook: Workbook,
    source: ReportSource,
    query: Optional[str] = None,
    tab: str = SEARCH_TERMS_TAB,
    sort_by_cost: bool = False,
) -> Optional[pd.DataFrame]:
    """
    Fetch search term rows, compute metrics and overwrite the report tab.

    Returns:
        The report frame, or None when the report could not be fetched
    """
    query = query or build_search_terms_query()
    logger.info("Executing search term query...")
    try:
        df = build_search_term_report(source.rows(query), sort_by_cost=sort_by_cost)
    except ReportingError as e:
        logger.error(f"Error processing search term data: {e}")
        return None

    if not df.empty:
        totals = get_aggregate_metrics(df)
        logger.info(
            f"Search terms: {len(df)} rows, cost {totals['cost']:.2f}, "
            f"conversions {totals['conversions']:.2f}, ROAS {totals['roas']:.2f}"
        )
    _write_report(workbook, tab, SEARCH_TERMS_HEADER, df)
    return df


def run_daily_report(
    workbook: Workbook,
    source: ReportSource,
    query: Optional[str] = None,
    tab: str = DAILY_TAB,
) -> Optional[pd.DataFrame]:
    """Fetch daily campaign rows and overwrite the daily tab."""
    query = query or build_daily_query()
    logger.info("Executing daily campaign query...")
    try:
        df = build_daily_report(source.rows(query))
    except ReportingError as e:
        logger.error(f"Error processing daily campaign data: {e}")
        return None

    _write_report(workbook, tab, DAILY_HEADER, df)
    return df
