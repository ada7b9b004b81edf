"""
Data processing module for report row normalization and column detection
"""

from typing import Any, Dict, Iterable, List, Mapping, Optional

import pandas as pd

from config import NUMERIC_COLUMNS, STANDARD_COLUMNS


def normalize_column_name(col_name: str) -> str:
    """Normalize column name to lowercase and strip whitespace"""
    return str(col_name).lower().strip()


def detect_standard_columns(columns: Iterable[str]) -> Dict[str, Optional[str]]:
    """
    Detect standard columns by matching against known variations.
    Accepts GAQL field paths (e.g. 'metrics.clicks') as well as export headers.

    Returns:
        Mapping of standard column names to actual column names
    """
    columns = list(columns)
    normalized = [normalize_column_name(col) for col in columns]
    column_mapping = {}

    for standard_col, variations in STANDARD_COLUMNS.items():
        for variation in variations:
            normalized_variation = normalize_column_name(variation)
            if normalized_variation in normalized:
                # Keep the original column name (preserving case)
                column_mapping[standard_col] = columns[normalized.index(normalized_variation)]
                break

    return column_mapping


def normalize_report_rows(rows: Iterable[Mapping[str, Any]]) -> pd.DataFrame:
    """
    Turn report rows into a frame with standard column names.

    Row order is preserved. Numeric columns are coerced, with missing or
    malformed values set to 0; dimension columns default to ''.
    """
    df = pd.DataFrame(list(rows))
    if df.empty:
        return pd.DataFrame(columns=list(STANDARD_COLUMNS))

    column_mapping = detect_standard_columns(df.columns)
    rename_map = {actual: standard for standard, actual in column_mapping.items()}
    df = df[list(rename_map)].rename(columns=rename_map)

    for standard_col in STANDARD_COLUMNS:
        if standard_col not in df.columns:
            df[standard_col] = 0 if standard_col in NUMERIC_COLUMNS else ''

    for col in NUMERIC_COLUMNS:
        df[col] = pd.to_numeric(df[col], errors='coerce').fillna(0)

    dimension_cols = [col for col in STANDARD_COLUMNS if col not in NUMERIC_COLUMNS]
    df[dimension_cols] = df[dimension_cols].fillna('').astype(str)

    return df.reset_index(drop=True)


def validate_required_columns(column_mapping: Dict[str, Optional[str]], required: List[str]) -> List[str]:
    """
    Check if required columns are present in the mapping.
    Returns list of missing columns.
    """
    missing = []
    for col in required:
        if col not in column_mapping or column_mapping[col] is None:
            missing.append(col)
    return missing
