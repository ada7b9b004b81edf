"""
Tab-level output operations: overwrite tables, append log entries
"""

import logging
import math
from datetime import datetime, timezone
from typing import Any, List, Optional, Sequence

from config import LOGS_HEADER, LOGS_TAB
from exceptions import SinkError
from workbooks import Workbook

logger = logging.getLogger(__name__)


def to_cell(value: Any) -> Any:
    """Convert a value into something the sheet accepts (native types, no NaN)."""
    if hasattr(value, "item") and not isinstance(value, (str, bytes)):
        # numpy / pandas scalars
        value = value.item()
    if isinstance(value, float) and (math.isnan(value) or math.isinf(value)):
        return ""
    if value is None:
        return ""
    return value


def to_cells(rows: Sequence[Sequence[Any]]) -> List[List[Any]]:
    return [[to_cell(value) for value in row] for row in rows]


def ensure_tab(workbook: Workbook, name: str) -> str:
    """Return the tab name after creating it, or clearing it when it already exists."""
    if workbook.get_or_create_tab(name):
        logger.info(f"Sheet '{name}' created")
    else:
        workbook.clear(name)
    return name


def write_header(workbook: Workbook, tab: str, columns: Sequence[str]) -> None:
    workbook.write_rows(tab, [list(columns)], start_row=1)


def write_rows(workbook: Workbook, tab: str, rows: Sequence[Sequence[Any]], start_row: int = 2) -> None:
    if rows:
        workbook.write_rows(tab, to_cells(rows), start_row=start_row)


def write_table(workbook: Workbook, name: str, header: Sequence[str], rows: Sequence[Sequence[Any]]) -> bool:
    """
    Overwrite a tab with a header row and data rows.

    Returns:
        True when written; False when the sheet could not be prepared or written
    """
    try:
        tab = ensure_tab(workbook, name)
        write_header(workbook, tab, header)
        write_rows(workbook, tab, rows)
    except SinkError as e:
        logger.error(f"Error with sheet '{name}': {e}")
        return False

    if rows:
        logger.info(f"Data written to sheet '{name}': {len(rows)} rows")
    else:
        logger.info(f"No data found for sheet '{name}'")
    return True


def append_log(workbook: Workbook, message: str, level: str = "ERROR",
               timestamp: Optional[datetime] = None) -> bool:
    """
    Append one entry to the Logs tab, creating it with a header on first use.

    Never raises: a failure is logged and reported as False.

    Returns:
        True when the entry was written
    """
    timestamp = timestamp or datetime.now(timezone.utc)
    try:
        if workbook.get_or_create_tab(LOGS_TAB) or not workbook.read_rows(LOGS_TAB):
            write_header(workbook, LOGS_TAB, LOGS_HEADER)
        workbook.append_rows(LOGS_TAB, [[timestamp.isoformat(), level, str(message)]])
    except Exception as e:
        logger.error(f"Could not log error to sheet: {e}")
        return False

    logger.info("Error logged to sheet")
    return True
