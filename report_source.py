"""
Report sources yielding GAQL-keyed rows from Google Ads or a CSV export
"""

import enum
import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Dict, Iterator, List, Optional

import grpc
import pandas as pd
from google.ads.googleads.client import GoogleAdsClient
from google.ads.googleads.errors import GoogleAdsException
from google.auth.exceptions import GoogleAuthError

from config import MICROS_PER_UNIT, STANDARD_COLUMNS
from data_processor import detect_standard_columns, validate_required_columns
from exceptions import ConfigurationError, ReportingError

logger = logging.getLogger(__name__)

_SELECT_RE = re.compile(r"SELECT\s+(.*?)\s+FROM\s", re.IGNORECASE | re.DOTALL)


def select_fields(query: str) -> List[str]:
    """Return the field paths listed in a GAQL SELECT clause, in order."""
    match = _SELECT_RE.search(query)
    if not match:
        raise ValueError("GAQL query has no SELECT ... FROM clause")
    return [field.strip() for field in match.group(1).split(",") if field.strip()]


def _resolve_field(row: Any, field_path: str) -> Any:
    """Walk a proto-plus row along a dotted GAQL path."""
    value = row
    for part in field_path.split("."):
        value = getattr(value, part, None)
        if value is None:
            return None
    # enum fields come back as proto enums
    if isinstance(value, enum.Enum):
        return value.name
    return value


class ReportSource(ABC):
    """Yields report rows as dicts keyed by GAQL field path."""

    @abstractmethod
    def rows(self, query: str) -> Iterator[Dict[str, Any]]:
        raise NotImplementedError


class GoogleAdsReportSource(ReportSource):
    """Runs GAQL queries through the Google Ads API search stream."""

    def __init__(self, customer_id: str, client: Optional[GoogleAdsClient] = None,
                 configuration_file: Optional[str] = None):
        self.customer_id = str(customer_id).replace("-", "")
        if not self.customer_id:
            raise ConfigurationError("No Google Ads customer id configured")
        self._client = client
        self._configuration_file = configuration_file

    def _get_client(self) -> GoogleAdsClient:
        if self._client is None:
            if not self._configuration_file:
                raise ConfigurationError("No google-ads configuration file configured")
            try:
                self._client = GoogleAdsClient.load_from_storage(self._configuration_file)
            except Exception as ex:
                logger.error(f"Failed to initialize Google Ads client: {ex}")
                raise ConfigurationError(
                    f"Failed to authenticate with Google Ads API: {str(ex)}"
                ) from ex
        return self._client

    def rows(self, query: str) -> Iterator[Dict[str, Any]]:
        fields = select_fields(query)
        ga_service = self._get_client().get_service("GoogleAdsService")

        count = 0
        try:
            stream = ga_service.search_stream(customer_id=self.customer_id, query=query)
            for batch in stream:
                for row in batch.results:
                    count += 1
                    yield {field: _resolve_field(row, field) for field in fields}
        except GoogleAdsException as ex:
            messages = "; ".join(error.message for error in ex.failure.errors)
            raise ReportingError(
                f"Google Ads request {ex.request_id} failed: {messages}"
            ) from ex
        except (grpc.RpcError, GoogleAuthError, OSError) as ex:
            # transport, auth refresh and stream interruptions
            raise ReportingError(f"Google Ads search stream failed: {ex}") from ex

        logger.info(f"Search stream completed: {count} rows from {self.customer_id}")


class CsvReportSource(ReportSource):
    """Reads rows from a report export; the query only selects which fields to return."""

    def __init__(self, path):
        self.path = path

    def rows(self, query: str) -> Iterator[Dict[str, Any]]:
        fields = select_fields(query)
        df = pd.read_csv(self.path)
        column_mapping = detect_standard_columns(df.columns)

        # exports usually carry cost in currency units instead of micros
        if 'cost_micros' not in column_mapping:
            cost_col = next((col for col in df.columns if col.lower().strip() in ('cost', 'spend')), None)
            if cost_col is not None:
                df['__cost_micros'] = pd.to_numeric(df[cost_col], errors='coerce').fillna(0) * MICROS_PER_UNIT
                column_mapping['cost_micros'] = '__cost_micros'

        field_to_standard = {}
        for field in fields:
            for standard_col, aliases in STANDARD_COLUMNS.items():
                if field in aliases:
                    field_to_standard[field] = standard_col
                    break

        missing = validate_required_columns(column_mapping, list(field_to_standard.values()))
        if missing:
            logger.warning(f"CSV report {self.path} is missing columns: {', '.join(missing)}")

        for record in df.to_dict(orient="records"):
            row = {}
            for field in fields:
                actual_col = column_mapping.get(field_to_standard.get(field))
                row[field] = record.get(actual_col) if actual_col else None
            yield row
