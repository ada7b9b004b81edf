"""
Spreadsheet backends: Google Sheets (API v4) and an in-memory workbook
"""

import logging
import re
from abc import ABC, abstractmethod
from typing import Any, Callable, Dict, List, Optional, Sequence

from google.auth.exceptions import GoogleAuthError
from google.oauth2 import service_account
from googleapiclient.discovery import build
from googleapiclient.errors import HttpError

from exceptions import ConfigurationError, SinkError

logger = logging.getLogger(__name__)

SCOPES = ["https://www.googleapis.com/auth/spreadsheets"]

_SPREADSHEET_ID_RE = re.compile(r"/spreadsheets/d/([a-zA-Z0-9-_]+)")

Rows = List[List[Any]]


def spreadsheet_id_from_url(url: str) -> str:
    """Extract the spreadsheet id from a Google Sheets URL (a bare id is returned as is)."""
    url = (url or "").strip()
    match = _SPREADSHEET_ID_RE.search(url)
    if match:
        return match.group(1)
    if url and "/" not in url:
        return url
    raise ConfigurationError(f"Not a Google Sheets URL: {url!r}")


class Workbook(ABC):
    """A 2-D tabular store addressable by named ranges and tab names."""

    @abstractmethod
    def get_by_name(self, range_name: str) -> Optional[Rows]:
        """Values of a named range, or None when the range is not defined."""

    @abstractmethod
    def tab_exists(self, name: str) -> bool:
        ...

    @abstractmethod
    def create_tab(self, name: str) -> None:
        ...

    @abstractmethod
    def clear(self, name: str) -> None:
        ...

    @abstractmethod
    def write_rows(self, name: str, rows: Sequence[Sequence[Any]], start_row: int = 1) -> None:
        """Bulk write rows starting at 1-based `start_row`, column A."""

    @abstractmethod
    def read_rows(self, name: str) -> Rows:
        ...

    def get_value(self, range_name: str) -> Any:
        """Top-left value of a named range, or None."""
        values = self.get_by_name(range_name)
        if not values or not values[0]:
            return None
        return values[0][0]

    def get_or_create_tab(self, name: str) -> bool:
        """Ensure a tab exists; returns True when it was created."""
        if self.tab_exists(name):
            return False
        self.create_tab(name)
        return True

    def append_rows(self, name: str, rows: Sequence[Sequence[Any]]) -> None:
        self.write_rows(name, rows, start_row=len(self.read_rows(name)) + 1)


class InMemoryWorkbook(Workbook):
    """Dict-backed workbook for local runs and tests."""

    def __init__(self, named_ranges: Optional[Dict[str, Any]] = None,
                 tabs: Optional[Dict[str, Rows]] = None):
        self.named_ranges: Dict[str, Rows] = {}
        for name, value in (named_ranges or {}).items():
            self.set_named_range(name, value)
        self.tabs: Dict[str, Rows] = {name: [list(r) for r in rows] for name, rows in (tabs or {}).items()}

    def set_named_range(self, name: str, value: Any) -> None:
        if isinstance(value, list):
            self.named_ranges[name] = [list(r) if isinstance(r, (list, tuple)) else [r] for r in value]
        else:
            self.named_ranges[name] = [[value]]

    def get_by_name(self, range_name: str) -> Optional[Rows]:
        values = self.named_ranges.get(range_name)
        return [list(r) for r in values] if values is not None else None

    def tab_exists(self, name: str) -> bool:
        return name in self.tabs

    def create_tab(self, name: str) -> None:
        self.tabs.setdefault(name, [])

    def clear(self, name: str) -> None:
        self._tab(name).clear()

    def write_rows(self, name: str, rows: Sequence[Sequence[Any]], start_row: int = 1) -> None:
        tab = self._tab(name)
        while len(tab) < start_row - 1:
            tab.append([])
        for offset, row in enumerate(rows):
            index = start_row - 1 + offset
            if index < len(tab):
                tab[index] = list(row)
            else:
                tab.append(list(row))

    def read_rows(self, name: str) -> Rows:
        return [list(r) for r in self._tab(name)]

    def _tab(self, name: str) -> Rows:
        if name not in self.tabs:
            raise SinkError(f"Tab '{name}' does not exist")
        return self.tabs[name]


class GoogleSheetsWorkbook(Workbook):
    """Workbook backed by the Google Sheets API v4.

    Every API failure (HTTP status, transport, credentials) surfaces as SinkError.
    """

    def __init__(self, spreadsheet_id: str, credentials_path: Optional[str] = None, service=None):
        self.spreadsheet_id = spreadsheet_id
        self.credentials_path = credentials_path
        self._sheets = service

    @classmethod
    def from_url(cls, url: str, credentials_path: Optional[str] = None) -> "GoogleSheetsWorkbook":
        return cls(spreadsheet_id_from_url(url), credentials_path)

    def _sheets_service(self):
        if self._sheets is None:
            if not self.credentials_path:
                raise SinkError("No service account credentials configured for Google Sheets")
            try:
                credentials = service_account.Credentials.from_service_account_file(
                    self.credentials_path, scopes=SCOPES
                )
                self._sheets = build("sheets", "v4", credentials=credentials, cache_discovery=False)
            except (OSError, ValueError, GoogleAuthError, HttpError) as exc:
                raise SinkError(f"Could not connect to Google Sheets: {exc}") from exc
        return self._sheets

    def _execute(self, make_request: Callable[[Any], Any], failure: str) -> Any:
        """Build a request against the service and execute it."""
        try:
            return make_request(self._sheets_service().spreadsheets()).execute()
        except (HttpError, OSError, GoogleAuthError) as exc:
            # OSError / GoogleAuthError: transport and token refresh failures
            raise SinkError(f"{failure}: {exc}") from exc

    @staticmethod
    def _a1(name: str, cell: str = "") -> str:
        safe_title = name.replace("'", "''")
        return f"'{safe_title}'!{cell}" if cell else f"'{safe_title}'"

    def get_by_name(self, range_name: str) -> Optional[Rows]:
        try:
            payload = self._execute(
                lambda sheets: sheets.values().get(
                    spreadsheetId=self.spreadsheet_id,
                    range=range_name,
                    majorDimension="ROWS",
                ),
                f"Could not read range '{range_name}'",
            )
        except SinkError as exc:
            cause = exc.__cause__
            if isinstance(cause, HttpError) and cause.resp.status == 400:
                # unknown named range
                return None
            raise
        return payload.get("values", [])

    def _titles(self) -> List[str]:
        meta = self._execute(
            lambda sheets: sheets.get(spreadsheetId=self.spreadsheet_id, fields="sheets.properties.title"),
            "Could not read spreadsheet metadata",
        )
        return [sheet["properties"]["title"] for sheet in meta.get("sheets", [])]

    def tab_exists(self, name: str) -> bool:
        return name in self._titles()

    def create_tab(self, name: str) -> None:
        body = {"requests": [{"addSheet": {"properties": {"title": name}}}]}
        self._execute(
            lambda sheets: sheets.batchUpdate(spreadsheetId=self.spreadsheet_id, body=body),
            f"Could not create sheet '{name}'",
        )
        logger.info(f"Created sheet '{name}'")

    def clear(self, name: str) -> None:
        self._execute(
            lambda sheets: sheets.values().clear(
                spreadsheetId=self.spreadsheet_id, range=self._a1(name), body={}
            ),
            f"Could not clear sheet '{name}'",
        )

    def write_rows(self, name: str, rows: Sequence[Sequence[Any]], start_row: int = 1) -> None:
        if not rows:
            return
        self._execute(
            lambda sheets: sheets.values().update(
                spreadsheetId=self.spreadsheet_id,
                range=self._a1(name, f"A{start_row}"),
                valueInputOption="RAW",
                body={"values": [list(row) for row in rows]},
            ),
            f"Could not write to sheet '{name}'",
        )

    def read_rows(self, name: str) -> Rows:
        payload = self._execute(
            lambda sheets: sheets.values().get(spreadsheetId=self.spreadsheet_id, range=self._a1(name)),
            f"Could not read sheet '{name}'",
        )
        return payload.get("values", [])

    def append_rows(self, name: str, rows: Sequence[Sequence[Any]]) -> None:
        self._execute(
            lambda sheets: sheets.values().append(
                spreadsheetId=self.spreadsheet_id,
                range=self._a1(name, "A1"),
                valueInputOption="RAW",
                insertDataOption="INSERT_ROWS",
                body={"values": [list(row) for row in rows]},
            ),
            f"Could not append to sheet '{name}'",
        )
