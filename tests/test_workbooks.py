"""Tests for the workbook backends."""

from unittest.mock import Mock

import httplib2
import pytest
from google.auth.exceptions import RefreshError
from googleapiclient.errors import HttpError

from exceptions import ConfigurationError, SinkError
from workbooks import GoogleSheetsWorkbook, InMemoryWorkbook, spreadsheet_id_from_url


def http_error(status):
    return HttpError(httplib2.Response({"status": status}), b'{"error": {"message": "bad"}}')


class TestSpreadsheetId:
    def test_from_url(self):
        url = "https://docs.google.com/spreadsheets/d/1AbC-d_E/edit#gid=0"
        assert spreadsheet_id_from_url(url) == "1AbC-d_E"

    def test_bare_id(self):
        assert spreadsheet_id_from_url("1AbC-d_E") == "1AbC-d_E"

    @pytest.mark.parametrize("url", ["", "https://example.com/sheet"])
    def test_invalid(self, url):
        with pytest.raises(ConfigurationError):
            spreadsheet_id_from_url(url)


class TestInMemoryWorkbook:
    def test_named_ranges(self):
        workbook = InMemoryWorkbook({"model": "openai", "topTerms": [["a"], ["b"]], "flat": ["x", "y"]})

        assert workbook.get_value("model") == "openai"
        assert workbook.get_by_name("topTerms") == [["a"], ["b"]]
        assert workbook.get_by_name("flat") == [["x"], ["y"]]
        assert workbook.get_by_name("missing") is None
        assert workbook.get_value("missing") is None

    def test_write_pads_and_overwrites(self):
        workbook = InMemoryWorkbook(tabs={"T": [["a"], ["b"]]})

        workbook.write_rows("T", [["B"]], start_row=2)
        workbook.write_rows("T", [["z"]], start_row=5)

        assert workbook.read_rows("T") == [["a"], ["B"], [], [], ["z"]]

    def test_append_and_create(self):
        workbook = InMemoryWorkbook()
        assert workbook.get_or_create_tab("Logs") is True
        assert workbook.get_or_create_tab("Logs") is False

        workbook.append_rows("Logs", [["one"]])
        workbook.append_rows("Logs", [["two"]])
        assert workbook.read_rows("Logs") == [["one"], ["two"]]

    def test_unknown_tab(self):
        with pytest.raises(SinkError):
            InMemoryWorkbook().read_rows("Nope")


class TestGoogleSheetsWorkbook:
    @pytest.fixture
    def service(self):
        return Mock()

    @pytest.fixture
    def workbook(self, service):
        return GoogleSheetsWorkbook("sheet-id", service=service)

    def test_get_by_name(self, workbook, service):
        values = service.spreadsheets.return_value.values.return_value
        values.get.return_value.execute.return_value = {"values": [["openai"]]}

        assert workbook.get_value("model") == "openai"
        values.get.assert_called_once_with(spreadsheetId="sheet-id", range="model", majorDimension="ROWS")

    def test_undefined_named_range(self, workbook, service):
        values = service.spreadsheets.return_value.values.return_value
        values.get.return_value.execute.side_effect = http_error(400)

        assert workbook.get_by_name("mike_key_openai") is None

    def test_other_http_errors(self, workbook, service):
        values = service.spreadsheets.return_value.values.return_value
        values.get.return_value.execute.side_effect = http_error(403)

        with pytest.raises(SinkError):
            workbook.get_by_name("model")

    def test_tab_lifecycle(self, workbook, service):
        spreadsheets = service.spreadsheets.return_value
        spreadsheets.get.return_value.execute.return_value = {
            "sheets": [{"properties": {"title": "Settings"}}]
        }

        assert workbook.get_or_create_tab("Results") is True

        body = spreadsheets.batchUpdate.call_args.kwargs["body"]
        assert body == {"requests": [{"addSheet": {"properties": {"title": "Results"}}}]}

    def test_write_rows_range(self, workbook, service):
        values = service.spreadsheets.return_value.values.return_value

        workbook.write_rows("Summary Report", [["a", 1]], start_row=3)

        kwargs = values.update.call_args.kwargs
        assert kwargs["range"] == "'Summary Report'!A3"
        assert kwargs["valueInputOption"] == "RAW"
        assert kwargs["body"] == {"values": [["a", 1]]}

    def test_write_failure_is_sink_error(self, workbook, service):
        values = service.spreadsheets.return_value.values.return_value
        values.update.return_value.execute.side_effect = http_error(500)

        with pytest.raises(SinkError, match="Results"):
            workbook.write_rows("Results", [["a"]])

    def test_missing_credentials(self):
        with pytest.raises(SinkError, match="credentials"):
            GoogleSheetsWorkbook("sheet-id").read_rows("Results")

    def test_unreadable_credentials_file(self, tmp_path):
        workbook = GoogleSheetsWorkbook("sheet-id", credentials_path=str(tmp_path / "missing.json"))
        with pytest.raises(SinkError, match="Could not connect"):
            workbook.get_by_name("model")

    def test_transport_failure(self, workbook, service):
        values = service.spreadsheets.return_value.values.return_value
        values.get.return_value.execute.side_effect = OSError("connection reset")

        with pytest.raises(SinkError, match="connection reset"):
            workbook.get_by_name("model")

    def test_token_refresh_failure(self, workbook, service):
        service.spreadsheets.return_value.get.return_value.execute.side_effect = RefreshError("invalid_grant")

        with pytest.raises(SinkError):
            workbook.tab_exists("Logs")
