"""Tests for the command-line entry point."""

from unittest.mock import Mock

import pytest

import app
import term_classifier
from exceptions import ConfigurationError
from tests.helpers import make_response, openai_body


def test_open_workbook_requires_url():
    with pytest.raises(ConfigurationError):
        app.open_workbook("", "creds.json")


def test_reports_skipped_without_customer(settings_workbook):
    assert app.run_reports(settings_workbook, customer_id="") is False


def test_main_runs_classification(settings_workbook, monkeypatch, session, sleeps):
    session.post.return_value = make_response(200, openai_body('{"category": "QUESTION", "confidence": 0.7}'))
    monkeypatch.setattr(app, "run_reports", Mock(return_value=False))
    monkeypatch.setattr(
        app, "run_classification",
        lambda workbook: term_classifier.run_classification(workbook, session=session, sleep=sleeps),
    )

    assert app.main(settings_workbook) == 0
    assert settings_workbook.read_rows("Results")[1][1] == "QUESTION"


def test_main_fails_when_classification_aborts(settings_workbook, monkeypatch, session):
    settings_workbook.set_named_range("topTerms", [])
    monkeypatch.setattr(app, "run_reports", Mock(return_value=False))

    assert app.main(settings_workbook) == 1
    session.post.assert_not_called()


def test_report_failure_is_logged_and_classification_still_runs(settings_workbook, monkeypatch, session, sleeps):
    session.post.return_value = make_response(200, openai_body('{"category": "LOCAL", "confidence": 0.9}'))
    monkeypatch.setattr(app, "run_reports", Mock(side_effect=RuntimeError("stream reset")))
    monkeypatch.setattr(
        app, "run_classification",
        lambda workbook: term_classifier.run_classification(workbook, session=session, sleep=sleeps),
    )

    assert app.main(settings_workbook) == 0

    logs = settings_workbook.read_rows("Logs")
    assert logs[1][2] == "Report jobs failed: RuntimeError: stream reset"
    assert settings_workbook.read_rows("Results")[1][1] == "LOCAL"
