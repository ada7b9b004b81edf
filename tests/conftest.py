"""Pytest configuration and shared fixtures."""

from unittest.mock import Mock

import pytest

from workbooks import InMemoryWorkbook


class SleepRecorder:
    """Records backoff sleeps instead of sleeping."""

    def __init__(self):
        self.calls = []

    def __call__(self, seconds):
        self.calls.append(seconds)


@pytest.fixture
def session():
    """Mock requests session; tests set post.return_value / side_effect."""
    return Mock()


@pytest.fixture
def sleeps():
    return SleepRecorder()


@pytest.fixture
def settings_workbook():
    """Workbook carrying a valid OpenAI classification setup."""
    return InMemoryWorkbook(
        named_ranges={
            "model": "openai",
            "cheap": "TRUE",
            "topTerms": [["best running shoes"], [""], ["how to tie laces"]],
            "key_openai": "sk-shared",
        }
    )
