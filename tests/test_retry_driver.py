"""Tests for the retry driver."""

import pytest

from cost_accountant import TokenUsage
from exceptions import ParseError, ProviderError
from llm_client import Classification
from retry_driver import AttemptOutcome, attempt_once, run_with_retry


class ScriptedClassifier:
    """Raises or returns the scripted outcomes in order."""

    def __init__(self, *outcomes):
        self.outcomes = list(outcomes)
        self.calls = []

    def __call__(self, term):
        self.calls.append(term)
        outcome = self.outcomes.pop(0)
        if isinstance(outcome, Exception):
            raise outcome
        return outcome


def ticking_clock(step=0.5):
    state = {"now": 0.0}

    def clock():
        state["now"] += step
        return state["now"]

    return clock


class TestBackoff:
    def test_delays_double(self, sleeps):
        classifier = ScriptedClassifier(*[ParseError("bad")] * 4)
        run_with_retry("t", classifier, max_attempts=4, sleep=sleeps)
        assert sleeps.calls == [2, 4, 8]

    def test_single_attempt_never_sleeps(self, sleeps):
        result = run_with_retry("t", ScriptedClassifier(ParseError("bad")), max_attempts=0, sleep=sleeps)
        assert result.failed
        assert sleeps.calls == []


class TestAttemptOnce:
    def test_success_outcome(self):
        outcome = attempt_once("t", ScriptedClassifier(Classification("LOCAL", 0.9, TokenUsage(3, 1))))
        assert outcome.ok
        assert outcome.usage == TokenUsage(3, 1)

    def test_failure_outcome_keeps_usage(self):
        error = ParseError("No JSON found in response", usage=TokenUsage(7, 2))
        outcome = attempt_once("t", ScriptedClassifier(error))
        assert not outcome.ok
        assert outcome.error == "No JSON found in response"
        assert outcome.usage == TokenUsage(7, 2)

    def test_unexpected_exception_becomes_outcome(self):
        outcome = attempt_once("t", ScriptedClassifier(ConnectionError("reset by peer")))
        assert isinstance(outcome, AttemptOutcome)
        assert outcome.error == "ConnectionError: reset by peer"


class TestRunWithRetry:
    def test_first_attempt_success(self, sleeps):
        classifier = ScriptedClassifier(Classification("COMMERCIAL", 0.92, TokenUsage(10, 5)))

        result = run_with_retry("best running shoes", classifier, sleep=sleeps, clock=ticking_clock())

        assert result.category == "COMMERCIAL"
        assert result.confidence == 0.92
        assert result.error == ""
        assert result.duration == pytest.approx(0.5)
        assert sleeps.calls == []

    def test_success_after_failures(self, sleeps):
        classifier = ScriptedClassifier(
            ProviderError("openai", 429, "rate limited"),
            ProviderError("openai", 429, "rate limited"),
            Classification("LOCAL", 0.8, TokenUsage(10, 5)),
        )

        result = run_with_retry("plumber near me", classifier, sleep=sleeps)

        assert result.category == "LOCAL"
        assert result.error == ""
        assert not result.failed
        assert sleeps.calls == [2.0, 4.0]
        assert len(classifier.calls) == 3

    @pytest.mark.parametrize("max_attempts", [1, 2, 3, 4])
    def test_exhausted_retries_give_error_result(self, sleeps, max_attempts):
        errors = [ProviderError("gemini", 500, f"boom {n}") for n in range(max_attempts)]
        classifier = ScriptedClassifier(*errors)

        result = run_with_retry("term", classifier, max_attempts=max_attempts, sleep=sleeps)

        assert result.category == "ERROR"
        assert result.confidence == 0
        assert result.failed
        assert f"boom {max_attempts - 1}" in result.error
        assert sleeps.calls == [2.0 ** n for n in range(1, max_attempts)]
        assert sum(sleeps.calls) == sum(2 ** n for n in range(1, max_attempts))

    def test_usage_summed_across_attempts(self, sleeps):
        classifier = ScriptedClassifier(
            ParseError("bad", usage=TokenUsage(10, 5)),
            Classification("QUESTION", 0.6, TokenUsage(20, 15)),
        )

        result = run_with_retry("why is the sky blue", classifier, sleep=sleeps)

        assert result.usage == TokenUsage(30, 20)

    def test_error_row(self, sleeps):
        result = run_with_retry("t", ScriptedClassifier(*[ParseError("nope")] * 3), sleep=sleeps)
        assert result.to_row()[:3] == ["t", "ERROR", 0]
        assert result.to_row()[4] == "nope"
