"""
Retry driver: bounded retries with exponential backoff around one classification
"""

import logging
import time
from dataclasses import dataclass, field
from typing import Callable, List, Optional

from tenacity import RetryCallState, Retrying, retry_if_result, stop_after_attempt, wait_exponential

from config import ERROR_CATEGORY, MAX_RETRIES
from cost_accountant import TokenUsage, total_usage
from exceptions import ClassificationError
from llm_client import Classification

logger = logging.getLogger(__name__)


@dataclass
class ClassificationResult:
    term: str
    category: str
    confidence: float
    duration: float = 0.0
    error: str = ""
    usage: TokenUsage = field(default_factory=TokenUsage)

    @property
    def failed(self) -> bool:
        return self.category == ERROR_CATEGORY

    def to_row(self) -> list:
        return [self.term, self.category, self.confidence, round(self.duration, 3), self.error]


@dataclass
class AttemptOutcome:
    """Result of one attempt: a classification or an error message."""

    duration: float
    usage: TokenUsage
    classification: Optional[Classification] = None
    error: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.classification is not None


def attempt_once(term: str, classify_fn: Callable[[str], Classification],
                 clock: Callable[[], float] = time.monotonic) -> AttemptOutcome:
    """Run one classification call, turning any failure into an outcome."""
    start = clock()
    try:
        classification = classify_fn(term)
    except ClassificationError as e:
        return AttemptOutcome(clock() - start, e.usage or TokenUsage(), error=str(e))
    except Exception as e:
        return AttemptOutcome(clock() - start, TokenUsage(), error=f"{type(e).__name__}: {e}")
    return AttemptOutcome(clock() - start, classification.usage, classification=classification)


def run_with_retry(
    term: str,
    classify_fn: Callable[[str], Classification],
    max_attempts: int = MAX_RETRIES,
    sleep: Callable[[float], None] = time.sleep,
    clock: Callable[[], float] = time.monotonic,
) -> ClassificationResult:
    """
    Classify a term, retrying failed attempts with exponential backoff.

    Sleeps 2**n seconds after failed attempt n while attempts remain. A term
    that fails every attempt becomes an ERROR result carrying the last error;
    nothing is raised.
    """
    outcomes: List[AttemptOutcome] = []
    max_attempts = max(1, max_attempts)

    def attempt() -> AttemptOutcome:
        outcome = attempt_once(term, classify_fn, clock)
        outcomes.append(outcome)
        if not outcome.ok:
            logger.warning(f"API call failed (attempt {len(outcomes)}/{max_attempts}): {outcome.error}")
        return outcome

    def log_wait(retry_state: RetryCallState) -> None:
        logger.info(f"Waiting {retry_state.next_action.sleep:.0f}s before retry...")

    def give_up(retry_state: RetryCallState) -> AttemptOutcome:
        return retry_state.outcome.result()

    retrying = Retrying(
        stop=stop_after_attempt(max_attempts),
        wait=wait_exponential(multiplier=2),
        retry=retry_if_result(lambda outcome: not outcome.ok),
        sleep=sleep,
        before_sleep=log_wait,
        retry_error_callback=give_up,
    )
    last = retrying(attempt)
    usage = total_usage(o.usage for o in outcomes)

    if last.ok:
        return ClassificationResult(
            term=term,
            category=last.classification.category,
            confidence=last.classification.confidence,
            duration=last.duration,
            usage=usage,
        )

    logger.error(f'All retries failed for term "{term}": {last.error}')
    return ClassificationResult(
        term=term,
        category=ERROR_CATEGORY,
        confidence=0,
        duration=last.duration,
        error=last.error or "Unknown error",
        usage=usage,
    )
