"""
Search term classification pipeline: settings -> provider -> results sheet
"""

import logging
import math
import time
from collections import Counter
from dataclasses import dataclass
from typing import Any, Callable, List, Optional, Sequence, Tuple

import requests

from config import (
    ACCOUNT_KEY_PREFIX,
    CATEGORY_SETS,
    DEFAULT_BATCH_SIZE,
    INTENT_CATEGORIES,
    MAX_RETRIES,
    RANGE_BATCH_SIZE,
    RANGE_CATEGORIES,
    RANGE_CHEAP,
    RANGE_MODEL,
    RANGE_TERMS,
    RESULTS_HEADER,
    RESULTS_TAB,
    SHARED_KEY_PREFIX,
    SUMMARY_HEADER,
    SUMMARY_TAB,
)
from cost_accountant import CostAccountant, CostEstimate, TokenUsage
from exceptions import ConfigurationError, SinkError
from llm_client import Provider, ProviderAdapter, get_adapter, get_model_version
from retry_driver import ClassificationResult, run_with_retry
from sheet_writer import append_log, to_cells, write_table
from workbooks import Workbook

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Settings:
    provider: Provider
    cost_tier: str
    terms: Tuple[str, ...]
    categories: Tuple[str, ...] = INTENT_CATEGORIES
    batch_size: int = DEFAULT_BATCH_SIZE

    @property
    def model(self) -> str:
        return get_model_version(self.provider, self.cost_tier)


@dataclass
class RunSummary:
    model: str
    results: List[ClassificationResult]
    totals: TokenUsage
    estimate: CostEstimate


def _flatten(values: Optional[List[List[Any]]]) -> List[Any]:
    return [cell for row in (values or []) for cell in row]


def _is_blank(value: Any) -> bool:
    if value is None:
        return True
    if isinstance(value, float) and math.isnan(value):
        return True
    return str(value).strip() == ""


def _read_batch_size(workbook: Workbook) -> int:
    value = workbook.get_value(RANGE_BATCH_SIZE)
    if _is_blank(value):
        logger.info(f"No batchSize setting found, defaulting to {DEFAULT_BATCH_SIZE}")
        return DEFAULT_BATCH_SIZE
    try:
        batch_size = int(float(value))
    except (TypeError, ValueError):
        batch_size = 0
    if batch_size < 1:
        logger.warning(f"Invalid batchSize {value!r}, defaulting to {DEFAULT_BATCH_SIZE}")
        return DEFAULT_BATCH_SIZE
    return batch_size


def _read_categories(workbook: Workbook) -> Tuple[str, ...]:
    values = [str(v).strip() for v in _flatten(workbook.get_by_name(RANGE_CATEGORIES)) if not _is_blank(v)]
    if not values:
        return INTENT_CATEGORIES
    if len(values) == 1 and values[0].lower() in CATEGORY_SETS:
        return CATEGORY_SETS[values[0].lower()]
    return tuple(dict.fromkeys(v.upper() for v in values))


def read_settings(workbook: Workbook) -> Settings:
    """
    Read and validate run settings from the sheet's named ranges.

    Raises:
        ConfigurationError: unknown provider or no search terms
    """
    model_value = workbook.get_value(RANGE_MODEL)
    if _is_blank(model_value):
        raise ConfigurationError("Could not read 'model' setting")
    provider = Provider.from_setting(model_value)

    cheap_value = workbook.get_value(RANGE_CHEAP)
    cheap = str(cheap_value).strip().lower() in ("yes", "true") if not _is_blank(cheap_value) else False

    terms = tuple(str(term).strip() for term in _flatten(workbook.get_by_name(RANGE_TERMS)) if not _is_blank(term))
    if not terms:
        raise ConfigurationError("No search terms found")

    settings = Settings(
        provider=provider,
        cost_tier="cheap" if cheap else "standard",
        terms=terms,
        categories=_read_categories(workbook),
        batch_size=_read_batch_size(workbook),
    )
    logger.info(
        f"Settings read: provider={settings.provider.value} tier={settings.cost_tier} "
        f"terms={len(settings.terms)} categories={','.join(settings.categories)}"
    )
    return settings


def get_api_key(workbook: Workbook, provider: Provider) -> str:
    """Account-specific key (mike_key_*) wins over the shared key (key_*)."""
    for prefix in (ACCOUNT_KEY_PREFIX, SHARED_KEY_PREFIX):
        for alias in provider.aliases:
            range_name = f"{prefix}{alias}"
            value = workbook.get_value(range_name)
            if not _is_blank(value):
                logger.info(f"Using {range_name}")
                return str(value).strip()
    raise ConfigurationError(f"No API key found for {provider.value}")


def classify_terms(
    settings: Settings,
    adapter: ProviderAdapter,
    max_attempts: int = MAX_RETRIES,
    sleep: Callable[[float], None] = time.sleep,
) -> List[ClassificationResult]:
    """Classify every term in order, one at a time; failed terms become ERROR results."""
    results = []
    total = len(settings.terms)
    num_batches = math.ceil(total / settings.batch_size)

    logger.info(f"Classifying {total} search terms using {adapter.model}")
    logger.info(f"Processing in {num_batches} batches of up to {settings.batch_size} terms each")

    for index, term in enumerate(settings.terms):
        if index % settings.batch_size == 0:
            batch = index // settings.batch_size + 1
            logger.info(f"Processing batch {batch}/{num_batches} (terms {index + 1}-{min(index + settings.batch_size, total)})")

        result = run_with_retry(term, adapter.classify, max_attempts=max_attempts, sleep=sleep)
        results.append(result)

        logger.info(
            f'Classified "{term}" as {result.category} in {result.duration:.2f} seconds '
            f"({math.floor((index + 1) / total * 100)}%, {index + 1}/{total})"
        )

    logger.info(f"Classification complete. Processed {len(results)} search terms.")
    return results


def output_results(workbook: Workbook, results: Sequence[ClassificationResult]) -> bool:
    """Overwrite the Results tab with one row per term."""
    return write_table(workbook, RESULTS_TAB, RESULTS_HEADER, [r.to_row() for r in results])


def write_cost_summary(workbook: Workbook, model: str, totals: TokenUsage, estimate: CostEstimate) -> bool:
    """Add the token/cost summary block two rows below the Results table."""
    try:
        start_row = len(workbook.read_rows(RESULTS_TAB)) + 3
        rows = [
            ["SUMMARY", ""],
            ["Model Used", model],
            ["Input Tokens", totals.input_tokens],
            ["Output Tokens", totals.output_tokens],
            ["Total Tokens", totals.total_tokens],
            ["Estimated Cost", f"${estimate.total:.4f}"],
        ]
        workbook.write_rows(RESULTS_TAB, rows, start_row=start_row)
    except SinkError as e:
        logger.error(f"Could not add cost summary to sheet: {e}")
        return False

    logger.info("Cost summary added to Results sheet")
    return True


def summarize_categories(results: Sequence[ClassificationResult], categories: Sequence[str]) -> List[List[Any]]:
    """Category counts and shares among successfully classified terms."""
    counts = Counter(r.category for r in results if not r.failed)
    classified = sum(counts.values())
    errors = sum(1 for r in results if r.failed)

    extra = [c for c in counts if c not in categories]
    rows = []
    for category in list(categories) + extra:
        count = counts.get(category, 0)
        rows.append([category, count, count / classified if classified else 0])
    rows.append(["Total Classified", classified, ""])
    if errors:
        rows.append(["Errors/Unclassified", errors, ""])
    return rows


def create_summary_report(workbook: Workbook, results: Sequence[ClassificationResult],
                          categories: Sequence[str]) -> bool:
    return write_table(workbook, SUMMARY_TAB, SUMMARY_HEADER, to_cells(summarize_categories(results, categories)))


def run_classification(
    workbook: Workbook,
    session: Optional[requests.Session] = None,
    sleep: Callable[[float], None] = time.sleep,
    strict_categories: bool = True,
) -> Optional[RunSummary]:
    """
    Run one classification job end to end.

    Configuration and unexpected errors are caught here, logged and written to
    the Logs tab; per-term failures never reach this level.

    Returns:
        RunSummary, or None when the run was aborted
    """
    try:
        logger.info("Starting search term classification")
        settings = read_settings(workbook)
        api_key = get_api_key(workbook, settings.provider)

        adapter = get_adapter(
            settings.provider,
            api_key,
            settings.model,
            categories=settings.categories,
            session=session,
            strict_categories=strict_categories,
        )
        results = classify_terms(settings, adapter, sleep=sleep)

        accountant = CostAccountant()
        for result in results:
            accountant.accumulate(result.usage)
        estimate = accountant.estimate(settings.provider.value, settings.cost_tier)

        if output_results(workbook, results):
            write_cost_summary(workbook, settings.model, accountant.totals, estimate)
        create_summary_report(workbook, results, settings.categories)

        logger.info("Classification run completed successfully")
        return RunSummary(settings.model, results, accountant.totals, estimate)

    except ConfigurationError as e:
        logger.error(f"Configuration error: {e}")
        append_log(workbook, str(e))
    except Exception as e:
        logger.exception(f"Error in classification run: {e}")
        append_log(workbook, f"{type(e).__name__}: {e}")
    return None
