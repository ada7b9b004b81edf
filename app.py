"""
Search Term Classifier - main entry point

Runs the report jobs (when a Google Ads customer is configured) and the
classification job against the spreadsheet named by SHEET_URL.
"""

import logging
from typing import Optional

import config
from exceptions import ConfigurationError
from report_source import GoogleAdsReportSource
from search_term_report import run_daily_report, run_search_term_report
from sheet_writer import append_log
from term_classifier import RunSummary, run_classification
from workbooks import GoogleSheetsWorkbook, Workbook

logger = logging.getLogger(__name__)


def configure_logging(level: str = config.LOG_LEVEL):
    logging.basicConfig(
        level=getattr(logging, str(level).upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def open_workbook(sheet_url: str = config.SHEET_URL,
                  credentials_path: str = config.GOOGLE_APPLICATION_CREDENTIALS) -> Workbook:
    if not sheet_url:
        raise ConfigurationError("SHEET_URL is not set")
    return GoogleSheetsWorkbook.from_url(sheet_url, credentials_path)


def run_reports(workbook: Workbook, customer_id: str = config.GOOGLE_ADS_CUSTOMER_ID,
                configuration_file: str = config.GOOGLE_ADS_CONFIGURATION_FILE) -> bool:
    """Write the search term and daily tabs; skipped when no customer is configured."""
    if not customer_id:
        logger.info("GOOGLE_ADS_CUSTOMER_ID not set, skipping report jobs")
        return False
    source = GoogleAdsReportSource(customer_id, configuration_file=configuration_file)
    run_search_term_report(workbook, source)
    run_daily_report(workbook, source)
    return True


def main(workbook: Optional[Workbook] = None) -> int:
    configure_logging()
    try:
        workbook = workbook or open_workbook()
    except ConfigurationError as e:
        logger.error(f"Could not open spreadsheet: {e}")
        return 1

    try:
        run_reports(workbook)
    except ConfigurationError as e:
        logger.error(f"Report jobs skipped: {e}")
        append_log(workbook, f"Report jobs skipped: {e}")
    except Exception as e:
        logger.exception(f"Error in report jobs: {e}")
        append_log(workbook, f"Report jobs failed: {type(e).__name__}: {e}")

    summary: Optional[RunSummary] = run_classification(workbook)
    if summary is None:
        return 1

    failed = sum(1 for r in summary.results if r.failed)
    logger.info(
        f"Done: {len(summary.results)} terms, {failed} errors, "
        f"estimated cost ${summary.estimate.total:.4f} ({summary.model})"
    )
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
