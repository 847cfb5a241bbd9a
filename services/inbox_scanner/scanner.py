# services/inbox_scanner/scanner.py
"""Entry point of the card-transactions report.

Zero-argument invocation meant for a scheduler (cron, systemd timer, Cloud
Scheduler ...): load settings, validate the user configuration, scan the
inbox once, push metrics, exit.

Exit codes: ``0`` every thread processed, ``1`` at least one thread left
unprocessed, ``2`` invalid configuration (nothing was contacted).
"""
from __future__ import annotations

import logging
import sys

from ccreport.config import Settings, get_settings, load_user_config
from ccreport.errors import ConfigError
from ccreport.gmail import GmailClient
from ccreport.google_api import load_credentials
from ccreport.regexes import TransactionProcessor
from ccreport.sentry import init_sentry, sentry_capture
from ccreport.sheets import SheetsClient
from ccreport.workflow import ScanReport, WorkflowOrchestrator
from services.inbox_scanner.metrics import push_metrics, record_scan

logger = logging.getLogger("inbox_scanner")

RELEASE = "inbox_scanner@1.0.0"


def run(settings: Settings) -> ScanReport:
    """One inbox scan with clients built from *settings*."""
    user_config = load_user_config(settings)
    credentials = load_credentials(settings)

    processor = TransactionProcessor(strict=settings.strict_parsing)
    with GmailClient(credentials=credentials, timeout=settings.http_timeout) as gmail, SheetsClient(
        spreadsheet_id=user_config.spreadsheet_id,
        credentials=credentials,
        timeout=settings.http_timeout,
    ) as sheets:
        orchestrator = WorkflowOrchestrator(
            gmail,
            processor,
            sheets,
            primary_label=settings.primary_label,
            processed_label=settings.processed_label,
        )
        return orchestrator.execute(user_config)


def main() -> int:
    settings = get_settings()
    logging.basicConfig(level=settings.log_level.upper(), format="%(asctime)s %(levelname)s %(name)s %(message)s")
    init_sentry(release=RELEASE)

    try:
        report = run(settings)
    except ConfigError as exc:
        logger.error("Fatal error: %s", exc)
        return 2
    except Exception as exc:
        logger.exception("Error in main execution: %s", exc)
        sentry_capture(exc)
        raise

    record_scan(report)
    try:
        push_metrics(settings.pushgateway_url)
    except OSError as exc:
        logger.warning("Could not push metrics: %s", exc)
        sentry_capture(exc)

    for failure in report.failures:
        logger.warning("Unprocessed thread %s: %s", failure.thread_id, failure.error)
    return 0 if report.ok else 1


if __name__ == "__main__":
    sys.exit(main())
