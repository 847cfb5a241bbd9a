# services/inbox_scanner/metrics.py
"""Prometheus metrics for the *Inbox Scanner*.

The scanner is a short-lived batch job, so nothing is served over HTTP: the
counters live in a private registry and are pushed to a Pushgateway at the
end of the run (:func:`push_metrics`).  Without ``PUSHGATEWAY_URL`` the push
is skipped.
"""
from __future__ import annotations

import logging
from typing import Optional

from prometheus_client import CollectorRegistry, Counter, Gauge, push_to_gateway

from ccreport.workflow import ScanReport

log = logging.getLogger(__name__)

JOB_NAME = "cc_transactions_report"

# ---------------------------------------------------------------------------
# Metric objects (module-level singletons)
# ---------------------------------------------------------------------------
REGISTRY = CollectorRegistry()

THREADS_PROCESSED = Counter(
    "cc_report_threads_processed_total",
    "Threads fully processed and labelled",
    registry=REGISTRY,
)
THREADS_FAILED = Counter(
    "cc_report_threads_failed_total",
    "Threads left unprocessed because a message failed",
    registry=REGISTRY,
)
ROWS_APPENDED = Counter(
    "cc_report_rows_appended_total",
    "Transaction rows appended to the spreadsheet",
    registry=REGISTRY,
)
LAST_SUCCESS = Gauge(
    "cc_report_last_success_unixtime",
    "Unix time of the last scan without failed threads",
    registry=REGISTRY,
)


def record_scan(report: ScanReport) -> None:
    THREADS_PROCESSED.inc(report.threads_processed)
    THREADS_FAILED.inc(report.threads_failed)
    ROWS_APPENDED.inc(report.rows_appended)
    if report.ok:
        LAST_SUCCESS.set_to_current_time()


def push_metrics(gateway_url: Optional[str], *, job: str = JOB_NAME) -> None:
    """Push :data:`REGISTRY` to *gateway_url* (no-op when unset)."""
    if not gateway_url:
        log.debug("PUSHGATEWAY_URL not set, metrics not pushed")
        return
    push_to_gateway(gateway_url, job=job, registry=REGISTRY)
    log.info("Metrics pushed to %s", gateway_url)
