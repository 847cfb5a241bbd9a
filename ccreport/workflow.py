# ccreport/workflow.py
"""Inbox scan orchestration.

Per thread::

    UNPROCESSED ──(every message: identify → extract → append)──▶ PROCESSED

A failure anywhere inside a thread stops that thread: it is *not* labelled
and will be picked up again by the next scan.  Rows already appended for
earlier messages of the same thread stay in the sheet, so a re-run can append
them twice (at-least-once, no dedup key).  Other threads of the scan are
still attempted.
"""
from __future__ import annotations

import logging

from pydantic import BaseModel, Field

from ccreport.config import PRIMARY_LABEL, PROCESSED_LABEL
from ccreport.errors import NoCardIdentified, NoTransactionsFound
from ccreport.gmail import MailGateway, MailMessage, MailThread
from ccreport.models import UserConfig
from ccreport.regexes import TransactionProcessor
from ccreport.sentry import sentry_capture
from ccreport.sheets import SheetWriter

__all__ = ["ThreadFailure", "ScanReport", "WorkflowOrchestrator"]

logger = logging.getLogger(__name__)


class ThreadFailure(BaseModel):
    thread_id: str
    error: str


class ScanReport(BaseModel):
    """Outcome of one inbox scan."""

    threads_found: int = 0
    threads_processed: int = 0
    rows_appended: int = 0
    failures: list[ThreadFailure] = Field(default_factory=list)

    @property
    def threads_failed(self) -> int:
        return len(self.failures)

    @property
    def ok(self) -> bool:
        return not self.failures


class WorkflowOrchestrator:
    """Drives mail → processor → sheet for every unprocessed thread.

    All collaborators are injected, so tests can hand in fakes.
    """

    def __init__(
        self,
        mail: MailGateway,
        processor: TransactionProcessor,
        sheets: SheetWriter,
        *,
        primary_label: str = PRIMARY_LABEL,
        processed_label: str = PROCESSED_LABEL,
    ) -> None:
        self.mail = mail
        self.processor = processor
        self.sheets = sheets
        self.primary_label = primary_label
        self.processed_label = processed_label

    def process_message(self, message: MailMessage, user_config: UserConfig) -> int:
        """Append the transactions of one message; returns the number of rows."""
        body = message.plain_body()
        card = self.processor.identify_card(body, user_config)
        if card is None:
            raise NoCardIdentified()

        logger.info("Card identified: %s", card.name)
        transactions = self.processor.extract_transactions(body, card.name)
        if not transactions:
            raise NoTransactionsFound(card.name)

        logger.info("Extracted %d transactions", len(transactions))
        return self.sheets.append_transactions(transactions, card.sheet_name)

    def process_thread(self, thread: MailThread, user_config: UserConfig) -> int:
        """Process every message of *thread*, then label it as processed.

        Any exception propagates and leaves the thread unlabelled.
        """
        rows = 0
        for message in thread.messages():
            rows += self.process_message(message, user_config)

        self.mail.mark_processed(thread, self.processed_label)
        return rows

    def execute(self, user_config: UserConfig) -> ScanReport:
        logger.info("Starting the email processing workflow...")
        # Compile markers / resolve the locale before touching the mailbox.
        self.processor.prepare(user_config)

        threads = self.mail.find_unprocessed_threads(self.primary_label, self.processed_label)
        report = ScanReport(threads_found=len(threads))
        logger.info("Found %d email threads to process", len(threads))

        for thread in threads:
            try:
                report.rows_appended += self.process_thread(thread, user_config)
            except Exception as exc:
                logger.error("Thread %s left unprocessed: %s", thread.id, exc)
                sentry_capture(exc, extras={"thread_id": thread.id})
                report.failures.append(ThreadFailure(thread_id=thread.id, error=str(exc)))
                continue
            report.threads_processed += 1

        logger.info(
            "Workflow completed: %d processed, %d failed, %d rows appended",
            report.threads_processed,
            report.threads_failed,
            report.rows_appended,
        )
        return report
