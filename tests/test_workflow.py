# tests/test_workflow.py
from __future__ import annotations

import pytest

from ccreport.config import PRIMARY_LABEL, PROCESSED_LABEL
from ccreport.errors import ConfigError, NoCardIdentified, NoTransactionsFound, SheetNotFound
from ccreport.models import UserConfig
from ccreport.regexes import TransactionProcessor
from ccreport.sheets import transaction_to_row
from ccreport.workflow import WorkflowOrchestrator


class FakeMessage:
    def __init__(self, body: str = "", error: Exception | None = None) -> None:
        self.body = body
        self.error = error

    def plain_body(self) -> str:
        if self.error is not None:
            raise self.error
        return self.body


class FakeThread:
    def __init__(self, thread_id: str, *messages: FakeMessage) -> None:
        self.id = thread_id
        self._messages = list(messages)

    def messages(self) -> list[FakeMessage]:
        return self._messages


class FakeMail:
    def __init__(self, *threads: FakeThread) -> None:
        self.threads = list(threads)
        self.searches: list[tuple[str, str]] = []
        self.marked: list[tuple[str, str]] = []

    def find_unprocessed_threads(self, primary_label: str, exclude_label: str) -> list[FakeThread]:
        self.searches.append((primary_label, exclude_label))
        return self.threads

    def mark_processed(self, thread: FakeThread, label: str) -> None:
        self.marked.append((thread.id, label))


class FakeSheets:
    def __init__(self, existing: tuple[str, ...] = ("Test Sheet", "Other Sheet")) -> None:
        self.existing = existing
        self.appended: list[tuple[str, list]] = []

    def append_transactions(self, records, sheet_name: str) -> int:
        if sheet_name not in self.existing:
            raise SheetNotFound(sheet_name)
        self.appended.append((sheet_name, [transaction_to_row(r) for r in records]))
        return len(records)


@pytest.fixture
def sentry(mocker):
    return mocker.patch("ccreport.workflow.sentry_capture")


def _orchestrator(mail: FakeMail, sheets: FakeSheets | None = None) -> WorkflowOrchestrator:
    return WorkflowOrchestrator(mail, TransactionProcessor(), sheets or FakeSheets())


def test_execute_appends_rows_and_labels_thread(email_body, user_config, sentry):
    mail = FakeMail(FakeThread("t1", FakeMessage(email_body)))
    sheets = FakeSheets()

    report = _orchestrator(mail, sheets).execute(user_config)

    assert mail.searches == [(PRIMARY_LABEL, PROCESSED_LABEL)]
    assert mail.marked == [("t1", PROCESSED_LABEL)]
    assert sheets.appended == [
        (
            "Test Sheet",
            [
                ["01/01/2024", "01/01/2024", "Test Purchase", "", "ΑΓΟΡΑ", 50.0, "0,00", "0,00"],
                ["03/05/2025", "03/05/2025", "ΠΛ. ΚΑΡΤΑΣ WEB/EUROP", "", "ΠΛΗΡΩΜΗ", -1600.0, "0,00", "0,00"],
            ],
        )
    ]
    assert report.threads_found == 1
    assert report.threads_processed == 1
    assert report.rows_appended == 2
    assert report.ok
    sentry.assert_not_called()


def test_failing_thread_is_not_marked_and_scan_continues(email_body, user_config, sentry):
    broken = FakeThread("broken", FakeMessage(error=RuntimeError("Failed to get email body")))
    good = FakeThread("good", FakeMessage(email_body))
    mail = FakeMail(broken, good)

    report = _orchestrator(mail).execute(user_config)

    assert mail.marked == [("good", PROCESSED_LABEL)]
    assert report.threads_processed == 1
    assert report.threads_failed == 1
    assert report.failures[0].thread_id == "broken"
    assert report.failures[0].error == "Failed to get email body"
    sentry.assert_called_once()


def test_process_thread_propagates_and_keeps_partial_rows(email_body, user_config):
    thread = FakeThread("t1", FakeMessage(email_body), FakeMessage("no card here"))
    mail = FakeMail(thread)
    sheets = FakeSheets()

    with pytest.raises(NoCardIdentified):
        _orchestrator(mail, sheets).process_thread(thread, user_config)

    # first message already written, thread left unlabelled for the next run
    assert len(sheets.appended) == 1
    assert mail.marked == []


def test_process_message_without_transactions(user_config):
    message = FakeMessage("Σύνολο Κινήσεων Κάρτας **5678\nΚαμία κίνηση.")

    with pytest.raises(NoTransactionsFound, match="Other Card"):
        _orchestrator(FakeMail()).process_message(message, user_config)


def test_missing_sheet_leaves_thread_unprocessed(email_body, user_config, sentry):
    mail = FakeMail(FakeThread("t1", FakeMessage(email_body)))

    report = _orchestrator(mail, FakeSheets(existing=("Other Sheet",))).execute(user_config)

    assert mail.marked == []
    assert report.failures[0].error == 'Sheets: Sheet "Test Sheet" not found'


def test_custom_labels(email_body, user_config, sentry):
    mail = FakeMail(FakeThread("t1", FakeMessage(email_body)))
    orchestrator = WorkflowOrchestrator(
        mail, TransactionProcessor(), FakeSheets(), primary_label="visa", processed_label="visa_done"
    )

    orchestrator.execute(user_config)

    assert mail.searches == [("visa", "visa_done")]
    assert mail.marked == [("t1", "visa_done")]


def test_bad_locale_fails_before_mailbox_is_touched(raw_user_config):
    raw_user_config["locale"] = "zz"
    mail = FakeMail()

    with pytest.raises(ConfigError):
        _orchestrator(mail).execute(UserConfig.model_validate(raw_user_config))

    assert mail.searches == []
