# ccreport/sheets.py
"""Sheet writer: appends parsed transactions to the per-card worksheet.

Row schema (8 columns, fixed order)::

    date | date | description | (blank) | type label | amount | forex fees | cash withdrawal fees
"""
from __future__ import annotations

import logging
from typing import Any, Protocol, Sequence
from urllib.parse import quote

from ccreport.errors import ServiceError, SheetNotFound
from ccreport.google_api import GoogleApiClient
from ccreport.models import TransactionRecord

__all__ = ["SheetWriter", "SheetsClient", "transaction_to_row", "Row"]

logger = logging.getLogger(__name__)

Row = list[Any]


class SheetWriter(Protocol):
    def append_transactions(self, records: Sequence[TransactionRecord], sheet_name: str) -> int: ...


def transaction_to_row(record: TransactionRecord) -> Row:
    return [
        record.date,
        record.date,
        record.description,
        "",
        record.transaction_type.sheet_label,
        record.amount,
        record.forex_fees,
        record.cash_withdrawal_fees,
    ]


def _a1_range(sheet_name: str) -> str:
    escaped = sheet_name.replace("'", "''")
    return f"'{escaped}'!A1"


class SheetsClient(GoogleApiClient):
    """Appends rows to worksheets of one spreadsheet."""

    service = "Sheets"
    base_url = "https://sheets.googleapis.com/v4"

    def __init__(self, *, spreadsheet_id: str, **kwargs: Any) -> None:
        if not spreadsheet_id:
            raise ServiceError("Spreadsheet ID is required", service=self.service)
        super().__init__(**kwargs)
        self.spreadsheet_id = spreadsheet_id
        self._sheet_titles: set[str] | None = None

    def sheet_titles(self) -> set[str]:
        if self._sheet_titles is None:
            data = self._get(
                f"/spreadsheets/{self.spreadsheet_id}",
                params={"fields": "sheets.properties.title"},
            )
            self._sheet_titles = {s["properties"]["title"] for s in data.get("sheets", [])}
        return self._sheet_titles

    def append_rows(self, sheet_name: str, rows: Sequence[Row]) -> None:
        """Append *rows* after the last used row of *sheet_name*.

        The worksheet is never created on the fly: a missing one raises
        :class:`SheetNotFound`.
        """
        if not rows or not sheet_name:
            raise ServiceError("Invalid transactions or sheet name", service=self.service)
        if sheet_name not in self.sheet_titles():
            raise SheetNotFound(sheet_name)

        target = quote(_a1_range(sheet_name), safe="")
        self._post(
            f"/spreadsheets/{self.spreadsheet_id}/values/{target}:append",
            params={"valueInputOption": "USER_ENTERED", "insertDataOption": "INSERT_ROWS"},
            json={"majorDimension": "ROWS", "values": [list(r) for r in rows]},
        )
        logger.info("Appended %d rows to sheet %r", len(rows), sheet_name)

    def append_transactions(self, records: Sequence[TransactionRecord], sheet_name: str) -> int:
        """Append one row per record to *sheet_name*; returns the row count."""
        if not records or not sheet_name:
            raise ServiceError("Invalid transactions or sheet name", service=self.service)
        self.append_rows(sheet_name, [transaction_to_row(r) for r in records])
        return len(records)

