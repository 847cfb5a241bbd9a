# ccreport/models.py
"""Domain models shared by all components.

Levels
------
1. **CardSpec / UserConfig** – what the user configures: which cards to look
   for and where their rows go.  Immutable for the whole run.
2. **TransactionRecord** – one line item cut out of a notification email by
   :mod:`ccreport.regexes`.  Consumed exactly once by the sheet writer.

Pydantic v2 models are used for validation; the configuration accepts both
the camelCase keys of the stored JSON (``lastFourDigits``) and snake_case.
"""
from __future__ import annotations

from enum import Enum

from pydantic import BaseModel, Field, field_validator

__all__ = [
    "CardSpec",
    "UserConfig",
    "TransactionRecord",
    "TxnType",
    "DEFAULT_LOCALE",
]

DEFAULT_LOCALE = "el-GR"


class TxnType(str, Enum):
    """Transaction type tokens as printed by the bank.

    The sign convention is inverted relative to the literal words: a
    ``ΧΡΕΩΣΗ`` line is written to the sheet as a positive amount and a
    ``ΠΙΣΤΩΣΗ`` line as a negative one.
    """

    CHARGE = "ΧΡΕΩΣΗ"
    CREDIT = "ΠΙΣΤΩΣΗ"

    @property
    def sheet_label(self) -> str:
        """Type column value written to the spreadsheet."""
        return "ΑΓΟΡΑ" if self is TxnType.CHARGE else "ΠΛΗΡΩΜΗ"

    def signed(self, magnitude: float) -> float:
        return magnitude if self is TxnType.CHARGE else -magnitude


class CardSpec(BaseModel):
    """One configured payment card."""

    name: str = Field(..., min_length=1, description="Display name of the card")
    last_four_digits: str = Field(
        ..., alias="lastFourDigits", pattern=r"^\d{4}$", description="Last 4 digits of the card number"
    )
    sheet_name: str = Field(..., alias="sheetName", min_length=1, description="Destination worksheet")

    model_config = {"frozen": True, "populate_by_name": True}

    @field_validator("name", "sheet_name")
    def _not_blank(cls, v: str) -> str:  # noqa: N805
        if not v.strip():
            raise ValueError("must not be blank")
        return v


class UserConfig(BaseModel):
    cards: tuple[CardSpec, ...] = Field(..., min_length=1)
    spreadsheet_id: str = Field(..., alias="spreadsheetId", min_length=1)
    locale: str = Field(DEFAULT_LOCALE, min_length=2)

    model_config = {"frozen": True, "populate_by_name": True}


class TransactionRecord(BaseModel):
    """A single parsed line item.

    ``date`` and both fee fields are kept exactly as printed in the email;
    only ``amount`` is normalised into a number.
    """

    card: str
    amount: float
    transaction_type: TxnType
    date: str = Field(..., pattern=r"^\d{2}/\d{2}/\d{4}$")
    description: str
    forex_fees: str
    cash_withdrawal_fees: str

    model_config = {"frozen": True}
