# ccreport/errors.py
"""Error hierarchy shared by every component.

Every error carries the *service* tag of the component that raised it, so a
log line like ``Sheets: Sheet "Visa" not found`` tells at a glance where the
run broke.  Nothing here retries: a thread that fails simply stays unlabelled
and is picked up by the next scan.
"""
from __future__ import annotations

__all__ = [
    "ServiceError",
    "ConfigError",
    "ParseError",
    "SheetNotFound",
    "NoCardIdentified",
    "NoTransactionsFound",
]


class ServiceError(Exception):
    """Base class for all errors raised by the report pipeline."""

    default_service = "Service"

    def __init__(self, message: str, *, service: str | None = None) -> None:
        self.service = service or self.default_service
        self.message = message
        super().__init__(f"{self.service}: {message}")


class ConfigError(ServiceError):
    """User configuration is missing or malformed. Fatal for the whole run."""

    default_service = "Config"


class ParseError(ServiceError):
    """Email body could not be turned into transaction records."""

    default_service = "Processor"


class SheetNotFound(ServiceError):
    default_service = "Sheets"

    def __init__(self, sheet_name: str) -> None:
        self.sheet_name = sheet_name
        super().__init__(f'Sheet "{sheet_name}" not found')


class NoCardIdentified(ServiceError):
    default_service = "Workflow"

    def __init__(self, message: str = "No valid card identified in this email") -> None:
        super().__init__(message)


class NoTransactionsFound(ServiceError):
    default_service = "Workflow"

    def __init__(self, card_name: str) -> None:
        self.card_name = card_name
        super().__init__(f"No transactions found in this email for card {card_name!r}")
