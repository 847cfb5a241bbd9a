# ccreport/regexes.py
"""Single point of truth for the notification-email patterns and the helpers
that turn an email body into :class:`ccreport.models.TransactionRecord`.

Email layout (one summary block per card, one line per transaction)::

    Σύνολο Κινήσεων Κάρτας **1234
    ΧΡΕΩΣΗ 50,00 Ημ/νία: 01/01/2024 Αιτιολογία: SHOP Έξοδα Συναλλάγματος: 0,00 Έξοδα Ανάληψης Μετρητών: 0,00
"""
from __future__ import annotations

import logging
import re
from re import Match, Pattern
from typing import Mapping, Optional, Sequence

from ccreport.decimal_utils import LocaleSeparators, separators_for_locale
from ccreport.errors import ParseError
from ccreport.models import DEFAULT_LOCALE, CardSpec, TransactionRecord, TxnType, UserConfig

logger = logging.getLogger(__name__)

# ---------------------------------------------------------------------------
# Regex patterns
# ---------------------------------------------------------------------------
MARKER_PREFIX = r"Σύνολο Κινήσεων Κάρτας \*\*"

AMOUNT_RE = r"[\d,.]+"
DATE_RE = r"(?P<date>\d{2}/\d{2}/\d{4})"
TXN_TYPE_RE = rf"(?P<transaction_type>{TxnType.CHARGE.value}|{TxnType.CREDIT.value})"

TRANSACTION_RE = re.compile(
    rf"""
    {TXN_TYPE_RE}\s
    (?P<amount>{AMOUNT_RE})\s
    Ημ/νία:\s{DATE_RE}\s
    Αιτιολογία:\s(?P<description>[^\r\n]+?)\s+
    Έξοδα\s+?Συναλλάγματος:\s(?P<forex_fees>{AMOUNT_RE})\s
    Έξοδα\sΑνάληψης\sΜετρητών:\s(?P<cash_withdrawal_fees>{AMOUNT_RE})
    """,
    re.VERBOSE,
)


def marker_pattern(last_four_digits: str) -> Pattern[str]:
    """Pattern that attributes an email body to the card ending in *last_four_digits*."""
    return re.compile(MARKER_PREFIX + re.escape(last_four_digits))


# ---------------------------------------------------------------------------
# Builders
# ---------------------------------------------------------------------------
def _make_record(m: Match[str], card_name: str, separators: LocaleSeparators) -> TransactionRecord:
    txn_type = TxnType(m["transaction_type"])
    return TransactionRecord(
        card=card_name,
        amount=txn_type.signed(separators.parse(m["amount"])),
        transaction_type=txn_type,
        date=m["date"],
        description=m["description"],
        forex_fees=m["forex_fees"],
        cash_withdrawal_fees=m["cash_withdrawal_fees"],
    )


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------
def identify_card(
    body: str,
    cards: Sequence[CardSpec],
    markers: Optional[Mapping[str, Pattern[str]]] = None,
) -> Optional[CardSpec]:
    """Return the first card in *cards* whose summary marker occurs in *body*.

    Configuration order breaks ties when several cards appear in one body.
    ``None`` means the email does not belong to any configured card.
    """
    for card in cards:
        pattern = markers.get(card.last_four_digits) if markers is not None else None
        if pattern is None:
            pattern = marker_pattern(card.last_four_digits)
        if pattern.search(body):
            return card
    return None


def extract_transactions(
    body: str,
    card_name: str,
    separators: Optional[LocaleSeparators] = None,
    *,
    strict: bool = True,
) -> list[TransactionRecord]:
    """Cut every transaction block out of *body*, in order of appearance.

    A body without blocks yields an empty list.  With ``strict`` (the
    default) an unparsable amount aborts the whole email with
    :class:`ParseError`; otherwise the offending block is logged and skipped.
    """
    if separators is None:
        separators = separators_for_locale(DEFAULT_LOCALE)
    records: list[TransactionRecord] = []
    for m in TRANSACTION_RE.finditer(body):
        try:
            records.append(_make_record(m, card_name, separators))
        except ParseError as exc:
            if strict:
                raise ParseError(f"Failed to extract transactions: {exc.message}") from exc
            logger.warning("Skipping malformed transaction block %r: %s", m.group(0), exc)
    return records


class TransactionProcessor:
    """Card identification + extraction bound to one user configuration.

    Marker patterns and locale separators are built lazily the first time a
    configuration is seen and reused for every following email; handing in a
    different configuration rebuilds them.  Extraction needs a prepared
    processor, since amounts are read with the configured locale.
    """

    def __init__(self, *, strict: bool = True) -> None:
        self.strict = strict
        self._config: UserConfig | None = None
        self._markers: dict[str, Pattern[str]] = {}
        self._separators: LocaleSeparators | None = None

    def prepare(self, user_config: UserConfig) -> None:
        if self._config == user_config:
            return
        self._markers = {card.last_four_digits: marker_pattern(card.last_four_digits) for card in user_config.cards}
        self._separators = separators_for_locale(user_config.locale)
        self._config = user_config
        logger.debug(
            "Compiled %d card markers, separators %r for locale %s",
            len(self._markers),
            self._separators,
            user_config.locale,
        )

    @property
    def separators(self) -> LocaleSeparators:
        if self._separators is None:
            raise ParseError("Transaction processor has no user config; call prepare() first")
        return self._separators

    def identify_card(self, body: str, user_config: UserConfig) -> Optional[CardSpec]:
        if not body:
            raise ParseError("Invalid email body or user config")
        self.prepare(user_config)
        return identify_card(body, user_config.cards, self._markers)

    def extract_transactions(self, body: str, card_name: str) -> list[TransactionRecord]:
        if not body or not card_name:
            raise ParseError("Email body and card name are required")
        return extract_transactions(body, card_name, self.separators, strict=self.strict)


__all__ = [
    "TRANSACTION_RE",
    "TransactionProcessor",
    "extract_transactions",
    "identify_card",
    "marker_pattern",
]
