# ccreport/decimal_utils.py
"""Locale-aware number parsing.

Bank emails print amounts the way the account's locale does (``1.600,00`` for
Greek).  Instead of a static table of separators we format a known sample
value through CLDR data and read back which characters land in the grouping
and fractional positions.
"""
from __future__ import annotations

import re
from functools import lru_cache
from typing import NamedTuple

from babel import Locale, UnknownLocaleError
from babel.numbers import format_decimal

from ccreport.errors import ConfigError, ParseError

__all__ = [
    "LocaleSeparators",
    "separators_for_locale",
    "parse_locale_number",
]

SAMPLE_NUMBER = 12345.6
_SAMPLE_RE = re.compile(r"\D*12(?P<group>\D*)345(?P<decimal>\D+)6\D*")
_PLAIN_NUMBER_RE = re.compile(r"[+-]?(?:\d+(?:\.\d*)?|\.\d+)")


class LocaleSeparators(NamedTuple):
    group: str
    decimal: str

    def parse(self, number_text: str) -> float:
        return parse_locale_number(number_text, self.group, self.decimal)


DEFAULT_SEPARATORS = LocaleSeparators(group=",", decimal=".")


@lru_cache(maxsize=None)
def separators_for_locale(locale_tag: str) -> LocaleSeparators:
    """Return the ``(group, decimal)`` separators used by *locale_tag*.

    Accepts BCP-47 (``el-GR``) as well as POSIX (``el_GR``) tags.  A locale
    whose sample rendering has no grouping or decimal character falls back to
    ``,`` / ``.`` respectively.
    """
    try:
        locale = Locale.parse(locale_tag.replace("-", "_"))
    except (UnknownLocaleError, ValueError) as exc:
        raise ConfigError(f"Unknown locale {locale_tag!r}") from exc

    formatted = format_decimal(SAMPLE_NUMBER, format="#,##0.0", locale=locale)
    m = _SAMPLE_RE.fullmatch(formatted)
    if m is None:
        return DEFAULT_SEPARATORS
    return LocaleSeparators(
        group=m["group"] or DEFAULT_SEPARATORS.group,
        decimal=m["decimal"] or DEFAULT_SEPARATORS.decimal,
    )


def parse_locale_number(number_text: str, group_sep: str, decimal_sep: str) -> float:
    """Convert a locale-formatted number into ``float``.

    Every *group_sep* is removed, the first *decimal_sep* becomes ``.`` and the
    result must be a plain base-10 number.  Anything else raises
    :class:`ParseError`; a silent zero would end up in the books.
    """
    cleaned = number_text.strip()
    if group_sep:
        cleaned = cleaned.replace(group_sep, "")
    if decimal_sep:
        cleaned = cleaned.replace(decimal_sep, ".", 1)

    if not _PLAIN_NUMBER_RE.fullmatch(cleaned):
        raise ParseError(f"Cannot parse number {number_text!r} (normalised to {cleaned!r})")
    return float(cleaned)
