# tests/test_decimal_utils.py
import pytest

from ccreport.decimal_utils import LocaleSeparators, parse_locale_number, separators_for_locale
from ccreport.errors import ConfigError, ParseError

CASES = [
    # (text, group, decimal, expected)
    ("1.600,00", ".", ",", 1600.0),
    ("50,00", ".", ",", 50.0),
    ("12345,6", ".", ",", 12345.6),        # no grouping at all
    ("1.234.567,89", ".", ",", 1234567.89),
    (" 0,35 ", ".", ",", 0.35),
    ("79,825.89", ",", ".", 79825.89),     # US format
    ("123456", ",", ".", 123456.0),
    ("79 825,89", " ", ",", 79825.89),
]


@pytest.mark.parametrize("text, group, decimal, expected", CASES)
def test_parse_locale_number(text: str, group: str, decimal: str, expected: float):
    assert parse_locale_number(text, group, decimal) == pytest.approx(expected)


@pytest.mark.parametrize("text", ["", "   ", "abc", "1,2,3", "12€", "nan", "1e5", "--1"])
def test_parse_locale_number_rejects_garbage(text: str):
    with pytest.raises(ParseError):
        parse_locale_number(text, ".", ",")


def test_separators_greek():
    assert separators_for_locale("el-GR") == LocaleSeparators(group=".", decimal=",")
    assert separators_for_locale("el_GR") == LocaleSeparators(group=".", decimal=",")


def test_separators_us():
    seps = separators_for_locale("en-US")
    assert seps == LocaleSeparators(group=",", decimal=".")
    assert seps.parse("1,600.00") == 1600.0


def test_separators_unknown_locale():
    with pytest.raises(ConfigError):
        separators_for_locale("zz")
