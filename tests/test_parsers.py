"""Tests for money, amount, date and text parsing helpers."""

import pytest
from datetime import date, timedelta
from decimal import Decimal

from ledgerline.money import format_cents, from_cents, sum_cents, to_cents
from ledgerline.utils.amount_parser import parse_amount, parse_amount_cents
from ledgerline.utils.date_parser import parse_date, parse_date_with_format
from ledgerline.utils.text import normalize_whitespace, sanitize_text


def test_to_cents_rounds_half_up():
    """Test that decimal amounts round half up to the nearest cent."""
    assert to_cents(Decimal("1.005")) == 101
    assert to_cents(Decimal("-1.005")) == -101
    assert to_cents("12.34") == 1234
    assert to_cents(3) == 300


def test_to_cents_rejects_garbage():
    with pytest.raises(ValueError):
        to_cents("abc")
    with pytest.raises(ValueError):
        to_cents(Decimal("NaN"))


def test_format_and_from_cents():
    assert format_cents(-2500) == "-25.00"
    assert format_cents(7) == "0.07"
    assert from_cents(123456) == Decimal("1234.56")


def test_sum_cents_refuses_floats():
    assert sum_cents([100, -25, 5]) == 80
    with pytest.raises(TypeError):
        sum_cents([100, 0.5])


@pytest.mark.parametrize(
    "text,expected",
    [
        ("123.45", 12345),
        ("$123.45", 12345),
        ("-$123.45", -12345),
        ("1,234.56", 123456),
        ("(123.45)", -12345),
        ("123.45-", -12345),
        (" 10 ", 1000),
    ],
)
def test_parse_amount_cents_formats(text, expected):
    """Test the amount notations bank exports use."""
    assert parse_amount_cents(text) == expected


def test_parse_amount_invalid():
    with pytest.raises(ValueError):
        parse_amount("")
    with pytest.raises(ValueError):
        parse_amount("twelve")


def test_parse_absolute_date():
    """Test parsing absolute dates."""
    assert parse_date("2024-01-15") == date(2024, 1, 15)
    assert parse_date("January 15, 2024") == date(2024, 1, 15)


def test_parse_relative_dates():
    """Test parsing 'today', 'yesterday' and period starts."""
    today = date.today()
    assert parse_date("today") == today
    assert parse_date("yesterday") == today - timedelta(days=1)
    assert parse_date("this month") == date(today.year, today.month, 1)
    assert parse_date("this year") == date(today.year, 1, 1)
    assert parse_date("last year") == date(today.year - 1, 1, 1)


def test_parse_last_week_is_monday():
    result = parse_date("last week")
    today = date.today()
    assert result == today - timedelta(days=today.weekday() + 7)
    assert result.weekday() == 0


def test_parse_invalid_relative():
    """Test parsing invalid relative date."""
    with pytest.raises(ValueError):
        parse_date("last invalid")


@pytest.mark.parametrize(
    "text,fmt,expected",
    [
        ("01/15/2024", "MM/dd/yyyy", date(2024, 1, 15)),
        ("15/01/2024", "dd/MM/yyyy", date(2024, 1, 15)),
        ("2024-01-15", "yyyy-MM-dd", date(2024, 1, 15)),
        ("01-15-2024", "MM-dd-yyyy", date(2024, 1, 15)),
    ],
)
def test_parse_date_with_format(text, fmt, expected):
    assert parse_date_with_format(text, fmt) == expected


def test_parse_date_with_format_is_strict():
    """A day/month swap is reported, not guessed."""
    with pytest.raises(ValueError, match="Invalid date"):
        parse_date_with_format("15/01/2024", "MM/dd/yyyy")
    with pytest.raises(ValueError, match="Unknown date format"):
        parse_date_with_format("2024-01-15", "yyyy/MM/dd")


def test_parse_date_with_format_range():
    with pytest.raises(ValueError, match="out of range"):
        parse_date_with_format("01/01/1899", "MM/dd/yyyy")


def test_sanitize_text_strips_markup():
    assert sanitize_text("<b>COFFEE</b> SHOP", 100) == "COFFEE SHOP"
    assert sanitize_text("<script>alert(1)</script>GROCER", 100) == "GROCER"
    assert sanitize_text("javascript:evil", 100) == "evil"
    assert sanitize_text("A\x00B", 100) == "AB"


def test_sanitize_text_caps_length():
    assert sanitize_text("x" * 50, 10) == "x" * 10
    assert sanitize_text(None, 10) == ""


def test_normalize_whitespace():
    assert normalize_whitespace("  COFFEE   SHOP\t#1 ") == "COFFEE SHOP #1"
