"""Date parsing utilities."""

from datetime import date, datetime, timedelta
from dateutil import parser as date_parser
from dateutil.relativedelta import relativedelta


def parse_date(date_str: str) -> date:
    """Parse a date string into a date object.

    Supports various formats including relative dates:
    - Absolute dates: "2024-01-15", "January 15, 2024", etc.
    - Relative dates: "today", "yesterday", "last month", "this year", etc.

    Args:
        date_str: Date string in various formats

    Returns:
        Date object

    Raises:
        ValueError: If date string cannot be parsed
    """
    date_str = date_str.strip().lower()
    today = date.today()

    # Handle relative dates
    relative_dates = {
        "today": today,
        "yesterday": today - timedelta(days=1),
        "tomorrow": today + timedelta(days=1),
    }

    if date_str in relative_dates:
        return relative_dates[date_str]

    # Handle "last/this/next" + time period
    if date_str.startswith("last "):
        period = date_str[5:]
        if period == "month":
            return (today - relativedelta(months=1)).replace(day=1)
        elif period == "year":
            return today.replace(month=1, day=1) - relativedelta(years=1)
        elif period == "week":
            # Return Monday of last week (for consistency with "this week" and "next week")
            days_since_monday = today.weekday()
            return today - timedelta(days=days_since_monday + 7)
        elif period in ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]:
            # Last Monday, etc.
            days = ["monday", "tuesday", "wednesday", "thursday", "friday", "saturday", "sunday"]
            target_day = days.index(period)
            days_ago = (today.weekday() - target_day) % 7
            if days_ago == 0:
                days_ago = 7
            return today - timedelta(days=days_ago)

    elif date_str.startswith("this "):
        period = date_str[5:]
        if period == "month":
            return today.replace(day=1)
        elif period == "year":
            return today.replace(month=1, day=1)
        elif period == "week":
            return today - timedelta(days=today.weekday())

    elif date_str.startswith("next "):
        period = date_str[5:]
        if period == "month":
            return (today + relativedelta(months=1)).replace(day=1)
        elif period == "year":
            return (today.replace(month=1, day=1) + relativedelta(years=1))
        elif period == "week":
            return today + timedelta(days=(7 - today.weekday()))

    # Try parsing as absolute date
    try:
        dt = date_parser.parse(date_str)
        return dt.date()
    except (ValueError, TypeError) as e:
        raise ValueError(f"Could not parse date '{date_str}': {e}")


# CSV date formats map to strptime patterns
DATE_FORMATS = {
    "MM/dd/yyyy": "%m/%d/%Y",
    "dd/MM/yyyy": "%d/%m/%Y",
    "yyyy-MM-dd": "%Y-%m-%d",
    "MM-dd-yyyy": "%m-%d-%Y",
}

MIN_DATE = date(1900, 1, 1)
MAX_DATE = date(2100, 12, 31)


def parse_date_with_format(date_str: str, date_format: str) -> date:
    """Parse a CSV date string using a configured format.

    Unlike parse_date, this is strict: no relative dates and no guessing, so a
    day/month swap in a bank export is reported instead of silently accepted.

    Args:
        date_str: Raw date text from a CSV cell
        date_format: One of DATE_FORMATS (e.g. "MM/dd/yyyy")

    Returns:
        Date object

    Raises:
        ValueError: If the format is unknown, the text does not match it, or
            the date is outside the supported range
    """
    pattern = DATE_FORMATS.get(date_format)
    if pattern is None:
        raise ValueError(
            f"Unknown date format '{date_format}'. "
            f"Supported formats: {', '.join(DATE_FORMATS)}"
        )

    text = date_str.strip()
    try:
        parsed = datetime.strptime(text, pattern).date()
    except ValueError:
        raise ValueError(f"Invalid date: \"{text}\" (expected format: {date_format})")

    if parsed < MIN_DATE or parsed > MAX_DATE:
        raise ValueError(
            f"Date out of range: \"{text}\" (must be between "
            f"{MIN_DATE.isoformat()} and {MAX_DATE.isoformat()})"
        )
    return parsed
