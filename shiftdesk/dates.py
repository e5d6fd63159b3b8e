from datetime import date, datetime

# Shift dates are stored the way a US-locale calendar prints them: "1/31/2025".
DAY_FORMAT = "%m/%d/%Y"


def format_day(value: date) -> str:
    return f"{value.month}/{value.day}/{value.year}"


def parse_day(value: str) -> date | None:
    """
    Parse a stored shift date. Accepts the locale form ("1/31/2025") and ISO
    ("2025-01-31"); returns None for anything else.
    """
    text = (value or "").strip()
    try:
        return datetime.strptime(text, DAY_FORMAT).date()
    except ValueError:
        pass
    try:
        return date.fromisoformat(text)
    except ValueError:
        return None


def normalize_day(value: str) -> str:
    """Canonical locale form of a date string, or the input unchanged."""
    parsed = parse_day(value)
    return format_day(parsed) if parsed is not None else value
