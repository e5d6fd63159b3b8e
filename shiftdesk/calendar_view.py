from collections.abc import Iterable
from datetime import date

from shiftdesk.dates import normalize_day, parse_day
from shiftdesk.models import SHIFT_TYPE_RANK, Shift


def _day_order(day: str) -> tuple[bool, date, str]:
    parsed = parse_day(day)
    return (parsed is None, parsed or date.min, day)


def _ordered_days(days: Iterable[str]) -> list[str]:
    return sorted(set(days), key=_day_order)


def scheduled_days(shifts: Iterable[Shift]) -> list[str]:
    """Days with at least one shift document, as the manager calendar marks them."""
    return _ordered_days(s.date for s in shifts)


def open_days(shifts: Iterable[Shift]) -> list[str]:
    return _ordered_days(s.date for s in shifts if s.needed_employees > 0)


def registered_days(shifts: Iterable[Shift], employee_id: str) -> list[str]:
    """Days on which the employee has a pending request."""
    return _ordered_days(s.date for s in shifts if employee_id in s.requests)


def shifts_for_day(shifts: Iterable[Shift], day: str) -> list[Shift]:
    day = normalize_day(day)
    return sorted(
        (s for s in shifts if s.date == day),
        key=lambda s: SHIFT_TYPE_RANK[s.shift_type],
    )
