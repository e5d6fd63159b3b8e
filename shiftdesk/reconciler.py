import logging
from collections import defaultdict
from collections.abc import Iterable
from datetime import date

from shiftdesk.dates import parse_day
from shiftdesk.models import SHIFT_TYPE_RANK, Employee, RequestRecord, Shift

logger = logging.getLogger(__name__)


def build_request_queue(
    shifts: Iterable[Shift], employees: Iterable[Employee]
) -> list[RequestRecord]:
    """
    Flatten pending requests into one record per (shift, employee), ordered
    by date and then morning < noon < evening. Requests from employee ids
    missing in ``employees`` are left out.
    """
    by_id = {e.id: e for e in employees}

    records: list[RequestRecord] = []
    for shift in shifts:
        for employee_id in shift.requests:
            employee = by_id.get(employee_id)
            if employee is None:
                logger.debug(
                    "Dropping request from unknown employee %s on shift %s",
                    employee_id,
                    shift.id,
                )
                continue
            records.append(
                RequestRecord(
                    employee_name=employee.full_name,
                    employee_id=employee_id,
                    date=shift.date,
                    shift_type=shift.shift_type,
                    shift_id=shift.id,
                )
            )

    return sorted(records, key=_queue_order)


def _queue_order(record: RequestRecord) -> tuple[bool, date, str, int]:
    day = parse_day(record.date)
    # unparseable dates go last, grouped by their raw text
    return (
        day is None,
        day or date.min,
        record.date if day is None else "",
        SHIFT_TYPE_RANK[record.shift_type],
    )


def staffing_by_date(shifts: Iterable[Shift]) -> dict[str, bool]:
    """Map each date to whether its shifts are exactly fully staffed."""
    needed: dict[str, int] = defaultdict(int)
    assigned: dict[str, int] = defaultdict(int)
    for shift in shifts:
        needed[shift.date] += shift.needed_employees
        assigned[shift.date] += len(shift.assigned_employees)

    return {day: needed[day] > 0 and needed[day] == assigned[day] for day in needed}
