"""
Work Center Parser
Builds WorkCenter entities (with their calendars) from workCenter records.
"""

from typing import Any, Dict, List

from reflowbot.algorithms.calendar import ShiftCalendar
from reflowbot.algorithms.errors import MalformedCalendarError, ValidationError
from reflowbot.algorithms.models import MaintenanceWindow, Shift, WorkCenter

from .record_fields import get_data, get_doc_id, parse_instant, parse_int


# How the incoming dayOfWeek numbers map to Python weekdays (0=Mon..6=Sun)
DAY_NUMBERINGS = {
    'iso': (1, 7, lambda d: d - 1),           # 1=Mon..7=Sun
    'sunday0': (0, 6, lambda d: (d - 1) % 7),  # 0=Sun..6=Sat
}


def convert_day_of_week(day: int, day_numbering: str = 'iso', work_center_id: str = None) -> int:
    """Convert an incoming dayOfWeek to Python's weekday numbering."""
    if day_numbering not in DAY_NUMBERINGS:
        raise ValueError(f"Unknown day numbering '{day_numbering}'. "
                         f"Use one of: {', '.join(DAY_NUMBERINGS)}")
    low, high, convert = DAY_NUMBERINGS[day_numbering]
    if not low <= day <= high:
        raise MalformedCalendarError(
            f"dayOfWeek {day} outside {low}-{high} ({day_numbering} numbering)", work_center_id)
    return convert(day)


def parse_shifts(raw_shifts: List[Dict[str, Any]], doc_id: str,
                 day_numbering: str = 'iso') -> List[Shift]:
    if not isinstance(raw_shifts, list):
        raise ValidationError('shifts', raw_shifts, 'expected a list', doc_id)

    shifts = []
    for raw in raw_shifts:
        if not isinstance(raw, dict):
            raise ValidationError('shifts', raw, 'expected an object', doc_id)
        day = parse_int(raw.get('dayOfWeek'), 'dayOfWeek', doc_id)
        shifts.append(Shift(
            day_of_week=convert_day_of_week(day, day_numbering, doc_id),
            start_hour=parse_int(raw.get('startHour'), 'startHour', doc_id),
            end_hour=parse_int(raw.get('endHour'), 'endHour', doc_id),
        ))
    return shifts


def parse_maintenance_windows(raw_windows: List[Dict[str, Any]], doc_id: str) -> List[MaintenanceWindow]:
    """
    Parse maintenance windows, sorted by start.

    Accepts either start/end or startDate/endDate keys.
    """
    if not isinstance(raw_windows, list):
        raise ValidationError('maintenanceWindows', raw_windows, 'expected a list', doc_id)

    windows = []
    for raw in raw_windows:
        if not isinstance(raw, dict):
            raise ValidationError('maintenanceWindows', raw, 'expected an object', doc_id)
        start = raw.get('start', raw.get('startDate'))
        end = raw.get('end', raw.get('endDate'))
        windows.append(MaintenanceWindow(
            start=parse_instant(start, 'maintenanceWindows.start', doc_id),
            end=parse_instant(end, 'maintenanceWindows.end', doc_id),
            reason=raw.get('reason'),
        ))

    windows.sort(key=lambda w: (w.start, w.end))
    return windows


def parse_work_center(record: Dict[str, Any], day_numbering: str = 'iso') -> WorkCenter:
    """
    Build a WorkCenter from a workCenter record.

    Raises:
        ValidationError: Missing or badly typed fields
        MalformedCalendarError: Invalid shifts or overlapping maintenance
    """
    data = get_data(record, 'workCenter')
    doc_id = get_doc_id(record)

    shifts = parse_shifts(data.get('shifts') or [], doc_id, day_numbering)
    windows = parse_maintenance_windows(data.get('maintenanceWindows') or [], doc_id)

    return WorkCenter(
        id=doc_id,
        name=str(data.get('name') or doc_id),
        calendar=ShiftCalendar(windows, shifts, work_center_id=doc_id),
    )


def parse_work_centers(records: List[Dict[str, Any]], day_numbering: str = 'iso') -> List[WorkCenter]:
    return [parse_work_center(r, day_numbering) for r in records]
