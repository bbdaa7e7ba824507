"""
Work Center Calendar
Shift and maintenance-window arithmetic for the reflow scheduler.

Shifts repeat weekly and are interpreted in UTC. Maintenance windows are
absolute [start, end) intervals that block work even during a shift.
"""

from datetime import datetime, timedelta, timezone
from typing import Iterable, List, Optional, Protocol, Tuple

from reflowbot.algorithms.errors import MalformedCalendarError, NoWorkingTimeFoundError
from reflowbot.algorithms.models import MaintenanceWindow, Shift


LOOKAHEAD_DAYS = 7


class WorkCenterCalendar(Protocol):
    """Capability the time allocator relies on; any strategy can implement it."""

    def is_working_time(self, dt: datetime) -> bool: ...

    def next_working_time_after(self, dt: datetime) -> datetime: ...

    def normalize_to_working_time(self, dt: datetime) -> datetime: ...

    def get_next_maintenance_after(self, dt: datetime) -> Optional[MaintenanceWindow]: ...

    def allocate_around_maintenance(self, earliest: datetime,
                                    duration_minutes: float) -> Tuple[datetime, datetime]: ...

    def allocate_working_minutes(self, start: datetime, duration_minutes: float) -> datetime: ...

    def schedule_block(self, earliest: datetime,
                       duration_minutes: float) -> Tuple[datetime, datetime]: ...


def to_utc(dt: datetime) -> datetime:
    """Normalise a datetime to UTC; naive values are taken as UTC."""
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


def _midnight(dt: datetime) -> datetime:
    return dt.replace(hour=0, minute=0, second=0, microsecond=0)


class ShiftCalendar:
    """
    Weekly shift mask plus sorted, disjoint maintenance windows.

    The calendar is read-only once built; configuration problems are
    reported at construction time with MalformedCalendarError.
    """

    def __init__(self, maintenance_windows: Iterable[MaintenanceWindow],
                 shifts: Iterable[Shift], work_center_id: str = None,
                 lookahead_days: int = LOOKAHEAD_DAYS):
        self.work_center_id = work_center_id
        self.lookahead_days = lookahead_days
        self.shifts: List[Shift] = list(shifts)
        self.maintenance_windows: List[MaintenanceWindow] = [
            MaintenanceWindow(to_utc(m.start), to_utc(m.end), m.reason)
            for m in maintenance_windows
        ]
        self._validate()

    def _validate(self):
        for shift in self.shifts:
            if not 0 <= shift.day_of_week <= 6:
                raise MalformedCalendarError(
                    f"shift day_of_week {shift.day_of_week} outside 0-6", self.work_center_id)
            for hour in (shift.start_hour, shift.end_hour):
                if not 0 <= hour <= 23:
                    raise MalformedCalendarError(
                        f"shift hour {hour} outside 0-23", self.work_center_id)
            if shift.start_hour == shift.end_hour:
                raise MalformedCalendarError(
                    f"zero-length shift at {shift.start_hour}:00 on day {shift.day_of_week}",
                    self.work_center_id)

        previous = None
        for window in self.maintenance_windows:
            if window.end <= window.start:
                raise MalformedCalendarError(
                    f"maintenance window {window.start.isoformat()} ends before it starts",
                    self.work_center_id)
            if previous is not None:
                if window.start < previous.start:
                    raise MalformedCalendarError(
                        "maintenance windows are not sorted by start", self.work_center_id)
                if window.start < previous.end:
                    raise MalformedCalendarError(
                        f"maintenance windows overlap at {window.start.isoformat()}",
                        self.work_center_id)
            previous = window

    def _shift_windows(self, day: datetime) -> List[Tuple[datetime, datetime]]:
        """Shift (start, end) instants that begin on the given midnight."""
        weekday = day.weekday()
        return [s.window_on(day) for s in self.shifts if s.day_of_week == weekday]

    def _windows_containing(self, dt: datetime) -> List[Tuple[datetime, datetime]]:
        # Overnight shifts from the previous day can still be running
        today = _midnight(dt)
        containing = []
        for day in (today - timedelta(days=1), today):
            for start, end in self._shift_windows(day):
                if start <= dt < end:
                    containing.append((start, end))
        return containing

    def is_working_time(self, dt: datetime) -> bool:
        """Check if an instant falls inside a shift, [start, end) semantics."""
        return bool(self._windows_containing(to_utc(dt)))

    def get_shift_end(self, dt: datetime) -> Optional[datetime]:
        """End of the shift running at dt, or None if dt is not working time."""
        containing = self._windows_containing(to_utc(dt))
        if not containing:
            return None
        return max(end for _, end in containing)

    def next_working_time_after(self, dt: datetime) -> datetime:
        """
        Find the next working instant at or after dt.

        Returns dt unchanged if it is already working time, otherwise the
        start of the earliest shift beginning at or after dt.

        Raises:
            NoWorkingTimeFoundError: No shift starts within the lookahead
        """
        dt = to_utc(dt)
        if self.is_working_time(dt):
            return dt

        day = _midnight(dt)
        for _ in range(self.lookahead_days + 1):
            starts = [start for start, _ in self._shift_windows(day) if start >= dt]
            if starts:
                return min(starts)
            day += timedelta(days=1)

        raise NoWorkingTimeFoundError(dt, self.lookahead_days, self.work_center_id)

    def normalize_to_working_time(self, dt: datetime) -> datetime:
        dt = to_utc(dt)
        if self.is_working_time(dt):
            return dt
        return self.next_working_time_after(dt)

    def get_next_maintenance_after(self, dt: datetime) -> Optional[MaintenanceWindow]:
        """First maintenance window that has not finished by dt."""
        dt = to_utc(dt)
        for window in self.maintenance_windows:
            if window.end > dt:
                return window
        return None

    def allocate_around_maintenance(self, earliest: datetime,
                                    duration_minutes: float) -> Tuple[datetime, datetime]:
        """
        Place a contiguous block of duration_minutes between maintenance windows.

        Shift hours are not considered; the returned end is start + duration.

        Returns:
            (start, logical_end)
        """
        duration = timedelta(minutes=duration_minutes)
        cursor = to_utc(earliest)

        while True:
            window = self.get_next_maintenance_after(cursor)
            if window is None:
                break
            if cursor < window.start and window.start - cursor >= duration:
                break
            cursor = window.end

        return cursor, cursor + duration

    def allocate_working_minutes(self, start: datetime, duration_minutes: float) -> datetime:
        """
        Advance from start by duration_minutes, only counting shift time.

        Work that does not fit in the current shift carries over to the next
        working period. Maintenance windows are not considered.

        Returns:
            The instant the full duration has been worked
        """
        current = self.normalize_to_working_time(start)
        remaining = timedelta(minutes=duration_minutes)

        while remaining > timedelta(0):
            shift_end = self.get_shift_end(current)
            if shift_end is None:
                current = self.next_working_time_after(current)
                continue

            available = shift_end - current
            if available >= remaining:
                current += remaining
                remaining = timedelta(0)
            else:
                remaining -= available
                current = self.next_working_time_after(shift_end)

        return current

    def schedule_block(self, earliest: datetime,
                       duration_minutes: float) -> Tuple[datetime, datetime]:
        """
        Find the earliest span that respects both shifts and maintenance.

        Starts at the first working instant at or after earliest, works the
        duration through shift boundaries, and if the resulting [start, end)
        touches a maintenance window retries from the end of that window.

        Returns:
            (start, end)
        """
        cursor = to_utc(earliest)

        while True:
            start = self.normalize_to_working_time(cursor)
            end = self.allocate_working_minutes(start, duration_minutes)
            window = self.get_next_maintenance_after(start)
            if window is None or not window.overlaps(start, end):
                return start, end
            cursor = window.end

    def with_blocked_intervals(self, intervals: Iterable[Tuple[datetime, datetime, str]]
                               ) -> 'ShiftCalendar':
        """
        Copy of this calendar with extra blocked intervals.

        Overlapping or touching intervals are merged with the existing
        maintenance windows so the result stays sorted and disjoint.
        """
        windows = list(self.maintenance_windows)
        windows.extend(MaintenanceWindow(to_utc(s), to_utc(e), reason) for s, e, reason in intervals)
        windows.sort(key=lambda w: (w.start, w.end))

        merged: List[MaintenanceWindow] = []
        for window in windows:
            if window.end <= window.start:
                raise MalformedCalendarError(
                    f"blocked interval {window.start.isoformat()} ends before it starts",
                    self.work_center_id)
            if merged and window.start <= merged[-1].end:
                last = merged[-1]
                merged[-1] = MaintenanceWindow(last.start, max(last.end, window.end), last.reason)
            else:
                merged.append(window)

        return ShiftCalendar(merged, self.shifts, self.work_center_id, self.lookahead_days)
