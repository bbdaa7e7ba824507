"""
Reflow Data Model
Entities shared by the calendar, the dependency resolver and the reflow scheduler.

All datetimes are timezone-aware and normalised to UTC by the parsers.
"""

from datetime import datetime, timedelta
from typing import Dict, List, Any, Optional
from dataclasses import dataclass, field
from enum import Enum


@dataclass(frozen=True)
class MaintenanceWindow:
    """Absolute blocked period [start, end) on a work center."""
    start: datetime
    end: datetime
    reason: Optional[str] = None

    def overlaps(self, start: datetime, end: datetime) -> bool:
        """Check whether [start, end) intersects this window."""
        return start < self.end and self.start < end


@dataclass(frozen=True)
class Shift:
    """
    Weekly recurring working hours.

    day_of_week uses Python's numbering (0=Mon..6=Sun). An end_hour earlier
    than start_hour is an overnight shift ending on the following day.
    """
    day_of_week: int
    start_hour: int
    end_hour: int

    @property
    def is_overnight(self) -> bool:
        return self.end_hour < self.start_hour

    def window_on(self, day: datetime) -> tuple:
        """Return the (start, end) instants of this shift for the given midnight."""
        start = day + timedelta(hours=self.start_hour)
        end_day = day + timedelta(days=1) if self.is_overnight else day
        return start, end_day + timedelta(hours=self.end_hour)


@dataclass
class WorkOrder:
    """A unit of production work bound to one work center."""
    id: str
    work_center_id: str
    start: datetime
    end: datetime
    duration_minutes: int
    is_maintenance: bool = False
    depends_on: List[str] = field(default_factory=list)
    work_order_number: Optional[str] = None
    manufacturing_order_id: Optional[str] = None


@dataclass
class WorkCenter:
    """A resource with a shift/maintenance calendar (see algorithms.calendar)."""
    id: str
    name: str
    calendar: Any


@dataclass
class ManufacturingOrder:
    """Parent order that groups work orders; only used for due-date reporting."""
    id: str
    number: str
    item_id: Optional[str] = None
    quantity: Optional[float] = None
    due_date: Optional[datetime] = None


class DelayCause(Enum):
    """Why a work order was moved away from its plan."""
    DEPENDENCY = 'dependency'
    WORK_CENTER_BUSY = 'work_center_busy'
    OUTSIDE_SHIFT = 'outside_shift'
    MAINTENANCE = 'maintenance'
    SHIFT_BOUNDARY = 'shift_boundary'
    DURATION_MISMATCH = 'duration_mismatch'


DELAY_REASONS = {
    DelayCause.DEPENDENCY: 'Waiting for dependencies to complete',
    DelayCause.WORK_CENTER_BUSY: 'Work center busy with earlier work orders',
    DelayCause.OUTSIDE_SHIFT: 'Planned start falls outside shift hours',
    DelayCause.MAINTENANCE: 'Moved past a maintenance window',
    DelayCause.SHIFT_BOUNDARY: 'Work carried over a shift boundary',
    DelayCause.DURATION_MISMATCH: 'Planned end did not match the required duration',
}


@dataclass
class Change:
    """Audit record for a work order whose instants were moved."""
    work_order_id: str
    old_start: datetime
    new_start: datetime
    old_end: datetime
    new_end: datetime
    cause: DelayCause
    reason: str = ''

    def __post_init__(self):
        if not self.reason:
            self.reason = DELAY_REASONS[self.cause]

    @property
    def delay_minutes(self) -> float:
        """Minutes the start moved (0 when only the end changed)."""
        return (self.new_start - self.old_start).total_seconds() / 60.0


@dataclass
class Result:
    """Outcome of a reflow run."""
    work_orders: List[WorkOrder] = field(default_factory=list)
    changes: List[Change] = field(default_factory=list)
    manufacturing_orders: List[ManufacturingOrder] = field(default_factory=list)

    def get_work_order(self, work_order_id: str) -> Optional[WorkOrder]:
        return next((wo for wo in self.work_orders if wo.id == work_order_id), None)

    def get_late_manufacturing_orders(self) -> List[Dict[str, Any]]:
        """
        Manufacturing orders whose last work order ends after the due date.

        Returns:
            List of dicts with id, number, due_date and completion_date
        """
        completion: Dict[str, datetime] = {}
        for wo in self.work_orders:
            if wo.manufacturing_order_id:
                current = completion.get(wo.manufacturing_order_id)
                if current is None or wo.end > current:
                    completion[wo.manufacturing_order_id] = wo.end

        late = []
        for mo in self.manufacturing_orders:
            done = completion.get(mo.id)
            if mo.due_date and done and done > mo.due_date:
                late.append({
                    'id': mo.id,
                    'number': mo.number,
                    'due_date': mo.due_date,
                    'completion_date': done,
                })
        return late

    def get_summary(self) -> Dict:
        """Get reflow summary."""
        if not self.work_orders:
            return {}

        total = len(self.work_orders)
        moved = len(self.changes)
        delays = [c.delay_minutes for c in self.changes if c.delay_minutes > 0]

        by_cause: Dict[str, int] = {}
        for change in self.changes:
            by_cause[change.cause.value] = by_cause.get(change.cause.value, 0) + 1

        return {
            'total_work_orders': total,
            'moved': moved,
            'moved_pct': moved / total * 100,
            'total_delay_minutes': sum(delays),
            'max_delay_minutes': max(delays) if delays else 0,
            'changes_by_cause': by_cause,
            'earliest_start': min(wo.start for wo in self.work_orders),
            'latest_end': max(wo.end for wo in self.work_orders),
            'late_manufacturing_orders': len(self.get_late_manufacturing_orders()),
        }

    def print_summary(self):
        """Print reflow summary."""
        summary = self.get_summary()

        print(f"\n{'='*70}")
        print("REFLOW SUMMARY")
        print(f"{'='*70}")

        print(f"\nWORK ORDERS:")
        print(f"   Total: {summary.get('total_work_orders', 0)}")
        print(f"   Moved: {summary.get('moved', 0)} ({summary.get('moved_pct', 0):.1f}%)")
        print(f"   Total delay: {summary.get('total_delay_minutes', 0):.0f} min")
        print(f"   Max delay: {summary.get('max_delay_minutes', 0):.0f} min")

        for cause, count in sorted(summary.get('changes_by_cause', {}).items()):
            print(f"   - {cause}: {count}")

        if summary.get('earliest_start'):
            print(f"\nSCHEDULE RANGE:")
            print(f"   Earliest start: {summary['earliest_start']}")
            print(f"   Latest end: {summary['latest_end']}")

        if summary.get('late_manufacturing_orders'):
            print(f"\n[WARN] LATE: {summary['late_manufacturing_orders']} "
                  f"manufacturing orders finish after their due date")
