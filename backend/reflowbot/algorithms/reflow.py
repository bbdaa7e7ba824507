"""
Reflow Scheduler
Greedy single-pass rescheduling of work orders onto work center calendars.

Algorithm:
1. Topologically sort work orders (dependency_resolver.sort_work_orders)
2. Walk the sorted list once, keeping one time cursor per work center
3. Each order starts at the latest of: its planned start, its work center
   cursor, and the end of its last predecessor, then is pushed past
   non-working time and maintenance windows by the calendar
4. Orders that moved get a Change record with the dominant cause

Immovable (maintenance) orders are fixed blackouts on their work center
rather than slots on its cursor. Movable orders on a work center start in
processing order; an immovable order keeps its planned instants, so a movable
order processed before it may still land after it in time.

The result is valid but not optimal: idle gaps are never back-filled and
placed orders are never revisited.
"""

from dataclasses import replace
from datetime import datetime, timedelta
from typing import Dict, List, Optional, Tuple

from reflowbot.algorithms.calendar import to_utc
from reflowbot.algorithms.dependency_resolver import sort_work_orders
from reflowbot.algorithms.errors import (
    ImmovableOrderConflictError,
    NoWorkingTimeFoundError,
    UnknownWorkCenterError,
    ValidationError
)
from reflowbot.algorithms.models import (
    Change,
    DelayCause,
    ManufacturingOrder,
    Result,
    WorkCenter,
    WorkOrder
)


class ReflowScheduler:
    """Reflows a snapshot of work orders against their work centers."""

    def __init__(self, work_orders: List[WorkOrder], work_centers: List[WorkCenter],
                 manufacturing_orders: List[ManufacturingOrder] = None,
                 verbose: bool = True):
        # Inputs are copied so callers can reuse their collections across runs
        self.work_orders = [
            replace(wo, start=to_utc(wo.start), end=to_utc(wo.end),
                    depends_on=list(wo.depends_on))
            for wo in work_orders
        ]
        self.work_centers: Dict[str, WorkCenter] = {}
        for wc in work_centers:
            if wc.id in self.work_centers:
                raise ValidationError('docId', wc.id, 'duplicate work center id')
            self.work_centers[wc.id] = wc
        self.manufacturing_orders = list(manufacturing_orders or [])
        self.verbose = verbose

        # Run state, owned by a single reflow() call
        self.cursors: Dict[str, datetime] = {}
        self.scheduled: Dict[str, WorkOrder] = {}
        self.calendars: Dict[str, object] = {}
        self.result: Optional[Result] = None

    def _log(self, message: str):
        if self.verbose:
            print(message)

    def _check_work_centers(self):
        for wo in self.work_orders:
            if wo.work_center_id not in self.work_centers:
                raise UnknownWorkCenterError(wo.id, wo.work_center_id)

    def _build_calendars(self) -> Dict[str, object]:
        """
        Calendars per work center, with immovable orders added as blackouts.

        Immovable orders keep their planned time, so other orders on the
        same work center must route around them like maintenance.

        Raises:
            ImmovableOrderConflictError: Two immovable orders on one work
                center overlap
        """
        fixed_orders: Dict[str, List[WorkOrder]] = {}
        for wo in self.work_orders:
            if wo.is_maintenance:
                fixed_orders.setdefault(wo.work_center_id, []).append(wo)

        fixed: Dict[str, List[Tuple[datetime, datetime, str]]] = {}
        for wc_id, orders in fixed_orders.items():
            orders.sort(key=lambda o: (o.start, o.end, o.id))
            holder = None
            for wo in orders:
                if holder is not None and wo.start < holder.end:
                    raise ImmovableOrderConflictError(wo.id, wo.start, holder.end, blocked_by=holder.id)
                if holder is None or wo.end > holder.end:
                    holder = wo
                if wo.end != wo.start:
                    fixed.setdefault(wc_id, []).append(
                        (wo.start, wo.end, f"Maintenance work order {wo.id}")
                    )

        calendars = {}
        for wc_id, wc in self.work_centers.items():
            if wc_id in fixed:
                calendars[wc_id] = wc.calendar.with_blocked_intervals(fixed[wc_id])
            else:
                calendars[wc_id] = wc.calendar
        return calendars

    def _dependency_met_at(self, wo: WorkOrder) -> Optional[datetime]:
        ends = [self.scheduled[parent_id].end for parent_id in wo.depends_on]
        return max(ends) if ends else None

    def reflow(self) -> Result:
        """
        Run the reflow pass.

        Returns:
            Result with the scheduled work orders (in processing order) and
            the change log

        Raises:
            UnknownWorkCenterError, CyclicDependencyError,
            UnknownDependencyError, DuplicateWorkOrderError,
            NoWorkingTimeFoundError, ImmovableOrderConflictError
        """
        self._log(f"\n{'='*70}")
        self._log(f"REFLOW: {len(self.work_orders)} WORK ORDERS ON "
                  f"{len(self.work_centers)} WORK CENTERS")
        self._log(f"{'='*70}")

        self._check_work_centers()
        sorted_orders = sort_work_orders(self.work_orders)

        self.scheduled = {}
        self.calendars = self._build_calendars()
        result = Result(manufacturing_orders=self.manufacturing_orders)

        if sorted_orders:
            first_start = min(wo.start for wo in sorted_orders)
            self.cursors = {wc_id: first_start for wc_id in self.work_centers}

        fixed_count = sum(1 for wo in sorted_orders if wo.is_maintenance)
        self._log(f"   Dependency order resolved ({fixed_count} immovable)")

        for wo in sorted_orders:
            if wo.is_maintenance:
                scheduled, change = self._place_immovable(wo)
            else:
                scheduled, change = self._schedule_work_order(wo)

            self.cursors[wo.work_center_id] = max(self.cursors[wo.work_center_id], scheduled.end)
            self.scheduled[wo.id] = scheduled
            result.work_orders.append(scheduled)

            if change:
                result.changes.append(change)
                self._log(f"   [Moved] {wo.id}: {change.old_start.isoformat()} -> "
                          f"{change.new_start.isoformat()} ({change.reason})")

        self._log(f"\n[OK] Scheduled: {len(result.work_orders)} work orders")
        self._log(f"[!!] Moved: {len(result.changes)} work orders")

        self.result = result
        return result

    def _place_immovable(self, wo: WorkOrder) -> Tuple[WorkOrder, Optional[Change]]:
        dependency_met = self._dependency_met_at(wo)
        if dependency_met is not None and dependency_met > wo.start:
            raise ImmovableOrderConflictError(wo.id, wo.start, dependency_met)
        return replace(wo, depends_on=list(wo.depends_on)), None

    def _schedule_work_order(self, wo: WorkOrder) -> Tuple[WorkOrder, Optional[Change]]:
        """
        Place one movable work order.

        Returns:
            (scheduled work order, Change or None if nothing moved)
        """
        calendar = self.calendars[wo.work_center_id]
        cursor = self.cursors[wo.work_center_id]
        dependency_met = self._dependency_met_at(wo)

        ready = max(wo.start, dependency_met) if dependency_met else wo.start
        candidate = max(cursor, ready)

        try:
            working = calendar.normalize_to_working_time(candidate)
            start, end = calendar.schedule_block(candidate, wo.duration_minutes)
        except NoWorkingTimeFoundError as e:
            raise NoWorkingTimeFoundError(e.after, e.lookahead_days,
                                          wo.work_center_id, wo.id) from e

        scheduled = replace(wo, start=start, end=end, depends_on=list(wo.depends_on))
        if start == wo.start and end == wo.end:
            return scheduled, None

        waits = [
            (ready - wo.start, DelayCause.DEPENDENCY),
            (candidate - ready, DelayCause.WORK_CENTER_BUSY),
            (working - candidate, DelayCause.OUTSIDE_SHIFT),
            (start - working, DelayCause.MAINTENANCE),
        ]
        longest, cause = max(waits, key=lambda w: w[0])
        if longest <= timedelta(0):
            # Start held; only the end moved
            if end > start + timedelta(minutes=wo.duration_minutes):
                cause = DelayCause.SHIFT_BOUNDARY
            else:
                cause = DelayCause.DURATION_MISMATCH

        change = Change(
            work_order_id=wo.id,
            old_start=wo.start,
            new_start=start,
            old_end=wo.end,
            new_end=end,
            cause=cause,
        )
        return scheduled, change

    def get_summary(self) -> Dict:
        """Get summary of the last reflow run."""
        if self.result is None:
            return {}
        return self.result.get_summary()

    def print_summary(self):
        if self.result is not None:
            self.result.print_summary()
