"""
Schedule Validators
Re-checks a reflow result against every scheduling constraint.
"""

from typing import Dict, List

from reflowbot.algorithms.models import Result, WorkCenter, WorkOrder


class ValidationReport:
    """Container for validation results."""

    def __init__(self):
        self.errors = []  # Blocking errors
        self.warnings = []  # Non-blocking warnings
        self.info = []  # Informational messages

    @property
    def is_valid(self) -> bool:
        """Returns True if no blocking errors."""
        return len(self.errors) == 0

    def add_error(self, message: str):
        """Add a blocking error."""
        self.errors.append(message)

    def add_warning(self, message: str):
        """Add a warning."""
        self.warnings.append(message)

    def add_info(self, message: str):
        """Add informational message."""
        self.info.append(message)

    def to_dict(self) -> Dict:
        return {
            'is_valid': self.is_valid,
            'errors': list(self.errors),
            'warnings': list(self.warnings),
            'info': list(self.info),
        }

    def print_report(self):
        """Print formatted validation report."""
        print("\n" + "=" * 70)
        print("VALIDATION REPORT")
        print("=" * 70)

        if self.is_valid:
            print("\n[OK] VALIDATION PASSED")
        else:
            print("\n[FAIL] VALIDATION FAILED")

        if self.errors:
            print(f"\n[ERROR] ERRORS ({len(self.errors)}):")
            for i, error in enumerate(self.errors[:10], 1):
                print(f"   {i}. {error}")
            if len(self.errors) > 10:
                print(f"   ... and {len(self.errors) - 10} more errors")

        if self.warnings:
            print(f"\n[WARN] WARNINGS ({len(self.warnings)}):")
            for i, warning in enumerate(self.warnings[:10], 1):
                print(f"   {i}. {warning}")
            if len(self.warnings) > 10:
                print(f"   ... and {len(self.warnings) - 10} more warnings")

        if self.info:
            print(f"\n[INFO] INFO ({len(self.info)}):")
            for i, info in enumerate(self.info[:5], 1):
                print(f"   {i}. {info}")
            if len(self.info) > 5:
                print(f"   ... and {len(self.info) - 5} more")


def validate_schedule(result: Result, work_centers: List[WorkCenter]) -> ValidationReport:
    """
    Validate a finished schedule.

    Checks:
    1. Every order starts after all of its predecessors end
    2. Orders on the same work center do not overlap, and movable orders
       start in processing order
    3. No movable order touches a maintenance window
    4. Movable orders only work during shifts
    5. Changes are only reported for orders that moved

    Returns:
        ValidationReport with all validation results
    """
    report = ValidationReport()
    centers = {wc.id: wc for wc in work_centers}
    by_id = {wo.id: wo for wo in result.work_orders}

    report.add_info(f"Checked {len(result.work_orders)} work orders, {len(result.changes)} changes")

    _validate_dependencies(result.work_orders, by_id, report)
    _validate_no_overlap(result.work_orders, report)
    _validate_processing_order(result.work_orders, report)
    _validate_calendars(result.work_orders, centers, report)
    _validate_changes(result, by_id, report)

    return report


def _validate_dependencies(work_orders: List[WorkOrder], by_id: Dict[str, WorkOrder],
                           report: ValidationReport):
    for wo in work_orders:
        for parent_id in wo.depends_on:
            parent = by_id.get(parent_id)
            if parent is None:
                report.add_error(f"{wo.id}: predecessor {parent_id} missing from schedule")
            elif parent.end > wo.start:
                report.add_error(
                    f"{wo.id}: starts {wo.start.isoformat()} before predecessor "
                    f"{parent_id} ends {parent.end.isoformat()}"
                )


def _validate_no_overlap(work_orders: List[WorkOrder], report: ValidationReport):
    per_center: Dict[str, List[WorkOrder]] = {}
    for wo in work_orders:
        per_center.setdefault(wo.work_center_id, []).append(wo)

    for wc_id, orders in per_center.items():
        orders = sorted(orders, key=lambda o: (o.start, o.end))
        for previous, current in zip(orders, orders[1:]):
            if current.start < previous.end:
                report.add_error(
                    f"{wc_id}: {previous.id} and {current.id} overlap "
                    f"({previous.end.isoformat()} > {current.start.isoformat()})"
                )


def _validate_processing_order(work_orders: List[WorkOrder], report: ValidationReport):
    # Immovable orders are fixed blackouts and sit outside the cursor sequence
    last_placed: Dict[str, WorkOrder] = {}
    for wo in work_orders:
        if wo.is_maintenance:
            continue
        previous = last_placed.get(wo.work_center_id)
        if previous is not None and wo.start < previous.start:
            report.add_error(
                f"{wo.work_center_id}: {wo.id} starts {wo.start.isoformat()} before "
                f"{previous.id}, which was processed earlier"
            )
        last_placed[wo.work_center_id] = wo


def _validate_calendars(work_orders: List[WorkOrder], centers: Dict[str, WorkCenter],
                        report: ValidationReport):
    for wo in work_orders:
        center = centers.get(wo.work_center_id)
        if center is None:
            report.add_error(f"{wo.id}: unknown work center {wo.work_center_id}")
            continue
        if wo.is_maintenance:
            continue

        calendar = center.calendar
        window = calendar.get_next_maintenance_after(wo.start)
        if window is not None and window.overlaps(wo.start, wo.end):
            report.add_error(
                f"{wo.id}: overlaps maintenance window {window.start.isoformat()} - "
                f"{window.end.isoformat()}"
            )

        if wo.duration_minutes > 0:
            if not calendar.is_working_time(wo.start):
                report.add_error(f"{wo.id}: starts outside shift hours at {wo.start.isoformat()}")
            elif calendar.allocate_working_minutes(wo.start, wo.duration_minutes) != wo.end:
                report.add_error(
                    f"{wo.id}: end {wo.end.isoformat()} does not match "
                    f"{wo.duration_minutes} working minutes from start"
                )
        elif wo.end != wo.start:
            report.add_warning(f"{wo.id}: zero-duration order spans {wo.end - wo.start}")


def _validate_changes(result: Result, by_id: Dict[str, WorkOrder], report: ValidationReport):
    seen = set()
    for change in result.changes:
        if change.work_order_id in seen:
            report.add_error(f"{change.work_order_id}: more than one change recorded")
        seen.add(change.work_order_id)

        wo = by_id.get(change.work_order_id)
        if wo is None:
            report.add_error(f"Change for unknown work order {change.work_order_id}")
            continue
        if (wo.start, wo.end) != (change.new_start, change.new_end):
            report.add_error(f"{wo.id}: change record does not match scheduled instants")
        if (change.old_start, change.old_end) == (change.new_start, change.new_end):
            report.add_error(f"{wo.id}: change recorded for an order that did not move")
        if wo.is_maintenance:
            report.add_error(f"{wo.id}: immovable order was moved")

    delayed = [c for c in result.changes if c.delay_minutes > 0]
    if delayed:
        worst = max(delayed, key=lambda c: c.delay_minutes)
        hours = worst.delay_minutes / 60.0
        report.add_info(f"Largest delay: {worst.work_order_id} by {hours:.1f} h ({worst.reason})")
