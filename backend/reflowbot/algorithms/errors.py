"""
Scheduling Errors
Failure types raised by the reflow engine and its intake layer.

Every failure is fatal to a reflow run. Callers catch SchedulingError to
handle any of them, or a specific subclass to tell them apart.
"""

from datetime import datetime
from typing import Any, Dict, List, Optional


class SchedulingError(Exception):
    """
    Base class for all reflow errors.

    Attributes:
        message: Human-readable description
        details: Extra context (ids, instants) for debugging and API output
    """

    def __init__(self, message: str, details: Optional[Dict[str, Any]] = None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def __str__(self) -> str:
        if self.details:
            detail_str = ", ".join(f"{k}={v}" for k, v in self.details.items())
            return f"{self.message} [{detail_str}]"
        return self.message


class ValidationError(SchedulingError):
    """Raised when an input record is missing a field or has a bad value."""

    def __init__(self, field: str, value: Any, reason: str, doc_id: str = None):
        self.field = field
        self.value = value
        self.reason = reason
        self.doc_id = doc_id

        details = {'field': field, 'value': repr(value)}
        if doc_id is not None:
            details['doc_id'] = doc_id

        location = f" in record {doc_id}" if doc_id else ""
        message = f"Invalid {field}{location}: {reason}. Got: {value!r}"
        super().__init__(message, details)


class CyclicDependencyError(SchedulingError):
    """Raised when work order dependencies contain a cycle."""

    def __init__(self, unresolved_ids: List[str]):
        self.unresolved_ids = sorted(unresolved_ids)
        message = (
            f"Cyclic dependency detected: {len(self.unresolved_ids)} work order(s) "
            f"could not be ordered"
        )
        super().__init__(message, {'unresolved': ", ".join(self.unresolved_ids)})


class UnknownDependencyError(SchedulingError):
    """Raised when a work order depends on an id that is not in the input."""

    def __init__(self, work_order_id: str, missing_id: str):
        self.work_order_id = work_order_id
        self.missing_id = missing_id
        message = f"Work order {work_order_id} depends on unknown work order {missing_id}"
        super().__init__(message, {'work_order_id': work_order_id, 'missing_id': missing_id})


class DuplicateWorkOrderError(SchedulingError):
    """Raised when two work orders share an id."""

    def __init__(self, work_order_id: str):
        self.work_order_id = work_order_id
        super().__init__(f"Duplicate work order id {work_order_id}",
                         {'work_order_id': work_order_id})


class UnknownWorkCenterError(SchedulingError):
    """Raised when a work order references a work center that was not supplied."""

    def __init__(self, work_order_id: str, work_center_id: str):
        self.work_order_id = work_order_id
        self.work_center_id = work_center_id
        message = f"Work order {work_order_id} references unknown work center {work_center_id}"
        super().__init__(message, {'work_order_id': work_order_id,
                                   'work_center_id': work_center_id})


class MalformedCalendarError(SchedulingError):
    """Raised when shift or maintenance configuration is invalid."""

    def __init__(self, issue: str, work_center_id: str = None):
        self.issue = issue
        self.work_center_id = work_center_id
        owner = f" for work center {work_center_id}" if work_center_id else ""
        details = {'work_center_id': work_center_id} if work_center_id else {}
        super().__init__(f"Malformed calendar{owner}: {issue}", details)


class NoWorkingTimeFoundError(SchedulingError):
    """
    Raised when no shift starts within the lookahead window.

    The calendar raises it with the instant it was searching from; the
    reflow scheduler re-raises it with the work order and work center that
    triggered the search.
    """

    def __init__(self, after: datetime, lookahead_days: int,
                 work_center_id: str = None, work_order_id: str = None):
        self.after = after
        self.lookahead_days = lookahead_days
        self.work_center_id = work_center_id
        self.work_order_id = work_order_id

        details = {'after': after.isoformat()}
        if work_center_id:
            details['work_center_id'] = work_center_id
        if work_order_id:
            details['work_order_id'] = work_order_id

        message = f"No working time found within {lookahead_days} days after {after.isoformat()}"
        super().__init__(message, details)


class ImmovableOrderConflictError(SchedulingError):
    """Raised when a fixed maintenance order cannot keep its planned time."""

    def __init__(self, work_order_id: str, planned_start: datetime, blocked_until: datetime,
                 blocked_by: str = None):
        self.work_order_id = work_order_id
        self.planned_start = planned_start
        self.blocked_until = blocked_until
        self.blocked_by = blocked_by

        details = {'work_order_id': work_order_id}
        if blocked_by:
            details['blocked_by'] = blocked_by
            message = (
                f"Immovable work order {work_order_id} is planned at {planned_start.isoformat()} "
                f"but immovable work order {blocked_by} holds the work center until "
                f"{blocked_until.isoformat()}"
            )
        else:
            message = (
                f"Immovable work order {work_order_id} is planned at {planned_start.isoformat()} "
                f"but its dependencies finish at {blocked_until.isoformat()}"
            )
        super().__init__(message, details)
