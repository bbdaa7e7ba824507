"""
Scheduling Algorithms

This module provides the work order reflow engine.

Components:
- ShiftCalendar: shift and maintenance-window arithmetic per work center
- sort_work_orders: deterministic topological ordering of work orders
- ReflowScheduler: greedy single-pass rescheduling
"""

from reflowbot.algorithms.models import (
    WorkOrder,
    WorkCenter,
    ManufacturingOrder,
    MaintenanceWindow,
    Shift,
    Change,
    DelayCause,
    Result
)

from reflowbot.algorithms.errors import (
    SchedulingError,
    ValidationError,
    CyclicDependencyError,
    UnknownDependencyError,
    DuplicateWorkOrderError,
    UnknownWorkCenterError,
    MalformedCalendarError,
    NoWorkingTimeFoundError,
    ImmovableOrderConflictError
)

from reflowbot.algorithms.calendar import ShiftCalendar, WorkCenterCalendar
from reflowbot.algorithms.dependency_resolver import sort_work_orders
from reflowbot.algorithms.reflow import ReflowScheduler

__all__ = [
    # Models
    'WorkOrder',
    'WorkCenter',
    'ManufacturingOrder',
    'MaintenanceWindow',
    'Shift',
    'Change',
    'DelayCause',
    'Result',
    # Errors
    'SchedulingError',
    'ValidationError',
    'CyclicDependencyError',
    'UnknownDependencyError',
    'DuplicateWorkOrderError',
    'UnknownWorkCenterError',
    'MalformedCalendarError',
    'NoWorkingTimeFoundError',
    'ImmovableOrderConflictError',
    # Engine
    'ShiftCalendar',
    'WorkCenterCalendar',
    'sort_work_orders',
    'ReflowScheduler',
]
