"""Shared test fixtures for ReflowBot tests."""

import os
import sys
import tempfile
import pytest
from datetime import datetime, timedelta, timezone

# Add backend to Python path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), '..', 'backend'))

# Keep exported files out of the repo and progress output quiet
os.environ['REFLOW_OUTPUT_DIR'] = tempfile.mkdtemp(prefix='reflow-test-')
os.environ['FLASK_DEBUG'] = 'false'

from reflowbot.algorithms.calendar import ShiftCalendar
from reflowbot.algorithms.models import MaintenanceWindow, Shift, WorkCenter, WorkOrder


MONDAY = datetime(2026, 2, 16, tzinfo=timezone.utc)  # A Monday


def daily_shifts(start_hour=8, end_hour=17, days=range(7)):
    return [Shift(day, start_hour, end_hour) for day in days]


@pytest.fixture
def app():
    """Create Flask test application."""
    from reflowbot.app import app as flask_app
    flask_app.config['TESTING'] = True
    return flask_app


@pytest.fixture
def client(app):
    """Create Flask test client."""
    return app.test_client()


@pytest.fixture
def at():
    """Build a UTC instant relative to Monday 2026-02-16: at(day, hour, minute)."""
    def _at(day, hour, minute=0):
        return MONDAY + timedelta(days=day, hours=hour, minutes=minute)
    return _at


@pytest.fixture
def daily_calendar():
    """08:00-17:00 every day, no maintenance."""
    return ShiftCalendar([], daily_shifts(), work_center_id='C1')


@pytest.fixture
def make_center():
    """Factory for work centers with daily 08-17 shifts and optional maintenance."""
    def _make(center_id='C1', maintenance=None, shifts=None):
        windows = [MaintenanceWindow(start, end) for start, end in (maintenance or [])]
        calendar = ShiftCalendar(windows, daily_shifts() if shifts is None else shifts,
                                 work_center_id=center_id)
        return WorkCenter(id=center_id, name=f"Center {center_id}", calendar=calendar)
    return _make


@pytest.fixture
def make_order():
    """Factory for work orders."""
    def _make(order_id, start, end, duration, center_id='C1', depends_on=None,
              is_maintenance=False, mo_id=None):
        return WorkOrder(
            id=order_id,
            work_center_id=center_id,
            start=start,
            end=end,
            duration_minutes=duration,
            is_maintenance=is_maintenance,
            depends_on=list(depends_on or []),
            manufacturing_order_id=mo_id,
        )
    return _make


@pytest.fixture
def sample_work_center_records():
    """workCenter records in the input JSON shape (ISO day numbering)."""
    return [
        {
            'docId': 'C1',
            'docType': 'workCenter',
            'data': {
                'name': 'Extrusion Line 1',
                'shifts': [{'dayOfWeek': d, 'startHour': 8, 'endHour': 17} for d in range(1, 8)],
                'maintenanceWindows': [],
            }
        },
        {
            'docId': 'C2',
            'docType': 'workCenter',
            'data': {
                'name': 'Packaging',
                'shifts': [{'dayOfWeek': d, 'startHour': 8, 'endHour': 17} for d in range(1, 6)],
                'maintenanceWindows': [
                    {'startDate': '2026-02-16T12:00:00Z', 'endDate': '2026-02-16T13:00:00Z',
                     'reason': 'Belt replacement'},
                ],
            }
        },
    ]


@pytest.fixture
def sample_work_order_records():
    """The X/Y scenario: Y depends on X on the same work center."""
    return [
        {
            'docId': 'X',
            'docType': 'workOrder',
            'data': {
                'workOrderNumber': 'WO-X',
                'manufacturingOrderId': 'MO-1',
                'workCenterId': 'C1',
                'startDate': '2026-02-16T09:00:00Z',
                'endDate': '2026-02-16T10:00:00Z',
                'durationMinutes': 60,
                'isMaintenance': False,
                'dependsOnWorkOrderIds': [],
            }
        },
        {
            'docId': 'Y',
            'docType': 'workOrder',
            'data': {
                'workOrderNumber': 'WO-Y',
                'manufacturingOrderId': 'MO-1',
                'workCenterId': 'C1',
                'startDate': '2026-02-16T09:30:00Z',
                'endDate': '2026-02-16T10:00:00Z',
                'durationMinutes': 30,
                'isMaintenance': False,
                'dependsOnWorkOrderIds': ['X'],
            }
        },
    ]


@pytest.fixture
def sample_manufacturing_order_records():
    return [
        {
            'docId': 'MO-1',
            'docType': 'manufacturingOrder',
            'data': {
                'manufacturingOrderNumber': 'MO-1001',
                'itemId': 'ITEM-7',
                'quantity': 100,
                'dueDate': '2026-02-16T10:15:00Z',
            }
        },
    ]
