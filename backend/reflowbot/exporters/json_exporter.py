"""
JSON Exporter
Serialises reflow results into JSON-ready dicts using the input's camelCase field names.
"""

import json
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from reflowbot.algorithms.models import Change, Result, WorkOrder


def format_instant(dt: Optional[datetime]) -> Optional[str]:
    """ISO-8601 in UTC with a Z suffix."""
    if dt is None:
        return None
    return dt.astimezone(timezone.utc).strftime('%Y-%m-%dT%H:%M:%SZ')


def serialize_work_order(wo: WorkOrder) -> Dict[str, Any]:
    return {
        'docId': wo.id,
        'docType': 'workOrder',
        'data': {
            'workOrderNumber': wo.work_order_number,
            'manufacturingOrderId': wo.manufacturing_order_id,
            'workCenterId': wo.work_center_id,
            'startDate': format_instant(wo.start),
            'endDate': format_instant(wo.end),
            'durationMinutes': wo.duration_minutes,
            'isMaintenance': wo.is_maintenance,
            'dependsOnWorkOrderIds': list(wo.depends_on),
        }
    }


def serialize_change(change: Change) -> Dict[str, Any]:
    return {
        'workOrderId': change.work_order_id,
        'oldStartDate': format_instant(change.old_start),
        'newStartDate': format_instant(change.new_start),
        'oldEndDate': format_instant(change.old_end),
        'newEndDate': format_instant(change.new_end),
        'delayMinutes': change.delay_minutes,
        'cause': change.cause.value,
        'reason': change.reason,
    }


def _serialize_value(value: Any) -> Any:
    if isinstance(value, datetime):
        return format_instant(value)
    if isinstance(value, dict):
        return {k: _serialize_value(v) for k, v in value.items()}
    if isinstance(value, list):
        return [_serialize_value(v) for v in value]
    return value


def serialize_result(result: Result) -> Dict[str, Any]:
    """
    Serialise a Result.

    Returns:
        Dict with resultingWorkOrders, changes and summary
    """
    return {
        'resultingWorkOrders': [serialize_work_order(wo) for wo in result.work_orders],
        'changes': [serialize_change(c) for c in result.changes],
        'summary': _serialize_value(result.get_summary()),
        'lateManufacturingOrders': _serialize_value(result.get_late_manufacturing_orders()),
    }


def export_result_json(result: Result, output_path: str) -> str:
    with open(output_path, 'w', encoding='utf-8') as f:
        json.dump(serialize_result(result), f, indent=2)

    print(f"[OK] Reflow result exported to: {output_path}")
    return output_path
