"""
Order Parser
Builds WorkOrder and ManufacturingOrder entities from their records.
"""

from typing import Any, Dict, List

from reflowbot.algorithms.errors import ValidationError
from reflowbot.algorithms.models import ManufacturingOrder, WorkOrder

from .record_fields import (
    get_data,
    get_doc_id,
    parse_bool,
    parse_instant,
    parse_int,
    parse_optional_instant,
    require
)


def parse_work_order(record: Dict[str, Any]) -> WorkOrder:
    """
    Build a WorkOrder from a workOrder record.

    Raises:
        ValidationError: Missing or badly typed fields
    """
    data = get_data(record, 'workOrder')
    doc_id = get_doc_id(record)

    depends_on = data.get('dependsOnWorkOrderIds') or []
    if not isinstance(depends_on, list):
        raise ValidationError('dependsOnWorkOrderIds', depends_on, 'expected a list', doc_id)

    mo_id = data.get('manufacturingOrderId')
    wo_number = data.get('workOrderNumber')

    return WorkOrder(
        id=doc_id,
        work_center_id=str(require(data, 'workCenterId', doc_id)),
        start=parse_instant(require(data, 'startDate', doc_id), 'startDate', doc_id),
        end=parse_instant(require(data, 'endDate', doc_id), 'endDate', doc_id),
        duration_minutes=parse_int(require(data, 'durationMinutes', doc_id),
                                   'durationMinutes', doc_id, minimum=0),
        is_maintenance=parse_bool(data.get('isMaintenance'), 'isMaintenance', doc_id),
        depends_on=[str(d) for d in depends_on],
        work_order_number=str(wo_number) if wo_number is not None else None,
        manufacturing_order_id=str(mo_id) if mo_id is not None else None,
    )


def parse_manufacturing_order(record: Dict[str, Any]) -> ManufacturingOrder:
    data = get_data(record, 'manufacturingOrder')
    doc_id = get_doc_id(record)

    quantity = data.get('quantity')
    if quantity is not None and (isinstance(quantity, bool) or not isinstance(quantity, (int, float))):
        raise ValidationError('quantity', quantity, 'expected a number', doc_id)

    return ManufacturingOrder(
        id=doc_id,
        number=str(data.get('manufacturingOrderNumber') or doc_id),
        item_id=data.get('itemId'),
        quantity=quantity,
        due_date=parse_optional_instant(data.get('dueDate'), 'dueDate', doc_id),
    )


def parse_work_orders(records: List[Dict[str, Any]]) -> List[WorkOrder]:
    return [parse_work_order(r) for r in records]


def parse_manufacturing_orders(records: List[Dict[str, Any]]) -> List[ManufacturingOrder]:
    return [parse_manufacturing_order(r) for r in records]
