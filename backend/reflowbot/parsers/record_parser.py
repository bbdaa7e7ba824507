"""
Record Parser
Dispatches mixed docType records to the matching entity parser.
"""

from typing import Any, Dict, List

from reflowbot.algorithms.errors import ValidationError

from .order_parser import parse_manufacturing_order, parse_work_order
from .record_fields import get_doc_id
from .work_center_parser import parse_work_center


RECORD_GROUPS = {
    'workCenter': 'workCenters',
    'workOrder': 'workOrders',
    'manufacturingOrder': 'manufacturingOrders',
}


def parse_records(records: List[Dict[str, Any]], day_numbering: str = 'iso') -> Dict[str, List]:
    """
    Parse a mixed list of records into entity lists.

    Returns:
        Dict with 'workCenters', 'workOrders' and 'manufacturingOrders' lists

    Raises:
        ValidationError: Unknown docType or invalid record
    """
    parsed = {group: [] for group in RECORD_GROUPS.values()}

    for record in records:
        doc_id = get_doc_id(record)
        doc_type = record.get('docType')
        if doc_type == 'workCenter':
            parsed['workCenters'].append(parse_work_center(record, day_numbering))
        elif doc_type == 'workOrder':
            parsed['workOrders'].append(parse_work_order(record))
        elif doc_type == 'manufacturingOrder':
            parsed['manufacturingOrders'].append(parse_manufacturing_order(record))
        else:
            raise ValidationError('docType', doc_type,
                                  f"expected one of {', '.join(RECORD_GROUPS)}", doc_id)

    return parsed
