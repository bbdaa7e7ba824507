"""
Data parsers package initialization.
"""

from .record_fields import parse_instant
from .work_center_parser import (
    DAY_NUMBERINGS,
    parse_work_center,
    parse_work_centers,
    convert_day_of_week
)
from .order_parser import (
    parse_work_order,
    parse_work_orders,
    parse_manufacturing_order,
    parse_manufacturing_orders
)
from .record_parser import parse_records

__all__ = [
    'DAY_NUMBERINGS',
    'parse_instant',
    'parse_work_center',
    'parse_work_centers',
    'convert_day_of_week',
    'parse_work_order',
    'parse_work_orders',
    'parse_manufacturing_order',
    'parse_manufacturing_orders',
    'parse_records'
]
