"""
Exporters package
Export reflow results to various formats.
"""

from .excel_exporter import (
    export_schedule_workbook,
    export_all_reports,
    build_schedule_frame,
    build_changes_frame
)
from .json_exporter import (
    format_instant,
    serialize_work_order,
    serialize_change,
    serialize_result,
    export_result_json
)

__all__ = [
    'export_schedule_workbook',
    'export_all_reports',
    'build_schedule_frame',
    'build_changes_frame',
    'format_instant',
    'serialize_work_order',
    'serialize_change',
    'serialize_result',
    'export_result_json'
]
