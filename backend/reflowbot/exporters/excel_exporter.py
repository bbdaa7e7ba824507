"""
Excel Exporter
Export reflowed schedules and change logs to Excel format.
"""

import pandas as pd
from datetime import datetime, timezone
from pathlib import Path
from typing import Dict, Optional

from openpyxl.utils import get_column_letter

from reflowbot.algorithms.models import Result

from .json_exporter import export_result_json


def _excel_time(dt: Optional[datetime]) -> Optional[datetime]:
    # Excel cannot store timezone-aware values; columns are labelled UTC
    if dt is None:
        return None
    return dt.astimezone(timezone.utc).replace(tzinfo=None)


def _autosize(worksheet, df: pd.DataFrame):
    """Auto-adjust column widths and freeze the header row."""
    for idx, col in enumerate(df.columns):
        col_data = df[col].fillna('').astype(str)
        max_data_len = col_data.str.len().max() if len(col_data) > 0 else 0
        max_length = max(max_data_len, len(col)) + 2
        worksheet.column_dimensions[get_column_letter(idx + 1)].width = min(max_length, 40)

    worksheet.freeze_panes = 'A2'


def build_schedule_frame(result: Result) -> pd.DataFrame:
    changed = {c.work_order_id: c for c in result.changes}

    data = []
    for sequence, wo in enumerate(result.work_orders, 1):
        change = changed.get(wo.id)
        data.append({
            'Sequence': sequence,
            'Work Order': wo.id,
            'WO#': wo.work_order_number or '',
            'Manufacturing Order': wo.manufacturing_order_id or '',
            'Work Center': wo.work_center_id,
            'Start (UTC)': _excel_time(wo.start),
            'End (UTC)': _excel_time(wo.end),
            'Duration (min)': wo.duration_minutes,
            'Maintenance': 'Yes' if wo.is_maintenance else 'No',
            'Depends On': ', '.join(wo.depends_on),
            'Moved': 'Yes' if change else 'No',
            'Delay (min)': round(change.delay_minutes, 1) if change else 0,
        })

    return pd.DataFrame(data)


def build_changes_frame(result: Result) -> pd.DataFrame:
    data = []
    for change in result.changes:
        data.append({
            'Work Order': change.work_order_id,
            'Old Start (UTC)': _excel_time(change.old_start),
            'New Start (UTC)': _excel_time(change.new_start),
            'Old End (UTC)': _excel_time(change.old_end),
            'New End (UTC)': _excel_time(change.new_end),
            'Delay (min)': round(change.delay_minutes, 1),
            'Cause': change.cause.value,
            'Reason': change.reason,
        })

    columns = ['Work Order', 'Old Start (UTC)', 'New Start (UTC)', 'Old End (UTC)',
               'New End (UTC)', 'Delay (min)', 'Cause', 'Reason']
    return pd.DataFrame(data, columns=columns)


def export_schedule_workbook(result: Result, output_path: str) -> str:
    """
    Export the reflowed schedule to Excel.

    Sheets:
        Schedule: every work order in processing order
        Changes: the change log

    Returns:
        Path to the created file
    """
    sheets = {
        'Schedule': build_schedule_frame(result),
        'Changes': build_changes_frame(result),
    }

    with pd.ExcelWriter(output_path, engine='openpyxl') as writer:
        for sheet_name, df in sheets.items():
            df.to_excel(writer, sheet_name=sheet_name, index=False)
            _autosize(writer.sheets[sheet_name], df)

    print(f"[OK] Reflow schedule exported to: {output_path}")
    return output_path


def export_all_reports(result: Result, output_dir: str = None) -> Dict[str, str]:
    """
    Export the workbook and JSON result into a timestamped set of files.

    Args:
        result: Result from ReflowScheduler.reflow()
        output_dir: Output directory path. Defaults to project's outputs folder.

    Returns:
        Dictionary of report names to file paths
    """
    if output_dir is None:
        project_root = Path(__file__).parent.parent.parent.parent
        output_dir = project_root / "outputs"
    else:
        output_dir = Path(output_dir)
    output_dir.mkdir(parents=True, exist_ok=True)

    timestamp = datetime.now().strftime('%Y%m%d_%H%M%S')

    files = {}
    files['schedule'] = export_schedule_workbook(
        result, str(output_dir / f"Reflow_Schedule_{timestamp}.xlsx")
    )
    files['result'] = export_result_json(
        result, str(output_dir / f"Reflow_Result_{timestamp}.json")
    )
    return files
