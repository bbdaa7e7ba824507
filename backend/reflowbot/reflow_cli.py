#!/usr/bin/env python
"""
Reflow a data directory from the command line.

Reads workCenters.json, workOrders.json and (optionally)
manufacturingOrders.json, reflows the schedule, prints the summary and the
validation report, and optionally writes the JSON result and an Excel
workbook.

Usage:
    python backend/reflowbot/reflow_cli.py testdata/basic
    python backend/reflowbot/reflow_cli.py testdata/basic --output result.json --excel schedule.xlsx
"""

import argparse
import os
import sys

sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), '..'))

from dotenv import load_dotenv

from reflowbot.algorithms import ReflowScheduler
from reflowbot.algorithms.errors import SchedulingError
from reflowbot.data_loader import DataLoader
from reflowbot.exporters import export_result_json, export_schedule_workbook
from reflowbot.validators import validate_schedule


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description='ReflowBot work order reflow',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__
    )
    parser.add_argument('data_dir', nargs='?', default=os.environ.get('REFLOW_DATA_DIR', 'data'),
                        help='Folder with workCenters.json and workOrders.json')
    parser.add_argument('--output', type=str,
                        help='Write the reflow result as JSON to this path')
    parser.add_argument('--excel', type=str,
                        help='Write the schedule workbook to this path')
    parser.add_argument('--day-numbering', choices=['iso', 'sunday0'],
                        default=os.environ.get('REFLOW_DAY_NUMBERING', 'iso'),
                        help='Shift dayOfWeek numbering: iso (1=Mon..7=Sun) or sunday0 (0=Sun..6=Sat)')
    parser.add_argument('--quiet', action='store_true',
                        help='Do not print per-order progress')
    return parser


def main(argv=None) -> int:
    load_dotenv()
    args = build_parser().parse_args(argv)

    loader = DataLoader(args.data_dir, args.day_numbering)
    if not loader.load_all():
        return 1
    loader.print_summary()

    scheduler = ReflowScheduler(
        loader.work_orders,
        loader.work_centers,
        manufacturing_orders=loader.manufacturing_orders,
        verbose=not args.quiet,
    )
    try:
        result = scheduler.reflow()
    except SchedulingError as e:
        print(f"\n[ERROR] Reflow failed ({type(e).__name__}): {e}")
        return 1

    scheduler.print_summary()

    report = validate_schedule(result, loader.work_centers)
    report.print_report()

    if args.output:
        export_result_json(result, args.output)
    if args.excel:
        export_schedule_workbook(result, args.excel)

    return 0 if report.is_valid else 1


if __name__ == '__main__':
    sys.exit(main())
