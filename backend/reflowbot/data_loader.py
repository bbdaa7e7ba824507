"""
Data Loader
Loads work center, work order and manufacturing order records from a data directory.
"""

import json
from pathlib import Path
from typing import Dict, List, Any, Optional

from reflowbot.algorithms.errors import SchedulingError
from reflowbot.parsers import parse_work_centers, parse_work_orders, parse_manufacturing_orders


WORK_CENTERS_FILE = 'workCenters.json'
WORK_ORDERS_FILE = 'workOrders.json'
MANUFACTURING_ORDERS_FILE = 'manufacturingOrders.json'


def read_records(filepath: Path, key: str) -> List[Dict[str, Any]]:
    """
    Read a JSON file holding records.

    The file may be a bare list or an object wrapping the list under key
    (e.g. {"workOrders": [...]}).
    """
    with open(filepath, encoding='utf-8') as f:
        payload = json.load(f)

    if isinstance(payload, dict):
        payload = payload.get(key, [])
    if not isinstance(payload, list):
        raise ValueError(f"{filepath.name}: expected a list of records under '{key}'")
    return payload


class DataLoader:
    """Manages loading and parsing of the reflow input files."""

    def __init__(self, data_dir: str = "data", day_numbering: str = 'iso'):
        self.data_dir = Path(data_dir)
        self.day_numbering = day_numbering
        self.work_centers = []
        self.work_orders = []
        self.manufacturing_orders = []
        self.error: Optional[Exception] = None

    def load_work_centers(self) -> bool:
        path = self.data_dir / WORK_CENTERS_FILE
        if not path.exists():
            print(f"[ERROR] No {WORK_CENTERS_FILE} found in {self.data_dir}")
            return False

        print(f"  Loading: {path.name}")
        records = read_records(path, 'workCenters')
        self.work_centers = parse_work_centers(records, self.day_numbering)
        print(f"  [OK] Loaded {len(self.work_centers)} work centers")
        return True

    def load_work_orders(self) -> bool:
        path = self.data_dir / WORK_ORDERS_FILE
        if not path.exists():
            print(f"[ERROR] No {WORK_ORDERS_FILE} found in {self.data_dir}")
            return False

        print(f"  Loading: {path.name}")
        records = read_records(path, 'workOrders')
        self.work_orders = parse_work_orders(records)

        fixed = sum(1 for wo in self.work_orders if wo.is_maintenance)
        print(f"  [OK] Loaded {len(self.work_orders)} work orders ({fixed} immovable)")
        return True

    def load_manufacturing_orders(self) -> bool:
        """
        Load manufacturing orders (optional, used for due-date reporting).

        Returns:
            True if loaded, False if no file is present
        """
        path = self.data_dir / MANUFACTURING_ORDERS_FILE
        if not path.exists():
            print(f"  No {MANUFACTURING_ORDERS_FILE} found (optional)")
            return False

        print(f"  Loading: {path.name}")
        records = read_records(path, 'manufacturingOrders')
        self.manufacturing_orders = parse_manufacturing_orders(records)
        print(f"  [OK] Loaded {len(self.manufacturing_orders)} manufacturing orders")
        return True

    def load_all(self) -> bool:
        """
        Load all data files.

        Returns:
            True if successful, False if errors (the exception is kept in self.error)
        """
        print("=" * 70)
        print("LOADING ALL DATA FILES")
        print("=" * 70)

        self.error = None
        try:
            print("\n[1/3] Loading Work Centers...")
            if not self.load_work_centers():
                return False

            print("\n[2/3] Loading Work Orders...")
            if not self.load_work_orders():
                return False

            print("\n[3/3] Loading Manufacturing Orders...")
            self.load_manufacturing_orders()

            self._cross_validate()
            return True

        except (SchedulingError, OSError, ValueError) as e:
            self.error = e
            print(f"\n[ERROR] ERROR loading data: {e}")
            return False

    def _cross_validate(self):
        """Warn about references the scheduler will reject."""
        center_ids = {wc.id for wc in self.work_centers}
        unknown = sorted({wo.work_center_id for wo in self.work_orders} - center_ids)
        if unknown:
            print(f"\n[WARN]  WARNING: work orders reference {len(unknown)} unknown work centers")
            print(f"   Examples: {unknown[:5]}")

        mo_ids = {mo.id for mo in self.manufacturing_orders}
        if mo_ids:
            orphans = sorted({wo.manufacturing_order_id for wo in self.work_orders
                              if wo.manufacturing_order_id and wo.manufacturing_order_id not in mo_ids})
            if orphans:
                print(f"\n[WARN]  WARNING: {len(orphans)} manufacturing order ids not found")

        if not unknown:
            print("\n[OK] All work orders reference known work centers")

    def get_summary(self) -> Dict[str, Any]:
        """Get summary of loaded data."""
        return {
            'work_centers': len(self.work_centers),
            'work_orders': len(self.work_orders),
            'immovable': sum(1 for wo in self.work_orders if wo.is_maintenance),
            'with_dependencies': sum(1 for wo in self.work_orders if wo.depends_on),
            'manufacturing_orders': len(self.manufacturing_orders),
        }

    def print_summary(self):
        """Print a formatted summary."""
        summary = self.get_summary()

        print("\n" + "=" * 70)
        print("DATA LOADING SUMMARY")
        print("=" * 70)
        print(f"   Work centers: {summary['work_centers']}")
        print(f"   Work orders: {summary['work_orders']}")
        print(f"   Immovable (maintenance): {summary['immovable']}")
        print(f"   With dependencies: {summary['with_dependencies']}")
        print(f"   Manufacturing orders: {summary['manufacturing_orders']}")
        print("\n" + "=" * 70)
