#!/usr/bin/env python
"""
ReflowBot - Production Server Launcher

This script starts the production server using Waitress (Windows-compatible).
For Linux/Unix servers, you can also use Gunicorn.

Usage:
    python run_production.py

Environment Variables (set in .env file):
    - HOST: Server host (default: 0.0.0.0)
    - PORT: Server port (default: 5000)
    - REFLOW_DATA_DIR: Folder with workCenters.json / workOrders.json (default: ./data)
    - REFLOW_OUTPUT_DIR: Folder for exported workbooks (default: ./outputs)
    - REFLOW_DAY_NUMBERING: 'iso' (1=Mon..7=Sun) or 'sunday0' (0=Sun..6=Sat)
"""

import os
import sys

# Add backend to path
sys.path.insert(0, os.path.join(os.path.dirname(__file__), 'backend'))

from dotenv import load_dotenv

# Load environment variables
load_dotenv()

numbering = os.environ.get('REFLOW_DAY_NUMBERING', 'iso')
if numbering not in ('iso', 'sunday0'):
    print("=" * 60)
    print(f"ERROR: Unknown REFLOW_DAY_NUMBERING '{numbering}'.")
    print("Use 'iso' (1=Mon..7=Sun) or 'sunday0' (0=Sun..6=Sat).")
    print("=" * 60)
    sys.exit(1)

data_dir = os.environ.get('REFLOW_DATA_DIR')
if data_dir and not os.path.isdir(data_dir):
    print("=" * 60)
    print(f"WARNING: REFLOW_DATA_DIR {data_dir} does not exist.")
    print("/api/reflow/data will return 404 until it is created.")
    print("=" * 60)
    # Don't exit, the POST endpoints still work

# Set production environment
os.environ['FLASK_ENV'] = 'production'
os.environ['FLASK_DEBUG'] = 'false'

# Import and run
from reflowbot.app import app, run_production

if __name__ == '__main__':
    run_production()
