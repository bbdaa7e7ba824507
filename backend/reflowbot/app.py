"""
ReflowBot - Flask Web Application
JSON API around the work order reflow scheduler
"""

import os
import sys
from datetime import datetime

from flask import Flask, request, jsonify, send_file
from flask_cors import CORS
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv(os.path.join(os.path.dirname(os.path.abspath(__file__)), '..', '..', '.env'))

# Add backend to path for imports
sys.path.insert(0, os.path.join(os.path.dirname(os.path.abspath(__file__)), '..'))

from reflowbot.algorithms import ReflowScheduler
from reflowbot.algorithms.errors import MalformedCalendarError, SchedulingError, ValidationError
from reflowbot.data_loader import DataLoader
from reflowbot.exporters import export_schedule_workbook, serialize_result
from reflowbot.parsers import (
    DAY_NUMBERINGS,
    parse_manufacturing_orders,
    parse_records,
    parse_work_centers,
    parse_work_orders
)
from reflowbot.validators import validate_schedule


# ============== App Configuration ==============

def create_app():
    """Application factory for Flask app."""
    app = Flask(__name__)

    # Load configuration from environment
    app.config['ENV'] = os.environ.get('FLASK_ENV', 'development')
    app.config['DEBUG'] = os.environ.get('FLASK_DEBUG', 'true').lower() == 'true'

    base_dir = os.path.join(os.path.dirname(os.path.abspath(__file__)), '..')
    app.config['DATA_FOLDER'] = os.environ.get('REFLOW_DATA_DIR', os.path.join(base_dir, '..', 'data'))
    app.config['OUTPUT_FOLDER'] = os.environ.get('REFLOW_OUTPUT_DIR', os.path.join(base_dir, '..', 'outputs'))
    app.config['DAY_NUMBERING'] = os.environ.get('REFLOW_DAY_NUMBERING', 'iso')
    app.config['MAX_CONTENT_LENGTH'] = 10 * 1024 * 1024  # 10MB max payload

    os.makedirs(app.config['OUTPUT_FOLDER'], exist_ok=True)

    # CORS for API access
    CORS(app)

    return app


app = create_app()


# ============== Helpers ==============

def _parse_payload(payload):
    """
    Turn a request body into entity lists.

    Accepts either separate workCenters/workOrders/manufacturingOrders lists
    or a single mixed 'records' list dispatched on docType.
    """
    if not isinstance(payload, dict):
        raise ValidationError('body', payload, 'expected a JSON object')

    day_numbering = payload.get('dayNumbering', app.config['DAY_NUMBERING'])
    if not isinstance(day_numbering, str) or day_numbering not in DAY_NUMBERINGS:
        raise ValidationError('dayNumbering', day_numbering,
                              f"expected one of {', '.join(DAY_NUMBERINGS)}")

    if 'records' in payload:
        if not isinstance(payload['records'], list):
            raise ValidationError('records', payload['records'], 'expected a list of records')
        return parse_records(payload['records'], day_numbering)

    for key in ('workCenters', 'workOrders'):
        if not isinstance(payload.get(key), list):
            raise ValidationError(key, payload.get(key), 'expected a list of records')

    return {
        'workCenters': parse_work_centers(payload['workCenters'], day_numbering),
        'workOrders': parse_work_orders(payload['workOrders']),
        'manufacturingOrders': parse_manufacturing_orders(payload.get('manufacturingOrders') or []),
    }


def _error_response(error: Exception):
    """Map intake and scheduling failures to JSON error bodies."""
    if isinstance(error, (ValidationError, MalformedCalendarError)):
        status = 400
    elif isinstance(error, SchedulingError):
        status = 422
    else:
        status = 400

    return jsonify({
        'error': str(error),
        'type': type(error).__name__,
        'details': getattr(error, 'details', {}),
    }), status


def _run_reflow(entities):
    scheduler = ReflowScheduler(
        entities['workOrders'],
        entities['workCenters'],
        manufacturing_orders=entities['manufacturingOrders'],
        verbose=app.config['DEBUG'],
    )
    result = scheduler.reflow()
    report = validate_schedule(result, entities['workCenters'])
    if not report.is_valid:
        print(f"[WARN] Reflow result failed validation: {report.errors[:3]}")
    return result, report


# ============== API ==============

@app.route('/api/health', methods=['GET'])
def health():
    return jsonify({'status': 'ok'})


@app.route('/api/reflow', methods=['POST'])
def reflow():
    """Reflow the posted work orders and return the adjusted schedule."""
    payload = request.get_json(silent=True)
    if payload is None:
        return jsonify({'error': 'Request body is required.'}), 400

    try:
        entities = _parse_payload(payload)
        result, report = _run_reflow(entities)
    except (SchedulingError, ValueError) as e:
        print(f"[Reflow API] Error: {e}")
        return _error_response(e)

    body = serialize_result(result)
    body['validation'] = report.to_dict()
    return jsonify(body)


@app.route('/api/reflow/excel', methods=['POST'])
def reflow_excel():
    """Reflow the posted work orders and download the schedule workbook."""
    payload = request.get_json(silent=True)
    if payload is None:
        return jsonify({'error': 'Request body is required.'}), 400

    try:
        entities = _parse_payload(payload)
        result, _ = _run_reflow(entities)
    except (SchedulingError, ValueError) as e:
        print(f"[Reflow API] Error: {e}")
        return _error_response(e)

    filename = f"Reflow_Schedule_{datetime.now().strftime('%Y%m%d_%H%M%S')}.xlsx"
    output_path = os.path.join(app.config['OUTPUT_FOLDER'], filename)
    export_schedule_workbook(result, output_path)
    return send_file(output_path, as_attachment=True, download_name=filename)


@app.route('/api/reflow/data', methods=['GET'])
def reflow_data_dir():
    """Reflow the JSON files in the configured data folder."""
    loader = DataLoader(app.config['DATA_FOLDER'], app.config['DAY_NUMBERING'])
    if not loader.load_all():
        if loader.error is not None:
            return _error_response(loader.error)
        return jsonify({'error': f"Input files not found in {app.config['DATA_FOLDER']}"}), 404

    entities = {
        'workCenters': loader.work_centers,
        'workOrders': loader.work_orders,
        'manufacturingOrders': loader.manufacturing_orders,
    }
    try:
        result, report = _run_reflow(entities)
    except SchedulingError as e:
        print(f"[Reflow API] Error: {e}")
        return _error_response(e)

    body = serialize_result(result)
    body['validation'] = report.to_dict()
    return jsonify(body)


@app.errorhandler(404)
def not_found(e):
    """Handle 404 errors."""
    return jsonify({'error': 'Not found'}), 404


@app.errorhandler(500)
def server_error(e):
    """Handle 500 errors."""
    return jsonify({'error': 'Internal server error'}), 500


# ============== Main ==============

def run_development():
    """Run the development server."""
    host = os.environ.get('HOST', '0.0.0.0')
    port = int(os.environ.get('PORT', 5000))

    print("=" * 60)
    print("ReflowBot - API (Development)")
    print("=" * 60)
    print(f"Data folder: {app.config['DATA_FOLDER']}")
    print(f"Output folder: {app.config['OUTPUT_FOLDER']}")
    print(f"Starting server at http://{host}:{port}")
    print("=" * 60)
    print("WARNING: Using development server. For production, use:")
    print("  waitress-serve --port=5000 reflowbot.app:app")
    print("=" * 60)

    app.run(debug=True, host=host, port=port)


def run_production():
    """Run the production server with Waitress."""
    from waitress import serve

    host = os.environ.get('HOST', '0.0.0.0')
    port = int(os.environ.get('PORT', 5000))

    print("=" * 60)
    print("ReflowBot - API (Production)")
    print("=" * 60)
    print(f"Data folder: {app.config['DATA_FOLDER']}")
    print(f"Output folder: {app.config['OUTPUT_FOLDER']}")
    print(f"Starting Waitress server at http://{host}:{port}")
    print("=" * 60)

    serve(app, host=host, port=port, threads=4)


if __name__ == '__main__':
    env = os.environ.get('FLASK_ENV', 'development')

    if env == 'production':
        run_production()
    else:
        run_development()
