"""
Record Fields
Helpers shared by the docType record parsers.

Records arrive as {"docId": ..., "docType": ..., "data": {...}}.
"""

import pandas as pd
from datetime import datetime
from typing import Any, Dict, Optional

from reflowbot.algorithms.errors import ValidationError


def get_doc_id(record: Dict[str, Any]) -> str:
    if not isinstance(record, dict):
        raise ValidationError('record', record, 'expected an object')
    doc_id = record.get('docId')
    if doc_id is None or str(doc_id).strip() == '':
        raise ValidationError('docId', doc_id, 'missing document id')
    return str(doc_id).strip()


def get_data(record: Dict[str, Any], expected_type: str) -> Dict[str, Any]:
    """
    Check the docType tag and return the record's data block.

    Raises:
        ValidationError: Wrong docType or missing data block
    """
    doc_id = get_doc_id(record)
    doc_type = record.get('docType')
    if doc_type != expected_type:
        raise ValidationError('docType', doc_type, f"expected '{expected_type}'", doc_id)

    data = record.get('data')
    if not isinstance(data, dict):
        raise ValidationError('data', data, 'missing data block', doc_id)
    return data


def require(data: Dict[str, Any], key: str, doc_id: str) -> Any:
    value = data.get(key)
    if value is None:
        raise ValidationError(key, value, 'required field is missing', doc_id)
    return value


def parse_instant(value: Any, field: str = 'instant', doc_id: str = None) -> datetime:
    """
    Parse an ISO-8601 instant into a UTC datetime.

    Values without an offset are taken as UTC.
    """
    if value is None or (isinstance(value, str) and not value.strip()):
        raise ValidationError(field, value, 'missing timestamp', doc_id)
    try:
        ts = pd.to_datetime(value, utc=True)
    except (ValueError, TypeError) as e:
        raise ValidationError(field, value, f'not an ISO-8601 timestamp ({e})', doc_id) from e
    if pd.isna(ts):
        raise ValidationError(field, value, 'missing timestamp', doc_id)
    return ts.to_pydatetime()


def parse_optional_instant(value: Any, field: str, doc_id: str = None) -> Optional[datetime]:
    if value is None or (isinstance(value, str) and not value.strip()):
        return None
    return parse_instant(value, field, doc_id)


def parse_int(value: Any, field: str, doc_id: str = None, minimum: int = None) -> int:
    if isinstance(value, bool):
        raise ValidationError(field, value, 'expected a number', doc_id)
    try:
        number = float(value)
    except (ValueError, TypeError) as e:
        raise ValidationError(field, value, 'expected a number', doc_id) from e
    if not number.is_integer():
        raise ValidationError(field, value, 'expected a whole number', doc_id)
    if minimum is not None and number < minimum:
        raise ValidationError(field, value, f'must be >= {minimum}', doc_id)
    return int(number)


def parse_bool(value: Any, field: str, doc_id: str = None) -> bool:
    if value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, str) and value.strip().lower() in ('true', 'false'):
        return value.strip().lower() == 'true'
    raise ValidationError(field, value, 'expected true or false', doc_id)
