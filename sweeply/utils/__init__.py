"""Utilities package"""
from .helpers import json_body, parse_date, parse_time, paginate_query
from .validators import validate_email, validate_uuid

__all__ = [
    'json_body',
    'parse_date',
    'parse_time',
    'paginate_query',
    'validate_email',
    'validate_uuid',
]
