"""
Helper utilities
"""
from datetime import date, datetime, time

from flask import request

from sweeply.errors import ValidationError


def parse_date(value, format='%Y-%m-%d'):
    """
    Parse date string to date object

    Args:
        value: Date string (or date, returned unchanged)
        format (str): strptime format string

    Returns:
        date: Date object or None if invalid
    """
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    try:
        return datetime.strptime(value, format).date()
    except (ValueError, TypeError):
        return None


def parse_time(value):
    """
    Parse "HH:MM" or "HH:MM:SS" into a time object

    Returns:
        time: Time object or None if invalid
    """
    if isinstance(value, time):
        return value
    if not isinstance(value, str):
        return None
    for fmt in ('%H:%M', '%H:%M:%S'):
        try:
            return datetime.strptime(value, fmt).time()
        except ValueError:
            continue
    return None


def json_body():
    """JSON object sent with the request; empty when there is no body"""
    data = request.get_json(silent=True)
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValidationError('Request body is required')
    return data


def paginate_query(query, page=1, per_page=20, max_per_page=100):
    """Helper to paginate SQLAlchemy queries"""
    page = max(1, page)
    per_page = min(max_per_page, max(1, per_page))

    paginated = query.paginate(page=page, per_page=per_page, error_out=False)

    return {
        'items': paginated.items,
        'total': paginated.total,
        'page': page,
        'per_page': per_page,
        'pages': paginated.pages,
        'has_next': paginated.has_next,
        'has_prev': paginated.has_prev
    }
