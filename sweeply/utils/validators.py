"""
Validation utilities

Each ``validate_*`` helper either returns the coerced value or raises
``ValidationError`` naming the offending field.
"""
import re
import uuid
from datetime import datetime
from decimal import Decimal, InvalidOperation

from sweeply.errors import ValidationError
from .helpers import parse_date, parse_time


def validate_email(email):
    """
    Validate email format

    Args:
        email (str): Email address to validate

    Returns:
        bool: True if valid, False otherwise
    """
    if not email:
        return False

    pattern = r'^[a-zA-Z0-9._%+-]+@[a-zA-Z0-9.-]+\.[a-zA-Z]{2,}$'
    return bool(re.match(pattern, email))


def validate_uuid(value, field='id'):
    """Coerce a UUID string, raising ValidationError when malformed"""
    if isinstance(value, uuid.UUID):
        return value
    try:
        return uuid.UUID(str(value))
    except (ValueError, AttributeError, TypeError):
        raise ValidationError(f'{field} must be a valid UUID')


def validate_choice(value, choices, field):
    if value not in choices:
        raise ValidationError(f'Invalid {field}. Must be one of: {", ".join(choices)}')
    return value


def validate_date(value, field):
    parsed = parse_date(value)
    if parsed is None:
        raise ValidationError(f'{field} must be a date in YYYY-MM-DD format')
    return parsed


def validate_time(value, field):
    parsed = parse_time(value)
    if parsed is None:
        raise ValidationError(f'{field} must be a time in HH:MM format')
    return parsed


def validate_int(value, field, minimum=None, maximum=None):
    if isinstance(value, bool):
        raise ValidationError(f'{field} must be an integer')
    try:
        value = int(value)
    except (TypeError, ValueError):
        raise ValidationError(f'{field} must be an integer')
    if minimum is not None and value < minimum:
        raise ValidationError(f'{field} must be at least {minimum}')
    if maximum is not None and value > maximum:
        raise ValidationError(f'{field} must be at most {maximum}')
    return value


def validate_amount(value, field):
    try:
        amount = Decimal(str(value))
    except (InvalidOperation, ValueError):
        raise ValidationError(f'{field} must be a number')
    if not amount.is_finite() or amount < 0:
        raise ValidationError(f'{field} must be a positive number')
    return amount


def validate_line_items(items):
    """Validate ``[{description, quantity, price}]`` and normalise numbers"""
    if not isinstance(items, list):
        raise ValidationError('line_items must be a list')

    cleaned = []
    for index, item in enumerate(items):
        if not isinstance(item, dict) or not item.get('description'):
            raise ValidationError(f'line_items[{index}] requires a description')
        quantity = item.get('quantity')
        cleaned.append({
            'description': item['description'],
            'quantity': validate_int(quantity, f'line_items[{index}].quantity', minimum=1) if quantity is not None else 1,
            'price': float(validate_amount(item.get('price', 0), f'line_items[{index}].price')),
        })
    return cleaned


def validate_datetime(value, field):
    """Accept a datetime or an ISO-8601 string (``Z`` suffix allowed)"""
    if isinstance(value, datetime):
        return value
    try:
        return datetime.fromisoformat(str(value).replace('Z', '+00:00'))
    except ValueError:
        raise ValidationError(f'{field} must be an ISO-8601 datetime')
