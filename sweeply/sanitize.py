"""Input sanitization utilities to prevent XSS and injection attacks."""
import html


def sanitize_string(value):
    """Escape HTML entities in a string.

    Only ``<``, ``>`` and ``&`` are escaped. Quotes are left alone so names
    such as "O'Brien's office" survive a round trip through the API.
    """
    if not isinstance(value, str):
        return value
    return html.escape(value, quote=False)


def sanitize_dict(data):
    """Recursively walk a dict/list structure and sanitize all string values.

    Non-string leaves (int, float, bool, None) are returned unchanged.
    """
    if isinstance(data, dict):
        return {key: sanitize_dict(value) for key, value in data.items()}
    if isinstance(data, list):
        return [sanitize_dict(item) for item in data]
    return sanitize_string(data)
