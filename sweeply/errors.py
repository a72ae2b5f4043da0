"""
Domain exceptions for Sweeply.

Services raise these; the Flask error handler registered in
``register_error_handlers`` maps each one to a JSON response with the
matching HTTP status code.
"""
import logging

from flask import jsonify

logger = logging.getLogger(__name__)


class SweeplyError(Exception):
    """Base exception for Sweeply errors"""
    status_code = 500

    def __init__(self, message, details=None):
        self.message = message
        self.details = details or {}
        super().__init__(self.message)

    def to_dict(self):
        data = {'error': self.message}
        data.update(self.details)
        return data


class ValidationError(SweeplyError):
    """Raised when request input fails validation"""
    status_code = 400


class AuthorizationError(SweeplyError):
    """Raised when no authenticated account is present"""
    status_code = 401


class ForbiddenError(SweeplyError):
    """Raised when the account lacks permission for an action"""
    status_code = 403


class NotFoundError(SweeplyError):
    """Raised when a referenced record does not exist for the tenant"""
    status_code = 404


class StoreError(SweeplyError):
    """Raised when a database read or write fails"""
    status_code = 500


class GenerationError(StoreError):
    """Raised when expanding a recurrence pattern into instances fails"""


def register_error_handlers(app):
    """Attach JSON error handlers to the Flask app"""

    @app.errorhandler(SweeplyError)
    def handle_sweeply_error(error):
        if error.status_code >= 500:
            logger.error('%s: %s', type(error).__name__, error.message)
        return jsonify(error.to_dict()), error.status_code

    @app.errorhandler(404)
    def handle_not_found(error):
        return jsonify({'error': 'Not found'}), 404

    @app.errorhandler(405)
    def handle_method_not_allowed(error):
        return jsonify({'error': 'Method not allowed'}), 405

    @app.errorhandler(429)
    def ratelimit_handler(error):
        # Flask-Limiter sets Retry-After; read it back for the body.
        headers = dict(error.get_headers()) if hasattr(error, 'get_headers') else {}
        retry_after = headers.get('Retry-After')
        retry_after_seconds = int(retry_after) if retry_after else 60
        return jsonify({
            'error': 'Too many requests. Please try again later.',
            'retry_after': retry_after_seconds,
        }), 429
