"""
JWT authentication helpers and route decorators
"""
import uuid
from datetime import datetime, timezone
from functools import wraps

import jwt
from flask import request, jsonify, current_app

from sweeply.errors import ForbiddenError


def generate_token(user_id, tenant_id, role):
    """Generate JWT token with user and tenant information"""
    now = datetime.now(timezone.utc)
    payload = {
        'user_id': str(user_id),
        'tenant_id': str(tenant_id),
        'role': role,
        'exp': now + current_app.config['JWT_ACCESS_TOKEN_EXPIRES'],
        'iat': now,
    }
    return jwt.encode(
        payload,
        current_app.config['JWT_SECRET_KEY'],
        algorithm=current_app.config['JWT_ALGORITHM']
    )


def decode_token(token):
    """Decode and verify JWT token"""
    try:
        return jwt.decode(
            token,
            current_app.config['JWT_SECRET_KEY'],
            algorithms=[current_app.config['JWT_ALGORITHM']]
        )
    except jwt.ExpiredSignatureError:
        raise ValueError('Token has expired')
    except jwt.InvalidTokenError:
        raise ValueError('Invalid token')


def require_auth(f):
    """Decorator to require authentication for routes"""
    @wraps(f)
    def decorated_function(*args, **kwargs):
        auth_header = request.headers.get('Authorization')

        if not auth_header:
            return jsonify({'error': 'Missing authorization header'}), 401

        try:
            # Extract token from "Bearer <token>"
            token = auth_header.split(' ')[1] if ' ' in auth_header else auth_header
            payload = decode_token(token)

            # Attach user info to request
            request.user_id = uuid.UUID(payload['user_id'])
            request.tenant_id = uuid.UUID(payload['tenant_id'])
            request.user_role = payload['role']

        except (ValueError, IndexError, KeyError) as e:
            return jsonify({'error': str(e) or 'Invalid token'}), 401

        return f(*args, **kwargs)

    return decorated_function


def require_role(*roles):
    """Decorator to require specific role(s) for routes"""
    def decorator(f):
        @wraps(f)
        def decorated_function(*args, **kwargs):
            if not hasattr(request, 'user_role'):
                return jsonify({'error': 'Authentication required'}), 401

            if request.user_role not in roles:
                raise ForbiddenError('Insufficient permissions')

            return f(*args, **kwargs)

        return decorated_function
    return decorator
