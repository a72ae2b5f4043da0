import re
from datetime import datetime, timezone

from flask import Blueprint, request, jsonify

from sweeply.extensions import db, limiter
from sweeply.models import Tenant, User
from sweeply.services.store import store_operation
from sweeply.utils import json_body
from sweeply.utils.auth import generate_token, require_auth
from sweeply.utils.validators import validate_email

auth_bp = Blueprint('auth', __name__)


def _slugify(name):
    slug = re.sub(r'[^a-z0-9]+', '-', name.lower()).strip('-') or 'business'
    candidate, suffix = slug, 2
    while Tenant.query.filter_by(slug=candidate).first():
        candidate = f'{slug}-{suffix}'
        suffix += 1
    return candidate


@auth_bp.route('/register', methods=['POST'])
@limiter.limit('10 per minute')
def register():
    """
    Register a new business account and its owner
    POST /api/auth/register
    Body: {
        "business_name": "Sparkle Cleaning",
        "email": "owner@example.com",
        "password": "password123",
        "first_name": "Jane",
        "last_name": "Doe"
    }
    """
    data = json_body()

    required_fields = ['business_name', 'email', 'password', 'first_name', 'last_name']
    if not all(data.get(field) for field in required_fields):
        return jsonify({'error': 'Missing required fields'}), 400

    email = data['email'].lower().strip()
    if not validate_email(email):
        return jsonify({'error': 'Invalid email address'}), 400
    if len(data['password']) < 8:
        return jsonify({'error': 'Password must be at least 8 characters'}), 400

    with store_operation('Failed to create account') as session:
        tenant = Tenant(
            name=data['business_name'],
            slug=_slugify(data['business_name']),
            contact_email=email,
            status='active',
        )
        session.add(tenant)
        session.flush()

        user = User(
            tenant_id=tenant.id,
            email=email,
            first_name=data['first_name'],
            last_name=data['last_name'],
            phone=data.get('phone'),
            role='admin',
            status='active',
        )
        user.set_password(data['password'])
        session.add(user)
        session.commit()

    token = generate_token(user.id, tenant.id, user.role)

    return jsonify({
        'message': 'Account created successfully',
        'token': token,
        'user': user.to_dict(),
        'tenant': tenant.to_dict(),
    }), 201


@auth_bp.route('/login', methods=['POST'])
@limiter.limit('20 per minute')
def login():
    """
    Login user
    POST /api/auth/login
    Body: {
        "email": "owner@example.com",
        "password": "password123"
    }
    """
    data = json_body()

    if not data.get('email') or not data.get('password'):
        return jsonify({'error': 'Email and password are required'}), 400

    user = User.query.filter_by(email=data['email'].lower().strip()).first()

    if not user or not user.check_password(data['password']):
        return jsonify({'error': 'Invalid credentials'}), 401

    if user.status != 'active' or not user.tenant.is_active():
        return jsonify({'error': 'Account is not active'}), 403

    user.last_login_at = datetime.now(timezone.utc)
    db.session.commit()

    token = generate_token(user.id, user.tenant_id, user.role)

    return jsonify({
        'message': 'Login successful',
        'token': token,
        'user': user.to_dict(),
    }), 200


@auth_bp.route('/me', methods=['GET'])
@require_auth
def get_current_user():
    """Get current authenticated user profile"""
    user = User.query.filter_by(id=request.user_id, tenant_id=request.tenant_id).first()
    if not user:
        return jsonify({'error': 'User not found'}), 404

    return jsonify({
        'user': user.to_dict(),
        'tenant': user.tenant.to_dict(),
    }), 200
