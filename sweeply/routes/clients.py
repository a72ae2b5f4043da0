from datetime import datetime, timezone

from flask import Blueprint, current_app, request, jsonify
from sqlalchemy import or_

from sweeply.models import Client
from sweeply.services.jobs import get_client
from sweeply.services.store import store_operation
from sweeply.utils import json_body, paginate_query
from sweeply.utils.auth import require_auth
from sweeply.utils.validators import validate_email

clients_bp = Blueprint('clients', __name__)

CLIENT_FIELDS = ('name', 'email', 'phone', 'address', 'city', 'state', 'zip', 'notes')


def _validate_client_data(data, partial=False):
    if not partial and not data.get('name'):
        return 'name is required'
    if 'name' in data and not data.get('name'):
        return 'name cannot be empty'
    if data.get('email') and not validate_email(data['email']):
        return 'Invalid email address'
    return None


@clients_bp.route('', methods=['GET'])
@require_auth
def list_clients():
    """
    List clients
    GET /api/clients?q=smith&page=1&per_page=20
    """
    query = Client.for_tenant(request.tenant_id)

    term = request.args.get('q', '').strip()
    if term:
        pattern = f'%{term}%'
        query = query.filter(or_(
            Client.name.ilike(pattern),
            Client.email.ilike(pattern),
            Client.phone.ilike(pattern),
        ))

    page = request.args.get('page', 1, type=int)
    per_page = request.args.get('per_page', current_app.config['ITEMS_PER_PAGE'], type=int)

    result = paginate_query(
        query.order_by(Client.name.asc()), page, per_page,
        max_per_page=current_app.config['MAX_ITEMS_PER_PAGE'],
    )
    result['items'] = [client.to_dict() for client in result['items']]

    return jsonify(result), 200


@clients_bp.route('', methods=['POST'])
@require_auth
def create_client():
    """
    Create a client
    POST /api/clients
    Body: {"name": "Jane Smith", "email": "...", "phone": "...", "address": "..."}
    """
    data = json_body()

    error = _validate_client_data(data)
    if error:
        return jsonify({'error': error}), 400

    client = Client(
        tenant_id=request.tenant_id,
        **{field: data.get(field) for field in CLIENT_FIELDS}
    )

    with store_operation('Failed to create client') as session:
        session.add(client)
        session.commit()

    return jsonify({
        'message': 'Client created successfully',
        'client': client.to_dict()
    }), 201


@clients_bp.route('/<client_id>', methods=['GET'])
@require_auth
def get_client_detail(client_id):
    client = get_client(request.tenant_id, client_id)
    return jsonify({'client': client.to_dict()}), 200


@clients_bp.route('/<client_id>', methods=['PUT'])
@require_auth
def update_client(client_id):
    client = get_client(request.tenant_id, client_id)
    data = json_body()

    error = _validate_client_data(data, partial=True)
    if error:
        return jsonify({'error': error}), 400

    with store_operation('Failed to update client') as session:
        for field in CLIENT_FIELDS:
            if field in data:
                setattr(client, field, data[field])
        session.commit()

    return jsonify({
        'message': 'Client updated successfully',
        'client': client.to_dict()
    }), 200


@clients_bp.route('/<client_id>', methods=['DELETE'])
@require_auth
def delete_client(client_id):
    """Soft delete; the client's job history stays in place"""
    client = get_client(request.tenant_id, client_id)

    with store_operation('Failed to delete client') as session:
        client.deleted_at = datetime.now(timezone.utc)
        session.commit()

    return jsonify({'message': 'Client deleted successfully'}), 200
