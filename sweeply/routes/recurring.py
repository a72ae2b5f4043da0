"""
Recurring series API routes.
Lets a business inspect, extend, edit and cancel repeating jobs.
"""
from flask import Blueprint, request, jsonify

from sweeply.errors import ValidationError
from sweeply.services import maintenance, series
from sweeply.utils.auth import require_auth, require_role
from sweeply.utils.helpers import json_body, parse_date

recurring_bp = Blueprint('recurring', __name__)


@recurring_bp.route('/<parent_id>/instances', methods=['GET'])
@require_auth
def list_instances(parent_id):
    """Return every instance of a series, earliest first."""
    instances = series.get_recurring_instances(request.tenant_id, parent_id)
    return jsonify({
        'instances': [job.to_dict() for job in instances],
        'total': len(instances),
    }), 200


@recurring_bp.route('/<parent_id>/generate', methods=['POST'])
@require_auth
def generate_instances(parent_id):
    """Generate instances for a window.

    Body JSON:
        start_date: str (YYYY-MM-DD)
        end_date: str (YYYY-MM-DD)
    """
    data = json_body()
    if not data.get('start_date') or not data.get('end_date'):
        return jsonify({'error': 'start_date and end_date are required'}), 400

    instances = series.generate_instances(
        request.tenant_id, parent_id, data['start_date'], data['end_date']
    )
    return jsonify({
        'instances': [job.to_dict() for job in instances],
        'instances_created': len(instances),
    }), 201


@recurring_bp.route('/<job_id>', methods=['PATCH'])
@require_auth
def update_recurring(job_id):
    """Edit one occurrence, or the remaining scheduled series.

    Body JSON:
        apply_to_series: bool (default false)
        ...any job fields to change
    """
    data = dict(json_body())
    apply_to_series = bool(data.pop('apply_to_series', False))

    result = series.update_recurring_job(
        request.tenant_id, job_id, data, apply_to_series=apply_to_series
    )
    if apply_to_series:
        return jsonify({
            'message': 'Recurring series updated successfully',
            'jobs': [job.to_dict() for job in result],
            'updated': len(result),
        }), 200

    return jsonify({
        'message': 'Job updated successfully',
        'job': result.to_dict(),
    }), 200


@recurring_bp.route('/<parent_id>/cancel', methods=['POST'])
@require_auth
def cancel_series(parent_id):
    """Cancel all future scheduled instances and stop the series."""
    cancelled = series.cancel_series(request.tenant_id, parent_id)
    return jsonify({
        'message': 'Recurring series cancelled successfully',
        'cancelled': cancelled,
    }), 200


@recurring_bp.route('/instances/cancel', methods=['POST'])
@require_auth
def cancel_instances():
    """Cancel selected instances.

    Body JSON:
        instance_ids: list of job ids
    """
    data = json_body()
    jobs = series.cancel_instances(request.tenant_id, data.get('instance_ids'))
    return jsonify({
        'message': f'{len(jobs)} job(s) cancelled successfully',
        'jobs': [job.to_dict() for job in jobs],
    }), 200


@recurring_bp.route('/process', methods=['POST'])
@require_auth
@require_role('admin')
def process_recurring():
    """Admin/cron: extend every active series and retire finished ones.

    Optional body JSON:
        date: str (YYYY-MM-DD) to process as of that day
    """
    data = json_body()
    today = None
    if data.get('date'):
        today = parse_date(data['date'])
        if today is None:
            raise ValidationError('date must be a date in YYYY-MM-DD format')

    summary = maintenance.process_recurring_jobs(today=today)
    return jsonify({'success': True, **summary}), 200
