from flask import Blueprint, request, jsonify

from sweeply.services import jobs as job_service
from sweeply.services import series as series_service
from sweeply.utils import json_body
from sweeply.utils.auth import require_auth

jobs_bp = Blueprint('jobs', __name__)


def _arg_list(name):
    """Accept ?status=a&status=b as well as ?status=a,b"""
    values = []
    for raw in request.args.getlist(name):
        values.extend(part.strip() for part in raw.split(',') if part.strip())
    return values


def _arg_bool(name):
    return request.args.get(name, 'false').lower() in ('true', '1', 'yes')


def _serialize(jobs):
    return [job.to_dict(include_client=True) for job in jobs]


@jobs_bp.route('', methods=['GET'])
@require_auth
def list_jobs():
    """
    List jobs
    GET /api/jobs?status=scheduled,in_progress&client_id=<id>&date_from=2024-01-01&include_instances=true

    Recurring instances are only returned with include_instances=true.
    """
    filters = {
        'status': _arg_list('status'),
        'service_type': _arg_list('service_type'),
        'property_type': _arg_list('property_type'),
        'client_id': request.args.get('client_id'),
        'date_from': request.args.get('date_from'),
        'date_to': request.args.get('date_to'),
    }
    jobs = job_service.get_jobs(
        request.tenant_id, filters, include_instances=_arg_bool('include_instances')
    )

    return jsonify({'jobs': _serialize(jobs), 'total': len(jobs)}), 200


@jobs_bp.route('', methods=['POST'])
@require_auth
def create_job():
    """
    Create a job, or a recurring series when "is_recurring" is true
    POST /api/jobs
    Body: {
        "client_id": "uuid",
        "title": "Weekly clean",
        "service_type": "regular",
        "scheduled_date": "2024-01-01",
        "scheduled_time": "09:00",
        "line_items": [{"description": "Kitchen", "quantity": 1, "price": 40}],
        "is_recurring": true,
        "recurring_frequency": "weekly",
        "recurring_days_of_week": [1],
        "recurring_end_type": "never"
    }
    """
    data = json_body()

    if data.get('is_recurring'):
        job = series_service.create_recurring_job(request.tenant_id, data, user_id=request.user_id)
        message = 'Recurring job created successfully'
    else:
        job = job_service.create_job(request.tenant_id, data, user_id=request.user_id)
        message = 'Job created successfully'

    return jsonify({
        'message': message,
        'job': job.to_dict(include_client=True)
    }), 201


@jobs_bp.route('/today', methods=['GET'])
@require_auth
def get_today_jobs():
    jobs = job_service.get_today_jobs(request.tenant_id)
    return jsonify({'jobs': _serialize(jobs), 'total': len(jobs)}), 200


@jobs_bp.route('/upcoming', methods=['GET'])
@require_auth
def get_upcoming_jobs():
    jobs = job_service.get_upcoming_jobs(request.tenant_id)
    return jsonify({'jobs': _serialize(jobs), 'total': len(jobs)}), 200


@jobs_bp.route('/stats', methods=['GET'])
@require_auth
def get_job_stats():
    return jsonify({'stats': job_service.get_job_stats(request.tenant_id)}), 200


@jobs_bp.route('/search', methods=['GET'])
@require_auth
def search_jobs():
    jobs = job_service.search_jobs(request.tenant_id, request.args.get('q'))
    return jsonify({'jobs': _serialize(jobs), 'total': len(jobs)}), 200


@jobs_bp.route('/conflicts', methods=['GET'])
@require_auth
def check_conflicts():
    """
    Advisory scheduling conflict check
    GET /api/jobs/conflicts?date=2024-03-15&time=10:00&exclude_id=<job id>
    """
    conflicts = job_service.check_conflicts(
        request.tenant_id,
        request.args.get('date'),
        at_time=request.args.get('time'),
        exclude_id=request.args.get('exclude_id'),
    )
    return jsonify({
        'conflicts': _serialize(conflicts),
        'has_conflicts': bool(conflicts),
    }), 200


@jobs_bp.route('/<job_id>', methods=['GET'])
@require_auth
def get_job(job_id):
    job = job_service.get_job(request.tenant_id, job_id)
    return jsonify({'job': job.to_dict(include_client=True)}), 200


@jobs_bp.route('/<job_id>', methods=['PATCH'])
@require_auth
def update_job(job_id):
    job = job_service.update_job(request.tenant_id, job_id, request.get_json(silent=True))
    return jsonify({
        'message': 'Job updated successfully',
        'job': job.to_dict(include_client=True)
    }), 200


@jobs_bp.route('/<job_id>/status', methods=['PATCH'])
@require_auth
def update_job_status(job_id):
    """
    Update job status
    PATCH /api/jobs/<job_id>/status
    Body: {"status": "completed", "completion_notes": "All done", "actual_price": 160}
    """
    data = dict(json_body())
    status = data.pop('status', None)
    if not status:
        return jsonify({'error': 'Status required'}), 400

    job = job_service.update_job_status(request.tenant_id, job_id, status, extra=data)
    return jsonify({
        'message': 'Job status updated successfully',
        'job': job.to_dict(include_client=True)
    }), 200


@jobs_bp.route('/<job_id>', methods=['DELETE'])
@require_auth
def delete_job(job_id):
    job_service.delete_job(request.tenant_id, job_id)
    return jsonify({'message': 'Job deleted successfully'}), 200
