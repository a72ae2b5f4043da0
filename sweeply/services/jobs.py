"""
Job operations: creation, queries, updates, status changes and conflict checks

Every function is scoped to one tenant. Functions that compare against
"today" accept a ``today`` argument so callers (and tests) can fix the date.
"""
import logging
from dataclasses import dataclass, field, asdict
from datetime import date, datetime, time, timedelta, timezone
from decimal import Decimal
from typing import List, Optional
import uuid

from flask import current_app
from sqlalchemy import or_

from sweeply.errors import NotFoundError, ValidationError
from sweeply.models import Client, Job
from sweeply.models.job import JOB_STATUSES, PROPERTY_TYPES, SERVICE_TYPES
from sweeply.utils.validators import (
    validate_amount, validate_choice, validate_date, validate_datetime,
    validate_int, validate_line_items, validate_time, validate_uuid,
)
from .store import require_account, store_operation

logger = logging.getLogger(__name__)

ACTIVE_STATUSES = ('scheduled', 'in_progress')


def _text(value, field):
    if not isinstance(value, str):
        raise ValidationError(f'{field} must be a string')
    return value.strip()


def _count(value, field):
    return validate_int(value, field, minimum=0)


_FIELD_PARSERS = {
    'client_id': validate_uuid,
    'title': _text,
    'description': _text,
    'service_type': lambda v, f: validate_choice(v, SERVICE_TYPES, f),
    'property_type': lambda v, f: validate_choice(v, PROPERTY_TYPES, f),
    'status': lambda v, f: validate_choice(v, JOB_STATUSES, f),
    'scheduled_date': validate_date,
    'scheduled_time': validate_time,
    'estimated_duration': lambda v, f: validate_int(v, f, minimum=1),
    'arrival_window_start': validate_time,
    'arrival_window_end': validate_time,
    'estimated_price': validate_amount,
    'actual_price': validate_amount,
    'line_items': lambda v, f: validate_line_items(v),
    'address': _text,
    'special_instructions': _text,
    'access_instructions': _text,
    'square_footage': _count,
    'number_of_floors': _count,
    'building_type': _text,
    'number_of_bedrooms': _count,
    'number_of_bathrooms': validate_amount,
    'house_type': _text,
    'completion_notes': _text,
    'actual_start_time': validate_datetime,
    'actual_end_time': validate_datetime,
}

REQUIRED_FIELDS = ('client_id', 'title', 'service_type', 'scheduled_date')
_NOT_NULL = REQUIRED_FIELDS + ('property_type', 'status')


def parse_job_fields(data, allowed=None):
    """
    Validate and coerce job column values from request data

    Keys outside ``allowed`` (default: every job column a client may write)
    are ignored.
    """
    allowed = _FIELD_PARSERS.keys() if allowed is None else allowed
    values = {}
    for name in allowed:
        if name not in data:
            continue
        value = data[name]
        if value is None or value == '':
            if name in _NOT_NULL:
                raise ValidationError(f'{name} cannot be empty')
            values[name] = None
            continue
        values[name] = _FIELD_PARSERS[name](value, name)
    return values


def line_items_total(line_items):
    """Sum of price * quantity, quantity defaulting to 1"""
    total = Decimal('0')
    for item in line_items or []:
        total += Decimal(str(item.get('price') or 0)) * (item.get('quantity') or 1)
    return total


@dataclass
class JobInput:
    """Validated fields for a new job"""
    client_id: uuid.UUID
    title: str
    service_type: str
    scheduled_date: date
    property_type: str = 'residential'
    status: str = 'scheduled'
    description: Optional[str] = None
    scheduled_time: Optional[time] = None
    estimated_duration: Optional[int] = None
    arrival_window_start: Optional[time] = None
    arrival_window_end: Optional[time] = None
    estimated_price: Optional[Decimal] = None
    address: Optional[str] = None
    special_instructions: Optional[str] = None
    access_instructions: Optional[str] = None
    square_footage: Optional[int] = None
    number_of_floors: Optional[int] = None
    building_type: Optional[str] = None
    number_of_bedrooms: Optional[int] = None
    number_of_bathrooms: Optional[Decimal] = None
    house_type: Optional[str] = None
    line_items: List[dict] = field(default_factory=list)

    @classmethod
    def from_dict(cls, data):
        if not isinstance(data, dict):
            raise ValidationError('Request body is required')

        missing = [name for name in REQUIRED_FIELDS if data.get(name) in (None, '')]
        if missing:
            raise ValidationError(f'Missing required fields: {", ".join(missing)}')

        values = parse_job_fields(data, allowed=cls.__dataclass_fields__.keys())
        # Explicit nulls fall back to the defaults
        values = {name: value for name, value in values.items() if value is not None}
        job_input = cls(**values)

        if job_input.line_items and job_input.estimated_price is None:
            job_input.estimated_price = line_items_total(job_input.line_items)

        return job_input

    def to_columns(self):
        columns = asdict(self)
        columns['line_items'] = columns['line_items'] or None
        return columns


# ---------------------------------------------------------------------------
# Lookups
# ---------------------------------------------------------------------------
def get_client(tenant_id, client_id):
    client = Client.for_tenant(tenant_id).filter(Client.id == validate_uuid(client_id, 'client_id')).first()
    if not client:
        raise NotFoundError('Client not found')
    return client


def get_job(tenant_id, job_id):
    """Fetch a single job (parent, instance or standalone)"""
    require_account(tenant_id)
    job_id = validate_uuid(job_id, 'job_id')
    with store_operation('Failed to fetch job'):
        job = Job.for_tenant(tenant_id).filter(Job.id == job_id).first()
    if not job:
        raise NotFoundError('Job not found')
    return job


def get_jobs(tenant_id, filters=None, include_instances=False):
    """
    List jobs, newest scheduled date first

    Generated instances are left out unless ``include_instances`` is set, so
    list views show one row per series. Calendar views ask for the superset.

    Filters (all optional): ``status``, ``service_type``, ``property_type``
    (lists), ``client_id``, ``date_from``, ``date_to``.
    """
    require_account(tenant_id)
    filters = filters or {}

    query = Job.for_tenant(tenant_id)
    if not include_instances:
        query = query.filter(Job.parent_job_id.is_(None))

    if filters.get('status'):
        query = query.filter(Job.status.in_(filters['status']))
    if filters.get('service_type'):
        query = query.filter(Job.service_type.in_(filters['service_type']))
    if filters.get('property_type'):
        query = query.filter(Job.property_type.in_(filters['property_type']))
    if filters.get('client_id'):
        query = query.filter(Job.client_id == validate_uuid(filters['client_id'], 'client_id'))
    if filters.get('date_from'):
        query = query.filter(Job.scheduled_date >= validate_date(filters['date_from'], 'date_from'))
    if filters.get('date_to'):
        query = query.filter(Job.scheduled_date <= validate_date(filters['date_to'], 'date_to'))

    with store_operation('Failed to fetch jobs'):
        return query.order_by(Job.scheduled_date.desc(), Job.scheduled_time.asc()).all()


def get_today_jobs(tenant_id, today=None):
    require_account(tenant_id)
    today = today or date.today()
    with store_operation("Failed to fetch today's jobs"):
        return (
            Job.for_tenant(tenant_id)
            .filter(Job.scheduled_date == today)
            .order_by(Job.scheduled_time.asc())
            .all()
        )


def get_upcoming_jobs(tenant_id, today=None, days=None):
    """Scheduled or in-progress jobs from today through the next ``days`` days"""
    require_account(tenant_id)
    today = today or date.today()
    days = days if days is not None else current_app.config['UPCOMING_DAYS']
    with store_operation('Failed to fetch upcoming jobs'):
        return (
            Job.for_tenant(tenant_id)
            .filter(
                Job.scheduled_date >= today,
                Job.scheduled_date <= today + timedelta(days=days),
                Job.status.in_(ACTIVE_STATUSES),
            )
            .order_by(Job.scheduled_date.asc(), Job.scheduled_time.asc())
            .all()
        )


def search_jobs(tenant_id, term):
    require_account(tenant_id)
    term = (term or '').strip()
    if not term:
        raise ValidationError('Search term is required')
    pattern = f'%{term}%'
    with store_operation('Failed to search jobs'):
        return (
            Job.for_tenant(tenant_id)
            .filter(or_(
                Job.title.ilike(pattern),
                Job.description.ilike(pattern),
                Job.special_instructions.ilike(pattern),
            ))
            .order_by(Job.scheduled_date.desc())
            .all()
        )


def get_job_stats(tenant_id):
    """Counts by status plus revenue and average value of completed jobs"""
    require_account(tenant_id)
    with store_operation('Failed to fetch job statistics'):
        rows = (
            Job.for_tenant(tenant_id)
            .with_entities(Job.status, Job.actual_price, Job.estimated_price)
            .all()
        )

    stats = {status: 0 for status in JOB_STATUSES}
    stats['total'] = len(rows)
    completed_values = []
    for status, actual_price, estimated_price in rows:
        stats[status] = stats.get(status, 0) + 1
        # Actual price wins; estimated is the fallback
        value = float(actual_price or estimated_price or 0)
        if status == 'completed' and value > 0:
            completed_values.append(value)

    stats['total_revenue'] = round(sum(completed_values), 2)
    stats['avg_job_value'] = round(sum(completed_values) / len(completed_values), 2) if completed_values else 0
    return stats


# ---------------------------------------------------------------------------
# Writes
# ---------------------------------------------------------------------------
def create_job(tenant_id, data, user_id=None):
    """
    Create a standalone job

    Raises:
        AuthorizationError: no owning account
        ValidationError: missing or malformed fields
        NotFoundError: client does not belong to the tenant
        StoreError: the insert failed
    """
    require_account(tenant_id)
    job_input = JobInput.from_dict(data)
    get_client(tenant_id, job_input.client_id)

    job = Job(tenant_id=tenant_id, created_by=user_id, is_recurring=False, **job_input.to_columns())
    with store_operation('Failed to create job') as session:
        session.add(job)
        session.commit()

    logger.info('Created job %s for tenant %s', job.id, tenant_id)
    return job


def update_job(tenant_id, job_id, data):
    """Apply a field patch to a single job row"""
    if not isinstance(data, dict):
        raise ValidationError('Request body is required')
    job = get_job(tenant_id, job_id)
    values = parse_job_fields(data)
    if not values:
        raise ValidationError('No valid fields to update')
    if 'client_id' in values:
        get_client(tenant_id, values['client_id'])

    with store_operation('Failed to update job') as session:
        Job.query.filter(Job.id == job.id, Job.tenant_id == tenant_id).update(
            values, synchronize_session=False
        )
        session.commit()

    return get_job(tenant_id, job.id)


def update_job_status(tenant_id, job_id, status, extra=None, now=None):
    """
    Change a job's status, stamping start/end times on the way

    ``actual_start_time`` is set on entering ``in_progress`` and
    ``actual_end_time`` on entering ``completed``, unless the job already has
    one or ``extra`` supplies it.
    """
    validate_choice(status, JOB_STATUSES, 'status')
    job = get_job(tenant_id, job_id)
    now = now or datetime.now(timezone.utc)

    updates = dict(extra or {})
    updates['status'] = status
    if status == 'in_progress' and not job.actual_start_time and not updates.get('actual_start_time'):
        updates['actual_start_time'] = now
    elif status == 'completed' and not job.actual_end_time and not updates.get('actual_end_time'):
        updates['actual_end_time'] = now

    return update_job(tenant_id, job.id, updates)


def delete_job(tenant_id, job_id):
    """Delete a job; deleting a recurring parent removes its instances too"""
    job = get_job(tenant_id, job_id)
    with store_operation('Failed to delete job') as session:
        Job.query.filter(Job.parent_job_id == job.id, Job.tenant_id == tenant_id).delete(
            synchronize_session=False
        )
        Job.query.filter(Job.id == job.id, Job.tenant_id == tenant_id).delete(synchronize_session=False)
        session.commit()


# ---------------------------------------------------------------------------
# Conflicts
# ---------------------------------------------------------------------------
def check_conflicts(tenant_id, on_date, at_time=None, exclude_id=None, default_duration=None):
    """
    Jobs that may clash with a candidate slot. Advisory only.

    Without a time every active job on the date is a potential conflict.
    With a time, only jobs whose [start, start + duration) interval contains
    it are returned; jobs without a start time are skipped.
    """
    require_account(tenant_id)
    on_date = validate_date(on_date, 'date')
    at_time = validate_time(at_time, 'time') if at_time else None
    if default_duration is None:
        default_duration = current_app.config['DEFAULT_JOB_DURATION_MINUTES']

    query = Job.for_tenant(tenant_id).filter(
        Job.scheduled_date == on_date,
        Job.status.in_(ACTIVE_STATUSES),
    )
    if exclude_id:
        query = query.filter(Job.id != validate_uuid(exclude_id, 'exclude_id'))

    with store_operation('Failed to check scheduling conflicts'):
        jobs = query.order_by(Job.scheduled_time.asc()).all()

    if at_time is None:
        return jobs

    candidate = _minutes(at_time)
    conflicts = []
    for job in jobs:
        if job.scheduled_time is None:
            continue
        start = _minutes(job.scheduled_time)
        end = start + (job.estimated_duration or default_duration)
        if start <= candidate < end:
            conflicts.append(job)
    return conflicts


def _minutes(value):
    return value.hour * 60 + value.minute
