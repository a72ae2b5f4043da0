"""
Recurring job series: creation, instance generation, series-wide edits and cancellation

A series is a recurring parent plus every instance generated from it.
Series-wide writes only ever touch rows that are still ``scheduled`` and
dated today or later, so past, in-progress, completed and cancelled jobs
keep their history.
"""
import logging
from dataclasses import dataclass
from datetime import date
from typing import Union
import uuid

from dateutil.relativedelta import relativedelta
from flask import current_app
from sqlalchemy import or_

from sweeply.errors import GenerationError, NotFoundError, StoreError, ValidationError
from sweeply.models import Job
from sweeply.utils.validators import validate_date, validate_uuid
from .jobs import JobInput, get_client, get_job, parse_job_fields, update_job
from .recurrence import RecurrencePattern, generate_recurring_job_instances
from .store import require_account, store_operation

logger = logging.getLogger(__name__)

# Fields a series-wide edit may carry. Dates and status stay per-instance.
SERIES_FIELDS = (
    'client_id', 'title', 'description', 'service_type', 'property_type',
    'scheduled_time', 'estimated_duration', 'arrival_window_start', 'arrival_window_end',
    'estimated_price', 'line_items', 'address', 'special_instructions', 'access_instructions',
    'square_footage', 'number_of_floors', 'building_type', 'number_of_bedrooms',
    'number_of_bathrooms', 'house_type',
)


@dataclass(frozen=True)
class Parent:
    id: uuid.UUID

    @property
    def parent_id(self):
        return self.id


@dataclass(frozen=True)
class Instance:
    id: uuid.UUID
    parent_id: uuid.UUID


SeriesRef = Union[Parent, Instance]


def resolve_series(job):
    """Classify a job as the head of its own series or an instance of one"""
    if job.parent_job_id is None:
        return Parent(job.id)
    return Instance(job.id, job.parent_job_id)


def horizon_end(start):
    """Last date of the rolling generation window starting at ``start``"""
    return start + relativedelta(months=current_app.config['RECURRING_HORIZON_MONTHS'])


def _series_parent(tenant_id, job_id):
    job = get_job(tenant_id, job_id)
    ref = resolve_series(job)
    if isinstance(ref, Instance):
        return get_job(tenant_id, ref.parent_id)
    return job


def create_recurring_job(tenant_id, data, user_id=None):
    """
    Create a recurring parent and generate its first window of instances

    The parent is committed before generation starts. If generation fails
    the parent is kept and the failure is only logged; the periodic refresh
    fills the window in later.
    """
    require_account(tenant_id)
    job_input = JobInput.from_dict(data)
    pattern = RecurrencePattern.from_dict(data)
    get_client(tenant_id, job_input.client_id)

    columns = job_input.to_columns()
    columns.update(pattern.to_columns())
    parent = Job(tenant_id=tenant_id, created_by=user_id, is_recurring=True, parent_job_id=None, **columns)

    with store_operation('Failed to create recurring job') as session:
        session.add(parent)
        session.commit()

    try:
        instances = generate_instances(
            tenant_id, parent.id, parent.scheduled_date, horizon_end(parent.scheduled_date)
        )
        logger.info('Created recurring job %s with %d instances', parent.id, len(instances))
    except StoreError:
        logger.exception('Failed to generate instances for recurring job %s', parent.id)

    return parent


def generate_instances(tenant_id, parent_id, start_date, end_date):
    """
    Generate and insert the instances a parent's pattern yields in a window

    Returns:
        list: newly inserted instance rows (possibly empty)

    Raises:
        ValidationError: the job is not an active recurring parent
        GenerationError: the pattern could not be expanded
        StoreError: the instances could not be inserted
    """
    require_account(tenant_id)
    start_date = validate_date(start_date, 'start_date')
    end_date = validate_date(end_date, 'end_date')
    if start_date > end_date:
        raise ValidationError('start_date must be on or before end_date')

    parent = get_job(tenant_id, parent_id)
    if parent.parent_job_id is not None or not parent.is_recurring:
        raise ValidationError('Job is not an active recurring parent')

    with store_operation('Failed to generate recurring job instances', GenerationError):
        existing_dates = [
            row.scheduled_date
            for row in Job.query.with_entities(Job.scheduled_date).filter(Job.parent_job_id == parent.id)
        ]
        drafts = generate_recurring_job_instances(
            parent, start_date, end_date,
            existing_dates=existing_dates,
            existing_count=len(existing_dates),
        )

    if not drafts:
        return []

    instances = [Job(**draft) for draft in drafts]
    with store_operation('Failed to insert recurring job instances') as session:
        session.add_all(instances)
        session.commit()

    return instances


def get_recurring_instances(tenant_id, parent_id):
    """All instances of a series, earliest first"""
    parent = _series_parent(tenant_id, parent_id)
    with store_operation('Failed to fetch recurring job instances'):
        return (
            Job.for_tenant(tenant_id)
            .filter(Job.parent_job_id == parent.id)
            .order_by(Job.scheduled_date.asc())
            .all()
        )


def update_recurring_job(tenant_id, job_id, data, apply_to_series=False, today=None):
    """
    Edit one occurrence or the rest of its series

    With ``apply_to_series`` the patch goes to the parent and every instance
    that is still ``scheduled`` and dated on or after ``today``, whichever
    member of the series ``job_id`` names.

    Returns:
        Job for a single edit, list of updated Jobs for a series edit
    """
    data = data or {}
    if not apply_to_series:
        return update_job(tenant_id, job_id, data)

    if 'scheduled_date' in data:
        raise ValidationError('scheduled_date cannot be applied to a whole series')

    parent = _series_parent(tenant_id, job_id)
    values = parse_job_fields(data, allowed=SERIES_FIELDS)
    if not values:
        raise ValidationError('No valid fields to update')
    if 'client_id' in values:
        get_client(tenant_id, values['client_id'])

    today = today or date.today()
    with store_operation('Failed to update recurring series') as session:
        ids = [
            row.id
            for row in Job.query.with_entities(Job.id).filter(
                Job.tenant_id == tenant_id,
                or_(Job.id == parent.id, Job.parent_job_id == parent.id),
                Job.scheduled_date >= today,
                Job.status == 'scheduled',
            )
        ]
        if not ids:
            return []

        Job.query.filter(Job.id.in_(ids)).update(values, synchronize_session=False)
        session.commit()

        updated = Job.query.filter(Job.id.in_(ids)).order_by(Job.scheduled_date.asc()).all()

    logger.info('Updated %d jobs in recurring series %s', len(updated), parent.id)
    return updated


def cancel_series(tenant_id, parent_id, today=None):
    """
    Cancel the future of a series and stop it recurring

    Future ``scheduled`` instances become ``cancelled``; the parent gets
    ``is_recurring = False`` and, if it was still recurring,
    ``recurring_end_date = today``. Both writes share one transaction.
    Running it again cancels nothing new and leaves the end date alone.

    Returns:
        int: number of instances cancelled
    """
    parent = _series_parent(tenant_id, parent_id)
    if parent.recurring_frequency is None:
        raise ValidationError('Job is not part of a recurring series')
    today = today or date.today()

    with store_operation('Failed to cancel recurring series') as session:
        cancelled = Job.query.filter(
            Job.tenant_id == tenant_id,
            Job.parent_job_id == parent.id,
            Job.scheduled_date >= today,
            Job.status == 'scheduled',
        ).update({'status': 'cancelled'}, synchronize_session=False)

        Job.query.filter(
            Job.id == parent.id,
            Job.tenant_id == tenant_id,
            Job.is_recurring.is_(True),
        ).update(
            {'is_recurring': False, 'recurring_end_date': today},
            synchronize_session=False,
        )
        session.commit()

    logger.info('Cancelled recurring series %s (%d instances)', parent.id, cancelled)
    return cancelled


def cancel_instances(tenant_id, instance_ids):
    """Cancel selected instances of a series, leaving the rest untouched"""
    require_account(tenant_id)
    if not isinstance(instance_ids, list) or not instance_ids:
        raise ValidationError('instance_ids must be a non-empty list')
    ids = {validate_uuid(value, 'instance_ids') for value in instance_ids}

    with store_operation('Failed to cancel job instances') as session:
        query = Job.query.filter(
            Job.tenant_id == tenant_id,
            Job.id.in_(list(ids)),
            Job.parent_job_id.isnot(None),
        )
        found = {row.id for row in query.with_entities(Job.id)}
        missing = ids - found
        if missing:
            raise NotFoundError('Job not found', {'missing': sorted(str(value) for value in missing)})

        query.update({'status': 'cancelled'}, synchronize_session=False)
        session.commit()

        return Job.query.filter(Job.id.in_(list(ids))).order_by(Job.scheduled_date.asc()).all()
