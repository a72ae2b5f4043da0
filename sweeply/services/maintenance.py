"""
Periodic upkeep of recurring series

- ``refresh_all_series`` keeps every active series generated through the
  rolling window (today + RECURRING_HORIZON_MONTHS).
- ``retire_finished_series`` stops series whose end date has passed or whose
  occurrence cap has been reached.

Both run across all tenants and treat each series on its own: one failing
series is logged and skipped, the rest still get processed.
"""
import logging
from datetime import date

from sqlalchemy import func, or_

from sweeply.errors import StoreError, SweeplyError
from sweeply.extensions import db
from sweeply.models import Job
from .series import generate_instances, horizon_end
from .store import store_operation

logger = logging.getLogger(__name__)


def _active_parents(today):
    return (
        Job.query.filter(
            Job.is_recurring.is_(True),
            Job.parent_job_id.is_(None),
            or_(
                Job.recurring_end_type.is_(None),
                Job.recurring_end_type != 'date',
                Job.recurring_end_date >= today,
            ),
        )
        .order_by(Job.created_at.asc())
        .all()
    )


def refresh_all_series(today=None):
    """
    Extend every active series up to the end of the rolling window

    A series whose latest instance already reaches the window end is skipped.
    Otherwise instances are generated for [today, window end]; dates that
    already have an instance are never generated twice.

    Returns:
        list: one result dict per series
    """
    today = today or date.today()
    window_end = horizon_end(today)

    with store_operation('Failed to fetch recurring jobs'):
        parents = _active_parents(today)

    if not parents:
        logger.info('No active recurring jobs found')
        return []

    results = []
    for parent in parents:
        result = {'job_id': str(parent.id), 'tenant_id': str(parent.tenant_id)}
        try:
            with store_operation('Failed to fetch latest recurring instance'):
                latest = (
                    db.session.query(func.max(Job.scheduled_date))
                    .filter(Job.parent_job_id == parent.id, Job.scheduled_date >= today)
                    .scalar()
                )
            if latest is not None and latest >= window_end:
                result.update(status='skipped', instances_created=0)
            else:
                instances = generate_instances(parent.tenant_id, parent.id, today, window_end)
                result.update(status='success', instances_created=len(instances))
        except SweeplyError as e:
            logger.exception('Error generating instances for recurring job %s', parent.id)
            result.update(status='error', error=e.message, instances_created=0)
        results.append(result)

    created = sum(result['instances_created'] for result in results)
    logger.info('Refreshed %d recurring series, %d instances created', len(results), created)
    return results


def retire_finished_series(today=None):
    """
    Clear ``is_recurring`` on parents whose end condition has been met

    Returns:
        list: ids of the parents that were retired
    """
    today = today or date.today()
    retired = []

    try:
        with store_operation('Failed to end expired recurring jobs') as session:
            expired = Job.query.filter(
                Job.is_recurring.is_(True),
                Job.parent_job_id.is_(None),
                Job.recurring_end_type == 'date',
                Job.recurring_end_date <= today,
            )
            ids = [row.id for row in expired.with_entities(Job.id)]
            if ids:
                Job.query.filter(Job.id.in_(ids)).update({'is_recurring': False}, synchronize_session=False)
                session.commit()
            retired.extend(ids)
    except StoreError:
        logger.exception('Error ending expired recurring jobs')

    try:
        with store_operation('Failed to fetch occurrence-limited jobs'):
            capped = (
                Job.query.with_entities(Job.id, Job.recurring_occurrences)
                .filter(
                    Job.is_recurring.is_(True),
                    Job.parent_job_id.is_(None),
                    Job.recurring_end_type == 'occurrences',
                    Job.recurring_occurrences.isnot(None),
                )
                .all()
            )
    except StoreError:
        logger.exception('Error fetching occurrence-limited jobs')
        return retired

    for job_id, occurrences in capped:
        try:
            with store_operation('Failed to retire occurrence-limited job') as session:
                count = Job.query.filter(Job.parent_job_id == job_id).count()
                if count < occurrences:
                    continue
                Job.query.filter(Job.id == job_id).update({'is_recurring': False}, synchronize_session=False)
                session.commit()
            retired.append(job_id)
            logger.info('Ended recurring job %s after %d occurrences', job_id, count)
        except StoreError:
            logger.exception('Error checking occurrence limit for recurring job %s', job_id)

    return retired


def process_recurring_jobs(today=None):
    """Refresh every active series, then retire the finished ones"""
    today = today or date.today()
    results = refresh_all_series(today)
    retired = retire_finished_series(today)
    return {
        'processed': len(results),
        'results': results,
        'retired': [str(job_id) for job_id in retired],
        'date': today.isoformat(),
    }
