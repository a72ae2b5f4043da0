"""
Sweeply Background Scheduler

Runs periodic tasks:
- Extend recurring job series through the rolling window and retire
  finished series (every RECURRING_REFRESH_HOURS hours)

Only starts when ENABLE_SCHEDULER=true to prevent running on multiple instances.
"""
import logging

from apscheduler.schedulers.background import BackgroundScheduler

logger = logging.getLogger(__name__)


def _process_recurring_jobs(app):
    """Refresh and retire recurring series inside an app context."""
    with app.app_context():
        from sweeply.services.maintenance import process_recurring_jobs

        try:
            summary = process_recurring_jobs()
        except Exception:
            logger.exception('Scheduler: recurring job processing failed')
            return
        logger.info(
            'Scheduler: processed %d recurring series, retired %d',
            summary['processed'], len(summary['retired']),
        )


def init_scheduler(app):
    """Initialize and start the background scheduler."""
    scheduler = BackgroundScheduler(daemon=True)
    scheduler.add_job(
        _process_recurring_jobs,
        'interval',
        hours=app.config['RECURRING_REFRESH_HOURS'],
        args=[app],
        id='process_recurring_jobs',
        name='Extend and retire recurring job series',
        replace_existing=True,
    )
    scheduler.start()
    logger.info('Background scheduler started')
    return scheduler
