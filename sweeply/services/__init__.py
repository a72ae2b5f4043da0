"""Business operations on clients, jobs and recurring series"""
from .jobs import (
    JobInput, check_conflicts, create_job, delete_job, get_job, get_job_stats, get_jobs,
    get_today_jobs, get_upcoming_jobs, search_jobs, update_job, update_job_status,
)
from .maintenance import process_recurring_jobs, refresh_all_series, retire_finished_series
from .recurrence import RecurrencePattern, generate_recurring_job_instances
from .series import (
    cancel_instances, cancel_series, create_recurring_job, generate_instances,
    get_recurring_instances, resolve_series, update_recurring_job,
)

__all__ = [
    'JobInput',
    'RecurrencePattern',
    'cancel_instances',
    'cancel_series',
    'check_conflicts',
    'create_job',
    'create_recurring_job',
    'delete_job',
    'generate_instances',
    'generate_recurring_job_instances',
    'get_job',
    'get_job_stats',
    'get_jobs',
    'get_recurring_instances',
    'get_today_jobs',
    'get_upcoming_jobs',
    'process_recurring_jobs',
    'refresh_all_series',
    'resolve_series',
    'retire_finished_series',
    'search_jobs',
    'update_job',
    'update_job_status',
    'update_recurring_job',
]
