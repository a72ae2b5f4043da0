"""
Recurrence patterns and instance generation.

``generate_recurring_job_instances`` plays the part of the store-side bulk
generation procedure: given a recurring parent and a date window it returns
draft rows (plain dicts) for the dates the pattern produces. It never
touches the session; callers insert the drafts.

Weekday indices follow the client apps: 0 = Sunday .. 6 = Saturday.
"""
import copy
from dataclasses import dataclass, field
from datetime import date, timedelta
from typing import List, Optional

from dateutil.relativedelta import relativedelta

from sweeply.errors import GenerationError, ValidationError
from sweeply.models.job import INSTANCE_FIELDS
from sweeply.utils.validators import validate_choice, validate_date, validate_int

FREQUENCIES = ('weekly', 'biweekly', 'monthly', 'quarterly')
END_TYPES = ('never', 'date', 'occurrences')

_MONTH_STEPS = {'monthly': 1, 'quarterly': 3}


def sunday_weekday(day):
    """Weekday index with Sunday as 0"""
    return (day.weekday() + 1) % 7


@dataclass
class RecurrencePattern:
    """How a recurring parent job repeats"""
    frequency: str
    end_type: str = 'never'
    end_date: Optional[date] = None
    occurrences: Optional[int] = None
    days_of_week: List[int] = field(default_factory=list)
    day_of_month: Optional[int] = None

    @classmethod
    def from_dict(cls, data):
        """
        Build and validate a pattern from request data

        Accepts the ``recurring_*`` column names used on the jobs table.
        ``recurring_end_type`` defaults to ``date`` when an end date is given
        and ``never`` otherwise.

        Raises:
            ValidationError: when the pattern is incomplete or out of range
        """
        frequency = validate_choice(data.get('recurring_frequency'), FREQUENCIES, 'recurring_frequency')

        end_date = data.get('recurring_end_date')
        end_date = validate_date(end_date, 'recurring_end_date') if end_date else None

        end_type = data.get('recurring_end_type') or ('date' if end_date else 'never')
        validate_choice(end_type, END_TYPES, 'recurring_end_type')

        occurrences = data.get('recurring_occurrences')
        if occurrences is not None:
            occurrences = validate_int(occurrences, 'recurring_occurrences', minimum=1)

        days = data.get('recurring_days_of_week') or []
        if not isinstance(days, list):
            raise ValidationError('recurring_days_of_week must be a list')
        days = sorted({validate_int(d, 'recurring_days_of_week', minimum=0, maximum=6) for d in days})

        day_of_month = data.get('recurring_day_of_month')
        if day_of_month is not None:
            day_of_month = validate_int(day_of_month, 'recurring_day_of_month', minimum=1, maximum=31)

        if end_type == 'date' and end_date is None:
            raise ValidationError('recurring_end_date is required when recurring_end_type is "date"')
        if end_type == 'occurrences' and occurrences is None:
            raise ValidationError('recurring_occurrences is required when recurring_end_type is "occurrences"')

        return cls(
            frequency=frequency,
            end_type=end_type,
            end_date=end_date,
            occurrences=occurrences,
            days_of_week=days,
            day_of_month=day_of_month,
        )

    @classmethod
    def from_job(cls, job):
        """Read the pattern stored on a recurring parent"""
        return cls.from_dict({
            'recurring_frequency': job.recurring_frequency,
            'recurring_end_type': job.recurring_end_type,
            'recurring_end_date': job.recurring_end_date,
            'recurring_occurrences': job.recurring_occurrences,
            'recurring_days_of_week': job.recurring_days_of_week,
            'recurring_day_of_month': job.recurring_day_of_month,
        })

    def to_columns(self):
        """Column values for a recurring parent row"""
        return {
            'recurring_frequency': self.frequency,
            'recurring_end_type': self.end_type,
            'recurring_end_date': self.end_date,
            'recurring_occurrences': self.occurrences,
            'recurring_days_of_week': list(self.days_of_week) or None,
            'recurring_day_of_month': self.day_of_month,
        }

    @property
    def occurrence_cap(self):
        return self.occurrences if self.end_type == 'occurrences' else None

    def last_date(self, window_end):
        """Whichever comes first of the window end and the pattern's end date"""
        if self.end_type == 'date' and self.end_date and self.end_date < window_end:
            return self.end_date
        return window_end

    def iter_dates(self, anchor, start_date, end_date):
        """
        Yield the dates this pattern produces in ``[start_date, end_date]``

        ``anchor`` is the parent's own scheduled date. It is never yielded
        itself, since the parent row already occupies it.
        """
        lower = max(start_date, anchor + timedelta(days=1))
        upper = self.last_date(end_date)
        if lower > upper:
            return

        if self.frequency in _MONTH_STEPS:
            yield from self._iter_monthly(anchor, lower, upper)
        elif self.days_of_week:
            yield from self._iter_weekdays(anchor, lower, upper)
        else:
            step = 7 if self.frequency == 'weekly' else 14
            yield from self._iter_fixed_step(anchor, lower, upper, step)

    def _iter_fixed_step(self, anchor, lower, upper, step):
        # Skip straight to the first step on or after ``lower``.
        offset = max(1, -(-(lower - anchor).days // step))
        current = anchor + timedelta(days=offset * step)
        while current <= upper:
            yield current
            current += timedelta(days=step)

    def _iter_weekdays(self, anchor, lower, upper):
        week_start = anchor - timedelta(days=sunday_weekday(anchor))
        every = 1 if self.frequency == 'weekly' else 2
        current = lower
        while current <= upper:
            week_number = (current - week_start).days // 7
            if week_number % every == 0 and sunday_weekday(current) in self.days_of_week:
                yield current
            current += timedelta(days=1)

    def _iter_monthly(self, anchor, lower, upper):
        step = _MONTH_STEPS[self.frequency]
        target_day = self.day_of_month or anchor.day
        month_start = anchor.replace(day=1)
        k = 0
        while True:
            # relativedelta(day=N) clamps to the last day of shorter months.
            current = month_start + relativedelta(months=k * step, day=target_day)
            if current > upper:
                return
            if current >= lower:
                yield current
            k += 1


def generate_recurring_job_instances(parent, start_date, end_date, existing_dates=(), existing_count=0):
    """
    Expand a recurring parent into draft instance rows for a window

    Generation stops at whichever comes first: the window end, the pattern's
    end date, or the occurrence cap (counting ``existing_count`` instances
    already generated). Dates in ``existing_dates`` are skipped so running
    the procedure twice over the same window adds nothing.

    Args:
        parent: recurring parent Job
        start_date (date): window start
        end_date (date): window end (inclusive)
        existing_dates: scheduled dates of instances already stored
        existing_count (int): number of instances already stored

    Returns:
        list: draft dicts ready to be inserted as Job rows

    Raises:
        GenerationError: when the job is not a recurring parent or its
            stored pattern is invalid
    """
    if parent is None or parent.parent_job_id is not None or not parent.is_recurring:
        raise GenerationError('Job is not an active recurring parent')

    try:
        pattern = RecurrencePattern.from_job(parent)
    except ValidationError as e:
        raise GenerationError(f'Invalid recurrence pattern: {e.message}')

    remaining = None
    if pattern.occurrence_cap is not None:
        remaining = pattern.occurrence_cap - existing_count
        if remaining <= 0:
            return []

    existing = set(existing_dates)
    drafts = []
    for day in pattern.iter_dates(parent.scheduled_date, start_date, end_date):
        if remaining is not None and len(drafts) >= remaining:
            break
        if day in existing:
            continue
        drafts.append(_instance_draft(parent, day))

    return drafts


def _instance_draft(parent, day):
    draft = {name: copy.deepcopy(getattr(parent, name)) for name in INSTANCE_FIELDS}
    draft.update({
        'scheduled_date': day,
        'status': 'scheduled',
        'is_recurring': False,
        'parent_job_id': parent.id,
    })
    return draft
