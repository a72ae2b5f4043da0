"""
Recurrence pattern validation and date expansion tests
"""
import uuid
from datetime import date, time

import pytest

from sweeply.errors import GenerationError, ValidationError
from sweeply.models import Job
from sweeply.services.recurrence import RecurrencePattern, generate_recurring_job_instances, sunday_weekday


def make_parent(**kwargs):
    """An unsaved recurring parent"""
    defaults = {
        'id': uuid.uuid4(),
        'tenant_id': uuid.uuid4(),
        'client_id': uuid.uuid4(),
        'title': 'Weekly clean',
        'service_type': 'regular',
        'property_type': 'residential',
        'status': 'scheduled',
        'scheduled_date': date(2024, 1, 1),
        'scheduled_time': time(9, 0),
        'line_items': [{'description': 'Kitchen', 'quantity': 1, 'price': 40.0}],
        'is_recurring': True,
        'parent_job_id': None,
        'recurring_frequency': 'weekly',
        'recurring_end_type': 'never',
    }
    defaults.update(kwargs)
    return Job(**defaults)


def dates(drafts):
    return [draft['scheduled_date'] for draft in drafts]


class TestPatternValidation:

    def test_defaults(self):
        pattern = RecurrencePattern.from_dict({'recurring_frequency': 'weekly'})

        assert pattern.end_type == 'never'
        assert pattern.days_of_week == []
        assert pattern.occurrence_cap is None

    def test_end_date_implies_date_end_type(self):
        pattern = RecurrencePattern.from_dict({
            'recurring_frequency': 'monthly',
            'recurring_end_date': '2024-06-30',
        })

        assert pattern.end_type == 'date'
        assert pattern.end_date == date(2024, 6, 30)

    def test_days_are_deduplicated_and_sorted(self):
        pattern = RecurrencePattern.from_dict({
            'recurring_frequency': 'weekly',
            'recurring_days_of_week': [5, 1, 5, 3],
        })

        assert pattern.days_of_week == [1, 3, 5]

    @pytest.mark.parametrize('data, message', [
        ({}, 'recurring_frequency'),
        ({'recurring_frequency': 'daily'}, 'recurring_frequency'),
        ({'recurring_frequency': 'weekly', 'recurring_days_of_week': [7]}, 'recurring_days_of_week'),
        ({'recurring_frequency': 'weekly', 'recurring_days_of_week': 'monday'}, 'recurring_days_of_week'),
        ({'recurring_frequency': 'monthly', 'recurring_day_of_month': 32}, 'recurring_day_of_month'),
        ({'recurring_frequency': 'weekly', 'recurring_end_type': 'date'}, 'recurring_end_date'),
        ({'recurring_frequency': 'weekly', 'recurring_end_type': 'occurrences'}, 'recurring_occurrences'),
        ({'recurring_frequency': 'weekly', 'recurring_end_type': 'occurrences',
          'recurring_occurrences': 0}, 'recurring_occurrences'),
        ({'recurring_frequency': 'weekly', 'recurring_end_type': 'sometime'}, 'recurring_end_type'),
    ])
    def test_invalid_patterns(self, data, message):
        with pytest.raises(ValidationError) as excinfo:
            RecurrencePattern.from_dict(data)

        assert message in excinfo.value.message

    def test_sunday_is_zero(self):
        assert sunday_weekday(date(2024, 1, 7)) == 0
        assert sunday_weekday(date(2024, 1, 1)) == 1
        assert sunday_weekday(date(2024, 1, 6)) == 6


class TestDateExpansion:

    def test_weekly_without_days_steps_seven_days(self):
        parent = make_parent()

        drafts = generate_recurring_job_instances(parent, date(2024, 1, 1), date(2024, 4, 1))

        assert len(drafts) == 13
        assert dates(drafts)[0] == date(2024, 1, 8)
        assert dates(drafts)[-1] == date(2024, 4, 1)

    def test_parent_date_is_never_generated(self):
        parent = make_parent()

        drafts = generate_recurring_job_instances(parent, date(2024, 1, 1), date(2024, 1, 1))

        assert drafts == []

    def test_weekly_on_selected_days(self):
        parent = make_parent(recurring_days_of_week=[1, 4])

        drafts = generate_recurring_job_instances(parent, date(2024, 1, 1), date(2024, 1, 14))

        assert dates(drafts) == [date(2024, 1, 4), date(2024, 1, 8), date(2024, 1, 11)]

    def test_biweekly_without_days(self):
        parent = make_parent(recurring_frequency='biweekly')

        drafts = generate_recurring_job_instances(parent, date(2024, 1, 1), date(2024, 2, 15))

        assert dates(drafts) == [date(2024, 1, 15), date(2024, 1, 29), date(2024, 2, 12)]

    def test_biweekly_on_selected_days_skips_alternate_weeks(self):
        parent = make_parent(recurring_frequency='biweekly', recurring_days_of_week=[1, 3])

        drafts = generate_recurring_job_instances(parent, date(2024, 1, 1), date(2024, 1, 31))

        assert dates(drafts) == [
            date(2024, 1, 3),
            date(2024, 1, 15), date(2024, 1, 17),
            date(2024, 1, 29), date(2024, 1, 31),
        ]

    def test_monthly_clamps_to_month_end(self):
        parent = make_parent(recurring_frequency='monthly', scheduled_date=date(2024, 1, 31))

        drafts = generate_recurring_job_instances(parent, date(2024, 1, 31), date(2024, 5, 31))

        assert dates(drafts) == [date(2024, 2, 29), date(2024, 3, 31), date(2024, 4, 30), date(2024, 5, 31)]

    def test_monthly_on_day_of_month(self):
        parent = make_parent(recurring_frequency='monthly', recurring_day_of_month=10,
                             scheduled_date=date(2024, 1, 15))

        drafts = generate_recurring_job_instances(parent, date(2024, 1, 15), date(2024, 3, 31))

        assert dates(drafts) == [date(2024, 2, 10), date(2024, 3, 10)]

    def test_quarterly(self):
        parent = make_parent(recurring_frequency='quarterly', scheduled_date=date(2024, 1, 15))

        drafts = generate_recurring_job_instances(parent, date(2024, 1, 1), date(2024, 12, 31))

        assert dates(drafts) == [date(2024, 4, 15), date(2024, 7, 15), date(2024, 10, 15)]

    def test_window_start_after_parent(self):
        parent = make_parent()

        drafts = generate_recurring_job_instances(parent, date(2024, 2, 1), date(2024, 2, 29))

        assert dates(drafts) == [date(2024, 2, 5), date(2024, 2, 12), date(2024, 2, 19), date(2024, 2, 26)]


class TestEndConditions:

    def test_stops_at_end_date(self):
        parent = make_parent(recurring_end_type='date', recurring_end_date=date(2024, 1, 20))

        drafts = generate_recurring_job_instances(parent, date(2024, 1, 1), date(2024, 4, 1))

        assert dates(drafts) == [date(2024, 1, 8), date(2024, 1, 15)]

    def test_occurrence_cap(self):
        parent = make_parent(recurring_end_type='occurrences', recurring_occurrences=3)

        drafts = generate_recurring_job_instances(parent, date(2024, 1, 1), date(2024, 4, 1))

        assert dates(drafts) == [date(2024, 1, 8), date(2024, 1, 15), date(2024, 1, 22)]

    def test_occurrence_cap_counts_existing_instances(self):
        parent = make_parent(recurring_end_type='occurrences', recurring_occurrences=3)

        drafts = generate_recurring_job_instances(
            parent, date(2024, 1, 1), date(2024, 4, 1),
            existing_dates=[date(2024, 1, 8), date(2024, 1, 15)],
            existing_count=2,
        )

        assert dates(drafts) == [date(2024, 1, 22)]

    def test_occurrence_cap_reached(self):
        parent = make_parent(recurring_end_type='occurrences', recurring_occurrences=2)

        drafts = generate_recurring_job_instances(parent, date(2024, 1, 1), date(2024, 4, 1), existing_count=2)

        assert drafts == []

    def test_existing_dates_are_skipped(self):
        parent = make_parent()

        drafts = generate_recurring_job_instances(
            parent, date(2024, 1, 1), date(2024, 1, 31),
            existing_dates=[date(2024, 1, 8), date(2024, 1, 22)],
        )

        assert dates(drafts) == [date(2024, 1, 15), date(2024, 1, 29)]


class TestInstanceDrafts:

    def test_draft_copies_job_fields_without_recurrence(self):
        parent = make_parent(recurring_days_of_week=[1])

        draft = generate_recurring_job_instances(parent, date(2024, 1, 1), date(2024, 1, 8))[0]

        assert draft['parent_job_id'] == parent.id
        assert draft['is_recurring'] is False
        assert draft['status'] == 'scheduled'
        assert draft['title'] == 'Weekly clean'
        assert draft['scheduled_time'] == time(9, 0)
        assert draft['tenant_id'] == parent.tenant_id
        assert not any(name.startswith('recurring_') for name in draft)

    def test_line_items_are_copied_not_shared(self):
        parent = make_parent()

        draft = generate_recurring_job_instances(parent, date(2024, 1, 1), date(2024, 1, 8))[0]
        draft['line_items'][0]['price'] = 99.0

        assert parent.line_items[0]['price'] == 40.0

    def test_instance_cannot_generate(self):
        instance = make_parent(parent_job_id=uuid.uuid4())

        with pytest.raises(GenerationError):
            generate_recurring_job_instances(instance, date(2024, 1, 1), date(2024, 4, 1))

    def test_retired_parent_cannot_generate(self):
        parent = make_parent(is_recurring=False)

        with pytest.raises(GenerationError):
            generate_recurring_job_instances(parent, date(2024, 1, 1), date(2024, 4, 1))

    def test_invalid_stored_pattern(self):
        parent = make_parent(recurring_frequency=None)

        with pytest.raises(GenerationError) as excinfo:
            generate_recurring_job_instances(parent, date(2024, 1, 1), date(2024, 4, 1))

        assert 'Invalid recurrence pattern' in excinfo.value.message
