"""
Rolling-window refresh and retirement of recurring series
"""
from datetime import date

import pytest

from sweeply import db
from sweeply.models import Job
from sweeply.services import maintenance, series


@pytest.fixture
def make_series(test_tenant, recurring_data):
    def _make_series(**overrides):
        data = dict(recurring_data)
        data.update(overrides)
        return series.create_recurring_job(test_tenant.id, data)

    return _make_series


def instance_count(parent_id):
    return Job.query.filter_by(parent_job_id=parent_id).count()


class TestRefreshAllSeries:

    def test_no_active_series(self, app):
        assert maintenance.refresh_all_series(today=date(2024, 1, 1)) == []

    def test_skips_series_already_generated_through_window(self, make_series):
        parent = make_series()

        results = maintenance.refresh_all_series(today=date(2024, 1, 1))

        assert results == [{
            'job_id': str(parent.id),
            'tenant_id': str(parent.tenant_id),
            'status': 'skipped',
            'instances_created': 0,
        }]
        assert instance_count(parent.id) == 13

    def test_extends_window_without_duplicates(self, make_series):
        parent = make_series()

        first = maintenance.refresh_all_series(today=date(2024, 2, 1))
        second = maintenance.refresh_all_series(today=date(2024, 2, 1))

        assert first[0]['status'] == 'success'
        assert first[0]['instances_created'] == 4
        assert second[0]['instances_created'] == 0
        assert instance_count(parent.id) == 17
        latest = Job.query.filter_by(parent_job_id=parent.id).order_by(Job.scheduled_date.desc()).first()
        assert latest.scheduled_date == date(2024, 4, 29)

    def test_one_failing_series_does_not_block_others(self, make_series):
        broken = make_series(title='Broken')
        healthy = make_series(title='Healthy')
        Job.query.filter_by(id=broken.id).update({'recurring_frequency': 'fortnightly'})
        db.session.commit()

        results = {result['job_id']: result for result in maintenance.refresh_all_series(today=date(2024, 2, 1))}

        assert results[str(broken.id)]['status'] == 'error'
        assert 'Invalid recurrence pattern' in results[str(broken.id)]['error']
        assert results[str(healthy.id)]['status'] == 'success'
        assert results[str(healthy.id)]['instances_created'] == 4

    def test_ended_series_is_not_refreshed(self, make_series):
        make_series(recurring_end_type='date', recurring_end_date='2024-01-20')

        assert maintenance.refresh_all_series(today=date(2024, 2, 1)) == []

    def test_occurrence_series_is_refreshed_up_to_cap(self, make_series):
        parent = make_series(recurring_end_type='occurrences', recurring_occurrences=15)

        results = maintenance.refresh_all_series(today=date(2024, 2, 1))

        assert results[0]['instances_created'] == 2
        assert instance_count(parent.id) == 15


class TestRetireFinishedSeries:

    def test_retires_series_on_its_end_date(self, make_series):
        parent = make_series(recurring_end_type='date', recurring_end_date='2024-01-20')

        assert maintenance.retire_finished_series(today=date(2024, 1, 19)) == []
        assert maintenance.retire_finished_series(today=date(2024, 1, 20)) == [parent.id]
        assert db.session.get(Job, parent.id).is_recurring is False

    def test_retires_series_that_reached_occurrence_count(self, make_series):
        capped = make_series(recurring_end_type='occurrences', recurring_occurrences=3)
        running = make_series(recurring_end_type='occurrences', recurring_occurrences=20)

        retired = maintenance.retire_finished_series(today=date(2024, 1, 2))

        assert retired == [capped.id]
        assert db.session.get(Job, capped.id).is_recurring is False
        assert db.session.get(Job, running.id).is_recurring is True

    def test_never_ending_series_stays(self, make_series):
        parent = make_series()

        assert maintenance.retire_finished_series(today=date(2030, 1, 1)) == []
        assert db.session.get(Job, parent.id).is_recurring is True


class TestProcessRecurringJobs:

    def test_summary(self, make_series):
        parent = make_series(recurring_end_type='occurrences', recurring_occurrences=3)

        summary = maintenance.process_recurring_jobs(today=date(2024, 2, 1))

        assert summary['processed'] == 1
        assert summary['results'][0]['instances_created'] == 0
        assert summary['retired'] == [str(parent.id)]
        assert summary['date'] == '2024-02-01'

    def test_cli_command(self, app, make_series):
        parent = make_series()
        runner = app.test_cli_runner()

        result = runner.invoke(args=['process-recurring', '--date', '2024-02-01'])

        assert result.exit_code == 0
        assert f'-> {parent.id}: success' in result.output
        assert 'Retired 0 series.' in result.output
        assert instance_count(parent.id) == 17
