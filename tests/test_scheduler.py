"""
Tests for the background job scheduler
"""
import pytest
from unittest.mock import MagicMock

from jobs.scheduler import JobScheduler, FEED_CHECK_JOB_ID, VERIFY_JOB_ID, CLEANUP_JOB_ID

SETTINGS = {
    'check_interval_minutes': 60,
    'verify_startup_delay_seconds': 30,
    'retention_days': 14,
}


@pytest.fixture
def scheduler(app):
    job_scheduler = JobScheduler(app, MagicMock(), MagicMock(), settings=SETTINGS)
    yield job_scheduler
    job_scheduler.shutdown()


class TestJobScheduler:

    def test_registers_jobs_on_start(self, scheduler):
        scheduler.start()
        scheduler.pause()

        job_ids = {job['id'] for job in scheduler.get_jobs()}
        assert job_ids == {FEED_CHECK_JOB_ID, VERIFY_JOB_ID, CLEANUP_JOB_ID}
        assert scheduler.scheduler.running

    def test_start_twice_keeps_single_job_set(self, scheduler):
        scheduler._register_jobs()
        scheduler._register_jobs()
        assert len(scheduler.scheduler.get_jobs()) == 3

    def test_pause_and_resume(self, scheduler):
        from apscheduler.schedulers.base import STATE_PAUSED, STATE_RUNNING

        scheduler.start()
        scheduler.pause()
        assert scheduler.scheduler.state == STATE_PAUSED
        scheduler.resume()
        assert scheduler.scheduler.state == STATE_RUNNING

    def test_shutdown_is_idempotent(self, scheduler):
        scheduler.start()
        scheduler.shutdown()
        scheduler.shutdown()
        assert not scheduler.scheduler.running

    def test_feed_job_swallows_errors(self, scheduler):
        scheduler.feed_service.check_for_new_games.side_effect = RuntimeError("feed down")
        assert scheduler.run_feed_check() is None

    def test_verification_job_runs_sweep(self, scheduler):
        scheduler.verifier.verify_all.return_value = "summary"
        assert scheduler.run_verification() == "summary"

    def test_cleanup_uses_retention_setting(self, scheduler):
        scheduler.run_cleanup()
        scheduler.feed_service.cleanup.assert_called_once_with(14)

    def test_defaults_from_settings_file(self, app):
        job_scheduler = JobScheduler(app, MagicMock(), MagicMock())
        assert job_scheduler.settings['check_interval_minutes'] == 60
