"""
Tests for the reminder Scheduler.

- ReminderScheduler with APScheduler and a cron trigger
- JobFailureMonitor: 24h failure window, pause at threshold
- pending_note_reminder_job: success resets failures, failure raises SchedulerJobError
"""
import asyncio
import pytest
from datetime import datetime, timedelta, timezone
from unittest.mock import AsyncMock, MagicMock, patch

from freezegun import freeze_time


class TestSchedulerStructure:
    """Tests for scheduler structure and configuration."""

    @pytest.mark.unit
    def test_reminder_job_configured_with_cron_trigger(self):
        from apscheduler.triggers.cron import CronTrigger
        from reminder_engine.services.scheduler import REMINDER_JOB_ID, ReminderScheduler

        scheduler = ReminderScheduler(cron="0 12 * * *", timezone_name="UTC")

        assert REMINDER_JOB_ID in scheduler.jobs_config
        assert isinstance(scheduler.jobs_config[REMINDER_JOB_ID]["trigger"], CronTrigger)

    @pytest.mark.unit
    def test_cron_trigger_fires_at_noon(self):
        from reminder_engine.services.scheduler import REMINDER_JOB_ID, ReminderScheduler

        scheduler = ReminderScheduler(cron="0 12 * * *", timezone_name="UTC")
        trigger = scheduler.jobs_config[REMINDER_JOB_ID]["trigger"]

        now = datetime(2025, 4, 14, 9, 30, tzinfo=timezone.utc)
        next_fire = trigger.get_next_fire_time(None, now)

        assert next_fire.hour == 12
        assert next_fire.date() == now.date()

    @pytest.mark.unit
    def test_scheduler_not_running_by_default(self):
        from reminder_engine.services.scheduler import ReminderScheduler

        scheduler = ReminderScheduler()

        assert scheduler.is_running is False
        assert scheduler.scheduler is None
        assert scheduler.get_jobs_status() == []
        assert scheduler.trigger_job() is False

    @pytest.mark.unit
    def test_get_health_status_structure(self):
        from reminder_engine.services.scheduler import ReminderScheduler

        health = ReminderScheduler().get_health_status()

        assert set(health) == {"status", "is_running", "jobs", "failures", "paused_jobs"}
        assert health["is_running"] is False

    @pytest.mark.unit
    def test_job_defaults_prevent_overlapping_runs(self):
        from reminder_engine.services.scheduler import ReminderScheduler

        aps = ReminderScheduler().create_scheduler()

        assert aps._job_defaults["max_instances"] == 1
        assert aps._job_defaults["coalesce"] is True


class TestJobFailureMonitor:
    """Tests for job failure tracking."""

    @pytest.mark.unit
    def test_pause_at_threshold(self):
        from reminder_engine.services.scheduler import JobFailureMonitor

        monitor = JobFailureMonitor(failure_threshold=2)

        assert monitor.record_failure("job", "first") is False
        assert monitor.record_failure("job", "second") is True
        assert "job" in monitor.paused_jobs
        assert monitor.get_status()["job"]["is_paused"] is True

    @pytest.mark.unit
    def test_record_success_resets_failure_count(self):
        from reminder_engine.services.scheduler import JobFailureMonitor

        monitor = JobFailureMonitor(failure_threshold=2)
        monitor.record_failure("job", "first")
        monitor.record_failure("job", "second")

        monitor.record_success("job")

        assert monitor.failure_count("job") == 0
        assert "job" not in monitor.paused_jobs

    @pytest.mark.unit
    def test_failures_older_than_24h_are_forgotten(self):
        from reminder_engine.services.scheduler import JobFailureMonitor

        monitor = JobFailureMonitor(failure_threshold=2)
        start = datetime(2025, 4, 14, 12, 0, tzinfo=timezone.utc)

        with freeze_time(start):
            monitor.record_failure("job", "yesterday")

        with freeze_time(start + timedelta(hours=25)):
            should_pause = monitor.record_failure("job", "today")

        assert should_pause is False
        assert monitor.failure_count("job") == 1


class TestPendingNoteReminderJob:
    """Tests for the scheduled job wrapper."""

    @pytest.mark.unit
    def test_successful_run_returns_response_and_resets_failures(self):
        from reminder_engine.services import scheduler as scheduler_module
        from reminder_engine.services.reporter import RunReport

        monitor = scheduler_module.JobFailureMonitor(failure_threshold=2)
        monitor.record_failure(scheduler_module.REMINDER_JOB_ID, "earlier")
        report = RunReport(notes_found=2, reminders_sent=3, errors=0)

        with patch.object(scheduler_module, "job_monitor", monitor), \
             patch(
                 "reminder_engine.services.reminder_orchestrator.run_pending_note_reminders",
                 new=AsyncMock(return_value=report)
             ):
            result = asyncio.run(scheduler_module.pending_note_reminder_job())

        assert result["lembretesEnviados"] == 3
        assert monitor.failure_count(scheduler_module.REMINDER_JOB_ID) == 0

    @pytest.mark.unit
    def test_repeated_failures_pause_the_job(self):
        from reminder_engine.core.exceptions import SchedulerJobError
        from reminder_engine.services import scheduler as scheduler_module

        monitor = scheduler_module.JobFailureMonitor(failure_threshold=2)
        fake_scheduler = MagicMock()
        failing_run = AsyncMock(side_effect=RuntimeError("store unavailable"))

        with patch.object(scheduler_module, "job_monitor", monitor), \
             patch.object(scheduler_module, "scheduler", fake_scheduler), \
             patch(
                 "reminder_engine.services.reminder_orchestrator.run_pending_note_reminders",
                 new=failing_run
             ):
            with pytest.raises(SchedulerJobError) as first:
                asyncio.run(scheduler_module.pending_note_reminder_job())
            fake_scheduler.pause_job.assert_not_called()

            with pytest.raises(SchedulerJobError) as second:
                asyncio.run(scheduler_module.pending_note_reminder_job())

        fake_scheduler.pause_job.assert_called_once_with(scheduler_module.REMINDER_JOB_ID)
        assert first.value.details["threshold_exceeded"] is False
        assert second.value.details["threshold_exceeded"] is True
        assert second.value.details["last_error"] == "store unavailable"
