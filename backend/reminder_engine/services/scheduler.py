"""
Background Job Scheduler for pending note reminders.

Runs the reminder cycle on a cron schedule using APScheduler
(settings.reminder_cron, default 12:00 UTC daily).

Failure handling:
- Failures within the last 24 hours are tracked per job
- After `job_failure_alert_threshold` failures the job is paused
  and a CRITICAL log is emitted
- A successful run resets the failure count
"""
import logging
from collections import defaultdict
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional

from apscheduler.executors.asyncio import AsyncIOExecutor
from apscheduler.jobstores.memory import MemoryJobStore
from apscheduler.schedulers.asyncio import AsyncIOScheduler
from apscheduler.triggers.cron import CronTrigger

from reminder_engine.core.config import settings
from reminder_engine.core.exceptions import SchedulerJobError


logger = logging.getLogger(__name__)

REMINDER_JOB_ID = "pending_note_reminders"


# ==========================================
# Job Failure Monitor
# ==========================================

class JobFailureMonitor:
    """Track job failures and flag jobs that should be paused."""

    def __init__(self, failure_threshold: int = 2):
        self.failure_threshold = failure_threshold
        self.failed_jobs: Dict[str, List[datetime]] = defaultdict(list)
        self.paused_jobs: set = set()

    def record_success(self, job_id: str) -> None:
        """Record job success - reset failure count."""
        self.failed_jobs[job_id] = []
        self.paused_jobs.discard(job_id)

    def record_failure(self, job_id: str, error: str) -> bool:
        """
        Record job failure.

        Returns True if the job should be paused.
        """
        now = datetime.now(timezone.utc)
        self.failed_jobs[job_id].append(now)

        # Keep only failures from last 24 hours
        cutoff = now - timedelta(hours=24)
        self.failed_jobs[job_id] = [
            t for t in self.failed_jobs[job_id] if t > cutoff
        ]

        failure_count = len(self.failed_jobs[job_id])
        if failure_count >= self.failure_threshold:
            logger.critical(
                f"CRITICAL: Job {job_id} failed {failure_count} times. "
                f"Last error: {error}. Job paused."
            )
            self.paused_jobs.add(job_id)
            return True

        return False

    def failure_count(self, job_id: str) -> int:
        return len(self.failed_jobs.get(job_id, []))

    def get_status(self) -> Dict[str, Any]:
        """Get current failure status for all jobs."""
        return {
            job_id: {
                "failure_count": len(failures),
                "last_failure": failures[-1].isoformat() if failures else None,
                "is_paused": job_id in self.paused_jobs
            }
            for job_id, failures in self.failed_jobs.items()
        }


# Global job monitor
job_monitor = JobFailureMonitor(
    failure_threshold=settings.job_failure_alert_threshold
)


class ReminderScheduler:
    """Owns the AsyncIOScheduler and the reminder job."""

    def __init__(self, cron: Optional[str] = None, timezone_name: Optional[str] = None):
        self.scheduler: Optional[AsyncIOScheduler] = None
        self.is_running = False
        self.job_monitor = job_monitor
        self.timezone_name = timezone_name or settings.scheduler_timezone

        self.jobs_config = {
            REMINDER_JOB_ID: {
                "trigger": CronTrigger.from_crontab(
                    cron or settings.reminder_cron,
                    timezone=self.timezone_name
                ),
                "description": "Remind managers about stale pending notes"
            }
        }

    def create_scheduler(self) -> AsyncIOScheduler:
        """Create and configure the scheduler."""
        return AsyncIOScheduler(
            jobstores={"default": MemoryJobStore()},
            executors={"default": AsyncIOExecutor()},
            job_defaults={
                "coalesce": True,  # Combine missed runs into one
                "max_instances": 1,  # Never overlap two runs
                "misfire_grace_time": 300
            },
            timezone=self.timezone_name
        )

    def start(self) -> None:
        """Start the scheduler with the reminder job."""
        if self.is_running:
            logger.warning("Scheduler is already running")
            return

        self.scheduler = self.create_scheduler()
        self.scheduler.add_job(
            pending_note_reminder_job,
            self.jobs_config[REMINDER_JOB_ID]["trigger"],
            id=REMINDER_JOB_ID,
            name="Pending Note Reminders",
            replace_existing=True
        )
        self.scheduler.start()
        self.is_running = True
        logger.info("🚀 Reminder scheduler started")

        for job in self.scheduler.get_jobs():
            logger.info(f"  - {job.name}: Next run at {job.next_run_time}")

    def stop(self) -> None:
        """Stop the scheduler gracefully."""
        if self.scheduler and self.is_running:
            self.scheduler.shutdown(wait=False)
            self.is_running = False
            logger.info("🛑 Reminder scheduler stopped")

    def trigger_job(self, job_id: str = REMINDER_JOB_ID) -> bool:
        """Manually trigger a job to run immediately."""
        if not self.scheduler:
            logger.error("Scheduler not initialized")
            return False

        job = self.scheduler.get_job(job_id)
        if not job:
            logger.error(f"Job not found: {job_id}")
            return False

        job.modify(next_run_time=datetime.now(timezone.utc))
        logger.info(f"Manually triggered job: {job_id}")
        return True

    def pause_job(self, job_id: str) -> bool:
        """Pause a specific job."""
        if not self.scheduler:
            return False
        self.scheduler.pause_job(job_id)
        logger.info(f"Paused job: {job_id}")
        return True

    def resume_job(self, job_id: str) -> bool:
        """Resume a paused job."""
        if not self.scheduler:
            return False
        self.scheduler.resume_job(job_id)
        self.job_monitor.paused_jobs.discard(job_id)
        logger.info(f"Resumed job: {job_id}")
        return True

    def get_jobs_status(self) -> list:
        """Get status of all scheduled jobs."""
        if not self.scheduler:
            return []

        return [
            {
                "id": job.id,
                "name": job.name,
                "next_run_time": job.next_run_time.isoformat() if job.next_run_time else None,
            }
            for job in self.scheduler.get_jobs()
        ]

    def get_health_status(self) -> Dict[str, Any]:
        """Scheduler status and job failure information."""
        failed_jobs = self.job_monitor.get_status()
        has_failures = any(
            info["failure_count"] > 0
            for info in failed_jobs.values()
        )

        return {
            "status": "degraded" if has_failures else "healthy",
            "is_running": self.is_running,
            "jobs": self.get_jobs_status(),
            "failures": failed_jobs,
            "paused_jobs": list(self.job_monitor.paused_jobs)
        }


# ==========================================
# JOB IMPLEMENTATION
# ==========================================

async def pending_note_reminder_job() -> Dict[str, Any]:
    """
    Scheduled reminder run.

    Raises:
        SchedulerJobError: If the run fails (the failure is recorded first)
    """
    from reminder_engine.services.reminder_orchestrator import run_pending_note_reminders

    job_id = REMINDER_JOB_ID
    start_time = datetime.now(timezone.utc)
    logger.info("🔍 Starting scheduled pending note reminder run...")

    try:
        report = await run_pending_note_reminders()
    except Exception as e:
        logger.error(f"❌ Reminder run failed: {e}", exc_info=True)

        should_pause = job_monitor.record_failure(job_id, str(e))
        if should_pause:
            scheduler.pause_job(job_id)

        raise SchedulerJobError(
            f"Scheduled reminder run failed: {e}",
            job_id=job_id,
            failure_count=job_monitor.failure_count(job_id),
            threshold=job_monitor.failure_threshold,
            last_error=str(e)
        ) from e

    elapsed = (datetime.now(timezone.utc) - start_time).total_seconds()
    logger.info(
        f"✅ Reminder run completed in {elapsed:.2f}s: "
        f"{report.notes_found} notes, {report.reminders_sent} sent, {report.errors} errors"
    )
    job_monitor.record_success(job_id)

    return report.to_response()


# ==========================================
# GLOBAL SCHEDULER INSTANCE
# ==========================================

scheduler = ReminderScheduler()


def get_scheduler() -> ReminderScheduler:
    """Get the global scheduler instance."""
    return scheduler
