"""
Reminder API Routes.

Provides endpoints for the pending note reminder run:
- Run trigger (HTTP invocation, e.g. from an external cron)
- Admin preview of the digests a run would send
- Scheduler health and resume after a failure pause
"""
import logging
from datetime import datetime, timezone
from typing import Optional

from fastapi import APIRouter, Query
from fastapi.responses import JSONResponse, Response

from reminder_engine.core.config import settings
from reminder_engine.core.exceptions import ReminderException
from reminder_engine.services.reminder_orchestrator import (
    preview_pending_note_reminders,
    run_pending_note_reminders,
)
from reminder_engine.services.scheduler import REMINDER_JOB_ID, get_scheduler


logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/reminders", tags=["Reminders"])

CORS_ALLOWED_HEADERS = ["authorization", "x-client-info", "apikey", "content-type"]

CORS_HEADERS = {
    "Access-Control-Allow-Origin": settings.cors_origin_list[0],
    "Access-Control-Allow-Headers": ", ".join(CORS_ALLOWED_HEADERS),
}


def _failed_run(message: str, status_code: int = 500) -> JSONResponse:
    return JSONResponse(
        status_code=status_code,
        content={"success": False, "error": message},
    )


@router.post(
    "/pending-notes",
    summary="Run Pending Note Reminders",
    description="Send digest reminders about stale pending notes to each organization's managers"
)
async def trigger_pending_note_reminders():
    """
    Run one reminder cycle.

    No body is required. Send failures are reported in `erros`;
    only a failed read of the pending notes fails the whole run.
    """
    try:
        report = await run_pending_note_reminders()
    except ReminderException as e:
        logger.error(f"❌ Reminder run failed: {e.message}", exc_info=True)
        return _failed_run(e.message, e.status_code)
    except Exception as e:
        logger.error(f"❌ Reminder run failed: {e}", exc_info=True)
        return _failed_run(str(e))

    return report.to_response()


@router.options("/pending-notes", include_in_schema=False)
async def pending_note_reminders_options() -> Response:
    """
    Bare OPTIONS (no Origin / Access-Control-Request-Method headers).

    Real browser preflights are answered by CORSMiddleware before
    reaching this route.
    """
    return Response(status_code=200, headers=CORS_HEADERS)


@router.get(
    "/admin/pending-notes",
    summary="Preview Pending Note Reminders",
    description="Preview the digests a run would send, without sending anything"
)
async def preview_pending_notes(
    now: Optional[datetime] = Query(None, description="Evaluate as of this instant (UTC)")
):
    """Preview stale notes per organization and their rendered digests."""
    if now is not None and now.tzinfo is None:
        now = now.replace(tzinfo=timezone.utc)

    try:
        return preview_pending_note_reminders(now=now)
    except ReminderException as e:
        return _failed_run(e.message, e.status_code)


@router.get(
    "/admin/scheduler",
    summary="Scheduler Health",
    description="Reminder job schedule and failure status"
)
async def scheduler_health() -> dict:
    """Scheduler status for monitoring."""
    return get_scheduler().get_health_status()


@router.post(
    "/admin/scheduler/resume",
    summary="Resume Reminder Job",
    description="Resume the reminder job after it was paused by repeated failures"
)
async def resume_reminder_job():
    """Resume the paused reminder job and clear its paused flag."""
    if not get_scheduler().resume_job(REMINDER_JOB_ID):
        return _failed_run("Scheduler is not running on this instance", status_code=409)

    logger.info(f"▶️ Reminder job {REMINDER_JOB_ID} resumed by admin")
    return {"success": True, "job_id": REMINDER_JOB_ID, "resumed": True}
