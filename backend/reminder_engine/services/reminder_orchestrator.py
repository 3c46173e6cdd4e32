"""
Reminder Orchestrator for pending note approvals.

The main coordinator of a reminder run:
1. Read the reminder interval (default 24h)
2. Select pending notes older than the interval, oldest first
3. Group them by organization
4. Per organization: resolve managers, render the digest, dispatch
5. Report totals

The run's instant is captured once and passed to every stage.

Error policy:
- Stale-note read failure or malformed note: the run fails
- Manager query failure or no eligible manager: organization skipped
- Failed send: counted in `errors`, the run continues
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from reminder_engine.core.database import SupabaseClient, get_supabase_client
from reminder_engine.core.exceptions import DatabaseError, DataIntegrityError
from reminder_engine.services.aggregation import group_by_organization
from reminder_engine.services.digest import build_digest
from reminder_engine.services.dispatcher import dispatch_digest
from reminder_engine.services.notifications import NotificationChannel, get_notification_channel
from reminder_engine.services.recipients import resolve_recipients
from reminder_engine.services.reporter import RunReport
from reminder_engine.services.staleness import (
    compute_cutoff,
    get_threshold_hours,
    select_stale_notes,
)
from reminder_engine.models.enums import UrgencyTier


logger = logging.getLogger(__name__)


async def run_pending_note_reminders(
    db: Optional[SupabaseClient] = None,
    channel: Optional[NotificationChannel] = None,
    now: Optional[datetime] = None
) -> RunReport:
    """
    Run one reminder cycle end to end.

    Args:
        db: Repository gateway (defaults to the shared Supabase client)
        channel: Notification channel (defaults to the configured transport)
        now: Run instant, UTC (defaults to the current time)

    Returns:
        RunReport with notes found, reminders sent and send errors

    Raises:
        DatabaseError: If pending notes cannot be read
        DataIntegrityError: If a pending note row is malformed
        ConfigurationError: If the stored interval is invalid
    """
    db = db or get_supabase_client()
    channel = channel or get_notification_channel(db)
    now = now or datetime.now(timezone.utc)

    logger.info("🔔 Checking pending notes to remind managers")

    threshold_hours = get_threshold_hours(db)
    notes = select_stale_notes(db, threshold_hours, now)
    report = RunReport(notes_found=len(notes))

    if not notes:
        logger.info(f"✅ No note pending for more than {threshold_hours}h")
        return report

    logger.info(f"📋 Found {len(notes)} stale pending note(s)")

    groups = group_by_organization(notes)
    report.organizations = len(groups)

    for empresa_id, group in groups.items():
        logger.info(f"🏢 Processing organization {empresa_id} with {group.count} note(s)")

        try:
            recipients = resolve_recipients(db, empresa_id)
        except (DatabaseError, DataIntegrityError) as e:
            logger.warning(f"⚠️ Could not load managers for organization {empresa_id}: {e.message}")
            report.skip_organization(empresa_id, f"manager query failed: {e.message}")
            continue

        if not recipients:
            logger.warning(f"⚠️ No eligible manager for organization {empresa_id}")
            report.skip_organization(empresa_id, "no eligible manager")
            continue

        logger.info(f"👥 Found {len(recipients)} manager(s)")

        message = build_digest(group, now)
        outcome = await dispatch_digest(channel, recipients, message)
        report.merge(outcome)

    logger.info(
        f"✅ Run finished: {report.reminders_sent} sent, {report.errors} errors, "
        f"{len(report.skipped)} organization(s) skipped"
    )
    return report


def preview_pending_note_reminders(
    db: Optional[SupabaseClient] = None,
    now: Optional[datetime] = None
) -> Dict[str, Any]:
    """
    Show what a run would send, without sending anything.

    Returns per-organization counts, eligible manager count and the
    rendered digest.
    """
    db = db or get_supabase_client()
    now = now or datetime.now(timezone.utc)

    threshold_hours = get_threshold_hours(db)
    notes = select_stale_notes(db, threshold_hours, now)
    groups = group_by_organization(notes)

    organizations = []
    for empresa_id, group in groups.items():
        try:
            recipient_count: Optional[int] = len(resolve_recipients(db, empresa_id))
        except (DatabaseError, DataIntegrityError) as e:
            logger.warning(f"Preview: manager query failed for {empresa_id}: {e.message}")
            recipient_count = None

        tiers = group.tier_counts(now)
        organizations.append({
            "empresa_id": empresa_id,
            "notes": group.count,
            "total_amount": str(group.total_amount),
            "critical": tiers[UrgencyTier.CRITICAL],
            "urgent": tiers[UrgencyTier.URGENT],
            "normal": tiers[UrgencyTier.NORMAL],
            "eligible_managers": recipient_count,
            "digest": build_digest(group, now),
        })

    return {
        "generated_at": now.isoformat(),
        "threshold_hours": threshold_hours,
        "cutoff": compute_cutoff(threshold_hours, now).isoformat(),
        "notes_found": len(notes),
        "organizations": organizations,
    }
