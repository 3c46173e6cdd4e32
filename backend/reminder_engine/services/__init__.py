# Services - Business Logic Layer
"""
Pending Note Reminder Services.

This module provides the reminder run:
- Staleness selection
- Organization grouping and urgency tiers
- Digest rendering
- Recipient resolution and dispatch
- Run reporting and scheduling
"""

# Staleness Selection
from .staleness import (
    parse_threshold_hours,
    get_threshold_hours,
    compute_cutoff,
    select_stale_notes,
)

# Aggregation
from .aggregation import (
    OrganizationGroup,
    elapsed_hours,
    classify_urgency,
    group_by_organization,
)

# Digest Rendering
from .digest import (
    format_brl,
    format_mes_competencia,
    format_elapsed,
    build_action_token,
    build_action_link,
    build_digest,
)

# Recipients & Delivery
from .recipients import resolve_recipients
from .notifications import (
    NotificationTransport,
    NotificationResult,
    NotificationChannel,
    SupabaseFunctionChannel,
    WebhookChannel,
    LogOnlyChannel,
    get_notification_channel,
)
from .dispatcher import DispatchOutcome, dispatch_digest

# Reporting & Orchestration
from .reporter import RunReport, SkippedOrganization
from .reminder_orchestrator import (
    run_pending_note_reminders,
    preview_pending_note_reminders,
)

__all__ = [
    # Staleness
    "parse_threshold_hours",
    "get_threshold_hours",
    "compute_cutoff",
    "select_stale_notes",
    # Aggregation
    "OrganizationGroup",
    "elapsed_hours",
    "classify_urgency",
    "group_by_organization",
    # Digest
    "format_brl",
    "format_mes_competencia",
    "format_elapsed",
    "build_action_token",
    "build_action_link",
    "build_digest",
    # Recipients & Delivery
    "resolve_recipients",
    "NotificationTransport",
    "NotificationResult",
    "NotificationChannel",
    "SupabaseFunctionChannel",
    "WebhookChannel",
    "LogOnlyChannel",
    "get_notification_channel",
    "DispatchOutcome",
    "dispatch_digest",
    # Reporting & Orchestration
    "RunReport",
    "SkippedOrganization",
    "run_pending_note_reminders",
    "preview_pending_note_reminders",
]
