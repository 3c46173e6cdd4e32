"""
Staleness Selector.

Finds pending notes older than the configured reminder interval.

Key Rules:
- Cutoff = now - interval hours
- Selected: status == "pendente" AND created_at < cutoff
- Oldest first; the digest's "top 5" relies on this order
- A read failure aborts the run (no retry)
"""
import logging
from datetime import datetime, timedelta
from typing import Any, List, Optional

from reminder_engine.core.config import settings
from reminder_engine.core.database import SupabaseClient
from reminder_engine.core.exceptions import ConfigurationError, DatabaseError
from reminder_engine.models.enums import NoteStatus
from reminder_engine.models.schemas import PendingNote


logger = logging.getLogger(__name__)

CONFIG_KEY = "intervalo_cobranca_nota_horas"


def parse_threshold_hours(raw_value: Any, default: Optional[int] = None) -> int:
    """
    Validate a stored reminder interval.

    Absent or falsy values (None, 0, "") fall back to the default.

    Raises:
        ConfigurationError: If the value is not an integer or is negative
    """
    default = default if default is not None else settings.default_reminder_interval_hours

    if not raw_value:
        return default

    if isinstance(raw_value, bool) or (
        isinstance(raw_value, float) and not raw_value.is_integer()
    ):
        raise ConfigurationError(
            "Reminder interval must be a number of hours",
            config_key=CONFIG_KEY,
            expected_type="int",
            actual_value=raw_value
        )

    try:
        hours = int(raw_value)
    except (TypeError, ValueError):
        raise ConfigurationError(
            "Reminder interval must be a number of hours",
            config_key=CONFIG_KEY,
            expected_type="int",
            actual_value=raw_value
        )

    if hours < 0:
        raise ConfigurationError(
            "Reminder interval cannot be negative",
            config_key=CONFIG_KEY,
            expected_type="positive int",
            actual_value=raw_value
        )

    return hours or default


def get_threshold_hours(db: SupabaseClient) -> int:
    """
    Read the reminder interval from configuracoes.

    A failed config read is not fatal: the default interval is used.
    """
    try:
        raw_value = db.get_reminder_interval_hours()
    except DatabaseError as e:
        logger.warning(
            f"Could not read {CONFIG_KEY} ({e.message}); "
            f"using default of {settings.default_reminder_interval_hours}h"
        )
        return settings.default_reminder_interval_hours

    return parse_threshold_hours(raw_value)


def compute_cutoff(threshold_hours: int, now: datetime) -> datetime:
    """Instant before which a pending note counts as stale."""
    return now - timedelta(hours=threshold_hours)


def select_stale_notes(
    db: SupabaseClient,
    threshold_hours: int,
    now: datetime
) -> List[PendingNote]:
    """
    Select pending notes older than the threshold, oldest first.

    The store filters and orders; rows are validated and the predicate
    and order re-checked here so a lax store cannot leak newer notes.

    Args:
        db: Repository gateway
        threshold_hours: Reminder interval in hours
        now: The run's captured instant (UTC)

    Returns:
        Stale notes in ascending created_at order

    Raises:
        DatabaseError: If the read fails (fatal for the run)
        DataIntegrityError: If a row cannot be validated
    """
    cutoff = compute_cutoff(threshold_hours, now)

    logger.info(
        f"⏰ Looking for notes pending for more than {threshold_hours}h "
        f"(since {cutoff.isoformat()})"
    )

    rows = db.get_pending_notes_before(cutoff)
    notes = [PendingNote.from_row(row) for row in rows]

    selected = [
        note for note in notes
        if note.status == NoteStatus.PENDENTE.value and note.created_at < cutoff
    ]
    if len(selected) != len(notes):
        logger.warning(
            f"Store returned {len(notes) - len(selected)} note(s) outside the "
            f"staleness predicate; ignoring them"
        )

    # Stable sort keeps the store's order for equal timestamps
    selected.sort(key=lambda note: note.created_at)
    return selected
