"""
Recipient Resolver: managers of an organization who can receive a digest.
"""
import logging
from typing import List

from reminder_engine.core.database import SupabaseClient
from reminder_engine.models.schemas import Manager


logger = logging.getLogger(__name__)


def resolve_recipients(db: SupabaseClient, empresa_id: str) -> List[Manager]:
    """
    Eligible managers for an organization.

    The query already filters on opt-in and non-null number; rows are
    re-checked here so blank numbers and opted-out profiles are dropped.

    Raises:
        DatabaseError: If the profiles query fails
    """
    rows = db.get_notifiable_managers(empresa_id)
    managers = [Manager.from_row(row) for row in rows]

    eligible = [manager for manager in managers if manager.is_eligible]
    dropped = len(managers) - len(eligible)
    if dropped:
        logger.debug(f"Dropped {dropped} manager(s) without a usable WhatsApp number")

    return eligible
