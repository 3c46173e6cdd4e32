"""
Dispatcher: fans one organization's digest out to its managers.

Recipients are sent to one at a time. A failed send (returned error or
raised exception) is counted and the loop moves on; nothing is retried
within a run.
"""
import logging
from dataclasses import dataclass
from typing import List

from reminder_engine.models.schemas import Manager
from reminder_engine.services.notifications import NotificationChannel


logger = logging.getLogger(__name__)


@dataclass
class DispatchOutcome:
    """Send counters for one organization."""
    sent: int = 0
    errors: int = 0

    @property
    def attempted(self) -> int:
        return self.sent + self.errors


async def dispatch_digest(
    channel: NotificationChannel,
    recipients: List[Manager],
    message: str
) -> DispatchOutcome:
    """
    Send the same digest to every recipient.

    Args:
        channel: Outbound notification capability
        recipients: Eligible managers, in query order
        message: Rendered digest text

    Returns:
        DispatchOutcome with sent and error counts
    """
    outcome = DispatchOutcome()

    for manager in recipients:
        try:
            logger.info(f"📤 Sending to {manager.display_name} ({manager.numero_whatsapp})")
            result = await channel.send(manager.numero_whatsapp, message)
        except Exception as e:
            logger.error(f"❌ Error sending to {manager.display_name}: {e}")
            outcome.errors += 1
            continue

        if result.success:
            logger.info(f"✅ Reminder sent to {manager.display_name}")
            outcome.sent += 1
        else:
            logger.error(f"❌ Error sending to {manager.display_name}: {result.error}")
            outcome.errors += 1

    return outcome
