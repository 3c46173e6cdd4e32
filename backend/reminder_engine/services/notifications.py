"""
Notification channels for pending note reminders.

A channel delivers one text to one WhatsApp number:
- Supabase edge function (send-notification-gestores), the default
- HTTP webhook (via httpx)
- Log only, for development when no transport is configured

The engine only depends on NotificationChannel.send(), so tests inject
a fake channel that records calls and scripts outcomes.
"""
import asyncio
import hashlib
import logging
from abc import ABC, abstractmethod
from dataclasses import dataclass
from datetime import datetime, timezone
from enum import Enum
from typing import Optional

import httpx

from reminder_engine.core.config import settings
from reminder_engine.core.database import SupabaseClient, get_supabase_client


# Configure logging
logger = logging.getLogger(__name__)


class NotificationTransport(Enum):
    """Supported notification transports."""
    SUPABASE_FUNCTION = "supabase_function"
    WEBHOOK = "webhook"
    LOG = "log"


@dataclass
class NotificationResult:
    """Result of a notification attempt."""
    success: bool
    transport: NotificationTransport
    message_id: Optional[str] = None
    error: Optional[str] = None


class NotificationChannel(ABC):
    """Outbound capability: send(contact, text) -> outcome."""

    transport: NotificationTransport

    @abstractmethod
    async def send(self, phone_number: str, message: str) -> NotificationResult:
        """Deliver a message; failures may be returned or raised."""


# ==========================================
# SUPABASE EDGE FUNCTION
# ==========================================

class SupabaseFunctionChannel(NotificationChannel):
    """Sends through the send-notification-gestores edge function."""

    transport = NotificationTransport.SUPABASE_FUNCTION

    def __init__(self, db: SupabaseClient, function_name: Optional[str] = None):
        self.db = db
        self.function_name = function_name or settings.notification_function_name

    async def send(self, phone_number: str, message: str) -> NotificationResult:
        try:
            # supabase-py is synchronous; keep the event loop free
            loop = asyncio.get_running_loop()
            await loop.run_in_executor(
                None,
                self.db.invoke_function,
                self.function_name,
                {"phoneNumber": phone_number, "message": message}
            )

            return NotificationResult(
                success=True,
                transport=self.transport,
                message_id=f"fn-{datetime.now(timezone.utc).timestamp()}"
            )

        except Exception as e:
            logger.error(f"Edge function {self.function_name} failed: {e}")
            return NotificationResult(
                success=False,
                transport=self.transport,
                error=str(e)
            )


# ==========================================
# HTTP WEBHOOK
# ==========================================

class WebhookChannel(NotificationChannel):
    """POSTs {phoneNumber, message} to a WhatsApp gateway webhook."""

    transport = NotificationTransport.WEBHOOK

    def __init__(
        self,
        url: str,
        token: Optional[str] = None,
        timeout: float = 30.0,
        transport: Optional[httpx.AsyncBaseTransport] = None
    ):
        self.url = url
        self.token = token
        self.timeout = timeout
        self._http_transport = transport

    async def send(self, phone_number: str, message: str) -> NotificationResult:
        headers = {"Content-Type": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"

        try:
            async with httpx.AsyncClient(
                timeout=self.timeout,
                transport=self._http_transport
            ) as client:
                response = await client.post(
                    self.url,
                    json={"phoneNumber": phone_number, "message": message},
                    headers=headers
                )

            if response.is_success:
                return NotificationResult(
                    success=True,
                    transport=self.transport,
                    message_id=response.headers.get(
                        "X-Message-Id",
                        f"wh-{datetime.now(timezone.utc).timestamp()}"
                    )
                )

            return NotificationResult(
                success=False,
                transport=self.transport,
                error=f"Webhook error: {response.status_code} - {response.text}"
            )

        except httpx.HTTPError as e:
            logger.error(f"Webhook send failed: {e}")
            return NotificationResult(
                success=False,
                transport=self.transport,
                error=str(e)
            )


# ==========================================
# DEVELOPMENT FALLBACK
# ==========================================

class LogOnlyChannel(NotificationChannel):
    """Logs instead of sending; reports success."""

    transport = NotificationTransport.LOG

    async def send(self, phone_number: str, message: str) -> NotificationResult:
        logger.warning(f"WhatsApp not configured. Would send to: {phone_number}")
        logger.debug(message)

        return NotificationResult(
            success=True,
            transport=self.transport,
            message_id=f"dev-{hashlib.md5(message.encode()).hexdigest()[:8]}"
        )


def get_notification_channel(db: Optional[SupabaseClient] = None) -> NotificationChannel:
    """Build the channel selected by settings.notification_transport."""
    transport = NotificationTransport(settings.notification_transport)

    if transport == NotificationTransport.WEBHOOK:
        if not settings.webhook_enabled:
            logger.warning("Webhook transport selected but NOTIFICATION_WEBHOOK_URL is not set")
            return LogOnlyChannel()
        return WebhookChannel(
            url=settings.notification_webhook_url,
            token=settings.notification_webhook_token,
            timeout=settings.notification_timeout_seconds
        )

    if transport == NotificationTransport.SUPABASE_FUNCTION:
        return SupabaseFunctionChannel(db or get_supabase_client())

    return LogOnlyChannel()
