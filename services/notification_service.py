# services/notification_service.py
from collections import deque
from datetime import datetime, timezone
from typing import Protocol
import logging

from config.settings import Settings
from tools.notifier import ConsoleSender, SendResult, TwilioSmsSender

logger = logging.getLogger(__name__)


class Sender(Protocol):
    async def send(self, recipient: str, body: str) -> SendResult: ...


class NotificationService:
    """
    Thin wrapper around an SMS sender that remembers recent sends.

    Errors raised by the sender are not caught here; the dispatcher decides
    how a failed send is recorded.
    """

    def __init__(self, sender: Sender, history_size: int = 20):
        self.sender = sender
        self.sent_notifications: deque = deque(maxlen=history_size)

    async def send(self, recipient: str, body: str) -> SendResult:
        try:
            result = await self.sender.send(recipient, body)
        except Exception as e:
            self._remember(recipient, body, ok=False, reason=str(e))
            raise
        self._remember(recipient, body, ok=result.ok, reason=result.reason)
        return result

    def _remember(self, recipient: str, body: str, ok: bool, reason: str | None):
        self.sent_notifications.append({
            "recipient": recipient,
            "message": body,
            "ok": ok,
            "reason": reason,
            "at": datetime.now(timezone.utc).isoformat(),
        })

    def recent_notifications(self):
        """Most recent notifications, oldest first."""
        return list(self.sent_notifications)


def build_sender(settings: Settings) -> Sender:
    """Twilio when fully configured, console otherwise."""
    if settings.twilio_configured:
        logger.info("Using Twilio SMS sender (from=%s)", settings.TWILIO_FROM_NUMBER)
        return TwilioSmsSender(
            settings.TWILIO_ACCOUNT_SID,
            settings.TWILIO_AUTH_TOKEN,
            settings.TWILIO_FROM_NUMBER,
        )
    logger.warning("Twilio credentials not set; SMS will be logged to the console only.")
    return ConsoleSender()
