"""
SMS senders.

- TwilioSmsSender: real SMS through the Twilio REST API
- ConsoleSender: logs the message instead (dev fallback when Twilio is not configured)

Both expose `async send(recipient, body) -> SendResult`. A delivery rejected by
the provider comes back as SendResult(ok=False, reason=...); unexpected errors
(network, bugs) are raised and left to the caller.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from twilio.base.exceptions import TwilioException
from twilio.rest import Client as TwilioClient

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SendResult:
    ok: bool
    sid: Optional[str] = None
    reason: Optional[str] = None


class TwilioSmsSender:
    def __init__(self, account_sid: str, auth_token: str, from_number: str, client: Optional[TwilioClient] = None):
        if not (account_sid and auth_token and from_number):
            raise ValueError("Twilio credentials (account sid, auth token, from number) are required")
        self.from_number = from_number
        self.client = client or TwilioClient(account_sid, auth_token)

    async def send(self, recipient: str, body: str) -> SendResult:
        """`recipient` should be a full E.164 number, e.g. "+15551234567"."""
        try:
            # twilio's client is blocking; keep it off the event loop
            message = await asyncio.to_thread(
                self.client.messages.create,
                to=recipient,
                from_=self.from_number,
                body=body,
            )
        except TwilioException as e:
            logger.warning("[SMS][Twilio FAILED] To %s: %s", recipient, e)
            return SendResult(ok=False, reason=str(e))
        logger.info("[SMS][Twilio] To %s sid=%s", recipient, message.sid)
        return SendResult(ok=True, sid=message.sid)


class ConsoleSender:
    async def send(self, recipient: str, body: str) -> SendResult:
        logger.info("[SMS][CONSOLE] To %s: %s", recipient, body)
        return SendResult(ok=True)
