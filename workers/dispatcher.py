"""
Reminder dispatch: one tick of the subscription scheduler.

Each tick:
- asks the matcher for subscriptions due in the current minute
- sends one SMS per match, in matcher order
- turns every send into a DispatchOutcome, so one bad phone number never
  stops the rest of the batch

A store failure skips the whole tick; the next tick is the retry.
Nothing is retried within a tick and no "already sent" state is kept.
"""
import logging
from dataclasses import asdict, dataclass, field
from datetime import datetime, time
from typing import List, Optional, Union

from services.matcher import DueSubscriptionMatcher
from services.notification_service import NotificationService
from models.subscription import Subscription
from tools.metro import MetroAPI, arrival_sort_key, format_arrival

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class DispatchOutcome:
    subscription_id: int
    recipient: str
    delivered: bool
    error: Optional[str] = None


@dataclass
class TickReport:
    minute: time
    outcomes: List[DispatchOutcome] = field(default_factory=list)
    store_error: Optional[str] = None

    @property
    def matched(self) -> int:
        return len(self.outcomes)

    @property
    def delivered(self) -> int:
        return sum(1 for o in self.outcomes if o.delivered)

    @property
    def failed(self) -> int:
        return sum(1 for o in self.outcomes if not o.delivered)

    def summary(self) -> dict:
        return {
            "minute": self.minute.strftime("%H:%M"),
            "matched": self.matched,
            "delivered": self.delivered,
            "failed": self.failed,
            "store_error": self.store_error,
            "outcomes": [asdict(o) for o in self.outcomes],
        }


class ReminderMessageBuilder:
    """
    Builds the SMS body. With a MetroAPI client it appends the next arrivals
    at the origin station heading to the destination; any lookup problem
    falls back to the plain text.
    """

    def __init__(self, metro: Optional[MetroAPI] = None, max_trains: int = 3):
        self.metro = metro
        self.max_trains = max_trains

    async def build(self, sub: Subscription) -> str:
        base = f"Reminder: upcoming train to {sub.destination}"
        if self.metro is None:
            return base
        try:
            predictions = await self.metro.get_predictions(sub.origin_station)
        except Exception as e:
            logger.warning("Prediction lookup failed for %s: %s", sub.origin_station, e)
            return base

        wanted = sub.destination.strip().lower()
        trains = [
            p for p in predictions
            if wanted in {p.destination_name.lower(), p.destination.lower(), (p.destination_code or "").lower()}
        ]
        if not trains:
            return base
        trains.sort(key=arrival_sort_key)
        arrivals = ", ".join(format_arrival(p.minutes) for p in trains[:self.max_trains])
        return f"{base} from {sub.origin_station}. Next trains: {arrivals}"


class SubscriptionDispatcher:
    def __init__(self, matcher: DueSubscriptionMatcher, notifications: NotificationService,
                 messages: Optional[ReminderMessageBuilder] = None):
        self.matcher = matcher
        self.notifications = notifications
        self.messages = messages or ReminderMessageBuilder()

    async def run_tick(self, now: Union[datetime, time, None] = None) -> TickReport:
        minute = self.matcher.current_minute(now)
        report = TickReport(minute=minute)

        try:
            due = await self.matcher.find_due(minute)
        except Exception as e:
            logger.exception("Due-subscription query failed for %s; skipping tick", minute.strftime("%H:%M"))
            report.store_error = str(e) or e.__class__.__name__
            return report

        if not due:
            logger.info("No due subscriptions at %s", minute.strftime("%H:%M"))
            return report

        for sub in due:
            report.outcomes.append(await self._dispatch_one(sub))

        logger.info(
            "Tick %s: matched=%d delivered=%d failed=%d",
            minute.strftime("%H:%M"), report.matched, report.delivered, report.failed,
        )
        return report

    async def _dispatch_one(self, sub: Subscription) -> DispatchOutcome:
        try:
            body = await self.messages.build(sub)
            result = await self.notifications.send(sub.recipient, body)
        except Exception as e:
            logger.exception("Failed to process subscription %s", sub.id)
            return DispatchOutcome(sub.id, sub.recipient, delivered=False, error=str(e) or e.__class__.__name__)

        if not result.ok:
            logger.error("SMS for subscription %s to %s rejected: %s", sub.id, sub.recipient, result.reason)
            return DispatchOutcome(sub.id, sub.recipient, delivered=False, error=result.reason)

        logger.info("Sent SMS for subscription %s to %s", sub.id, sub.recipient)
        return DispatchOutcome(sub.id, sub.recipient, delivered=True)
