"""
Due-subscription matcher.

Selects the subscriptions whose notify_at falls in the current minute. "Now"
is truncated to the minute before the store is queried, so ticks fired at
08:15:01 and 08:15:59 see the same result set.
"""
from datetime import datetime, time
from typing import List, Optional, Protocol, Union
import logging

from core.clock import Clock, system_clock, truncate_to_minute
from models.subscription import Subscription

logger = logging.getLogger(__name__)


class DueQuery(Protocol):
    async def find_due(self, minute: time) -> List[Subscription]: ...


class DueSubscriptionMatcher:
    def __init__(self, store: DueQuery, clock: Optional[Clock] = None):
        self.store = store
        self.clock = clock or system_clock()

    def current_minute(self, now: Union[datetime, time, None] = None) -> time:
        """Minute-truncated time of day, from the override or the clock."""
        return truncate_to_minute(now if now is not None else self.clock())

    async def find_due(self, now: Union[datetime, time, None] = None) -> List[Subscription]:
        """
        Return subscriptions due at `now` (or the clock's current time), ordered
        by notify_at then id. Store errors propagate to the caller.
        """
        minute = self.current_minute(now)
        rows = await self.store.find_due(minute)

        seen = set()
        due: List[Subscription] = []
        for sub in rows:
            if sub.id in seen:
                continue
            seen.add(sub.id)
            due.append(sub)
        logger.debug("Matched %d subscription(s) for %s", len(due), minute.strftime("%H:%M"))
        return due
