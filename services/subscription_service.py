from datetime import datetime, time, timezone
from typing import Dict, List, Optional
import asyncio
import logging

from core.clock import minute_window
from models.subscription import Subscription, SubscriptionCreate

logger = logging.getLogger(__name__)


class InMemorySubscriptionService:
    """
    Dict-backed subscription store for local dev and tests.

    Exposes the same async API as SubscriptionDBService so the scheduler and
    routes do not care which one they were given.
    """

    def __init__(self):
        self.subscriptions: Dict[int, Subscription] = {}
        self._next_id = 1
        self._lock = asyncio.Lock()

    async def create(self, data: SubscriptionCreate) -> Subscription:
        async with self._lock:
            sub = Subscription(
                id=self._next_id,
                created_at=datetime.now(timezone.utc),
                **data.model_dump(),
            )
            self.subscriptions[sub.id] = sub
            self._next_id += 1
        logger.info("Created subscription id=%s notify_at=%s", sub.id, sub.notify_at)
        return sub

    async def get(self, subscription_id: int) -> Optional[Subscription]:
        return self.subscriptions.get(subscription_id)

    async def update(self, subscription_id: int, changes: dict) -> Optional[Subscription]:
        async with self._lock:
            current = self.subscriptions.get(subscription_id)
            if current is None:
                return None
            # id and created_at are immutable
            changes = {k: v for k, v in changes.items() if k not in ("id", "created_at")}
            updated = current.model_copy(update=changes)
            self.subscriptions[subscription_id] = updated
        return updated

    async def delete(self, subscription_id: int) -> bool:
        async with self._lock:
            return self.subscriptions.pop(subscription_id, None) is not None

    async def list(self, limit: int = 100, offset: int = 0) -> List[Subscription]:
        ordered = sorted(self.subscriptions.values(), key=lambda s: s.id)
        return ordered[offset:offset + limit]

    async def find_due(self, minute: time) -> List[Subscription]:
        """Subscriptions whose notify_at falls inside `minute`, by notify_at then id."""
        start, end = minute_window(minute)
        due = [s for s in self.subscriptions.values() if start <= s.notify_at <= end]
        return sorted(due, key=lambda s: (s.notify_at, s.id))
