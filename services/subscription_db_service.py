"""
DB-backed subscription store using async SQLAlchemy.

- create  -> INSERT ... then refresh
- update  -> SELECT by id, assign changed columns, COMMIT
- delete  -> DELETE by id
- list    -> SELECT ... ORDER BY id LIMIT/OFFSET
- find_due -> SELECT ... WHERE notify_at BETWEEN HH:MM:00 AND HH:MM:59.999999

Every method opens its own session from the injected session maker, so the
same instance is safe to share between HTTP requests and scheduler ticks.
Connectivity failures are raised as StoreUnavailableError.
"""

from datetime import time
from typing import List, Optional

from sqlalchemy import delete as sa_delete, select
from sqlalchemy.exc import DBAPIError, OperationalError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from core.clock import minute_window
from core.exceptions import StoreUnavailableError
from models.db_models import Subscription as SubscriptionRow
from models.subscription import Subscription, SubscriptionCreate
import logging

logger = logging.getLogger(__name__)

_MUTABLE_FIELDS = ("recipient", "origin_station", "destination", "notify_at")


class SubscriptionDBService:
    def __init__(self, session_maker: async_sessionmaker[AsyncSession]):
        self.session_maker = session_maker

    async def create(self, data: SubscriptionCreate) -> Subscription:
        try:
            async with self.session_maker() as session:
                row = SubscriptionRow(**data.model_dump())
                session.add(row)
                await session.commit()
                await session.refresh(row)
                logger.info("DB created subscription id=%s notify_at=%s", row.id, row.notify_at)
                return Subscription.model_validate(row)
        except (OperationalError, DBAPIError) as e:
            logger.error("DB create error: %s", e)
            raise StoreUnavailableError(str(e)) from e

    async def get(self, subscription_id: int) -> Optional[Subscription]:
        try:
            async with self.session_maker() as session:
                row = await session.get(SubscriptionRow, subscription_id)
                return Subscription.model_validate(row) if row else None
        except (OperationalError, DBAPIError) as e:
            logger.error("DB get error: %s", e)
            raise StoreUnavailableError(str(e)) from e

    async def update(self, subscription_id: int, changes: dict) -> Optional[Subscription]:
        try:
            async with self.session_maker() as session:
                row = await session.get(SubscriptionRow, subscription_id)
                if row is None:
                    return None
                for field in _MUTABLE_FIELDS:
                    if field in changes:
                        setattr(row, field, changes[field])
                await session.commit()
                await session.refresh(row)
                return Subscription.model_validate(row)
        except (OperationalError, DBAPIError) as e:
            logger.error("DB update error: %s", e)
            raise StoreUnavailableError(str(e)) from e

    async def delete(self, subscription_id: int) -> bool:
        try:
            async with self.session_maker() as session:
                result = await session.execute(
                    sa_delete(SubscriptionRow).where(SubscriptionRow.id == subscription_id)
                )
                await session.commit()
                return (result.rowcount or 0) > 0
        except (OperationalError, DBAPIError) as e:
            logger.error("DB delete error: %s", e)
            raise StoreUnavailableError(str(e)) from e

    async def list(self, limit: int = 100, offset: int = 0) -> List[Subscription]:
        try:
            async with self.session_maker() as session:
                stmt = select(SubscriptionRow).order_by(SubscriptionRow.id).limit(limit).offset(offset)
                result = await session.execute(stmt)
                return [Subscription.model_validate(r) for r in result.scalars().all()]
        except (OperationalError, DBAPIError) as e:
            logger.error("DB list error: %s", e)
            raise StoreUnavailableError(str(e)) from e

    async def find_due(self, minute: time) -> List[Subscription]:
        """
        Equivalent to:
        SELECT * FROM subscriptions
        WHERE notify_at BETWEEN '08:15:00' AND '08:15:59.999999'
        ORDER BY notify_at, id
        """
        start, end = minute_window(minute)
        try:
            async with self.session_maker() as session:
                stmt = (
                    select(SubscriptionRow)
                    .where(SubscriptionRow.notify_at >= start)
                    .where(SubscriptionRow.notify_at <= end)
                    .order_by(SubscriptionRow.notify_at, SubscriptionRow.id)
                )
                result = await session.execute(stmt)
                return [Subscription.model_validate(r) for r in result.scalars().all()]
        except (OperationalError, DBAPIError) as e:
            logger.error("DB find_due error: %s", e)
            raise StoreUnavailableError(str(e)) from e
