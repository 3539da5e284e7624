"""
Service container.

Builds every long-lived collaborator (store, sender, metro client, matcher,
dispatcher, scheduler) from settings once, at app creation. The host process
owns the container and calls `startup()` / `shutdown()` around its lifetime;
nothing here is a module-level singleton.

Shutdown order matters: stop the scheduler, let in-flight ticks finish,
then dispose the DB engine.
"""
import asyncio
import logging
from dataclasses import dataclass
from typing import Optional

from sqlalchemy.ext.asyncio import AsyncEngine

from config.settings import Settings
from core.clock import Clock, system_clock
from core.db import build_engine, build_session_maker, create_tables
from services.matcher import DueSubscriptionMatcher
from services.notification_service import NotificationService, Sender, build_sender
from services.subscription_db_service import SubscriptionDBService
from services.subscription_service import InMemorySubscriptionService
from tools.metro import MetroAPI
from workers.dispatcher import ReminderMessageBuilder, SubscriptionDispatcher
from workers.scheduler import Sleep, SubscriptionScheduler

logger = logging.getLogger(__name__)


@dataclass
class ServiceContainer:
    settings: Settings
    store: object
    notifications: NotificationService
    matcher: DueSubscriptionMatcher
    dispatcher: SubscriptionDispatcher
    scheduler: SubscriptionScheduler
    metro: Optional[MetroAPI] = None
    engine: Optional[AsyncEngine] = None

    async def startup(self) -> None:
        if self.engine is not None:
            try:
                await create_tables(self.engine)
            except Exception as e:
                # not fatal: every tick queries the store again
                logger.warning("DB initialization failed on startup: %s", e)
        if self.settings.SCHEDULER_ENABLED:
            self.scheduler.start()

    async def shutdown(self) -> None:
        await self.scheduler.stop()
        await self.scheduler.drain(timeout=self.settings.SCHEDULER_DRAIN_TIMEOUT)
        if self.engine is not None:
            await self.engine.dispose()
            logger.info("DB engine disposed")


def build_container(settings: Settings, store=None, sender: Optional[Sender] = None,
                    metro: Optional[MetroAPI] = None, clock: Optional[Clock] = None,
                    sleep: Optional[Sleep] = None) -> ServiceContainer:
    """
    Wire collaborators from settings. Any of store/sender/metro/clock/sleep can be
    passed in to override the configured one (tests do this).
    """
    engine = None
    if store is None:
        if settings.db_enabled:
            engine = build_engine(settings.DATABASE_URL, echo=settings.DEBUG)
            store = SubscriptionDBService(build_session_maker(engine))
        else:
            logger.info("USE_DB is off; subscriptions are kept in memory")
            store = InMemorySubscriptionService()

    if metro is None and settings.WMATA_API_KEY:
        metro = MetroAPI(settings.WMATA_API_KEY, use_https=settings.WMATA_USE_HTTPS)

    clock = clock or system_clock(settings.SCHEDULER_TIMEZONE)
    notifications = NotificationService(sender or build_sender(settings))
    matcher = DueSubscriptionMatcher(store, clock=clock)
    messages = ReminderMessageBuilder(metro if settings.REMINDER_INCLUDE_PREDICTIONS else None)
    dispatcher = SubscriptionDispatcher(matcher, notifications, messages)
    scheduler = SubscriptionScheduler(
        dispatcher,
        interval_seconds=settings.SCHEDULER_INTERVAL_SECONDS,
        clock=clock,
        sleep=sleep or asyncio.sleep,
    )

    return ServiceContainer(
        settings=settings,
        store=store,
        notifications=notifications,
        matcher=matcher,
        dispatcher=dispatcher,
        scheduler=scheduler,
        metro=metro,
        engine=engine,
    )
