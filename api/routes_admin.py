from datetime import time
from typing import Optional

from fastapi import APIRouter, Depends, Query

from api.deps import get_container
from core.container import ServiceContainer
from core.response import ok

router = APIRouter()


@router.get("/scheduler")
async def scheduler_status(c: ServiceContainer = Depends(get_container)):
    """Admin: is the reminder scheduler armed, and what did the last tick do."""
    return ok(c.scheduler.status())


@router.post("/scheduler/start")
async def scheduler_start(c: ServiceContainer = Depends(get_container)):
    """Admin: arm the scheduler. Calling it while running changes nothing."""
    c.scheduler.start()
    return ok(c.scheduler.status())


@router.post("/scheduler/stop")
async def scheduler_stop(c: ServiceContainer = Depends(get_container)):
    """Admin: disarm the scheduler. A tick already running is allowed to finish."""
    await c.scheduler.stop()
    return ok(c.scheduler.status())


@router.post("/scheduler/tick")
async def scheduler_tick(
    at: Optional[time] = Query(None, description="HH:MM to dispatch for; defaults to now"),
    c: ServiceContainer = Depends(get_container),
):
    """
    Admin: run one dispatch tick immediately and return its report.

    Useful for re-sending a missed minute by hand. Subscriptions due at `at`
    are texted again even if they were already notified today.
    """
    report = await c.dispatcher.run_tick(at)
    return ok(report.summary())


@router.get("/notifications/recent")
async def recent_notifications(c: ServiceContainer = Depends(get_container)):
    """Last 20 SMS attempts made by this process."""
    return ok(c.notifications.recent_notifications())
