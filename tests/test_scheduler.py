import asyncio
from datetime import datetime, time

import pytest

from services.matcher import DueSubscriptionMatcher
from services.notification_service import NotificationService
from workers.dispatcher import SubscriptionDispatcher, TickReport
from workers.scheduler import SubscriptionScheduler
from helpers import FakeClock, make_sub, settle


class CountingDispatcher:
    """Records the time of every tick; optionally blocks until released."""

    def __init__(self, block=False):
        self.ticks = []
        self.release = asyncio.Event()
        if not block:
            self.release.set()

    async def run_tick(self, now=None):
        self.ticks.append(now)
        await self.release.wait()
        return TickReport(minute=time(now.hour, now.minute))


def _scheduler(dispatcher, clock, interval=60):
    return SubscriptionScheduler(dispatcher, interval_seconds=interval, clock=clock, sleep=clock.sleep)


@pytest.mark.asyncio
async def test_ticks_once_per_minute_on_the_boundary(clock):
    dispatcher = CountingDispatcher()
    scheduler = _scheduler(dispatcher, clock)

    scheduler.start()
    await clock.advance(180)
    await scheduler.stop()

    assert dispatcher.ticks == [
        datetime(2026, 10, 17, 8, 1),
        datetime(2026, 10, 17, 8, 2),
        datetime(2026, 10, 17, 8, 3),
    ]


@pytest.mark.asyncio
async def test_first_tick_waits_for_the_next_minute():
    clock = FakeClock(datetime(2026, 10, 17, 8, 0, 42))
    dispatcher = CountingDispatcher()
    scheduler = _scheduler(dispatcher, clock)

    scheduler.start()
    await clock.advance(17)
    assert dispatcher.ticks == []
    await clock.advance(1)
    await scheduler.stop()

    assert dispatcher.ticks == [datetime(2026, 10, 17, 8, 1)]


@pytest.mark.asyncio
async def test_double_start_keeps_a_single_timer(clock):
    dispatcher = CountingDispatcher()
    scheduler = _scheduler(dispatcher, clock)

    first = scheduler.start()
    second = scheduler.start()
    await clock.advance(120)
    await scheduler.stop()

    assert first is second
    assert len(dispatcher.ticks) == 2


@pytest.mark.asyncio
async def test_stop_halts_future_ticks(clock, store, sender):
    await store.create(make_sub(at="08:01"))
    await store.create(make_sub(at="08:03"))
    dispatcher = SubscriptionDispatcher(DueSubscriptionMatcher(store, clock=clock), NotificationService(sender))
    scheduler = _scheduler(dispatcher, clock)

    scheduler.start()
    await clock.advance(60)
    assert len(sender.calls) == 1

    await scheduler.stop()
    assert scheduler.running is False
    await clock.advance(600)

    assert len(sender.calls) == 1


@pytest.mark.asyncio
async def test_stop_and_start_are_noops_when_repeated(clock):
    dispatcher = CountingDispatcher()
    scheduler = _scheduler(dispatcher, clock)

    await scheduler.stop()
    scheduler.start()
    await scheduler.stop()
    await scheduler.stop()
    assert scheduler.running is False

    scheduler.start()
    await clock.advance(60)
    await scheduler.stop()
    assert len(dispatcher.ticks) == 1


@pytest.mark.asyncio
async def test_slow_tick_does_not_hold_back_the_timer(clock):
    dispatcher = CountingDispatcher(block=True)
    scheduler = _scheduler(dispatcher, clock)

    scheduler.start()
    await clock.advance(120)
    # both ticks started although the first one never finished
    assert len(dispatcher.ticks) == 2
    assert scheduler.status()["in_flight"] == 2

    await scheduler.stop()
    dispatcher.release.set()
    assert await scheduler.drain(timeout=1) is True
    assert scheduler.status()["in_flight"] == 0


@pytest.mark.asyncio
async def test_stop_does_not_cancel_in_flight_tick(clock):
    dispatcher = CountingDispatcher(block=True)
    scheduler = _scheduler(dispatcher, clock)

    scheduler.start()
    await clock.advance(60)
    await scheduler.stop()
    assert scheduler.status()["in_flight"] == 1

    dispatcher.release.set()
    await settle()
    assert scheduler.status()["in_flight"] == 0
    assert scheduler.last_report is not None


@pytest.mark.asyncio
async def test_drain_times_out_on_stuck_tick(clock):
    dispatcher = CountingDispatcher(block=True)
    scheduler = _scheduler(dispatcher, clock)

    scheduler.start()
    await clock.advance(60)
    await scheduler.stop()

    assert await scheduler.drain(timeout=0.01) is False
    dispatcher.release.set()
    await scheduler.drain()


@pytest.mark.asyncio
async def test_status_reports_last_tick(clock, store, sender):
    await store.create(make_sub(at="08:01"))
    dispatcher = SubscriptionDispatcher(DueSubscriptionMatcher(store, clock=clock), NotificationService(sender))
    scheduler = _scheduler(dispatcher, clock)

    scheduler.start()
    await clock.advance(60)
    status = scheduler.status()
    await scheduler.stop()

    assert status["running"] is True
    assert status["ticks_started"] == 1
    assert status["last_report"]["minute"] == "08:01"
    assert status["last_report"]["delivered"] == 1


def test_interval_must_be_positive(clock):
    with pytest.raises(ValueError):
        SubscriptionScheduler(CountingDispatcher(), interval_seconds=0, clock=clock)


@pytest.mark.asyncio
async def test_early_wakeup_does_not_repeat_a_minute(store, sender):
    clock = FakeClock(datetime(2026, 10, 17, 8, 0, 0, 500))
    sleeps = []

    async def early_sleep(seconds):
        sleeps.append(seconds)
        await clock.sleep(max(seconds - 0.001, 0))

    await store.create(make_sub(recipient="+15550000001", at="08:00"))
    await store.create(make_sub(recipient="+15550000002", at="08:01"))
    dispatcher = SubscriptionDispatcher(DueSubscriptionMatcher(store, clock=clock), NotificationService(sender))
    scheduler = SubscriptionScheduler(dispatcher, interval_seconds=60, clock=clock, sleep=early_sleep)

    scheduler.start()
    await clock.advance(61)
    await scheduler.stop()

    assert scheduler.ticks_started == 1
    assert scheduler.last_report.minute == time(8, 1)
    assert [recipient for recipient, _ in sender.calls] == ["+15550000002"]
    # the second sleep targets 08:02, not the 08:01 boundary just fired
    assert sleeps[1] > 59
