"""Test doubles shared by the test modules: simulated clock and SMS sender."""
import asyncio
from datetime import datetime, timedelta

from models.subscription import SubscriptionCreate
from tools.notifier import SendResult


async def settle(rounds: int = 20):
    """Let every ready task run until the loop is quiet."""
    for _ in range(rounds):
        await asyncio.sleep(0)


class FakeClock:
    """
    Simulated wall clock. `sleep` parks the caller until `advance` moves the
    clock past its deadline, so minutes pass instantly in tests.
    """

    def __init__(self, start: datetime):
        self.now = start
        self._sleepers = []
        self._seq = 0

    def __call__(self) -> datetime:
        return self.now

    async def sleep(self, seconds: float) -> None:
        fut = asyncio.get_running_loop().create_future()
        self._seq += 1
        entry = (self.now + timedelta(seconds=seconds), self._seq, fut)
        self._sleepers.append(entry)
        try:
            await fut
        finally:
            if entry in self._sleepers:
                self._sleepers.remove(entry)

    async def advance(self, seconds: float) -> None:
        target = self.now + timedelta(seconds=seconds)
        await settle()
        while True:
            due = [s for s in self._sleepers if s[0] <= target and not s[2].done()]
            if not due:
                break
            entry = min(due, key=lambda s: (s[0], s[1]))
            self._sleepers.remove(entry)
            self.now = entry[0]
            entry[2].set_result(None)
            await settle()
        self.now = target
        await settle()


class RecordingSender:
    """SMS sender double: records every call; can reject or blow up per recipient."""

    def __init__(self, reject=(), explode=()):
        self.calls = []
        self.reject = set(reject)
        self.explode = set(explode)

    async def send(self, recipient: str, body: str) -> SendResult:
        self.calls.append((recipient, body))
        if recipient in self.explode:
            raise RuntimeError(f"gateway timeout for {recipient}")
        if recipient in self.reject:
            return SendResult(ok=False, reason="invalid 'To' phone number")
        return SendResult(ok=True, sid=f"SM{len(self.calls)}")


def make_sub(recipient="+15550000001", origin="A01", destination="Shady Grove", at="08:15"):
    return SubscriptionCreate(recipient=recipient, origin_station=origin, destination=destination, notify_at=at)
