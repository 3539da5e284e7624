import sys
from datetime import datetime
from pathlib import Path

import pytest
import pytest_asyncio
from httpx import ASGITransport, AsyncClient


# Ensure project root is on sys.path so `services.*`, `workers.*` imports work
ROOT_DIR = Path(__file__).resolve().parents[1]
if str(ROOT_DIR) not in sys.path:
    sys.path.insert(0, str(ROOT_DIR))


# Explicitly enable pytest-asyncio plugin for async tests/fixtures
pytest_plugins = ("pytest_asyncio",)


from config.settings import Settings
from core.container import build_container
from services.subscription_service import InMemorySubscriptionService
from helpers import FakeClock, RecordingSender


@pytest.fixture()
def test_settings():
    return Settings(
        USE_DB=False,
        DATABASE_URL="disabled",
        SCHEDULER_ENABLED=False,
        TWILIO_ACCOUNT_SID=None,
        TWILIO_AUTH_TOKEN=None,
        TWILIO_FROM_NUMBER=None,
        WMATA_API_KEY=None,
        REMINDER_INCLUDE_PREDICTIONS=False,
        USE_SSM=False,
    )


@pytest.fixture()
def clock():
    """Simulated clock starting exactly on a minute boundary (08:00:00)."""
    return FakeClock(datetime(2026, 10, 17, 8, 0, 0))


@pytest.fixture()
def store():
    return InMemorySubscriptionService()


@pytest.fixture()
def sender():
    return RecordingSender()


@pytest.fixture()
def container(test_settings, store, sender, clock):
    return build_container(test_settings, store=store, sender=sender, clock=clock, sleep=clock.sleep)


@pytest_asyncio.fixture()
async def client(test_settings, container):
    """Async test client for the API, backed by the in-memory container."""
    from main import create_app

    app = create_app(settings=test_settings, container=container)
    async with AsyncClient(transport=ASGITransport(app=app), base_url="http://testserver") as ac:
        yield ac
    await container.scheduler.stop()
