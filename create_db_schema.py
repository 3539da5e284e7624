import asyncio

from config.settings import settings
from core.db import build_engine, create_tables


async def main():
    """
    One-time script to create the subscriptions table in the configured database.
    Uses a temporary async engine built from settings.DATABASE_URL.
    For managed environments prefer `alembic upgrade head`.
    """
    engine = build_engine(settings.DATABASE_URL)
    if engine is None:
        raise RuntimeError(f"DATABASE_URL is not configured correctly: {settings.DATABASE_URL}")

    await create_tables(engine)
    await engine.dispose()
    print("Database schema created/updated successfully.")


if __name__ == "__main__":
    asyncio.run(main())
