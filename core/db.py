"""
Async database engine and session management.

Purpose:
- Create SQLAlchemy async engine (aiomysql driver by default)
- Provide async session factory for the DB-backed subscription store
- Provide Base declarative class for ORM models

The engine is owned by the application container and disposed on shutdown,
after the scheduler has stopped, so no tick can hit a closed pool.
"""
from sqlalchemy import text
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, create_async_engine, async_sessionmaker
from sqlalchemy.orm import declarative_base
from typing import Optional
import logging

logger = logging.getLogger(__name__)

Base = declarative_base()


def build_engine(url: Optional[str], echo: bool = False) -> Optional[AsyncEngine]:
	"""Create an async engine, or return None when the URL is empty or "disabled"."""
	if not url or url.startswith("disabled"):
		logger.warning("DATABASE_URL is 'disabled' – DB engine will not be created; using in-memory store.")
		return None
	engine = create_async_engine(url, echo=echo, future=True)
	logger.info("Async DB engine created for %s", engine.url.render_as_string(hide_password=True))
	return engine


def build_session_maker(engine: AsyncEngine) -> async_sessionmaker[AsyncSession]:
	return async_sessionmaker(engine, expire_on_commit=False, class_=AsyncSession)


async def create_tables(engine: AsyncEngine) -> None:
	"""Create tables for all registered models (development convenience)."""
	# make sure models are registered on Base.metadata
	from models import db_models  # noqa: F401

	async with engine.begin() as conn:
		await conn.run_sync(Base.metadata.create_all)


async def ping(engine: AsyncEngine) -> None:
	"""Run SELECT 1; raises if the DB is unreachable."""
	async with engine.connect() as conn:
		await conn.execute(text("SELECT 1"))
