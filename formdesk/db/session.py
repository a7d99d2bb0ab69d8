"""Engine and per-request session lifecycle for the form store."""

from __future__ import annotations

from collections.abc import AsyncIterator
from contextlib import asynccontextmanager
from typing import Any

from sqlalchemy import text
from sqlalchemy.engine import make_url
from sqlalchemy.ext.asyncio import AsyncEngine, AsyncSession, async_sessionmaker, create_async_engine

from formdesk.config import DatabaseSettings, FormDeskSettings, get_settings
from formdesk.db.base import Base
from formdesk.logging import logger
from formdesk.services.exceptions import store_errors


def engine_options(db_cfg: DatabaseSettings) -> dict[str, Any]:
    """Keyword arguments for ``create_async_engine`` suited to the DSN's dialect."""

    options: dict[str, Any] = {"echo": db_cfg.echo}
    if make_url(db_cfg.dsn).get_backend_name() == "sqlite":
        # SQLite pools are not sized; used for local runs only.
        return options
    options.update(
        pool_size=db_cfg.pool_size,
        max_overflow=db_cfg.max_overflow,
        pool_recycle=db_cfg.pool_recycle,
        pool_pre_ping=db_cfg.pool_pre_ping,
    )
    return options


class Database:
    """Owns the engine; hands out one session per request.

    The engine is created on first use so that building the app (and its
    tests) never opens a connection.
    """

    def __init__(self, settings: FormDeskSettings | None = None) -> None:
        self.settings = settings or get_settings()
        self._engine: AsyncEngine | None = None
        self._sessions: async_sessionmaker[AsyncSession] | None = None

    def _build(self) -> tuple[AsyncEngine, async_sessionmaker[AsyncSession]]:
        if self._engine is None or self._sessions is None:
            db_cfg = self.settings.database
            self._engine = create_async_engine(db_cfg.dsn, **engine_options(db_cfg))
            self._sessions = async_sessionmaker(bind=self._engine, expire_on_commit=False, autoflush=False)
            logger.info(
                "db_engine_initialized",
                dsn=make_url(db_cfg.dsn).render_as_string(hide_password=True),
            )
        return self._engine, self._sessions

    @property
    def engine(self) -> AsyncEngine:
        return self._build()[0]

    @property
    def sessions(self) -> async_sessionmaker[AsyncSession]:
        return self._build()[1]

    @asynccontextmanager
    async def session(self) -> AsyncIterator[AsyncSession]:
        """Yield a session; callers commit explicitly, anything else is rolled back."""

        async with self.sessions() as session:
            try:
                yield session
            except Exception:
                await session.rollback()
                raise

    async def ping(self) -> None:
        with store_errors("ping"):
            async with self.engine.connect() as conn:
                await conn.execute(text("SELECT 1"))

    async def create_schema(self) -> None:
        async with self.engine.begin() as conn:
            await conn.run_sync(Base.metadata.create_all)
        logger.info("db_schema_created", tables=sorted(Base.metadata.tables))

    async def dispose(self) -> None:
        if self._engine is None:
            return
        await self._engine.dispose()
        self._engine = None
        self._sessions = None
        logger.info("db_engine_disposed")


__all__ = ["Database", "engine_options"]
