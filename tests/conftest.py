"""Shared pytest fixtures for database-backed service tests."""

from __future__ import annotations

from contextlib import asynccontextmanager

import pytest
import pytest_asyncio
from sqlalchemy import create_engine, text
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from formdesk.config import FormDeskSettings, QuotaSettings
from formdesk.db.base import Base
from formdesk.services.exceptions import store_errors


class _AsyncSessionWrapper:
    def __init__(self, sync_session) -> None:
        self._sync = sync_session

    async def execute(self, *args, **kwargs):
        return self._sync.execute(*args, **kwargs)

    async def get(self, *args, **kwargs):
        return self._sync.get(*args, **kwargs)

    def add(self, obj) -> None:
        self._sync.add(obj)

    def add_all(self, objs) -> None:
        self._sync.add_all(objs)

    async def delete(self, obj) -> None:
        self._sync.delete(obj)

    async def flush(self) -> None:
        self._sync.flush()

    async def commit(self) -> None:
        self._sync.commit()

    async def rollback(self) -> None:
        self._sync.rollback()

    async def close(self) -> None:
        self._sync.close()


class WrappedDatabase:
    """Stands in for ``Database`` and always hands out the same wrapped session."""

    def __init__(self, session: _AsyncSessionWrapper) -> None:
        self._session = session
        self.disposed = False

    @asynccontextmanager
    async def session(self):
        try:
            yield self._session
        except Exception:
            await self._session.rollback()
            raise

    async def ping(self) -> None:
        with store_errors("ping"):
            self._session._sync.execute(text("SELECT 1"))

    async def create_schema(self) -> None:
        return None

    async def dispose(self) -> None:
        self.disposed = True


@pytest.fixture
def settings() -> FormDeskSettings:
    return FormDeskSettings(quota=QuotaSettings(timezone="UTC"))


@pytest.fixture
def sync_session():
    engine = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(engine)
    SessionLocal = sessionmaker(bind=engine, expire_on_commit=False)
    session = SessionLocal()
    try:
        yield session
    finally:
        session.close()
        engine.dispose()


@pytest_asyncio.fixture
async def session(sync_session):
    yield _AsyncSessionWrapper(sync_session)



@pytest.fixture
def database(sync_session) -> WrappedDatabase:
    return WrappedDatabase(_AsyncSessionWrapper(sync_session))
