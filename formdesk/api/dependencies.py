"""Request-scoped dependencies: database session, settings and caller identity."""

from __future__ import annotations

from collections.abc import AsyncIterator

from fastapi import Header, HTTPException, Request, status
from sqlalchemy.ext.asyncio import AsyncSession

from formdesk.config import FormDeskSettings
from formdesk.db.session import Database
from formdesk.services.exceptions import store_errors


async def get_session(request: Request) -> AsyncIterator[AsyncSession]:
    """Yield one session per request; anything not committed is rolled back."""
    database: Database = request.app.state.database
    async with database.session() as session:
        yield session


async def commit(session: AsyncSession) -> None:
    with store_errors("commit"):
        await session.commit()


def get_app_settings(request: Request) -> FormDeskSettings:
    settings: FormDeskSettings = request.app.state.settings
    return settings


def current_account_id(
    request: Request,
    x_account_id: str | None = Header(default=None, alias="X-Account-ID"),
) -> str:
    """Account id asserted by the identity provider in front of the dashboard API."""
    if not x_account_id or not x_account_id.strip():
        detail = request.app.state.i18n.gettext(
            "auth.missing_account", locale=request.headers.get("accept-language")
        )
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail=detail)
    return x_account_id.strip()


__all__ = ["commit", "current_account_id", "get_app_settings", "get_session"]
