"""CORS policy: the public form is open to any site, the dashboard is not."""

from __future__ import annotations

from collections.abc import Sequence

from fastapi.middleware.cors import CORSMiddleware
from starlette.types import ASGIApp, Receive, Scope, Send

PUBLIC_FORM_PREFIX = "/v1/forms/"


class FormCORSMiddleware:
    """Route CORS handling by path.

    Requests under ``/v1/forms/`` come from widgets embedded on customer
    sites and accept any origin without credentials. Everything else only
    answers the configured dashboard origins.
    """

    def __init__(
        self,
        app: ASGIApp,
        *,
        dashboard_origins: Sequence[str],
        expose_headers: Sequence[str] = (),
        max_age: int = 600,
    ) -> None:
        self.public = CORSMiddleware(
            app,
            allow_origins=["*"],
            allow_methods=["POST"],
            allow_headers=["Content-Type", "Accept-Language"],
            expose_headers=expose_headers,
            max_age=max_age,
        )
        self.dashboard = CORSMiddleware(
            app,
            allow_origins=dashboard_origins,
            allow_methods=["*"],
            allow_headers=["*"],
            expose_headers=expose_headers,
            max_age=max_age,
        )

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] == "http" and scope["path"].startswith(PUBLIC_FORM_PREFIX):
            await self.public(scope, receive, send)
        else:
            await self.dashboard(scope, receive, send)


__all__ = ["FormCORSMiddleware", "PUBLIC_FORM_PREFIX"]
