"""Application entrypoint."""

from __future__ import annotations

from contextlib import asynccontextmanager

import uvicorn
from fastapi import FastAPI, Request

from formdesk.api.cors import FormCORSMiddleware
from formdesk.api.errors import register_error_handlers
from formdesk.api.routes import router as v1_router
from formdesk.config import FormDeskSettings, get_settings
from formdesk.db.session import Database
from formdesk.i18n.service import I18nService
from formdesk.logging import (
    REQUEST_ID_HEADER,
    bind_request_context,
    clear_request_context,
    configure_logging,
    logger,
)


def create_app(
    settings: FormDeskSettings | None = None,
    database: Database | None = None,
) -> FastAPI:
    settings = settings or get_settings()
    database = database or Database(settings=settings)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        if settings.database.create_schema:
            await database.create_schema()
        logger.info("api_starting", environment=settings.environment, version=settings.version)
        try:
            yield
        finally:
            await database.dispose()

    app = FastAPI(title=settings.app_name, version=settings.version, lifespan=lifespan)
    app.state.settings = settings
    app.state.database = database
    app.state.i18n = I18nService(default_locale=settings.default_language)

    app.add_middleware(
        FormCORSMiddleware,
        dashboard_origins=settings.api.cors_origins,
        expose_headers=[REQUEST_ID_HEADER],
    )
    register_error_handlers(app, app.state.i18n)

    @app.middleware("http")
    async def request_context(request: Request, call_next):
        request_id = bind_request_context(
            request.method, request.url.path, request.headers.get(REQUEST_ID_HEADER)
        )
        try:
            response = await call_next(request)
        finally:
            clear_request_context()
        response.headers[REQUEST_ID_HEADER] = request_id
        return response

    @app.get("/healthz", tags=["health"])
    def healthz() -> dict[str, str]:
        return {"status": "ok"}

    @app.get("/readyz", tags=["health"])
    async def readyz(request: Request) -> dict[str, str]:
        await request.app.state.database.ping()
        return {"status": "ready"}

    app.include_router(v1_router)
    return app


def main() -> None:
    settings = get_settings()
    configure_logging(settings.log_level)
    uvicorn.run(create_app(settings), host=settings.api.host, port=settings.api.port, log_config=None)


if __name__ == "__main__":
    main()
