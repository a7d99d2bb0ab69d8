"""Translate service exceptions into HTTP responses."""

from __future__ import annotations

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from formdesk.i18n.service import I18nService
from formdesk.logging import logger
from formdesk.services.exceptions import (
    AccountNotFound,
    QuotaExceeded,
    ServiceError,
    SubmissionNotFound,
    SubmissionValidationError,
    TransientStoreError,
    UnknownTier,
)

# exception type -> (status code, error code, i18n key)
ERROR_MAP: dict[type[ServiceError], tuple[int, str, str]] = {
    SubmissionValidationError: (
        status.HTTP_422_UNPROCESSABLE_ENTITY,
        "validation_error",
        "submission.invalid",
    ),
    QuotaExceeded: (status.HTTP_403_FORBIDDEN, "quota_exceeded", "quota.exceeded"),
    AccountNotFound: (status.HTTP_404_NOT_FOUND, "account_not_found", "account.not_found"),
    SubmissionNotFound: (
        status.HTTP_404_NOT_FOUND,
        "submission_not_found",
        "submission.not_found",
    ),
    UnknownTier: (status.HTTP_400_BAD_REQUEST, "unknown_tier", "tier.unknown"),
    TransientStoreError: (
        status.HTTP_503_SERVICE_UNAVAILABLE,
        "store_unavailable",
        "store.unavailable",
    ),
}


def _resolve(exc: ServiceError) -> tuple[int, str, str]:
    for exc_type in type(exc).__mro__:
        if exc_type in ERROR_MAP:
            return ERROR_MAP[exc_type]
    return status.HTTP_500_INTERNAL_SERVER_ERROR, "internal_error", "store.unavailable"


def register_error_handlers(app: FastAPI, i18n: I18nService) -> None:
    @app.exception_handler(ServiceError)
    async def handle_service_error(request: Request, exc: ServiceError) -> JSONResponse:
        status_code, code, key = _resolve(exc)
        locale = request.headers.get("accept-language")
        body: dict = {
            "error": code,
            "detail": i18n.gettext(key, locale=locale, tier=getattr(exc, "tier", "")),
        }
        if isinstance(exc, SubmissionValidationError) and exc.errors:
            body["fields"] = exc.errors
        if isinstance(exc, QuotaExceeded):
            body["limit"] = exc.limit
            body["used"] = exc.used

        if status_code >= 500:
            logger.error(
                "request_failed",
                error=code,
                exception=str(exc),
                cause=repr(exc.__cause__) if exc.__cause__ else None,
            )
        else:
            logger.info("request_refused", error=code)
        return JSONResponse(status_code=status_code, content=body)


__all__ = ["ERROR_MAP", "register_error_handlers"]
