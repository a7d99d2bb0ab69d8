"""Domain-specific exceptions."""

from __future__ import annotations

from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError


class ServiceError(Exception):
    pass


class SubmissionValidationError(ServiceError):
    """Malformed or missing submission fields."""

    def __init__(self, message: str, errors: list[dict] | None = None) -> None:
        super().__init__(message)
        self.errors = errors or []


class QuotaExceeded(ServiceError):
    def __init__(self, account_id: str, limit: int, used: int) -> None:
        super().__init__(f"Monthly submission limit reached: {used}/{limit}.")
        self.account_id = account_id
        self.limit = limit
        self.used = used


class TransientStoreError(ServiceError):
    pass


class AccountNotFound(ServiceError):
    pass


class SubmissionNotFound(ServiceError):
    pass


class UnknownTier(ServiceError):
    def __init__(self, tier: str) -> None:
        super().__init__(f"Unknown subscription tier: {tier}")
        self.tier = tier


@contextmanager
def store_errors(operation: str) -> Iterator[None]:
    """Re-raise storage failures as :class:`TransientStoreError`."""

    try:
        yield
    except SQLAlchemyError as exc:
        raise TransientStoreError(f"{operation} failed: {exc.__class__.__name__}") from exc


__all__ = [
    "AccountNotFound",
    "QuotaExceeded",
    "ServiceError",
    "SubmissionNotFound",
    "SubmissionValidationError",
    "TransientStoreError",
    "UnknownTier",
    "store_errors",
]
