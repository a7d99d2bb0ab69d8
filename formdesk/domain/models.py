"""Pydantic models shared across service and API layers."""

from __future__ import annotations

from datetime import date, datetime
from typing import Literal

from pydantic import BaseModel, ConfigDict, EmailStr, Field, field_validator

Tier = Literal["free", "pro", "enterprise"]


class SubmissionPayload(BaseModel):
    """Fields a visitor posts through the embedded contact form."""

    model_config = ConfigDict(str_strip_whitespace=True)

    name: str = Field(min_length=1, max_length=255)
    email: EmailStr
    message: str = Field(min_length=1)
    phone: str | None = Field(default=None, max_length=64)
    company: str | None = Field(default=None, max_length=255)

    @field_validator("phone", "company", mode="before")
    @classmethod
    def _blank_to_none(cls, value):
        if isinstance(value, str) and not value.strip():
            return None
        return value


class AccountModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    email: str
    subscription_tier: Tier
    monthly_submission_limit: int
    created_at: datetime
    updated_at: datetime


class SubmissionModel(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    account_id: str
    name: str
    email: str
    phone: str | None = None
    company: str | None = None
    message: str
    submitted_at: datetime
    is_read: bool
    notes: str | None = None


class UsageSnapshot(BaseModel):
    month: date
    submission_count: int
    limit: int
    remaining: int
    usage_percentage: float


class AdmissionResult(BaseModel):
    submission_id: str
    month: date
    submission_count: int


class DashboardOverview(BaseModel):
    total_submissions: int
    unread_submissions: int
    usage: UsageSnapshot


__all__ = [
    "AccountModel",
    "AdmissionResult",
    "DashboardOverview",
    "SubmissionModel",
    "SubmissionPayload",
    "Tier",
    "UsageSnapshot",
]
