"""SQLAlchemy models for accounts, submissions and monthly usage."""

from __future__ import annotations

from datetime import date, datetime

from sqlalchemy import (
    Boolean,
    Date,
    DateTime,
    Enum,
    ForeignKey,
    Integer,
    String,
    Text,
    UniqueConstraint,
)
from sqlalchemy.orm import Mapped, mapped_column, relationship

from formdesk.db.base import Base
from formdesk.utils.datetime import utc_now

SUBSCRIPTION_TIERS = ("free", "pro", "enterprise")


class Account(Base):
    __tablename__ = "accounts"

    email: Mapped[str] = mapped_column(String(255), nullable=False)
    subscription_tier: Mapped[str] = mapped_column(
        Enum(*SUBSCRIPTION_TIERS, name="subscription_tier"), default="free", nullable=False
    )
    monthly_submission_limit: Mapped[int] = mapped_column(Integer, default=25, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    submissions: Mapped[list["Submission"]] = relationship(
        back_populates="account", cascade="all, delete-orphan", passive_deletes=True
    )
    usage_counters: Mapped[list["UsageCounter"]] = relationship(
        back_populates="account", cascade="all, delete-orphan", passive_deletes=True
    )


class Submission(Base):
    __tablename__ = "contact_submissions"

    account_id: Mapped[str] = mapped_column(
        ForeignKey("accounts.id", ondelete="CASCADE"), index=True, nullable=False
    )
    name: Mapped[str] = mapped_column(String(255), nullable=False)
    email: Mapped[str] = mapped_column(String(320), nullable=False)
    phone: Mapped[str | None] = mapped_column(String(64))
    company: Mapped[str | None] = mapped_column(String(255))
    message: Mapped[str] = mapped_column(Text, nullable=False)
    submitted_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, index=True
    )
    is_read: Mapped[bool] = mapped_column(Boolean, default=False, nullable=False)
    notes: Mapped[str | None] = mapped_column(Text)

    account: Mapped[Account] = relationship(back_populates="submissions")


class UsageCounter(Base):
    __tablename__ = "monthly_usage"
    __table_args__ = (
        UniqueConstraint("account_id", "month", name="uq_monthly_usage_account_month"),
    )

    account_id: Mapped[str] = mapped_column(
        ForeignKey("accounts.id", ondelete="CASCADE"), nullable=False
    )
    month: Mapped[date] = mapped_column(Date, nullable=False)
    submission_count: Mapped[int] = mapped_column(Integer, default=0, nullable=False)
    created_at: Mapped[datetime] = mapped_column(DateTime(timezone=True), default=utc_now)
    updated_at: Mapped[datetime] = mapped_column(
        DateTime(timezone=True), default=utc_now, onupdate=utc_now
    )

    account: Mapped[Account] = relationship(back_populates="usage_counters")


__all__ = ["Account", "SUBSCRIPTION_TIERS", "Submission", "UsageCounter"]
