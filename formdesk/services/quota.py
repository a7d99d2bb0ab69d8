"""Monthly submission quota tracking."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import date, datetime

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from formdesk.config import FormDeskSettings, get_settings
from formdesk.db.models.core import Account, UsageCounter
from formdesk.domain.models import UsageSnapshot
from formdesk.logging import logger
from formdesk.services.exceptions import AccountNotFound, store_errors
from formdesk.utils.datetime import month_start, utc_now


@dataclass(slots=True)
class Reservation:
    """Outcome of a quota check; ``counter`` is ``None`` before the first submission of a month."""

    admitted: bool
    account_id: str
    month: date
    limit: int
    counter: UsageCounter | None

    @property
    def used(self) -> int:
        return self.counter.submission_count if self.counter is not None else 0


class QuotaLedger:
    def __init__(self, session: AsyncSession, settings: FormDeskSettings | None = None) -> None:
        self.session = session
        self.settings = settings or get_settings()

    def month_key(self, now: datetime) -> date:
        return month_start(now, self.settings.quota.timezone)

    async def check_and_reserve(
        self,
        account_id: str,
        now: datetime | None = None,
        *,
        lock: bool = False,
    ) -> Reservation:
        """Decide whether one more submission fits in the month containing ``now``.

        This is a read: nothing is written even when the submission is
        admitted. With ``lock=True`` the account and counter rows are selected
        ``FOR UPDATE`` so that concurrent admissions for the same account wait
        for the surrounding transaction to finish.
        """
        month = self.month_key(now or utc_now())
        # Account row first: it always exists, so it is the per-account lock.
        account = await self._get_account(account_id, lock=lock)
        counter = await self._get_counter(account_id, month, lock=lock)
        limit = account.monthly_submission_limit

        admitted = not (counter is not None and counter.submission_count >= limit)
        if not admitted:
            logger.info(
                "quota_exhausted",
                account_id=account_id,
                month=month.isoformat(),
                used=counter.submission_count,
                limit=limit,
            )
        return Reservation(
            admitted=admitted,
            account_id=account_id,
            month=month,
            limit=limit,
            counter=counter,
        )

    async def record_usage(self, account_id: str, month: date) -> UsageCounter:
        """Count one accepted submission against ``month``. Not idempotent."""
        counter = await self._get_counter(account_id, month, lock=True)
        with store_errors("record_usage"):
            if counter is None:
                counter = UsageCounter(account_id=account_id, month=month, submission_count=1)
                self.session.add(counter)
            else:
                counter.submission_count += 1
                counter.updated_at = utc_now()
            await self.session.flush()
        return counter

    async def usage_for_month(self, account_id: str, now: datetime | None = None) -> UsageSnapshot:
        month = self.month_key(now or utc_now())
        account = await self._get_account(account_id)
        counter = await self._get_counter(account_id, month)
        used = counter.submission_count if counter is not None else 0
        limit = account.monthly_submission_limit
        return UsageSnapshot(
            month=month,
            submission_count=used,
            limit=limit,
            remaining=max(limit - used, 0),
            usage_percentage=round(used / limit * 100, 2) if limit > 0 else 100.0,
        )

    async def _get_account(self, account_id: str, *, lock: bool = False) -> Account:
        stmt = select(Account).where(Account.id == account_id)
        if lock:
            stmt = stmt.with_for_update()
        with store_errors("load_account"):
            result = await self.session.execute(stmt)
            account = result.scalar_one_or_none()
        if account is None:
            raise AccountNotFound(f"Account {account_id} not found.")
        return account

    async def _get_counter(
        self, account_id: str, month: date, *, lock: bool = False
    ) -> UsageCounter | None:
        stmt = select(UsageCounter).where(
            UsageCounter.account_id == account_id,
            UsageCounter.month == month,
        )
        if lock:
            stmt = stmt.with_for_update()
        with store_errors("load_usage_counter"):
            result = await self.session.execute(stmt)
            return result.scalar_one_or_none()


__all__ = ["QuotaLedger", "Reservation"]
