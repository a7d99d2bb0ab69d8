"""Dashboard access to stored submissions."""

from __future__ import annotations

from datetime import datetime
from typing import Sequence

from sqlalchemy import case, func, select
from sqlalchemy.ext.asyncio import AsyncSession

from formdesk.config import FormDeskSettings, get_settings
from formdesk.db.models.core import Submission
from formdesk.domain.models import DashboardOverview
from formdesk.logging import logger
from formdesk.services.exceptions import SubmissionNotFound, store_errors
from formdesk.services.quota import QuotaLedger


class SubmissionService:
    def __init__(self, session: AsyncSession, settings: FormDeskSettings | None = None) -> None:
        self.session = session
        self.settings = settings or get_settings()

    async def list_submissions(self, account_id: str) -> Sequence[Submission]:
        stmt = (
            select(Submission)
            .where(Submission.account_id == account_id)
            .order_by(Submission.submitted_at.desc(), Submission.id.desc())
        )
        with store_errors("list_submissions"):
            result = await self.session.execute(stmt)
            return list(result.scalars())

    async def get_submission(self, account_id: str, submission_id: str) -> Submission:
        stmt = select(Submission).where(
            Submission.id == submission_id,
            Submission.account_id == account_id,
        )
        with store_errors("load_submission"):
            result = await self.session.execute(stmt)
            submission = result.scalar_one_or_none()
        if submission is None:
            raise SubmissionNotFound(f"Submission {submission_id} not found.")
        return submission

    async def set_read(self, account_id: str, submission_id: str, is_read: bool) -> Submission:
        submission = await self.get_submission(account_id, submission_id)
        submission.is_read = is_read
        with store_errors("update_submission"):
            await self.session.flush()
        return submission

    async def toggle_read(self, account_id: str, submission_id: str) -> Submission:
        submission = await self.get_submission(account_id, submission_id)
        return await self.set_read(account_id, submission_id, not submission.is_read)

    async def update_notes(self, account_id: str, submission_id: str, notes: str | None) -> Submission:
        submission = await self.get_submission(account_id, submission_id)
        submission.notes = notes
        with store_errors("update_submission"):
            await self.session.flush()
        return submission

    async def delete_submission(self, account_id: str, submission_id: str) -> None:
        """Remove a submission. The month's usage counter is left untouched."""

        submission = await self.get_submission(account_id, submission_id)
        with store_errors("delete_submission"):
            await self.session.delete(submission)
            await self.session.flush()
        logger.info("submission_deleted", account_id=account_id, submission_id=submission_id)

    async def overview(self, account_id: str, now: datetime | None = None) -> DashboardOverview:
        stmt = select(
            func.count(Submission.id),
            func.sum(case((Submission.is_read.is_(False), 1), else_=0)),
        ).where(Submission.account_id == account_id)
        with store_errors("submission_overview"):
            total, unread = (await self.session.execute(stmt)).one()
        usage = await QuotaLedger(self.session, self.settings).usage_for_month(account_id, now)
        return DashboardOverview(
            total_submissions=int(total or 0),
            unread_submissions=int(unread or 0),
            usage=usage,
        )


__all__ = ["SubmissionService"]
