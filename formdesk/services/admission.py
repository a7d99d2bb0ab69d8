"""Public form submission admission."""

from __future__ import annotations

from collections.abc import Mapping
from datetime import datetime
from typing import Any

from pydantic import ValidationError
from sqlalchemy.ext.asyncio import AsyncSession

from formdesk.config import FormDeskSettings, get_settings
from formdesk.db.models.core import Submission
from formdesk.domain.models import AdmissionResult, SubmissionPayload
from formdesk.logging import logger
from formdesk.services.exceptions import QuotaExceeded, SubmissionValidationError, store_errors
from formdesk.services.quota import QuotaLedger
from formdesk.utils.datetime import ensure_aware, utc_now


class AdmissionService:
    """Check the quota, store the submission, then count it.

    All three steps share the caller's session and therefore one transaction.
    The quota check locks the account row, so two admissions for the same
    account cannot both pass the check before either has counted.
    """

    def __init__(self, session: AsyncSession, settings: FormDeskSettings | None = None) -> None:
        self.session = session
        self.settings = settings or get_settings()
        self.ledger = QuotaLedger(session, self.settings)

    async def submit(
        self,
        account_id: str,
        payload: SubmissionPayload | Mapping[str, Any],
        now: datetime | None = None,
    ) -> AdmissionResult:
        data = self._validate(payload)
        now = ensure_aware(now) if now is not None else utc_now()

        reservation = await self.ledger.check_and_reserve(account_id, now, lock=True)
        if not reservation.admitted:
            raise QuotaExceeded(account_id, limit=reservation.limit, used=reservation.used)

        submission = Submission(
            account_id=account_id,
            name=data.name,
            email=str(data.email),
            phone=data.phone,
            company=data.company,
            message=data.message,
            submitted_at=now,
            is_read=False,
            notes=None,
        )
        with store_errors("insert_submission"):
            self.session.add(submission)
            await self.session.flush()

        # Same month key as the check, even if the clock crossed a boundary since.
        counter = await self.ledger.record_usage(account_id, reservation.month)

        logger.info(
            "submission_admitted",
            account_id=account_id,
            submission_id=submission.id,
            month=reservation.month.isoformat(),
            used=counter.submission_count,
            limit=reservation.limit,
        )
        return AdmissionResult(
            submission_id=submission.id,
            month=reservation.month,
            submission_count=counter.submission_count,
        )

    @staticmethod
    def _validate(payload: SubmissionPayload | Mapping[str, Any]) -> SubmissionPayload:
        if isinstance(payload, SubmissionPayload):
            return payload
        try:
            return SubmissionPayload.model_validate(payload)
        except ValidationError as exc:
            fields = sorted({".".join(str(part) for part in err["loc"]) for err in exc.errors()})
            logger.info("submission_rejected", fields=fields)
            raise SubmissionValidationError(
                f"Invalid submission fields: {', '.join(fields)}",
                errors=[
                    {"loc": list(err["loc"]), "msg": err["msg"], "type": err["type"]}
                    for err in exc.errors()
                ],
            ) from exc


__all__ = ["AdmissionService"]
