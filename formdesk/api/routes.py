"""HTTP route definitions for the public form and the account dashboard."""

from __future__ import annotations

from datetime import date
from typing import Any

from fastapi import APIRouter, Body, Depends, Header, Request, Response, status
from pydantic import BaseModel, EmailStr
from sqlalchemy.ext.asyncio import AsyncSession

from formdesk.api.dependencies import commit, current_account_id, get_app_settings, get_session
from formdesk.config import FormDeskSettings
from formdesk.domain.models import (
    AccountModel,
    DashboardOverview,
    SubmissionModel,
    Tier,
    UsageSnapshot,
)
from formdesk.i18n.service import I18nService
from formdesk.services.accounts import AccountService
from formdesk.services.admission import AdmissionService
from formdesk.services.embed import build_embed_snippet
from formdesk.services.quota import QuotaLedger
from formdesk.services.submissions import SubmissionService
from formdesk.services.tiers import TIERS

router = APIRouter(prefix="/v1")


class SubmissionAcceptedResponse(BaseModel):
    """Returned to the visitor once a submission is stored and counted."""

    id: str
    month: date
    submission_count: int
    message: str


class SubmissionUpdateRequest(BaseModel):
    """Partial update from the dashboard; omitted fields are left alone."""

    is_read: bool | None = None
    notes: str | None = None


class ProvisionAccountRequest(BaseModel):
    email: EmailStr


class TierSwitchRequest(BaseModel):
    tier: Tier


class TierSwitchResponse(BaseModel):
    account: AccountModel
    message: str


class TierResponse(BaseModel):
    name: str
    display_name: str
    monthly_submission_limit: int
    unlimited: bool
    features: list[str]


class EmbedResponse(BaseModel):
    account_id: str
    snippet: str


def get_i18n(request: Request) -> I18nService:
    return request.app.state.i18n


# Public form ---------------------------------------------------------------


@router.post(
    "/forms/{account_id}/submissions",
    response_model=SubmissionAcceptedResponse,
    status_code=status.HTTP_201_CREATED,
    tags=["forms"],
)
async def submit_form(
    account_id: str,
    payload: dict[str, Any] = Body(...),
    session: AsyncSession = Depends(get_session),
    settings: FormDeskSettings = Depends(get_app_settings),
    i18n: I18nService = Depends(get_i18n),
    accept_language: str | None = Header(default=None),
) -> SubmissionAcceptedResponse:
    """Accept a visitor's message for ``account_id`` if the monthly quota allows it.

    The body is validated by ``AdmissionService`` so that field errors come
    back in the same localised shape as quota refusals.
    """
    result = await AdmissionService(session, settings).submit(account_id, payload)
    await commit(session)
    return SubmissionAcceptedResponse(
        id=result.submission_id,
        month=result.month,
        submission_count=result.submission_count,
        message=i18n.gettext("submission.accepted", locale=accept_language),
    )


# Account & settings --------------------------------------------------------


@router.get("/account", response_model=AccountModel, tags=["account"])
async def get_account(
    account_id: str = Depends(current_account_id),
    session: AsyncSession = Depends(get_session),
) -> AccountModel:
    account = await AccountService(session).get_account(account_id)
    return AccountModel.model_validate(account)


@router.post("/account", response_model=AccountModel, tags=["account"])
async def provision_account(
    payload: ProvisionAccountRequest,
    response: Response,
    account_id: str = Depends(current_account_id),
    session: AsyncSession = Depends(get_session),
) -> AccountModel:
    """Create the caller's profile on first sign-in; replays return the existing profile."""
    account, created = await AccountService(session).ensure_account(account_id, str(payload.email))
    await commit(session)
    response.status_code = status.HTTP_201_CREATED if created else status.HTTP_200_OK
    return AccountModel.model_validate(account)


@router.put("/account/tier", response_model=TierSwitchResponse, tags=["account"])
async def switch_tier(
    payload: TierSwitchRequest,
    account_id: str = Depends(current_account_id),
    session: AsyncSession = Depends(get_session),
    i18n: I18nService = Depends(get_i18n),
    accept_language: str | None = Header(default=None),
) -> TierSwitchResponse:
    account = await AccountService(session).switch_tier(account_id, payload.tier)
    await commit(session)
    return TierSwitchResponse(
        account=AccountModel.model_validate(account),
        message=i18n.gettext("tier.updated", locale=accept_language),
    )


@router.get("/account/embed", response_model=EmbedResponse, tags=["account"])
async def get_embed_snippet(
    account_id: str = Depends(current_account_id),
    session: AsyncSession = Depends(get_session),
    settings: FormDeskSettings = Depends(get_app_settings),
) -> EmbedResponse:
    await AccountService(session).get_account(account_id)
    snippet = build_embed_snippet(account_id, str(settings.api.widget_base_url))
    return EmbedResponse(account_id=account_id, snippet=snippet)


@router.get("/tiers", response_model=list[TierResponse], tags=["account"])
def list_tiers() -> list[TierResponse]:
    return [
        TierResponse(
            name=tier.name,
            display_name=tier.display_name,
            monthly_submission_limit=tier.monthly_submission_limit,
            unlimited=tier.unlimited,
            features=list(tier.features),
        )
        for tier in TIERS.values()
    ]


# Dashboard -----------------------------------------------------------------


@router.get("/usage", response_model=UsageSnapshot, tags=["dashboard"])
async def get_usage(
    account_id: str = Depends(current_account_id),
    session: AsyncSession = Depends(get_session),
    settings: FormDeskSettings = Depends(get_app_settings),
) -> UsageSnapshot:
    return await QuotaLedger(session, settings).usage_for_month(account_id)


@router.get("/overview", response_model=DashboardOverview, tags=["dashboard"])
async def get_overview(
    account_id: str = Depends(current_account_id),
    session: AsyncSession = Depends(get_session),
    settings: FormDeskSettings = Depends(get_app_settings),
) -> DashboardOverview:
    return await SubmissionService(session, settings).overview(account_id)


@router.get("/submissions", response_model=list[SubmissionModel], tags=["dashboard"])
async def list_submissions(
    account_id: str = Depends(current_account_id),
    session: AsyncSession = Depends(get_session),
) -> list[SubmissionModel]:
    submissions = await SubmissionService(session).list_submissions(account_id)
    return [SubmissionModel.model_validate(item) for item in submissions]


@router.get("/submissions/{submission_id}", response_model=SubmissionModel, tags=["dashboard"])
async def get_submission(
    submission_id: str,
    account_id: str = Depends(current_account_id),
    session: AsyncSession = Depends(get_session),
) -> SubmissionModel:
    submission = await SubmissionService(session).get_submission(account_id, submission_id)
    return SubmissionModel.model_validate(submission)


@router.patch("/submissions/{submission_id}", response_model=SubmissionModel, tags=["dashboard"])
async def update_submission(
    submission_id: str,
    payload: SubmissionUpdateRequest,
    account_id: str = Depends(current_account_id),
    session: AsyncSession = Depends(get_session),
) -> SubmissionModel:
    service = SubmissionService(session)
    submission = await service.get_submission(account_id, submission_id)
    if "is_read" in payload.model_fields_set and payload.is_read is not None:
        submission = await service.set_read(account_id, submission_id, payload.is_read)
    if "notes" in payload.model_fields_set:
        submission = await service.update_notes(account_id, submission_id, payload.notes)
    await commit(session)
    return SubmissionModel.model_validate(submission)


@router.post(
    "/submissions/{submission_id}/toggle-read",
    response_model=SubmissionModel,
    tags=["dashboard"],
)
async def toggle_read(
    submission_id: str,
    account_id: str = Depends(current_account_id),
    session: AsyncSession = Depends(get_session),
) -> SubmissionModel:
    submission = await SubmissionService(session).toggle_read(account_id, submission_id)
    await commit(session)
    return SubmissionModel.model_validate(submission)


@router.delete(
    "/submissions/{submission_id}",
    status_code=status.HTTP_204_NO_CONTENT,
    tags=["dashboard"],
)
async def delete_submission(
    submission_id: str,
    account_id: str = Depends(current_account_id),
    session: AsyncSession = Depends(get_session),
) -> Response:
    await SubmissionService(session).delete_submission(account_id, submission_id)
    await commit(session)
    return Response(status_code=status.HTTP_204_NO_CONTENT)


__all__ = ["router"]
