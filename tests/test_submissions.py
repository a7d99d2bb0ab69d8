"""Dashboard submission management tests."""

from __future__ import annotations

from datetime import datetime, timedelta, timezone

import pytest

from formdesk.db.models.core import Account
from formdesk.services.admission import AdmissionService
from formdesk.services.exceptions import SubmissionNotFound
from formdesk.services.submissions import SubmissionService

NOW = datetime(2024, 5, 17, 9, 30, tzinfo=timezone.utc)


async def _bootstrap(session, settings):
    session.add_all(
        [
            Account(id="acct-1", email="one@example.com", subscription_tier="free", monthly_submission_limit=10),
            Account(id="acct-2", email="two@example.com", subscription_tier="free", monthly_submission_limit=10),
        ]
    )
    await session.flush()
    admission = AdmissionService(session, settings)
    ids = []
    for offset, name in enumerate(["first", "second", "third"]):
        result = await admission.submit(
            "acct-1",
            {"name": name, "email": f"{name}@example.com", "message": f"from {name}"},
            NOW + timedelta(minutes=offset),
        )
        ids.append(result.submission_id)
    await admission.submit(
        "acct-2",
        {"name": "stranger", "email": "stranger@example.com", "message": "hi"},
        NOW,
    )
    return ids


@pytest.mark.asyncio
async def test_list_submissions_newest_first_and_scoped(session, settings):
    ids = await _bootstrap(session, settings)
    service = SubmissionService(session, settings)

    submissions = await service.list_submissions("acct-1")

    assert [item.id for item in submissions] == list(reversed(ids))
    assert all(item.account_id == "acct-1" for item in submissions)


@pytest.mark.asyncio
async def test_submissions_are_not_visible_to_other_accounts(session, settings):
    ids = await _bootstrap(session, settings)
    service = SubmissionService(session, settings)

    with pytest.raises(SubmissionNotFound):
        await service.get_submission("acct-2", ids[0])
    with pytest.raises(SubmissionNotFound):
        await service.delete_submission("acct-2", ids[0])


@pytest.mark.asyncio
async def test_read_flag_and_notes(session, settings):
    ids = await _bootstrap(session, settings)
    service = SubmissionService(session, settings)

    toggled = await service.toggle_read("acct-1", ids[0])
    assert toggled.is_read is True
    toggled = await service.toggle_read("acct-1", ids[0])
    assert toggled.is_read is False

    marked = await service.set_read("acct-1", ids[1], True)
    assert marked.is_read is True

    noted = await service.update_notes("acct-1", ids[1], "Call back on Monday")
    assert noted.notes == "Call back on Monday"
    cleared = await service.update_notes("acct-1", ids[1], None)
    assert cleared.notes is None


@pytest.mark.asyncio
async def test_overview_counts_unread_and_usage(session, settings):
    ids = await _bootstrap(session, settings)
    service = SubmissionService(session, settings)
    await service.set_read("acct-1", ids[0], True)
    await service.delete_submission("acct-1", ids[2])

    overview = await service.overview("acct-1", NOW)

    assert overview.total_submissions == 2
    assert overview.unread_submissions == 1
    assert overview.usage.submission_count == 3
    assert overview.usage.limit == 10
    assert overview.usage.usage_percentage == 30.0
