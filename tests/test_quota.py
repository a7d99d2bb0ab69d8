"""Quota ledger behaviour: checks, usage recording and month buckets."""

from __future__ import annotations

from datetime import date, datetime, timezone

import pytest
from sqlalchemy import func, select
from sqlalchemy.dialects import mysql

from formdesk.config import FormDeskSettings, QuotaSettings
from formdesk.db.models.core import Account, UsageCounter
from formdesk.services.exceptions import AccountNotFound
from formdesk.services.quota import QuotaLedger


async def _create_account(session, account_id: str = "acct-quota", limit: int = 3) -> Account:
    account = Account(
        id=account_id,
        email="owner@example.com",
        subscription_tier="free",
        monthly_submission_limit=limit,
    )
    session.add(account)
    await session.flush()
    return account


async def _counter_rows(session) -> int:
    result = await session.execute(select(func.count(UsageCounter.id)))
    return result.scalar_one()


@pytest.mark.asyncio
async def test_check_without_usage_admits_and_writes_nothing(session, settings):
    await _create_account(session)
    ledger = QuotaLedger(session, settings)

    reservation = await ledger.check_and_reserve(
        "acct-quota", datetime(2024, 5, 17, 12, 0, tzinfo=timezone.utc)
    )

    assert reservation.admitted is True
    assert reservation.counter is None
    assert reservation.used == 0
    assert reservation.month == date(2024, 5, 1)
    assert reservation.limit == 3
    assert await _counter_rows(session) == 0


@pytest.mark.asyncio
async def test_record_usage_creates_then_increments(session, settings):
    await _create_account(session)
    ledger = QuotaLedger(session, settings)
    month = date(2024, 5, 1)

    first = await ledger.record_usage("acct-quota", month)
    assert first.submission_count == 1

    second = await ledger.record_usage("acct-quota", month)
    assert second.id == first.id
    assert second.submission_count == 2
    assert await _counter_rows(session) == 1


@pytest.mark.asyncio
async def test_check_refuses_at_limit(session, settings):
    await _create_account(session, limit=2)
    ledger = QuotaLedger(session, settings)
    now = datetime(2024, 5, 17, tzinfo=timezone.utc)
    month = ledger.month_key(now)

    await ledger.record_usage("acct-quota", month)
    assert (await ledger.check_and_reserve("acct-quota", now)).admitted is True

    await ledger.record_usage("acct-quota", month)
    reservation = await ledger.check_and_reserve("acct-quota", now)
    assert reservation.admitted is False
    assert reservation.used == 2
    assert reservation.counter.submission_count == 2


@pytest.mark.asyncio
async def test_counters_are_bucketed_per_month(session, settings):
    await _create_account(session, limit=1)
    ledger = QuotaLedger(session, settings)
    end_of_january = datetime(2024, 1, 31, 23, 59, 59, tzinfo=timezone.utc)
    start_of_february = datetime(2024, 2, 1, 0, 0, 0, tzinfo=timezone.utc)

    await ledger.record_usage("acct-quota", ledger.month_key(end_of_january))

    assert (await ledger.check_and_reserve("acct-quota", end_of_january)).admitted is False
    february = await ledger.check_and_reserve("acct-quota", start_of_february)
    assert february.admitted is True
    assert february.month == date(2024, 2, 1)


def test_month_key_uses_reference_timezone():
    settings = FormDeskSettings(quota=QuotaSettings(timezone="America/New_York"))
    ledger = QuotaLedger(session=None, settings=settings)

    # 03:30 UTC on Feb 1st is still January 31st in New York.
    assert ledger.month_key(datetime(2024, 2, 1, 3, 30, tzinfo=timezone.utc)) == date(2024, 1, 1)
    assert ledger.month_key(datetime(2024, 2, 1, 5, 30, tzinfo=timezone.utc)) == date(2024, 2, 1)


@pytest.mark.asyncio
async def test_missing_account_is_refused(session, settings):
    ledger = QuotaLedger(session, settings)

    with pytest.raises(AccountNotFound):
        await ledger.check_and_reserve("nobody", datetime(2024, 5, 1, tzinfo=timezone.utc))


@pytest.mark.asyncio
async def test_usage_for_month_reports_remaining(session, settings):
    await _create_account(session, limit=4)
    ledger = QuotaLedger(session, settings)
    now = datetime(2024, 5, 17, tzinfo=timezone.utc)

    empty = await ledger.usage_for_month("acct-quota", now)
    assert empty.submission_count == 0
    assert empty.remaining == 4
    assert empty.usage_percentage == 0.0

    await ledger.record_usage("acct-quota", ledger.month_key(now))
    snapshot = await ledger.usage_for_month("acct-quota", now)
    assert snapshot.month == date(2024, 5, 1)
    assert snapshot.submission_count == 1
    assert snapshot.remaining == 3
    assert snapshot.usage_percentage == 25.0


def _record_statements(session, monkeypatch) -> list[str]:
    statements: list[str] = []
    execute = session.execute

    async def recording_execute(stmt, *args, **kwargs):
        statements.append(str(stmt.compile(dialect=mysql.dialect())))
        return await execute(stmt, *args, **kwargs)

    monkeypatch.setattr(session, "execute", recording_execute)
    return statements


@pytest.mark.asyncio
async def test_locked_check_selects_account_and_counter_for_update(session, settings, monkeypatch):
    await _create_account(session)
    ledger = QuotaLedger(session, settings)
    statements = _record_statements(session, monkeypatch)

    await ledger.check_and_reserve("acct-quota", datetime(2024, 5, 17, tzinfo=timezone.utc), lock=True)

    assert len(statements) == 2
    account_stmt, counter_stmt = statements
    assert "FROM accounts" in account_stmt
    assert account_stmt.rstrip().endswith("FOR UPDATE")
    assert "FROM monthly_usage" in counter_stmt
    assert counter_stmt.rstrip().endswith("FOR UPDATE")


@pytest.mark.asyncio
async def test_unlocked_check_is_a_plain_read(session, settings, monkeypatch):
    await _create_account(session)
    ledger = QuotaLedger(session, settings)
    statements = _record_statements(session, monkeypatch)

    await ledger.check_and_reserve("acct-quota", datetime(2024, 5, 17, tzinfo=timezone.utc))
    await ledger.usage_for_month("acct-quota", datetime(2024, 5, 17, tzinfo=timezone.utc))

    assert statements
    assert not any("FOR UPDATE" in stmt for stmt in statements)
