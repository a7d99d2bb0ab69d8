"""Account profile and subscription tier helpers."""

from __future__ import annotations

from sqlalchemy import select
from sqlalchemy.ext.asyncio import AsyncSession

from formdesk.db.models.core import Account
from formdesk.logging import logger
from formdesk.services.exceptions import AccountNotFound, store_errors
from formdesk.services.tiers import DEFAULT_TIER, get_tier
from formdesk.utils.datetime import utc_now


class AccountService:
    def __init__(self, session: AsyncSession) -> None:
        self.session = session

    async def get_account(self, account_id: str) -> Account:
        with store_errors("load_account"):
            account = await self.session.get(Account, account_id)
        if account is None:
            raise AccountNotFound(f"Account {account_id} not found.")
        return account

    async def ensure_account(self, account_id: str, email: str) -> tuple[Account, bool]:
        """Make sure the identity has a profile; new profiles start on the free tier.

        Returns ``(account, created)``.
        """

        with store_errors("ensure_account"):
            result = await self.session.execute(select(Account).where(Account.id == account_id))
            account = result.scalar_one_or_none()
            if account is not None:
                return account, False

            tier = get_tier(DEFAULT_TIER)
            now = utc_now()
            account = Account(
                id=account_id,
                email=email,
                subscription_tier=tier.name,
                monthly_submission_limit=tier.monthly_submission_limit,
                created_at=now,
                updated_at=now,
            )
            self.session.add(account)
            await self.session.flush()
        logger.info("account_provisioned", account_id=account_id, tier=tier.name)
        return account, True

    async def switch_tier(self, account_id: str, tier_name: str) -> Account:
        tier = get_tier(tier_name)
        account = await self.get_account(account_id)
        previous = account.subscription_tier

        account.subscription_tier = tier.name
        account.monthly_submission_limit = tier.monthly_submission_limit
        account.updated_at = utc_now()
        with store_errors("switch_tier"):
            await self.session.flush()

        logger.info(
            "subscription_tier_switched",
            account_id=account_id,
            previous=previous,
            tier=tier.name,
            limit=tier.monthly_submission_limit,
        )
        return account


__all__ = ["AccountService"]
