"""Quota service - monthly usage counters and the reset epoch."""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import SQLAlchemyError

from src.services.base_service import BaseService
from src.repositories.account_repository import AccountRepository
from src.config.constants import QUOTA_CREATOR_MONTHLY
from src.exceptions import NotFoundError, QuotaExceededError, StorageError
from src.utils.logger import logger


@dataclass
class UsageBlock:
    """Snapshot of an account's monthly counters and limits."""

    account_id: UUID
    content_count_this_month: int
    reactions_received_this_month: int
    max_content_per_month: Optional[int]
    max_reactions_received_per_month: Optional[int]
    max_reactions_per_item: Optional[int]
    last_usage_reset_at: Optional[datetime]

    @classmethod
    def from_account(cls, account) -> "UsageBlock":
        return cls(
            account_id=account.id,
            content_count_this_month=account.content_count_this_month or 0,
            reactions_received_this_month=account.reactions_received_this_month or 0,
            max_content_per_month=account.max_content_per_month,
            max_reactions_received_per_month=account.max_reactions_received_per_month,
            max_reactions_per_item=account.max_reactions_per_item,
            last_usage_reset_at=account.last_usage_reset_at,
        )


def start_of_month(now: datetime) -> datetime:
    """First instant of now's calendar month (UTC)."""
    return now.replace(day=1, hour=0, minute=0, second=0, microsecond=0)


def within_limit(count: Optional[int], limit: Optional[int]) -> bool:
    """True when limit is unset/negative (unlimited) or count is below it."""
    if limit is None or limit < 0:
        return True
    return (count or 0) < limit


class QuotaService(BaseService):
    """
    Owns the per-account usage block.

    Counters only ever change through this service: a conditional reset at
    the first use in a new calendar month, and single-statement increments
    after a successful write. Callers must re-read the block after a reset
    rather than trust a copy taken before it.
    """

    def __init__(self):
        super().__init__()
        self.account_repo = AccountRepository()

    @staticmethod
    def needs_reset(last_usage_reset_at: Optional[datetime], now: datetime) -> bool:
        """Check whether the reset epoch lies in an earlier calendar month."""
        if last_usage_reset_at is None:
            return True
        return (last_usage_reset_at.year, last_usage_reset_at.month) < (now.year, now.month)

    def get_usage(self, account_id) -> UsageBlock:
        """Read the usage block without resetting it."""
        account = self.account_repo.get_by_id(account_id)
        if not account:
            self.account_repo.end_read_transaction()
            raise NotFoundError("account", account_id)

        usage = UsageBlock.from_account(account)
        self.account_repo.end_read_transaction()
        return usage

    def check_and_reset_usage(self, account_id, now: Optional[datetime] = None) -> UsageBlock:
        """
        Return the account's usage block, zeroing it first if stale.

        The reset is a single conditional UPDATE; when several callers race,
        only the first one in the month matches, so increments that follow
        it are never lost. The block is always re-read after the reset.

        Raises:
            NotFoundError: If the account does not exist
            StorageError: Database failure while reading or resetting
        """
        now = now or datetime.utcnow()

        try:
            account = self.account_repo.get_by_id(account_id)
            if not account:
                raise NotFoundError("account", account_id)

            if self.needs_reset(account.last_usage_reset_at, now):
                if self.account_repo.reset_usage_if_stale(account_id, start_of_month(now), now):
                    logger.info(f"Reset monthly usage for account {account_id}")
                else:
                    logger.debug(f"Monthly usage for account {account_id} already reset by another caller")

                account = self.account_repo.get_by_id(account_id)
                if not account:
                    raise NotFoundError("account", account_id)

            return UsageBlock.from_account(account)
        except SQLAlchemyError as e:
            self.account_repo.rollback()
            raise StorageError(
                f"Failed to read usage for account {account_id}: {e}",
                operation="check_and_reset_usage",
            ) from e
        finally:
            self.account_repo.end_read_transaction()

    @staticmethod
    def can_create_content(usage: UsageBlock) -> bool:
        return within_limit(usage.content_count_this_month, usage.max_content_per_month)

    @staticmethod
    def can_receive_reaction(usage: UsageBlock) -> bool:
        return within_limit(
            usage.reactions_received_this_month, usage.max_reactions_received_per_month
        )

    def ensure_can_create_content(self, account_id, now: Optional[datetime] = None) -> UsageBlock:
        """
        Reset if needed, then require room for one more content item.

        Raises:
            NotFoundError: If the account does not exist
            QuotaExceededError: kind 'creator-monthly'
        """
        usage = self.check_and_reset_usage(account_id, now=now)
        if not self.can_create_content(usage):
            raise QuotaExceededError(QUOTA_CREATOR_MONTHLY, limit=usage.max_content_per_month)
        return usage

    def increment_content_count(self, account_id) -> bool:
        """Count one more content item this month. Never raises."""
        return self._safe_increment(
            account_id, self.account_repo.increment_content_count, "content_count_this_month"
        )

    def increment_received_reactions(self, account_id) -> bool:
        """Count one more received reaction this month. Never raises."""
        return self._safe_increment(
            account_id,
            self.account_repo.increment_reactions_received,
            "reactions_received_this_month",
        )

    def _safe_increment(self, account_id, increment, counter: str) -> bool:
        # The write this counter reflects has already succeeded; losing
        # the increment undercounts, which is logged rather than raised.
        try:
            updated = increment(account_id)
        except SQLAlchemyError as e:
            self.account_repo.rollback()
            logger.error(f"Failed to increment {counter} for account {account_id}: {e}")
            return False

        if not updated:
            logger.warning(f"Account {account_id} not found while incrementing {counter}")
        return updated
