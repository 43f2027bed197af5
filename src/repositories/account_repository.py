"""Account repository - accounts and their monthly usage block."""

from typing import Optional
from datetime import datetime

from sqlalchemy import update, func, or_

from src.repositories.base_repository import BaseRepository
from src.models.account import Account


# Limit columns an administrator may change through update_limits()
LIMIT_FIELDS = (
    "max_content_per_month",
    "max_reactions_received_per_month",
    "max_reactions_per_item",
)


class AccountRepository(BaseRepository):
    """Repository for Account rows.

    Counter changes are issued as single UPDATE statements so concurrent
    writers never work from a stale in-memory copy of the usage block.
    """

    def __init__(self):
        super().__init__()

    def get_by_id(self, account_id) -> Optional[Account]:
        """Get account by ID, always re-reading column values from the store."""
        return (
            self.db.query(Account)
            .populate_existing()
            .filter(Account.id == account_id)
            .first()
        )

    def get_by_email(self, email: str) -> Optional[Account]:
        """Get account by email address."""
        return self.db.query(Account).filter(Account.email == email).first()

    def get_all(self, role: Optional[str] = None) -> list[Account]:
        """Get all accounts, optionally filtered by role."""
        query = self.db.query(Account)

        if role is not None:
            query = query.filter(Account.role == role)

        return query.order_by(Account.created_at.desc()).all()

    def create(
        self,
        email: str,
        name: Optional[str] = None,
        role: str = "user",
        max_content_per_month: Optional[int] = None,
        max_reactions_received_per_month: Optional[int] = None,
        max_reactions_per_item: Optional[int] = None,
        moderate_images: bool = False,
        moderate_videos: bool = False,
    ) -> Account:
        """Create a new account with an empty usage block."""
        account = Account(
            email=email,
            name=name,
            role=role,
            max_content_per_month=max_content_per_month,
            max_reactions_received_per_month=max_reactions_received_per_month,
            max_reactions_per_item=max_reactions_per_item,
            moderate_images=moderate_images,
            moderate_videos=moderate_videos,
            content_count_this_month=0,
            reactions_received_this_month=0,
        )
        self.db.add(account)
        self.db.commit()
        self.db.refresh(account)
        return account

    def reset_usage_if_stale(self, account_id, start_of_month: datetime, now: datetime) -> bool:
        """
        Zero both monthly counters if the last reset predates start_of_month.

        The staleness test and the write are one conditional UPDATE, so a
        second reset racing in the same month matches no rows and cannot
        clobber an increment that landed after the first one.

        Returns:
            True if this call performed the reset
        """
        try:
            result = self.db.execute(
                update(Account)
                .where(
                    Account.id == account_id,
                    or_(
                        Account.last_usage_reset_at.is_(None),
                        Account.last_usage_reset_at < start_of_month,
                    ),
                )
                .values(
                    content_count_this_month=0,
                    reactions_received_this_month=0,
                    last_usage_reset_at=now,
                )
                .execution_options(synchronize_session=False)
            )
            self.db.commit()
        except Exception:
            self.rollback()
            raise

        return result.rowcount > 0

    def increment_content_count(self, account_id) -> bool:
        """Atomically add one to content_count_this_month."""
        return self._increment(account_id, Account.content_count_this_month)

    def increment_reactions_received(self, account_id) -> bool:
        """Atomically add one to reactions_received_this_month."""
        return self._increment(account_id, Account.reactions_received_this_month)

    def _increment(self, account_id, column) -> bool:
        result = self.db.execute(
            update(Account)
            .where(Account.id == account_id)
            .values({column: func.coalesce(column, 0) + 1})
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        return result.rowcount > 0

    def update_limits(self, account_id, **limits) -> Optional[Account]:
        """
        Update quota limits on an account.

        Only keys listed in LIMIT_FIELDS are accepted; None means unlimited.
        """
        unknown = set(limits) - set(LIMIT_FIELDS)
        if unknown:
            raise ValueError(f"Unknown limit fields: {', '.join(sorted(unknown))}")

        account = self.get_by_id(account_id)
        if account:
            for field, value in limits.items():
                setattr(account, field, value)
            self.db.commit()
            self.db.refresh(account)
        return account

    def record_login(self, account_id, at: Optional[datetime] = None) -> Optional[Account]:
        """Update the account's last login timestamp."""
        account = self.get_by_id(account_id)
        if account:
            account.last_login_at = at or datetime.utcnow()
            self.db.commit()
            self.db.refresh(account)
        return account

    def get_inactive_ids(self, cutoff: datetime, limit: Optional[int] = None) -> list:
        """
        Get IDs of accounts with no activity since cutoff.

        Accounts that never logged in are judged by their creation time.
        """
        query = (
            self.db.query(Account.id)
            .filter(
                or_(
                    Account.last_login_at < cutoff,
                    (Account.last_login_at.is_(None)) & (Account.created_at < cutoff),
                )
            )
            .order_by(Account.created_at.asc())
        )
        if limit:
            query = query.limit(limit)

        return [row[0] for row in query.all()]
