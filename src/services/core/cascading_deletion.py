"""Cascading deletion service - removes content graphs and their media."""
from dataclasses import dataclass, asdict
from datetime import datetime, timedelta
from typing import Optional, Union
from uuid import UUID

from dateutil.relativedelta import relativedelta
from sqlalchemy.exc import SQLAlchemyError

from src.services.base_service import BaseService
from src.services.integrations.media_storage import MediaStorageService
from src.repositories.account_repository import AccountRepository
from src.repositories.content_graph_repository import ContentGraphRepository
from src.models.media_reference import MediaReference
from src.exceptions import NotFoundError, StorageError
from src.utils.logger import logger


@dataclass
class DeletionResult:
    """What a deletion removed from the database and the media store."""

    items_deleted: int = 0
    reactions_deleted: int = 0
    replies_deleted: int = 0
    media_purged: int = 0
    media_failed: int = 0

    def as_dict(self) -> dict:
        return asdict(self)


@dataclass
class SweepOutcome:
    """Per-account result of an inactive-account sweep."""

    account_id: UUID
    success: bool
    result: Optional[DeletionResult] = None
    error: Optional[str] = None


class CascadingDeletionService(BaseService):
    """
    Graph-aware deletion of items, reactions and accounts.

    Two phases per call:
    1. Database: one transaction removes replies, reactions, items and
       (for accounts) the account row. Any failure rolls the whole
       transaction back and surfaces as StorageError.
    2. Media store: after the commit, every collected media reference is
       purged. Failures are logged and counted, never retried, and never
       change the reported outcome - the database is the source of truth.
    """

    def __init__(self):
        super().__init__()
        self.account_repo = AccountRepository()
        self.graph_repo = ContentGraphRepository()
        self.media_storage = MediaStorageService()

    def delete_content_item(self, item_id, triggered_by: str = "user") -> DeletionResult:
        """
        Delete a content item with its reactions, replies and media.

        Raises:
            NotFoundError: Item does not exist
            StorageError: Database phase failed (nothing was deleted)
        """
        with self.track_execution(
            method_name="delete_content_item",
            triggered_by=triggered_by,
            input_params={"item_id": str(item_id)},
        ) as run_id:
            summary = self._database_phase(
                self.graph_repo.delete_content_item, item_id, "delete_content_item"
            )
            if summary is None:
                raise NotFoundError("content_item", item_id)

            result = self._result_from(summary)
            self._purge_each(summary["media"], result)

            logger.info(
                f"Deleted content item {item_id}: {result.reactions_deleted} reactions, "
                f"{result.replies_deleted} replies, {result.media_purged} media purged"
            )
            self.set_result_summary(run_id, result.as_dict())
            return result

    def delete_reaction(self, reaction_id, triggered_by: str = "user") -> DeletionResult:
        """
        Delete a single reaction with its replies and media.

        Raises:
            NotFoundError: Reaction does not exist
            StorageError: Database phase failed
        """
        with self.track_execution(
            method_name="delete_reaction",
            triggered_by=triggered_by,
            input_params={"reaction_id": str(reaction_id)},
        ) as run_id:
            summary = self._database_phase(
                self.graph_repo.delete_reaction, reaction_id, "delete_reaction"
            )
            if summary is None:
                raise NotFoundError("reaction", reaction_id)

            result = self._result_from(summary)
            self._purge_each(summary["media"], result)

            self.set_result_summary(run_id, result.as_dict())
            return result

    def delete_reactions_for_item(self, item_id, triggered_by: str = "user") -> DeletionResult:
        """
        Delete every reaction on an item but keep the item.

        Raises:
            NotFoundError: Item does not exist
            StorageError: Database phase failed
        """
        with self.track_execution(
            method_name="delete_reactions_for_item",
            triggered_by=triggered_by,
            input_params={"item_id": str(item_id)},
        ) as run_id:
            summary = self._database_phase(
                self.graph_repo.delete_reactions_for_item, item_id, "delete_reactions_for_item"
            )
            if summary is None:
                raise NotFoundError("content_item", item_id)

            result = self._result_from(summary)
            self._purge_each(summary["media"], result)

            self.set_result_summary(run_id, result.as_dict())
            return result

    def delete_account(self, account_id, triggered_by: str = "user") -> DeletionResult:
        """
        Delete an account and everything it owns.

        Media (including the profile picture) is purged in batches after
        the commit.

        Raises:
            NotFoundError: Account does not exist
            StorageError: Database phase failed (nothing was deleted)
        """
        with self.track_execution(
            method_name="delete_account",
            triggered_by=triggered_by,
            input_params={"account_id": str(account_id)},
        ) as run_id:
            summary = self._database_phase(
                self.graph_repo.delete_account, account_id, "delete_account"
            )
            if summary is None:
                raise NotFoundError("account", account_id)

            result = self._result_from(summary)
            self._purge_batched(summary["media"], result)

            logger.info(
                f"Deleted account {account_id}: {result.items_deleted} items, "
                f"{result.reactions_deleted} reactions, {result.media_purged} media purged, "
                f"{result.media_failed} media failed"
            )
            self.set_result_summary(run_id, result.as_dict())
            return result

    def sweep_inactive_accounts(
        self,
        inactivity_threshold: Union[timedelta, relativedelta],
        now: Optional[datetime] = None,
        limit: Optional[int] = None,
        triggered_by: str = "scheduler",
    ) -> list[SweepOutcome]:
        """
        Delete accounts with no activity for longer than the threshold.

        An account's activity is its last login, or its creation time if it
        never logged in. Accounts are processed one at a time, each in its
        own transaction; failures are recorded in the outcome list and the
        sweep moves on.
        """
        with self.track_execution(
            method_name="sweep_inactive_accounts",
            triggered_by=triggered_by,
            input_params={"threshold": str(inactivity_threshold), "limit": limit},
        ) as run_id:
            cutoff = (now or datetime.utcnow()) - inactivity_threshold
            account_ids = self.account_repo.get_inactive_ids(cutoff, limit=limit)
            self.account_repo.end_read_transaction()

            if not account_ids:
                logger.info(f"No accounts inactive since {cutoff:%Y-%m-%d}")
                self.set_result_summary(run_id, {"candidates": 0, "deleted": 0, "failed": 0})
                return []

            logger.info(f"Sweeping {len(account_ids)} accounts inactive since {cutoff:%Y-%m-%d}")

            outcomes = []
            for account_id in account_ids:
                try:
                    result = self.delete_account(account_id, triggered_by=triggered_by)
                    outcomes.append(SweepOutcome(account_id=account_id, success=True, result=result))
                except Exception as e:
                    # One bad account must not stop the sweep
                    logger.error(f"Sweep failed to delete account {account_id}: {e}")
                    outcomes.append(SweepOutcome(account_id=account_id, success=False, error=str(e)))

            deleted = sum(1 for outcome in outcomes if outcome.success)
            self.set_result_summary(
                run_id,
                {
                    "candidates": len(account_ids),
                    "deleted": deleted,
                    "failed": len(outcomes) - deleted,
                },
            )
            return outcomes

    # ==================== Internals ====================

    @staticmethod
    def _database_phase(delete_fn, target_id, operation: str) -> Optional[dict]:
        try:
            return delete_fn(target_id)
        except SQLAlchemyError as e:
            raise StorageError(f"Database deletion failed: {e}", operation=operation) from e

    @staticmethod
    def _result_from(summary: dict) -> DeletionResult:
        return DeletionResult(
            items_deleted=summary["items_deleted"],
            reactions_deleted=summary["reactions_deleted"],
            replies_deleted=summary["replies_deleted"],
        )

    def _purge_each(self, references: list[MediaReference], result: DeletionResult):
        for reference in references:
            try:
                self.media_storage.delete_media(reference)
                result.media_purged += 1
            except Exception as e:
                result.media_failed += 1
                logger.warning(f"Failed to purge media {reference.url}: {e}")

    def _purge_batched(self, references: list[MediaReference], result: DeletionResult):
        if not references:
            return

        try:
            batch = self.media_storage.delete_many(references)
        except Exception as e:
            result.media_failed += len(references)
            logger.warning(f"Batch purge of {len(references)} media objects failed: {e}")
            return

        result.media_purged += batch.deleted_count
        result.media_failed += batch.failed_count
        for key, reason in batch.failed.items():
            logger.warning(f"Failed to purge media {key}: {reason}")
