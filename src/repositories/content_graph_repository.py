"""Content graph repository - transactional deletion of item subtrees."""

from typing import Optional

from src.repositories.base_repository import BaseRepository
from src.models.account import Account
from src.models.content_item import ContentItem
from src.models.media_reference import MediaReference
from src.models.reaction import Reaction
from src.models.reply import Reply
from src.utils.logger import logger


class ContentGraphRepository(BaseRepository):
    """
    Deletes account/item/reaction subtrees inside a single transaction.

    Every public method either commits the whole graph removal or rolls
    back and re-raises, leaving nothing half-deleted. Deletion order is
    always replies, then reactions, then items, then the account, so
    foreign keys are never violated mid-transaction.

    Methods return a summary dict (or None if the root row does not
    exist) that includes every media reference found on the deleted
    rows. Purging those from the media store is the caller's job and
    must only happen after the commit.
    """

    def __init__(self):
        super().__init__()

    def delete_content_item(self, item_id) -> Optional[dict]:
        """Delete an item with all its reactions and replies."""
        try:
            item = self.db.query(ContentItem).filter(ContentItem.id == item_id).first()
            if not item:
                self.end_read_transaction()
                return None

            summary = self._new_summary()
            self._delete_item_subtree(item, summary)
            summary["items_deleted"] = 1
            self.db.commit()
        except Exception:
            self.rollback()
            raise

        return summary

    def delete_account(self, account_id) -> Optional[dict]:
        """Delete an account, everything it owns, and the account row itself."""
        try:
            account = self.db.query(Account).filter(Account.id == account_id).first()
            if not account:
                self.end_read_transaction()
                return None

            summary = self._new_summary()
            items = (
                self.db.query(ContentItem)
                .filter(ContentItem.owner_id == account_id)
                .all()
            )
            for item in items:
                self._delete_item_subtree(item, summary)
            summary["items_deleted"] = len(items)

            picture = MediaReference.from_columns(account.picture_url, "image")
            if picture:
                summary["media"].append(picture)

            self.db.query(Account).filter(Account.id == account_id).delete(
                synchronize_session=False
            )
            self.db.commit()
        except Exception:
            self.rollback()
            raise

        logger.debug(
            f"Deleted account {account_id}: {summary['items_deleted']} items, "
            f"{summary['reactions_deleted']} reactions, {summary['replies_deleted']} replies"
        )
        return summary

    def delete_reaction(self, reaction_id) -> Optional[dict]:
        """Delete a single reaction and its replies."""
        try:
            reaction = self.db.query(Reaction).filter(Reaction.id == reaction_id).first()
            if not reaction:
                self.end_read_transaction()
                return None

            summary = self._new_summary()
            summary["content_item_id"] = reaction.content_item_id
            self._delete_reactions([reaction], summary)
            self.db.commit()
        except Exception:
            self.rollback()
            raise

        return summary

    def delete_reactions_for_item(self, item_id) -> Optional[dict]:
        """Delete every reaction (and reply) on an item, keeping the item."""
        try:
            item = self.db.query(ContentItem).filter(ContentItem.id == item_id).first()
            if not item:
                self.end_read_transaction()
                return None

            summary = self._new_summary()
            reactions = (
                self.db.query(Reaction)
                .filter(Reaction.content_item_id == item_id)
                .all()
            )
            self._delete_reactions(reactions, summary)
            self.db.commit()
        except Exception:
            self.rollback()
            raise

        return summary

    @staticmethod
    def _new_summary() -> dict:
        return {
            "items_deleted": 0,
            "reactions_deleted": 0,
            "replies_deleted": 0,
            "media": [],
        }

    def _delete_item_subtree(self, item: ContentItem, summary: dict):
        # Children are read after the item row, inside the same transaction
        reactions = (
            self.db.query(Reaction)
            .filter(Reaction.content_item_id == item.id)
            .all()
        )
        self._delete_reactions(reactions, summary)

        item_media = MediaReference.from_columns(item.media_url, item.media_type)
        if item_media:
            summary["media"].append(item_media)

        self.db.query(ContentItem).filter(ContentItem.id == item.id).delete(
            synchronize_session=False
        )

    def _delete_reactions(self, reactions: list[Reaction], summary: dict):
        if not reactions:
            return

        reaction_ids = [reaction.id for reaction in reactions]
        replies = self.db.query(Reply).filter(Reply.reaction_id.in_(reaction_ids)).all()

        for reply in replies:
            reply_media = MediaReference.from_columns(reply.media_url, reply.media_type)
            if reply_media:
                summary["media"].append(reply_media)
        for reaction in reactions:
            reaction_media = MediaReference.from_columns(
                reaction.media_url, reaction.media_type or "video"
            )
            if reaction_media:
                summary["media"].append(reaction_media)
            thumbnail = MediaReference.from_columns(reaction.thumbnail_url, "image")
            if thumbnail:
                summary["media"].append(thumbnail)

        if replies:
            self.db.query(Reply).filter(Reply.reaction_id.in_(reaction_ids)).delete(
                synchronize_session=False
            )
        self.db.query(Reaction).filter(Reaction.id.in_(reaction_ids)).delete(
            synchronize_session=False
        )

        summary["replies_deleted"] += len(replies)
        summary["reactions_deleted"] += len(reactions)
