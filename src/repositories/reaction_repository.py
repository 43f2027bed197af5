"""Reaction repository - reaction rows and their replies."""

from typing import Optional
from datetime import datetime

from sqlalchemy import update

from src.repositories.base_repository import BaseRepository
from src.models.content_item import ContentItem
from src.models.reaction import Reaction
from src.models.reply import Reply


class ReactionRepository(BaseRepository):
    """Repository for Reaction and Reply rows."""

    def __init__(self):
        super().__init__()

    def get_by_id(self, reaction_id) -> Optional[Reaction]:
        """Get reaction by ID."""
        return self.db.query(Reaction).filter(Reaction.id == reaction_id).first()

    def get_by_session(self, item_id, client_session_id: str) -> Optional[Reaction]:
        """Get the reaction a client session already created on an item."""
        return (
            self.db.query(Reaction)
            .filter(
                Reaction.content_item_id == item_id,
                Reaction.client_session_id == client_session_id,
            )
            .first()
        )

    def list_for_item(self, item_id) -> list[Reaction]:
        """Get all reactions on an item, oldest first."""
        return (
            self.db.query(Reaction)
            .filter(Reaction.content_item_id == item_id)
            .order_by(Reaction.created_at.asc())
            .all()
        )

    def lock_content_item(self, item_id) -> Optional[ContentItem]:
        """
        Take a row lock on the parent item (SELECT ... FOR UPDATE).

        Held until the next commit or rollback on this repository, which
        serializes per-item cap checks with the insert that follows them.
        """
        return (
            self.db.query(ContentItem)
            .filter(ContentItem.id == item_id)
            .with_for_update()
            .first()
        )

    def count_for_item(self, item_id) -> int:
        """Count reactions (pending and complete) on an item."""
        return (
            self.db.query(Reaction)
            .filter(Reaction.content_item_id == item_id)
            .count()
        )

    def create(
        self,
        item_id,
        client_session_id: Optional[str] = None,
        name: Optional[str] = None,
        status: str = Reaction.STATUS_PENDING,
        media_url: Optional[str] = None,
        media_type: Optional[str] = None,
        moderation_status: str = "approved",
    ) -> Reaction:
        """
        Insert a reaction row.

        Raises:
            IntegrityError: If the (item, session) pair already exists
        """
        reaction = Reaction(
            content_item_id=item_id,
            client_session_id=client_session_id,
            name=name,
            status=status,
            media_url=media_url,
            media_type=media_type,
            moderation_status=moderation_status,
        )
        self.db.add(reaction)
        self.db.commit()
        self.db.refresh(reaction)
        return reaction

    def attach_media(
        self,
        reaction_id,
        media_url: str,
        media_type: str,
        status: str,
        moderation_status: str = "approved",
        duration: Optional[int] = None,
    ) -> bool:
        """
        Store the media reference on a reaction and move it to status.

        The status check and the write are one conditional UPDATE: it only
        matches while the reaction exists in a status that may move to
        status, so a concurrent attach or delete leaves it untouched.

        Returns:
            True if the reaction was updated
        """
        values = {
            "media_url": media_url,
            "media_type": media_type,
            "status": status,
            "moderation_status": moderation_status,
            "updated_at": datetime.utcnow(),
        }
        if duration is not None:
            values["duration"] = duration

        try:
            result = self.db.execute(
                update(Reaction)
                .where(
                    Reaction.id == reaction_id,
                    Reaction.status.in_(sorted(Reaction.statuses_leading_to(status))),
                )
                .values(**values)
                .execution_options(synchronize_session=False)
            )
            self.db.commit()
        except Exception:
            self.rollback()
            raise

        return result.rowcount > 0

    def create_reply(
        self,
        reaction_id,
        text: Optional[str] = None,
        media_url: Optional[str] = None,
        media_type: Optional[str] = None,
    ) -> Reply:
        """Insert a reply to a reaction."""
        reply = Reply(
            reaction_id=reaction_id,
            text=text,
            media_url=media_url,
            media_type=media_type,
        )
        self.db.add(reply)
        self.db.commit()
        self.db.refresh(reply)
        return reply
