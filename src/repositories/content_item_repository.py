"""Content item repository - CRUD operations for posted content."""

from typing import Optional

from sqlalchemy import update

from src.repositories.base_repository import BaseRepository
from src.models.content_item import ContentItem
from src.models.reaction import Reaction


class ContentItemRepository(BaseRepository):
    """Repository for ContentItem CRUD operations."""

    def __init__(self):
        super().__init__()

    def get_by_id(self, item_id) -> Optional[ContentItem]:
        """Get content item by ID."""
        return self.db.query(ContentItem).filter(ContentItem.id == item_id).first()

    def get_by_share_path(self, share_path: str) -> Optional[ContentItem]:
        """Get content item by its public share path."""
        return (
            self.db.query(ContentItem)
            .filter(ContentItem.share_path == share_path)
            .first()
        )

    def share_path_exists(self, share_path: str) -> bool:
        """Check whether a share path is already taken."""
        return (
            self.db.query(ContentItem.id)
            .filter(ContentItem.share_path == share_path)
            .first()
            is not None
        )

    def list_by_owner(self, owner_id, limit: Optional[int] = None) -> list[ContentItem]:
        """Get an account's content items, newest first."""
        query = (
            self.db.query(ContentItem)
            .filter(ContentItem.owner_id == owner_id)
            .order_by(ContentItem.created_at.desc())
        )
        if limit:
            query = query.limit(limit)
        return query.all()

    def count_reactions(self, item_id) -> int:
        """Count reactions (pending and complete) on an item."""
        return (
            self.db.query(Reaction)
            .filter(Reaction.content_item_id == item_id)
            .count()
        )

    def create(
        self,
        owner_id,
        body: str,
        share_path: str,
        passcode: Optional[str] = None,
        media_url: Optional[str] = None,
        media_type: Optional[str] = None,
        media_size: Optional[int] = None,
        reaction_length: int = 15,
        max_reactions_allowed: Optional[int] = None,
        moderation_status: str = "approved",
    ) -> ContentItem:
        """Create a new content item."""
        item = ContentItem(
            owner_id=owner_id,
            body=body,
            share_path=share_path,
            passcode=passcode,
            media_url=media_url,
            media_type=media_type,
            media_size=media_size,
            reaction_length=reaction_length,
            max_reactions_allowed=max_reactions_allowed,
            moderation_status=moderation_status,
            has_reply=False,
            viewed=False,
        )
        self.db.add(item)
        self.db.commit()
        self.db.refresh(item)
        return item

    def mark_has_reply(self, item_id) -> bool:
        """Flag an item as having at least one response."""
        result = self.db.execute(
            update(ContentItem)
            .where(ContentItem.id == item_id)
            .values(has_reply=True)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        return result.rowcount > 0

    def mark_viewed(self, item_id) -> bool:
        """Flag an item as opened through its share path."""
        result = self.db.execute(
            update(ContentItem)
            .where(ContentItem.id == item_id)
            .values(viewed=True)
            .execution_options(synchronize_session=False)
        )
        self.db.commit()
        return result.rowcount > 0
