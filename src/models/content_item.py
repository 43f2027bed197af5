"""Content item model - the posted object others react to."""

from sqlalchemy import (
    Column,
    String,
    BigInteger,
    Boolean,
    Integer,
    DateTime,
    Text,
    ForeignKey,
)
from sqlalchemy.dialects.postgresql import UUID
from datetime import datetime
import uuid

from src.config.database import Base


class ContentItem(Base):
    """
    Content item model.

    Created by the posting flow. Reactions hang off it and are removed
    together with it by CascadingDeletionService.
    """

    __tablename__ = "content_items"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    owner_id = Column(
        UUID(as_uuid=True),
        ForeignKey("accounts.id"),
        nullable=False,
        index=True,
    )

    body = Column(Text, nullable=False)

    # Unauthenticated lookup
    share_path = Column(String(32), nullable=False, unique=True, index=True)
    passcode = Column(Text)

    # Attached media (MediaReference)
    media_url = Column(Text)
    media_type = Column(String(20))  # 'image' or 'video'
    media_size = Column(BigInteger)

    # Reaction settings
    reaction_length = Column(Integer, nullable=False, default=15)  # seconds
    max_reactions_allowed = Column(Integer)  # Copied from owner at creation, NULL = unlimited

    # Moderation
    moderation_status = Column(
        String(20), nullable=False, default="approved", index=True
    )  # 'approved', 'pending', 'manual_review'
    moderation_details = Column(Text)

    # State
    has_reply = Column(Boolean, nullable=False, default=False)
    viewed = Column(Boolean, nullable=False, default=False)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<ContentItem {self.share_path} (owner {self.owner_id})>"
