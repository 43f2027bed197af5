"""Reaction model - a recorded clip attached to a content item."""

from sqlalchemy import (
    Column,
    String,
    Integer,
    DateTime,
    Text,
    ForeignKey,
    UniqueConstraint,
    CheckConstraint,
)
from sqlalchemy.dialects.postgresql import UUID
from datetime import datetime
import uuid

from src.config.database import Base


class Reaction(Base):
    """
    Reaction model.

    Lifecycle:
    - 'pending': row created by initialization, no media yet
    - 'complete': media attached

    client_session_id is the de-duplication key for initialization and is
    unique per content item. Direct reactions leave it NULL.
    """

    __tablename__ = "reactions"

    STATUS_PENDING = "pending"
    STATUS_COMPLETE = "complete"

    ALLOWED_TRANSITIONS = {
        STATUS_PENDING: {STATUS_COMPLETE},
        STATUS_COMPLETE: set(),
    }

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    content_item_id = Column(
        UUID(as_uuid=True),
        ForeignKey("content_items.id"),
        nullable=False,
        index=True,
    )
    client_session_id = Column(String(255))
    name = Column(String(255))  # Optional display name of the reacting party

    status = Column(String(20), nullable=False, default=STATUS_PENDING)

    # Attached media (MediaReference)
    media_url = Column(Text)
    media_type = Column(String(20))
    thumbnail_url = Column(Text)
    duration = Column(Integer)  # seconds

    # Moderation
    moderation_status = Column(
        String(20), nullable=False, default="approved", index=True
    )
    moderation_details = Column(Text)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint(
            "content_item_id", "client_session_id", name="unique_reaction_per_session"
        ),
        CheckConstraint(
            "status IN ('pending', 'complete')",
            name="check_reaction_status",
        ),
    )

    def can_transition_to(self, new_status: str) -> bool:
        """Check whether the lifecycle allows moving to new_status."""
        return new_status in self.ALLOWED_TRANSITIONS.get(self.status, set())

    @classmethod
    def statuses_leading_to(cls, new_status: str) -> set:
        """Statuses from which the lifecycle allows moving to new_status."""
        return {
            status for status, targets in cls.ALLOWED_TRANSITIONS.items()
            if new_status in targets
        }

    def __repr__(self):
        return f"<Reaction {self.id} on {self.content_item_id} ({self.status})>"
