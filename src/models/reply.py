"""Reply model - owner's answer to a reaction."""
from sqlalchemy import Column, String, DateTime, Text, ForeignKey
from sqlalchemy.dialects.postgresql import UUID
from datetime import datetime
import uuid

from src.config.database import Base


class Reply(Base):
    """
    Reply model.

    Strictly owned by its reaction and always deleted before it.
    Carries either text or a media reference.
    """

    __tablename__ = "replies"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)
    reaction_id = Column(
        UUID(as_uuid=True),
        ForeignKey("reactions.id"),
        nullable=False,
        index=True,
    )

    text = Column(Text)
    media_url = Column(Text, index=True)
    media_type = Column(String(20))

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f"<Reply {self.id} to {self.reaction_id}>"
