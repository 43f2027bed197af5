"""Account model - identity, role and monthly usage block."""
from sqlalchemy import Column, String, Boolean, Integer, DateTime, Text, CheckConstraint
from sqlalchemy.dialects.postgresql import UUID
from datetime import datetime
import uuid

from src.config.database import Base


class Account(Base):
    """
    Account model.

    Owns content items and carries the monthly usage block. The usage
    counters (content_count_this_month, reactions_received_this_month)
    and last_usage_reset_at are only written by QuotaService.
    """

    __tablename__ = "accounts"

    id = Column(UUID(as_uuid=True), primary_key=True, default=uuid.uuid4)

    # Identity
    email = Column(String(255), unique=True, index=True)
    name = Column(String(255))
    picture_url = Column(Text)  # Profile picture in the media store

    # Access
    role = Column(String(10), nullable=False, default="user")  # 'guest', 'user', 'admin'
    blocked = Column(Boolean, nullable=False, default=False)

    # Moderation preferences for uploaded media
    moderate_images = Column(Boolean, nullable=False, default=False)
    moderate_videos = Column(Boolean, nullable=False, default=False)

    # Usage block - counters
    content_count_this_month = Column(Integer, nullable=False, default=0)
    reactions_received_this_month = Column(Integer, nullable=False, default=0)

    # Usage block - limits (NULL or negative = unlimited)
    max_content_per_month = Column(Integer)
    max_reactions_received_per_month = Column(Integer)
    max_reactions_per_item = Column(Integer)  # Default cap copied onto new items

    # Reset epoch (NULL = reset on first use)
    last_usage_reset_at = Column(DateTime)

    # Activity
    last_login_at = Column(DateTime, index=True)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    __table_args__ = (
        CheckConstraint(
            "role IN ('guest', 'user', 'admin')",
            name="check_account_role",
        ),
    )

    def __repr__(self):
        return f"<Account {self.email or self.id} ({self.role})>"
