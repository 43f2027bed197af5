"""Shared application constants.

Constants used by multiple modules are defined here to ensure consistency.
Module-specific constants should be defined as class-level attributes on
their respective service classes instead.
"""

# Account roles
ROLE_GUEST = "guest"
ROLE_USER = "user"
ROLE_ADMIN = "admin"
ACCOUNT_ROLES = (ROLE_GUEST, ROLE_USER, ROLE_ADMIN)

# Moderation statuses shared by content items and reactions
MODERATION_APPROVED = "approved"
MODERATION_PENDING = "pending"
MODERATION_MANUAL_REVIEW = "manual_review"
MODERATION_STATUSES = (
    MODERATION_APPROVED,
    MODERATION_PENDING,
    MODERATION_MANUAL_REVIEW,
)

# Media reference kinds
MEDIA_KIND_IMAGE = "image"
MEDIA_KIND_VIDEO = "video"

# Quota kinds reported by QuotaExceededError
QUOTA_PER_ITEM = "per-item"
QUOTA_RECEIVER_MONTHLY = "receiver-monthly"
QUOTA_CREATOR_MONTHLY = "creator-monthly"

# Reaction clip length bounds in seconds (used by content.py and validators.py)
MIN_REACTION_LENGTH = 10
MAX_REACTION_LENGTH = 30

# Text replies
MAX_REPLY_LENGTH = 500
