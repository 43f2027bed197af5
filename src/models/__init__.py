"""SQLAlchemy models."""
from src.models.account import Account
from src.models.content_item import ContentItem
from src.models.reaction import Reaction
from src.models.reply import Reply
from src.models.service_run import ServiceRun
from src.models.media_reference import MediaReference

__all__ = [
    "Account",
    "ContentItem",
    "Reaction",
    "Reply",
    "ServiceRun",
    "MediaReference",
]
