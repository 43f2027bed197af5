"""Repository layer - database access."""

from src.repositories.base_repository import BaseRepository
from src.repositories.account_repository import AccountRepository
from src.repositories.content_item_repository import ContentItemRepository
from src.repositories.reaction_repository import ReactionRepository
from src.repositories.content_graph_repository import ContentGraphRepository
from src.repositories.service_run_repository import ServiceRunRepository

__all__ = [
    "BaseRepository",
    "AccountRepository",
    "ContentItemRepository",
    "ReactionRepository",
    "ContentGraphRepository",
    "ServiceRunRepository",
]
