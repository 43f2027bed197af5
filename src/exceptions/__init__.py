"""Reactlyve exception classes."""

from src.exceptions.base import ReactlyveError
from src.exceptions.content import (
    NotFoundError,
    QuotaExceededError,
    InvalidInputError,
    ReactionStateError,
)
from src.exceptions.storage import (
    StorageError,
    MediaUploadError,
    MediaDeleteError,
)

__all__ = [
    "ReactlyveError",
    "NotFoundError",
    "QuotaExceededError",
    "InvalidInputError",
    "ReactionStateError",
    "StorageError",
    "MediaUploadError",
    "MediaDeleteError",
]
