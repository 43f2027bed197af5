"""Content lifecycle exceptions (lookups, quotas, reaction state)."""

from typing import Optional

from src.exceptions.base import ReactlyveError


class NotFoundError(ReactlyveError):
    """
    Referenced entity does not exist.

    Always terminal - retrying the same request cannot succeed.

    Attributes:
        entity: Kind of entity that was looked up ('account', 'content_item', ...)
        identifier: The id or share path that was not found
    """

    def __init__(
        self,
        entity: str,
        identifier: Optional[object] = None,
        message: Optional[str] = None,
    ):
        super().__init__(message or f"{entity.replace('_', ' ').capitalize()} not found")
        self.entity = entity
        self.identifier = identifier

    def __str__(self) -> str:
        base = super().__str__()
        if self.identifier is not None:
            return f"{base} (id: {self.identifier})"
        return base


class QuotaExceededError(ReactlyveError):
    """
    A monthly quota or per-item cap blocks the operation.

    Terminal for the current request; recoverable next month or after an
    admin limit change.

    Attributes:
        kind: 'per-item', 'receiver-monthly' or 'creator-monthly'
        limit: The limit that was hit (if known)
    """

    def __init__(
        self,
        kind: str,
        limit: Optional[int] = None,
        message: Optional[str] = None,
    ):
        super().__init__(message or f"Quota exceeded: {kind}")
        self.kind = kind
        self.limit = limit

    def __str__(self) -> str:
        base = super().__str__()
        if self.limit is not None:
            return f"{base} (limit: {self.limit})"
        return base


class InvalidInputError(ReactlyveError):
    """Caller supplied a value the operation cannot accept."""

    def __init__(self, message: str, field: Optional[str] = None):
        super().__init__(message)
        self.field = field


class ReactionStateError(ReactlyveError):
    """
    Requested lifecycle transition is not allowed.

    Raised e.g. when attaching media to a reaction that is already complete.
    """

    def __init__(self, current_status: str, requested_status: str):
        super().__init__(
            f"Reaction cannot move from '{current_status}' to '{requested_status}'"
        )
        self.current_status = current_status
        self.requested_status = requested_status
