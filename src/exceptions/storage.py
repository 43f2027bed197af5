"""Relational store and media store exceptions."""

from typing import Optional

from src.exceptions.base import ReactlyveError


class StorageError(ReactlyveError):
    """
    Relational store failure.

    Always accompanied by a rollback of the enclosing transaction, so no
    partial database state is left behind.

    Attributes:
        operation: Name of the operation that failed (e.g., 'delete_account')
    """

    def __init__(self, message: str, operation: Optional[str] = None):
        super().__init__(message)
        self.operation = operation

    def __str__(self) -> str:
        base = super().__str__()
        if self.operation:
            return f"{base} (operation: {self.operation})"
        return base


class MediaUploadError(ReactlyveError):
    """
    Media store upload failed.

    Transient: the caller may retry the whole upload step. Services never
    retry internally.

    Attributes:
        file_name: Name of the payload that failed to upload
        provider: Media store provider name (e.g., 's3')
    """

    def __init__(
        self,
        message: str,
        file_name: Optional[str] = None,
        provider: Optional[str] = None,
    ):
        super().__init__(message)
        self.file_name = file_name
        self.provider = provider

    def __str__(self) -> str:
        base = super().__str__()
        if self.file_name:
            return f"{base} (file: {self.file_name})"
        return base


class MediaDeleteError(ReactlyveError):
    """
    Media store deletion failed.

    Only ever logged by the deletion engine - the database is the source
    of truth and orphaned objects are an accepted cost.
    """

    def __init__(self, message: str, key: Optional[str] = None):
        super().__init__(message)
        self.key = key
