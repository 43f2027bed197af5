"""Content service - posting content items and share-path lookups."""
import secrets
from datetime import datetime
from typing import Optional

from sqlalchemy.exc import SQLAlchemyError

from src.services.base_service import BaseService
from src.services.core.quota import QuotaService
from src.services.integrations.media_storage import MediaStorageService
from src.repositories.account_repository import AccountRepository
from src.repositories.content_item_repository import ContentItemRepository
from src.models.content_item import ContentItem
from src.config.constants import (
    MAX_REACTION_LENGTH,
    MEDIA_KIND_IMAGE,
    MEDIA_KIND_VIDEO,
    MIN_REACTION_LENGTH,
    MODERATION_APPROVED,
    MODERATION_PENDING,
)
from src.config.settings import settings
from src.exceptions import InvalidInputError, MediaDeleteError, NotFoundError, StorageError
from src.utils.logger import logger


class ContentService(BaseService):
    """Creates content items under the owner's monthly quota."""

    MEDIA_FOLDER = "messages"
    SHARE_PATH_BYTES = 8  # 16 hex characters
    SHARE_PATH_ATTEMPTS = 5

    def __init__(self):
        super().__init__()
        self.account_repo = AccountRepository()
        self.content_repo = ContentItemRepository()
        self.quota_service = QuotaService()
        self.media_storage = MediaStorageService()

    def create_content_item(
        self,
        owner_id,
        body: str,
        media: Optional[bytes] = None,
        file_name: Optional[str] = None,
        passcode: Optional[str] = None,
        reaction_length=None,
        now: Optional[datetime] = None,
    ) -> ContentItem:
        """
        Post a content item, optionally with an image or video.

        Order: owner lookup, quota (resetting the month if needed), media
        upload, insert, then the content counter increment. A failed
        increment is logged and does not fail the call.

        Args:
            owner_id: Posting account
            body: Text of the item
            media: Optional media bytes; kind is taken from file_name's extension
            file_name: Original media file name
            passcode: Optional passcode required to view the item
            reaction_length: Clip length in seconds (10-30, otherwise the default)

        Raises:
            InvalidInputError: Blank body
            NotFoundError: Owner does not exist
            QuotaExceededError: kind 'creator-monthly'
            MediaUploadError: Media upload failed, nothing was inserted
            StorageError: Database failure
        """
        owner = self._owner_defaults(owner_id)

        # Only a confirmed owner goes into the run's account column
        with self.track_execution(
            method_name="create_content_item",
            account_id=owner_id if owner else None,
            triggered_by="user",
            input_params={
                "owner_id": str(owner_id),
                "file_name": file_name,
                "has_media": bool(media),
                "reaction_length": reaction_length,
            },
        ) as run_id:
            if not body or not body.strip():
                raise InvalidInputError("Content body is required", field="body")

            if not owner:
                raise NotFoundError("account", owner_id)

            moderated_kinds, default_cap = owner

            self.quota_service.ensure_can_create_content(owner_id, now=now)

            share_path = self._new_share_path()

            reference = None
            moderation_status = MODERATION_APPROVED
            if media:
                kind = MediaStorageService.kind_for_file(file_name)
                reference = self.media_storage.upload_media(
                    media, kind, self.MEDIA_FOLDER, file_name=file_name
                )
                if moderated_kinds[kind]:
                    moderation_status = MODERATION_PENDING

            try:
                item = self.content_repo.create(
                    owner_id=owner_id,
                    body=body,
                    share_path=share_path,
                    passcode=passcode or None,
                    media_url=reference.url if reference else None,
                    media_type=reference.kind if reference else None,
                    media_size=len(media) if media else None,
                    reaction_length=self.normalize_reaction_length(reaction_length),
                    max_reactions_allowed=default_cap,
                    moderation_status=moderation_status,
                )
            except SQLAlchemyError as e:
                self.content_repo.rollback()
                if reference:
                    self._discard_upload(reference)
                raise StorageError(
                    f"Failed to create content item: {e}", operation="create_content_item"
                ) from e

            self.quota_service.increment_content_count(owner_id)

            logger.info(f"Created content item {item.id} for account {owner_id}")
            self.set_result_summary(
                run_id,
                {
                    "item_id": str(item.id),
                    "share_path": item.share_path,
                    "moderation_status": moderation_status,
                },
            )
            return item

    @staticmethod
    def normalize_reaction_length(value) -> int:
        """Coerce a requested reaction length into range, falling back to the default."""
        try:
            length = int(value)
        except (TypeError, ValueError):
            return settings.DEFAULT_REACTION_LENGTH

        if MIN_REACTION_LENGTH <= length <= MAX_REACTION_LENGTH:
            return length
        return settings.DEFAULT_REACTION_LENGTH

    def get_shared_item(self, share_path: str) -> ContentItem:
        """Look up an item by share path. Raises NotFoundError."""
        item = self.content_repo.get_by_share_path(share_path)
        if not item:
            self.content_repo.end_read_transaction()
            raise NotFoundError("content_item", share_path)
        return item

    def verify_passcode(self, share_path: str, passcode: Optional[str]) -> bool:
        """
        Check a viewer's passcode and mark the item viewed on success.

        Items without a passcode always verify.
        """
        item = self.get_shared_item(share_path)
        item_id = item.id
        expected = item.passcode
        self.content_repo.end_read_transaction()

        if expected:
            verified = secrets.compare_digest(
                expected.encode("utf-8"), (passcode or "").encode("utf-8")
            )
        else:
            verified = True

        if verified:
            try:
                self.content_repo.mark_viewed(item_id)
            except SQLAlchemyError as e:
                self.content_repo.rollback()
                logger.error(f"Failed to mark item {item_id} as viewed: {e}")

        return verified

    def reactions_remaining(self, item: ContentItem) -> Optional[int]:
        """Free reaction slots on an item, or None when uncapped."""
        cap = item.max_reactions_allowed
        if cap is None or cap < 0:
            return None

        used = self.content_repo.count_reactions(item.id)
        self.content_repo.end_read_transaction()
        return max(0, cap - used)

    @staticmethod
    def share_url(item: ContentItem) -> str:
        """Public link for an item."""
        return f"{settings.FRONTEND_URL.rstrip('/')}/m/{item.share_path}"

    def _owner_defaults(self, owner_id) -> Optional[tuple]:
        """(moderated kinds, default per-item cap) for an owner, or None if absent."""
        try:
            owner = self.account_repo.get_by_id(owner_id)
            if not owner:
                return None
            moderated_kinds = {
                MEDIA_KIND_IMAGE: bool(owner.moderate_images),
                MEDIA_KIND_VIDEO: bool(owner.moderate_videos),
            }
            return moderated_kinds, owner.max_reactions_per_item
        except SQLAlchemyError as e:
            self.account_repo.rollback()
            raise StorageError(
                f"Failed to load account: {e}", operation="create_content_item"
            ) from e
        finally:
            self.account_repo.end_read_transaction()

    def _new_share_path(self) -> str:
        for _ in range(self.SHARE_PATH_ATTEMPTS):
            share_path = secrets.token_hex(self.SHARE_PATH_BYTES)
            taken = self.content_repo.share_path_exists(share_path)
            self.content_repo.end_read_transaction()
            if not taken:
                return share_path

        raise StorageError(
            "Could not allocate a unique share path", operation="create_content_item"
        )

    def _discard_upload(self, reference):
        try:
            self.media_storage.delete_media(reference)
        except MediaDeleteError as e:
            logger.warning(f"Could not remove unused upload {reference.url}: {e}")
