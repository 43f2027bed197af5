"""Reaction lifecycle service - two-phase reaction protocol."""
from dataclasses import dataclass
from datetime import datetime
from typing import Optional
from uuid import UUID

from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from src.services.base_service import BaseService
from src.services.core.quota import QuotaService, within_limit
from src.services.integrations.media_storage import MediaStorageService
from src.repositories.account_repository import AccountRepository
from src.repositories.content_item_repository import ContentItemRepository
from src.repositories.reaction_repository import ReactionRepository
from src.models.media_reference import MediaReference
from src.models.reaction import Reaction
from src.config.constants import (
    MAX_REPLY_LENGTH,
    MEDIA_KIND_VIDEO,
    MODERATION_APPROVED,
    MODERATION_PENDING,
    QUOTA_PER_ITEM,
    QUOTA_RECEIVER_MONTHLY,
)
from src.exceptions import (
    InvalidInputError,
    MediaDeleteError,
    NotFoundError,
    QuotaExceededError,
    ReactionStateError,
    StorageError,
)
from src.utils.logger import logger


@dataclass
class InitResult:
    """Result of initializing a reaction."""

    reaction_id: UUID
    created: bool  # False when an existing (item, session) reaction was returned


class ReactionLifecycleService(BaseService):
    """
    Owns the reaction state machine: absent -> pending -> complete.

    Checks run in a fixed order and stop at the first failure:
    item exists, owner's monthly receive quota, per-item cap, then
    de-duplication by (item, client session). The per-item count and the
    insert happen under a row lock on the item.
    """

    REACTION_FOLDER = "reactions"

    def __init__(self):
        super().__init__()
        self.account_repo = AccountRepository()
        self.content_repo = ContentItemRepository()
        self.reaction_repo = ReactionRepository()
        self.quota_service = QuotaService()
        self.media_storage = MediaStorageService()

    def initialize(
        self,
        item_id,
        client_session_id: Optional[str],
        name: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> InitResult:
        """
        Create (or find) the pending reaction for a client session.

        Repeating the call with the same session returns the same reaction
        and does not count it twice against the owner's quota.

        Raises:
            NotFoundError: Item does not exist
            QuotaExceededError: 'receiver-monthly' or 'per-item'
            InvalidInputError: No client session id (checked after the limits)
            StorageError: Database failure
        """
        with self.track_execution(
            method_name="initialize",
            input_params={"item_id": str(item_id), "client_session_id": client_session_id},
        ) as run_id:
            owner_id, cap = self._check_limits(item_id, now)

            try:
                reaction_id, created = self._insert_under_cap(
                    item_id,
                    cap,
                    client_session_id=client_session_id,
                    require_session=True,
                    name=name,
                )
            except SQLAlchemyError as e:
                self.reaction_repo.rollback()
                raise StorageError(
                    f"Failed to create reaction: {e}", operation="initialize"
                ) from e

            if created:
                self.quota_service.increment_received_reactions(owner_id)
                logger.info(f"Initialized reaction {reaction_id} on item {item_id}")
            else:
                logger.info(
                    f"Reaction {reaction_id} already exists for session on item {item_id}"
                )

            self.set_result_summary(
                run_id, {"reaction_id": str(reaction_id), "created": created}
            )
            return InitResult(reaction_id=reaction_id, created=created)

    def attach_media(
        self,
        reaction_id,
        data: bytes,
        file_name: Optional[str] = None,
        uploader_id=None,
        duration: Optional[int] = None,
    ) -> MediaReference:
        """
        Upload the clip for a pending reaction and complete it.

        Args:
            reaction_id: Pending reaction
            data: Video bytes
            file_name: Original file name (extension picks the content type)
            uploader_id: Authenticated uploader, whose moderate_videos flag
                decides the moderation status
            duration: Clip length in seconds, if known

        Raises:
            NotFoundError: Reaction does not exist (or was deleted mid-upload)
            ReactionStateError: Reaction is already complete
            MediaUploadError: Upload failed; the reaction stays pending
            StorageError: Database failure
        """
        moderate = (
            self._video_moderation(uploader_id, "attach_media") if uploader_id else None
        )
        moderation_status = MODERATION_PENDING if moderate else MODERATION_APPROVED

        # Unknown uploaders are recorded in input_params only
        with self.track_execution(
            method_name="attach_media",
            account_id=uploader_id if moderate is not None else None,
            input_params={
                "reaction_id": str(reaction_id),
                "uploader_id": str(uploader_id) if uploader_id else None,
                "file_name": file_name,
            },
        ) as run_id:
            item_id = self._pending_reaction_item(reaction_id)

            reference = self.media_storage.upload_media(
                data, MEDIA_KIND_VIDEO, self.REACTION_FOLDER, file_name=file_name
            )

            try:
                updated = self.reaction_repo.attach_media(
                    reaction_id,
                    media_url=reference.url,
                    media_type=reference.kind,
                    status=Reaction.STATUS_COMPLETE,
                    moderation_status=moderation_status,
                    duration=duration,
                )
            except SQLAlchemyError as e:
                self._discard_upload(reference)
                raise StorageError(
                    f"Failed to store reaction media: {e}", operation="attach_media"
                ) from e

            if not updated:
                # Deleted or completed by someone else while uploading
                self._discard_upload(reference)
                self._pending_reaction_item(reaction_id)
                raise ReactionStateError(Reaction.STATUS_PENDING, Reaction.STATUS_COMPLETE)

            self._mark_item_replied(item_id)

            self.set_result_summary(
                run_id, {"media_url": reference.url, "moderation_status": moderation_status}
            )
            return reference

    def record_direct(
        self,
        item_id,
        sender_id,
        data: bytes,
        file_name: Optional[str] = None,
        name: Optional[str] = None,
        now: Optional[datetime] = None,
    ) -> UUID:
        """
        One-shot reaction for an authenticated sender: check, upload, insert.

        No session de-duplication; the per-item cap is the only bound on
        how many reactions one sender leaves on an item.

        Checks run item, sender, receiver quota, per-item cap, so a missing
        item is reported before a missing sender.

        Raises:
            NotFoundError: Item or sender does not exist
            QuotaExceededError: 'receiver-monthly' or 'per-item'
            MediaUploadError: Upload failed, nothing was inserted
            StorageError: Database failure
        """
        moderate = self._video_moderation(sender_id, "record_direct")

        with self.track_execution(
            method_name="record_direct",
            account_id=sender_id if moderate is not None else None,
            input_params={
                "item_id": str(item_id),
                "sender_id": str(sender_id),
                "file_name": file_name,
            },
        ) as run_id:
            owner_id, cap = self._load_item(item_id)
            if moderate is None:
                raise NotFoundError("account", sender_id)
            moderation_status = MODERATION_PENDING if moderate else MODERATION_APPROVED

            self._check_receiver_quota(owner_id, now)
            if not within_limit(self._count_reactions(item_id), cap):
                raise QuotaExceededError(QUOTA_PER_ITEM, limit=cap)

            reference = self.media_storage.upload_media(
                data, MEDIA_KIND_VIDEO, self.REACTION_FOLDER, file_name=file_name
            )

            try:
                reaction_id, _ = self._insert_under_cap(
                    item_id,
                    cap,
                    name=name,
                    status=Reaction.STATUS_COMPLETE,
                    media_url=reference.url,
                    media_type=reference.kind,
                    moderation_status=moderation_status,
                )
            except (QuotaExceededError, NotFoundError):
                # Lost a race for the last slot after uploading
                self._discard_upload(reference)
                raise
            except SQLAlchemyError as e:
                self.reaction_repo.rollback()
                self._discard_upload(reference)
                raise StorageError(
                    f"Failed to record reaction: {e}", operation="record_direct"
                ) from e

            self._mark_item_replied(item_id)
            self.quota_service.increment_received_reactions(owner_id)

            logger.info(f"Recorded direct reaction {reaction_id} on item {item_id}")
            self.set_result_summary(run_id, {"reaction_id": str(reaction_id)})
            return reaction_id

    def add_text_reply(self, reaction_id, text: Optional[str]) -> UUID:
        """
        Attach a text reply to a reaction.

        Raises:
            InvalidInputError: Blank text or longer than MAX_REPLY_LENGTH
            NotFoundError: Reaction does not exist
        """
        with self.track_execution(
            method_name="add_text_reply",
            input_params={"reaction_id": str(reaction_id)},
        ) as run_id:
            text = (text or "").strip()
            if not text:
                raise InvalidInputError("Reply text is required", field="text")
            if len(text) > MAX_REPLY_LENGTH:
                raise InvalidInputError(
                    f"Reply text exceeds {MAX_REPLY_LENGTH} characters", field="text"
                )

            reaction = self.reaction_repo.get_by_id(reaction_id)
            if not reaction:
                self.reaction_repo.end_read_transaction()
                raise NotFoundError("reaction", reaction_id)
            item_id = reaction.content_item_id

            try:
                reply = self.reaction_repo.create_reply(reaction_id, text=text)
            except SQLAlchemyError as e:
                self.reaction_repo.rollback()
                raise StorageError(
                    f"Failed to store reply: {e}", operation="add_text_reply"
                ) from e

            self._mark_item_replied(item_id)

            self.set_result_summary(run_id, {"reply_id": str(reply.id)})
            return reply.id

    # ==================== Internals ====================

    def _check_limits(self, item_id, now: Optional[datetime]) -> tuple:
        """Item existence and the owner's receive quota. Returns (owner_id, cap)."""
        owner_id, cap = self._load_item(item_id)
        self._check_receiver_quota(owner_id, now)
        return owner_id, cap

    def _load_item(self, item_id) -> tuple:
        """(owner_id, per-item cap) for an item. Raises NotFoundError."""
        try:
            item = self.content_repo.get_by_id(item_id)
            if not item:
                raise NotFoundError("content_item", item_id)
            return item.owner_id, item.max_reactions_allowed
        except SQLAlchemyError as e:
            self.content_repo.rollback()
            raise StorageError(
                f"Failed to load content item: {e}", operation="load_item"
            ) from e
        finally:
            self.content_repo.end_read_transaction()

    def _check_receiver_quota(self, owner_id, now: Optional[datetime]):
        usage = self.quota_service.check_and_reset_usage(owner_id, now=now)
        if not QuotaService.can_receive_reaction(usage):
            raise QuotaExceededError(
                QUOTA_RECEIVER_MONTHLY, limit=usage.max_reactions_received_per_month
            )

    def _video_moderation(self, account_id, operation: str) -> Optional[bool]:
        """The account's moderate_videos flag, or None if the account does not exist."""
        try:
            account = self.account_repo.get_by_id(account_id)
            if not account:
                return None
            return bool(account.moderate_videos)
        except SQLAlchemyError as e:
            self.account_repo.rollback()
            raise StorageError(
                f"Failed to load account: {e}", operation=operation
            ) from e
        finally:
            self.account_repo.end_read_transaction()

    def _pending_reaction_item(self, reaction_id):
        """
        Item id of a reaction that may still be completed.

        Raises:
            NotFoundError: Reaction does not exist
            ReactionStateError: Reaction cannot move to complete
        """
        try:
            reaction = self.reaction_repo.get_by_id(reaction_id)
            if not reaction:
                raise NotFoundError("reaction", reaction_id)
            if not reaction.can_transition_to(Reaction.STATUS_COMPLETE):
                raise ReactionStateError(reaction.status, Reaction.STATUS_COMPLETE)
            return reaction.content_item_id
        except SQLAlchemyError as e:
            self.reaction_repo.rollback()
            raise StorageError(
                f"Failed to load reaction: {e}", operation="attach_media"
            ) from e
        finally:
            self.reaction_repo.end_read_transaction()

    def _count_reactions(self, item_id) -> int:
        count = self.content_repo.count_reactions(item_id)
        self.content_repo.end_read_transaction()
        return count

    def _insert_under_cap(
        self,
        item_id,
        cap: Optional[int],
        client_session_id: Optional[str] = None,
        require_session: bool = False,
        **fields,
    ) -> tuple[UUID, bool]:
        """
        Lock the item row, enforce the per-item cap, de-duplicate, insert.

        Returns:
            (reaction_id, created)
        """
        try:
            if self.reaction_repo.lock_content_item(item_id) is None:
                raise NotFoundError("content_item", item_id)

            if not within_limit(self.reaction_repo.count_for_item(item_id), cap):
                raise QuotaExceededError(QUOTA_PER_ITEM, limit=cap)

            if require_session:
                if not client_session_id or not client_session_id.strip():
                    raise InvalidInputError(
                        "Client session id is required", field="client_session_id"
                    )

                existing = self.reaction_repo.get_by_session(item_id, client_session_id)
                if existing:
                    return existing.id, False

            reaction = self.reaction_repo.create(
                item_id, client_session_id=client_session_id, **fields
            )
            return reaction.id, True

        except IntegrityError:
            # Concurrent insert for the same (item, session) won
            self.reaction_repo.rollback()
            existing = None
            if client_session_id:
                existing = self.reaction_repo.get_by_session(item_id, client_session_id)
            if existing is None:
                raise
            return existing.id, False

        finally:
            self.reaction_repo.end_read_transaction()

    def _mark_item_replied(self, item_id):
        try:
            self.content_repo.mark_has_reply(item_id)
        except SQLAlchemyError as e:
            self.content_repo.rollback()
            logger.error(f"Failed to mark item {item_id} as replied: {e}")

    def _discard_upload(self, reference: MediaReference):
        try:
            self.media_storage.delete_media(reference)
        except MediaDeleteError as e:
            logger.warning(f"Could not remove unused upload {reference.url}: {e}")
