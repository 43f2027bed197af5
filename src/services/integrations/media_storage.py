"""Media storage service - S3-compatible object store for uploaded media."""

import re
import time
from dataclasses import dataclass, field
from pathlib import PurePosixPath
from typing import Iterable, Optional, Union
from urllib.parse import urlparse, unquote

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from src.services.base_service import BaseService
from src.config.constants import MEDIA_KIND_IMAGE, MEDIA_KIND_VIDEO
from src.config.settings import settings
from src.exceptions import MediaUploadError, MediaDeleteError
from src.models.media_reference import MediaReference
from src.utils.image_processing import ImageProcessor
from src.utils.logger import logger


@dataclass
class BatchDeleteResult:
    """Outcome of a batched media delete."""

    deleted: list[str] = field(default_factory=list)
    failed: dict[str, str] = field(default_factory=dict)  # key or url -> reason

    @property
    def deleted_count(self) -> int:
        return len(self.deleted)

    @property
    def failed_count(self) -> int:
        return len(self.failed)


class MediaStorageService(BaseService):
    """
    Client for the external media store (S3 or an S3-compatible service).

    Images are re-encoded to WebP before upload; videos are stored as-is.
    Object keys look like "<folder>/<epoch-ms>-<name>.<ext>".

    Usage:
        storage = MediaStorageService()
        ref = storage.upload_media(data, kind="video", folder="reactions", file_name="clip.webm")
        storage.delete_media(ref)
    """

    PROVIDER = "s3"
    MAX_KEYS_PER_DELETE = 1000  # S3 DeleteObjects limit

    VIDEO_CONTENT_TYPES = {
        ".mp4": "video/mp4",
        ".mov": "video/quicktime",
        ".webm": "video/webm",
        ".avi": "video/x-msvideo",
        ".mkv": "video/x-matroska",
    }

    def __init__(self, client=None):
        super().__init__()
        self.image_processor = ImageProcessor()
        self._client = client

    @property
    def client(self):
        """Lazily built boto3 S3 client."""
        if self._client is None:
            self._client = self._build_client()
        return self._client

    def _build_client(self):
        options = {
            "region_name": settings.S3_REGION,
            # Path-style addressing works for AWS and for MinIO-like endpoints
            "config": Config(s3={"addressing_style": "path"}),
        }
        if settings.S3_ENDPOINT:
            options["endpoint_url"] = settings.S3_ENDPOINT
        if settings.S3_ACCESS_KEY_ID and settings.S3_SECRET_ACCESS_KEY:
            options["aws_access_key_id"] = settings.S3_ACCESS_KEY_ID
            options["aws_secret_access_key"] = settings.S3_SECRET_ACCESS_KEY

        return boto3.client("s3", **options)

    def is_configured(self) -> bool:
        """Check if a bucket is configured."""
        return bool(settings.S3_BUCKET_NAME)

    @classmethod
    def kind_for_file(cls, file_name: Optional[str]) -> str:
        """Guess the media kind from a file name's extension."""
        if file_name and PurePosixPath(file_name).suffix.lower() in cls.VIDEO_CONTENT_TYPES:
            return MEDIA_KIND_VIDEO
        return MEDIA_KIND_IMAGE

    def upload_media(
        self,
        data: bytes,
        kind: str,
        folder: str,
        file_name: Optional[str] = None,
    ) -> MediaReference:
        """
        Upload a media payload.

        Args:
            data: Raw bytes
            kind: 'image' or 'video'
            folder: Key prefix ('messages', 'reactions', ...)
            file_name: Original file name, used for the key and content type

        Returns:
            MediaReference for the stored object

        Raises:
            MediaUploadError: On empty/oversized payloads, unreadable images,
                missing configuration, or any store error. Never retried here.
        """
        with self.track_execution(
            method_name="upload_media",
            input_params={
                "kind": kind,
                "folder": folder,
                "file_name": file_name,
                "size_bytes": len(data) if data else 0,
            },
        ) as run_id:
            self._validate_upload(data, kind, file_name)

            body, key, content_type = self._prepare_object(data, kind, folder, file_name)

            logger.info(f"Uploading {kind} to media store: {key}")

            try:
                self.client.put_object(
                    Bucket=settings.S3_BUCKET_NAME,
                    Key=key,
                    Body=body,
                    ContentType=content_type,
                )
            except (BotoCoreError, ClientError) as e:
                logger.error(f"Media store upload failed for {key}: {e}")
                raise MediaUploadError(
                    f"Media store upload failed: {e}",
                    file_name=file_name,
                    provider=self.PROVIDER,
                ) from e

            reference = MediaReference(url=self.public_url(key), kind=kind, key=key)

            self.set_result_summary(
                run_id, {"key": key, "size_bytes": len(body), "content_type": content_type}
            )
            return reference

    def _validate_upload(self, data: bytes, kind: str, file_name: Optional[str]):
        if not data:
            raise MediaUploadError(
                "Empty media payload", file_name=file_name, provider=self.PROVIDER
            )

        if len(data) > settings.MEDIA_MAX_UPLOAD_BYTES:
            raise MediaUploadError(
                f"Media payload too large: {len(data)} bytes "
                f"(max {settings.MEDIA_MAX_UPLOAD_BYTES})",
                file_name=file_name,
                provider=self.PROVIDER,
            )

        if kind not in (MEDIA_KIND_IMAGE, MEDIA_KIND_VIDEO):
            raise MediaUploadError(
                f"Invalid media kind: {kind}", file_name=file_name, provider=self.PROVIDER
            )

        if not self.is_configured():
            raise MediaUploadError(
                "Media store not configured (S3_BUCKET_NAME)",
                file_name=file_name,
                provider=self.PROVIDER,
            )

    def _prepare_object(
        self, data: bytes, kind: str, folder: str, file_name: Optional[str]
    ) -> tuple[bytes, str, str]:
        """Build (body, key, content_type) for an upload."""
        path = PurePosixPath(file_name or "upload")
        stem = re.sub(r"[^A-Za-z0-9._-]+", "-", path.stem).strip("-") or "upload"
        prefix = f"{folder.strip('/')}/{int(time.time() * 1000)}-{stem}"

        if kind == MEDIA_KIND_IMAGE:
            try:
                encoded = self.image_processor.to_webp(
                    data, quality=settings.IMAGE_WEBP_QUALITY
                )
            except ValueError as e:
                raise MediaUploadError(
                    str(e), file_name=file_name, provider=self.PROVIDER
                ) from e
            return encoded.data, f"{prefix}.webp", encoded.content_type

        extension = path.suffix.lower() or ".mp4"
        content_type = self.VIDEO_CONTENT_TYPES.get(extension, f"video/{extension[1:]}")
        return data, f"{prefix}{extension}", content_type

    def public_url(self, key: str) -> str:
        """Public URL of an object key."""
        bucket = settings.S3_BUCKET_NAME
        if settings.S3_PUBLIC_BASE_URL:
            return f"{settings.S3_PUBLIC_BASE_URL.rstrip('/')}/{key}"
        if settings.S3_ENDPOINT:
            return f"{settings.S3_ENDPOINT.rstrip('/')}/{bucket}/{key}"
        return f"https://{bucket}.s3.{settings.S3_REGION}.amazonaws.com/{key}"

    def extract_key(self, url: Optional[str]) -> Optional[str]:
        """
        Recover the object key from a media URL.

        Understands the public base URL, path-style and virtual-hosted
        URLs on a custom endpoint, and both AWS styles. Returns None for
        URLs outside the configured bucket.
        """
        bucket = settings.S3_BUCKET_NAME
        if not url or not bucket:
            return None

        if settings.S3_PUBLIC_BASE_URL:
            base = settings.S3_PUBLIC_BASE_URL.rstrip("/") + "/"
            if url.startswith(base):
                return unquote(url[len(base):]).lstrip("/") or None

        try:
            parsed = urlparse(url)
        except ValueError:
            logger.warning(f"Could not parse media URL: {url}")
            return None

        hostname = parsed.hostname or ""
        path = unquote(parsed.path)
        bucket_prefix = f"/{bucket}/"
        key = None

        if settings.S3_ENDPOINT:
            endpoint = settings.S3_ENDPOINT
            if "://" not in endpoint:
                endpoint = f"https://{endpoint}"
            endpoint_host = urlparse(endpoint).hostname or ""

            if endpoint_host and hostname == endpoint_host:
                if path.startswith(bucket_prefix):
                    key = path[len(bucket_prefix):]
                elif not path.startswith(f"/{bucket}"):
                    key = path[1:]
            elif endpoint_host and hostname == f"{bucket}.{endpoint_host}":
                key = path[1:]

        if key is None and "s3" in hostname and hostname.endswith("amazonaws.com"):
            if hostname.startswith(f"{bucket}."):
                key = path[1:]
            elif path.startswith(bucket_prefix):
                key = path[len(bucket_prefix):]

        if not key:
            return None
        return key.lstrip("/") or None

    def _resolve_key(self, reference: Union[MediaReference, str]) -> Optional[str]:
        if isinstance(reference, MediaReference):
            return reference.key or self.extract_key(reference.url)
        return self.extract_key(reference)

    def delete_media(self, reference: Union[MediaReference, str]) -> bool:
        """
        Delete one object.

        A missing object counts as deleted.

        Raises:
            MediaDeleteError: If the key cannot be resolved or the store errors
        """
        url = reference.url if isinstance(reference, MediaReference) else reference
        key = self._resolve_key(reference)
        if not key:
            raise MediaDeleteError(f"Cannot resolve object key for media URL: {url}")

        try:
            self.client.delete_object(Bucket=settings.S3_BUCKET_NAME, Key=key)
        except ClientError as e:
            if e.response.get("Error", {}).get("Code") == "NoSuchKey":
                logger.info(f"Media object already gone: {key}")
                return True
            raise MediaDeleteError(f"Media store delete failed: {e}", key=key) from e
        except BotoCoreError as e:
            raise MediaDeleteError(f"Media store delete failed: {e}", key=key) from e

        logger.info(f"Deleted media object: {key}")
        return True

    def delete_many(self, references: Iterable[Union[MediaReference, str]]) -> BatchDeleteResult:
        """
        Delete many objects with batched DeleteObjects requests.

        Keys are sent in batches of MAX_KEYS_PER_DELETE. A batch whose
        request fails marks all of its keys as failed; later batches still
        run. Unresolvable URLs are reported as failed without a request.
        """
        result = BatchDeleteResult()
        keys = []

        for reference in references:
            key = self._resolve_key(reference)
            if key:
                keys.append(key)
            else:
                url = reference.url if isinstance(reference, MediaReference) else reference
                result.failed[url] = "unresolvable key"

        keys = list(dict.fromkeys(keys))

        for start in range(0, len(keys), self.MAX_KEYS_PER_DELETE):
            batch = keys[start:start + self.MAX_KEYS_PER_DELETE]
            try:
                response = self.client.delete_objects(
                    Bucket=settings.S3_BUCKET_NAME,
                    Delete={"Objects": [{"Key": key} for key in batch], "Quiet": False},
                )
            except (BotoCoreError, ClientError) as e:
                logger.error(f"Batch delete of {len(batch)} media objects failed: {e}")
                for key in batch:
                    result.failed[key] = str(e)
                continue

            result.deleted.extend(item["Key"] for item in response.get("Deleted", []))
            for error in response.get("Errors", []):
                if error.get("Code") == "NoSuchKey":
                    result.deleted.append(error["Key"])
                else:
                    result.failed[error["Key"]] = f"{error.get('Code')}: {error.get('Message')}"

        if result.failed:
            logger.warning(
                f"Batch media delete: {result.deleted_count} deleted, {result.failed_count} failed"
            )
        else:
            logger.info(f"Batch media delete: {result.deleted_count} deleted")

        return result
