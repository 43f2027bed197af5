"""Tests for storage exceptions."""

import pytest

from src.exceptions import MediaDeleteError, MediaUploadError, StorageError


@pytest.mark.unit
class TestStorageError:
    def test_operation_appended(self):
        err = StorageError("Database deletion failed", operation="delete_account")
        assert err.operation == "delete_account"
        assert str(err) == "Database deletion failed (operation: delete_account)"

    def test_without_operation(self):
        assert str(StorageError("boom")) == "boom"


@pytest.mark.unit
class TestMediaUploadError:
    def test_attributes(self):
        err = MediaUploadError("Upload failed", file_name="clip.webm", provider="s3")
        assert err.file_name == "clip.webm"
        assert err.provider == "s3"
        assert str(err) == "Upload failed (file: clip.webm)"

    def test_without_file_name(self):
        assert str(MediaUploadError("Empty media payload")) == "Empty media payload"


@pytest.mark.unit
class TestMediaDeleteError:
    def test_key_stored(self):
        err = MediaDeleteError("Delete failed", key="reactions/1-clip.webm")
        assert err.key == "reactions/1-clip.webm"
        assert str(err) == "Delete failed"
