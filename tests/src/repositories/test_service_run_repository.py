"""Tests for ServiceRunRepository."""

import uuid

import pytest
from unittest.mock import MagicMock, patch

from sqlalchemy.orm import Session

from src.repositories.service_run_repository import ServiceRunRepository
from src.models.service_run import ServiceRun


@pytest.fixture
def mock_db():
    """Create a mock database session with chainable query."""
    session = MagicMock(spec=Session)
    mock_query = MagicMock()
    session.query.return_value = mock_query
    mock_query.filter.return_value = mock_query
    return session


@pytest.fixture
def run_repo(mock_db):
    """Create ServiceRunRepository with mocked database session."""
    with patch.object(ServiceRunRepository, "__init__", lambda self: None):
        repo = ServiceRunRepository()
        repo._db = mock_db
        return repo


@pytest.mark.unit
class TestServiceRunRepository:
    """Test suite for ServiceRunRepository."""

    def test_create_run(self, run_repo, mock_db):
        """create_run adds a ServiceRun and returns its id as a string."""
        result = run_repo.create_run(
            service_name="CascadingDeletionService",
            method_name="delete_account",
            input_params={"account_id": "abc"},
        )

        mock_db.add.assert_called_once()
        mock_db.commit.assert_called_once()
        mock_db.refresh.assert_called_once()

        added_run = mock_db.add.call_args[0][0]
        assert isinstance(added_run, ServiceRun)
        assert added_run.service_name == "CascadingDeletionService"
        assert added_run.method_name == "delete_account"
        assert added_run.input_params == {"account_id": "abc"}
        assert added_run.triggered_by == "system"
        assert isinstance(result, str)

    def test_create_run_with_account(self, run_repo, mock_db):
        account_id = uuid.uuid4()

        run_repo.create_run(
            service_name="ContentService",
            method_name="create_content_item",
            account_id=account_id,
            triggered_by="user",
        )

        added_run = mock_db.add.call_args[0][0]
        assert added_run.account_id == account_id
        assert added_run.triggered_by == "user"

    def test_create_run_coerces_string_account_id(self, run_repo, mock_db):
        account_id = uuid.uuid4()

        run_repo.create_run(
            service_name="ContentService",
            method_name="create_content_item",
            account_id=str(account_id),
        )

        assert mock_db.add.call_args[0][0].account_id == account_id

    def test_create_run_rejects_malformed_account_id(self, run_repo, mock_db):
        with pytest.raises(ValueError):
            run_repo.create_run(
                service_name="ContentService",
                method_name="create_content_item",
                account_id="not-a-uuid",
            )

        mock_db.add.assert_not_called()

    def test_complete_run_success(self, run_repo, mock_db):
        mock_run = MagicMock()
        mock_db.query.return_value.filter.return_value.first.return_value = mock_run

        run_repo.complete_run(
            run_id=str(uuid.uuid4()),
            success=True,
            duration_ms=1500,
            result_summary={"reactions_deleted": 10},
        )

        assert mock_run.status == "completed"
        assert mock_run.success is True
        assert mock_run.duration_ms == 1500
        assert mock_run.result_summary == {"reactions_deleted": 10}
        assert mock_run.completed_at is not None
        mock_db.commit.assert_called_once()

    def test_complete_run_keeps_earlier_summary(self, run_repo, mock_db):
        """A summary set during the run survives completion without one."""
        mock_run = MagicMock()
        mock_run.result_summary = {"deleted": 3}
        mock_db.query.return_value.filter.return_value.first.return_value = mock_run

        run_repo.complete_run(run_id=str(uuid.uuid4()), success=True, duration_ms=10)

        assert mock_run.result_summary == {"deleted": 3}

    def test_complete_run_missing_run(self, run_repo, mock_db):
        mock_db.query.return_value.filter.return_value.first.return_value = None

        run_repo.complete_run(run_id=str(uuid.uuid4()), success=True, duration_ms=1)

        mock_db.commit.assert_not_called()

    def test_fail_run(self, run_repo, mock_db):
        mock_run = MagicMock()
        mock_db.query.return_value.filter.return_value.first.return_value = mock_run

        run_repo.fail_run(
            run_id=str(uuid.uuid4()),
            error_type="StorageError",
            error_message="Database deletion failed",
            stack_trace="Traceback (most recent call last)...",
            duration_ms=500,
        )

        assert mock_run.status == "failed"
        assert mock_run.success is False
        assert mock_run.error_type == "StorageError"
        assert mock_run.error_message == "Database deletion failed"
        assert mock_run.duration_ms == 500
        mock_db.commit.assert_called_once()

    def test_set_result_summary(self, run_repo, mock_db):
        mock_run = MagicMock()
        mock_db.query.return_value.filter.return_value.first.return_value = mock_run

        run_repo.set_result_summary(str(uuid.uuid4()), {"created": True})

        assert mock_run.result_summary == {"created": True}
        mock_db.commit.assert_called_once()
