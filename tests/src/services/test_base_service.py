"""Tests for BaseService."""

import pytest
from unittest.mock import MagicMock, patch
from uuid import uuid4

from src.repositories.base_repository import BaseRepository
from src.services.base_service import BaseService


class MockServiceForTesting(BaseService):
    """Mock service implementation for testing BaseService."""

    def __init__(self):
        super().__init__()
        self.service_name = "TestService"

    def succeed(self):
        with self.track_execution("succeed"):
            return {"result": "success"}

    def fail(self):
        with self.track_execution("fail"):
            raise ValueError("Test error")


@pytest.fixture
def mock_service():
    """Create MockServiceForTesting with mocked ServiceRunRepository."""
    with patch("src.services.base_service.ServiceRunRepository") as mock_run_repo_class:
        mock_run_repo = mock_run_repo_class.return_value
        mock_run_repo.create_run.return_value = "run-123"

        service = MockServiceForTesting()
        service._mock_run_repo = mock_run_repo
        yield service


def _repo_mock():
    return MagicMock(spec=BaseRepository)


@pytest.mark.unit
class TestBaseService:
    """Test suite for BaseService."""

    def test_service_initialization(self, mock_service):
        assert mock_service.service_run_repo is not None
        assert mock_service.service_name == "TestService"

    def test_track_execution_creates_run(self, mock_service):
        mock_service.succeed()

        call_kwargs = mock_service._mock_run_repo.create_run.call_args
        assert call_kwargs.kwargs["service_name"] == "TestService"
        assert call_kwargs.kwargs["method_name"] == "succeed"
        assert call_kwargs.kwargs["triggered_by"] == "system"

    def test_track_execution_records_success(self, mock_service):
        assert mock_service.succeed() == {"result": "success"}

        call_kwargs = mock_service._mock_run_repo.complete_run.call_args
        assert call_kwargs.kwargs["run_id"] == "run-123"
        assert call_kwargs.kwargs["success"] is True
        assert call_kwargs.kwargs["duration_ms"] >= 0
        mock_service._mock_run_repo.fail_run.assert_not_called()

    def test_track_execution_records_failure(self, mock_service):
        with pytest.raises(ValueError, match="Test error"):
            mock_service.fail()

        call_kwargs = mock_service._mock_run_repo.fail_run.call_args
        assert call_kwargs.kwargs["run_id"] == "run-123"
        assert call_kwargs.kwargs["error_type"] == "ValueError"
        assert call_kwargs.kwargs["error_message"] == "Test error"
        assert "ValueError" in call_kwargs.kwargs["stack_trace"]
        mock_service._mock_run_repo.complete_run.assert_not_called()

    def test_track_execution_with_account_id(self, mock_service):
        account_id = uuid4()

        with mock_service.track_execution("with_account", account_id=account_id):
            pass

        call_kwargs = mock_service._mock_run_repo.create_run.call_args
        assert call_kwargs.kwargs["account_id"] == account_id

    def test_track_execution_without_account_id(self, mock_service):
        with mock_service.track_execution("anonymous", triggered_by="scheduler"):
            pass

        call_kwargs = mock_service._mock_run_repo.create_run.call_args
        assert call_kwargs.kwargs["account_id"] is None
        assert call_kwargs.kwargs["triggered_by"] == "scheduler"

    def test_set_result_summary(self, mock_service):
        with mock_service.track_execution("with_summary") as run_id:
            mock_service.set_result_summary(run_id, {"deleted": 2})

        mock_service._mock_run_repo.set_result_summary.assert_called_once_with(
            "run-123", {"deleted": 2}
        )

    def test_cleanup_transactions_ends_repo_reads(self, mock_service):
        repo = _repo_mock()
        mock_service.some_repo = repo

        mock_service.cleanup_transactions()

        repo.end_read_transaction.assert_called_once()

    def test_cleanup_transactions_recurses_into_services(self, mock_service):
        with patch("src.services.base_service.ServiceRunRepository"):
            nested = MockServiceForTesting()
        nested_repo = _repo_mock()
        nested.inner_repo = nested_repo
        mock_service.nested = nested

        mock_service.cleanup_transactions()

        nested_repo.end_read_transaction.assert_called_once()

    def test_cleanup_transactions_suppresses_errors(self, mock_service):
        failing = _repo_mock()
        failing.end_read_transaction.side_effect = Exception("connection reset")
        healthy = _repo_mock()
        mock_service.a_repo = failing
        mock_service.b_repo = healthy

        mock_service.cleanup_transactions()

        healthy.end_read_transaction.assert_called_once()

    def test_close_closes_repositories(self, mock_service):
        repo = _repo_mock()
        mock_service.some_repo = repo

        mock_service.close()

        repo.close.assert_called_once()
