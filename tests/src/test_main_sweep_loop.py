"""Tests for the account sweep and transaction cleanup loops in main.py."""

import pytest
from unittest.mock import AsyncMock, Mock, patch

from dateutil.relativedelta import relativedelta

import src.main as main_module
from src.main import account_sweep_loop, transaction_cleanup_loop, main_async
from src.services.core.cascading_deletion import SweepOutcome


async def run_one_iteration(coro):
    """Run a loop coroutine until its first sleep."""
    with patch("src.main.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
        mock_sleep.side_effect = StopAsyncIteration
        try:
            await coro
        except StopAsyncIteration:
            pass
    return mock_sleep


@pytest.mark.unit
class TestAccountSweepLoop:
    @pytest.mark.asyncio
    async def test_sweep_uses_configured_months(self):
        deletion_service = Mock()
        deletion_service.sweep_inactive_accounts.return_value = []

        with patch("src.main.settings") as mock_settings:
            mock_settings.INACTIVE_ACCOUNT_MONTHS = 6
            mock_settings.ACCOUNT_SWEEP_INTERVAL_SECONDS = 3600
            mock_sleep = await run_one_iteration(account_sweep_loop(deletion_service))

        deletion_service.sweep_inactive_accounts.assert_called_once_with(
            relativedelta(months=6), triggered_by="scheduler"
        )
        mock_sleep.assert_called_once_with(3600)

    @pytest.mark.asyncio
    async def test_sweep_runs_in_worker_thread(self):
        deletion_service = Mock()

        with patch("src.main.asyncio.to_thread", new_callable=AsyncMock) as mock_to_thread, patch(
            "src.main.settings"
        ) as mock_settings:
            mock_to_thread.return_value = []
            mock_settings.INACTIVE_ACCOUNT_MONTHS = 6
            await run_one_iteration(account_sweep_loop(deletion_service))

        mock_to_thread.assert_awaited_once_with(
            deletion_service.sweep_inactive_accounts,
            relativedelta(months=6),
            triggered_by="scheduler",
        )
        # Only ever called through the worker thread
        deletion_service.sweep_inactive_accounts.assert_not_called()

    @pytest.mark.asyncio
    async def test_sweep_counts_deleted_accounts(self):
        deletion_service = Mock()
        deletion_service.sweep_inactive_accounts.return_value = [
            SweepOutcome(account_id="a", success=True),
            SweepOutcome(account_id="b", success=False, error="boom"),
        ]

        with patch("src.main.session_accounts_swept", 0):
            await run_one_iteration(account_sweep_loop(deletion_service))

            assert main_module.session_accounts_swept == 1

    @pytest.mark.asyncio
    async def test_sweep_error_does_not_kill_loop(self):
        deletion_service = Mock()
        deletion_service.sweep_inactive_accounts.side_effect = Exception("db down")

        mock_sleep = await run_one_iteration(account_sweep_loop(deletion_service))

        # Loop reached its sleep despite the failure
        mock_sleep.assert_called_once()
        deletion_service.cleanup_transactions.assert_called_once()

    @pytest.mark.asyncio
    async def test_transactions_cleaned_after_each_sweep(self):
        deletion_service = Mock()
        deletion_service.sweep_inactive_accounts.return_value = []

        await run_one_iteration(account_sweep_loop(deletion_service))

        deletion_service.cleanup_transactions.assert_called_once()


@pytest.mark.unit
class TestTransactionCleanupLoop:
    @pytest.mark.asyncio
    async def test_cleans_every_service(self):
        service_a = Mock()
        service_b = Mock()
        service_a.cleanup_transactions.side_effect = Exception("connection reset")

        with patch("src.main.asyncio.sleep", new_callable=AsyncMock) as mock_sleep:
            mock_sleep.side_effect = [None, StopAsyncIteration]
            try:
                await transaction_cleanup_loop([service_a, service_b])
            except StopAsyncIteration:
                pass

        service_a.cleanup_transactions.assert_called_once()
        service_b.cleanup_transactions.assert_called_once()


@pytest.mark.unit
class TestMainAsync:
    @pytest.mark.asyncio
    async def test_invalid_config_exits(self):
        with patch("src.main.ConfigValidator.validate_all", return_value=(False, ["bad"])):
            with pytest.raises(SystemExit) as exc_info:
                await main_async()

        assert exc_info.value.code == 1

    @pytest.mark.asyncio
    async def test_disabled_sweep_returns_without_services(self):
        with patch("src.main.ConfigValidator.validate_all", return_value=(True, [])), patch(
            "src.main.settings"
        ) as mock_settings, patch("src.main.CascadingDeletionService") as mock_service_class:
            mock_settings.ACCOUNT_SWEEP_ENABLED = False

            await main_async()

        mock_service_class.assert_not_called()
