"""Base service class with automatic execution tracking and error handling."""
from abc import ABC
from datetime import datetime
from typing import Optional, Dict, Any
from uuid import UUID
import traceback
from contextlib import contextmanager

from src.repositories.base_repository import BaseRepository
from src.repositories.service_run_repository import ServiceRunRepository
from src.utils.logger import logger


class BaseService(ABC):
    """
    Base class for all services.
    Provides automatic execution tracking and error handling.

    Public service methods wrap their body in track_execution so every
    call leaves a ServiceRun row behind, whether it succeeds or fails.
    """

    def __init__(self):
        self.service_run_repo = ServiceRunRepository()
        self.service_name = self.__class__.__name__

    @contextmanager
    def track_execution(
        self,
        method_name: str,
        account_id: Optional[UUID] = None,
        triggered_by: str = "system",
        input_params: Optional[Dict[str, Any]] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ):
        """
        Context manager to track service method execution.

        Usage:
            with self.track_execution("delete_account", input_params={"account_id": str(account_id)}):
                return self.do_work()

        Args:
            method_name: Name of the method being executed
            account_id: Account that triggered the execution (optional)
            triggered_by: How it was triggered ('user', 'system', 'scheduler', 'cli')
            input_params: Parameters passed to the method
            metadata: Additional context

        Yields:
            run_id: ID of the service run record
        """
        run_id = self.service_run_repo.create_run(
            service_name=self.service_name,
            method_name=method_name,
            account_id=account_id,
            triggered_by=triggered_by,
            input_params=input_params,
            context_metadata=metadata,
        )

        started_at = datetime.utcnow()

        try:
            logger.info(f"[{self.service_name}.{method_name}] Starting execution (run_id: {run_id})")

            yield run_id

            completed_at = datetime.utcnow()
            duration_ms = int((completed_at - started_at).total_seconds() * 1000)

            self.service_run_repo.complete_run(run_id=run_id, success=True, duration_ms=duration_ms)

            logger.info(f"[{self.service_name}.{method_name}] Completed successfully ({duration_ms}ms)")

        except Exception as e:
            completed_at = datetime.utcnow()
            duration_ms = int((completed_at - started_at).total_seconds() * 1000)

            self.service_run_repo.fail_run(
                run_id=run_id,
                error_type=type(e).__name__,
                error_message=str(e),
                stack_trace=traceback.format_exc(),
                duration_ms=duration_ms,
            )

            logger.error(
                f"[{self.service_name}.{method_name}] Failed after {duration_ms}ms: {e}", exc_info=True
            )

            raise

    def set_result_summary(self, run_id: str, summary: Dict[str, Any]):
        """
        Update the result summary for a service run.

        Args:
            run_id: Service run ID (from track_execution)
            summary: Dictionary of results (e.g., {"reactions_deleted": 3, "media_failed": 0})
        """
        self.service_run_repo.set_result_summary(run_id, summary)

    def cleanup_transactions(self):
        """
        End open read transactions on this service's repositories.

        Walks BaseRepository attributes and nested BaseService attributes,
        so long-running loops never leave "idle in transaction" sessions.
        """
        for value in vars(self).values():
            try:
                if isinstance(value, BaseRepository):
                    value.end_read_transaction()
                elif isinstance(value, BaseService):
                    value.cleanup_transactions()
            except Exception as e:
                logger.debug(f"Suppressed error during transaction cleanup: {e}")

    def close(self):
        """Close every repository session this service (and nested services) holds."""
        for value in vars(self).values():
            if isinstance(value, BaseRepository):
                value.close()
            elif isinstance(value, BaseService):
                value.close()
