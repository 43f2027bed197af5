"""Main application entry point - runs the scheduled maintenance loops."""

import asyncio
import signal
import sys
from time import time

from dateutil.relativedelta import relativedelta

from src.config.settings import settings
from src.utils.logger import logger
from src.utils.validators import ConfigValidator
from src.services.core.cascading_deletion import CascadingDeletionService

# Track session statistics
session_start_time = None
session_accounts_swept = 0
shutdown_in_progress = False


async def account_sweep_loop(deletion_service: CascadingDeletionService):
    """Delete inactive accounts on a fixed interval.

    Accounts idle for INACTIVE_ACCOUNT_MONTHS calendar months are removed
    with their whole content graph. A failing sweep is logged and retried
    at the next interval.
    """
    global session_accounts_swept
    logger.info(
        f"Starting account sweep loop "
        f"(interval: {settings.ACCOUNT_SWEEP_INTERVAL_SECONDS}s, "
        f"threshold: {settings.INACTIVE_ACCOUNT_MONTHS} months)"
    )

    while True:
        try:
            # Blocking database and object-store work runs off the event loop
            outcomes = await asyncio.to_thread(
                deletion_service.sweep_inactive_accounts,
                relativedelta(months=settings.INACTIVE_ACCOUNT_MONTHS),
                triggered_by="scheduler",
            )

            deleted = sum(1 for outcome in outcomes if outcome.success)
            failed = len(outcomes) - deleted
            session_accounts_swept += deleted

            if outcomes:
                logger.info(f"Account sweep: {deleted} deleted, {failed} failed")

        except Exception as e:
            logger.error(f"Error in account sweep loop: {e}", exc_info=True)
        finally:
            deletion_service.cleanup_transactions()

        await asyncio.sleep(settings.ACCOUNT_SWEEP_INTERVAL_SECONDS)


async def transaction_cleanup_loop(services: list):
    """
    Periodically end idle database transactions on all services.

    Keeps "idle in transaction" connections from piling up between sweeps.
    """
    while True:
        await asyncio.sleep(30)
        for service in services:
            try:
                service.cleanup_transactions()
            except Exception as e:
                logger.debug(f"Suppressed transaction cleanup error: {e}")


async def main_async():
    """Main async application entry point."""
    global session_start_time

    logger.info("=" * 60)
    logger.info("Reactlyve - content lifecycle worker")
    logger.info("=" * 60)

    is_valid, errors = ConfigValidator.validate_all()

    if not is_valid:
        logger.error("Configuration validation failed:")
        for error in errors:
            logger.error(f"  - {error}")
        sys.exit(1)

    logger.info("✓ Configuration validated successfully")

    if not settings.ACCOUNT_SWEEP_ENABLED:
        logger.info("✓ Account sweep: disabled, nothing to run")
        return

    deletion_service = CascadingDeletionService()
    session_start_time = time()

    all_services = [deletion_service]
    tasks = [
        asyncio.create_task(account_sweep_loop(deletion_service)),
        asyncio.create_task(transaction_cleanup_loop(all_services)),
    ]

    logger.info("✓ All loops started")
    logger.info(
        f"✓ Account sweep: every {settings.ACCOUNT_SWEEP_INTERVAL_SECONDS}s, "
        f"inactive after {settings.INACTIVE_ACCOUNT_MONTHS} months"
    )
    logger.info("=" * 60)

    async def shutdown_handler(sig):
        """Handle shutdown signals gracefully."""
        global shutdown_in_progress

        if shutdown_in_progress:
            logger.info(f"Shutdown already in progress, ignoring {sig.name} signal")
            return
        shutdown_in_progress = True

        uptime = int(time() - session_start_time) if session_start_time else 0
        logger.info(
            f"Received {sig.name} signal after {uptime}s "
            f"({session_accounts_swept} accounts swept)"
        )

        for task in tasks:
            task.cancel()

        for service in all_services:
            try:
                service.close()
            except Exception as e:
                logger.warning(f"Error closing {service.service_name}: {e}")

        logger.info("✓ Shutdown complete")

    loop = asyncio.get_event_loop()
    for sig in (signal.SIGTERM, signal.SIGINT):
        loop.add_signal_handler(
            sig, lambda s=sig: asyncio.create_task(shutdown_handler(s))
        )

    try:
        await asyncio.gather(*tasks)
    except asyncio.CancelledError:
        # Tasks were cancelled during shutdown
        pass


def main():
    """Main entry point."""
    try:
        asyncio.run(main_async())
    except KeyboardInterrupt:
        logger.info("Application stopped by user")
        sys.exit(0)
    except Exception as e:
        logger.error(f"Fatal error: {e}", exc_info=True)
        sys.exit(1)


if __name__ == "__main__":
    main()
