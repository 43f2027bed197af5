"""Base repository class with session lifecycle management."""

from sqlalchemy.orm import Session

from src.config.database import get_db
from src.utils.logger import logger


class BaseRepository:
    """
    Base class for all repositories.

    Each repository owns one session for its lifetime. Writes must be
    followed by commit() and reads by end_read_transaction(), otherwise
    the connection stays "idle in transaction" and row locks taken with
    SELECT ... FOR UPDATE are never released.
    """

    def __init__(self):
        self._db_generator = get_db()
        self._db: Session = next(self._db_generator)

    def _replace_session(self):
        try:
            self._db.close()
        except Exception as e:
            logger.debug(f"Suppressed error closing broken session: {e}")
        self._db_generator = get_db()
        self._db = next(self._db_generator)

    @property
    def db(self) -> Session:
        """Get the database session, ensuring it's in a usable state."""
        try:
            if not self._db.is_active:
                self._db.rollback()
        except Exception as e:
            # Connection is gone; a rollback cannot recover it
            logger.warning(
                f"Session recovery rollback failed, creating new session: {e}"
            )
            self._replace_session()
        return self._db

    def commit(self):
        """Commit the current transaction, rolling back if the commit fails."""
        try:
            self._db.commit()
        except Exception as e:
            logger.warning(f"Error during commit: {e}")
            self._db.rollback()
            raise

    def rollback(self):
        """Rollback the current transaction."""
        try:
            self._db.rollback()
        except Exception as e:
            logger.warning(f"Error during rollback: {e}")

    def end_read_transaction(self):
        """
        End a read-only transaction.

        Even plain SELECTs open a transaction in SQLAlchemy. If both commit
        and rollback fail the session is replaced so the next operation
        starts clean.
        """
        try:
            self._db.commit()
        except Exception:
            try:
                self._db.rollback()
            except Exception:
                logger.warning("Session unrecoverable, creating fresh session")
                self._replace_session()

    def close(self):
        """Close the database session and return the connection to the pool."""
        try:
            try:
                next(self._db_generator)
            except StopIteration:
                pass  # Generator finished, session closed by get_db()
        except Exception as e:
            logger.warning(f"Error closing database session: {e}")
        finally:
            try:
                self._db.close()
            except Exception as e:
                logger.debug(f"Suppressed error during session close: {e}")

    def __del__(self):
        try:
            self.close()
        except Exception:
            # Logging may already be torn down at interpreter shutdown
            pass

    def __enter__(self):
        return self

    def __exit__(self, exc_type, exc_val, exc_tb):
        self.close()
        return False
