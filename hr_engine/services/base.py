import logging
from typing import Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from hr_engine.core.exceptions import ConflictError


def write_or_conflict(
    db: Session,
    logger: logging.Logger,
    conflict_message: Optional[str] = None,
    flush_only: bool = False
) -> None:
    """
    Commit (or just flush) the current unit of work.
    A unique-constraint violation is rolled back and raised as ConflictError
    when `conflict_message` is given; any other failure is rolled back and re-raised.
    """
    try:
        if flush_only:
            db.flush()
        else:
            db.commit()
    except IntegrityError as e:
        db.rollback()
        if conflict_message is None:
            raise
        logger.warning(f"{conflict_message}: {e.orig}")
        raise ConflictError(conflict_message) from e
    except Exception:
        db.rollback()
        raise


class BaseService:
    """
    Common plumbing for engine services: the session, a per-class logger
    and explicit transaction handling.
    """

    def __init__(self, db: Session):
        self.db = db
        self._logger = logging.getLogger(self.__class__.__module__)

    def log_info(self, message: str):
        self._logger.info(message)

    def log_warning(self, message: str):
        self._logger.warning(message)

    def commit(self, conflict_message: Optional[str] = None):
        write_or_conflict(self.db, self._logger, conflict_message)

    def flush(self, conflict_message: Optional[str] = None):
        """Send pending inserts inside the open transaction, with the same failure handling as commit."""
        write_or_conflict(self.db, self._logger, conflict_message, flush_only=True)
