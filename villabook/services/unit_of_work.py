"""
Run a core operation as one atomic unit of work.

The work callable receives a session and returns a Result. A failed Result is
rolled back explicitly; a successful one is committed when the session scope
closes. Notification events attached to the Result are handed to `on_commit`
only after the commit succeeded, so a failing sink can never undo or block a
booking state change.
"""

import logging
from typing import Callable, Optional, TypeVar

from sqlalchemy.exc import IntegrityError, SQLAlchemyError
from sqlalchemy.orm import Session

from ..db import Database
from ..errors import Conflict, Result, StorageFailure

logger = logging.getLogger(__name__)

T = TypeVar("T")

OVERLAP_CONSTRAINT = "booking_locks_no_overlap"
# PostgreSQL SQLSTATE for exclusion_violation
EXCLUSION_VIOLATION = "23P01"


def is_overlap_violation(exc: IntegrityError) -> bool:
    """True when the booking_locks exclusion constraint rejected the write."""
    orig = getattr(exc, "orig", None)
    sqlstate = getattr(orig, "sqlstate", None) or getattr(orig, "pgcode", None)
    if sqlstate == EXCLUSION_VIOLATION:
        return True
    return OVERLAP_CONSTRAINT in str(orig if orig is not None else exc)


def run_atomic(
    database: Database,
    work: Callable[[Session], Result],
    on_commit: Optional[Callable[[list], None]] = None,
) -> Result:
    try:
        with database.unit_of_work() as db:
            result = work(db)
            if not result.ok:
                db.rollback()
    except IntegrityError as exc:
        if is_overlap_violation(exc):
            # exclusion constraint (PostgreSQL) caught a race the re-check missed
            logger.warning("Storage rejected overlapping occupancy: %s", getattr(exc, "orig", exc))
            return Result.failure(Conflict())
        logger.error("Unit of work violated a constraint: %s", getattr(exc, "orig", exc))
        return Result.failure(StorageFailure(details={"reason": exc.__class__.__name__}))
    except SQLAlchemyError as exc:
        logger.error("Unit of work aborted: %s", exc)
        return Result.failure(StorageFailure(details={"reason": exc.__class__.__name__}))

    if result.ok and result.events and on_commit is not None:
        on_commit(result.events)
    return result


def run_read(database: Database, work: Callable[[Session], T]) -> T:
    """
    Run a read-only query on its own session. Driver errors surface as
    StorageFailure; BookingErrors raised by `work` pass through unchanged.
    """
    db = database.session()
    try:
        return work(db)
    except SQLAlchemyError as exc:
        logger.error("Read aborted: %s", exc)
        raise StorageFailure(details={"reason": exc.__class__.__name__}) from exc
    finally:
        db.close()
