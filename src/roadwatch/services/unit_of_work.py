"""Transaction boundary used by every engine operation."""

from __future__ import annotations

import logging
from collections.abc import Iterator
from contextlib import contextmanager

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from roadwatch.db.session import SQLITE_IMMEDIATE
from roadwatch.services.errors import StorageError

logger = logging.getLogger(__name__)


def _begin_write(session: Session) -> None:
    """Open the write transaction, taking the SQLite write lock up front.

    A read transaction left open by the caller (for example the account
    lookup that authenticated the request) is ended first; it holds no
    changes. Other backends rely on the row locks taken by the operation.
    """
    if session.get_bind().dialect.name != "sqlite":
        return
    if session.in_transaction():
        session.commit()
    session.connection(execution_options={SQLITE_IMMEDIATE: True})


@contextmanager
def unit_of_work(session: Session, operation: str) -> Iterator[Session]:
    """Run the enclosed block as one all-or-nothing transaction.

    Commits when the block finishes, rolls back on any exception. Backend
    failures are re-raised as :class:`StorageError`; business errors raised
    inside the block propagate unchanged after the rollback.

    Args:
        session: Session the block operates on.
        operation: Name used in log messages.
    """
    try:
        _begin_write(session)
        yield session
        session.commit()
    except SQLAlchemyError as err:
        session.rollback()
        logger.warning("%s aborted by storage backend: %s", operation, err)
        raise StorageError(f"{operation} failed, no changes were saved") from err
    except Exception:
        session.rollback()
        raise
