"""Transaction scope for every multi-row mutation in the core.

Usage::

    with UnitOfWork(session_factory) as uow:
        CartRepository(uow.session).get_or_create(user_id)
        ...
        uow.commit()

Leaving the block without reaching ``commit()`` rolls the transaction back,
whether the exit is an exception, an interrupt or a plain ``return``.
"""

import threading
import time

import structlog
from sqlalchemy import text
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session, sessionmaker

from shared.config import get_settings
from shared.exceptions import StorageError, TransactionTimeout

logger = structlog.get_logger(__name__)

_UNSET = object()
_local = threading.local()


class UnitOfWork:
    def __init__(self, session_factory: sessionmaker, timeout=_UNSET):
        self._session_factory = session_factory
        self.timeout = get_settings().transaction_timeout if timeout is _UNSET else timeout
        self.session: Session | None = None
        self._started_at: float | None = None
        self._committed = False

    @staticmethod
    def current() -> "UnitOfWork | None":
        """The unit of work open on this thread, if any."""
        return getattr(_local, "unit_of_work", None)

    @property
    def in_progress(self) -> bool:
        return self.session is not None and not self._committed

    @property
    def expired(self) -> bool:
        if self.timeout is None or self._started_at is None:
            return False
        return time.monotonic() - self._started_at > self.timeout

    def __enter__(self) -> "UnitOfWork":
        if UnitOfWork.current() is not None:
            raise StorageError("Nested units of work are not supported")

        self.session = self._session_factory()
        try:
            self.session.begin()
            if self.timeout is not None and self.session.get_bind().dialect.name == "postgresql":
                self.session.execute(text(f"SET LOCAL statement_timeout = {int(self.timeout * 1000)}"))
        except SQLAlchemyError as exc:
            self.session.close()
            self.session = None
            raise StorageError("Failed to begin transaction") from exc

        self._started_at = time.monotonic()
        _local.unit_of_work = self
        return self

    def commit(self) -> None:
        if not self.in_progress:
            raise StorageError("Unit of work is not in progress")

        if self.expired:
            logger.warning("Transaction deadline exceeded", timeout=self.timeout)
            raise TransactionTimeout(f"Transaction exceeded its {self.timeout}s deadline")

        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            logger.error("Transaction commit failed", error=str(exc))
            raise StorageError("Failed to commit transaction") from exc

        self._committed = True

    def rollback(self) -> None:
        if self.in_progress:
            self.session.rollback()

    def __exit__(self, exc_type, exc, tb):
        _local.unit_of_work = None
        rollback_error = None
        try:
            if not self._committed:
                try:
                    self.session.rollback()
                except SQLAlchemyError as err:
                    rollback_error = err
                    logger.error("Transaction rollback failed", error=str(err))
                else:
                    logger.debug(
                        "Transaction rolled back",
                        reason=exc_type.__name__ if exc_type else "not committed",
                    )
        finally:
            self.session.close()
            self.session = None

        if exc is not None and isinstance(exc, SQLAlchemyError):
            raise StorageError(f"Storage failure: {exc.__class__.__name__}") from exc
        if exc is None and rollback_error is not None:
            raise StorageError("Failed to roll back transaction") from rollback_error
        return False
