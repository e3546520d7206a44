"""Unit of work and the transaction wrapper every use case runs through."""
from __future__ import annotations

import logging
from contextlib import AbstractContextManager
from dataclasses import dataclass, field
from typing import Callable, Protocol, TypeVar

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from coursealloc.infrastructure.monitoring.metrics import measure_transaction, record_rollback

from .errors import CourseAllocError, StorageError


logger = logging.getLogger(__name__)

T = TypeVar("T")


class UnitOfWork(AbstractContextManager):
    """Abstract unit-of-work contract.

    Leaving the ``with`` block normally commits; leaving it with an exception
    rolls back. The session is closed either way.
    """

    session: Session

    def commit(self) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def rollback(self) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def close(self) -> None:  # pragma: no cover - interface
        raise NotImplementedError

    def __exit__(self, exc_type, exc, tb) -> bool:
        try:
            if exc:
                self.rollback()
            else:
                self.commit()
        finally:
            self.close()
        return False


SessionFactory = Callable[[], Session]


@dataclass(slots=True)
class SQLAlchemyUnitOfWork(UnitOfWork):
    """SQLAlchemy-backed unit of work with explicit session factory."""

    session_factory: SessionFactory
    session: Session = field(init=False)

    def __post_init__(self) -> None:
        self.session = self.session_factory()

    def commit(self) -> None:
        try:
            self.session.commit()
        except SQLAlchemyError as exc:
            self.session.rollback()
            raise StorageError("commit failed", {"reason": type(exc).__name__}) from exc

    def rollback(self) -> None:
        self.session.rollback()

    def close(self) -> None:
        self.session.close()


class UnitOfWorkFactory(Protocol):
    """Factory protocol producing new unit of work instances."""

    def __call__(self) -> UnitOfWork:
        """Return a ready-to-use unit of work."""


def sqlalchemy_uow_factory(session_factory: SessionFactory) -> UnitOfWorkFactory:
    def _factory() -> UnitOfWork:
        return SQLAlchemyUnitOfWork(session_factory=session_factory)

    return _factory


def run_in_transaction(
    uow_factory: UnitOfWorkFactory,
    action: Callable[[Session], T],
    *,
    use_case: str,
) -> T:
    """Run ``action`` in one transaction: commit on return, roll back on raise.

    Domain errors propagate unchanged. Any SQLAlchemy failure, including a
    failed commit, surfaces as :class:`StorageError`.
    """

    with measure_transaction(use_case):
        try:
            with uow_factory() as uow:
                return action(uow.session)
        except CourseAllocError as exc:
            record_rollback(use_case, exc.code)
            if isinstance(exc, StorageError):
                logger.error(
                    "transaction failed",
                    extra={"code": exc.code, "use_case": use_case, "detail": str(exc.__cause__ or exc)},
                )
            raise
        except SQLAlchemyError as exc:
            record_rollback(use_case, StorageError.code)
            logger.error(
                "transaction failed",
                extra={"code": StorageError.code, "use_case": use_case, "detail": str(exc)},
            )
            raise StorageError(f"{use_case} failed in the database", {"reason": type(exc).__name__}) from exc


__all__ = [
    "SQLAlchemyUnitOfWork",
    "UnitOfWork",
    "UnitOfWorkFactory",
    "run_in_transaction",
    "sqlalchemy_uow_factory",
]
