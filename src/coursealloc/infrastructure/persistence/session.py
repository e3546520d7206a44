# -*- coding: utf-8 -*-
from __future__ import annotations

import logging
from contextlib import contextmanager
from time import perf_counter
from typing import Iterator

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import Engine
from sqlalchemy.orm import Session, sessionmaker

from coursealloc.config.settings import DatabaseSettings
from coursealloc.infrastructure.monitoring.metrics import db_query_duration_seconds

from .models import Base


logger = logging.getLogger(__name__)


def make_engine(settings: DatabaseSettings) -> Engine:
    """Create a pooled engine with the locking behavior the allocation core needs.

    SQLite has no ``SELECT ... FOR UPDATE``; every transaction is opened with
    ``BEGIN IMMEDIATE`` instead so that concurrent writers queue on the
    database lock for the whole read-modify-write sequence.
    """

    if settings.is_sqlite:
        engine = create_engine(
            settings.dsn,
            echo=settings.echo,
            connect_args={
                "check_same_thread": False,
                "timeout": settings.sqlite_busy_timeout_seconds,
            },
        )
        _install_sqlite_hooks(engine)
    else:
        engine = create_engine(
            settings.dsn,
            echo=settings.echo,
            pool_size=settings.pool_size,
            max_overflow=settings.max_overflow,
            pool_timeout=settings.pool_timeout_seconds,
            pool_recycle=1800,
            pool_pre_ping=True,
        )
        if engine.dialect.name == "postgresql":
            _install_postgres_timeouts(engine, settings)

    @event.listens_for(engine, "before_cursor_execute")
    def before_cursor_execute(conn, cursor, statement, parameters, context, executemany):  # pragma: no cover - timing
        context._query_start_time = perf_counter()

    @event.listens_for(engine, "after_cursor_execute")
    def after_cursor_execute(conn, cursor, statement, parameters, context, executemany):  # pragma: no cover - timing
        db_query_duration_seconds.observe(perf_counter() - getattr(context, "_query_start_time", perf_counter()))

    return engine


def _install_sqlite_hooks(engine: Engine) -> None:
    @event.listens_for(engine, "connect")
    def on_connect(dbapi_connection, connection_record):
        # pysqlite's implicit BEGIN is disabled so the "begin" hook owns it.
        dbapi_connection.isolation_level = None
        cursor = dbapi_connection.cursor()
        cursor.execute("PRAGMA foreign_keys = ON")
        cursor.close()

    @event.listens_for(engine, "begin")
    def on_begin(conn):
        conn.exec_driver_sql("BEGIN IMMEDIATE")


def _install_postgres_timeouts(engine: Engine, settings: DatabaseSettings) -> None:
    @event.listens_for(engine, "connect")
    def on_connect(dbapi_connection, connection_record):  # pragma: no cover - driver specific
        cursor = dbapi_connection.cursor()
        cursor.execute(f"SET statement_timeout TO {int(settings.statement_timeout_ms)}")
        cursor.execute(f"SET lock_timeout TO {int(settings.lock_timeout_ms)}")
        cursor.close()
        dbapi_connection.commit()


def make_session_factory(engine: Engine) -> sessionmaker:
    return sessionmaker(bind=engine, class_=Session, expire_on_commit=False)


def create_schema(engine: Engine) -> None:
    """Create all tables; intended for local setups and tests, not migrations."""

    Base.metadata.create_all(engine)


def check_connection(engine: Engine) -> bool:
    """Round-trip a trivial query to prove the database is reachable."""

    with engine.connect() as conn:
        value = conn.execute(text("SELECT 1")).scalar_one()
    logger.info("database connection verified", extra={"code": "DB_OK", "dialect": engine.dialect.name})
    return value == 1


@contextmanager
def session_scope(session_factory: sessionmaker) -> Iterator[Session]:
    session = session_factory()
    try:
        yield session
        session.commit()
    except Exception:
        session.rollback()
        raise
    finally:
        session.close()


__all__ = [
    "check_connection",
    "create_schema",
    "make_engine",
    "make_session_factory",
    "session_scope",
]
