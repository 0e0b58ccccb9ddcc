"""
Transactional units over a single pooled connection.

A unit owns exactly one connection from start to finish. Every statement that
must commit or roll back together (show field updates plus link replacement
for any number of relation types) has to run inside the same unit.
"""
from __future__ import annotations

import logging
from collections.abc import Callable, Iterator
from contextlib import contextmanager
from contextvars import ContextVar
from typing import TypeVar

import psycopg

from tv_catalog.db.pool import ConnectionPool
from tv_catalog.errors import CatalogError, TransactionFailure

logger = logging.getLogger(__name__)

T = TypeVar("T")

_unit_active: ContextVar[bool] = ContextVar("tv_catalog_unit_active", default=False)


class TransactionCoordinator:
    def __init__(self, pool: ConnectionPool) -> None:
        self.pool = pool

    @contextmanager
    def unit(self) -> Iterator[psycopg.Connection]:
        """
        Yield a connection with an open transaction.

        Commits when the block exits normally. On any error the transaction is
        rolled back and the error re-raised; store errors are re-raised as
        `TransactionFailure`.
        """
        if _unit_active.get():
            raise RuntimeError("Nested transactional units are not supported")

        token = _unit_active.set(True)
        try:
            with self.pool.checkout() as conn:
                try:
                    yield conn
                    conn.commit()
                except CatalogError as exc:
                    _rollback(conn, exc)
                    raise
                except psycopg.Error as exc:
                    _rollback(conn, exc)
                    raise TransactionFailure("Database error; no changes were applied") from exc
                except BaseException as exc:
                    _rollback(conn, exc)
                    raise
        finally:
            _unit_active.reset(token)

    def run_unit(self, fn: Callable[[psycopg.Connection], T]) -> T:
        """Run `fn(conn)` inside one unit and return its result."""
        with self.unit() as conn:
            return fn(conn)


def _rollback(conn: psycopg.Connection, exc: BaseException) -> None:
    logger.warning("Rolling back transactional unit after %s", type(exc).__name__)
    try:
        conn.rollback()
    except psycopg.Error:
        # Connection is unusable; the pool discards it on release.
        logger.exception("Rollback failed")
