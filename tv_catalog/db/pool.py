"""
Process-owned Postgres connection pool.

The pool is created once by the app (see `api.main.lifespan`) and handed to
whoever needs a connection. Connections are only ever obtained through
`ConnectionPool.checkout()`, which guarantees they are returned on every exit
path, including errors.
"""
from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from dataclasses import dataclass

import psycopg
from psycopg.rows import dict_row
from psycopg_pool import ConnectionPool as PsycopgPool
from psycopg_pool import PoolTimeout

from tv_catalog.db.connection import mask_database_url, resolve_database_url
from tv_catalog.errors import TransactionFailure

logger = logging.getLogger(__name__)


class PoolTimeoutError(TransactionFailure):
    """Raised when no pooled connection becomes available in time."""

    pass


def _env_int(name: str, default: int | None) -> int | None:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return int(raw)
    except ValueError:
        logger.warning("Ignoring non-numeric %s=%r; using %s", name, raw, default)
        return default


def _env_float(name: str, default: float) -> float:
    raw = (os.getenv(name) or "").strip()
    if not raw:
        return default
    try:
        return float(raw)
    except ValueError:
        logger.warning("Ignoring non-numeric %s=%r; using %s", name, raw, default)
        return default


@dataclass(frozen=True)
class PoolSettings:
    min_size: int = 1
    max_size: int = 20
    acquire_timeout: float = 10.0
    connect_timeout: int = 10
    statement_timeout_ms: int | None = None
    sslmode: str | None = None

    @classmethod
    def from_env(cls) -> PoolSettings:
        min_size = _env_int("DB_POOL_MIN_SIZE", 1) or 1
        max_size = _env_int("DB_POOL_MAX_SIZE", 20) or 20
        return cls(
            min_size=min(min_size, max_size),
            max_size=max_size,
            acquire_timeout=_env_float("DB_POOL_ACQUIRE_TIMEOUT", 10.0),
            connect_timeout=_env_int("DB_CONNECT_TIMEOUT", 10) or 10,
            statement_timeout_ms=_env_int("DB_STATEMENT_TIMEOUT_MS", None),
            sslmode=(os.getenv("DB_SSLMODE") or "").strip() or None,
        )

    def connect_kwargs(self) -> dict[str, object]:
        kwargs: dict[str, object] = {"connect_timeout": self.connect_timeout}
        if self.statement_timeout_ms:
            kwargs["options"] = f"-c statement_timeout={int(self.statement_timeout_ms)}"
        if self.sslmode:
            kwargs["sslmode"] = self.sslmode
        return kwargs


class ConnectionPool:
    """
    Bounded pool of psycopg connections backed by `psycopg_pool`.

    Waiting callers give up after `acquire_timeout` seconds. Connections are
    health-checked before they are handed out, and every connection yields
    dict rows.
    """

    def __init__(self, conninfo: str, settings: PoolSettings | None = None) -> None:
        self.settings = settings or PoolSettings()
        self._conninfo = conninfo
        self._pool = PsycopgPool(
            conninfo,
            min_size=self.settings.min_size,
            max_size=self.settings.max_size,
            timeout=self.settings.acquire_timeout,
            kwargs={**self.settings.connect_kwargs(), "row_factory": dict_row},
            check=PsycopgPool.check_connection,
            name="tv-catalog",
            open=True,
        )
        logger.info(
            "Opened connection pool (%s-%s connections) to %s",
            self.settings.min_size,
            self.settings.max_size,
            mask_database_url(conninfo),
        )

    @classmethod
    def from_env(cls) -> ConnectionPool:
        return cls(resolve_database_url(), PoolSettings.from_env())

    @contextmanager
    def checkout(self) -> Iterator[psycopg.Connection]:
        """
        Check out one connection for the duration of the `with` block.

        The pool commits an open transaction when the block exits normally and
        rolls it back when the block raises, before the connection goes back.
        """
        try:
            with self._pool.connection() as conn:
                yield conn
        except PoolTimeout as exc:
            raise PoolTimeoutError("Timed out waiting for a database connection") from exc

    def close(self) -> None:
        self._pool.close()
        logger.info("Closed connection pool to %s", mask_database_url(self._conninfo))
