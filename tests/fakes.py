"""
Hand-written stand-ins for psycopg connections and the connection pool.

`FakeConnection` records every executed statement (whitespace-collapsed) with
its parameters and answers from a script: either a queue of results consumed
in order, or a `responder(sql, params)` callable. A result is a list of row
dicts, an int (rowcount without rows), None (no rows), or an exception
instance to raise from `execute`.
"""
from __future__ import annotations

import re
from collections import deque
from collections.abc import Callable, Iterable, Iterator
from contextlib import contextmanager
from typing import Any

_WS_RE = re.compile(r"\s+")


def _squash(sql: Any) -> Any:
    return _WS_RE.sub(" ", sql).strip() if isinstance(sql, str) else sql


class FakeCursor:
    def __init__(self, conn: FakeConnection) -> None:
        self._conn = conn
        self._rows: list[dict[str, Any]] = []
        self.rowcount = -1

    def __enter__(self) -> FakeCursor:
        return self

    def __exit__(self, *_exc) -> None:  # noqa: ANN002
        return None

    def execute(self, sql: Any, params: Any = None) -> None:
        sql = _squash(sql)
        self._conn.executed.append((sql, params))
        result = self._conn.next_result(sql, params)
        if isinstance(result, BaseException):
            raise result
        if isinstance(result, int) and not isinstance(result, bool):
            self._rows = []
            self.rowcount = result
            return
        self._rows = [dict(row) for row in (result or [])]
        self.rowcount = len(self._rows)

    def fetchone(self) -> dict[str, Any] | None:
        return self._rows.pop(0) if self._rows else None

    def fetchall(self) -> list[dict[str, Any]]:
        rows, self._rows = self._rows, []
        return rows

    def close(self) -> None:
        return None


class FakeConnection:
    def __init__(
        self,
        results: Iterable[Any] = (),
        *,
        responder: Callable[[str, Any], Any] | None = None,
    ) -> None:
        self._results = deque(results)
        self._responder = responder
        self.executed: list[tuple[Any, Any]] = []
        self.commits = 0
        self.rollbacks = 0
        self.closed = False

    def cursor(self) -> FakeCursor:
        return FakeCursor(self)

    def next_result(self, sql: str, params: Any) -> Any:
        if self._responder is not None:
            return self._responder(sql, params)
        if self._results:
            return self._results.popleft()
        return None

    def commit(self) -> None:
        self.commits += 1

    def rollback(self) -> None:
        self.rollbacks += 1

    def close(self) -> None:
        self.closed = True

    @property
    def statements(self) -> list[Any]:
        return [sql for sql, _params in self.executed]


class FakePool:
    """Exposes the `checkout()` contract of `ConnectionPool` over fixed connections."""

    def __init__(self, *connections: FakeConnection) -> None:
        self._connections = deque(connections) if connections else deque([FakeConnection()])
        self.checkouts = 0
        self.released = 0

    @contextmanager
    def checkout(self) -> Iterator[FakeConnection]:
        self.checkouts += 1
        conn = self._connections[0] if len(self._connections) == 1 else self._connections.popleft()
        try:
            yield conn
        finally:
            self.released += 1
