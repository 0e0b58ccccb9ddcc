from __future__ import annotations

from collections.abc import Mapping
from typing import Any

from tv_catalog.errors import NotFoundError
from tv_catalog.models.shows import SHOW_COLUMNS, validate_show_fields
from tv_catalog.query.builder import build_update_set


def lock_show(conn, show_id: int) -> dict[str, Any]:
    """
    Fetch a show row and hold a row lock on it until the unit ends.

    Concurrent link replacements for the same show queue up behind this lock.
    """
    with conn.cursor() as cur:
        cur.execute("SELECT * FROM tv_shows WHERE id = %s FOR UPDATE", (show_id,))
        row = cur.fetchone()
    if row is None:
        raise NotFoundError("Show not found")
    return dict(row)


def fetch_show_details(conn, show_id: int) -> dict[str, Any]:
    """Read one row of the `show_details` aggregate view."""
    with conn.cursor() as cur:
        cur.execute("SELECT * FROM show_details WHERE id = %s", (show_id,))
        row = cur.fetchone()
    if row is None:
        raise NotFoundError("Show not found")
    return dict(row)


def insert_show(conn, fields: Mapping[str, Any]) -> dict[str, Any]:
    payload = validate_show_fields(fields, creating=True)
    columns = [col for col in SHOW_COLUMNS if col in payload]
    placeholders = ", ".join(["%s"] * len(columns))
    with conn.cursor() as cur:
        cur.execute(
            f"INSERT INTO tv_shows ({', '.join(columns)}) VALUES ({placeholders}) RETURNING *",
            tuple(payload[col] for col in columns),
        )
        row = cur.fetchone()
    return dict(row)


def update_show(conn, show_id: int, patch: Mapping[str, Any]) -> dict[str, Any]:
    """
    Apply a sparse patch: only present fields are assigned.

    An empty patch still verifies (and locks) the show so relation updates in
    the same unit act on an existing row.
    """
    cleaned = validate_show_fields(patch)
    if not cleaned:
        return lock_show(conn, show_id)

    assignments, values = build_update_set(cleaned, SHOW_COLUMNS)
    with conn.cursor() as cur:
        cur.execute(
            f"UPDATE tv_shows SET {assignments} WHERE id = %s RETURNING *",
            (*values, show_id),
        )
        row = cur.fetchone()
    if row is None:
        raise NotFoundError("Show not found")
    return dict(row)


def delete_show(conn, show_id: int) -> None:
    """Delete a show; its links go with it (`ON DELETE CASCADE`), entities stay."""
    with conn.cursor() as cur:
        cur.execute("DELETE FROM tv_shows WHERE id = %s RETURNING id", (show_id,))
        row = cur.fetchone()
    if row is None:
        raise NotFoundError("Show not found")
