from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from psycopg import errors as pg_errors

from tv_catalog.errors import ConflictError, NotFoundError, ValidationError
from tv_catalog.models.relations import RelationType
from tv_catalog.query.builder import build_update_set

logger = logging.getLogger(__name__)


def clean_entity_fields(
    relation: RelationType,
    fields: Mapping[str, Any],
    *,
    creating: bool = False,
) -> dict[str, Any]:
    """
    Keep the columns `relation` knows about and validate them.

    `name` is trimmed and must be non-empty whenever it is present (and it must
    be present when creating). Detail columns accept text or null.
    """
    cleaned: dict[str, Any] = {}
    if creating or "name" in fields:
        name = fields.get("name")
        if not isinstance(name, str) or not name.strip():
            raise ValidationError(f"{relation.label} name is required")
        cleaned["name"] = name.strip()
    for column in relation.detail_columns:
        if column not in fields:
            continue
        value = fields[column]
        if value is not None and not isinstance(value, str):
            raise ValidationError(f"{column} must be a string")
        cleaned[column] = value
    return cleaned


def resolve_entity(
    conn,
    relation: RelationType,
    name: str,
    *,
    details: Mapping[str, Any] | None = None,
) -> int:
    """
    Return the id of the `relation` entity named `name`, creating it if absent.

    The insert and the conflict check are one atomic statement, so two callers
    resolving the same new name concurrently converge on a single row. An
    existing row is never modified; `details` only apply to a new row.
    """
    fields = clean_entity_fields(relation, {**(details or {}), "name": name}, creating=True)
    columns = list(fields)
    placeholders = ", ".join(["%s"] * len(columns))

    with conn.cursor() as cur:
        cur.execute(
            f"INSERT INTO {relation.table} ({', '.join(columns)}) VALUES ({placeholders}) "
            "ON CONFLICT (name) DO NOTHING RETURNING id",
            tuple(fields.values()),
        )
        row = cur.fetchone()
        if row is not None:
            logger.debug("Created %s %r (id=%s)", relation.singular, fields["name"], row["id"])
            return row["id"]

        cur.execute(f"SELECT id FROM {relation.table} WHERE name = %s", (fields["name"],))
        row = cur.fetchone()

    if row is None:
        # The conflicting row vanished between the two statements.
        raise ConflictError(f"{relation.label} {fields['name']!r} could not be resolved")
    return row["id"]


def get_entity(conn, relation: RelationType, entity_id: int) -> dict[str, Any]:
    with conn.cursor() as cur:
        cur.execute(f"SELECT * FROM {relation.table} WHERE id = %s", (entity_id,))
        row = cur.fetchone()
    if row is None:
        raise NotFoundError(f"{relation.label} not found")
    return dict(row)


def create_entity(conn, relation: RelationType, fields: Mapping[str, Any]) -> dict[str, Any]:
    """Explicitly create an entity; an existing name is a conflict, not a resolve."""
    cleaned = clean_entity_fields(relation, fields, creating=True)
    columns = list(cleaned)
    placeholders = ", ".join(["%s"] * len(columns))
    try:
        with conn.cursor() as cur:
            cur.execute(
                f"INSERT INTO {relation.table} ({', '.join(columns)}) VALUES ({placeholders}) RETURNING *",
                tuple(cleaned.values()),
            )
            row = cur.fetchone()
    except pg_errors.UniqueViolation as exc:
        raise ConflictError(f"A {relation.singular} with this name already exists") from exc
    return dict(row)


def update_entity(
    conn,
    relation: RelationType,
    entity_id: int,
    patch: Mapping[str, Any],
) -> dict[str, Any]:
    cleaned = clean_entity_fields(relation, patch)
    if not cleaned:
        names = ", ".join(relation.entity_columns)
        raise ValidationError(f"At least one field ({names}) must be provided")

    get_entity(conn, relation, entity_id)

    assignments, values = build_update_set(cleaned, relation.entity_columns)
    try:
        with conn.cursor() as cur:
            cur.execute(
                f"UPDATE {relation.table} SET {assignments} WHERE id = %s RETURNING *",
                (*values, entity_id),
            )
            row = cur.fetchone()
    except pg_errors.UniqueViolation as exc:
        raise ConflictError(f"A {relation.singular} with this name already exists") from exc
    if row is None:
        raise NotFoundError(f"{relation.label} not found")
    return dict(row)
