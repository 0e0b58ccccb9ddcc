"""
Show <-> relation entity links.

`sync_show_relation` is a full replace: the target list becomes the show's
complete link set for that relation type. It must run inside a transactional
unit together with anything else the request changes.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from typing import Any

from tv_catalog.errors import ConflictError, NotFoundError
from tv_catalog.models.relations import RelationEntry, RelationType
from tv_catalog.repositories.entities import resolve_entity
from tv_catalog.repositories.shows import lock_show

logger = logging.getLogger(__name__)


def _link_payload(
    relation: RelationType,
    show_id: int,
    entity_id: int,
    attributes: Mapping[str, Any],
    rank: int | None,
) -> dict[str, Any]:
    payload: dict[str, Any] = {"show_id": show_id, relation.entity_fk: entity_id}
    for column in relation.link_columns:
        if column in attributes:
            payload[column] = attributes[column]
    if relation.rank_column:
        payload[relation.rank_column] = rank
    return payload


def _insert_link_sql(relation: RelationType, columns: Sequence[str], *, skip_existing: bool) -> str:
    placeholders = ", ".join(["%s"] * len(columns))
    sql = f"INSERT INTO {relation.link_table} ({', '.join(columns)}) VALUES ({placeholders})"
    if skip_existing:
        sql += f" ON CONFLICT (show_id, {relation.entity_fk}) DO NOTHING RETURNING show_id"
    return sql


def sync_show_relation(
    conn,
    show_id: int,
    relation: RelationType,
    entries: Sequence[RelationEntry],
) -> list[int]:
    """
    Replace every `relation` link of `show_id` with `entries`, in order.

    Entities are resolved by name (created when missing). Where the relation
    has a rank column, the 1-based position in `entries` is stored as the rank.
    Names resolving to an entity already linked in this call are skipped.
    Returns the linked entity ids in rank order.

    Distinct names are resolved in sorted order so that concurrent units
    creating the same new names take their locks in the same order.
    """
    lock_show(conn, show_id)

    with conn.cursor() as cur:
        cur.execute(f"DELETE FROM {relation.link_table} WHERE show_id = %s", (show_id,))
        removed = cur.rowcount

    resolved: dict[str, int] = {}
    for entry in sorted(entries, key=lambda e: e.name):
        if entry.name not in resolved:
            resolved[entry.name] = resolve_entity(conn, relation, entry.name, details=entry.details)

    linked: list[int] = []
    for entry in entries:
        entity_id = resolved[entry.name]
        if entity_id in linked:
            continue
        payload = _link_payload(relation, show_id, entity_id, entry.attributes, len(linked) + 1)
        with conn.cursor() as cur:
            cur.execute(_insert_link_sql(relation, list(payload), skip_existing=False), tuple(payload.values()))
        linked.append(entity_id)

    logger.debug(
        "Replaced %s links for show %s: removed=%s linked=%s",
        relation.key,
        show_id,
        removed,
        len(linked),
    )
    return linked


def link_entity(conn, show_id: int, relation: RelationType, entry: RelationEntry) -> dict[str, Any]:
    """
    Add one link without touching the others.

    Unlike `sync_show_relation`, linking an entity that is already linked is a
    conflict. Without an explicit rank the link is appended after the last one.
    """
    lock_show(conn, show_id)
    entity_id = resolve_entity(conn, relation, entry.name, details=entry.details)

    rank: int | None = None
    if relation.rank_column:
        rank = entry.attributes.get(relation.rank_column)
        if rank is None:
            with conn.cursor() as cur:
                cur.execute(
                    f"SELECT COALESCE(MAX({relation.rank_column}), 0) + 1 AS next_rank "
                    f"FROM {relation.link_table} WHERE show_id = %s",
                    (show_id,),
                )
                rank = cur.fetchone()["next_rank"]

    payload = _link_payload(relation, show_id, entity_id, entry.attributes, rank)
    with conn.cursor() as cur:
        cur.execute(_insert_link_sql(relation, list(payload), skip_existing=True), tuple(payload.values()))
        row = cur.fetchone()
    if row is None:
        raise ConflictError(f"{relation.label} {entry.name!r} is already linked to this show")

    link = {key: value for key, value in payload.items() if key != "show_id"}
    return {"show_id": show_id, "name": entry.name, **link}


def unlink_entity(conn, show_id: int, relation: RelationType, entity_id: int) -> None:
    lock_show(conn, show_id)
    with conn.cursor() as cur:
        cur.execute(
            f"DELETE FROM {relation.link_table} WHERE show_id = %s AND {relation.entity_fk} = %s RETURNING show_id",
            (show_id, entity_id),
        )
        row = cur.fetchone()
    if row is None:
        raise NotFoundError(f"{relation.label} is not linked to this show")


def list_show_links(conn, show_id: int, relation: RelationType) -> list[dict[str, Any]]:
    """Linked entities joined with their link attributes, in display order."""
    link_fields = [*relation.link_columns]
    order_by = "lk.created_at"
    if relation.rank_column:
        link_fields.append(relation.rank_column)
        order_by = f"lk.{relation.rank_column} NULLS LAST, lk.created_at"
    projection = ", ".join(["en.*", *(f"lk.{col}" for col in link_fields)])
    with conn.cursor() as cur:
        cur.execute(
            f"SELECT {projection} FROM {relation.link_table} lk "
            f"JOIN {relation.table} en ON lk.{relation.entity_fk} = en.id "
            f"WHERE lk.show_id = %s ORDER BY {order_by}",
            (show_id,),
        )
        return [dict(r) for r in cur.fetchall()]
