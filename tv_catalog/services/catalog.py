"""
Catalog operations as seen by the request layer.

Writes run inside one transactional unit per request: a show's own fields and
every relation type present in the request commit or roll back together.
Reads take a pooled connection without an explicit unit.
"""
from __future__ import annotations

import logging
from collections.abc import Mapping
from typing import Any

from tv_catalog.db.transaction import TransactionCoordinator
from tv_catalog.models.relations import (
    ACTORS,
    RELATION_TYPES,
    RelationType,
    get_relation_type,
    parse_relation_entries,
    parse_relation_entry,
)
from tv_catalog.models.shows import ShowMutation, validate_show_fields
from tv_catalog.query.builder import build_listing_query
from tv_catalog.query.listings import (
    SHOWS_LISTING,
    Page,
    entity_listing,
    related_shows_listing,
    related_shows_scope,
    run_listing,
)
from tv_catalog.repositories import entities as entity_repo
from tv_catalog.repositories import links as link_repo
from tv_catalog.repositories import shows as show_repo
from tv_catalog.services.aggregate import assemble_show

logger = logging.getLogger(__name__)


def build_show_mutation(payload: Mapping[str, Any]) -> ShowMutation:
    """
    Split a request body into show fields and relation target lists.

    Relation keys that are absent stay absent; present keys (including null)
    become full-replace targets.
    """
    fields = {key: value for key, value in payload.items() if key not in RELATION_TYPES}
    relations = {
        key: parse_relation_entries(relation, payload[key])
        for key, relation in RELATION_TYPES.items()
        if key in payload
    }
    return ShowMutation(fields=fields, relations=relations)


def _apply_relations(conn, show_id: int, mutation: ShowMutation) -> None:
    for key, entries in mutation.relations.items():
        link_repo.sync_show_relation(conn, show_id, RELATION_TYPES[key], entries)


# --- Reads ---


def get_show_detail(conn, show_id: int) -> dict[str, Any]:
    details = show_repo.fetch_show_details(conn, show_id)
    cast = link_repo.list_show_links(conn, show_id, ACTORS)
    return assemble_show(details, {"cast": cast})


def read_show(coordinator: TransactionCoordinator, show_id: int) -> dict[str, Any]:
    with coordinator.pool.checkout() as conn:
        return get_show_detail(conn, show_id)


def list_shows(
    conn,
    filters: Mapping[str, Any],
    *,
    sort_by: Any = None,
    order: Any = None,
    page: Any = None,
    page_size: Any = None,
) -> Page:
    query = build_listing_query(
        SHOWS_LISTING, filters, sort_by=sort_by, order=order, page=page, page_size=page_size
    )
    result = run_listing(conn, query)
    return Page(
        total_records=result.total_records,
        current_page=result.current_page,
        page_size=result.page_size,
        results=[assemble_show(row) for row in result.results],
    )


def list_entities(
    conn,
    relation: RelationType,
    filters: Mapping[str, Any],
    *,
    sort_by: Any = None,
    order: Any = None,
    page: Any = None,
    page_size: Any = None,
) -> Page:
    query = build_listing_query(
        entity_listing(relation), filters, sort_by=sort_by, order=order, page=page, page_size=page_size
    )
    return run_listing(conn, query)


def list_entity_shows(
    conn,
    relation: RelationType,
    entity_id: int,
    filters: Mapping[str, Any],
    *,
    sort_by: Any = None,
    order: Any = None,
    page: Any = None,
    page_size: Any = None,
) -> tuple[dict[str, Any], Page]:
    entity = entity_repo.get_entity(conn, relation, entity_id)
    query = build_listing_query(
        related_shows_listing(relation),
        filters,
        sort_by=sort_by,
        order=order,
        page=page,
        page_size=page_size,
        scope=related_shows_scope(relation, entity_id),
    )
    result = run_listing(conn, query)
    page_of_shows = Page(
        total_records=result.total_records,
        current_page=result.current_page,
        page_size=result.page_size,
        results=[assemble_show(row) for row in result.results],
    )
    return entity, page_of_shows


# --- Show writes ---


def create_show(coordinator: TransactionCoordinator, payload: Mapping[str, Any]) -> dict[str, Any]:
    mutation = build_show_mutation(payload)
    fields = validate_show_fields(mutation.fields, creating=True)

    def _create(conn) -> int:
        show = show_repo.insert_show(conn, fields)
        _apply_relations(conn, show["id"], mutation)
        return show["id"]

    show_id = coordinator.run_unit(_create)
    logger.info("Created show %s (relations: %s)", show_id, ", ".join(mutation.relations) or "none")
    return read_show(coordinator, show_id)


def update_show(
    coordinator: TransactionCoordinator,
    show_id: int,
    payload: Mapping[str, Any],
) -> dict[str, Any]:
    mutation = build_show_mutation(payload)
    fields = validate_show_fields(mutation.fields)

    def _update(conn) -> None:
        show_repo.update_show(conn, show_id, fields)
        _apply_relations(conn, show_id, mutation)

    coordinator.run_unit(_update)
    logger.info(
        "Updated show %s (fields: %s; relations: %s)",
        show_id,
        ", ".join(fields) or "none",
        ", ".join(mutation.relations) or "none",
    )
    return read_show(coordinator, show_id)


def delete_show(coordinator: TransactionCoordinator, show_id: int) -> None:
    coordinator.run_unit(lambda conn: show_repo.delete_show(conn, show_id))
    logger.info("Deleted show %s", show_id)


def link_to_show(
    coordinator: TransactionCoordinator,
    show_id: int,
    relation_key: str,
    item: Any,
) -> dict[str, Any]:
    relation = get_relation_type(relation_key)
    entry = parse_relation_entry(relation, item)
    return coordinator.run_unit(lambda conn: link_repo.link_entity(conn, show_id, relation, entry))


def unlink_from_show(
    coordinator: TransactionCoordinator,
    show_id: int,
    relation_key: str,
    entity_id: int,
) -> None:
    relation = get_relation_type(relation_key)
    coordinator.run_unit(lambda conn: link_repo.unlink_entity(conn, show_id, relation, entity_id))


# --- Entity writes ---


def create_entity(
    coordinator: TransactionCoordinator,
    relation: RelationType,
    fields: Mapping[str, Any],
) -> dict[str, Any]:
    cleaned = entity_repo.clean_entity_fields(relation, fields, creating=True)
    return coordinator.run_unit(lambda conn: entity_repo.create_entity(conn, relation, cleaned))


def update_entity(
    coordinator: TransactionCoordinator,
    relation: RelationType,
    entity_id: int,
    fields: Mapping[str, Any],
) -> dict[str, Any]:
    return coordinator.run_unit(lambda conn: entity_repo.update_entity(conn, relation, entity_id, fields))
