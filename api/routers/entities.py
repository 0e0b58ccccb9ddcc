"""
Browse and maintain the entities a show can be linked to.

One router is built per relation type (actors, networks, genres, creators,
studios); they differ only in table, columns and response keys.
"""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Query
from pydantic import BaseModel

from api.deps import Coordinator, DbConnection, PagingParams, ShowFilters
from tv_catalog.models.relations import RELATION_TYPES, RelationType
from tv_catalog.repositories import entities as entity_repo
from tv_catalog.services import catalog


class EntityPayload(BaseModel):
    """Entity fields; columns the relation type does not have are ignored."""

    name: str | None = None
    profile_url: str | None = None
    logo_url: str | None = None
    country: str | None = None


def build_entity_router(relation: RelationType) -> APIRouter:
    router = APIRouter(prefix=f"/{relation.key}", tags=[relation.key])

    @router.get("")
    def list_entities(
        db: DbConnection,
        paging: PagingParams,
        search: str | None = Query(default=None, description="Case-insensitive name substring"),
    ) -> dict[str, Any]:
        page = catalog.list_entities(
            db,
            relation,
            {"search": search},
            sort_by=paging.sort_by,
            order=paging.order,
            page=paging.page,
            page_size=paging.page_size,
        )
        return page.to_dict()

    @router.get("/{entity_id}")
    def get_entity(db: DbConnection, entity_id: int) -> dict[str, Any]:
        return entity_repo.get_entity(db, relation, entity_id)

    @router.post("", status_code=201)
    def create_entity(coordinator: Coordinator, payload: EntityPayload) -> dict[str, Any]:
        entity = catalog.create_entity(coordinator, relation, payload.model_dump(exclude_unset=True))
        return {"message": f"{relation.label} created successfully", relation.singular: entity}

    @router.patch("/{entity_id}")
    def update_entity(coordinator: Coordinator, entity_id: int, payload: EntityPayload) -> dict[str, Any]:
        entity = catalog.update_entity(coordinator, relation, entity_id, payload.model_dump(exclude_unset=True))
        return {"message": f"{relation.label} updated successfully", relation.singular: entity}

    @router.get("/{entity_id}/shows")
    def list_entity_shows(
        db: DbConnection,
        entity_id: int,
        filters: ShowFilters,
        paging: PagingParams,
    ) -> dict[str, Any]:
        """Shows linked to this entity, with the same filters and paging as `/shows`."""
        entity, page = catalog.list_entity_shows(
            db,
            relation,
            entity_id,
            filters,
            sort_by=paging.sort_by,
            order=paging.order,
            page=paging.page,
            page_size=paging.page_size,
        )
        return {relation.singular: entity, **page.to_dict("shows")}

    return router


routers: list[APIRouter] = [build_entity_router(relation) for relation in RELATION_TYPES.values()]
