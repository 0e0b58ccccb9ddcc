"""
Show endpoints: paginated browsing, the aggregate show view, and writes that
replace a show's fields and relation lists atomically.
"""
from __future__ import annotations

from typing import Any

from fastapi import APIRouter, Response
from pydantic import BaseModel, ConfigDict

from api.deps import Coordinator, DbConnection, PagingParams, ShowFilters
from tv_catalog.services import catalog

router = APIRouter(prefix="/shows", tags=["shows"])

RelationItem = str | dict[str, Any]


# --- Pydantic models ---

class ShowPayload(BaseModel):
    """
    Body for create and patch. Only fields present in the request are applied;
    a relation list that is present replaces the stored list, null clears it.
    """

    name: str | None = None
    original_name: str | None = None
    first_air_date: str | None = None
    last_air_date: str | None = None
    number_of_seasons: int | None = None
    number_of_episodes: int | None = None
    status: str | None = None
    overview: str | None = None
    popularity: float | None = None
    tmdb_rating: float | None = None
    vote_count: int | None = None
    poster_path: str | None = None
    backdrop_path: str | None = None
    actors: list[RelationItem] | None = None
    networks: list[RelationItem] | None = None
    genres: list[RelationItem] | None = None
    creators: list[RelationItem] | None = None
    studios: list[RelationItem] | None = None


class LinkPayload(BaseModel):
    """One entity to link: link attributes plus details used only if the entity is new."""

    name: str
    character_name: str | None = None
    display_order: int | None = None
    profile_url: str | None = None
    logo_url: str | None = None
    country: str | None = None


class Show(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: int
    name: str
    original_name: str | None = None
    first_air_date: str | None = None
    last_air_date: str | None = None
    number_of_seasons: int | None = None
    number_of_episodes: int | None = None
    status: str | None = None
    overview: str | None = None
    popularity: float | None = None
    tmdb_rating: float | None = None
    vote_count: int | None = None
    poster_path: str | None = None
    backdrop_path: str | None = None
    actors: list[str] = []
    networks: list[str] = []
    genres: list[str] = []
    creators: list[str] = []
    studios: list[str] = []


class CastMember(BaseModel):
    model_config = ConfigDict(extra="allow")

    id: int
    name: str
    character_name: str | None = None
    display_order: int | None = None


class ShowDetail(Show):
    cast: list[CastMember] = []


class ShowPage(BaseModel):
    totalRecords: int
    currentPage: int
    totalPages: int
    pageSize: int
    results: list[Show]


# --- Endpoints ---

@router.get("", response_model=ShowPage)
def list_shows(db: DbConnection, filters: ShowFilters, paging: PagingParams) -> dict:
    """List shows with filters, sorting and pagination."""
    page = catalog.list_shows(
        db,
        filters,
        sort_by=paging.sort_by,
        order=paging.order,
        page=paging.page,
        page_size=paging.page_size,
    )
    return page.to_dict()


@router.get("/{show_id}", response_model=ShowDetail)
def get_show(db: DbConnection, show_id: int) -> dict:
    """Get one show with its relation summaries and ordered cast."""
    return catalog.get_show_detail(db, show_id)


@router.post("", response_model=ShowDetail, status_code=201)
def create_show(coordinator: Coordinator, payload: ShowPayload) -> dict:
    return catalog.create_show(coordinator, payload.model_dump(exclude_unset=True))


@router.patch("/{show_id}", response_model=ShowDetail)
def update_show(coordinator: Coordinator, show_id: int, payload: ShowPayload) -> dict:
    return catalog.update_show(coordinator, show_id, payload.model_dump(exclude_unset=True))


@router.delete("/{show_id}", status_code=204)
def delete_show(coordinator: Coordinator, show_id: int) -> Response:
    catalog.delete_show(coordinator, show_id)
    return Response(status_code=204)


@router.post("/{show_id}/{relation_key}", status_code=201)
def link_entity(coordinator: Coordinator, show_id: int, relation_key: str, payload: LinkPayload) -> dict:
    """Link one actor, network, genre, creator or studio to a show, creating it by name if needed."""
    return catalog.link_to_show(coordinator, show_id, relation_key, payload.model_dump(exclude_unset=True))


@router.delete("/{show_id}/{relation_key}/{entity_id}", status_code=204)
def unlink_entity(coordinator: Coordinator, show_id: int, relation_key: str, entity_id: int) -> Response:
    catalog.unlink_from_show(coordinator, show_id, relation_key, entity_id)
    return Response(status_code=204)
