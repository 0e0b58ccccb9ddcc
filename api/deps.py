"""
Dependency injection for the connection pool, transactional units and the
shared listing parameters.
"""
from __future__ import annotations

import logging
from collections.abc import Iterator
from dataclasses import dataclass
from typing import Annotated, Any

from fastapi import Depends, Query, Request

from tv_catalog.db.transaction import TransactionCoordinator
from tv_catalog.errors import TransactionFailure
from tv_catalog.utils.env import load_env

# Load environment variables if running standalone
load_env()

logger = logging.getLogger(__name__)


def get_coordinator(request: Request) -> TransactionCoordinator:
    """
    Returns the process-wide coordinator created in the app lifespan.
    Writes must go through it so each request commits or rolls back as one.
    """
    coordinator = getattr(request.app.state, "coordinator", None)
    if coordinator is None:
        raise TransactionFailure("Database is not configured")
    return coordinator


def get_db_connection(
    coordinator: Annotated[TransactionCoordinator, Depends(get_coordinator)],
) -> Iterator[Any]:
    """
    Yields a pooled connection for read-only requests.
    The connection goes back to the pool when the request finishes.
    """
    with coordinator.pool.checkout() as conn:
        yield conn


@dataclass(frozen=True)
class Paging:
    page: str | None = None
    page_size: str | None = None
    sort_by: str | None = None
    order: str | None = None


def get_paging(
    page: str | None = Query(default=None),
    page_size: str | None = Query(default=None, alias="pageSize"),
    sort_by: str | None = Query(default=None, alias="sortBy"),
    order: str | None = Query(default=None, description="asc or desc"),
) -> Paging:
    # Kept as raw strings: malformed values fall back to defaults instead of failing.
    return Paging(page=page, page_size=page_size, sort_by=sort_by, order=order)


def get_show_filters(
    name: str | None = Query(default=None),
    genre: str | None = Query(default=None),
    actor: str | None = Query(default=None),
    network: str | None = Query(default=None),
    creator: str | None = Query(default=None),
    studio: str | None = Query(default=None),
    year: str | None = Query(default=None),
    min_rating: str | None = Query(default=None, alias="minRating"),
) -> dict[str, str | None]:
    return {
        "name": name,
        "genre": genre,
        "actor": actor,
        "network": network,
        "creator": creator,
        "studio": studio,
        "year": year,
        "minRating": min_rating,
    }


# Type aliases for dependency injection
Coordinator = Annotated[TransactionCoordinator, Depends(get_coordinator)]
DbConnection = Annotated[Any, Depends(get_db_connection)]
PagingParams = Annotated[Paging, Depends(get_paging)]
ShowFilters = Annotated[dict[str, str | None], Depends(get_show_filters)]
