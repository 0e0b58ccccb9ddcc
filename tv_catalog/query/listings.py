"""
Listing specifications for every catalog resource, plus listing execution.

Show listings (global and per related entity) read from the `show_details`
view so each row already carries its flattened relation summaries.
"""
from __future__ import annotations

import math
from dataclasses import dataclass
from functools import lru_cache
from typing import Any

from tv_catalog.models.relations import RELATION_TYPES, RelationType
from tv_catalog.query.builder import (
    FilterRule,
    ListingQuery,
    ListingSpec,
    number_filter,
    substring_filter,
    year_filter,
)

SHOW_SORT_FIELDS: dict[str, str] = {
    name: f"s.{name}"
    for name in (
        "id",
        "name",
        "first_air_date",
        "last_air_date",
        "tmdb_rating",
        "popularity",
        "vote_count",
        "number_of_seasons",
        "number_of_episodes",
    )
}

ENTITY_SORT_FIELDS: dict[str, str] = {"id": "id", "name": "name"}


def _linked_name_predicate(relation: RelationType) -> str:
    return (
        f"EXISTS (SELECT 1 FROM {relation.link_table} lk "
        f"JOIN {relation.table} en ON lk.{relation.entity_fk} = en.id "
        f"WHERE lk.show_id = s.id AND en.name ILIKE %s)"
    )


def _show_filters() -> dict[str, FilterRule]:
    filters: dict[str, FilterRule] = {"name": substring_filter("s.name ILIKE %s")}
    for relation in RELATION_TYPES.values():
        filters[relation.singular] = substring_filter(_linked_name_predicate(relation))
    filters["year"] = year_filter("EXTRACT(YEAR FROM s.first_air_date) = %s")
    filters["minRating"] = number_filter("s.tmdb_rating >= %s")
    return filters


SHOW_FILTERS: dict[str, FilterRule] = _show_filters()

SHOWS_LISTING = ListingSpec(
    source="show_details s",
    projection="s.*",
    key_column="s.id",
    filters=SHOW_FILTERS,
    sort_fields=SHOW_SORT_FIELDS,
    default_sort="first_air_date",
    default_order="desc",
)


@lru_cache(maxsize=None)
def entity_listing(relation: RelationType) -> ListingSpec:
    return ListingSpec(
        source=relation.table,
        projection="*",
        key_column="id",
        filters={"search": substring_filter("name ILIKE %s")},
        sort_fields=ENTITY_SORT_FIELDS,
        default_sort="name",
        default_order="asc",
    )


@lru_cache(maxsize=None)
def related_shows_listing(relation: RelationType) -> ListingSpec:
    """Shows linked to one entity of `relation`; scope with `related_shows_scope`."""
    alias = relation.link_alias
    link_fields = [*relation.link_columns]
    if relation.rank_column:
        link_fields.append(relation.rank_column)
    projection = ", ".join(["s.*", *(f"{alias}.{col}" for col in link_fields)])
    return ListingSpec(
        source=f"show_details s JOIN {relation.link_table} {alias} ON s.id = {alias}.show_id",
        projection=projection,
        key_column="s.id",
        filters=SHOW_FILTERS,
        sort_fields=SHOW_SORT_FIELDS,
        default_sort=relation.default_show_sort,
        default_order="desc",
    )


def related_shows_scope(relation: RelationType, entity_id: int) -> list[tuple[str, Any]]:
    return [(f"{relation.link_alias}.{relation.entity_fk} = %s", entity_id)]


@dataclass(frozen=True)
class Page:
    total_records: int
    current_page: int
    page_size: int
    results: list[dict[str, Any]]

    @property
    def total_pages(self) -> int:
        return math.ceil(self.total_records / self.page_size)

    def to_dict(self, results_key: str = "results") -> dict[str, Any]:
        return {
            "totalRecords": self.total_records,
            "currentPage": self.current_page,
            "totalPages": self.total_pages,
            "pageSize": self.page_size,
            results_key: self.results,
        }


def run_listing(conn, query: ListingQuery) -> Page:
    """
    Execute the count and data queries of `query` on one connection.

    A page starting at or past the last row is empty without running the data query.
    """
    rows: list[dict[str, Any]] = []
    with conn.cursor() as cur:
        cur.execute(query.count_sql, query.params)
        row = cur.fetchone()
        total = int(row["total"]) if row else 0
        if query.offset < total:
            cur.execute(query.data_sql, query.data_params)
            rows = [dict(r) for r in cur.fetchall()]
    return Page(
        total_records=total,
        current_page=query.page,
        page_size=query.page_size,
        results=rows,
    )
