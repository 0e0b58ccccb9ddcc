from __future__ import annotations

from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import Any

from tv_catalog.errors import NotFoundError, ValidationError


@dataclass(frozen=True)
class RelationType:
    """
    Capability descriptor for one kind of entity a show can be linked to.

    Table and column names here are the only identifiers ever placed into SQL
    text for relation queries; they never come from request input.
    """

    key: str  # plural; request field, URL segment
    singular: str  # listing filter key and response key
    label: str
    table: str
    link_table: str
    entity_fk: str
    link_alias: str
    detail_columns: tuple[str, ...] = ()
    link_columns: tuple[str, ...] = ()
    rank_column: str | None = None
    summary_column: str = ""
    default_show_sort: str = "first_air_date"

    @property
    def entity_columns(self) -> tuple[str, ...]:
        return ("name", *self.detail_columns)


ACTORS = RelationType(
    key="actors",
    singular="actor",
    label="Actor",
    table="actors",
    link_table="show_actors",
    entity_fk="actor_id",
    link_alias="sa",
    detail_columns=("profile_url",),
    link_columns=("character_name",),
    rank_column="display_order",
    summary_column="actor_names",
)

NETWORKS = RelationType(
    key="networks",
    singular="network",
    label="Network",
    table="networks",
    link_table="show_networks",
    entity_fk="network_id",
    link_alias="sn",
    detail_columns=("logo_url", "country"),
    summary_column="network_names",
)

GENRES = RelationType(
    key="genres",
    singular="genre",
    label="Genre",
    table="genres",
    link_table="show_genres",
    entity_fk="genre_id",
    link_alias="sg",
    summary_column="genre_names",
    default_show_sort="tmdb_rating",
)

CREATORS = RelationType(
    key="creators",
    singular="creator",
    label="Creator",
    table="creators",
    link_table="show_creators",
    entity_fk="creator_id",
    link_alias="sc",
    summary_column="creator_names",
)

STUDIOS = RelationType(
    key="studios",
    singular="studio",
    label="Studio",
    table="studios",
    link_table="show_studios",
    entity_fk="studio_id",
    link_alias="ss",
    summary_column="studio_names",
)

RELATION_TYPES: dict[str, RelationType] = {
    relation.key: relation for relation in (ACTORS, NETWORKS, GENRES, CREATORS, STUDIOS)
}


def get_relation_type(key: str) -> RelationType:
    relation = RELATION_TYPES.get(key)
    if relation is None:
        raise NotFoundError(f"Unknown relation type: {key}")
    return relation


@dataclass(frozen=True)
class RelationEntry:
    """
    One target link for a show.

    `attributes` are link-scoped (e.g. an actor's character name); `details`
    are entity attributes that only apply when the entity is first created.
    """

    name: str
    attributes: Mapping[str, Any] = field(default_factory=dict)
    details: Mapping[str, Any] = field(default_factory=dict)


def _coerce_rank(relation: RelationType, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, str)):
        raise ValidationError(f"{relation.rank_column} must be a non-negative integer")
    try:
        rank = int(value)
    except ValueError as exc:
        raise ValidationError(f"{relation.rank_column} must be a non-negative integer") from exc
    if rank < 0:
        raise ValidationError(f"{relation.rank_column} must be a non-negative integer")
    return rank


def parse_relation_entry(relation: RelationType, item: Any) -> RelationEntry:
    """Accept either a bare name or an object with `name` plus known attributes."""
    if isinstance(item, str):
        name: Any = item
        payload: Mapping[str, Any] = {}
    elif isinstance(item, Mapping):
        name = item.get("name")
        payload = item
    else:
        raise ValidationError(f"Each {relation.singular} must be a name or an object with a name")

    if not isinstance(name, str) or not name.strip():
        raise ValidationError(f"{relation.label} name is required")

    attributes = {col: payload[col] for col in relation.link_columns if col in payload}
    if relation.rank_column and payload.get(relation.rank_column) is not None:
        attributes[relation.rank_column] = _coerce_rank(relation, payload[relation.rank_column])
    details = {col: payload[col] for col in relation.detail_columns if col in payload}
    return RelationEntry(name=name.strip(), attributes=attributes, details=details)


def parse_relation_entries(relation: RelationType, raw: Any) -> list[RelationEntry]:
    """
    Parse a target list for one relation type.

    `None` means "clear" and yields an empty list. Repeated names keep their
    first occurrence, so each entity is linked at most once.
    """
    if raw is None:
        return []
    if isinstance(raw, (str, bytes)) or not isinstance(raw, (list, tuple)):
        raise ValidationError(f"{relation.key} must be a list")

    entries: list[RelationEntry] = []
    seen: set[str] = set()
    for item in raw:
        entry = parse_relation_entry(relation, item)
        if entry.name in seen:
            continue
        seen.add(entry.name)
        entries.append(entry)
    return entries
