"""
Parameterized listing queries built from a declarative specification.

A `ListingSpec` fixes, per resource, which filter keys exist (each bound to
one predicate template), which columns may be sorted on, and the defaults.
Caller input only ever selects among those templates or flows through bound
`%s` parameters; nothing the caller sends is placed into SQL text.
"""
from __future__ import annotations

import math
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass
from typing import Any

from tv_catalog.errors import ValidationError

DEFAULT_PAGE_SIZE = 25

# LIMIT and OFFSET are bigint in PostgreSQL.
MAX_BIGINT = 2**63 - 1

_DIRECTIONS = {"asc": "ASC", "desc": "DESC"}


def escape_like(value: str) -> str:
    """Escape LIKE metacharacters so the value matches literally."""
    return value.replace("\\", "\\\\").replace("%", "\\%").replace("_", "\\_")


@dataclass(frozen=True)
class FilterRule:
    """A predicate template with exactly one `%s` slot plus its value coercion."""

    template: str
    coerce: Callable[[str, Any], Any]


def _as_substring(key: str, value: Any) -> str:
    return f"%{escape_like(str(value).strip())}%"


def _as_year(key: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be an integer")
    try:
        return int(str(value).strip())
    except ValueError as exc:
        raise ValidationError(f"{key} must be an integer") from exc


def _as_number(key: str, value: Any) -> float:
    if isinstance(value, bool):
        raise ValidationError(f"{key} must be a number")
    try:
        number = float(str(value).strip())
    except ValueError as exc:
        raise ValidationError(f"{key} must be a number") from exc
    if math.isnan(number) or math.isinf(number):
        raise ValidationError(f"{key} must be a number")
    return number


def substring_filter(template: str) -> FilterRule:
    return FilterRule(template=template, coerce=_as_substring)


def year_filter(template: str) -> FilterRule:
    return FilterRule(template=template, coerce=_as_year)


def number_filter(template: str) -> FilterRule:
    return FilterRule(template=template, coerce=_as_number)


@dataclass(frozen=True)
class ListingSpec:
    source: str
    projection: str
    key_column: str
    filters: Mapping[str, FilterRule]
    sort_fields: Mapping[str, str]
    default_sort: str
    default_order: str = "asc"
    default_page_size: int = DEFAULT_PAGE_SIZE


@dataclass(frozen=True)
class ListingQuery:
    """
    A count query and a data query over the same filtered population.

    Both share `params`; the data query takes `data_params`, which appends the
    page size and offset, each capped at the bigint maximum.
    """

    count_sql: str
    data_sql: str
    params: tuple[Any, ...]
    page: int
    page_size: int
    sort_column: str
    direction: str

    @property
    def offset(self) -> int:
        return (self.page - 1) * self.page_size

    @property
    def data_params(self) -> tuple[Any, ...]:
        return (*self.params, min(self.page_size, MAX_BIGINT), min(self.offset, MAX_BIGINT))


def coerce_positive_int(value: Any, default: int) -> int:
    """Return `value` as a positive int, or `default` when missing or malformed."""
    if value is None or isinstance(value, bool):
        return default
    if isinstance(value, float):
        if not value.is_integer():
            return default
        value = int(value)
    if isinstance(value, str):
        try:
            value = int(value.strip())
        except ValueError:
            return default
    if not isinstance(value, int) or value < 1:
        return default
    return value


def resolve_sort(spec: ListingSpec, sort_by: Any, order: Any) -> tuple[str, str]:
    """Map caller sort input onto a whitelisted column and direction, silently defaulting."""
    field_name = sort_by if isinstance(sort_by, str) and sort_by in spec.sort_fields else spec.default_sort
    default_direction = _DIRECTIONS[spec.default_order.lower()]
    direction = _DIRECTIONS.get(order.strip().lower(), default_direction) if isinstance(order, str) else default_direction
    return spec.sort_fields[field_name], direction


def build_listing_query(
    spec: ListingSpec,
    filters: Mapping[str, Any] | None = None,
    *,
    sort_by: Any = None,
    order: Any = None,
    page: Any = None,
    page_size: Any = None,
    scope: Sequence[tuple[str, Any]] = (),
) -> ListingQuery:
    """
    Compose the count and data queries for one listing request.

    `scope` holds code-defined predicates (e.g. "shows linked to actor N") that
    always apply ahead of caller filters. Unknown filter keys are ignored, and
    empty filter values are treated as absent. Filters are applied in the
    order declared by `spec`, so the same filter set always yields the same parameters.
    """
    filters = filters or {}
    clauses: list[str] = []
    params: list[Any] = []

    for template, value in scope:
        clauses.append(template)
        params.append(value)

    for key, rule in spec.filters.items():
        raw = filters.get(key)
        if raw is None or (isinstance(raw, str) and not raw.strip()):
            continue
        clauses.append(rule.template)
        params.append(rule.coerce(key, raw))

    where_sql = f" WHERE {' AND '.join(clauses)}" if clauses else ""

    sort_column, direction = resolve_sort(spec, sort_by, order)
    order_sql = f"{sort_column} {direction} NULLS LAST"
    if sort_column != spec.key_column:
        order_sql += f", {spec.key_column} {direction}"

    return ListingQuery(
        count_sql=f"SELECT COUNT(*) AS total FROM {spec.source}{where_sql}",
        data_sql=(
            f"SELECT {spec.projection} FROM {spec.source}{where_sql} "
            f"ORDER BY {order_sql} LIMIT %s OFFSET %s"
        ),
        params=tuple(params),
        page=coerce_positive_int(page, 1),
        page_size=coerce_positive_int(page_size, spec.default_page_size),
        sort_column=sort_column,
        direction=direction,
    )


def build_update_set(patch: Mapping[str, Any], allowed: Sequence[str]) -> tuple[str, list[Any]]:
    """
    Build `col = %s, ...` for the keys present in `patch`.

    Only names in `allowed` are emitted; a present key whose value is None
    becomes an assignment to NULL.
    """
    assignments: list[str] = []
    values: list[Any] = []
    for column in allowed:
        if column in patch:
            assignments.append(f"{column} = %s")
            values.append(patch[column])
    return ", ".join(assignments), values
