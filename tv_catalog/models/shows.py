from __future__ import annotations

import math
from collections.abc import Callable, Mapping
from dataclasses import dataclass, field
from datetime import date, datetime
from typing import Any

from tv_catalog.errors import ValidationError
from tv_catalog.models.relations import RelationEntry

# Writable `tv_shows` columns, in table order. `id` is assigned by the store.
SHOW_COLUMNS: tuple[str, ...] = (
    "name",
    "original_name",
    "first_air_date",
    "last_air_date",
    "number_of_seasons",
    "number_of_episodes",
    "status",
    "overview",
    "popularity",
    "tmdb_rating",
    "vote_count",
    "poster_path",
    "backdrop_path",
)

REQUIRED_ON_CREATE: tuple[str, ...] = ("name", "first_air_date", "overview")

# Columns that may be omitted from a patch but never set to null.
NON_NULLABLE: frozenset[str] = frozenset(REQUIRED_ON_CREATE)


def _text(column: str, value: Any) -> str:
    if not isinstance(value, str):
        raise ValidationError(f"{column} must be a string")
    return value


def _name(column: str, value: Any) -> str:
    text = _text(column, value).strip()
    if not text:
        raise ValidationError(f"{column} must not be empty")
    return text


def _calendar_date(column: str, value: Any) -> date:
    if isinstance(value, datetime):
        return value.date()
    if isinstance(value, date):
        return value
    if isinstance(value, str):
        try:
            return date.fromisoformat(value.strip())
        except ValueError as exc:
            raise ValidationError(f"{column} must be a date in YYYY-MM-DD form") from exc
    raise ValidationError(f"{column} must be a date in YYYY-MM-DD form")


def _count(column: str, value: Any) -> int:
    if isinstance(value, bool):
        raise ValidationError(f"{column} must be a non-negative integer")
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    if isinstance(value, str) and value.strip().isdigit():
        value = int(value.strip())
    if not isinstance(value, int) or value < 0:
        raise ValidationError(f"{column} must be a non-negative integer")
    return value


def _real(column: str, value: Any) -> float:
    if isinstance(value, bool):
        raise ValidationError(f"{column} must be a number")
    try:
        number = float(value)
    except (TypeError, ValueError) as exc:
        raise ValidationError(f"{column} must be a number") from exc
    if math.isnan(number) or math.isinf(number):
        raise ValidationError(f"{column} must be a number")
    return number


def _popularity(column: str, value: Any) -> float:
    number = _real(column, value)
    if number < 0:
        raise ValidationError(f"{column} must not be negative")
    return number


def _rating(column: str, value: Any) -> float:
    number = _real(column, value)
    if not 0 <= number <= 10:
        raise ValidationError(f"{column} must be between 0 and 10")
    return number


_VALIDATORS: dict[str, Callable[[str, Any], Any]] = {
    "name": _name,
    "original_name": _text,
    "first_air_date": _calendar_date,
    "last_air_date": _calendar_date,
    "number_of_seasons": _count,
    "number_of_episodes": _count,
    "status": _text,
    "overview": _text,
    "popularity": _popularity,
    "tmdb_rating": _rating,
    "vote_count": _count,
    "poster_path": _text,
    "backdrop_path": _text,
}


def validate_show_fields(fields: Mapping[str, Any], *, creating: bool = False) -> dict[str, Any]:
    """
    Validate and normalize a sparse set of show fields.

    Only keys present in `fields` are returned. A present key with value `None`
    is kept (it clears the column) unless the column is non-nullable.
    """
    unknown = sorted(set(fields) - set(SHOW_COLUMNS))
    if unknown:
        raise ValidationError(f"Unknown show field(s): {', '.join(unknown)}")

    if creating:
        missing = [col for col in REQUIRED_ON_CREATE if fields.get(col) is None]
        if missing:
            raise ValidationError(f"Missing required field(s): {', '.join(missing)}")

    cleaned: dict[str, Any] = {}
    for column in SHOW_COLUMNS:
        if column not in fields:
            continue
        value = fields[column]
        if value is None:
            if column in NON_NULLABLE:
                raise ValidationError(f"{column} must not be null")
            cleaned[column] = None
            continue
        cleaned[column] = _VALIDATORS[column](column, value)
    return cleaned


@dataclass(frozen=True)
class ShowMutation:
    """
    A create or patch request against one show.

    `relations` only holds relation types present in the request; absent types
    leave existing links untouched.
    """

    fields: Mapping[str, Any] = field(default_factory=dict)
    relations: Mapping[str, list[RelationEntry]] = field(default_factory=dict)
