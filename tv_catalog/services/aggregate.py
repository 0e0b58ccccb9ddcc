from __future__ import annotations

from collections.abc import Mapping
from datetime import date, datetime, timezone
from typing import Any

from tv_catalog.models.relations import RELATION_TYPES

# `show_details` summary columns -> public field names.
PUBLIC_FIELD_NAMES: dict[str, str] = {
    relation.summary_column: relation.key for relation in RELATION_TYPES.values()
}

DATE_FIELDS: tuple[str, ...] = ("first_air_date", "last_air_date")


def to_calendar_date(value: Any) -> str | None:
    """
    Render a date-like value as `YYYY-MM-DD`.

    Aware datetimes are converted to UTC first. Anything unparseable yields None.
    """
    if value is None:
        return None
    if isinstance(value, datetime):
        if value.tzinfo is not None:
            value = value.astimezone(timezone.utc)
        return value.date().isoformat()
    if isinstance(value, date):
        return value.isoformat()
    if isinstance(value, str):
        text = value.strip()
        try:
            return to_calendar_date(datetime.fromisoformat(text.replace("Z", "+00:00")))
        except ValueError:
            pass
        try:
            return date.fromisoformat(text[:10]).isoformat()
        except ValueError:
            return None
    return None


def _as_name_list(value: Any) -> list[str]:
    if value is None:
        return []
    if isinstance(value, str):
        return [part.strip() for part in value.split(",") if part.strip()]
    return [str(item) for item in value if item is not None]


def normalize_show_dates(show: Mapping[str, Any]) -> dict[str, Any]:
    row = dict(show)
    for field_name in DATE_FIELDS:
        if field_name in row:
            row[field_name] = to_calendar_date(row[field_name])
    return row


def assemble_show(
    show: Mapping[str, Any],
    relation_summaries: Mapping[str, Any] | None = None,
) -> dict[str, Any]:
    """
    Merge a show row with its relation summaries into one response record.

    Summary columns are renamed to their public names (`actor_names` ->
    `actors`, ...) and always come out as lists. Inputs are not modified.
    """
    merged = dict(show)
    merged.update(relation_summaries or {})
    for internal, public in PUBLIC_FIELD_NAMES.items():
        if internal in merged:
            merged[public] = _as_name_list(merged.pop(internal))
    return normalize_show_dates(merged)
