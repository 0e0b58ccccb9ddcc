"""
Domain models shared across the catalog core and the API.
"""

from tv_catalog.models.relations import (
    RELATION_TYPES,
    RelationEntry,
    RelationType,
    get_relation_type,
    parse_relation_entries,
)
from tv_catalog.models.shows import SHOW_COLUMNS, ShowMutation, validate_show_fields

__all__ = [
    "RELATION_TYPES",
    "RelationEntry",
    "RelationType",
    "SHOW_COLUMNS",
    "ShowMutation",
    "get_relation_type",
    "parse_relation_entries",
    "validate_show_fields",
]
