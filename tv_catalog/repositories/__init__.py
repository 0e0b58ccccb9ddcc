"""
Repository layer for DB access patterns.
"""

from tv_catalog.repositories.entities import resolve_entity
from tv_catalog.repositories.links import link_entity, sync_show_relation, unlink_entity
from tv_catalog.repositories.shows import delete_show, insert_show, update_show

__all__ = [
    "delete_show",
    "insert_show",
    "link_entity",
    "resolve_entity",
    "sync_show_relation",
    "unlink_entity",
    "update_show",
]
