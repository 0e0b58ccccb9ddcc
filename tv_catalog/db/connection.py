"""
Database URL resolution for the TV catalog.

This module provides a single source of truth for resolving the Postgres
connection string used by the connection pool.
"""
from __future__ import annotations

import os
from functools import lru_cache


class DatabaseConnectionError(RuntimeError):
    """Raised when database connection cannot be established."""

    pass


@lru_cache(maxsize=1)
def resolve_database_url() -> str:
    """
    Resolve the database URL using a prioritized lookup.

    Priority order:
    1. DATABASE_URL - Standard Postgres connection string
    2. TV_CATALOG_DB_URL - Legacy alias

    Returns:
        Database connection URL string.

    Raises:
        DatabaseConnectionError: If no valid database URL can be resolved.
    """
    url = (os.getenv("DATABASE_URL") or "").strip()
    if url:
        return url

    url = (os.getenv("TV_CATALOG_DB_URL") or "").strip()
    if url:
        return url

    raise DatabaseConnectionError(
        "No database URL configured.\n\n"
        "Set DATABASE_URL to your Postgres connection string.\n"
        "  Example: postgresql://postgres:<password>@<host>:5432/postgres\n\n"
        "Available environment variables (checked in order):\n"
        "  - DATABASE_URL\n"
        "  - TV_CATALOG_DB_URL\n"
    )


def describe_database_url_source() -> str:
    if (os.getenv("DATABASE_URL") or "").strip():
        return "DATABASE_URL"
    if (os.getenv("TV_CATALOG_DB_URL") or "").strip():
        return "TV_CATALOG_DB_URL"
    return "unset"


def mask_database_url(url: str) -> str:
    """Mask the password portion of a connection URL for log output."""
    if "@" in url and ":" in url.split("@")[0]:
        parts = url.split("@")
        user_pass = parts[0].rsplit(":", 1)
        if len(user_pass) == 2 and not user_pass[1].startswith("//"):
            return f"{user_pass[0]}:****@{'@'.join(parts[1:])}"
    return url
