from __future__ import annotations

import pytest

from tv_catalog.db import connection
from tv_catalog.db.connection import (
    DatabaseConnectionError,
    describe_database_url_source,
    mask_database_url,
    resolve_database_url,
)


@pytest.fixture(autouse=True)
def _reset_url_cache(monkeypatch: pytest.MonkeyPatch):
    monkeypatch.delenv("DATABASE_URL", raising=False)
    monkeypatch.delenv("TV_CATALOG_DB_URL", raising=False)
    connection.resolve_database_url.cache_clear()
    yield
    connection.resolve_database_url.cache_clear()


def test_database_url_wins_over_legacy_alias(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "postgresql://primary")
    monkeypatch.setenv("TV_CATALOG_DB_URL", "postgresql://legacy")

    assert resolve_database_url() == "postgresql://primary"
    assert describe_database_url_source() == "DATABASE_URL"


def test_legacy_alias_is_used_when_primary_is_blank(monkeypatch: pytest.MonkeyPatch) -> None:
    monkeypatch.setenv("DATABASE_URL", "   ")
    monkeypatch.setenv("TV_CATALOG_DB_URL", "postgresql://legacy")

    assert resolve_database_url() == "postgresql://legacy"
    assert describe_database_url_source() == "TV_CATALOG_DB_URL"


def test_missing_url_explains_what_to_set() -> None:
    with pytest.raises(DatabaseConnectionError) as excinfo:
        resolve_database_url()

    assert "DATABASE_URL" in str(excinfo.value)
    assert describe_database_url_source() == "unset"


def test_mask_database_url_hides_password() -> None:
    assert mask_database_url("postgresql://app:s3cret@db:5432/catalog") == "postgresql://app:****@db:5432/catalog"


def test_mask_database_url_without_password_is_unchanged() -> None:
    assert mask_database_url("postgresql://db:5432/catalog") == "postgresql://db:5432/catalog"
