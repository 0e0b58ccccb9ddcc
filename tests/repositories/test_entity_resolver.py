from __future__ import annotations

import pytest
from psycopg import errors as pg_errors

from tests.fakes import FakeConnection
from tv_catalog.errors import ConflictError, NotFoundError, ValidationError
from tv_catalog.models.relations import ACTORS, GENRES, NETWORKS
from tv_catalog.repositories.entities import (
    clean_entity_fields,
    create_entity,
    get_entity,
    resolve_entity,
    update_entity,
)


def test_resolve_creates_missing_entity_in_one_statement() -> None:
    conn = FakeConnection([[{"id": 7}]])

    entity_id = resolve_entity(conn, GENRES, "  Drama ")

    assert entity_id == 7
    assert conn.executed == [
        ("INSERT INTO genres (name) VALUES (%s) ON CONFLICT (name) DO NOTHING RETURNING id", ("Drama",)),
    ]


def test_resolve_returns_existing_id_without_modifying_row() -> None:
    conn = FakeConnection([None, [{"id": 3}]])

    entity_id = resolve_entity(conn, NETWORKS, "NBC", details={"country": "US"})

    assert entity_id == 3
    assert conn.executed[1] == ("SELECT id FROM networks WHERE name = %s", ("NBC",))
    assert not any(sql.startswith("UPDATE") for sql in conn.statements)


def test_resolve_passes_details_only_to_the_insert() -> None:
    conn = FakeConnection([[{"id": 9}]])

    resolve_entity(conn, ACTORS, "Ed Helms", details={"profile_url": "https://img/ed.jpg"})

    sql, params = conn.executed[0]
    assert sql.startswith("INSERT INTO actors (name, profile_url) VALUES (%s, %s)")
    assert params == ("Ed Helms", "https://img/ed.jpg")


def test_resolve_raises_conflict_when_row_vanishes() -> None:
    conn = FakeConnection([None, None])

    with pytest.raises(ConflictError):
        resolve_entity(conn, GENRES, "Drama")


def test_resolve_rejects_empty_names_before_touching_the_store() -> None:
    conn = FakeConnection()

    with pytest.raises(ValidationError):
        resolve_entity(conn, GENRES, "   ")
    assert conn.executed == []


def test_clean_entity_fields_drops_unknown_columns() -> None:
    cleaned = clean_entity_fields(NETWORKS, {"name": " HBO ", "country": "US", "profile_url": "x"}, creating=True)
    assert cleaned == {"name": "HBO", "country": "US"}


def test_clean_entity_fields_rejects_non_text_details() -> None:
    with pytest.raises(ValidationError, match="logo_url must be a string"):
        clean_entity_fields(NETWORKS, {"logo_url": 5})


def test_get_entity_not_found() -> None:
    with pytest.raises(NotFoundError, match="Actor not found"):
        get_entity(FakeConnection([None]), ACTORS, 404)


def test_create_entity_translates_unique_violation() -> None:
    conn = FakeConnection([pg_errors.UniqueViolation("duplicate key value")])

    with pytest.raises(ConflictError, match="already exists"):
        create_entity(conn, GENRES, {"name": "Drama"})


def test_create_entity_returns_row() -> None:
    conn = FakeConnection([[{"id": 1, "name": "HBO", "logo_url": None, "country": "US"}]])

    row = create_entity(conn, NETWORKS, {"name": "HBO", "country": "US"})

    assert row["id"] == 1
    assert conn.executed[0] == (
        "INSERT INTO networks (name, country) VALUES (%s, %s) RETURNING *",
        ("HBO", "US"),
    )


def test_update_entity_requires_a_field() -> None:
    conn = FakeConnection()

    with pytest.raises(ValidationError, match=r"name, logo_url, country"):
        update_entity(conn, NETWORKS, 1, {"unrelated": "x"})
    assert conn.executed == []


def test_update_entity_checks_existence_first() -> None:
    conn = FakeConnection([None])

    with pytest.raises(NotFoundError):
        update_entity(conn, ACTORS, 99, {"name": "Someone"})
    assert len(conn.executed) == 1


def test_update_entity_rename_conflict() -> None:
    conn = FakeConnection([[{"id": 2, "name": "Drama"}], pg_errors.UniqueViolation("duplicate")])

    with pytest.raises(ConflictError):
        update_entity(conn, GENRES, 2, {"name": "Comedy"})


def test_update_entity_assigns_present_columns() -> None:
    conn = FakeConnection([[{"id": 2}], [{"id": 2, "name": "Steve", "profile_url": None}]])

    row = update_entity(conn, ACTORS, 2, {"profile_url": None})

    assert row["profile_url"] is None
    assert conn.executed[1] == ("UPDATE actors SET profile_url = %s WHERE id = %s RETURNING *", (None, 2))
