from __future__ import annotations

from datetime import date

import pytest
from psycopg import errors as pg_errors

from tests.fakes import FakeConnection, FakePool
from tv_catalog.db.transaction import TransactionCoordinator
from tv_catalog.errors import NotFoundError, TransactionFailure, ValidationError
from tv_catalog.models.relations import GENRES
from tv_catalog.repositories import entities as entity_repo
from tv_catalog.repositories import links as link_repo
from tv_catalog.repositories import shows as show_repo
from tv_catalog.services import catalog

NEW_SHOW = {
    "name": "The Office",
    "first_air_date": "2005-03-24",
    "overview": "A mockumentary about office workers.",
}


class _RepoSpy:
    """Records repository calls made by the service and scripts their outcomes."""

    def __init__(self, monkeypatch: pytest.MonkeyPatch, *, fail_on: str | None = None) -> None:
        self.calls: list[tuple] = []
        self.fail_on = fail_on
        monkeypatch.setattr(show_repo, "insert_show", self.insert_show)
        monkeypatch.setattr(show_repo, "update_show", self.update_show)
        monkeypatch.setattr(show_repo, "fetch_show_details", self.fetch_show_details)
        monkeypatch.setattr(link_repo, "sync_show_relation", self.sync_show_relation)
        monkeypatch.setattr(link_repo, "list_show_links", self.list_show_links)

    def insert_show(self, conn, fields):  # noqa: ANN001
        self.calls.append(("insert_show", dict(fields)))
        return {"id": 5, **fields}

    def update_show(self, conn, show_id, fields):  # noqa: ANN001
        self.calls.append(("update_show", show_id, dict(fields)))
        return {"id": show_id}

    def sync_show_relation(self, conn, show_id, relation, entries):  # noqa: ANN001
        self.calls.append(("sync", show_id, relation.key, [entry.name for entry in entries]))
        if relation.key == self.fail_on:
            raise pg_errors.ForeignKeyViolation("insert or update violates foreign key constraint")
        return list(range(len(entries)))

    def fetch_show_details(self, conn, show_id):  # noqa: ANN001
        self.calls.append(("fetch_show_details", show_id))
        return {"id": show_id, "name": "The Office", "first_air_date": date(2005, 3, 24), "actor_names": ["Steve Carell"]}

    def list_show_links(self, conn, show_id, relation):  # noqa: ANN001
        return [{"id": 10, "name": "Steve Carell", "character_name": "Michael Scott", "display_order": 1}]

    def names(self) -> list[str]:
        return [call[0] for call in self.calls]


def _coordinator() -> tuple[TransactionCoordinator, FakeConnection, FakePool]:
    conn = FakeConnection()
    pool = FakePool(conn)
    return TransactionCoordinator(pool), conn, pool


def test_build_show_mutation_keeps_only_present_relation_keys() -> None:
    mutation = catalog.build_show_mutation({"status": "Ended", "genres": None, "actors": ["A", "A", "B"]})

    assert dict(mutation.fields) == {"status": "Ended"}
    assert set(mutation.relations) == {"genres", "actors"}
    assert mutation.relations["genres"] == []
    assert [entry.name for entry in mutation.relations["actors"]] == ["A", "B"]


def test_create_show_commits_fields_and_relations_together(monkeypatch: pytest.MonkeyPatch) -> None:
    spy = _RepoSpy(monkeypatch)
    coordinator, conn, _pool = _coordinator()

    show = catalog.create_show(coordinator, {**NEW_SHOW, "actors": ["Steve Carell"], "networks": ["NBC"]})

    assert spy.names() == ["insert_show", "sync", "sync", "fetch_show_details"]
    assert spy.calls[1] == ("sync", 5, "actors", ["Steve Carell"])
    assert spy.calls[2] == ("sync", 5, "networks", ["NBC"])
    assert (conn.commits, conn.rollbacks) == (1, 0)
    assert show["actors"] == ["Steve Carell"]
    assert show["first_air_date"] == "2005-03-24"
    assert show["cast"][0]["character_name"] == "Michael Scott"


def test_create_show_rolls_back_everything_when_a_later_relation_fails(monkeypatch: pytest.MonkeyPatch) -> None:
    spy = _RepoSpy(monkeypatch, fail_on="networks")
    coordinator, conn, _pool = _coordinator()

    with pytest.raises(TransactionFailure) as excinfo:
        catalog.create_show(coordinator, {**NEW_SHOW, "actors": ["Steve Carell"], "networks": ["NBC"]})

    assert "foreign key" not in excinfo.value.message
    assert spy.names() == ["insert_show", "sync", "sync"]
    assert (conn.commits, conn.rollbacks) == (0, 1)


def test_create_show_validates_before_opening_a_unit(monkeypatch: pytest.MonkeyPatch) -> None:
    spy = _RepoSpy(monkeypatch)
    coordinator, _conn, pool = _coordinator()

    with pytest.raises(ValidationError):
        catalog.create_show(coordinator, {"name": "No Overview", "first_air_date": "2005-03-24"})
    with pytest.raises(ValidationError):
        catalog.create_show(coordinator, {**NEW_SHOW, "genres": "Comedy"})

    assert pool.checkouts == 0
    assert spy.calls == []


def test_update_show_only_touches_present_relations(monkeypatch: pytest.MonkeyPatch) -> None:
    spy = _RepoSpy(monkeypatch)
    coordinator, conn, _pool = _coordinator()

    catalog.update_show(coordinator, 7, {"status": "Ended", "genres": None})

    assert spy.calls[0] == ("update_show", 7, {"status": "Ended"})
    assert spy.calls[1] == ("sync", 7, "genres", [])
    assert [call for call in spy.calls if call[0] == "sync"] == [spy.calls[1]]
    assert conn.commits == 1


def test_update_show_failure_leaves_no_commit(monkeypatch: pytest.MonkeyPatch) -> None:
    _RepoSpy(monkeypatch, fail_on="genres")
    coordinator, conn, _pool = _coordinator()

    with pytest.raises(TransactionFailure):
        catalog.update_show(coordinator, 7, {"actors": ["A"], "genres": ["Drama"]})

    assert (conn.commits, conn.rollbacks) == (0, 1)


def test_link_to_unknown_relation_is_not_found() -> None:
    coordinator, _conn, pool = _coordinator()

    with pytest.raises(NotFoundError):
        catalog.link_to_show(coordinator, 1, "episodes", {"name": "Pilot"})
    assert pool.checkouts == 0


def test_link_to_show_runs_in_a_unit(monkeypatch: pytest.MonkeyPatch) -> None:
    captured = {}

    def _link(conn, show_id, relation, entry):  # noqa: ANN001
        captured.update(show_id=show_id, relation=relation.key, name=entry.name)
        return {"show_id": show_id, "name": entry.name, "genre_id": 3}

    monkeypatch.setattr(link_repo, "link_entity", _link)
    coordinator, conn, _pool = _coordinator()

    link = catalog.link_to_show(coordinator, 1, "genres", "Drama")

    assert captured == {"show_id": 1, "relation": "genres", "name": "Drama"}
    assert link["genre_id"] == 3
    assert conn.commits == 1


def test_list_shows_assembles_each_row() -> None:
    conn = FakeConnection(
        [
            [{"total": 1}],
            [{"id": 1, "name": "The Office", "first_air_date": date(2005, 3, 24), "genre_names": ["Comedy"]}],
        ]
    )

    page = catalog.list_shows(conn, {"genre": "Com"}, page_size="10")

    assert page.total_pages == 1
    assert page.page_size == 10
    assert page.results == [{"id": 1, "name": "The Office", "first_air_date": "2005-03-24", "genres": ["Comedy"]}]


def test_list_entity_shows_checks_the_entity_first() -> None:
    conn = FakeConnection([None])

    with pytest.raises(NotFoundError, match="Genre not found"):
        catalog.list_entity_shows(conn, GENRES, 404, {})
    assert len(conn.executed) == 1


def test_list_entity_shows_returns_entity_and_page() -> None:
    conn = FakeConnection([[{"id": 3, "name": "Comedy"}], [{"total": 0}], []])

    entity, page = catalog.list_entity_shows(conn, GENRES, 3, {})

    assert entity == {"id": 3, "name": "Comedy"}
    assert page.results == []
    assert conn.executed[1][1] == (3,)


def test_create_entity_validates_before_opening_a_unit(monkeypatch: pytest.MonkeyPatch) -> None:
    coordinator, _conn, pool = _coordinator()
    monkeypatch.setattr(entity_repo, "create_entity", lambda *_args: pytest.fail("should not run"))

    with pytest.raises(ValidationError):
        catalog.create_entity(coordinator, GENRES, {"name": "  "})
    assert pool.checkouts == 0
