#!/usr/bin/env python3
from __future__ import annotations

import argparse
import sys
from collections.abc import Iterable

try:
    import psycopg2
    from psycopg2 import sql
    from psycopg2.extras import RealDictCursor
except ImportError as exc:  # pragma: no cover - depends on local environment
    raise SystemExit("Missing psycopg2; install deps (e.g., `pip install -e .`).") from exc

from tv_catalog.db.connection import resolve_database_url
from tv_catalog.models.relations import RELATION_TYPES
from tv_catalog.models.shows import SHOW_COLUMNS
from tv_catalog.utils.env import load_env


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="verify_schema",
        description="Check that the catalog tables, link tables and the show_details view match the code.",
    )
    parser.add_argument(
        "--schema",
        default=None,
        help="Verify objects in this Postgres schema instead of the connection's default search_path.",
    )
    return parser.parse_args(argv)


def _fetch_relkind(cur: RealDictCursor, name: str) -> str | None:
    cur.execute(
        """
        select c.relkind
        from pg_class c
        where c.oid = to_regclass(%s)
        """,
        (name,),
    )
    row = cur.fetchone()
    return row["relkind"] if row else None


def _fetch_columns(cur: RealDictCursor, table: str) -> set[str]:
    cur.execute(
        """
        select column_name
        from information_schema.columns
        where table_schema = any (current_schemas(false)) and table_name = %s
        """,
        (table,),
    )
    return {row["column_name"] for row in cur.fetchall()}


def _fetch_primary_key(cur: RealDictCursor, table: str) -> list[str]:
    cur.execute(
        """
        select kcu.column_name
        from information_schema.table_constraints tc
        join information_schema.key_column_usage kcu
          on tc.constraint_name = kcu.constraint_name
         and tc.table_schema = kcu.table_schema
        where tc.table_schema = any (current_schemas(false))
          and tc.table_name = %s
          and tc.constraint_type = 'PRIMARY KEY'
        order by kcu.ordinal_position
        """,
        (table,),
    )
    return [row["column_name"] for row in cur.fetchall()]


def _report(label: str, ok: bool, details: str | None = None) -> bool:
    status = "PASS" if ok else "FAIL"
    suffix = f" ({details})" if details else ""
    print(f"{status}: {label}{suffix}")
    return ok


def _check_relation(cur: RealDictCursor, name: str, kinds: set[str], label: str) -> bool:
    relkind = _fetch_relkind(cur, name)
    if relkind is None:
        return _report(f"{name} {label} exists", False, "missing")
    return _report(f"{name} is a {label}", relkind in kinds, f"relkind={relkind}")


def _check_columns(cur: RealDictCursor, table: str, required: Iterable[str]) -> bool:
    existing = _fetch_columns(cur, table)
    missing = [col for col in required if col not in existing]
    return _report(
        f"{table} columns",
        not missing,
        "missing=" + ",".join(missing) if missing else None,
    )


def expected_layout() -> dict[str, list[str]]:
    """Required columns per table or view, derived from the relation descriptors."""
    layout: dict[str, list[str]] = {"tv_shows": ["id", *SHOW_COLUMNS]}
    for relation in RELATION_TYPES.values():
        layout[relation.table] = ["id", *relation.entity_columns]
        link_columns = ["show_id", relation.entity_fk, *relation.link_columns, "created_at"]
        if relation.rank_column:
            link_columns.append(relation.rank_column)
        layout[relation.link_table] = link_columns
    layout["show_details"] = [
        "id",
        *SHOW_COLUMNS,
        *(relation.summary_column for relation in RELATION_TYPES.values()),
    ]
    return layout


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(sys.argv[1:] if argv is None else argv)
    load_env()

    conn = psycopg2.connect(resolve_database_url(), cursor_factory=RealDictCursor)
    try:
        cur = conn.cursor()
        if args.schema:
            cur.execute(sql.SQL("SET search_path TO {}").format(sql.Identifier(args.schema)))
        ok = True

        for name, columns in expected_layout().items():
            if name == "show_details":
                ok &= _check_relation(cur, name, {"v"}, "view")
            else:
                ok &= _check_relation(cur, name, {"r", "p"}, "table")
            ok &= _check_columns(cur, name, columns)

        for relation in RELATION_TYPES.values():
            pk = _fetch_primary_key(cur, relation.link_table)
            ok &= _report(
                f"{relation.link_table} primary key",
                pk == ["show_id", relation.entity_fk],
                f"pk={pk}",
            )

        return 0 if ok else 1
    finally:
        conn.close()


if __name__ == "__main__":
    raise SystemExit(main())
