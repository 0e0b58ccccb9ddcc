#!/usr/bin/env python3
from __future__ import annotations

import argparse
import logging
import re
import sys
from pathlib import Path

try:
    import psycopg2
    from psycopg2 import sql
except ImportError as exc:  # pragma: no cover - depends on local environment
    raise SystemExit("Missing psycopg2; install deps (e.g., `pip install -e .`).") from exc

from tv_catalog.db.connection import describe_database_url_source, mask_database_url, resolve_database_url
from tv_catalog.utils.env import load_env

logger = logging.getLogger(__name__)

REPO_ROOT = Path(__file__).resolve().parents[1]
DEFAULT_SQL_FILE = REPO_ROOT / "sql" / "0001_catalog.sql"

_SCHEMA_NAME_RE = re.compile(r"^[a-z_][a-z0-9_]*$")


def _parse_args(argv: list[str]) -> argparse.Namespace:
    parser = argparse.ArgumentParser(
        prog="apply_schema",
        description="Create the catalog tables, link tables and the show_details view.",
    )
    parser.add_argument(
        "--sql-file",
        type=Path,
        default=DEFAULT_SQL_FILE,
        help=f"DDL file to apply (default: {DEFAULT_SQL_FILE.relative_to(REPO_ROOT)}).",
    )
    parser.add_argument(
        "--schema",
        default=None,
        help="Create and use this Postgres schema instead of the connection's default search_path.",
    )
    parser.add_argument("--dry-run", action="store_true", help="Print the DDL instead of executing it.")
    return parser.parse_args(argv)


def validate_schema_name(schema: str) -> str:
    if not _SCHEMA_NAME_RE.match(schema):
        raise ValueError(f"Invalid schema name: {schema!r} (lowercase letters, digits and underscores only)")
    return schema


def apply_schema(conn, sql_text: str, *, schema: str | None = None) -> None:
    """
    Execute `sql_text` in one transaction on `conn`.

    With `schema`, the schema is created if needed and set as the search_path
    for the transaction, so the DDL lands there.
    """
    with conn.cursor() as cur:
        if schema:
            name = sql.Identifier(validate_schema_name(schema))
            cur.execute(sql.SQL("CREATE SCHEMA IF NOT EXISTS {}").format(name))
            cur.execute(sql.SQL("SET LOCAL search_path TO {}").format(name))
        cur.execute(sql_text)
    conn.commit()


def main(argv: list[str] | None = None) -> int:
    args = _parse_args(sys.argv[1:] if argv is None else argv)
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    sql_path: Path = args.sql_file
    if not sql_path.is_file():
        print(f"SQL file not found: {sql_path}", file=sys.stderr)
        return 2
    sql_text = sql_path.read_text(encoding="utf-8")

    if args.dry_run:
        print(sql_text)
        return 0

    load_env()
    db_url = resolve_database_url()
    logger.info("Applying %s using %s (%s)", sql_path.name, describe_database_url_source(), mask_database_url(db_url))

    conn = psycopg2.connect(db_url)
    try:
        apply_schema(conn, sql_text, schema=args.schema)
    except psycopg2.Error as exc:
        conn.rollback()
        print(f"Failed to apply {sql_path.name}: {exc}", file=sys.stderr)
        return 1
    finally:
        conn.close()

    print(f"Applied {sql_path.name}" + (f" to schema {args.schema}" if args.schema else ""))
    return 0


if __name__ == "__main__":
    raise SystemExit(main())
