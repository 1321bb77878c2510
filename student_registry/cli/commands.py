from __future__ import annotations

import argparse
import os
import sys
from collections.abc import Callable
from pathlib import Path

import psycopg2
from dotenv import load_dotenv

from student_registry.config.loader import (
    DEFAULT_CONFIG_PATH,
    ConfigError,
    ImportConfig,
    default_config,
    load_config,
)
from student_registry.db.memory_store import InMemoryRecordStore
from student_registry.db.postgres_store import PostgresRecordStore, create_schema
from student_registry.db.store import RecordStore, StoreError
from student_registry.logging.init import log_summary, setup_logging
from student_registry.services.importer import describe_columns, import_batch
from student_registry.services.summary import render_summary_line
from student_registry.tabular.reader import ContentError, read

"""CLI entrypoint.

- ``--file PATH --group NAME``: import a CSV/TSV/JSON/xlsx file into a new group
- ``--file PATH --inspect-data``: print headers, their classification and sample rows
- ``--delete-group ID``: delete a group with its students and their transfer requests

Exit codes: 0 every row created (or command succeeded), 2 some rows skipped or
failed, 1 fatal (config, unreadable file, missing group name, deletion failure).
"""

EXIT_SUCCESS_ALL = 0
EXIT_PARTIAL_FAILURE = 2
EXIT_FATAL = 1


def _resolve_dsn(cfg: ImportConfig) -> str:
    """Build the connection string.

    Priority: DATABASE_URL / PGDSN, then individual PG* variables, then the
    ``database`` section of the config file.
    """
    db_cfg = cfg.database
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if dsn:
        return dsn
    host = os.getenv("PGHOST", db_cfg.host or "localhost")
    port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
    user = os.getenv("PGUSER", db_cfg.user or "postgres")
    password = os.getenv("PGPASSWORD", db_cfg.password or "")
    database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
    dsn = f"host={host} port={port} user={user} dbname={database}"
    if password:
        dsn += f" password={password}"
    return dsn


def _run_with_store(cfg: ImportConfig, action: Callable[[RecordStore], int]) -> int:
    """Run ``action`` against PostgreSQL, or the in-memory store when no DB is reachable.

    DISABLE_DB_CONNECT=1 skips the connection attempt entirely.
    """
    logger = setup_logging()
    if os.getenv("DISABLE_DB_CONNECT") == "1":
        logger.debug("DB connect disabled via DISABLE_DB_CONNECT=1 -> mock mode")
        logger.info("mode=mock")
        return action(InMemoryRecordStore())

    try:
        conn = psycopg2.connect(_resolve_dsn(cfg))
    except psycopg2.Error as e:
        if os.getenv("SUPPRESS_DB_WARNING") == "1":
            logger.debug(f"DB connection failed (suppressed warn) -> fallback to mock mode: {e}")
        else:
            logger.info(f"DB connection failed -> fallback to mock mode: {e}")
        logger.info("mode=mock")
        return action(InMemoryRecordStore())

    # Explicit BEGIN/COMMIT per write is issued by PostgresRecordStore
    conn.autocommit = True
    try:
        with conn.cursor() as cur:
            create_schema(cur)
            logger.info("mode=live")
            return action(PostgresRecordStore(cur))
    finally:
        conn.close()


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env so its PG* / DATABASE_URL values take precedence."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(description="School student registry: bulk import and group maintenance")
    target = p.add_mutually_exclusive_group(required=True)
    target.add_argument("--file", help="CSV/TSV/JSON/xlsx file to import")
    target.add_argument("--delete-group", type=int, metavar="ID", help="Delete a group and its students")
    p.add_argument("--group", help="Name of the group created for this import")
    p.add_argument("--format", help="Override the file extension used to pick the reader")
    p.add_argument("--config", help=f"Config file (default: {DEFAULT_CONFIG_PATH} when present)")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--inspect-data", action="store_true", help="Print headers, mapping & first rows then exit")
    return p.parse_args(argv)


def _load_cli_config(args: argparse.Namespace) -> ImportConfig:
    if args.config:
        return load_config(Path(args.config))
    if DEFAULT_CONFIG_PATH.exists():
        return load_config(DEFAULT_CONFIG_PATH)
    return default_config()


def _inspect_data(path: Path, extension: str, cfg: ImportConfig) -> int:
    try:
        table = read(path.read_bytes(), extension, delimiter=cfg.csv_delimiter, na_strings=cfg.na_strings)
    except ContentError as e:
        print(f"inspect: {e}")
        return EXIT_FATAL
    print(f"FILE: {path.name} format={table.source_format} rows={len(table.rows)}")
    for mapping in describe_columns(table):
        print(f"  COLUMN: {mapping.header!r} -> {mapping.field or '(dropped)'}")
    print("  sample_rows=", table.rows[:3])
    return EXIT_SUCCESS_ALL


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None only: an explicit [] must not fall back to sys.argv (pytest args)
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)
    _load_env_file(Path(".env"), override=True)

    try:
        cfg = _load_cli_config(args)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    if args.debug:
        for h in logger.handlers:
            h.setLevel("DEBUG")
        logger.setLevel("DEBUG")
        logger.debug("debug mode enabled")

    if args.delete_group is not None:
        group_id = args.delete_group

        def _delete(store: RecordStore) -> int:
            if store.delete_group(group_id):
                logger.info(f"group deleted id={group_id}")
                return EXIT_SUCCESS_ALL
            logger.error(f"group deletion failed id={group_id}")
            return EXIT_FATAL

        return _run_with_store(cfg, _delete)

    path = Path(args.file)
    if not path.is_file():
        logger.error(f"file not found: {path}")
        return EXIT_FATAL
    extension = args.format or path.suffix

    if args.inspect_data:
        return _inspect_data(path, extension, cfg)

    if not args.group or not args.group.strip():
        logger.error("group name is required (--group)")
        return EXIT_FATAL
    group_name = args.group

    logger.info(f"Importing {path} into group '{group_name}'")

    def _import(store: RecordStore) -> int:
        try:
            result = import_batch(
                path.read_bytes(), extension, group_name, store, config=cfg, file_name=path.name
            )
        except ContentError as e:
            logger.error(f"content: {e}")
            return EXIT_FATAL
        except StoreError as e:
            logger.error(f"store: {e}")
            return EXIT_FATAL

        summary_line = render_summary_line(path.name, group_name, result)
        # log_summary adds the "SUMMARY " label itself
        log_summary(summary_line[len("SUMMARY "):])

        if result.skipped_rows or result.failed_rows:
            return EXIT_PARTIAL_FAILURE
        return EXIT_SUCCESS_ALL

    return _run_with_store(cfg, _import)
