from __future__ import annotations

import logging
import re
from contextlib import contextmanager
from pathlib import Path
from typing import Iterable, Iterator, Mapping

import mysql.connector

from .connection import DBConfig

logger = logging.getLogger(__name__)

# Quoted literals, "--" comments, statement separators, everything else.
_SQL_TOKEN_RE = re.compile(
    r"""'(?:[^'\\]|\\.)*'|"(?:[^"\\]|\\.)*"|`[^`]*`|--[^\n]*|;|[^'"`;-]+|-""",
    re.S,
)
_DB_SCOPED_RE = re.compile(r"(?im)^\s*(CREATE\s+DATABASE|USE)\b[^;]*;")


@contextmanager
def _session(target: DBConfig, *, with_database: bool = True) -> Iterator:
    params = dict(host=target.host, port=target.port, user=target.user, password=target.password, use_pure=True)
    if with_database:
        params["database"] = target.database
    conn = mysql.connector.connect(**params)
    try:
        cur = conn.cursor()
        try:
            yield cur
            conn.commit()
        finally:
            cur.close()
    finally:
        conn.close()


def split_sql_statements(sql: str) -> Iterable[str]:
    """Split a schema script on top-level ';', dropping "--" comments."""
    buf: list[str] = []
    for token in _SQL_TOKEN_RE.findall(sql):
        if token.startswith("--"):
            continue
        if token == ";":
            stmt = "".join(buf).strip()
            buf.clear()
            if stmt:
                yield stmt
            continue
        buf.append(token)

    tail = "".join(buf).strip()
    if tail:
        yield tail


def ensure_database_exists(db_config: Mapping) -> None:
    target = DBConfig.from_mapping(db_config)
    with _session(target, with_database=False) as cur:
        cur.execute(
            f"CREATE DATABASE IF NOT EXISTS `{target.database}` CHARACTER SET utf8mb4 COLLATE utf8mb4_unicode_ci"
        )


def apply_schema(db_config: Mapping, *, schema_path: str | Path) -> None:
    """Create the configured database if needed, then run every statement of schema.sql.

    ``CREATE DATABASE`` / ``USE`` lines in the file are ignored so the same
    script serves every environment's database name.
    """
    ensure_database_exists(db_config)
    sql = _DB_SCOPED_RE.sub("", Path(schema_path).read_text(encoding="utf-8"))

    count = 0
    with _session(DBConfig.from_mapping(db_config)) as cur:
        for stmt in split_sql_statements(sql):
            cur.execute(stmt)
            count += 1
    logger.info("Applied %d schema statements from %s", count, schema_path)


def list_tables(db_config: Mapping) -> list[str]:
    with _session(DBConfig.from_mapping(db_config)) as cur:
        cur.execute("SHOW TABLES")
        return [row[0] for row in cur.fetchall()]
