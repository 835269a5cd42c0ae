from __future__ import annotations

import logging
import os
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Any

import psycopg2

from ..config.loader import DatabaseConfig

"""PostgreSQL connection handling.

Connection parameters are resolved in this order:
1. DATABASE_URL / PGDSN (environment, .env already loaded with override=True)
2. database.dsn from the config file
3. PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE, falling back per key
   to the database section of the config file, then to libpq-style defaults
"""

logger = logging.getLogger(__name__)

__all__ = ["resolve_dsn", "db_connection", "db_disabled"]


def db_disabled() -> bool:
    """DISABLE_DB_CONNECT=1 turns every PostgreSQL touch point off (tests, offline use)."""
    return os.getenv("DISABLE_DB_CONNECT") == "1"


def resolve_dsn(db_cfg: DatabaseConfig) -> str:
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


@contextmanager
def db_connection(db_cfg: DatabaseConfig) -> Iterator[Any]:
    """Yield a cursor inside one transaction: committed on normal exit, rolled back on error."""
    conn = psycopg2.connect(resolve_dsn(db_cfg))
    conn.autocommit = False
    try:
        with conn.cursor() as cur:
            yield cur
        conn.commit()
    except BaseException:
        conn.rollback()
        raise
    finally:
        conn.close()
