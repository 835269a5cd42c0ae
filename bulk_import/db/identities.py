from __future__ import annotations

import logging
from typing import Any

from psycopg2 import sql

"""Existing identity snapshot: the identity values already stored for a tenant.

Fetched once per wizard session before validation; the duplicate detector
compares normalized uploaded identities against it.
"""

logger = logging.getLogger(__name__)

__all__ = ["table_identifier", "load_existing_identities"]


def table_identifier(name: str) -> sql.Identifier:
    """``profiles`` or ``schema.profiles`` as a quoted identifier."""
    return sql.Identifier(*name.split("."))


def load_existing_identities(
    cursor: Any,
    table: str,
    column: str,
    *,
    tenant_column: str | None = None,
    tenant_id: str | None = None,
) -> list[str]:
    query = sql.SQL("SELECT {col} FROM {table} WHERE {col} IS NOT NULL").format(
        col=sql.Identifier(column),
        table=table_identifier(table),
    )
    params: list[Any] = []
    if tenant_column is not None:
        query = query + sql.SQL(" AND {tenant} = %s").format(tenant=sql.Identifier(tenant_column))
        params.append(tenant_id)
    cursor.execute(query, params)
    values = [str(r[0]) for r in cursor.fetchall()]
    logger.debug("identity snapshot table=%s column=%s count=%d", table, column, len(values))
    return values
