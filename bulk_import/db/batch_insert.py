from __future__ import annotations

import logging
import time
from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

import psycopg2
from psycopg2 import sql
from psycopg2.extras import execute_values

from .identities import table_identifier

"""PostgreSQL commit destination.

Best-effort semantics, matching the HTTP endpoint contract:
- one batched INSERT ... ON CONFLICT DO NOTHING RETURNING via execute_values;
  rows that return nothing already existed and count as skipped
- if the batch fails (bad value in some row), it is rolled back to a savepoint
  and retried row by row, each row inside its own savepoint, so bad rows are
  reported as failed and the good ones are kept

Empty strings are written as NULL. The caller owns the transaction
(see db.connection.db_connection).
"""

logger = logging.getLogger(__name__)

__all__ = [
    "BatchInsertError",
    "InsertResult",
    "batch_insert",
    "PostgresCommitDestination",
]

BATCH_SAVEPOINT = "bulk_import_batch"
ROW_SAVEPOINT = "bulk_import_row"


class BatchInsertError(Exception):
    pass


@dataclass(frozen=True)
class InsertResult:
    inserted_rows: int
    returned_values: list[tuple[Any, ...]]


def _insert_sql(table: str, columns: Sequence[str], returning: str) -> sql.Composed:
    return sql.SQL(
        "INSERT INTO {table} ({cols}) VALUES %s ON CONFLICT DO NOTHING RETURNING {ret}"
    ).format(
        table=table_identifier(table),
        cols=sql.SQL(",").join(sql.Identifier(c) for c in columns),
        ret=sql.Identifier(returning),
    )


def batch_insert(
    cursor: Any,
    table: str,
    columns: Sequence[str],
    rows: Iterable[Sequence[Any]],
    *,
    returning: str,
    page_size: int = 1000,
) -> InsertResult:
    """Batched INSERT ... ON CONFLICT DO NOTHING with psycopg2.extras.execute_values.

    Parameters
    ----------
    cursor: psycopg2 cursor
    table: target table, optionally schema-qualified
    columns: insert columns
    rows: value tuples in column order
    returning: column returned for every row actually inserted
    page_size: execute_values page size

    Raises psycopg2.Error unchanged so the caller can fall back row by row.
    """
    if not columns:
        raise BatchInsertError("no columns to insert")
    rows_list = list(rows)
    if not rows_list:
        return InsertResult(inserted_rows=0, returned_values=[])

    start = time.monotonic()
    returned = execute_values(
        cursor,
        _insert_sql(table, columns, returning),
        rows_list,
        page_size=page_size,
        fetch=True,
    )
    logger.debug(
        "batch insert table=%s rows=%d inserted=%d elapsed=%.3fs",
        table, len(rows_list), len(returned), time.monotonic() - start,
    )
    return InsertResult(inserted_rows=len(returned), returned_values=returned)


class PostgresCommitDestination:
    """CommitDestination writing straight into a PostgreSQL table.

    ``submit`` returns a dict shaped like the HTTP commit response so the
    executor treats both destinations the same way.
    """

    def __init__(
        self,
        cursor: Any,
        table: str,
        *,
        identity_column: str,
        tenant_column: str | None = None,
        columns: Sequence[str] | None = None,
    ) -> None:
        self.cursor = cursor
        self.table = table
        self.identity_column = identity_column
        self.tenant_column = tenant_column
        self.columns = list(columns) if columns is not None else None

    def _columns_for(self, records: Sequence[dict[str, Any]]) -> list[str]:
        if self.columns is not None:
            return list(self.columns)
        seen: dict[str, None] = {}
        for rec in records:
            for key in rec:
                seen.setdefault(key, None)
        return list(seen)

    def _values(self, record: dict[str, Any], columns: Sequence[str], tenant_id: Any) -> tuple:
        values = [record.get(c) or None for c in columns]
        if self.tenant_column is not None:
            values.append(tenant_id)
        return tuple(values)

    def submit(self, request: dict[str, Any]) -> dict[str, Any]:
        records: list[dict[str, Any]] = list(request["rows"])
        columns = self._columns_for(records)
        insert_columns = columns + ([self.tenant_column] if self.tenant_column else [])
        values = [self._values(r, columns, request.get("tenant_id")) for r in records]

        self.cursor.execute(sql.SQL("SAVEPOINT {}").format(sql.Identifier(BATCH_SAVEPOINT)))
        try:
            result = batch_insert(
                self.cursor, self.table, insert_columns, values, returning=self.identity_column
            )
        except psycopg2.Error as e:
            logger.warning("batch insert failed, retrying row by row: %s", _db_message(e))
            self.cursor.execute(
                sql.SQL("ROLLBACK TO SAVEPOINT {}").format(sql.Identifier(BATCH_SAVEPOINT))
            )
            return self._submit_row_by_row(insert_columns, values)
        self.cursor.execute(sql.SQL("RELEASE SAVEPOINT {}").format(sql.Identifier(BATCH_SAVEPOINT)))
        created = result.inserted_rows
        return {
            "success": True,
            "created": created,
            "skipped": len(values) - created,
            "failed": 0,
            "errors": [],
        }

    def _submit_row_by_row(
        self, insert_columns: Sequence[str], values: Sequence[tuple]
    ) -> dict[str, Any]:
        query = _insert_sql(self.table, insert_columns, self.identity_column)
        savepoint = sql.Identifier(ROW_SAVEPOINT)
        created = skipped = failed = 0
        errors: list[dict[str, Any]] = []
        for position, row in enumerate(values):
            self.cursor.execute(sql.SQL("SAVEPOINT {}").format(savepoint))
            try:
                execute_values(self.cursor, query, [row])
                inserted = self.cursor.fetchone() is not None
            except psycopg2.Error as e:
                self.cursor.execute(sql.SQL("ROLLBACK TO SAVEPOINT {}").format(savepoint))
                failed += 1
                errors.append({"rowIndex": position, "message": _db_message(e)})
                continue
            self.cursor.execute(sql.SQL("RELEASE SAVEPOINT {}").format(savepoint))
            if inserted:
                created += 1
            else:
                skipped += 1
        return {
            "success": True,
            "created": created,
            "skipped": skipped,
            "failed": failed,
            "errors": errors,
        }


def _db_message(e: psycopg2.Error) -> str:
    message = (e.pgerror or str(e)).strip()
    return message.splitlines()[0] if message else type(e).__name__
