from __future__ import annotations

import psycopg2
import pytest

import bulk_import.db.batch_insert as bi
from bulk_import.db.batch_insert import (
    BatchInsertError,
    InsertResult,
    PostgresCommitDestination,
    batch_insert,
)


class DummyCursor:
    """Records statements; execute_values is replaced by FakeTable.execute_values."""

    def __init__(self) -> None:
        self.statements: list[str] = []
        self.last: tuple | None = None

    def execute(self, query, params=None):
        self.statements.append(repr(query))

    def fetchone(self):
        return self.last


class FakeTable:
    """Emulates ON CONFLICT DO NOTHING on the identity (first) column; "BAD" values raise."""

    def __init__(self, existing=()) -> None:
        self.identities = set(existing)
        self.batches: list[list[tuple]] = []

    def execute_values(self, cursor, query, rows, page_size=1000, fetch=False):
        self.batches.append(list(rows))
        if any("BAD" in (v or "") for row in rows for v in row if isinstance(v, str)):
            raise psycopg2.DataError("invalid input syntax for type date: \"BAD\"")
        returned = []
        for row in rows:
            if row[0] in self.identities:
                continue
            self.identities.add(row[0])
            returned.append((row[0],))
        cursor.last = returned[0] if returned else None
        return returned if fetch else None


@pytest.fixture()
def table(monkeypatch) -> FakeTable:
    fake = FakeTable(existing={"carol@x.com"})
    monkeypatch.setattr(bi, "execute_values", fake.execute_values)
    return fake


def _request(*rows):
    return {"tenant_id": "acme", "file": {"name": "f.csv", "size": 1}, "mappings": [], "rows": list(rows)}


def test_batch_insert_returns_inserted_rows(table):
    cur = DummyCursor()
    res = batch_insert(cur, "profiles", ["email"], [("a@x.com",), ("carol@x.com",)], returning="email")
    assert isinstance(res, InsertResult)
    assert res.inserted_rows == 1
    assert res.returned_values == [("a@x.com",)]


def test_batch_insert_empty_rows(table):
    res = batch_insert(DummyCursor(), "profiles", ["email"], [], returning="email")
    assert res == InsertResult(inserted_rows=0, returned_values=[])
    assert table.batches == []


def test_batch_insert_requires_columns(table):
    with pytest.raises(BatchInsertError):
        batch_insert(DummyCursor(), "profiles", [], [("x",)], returning="email")


def test_destination_batch_path_counts_conflicts_as_skipped(table):
    cur = DummyCursor()
    dest = PostgresCommitDestination(cur, "profiles", identity_column="email")
    response = dest.submit(
        _request({"email": "a@x.com", "full_name": "Ana"}, {"email": "carol@x.com", "full_name": "Carol"})
    )
    assert response == {"success": True, "created": 1, "skipped": 1, "failed": 0, "errors": []}
    assert len(table.batches) == 1
    assert "SAVEPOINT" in cur.statements[0]
    assert "RELEASE" in cur.statements[-1]


def test_destination_falls_back_to_row_by_row(table):
    cur = DummyCursor()
    dest = PostgresCommitDestination(cur, "profiles", identity_column="email")
    response = dest.submit(
        _request(
            {"email": "a@x.com", "start_date": "2024-03-01"},
            {"email": "b@x.com", "start_date": "BAD"},
            {"email": "carol@x.com", "start_date": ""},
        )
    )
    assert response["created"] == 1
    assert response["skipped"] == 1
    assert response["failed"] == 1
    assert response["errors"] == [
        {"rowIndex": 1, "message": 'invalid input syntax for type date: "BAD"'}
    ]
    assert any("ROLLBACK TO SAVEPOINT" in s and "bulk_import_batch" in s for s in cur.statements)
    assert any("ROLLBACK TO SAVEPOINT" in s and "bulk_import_row" in s for s in cur.statements)
    # the whole batch once, then one statement per row
    assert [len(b) for b in table.batches] == [3, 1, 1, 1]


def test_empty_strings_become_null_and_tenant_appended(table):
    cur = DummyCursor()
    dest = PostgresCommitDestination(cur, "public.profiles", identity_column="email", tenant_column="company_id")
    dest.submit(_request({"email": "a@x.com", "phone": ""}))
    assert table.batches[0] == [("a@x.com", None, "acme")]


def test_explicit_columns(table):
    cur = DummyCursor()
    dest = PostgresCommitDestination(cur, "profiles", identity_column="email", columns=["email"])
    dest.submit(_request({"email": "a@x.com", "first_name": "Ana"}))
    assert table.batches[0] == [("a@x.com",)]
