# Shared pytest fixtures
from __future__ import annotations
import io
import os
import tempfile
from pathlib import Path
from typing import Any

import pandas as pd
import pytest


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        (p / "logs").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture(autouse=True)
def _isolate_env(monkeypatch):
    # no developer machine settings leak into tests
    for key in (
        "DATABASE_URL",
        "PGDSN",
        "PGHOST",
        "PGPORT",
        "PGUSER",
        "PGPASSWORD",
        "PGDATABASE",
        "BULK_IMPORT_COMMIT_URL",
        "BULK_IMPORT_TOKEN",
        "DISABLE_DB_CONNECT",
    ):
        monkeypatch.delenv(key, raising=False)


@pytest.fixture()
def sample_config_yaml() -> str:
    return """catalog: people
tenant_id: acme
limits:
  max_rows: 500
  max_file_bytes: 10485760
mapping:
  sample_size: 10
  inference_threshold: 0.8
parser:
  header_strategy: first_non_empty
session:
  path: .bulk_import/session.json
commit:
  mode: http
  url: https://example.invalid/api/people/bulk-import
  timeout_seconds: 5
identities:
  table: profiles
  column: email
  tenant_column: company_id
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: appdb
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


def make_csv(rows: list[list[str]]) -> bytes:
    """Rows (header first) -> CSV bytes, quoting handled by pandas."""
    buf = io.StringIO()
    pd.DataFrame(rows).to_csv(buf, header=False, index=False, lineterminator="\n")
    return buf.getvalue().encode("utf-8")


def make_xlsx(rows: list[list[Any]], sheet_name: str = "Sheet1") -> bytes:
    buf = io.BytesIO()
    with pd.ExcelWriter(buf, engine="openpyxl") as writer:
        pd.DataFrame(rows).to_excel(writer, sheet_name=sheet_name, header=False, index=False)
    return buf.getvalue()


@pytest.fixture()
def scenario_a_csv() -> bytes:
    return make_csv(
        [
            ["Full Name", "E-mail", "Mobile"],
            ["Ana Smith", "ana@x.com", "07700 900123"],
            ["Ben Jones", "ben@x.com", "07700 900124"],
            ["Bob Broken", "bob@@x", "07700 900125"],
        ]
    )


class FakeDestination:
    """CommitDestination double: records requests, replays a canned response or error."""

    def __init__(self, response: Any = None, error: Exception | None = None) -> None:
        self.response = response
        self.error = error
        self.requests: list[dict[str, Any]] = []

    def submit(self, request: dict[str, Any]) -> Any:
        self.requests.append(request)
        if self.error is not None:
            raise self.error
        if self.response is not None:
            return self.response
        n = len(request["rows"])
        return {"success": True, "created": n, "skipped": 0, "failed": 0, "errors": []}


@pytest.fixture()
def fake_destination() -> FakeDestination:
    return FakeDestination()


@pytest.fixture()
def csv_bytes():
    return make_csv


@pytest.fixture()
def xlsx_bytes():
    return make_xlsx


@pytest.fixture()
def make_destination():
    return FakeDestination
