from __future__ import annotations

import json
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from ..excel.reader import DEFAULT_MAX_BYTES, DEFAULT_MAX_ROWS
from ..services.column_mapper import DEFAULT_INFERENCE_THRESHOLD, DEFAULT_SAMPLE_SIZE
from ..services.http_commit import DEFAULT_TIMEOUT_SECONDS
from ..services.wizard import WizardSettings

"""Config loader.

Responsibilities:
- Load YAML config/import.yml
- Validate against config_schema.json (unknown keys are rejected)
- Apply defaults for every optional section
- Apply environment overrides for the commit endpoint and token
  (BULK_IMPORT_COMMIT_URL / BULK_IMPORT_TOKEN); database variables are
  resolved at connect time, see db.connection.
"""

__all__ = [
    "SCHEMA_PATH",
    "DEFAULT_CONFIG_PATH",
    "ConfigError",
    "DatabaseConfig",
    "CommitConfig",
    "IdentitySourceConfig",
    "ImportConfig",
    "load_config",
]

SCHEMA_PATH = Path(__file__).parent / "config_schema.json"
DEFAULT_CONFIG_PATH = Path("config/import.yml")
DEFAULT_SESSION_PATH = ".bulk_import/session.json"


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class DatabaseConfig:
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class CommitConfig:
    mode: str = "http"
    url: str | None = None
    timeout_seconds: float = DEFAULT_TIMEOUT_SECONDS
    table: str | None = None
    tenant_column: str | None = None
    token: str | None = None  # environment only, never read from the YAML file


@dataclass(frozen=True)
class IdentitySourceConfig:
    table: str
    column: str
    tenant_column: str | None = None


@dataclass(frozen=True)
class ImportConfig:
    catalog: str
    tenant_id: str
    max_rows: int
    max_file_bytes: int
    sample_size: int
    inference_threshold: float
    header_strategy: str
    session_path: Path
    commit: CommitConfig
    identities: IdentitySourceConfig | None
    database: DatabaseConfig

    def wizard_settings(self) -> WizardSettings:
        return WizardSettings(
            tenant_id=self.tenant_id,
            max_rows=self.max_rows,
            max_file_bytes=self.max_file_bytes,
            sample_size=self.sample_size,
            inference_threshold=self.inference_threshold,
            header_strategy=self.header_strategy,
        )


def _validate_config_schema(data: Any) -> None:
    """Validate config data against the JSON schema.

    Raises:
        ConfigError: the schema file is missing or invalid, or the data
            fails validation (missing keys, wrong types, unknown keys)
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        where = "/".join(str(p) for p in e.absolute_path)
        prefix = f"{where}: " if where else ""
        raise ConfigError(f"config validation failed: {prefix}{e.message}") from e


def load_config(path: Path = DEFAULT_CONFIG_PATH) -> ImportConfig:
    path = Path(path)
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e

    _validate_config_schema(data)

    limits = data.get("limits") or {}
    mapping = data.get("mapping") or {}
    parser = data.get("parser") or {}
    session = data.get("session") or {}
    commit_raw = data.get("commit") or {}
    identities_raw = data.get("identities")
    db_raw = data.get("database") or {}

    commit = CommitConfig(
        mode=commit_raw.get("mode", "http"),
        url=os.getenv("BULK_IMPORT_COMMIT_URL") or commit_raw.get("url"),
        timeout_seconds=float(commit_raw.get("timeout_seconds", DEFAULT_TIMEOUT_SECONDS)),
        table=commit_raw.get("table"),
        tenant_column=commit_raw.get("tenant_column"),
        token=os.getenv("BULK_IMPORT_TOKEN") or None,
    )
    if commit.mode == "postgres" and not commit.table:
        raise ConfigError("commit.table is required when commit.mode is 'postgres'")

    identities = None
    if identities_raw:
        identities = IdentitySourceConfig(
            table=identities_raw["table"],
            column=identities_raw["column"],
            tenant_column=identities_raw.get("tenant_column"),
        )

    return ImportConfig(
        catalog=data["catalog"],
        tenant_id=str(data["tenant_id"]),
        max_rows=limits.get("max_rows", DEFAULT_MAX_ROWS),
        max_file_bytes=limits.get("max_file_bytes", DEFAULT_MAX_BYTES),
        sample_size=mapping.get("sample_size", DEFAULT_SAMPLE_SIZE),
        inference_threshold=float(mapping.get("inference_threshold", DEFAULT_INFERENCE_THRESHOLD)),
        header_strategy=parser.get("header_strategy", "first_non_empty"),
        session_path=Path(session.get("path", DEFAULT_SESSION_PATH)),
        commit=commit,
        identities=identities,
        database=DatabaseConfig(
            host=db_raw.get("host"),
            port=db_raw.get("port"),
            user=db_raw.get("user"),
            password=db_raw.get("password"),
            database=db_raw.get("database"),
            dsn=db_raw.get("dsn"),
        ),
    )
