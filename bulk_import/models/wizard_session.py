from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Any

from .column_mapping import ColumnMapping
from .parsed_row import ParsedRow
from .raw_table import RawTable

"""WizardSession snapshot and WizardStep enum.

State transitions: upload -> mapping -> validation -> importing
Back actions: mapping -> upload (clears all), validation -> mapping (drops rows).
The importing step is never persisted.
"""

__all__ = [
    "WizardStep",
    "WizardSession",
]

SNAPSHOT_VERSION = 1


class WizardStep(Enum):
    UPLOAD = "upload"
    MAPPING = "mapping"
    VALIDATION = "validation"
    IMPORTING = "importing"


@dataclass(frozen=True)
class WizardSession:
    """Serializable snapshot of the wizard written to the session store."""
    step: WizardStep
    catalog: str
    raw_table: RawTable | None = None
    mappings: tuple[ColumnMapping, ...] = ()
    rows: tuple[ParsedRow, ...] = ()
    file_name: str | None = None
    file_size: int | None = None
    last_error: str | None = None

    def to_dict(self) -> dict[str, Any]:
        return {
            "version": SNAPSHOT_VERSION,
            "step": self.step.value,
            "catalog": self.catalog,
            "raw_table": self.raw_table.to_dict() if self.raw_table is not None else None,
            "mappings": [m.to_dict() for m in self.mappings],
            "rows": [r.to_dict() for r in self.rows],
            "file_name": self.file_name,
            "file_size": self.file_size,
            "last_error": self.last_error,
        }

    @staticmethod
    def from_dict(data: dict[str, Any]) -> WizardSession:
        """Rebuild a snapshot; raises KeyError/ValueError/TypeError on corrupt data."""
        if data.get("version") != SNAPSHOT_VERSION:
            raise ValueError(f"unsupported snapshot version: {data.get('version')!r}")
        raw = data.get("raw_table")
        return WizardSession(
            step=WizardStep(data["step"]),
            catalog=str(data["catalog"]),
            raw_table=RawTable.from_dict(raw) if raw is not None else None,
            mappings=tuple(ColumnMapping.from_dict(m) for m in data.get("mappings", [])),
            rows=tuple(ParsedRow.from_dict(r) for r in data.get("rows", [])),
            file_name=data.get("file_name"),
            file_size=data.get("file_size"),
            last_error=data.get("last_error"),
        )
