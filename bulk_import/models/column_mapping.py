from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

"""ColumnMapping model: where one raw header goes in the canonical schema."""

__all__ = [
    "IGNORE",
    "Confidence",
    "ColumnMapping",
    "MappingWarning",
]

IGNORE = "ignore"


class Confidence(Enum):
    """Provenance of a mapping decision.

    - EXACT: normalized header equals a field key, label or synonym
    - INFERRED: sampled column values pass the field's validator
    - MANUAL: set by the reviewer; never overwritten by auto-mapping
    - UNMAPPED: no proposal (field key is "ignore")
    """
    EXACT = "exact"
    INFERRED = "inferred"
    MANUAL = "manual"
    UNMAPPED = "unmapped"


@dataclass(frozen=True)
class ColumnMapping:
    raw_header: str
    field_key: str = IGNORE
    confidence: Confidence = Confidence.UNMAPPED

    @property
    def is_mapped(self) -> bool:
        return self.field_key != IGNORE

    def to_dict(self) -> dict[str, str]:
        return {
            "raw_header": self.raw_header,
            "field_key": self.field_key,
            "confidence": self.confidence.value,
        }

    @staticmethod
    def from_dict(data: dict[str, str]) -> ColumnMapping:
        return ColumnMapping(
            raw_header=data["raw_header"],
            field_key=data.get("field_key", IGNORE),
            confidence=Confidence(data.get("confidence", Confidence.UNMAPPED.value)),
        )


@dataclass(frozen=True)
class MappingWarning:
    """Mapping problem shown to the reviewer ("resolve this column").

    Only a conflict (raw_header set) on a required field blocks advancing.
    """
    field_key: str
    message: str
    raw_header: str | None = None
