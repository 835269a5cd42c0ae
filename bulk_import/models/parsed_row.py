from __future__ import annotations

from dataclasses import asdict, dataclass, field
from typing import Any

"""ParsedRow model: the unit of interactive review state.

Unlike the other models this one is deliberately mutable: the review controller
edits values, errors and inclusion in place, addressed by source_row_index.
"""

__all__ = [
    "ParsedRow",
]


@dataclass
class ParsedRow:
    source_row_index: int  # 1-based data row position in the uploaded file
    values: dict[str, str] = field(default_factory=dict)  # field key -> normalized value
    field_errors: dict[str, str] = field(default_factory=dict)  # field key -> message
    is_duplicate: bool = False
    included: bool = True
    warnings: list[str] = field(default_factory=list)  # duplicate reasons etc.

    @property
    def has_errors(self) -> bool:
        return bool(self.field_errors)

    @property
    def is_valid(self) -> bool:
        """No field errors and not a duplicate."""
        return not self.field_errors and not self.is_duplicate

    def payload(self) -> dict[str, str]:
        """Plain field-key -> value record sent to the commit endpoint."""
        return dict(self.values)

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @staticmethod
    def from_dict(data: dict[str, Any]) -> ParsedRow:
        return ParsedRow(
            source_row_index=int(data["source_row_index"]),
            values=dict(data.get("values", {})),
            field_errors=dict(data.get("field_errors", {})),
            is_duplicate=bool(data.get("is_duplicate", False)),
            included=bool(data.get("included", True)),
            warnings=list(data.get("warnings", [])),
        )
