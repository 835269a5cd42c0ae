from __future__ import annotations

from collections.abc import Mapping, Sequence

from ..catalog.base import FieldCatalog
from ..models.column_mapping import ColumnMapping
from ..models.field_spec import FieldSpec
from ..models.parsed_row import ParsedRow
from .column_mapper import mapped_fields

"""Row transformer & validator: confirmed mapping + raw rows -> ParsedRow list.

Validation is field-local and stateless: no re-ordering, no cross-row checks
(duplicates are the duplicate detector's job). Every input row yields exactly
one ParsedRow, even when every field fails; excluding rows is the reviewer's call.
"""

__all__ = [
    "MISSING_REQUIRED",
    "apply_mapping",
    "validate_field",
    "compose_value",
]

MISSING_REQUIRED = "Missing required field"


def validate_field(spec: FieldSpec, raw_value: str) -> tuple[str, str | None]:
    """Run one field's validator. Returns (stored value, error message or None).

    Invalid cells keep their trimmed raw text so the reviewer can see and fix it.
    """
    text = (raw_value or "").strip()
    if not text:
        return "", MISSING_REQUIRED if spec.required else None
    outcome = spec.validate(text)
    if outcome.ok:
        return outcome.value, None
    return text, outcome.message or "Invalid value"


def compose_value(parts: Sequence[str]) -> str:
    """Join name parts ("Sarah", "", "Jones" -> "Sarah Jones")."""
    return " ".join(p.strip() for p in parts if p and p.strip())


def _store(row: ParsedRow, spec: FieldSpec, raw_value: str) -> None:
    value, error = validate_field(spec, raw_value)
    row.values[spec.key] = value
    if error is None:
        row.field_errors.pop(spec.key, None)
    else:
        row.field_errors[spec.key] = error


def transform_row(
    raw: Mapping[str, str],
    source_row_index: int,
    sources: Mapping[str, str],
    catalog: FieldCatalog,
) -> ParsedRow:
    row = ParsedRow(source_row_index=source_row_index)
    for spec in catalog:
        header = sources.get(spec.key)
        if header is not None:
            _store(row, spec, raw.get(header, ""))
            continue
        parts = [p for p in catalog.composed_parts(spec.key) if p.key in sources]
        if parts:
            _store(row, spec, compose_value([raw.get(sources[p.key], "") for p in parts]))
        elif spec.required:
            row.values[spec.key] = ""
            row.field_errors[spec.key] = MISSING_REQUIRED
    row.included = not row.field_errors
    return row


def apply_mapping(
    raw_rows: Sequence[Mapping[str, str]],
    mappings: Sequence[ColumnMapping],
    catalog: FieldCatalog,
) -> list[ParsedRow]:
    """Apply a confirmed mapping to every raw row (duplicate flags not set yet).

    source_row_index is the 1-based data row position.
    """
    sources = mapped_fields(mappings)
    return [
        transform_row(raw, idx, sources, catalog)
        for idx, raw in enumerate(raw_rows, start=1)
    ]
