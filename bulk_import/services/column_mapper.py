from __future__ import annotations

import logging
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from ..catalog.base import FieldCatalog
from ..models.column_mapping import IGNORE, ColumnMapping, Confidence, MappingWarning
from ..models.field_spec import FieldSpec

"""Column mapper: raw headers (+ sampled values) -> proposed ColumnMapping per header.

Priority per header:
1. exact    normalized header equals a field key, label or synonym
2. inferred normalized header contains a spelling of 4+ characters (longest wins)
3. inferred a large majority of sampled non-empty values pass an inferable field's validator
4. unmapped field key "ignore"

Manual entries from a previous mapping are kept verbatim and claim their fields
first. Among auto proposals, exact matches are resolved before any inference and
the first header in file order wins a contested field; later contenders stay
unmapped and are reported as MappingWarnings for the reviewer to resolve.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "MappingError",
    "AutoMapResult",
    "DEFAULT_SAMPLE_SIZE",
    "DEFAULT_INFERENCE_THRESHOLD",
    "auto_map",
    "auto_map_with_conflicts",
    "assign",
    "mapping_warnings",
    "mapped_fields",
]

DEFAULT_SAMPLE_SIZE = 10
DEFAULT_INFERENCE_THRESHOLD = 0.8


class MappingError(Exception):
    """Raised for invalid manual mapping edits (unknown header or field)."""


@dataclass(frozen=True)
class AutoMapResult:
    """Proposed mappings plus the conflicts the tie-break rule left unresolved."""
    mappings: list[ColumnMapping]
    conflicts: list[MappingWarning]


def _inference_score(
    spec: FieldSpec, header: str, sample_rows: Sequence[Mapping[str, str]], sample_size: int
) -> float:
    values = [str(row.get(header, "")).strip() for row in sample_rows[:sample_size]]
    values = [v for v in values if v]
    if not values:
        return 0.0
    passed = sum(1 for v in values if spec.validate(v).ok)
    return passed / len(values)


def auto_map_with_conflicts(
    headers: Sequence[str],
    catalog: FieldCatalog,
    sample_rows: Sequence[Mapping[str, str]] = (),
    *,
    previous: Sequence[ColumnMapping] | None = None,
    sample_size: int = DEFAULT_SAMPLE_SIZE,
    threshold: float = DEFAULT_INFERENCE_THRESHOLD,
) -> AutoMapResult:
    manual: dict[str, ColumnMapping] = {}
    for m in previous or ():
        if m.confidence is Confidence.MANUAL and m.raw_header in headers:
            manual[m.raw_header] = m

    claimed: dict[str, str] = {}  # field key -> header
    for header, m in manual.items():
        if m.is_mapped:
            claimed[m.field_key] = header

    result: dict[str, ColumnMapping] = dict(manual)
    conflicts: list[MappingWarning] = []

    # Pass 1: exact name matches, file order.
    for header in headers:
        if header in result:
            continue
        key = catalog.field_for_header(header)
        if key is None:
            continue
        if key in claimed:
            conflicts.append(
                MappingWarning(
                    field_key=key,
                    raw_header=header,
                    message=(
                        f"Column '{header}' also matches '{catalog.get(key).label}', which is "
                        f"already taken by '{claimed[key]}'. Assign it manually if needed."
                    ),
                )
            )
            result[header] = ColumnMapping(header)
            continue
        claimed[key] = header
        result[header] = ColumnMapping(header, key, Confidence.EXACT)

    # Pass 2: header contains a known spelling, file order.
    for header in headers:
        if header in result:
            continue
        key = catalog.field_containing(header, exclude=claimed)
        if key is None:
            continue
        claimed[key] = header
        result[header] = ColumnMapping(header, key, Confidence.INFERRED)
        logger.debug("partial header match header=%r field=%s", header, key)

    # Pass 3: content-based inference for the rest, file order.
    inferable = [f for f in catalog if f.can_infer]
    for header in headers:
        if header in result:
            continue
        best: FieldSpec | None = None
        best_score = 0.0
        for spec in inferable:
            if spec.key in claimed:
                continue
            score = _inference_score(spec, header, sample_rows, sample_size)
            if score >= threshold and score > best_score:
                best, best_score = spec, score
        if best is None:
            result[header] = ColumnMapping(header)
            continue
        claimed[best.key] = header
        result[header] = ColumnMapping(header, best.key, Confidence.INFERRED)
        logger.debug("inferred header=%r field=%s score=%.2f", header, best.key, best_score)

    return AutoMapResult([result[h] for h in headers], conflicts)


def auto_map(
    headers: Sequence[str],
    catalog: FieldCatalog,
    sample_rows: Sequence[Mapping[str, str]] = (),
    *,
    previous: Sequence[ColumnMapping] | None = None,
    sample_size: int = DEFAULT_SAMPLE_SIZE,
    threshold: float = DEFAULT_INFERENCE_THRESHOLD,
) -> list[ColumnMapping]:
    """Propose one ColumnMapping per header (header order). Pure and idempotent."""
    return auto_map_with_conflicts(
        headers,
        catalog,
        sample_rows,
        previous=previous,
        sample_size=sample_size,
        threshold=threshold,
    ).mappings


def assign(
    mappings: Sequence[ColumnMapping],
    raw_header: str,
    field_key: str,
    catalog: FieldCatalog,
    *,
    swap: bool = False,
) -> list[ColumnMapping]:
    """Manually map ``raw_header`` to ``field_key`` (or "ignore").

    If another header already holds ``field_key`` it is either given this
    header's previous field (swap=True) or demoted to "ignore"; two headers
    never silently share one field.
    """
    headers = [m.raw_header for m in mappings]
    if raw_header not in headers:
        raise MappingError(f"unknown column '{raw_header}'")
    if field_key != IGNORE and field_key not in catalog:
        raise MappingError(f"unknown field '{field_key}' for catalog '{catalog.name}'")

    current = next(m for m in mappings if m.raw_header == raw_header)
    updated: list[ColumnMapping] = []
    for m in mappings:
        if m.raw_header == raw_header:
            updated.append(ColumnMapping(raw_header, field_key, Confidence.MANUAL))
        elif field_key != IGNORE and m.field_key == field_key:
            if swap and current.is_mapped:
                updated.append(ColumnMapping(m.raw_header, current.field_key, Confidence.MANUAL))
            else:
                updated.append(ColumnMapping(m.raw_header))
        else:
            updated.append(m)
    return updated


def mapped_fields(mappings: Sequence[ColumnMapping]) -> dict[str, str]:
    """Field key -> raw header for every non-ignore mapping."""
    return {m.field_key: m.raw_header for m in mappings if m.is_mapped}


def mapping_warnings(
    mappings: Sequence[ColumnMapping],
    catalog: FieldCatalog,
    conflicts: Sequence[MappingWarning] = (),
) -> list[MappingWarning]:
    """Required fields with no source column, plus unresolved auto-map conflicts.

    A missing required column only warns, since it may be supplied downstream.
    A conflict on a required field must be resolved before advancing (see
    ImportWizard.confirm_mapping).
    """
    fields = mapped_fields(mappings)
    warnings: list[MappingWarning] = []
    for spec in catalog.required_fields():
        if spec.key in fields:
            continue
        if any(part.key in fields for part in catalog.composed_parts(spec.key)):
            continue
        warnings.append(
            MappingWarning(
                field_key=spec.key,
                message=f"No column is mapped to required field '{spec.label}'",
            )
        )
    for conflict in conflicts:
        # still relevant only while the contested column is unmapped
        current = next((m for m in mappings if m.raw_header == conflict.raw_header), None)
        if current is not None and not current.is_mapped and current.confidence is not Confidence.MANUAL:
            warnings.append(conflict)
    return warnings
