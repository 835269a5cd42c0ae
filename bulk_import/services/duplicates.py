from __future__ import annotations

import logging
from collections.abc import Iterable, Sequence

from ..catalog.base import FieldCatalog
from ..models.parsed_row import ParsedRow

"""Duplicate detector: flags rows whose identity value already exists.

A row is a duplicate when its normalized identity (trimmed, lower-cased) is in
the persisted snapshot or was seen on an earlier row of the same file. Duplicates
stay visible and editable but default to excluded.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "existing_message",
    "mark_duplicates",
    "is_duplicate_of",
    "normalize_identities",
]


def existing_message(catalog: FieldCatalog) -> str:
    label = catalog.get(catalog.identity_field).label.lower()
    return f"This {label} already exists"


def _intra_file_message(catalog: FieldCatalog, first_row: int) -> str:
    label = catalog.get(catalog.identity_field).label.lower()
    return f"Duplicate {label} (same as row {first_row})"


def normalize_identities(values: Iterable[str], catalog: FieldCatalog) -> set[str]:
    return {v for v in (catalog.normalize_identity(x) for x in values) if v}


def _flag(row: ParsedRow, message: str) -> None:
    row.is_duplicate = True
    row.included = False
    row.warnings.append(message)


def _clear(row: ParsedRow) -> None:
    row.is_duplicate = False
    row.warnings.clear()


def mark_duplicates(
    rows: Sequence[ParsedRow],
    existing: Iterable[str],
    catalog: FieldCatalog,
) -> list[ParsedRow]:
    """Flag duplicates in place (persisted snapshot + earlier rows) and return the rows."""
    known = normalize_identities(existing, catalog)
    seen: dict[str, int] = {}
    flagged = 0
    for row in rows:
        _clear(row)
        identity = catalog.normalize_identity(row.values.get(catalog.identity_field))
        if not identity:
            continue
        if identity in known:
            _flag(row, existing_message(catalog))
            flagged += 1
        elif identity in seen:
            _flag(row, _intra_file_message(catalog, seen[identity]))
            flagged += 1
        else:
            seen[identity] = row.source_row_index
    logger.debug("duplicates flagged=%d rows=%d existing=%d", flagged, len(rows), len(known))
    return list(rows)


def is_duplicate_of(
    row: ParsedRow,
    rows: Sequence[ParsedRow],
    existing: Iterable[str],
    catalog: FieldCatalog,
) -> str | None:
    """Re-check a single row against the snapshot and every other in-memory row.

    Returns the duplicate reason, or None when the row is unique.
    """
    identity = catalog.normalize_identity(row.values.get(catalog.identity_field))
    if not identity:
        return None
    if identity in normalize_identities(existing, catalog):
        return existing_message(catalog)
    for other in rows:
        if other.source_row_index == row.source_row_index:
            continue
        if catalog.normalize_identity(other.values.get(catalog.identity_field)) == identity:
            return _intra_file_message(catalog, other.source_row_index)
    return None
