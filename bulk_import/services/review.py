from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence
from dataclasses import dataclass

from ..catalog.base import FieldCatalog
from ..models.column_mapping import ColumnMapping
from ..models.parsed_row import ParsedRow
from .column_mapper import mapped_fields
from .duplicates import is_duplicate_of, normalize_identities
from .transformer import compose_value, validate_field

"""Interactive review state: controller over the ParsedRow collection.

Rows are addressed by source_row_index and edited in place; an edit re-runs
only the touched field's validator (plus the composed field when a name part
changes) and, for the identity field, the duplicate check for that row.

Invariant after every operation: a row with field errors is never included.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "ReviewError",
    "ReviewCounts",
    "ReviewState",
    "ROW_FILTERS",
]

ROW_FILTERS = ("all", "valid", "errors", "duplicates")


class ReviewError(Exception):
    """Raised for illegal review actions (unknown row/field, including a row with errors)."""


@dataclass(frozen=True)
class ReviewCounts:
    total: int
    valid: int  # no errors, not duplicate
    error: int
    duplicate: int
    included: int

    @property
    def can_import(self) -> bool:
        return self.included > 0


class ReviewState:
    def __init__(
        self,
        rows: Sequence[ParsedRow],
        catalog: FieldCatalog,
        existing: Iterable[str] | Callable[[], Iterable[str]] = (),
        mappings: Sequence[ColumnMapping] = (),
    ) -> None:
        """``existing`` may be a loader; it is only called when an identity cell is edited."""
        self.catalog = catalog
        self._rows: list[ParsedRow] = list(rows)
        self._index: dict[int, ParsedRow] = {r.source_row_index: r for r in self._rows}
        self._existing_source = existing
        self._existing: set[str] | None = None
        self._sources = mapped_fields(mappings)
        for row in self._rows:
            if row.has_errors:
                row.included = False

    @property
    def rows(self) -> list[ParsedRow]:
        return self._rows

    def row(self, row_index: int) -> ParsedRow:
        try:
            return self._index[row_index]
        except KeyError:
            raise ReviewError(f"no row {row_index}") from None

    def included_rows(self) -> list[ParsedRow]:
        return [r for r in self._rows if r.included]

    # -- edits -----------------------------------------------------------------

    def edit_cell(self, row_index: int, field_key: str, value: str) -> ParsedRow:
        row = self.row(row_index)
        if field_key not in self.catalog:
            raise ReviewError(f"unknown field '{field_key}'")
        spec = self.catalog.get(field_key)
        self._set_value(row, field_key, value)

        # A name part feeds the composed field unless that field has its own column.
        if spec.part_of is not None and spec.part_of not in self._sources:
            parts = self.catalog.composed_parts(spec.part_of)
            composed = compose_value([row.values.get(p.key, "") for p in parts])
            self._set_value(row, spec.part_of, composed)

        if field_key == self.catalog.identity_field or spec.part_of == self.catalog.identity_field:
            self._recheck_duplicate(row)
            # flags raised against the old value may no longer hold
            for other in self._rows:
                if other is not row and other.is_duplicate:
                    self._refresh_duplicate(other)

        if row.has_errors:
            row.included = False
        logger.debug(
            "edit row=%d field=%s errors=%s duplicate=%s",
            row_index, field_key, sorted(row.field_errors), row.is_duplicate,
        )
        return row

    def _set_value(self, row: ParsedRow, field_key: str, value: str) -> None:
        spec = self.catalog.get(field_key)
        stored, error = validate_field(spec, value)
        row.values[field_key] = stored
        if error is None:
            row.field_errors.pop(field_key, None)
        else:
            row.field_errors[field_key] = error

    def _known_identities(self) -> set[str]:
        if self._existing is None:
            source = self._existing_source
            values = source() if callable(source) else source
            self._existing = normalize_identities(values, self.catalog)
        return self._existing

    def _recheck_duplicate(self, row: ParsedRow) -> None:
        reason = is_duplicate_of(row, self._rows, self._known_identities(), self.catalog)
        row.warnings.clear()
        if reason is None:
            # not auto-included: the reviewer opts back in
            row.is_duplicate = False
            return
        row.is_duplicate = True
        row.included = False
        row.warnings.append(reason)

    def _refresh_duplicate(self, row: ParsedRow) -> None:
        """Re-evaluate the flag of another row; its inclusion is left to the reviewer."""
        reason = is_duplicate_of(row, self._rows, self._known_identities(), self.catalog)
        row.warnings.clear()
        row.is_duplicate = reason is not None
        if reason is not None:
            row.warnings.append(reason)

    def fill_column(self, field_key: str, value: str) -> None:
        """Assign the same value to ``field_key`` on every row (e.g. one site for everyone)."""
        for row in self._rows:
            self.edit_cell(row.source_row_index, field_key, value)

    # -- inclusion -------------------------------------------------------------

    def toggle_included(self, row_index: int) -> ParsedRow:
        row = self.row(row_index)
        if not row.included and row.has_errors:
            fields = ", ".join(sorted(row.field_errors))
            raise ReviewError(f"row {row_index} has errors ({fields}); fix them before including it")
        row.included = not row.included
        return row

    def set_all_included(self, include: bool) -> None:
        """Select all / none. Rows with errors always stay excluded."""
        for row in self._rows:
            row.included = include and not row.has_errors

    # -- views -----------------------------------------------------------------

    def filter_rows(self, kind: str = "all") -> list[ParsedRow]:
        if kind == "all":
            return list(self._rows)
        if kind == "valid":
            return [r for r in self._rows if r.is_valid]
        if kind == "errors":
            return [r for r in self._rows if r.has_errors]
        if kind == "duplicates":
            return [r for r in self._rows if r.is_duplicate]
        raise ReviewError(f"unknown filter '{kind}' (expected one of: {', '.join(ROW_FILTERS)})")

    def derived_counts(self) -> ReviewCounts:
        return ReviewCounts(
            total=len(self._rows),
            valid=sum(1 for r in self._rows if r.is_valid),
            error=sum(1 for r in self._rows if r.has_errors),
            duplicate=sum(1 for r in self._rows if r.is_duplicate),
            included=sum(1 for r in self._rows if r.included),
        )

    @property
    def can_import(self) -> bool:
        return self.derived_counts().can_import
