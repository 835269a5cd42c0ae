from __future__ import annotations

import logging
from collections.abc import Callable, Iterable
from dataclasses import dataclass
from pathlib import Path

from ..catalog.base import FieldCatalog
from ..excel.reader import DEFAULT_MAX_BYTES, DEFAULT_MAX_ROWS, parse_file
from ..logging.error_log import ErrorLogBuffer
from ..models.column_mapping import ColumnMapping, MappingWarning
from ..models.import_result import ImportResult
from ..models.raw_table import RawTable
from ..models.wizard_session import WizardSession, WizardStep
from .column_mapper import (
    DEFAULT_INFERENCE_THRESHOLD,
    DEFAULT_SAMPLE_SIZE,
    AutoMapResult,
    assign,
    auto_map_with_conflicts,
    mapping_warnings,
)
from .duplicates import mark_duplicates
from .executor import CommitDestination, ImportExecutor, ImportSessionError, ProgressCallback
from .review import ReviewCounts, ReviewState
from .session_store import SESSION_KEY, SessionStore
from .transformer import apply_mapping

"""Import wizard: the upload -> mapping -> validation -> importing state machine.

The wizard owns the pipeline state for one import and persists a snapshot to
its SessionStore after every state-changing action, so a reload resumes where
the user left off. The importing step is transient: it is never persisted, a
successful commit deletes the snapshot and returns to upload (keeping
``result``), and a session failure drops back to validation with the rows
intact. Advancing past mapping is refused while a required field is contested
by two columns.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "WizardStateError",
    "WizardSettings",
    "ImportWizard",
]

IdentityLoader = Callable[[], Iterable[str]]
DestinationFactory = Callable[[], CommitDestination]


class WizardStateError(Exception):
    """Raised when an action is not allowed in the current step."""


@dataclass(frozen=True)
class WizardSettings:
    tenant_id: str = ""
    max_rows: int = DEFAULT_MAX_ROWS
    max_file_bytes: int = DEFAULT_MAX_BYTES
    sample_size: int = DEFAULT_SAMPLE_SIZE
    inference_threshold: float = DEFAULT_INFERENCE_THRESHOLD
    header_strategy: str = "first_non_empty"


def _no_identities() -> list[str]:
    return []


class ImportWizard:
    def __init__(
        self,
        catalog: FieldCatalog,
        store: SessionStore,
        *,
        identity_loader: IdentityLoader | None = None,
        destination_factory: DestinationFactory | None = None,
        settings: WizardSettings | None = None,
        error_log: ErrorLogBuffer | None = None,
    ) -> None:
        self.catalog = catalog
        self.store = store
        self.settings = settings or WizardSettings()
        self.error_log = error_log
        self._identity_loader = identity_loader or _no_identities
        self._destination_factory = destination_factory
        self._identities: list[str] | None = None

        self.step = WizardStep.UPLOAD
        self.raw_table: RawTable | None = None
        self.mappings: list[ColumnMapping] = []
        self.review: ReviewState | None = None
        self.file_name: str | None = None
        self.file_size: int | None = None
        self.last_error: str | None = None
        self.result: ImportResult | None = None

    # -- persistence -----------------------------------------------------------

    @classmethod
    def resume(
        cls,
        catalog: FieldCatalog,
        store: SessionStore,
        **kwargs,
    ) -> ImportWizard:
        """Restore the persisted snapshot, or start fresh when there is none usable."""
        wizard = cls(catalog, store, **kwargs)
        data = store.get(SESSION_KEY)
        if data is None:
            return wizard
        try:
            snapshot = WizardSession.from_dict(data)
        except (KeyError, ValueError, TypeError) as e:
            logger.warning("discarding unreadable session snapshot: %s", e)
            store.delete(SESSION_KEY)
            return wizard
        if snapshot.catalog != catalog.name:
            logger.warning(
                "discarding session for catalog '%s' (current: '%s')", snapshot.catalog, catalog.name
            )
            store.delete(SESSION_KEY)
            return wizard
        if snapshot.step is WizardStep.IMPORTING or (
            snapshot.step is not WizardStep.UPLOAD and snapshot.raw_table is None
        ):
            logger.warning("discarding inconsistent session snapshot (step=%s)", snapshot.step.value)
            store.delete(SESSION_KEY)
            return wizard
        wizard._restore(snapshot)
        logger.debug("resumed session step=%s file=%s", wizard.step.value, wizard.file_name)
        return wizard

    def _restore(self, snapshot: WizardSession) -> None:
        self.step = snapshot.step
        self.raw_table = snapshot.raw_table
        self.mappings = list(snapshot.mappings)
        self.file_name = snapshot.file_name
        self.file_size = snapshot.file_size
        self.last_error = snapshot.last_error
        if self.step is WizardStep.VALIDATION:
            # identities are fetched again only if an identity cell gets edited
            self.review = ReviewState(
                list(snapshot.rows), self.catalog, self._existing_identities, self.mappings
            )

    def snapshot(self) -> WizardSession:
        return WizardSession(
            step=self.step,
            catalog=self.catalog.name,
            raw_table=self.raw_table,
            mappings=tuple(self.mappings),
            rows=tuple(self.review.rows) if self.review is not None else (),
            file_name=self.file_name,
            file_size=self.file_size,
            last_error=self.last_error,
        )

    def _persist(self) -> None:
        if self.step is WizardStep.IMPORTING:
            return
        self.store.set(SESSION_KEY, self.snapshot().to_dict())

    def _require(self, *steps: WizardStep) -> None:
        if self.step not in steps:
            allowed = " or ".join(s.value for s in steps)
            raise WizardStateError(f"not allowed in step '{self.step.value}' (needs {allowed})")

    def _existing_identities(self) -> list[str]:
        if self._identities is None:
            self._identities = list(self._identity_loader())
            logger.info("loaded %d existing identities", len(self._identities))
        return self._identities

    # -- upload ----------------------------------------------------------------

    def upload(self, data: bytes, file_name: str) -> RawTable:
        """Parse the file and propose a mapping.

        Raises:
            IngestionError: the file cannot be used; the wizard stays at upload
        """
        self._require(WizardStep.UPLOAD)
        table = parse_file(
            data,
            Path(file_name).suffix,
            max_rows=self.settings.max_rows,
            max_bytes=self.settings.max_file_bytes,
            header_strategy=self.settings.header_strategy,
        )
        self.raw_table = table
        self.file_name = file_name
        self.file_size = len(data)
        self.last_error = None
        self.result = None
        self.mappings = self._auto_map().mappings
        self.step = WizardStep.MAPPING
        logger.info(
            "uploaded file=%s rows=%d columns=%d", file_name, table.row_count, len(table.headers)
        )
        self._persist()
        return table

    # -- mapping ---------------------------------------------------------------

    def _auto_map(self, previous: list[ColumnMapping] | None = None) -> AutoMapResult:
        assert self.raw_table is not None
        return auto_map_with_conflicts(
            self.raw_table.headers,
            self.catalog,
            self.raw_table.sample(self.settings.sample_size),
            previous=previous,
            sample_size=self.settings.sample_size,
            threshold=self.settings.inference_threshold,
        )

    def assign(self, raw_header: str, field_key: str, swap: bool = False) -> list[ColumnMapping]:
        self._require(WizardStep.MAPPING)
        self.mappings = assign(self.mappings, raw_header, field_key, self.catalog, swap=swap)
        self._persist()
        return self.mappings

    def remap(self) -> list[ColumnMapping]:
        """Re-run auto-mapping; manual choices are kept."""
        self._require(WizardStep.MAPPING)
        self.mappings = self._auto_map(previous=self.mappings).mappings
        self._persist()
        return self.mappings

    @property
    def warnings(self) -> list[MappingWarning]:
        if self.raw_table is None:
            return []
        conflicts = self._auto_map(previous=self.mappings).conflicts
        return mapping_warnings(self.mappings, self.catalog, conflicts)

    def confirm_mapping(self) -> ReviewCounts:
        self._require(WizardStep.MAPPING)
        assert self.raw_table is not None
        contested = [
            w for w in self.warnings
            if w.raw_header is not None and self.catalog.get(w.field_key).required
        ]
        if contested:
            columns = ", ".join(f"'{w.raw_header}'" for w in contested)
            raise WizardStateError(
                f"resolve the mapping of {columns} before continuing "
                "(assign it to a field or to 'ignore')"
            )
        rows = apply_mapping(self.raw_table.rows, self.mappings, self.catalog)
        existing = self._existing_identities()
        mark_duplicates(rows, existing, self.catalog)
        self.review = ReviewState(rows, self.catalog, existing, self.mappings)
        self.step = WizardStep.VALIDATION
        self._persist()
        counts = self.review.derived_counts()
        logger.info(
            "validated rows=%d valid=%d errors=%d duplicates=%d",
            counts.total, counts.valid, counts.error, counts.duplicate,
        )
        return counts

    def back(self) -> WizardStep:
        if self.step is WizardStep.VALIDATION:
            self.review = None
            self.step = WizardStep.MAPPING
            self._persist()
        elif self.step is WizardStep.MAPPING:
            self.reset()
        else:
            raise WizardStateError(f"cannot go back from step '{self.step.value}'")
        return self.step

    # -- validation ------------------------------------------------------------

    def _review(self) -> ReviewState:
        self._require(WizardStep.VALIDATION)
        assert self.review is not None
        return self.review

    def edit_cell(self, row_index: int, field_key: str, value: str):
        row = self._review().edit_cell(row_index, field_key, value)
        self._persist()
        return row

    def toggle_included(self, row_index: int):
        row = self._review().toggle_included(row_index)
        self._persist()
        return row

    def set_all_included(self, include: bool) -> None:
        self._review().set_all_included(include)
        self._persist()

    def fill_column(self, field_key: str, value: str) -> None:
        self._review().fill_column(field_key, value)
        self._persist()

    def counts(self) -> ReviewCounts:
        return self._review().derived_counts()

    # -- import ----------------------------------------------------------------

    def start_import(self, progress: ProgressCallback | None = None) -> ImportResult:
        """Commit the included rows once.

        Raises:
            WizardStateError: not in validation, or nothing is included
            ImportSessionError: the commit failed; the wizard is back at validation
        """
        review = self._review()
        if not review.can_import:
            raise WizardStateError("no rows are included; select at least one row to import")
        if self._destination_factory is None:
            raise WizardStateError("no commit destination configured")
        assert self.file_name is not None and self.file_size is not None

        self.step = WizardStep.IMPORTING
        try:
            try:
                destination = self._destination_factory()
            except Exception as e:
                raise ImportSessionError(f"commit destination unavailable: {e}") from e
            executor = ImportExecutor(
                destination,
                tenant_id=self.settings.tenant_id,
                progress=progress,
                error_log=self.error_log,
            )
            result = executor.commit(
                review.rows,
                file_name=self.file_name,
                file_size=self.file_size,
                mappings=self.mappings,
            )
        except ImportSessionError as e:
            self.step = WizardStep.VALIDATION
            self.last_error = str(e)
            self._persist()
            raise
        except Exception:
            self.step = WizardStep.VALIDATION
            raise

        # ready for the next file; the result stays readable until then
        self._clear()
        self.result = result
        self.store.delete(SESSION_KEY)
        return result

    def reset(self) -> None:
        self._clear()
        self.store.delete(SESSION_KEY)

    def _clear(self) -> None:
        self.step = WizardStep.UPLOAD
        self.raw_table = None
        self.mappings = []
        self.review = None
        self.file_name = None
        self.file_size = None
        self.last_error = None
        self.result = None
