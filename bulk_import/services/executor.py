from __future__ import annotations

import json
import logging
import time
from collections.abc import Callable, Sequence
from pathlib import Path
from typing import Any, Protocol

import jsonschema
from jsonschema.exceptions import ValidationError

from ..logging.error_log import ErrorLogBuffer
from ..models.column_mapping import ColumnMapping
from ..models.error_record import SESSION_ROW, ErrorRecord
from ..models.import_result import ImportResult, RowError
from ..models.parsed_row import ParsedRow

"""Import executor: submits the included rows as one batch and builds the ImportResult.

The destination decides per-row success; this module drives the single
request/response and translates it. Two failure classes are kept apart:

- session-level (ImportSessionError): transport failure, timeout, non-2xx,
  malformed or error-shaped response. No partial ImportResult is synthesized;
  the caller retries the whole batch.
- row-level: reported inside a well-formed response, aggregated into
  ImportResult.errors; rows that succeeded are not rolled back.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "ImportSessionError",
    "CommitDestination",
    "ProgressCallback",
    "ImportExecutor",
    "build_commit_request",
    "parse_commit_response",
]

RESPONSE_SCHEMA_PATH = Path(__file__).parent.parent / "contracts" / "commit_response_schema.json"

ProgressCallback = Callable[[int, int], None]


class ImportSessionError(Exception):
    """The commit call itself failed; nothing about individual rows is known."""


class CommitDestination(Protocol):
    def submit(self, request: dict[str, Any]) -> Any:
        """Send one commit request; return the decoded response payload."""
        ...


def _load_response_schema() -> dict[str, Any]:
    return json.loads(RESPONSE_SCHEMA_PATH.read_text(encoding="utf-8"))


def build_commit_request(
    rows: Sequence[ParsedRow],
    *,
    tenant_id: str,
    file_name: str,
    file_size: int,
    mappings: Sequence[ColumnMapping],
) -> dict[str, Any]:
    return {
        "tenant_id": tenant_id,
        "file": {"name": file_name, "size": file_size},
        "mappings": [
            {"rawHeader": m.raw_header, "fieldKey": m.field_key, "confidence": m.confidence.value}
            for m in mappings
        ],
        "rows": [r.payload() for r in rows],
    }


def parse_commit_response(payload: Any, rows: Sequence[ParsedRow]) -> ImportResult:
    """Validate a decoded response and translate it into an ImportResult.

    Response rowIndex values are 0-based positions in the submitted batch and
    are mapped back to source row indexes (-1 when out of range).
    """
    try:
        jsonschema.validate(payload, _load_response_schema())
    except ValidationError as e:
        raise ImportSessionError(f"malformed commit response: {e.message}") from e
    if not payload["success"]:
        reason = payload.get("error") or "the server reported a failure"
        raise ImportSessionError(f"commit rejected: {reason}")

    errors: list[RowError] = []
    for item in payload.get("errors", []):
        position = item["rowIndex"]
        row_index = rows[position].source_row_index if 0 <= position < len(rows) else SESSION_ROW
        errors.append(RowError(row_index=row_index, message=item["message"]))
    result = ImportResult(
        created=payload["created"],
        skipped=payload["skipped"],
        failed=payload["failed"],
        errors=tuple(errors),
    )
    if result.processed != len(rows):
        logger.warning(
            "commit response accounts for %d rows but %d were submitted",
            result.processed,
            len(rows),
        )
    return result


class ImportExecutor:
    def __init__(
        self,
        destination: CommitDestination,
        *,
        tenant_id: str,
        progress: ProgressCallback | None = None,
        error_log: ErrorLogBuffer | None = None,
    ) -> None:
        self.destination = destination
        self.tenant_id = tenant_id
        self.progress = progress
        self.error_log = error_log

    def _report(self, current: int, total: int) -> None:
        if self.progress is not None:
            self.progress(current, total)

    def commit(
        self,
        rows: Sequence[ParsedRow],
        *,
        file_name: str,
        file_size: int,
        mappings: Sequence[ColumnMapping],
    ) -> ImportResult:
        """Submit the included rows as one batch.

        Progress is coarse: (0, total) before the call, (total, total) after a
        well-formed response.

        Raises:
            ImportSessionError: transport or response-format failure
        """
        included = [r for r in rows if r.included]
        total = len(included)
        request = build_commit_request(
            included,
            tenant_id=self.tenant_id,
            file_name=file_name,
            file_size=file_size,
            mappings=mappings,
        )
        logger.info("committing rows=%d file=%s tenant=%s", total, file_name, self.tenant_id)
        self._report(0, total)

        start = time.monotonic()
        try:
            try:
                payload = self.destination.submit(request)
            except ImportSessionError:
                raise
            except Exception as e:
                raise ImportSessionError(f"commit request failed: {e}") from e
            result = parse_commit_response(payload, included)
        except ImportSessionError as e:
            logger.error("commit failed: %s", e)
            self._log(ErrorRecord.create(file_name, SESSION_ROW, "COMMIT_SESSION_ERROR", str(e)))
            raise
        elapsed = time.monotonic() - start

        self._report(total, total)
        for err in result.errors:
            self._log(ErrorRecord.create(file_name, err.row_index, "ROW_FAILED", err.message))
        logger.info(
            "commit done created=%d skipped=%d failed=%d elapsed=%.3fs",
            result.created, result.skipped, result.failed, elapsed,
        )
        return result

    def _log(self, record: ErrorRecord) -> None:
        if self.error_log is not None:
            self.error_log.append(record)
