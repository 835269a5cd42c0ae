from __future__ import annotations

import json
from dataclasses import asdict, dataclass
from datetime import UTC, datetime

"""ErrorRecord model for the JSON Lines import error log.

Row-level commit failures carry the source row index; session-level failures
(transport errors, malformed commit responses) use row=-1 because no single row
is to blame.
"""

__all__ = [
    "ErrorRecord",
    "SESSION_ROW",
]

SESSION_ROW = -1


@dataclass(frozen=True)
class ErrorRecord:
    """Structured error record.

    Attributes:
        timestamp: ISO8601 UTC timestamp with 'Z' suffix
        file: uploaded file name
        row: source row index (1-based), or -1 for session-level errors
        error_type: classification in UPPER_SNAKE_CASE (ROW_FAILED, COMMIT_TRANSPORT_ERROR, ...)
        message: human-readable reason
    """
    timestamp: str
    file: str
    row: int
    error_type: str
    message: str

    @staticmethod
    def create(file: str, row: int, error_type: str, message: str) -> ErrorRecord:
        ts = datetime.now(UTC).isoformat().replace("+00:00", "Z")
        return ErrorRecord(timestamp=ts, file=file, row=row, error_type=error_type, message=message)

    def to_json_line(self) -> str:
        return json.dumps(asdict(self), ensure_ascii=False)
