from __future__ import annotations

from dataclasses import dataclass

"""ImportResult model: terminal summary of one commit attempt."""

__all__ = [
    "RowError",
    "ImportResult",
]


@dataclass(frozen=True)
class RowError:
    row_index: int  # source row index; -1 when the server reported an unknown position
    message: str


@dataclass(frozen=True)
class ImportResult:
    """Aggregated per-row outcome of a well-formed commit response.

    Never constructed for session-level failures (transport / malformed response).
    """
    created: int
    skipped: int
    failed: int
    errors: tuple[RowError, ...] = ()

    @property
    def processed(self) -> int:
        return self.created + self.skipped + self.failed

    @property
    def has_failures(self) -> bool:
        return self.failed > 0
