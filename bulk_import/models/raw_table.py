from __future__ import annotations

from dataclasses import dataclass

"""RawTable model: the parser's output for one uploaded file."""

__all__ = [
    "RawTable",
]


@dataclass(frozen=True)
class RawTable:
    """Headers and string rows exactly as found in the file (trimmed, case preserved).

    Header names are unique: duplicates are disambiguated positionally by the parser,
    so every row mapping has exactly one entry per header.
    """
    headers: tuple[str, ...]
    rows: tuple[dict[str, str], ...]

    @property
    def row_count(self) -> int:
        return len(self.rows)

    def sample(self, size: int) -> list[dict[str, str]]:
        return list(self.rows[:size])

    def column(self, header: str) -> list[str]:
        return [row.get(header, "") for row in self.rows]

    def to_dict(self) -> dict[str, object]:
        return {"headers": list(self.headers), "rows": [dict(r) for r in self.rows]}

    @staticmethod
    def from_dict(data: dict[str, object]) -> RawTable:
        headers = tuple(str(h) for h in data["headers"])  # type: ignore[union-attr]
        rows = tuple(
            {h: str(r.get(h, "")) for h in headers}
            for r in data["rows"]  # type: ignore[union-attr]
        )
        return RawTable(headers=headers, rows=rows)
