from __future__ import annotations

import json
import logging
import os
import tempfile
from pathlib import Path
from typing import Any

"""Keyed session stores for the wizard snapshot.

The wizard uses a single fixed key; a store is scoped to one session (a file
path per working directory / user), never shared across users. Last write wins.
"""

logger = logging.getLogger(__name__)

__all__ = [
    "SESSION_KEY",
    "SessionStore",
    "InMemorySessionStore",
    "JsonFileSessionStore",
]

SESSION_KEY = "bulk_import.session"


class SessionStore:
    """Synchronous key -> JSON-compatible value store."""

    def get(self, key: str) -> dict[str, Any] | None:
        raise NotImplementedError

    def set(self, key: str, value: dict[str, Any]) -> None:
        raise NotImplementedError

    def delete(self, key: str) -> None:
        raise NotImplementedError


class InMemorySessionStore(SessionStore):
    def __init__(self) -> None:
        self._data: dict[str, str] = {}

    def get(self, key: str) -> dict[str, Any] | None:
        raw = self._data.get(key)
        return json.loads(raw) if raw is not None else None

    def set(self, key: str, value: dict[str, Any]) -> None:
        # serialize so stored state cannot alias live objects
        self._data[key] = json.dumps(value)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)


class JsonFileSessionStore(SessionStore):
    """JSON object of key -> value in one file, replaced atomically on every write."""

    def __init__(self, path: Path) -> None:
        self.path = Path(path)

    def _read_all(self) -> dict[str, Any]:
        if not self.path.exists():
            return {}
        try:
            data = json.loads(self.path.read_text(encoding="utf-8"))
        except (OSError, json.JSONDecodeError) as e:
            logger.warning("session store unreadable, starting fresh: %s", e)
            return {}
        return data if isinstance(data, dict) else {}

    def _write_all(self, data: dict[str, Any]) -> None:
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp = tempfile.mkstemp(dir=self.path.parent, prefix=".session-", suffix=".tmp")
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                json.dump(data, f, ensure_ascii=False)
            os.replace(tmp, self.path)
        except BaseException:
            Path(tmp).unlink(missing_ok=True)
            raise

    def get(self, key: str) -> dict[str, Any] | None:
        value = self._read_all().get(key)
        return value if isinstance(value, dict) else None

    def set(self, key: str, value: dict[str, Any]) -> None:
        data = self._read_all()
        data[key] = value
        self._write_all(data)

    def delete(self, key: str) -> None:
        data = self._read_all()
        if key in data:
            del data[key]
            if data:
                self._write_all(data)
            else:
                self.path.unlink(missing_ok=True)
