from __future__ import annotations

import json
import re
from pathlib import Path

from bulk_import.logging.error_log import ErrorLogBuffer
from bulk_import.models.error_record import ErrorRecord

TIMESTAMP_RE = re.compile(r"^\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(\.\d+)?Z$")


def test_error_log_lines(tmp_path: Path):
    buf = ErrorLogBuffer(logs_dir=tmp_path)
    buf.append(ErrorRecord.create("Staff ü.csv", 4, "ROW_FAILED", "value too long"))
    path = buf.flush()
    line = path.read_text(encoding="utf-8").rstrip("\n")
    assert "\n" not in line
    data = json.loads(line)
    assert list(data) == ["timestamp", "file", "row", "error_type", "message"]
    assert TIMESTAMP_RE.match(data["timestamp"])
    assert data["file"] == "Staff ü.csv"
    assert re.fullmatch(r"[A-Z_]+", data["error_type"])
