from __future__ import annotations

import json
import re
from pathlib import Path

from bulk_import.logging.error_log import ErrorLogBuffer
from bulk_import.models.error_record import SESSION_ROW, ErrorRecord


def test_error_record_json_line():
    rec = ErrorRecord.create("staff.csv", 3, "ROW_FAILED", "duplicate key")
    data = json.loads(rec.to_json_line())
    assert set(data) == {"timestamp", "file", "row", "error_type", "message"}
    assert data["row"] == 3
    assert data["timestamp"].endswith("Z")


def test_flush_writes_json_lines(temp_workdir: Path):
    buf = ErrorLogBuffer()
    buf.append(ErrorRecord.create("staff.csv", 2, "ROW_FAILED", "bad date"))
    buf.append(ErrorRecord.create("staff.csv", SESSION_ROW, "COMMIT_SESSION_ERROR", "timeout"))
    path = buf.flush()
    assert path is not None and path.parent == Path("logs")
    assert re.fullmatch(r"errors-\d{8}-\d{6}\.log", path.name)
    lines = path.read_text(encoding="utf-8").splitlines()
    assert [json.loads(line)["row"] for line in lines] == [2, -1]
    assert len(buf) == 0


def test_flush_without_records_creates_nothing(tmp_path: Path):
    buf = ErrorLogBuffer(logs_dir=tmp_path / "logs")
    assert buf.flush() is None
    assert not (tmp_path / "logs").exists()


def test_multiple_flushes_append_to_same_file(tmp_path: Path):
    buf = ErrorLogBuffer(logs_dir=tmp_path)
    buf.append(ErrorRecord.create("f.csv", 1, "ROW_FAILED", "x"))
    first = buf.flush()
    buf.append(ErrorRecord.create("f.csv", 2, "ROW_FAILED", "y"))
    assert buf.flush() == first
    assert len(first.read_text(encoding="utf-8").splitlines()) == 2
