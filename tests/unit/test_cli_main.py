from __future__ import annotations

from pathlib import Path

import pytest

from bulk_import.cli import main
from bulk_import.logging.init import reset_logging


@pytest.fixture(autouse=True)
def _fresh_logging(monkeypatch):
    reset_logging()
    monkeypatch.setenv("DISABLE_DB_CONNECT", "1")
    yield
    reset_logging()


def _write(path: Path, data: bytes) -> Path:
    path.write_bytes(data)
    return path


def test_template_without_config(temp_workdir: Path, capsys):
    assert main(["template", "--catalog", "people"]) == 0
    out = capsys.readouterr().out
    assert out.startswith("Full Name,Email,Phone")


def test_template_to_file(write_config: Path, capsys):
    assert main(["template", "-o", "data/template.csv"]) == 0
    text = Path("data/template.csv").read_text(encoding="utf-8")
    assert text.startswith("Full Name,")
    assert "INFO template written to data/template.csv" in capsys.readouterr().out


def test_template_unknown_catalog(temp_workdir: Path, capsys):
    assert main(["template", "--catalog", "contractors"]) == 1
    assert capsys.readouterr().out.startswith("ERROR catalog:")


def test_missing_config_is_fatal(temp_workdir: Path, capsys):
    assert main(["status"]) == 1
    assert "ERROR config: config file not found" in capsys.readouterr().out


def test_upload_then_status(write_config: Path, scenario_a_csv: bytes, capsys):
    src = _write(Path("data/staff.csv"), scenario_a_csv)
    assert main(["upload", str(src)]) == 0
    out = capsys.readouterr().out
    assert "step: mapping" in out
    assert "file: staff.csv" in out
    assert "'Full Name'" in out and "-> Full Name [exact]" in out
    assert Path(".bulk_import/session.json").exists()

    assert main(["status"]) == 0
    assert "rows: 3" in capsys.readouterr().out


def test_second_upload_requires_reset(write_config: Path, scenario_a_csv: bytes, capsys):
    src = _write(Path("data/staff.csv"), scenario_a_csv)
    assert main(["upload", str(src)]) == 0
    assert main(["upload", str(src)]) == 1
    assert "run 'reset' first" in capsys.readouterr().out

    assert main(["reset"]) == 0
    assert main(["upload", str(src)]) == 0


def test_unsupported_file_is_fatal(write_config: Path, capsys):
    src = _write(Path("data/notes.txt"), b"hello")
    assert main(["upload", str(src)]) == 1
    out = capsys.readouterr().out
    assert "ERROR unsupported file type" in out
    assert not Path(".bulk_import/session.json").exists()


def test_missing_file_is_fatal(write_config: Path, capsys):
    assert main(["upload", "data/absent.csv"]) == 1
    assert "ERROR file:" in capsys.readouterr().out


def test_action_in_wrong_step(write_config: Path, capsys):
    assert main(["toggle", "1"]) == 1
    assert "ERROR" in capsys.readouterr().out


def test_inspect_leaves_no_session(write_config: Path, scenario_a_csv: bytes, capsys):
    src = _write(Path("data/staff.csv"), scenario_a_csv)
    assert main(["inspect", str(src)]) == 0
    out = capsys.readouterr().out
    assert "FILE: staff.csv rows=3" in out
    assert "'Mobile' -> phone" in out
    assert not Path(".bulk_import/session.json").exists()


def test_map_and_next(write_config: Path, scenario_a_csv: bytes, capsys):
    src = _write(Path("data/staff.csv"), scenario_a_csv)
    main(["upload", str(src)])
    assert main(["map", "Mobile", "ignore"]) == 0
    assert "(ignored)" in capsys.readouterr().out

    assert main(["next"]) == 0
    out = capsys.readouterr().out
    assert "step: validation" in out
    assert "rows: total=3 valid=2 errors=1 duplicates=0 included=2" in out

    assert main(["status", "--filter", "errors"]) == 0
    out = capsys.readouterr().out
    assert "#3" in out and "#1" not in out


def test_edit_fixes_row(write_config: Path, scenario_a_csv: bytes, capsys):
    src = _write(Path("data/staff.csv"), scenario_a_csv)
    main(["upload", str(src)])
    main(["next"])
    capsys.readouterr()
    assert main(["edit", "3", "email", "bob@x.com"]) == 0
    assert capsys.readouterr().out.strip().startswith("[ ] #3:")
    assert main(["toggle", "3"]) == 0
    assert capsys.readouterr().out.strip().startswith("[x] #3:")
