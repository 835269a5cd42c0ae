from __future__ import annotations

from bulk_import.models.import_result import ImportResult
from bulk_import.services.summary import format_elapsed, render_summary_line


def test_render_summary_line():
    line = render_summary_line("staff.csv", 4, ImportResult(created=2, skipped=1, failed=1), 1.25)
    assert line == "SUMMARY file=staff.csv rows=4 created=2 skipped=1 failed=1 elapsed_sec=1.25"


def test_format_elapsed():
    assert format_elapsed(0) == "0"
    assert format_elapsed(3.0) == "3"
    assert format_elapsed(0.000123) == "0.000123"
    assert format_elapsed(1.23456) == "1.235"
