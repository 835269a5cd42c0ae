from __future__ import annotations

from ..models.import_result import ImportResult

"""SUMMARY line rendering for a finished commit."""

__all__ = ["render_summary_line", "format_elapsed"]


def format_elapsed(seconds: float) -> str:
    """Plain decimal, no scientific notation; whole numbers without a fraction."""
    if seconds == int(seconds):
        return str(int(seconds))
    if seconds < 0.01:
        return f"{seconds:.6f}".rstrip("0").rstrip(".")
    return f"{seconds:.3f}".rstrip("0").rstrip(".")


def render_summary_line(
    file_name: str, submitted: int, result: ImportResult, elapsed_seconds: float
) -> str:
    """Render the one-line summary.

    Format:
    SUMMARY file={name} rows={submitted} created={n} skipped={n} failed={n} elapsed_sec={s}

    >>> render_summary_line("staff.csv", 3, ImportResult(created=2, skipped=1, failed=0), 1.5)
    'SUMMARY file=staff.csv rows=3 created=2 skipped=1 failed=0 elapsed_sec=1.5'
    """
    return (
        f"SUMMARY file={file_name} "
        f"rows={submitted} "
        f"created={result.created} "
        f"skipped={result.skipped} "
        f"failed={result.failed} "
        f"elapsed_sec={format_elapsed(elapsed_seconds)}"
    )
