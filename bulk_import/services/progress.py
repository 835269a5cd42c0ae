from __future__ import annotations

import sys
from typing import Any

from tqdm import tqdm
from tqdm.std import tqdm as TqdmType

"""Commit progress display with tqdm (TTY only).

The executor reports coarse progress, (0, total) before the commit call and
(total, total) after a well-formed response; ImportProgressBar is a
ProgressCallback that renders it. Off a TTY nothing is drawn so piped and CI
output stays free of control sequences.
"""

__all__ = [
    "ImportProgressBar",
    "is_tty_enabled",
]


def is_tty_enabled() -> bool:
    return sys.stdout.isatty()


class ImportProgressBar:
    """Callable progress sink: ``bar(current, total)``."""

    def __init__(self, *, description: str = "Importing rows") -> None:
        self.description = description
        self.enabled = is_tty_enabled()
        self.pbar: TqdmType[Any] | None = None
        self.current = 0

    def __call__(self, current: int, total: int) -> None:
        if not self.enabled:
            self.current = current
            return
        if self.pbar is None:
            self.pbar = tqdm(
                total=total,
                desc=self.description,
                unit="row",
                leave=True,
                ncols=80,
                ascii=True,
            )
        delta = current - self.current
        if delta > 0:
            self.pbar.update(delta)
        self.current = current

    def close(self) -> None:
        if self.pbar is not None:
            self.pbar.close()
            self.pbar = None

    def __enter__(self) -> ImportProgressBar:
        return self

    def __exit__(self, exc_type: Any, exc_val: Any, exc_tb: Any) -> None:
        self.close()
