from __future__ import annotations

from unittest.mock import MagicMock

import bulk_import.services.progress as progress
from bulk_import.services.progress import ImportProgressBar


def test_disabled_off_tty(monkeypatch):
    monkeypatch.setattr(progress, "is_tty_enabled", lambda: False)
    created = MagicMock()
    monkeypatch.setattr(progress, "tqdm", created)
    with ImportProgressBar() as bar:
        bar(0, 3)
        bar(3, 3)
    created.assert_not_called()
    assert bar.current == 3


def test_tty_updates_by_delta(monkeypatch):
    monkeypatch.setattr(progress, "is_tty_enabled", lambda: True)
    pbar = MagicMock()
    factory = MagicMock(return_value=pbar)
    monkeypatch.setattr(progress, "tqdm", factory)
    with ImportProgressBar(description="Importing") as bar:
        bar(0, 5)
        bar(5, 5)
    factory.assert_called_once()
    assert factory.call_args.kwargs["total"] == 5
    pbar.update.assert_called_once_with(5)
    pbar.close.assert_called_once()
    assert bar.pbar is None
