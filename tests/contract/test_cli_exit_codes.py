from __future__ import annotations

from bulk_import.cli.__main__ import EXIT_FATAL, EXIT_PARTIAL_FAILURE, EXIT_SUCCESS


def test_exit_code_values():
    assert (EXIT_SUCCESS, EXIT_FATAL, EXIT_PARTIAL_FAILURE) == (0, 1, 2)
