"""Fixtures for CLI command tests."""

import pytest
from treectl.utils import formatting
from treectl.utils.formatting import console, err_console


@pytest.fixture(autouse=True)
def wide_console(monkeypatch: pytest.MonkeyPatch) -> None:
    """Render CLI output wide enough that tables do not fold paths."""
    monkeypatch.setattr(console, "width", 240)
    monkeypatch.setattr(err_console, "width", 240)
    monkeypatch.setattr(formatting, "_quiet", False)
