from __future__ import annotations

import io

import pytest
from rich.console import Console


@pytest.fixture
def console_buffer() -> io.StringIO:
    return io.StringIO()


@pytest.fixture
def console(console_buffer: io.StringIO) -> Console:
    return Console(file=console_buffer, width=200, color_system=None, highlight=False)
