"""
Test fixtures - external programs are real Python helper scripts
"""

from __future__ import annotations

import shlex
import sys
from pathlib import Path

import pytest
from helpers import FakeRunner


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def write_script(tmp_path: Path):
    """Write a Python helper and return a program line running it."""

    def _write(body: str, name: str = "helper.py") -> str:
        path = tmp_path / name
        path.write_text(body, encoding="utf-8")
        return f"{shlex.quote(sys.executable)} {shlex.quote(str(path))}"

    return _write
