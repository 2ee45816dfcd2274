"""Pytest configuration helpers for the test suite."""

from __future__ import annotations

from collections.abc import Callable, Mapping, Sequence
from pathlib import Path

import pytest

HOSTS: dict[str, list[str]] = {
    "host-a": ["192.0.2.10", "2001:db8::10"],
    "host-b": ["192.0.2.20"],
    "time.example.com": ["198.51.100.7"],
    "empty.example.com": [],
}


class FakeResolver:
    """Name resolver backed by a static table that records every lookup."""

    def __init__(self, table: Mapping[str, Sequence[str]]) -> None:
        self.table = table
        self.calls: list[str] = []

    def __call__(self, name: str) -> Sequence[str]:
        self.calls.append(name)
        if name not in self.table:
            raise OSError(f"unknown host {name}")
        return self.table[name]


@pytest.fixture
def resolver() -> FakeResolver:
    """Return a resolver that never touches the network."""
    return FakeResolver(HOSTS)


@pytest.fixture
def write_config(tmp_path: Path) -> Callable[..., Path]:
    """Return a helper that writes YAML text to a temporary config file."""

    def _write(text: str, name: str = "sptp.yaml") -> Path:
        path = tmp_path / name
        path.write_text(text, encoding="utf-8")
        return path

    return _write
