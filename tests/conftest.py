"""
Shared test fixtures and configuration.
"""

from collections.abc import Callable
from pathlib import Path

import pytest

from aptsync.adapters.shell.command import CommandResult


@pytest.fixture
def write_packages(tmp_path: Path) -> Callable[..., Path]:
    """Write a package file and return its path."""

    def _write(*names: str, content: str | None = None, filename: str = "packages.yaml") -> Path:
        if content is None:
            content = "packages:\n" + "".join(f"  - {n}\n" for n in names)
        path = tmp_path / filename
        path.write_text(content)
        return path

    return _write


class FakeRunner:
    """Stand-in for run_command: records each call, replies via a handler."""

    def __init__(self, handler: Callable[[list[str]], CommandResult] | None = None):
        self.calls: list[dict] = []
        self._handler = handler or (lambda argv: CommandResult(argv=argv, returncode=0))

    def __call__(self, argv, **kwargs) -> CommandResult:
        argv = list(argv)
        self.calls.append({"argv": argv, **kwargs})
        return self._handler(argv)

    @property
    def argvs(self) -> list[list[str]]:
        return [c["argv"] for c in self.calls]


@pytest.fixture
def fake_runner() -> type[FakeRunner]:
    return FakeRunner
