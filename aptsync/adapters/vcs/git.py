"""
Git adapter — the add / commit / push operations used by ``deploy``.

Uses the git CLI through the shared shell runner. Operations never
raise; each returns the CommandResult and the caller decides.
"""

from __future__ import annotations

import logging
import shutil
from pathlib import Path

from aptsync.adapters.shell.command import CommandResult, Runner, run_command

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 120


class GitRepo:
    """A working tree operated on through the git CLI."""

    def __init__(
        self,
        path: Path,
        runner: Runner = run_command,
        timeout: int = DEFAULT_TIMEOUT,
    ):
        self.path = path
        self._run = runner
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "git"

    def is_available(self) -> bool:
        return shutil.which("git") is not None

    def _git(self, args: list[str]) -> CommandResult:
        return self._run(["git", *args], cwd=str(self.path), timeout=self._timeout)

    def add_all(self) -> CommandResult:
        return self._git(["add", "."])

    def commit(self, message: str) -> CommandResult:
        return self._git(["commit", "-m", message])

    def push(self, remote: str, branch: str) -> CommandResult:
        logger.info("Pushing to %s/%s", remote, branch)
        return self._git(["push", remote, branch])
