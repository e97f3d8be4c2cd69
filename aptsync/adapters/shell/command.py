"""
Shell command runner — the SINGLE PLACE where ``subprocess.run`` is called.

Every adapter (apt, dpkg, sudo, git) goes through ``run_command`` so
logging, environment handling and error capture live in one spot.
Like adapters, the runner never raises for operational failures:
a missing binary or a timeout comes back as a CommandResult with
``error`` set.
"""

from __future__ import annotations

import logging
import os
import shlex
import subprocess
import time
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass

logger = logging.getLogger(__name__)

# Exit code reported when the binary itself could not be started
EXIT_NOT_FOUND = 127


@dataclass(frozen=True)
class CommandResult:
    """Outcome of one external command."""

    argv: list[str]
    returncode: int
    stdout: str = ""
    stderr: str = ""
    elapsed_ms: int = 0
    error: str | None = None        # set when the command could not run to completion

    @property
    def ok(self) -> bool:
        return self.error is None and self.returncode == 0

    def describe_failure(self, tail: int = 2000) -> str:
        """Short, human-readable reason for a failed command."""
        if self.error:
            return self.error
        stderr = self.stderr.strip()[-tail:]
        if stderr:
            return stderr
        return f"Command failed (exit {self.returncode}): {format_argv(self.argv)}"


Runner = Callable[..., CommandResult]


def format_argv(argv: Sequence[str]) -> str:
    return " ".join(shlex.quote(a) for a in argv)


def run_command(
    argv: Sequence[str],
    *,
    timeout: int | None = None,
    env_overrides: Mapping[str, str] | None = None,
    cwd: str | None = None,
) -> CommandResult:
    """Run a command and capture its output.

    Args:
        argv: Command list for ``subprocess.run()``. Never a shell string.
        timeout: Seconds before giving up. ``None`` waits forever.
        env_overrides: Extra env vars merged over ``os.environ``.
        cwd: Working directory for the command.

    Returns:
        CommandResult. ``error`` is set when the binary is missing,
        the command timed out, or the OS refused to start it.
    """
    argv_list = list(argv)
    logger.debug("CMD %s (cwd=%s)", format_argv(argv_list), cwd or ".")

    env = os.environ.copy()
    if env_overrides:
        env.update(env_overrides)

    start = time.monotonic()
    try:
        p = subprocess.run(
            argv_list,
            capture_output=True,
            text=True,
            timeout=timeout,
            env=env,
            cwd=cwd,
        )
    except FileNotFoundError:
        return CommandResult(
            argv=argv_list,
            returncode=EXIT_NOT_FOUND,
            error=f"Command not found: {argv_list[0]}",
        )
    except subprocess.TimeoutExpired:
        return CommandResult(
            argv=argv_list,
            returncode=-1,
            elapsed_ms=int((time.monotonic() - start) * 1000),
            error=f"Command timed out ({timeout}s): {format_argv(argv_list)}",
        )
    except OSError as e:
        logger.warning("OS error running %s: %s", format_argv(argv_list), e)
        return CommandResult(argv=argv_list, returncode=-1, error=str(e))

    elapsed_ms = int((time.monotonic() - start) * 1000)

    if p.stdout:
        logger.debug("STDOUT %s", p.stdout.strip()[-2000:])
    if p.stderr:
        logger.debug("STDERR %s", p.stderr.strip()[-2000:])

    return CommandResult(
        argv=argv_list,
        returncode=p.returncode,
        stdout=p.stdout or "",
        stderr=p.stderr or "",
        elapsed_ms=elapsed_ms,
    )
