"""
APT adapters — the apt-cache / dpkg-query / apt-get / sudo backend.

Read-only probes carry a short timeout so a hung tool surfaces as a
probe failure. The install command has no timeout: apt decides how
long an install takes.

Probe commands:
    index      → apt-cache search --names-only '^PKG$'
    installed  → dpkg-query -W -f='${Status}\n' -- PKG
    install    → [sudo -n] apt-get install -y -- PKG
    privilege  → euid 0, or sudo -n true
"""

from __future__ import annotations

import logging
import os
import shutil

from aptsync.adapters.base import (
    PackageDatabase,
    PackageIndex,
    PackageInstaller,
    PackageSystem,
    PrivilegeCheck,
)
from aptsync.adapters.shell.command import Runner, run_command
from aptsync.core.errors import IndexQueryError
from aptsync.core.models.package import InstallResult

logger = logging.getLogger(__name__)

PROBE_TIMEOUT = 30

# POSIX ERE metacharacters that can appear in a Debian package name
_ERE_SPECIAL = ".+"


def _is_root() -> bool:
    return hasattr(os, "geteuid") and os.geteuid() == 0


def _name_pattern(package: str) -> str:
    """Anchored regex matching exactly ``package`` for apt-cache search."""
    escaped = "".join(f"\\{c}" if c in _ERE_SPECIAL else c for c in package)
    return f"^{escaped}$"


class AptCacheIndex(PackageIndex):
    """Package existence via the local apt index."""

    def __init__(self, runner: Runner = run_command, timeout: int = PROBE_TIMEOUT):
        self._run = runner
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "apt-cache"

    def is_available(self) -> bool:
        return shutil.which("apt-cache") is not None

    def exists(self, package: str) -> bool:
        r = self._run(
            ["apt-cache", "search", "--names-only", _name_pattern(package)],
            timeout=self._timeout,
        )
        if not r.ok:
            raise IndexQueryError(package, r.describe_failure(tail=300))

        # Output lines look like "docker-ce - Docker: the open-source ..."
        for line in r.stdout.splitlines():
            parts = line.split(None, 1)
            if parts and parts[0] == package:
                return True
        return False


class DpkgDatabase(PackageDatabase):
    """Installed state via dpkg-query."""

    def __init__(self, runner: Runner = run_command, timeout: int = PROBE_TIMEOUT):
        self._run = runner
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "dpkg-query"

    def is_available(self) -> bool:
        return shutil.which("dpkg-query") is not None

    def is_installed(self, package: str) -> bool:
        r = self._run(
            ["dpkg-query", "-W", r"-f=${Status}\n", "--", package],
            timeout=self._timeout,
        )
        if r.error:
            logger.warning("Could not query install state of %s: %s", package, r.error)
            return False
        # dpkg-query exits 1 for unknown packages; that is "not installed"
        if r.returncode != 0:
            return False
        # "want flag state", one line per architecture; the selection (install,
        # hold, ...) does not matter, only the state word
        return any(
            line.split()[-1:] == ["installed"] for line in r.stdout.splitlines()
        )


class AptGetInstaller(PackageInstaller):
    """Install packages one at a time with apt-get."""

    def __init__(self, runner: Runner = run_command, use_sudo: bool | None = None):
        self._run = runner
        self._use_sudo = (not _is_root()) if use_sudo is None else use_sudo

    @property
    def name(self) -> str:
        return "apt-get"

    def is_available(self) -> bool:
        if shutil.which("apt-get") is None:
            return False
        return not self._use_sudo or shutil.which("sudo") is not None

    def install(self, package: str) -> InstallResult:
        argv = ["apt-get", "install", "-y", "--", package]
        if self._use_sudo:
            # -n: never prompt; privileges were confirmed up front
            argv = ["sudo", "-n", *argv]

        logger.info("Installing %s", package)
        r = self._run(argv, env_overrides={"DEBIAN_FRONTEND": "noninteractive"})

        if r.ok:
            return InstallResult.installed(
                package,
                output=r.stdout.strip()[-2000:],
                duration_ms=r.elapsed_ms,
            )

        reason = r.describe_failure()
        logger.error("apt-get install %s failed: %s", package, reason)
        return InstallResult.failure(
            package,
            error=reason,
            duration_ms=r.elapsed_ms,
            metadata={"return_code": r.returncode},
        )


class SudoPrivilege(PrivilegeCheck):
    """Root, or passwordless sudo."""

    def __init__(self, runner: Runner = run_command, timeout: int = PROBE_TIMEOUT):
        self._run = runner
        self._timeout = timeout

    @property
    def name(self) -> str:
        return "sudo"

    def is_available(self) -> bool:
        return _is_root() or shutil.which("sudo") is not None

    def has_privilege(self) -> bool:
        if _is_root():
            return True
        r = self._run(["sudo", "-n", "true"], timeout=self._timeout)
        if not r.ok:
            logger.debug("sudo -n true failed: %s", r.describe_failure(tail=200))
        return r.ok


def apt_system(runner: Runner = run_command) -> PackageSystem:
    """Build the real apt-backed PackageSystem."""
    return PackageSystem(
        index=AptCacheIndex(runner),
        database=DpkgDatabase(runner),
        installer=AptGetInstaller(runner),
        privilege=SudoPrivilege(runner),
    )
