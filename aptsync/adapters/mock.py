"""
Mock package system — in-memory test double for all four capabilities.

Used in mock mode to simulate a package system without touching apt.
Installing a package adds it to the installed set, so a second run
against the same mock sees it as already installed.
"""

from __future__ import annotations

from collections.abc import Iterable

from aptsync.adapters.base import (
    PackageDatabase,
    PackageIndex,
    PackageInstaller,
    PackageSystem,
    PrivilegeCheck,
)
from aptsync.core.errors import IndexQueryError
from aptsync.core.models.package import InstallResult


class MockPackageSystem(PackageIndex, PackageDatabase, PackageInstaller, PrivilegeCheck):
    """Universal mock backend.

    By default every package exists upstream, nothing is installed,
    installs succeed and the process is privileged.

    Args:
        index: Package names that exist upstream. ``None`` means all do.
        installed: Package names already installed.
        privileged: Result of the privilege check.
        available: Result of ``is_available()`` for every capability.
    """

    def __init__(
        self,
        index: Iterable[str] | None = None,
        installed: Iterable[str] = (),
        privileged: bool = True,
        available: bool = True,
        adapter_name: str = "mock",
    ):
        self._name = adapter_name
        self._index = None if index is None else set(index)
        self._installed = set(installed)
        self._privileged = privileged
        self._available = available
        self._failures: dict[str, str] = {}
        self._query_errors: dict[str, str] = {}
        self._call_log: list[tuple[str, str]] = []

    @property
    def name(self) -> str:
        return self._name

    @property
    def call_log(self) -> list[tuple[str, str]]:
        """Every call received, as ``(operation, package)`` pairs."""
        return self._call_log

    @property
    def install_calls(self) -> list[str]:
        """Packages passed to ``install()``, in call order."""
        return [pkg for op, pkg in self._call_log if op == "install"]

    @property
    def installed_packages(self) -> set[str]:
        return set(self._installed)

    def calls(self, operation: str) -> list[str]:
        """Packages passed to the given operation, in call order."""
        return [pkg for op, pkg in self._call_log if op == operation]

    # ── Configuration ───────────────────────────────────────────

    def set_failure(self, package: str, error: str = "Mock install failure") -> None:
        """Configure a specific package to fail to install."""
        self._failures[package] = error

    def set_query_error(self, package: str, error: str = "Mock index failure") -> None:
        """Configure the index query for a package to error out."""
        self._query_errors[package] = error

    def reset(self) -> None:
        """Clear call log, failures and query errors."""
        self._call_log.clear()
        self._failures.clear()
        self._query_errors.clear()

    def system(self) -> PackageSystem:
        """This mock, in every capability slot."""
        return PackageSystem(index=self, database=self, installer=self, privilege=self)

    # ── Capabilities ────────────────────────────────────────────

    def is_available(self) -> bool:
        return self._available

    def exists(self, package: str) -> bool:
        self._call_log.append(("exists", package))
        if package in self._query_errors:
            raise IndexQueryError(package, self._query_errors[package])
        return self._index is None or package in self._index

    def is_installed(self, package: str) -> bool:
        self._call_log.append(("is_installed", package))
        return package in self._installed

    def install(self, package: str) -> InstallResult:
        self._call_log.append(("install", package))
        if package in self._failures:
            return InstallResult.failure(
                package, error=self._failures[package], metadata={"mock": True}
            )
        self._installed.add(package)
        return InstallResult.installed(
            package, output=f"[mock] installed {package}", metadata={"mock": True}
        )

    def has_privilege(self) -> bool:
        self._call_log.append(("has_privilege", ""))
        return self._privileged
