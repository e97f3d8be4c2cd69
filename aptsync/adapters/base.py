"""
Adapter base — the capability contracts between the reconciler and the system.

The reconciler never shells out itself. It only talks to four narrow
capabilities:

    PackageIndex     — does this package exist upstream?
    PackageDatabase  — is this package installed locally?
    PackageInstaller — install this package
    PrivilegeCheck   — may this process perform privileged actions?

Real implementations live in ``aptsync.adapters.packages.apt``; the
in-memory test double lives in ``aptsync.adapters.mock``.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass

from aptsync.core.models.package import InstallResult


class Capability(ABC):
    """Common surface of every capability adapter."""

    @property
    @abstractmethod
    def name(self) -> str:
        """The adapter identifier, usually the underlying tool (e.g. 'apt-cache')."""

    @abstractmethod
    def is_available(self) -> bool:
        """Check if the underlying tool is available.

        Should be fast and never raise.
        """

    def __repr__(self) -> str:
        return f"<{self.__class__.__name__} name={self.name!r}>"


class PackageIndex(Capability):
    """Query the upstream repository index."""

    @abstractmethod
    def exists(self, package: str) -> bool:
        """Return True if the package exists in the index.

        Raises:
            IndexQueryError: If the query itself failed. A package that is
                confirmed absent returns False instead.
        """


class PackageDatabase(Capability):
    """Query the local package database."""

    @abstractmethod
    def is_installed(self, package: str) -> bool:
        """Return True if the package is installed. MUST never raise."""


class PackageInstaller(Capability):
    """Install a single package."""

    @abstractmethod
    def install(self, package: str) -> InstallResult:
        """Install the package and return the outcome.

        MUST never raise. All failures are captured in the
        InstallResult with status='failed'.
        """


class PrivilegeCheck(Capability):
    """Confirm the process can perform privileged actions."""

    @abstractmethod
    def has_privilege(self) -> bool:
        """Return True if privileged actions are possible. MUST never raise."""


@dataclass(frozen=True)
class PackageSystem:
    """The four capabilities the reconciler needs, bundled."""

    index: PackageIndex
    database: PackageDatabase
    installer: PackageInstaller
    privilege: PrivilegeCheck
