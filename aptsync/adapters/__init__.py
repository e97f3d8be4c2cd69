"""Adapters — bindings to apt, dpkg, sudo and git.

Public re-exports for convenient access.
"""

from aptsync.adapters.base import (
    PackageDatabase,
    PackageIndex,
    PackageInstaller,
    PackageSystem,
    PrivilegeCheck,
)
from aptsync.adapters.mock import MockPackageSystem

__all__ = [
    "MockPackageSystem",
    "PackageDatabase",
    "PackageIndex",
    "PackageInstaller",
    "PackageSystem",
    "PrivilegeCheck",
]
