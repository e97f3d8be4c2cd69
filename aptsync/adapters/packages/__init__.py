"""Package manager adapters (apt only)."""

from aptsync.adapters.packages.apt import (
    AptCacheIndex,
    AptGetInstaller,
    DpkgDatabase,
    SudoPrivilege,
    apt_system,
)

__all__ = [
    "AptCacheIndex",
    "AptGetInstaller",
    "DpkgDatabase",
    "SudoPrivilege",
    "apt_system",
]
