"""
Domain models — Pydantic types for aptsync.

    from aptsync.core.models import PackageList, InstallResult
"""

from aptsync.core.models.package import InstallResult, PackageList

__all__ = [
    "InstallResult",
    "PackageList",
]
