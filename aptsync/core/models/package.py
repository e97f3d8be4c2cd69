"""
Package models — the declared package list and per-package install outcomes.

PackageList is what the user asked for. InstallResult is what happened
to one package. Like the adapter contract, installers never raise:
failures are captured in the InstallResult.
"""

from __future__ import annotations

import re
from datetime import UTC, datetime
from typing import Any, Literal

from pydantic import BaseModel, ConfigDict, Field, field_validator


# Debian package name with an optional :arch qualifier. A trailing "-" is
# apt's remove suffix, so it is never part of a name.
PACKAGE_NAME_RE = re.compile(r"[a-z0-9](?:[a-z0-9+.-]*[a-z0-9+.])?(?::[a-z0-9-]+)?")


def _now_iso() -> str:
    """Current UTC time as ISO string."""
    return datetime.now(UTC).isoformat()


class PackageList(BaseModel):
    """An ordered, duplicate-free list of package names.

    Loaded once from the package file and immutable for the rest of
    the run.
    """

    model_config = ConfigDict(frozen=True)

    packages: tuple[str, ...] = ()
    source: str = ""                # file the list was loaded from

    @field_validator("packages", mode="before")
    @classmethod
    def _require_sequence(cls, value: Any) -> Any:
        if not isinstance(value, (list, tuple)):
            raise ValueError(
                f"'packages' must be a list of package names, got {type(value).__name__}"
            )
        return value

    @field_validator("packages")
    @classmethod
    def _validate_names(cls, value: tuple[str, ...]) -> tuple[str, ...]:
        names = tuple(name.strip() for name in value)
        if any(not name for name in names):
            raise ValueError("package names must be non-empty strings")

        invalid = [name for name in names if not PACKAGE_NAME_RE.fullmatch(name)]
        if invalid:
            raise ValueError(f"Invalid package names: {', '.join(invalid)}")

        seen: set[str] = set()
        duplicates: list[str] = []
        for name in names:
            if name in seen and name not in duplicates:
                duplicates.append(name)
            seen.add(name)
        if duplicates:
            raise ValueError(f"Duplicate package names: {', '.join(duplicates)}")

        return names

    def __len__(self) -> int:
        return len(self.packages)

    def __contains__(self, name: object) -> bool:
        return name in self.packages


class InstallResult(BaseModel):
    """Outcome of installing a single package."""

    package: str
    status: Literal["installed", "failed"] = "installed"

    started_at: str = Field(default_factory=_now_iso)
    ended_at: str = Field(default_factory=_now_iso)
    duration_ms: int = 0

    output: str = ""
    error: str | None = None

    metadata: dict[str, Any] = Field(default_factory=dict)

    @property
    def ok(self) -> bool:
        return self.status == "installed"

    @property
    def failed(self) -> bool:
        return self.status == "failed"

    @classmethod
    def installed(cls, package: str, output: str = "", **kwargs: Any) -> InstallResult:
        """Create a success result."""
        return cls(package=package, status="installed", output=output, **kwargs)

    @classmethod
    def failure(cls, package: str, error: str, **kwargs: Any) -> InstallResult:
        """Create a failure result."""
        return cls(package=package, status="failed", error=error, **kwargs)
