"""
Error taxonomy — every failure aptsync surfaces to the user.

The propagation policy is uniformly "surface and halt": nothing here is
retried or recovered locally. Use cases catch these and turn them into
result objects; the CLI turns result objects into exit codes.
"""

from __future__ import annotations

from collections.abc import Iterable, Mapping, Sequence
from typing import Any


class AptSyncError(Exception):
    """Base class for all aptsync errors."""

    kind = "error"


class ConfigError(AptSyncError):
    """Raised when the package file is missing, unreadable or malformed."""

    kind = "config"


class PreconditionError(AptSyncError):
    """Raised when a required tool is missing or privileges are insufficient.

    Always raised before any state-changing work begins.
    """

    kind = "precondition"


class IndexQueryError(AptSyncError):
    """A single index query failed (as opposed to the package being absent)."""

    kind = "index_query"

    def __init__(self, package: str, reason: str):
        self.package = package
        self.reason = reason
        super().__init__(f"Index query failed for '{package}': {reason}")


class AvailabilityError(AptSyncError):
    """One or more requested packages are not in the upstream index.

    Reports the complete list in one message so the package file can be
    fixed in a single pass.
    """

    kind = "availability"

    def __init__(
        self,
        missing: Iterable[str],
        errored: Mapping[str, str] | None = None,
    ):
        self.missing = list(missing)
        self.errored = dict(errored or {})

        parts = []
        if self.missing:
            parts.append(
                "The following packages are not available in apt repositories: "
                + ", ".join(self.missing)
            )
        if self.errored:
            parts.append(
                "Could not query the apt index for: "
                + ", ".join(f"{name} ({reason})" for name, reason in self.errored.items())
            )
        super().__init__("; ".join(parts) or "Package availability check failed")

    @property
    def unavailable(self) -> list[str]:
        """Every package that blocked the run, missing first."""
        return [*self.missing, *self.errored]


class InstallError(AptSyncError):
    """A package failed to install; remaining packages were not attempted."""

    kind = "install"

    def __init__(
        self,
        package: str,
        reason: str,
        installed: Sequence[str] = (),
        results: Sequence[Any] = (),
    ):
        self.package = package
        self.reason = reason
        self.installed = list(installed)
        self.results = list(results)

        msg = f"Failed to install {package}: {reason}"
        if self.installed:
            msg += f" (installed before failure: {', '.join(self.installed)})"
        super().__init__(msg)


class DeployError(AptSyncError):
    """A git step of the deploy command failed."""

    kind = "deploy"

    def __init__(self, step: str, reason: str):
        self.step = step
        self.reason = reason
        super().__init__(f"git {step} failed: {reason}")
