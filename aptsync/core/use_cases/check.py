"""
Check use case — report what ``install`` would do, without doing it.

Read-only: loads the package file, queries the index and the local
package database, and returns the would-be install plan. Unavailable
packages are reported, not raised, so one check shows everything
wrong with the file. No privileges needed.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from aptsync.adapters.base import PackageSystem
from aptsync.core.engine.reconciler import (
    InstallPlan,
    Reconciler,
    ReconcilerConfig,
    compute_plan,
)
from aptsync.core.errors import AptSyncError, AvailabilityError
from aptsync.core.use_cases.install import default_system

logger = logging.getLogger(__name__)


@dataclass
class CheckResult:
    """Result of checking a package file against the system."""

    packages_file: Path | None = None
    packages: list[str] = field(default_factory=list)
    available: list[str] = field(default_factory=list)
    missing: list[str] = field(default_factory=list)
    errored: dict[str, str] = field(default_factory=dict)
    installed: list[str] = field(default_factory=list)
    plan: InstallPlan = field(default_factory=InstallPlan)
    error: str | None = None
    error_kind: str | None = None

    @property
    def all_available(self) -> bool:
        return not self.missing and not self.errored

    @property
    def ok(self) -> bool:
        return self.error is None and self.all_available

    def to_dict(self) -> dict:
        result: dict = {"packages_file": str(self.packages_file) if self.packages_file else None}
        if self.error:
            result["error"] = self.error
            result["error_kind"] = self.error_kind
            return result

        result["packages"] = self.packages
        result["available"] = self.available
        result["missing"] = self.missing
        result["errored"] = self.errored
        result["installed"] = self.installed
        result["plan"] = list(self.plan.packages)
        return result


def run_check(
    packages_file: Path,
    mock_mode: bool = False,
    system: PackageSystem | None = None,
) -> CheckResult:
    """Check availability and installed state of every package in the file.

    Args:
        packages_file: Path to the YAML package file.
        mock_mode: Use the in-memory mock backend.
        system: Optional pre-built package system (overrides mock_mode).

    Returns:
        CheckResult. ``error`` is set only for load or precondition
        failures; missing packages are listed in ``missing``.
    """
    result = CheckResult(packages_file=packages_file)

    if system is None:
        system = default_system(mock_mode)

    reconciler = Reconciler(
        ReconcilerConfig(packages_file=packages_file, dry_run=True),
        system,
    )

    try:
        package_list = reconciler.load_package_list()
        reconciler.check_preconditions()
    except AptSyncError as e:
        result.error = str(e)
        result.error_kind = e.kind
        return result

    result.packages = list(package_list.packages)

    try:
        result.available = reconciler.check_availability(result.packages)
    except AvailabilityError as e:
        result.missing = e.missing
        result.errored = e.errored
        blocked = set(e.unavailable)
        result.available = [p for p in result.packages if p not in blocked]

    result.installed = reconciler.detect_installed(result.packages)
    result.plan = compute_plan(result.packages, set(result.installed))

    logger.info(
        "Check: %d packages, %d missing upstream, %d to install",
        len(result.packages), len(result.missing) + len(result.errored), len(result.plan),
    )
    return result
