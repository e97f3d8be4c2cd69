"""
Install use case — reconcile the system against a package file.

This is the top-level orchestrator for ``aptsync install``: it builds
the package system, runs the reconciler, and folds every expected
failure into an InstallRunResult. It never raises for those.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from pathlib import Path

from aptsync.adapters.base import PackageSystem
from aptsync.core.engine.reconciler import (
    ProgressCallback,
    ReconcileReport,
    Reconciler,
    ReconcilerConfig,
)
from aptsync.core.errors import (
    AptSyncError,
    AvailabilityError,
    InstallError,
)

logger = logging.getLogger(__name__)


@dataclass
class InstallRunResult:
    """Result of running the installer."""

    packages_file: Path | None = None
    report: ReconcileReport | None = None
    error: str | None = None
    error_kind: str | None = None

    # availability failures
    missing: list[str] = field(default_factory=list)
    errored: dict[str, str] = field(default_factory=dict)

    # install failure
    failed_package: str | None = None
    installed_before_failure: list[str] = field(default_factory=list)

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        result: dict = {"packages_file": str(self.packages_file) if self.packages_file else None}
        if self.report:
            result["report"] = self.report.to_dict()
        if self.error:
            result["error"] = self.error
            result["error_kind"] = self.error_kind
        if self.missing or self.errored:
            result["missing"] = self.missing
            result["errored"] = self.errored
        if self.failed_package:
            result["failed_package"] = self.failed_package
            result["installed_before_failure"] = self.installed_before_failure
        return result


def default_system(mock_mode: bool = False) -> PackageSystem:
    """The apt backend, or a permissive in-memory mock."""
    if mock_mode:
        from aptsync.adapters.mock import MockPackageSystem

        return MockPackageSystem().system()

    from aptsync.adapters.packages.apt import apt_system

    return apt_system()


def run_install(
    packages_file: Path,
    skip_availability_check: bool = False,
    dry_run: bool = False,
    mock_mode: bool = False,
    system: PackageSystem | None = None,
    progress: ProgressCallback | None = None,
) -> InstallRunResult:
    """Install every package in the file that is not installed yet.

    Args:
        packages_file: Path to the YAML package file.
        skip_availability_check: Skip the upstream index check.
        dry_run: Plan but don't install.
        mock_mode: Use the in-memory mock backend (no real execution).
        system: Optional pre-built package system (overrides mock_mode).
        progress: Optional per-package event callback.

    Returns:
        InstallRunResult with the reconcile report or the error.
    """
    result = InstallRunResult(packages_file=packages_file)

    if system is None:
        system = default_system(mock_mode)

    config = ReconcilerConfig(
        packages_file=packages_file,
        skip_availability_check=skip_availability_check,
        dry_run=dry_run,
    )
    reconciler = Reconciler(config, system, progress=progress)

    try:
        result.report = reconciler.run()
    except AvailabilityError as e:
        result.missing = e.missing
        result.errored = e.errored
        _set_error(result, e)
    except InstallError as e:
        result.failed_package = e.package
        result.installed_before_failure = e.installed
        _set_error(result, e)
    except AptSyncError as e:
        _set_error(result, e)

    return result


def _set_error(result: InstallRunResult, error: AptSyncError) -> None:
    logger.debug("Install run failed (%s): %s", error.kind, error)
    result.error = str(error)
    result.error_kind = error.kind
