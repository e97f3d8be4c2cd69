"""
Package reconciler — drive the installed package set toward the declared list.

Flow:
    load list → preconditions → availability → installed → plan → execute

Everything is sequential. Installs run one at a time, in list order,
and stop at the first failure: the caller always knows exactly which
package broke and that everything before it succeeded. Nothing is
retried and nothing is rolled back.

Running again after a successful run finds every package installed
and does nothing.
"""

from __future__ import annotations

import logging
from collections.abc import Callable, Collection, Sequence
from dataclasses import dataclass, field
from pathlib import Path

from aptsync.adapters.base import PackageSystem
from aptsync.core.config.loader import load_package_list
from aptsync.core.errors import (
    AvailabilityError,
    IndexQueryError,
    InstallError,
    PreconditionError,
)
from aptsync.core.models.package import InstallResult, PackageList

logger = logging.getLogger(__name__)

# (event, package, detail). Events in run order: availability, checking,
# skip_availability, detecting, not_installed, planned, install, installing,
# installed, install_failed. Phase events carry an empty package.
ProgressCallback = Callable[[str, str, str], None]


def _no_progress(event: str, package: str, detail: str) -> None:
    pass


@dataclass(frozen=True)
class ReconcilerConfig:
    """Explicit run configuration. The reconciler looks nothing up itself."""

    packages_file: Path
    skip_availability_check: bool = False
    dry_run: bool = False


@dataclass
class InstallPlan:
    """Packages still to install, in list order."""

    packages: list[str] = field(default_factory=list)
    already_installed: list[str] = field(default_factory=list)

    @property
    def is_empty(self) -> bool:
        return not self.packages

    def __len__(self) -> int:
        return len(self.packages)


@dataclass
class ReconcileReport:
    """Everything one run found and did."""

    package_list: PackageList
    available: list[str] | None = None      # None when the check was skipped
    installed: list[str] = field(default_factory=list)
    plan: InstallPlan = field(default_factory=InstallPlan)
    results: list[InstallResult] = field(default_factory=list)
    dry_run: bool = False

    @property
    def availability_checked(self) -> bool:
        return self.available is not None

    @property
    def newly_installed(self) -> list[str]:
        return [r.package for r in self.results if r.ok]

    @property
    def failed(self) -> InstallResult | None:
        """The failing result, if the run stopped on one."""
        if self.results and self.results[-1].failed:
            return self.results[-1]
        return None

    @property
    def status(self) -> str:
        if self.failed is not None:
            return "failed"
        if self.dry_run and not self.plan.is_empty:
            return "planned"
        return "ok"

    def to_dict(self) -> dict:
        return {
            "source": self.package_list.source,
            "status": self.status,
            "dry_run": self.dry_run,
            "packages": list(self.package_list.packages),
            "availability_checked": self.availability_checked,
            "available": self.available,
            "already_installed": list(self.installed),
            "plan": list(self.plan.packages),
            "results": [r.model_dump(mode="json") for r in self.results],
        }


def compute_plan(packages: Sequence[str], installed: Collection[str]) -> InstallPlan:
    """Packages not yet installed, preserving list order."""
    plan = InstallPlan()
    for name in packages:
        if name in installed:
            plan.already_installed.append(name)
        else:
            plan.packages.append(name)
    return plan


class Reconciler:
    """Converge the system onto a PackageList.

    Args:
        config: Run configuration.
        system: The four capabilities (index, database, installer, privilege).
        progress: Optional callback receiving per-package events as they happen.
    """

    def __init__(
        self,
        config: ReconcilerConfig,
        system: PackageSystem,
        progress: ProgressCallback | None = None,
    ):
        self.config = config
        self._index = system.index
        self._database = system.database
        self._installer = system.installer
        self._privilege = system.privilege
        self._progress = progress or _no_progress

    # ── Steps ───────────────────────────────────────────────────

    def load_package_list(self) -> PackageList:
        """Read the configured package file.

        Raises:
            ConfigError: If the file is missing or malformed.
        """
        return load_package_list(self.config.packages_file)

    def check_preconditions(self) -> None:
        """Confirm required tools exist and, unless dry-running, privileges.

        Raises:
            PreconditionError: Before any state-changing work begins.
        """
        required = []
        if not self.config.skip_availability_check:
            required.append(self._index)
        required.append(self._database)
        if not self.config.dry_run:
            required.append(self._installer)

        missing = [c.name for c in required if not c.is_available()]
        if missing:
            raise PreconditionError(
                f"Required tool(s) not available: {', '.join(missing)}"
            )

        if self.config.dry_run:
            return

        if not self._privilege.has_privilege():
            raise PreconditionError(
                "Sudo requires password. Please run with sudo privileges "
                "(or configure passwordless sudo)."
            )

    def check_availability(self, packages: Sequence[str]) -> list[str]:
        """Query the index once per package; fail with the full list of misses.

        Returns:
            The available packages, in list order.

        Raises:
            AvailabilityError: If any package is absent or its query errored.
        """
        available: list[str] = []
        missing: list[str] = []
        errored: dict[str, str] = {}

        for name in packages:
            self._progress("checking", name, "")
            try:
                found = self._index.exists(name)
            except IndexQueryError as e:
                logger.warning("Index query failed for %s: %s", name, e.reason)
                errored[name] = e.reason
                continue
            if found:
                available.append(name)
            else:
                missing.append(name)

        if missing or errored:
            raise AvailabilityError(missing, errored)

        logger.info("All %d packages are available", len(available))
        return available

    def detect_installed(self, packages: Sequence[str]) -> list[str]:
        """Packages already installed, in list order. Never fails."""
        installed = []
        for name in packages:
            if self._database.is_installed(name):
                installed.append(name)
            else:
                self._progress("not_installed", name, "")
        return installed

    def execute_plan(self, plan: InstallPlan) -> list[InstallResult]:
        """Install one package at a time; stop at the first failure.

        Returns:
            One result per attempted package. If a package failed, its
            result is last and nothing after it was attempted.
        """
        results: list[InstallResult] = []
        for name in plan.packages:
            self._progress("installing", name, "")
            result = self._installer.install(name)
            results.append(result)

            if result.failed:
                self._progress("install_failed", name, result.error or "")
                logger.error("Stopping: %s failed to install", name)
                break

            self._progress("installed", name, "")
        return results

    # ── Full run ────────────────────────────────────────────────

    def run(self) -> ReconcileReport:
        """Load, check, plan and install.

        Raises:
            ConfigError: Package file missing or malformed.
            PreconditionError: Tools or privileges missing.
            AvailabilityError: Packages missing upstream.
            InstallError: A package failed to install.
        """
        package_list = self.load_package_list()
        packages = list(package_list.packages)

        self.check_preconditions()

        report = ReconcileReport(package_list=package_list, dry_run=self.config.dry_run)

        if self.config.skip_availability_check:
            logger.warning(
                "Skipping availability check: unknown packages will fail mid-installation"
            )
            self._progress("skip_availability", "", "")
        else:
            self._progress("availability", "", "")
            report.available = self.check_availability(packages)

        self._progress("detecting", "", "")
        report.installed = self.detect_installed(packages)
        report.plan = compute_plan(packages, set(report.installed))

        if report.plan.is_empty:
            logger.info("All packages are already installed")
            return report

        for name in report.plan.packages:
            self._progress("planned", name, "")

        if self.config.dry_run:
            logger.info("Dry run: %d packages would be installed", len(report.plan))
            return report

        self._progress("install", "", "")
        report.results = self.execute_plan(report.plan)

        failed = report.failed
        if failed is not None:
            raise InstallError(
                failed.package,
                failed.error or "unknown error",
                installed=report.newly_installed,
                results=report.results,
            )

        logger.info("Installed %d packages", len(report.results))
        return report
