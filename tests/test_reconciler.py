"""
Tests for the package reconciler — availability, planning, fail-stop install.
"""

from pathlib import Path

import pytest

from aptsync.adapters.mock import MockPackageSystem
from aptsync.core.engine.reconciler import (
    InstallPlan,
    Reconciler,
    ReconcilerConfig,
    compute_plan,
)
from aptsync.core.errors import (
    AvailabilityError,
    ConfigError,
    InstallError,
    PreconditionError,
)


def _reconciler(path: Path, mock: MockPackageSystem, **kwargs) -> Reconciler:
    return Reconciler(ReconcilerConfig(packages_file=path, **kwargs), mock.system())


# ── Planning ─────────────────────────────────────────────────────────


class TestComputePlan:
    def test_nothing_installed_is_full_plan(self):
        packages = ["docker-ce", "curl", "jq", "git"]
        plan = compute_plan(packages, set())
        assert plan.packages == packages
        assert plan.already_installed == []

    def test_difference_preserves_order(self):
        plan = compute_plan(["a", "b", "c", "d"], {"c", "a"})
        assert plan.packages == ["b", "d"]
        assert plan.already_installed == ["a", "c"]

    def test_all_installed_is_empty(self):
        plan = compute_plan(["curl", "wget"], {"curl", "wget"})
        assert plan.is_empty
        assert len(plan) == 0

    def test_empty_list(self):
        assert compute_plan([], {"curl"}).is_empty


# ── Availability ─────────────────────────────────────────────────────


class TestCheckAvailability:
    def test_all_available(self, tmp_path: Path):
        mock = MockPackageSystem(index=["a", "b"])
        r = _reconciler(tmp_path / "p.yaml", mock)
        assert r.check_availability(["a", "b"]) == ["a", "b"]

    def test_reports_every_missing_package(self, tmp_path: Path):
        mock = MockPackageSystem(index=["b", "d"])
        r = _reconciler(tmp_path / "p.yaml", mock)

        with pytest.raises(AvailabilityError) as exc:
            r.check_availability(["a", "b", "c", "d"])

        assert exc.value.missing == ["a", "c"]
        assert exc.value.errored == {}
        assert "a, c" in str(exc.value)

    def test_queries_each_package_once(self, tmp_path: Path):
        mock = MockPackageSystem(index=["b"])
        r = _reconciler(tmp_path / "p.yaml", mock)
        with pytest.raises(AvailabilityError):
            r.check_availability(["a", "b", "c"])
        assert mock.calls("exists") == ["a", "b", "c"]

    def test_query_error_reported_separately(self, tmp_path: Path):
        mock = MockPackageSystem(index=["a", "b"])
        mock.set_query_error("b", "apt-cache exited 100")
        r = _reconciler(tmp_path / "p.yaml", mock)

        with pytest.raises(AvailabilityError) as exc:
            r.check_availability(["a", "b", "c"])

        assert exc.value.missing == ["c"]
        assert exc.value.errored == {"b": "apt-cache exited 100"}
        assert exc.value.unavailable == ["c", "b"]


# ── Installed state ──────────────────────────────────────────────────


class TestDetectInstalled:
    def test_subset_in_list_order(self, tmp_path: Path):
        mock = MockPackageSystem(installed=["wget", "curl"])
        r = _reconciler(tmp_path / "p.yaml", mock)
        assert r.detect_installed(["curl", "git", "wget"]) == ["curl", "wget"]

    def test_nothing_installed(self, tmp_path: Path):
        r = _reconciler(tmp_path / "p.yaml", MockPackageSystem())
        assert r.detect_installed(["curl"]) == []


# ── Execution ────────────────────────────────────────────────────────


class TestExecutePlan:
    def test_installs_in_order(self, tmp_path: Path):
        mock = MockPackageSystem()
        r = _reconciler(tmp_path / "p.yaml", mock)
        results = r.execute_plan(InstallPlan(packages=["p1", "p2", "p3"]))
        assert [x.package for x in results] == ["p1", "p2", "p3"]
        assert all(x.ok for x in results)
        assert mock.install_calls == ["p1", "p2", "p3"]

    def test_stops_at_first_failure(self, tmp_path: Path):
        mock = MockPackageSystem()
        mock.set_failure("p2", "dpkg returned an error code (1)")
        r = _reconciler(tmp_path / "p.yaml", mock)

        results = r.execute_plan(InstallPlan(packages=["p1", "p2", "p3"]))

        assert len(results) == 2
        assert results[0].package == "p1" and results[0].ok
        assert results[1].package == "p2" and results[1].failed
        assert "p3" not in mock.install_calls

    def test_empty_plan_does_nothing(self, tmp_path: Path):
        mock = MockPackageSystem()
        r = _reconciler(tmp_path / "p.yaml", mock)
        assert r.execute_plan(InstallPlan()) == []
        assert mock.install_calls == []


# ── Preconditions ────────────────────────────────────────────────────


class TestPreconditions:
    def test_unprivileged_fails(self, write_packages):
        mock = MockPackageSystem(privileged=False)
        r = _reconciler(write_packages("curl"), mock)
        with pytest.raises(PreconditionError, match="sudo"):
            r.run()
        assert mock.calls("exists") == []
        assert mock.install_calls == []

    def test_missing_tools_fail(self, write_packages):
        mock = MockPackageSystem(available=False)
        r = _reconciler(write_packages("curl"), mock)
        with pytest.raises(PreconditionError, match="not available"):
            r.run()

    def test_dry_run_needs_no_privilege(self, write_packages):
        mock = MockPackageSystem(privileged=False)
        r = _reconciler(write_packages("curl"), mock, dry_run=True)
        report = r.run()
        assert report.plan.packages == ["curl"]
        assert mock.calls("has_privilege") == []


# ── Full run ─────────────────────────────────────────────────────────


class TestRun:
    def test_installs_missing(self, write_packages):
        mock = MockPackageSystem(installed=["curl"])
        report = _reconciler(write_packages("curl", "wget", "jq"), mock).run()
        assert report.installed == ["curl"]
        assert report.plan.packages == ["wget", "jq"]
        assert report.newly_installed == ["wget", "jq"]
        assert report.status == "ok"
        assert mock.install_calls == ["wget", "jq"]

    def test_idempotent(self, write_packages):
        path = write_packages("docker-ce", "docker-compose", "curl")
        mock = MockPackageSystem()

        first = _reconciler(path, mock).run()
        assert first.plan.packages == ["docker-ce", "docker-compose", "curl"]

        mock.reset()
        second = _reconciler(path, mock).run()
        assert second.plan.is_empty
        assert second.results == []
        assert mock.install_calls == []

    def test_all_installed_makes_no_install_calls(self, write_packages):
        mock = MockPackageSystem(installed=["curl", "wget"])
        report = _reconciler(write_packages("curl", "wget"), mock).run()
        assert report.plan.is_empty
        assert mock.install_calls == []
        assert report.status == "ok"

    def test_unavailable_package_blocks_install(self, write_packages):
        mock = MockPackageSystem(index=["curl"])
        r = _reconciler(write_packages("curl", "foo-nonexistent"), mock)
        with pytest.raises(AvailabilityError) as exc:
            r.run()
        assert exc.value.missing == ["foo-nonexistent"]
        assert mock.install_calls == []
        assert mock.calls("is_installed") == []

    def test_skip_check_omits_index_queries(self, write_packages):
        mock = MockPackageSystem(index=[])
        report = _reconciler(write_packages("curl"), mock, skip_availability_check=True).run()
        assert mock.calls("exists") == []
        assert report.available is None
        assert not report.availability_checked
        assert mock.install_calls == ["curl"]

    def test_skip_check_fails_mid_install(self, write_packages):
        mock = MockPackageSystem()
        mock.set_failure("typo-pkg", "E: Unable to locate package typo-pkg")
        r = _reconciler(
            write_packages("curl", "typo-pkg", "wget"), mock, skip_availability_check=True
        )

        with pytest.raises(InstallError) as exc:
            r.run()

        assert exc.value.package == "typo-pkg"
        assert exc.value.installed == ["curl"]
        assert "Unable to locate" in exc.value.reason
        assert mock.install_calls == ["curl", "typo-pkg"]

    def test_dry_run_installs_nothing(self, write_packages):
        mock = MockPackageSystem()
        report = _reconciler(write_packages("curl", "wget"), mock, dry_run=True).run()
        assert report.plan.packages == ["curl", "wget"]
        assert report.status == "planned"
        assert mock.install_calls == []

    def test_malformed_file_stops_everything(self, write_packages):
        mock = MockPackageSystem()
        r = _reconciler(write_packages(content="pkgs: [curl]\n"), mock)
        with pytest.raises(ConfigError):
            r.run()
        assert mock.call_log == []

    def test_progress_events(self, write_packages):
        events = []
        mock = MockPackageSystem(installed=["curl"])
        config = ReconcilerConfig(packages_file=write_packages("curl", "wget"))
        Reconciler(config, mock.system(), progress=lambda e, p, d: events.append((e, p))).run()

        assert events == [
            ("availability", ""),
            ("checking", "curl"),
            ("checking", "wget"),
            ("detecting", ""),
            ("not_installed", "wget"),
            ("planned", "wget"),
            ("install", ""),
            ("installing", "wget"),
            ("installed", "wget"),
        ]

    def test_report_to_dict(self, write_packages):
        mock = MockPackageSystem(installed=["curl"])
        report = _reconciler(write_packages("curl", "wget"), mock).run()
        data = report.to_dict()
        assert data["status"] == "ok"
        assert data["already_installed"] == ["curl"]
        assert data["plan"] == ["wget"]
        assert data["results"][0]["package"] == "wget"
        assert data["results"][0]["status"] == "installed"
