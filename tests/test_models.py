"""
Tests for domain models — PackageList and InstallResult.
"""

import pytest
from pydantic import ValidationError

from aptsync.core.models import InstallResult, PackageList


class TestPackageList:
    def test_defaults(self):
        pkgs = PackageList()
        assert pkgs.packages == ()
        assert len(pkgs) == 0

    def test_accepts_list(self):
        pkgs = PackageList(packages=["curl", "wget"])
        assert pkgs.packages == ("curl", "wget")
        assert "curl" in pkgs
        assert "git" not in pkgs

    def test_frozen(self):
        pkgs = PackageList(packages=["curl"])
        with pytest.raises(ValidationError):
            pkgs.packages = ("wget",)

    def test_rejects_string(self):
        with pytest.raises(ValidationError):
            PackageList(packages="curl")

    def test_rejects_duplicates(self):
        with pytest.raises(ValidationError, match="Duplicate"):
            PackageList(packages=["curl", "curl"])

    @pytest.mark.parametrize(
        "name", ["nginx-", "--purge", "-y", "lib*", "Curl", "foo bar", "pkg;rm", ".hidden"]
    )
    def test_rejects_names_apt_would_parse(self, name):
        with pytest.raises(ValidationError, match="Invalid package names"):
            PackageList(packages=["curl", name])

    @pytest.mark.parametrize(
        "name", ["g++", "libstdc++6", "python3.12", "docker-ce", "libc6:i386", "r", "0ad"]
    )
    def test_accepts_debian_names(self, name):
        assert name in PackageList(packages=[name])

    def test_duplicates_after_strip(self):
        with pytest.raises(ValidationError, match="Duplicate"):
            PackageList(packages=["curl", "curl "])


class TestInstallResult:
    def test_installed(self):
        r = InstallResult.installed("curl", output="done")
        assert r.ok
        assert not r.failed
        assert r.status == "installed"
        assert r.error is None

    def test_failure(self):
        r = InstallResult.failure("curl", error="E: Unable to locate package curl")
        assert r.failed
        assert not r.ok
        assert "Unable to locate" in r.error

    def test_serializes(self):
        r = InstallResult.failure("curl", error="boom", duration_ms=12)
        data = r.model_dump(mode="json")
        assert data["package"] == "curl"
        assert data["status"] == "failed"
        assert data["duration_ms"] == 12
