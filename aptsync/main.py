"""
aptsync — CLI entrypoint.

Usage:
    python -m aptsync.main --help
    python -m aptsync.main install --file docker_packages.yaml
    python -m aptsync.main check --json
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path

import click

from aptsync import __version__
from aptsync.core.config.loader import DEFAULT_PACKAGES_FILE
from aptsync.core.observability.logging_config import (
    LOG_FILE_ENV,
    LOG_FILE_LEVEL_ENV,
    LOG_LEVEL_ENV,
    resolve_level,
    setup_logging,
)

PACKAGES_FILE_ENV = "APTSYNC_PACKAGES_FILE"

# Accepted as a help flag alongside -h / --help
HELP_ALIAS = "?"


class _HelpAliasMixin:
    """Treat a leading ``?`` argument as ``--help``."""

    def parse_args(self, ctx: click.Context, args: list[str]) -> list[str]:
        if args and args[0] == HELP_ALIAS:
            args = ["--help", *args[1:]]
        return super().parse_args(ctx, args)  # type: ignore[misc]


class HelpAliasCommand(_HelpAliasMixin, click.Command):
    pass


class HelpAliasGroup(_HelpAliasMixin, click.Group):
    command_class = HelpAliasCommand


def _resolve_packages_file(packages_file: Path | None) -> Path:
    return packages_file or Path.cwd() / DEFAULT_PACKAGES_FILE


def _packages_file_option(f):
    return click.option(
        "--file",
        "-f",
        "packages_file",
        type=click.Path(dir_okay=False, path_type=Path),
        default=None,
        envvar=PACKAGES_FILE_ENV,
        show_envvar=True,
        help=f"Package list YAML file (default: ./{DEFAULT_PACKAGES_FILE}).",
    )(f)


@click.group(
    cls=HelpAliasGroup,
    context_settings={"help_option_names": ["-h", "--help"]},
)
@click.version_option(version=__version__, prog_name="aptsync")
@click.option("--verbose", "-v", is_flag=True, help="Enable verbose output.")
@click.option("--quiet", "-q", is_flag=True, help="Suppress progress output.")
@click.option("--debug", is_flag=True, help="Enable debug logging (very verbose).")
@click.pass_context
def cli(ctx: click.Context, verbose: bool, quiet: bool, debug: bool) -> None:
    """aptsync — install the apt packages listed in a YAML file.

    \b
    Example YAML format:
        packages:
          - docker-ce
          - docker-compose

    Help: -h, --help or ?
    """
    ctx.ensure_object(dict)
    ctx.obj["verbose"] = verbose
    ctx.obj["quiet"] = quiet
    ctx.obj["debug"] = debug

    setup_logging(
        level=resolve_level(debug, verbose, quiet, os.environ.get(LOG_LEVEL_ENV)),
        log_file=os.environ.get(LOG_FILE_ENV),
        log_file_level=os.environ.get(LOG_FILE_LEVEL_ENV),
    )


# ── Install ─────────────────────────────────────────────────────


def _progress_printer(quiet: bool):
    """Per-package progress lines for the install command."""
    seen: set[str] = set()

    def emit(event: str, package: str, detail: str) -> None:
        if quiet:
            return
        if event == "planned" and event not in seen:
            click.echo("\n📋 Packages to be installed:")
        seen.add(event)

        if event == "availability":
            click.echo("Verifying package availability...")
        elif event == "checking":
            click.echo(f"Checking package: {package}")
        elif event == "skip_availability":
            click.secho("Skipping package availability check...", fg="yellow")
        elif event == "detecting":
            click.echo("\n📦 Checking for already installed packages...")
        elif event == "not_installed":
            click.echo(f"  ➜ Package not installed: {package}")
        elif event == "planned":
            click.echo(f"  • {package}")
        elif event == "install":
            click.echo("\n🚀 Starting installation...\n")
        elif event == "installing":
            click.echo(f"  ⏳ Installing: {package}")
        elif event == "installed":
            click.secho(f"  ✅ Successfully installed {package}\n", fg="green")
        elif event == "install_failed":
            click.secho(f"  ❌ Failed to install {package}", fg="red")
            for line in detail.splitlines()[-5:]:
                click.echo(f"     │ {line}")

    return emit


@cli.command()
@click.option(
    "--nocheck",
    "skip_check",
    is_flag=True,
    help=(
        "Skip package availability verification. Unknown packages then "
        "fail mid-installation instead of before anything is installed."
    ),
)
@_packages_file_option
@click.option("--dry-run", is_flag=True, help="Show what would be installed, install nothing.")
@click.option("--mock", is_flag=True, help="Use an in-memory package system (no real execution).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def install(
    ctx: click.Context,
    skip_check: bool,
    packages_file: Path | None,
    dry_run: bool,
    mock: bool,
    as_json: bool,
) -> None:
    """Install every listed package that is not installed yet.

    \b
    1. Check that each package exists in the apt repositories
    2. Find which packages are already installed
    3. Install the missing ones, one at a time, stopping at the first failure

    Requires root or passwordless sudo (except with --dry-run).
    """
    from aptsync.core.use_cases.install import run_install

    path = _resolve_packages_file(packages_file)
    quiet = ctx.obj.get("quiet", False) or as_json

    if not quiet:
        mode_label = "[dry-run] " if dry_run else "[mock] " if mock else ""
        click.secho(f"{mode_label}Reading packages from {path}", fg="cyan")

    result = run_install(
        packages_file=path,
        skip_availability_check=skip_check,
        dry_run=dry_run,
        mock_mode=mock,
        progress=_progress_printer(quiet),
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.ok else 1)

    if result.error:
        click.echo()
        if result.error_kind == "availability":
            if result.missing:
                click.secho(
                    "❌ The following packages are not available in apt repositories:",
                    fg="red",
                    bold=True,
                )
                for name in result.missing:
                    click.echo(f"   • {name}")
            if result.errored:
                click.secho("❌ Could not query the apt index for:", fg="red", bold=True)
                for name, reason in result.errored.items():
                    click.echo(f"   • {name}: {reason}")
        elif result.error_kind == "install":
            click.secho(f"❌ {result.failed_package} failed to install", fg="red", bold=True)
            if result.installed_before_failure:
                click.echo(
                    "   Installed before the failure: "
                    + ", ".join(result.installed_before_failure)
                )
            click.echo("   Remaining packages were not attempted.")
        else:
            click.secho(f"❌ {result.error}", fg="red", bold=True)
        click.echo()
        sys.exit(1)

    report = result.report
    assert report is not None  # guaranteed after error check above

    if report.availability_checked and not quiet:
        click.secho("All packages are available in apt repositories", fg="green")

    if report.plan.is_empty:
        click.secho("\n✨ All packages are already installed. Nothing to do.\n", fg="green")
        return

    if dry_run:
        click.secho(
            f"\n📋 {len(report.plan)} package(s) would be installed (dry run, nothing changed)\n",
            fg="yellow",
        )
        return

    click.secho("✨ All packages have been installed successfully\n", fg="green", bold=True)


# ── Check ───────────────────────────────────────────────────────


@cli.command()
@_packages_file_option
@click.option("--mock", is_flag=True, help="Use an in-memory package system (no real execution).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
@click.pass_context
def check(ctx: click.Context, packages_file: Path | None, mock: bool, as_json: bool) -> None:
    """Report availability and install state without changing anything."""
    from aptsync.core.use_cases.check import run_check

    path = _resolve_packages_file(packages_file)
    result = run_check(packages_file=path, mock_mode=mock)

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.ok else 1)

    if result.error:
        click.secho(f"❌ {result.error}", fg="red")
        sys.exit(1)

    installed = set(result.installed)
    click.secho(f"\n🔍 {path} ({len(result.packages)} packages)", fg="cyan", bold=True)
    for name in result.packages:
        if name in result.missing:
            click.secho(f"   ✗ {name} ", fg="red", nl=False)
            click.echo("(not in apt repositories)")
        elif name in result.errored:
            click.secho(f"   ? {name} ", fg="yellow", nl=False)
            click.echo(f"(index query failed: {result.errored[name]})")
        elif name in installed:
            click.secho(f"   ✓ {name} ", fg="green", nl=False)
            click.echo("(installed)")
        else:
            click.secho(f"   ➜ {name} ", fg="white", nl=False)
            click.echo("(will be installed)")

    click.echo()
    if not result.all_available:
        click.secho("   Some packages are not available.", fg="red", bold=True)
        click.echo()
        sys.exit(1)

    if result.plan.is_empty:
        click.secho("   Nothing to install.", fg="green")
    else:
        click.secho(f"   To install: {len(result.plan)}", fg="white", bold=True)
    click.echo()


# ── Deploy ──────────────────────────────────────────────────────


@cli.command()
@click.option(
    "--repo",
    "repo_dir",
    type=click.Path(file_okay=False, path_type=Path),
    default=None,
    help="Working tree to deploy (default: current directory).",
)
@click.option("--remote", default="origin", show_default=True, help="Remote to push to.")
@click.option("--branch", default="main", show_default=True, help="Branch to push.")
@click.option("--message", "-m", default=None, help="Commit message (default: timestamped).")
@click.option("--json-output", "--json", "as_json", is_flag=True, help="Output as JSON.")
def deploy(
    repo_dir: Path | None,
    remote: str,
    branch: str,
    message: str | None,
    as_json: bool,
) -> None:
    """Commit all changes and push them (git add, commit, push)."""
    from aptsync.core.use_cases.deploy import run_deploy

    result = run_deploy(
        repo_dir=repo_dir or Path.cwd(),
        remote=remote,
        branch=branch,
        message=message,
    )

    if as_json:
        click.echo(json.dumps(result.to_dict(), indent=2))
        sys.exit(0 if result.ok else 1)

    for step in result.steps_completed:
        click.secho(f"   ✓ git {step}", fg="green")

    if result.error:
        click.secho(f"   ✗ {result.error}", fg="red")
        sys.exit(1)

    click.secho(f"🚀 Pushed to {remote}/{branch}: {result.message}", fg="green", bold=True)


if __name__ == "__main__":
    cli()
