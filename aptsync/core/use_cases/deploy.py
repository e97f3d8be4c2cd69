"""
Deploy use case — stage everything, commit with a timestamp, push.

    git add .
    git commit -m "Deployment attempt on 2025-01-27 14:03:11"
    git push origin main

Stops at the first failing step.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field
from datetime import datetime
from pathlib import Path

from aptsync.adapters.vcs.git import GitRepo
from aptsync.core.errors import DeployError

logger = logging.getLogger(__name__)

DEFAULT_REMOTE = "origin"
DEFAULT_BRANCH = "main"


def deployment_message(now: datetime | None = None) -> str:
    stamp = (now or datetime.now()).strftime("%Y-%m-%d %H:%M:%S")
    return f"Deployment attempt on {stamp}"


@dataclass
class DeployResult:
    """Result of a deploy."""

    repo: Path | None = None
    remote: str = DEFAULT_REMOTE
    branch: str = DEFAULT_BRANCH
    message: str = ""
    steps_completed: list[str] = field(default_factory=list)
    failed_step: str | None = None
    error: str | None = None

    @property
    def ok(self) -> bool:
        return self.error is None

    def to_dict(self) -> dict:
        result: dict = {
            "repo": str(self.repo) if self.repo else None,
            "remote": self.remote,
            "branch": self.branch,
            "message": self.message,
            "steps_completed": self.steps_completed,
        }
        if self.error:
            result["error"] = self.error
            result["failed_step"] = self.failed_step
        return result


def run_deploy(
    repo_dir: Path,
    remote: str = DEFAULT_REMOTE,
    branch: str = DEFAULT_BRANCH,
    message: str | None = None,
    repo: GitRepo | None = None,
) -> DeployResult:
    """Commit all changes in ``repo_dir`` and push them.

    Args:
        repo_dir: Working tree to deploy.
        remote: Remote to push to.
        branch: Branch to push.
        message: Commit message (default: timestamped deployment message).
        repo: Optional pre-built GitRepo (for tests).

    Returns:
        DeployResult with the completed steps or the failing one.
    """
    if repo is None:
        repo = GitRepo(repo_dir)

    result = DeployResult(
        repo=repo_dir,
        remote=remote,
        branch=branch,
        message=message or deployment_message(),
    )

    if not repo.is_available():
        result.failed_step = "git"
        result.error = "git is not installed"
        return result

    steps = [
        ("add", repo.add_all),
        ("commit", lambda: repo.commit(result.message)),
        ("push", lambda: repo.push(remote, branch)),
    ]

    try:
        for step, op in steps:
            r = op()
            if not r.ok:
                raise DeployError(step, r.describe_failure(tail=500))
            result.steps_completed.append(step)
    except DeployError as e:
        logger.error("%s", e)
        result.failed_step = e.step
        result.error = str(e)

    return result
