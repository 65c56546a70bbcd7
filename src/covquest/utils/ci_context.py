"""CI context detection, used to find the branch under evaluation."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import TYPE_CHECKING

from covquest.utils.git import GitOperationError, get_current_branch

if TYPE_CHECKING:
    from pathlib import Path

_ORIGIN_PREFIX = "origin/"
_DETACHED_HEAD = "HEAD"


@dataclass
class CIContext:
    """Detected CI execution context."""

    is_ci: bool
    """Running in CI environment."""

    provider: str | None
    """CI provider name (jenkins, github, gitlab, circleci)."""

    branch: str | None
    """Current branch name."""

    commit_sha: str | None
    """Current commit SHA."""


def _strip_origin(branch: str | None) -> str | None:
    if branch and branch.startswith(_ORIGIN_PREFIX):
        return branch[len(_ORIGIN_PREFIX) :]
    return branch or None


def detect_ci_context() -> CIContext:
    """Detect CI context from environment variables.

    Supports Jenkins, GitHub Actions, GitLab CI, CircleCI and generic CI
    detection.
    """
    # Jenkins (multibranch sets BRANCH_NAME, the git plugin sets GIT_BRANCH)
    if os.getenv("JENKINS_URL"):
        return CIContext(
            is_ci=True,
            provider="jenkins",
            branch=_strip_origin(os.getenv("BRANCH_NAME") or os.getenv("GIT_BRANCH")),
            commit_sha=os.getenv("GIT_COMMIT"),
        )

    if os.getenv("GITHUB_ACTIONS") == "true":
        return CIContext(
            is_ci=True,
            provider="github",
            branch=os.getenv("GITHUB_HEAD_REF") or os.getenv("GITHUB_REF_NAME"),
            commit_sha=os.getenv("GITHUB_SHA"),
        )

    if os.getenv("GITLAB_CI") == "true":
        return CIContext(
            is_ci=True,
            provider="gitlab",
            branch=os.getenv("CI_COMMIT_REF_NAME"),
            commit_sha=os.getenv("CI_COMMIT_SHA"),
        )

    if os.getenv("CIRCLECI") == "true":
        return CIContext(
            is_ci=True,
            provider="circleci",
            branch=os.getenv("CIRCLE_BRANCH"),
            commit_sha=os.getenv("CIRCLE_SHA1"),
        )

    return CIContext(
        is_ci=os.getenv("CI") == "true",
        provider=None,
        branch=None,
        commit_sha=None,
    )


def resolve_branch(project_root: Path, explicit: str | None = None) -> str | None:
    """Return the branch under evaluation.

    Precedence: *explicit*, ``COVQUEST_BRANCH``, CI environment, then the
    checked-out git branch. Returns None when nothing yields a branch.
    """
    if explicit:
        return explicit
    from_env = os.getenv("COVQUEST_BRANCH")
    if from_env:
        return from_env
    ci_branch = detect_ci_context().branch
    if ci_branch:
        return ci_branch
    try:
        branch = get_current_branch(project_root)
    except GitOperationError:
        return None
    if branch == _DETACHED_HEAD:
        return None
    return branch or None
