"""Git utilities used to observe test activity in a repository."""

from __future__ import annotations

import logging
import re
import shutil
import subprocess
from pathlib import Path

logger = logging.getLogger(__name__)


class GitOperationError(Exception):
    """Exception raised when git operations fail."""


_GIT_REF_MAX_LENGTH = 255
_GIT_REF_UNSAFE = re.compile(r"[\x00-\x1f\x7f \~\^:\?\*\[\]\\;|&$`()<>{}!#'\"]")


def _git_executable() -> str:
    """Resolve the full path to the ``git`` executable."""
    return shutil.which("git") or "git"


def _validate_git_ref(ref: str) -> None:
    """Validate a git ref to prevent injection and malformed inputs.

    Raises:
        GitOperationError: If the ref is invalid.
    """
    if not ref:
        raise GitOperationError("Git ref must not be empty")
    if len(ref) > _GIT_REF_MAX_LENGTH:
        raise GitOperationError(f"Git ref exceeds {_GIT_REF_MAX_LENGTH} characters")
    if _GIT_REF_UNSAFE.search(ref):
        raise GitOperationError(f"Git ref contains unsafe characters: {ref!r}")
    if ref.startswith("-"):
        raise GitOperationError("Git ref must not start with a dash")
    if ".." in ref:
        raise GitOperationError("Git ref must not contain '..'")


def _run_git(repo_path: Path, args: list[str]) -> str:
    try:
        result = subprocess.run(
            [_git_executable(), *args],
            cwd=repo_path,
            capture_output=True,
            text=True,
            check=True,
        )
    except (subprocess.CalledProcessError, OSError) as exc:
        raise GitOperationError(f"git {' '.join(args)} failed: {exc}") from exc
    return result.stdout


def get_current_branch(repo_path: Path) -> str:
    """Get the current git branch name.

    Raises:
        GitOperationError: If the operation fails.
    """
    return _run_git(repo_path, ["rev-parse", "--abbrev-ref", "HEAD"]).strip()


def get_head_commit(repo_path: Path) -> str:
    """Return the full SHA of ``HEAD``.

    Raises:
        GitOperationError: If the operation fails.
    """
    return _run_git(repo_path, ["rev-parse", "HEAD"]).strip()


def branch_exists(repo_path: Path, branch: str) -> bool:
    """Return True if a local or remote-tracking branch named *branch* exists.

    Raises:
        GitOperationError: If *branch* is not a valid ref name.
    """
    _validate_git_ref(branch)
    for ref in (f"refs/heads/{branch}", f"refs/remotes/origin/{branch}"):
        try:
            _run_git(repo_path, ["rev-parse", "--verify", "--quiet", ref])
        except GitOperationError:
            continue
        return True
    return False


def get_files_changed_by_author(repo_path: Path, author: str, since_ref: str) -> list[str]:
    """List files touched by *author* in commits after *since_ref* up to ``HEAD``.

    Args:
        repo_path: Path to git repository.
        author: Author name or e-mail, matched by ``git log --author``.
        since_ref: Exclusive lower bound of the commit range.

    Returns:
        Sorted, de-duplicated repository-relative paths.

    Raises:
        GitOperationError: If the operation fails.
    """
    _validate_git_ref(since_ref)
    output = _run_git(
        repo_path,
        [
            "log",
            f"--author={author}",
            "--name-only",
            "--format=",
            f"{since_ref}..HEAD",
        ],
    )
    files = {line.strip() for line in output.splitlines() if line.strip()}
    logger.debug("%s changed %d files since %s", author, len(files), since_ref)
    return sorted(files)
