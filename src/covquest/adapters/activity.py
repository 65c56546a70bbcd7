"""Observe test activity in a repository: test counts and changed test files."""

from __future__ import annotations

import logging
import re
from abc import ABC, abstractmethod
from pathlib import Path

from defusedxml import DefusedXmlException, ElementTree
from defusedxml.ElementTree import ParseError as DefusedParseError

from covquest.utils.git import (
    GitOperationError,
    branch_exists,
    get_files_changed_by_author,
    get_head_commit,
)

logger = logging.getLogger(__name__)

_REPORT_GLOB = "TEST-*.xml"

# Conventional test locations and names across JVM, Python and JS projects.
_TEST_FILE_RE = re.compile(
    r"(^|/)(src/test|tests?|__tests__)/"
    r"|(^|/)Test[A-Z]\w*\.(java|kt)$"
    r"|\w(Test|Tests|IT)\.(java|kt)$"
    r"|(^|/)test_\w+\.py$"
    r"|_test\.(py|go)$"
    r"|\.(test|spec)\.[jt]sx?$"
)


class ActivityProbeError(Exception):
    """Exception raised when repository activity cannot be observed."""


def is_test_file(path: str) -> bool:
    """Return True if *path* looks like a test source file."""
    return bool(_TEST_FILE_RE.search(path.replace("\\", "/")))


class ActivityProbe(ABC):
    """Abstract view on the test activity of a project."""

    @abstractmethod
    def current_commit(self) -> str:
        """Return the commit the workspace is checked out at."""

    @abstractmethod
    def count_tests(self) -> int:
        """Return the number of tests executed by the last build."""

    @abstractmethod
    def changed_test_files(self, user: str, since_commit: str) -> list[str]:
        """Return the test files *user* changed after *since_commit*."""

    @abstractmethod
    def branch_exists(self, branch: str) -> bool:
        """Return True if *branch* still exists in the project."""


def count_junit_tests(reports_dir: Path) -> int:
    """Count ``<testcase>`` elements in the JUnit XML reports of a directory.

    Raises:
        ActivityProbeError: If a report cannot be parsed.
    """
    total = 0
    for report in sorted(reports_dir.glob(_REPORT_GLOB)):
        try:
            root = ElementTree.parse(report).getroot()
        except (DefusedParseError, DefusedXmlException, OSError) as exc:
            raise ActivityProbeError(f"Failed to parse JUnit report {report}: {exc}") from exc
        total += sum(1 for _ in root.iter("testcase"))
    return total


class GitActivityProbe(ActivityProbe):
    """Probe backed by ``git`` and JUnit XML reports (Surefire/Gradle layout)."""

    def __init__(self, repo_path: Path, test_reports_dir: Path) -> None:
        self._repo_path = repo_path
        self._test_reports_dir = test_reports_dir

    def current_commit(self) -> str:
        try:
            return get_head_commit(self._repo_path)
        except GitOperationError as exc:
            raise ActivityProbeError(str(exc)) from exc

    def count_tests(self) -> int:
        if not self._test_reports_dir.is_dir():
            raise ActivityProbeError(f"No test reports directory at {self._test_reports_dir}")
        count = count_junit_tests(self._test_reports_dir)
        logger.debug("Counted %d tests in %s", count, self._test_reports_dir)
        return count

    def changed_test_files(self, user: str, since_commit: str) -> list[str]:
        try:
            changed = get_files_changed_by_author(self._repo_path, user, since_commit)
        except GitOperationError as exc:
            raise ActivityProbeError(str(exc)) from exc
        return [path for path in changed if is_test_file(path)]

    def branch_exists(self, branch: str) -> bool:
        try:
            return branch_exists(self._repo_path, branch)
        except GitOperationError as exc:
            raise ActivityProbeError(str(exc)) from exc
