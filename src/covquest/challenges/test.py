"""Challenge to write a new test on a branch."""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from covquest.adapters.activity import ActivityProbeError
from covquest.challenges.base import BRANCH_KEY, BuildOutcome, Challenge, EvaluationContext

if TYPE_CHECKING:
    from covquest.adapters.activity import ActivityProbe

logger = logging.getLogger(__name__)


class TestChallenge(Challenge):
    """Write a new test in the branch the challenge was created on.

    Solved when the build on that branch runs more tests than it did at
    creation and *user* has changed a test file since *current_commit*.
    Test counts differ between branches, so other branches never solve it.
    """

    __test__ = False

    def __init__(
        self,
        current_commit: str,
        test_count: int,
        user: str,
        branch: str,
        probe: ActivityProbe,
        constants: EvaluationContext | None = None,
    ) -> None:
        super().__init__(constants)
        self._current_commit = current_commit
        self._test_count = test_count
        self._user = user
        self._branch = branch
        self._probe = probe
        self._test_count_solved = 0

    @property
    def current_commit(self) -> str:
        """Commit the workspace was at when the challenge was created."""
        return self._current_commit

    @property
    def branch(self) -> str:
        return self._branch

    @property
    def user(self) -> str:
        return self._user

    @property
    def test_count(self) -> int:
        """Number of tests when the challenge was created."""
        return self._test_count

    @property
    def test_count_solved(self) -> int:
        """Number of tests when the challenge was solved, ``0`` before."""
        return self._test_count_solved

    @property
    def score(self) -> int:
        return 1

    def is_solved(self, context: EvaluationContext, outcome: BuildOutcome) -> bool:
        if self.is_already_solved:
            return True
        if context.get(BRANCH_KEY) != self._branch:
            return False
        try:
            current = self._probe.count_tests()
            if current <= self._test_count:
                return False
            changed = self._probe.changed_test_files(self._user, self._current_commit)
        except ActivityProbeError as exc:
            logger.warning("Could not check test activity on %s: %s", self._branch, exc)
            return False
        if not changed:
            return False
        if self._mark_solved():
            self._test_count_solved = current
        return True

    def is_solvable(self, context: EvaluationContext, outcome: BuildOutcome) -> bool:
        """Solvable while the branch it was created on still exists."""
        try:
            return self._probe.branch_exists(self._branch)
        except ActivityProbeError as exc:
            logger.warning("Could not check branch %s: %s", self._branch, exc)
            return False

    def _xml_attributes(self) -> list[tuple[str, object]]:
        return [("tests", self._test_count), ("testsAtSolved", self._test_count_solved)]

    def __str__(self) -> str:
        return f"Write a new test in branch {self._branch}"
