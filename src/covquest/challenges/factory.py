"""Generate new challenges from the current state of a project."""

from __future__ import annotations

import logging
import random
from typing import TYPE_CHECKING

from covquest.adapters.activity import ActivityProbeError
from covquest.adapters.coverage.base import CoverageReportError
from covquest.challenges.base import BRANCH_KEY, Challenge, EvaluationContext
from covquest.challenges.build import BuildChallenge
from covquest.challenges.line_coverage import LineCoverageChallenge
from covquest.challenges.test import TestChallenge

if TYPE_CHECKING:
    from collections.abc import Sequence

    from covquest.adapters.activity import ActivityProbe
    from covquest.adapters.coverage.base import ClassDetails, CoverageReportAccessor

logger = logging.getLogger(__name__)


class ChallengeFactory:
    """Create challenges for a build.

    All random decisions go through the injected ``rng`` so that callers
    (and tests) can make generation reproducible.
    """

    def __init__(
        self,
        accessor: CoverageReportAccessor,
        *,
        rng: random.Random | None = None,
        probe: ActivityProbe | None = None,
    ) -> None:
        self._accessor = accessor
        self._rng = rng or random.Random()
        self._probe = probe

    def create_line_coverage_challenge(
        self, class_details: ClassDetails, constants: EvaluationContext
    ) -> LineCoverageChallenge:
        """Create a line challenge for a class on the branch in *constants*.

        Raises:
            CoverageReportError: If the report of the class cannot be read.
            ValueError: If the class has no line without full coverage.
        """
        return LineCoverageChallenge(
            class_details,
            constants[BRANCH_KEY],
            self._accessor,
            rng=self._rng,
            constants=constants,
        )

    def create_test_challenge(self, constants: EvaluationContext, user: str) -> TestChallenge:
        """Create a test challenge for *user* on the branch in *constants*.

        Raises:
            ActivityProbeError: If the commit or test count cannot be read.
            ValueError: If the factory has no activity probe.
        """
        if self._probe is None:
            raise ValueError("A test challenge needs an activity probe")
        return TestChallenge(
            current_commit=self._probe.current_commit(),
            test_count=self._probe.count_tests(),
            user=user,
            branch=constants[BRANCH_KEY],
            probe=self._probe,
            constants=constants,
        )

    def generate_challenge(
        self,
        constants: EvaluationContext,
        classes: Sequence[ClassDetails],
        *,
        user: str | None = None,
    ) -> Challenge:
        """Generate one challenge, preferring an uncovered line.

        Classes are tried in random order; the first one with a line that is
        not fully covered yields a :class:`LineCoverageChallenge`. Classes
        whose reports cannot be read are skipped. Without a suitable class a
        :class:`TestChallenge` is created when a probe and *user* are
        available, and a :class:`BuildChallenge` otherwise.
        """
        candidates = list(classes)
        self._rng.shuffle(candidates)
        for class_details in candidates:
            try:
                if not self._accessor.get_uncovered_lines(class_details.jacoco_source_file):
                    continue
                return self.create_line_coverage_challenge(class_details, constants)
            except CoverageReportError as exc:
                logger.warning("Skipping %s: %s", class_details.qualified_name, exc)

        if self._probe is not None and user:
            try:
                return self.create_test_challenge(constants, user)
            except ActivityProbeError as exc:
                logger.warning("Could not create a test challenge: %s", exc)

        logger.info("No class with uncovered lines, falling back to a build challenge")
        return BuildChallenge(constants)
