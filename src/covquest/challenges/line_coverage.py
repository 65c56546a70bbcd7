"""Challenge to cover a single, currently uncovered source line.

The target line is identified by its text rather than its number: the
report is re-rendered on every build and unrelated edits shift line
numbers. Runs of whitespace are collapsed before comparing, so re-indenting
the line does not matter. Two consequences follow and are accepted as known
behaviour: adding or removing whitespace between tokens (``a+b`` to
``a + b``) makes the challenge unsolvable, and identical lines within the
class cannot be told apart.
"""

from __future__ import annotations

import logging
import random
from collections.abc import Sequence
from typing import TYPE_CHECKING

from covquest.adapters.coverage.base import CoverageTag, SourceLine
from covquest.challenges.base import BRANCH_KEY, BuildOutcome, EvaluationContext
from covquest.challenges.coverage import CoverageChallenge

if TYPE_CHECKING:
    from covquest.adapters.coverage.base import ClassDetails, CoverageReportAccessor

logger = logging.getLogger(__name__)

HIGH_COVERAGE_THRESHOLD = 80.0
"""Class coverage (percent) from which a line is worth the higher score."""

_HIGH_SCORE = 3
_BASE_SCORE = 2

_SOLVING_TAGS = {
    CoverageTag.NOT_COVERED: frozenset({CoverageTag.FULLY_COVERED, CoverageTag.PARTIALLY_COVERED}),
    CoverageTag.PARTIALLY_COVERED: frozenset({CoverageTag.FULLY_COVERED}),
}
_OPEN_TAGS = frozenset({CoverageTag.NOT_COVERED, CoverageTag.PARTIALLY_COVERED})


def select_line(lines: Sequence[SourceLine], rng: random.Random | None = None) -> SourceLine:
    """Pick a line that is not fully covered, uniformly at random.

    Args:
        lines: Lines of a class in source order.
        rng: Source of randomness; a fresh ``random.Random`` when None.

    Returns:
        The selected line.

    Raises:
        ValueError: If every line is fully covered.
    """
    candidates = [line for line in lines if not line.is_fully_covered]
    if not candidates:
        raise ValueError("No line without full coverage to select")
    return (rng or random.Random()).choice(candidates)


def _contains_text(lines: list[SourceLine], tags: frozenset[CoverageTag], text: str) -> bool:
    return any(line.tag in tags and line.text == text for line in lines)


class LineCoverageChallenge(CoverageChallenge):
    """Write a test that covers a specific line of a class."""

    def __init__(
        self,
        class_details: ClassDetails,
        branch: str,
        accessor: CoverageReportAccessor,
        *,
        rng: random.Random | None = None,
        constants: EvaluationContext | None = None,
    ) -> None:
        """Select the target line from the current report of the class.

        Raises:
            CoverageReportError: If the report of the class cannot be read.
            ValueError: If the class has no line without full coverage.
        """
        super().__init__(class_details, branch, accessor, constants)
        line = select_line(accessor.get_lines(class_details.jacoco_source_file), rng)
        self._line_number = line.line_number
        self._coverage_type = line.tag
        self._line_content = line.text
        logger.debug(
            "Selected line %d (%s) of %s",
            self._line_number,
            self._coverage_type.value,
            class_details.qualified_name,
        )

    @property
    def line_number(self) -> int:
        return self._line_number

    @property
    def line_content(self) -> str:
        return self._line_content

    @property
    def coverage_type(self) -> CoverageTag:
        """Coverage state of the line when it was selected."""
        return self._coverage_type

    @property
    def score(self) -> int:
        if (
            self._coverage >= HIGH_COVERAGE_THRESHOLD
            or self._coverage_type is CoverageTag.PARTIALLY_COVERED
        ):
            return _HIGH_SCORE
        return _BASE_SCORE

    @property
    def tool_tip_text(self) -> str:
        return f"Line content: {self._line_content}"

    def is_solved(self, context: EvaluationContext, outcome: BuildOutcome) -> bool:
        """Solved once the line shows up covered in the current report.

        A not-covered line also counts as solved when it becomes partially
        covered; a partially covered line has to become fully covered.
        """
        if self.is_already_solved:
            return True
        lines = self._read_lines()
        if lines is None:
            return False
        if not _contains_text(lines, _SOLVING_TAGS[self._coverage_type], self._line_content):
            return False
        return self._mark_solved_with_coverage()

    def is_solvable(self, context: EvaluationContext, outcome: BuildOutcome) -> bool:
        """Solvable while the line still exists without full coverage.

        Challenges evaluated on another branch than the one they were
        created on are always considered solvable.
        """
        if self._branch != context.get(BRANCH_KEY):
            return True
        lines = self._read_lines()
        if lines is None:
            return False
        return _contains_text(lines, _OPEN_TAGS, self._line_content)

    def _xml_attributes(self) -> list[tuple[str, object]]:
        return [
            *super()._xml_attributes(),
            ("line", self._line_number),
            ("coverageType", self._coverage_type.value),
        ]

    def __str__(self) -> str:
        return (
            f"Write a test to cover line {self._line_number} in class "
            f"{self._class_details.class_name} in package {self._class_details.package_name} "
            f"(created for branch {self._branch})"
        )
