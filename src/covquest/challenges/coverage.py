"""Challenges anchored to a class and the branch they were created on."""

from __future__ import annotations

import logging

from covquest.adapters.coverage.base import (
    ClassDetails,
    CoverageReportAccessor,
    CoverageReportError,
    SourceLine,
)
from covquest.challenges.base import Challenge, EvaluationContext

logger = logging.getLogger(__name__)


class CoverageChallenge(Challenge):
    """Base class for challenges about the coverage of a single class.

    The aggregate coverage of the class is read once at construction
    (:attr:`coverage`) and once more when the challenge is solved
    (:attr:`solved_coverage`).
    """

    def __init__(
        self,
        class_details: ClassDetails,
        branch: str,
        accessor: CoverageReportAccessor,
        constants: EvaluationContext | None = None,
    ) -> None:
        """Initialize the challenge.

        Raises:
            CoverageReportError: If the CSV summary cannot be read.
        """
        super().__init__(constants)
        self._class_details = class_details
        self._branch = branch
        self._accessor = accessor
        self._coverage = accessor.get_coverage_percentage(
            class_details.class_name, class_details.jacoco_csv_file
        )
        self._solved_coverage = 0.0

    @property
    def class_details(self) -> ClassDetails:
        return self._class_details

    @property
    def branch(self) -> str:
        return self._branch

    @property
    def coverage(self) -> float:
        """Line coverage of the class when the challenge was created."""
        return self._coverage

    @property
    def solved_coverage(self) -> float:
        """Line coverage of the class when the challenge was solved."""
        return self._solved_coverage

    def _read_lines(self) -> list[SourceLine] | None:
        """Re-read the current lines of the class, or None if unreadable."""
        try:
            return self._accessor.get_lines(self._class_details.jacoco_source_file)
        except CoverageReportError as exc:
            logger.warning(
                "Could not read coverage of %s: %s", self._class_details.qualified_name, exc
            )
            return None

    def _mark_solved_with_coverage(self) -> bool:
        """Record the solve together with the class's current coverage.

        Returns False, leaving the challenge unsolved, when the summary
        cannot be read.
        """
        try:
            current = self._accessor.get_coverage_percentage(
                self._class_details.class_name, self._class_details.jacoco_csv_file
            )
        except CoverageReportError as exc:
            logger.warning(
                "Could not read coverage summary of %s: %s",
                self._class_details.qualified_name,
                exc,
            )
            return False
        if self._mark_solved():
            self._solved_coverage = current
        return True

    def _xml_attributes(self) -> list[tuple[str, object]]:
        return [
            ("class", self._class_details.class_name),
            ("package", self._class_details.package_name),
            ("branch", self._branch),
            ("coverage", f"{self._coverage:.2f}"),
            ("coverageAtSolved", f"{self._solved_coverage:.2f}"),
        ]
