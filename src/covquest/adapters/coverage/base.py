"""Base classes and data models for coverage report accessors."""

from __future__ import annotations

from abc import ABC, abstractmethod
from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from pathlib import Path


class CoverageReportError(Exception):
    """Exception raised when a coverage artifact is missing or unreadable."""


class CoverageTag(str, Enum):
    """Coverage state of a single source line.

    Values are the CSS classes JaCoCo puts on the line's ``<span>``.
    """

    NOT_COVERED = "nc"
    PARTIALLY_COVERED = "pc"
    FULLY_COVERED = "fc"


@dataclass(frozen=True)
class SourceLine:
    """A single line of a rendered coverage report."""

    line_number: int
    """1-based line number in the source file."""

    tag: CoverageTag
    """Coverage state of the line."""

    text: str
    """Line text, whitespace-normalised."""

    @property
    def is_fully_covered(self) -> bool:
        """Return True if every instruction and branch on the line was hit."""
        return self.tag is CoverageTag.FULLY_COVERED


@dataclass(frozen=True)
class ClassDetails:
    """Identifies a class and the report fragments that describe it.

    Both files are expected to come from the same coverage run; this is
    not checked.
    """

    class_name: str
    """Simple class name (e.g. ``Calculator``)."""

    package_name: str
    """Dotted package name (e.g. ``com.example``)."""

    jacoco_source_file: Path
    """Per-class HTML source page (``<Class>.java.html``)."""

    jacoco_csv_file: Path
    """CSV summary of the whole report (``jacoco.csv``)."""

    @property
    def qualified_name(self) -> str:
        """Return the fully qualified class name."""
        if not self.package_name:
            return self.class_name
        return f"{self.package_name}.{self.class_name}"


class CoverageReportAccessor(ABC):
    """Abstract reader for line-level and aggregate coverage data.

    Implementations raise :class:`CoverageReportError` when an artifact
    cannot be read or parsed.
    """

    @abstractmethod
    def get_lines(self, source_file: Path) -> list[SourceLine]:
        """Return the covered/uncovered lines of a class in source order.

        Lines without coverage information (comments, blank lines,
        declarations) are not included.

        Args:
            source_file: Path to the class's HTML source page.

        Returns:
            The instrumented lines of the class.
        """

    @abstractmethod
    def get_coverage_percentage(self, class_name: str, csv_file: Path) -> float:
        """Return the aggregate line coverage of a class (0.0-100.0).

        Args:
            class_name: Simple class name as it appears in the CSV summary.
            csv_file: Path to the CSV summary.

        Returns:
            Line coverage percentage of the class.
        """

    def get_uncovered_lines(self, source_file: Path) -> list[SourceLine]:
        """Return the lines that are not fully covered."""
        return [line for line in self.get_lines(source_file) if not line.is_fully_covered]
