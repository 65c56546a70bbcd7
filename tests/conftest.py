"""Shared fixtures for challenge tests."""

from __future__ import annotations

from collections.abc import Callable, Iterable
from itertools import count
from pathlib import Path

import pytest

from covquest.adapters.coverage.base import (
    ClassDetails,
    CoverageReportAccessor,
    CoverageReportError,
    CoverageTag,
    SourceLine,
)


class FakeAccessor(CoverageReportAccessor):
    """In-memory accessor whose report can be changed between builds."""

    def __init__(self, lines: Iterable[SourceLine], coverage: float = 50.0) -> None:
        self.lines = list(lines)
        self.coverage = coverage
        self.fail_lines = False
        self.fail_summary = False
        self.line_reads = 0

    def get_lines(self, source_file: Path) -> list[SourceLine]:
        self.line_reads += 1
        if self.fail_lines:
            raise CoverageReportError(f"cannot read {source_file}")
        return list(self.lines)

    def get_coverage_percentage(self, class_name: str, csv_file: Path) -> float:
        if self.fail_summary:
            raise CoverageReportError(f"cannot read {csv_file}")
        return self.coverage

    def retag(self, text: str, tag: CoverageTag) -> None:
        """Change the coverage state of every line with *text*."""
        self.lines = [
            SourceLine(line.line_number, tag, line.text) if line.text == text else line
            for line in self.lines
        ]

    def remove(self, text: str) -> None:
        self.lines = [line for line in self.lines if line.text != text]


@pytest.fixture
def class_details(tmp_path: Path) -> ClassDetails:
    return ClassDetails(
        class_name="Calculator",
        package_name="com.example",
        jacoco_source_file=tmp_path / "com.example" / "Calculator.java.html",
        jacoco_csv_file=tmp_path / "jacoco.csv",
    )


@pytest.fixture
def make_accessor() -> Callable[..., FakeAccessor]:
    return FakeAccessor


@pytest.fixture
def clock(monkeypatch: pytest.MonkeyPatch) -> Iterable[int]:
    """Make ``now_millis`` return 1000, 1001, 1002, ... on successive calls."""
    ticks = count(1000)
    monkeypatch.setattr("covquest.challenges.base.now_millis", lambda: next(ticks))
    return ticks
