"""Tests for LineCoverageChallenge and the line selection policy."""

from __future__ import annotations

import random
from collections.abc import Callable, Iterable
from typing import Any

import pytest

from covquest.adapters.coverage.base import (
    ClassDetails,
    CoverageReportError,
    CoverageTag,
    SourceLine,
)
from covquest.adapters.coverage.jacoco import parse_source_page
from covquest.challenges.base import BuildOutcome
from covquest.challenges.line_coverage import LineCoverageChallenge, select_line

NC = CoverageTag.NOT_COVERED
PC = CoverageTag.PARTIALLY_COVERED
FC = CoverageTag.FULLY_COVERED

_MAIN = {"branch": "main"}
_OK = BuildOutcome.SUCCESS


def _lines(tags: Iterable[CoverageTag]) -> list[SourceLine]:
    return [
        SourceLine(line_number=n, tag=tag, text=f"int x{n} = {n};")
        for n, tag in enumerate(tags, start=1)
    ]


class _PickLine:
    """Random source stub that picks the candidate with a given line number."""

    def __init__(self, line_number: int) -> None:
        self.line_number = line_number
        self.seen: list[SourceLine] = []

    def choice(self, candidates: list[SourceLine]) -> SourceLine:
        self.seen = list(candidates)
        return next(line for line in candidates if line.line_number == self.line_number)


def _challenge(
    class_details: ClassDetails,
    accessor: Any,
    line_number: int,
    branch: str = "main",
) -> LineCoverageChallenge:
    return LineCoverageChallenge(
        class_details, branch, accessor, rng=_PickLine(line_number)  # type: ignore[arg-type]
    )


# ── Selection ────────────────────────────────────────────────────


class TestSelectLine:
    def test_only_lines_without_full_coverage_are_candidates(self) -> None:
        rng = _PickLine(4)
        lines = _lines([FC, NC, FC, PC, FC])
        selected = select_line(lines, rng)  # type: ignore[arg-type]
        assert selected.line_number == 4
        assert [line.line_number for line in rng.seen] == [2, 4]

    def test_seeded_selection_is_reproducible(self) -> None:
        lines = _lines([NC, FC, NC, PC, NC, FC])
        first = select_line(lines, random.Random(42))
        second = select_line(lines, random.Random(42))
        assert first == second
        assert first.tag is not FC

    def test_all_fully_covered_raises(self) -> None:
        with pytest.raises(ValueError):
            select_line(_lines([FC, FC]), random.Random(0))

    def test_no_lines_raises(self) -> None:
        with pytest.raises(ValueError):
            select_line([])


class TestConstruction:
    def test_freezes_selected_line(
        self, class_details: ClassDetails, make_accessor: Callable[..., Any]
    ) -> None:
        accessor = make_accessor(_lines([FC, NC, PC]), coverage=40.0)
        challenge = _challenge(class_details, accessor, 3)
        assert challenge.line_number == 3
        assert challenge.coverage_type is PC
        assert challenge.line_content == "int x3 = 3;"
        assert challenge.coverage == 40.0
        assert challenge.solved_coverage == 0.0
        assert challenge.branch == "main"
        assert challenge.class_details is class_details

    def test_unreadable_report_raises(
        self, class_details: ClassDetails, make_accessor: Callable[..., Any]
    ) -> None:
        accessor = make_accessor(_lines([NC]))
        accessor.fail_lines = True
        with pytest.raises(CoverageReportError):
            _challenge(class_details, accessor, 1)

    def test_fully_covered_class_raises(
        self, class_details: ClassDetails, make_accessor: Callable[..., Any]
    ) -> None:
        with pytest.raises(ValueError):
            LineCoverageChallenge(class_details, "main", make_accessor(_lines([FC, FC])))


# ── Solving ──────────────────────────────────────────────────────


class TestIsSolved:
    def test_scenario_uncovered_line_gets_covered(
        self,
        class_details: ClassDetails,
        make_accessor: Callable[..., Any],
        clock: Iterable[int],
    ) -> None:
        tags = [FC, NC, FC, FC, NC, FC, FC, NC, FC, FC]
        accessor = make_accessor(_lines(tags), coverage=70.0)
        challenge = LineCoverageChallenge(class_details, "main", accessor, rng=random.Random(7))
        assert challenge.line_number in {2, 5, 8}

        assert challenge.is_solved(_MAIN, _OK) is False
        assert challenge.solved == 0

        accessor.retag(challenge.line_content, FC)
        accessor.coverage = 80.0
        assert challenge.is_solved(_MAIN, _OK) is True
        assert challenge.solved != 0
        assert challenge.solved_coverage == 80.0

    def test_not_covered_line_solved_by_partial_coverage(
        self, class_details: ClassDetails, make_accessor: Callable[..., Any]
    ) -> None:
        accessor = make_accessor(_lines([NC, FC]))
        challenge = _challenge(class_details, accessor, 1)
        accessor.retag("int x1 = 1;", PC)
        assert challenge.is_solved(_MAIN, _OK) is True

    def test_partial_line_not_solved_by_partial_coverage(
        self, class_details: ClassDetails, make_accessor: Callable[..., Any]
    ) -> None:
        accessor = make_accessor(_lines([PC, FC]))
        challenge = _challenge(class_details, accessor, 1)
        assert challenge.is_solved(_MAIN, _OK) is False
        accessor.retag("int x1 = 1;", FC)
        assert challenge.is_solved(_MAIN, _OK) is True

    def test_matches_by_text_not_line_number(
        self, class_details: ClassDetails, make_accessor: Callable[..., Any]
    ) -> None:
        accessor = make_accessor(_lines([NC, FC]))
        challenge = _challenge(class_details, accessor, 1)
        accessor.lines = [
            SourceLine(1, FC, "// new header"),
            SourceLine(7, FC, "int x1 = 1;"),
        ]
        assert challenge.is_solved(_MAIN, _OK) is True

    def test_whitespace_change_does_not_match(
        self, class_details: ClassDetails, make_accessor: Callable[..., Any]
    ) -> None:
        accessor = make_accessor(_lines([NC]))
        challenge = _challenge(class_details, accessor, 1)
        accessor.lines = [SourceLine(1, FC, "int x1 =  1;")]
        assert challenge.is_solved(_MAIN, _OK) is False

    def test_idempotent_after_solve(
        self,
        class_details: ClassDetails,
        make_accessor: Callable[..., Any],
        clock: Iterable[int],
    ) -> None:
        accessor = make_accessor(_lines([NC]), coverage=10.0)
        challenge = _challenge(class_details, accessor, 1)
        accessor.retag("int x1 = 1;", FC)
        accessor.coverage = 55.0
        assert challenge.is_solved(_MAIN, _OK) is True
        solved_at = challenge.solved
        reads = accessor.line_reads

        accessor.retag("int x1 = 1;", NC)
        accessor.coverage = 99.0
        assert challenge.is_solved(_MAIN, BuildOutcome.FAILURE) is True
        assert challenge.solved == solved_at
        assert challenge.solved_coverage == 55.0
        assert accessor.line_reads == reads

    def test_unreadable_report_is_not_solved(
        self, class_details: ClassDetails, make_accessor: Callable[..., Any]
    ) -> None:
        accessor = make_accessor(_lines([NC]))
        challenge = _challenge(class_details, accessor, 1)
        accessor.retag("int x1 = 1;", FC)
        accessor.fail_lines = True
        assert challenge.is_solved(_MAIN, _OK) is False
        assert challenge.solved == 0

        accessor.fail_lines = False
        assert challenge.is_solved(_MAIN, _OK) is True

    def test_unreadable_summary_is_not_solved(
        self, class_details: ClassDetails, make_accessor: Callable[..., Any]
    ) -> None:
        accessor = make_accessor(_lines([NC]))
        challenge = _challenge(class_details, accessor, 1)
        accessor.retag("int x1 = 1;", FC)
        accessor.fail_summary = True
        assert challenge.is_solved(_MAIN, _OK) is False
        assert challenge.solved == 0
        assert challenge.solved_coverage == 0.0


# ── Solvability ──────────────────────────────────────────────────


class TestIsSolvable:
    def test_solvable_while_line_is_open(
        self, class_details: ClassDetails, make_accessor: Callable[..., Any]
    ) -> None:
        accessor = make_accessor(_lines([NC, FC]))
        challenge = _challenge(class_details, accessor, 1)
        assert challenge.is_solvable(_MAIN, _OK) is True
        accessor.retag("int x1 = 1;", PC)
        assert challenge.is_solvable(_MAIN, _OK) is True

    def test_scenario_deleted_line_is_stale(
        self, class_details: ClassDetails, make_accessor: Callable[..., Any]
    ) -> None:
        accessor = make_accessor(_lines([FC, NC, FC]))
        challenge = _challenge(class_details, accessor, 2)
        accessor.remove("int x2 = 2;")
        assert challenge.is_solvable(_MAIN, _OK) is False
        assert challenge.is_solved(_MAIN, _OK) is False

    def test_line_covered_by_other_means_is_not_solvable(
        self, class_details: ClassDetails, make_accessor: Callable[..., Any]
    ) -> None:
        accessor = make_accessor(_lines([NC]))
        challenge = _challenge(class_details, accessor, 1)
        accessor.retag("int x1 = 1;", FC)
        assert challenge.is_solvable(_MAIN, _OK) is False

    def test_other_branch_is_always_solvable(
        self, class_details: ClassDetails, make_accessor: Callable[..., Any]
    ) -> None:
        accessor = make_accessor(_lines([NC]))
        challenge = _challenge(class_details, accessor, 1, branch="feature")
        accessor.remove("int x1 = 1;")
        accessor.fail_lines = True
        assert challenge.is_solvable(_MAIN, _OK) is True
        assert challenge.is_solvable({}, _OK) is True

    def test_unreadable_report_is_not_solvable(
        self, class_details: ClassDetails, make_accessor: Callable[..., Any]
    ) -> None:
        accessor = make_accessor(_lines([NC]))
        challenge = _challenge(class_details, accessor, 1)
        accessor.fail_lines = True
        assert challenge.is_solvable(_MAIN, _OK) is False


# ── Score and rendering ──────────────────────────────────────────


@pytest.mark.parametrize(
    ("coverage", "tag", "expected"),
    [
        (10.0, NC, 2),
        (79.99, NC, 2),
        (80.0, NC, 3),
        (95.0, NC, 3),
        (10.0, PC, 3),
        (90.0, PC, 3),
    ],
)
def test_score(
    class_details: ClassDetails,
    make_accessor: Callable[..., Any],
    coverage: float,
    tag: CoverageTag,
    expected: int,
) -> None:
    accessor = make_accessor([SourceLine(1, tag, "x++;")], coverage=coverage)
    challenge = _challenge(class_details, accessor, 1)
    assert challenge.score == expected


def test_description_and_tool_tip(
    class_details: ClassDetails, make_accessor: Callable[..., Any]
) -> None:
    challenge = _challenge(class_details, make_accessor(_lines([FC, NC])), 2)
    assert str(challenge) == (
        "Write a test to cover line 2 in class Calculator in package com.example "
        "(created for branch main)"
    )
    assert challenge.is_tool_tip is True
    assert challenge.tool_tip_text == "Line content: int x2 = 2;"


def test_xml_attributes(
    class_details: ClassDetails, make_accessor: Callable[..., Any], clock: Iterable[int]
) -> None:
    accessor = make_accessor(_lines([FC, PC]), coverage=62.5)
    challenge = _challenge(class_details, accessor, 2)
    assert challenge.print_to_xml("", "  ") == (
        '  <LineCoverageChallenge created="1000" solved="0" class="Calculator" '
        'package="com.example" branch="main" coverage="62.50" coverageAtSolved="0.00" '
        'line="2" coverageType="pc"/>'
    )


def _page(line: str) -> str:
    return f'<pre><span class="fc" id="L1">int a = 1;</span>\n{line}</pre>'


class TestRenderedLineIdentity:
    def test_reindented_line_still_matches(
        self, class_details: ClassDetails, make_accessor: Callable[..., Any]
    ) -> None:
        accessor = make_accessor(
            parse_source_page(_page('<span class="nc" id="L2">    return a+b;</span>'))
        )
        challenge = _challenge(class_details, accessor, 2)

        accessor.lines = parse_source_page(
            _page('<span class="fc" id="L3">\t        return  a+b;  </span>')
        )

        assert challenge.is_solved(_MAIN, _OK) is True

    def test_whitespace_between_tokens_breaks_identity(
        self, class_details: ClassDetails, make_accessor: Callable[..., Any]
    ) -> None:
        accessor = make_accessor(
            parse_source_page(_page('<span class="nc" id="L2">    return a+b;</span>'))
        )
        challenge = _challenge(class_details, accessor, 2)

        accessor.lines = parse_source_page(
            _page('<span class="nc" id="L2">    return a + b;</span>')
        )

        assert challenge.is_solvable(_MAIN, _OK) is False
        assert challenge.is_solved(_MAIN, _OK) is False
