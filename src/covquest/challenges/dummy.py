"""Placeholder shown when no real challenge could be generated."""

from __future__ import annotations

from covquest.challenges.base import BuildOutcome, Challenge, EvaluationContext


class DummyChallenge(Challenge):
    """Stand-in challenge worth nothing; solved and solvable from the start."""

    def __init__(self, constants: EvaluationContext | None = None) -> None:
        super().__init__(constants)
        self._created = 0

    @property
    def score(self) -> int:
        return 0

    def is_solved(self, context: EvaluationContext, outcome: BuildOutcome) -> bool:
        return True

    def is_solvable(self, context: EvaluationContext, outcome: BuildOutcome) -> bool:
        return True

    def __str__(self) -> str:
        return "You have nothing developed recently"
