"""Challenge solved by the next successful build."""

from __future__ import annotations

from covquest.challenges.base import BuildOutcome, Challenge, EvaluationContext


class BuildChallenge(Challenge):
    """Let the build run successfully.

    Solved by the first build whose outcome is :attr:`BuildOutcome.SUCCESS`;
    always solvable, since a future build can always succeed.
    """

    @property
    def score(self) -> int:
        return 1

    def is_solved(self, context: EvaluationContext, outcome: BuildOutcome) -> bool:
        if self.is_already_solved:
            return True
        if outcome != BuildOutcome.SUCCESS:
            return False
        self._mark_solved()
        return True

    def is_solvable(self, context: EvaluationContext, outcome: BuildOutcome) -> bool:
        return True

    def __str__(self) -> str:
        return "Let the Build run successfully"
