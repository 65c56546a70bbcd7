"""Challenge model: contract, variants and generation."""

from covquest.challenges.base import (
    BRANCH_KEY,
    BuildOutcome,
    Challenge,
    EvaluationContext,
    now_millis,
)
from covquest.challenges.build import BuildChallenge
from covquest.challenges.coverage import CoverageChallenge
from covquest.challenges.dummy import DummyChallenge
from covquest.challenges.factory import ChallengeFactory
from covquest.challenges.line_coverage import (
    HIGH_COVERAGE_THRESHOLD,
    LineCoverageChallenge,
    select_line,
)
from covquest.challenges.test import TestChallenge

__all__ = [
    "BRANCH_KEY",
    "HIGH_COVERAGE_THRESHOLD",
    "BuildChallenge",
    "BuildOutcome",
    "Challenge",
    "ChallengeFactory",
    "CoverageChallenge",
    "DummyChallenge",
    "EvaluationContext",
    "LineCoverageChallenge",
    "TestChallenge",
    "now_millis",
    "select_line",
]
