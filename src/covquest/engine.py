"""Evaluation pass over a set of challenges after a build.

The evaluator is the boundary between challenges and the build host: no
fault raised while evaluating a challenge escapes :meth:`ChallengeEvaluator.evaluate`,
so gamification can never change the outcome of a build. This is the
entry point for build hosts and is re-exported from :mod:`covquest`.
"""

from __future__ import annotations

import logging
import threading
import weakref
from dataclasses import dataclass, field
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Callable, Iterable

    from covquest.challenges.base import BuildOutcome, Challenge, EvaluationContext

logger = logging.getLogger(__name__)

NOT_SOLVABLE_REASON = "Not solvable"


@dataclass
class EvaluationReport:
    """Outcome of evaluating challenges against one build."""

    solved: list[Challenge] = field(default_factory=list)
    """Challenges solved by this build (or earlier)."""

    rejected: list[tuple[Challenge, str]] = field(default_factory=list)
    """Challenges that can no longer be solved, with the reason."""

    open: list[Challenge] = field(default_factory=list)
    """Challenges that are neither solved nor rejected."""

    @property
    def score(self) -> int:
        """Sum of the scores of all solved challenges."""
        return sum(challenge.score for challenge in self.solved)


class ChallengeEvaluator:
    """Evaluate challenges with per-instance serialisation and fault isolation.

    Safe to share between threads: evaluation of any single challenge is
    serialised by a lock owned by the evaluator, while different challenges
    may be evaluated concurrently.
    """

    def __init__(self) -> None:
        self._locks: weakref.WeakKeyDictionary[Challenge, threading.Lock] = (
            weakref.WeakKeyDictionary()
        )
        self._registry_lock = threading.Lock()

    def _lock_for(self, challenge: Challenge) -> threading.Lock:
        with self._registry_lock:
            lock = self._locks.get(challenge)
            if lock is None:
                lock = threading.Lock()
                self._locks[challenge] = lock
            return lock

    def _safe_check(
        self,
        check: Callable[[EvaluationContext, BuildOutcome], bool],
        challenge: Challenge,
        context: EvaluationContext,
        outcome: BuildOutcome,
    ) -> bool:
        try:
            return bool(check(context, outcome))
        except Exception:
            logger.exception("Evaluation of %s failed", type(challenge).__name__)
            return False

    def is_solved(
        self, challenge: Challenge, context: EvaluationContext, outcome: BuildOutcome
    ) -> bool:
        """Serialised, fault-isolated :meth:`Challenge.is_solved`."""
        with self._lock_for(challenge):
            return self._safe_check(challenge.is_solved, challenge, context, outcome)

    def is_solvable(
        self, challenge: Challenge, context: EvaluationContext, outcome: BuildOutcome
    ) -> bool:
        """Serialised, fault-isolated :meth:`Challenge.is_solvable`."""
        with self._lock_for(challenge):
            return self._safe_check(challenge.is_solvable, challenge, context, outcome)

    def evaluate(
        self,
        challenges: Iterable[Challenge],
        context: EvaluationContext,
        outcome: BuildOutcome,
    ) -> EvaluationReport:
        """Sort challenges into solved, rejected and open for this build.

        A challenge is checked for being solved first; only unsolved
        challenges are checked for solvability.
        """
        report = EvaluationReport()
        for challenge in challenges:
            if self.is_solved(challenge, context, outcome):
                logger.info("Solved: %s", challenge)
                report.solved.append(challenge)
            elif not self.is_solvable(challenge, context, outcome):
                logger.info("Rejected: %s", challenge)
                report.rejected.append((challenge, NOT_SOLVABLE_REASON))
            else:
                report.open.append(challenge)
        return report
