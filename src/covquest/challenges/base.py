"""Base contract shared by every challenge.

A challenge is a single unit of gamified work tied to a verifiable build or
coverage condition. The host evaluates each challenge once per build via
:meth:`Challenge.is_solved` and :meth:`Challenge.is_solvable`; a challenge
owns its own state and never touches another instance.
"""

from __future__ import annotations

import time
from abc import ABC, abstractmethod
from collections.abc import Mapping
from enum import Enum
from xml.sax.saxutils import escape

EvaluationContext = Mapping[str, str]
"""Named parameters supplied by the host (at minimum ``branch``)."""

BRANCH_KEY = "branch"
_QUOTE_ENTITY = {'"': "&quot;"}


class BuildOutcome(str, Enum):
    """Result of a completed build."""

    SUCCESS = "success"
    UNSTABLE = "unstable"
    FAILURE = "failure"
    NOT_BUILT = "not_built"
    ABORTED = "aborted"


def now_millis() -> int:
    """Return the current time in milliseconds since the epoch."""
    return time.time_ns() // 1_000_000


class Challenge(ABC):
    """Abstract base class for all challenges.

    ``created`` and ``solved`` are write-once: ``created`` is stamped at
    construction and ``solved`` moves away from ``0`` exactly once, in
    :meth:`_mark_solved`.
    """

    def __init__(self, constants: EvaluationContext | None = None) -> None:
        self._created = now_millis()
        self._solved = 0
        self._constants: dict[str, str] = dict(constants or {})

    @property
    def created(self) -> int:
        """Creation time in epoch milliseconds."""
        return self._created

    @property
    def solved(self) -> int:
        """Solve time in epoch milliseconds, ``0`` while unsolved."""
        return self._solved

    @property
    def is_already_solved(self) -> bool:
        """Return True once the challenge has transitioned to solved."""
        return self._solved != 0

    @property
    def constants(self) -> dict[str, str]:
        """Copy of the evaluation constants the challenge was created with."""
        return dict(self._constants)

    @property
    @abstractmethod
    def score(self) -> int:
        """Points awarded for solving the challenge."""

    @property
    def tool_tip_text(self) -> str:
        """Extra detail shown next to the description (empty by default)."""
        return ""

    @property
    def is_tool_tip(self) -> bool:
        """Return True if :attr:`tool_tip_text` should be shown."""
        return bool(self.tool_tip_text)

    @abstractmethod
    def is_solved(self, context: EvaluationContext, outcome: BuildOutcome) -> bool:
        """Check the solve condition and record the transition to solved.

        Once this has returned True it keeps returning True without
        re-examining anything.
        """

    @abstractmethod
    def is_solvable(self, context: EvaluationContext, outcome: BuildOutcome) -> bool:
        """Return whether the challenge can still be solved."""

    @abstractmethod
    def __str__(self) -> str:
        """Return the task as an imperative sentence."""

    def _mark_solved(self) -> bool:
        """Stamp the solve time; returns False if it was already set."""
        if self._solved != 0:
            return False
        self._solved = now_millis()
        return True

    def _xml_attributes(self) -> list[tuple[str, object]]:
        """Variant attributes written after ``created`` and ``solved``."""
        return []

    def print_to_xml(self, reason: str = "", indentation: str = "") -> str:
        """Render the challenge as a single self-closing XML element.

        Attribute order is fixed: ``created``, ``solved``, variant
        attributes, then ``reason`` when it is not empty.

        Args:
            reason: Why the challenge was rejected, if it was.
            indentation: Prefix for the line.

        Returns:
            The XML line, e.g. ``<BuildChallenge created="1" solved="0"/>``.
        """
        attributes: list[tuple[str, object]] = [
            ("created", self._created),
            ("solved", self._solved),
            *self._xml_attributes(),
        ]
        if reason:
            attributes.append(("reason", reason))
        rendered = " ".join(
            f'{name}="{escape(str(value), _QUOTE_ENTITY)}"' for name, value in attributes
        )
        return f"{indentation}<{type(self).__name__} {rendered}/>"
