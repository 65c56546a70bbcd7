"""XML statistics export for evaluated challenges.

Writes one line per challenge using :meth:`Challenge.print_to_xml`, grouped
into ``<Challenges>`` and ``<RejectedChallenges>`` blocks. Build hosts call
:func:`render_report_xml` or :func:`write_report_xml` (re-exported from
:mod:`covquest`) after :meth:`ChallengeEvaluator.evaluate`.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from collections.abc import Iterable
    from pathlib import Path

    from covquest.challenges.base import Challenge
    from covquest.engine import EvaluationReport

logger = logging.getLogger(__name__)

_INDENT = "    "


def _block(tag: str, entries: list[str], indentation: str) -> list[str]:
    if not entries:
        return [f'{indentation}<{tag} count="0"/>']
    return [
        f'{indentation}<{tag} count="{len(entries)}">',
        *entries,
        f"{indentation}</{tag}>",
    ]


def render_challenges_xml(
    challenges: Iterable[Challenge],
    rejected: Iterable[tuple[Challenge, str]] = (),
    indentation: str = "",
) -> str:
    """Render solved/current and rejected challenges as XML lines.

    Args:
        challenges: Challenges listed without a reason.
        rejected: Rejected challenges paired with the rejection reason.
        indentation: Prefix of the outermost lines.

    Returns:
        Newline-separated XML.
    """
    inner = indentation + _INDENT
    current = [challenge.print_to_xml("", inner) for challenge in challenges]
    rejected_lines = [challenge.print_to_xml(reason, inner) for challenge, reason in rejected]
    lines = [
        *_block("Challenges", current, indentation),
        *_block("RejectedChallenges", rejected_lines, indentation),
    ]
    return "\n".join(lines)


def render_report_xml(report: EvaluationReport, indentation: str = "") -> str:
    """Render an evaluation report; open challenges are listed with solved ones."""
    return render_challenges_xml([*report.solved, *report.open], report.rejected, indentation)


def write_report_xml(report: EvaluationReport, output_path: Path) -> Path:
    """Write :func:`render_report_xml` output to *output_path*."""
    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(render_report_xml(report) + "\n", encoding="utf-8")
    logger.info("Challenge statistics written to %s", output_path)
    return output_path
