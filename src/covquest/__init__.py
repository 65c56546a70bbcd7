"""covquest: turn coverage reports into testing challenges.

A build host drives the engine through :class:`ChallengeEvaluator` and
exports the outcome with :func:`render_report_xml` or
:func:`write_report_xml`.
"""

from covquest.engine import ChallengeEvaluator, EvaluationReport
from covquest.reporters.xml_export import render_report_xml, write_report_xml

__version__ = "0.1.0"

__all__ = [
    "ChallengeEvaluator",
    "EvaluationReport",
    "__version__",
    "render_report_xml",
    "write_report_xml",
]
