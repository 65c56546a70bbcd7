"""Configuration parsing from ``.covquest.yml``."""

from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

from covquest.challenges.base import BRANCH_KEY

logger = logging.getLogger(__name__)

CONFIG_FILENAME = ".covquest.yml"

_ENV_VAR_RE = re.compile(r"\$\{(\w+)\}")

_DEFAULT_JACOCO_RESULTS = "target/site/jacoco"
_DEFAULT_JACOCO_CSV = "target/site/jacoco/jacoco.csv"
_DEFAULT_TEST_REPORTS = "target/surefire-reports"


def _resolve_env_vars(value: str) -> str:
    """Replace ``${VAR_NAME}`` placeholders with environment variable values."""

    def _replace(match: re.Match[str]) -> str:
        var = match.group(1)
        resolved = os.environ.get(var)
        if resolved is None:
            logger.warning("Environment variable %s is not set (referenced in config)", var)
            return ""
        return resolved

    return _ENV_VAR_RE.sub(_replace, value)


def _resolve_dict(data: dict[str, Any]) -> dict[str, Any]:
    """Recursively resolve environment variables in a dictionary."""
    result: dict[str, Any] = {}
    for key, value in data.items():
        if isinstance(value, str):
            result[key] = _resolve_env_vars(value)
        elif isinstance(value, dict):
            result[key] = _resolve_dict(value)
        else:
            result[key] = value
    return result


@dataclass
class ProjectConfig:
    """Project-level configuration."""

    root: str
    """Project root directory."""

    name: str = ""
    """Display name of the project (defaults to the root directory name)."""


@dataclass
class CoverageConfig:
    """Location of the JaCoCo reports."""

    jacoco_results_path: str = _DEFAULT_JACOCO_RESULTS
    """HTML report directory, relative to the project root."""

    jacoco_csv_path: str = _DEFAULT_JACOCO_CSV
    """CSV summary, relative to the project root."""


@dataclass
class ChallengesConfig:
    """Challenge generation configuration."""

    test_reports_path: str = _DEFAULT_TEST_REPORTS
    """Directory with JUnit XML reports, relative to the project root."""

    seed: int | None = None
    """Seed for reproducible challenge generation (None = random)."""


@dataclass
class CovquestConfig:
    """Complete configuration from ``.covquest.yml``."""

    project: ProjectConfig
    """Project configuration."""

    coverage: CoverageConfig = field(default_factory=CoverageConfig)
    """Coverage report configuration."""

    challenges: ChallengesConfig = field(default_factory=ChallengesConfig)
    """Challenge generation configuration."""

    raw: dict[str, Any] = field(default_factory=dict)
    """Raw parsed YAML for extension/debugging."""

    @property
    def root_path(self) -> Path:
        return Path(self.project.root)

    @property
    def jacoco_results_dir(self) -> Path:
        return self.root_path / self.coverage.jacoco_results_path

    @property
    def jacoco_csv_file(self) -> Path:
        return self.root_path / self.coverage.jacoco_csv_path

    @property
    def test_reports_dir(self) -> Path:
        return self.root_path / self.challenges.test_reports_path


def _section(raw: dict[str, Any], name: str) -> dict[str, Any]:
    value = raw.get(name, {})
    return value if isinstance(value, dict) else {}


def _parse_seed(value: Any) -> int | None:
    if value is None or value == "":
        return None
    try:
        return int(value)
    except (TypeError, ValueError):
        logger.warning("Ignoring invalid challenges.seed: %r", value)
        return None


def load_config(root: str | Path) -> CovquestConfig:
    """Load and parse the complete ``.covquest.yml`` configuration.

    Falls back to defaults and environment variables when the YAML file
    is missing or incomplete.
    """
    root_path = Path(root).resolve()
    config_file = root_path / CONFIG_FILENAME

    raw: dict[str, Any] = {}
    if config_file.is_file():
        parsed = yaml.safe_load(config_file.read_text(encoding="utf-8"))
        if isinstance(parsed, dict):
            raw = _resolve_dict(parsed)

    project_raw = _section(raw, "project")
    project = ProjectConfig(
        root=str(project_raw.get("root", root_path)),
        name=str(
            project_raw.get("name", os.environ.get("COVQUEST_PROJECT_NAME", root_path.name))
        ),
    )

    coverage_raw = _section(raw, "coverage")
    coverage = CoverageConfig(
        jacoco_results_path=str(
            coverage_raw.get("jacoco_results_path", _DEFAULT_JACOCO_RESULTS)
        ),
        jacoco_csv_path=str(coverage_raw.get("jacoco_csv_path", _DEFAULT_JACOCO_CSV)),
    )

    challenges_raw = _section(raw, "challenges")
    challenges = ChallengesConfig(
        test_reports_path=str(challenges_raw.get("test_reports_path", _DEFAULT_TEST_REPORTS)),
        seed=_parse_seed(challenges_raw.get("seed")),
    )

    return CovquestConfig(project=project, coverage=coverage, challenges=challenges, raw=raw)


def validate_config(config: CovquestConfig) -> list[str]:
    """Return a list of configuration errors (empty when valid)."""
    errors: list[str] = []
    if not config.root_path.is_dir():
        errors.append(f"project.root does not exist: {config.project.root}")
    if not config.coverage.jacoco_results_path:
        errors.append("coverage.jacoco_results_path must not be empty")
    if not config.coverage.jacoco_csv_path:
        errors.append("coverage.jacoco_csv_path must not be empty")
    if not config.challenges.test_reports_path:
        errors.append("challenges.test_reports_path must not be empty")
    return errors


def build_evaluation_context(config: CovquestConfig, branch: str) -> dict[str, str]:
    """Return the constants handed to challenges for one evaluation."""
    return {
        "projectName": config.project.name,
        BRANCH_KEY: branch,
        "workspace": str(config.root_path),
        "jacocoResultsPath": str(config.jacoco_results_dir),
        "jacocoCSVPath": str(config.jacoco_csv_file),
    }
