"""covquest CLI: top-level command group."""

from __future__ import annotations

import json
import logging
import random
from dataclasses import asdict
from typing import Any

import click
import yaml
from rich.console import Console

from covquest import __version__
from covquest.adapters.activity import GitActivityProbe
from covquest.adapters.coverage.base import CoverageReportError
from covquest.adapters.coverage.jacoco import (
    JaCoCoReportAccessor,
    find_class_details,
    list_class_details,
)
from covquest.challenges.base import Challenge
from covquest.challenges.factory import ChallengeFactory
from covquest.challenges.line_coverage import LineCoverageChallenge
from covquest.config import (
    CONFIG_FILENAME,
    CovquestConfig,
    build_evaluation_context,
    load_config,
    validate_config,
)
from covquest.reporters.terminal import reporter
from covquest.utils.ci_context import resolve_branch

logger = logging.getLogger(__name__)
console = Console()

_PATH_OPTION = click.option(
    "--path",
    default=".",
    type=click.Path(exists=True, file_okay=False, resolve_path=True),
    help="Project root directory.",
)


def _ci_mode() -> bool:
    ctx = click.get_current_context()
    return bool(ctx.obj.get("ci", False)) if ctx.obj else False


def _load_or_abort(path: str) -> CovquestConfig:
    try:
        return load_config(path)
    except (OSError, yaml.YAMLError, ValueError) as e:
        reporter.print_error(f"Failed to load configuration: {e}")
        raise click.Abort from e


def _challenge_payload(challenge: Challenge) -> dict[str, Any]:
    payload: dict[str, Any] = {
        "type": type(challenge).__name__,
        "description": str(challenge),
        "score": challenge.score,
        "created": challenge.created,
        "xml": challenge.print_to_xml(),
    }
    if isinstance(challenge, LineCoverageChallenge):
        payload.update(
            {
                "class": challenge.class_details.qualified_name,
                "line": challenge.line_number,
                "content": challenge.line_content,
                "coverage_type": challenge.coverage_type.value,
                "coverage": challenge.coverage,
            }
        )
    return payload


@click.group()
@click.option(
    "--ci",
    is_flag=True,
    help="CI mode: machine-readable JSON output, non-interactive.",
)
@click.option("--verbose", "-v", is_flag=True, help="Enable debug logging.")
@click.version_option(version=__version__, prog_name="covquest")
@click.pass_context
def cli(ctx: click.Context, *, ci: bool, verbose: bool) -> None:
    """covquest: turn coverage reports into testing challenges."""
    ctx.ensure_object(dict)
    ctx.obj["ci"] = ci
    if verbose:
        logging.basicConfig(level=logging.DEBUG)


@cli.group("config")
def config_group() -> None:
    """Inspect `.covquest.yml` configuration."""


@config_group.command("show")
@_PATH_OPTION
def config_show(path: str) -> None:
    """Display the resolved configuration."""
    config = _load_or_abort(path)
    config_dict = asdict(config)
    config_dict.pop("raw", None)
    if _ci_mode():
        click.echo(json.dumps(config_dict, indent=2))
        return
    console.print("[bold cyan]Configuration:[/bold cyan]")
    click.echo(yaml.safe_dump(config_dict, sort_keys=False, default_flow_style=False))


@config_group.command("validate")
@_PATH_OPTION
def config_validate(path: str) -> None:
    """Validate `.covquest.yml` and report configuration errors."""
    config = _load_or_abort(path)
    errors = validate_config(config)
    if not errors:
        reporter.print_success("Configuration is valid!")
        return

    reporter.print_error(f"Found {len(errors)} configuration error(s):")
    for idx, error in enumerate(errors, start=1):
        console.print(f"  {idx}. [red]{error}[/red]")
    console.print(f"[dim]Fix these errors in {CONFIG_FILENAME} and run again.[/dim]")
    raise click.Abort


@cli.command()
@click.argument("class_name")
@_PATH_OPTION
def lines(class_name: str, path: str) -> None:
    """List the lines of CLASS_NAME a challenge could target.

    CLASS_NAME is the fully qualified class name, e.g. com.example.Calculator.
    """
    config = _load_or_abort(path)
    details = find_class_details(config.jacoco_results_dir, config.jacoco_csv_file, class_name)
    if details is None:
        reporter.print_error(f"No coverage report found for {class_name}")
        raise click.Abort

    accessor = JaCoCoReportAccessor()
    try:
        uncovered = accessor.get_uncovered_lines(details.jacoco_source_file)
        coverage = accessor.get_coverage_percentage(details.class_name, details.jacoco_csv_file)
    except CoverageReportError as e:
        reporter.print_error(str(e))
        raise click.Abort from e

    if _ci_mode():
        output = {
            "class": details.qualified_name,
            "coverage": coverage,
            "lines": [
                {"line": line.line_number, "state": line.tag.value, "content": line.text}
                for line in uncovered
            ],
        }
        click.echo(json.dumps(output, indent=2))
        return
    reporter.print_lines(details, uncovered, coverage)


@cli.command()
@click.argument("class_names", nargs=-1)
@_PATH_OPTION
@click.option("--branch", default=None, help="Branch the challenge is created for.")
@click.option("--user", default=None, help="Git author to create a test challenge for.")
@click.option("--seed", type=int, default=None, help="Seed for reproducible selection.")
def generate(
    class_names: tuple[str, ...],
    path: str,
    branch: str | None,
    user: str | None,
    seed: int | None,
) -> None:
    """Generate a new challenge.

    Picks an uncovered line from one of CLASS_NAMES (all classes in the
    JaCoCo report when none are given). Falls back to a test challenge
    for --user, then to a build challenge.
    """
    config = _load_or_abort(path)
    resolved_branch = resolve_branch(config.root_path, branch)
    if resolved_branch is None:
        reporter.print_error("Could not determine the branch; pass --branch.")
        raise click.Abort
    constants = build_evaluation_context(config, resolved_branch)

    if class_names:
        found = [
            find_class_details(config.jacoco_results_dir, config.jacoco_csv_file, name)
            for name in class_names
        ]
        classes = [details for details in found if details is not None]
    else:
        try:
            classes = list_class_details(config.jacoco_results_dir, config.jacoco_csv_file)
        except CoverageReportError as e:
            if _ci_mode():
                logger.warning("Could not list classes: %s", e)
            else:
                reporter.print_warning(str(e))
            classes = []

    rng_seed = seed if seed is not None else config.challenges.seed
    probe = GitActivityProbe(config.root_path, config.test_reports_dir) if user else None
    factory = ChallengeFactory(JaCoCoReportAccessor(), rng=random.Random(rng_seed), probe=probe)
    challenge = factory.generate_challenge(constants, classes, user=user)

    if _ci_mode():
        click.echo(json.dumps(_challenge_payload(challenge), indent=2))
        return
    reporter.print_header(f"New challenge on {resolved_branch}")
    reporter.print_challenge(challenge)
    console.print(challenge.print_to_xml(), style="dim", markup=False, highlight=False)
