"""JaCoCo report accessor.

Reads the two artifacts JaCoCo's ``report`` goal writes for every class:
the per-class HTML source page (``<package>/<Class>.java.html``), where each
instrumented line is a ``<span>`` tagged ``nc``/``pc``/``fc``, and the
``jacoco.csv`` summary with per-class counters.
"""

from __future__ import annotations

import csv
import logging
import re
from html.parser import HTMLParser
from pathlib import Path

from covquest.adapters.coverage.base import (
    ClassDetails,
    CoverageReportAccessor,
    CoverageReportError,
    CoverageTag,
    SourceLine,
)

logger = logging.getLogger(__name__)

_LINE_ID_RE = re.compile(r"^L(\d+)$")
_TAG_VALUES = {tag.value: tag for tag in CoverageTag}
_DEFAULT_PACKAGE_DIR = "default"

_CSV_CLASS = "CLASS"
_CSV_PACKAGE = "PACKAGE"
_CSV_LINE_MISSED = "LINE_MISSED"
_CSV_LINE_COVERED = "LINE_COVERED"


def _normalize_text(text: str) -> str:
    return " ".join(text.split())


def _tag_from_classes(class_attr: str) -> CoverageTag | None:
    # JaCoCo adds branch markers after the state, e.g. class="pc bpc".
    for token in class_attr.split():
        tag = _TAG_VALUES.get(token)
        if tag is not None:
            return tag
    return None


class _SourcePageParser(HTMLParser):
    """Collect the ``<span class=".." id="L<n>">`` lines of a source page."""

    def __init__(self) -> None:
        super().__init__(convert_charrefs=True)
        self.lines: list[SourceLine] = []
        self._current: tuple[int, CoverageTag] | None = None
        self._depth = 0
        self._buffer: list[str] = []

    def handle_starttag(self, tag: str, attrs: list[tuple[str, str | None]]) -> None:
        if tag != "span":
            return
        if self._current is not None:
            self._depth += 1
            return
        attributes = {key: value or "" for key, value in attrs}
        match = _LINE_ID_RE.match(attributes.get("id", ""))
        coverage_tag = _tag_from_classes(attributes.get("class", ""))
        if match is None or coverage_tag is None:
            return
        self._current = (int(match.group(1)), coverage_tag)
        self._depth = 0
        self._buffer = []

    def handle_endtag(self, tag: str) -> None:
        if tag != "span" or self._current is None:
            return
        if self._depth > 0:
            self._depth -= 1
            return
        line_number, coverage_tag = self._current
        self.lines.append(
            SourceLine(
                line_number=line_number,
                tag=coverage_tag,
                text=_normalize_text("".join(self._buffer)),
            )
        )
        self._current = None

    def handle_data(self, data: str) -> None:
        if self._current is not None:
            self._buffer.append(data)


def parse_source_page(markup: str) -> list[SourceLine]:
    """Parse the markup of a JaCoCo HTML source page into lines."""
    parser = _SourcePageParser()
    parser.feed(markup)
    parser.close()
    return parser.lines


def _line_coverage(row: dict[str, str]) -> float:
    missed = int(row[_CSV_LINE_MISSED])
    covered = int(row[_CSV_LINE_COVERED])
    total = missed + covered
    if total == 0:
        return 100.0
    return 100.0 * covered / total


def _read_csv_rows(csv_file: Path) -> list[dict[str, str]]:
    try:
        with csv_file.open(encoding="utf-8", newline="") as handle:
            return list(csv.DictReader(handle))
    except (OSError, csv.Error, UnicodeDecodeError) as exc:
        raise CoverageReportError(f"Failed to read JaCoCo CSV {csv_file}: {exc}") from exc


class JaCoCoReportAccessor(CoverageReportAccessor):
    """Read line-level and aggregate coverage from JaCoCo reports on disk."""

    def get_lines(self, source_file: Path) -> list[SourceLine]:
        """Parse the HTML source page of a class into its instrumented lines."""
        try:
            markup = source_file.read_text(encoding="utf-8")
        except (OSError, UnicodeDecodeError) as exc:
            raise CoverageReportError(
                f"Failed to read JaCoCo source page {source_file}: {exc}"
            ) from exc
        lines = parse_source_page(markup)
        logger.debug("Parsed %d instrumented lines from %s", len(lines), source_file)
        return lines

    def get_coverage_percentage(self, class_name: str, csv_file: Path) -> float:
        """Return the line coverage of *class_name* from ``jacoco.csv``."""
        for row in _read_csv_rows(csv_file):
            if row.get(_CSV_CLASS) != class_name:
                continue
            try:
                return _line_coverage(row)
            except (KeyError, TypeError, ValueError) as exc:
                raise CoverageReportError(
                    f"Malformed JaCoCo CSV row for {class_name} in {csv_file}: {exc}"
                ) from exc
        raise CoverageReportError(f"Class {class_name} not found in {csv_file}")


def _source_page_for(results_dir: Path, package_name: str, class_name: str) -> Path | None:
    package_dir = results_dir / (package_name or _DEFAULT_PACKAGE_DIR)
    # Nested classes are rendered on the page of their outermost class.
    outer = class_name.split(".", maxsplit=1)[0]
    candidate = package_dir / f"{outer}.java.html"
    if candidate.is_file():
        return candidate
    matches = sorted(package_dir.glob(f"{outer}.*.html"))
    return matches[0] if matches else None


def find_class_details(
    results_dir: Path, csv_file: Path, qualified_name: str
) -> ClassDetails | None:
    """Locate the report fragments of a single class.

    Args:
        results_dir: Root of the JaCoCo HTML report.
        csv_file: Path to ``jacoco.csv``.
        qualified_name: Dotted class name (e.g. ``com.example.Calculator``).

    Returns:
        The class details, or None when no source page exists for the class.
    """
    package_name, _, class_name = qualified_name.rpartition(".")
    source_page = _source_page_for(results_dir, package_name, class_name)
    if source_page is None:
        logger.warning("No JaCoCo source page for %s under %s", qualified_name, results_dir)
        return None
    return ClassDetails(
        class_name=class_name,
        package_name=package_name,
        jacoco_source_file=source_page,
        jacoco_csv_file=csv_file,
    )


def list_class_details(results_dir: Path, csv_file: Path) -> list[ClassDetails]:
    """Return details for every class listed in ``jacoco.csv`` that has a source page.

    Raises:
        CoverageReportError: If the CSV summary cannot be read.
    """
    details: list[ClassDetails] = []
    for row in _read_csv_rows(csv_file):
        class_name = row.get(_CSV_CLASS, "")
        package_name = row.get(_CSV_PACKAGE, "")
        if not class_name:
            continue
        source_page = _source_page_for(results_dir, package_name, class_name)
        if source_page is None:
            logger.debug("Skipping %s.%s: no source page", package_name, class_name)
            continue
        details.append(
            ClassDetails(
                class_name=class_name,
                package_name=package_name,
                jacoco_source_file=source_page,
                jacoco_csv_file=csv_file,
            )
        )
    return details
