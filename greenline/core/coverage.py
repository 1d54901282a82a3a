"""Coverage gap detector.

Reads a coveralls-style JSON report (the format excoveralls and coveralls
write) and keeps only the added lines that no test executed:

    {"source_files": [{"name": "lib/app.ex",
                       "coverage": [1, 0, null, ...],
                       "source": "line 1\\nline 2\\n..."}]}

``coverage[i]`` is the hit count of line ``i + 1``; ``null`` marks a line
that is not relevant (comments, blank lines) and is never reported.
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from pathlib import Path
from typing import Any

from greenline.core.diff_walker import AddedLine
from greenline.core.exceptions import CoverageReportError, InvalidArgumentError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class FileCoverage:
    """Per-line hit counts for one source file."""

    coverage: list[int | None]
    source_lines: list[str]

    def hits(self, line: int) -> int | None:
        """Return the hit count for a 1-based line number.

        Raises:
            IndexError: If ``line`` falls outside the report for this file.
        """
        if not 1 <= line <= len(self.coverage):
            raise IndexError(line)
        return self.coverage[line - 1]


def load_coverage_report(path: str | Path) -> list[dict[str, Any]]:
    """Read a coverage report and return its ``source_files`` list.

    Raises:
        CoverageReportError: If the file is unreadable, not JSON, or does not
            contain a ``source_files`` list at the top level.
    """
    report_path = Path(path)
    try:
        content = report_path.read_text(encoding="utf-8")
    except OSError as exc:
        raise CoverageReportError(
            f"Failed to read coverage file {report_path}: {exc}", path=str(report_path)
        ) from exc

    try:
        data = json.loads(content)
    except json.JSONDecodeError as exc:
        raise CoverageReportError(
            f"Failed to decode JSON from {report_path}: {exc}", path=str(report_path)
        ) from exc

    if not isinstance(data, dict):
        raise CoverageReportError(
            f"Invalid JSON structure in {report_path}: expected a JSON object",
            path=str(report_path),
        )

    source_files = data.get("source_files")
    if not isinstance(source_files, list):
        raise CoverageReportError(
            f"Invalid JSON structure in {report_path}: expected a 'source_files' list",
            path=str(report_path),
        )

    logger.info(
        "Loaded coverage report",
        extra={"path": str(report_path), "files": len(source_files)},
    )
    return source_files


def build_coverage_map(source_files: list[dict[str, Any]]) -> dict[str, FileCoverage]:
    """Index coverage entries by file name.

    Entries without a string ``name``, a list ``coverage`` and a string
    ``source`` whose line count matches the coverage length are skipped with
    a warning.
    """
    if not isinstance(source_files, list):
        raise InvalidArgumentError(
            f"source_files must be a list, got {type(source_files).__name__}"
        )

    coverage_map: dict[str, FileCoverage] = {}

    for entry in source_files:
        entry = entry if isinstance(entry, dict) else {}
        name = entry.get("name")
        coverage = entry.get("coverage")
        source = entry.get("source")

        if (
            isinstance(name, str)
            and isinstance(coverage, list)
            and isinstance(source, str)
        ):
            source_lines = source.split("\n")
            if len(coverage) == len(source_lines):
                coverage_map[name] = FileCoverage(coverage=coverage, source_lines=source_lines)
                continue

        logger.warning(
            "Skipping invalid or incomplete coverage entry for file: %s",
            name if isinstance(name, str) else "Unknown",
        )

    return coverage_map


def filter_added_uncovered(
    added_lines: list[AddedLine],
    coverage_map: dict[str, FileCoverage],
) -> list[AddedLine]:
    """Keep the added lines whose coverage hit count is exactly zero.

    Lines in files missing from the report are dropped silently; lines whose
    number falls outside the file's report are dropped with a warning.
    """
    uncovered: list[AddedLine] = []

    for added in added_lines:
        file_coverage = coverage_map.get(added.file)
        if file_coverage is None:
            continue

        try:
            hits = file_coverage.hits(added.line)
        except IndexError:
            logger.warning(
                "Line number %d for file '%s' is out of bounds for coverage data "
                "(length %d). Skipping check for this line.",
                added.line,
                added.file,
                len(file_coverage.coverage),
            )
            continue

        if hits == 0:
            uncovered.append(added)

    logger.debug(
        "Coverage filter: %d of %d added lines uncovered",
        len(uncovered),
        len(added_lines),
    )
    return uncovered
