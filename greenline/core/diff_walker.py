"""Diff walker: maps every added line of a unified diff to its new-file line.

Key concepts:
- A ``diff --git a/<old> b/<new>`` header opens a file section and always
  exits whatever hunk was being walked.
- A hunk header ``@@ -<old-range> +<start>[,<count>] @@`` declares the
  new-file line number of the hunk's first line.
- Inside a hunk, added (+) and context ( ) lines each occupy one new-file
  position; removed (-) lines occupy none.  An added line therefore lands
  on ``start + lines_in_hunk``.

Malformed input never aborts the walk: a bad file header, a bad hunk header,
or a content line with no enclosing section is logged and skipped, and the
rest of the diff is still parsed.

This module is a pure function over its input: ``parse_diff(str) -> list[AddedLine]``.
"""

from __future__ import annotations

import enum
import logging
import re
from dataclasses import dataclass, field

from greenline.core.exceptions import InvalidArgumentError

logger = logging.getLogger(__name__)


# =============================================================================
#  Data classes
# =============================================================================


@dataclass(frozen=True)
class AddedLine:
    """One added line, addressed by its position in the new file."""

    file: str
    line: int   # 1-based line number on the new side of the diff
    code: str   # diff line with only the leading "+" removed

    def to_dict(self) -> dict[str, str | int]:
        return {"file": self.file, "line": self.line, "code": self.code}


@dataclass
class ParseState:
    """Mutable walk state, owned by a single ``parse`` call."""

    current_file: str | None = None
    current_line: int | None = None     # None when not inside a hunk
    lines_in_hunk: int | None = None    # context + added lines seen in this hunk
    results: list[AddedLine] = field(default_factory=list)

    @property
    def in_hunk(self) -> bool:
        return self.current_line is not None

    def enter_file(self, path: str | None) -> None:
        self.current_file = path
        self.current_line = None
        self.lines_in_hunk = None

    def enter_hunk(self, start: int) -> None:
        self.current_line = start
        self.lines_in_hunk = 0


# =============================================================================
#  Line classification
# =============================================================================


class LineKind(enum.Enum):
    FILE_HEADER = "file_header"
    METADATA = "metadata"
    HUNK_HEADER = "hunk_header"
    ADDED = "added"
    CONTEXT = "context"
    REMOVED = "removed"
    OTHER = "other"


FILE_HEADER_PREFIX = "diff --git a/"
HUNK_HEADER_PREFIX = "@@ -"
METADATA_PREFIXES: tuple[str, ...] = ("index ", "--- a/", "+++ b/")

# Order matters: metadata markers also start with "+" or "-".
_PREFIX_KINDS: tuple[tuple[tuple[str, ...], LineKind], ...] = (
    ((FILE_HEADER_PREFIX,), LineKind.FILE_HEADER),
    (METADATA_PREFIXES, LineKind.METADATA),
    ((HUNK_HEADER_PREFIX,), LineKind.HUNK_HEADER),
    (("+",), LineKind.ADDED),
    ((" ",), LineKind.CONTEXT),
    (("-",), LineKind.REMOVED),
)


def classify_line(line: str) -> LineKind:
    """Return the kind of a single diff line, judged by its prefix alone."""
    for prefixes, kind in _PREFIX_KINDS:
        if line.startswith(prefixes):
            return kind
    return LineKind.OTHER


# =============================================================================
#  Header parsing
# =============================================================================

_INTEGER_RE = re.compile(r"[+-]?[0-9]+")


def _extract_new_path(header_line: str) -> str | None:
    """Extract the new path from a ``diff --git a/<old> b/<new>`` header.

    Anything after a tab is metadata appended by some diff producers and is
    dropped.  Returns None when the header has no `` b/`` separator.
    """
    rest = header_line[len(FILE_HEADER_PREFIX):]
    _, sep, new_part = rest.partition(" b/")
    if not sep:
        return None
    return new_part.split("\t", 1)[0].strip()


def _extract_hunk_start(header_line: str) -> int | None:
    """Extract the new-file start line from an ``@@ -a,b +s,n @@`` header.

    Returns None when the ``+`` segment is missing or its leading token is
    not an integer.
    """
    hunk_info = header_line[len(HUNK_HEADER_PREFIX):]
    _, sep, new_part = hunk_info.partition("+")
    if not sep:
        return None
    token = re.split(r"[, ]", new_part.strip(), maxsplit=1)[0]
    if not _INTEGER_RE.fullmatch(token):
        return None
    return int(token)


# =============================================================================
#  Walker
# =============================================================================


class DiffWalker:
    """Single-pass state machine over unified-diff text.

    States are implied by ``ParseState``:
    - Outside: no file, no hunk
    - InFile:  file header seen (path possibly unresolved), no hunk
    - InHunk:  file and hunk start known

    A walker holds no state between calls; one instance may be shared.
    """

    def parse(self, diff_text: str) -> list[AddedLine]:
        """Return every added line in ``diff_text``, in diff order.

        Args:
            diff_text: Unified diff as produced by ``git diff`` with zero or
                default context and no colour codes.

        Returns:
            ``AddedLine`` records for the well-formed part of the diff.

        Raises:
            InvalidArgumentError: If ``diff_text`` is not a string.
        """
        if not isinstance(diff_text, str):
            raise InvalidArgumentError(
                f"diff_text must be a str, got {type(diff_text).__name__}"
            )

        state = ParseState()
        for line in diff_text.split("\n"):
            self._step(state, line)

        logger.debug(
            "Parsed diff: %d added lines",
            len(state.results),
            extra={"files": len({added.file for added in state.results})},
        )
        return state.results

    def _step(self, state: ParseState, line: str) -> None:
        kind = classify_line(line)

        # --- File header: always leaves any hunk ---
        if kind is LineKind.FILE_HEADER:
            new_path = _extract_new_path(line)
            if new_path is None:
                logger.warning("Could not parse file path from diff line: %s", line)
            state.enter_file(new_path)

        # --- Hunk header ---
        elif kind is LineKind.HUNK_HEADER:
            if state.current_file is None:
                logger.warning("Skipping hunk header without a file section: %s", line)
                return
            start = _extract_hunk_start(line)
            if start is None:
                logger.warning("Failed to parse hunk header %r, skipping", line)
                return
            state.enter_hunk(start)

        # --- Body lines only count inside a hunk ---
        elif not state.in_hunk:
            return

        elif kind is LineKind.ADDED:
            if state.current_file is None:
                logger.warning("Skipping added line without a file section: %s", line)
                return
            state.results.append(
                AddedLine(
                    file=state.current_file,
                    line=state.current_line + state.lines_in_hunk,
                    code=line[1:],
                )
            )
            state.lines_in_hunk += 1

        elif kind is LineKind.CONTEXT:
            if state.current_file is not None:
                state.lines_in_hunk += 1

        # Removed lines occupy no new-file position; metadata and anything
        # else carry nothing the walker needs.


def parse_diff(diff_text: str) -> list[AddedLine]:
    """Parse ``diff_text`` with a fresh ``DiffWalker``."""
    return DiffWalker().parse(diff_text)
