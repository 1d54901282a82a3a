"""Review-comment payloads for the "new" side of a pull-request diff.

Line numbers produced by the diff walker address the RIGHT side of a diff,
which is what the pull-request review-comments API expects in ``line`` /
``start_line``.  This module only builds payloads; posting them is left to
the caller.
"""

from __future__ import annotations

import logging
import re
from typing import Any

logger = logging.getLogger(__name__)

_PULL_REF_RE = re.compile(r"refs/pull/(\d+)/merge")


def build_comment_payload(
    body: str,
    commit_id: str,
    path: str,
    start_line: int,
    end_line: int | None = None,
) -> dict[str, Any]:
    """Build the JSON body for a single- or multi-line review comment.

    Args:
        body: Comment text (Markdown).
        commit_id: Head SHA the comment applies to.
        path: File path as it appears in the diff.
        start_line: First new-file line the comment covers.
        end_line: Last line, for a range.  Ignored when equal to ``start_line``.
    """
    payload: dict[str, Any] = {
        "body": body,
        "commit_id": commit_id,
        "path": path,
    }

    if end_line is not None and end_line != start_line:
        payload.update(
            {
                "start_line": start_line,
                "line": end_line,
                "side": "RIGHT",
                "start_side": "RIGHT",
            }
        )
    else:
        payload.update({"line": start_line, "side": "RIGHT"})

    return payload


def format_line_range(start_line: int, end_line: int | None = None) -> str:
    if end_line is not None and end_line != start_line:
        return f"{start_line}-{end_line}"
    return str(start_line)


def extract_pr_number(github_ref: str | None) -> int | None:
    """Return the PR number from a ``refs/pull/<n>/merge`` ref, or None."""
    match = _PULL_REF_RE.search(github_ref or "")
    if match is None:
        logger.warning("Could not extract PR number from GITHUB_REF '%s'", github_ref)
        return None
    return int(match.group(1))
