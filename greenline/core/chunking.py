"""Split added lines into prompt-sized chunks."""

from __future__ import annotations

import logging

from greenline.core.diff_walker import AddedLine
from greenline.core.exceptions import InvalidArgumentError

logger = logging.getLogger(__name__)

DEFAULT_MAX_CHARS: int = 15_000

# Rough per-snippet cost of the prompt scaffolding around each line.
LINE_OVERHEAD_CHARS: int = 120


def estimate_size(added: AddedLine, overhead: int = LINE_OVERHEAD_CHARS) -> int:
    """Estimate how many prompt characters one added line costs."""
    return len(added.file) + len(str(added.line)) + len(added.code) + overhead


def chunk_lines(
    lines: list[AddedLine],
    max_chars: int = DEFAULT_MAX_CHARS,
    overhead: int = LINE_OVERHEAD_CHARS,
) -> list[list[AddedLine]]:
    """Greedily group ``lines`` into chunks of at most ``max_chars``.

    A line that alone exceeds the limit still gets a chunk of its own, so
    no line is ever dropped.  Order is preserved and no chunk is empty.

    Raises:
        InvalidArgumentError: If ``lines`` is not a list or ``max_chars`` is
            not a positive integer.
    """
    if (
        not isinstance(lines, list)
        or not isinstance(max_chars, int)
        or isinstance(max_chars, bool)
        or max_chars <= 0
    ):
        raise InvalidArgumentError("chunk_lines expects a list and a positive max_chars")

    chunks: list[list[AddedLine]] = []
    current: list[AddedLine] = []
    char_count = 0

    for added in lines:
        size = estimate_size(added, overhead)
        if current and char_count + size > max_chars:
            chunks.append(current)
            current = []
            char_count = 0
        current.append(added)
        char_count += size

    if current:
        chunks.append(current)

    logger.debug("Split %d lines into %d chunks", len(lines), len(chunks))
    return chunks
