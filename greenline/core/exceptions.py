"""Domain-specific exceptions for Greenline.

Malformed diff text and incomplete coverage entries are data-quality
problems: they are logged and skipped, never raised.  The exceptions here
cover contract misuse and inputs that cannot be read at all.
"""

from __future__ import annotations


# =============================================================================
# Contract errors
# =============================================================================


class InvalidArgumentError(TypeError):
    """A function was called with an argument of the wrong type or value."""


# =============================================================================
# Coverage
# =============================================================================


class CoverageReportError(Exception):
    """The coverage report could not be read or does not have the expected shape."""

    def __init__(self, message: str, path: str = "") -> None:
        self.path = path
        super().__init__(message)


# =============================================================================
# Model responses
# =============================================================================


class SuggestionParseError(Exception):
    """A model response could not be parsed into a list of test suggestions."""
