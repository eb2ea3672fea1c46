"""Exception hierarchy for markflow.

Every failure the core reports is a ``MarkflowError`` subclass so callers
(the CLI, or any embedding application) can catch one type at the boundary.
"""

from __future__ import annotations

from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from markflow.adapters.base import ValidationError


class MarkflowError(Exception):
    """Base class for all markflow errors."""


class MarkdownError(MarkflowError):
    """Markdown could not be decoded, parsed or rendered."""


class HtmlError(MarkflowError):
    """An HTML rewrite rule could not be constructed."""


class ConfigurationError(MarkflowError):
    """Configuration values are missing or invalid."""


class ValidationFailure(MarkflowError):
    """Content violates at least one hard platform constraint.

    Carries every Error-severity finding of the validation call. The message
    joins them as ``field: message`` pairs separated by ``; ``.
    """

    def __init__(self, platform: str, errors: list[ValidationError]) -> None:
        self.platform = platform
        self.errors = errors
        details = "; ".join(f"{e.field}: {e.message}" for e in errors)
        super().__init__(f"{platform} content validation failed: {details}")
