"""Base class for platform-specific HTML adaptation."""

from __future__ import annotations

import logging
from abc import ABC, abstractmethod
from enum import StrEnum

from pydantic import BaseModel

from markflow.content.models import Content, Platform
from markflow.errors import ValidationFailure

logger = logging.getLogger(__name__)


class ValidationSeverity(StrEnum):
    ERROR = "error"
    WARNING = "warning"
    INFO = "info"


class ValidationError(BaseModel):
    """A single finding from a platform validation rule."""

    field: str
    message: str
    severity: ValidationSeverity = ValidationSeverity.ERROR


class PlatformAdapter(ABC):
    """Turns generic compiled HTML into platform-compliant HTML.

    Adapters are configured once at construction and never mutate
    themselves afterwards, so one instance may serve concurrent callers.
    """

    @abstractmethod
    def platform(self) -> Platform:
        """The platform this adapter targets."""

    @abstractmethod
    def adapt_html(self, html: str) -> str:
        """Run the platform's rewrite steps over ``html``.

        Never fails on malformed markup; rules that do not match leave the
        input unchanged.
        """

    @abstractmethod
    def check_content(self, content: Content) -> list[ValidationError]:
        """Return every finding for ``content``, whatever its severity."""

    @abstractmethod
    def stylesheet(self) -> str:
        """CSS equivalent of the adapter's styling, for standalone previews."""

    async def preprocess_images(self, html: str) -> str:
        """Hook for platform-side image handling. Performs no I/O."""
        return html

    def validate_content(self, content: Content) -> list[ValidationError]:
        """Validate ``content`` against the platform's hard constraints.

        Returns:
            The non-blocking findings (warnings and info), each already logged.

        Raises:
            ValidationFailure: If any finding has ``error`` severity. The
                failure carries every error-severity finding.
        """
        issues = self.check_content(content)
        errors = [i for i in issues if i.severity == ValidationSeverity.ERROR]
        if errors:
            raise ValidationFailure(self.platform().value, errors)

        for issue in issues:
            if issue.severity == ValidationSeverity.WARNING:
                logger.warning("%s: %s: %s", self.platform(), issue.field, issue.message)
            else:
                logger.info("%s: %s: %s", self.platform(), issue.field, issue.message)
        return issues
