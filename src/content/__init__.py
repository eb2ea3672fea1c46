"""Content domain: the record that flows through the whole core."""

from markflow.content.models import (
    Content,
    ContentMetadata,
    Platform,
    ProcessedContent,
)

__all__ = [
    "Content",
    "ContentMetadata",
    "Platform",
    "ProcessedContent",
]
