"""Built-in enrichment stages.

Field ownership:

    ====================  ========================
    field                 stage
    ====================  ========================
    metadata.description  ContentEnhancementStage
    metadata.tags         ContentEnhancementStage
    ====================  ========================

Image discovery and link validation only observe the record.
"""

from __future__ import annotations

import logging
import re
from typing import NamedTuple

from markflow.content.models import Content
from markflow.pipeline.base import ProcessingStage
from markflow.shared.urls import is_absolute_url

logger = logging.getLogger(__name__)

_IMAGE_RE = re.compile(r"!\[([^\]]*)\]\(([^)]+)\)")
_LINK_RE = re.compile(r"(?<!!)\[([^\]]*)\]\(([^)]+)\)")

SUMMARY_LINES = 3
SUMMARY_MAX_CHARS = 200
ELLIPSIS = "..."

# Matched case-insensitively anywhere in the body; order is the tag order.
TAG_VOCABULARY: tuple[str, ...] = (
    "Rust",
    "JavaScript",
    "Python",
    "TypeScript",
    "React",
    "Vue",
    "Node.js",
    "前端",
    "后端",
    "全栈",
    "微服务",
    "数据库",
    "算法",
    "设计模式",
    "性能优化",
    "安全",
    "测试",
    "部署",
    "Docker",
    "Kubernetes",
)


class ImageRef(NamedTuple):
    alt: str
    src: str


class LinkRef(NamedTuple):
    text: str
    url: str


def extract_images(markdown: str) -> list[ImageRef]:
    """Find ``![alt](src)`` references in document order."""
    return [ImageRef(m.group(1), m.group(2).strip()) for m in _IMAGE_RE.finditer(markdown)]


def extract_links(markdown: str) -> list[LinkRef]:
    """Find ``[text](url)`` references (images excluded) in document order."""
    return [LinkRef(m.group(1), m.group(2).strip()) for m in _LINK_RE.finditer(markdown)]


def generate_summary(markdown: str) -> str:
    """Join the first few non-empty, non-heading lines into a summary."""
    lines = [
        line.strip()
        for line in markdown.splitlines()
        if line.strip() and not line.lstrip().startswith("#")
    ][:SUMMARY_LINES]
    summary = " ".join(lines)
    if len(summary) > SUMMARY_MAX_CHARS:
        return summary[: SUMMARY_MAX_CHARS - len(ELLIPSIS)] + ELLIPSIS
    return summary


def extract_tags(markdown: str) -> list[str]:
    """Return every vocabulary term that appears in ``markdown``."""
    lowered = markdown.lower()
    return [term for term in TAG_VOCABULARY if term.lower() in lowered]


class ImageDiscoveryStage(ProcessingStage):
    """Logs every image reference.

    Fetching, resizing or uploading images belongs to an external
    collaborator; this stage leaves the record untouched.
    """

    name = "image-discovery"

    def process(self, content: Content) -> None:
        for image in extract_images(content.markdown):
            logger.debug("Found image: %s (%s)", image.src, image.alt)


class LinkValidationStage(ProcessingStage):
    """Logs link references, separating external from relative targets."""

    name = "link-validation"

    def process(self, content: Content) -> None:
        for link in extract_links(content.markdown):
            if is_absolute_url(link.url):
                logger.debug("External link: %s (%s)", link.url, link.text)
            else:
                logger.debug("Relative link: %s (%s)", link.url, link.text)


class ContentEnhancementStage(ProcessingStage):
    """Fills an empty description and empty tags from the body."""

    name = "content-enhancement"
    fields = ("metadata.description", "metadata.tags")

    def process(self, content: Content) -> None:
        metadata = content.metadata

        if not metadata.description:
            summary = generate_summary(content.markdown)
            if summary:
                metadata.description = summary
                logger.debug("Generated description (%d chars)", len(summary))

        if not metadata.tags:
            metadata.tags = extract_tags(content.markdown)
            if metadata.tags:
                logger.debug("Extracted tags: %s", ", ".join(metadata.tags))
