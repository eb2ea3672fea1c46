"""Content domain models as pure Pydantic v2 data types.

A ``Content`` is the unit of work through the whole core: it is built from
the authored Markdown, enriched by the processing pipeline, validated and
adapted by each platform adapter, and handed back to the caller.
"""

from __future__ import annotations

from datetime import UTC, datetime
from enum import StrEnum
from typing import Any
from uuid import UUID, uuid4

from pydantic import BaseModel, Field, model_validator

# Average reading speed, in characters per minute.
READING_SPEED = 200


def _utcnow() -> datetime:
    return datetime.now(UTC)


class Platform(StrEnum):
    """Target publishing platforms."""

    WECHAT = "wechat"
    ZHIHU = "zhihu"


class ContentMetadata(BaseModel):
    """Metadata attached to a piece of content.

    ``word_count`` is the character count of the Markdown source (not a
    whitespace token count) and ``reading_time`` is derived from it. The two
    are always set together by ``Content.calculate_reading_time``.
    """

    author: str | None = None
    tags: list[str] = Field(default_factory=list)
    description: str | None = None
    cover_image: str | None = None
    reading_time: int | None = None  # minutes
    word_count: int | None = None
    custom_fields: dict[str, str] = Field(default_factory=dict)


class Content(BaseModel):
    """A compiled document and everything derived from it.

    Assigning ``markdown`` (directly or through ``update_content``) bumps
    ``updated_at`` and re-derives the reading statistics. ``html`` is the
    last compiled rendering and is not re-derived; the caller must compile
    again.
    """

    id: UUID = Field(default_factory=uuid4, frozen=True)
    title: str
    markdown: str
    html: str = ""
    metadata: ContentMetadata = Field(default_factory=ContentMetadata)
    created_at: datetime = Field(default_factory=_utcnow, frozen=True)
    updated_at: datetime = Field(default_factory=_utcnow)

    def __setattr__(self, name: str, value: Any) -> None:
        super().__setattr__(name, value)
        if name == "markdown":
            self.updated_at = _utcnow()
            self.calculate_reading_time()
        elif name == "metadata":
            self.calculate_reading_time()

    @model_validator(mode="after")
    def _derive_statistics(self) -> Content:
        self.calculate_reading_time()
        return self

    def calculate_reading_time(self) -> None:
        """Recompute ``word_count`` and ``reading_time`` from ``markdown``."""
        word_count = len(self.markdown)
        self.metadata.word_count = word_count
        self.metadata.reading_time = max(1, word_count // READING_SPEED)

    def update_content(self, markdown: str) -> None:
        """Replace the Markdown source.

        Bumps ``updated_at`` and recomputes the reading statistics. ``html``
        keeps the previous rendering until the document is compiled again.
        """
        self.markdown = markdown


class ProcessedContent(BaseModel):
    """A content record together with its per-platform renderings."""

    content: Content
    outputs: dict[Platform, str] = Field(default_factory=dict)

    @property
    def wechat_html(self) -> str | None:
        return self.outputs.get(Platform.WECHAT)

    @property
    def zhihu_html(self) -> str | None:
        return self.outputs.get(Platform.ZHIHU)
