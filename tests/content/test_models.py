"""Tests for content domain models."""

from datetime import datetime

import pytest
from pydantic import ValidationError

from markflow.content.builder import build_content
from markflow.content.models import (
    READING_SPEED,
    Content,
    ContentMetadata,
    Platform,
    ProcessedContent,
)


def _make_content(markdown: str = "hello", **kwargs) -> Content:
    return Content(title=kwargs.pop("title", "Title"), markdown=markdown, **kwargs)


class TestPlatform:
    def test_enum_values(self):
        assert Platform.WECHAT == "wechat"
        assert Platform.ZHIHU == "zhihu"

    def test_all_values(self):
        assert {p.value for p in Platform} == {"wechat", "zhihu"}


class TestContentMetadata:
    def test_defaults(self):
        meta = ContentMetadata()
        assert meta.author is None
        assert meta.tags == []
        assert meta.description is None
        assert meta.cover_image is None
        assert meta.reading_time is None
        assert meta.word_count is None
        assert meta.custom_fields == {}

    def test_mutable_defaults_not_shared(self):
        a = ContentMetadata()
        b = ContentMetadata()
        a.tags.append("x")
        assert b.tags == []


class TestContent:
    def test_creation_sets_statistics(self):
        content = _make_content("abcde")
        assert content.metadata.word_count == 5
        assert content.metadata.reading_time == 1

    def test_word_count_is_character_count(self):
        content = _make_content("你好 world")
        assert content.metadata.word_count == len("你好 world")

    @pytest.mark.parametrize(
        ("length", "minutes"),
        [(0, 1), (199, 1), (200, 1), (399, 1), (400, 2), (1000, 5)],
    )
    def test_reading_time(self, length: int, minutes: int):
        content = _make_content("x" * length)
        assert content.metadata.reading_time == minutes
        assert content.metadata.reading_time == max(1, length // READING_SPEED)

    def test_ids_are_unique(self):
        assert _make_content().id != _make_content().id

    def test_id_is_frozen(self):
        content = _make_content()
        with pytest.raises(ValidationError):
            content.id = _make_content().id

    def test_timestamps_are_aware(self):
        content = _make_content()
        assert isinstance(content.created_at, datetime)
        assert content.created_at.tzinfo is not None
        assert content.updated_at >= content.created_at

    def test_update_content_recalculates(self):
        content = _make_content("short")
        before = content.updated_at
        content.update_content("y" * 450)
        assert content.markdown == "y" * 450
        assert content.metadata.word_count == 450
        assert content.metadata.reading_time == 2
        assert content.updated_at >= before

    def test_assigning_markdown_recalculates(self):
        content = _make_content("a")
        before = content.updated_at
        content.markdown = "x" * 1000
        assert content.metadata.word_count == 1000
        assert content.metadata.reading_time == 5
        assert content.updated_at >= before

    def test_replacing_metadata_keeps_statistics(self):
        content = _make_content("abc")
        content.metadata = ContentMetadata(author="Ann")
        assert content.metadata.word_count == 3
        assert content.metadata.reading_time == 1

    def test_update_content_keeps_html(self):
        content = _make_content("a", html="<p>a</p>")
        content.update_content("b")
        assert content.html == "<p>a</p>"

    def test_json_roundtrip(self):
        content = _make_content("body", metadata=ContentMetadata(tags=["a"]))
        restored = Content.model_validate_json(content.model_dump_json())
        assert restored.id == content.id
        assert restored.metadata.tags == ["a"]


class TestProcessedContent:
    def test_platform_accessors(self):
        processed = ProcessedContent(
            content=_make_content(), outputs={Platform.WECHAT: "<p>w</p>"}
        )
        assert processed.wechat_html == "<p>w</p>"
        assert processed.zhihu_html is None


class TestBuildContent:
    def test_front_matter_fields(self):
        content = build_content(
            {
                "title": "X",
                "author": "Ann",
                "description": "About X",
                "tags": "a, b",
                "cover": "https://img/c.png",
                "series": "intro",
            },
            "# Y\n\nbody\n",
            "<h1>Y</h1>",
        )
        assert content.title == "X"
        assert content.html == "<h1>Y</h1>"
        assert content.metadata.author == "Ann"
        assert content.metadata.description == "About X"
        assert content.metadata.tags == ["a", "b"]
        assert content.metadata.cover_image == "https://img/c.png"
        assert content.metadata.custom_fields == {"series": "intro"}

    def test_statistics_from_body(self):
        body = "z" * 600
        content = build_content({}, body)
        assert content.markdown == body
        assert content.metadata.word_count == 600
        assert content.metadata.reading_time == 3
