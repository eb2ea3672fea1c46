"""Tests for the processing pipeline and its built-in stages."""

import logging

import pytest

from markflow.content.models import Content, ContentMetadata
from markflow.pipeline import (
    ContentEnhancementStage,
    ImageDiscoveryStage,
    ImageRef,
    LinkRef,
    LinkValidationStage,
    ProcessingPipeline,
    ProcessingStage,
    extract_images,
    extract_links,
    extract_tags,
    generate_summary,
)


def _make_content(markdown: str, **metadata) -> Content:
    return Content(title="T", markdown=markdown, metadata=ContentMetadata(**metadata))


class _RecordingStage(ProcessingStage):
    def __init__(self, name: str, log: list[str]) -> None:
        self.name = name
        self.log = log

    def process(self, content: Content) -> None:
        self.log.append(self.name)


class _FailingStage(ProcessingStage):
    name = "boom"

    def process(self, content: Content) -> None:
        raise RuntimeError("stage exploded")


class _DescriptionStage(ProcessingStage):
    name = "front-matter-description"
    fields = ("metadata.description",)

    def process(self, content: Content) -> None:
        content.metadata.description = "from earlier stage"


class TestExtractors:
    def test_images_in_order(self):
        md = "![a](one.png) text ![b](https://x.com/two.png)"
        assert extract_images(md) == [
            ImageRef("a", "one.png"),
            ImageRef("b", "https://x.com/two.png"),
        ]

    def test_links_exclude_images(self):
        md = "[site](https://x.com) ![img](a.png) [rel](./doc.md)"
        assert extract_links(md) == [LinkRef("site", "https://x.com"), LinkRef("rel", "./doc.md")]

    def test_nothing_found(self):
        assert extract_images("plain") == []
        assert extract_links("plain") == []


class TestGenerateSummary:
    def test_first_three_content_lines(self):
        md = "# Title\n\nLine one\n## Sub\nLine two\n\nLine three\nLine four\n"
        assert generate_summary(md) == "Line one Line two Line three"

    def test_truncated(self):
        md = "a" * 150 + "\n" + "b" * 150 + "\n"
        summary = generate_summary(md)
        assert len(summary) == 200
        assert summary.endswith("...")
        assert summary[:197] == ("a" * 150 + " " + "b" * 150)[:197]

    def test_exactly_limit_not_truncated(self):
        md = "c" * 200
        assert generate_summary(md) == md

    def test_only_headings(self):
        assert generate_summary("# A\n## B\n") == ""


class TestExtractTags:
    def test_case_insensitive_in_vocabulary_order(self):
        md = "Deploying python apps with DOCKER and rust"
        assert extract_tags(md) == ["Rust", "Python", "Docker"]

    def test_chinese_terms(self):
        assert extract_tags("数据库性能优化实践") == ["数据库", "性能优化"]

    def test_none(self):
        assert extract_tags("nothing relevant") == []


class TestContentEnhancementStage:
    def test_fills_empty_fields(self):
        content = _make_content("# T\n\nWriting Python tests\n")
        ContentEnhancementStage().process(content)
        assert content.metadata.description == "Writing Python tests"
        assert content.metadata.tags == ["Python"]

    def test_keeps_existing_values(self):
        content = _make_content("Python everywhere", description="Mine", tags=["custom"])
        ContentEnhancementStage().process(content)
        assert content.metadata.description == "Mine"
        assert content.metadata.tags == ["custom"]

    def test_empty_string_description_is_filled(self):
        content = _make_content("Some body text", description="")
        ContentEnhancementStage().process(content)
        assert content.metadata.description == "Some body text"

    def test_no_summary_leaves_description_unset(self):
        content = _make_content("# Only heading\n")
        ContentEnhancementStage().process(content)
        assert content.metadata.description is None


class TestObservationStages:
    def test_image_discovery_logs_only(self, caplog):
        caplog.set_level(logging.DEBUG, logger="markflow")
        content = _make_content("![cover](a.png)")
        before = content.model_dump()
        ImageDiscoveryStage().process(content)
        assert content.model_dump() == before
        assert "Found image: a.png (cover)" in caplog.text

    def test_link_validation_classifies(self, caplog):
        caplog.set_level(logging.DEBUG, logger="markflow")
        LinkValidationStage().process(_make_content("[a](https://x.com) [b](/local)"))
        assert "External link: https://x.com (a)" in caplog.text
        assert "Relative link: /local (b)" in caplog.text


class TestProcessingPipeline:
    def test_default_stage_order(self):
        names = [s.name for s in ProcessingPipeline.default().stages]
        assert names == ["image-discovery", "link-validation", "content-enhancement"]

    def test_add_stage_is_chainable(self):
        log: list[str] = []
        pipeline = ProcessingPipeline().add_stage(_RecordingStage("a", log)).add_stage(
            _RecordingStage("b", log)
        )
        content = _make_content("x")
        assert pipeline.process(content) is content
        assert log == ["a", "b"]

    def test_failure_aborts_remaining_stages(self, caplog):
        log: list[str] = []
        pipeline = ProcessingPipeline(
            [_RecordingStage("first", log), _FailingStage(), _RecordingStage("never", log)]
        )
        with pytest.raises(RuntimeError, match="stage exploded"):
            pipeline.process(_make_content("x"))
        assert log == ["first"]
        assert "Stage boom failed" in caplog.text

    def test_field_owners(self):
        pipeline = ProcessingPipeline([_DescriptionStage()]).add_stage(ContentEnhancementStage())
        owners = pipeline.field_owners()
        assert owners["metadata.description"] == [
            "front-matter-description",
            "content-enhancement",
        ]
        assert owners["metadata.tags"] == ["content-enhancement"]

    def test_fill_if_empty_respects_earlier_stage(self):
        pipeline = ProcessingPipeline([_DescriptionStage(), ContentEnhancementStage()])
        content = pipeline.process(_make_content("body text"))
        assert content.metadata.description == "from earlier stage"

    def test_empty_pipeline(self):
        content = _make_content("x")
        assert ProcessingPipeline().process(content) is content
