"""Core processing: Markdown source in, per-platform HTML out.

``MarkdownProcessor`` turns authored text into a ``Content`` record;
``prepare_content`` adds the config author and the enrichment pipeline;
``render_platforms`` runs the whole chain (process → enrich → validate →
adapt) for every requested platform.
"""

from __future__ import annotations

import html as html_lib
import logging
from collections.abc import Iterable

from markflow.adapters import PlatformAdapter, create_adapter
from markflow.config import MarkflowConfig
from markflow.content.builder import build_content
from markflow.content.models import Content, Platform, ProcessedContent
from markflow.errors import MarkdownError
from markflow.parsers.frontmatter import parse_front_matter
from markflow.parsers.markdown import DocumentCompiler
from markflow.pipeline import ProcessingPipeline
from markflow.pipeline import extract_images as _find_images
from markflow.pipeline import extract_links as _find_links

logger = logging.getLogger(__name__)


class MarkdownProcessor:
    """Parses front matter, compiles the body and builds the record.

    Any failure aborts processing; no partial ``Content`` is returned.
    """

    def __init__(self, compiler: DocumentCompiler | None = None) -> None:
        self.compiler = compiler or DocumentCompiler()

    def process(self, source: str | bytes) -> Content:
        """Turn a Markdown document into a ``Content`` record.

        Args:
            source: Markdown text (optionally front-matter prefixed), or
                UTF-8 encoded bytes.

        Returns:
            A fresh ``Content`` with title, metadata, HTML and statistics.

        Raises:
            MarkdownError: If the source cannot be decoded or rendered.
        """
        if isinstance(source, bytes):
            try:
                source = source.decode("utf-8")
            except UnicodeDecodeError as exc:
                raise MarkdownError(f"Markdown is not valid UTF-8: {exc}") from exc

        front_matter, body = parse_front_matter(source)
        html = self.compiler.compile(body)
        content = build_content(front_matter, body, html)
        logger.info(
            "Processed %r (%d chars, ~%d min read)",
            content.title,
            content.metadata.word_count,
            content.metadata.reading_time,
        )
        return content

    def extract_images(self, markdown: str) -> list[str]:
        """Image sources referenced by ``markdown``, in document order."""
        return [image.src for image in _find_images(markdown)]

    def extract_links(self, markdown: str) -> list[str]:
        """Link targets referenced by ``markdown`` (images excluded), in order."""
        return [link.url for link in _find_links(markdown)]


def prepare_content(
    source: str | bytes,
    config: MarkflowConfig | None = None,
    pipeline: ProcessingPipeline | None = None,
) -> Content:
    """Process ``source`` and enrich it, filling the author from config when missing."""
    config = config or MarkflowConfig()
    content = MarkdownProcessor().process(source)
    if config.general.author and not content.metadata.author:
        content.metadata.author = config.general.author
    return (pipeline or ProcessingPipeline.default()).process(content)


def render_platforms(
    source: str | bytes,
    platforms: Iterable[Platform | str] | None = None,
    config: MarkflowConfig | None = None,
    *,
    validate: bool = True,
    pipeline: ProcessingPipeline | None = None,
) -> ProcessedContent:
    """Process ``source`` and adapt it for each target platform.

    Args:
        source: Markdown document.
        platforms: Targets; defaults to ``config.target_platforms()``.
        config: Adapter limits and toggles, plus the default author.
        validate: Run each adapter's validation before adapting.
        pipeline: Enrichment pipeline; defaults to ``ProcessingPipeline.default()``.

    Returns:
        The enriched record and one HTML rendering per platform.

    Raises:
        MarkdownError: If the source cannot be processed.
        ValidationFailure: If ``validate`` is set and a platform rejects the content.
        ConfigurationError: If a platform name is unknown.
    """
    config = config or MarkflowConfig()
    if platforms is None:
        targets = config.target_platforms()
    else:
        targets = [p for name in platforms for p in config.target_platforms(str(name))]

    content = prepare_content(source, config, pipeline)

    outputs: dict[Platform, str] = {}
    for platform in targets:
        adapter = create_adapter(platform, config)
        if validate:
            adapter.validate_content(content)
        outputs[platform] = adapter.adapt_html(content.html)
        logger.info("Rendered %s output (%d chars)", platform, len(outputs[platform]))

    return ProcessedContent(content=content, outputs=outputs)


def standalone_page(title: str, body_html: str, adapter: PlatformAdapter) -> str:
    """Wrap adapted HTML into a complete page carrying the adapter's stylesheet."""
    return (
        "<!DOCTYPE html>\n"
        '<html lang="zh-CN">\n'
        "<head>\n"
        '<meta charset="utf-8">\n'
        '<meta name="viewport" content="width=device-width, initial-scale=1">\n'
        f"<title>{html_lib.escape(title)}</title>\n"
        f"<style>\n{adapter.stylesheet()}\n</style>\n"
        "</head>\n"
        f"<body>\n{body_html}\n</body>\n"
        "</html>\n"
    )
