"""Markdown → HTML compilation and title extraction.

Uses mistune with GitHub-flavored extensions. The document is parsed to an
AST first so a single tree walk can normalize it before rendering:

- code blocks without a declared language are tagged ``text``, so downstream
  highlighters never see an empty language attribute;
- image and link targets that are neither absolute URLs nor data URIs are
  logged as relative references (left for the adapters to deal with).

Raw HTML in the source is passed through unescaped. Sanitizing is the
platform adapters' job, not the compiler's.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterator
from typing import Any

import mistune

from markflow.errors import MarkdownError
from markflow.shared.urls import is_relative_reference

logger = logging.getLogger(__name__)

DEFAULT_CODE_LANGUAGE = "text"
UNTITLED = "无标题"

PLUGINS = [
    "table",
    "strikethrough",
    "footnotes",
    "url",
    "task_lists",
    "superscript",
    "def_list",
]

_TITLE_RE = re.compile(r"^#\s+(.+)$")

Token = dict[str, Any]


def extract_title(body: str, front_matter: dict[str, str] | None = None) -> str:
    """Pick the document title.

    Precedence: front-matter ``title``, then the first level-1 heading found
    anywhere in the body, then the ``UNTITLED`` placeholder.
    """
    if front_matter and "title" in front_matter:
        return front_matter["title"]

    for line in body.splitlines():
        m = _TITLE_RE.match(line)
        if m:
            return m.group(1).strip()
    return UNTITLED


def _walk(tokens: list[Token]) -> Iterator[Token]:
    for token in tokens:
        yield token
        children = token.get("children")
        if isinstance(children, list):
            yield from _walk(children)


class DocumentCompiler:
    """Compiles Markdown bodies into semantic HTML.

    The compiler holds only parser configuration, so one instance can be
    shared freely between callers.
    """

    def __init__(self, default_language: str = DEFAULT_CODE_LANGUAGE) -> None:
        self.default_language = default_language
        self._parser = mistune.create_markdown(renderer=None, plugins=PLUGINS)
        self._renderer = mistune.create_markdown(escape=False, plugins=PLUGINS).renderer

    def compile(self, source: str | bytes) -> str:
        """Render Markdown to HTML.

        Args:
            source: Markdown text, or UTF-8 encoded bytes.

        Returns:
            The rendered HTML fragment.

        Raises:
            MarkdownError: If ``source`` is not valid UTF-8 or rendering fails.
        """
        if isinstance(source, bytes):
            try:
                source = source.decode("utf-8")
            except UnicodeDecodeError as exc:
                raise MarkdownError(f"Markdown is not valid UTF-8: {exc}") from exc

        tokens, state = self._parser.parse(source)
        self.normalize(tokens)
        try:
            return self._renderer(tokens, state)
        except (AttributeError, KeyError, TypeError, ValueError) as exc:
            raise MarkdownError(f"HTML rendering failed: {exc}") from exc

    def normalize(self, tokens: list[Token]) -> None:
        """Normalize a parsed token tree in place."""
        for token in _walk(tokens):
            kind = token.get("type")
            if kind == "block_code":
                attrs = token.setdefault("attrs", {})
                if not (attrs.get("info") or "").strip():
                    attrs["info"] = self.default_language
            elif kind in ("image", "link"):
                url = token.get("attrs", {}).get("url", "")
                if is_relative_reference(url):
                    logger.debug("Relative %s reference: %s", kind, url)
