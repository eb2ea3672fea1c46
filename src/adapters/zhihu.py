"""Zhihu column adapter.

Zhihu keeps class-based styling, renders ``ztext-math`` elements with its
own math engine and highlights ``div.highlight`` code blocks, so this adapter
mostly tags elements with the classes the Zhihu editor expects.
"""

from __future__ import annotations

import html as html_lib
import logging
import re
from collections.abc import Callable, Iterable

from markflow.adapters.base import PlatformAdapter, ValidationError, ValidationSeverity
from markflow.adapters.html import AttributeStripper, ElementStripper, OpenTagRewriter, add_class
from markflow.content.models import Content, Platform

logger = logging.getLogger(__name__)

MAX_CONTENT_LENGTH = 30000
TITLE_MAX_LENGTH = 100
MAX_TAGS = 5
DEFAULT_CODE_THEME = "github"

FORBIDDEN_TAGS = (
    "script", "style", "iframe", "object", "embed",
    "form", "input", "button", "meta", "link",
)
DANGEROUS_ATTRIBUTES = ("onclick", "onload", "onerror", "onmouseover", "onfocus")
MARKETING_KEYWORDS = ("广告", "推广", "联系方式")

STYLESHEET = """\
.ztext-image { max-width: 100%; height: auto; display: block; margin: 20px auto; }
.ztext-table { width: 100%; border-collapse: collapse; margin: 20px 0; }
.ztext-list { margin: 15px 0; padding-left: 30px; }
.ztext-math { font-family: 'Times New Roman', serif; }
.highlight { background: #f8f8f8; border-radius: 4px; padding: 16px; margin: 16px 0; }
.inline-code {
    background: #f0f0f0;
    color: #d73a49;
    padding: 2px 4px;
    border-radius: 3px;
    font-family: 'SFMono-Regular', Consolas, monospace;
}
"""

# Code elements and tags are never searched for math delimiters.
_PROTECTED_RE = re.compile(
    r"(<pre\b.*?</pre\s*>|<code\b.*?</code\s*>|<[^>]*>)", re.IGNORECASE | re.DOTALL
)
_INLINE_MATH_RE = re.compile(r"(?<!\$)\$([^$\n]+)\$(?!\$)")
_BLOCK_MATH_RE = re.compile(r"\$\$(.+?)\$\$", re.DOTALL)
_CODE_BLOCK_RE = re.compile(
    r'<pre><code(?:\s+class="language-([^"]*)")?>(.*?)</code></pre>', re.DOTALL
)
_INLINE_CODE_RE = re.compile(r"<code>([^<]*)</code>")


def _math_element(tag: str, mode: str, formula: str) -> str:
    tex = html_lib.escape(html_lib.unescape(formula))
    return f'<{tag} class="ztext-math" data-tex="{tex}" data-mode="{mode}">{tex}</{tag}>'


def _outside_markup(html: str, rewrite: Callable[[str], str]) -> str:
    # split() with one group alternates text (even) and protected markup (odd)
    parts = _PROTECTED_RE.split(html)
    return "".join(rewrite(part) if i % 2 == 0 else part for i, part in enumerate(parts))


def render_math(text: str) -> str:
    """Replace ``$…$`` and ``$$…$$`` spans with ``ztext-math`` elements."""
    text = _INLINE_MATH_RE.sub(lambda m: _math_element("span", "inline", m.group(1)), text)
    return _BLOCK_MATH_RE.sub(
        lambda m: _math_element("div", "display", m.group(1).strip()), text
    )


class ZhihuStyleAdapter(PlatformAdapter):
    """Class-decorated HTML for the Zhihu editor.

    Args:
        math_enabled: Convert ``$`` delimited TeX into ``ztext-math`` elements.
        code_theme: Highlight theme name recorded on every code block.
        max_content_length: Character ceiling for the Markdown source.
        forbidden_tags: Elements removed entirely, content included.
    """

    def __init__(
        self,
        *,
        math_enabled: bool = True,
        code_theme: str = DEFAULT_CODE_THEME,
        max_content_length: int = MAX_CONTENT_LENGTH,
        forbidden_tags: Iterable[str] = FORBIDDEN_TAGS,
        dangerous_attributes: Iterable[str] = DANGEROUS_ATTRIBUTES,
    ) -> None:
        self.math_enabled = math_enabled
        self.code_theme = code_theme
        self.max_content_length = max_content_length
        self.forbidden_tags = tuple(forbidden_tags)
        self.dangerous_attributes = tuple(dangerous_attributes)

        self._strip_elements = ElementStripper(self.forbidden_tags)
        self._strip_attributes = AttributeStripper(self.dangerous_attributes)
        self._decorate_images = OpenTagRewriter(
            "img", lambda attrs: add_class(attrs, "ztext-image")
        )
        self._decorate_tables = OpenTagRewriter(
            "table", lambda attrs: add_class(attrs, "ztext-table")
        )
        self._decorate_lists = [
            OpenTagRewriter(tag, lambda attrs: add_class(attrs, "ztext-list"))
            for tag in ("ol", "ul")
        ]

    def platform(self) -> Platform:
        return Platform.ZHIHU

    def adapt_html(self, html: str) -> str:
        logger.info("Adapting HTML for Zhihu")
        html = self._strip_attributes(self._strip_elements(html))
        if self.math_enabled:
            html = _outside_markup(html, render_math)
        html = self._enhance_code(html)
        html = self._decorate_images(html)
        html = self._decorate_tables(html)
        for decorate in self._decorate_lists:
            html = decorate(html)
        return html

    def _enhance_code(self, html: str) -> str:
        def _block(m: re.Match[str]) -> str:
            language = m.group(1) or "text"
            return (
                f'<div class="highlight" data-theme="{html_lib.escape(self.code_theme)}">'
                f'<pre><code class="language-{language}" data-lang="{language}">'
                f"{m.group(2)}</code></pre></div>"
            )

        html = _CODE_BLOCK_RE.sub(_block, html)
        return _INLINE_CODE_RE.sub(r'<code class="inline-code">\1</code>', html)

    async def preprocess_images(self, html: str) -> str:
        logger.debug("Decorating images for Zhihu")
        return self._decorate_images(html)

    def check_content(self, content: Content) -> list[ValidationError]:
        issues: list[ValidationError] = []

        length = len(content.markdown)
        if length > self.max_content_length:
            issues.append(
                ValidationError(
                    field="content",
                    message=f"content length {length} exceeds the limit of "
                    f"{self.max_content_length} characters",
                )
            )

        if not content.title.strip():
            issues.append(ValidationError(field="title", message="title must not be empty"))
        elif len(content.title) > TITLE_MAX_LENGTH:
            issues.append(
                ValidationError(
                    field="title",
                    message=f"title is longer than {TITLE_MAX_LENGTH} characters",
                    severity=ValidationSeverity.WARNING,
                )
            )

        if len(content.metadata.tags) > MAX_TAGS:
            issues.append(
                ValidationError(
                    field="tags",
                    message=f"more than {MAX_TAGS} tags; Zhihu keeps the first {MAX_TAGS}",
                    severity=ValidationSeverity.WARNING,
                )
            )

        for keyword in MARKETING_KEYWORDS:
            if keyword in content.markdown:
                issues.append(
                    ValidationError(
                        field="content",
                        message=f"content contains a restricted keyword: {keyword}",
                        severity=ValidationSeverity.WARNING,
                    )
                )

        return issues

    def stylesheet(self) -> str:
        return STYLESHEET
