"""WeChat official-account adapter.

The WeChat editor drops stylesheets and most link targets, so styling is
inlined on every element and absolute links become numbered references
listed at the end of the article.
"""

from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Mapping
from types import MappingProxyType

from markflow.adapters.base import PlatformAdapter, ValidationError, ValidationSeverity
from markflow.adapters.html import (
    AttributeStripper,
    ElementStripper,
    OpenTagRewriter,
    add_style,
    get_attr,
    strip_javascript_urls,
)
from markflow.content.models import Content, Platform
from markflow.shared.urls import is_absolute_url, is_data_uri

logger = logging.getLogger(__name__)

MAX_CONTENT_LENGTH = 20000
TITLE_MAX_LENGTH = 64
REFERENCES_HEADING = "References"

DEFAULT_STYLES: Mapping[str, str] = MappingProxyType(
    {
        "body": (
            "font-family: -apple-system, BlinkMacSystemFont, 'Segoe UI', Roboto, "
            "'Helvetica Neue', Arial, sans-serif; color: #333; line-height: 1.6; "
            "margin: 0; padding: 20px;"
        ),
        "p": "font-size: 16px; line-height: 1.8; margin: 20px 0; color: #333; text-align: justify;",
        "h1": (
            "font-size: 24px; font-weight: bold; text-align: center; margin: 30px 0 20px 0; "
            "color: #2c3e50; border-bottom: 2px solid #3498db; padding-bottom: 10px;"
        ),
        "h2": (
            "font-size: 20px; font-weight: bold; margin: 25px 0 15px 0; color: #2c3e50; "
            "border-left: 4px solid #3498db; padding-left: 15px;"
        ),
        "h3": "font-size: 18px; font-weight: bold; margin: 20px 0 10px 0; color: #34495e;",
        "h4": "font-size: 16px; font-weight: bold; margin: 15px 0 8px 0; color: #34495e;",
        "blockquote": (
            "border-left: 4px solid #ddd; margin: 20px 0; padding: 10px 20px; "
            "background-color: #f9f9f9; font-style: italic; color: #666;"
        ),
        "pre": (
            "background-color: #f8f8f8; border: 1px solid #ddd; border-radius: 6px; "
            "padding: 15px; margin: 20px 0; overflow-x: auto; "
            "font-family: 'Consolas', 'Monaco', 'Courier New', monospace; "
            "font-size: 14px; line-height: 1.4;"
        ),
        "code": (
            "background-color: #f1f2f3; padding: 2px 6px; border-radius: 3px; "
            "font-family: 'Consolas', 'Monaco', 'Courier New', monospace; "
            "font-size: 14px; color: #e96900;"
        ),
        "img": (
            "max-width: 100%; height: auto; display: block; margin: 20px auto; "
            "border-radius: 8px; box-shadow: 0 2px 8px rgba(0,0,0,0.1);"
        ),
        "table": "width: 100%; border-collapse: collapse; margin: 20px 0; font-size: 14px;",
        "th": (
            "background-color: #f1f2f3; padding: 12px; text-align: left; "
            "border: 1px solid #ddd; font-weight: bold;"
        ),
        "td": "padding: 12px; text-align: left; border: 1px solid #ddd;",
        "ul": "margin: 15px 0; padding-left: 30px;",
        "ol": "margin: 15px 0; padding-left: 30px;",
        "li": "margin: 8px 0; line-height: 1.6;",
        "a": "color: #3498db; text-decoration: none; border-bottom: 1px dotted #3498db;",
        "strong": "font-weight: bold; color: #2c3e50;",
        "em": "font-style: italic; color: #7f8c8d;",
    }
)

# Tags the WeChat editor keeps; anything else is reported as an info finding.
ALLOWED_TAGS: frozenset[str] = frozenset(
    {
        "p", "h1", "h2", "h3", "h4", "h5", "h6", "br", "hr", "strong", "b",
        "em", "i", "u", "s", "del", "ins", "blockquote", "pre", "code", "span",
        "div", "ul", "ol", "li", "dl", "dt", "dd", "table", "thead", "tbody",
        "tr", "th", "td", "img", "a", "section", "article", "aside", "nav",
    }
)

DANGEROUS_ATTRIBUTES = ("onclick", "onload", "onerror")

MOBILE_IMAGE_STYLE = "max-width: 100%; height: auto; display: block; margin: 20px auto;"
MOBILE_TABLE_STYLE = (
    "width: 100%; border-collapse: collapse; margin: 20px 0; font-size: 14px; overflow-x: auto;"
)
RELATIVE_LINK_STYLE = "color: #3498db; text-decoration: underline;"

_ANCHOR_RE = re.compile(
    r"""<a\s[^>]*?(?<![\w-])href\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s"'>]+))[^>]*>(.*?)</a\s*>""",
    re.IGNORECASE | re.DOTALL,
)
_TAG_NAME_RE = re.compile(r"</?([A-Za-z][A-Za-z0-9-]*)")


class WeChatStyleAdapter(PlatformAdapter):
    """Inline-styled, link-free HTML for the WeChat editor.

    Args:
        styles: Tag name to inline CSS declarations. Defaults to ``DEFAULT_STYLES``.
        max_content_length: Character ceiling for the Markdown source.
        title_max_length: Longest accepted title.
        references_heading: Heading text above the collected link references.
    """

    def __init__(
        self,
        *,
        styles: Mapping[str, str] | None = None,
        max_content_length: int = MAX_CONTENT_LENGTH,
        title_max_length: int = TITLE_MAX_LENGTH,
        references_heading: str = REFERENCES_HEADING,
        allowed_tags: Iterable[str] = ALLOWED_TAGS,
    ) -> None:
        self.styles: Mapping[str, str] = MappingProxyType(
            dict(DEFAULT_STYLES if styles is None else styles)
        )
        self.max_content_length = max_content_length
        self.title_max_length = title_max_length
        self.references_heading = references_heading
        self.allowed_tags = frozenset(allowed_tags)

        self._strip_elements = ElementStripper(("script", "style"), strict=True)
        self._strip_attributes = AttributeStripper(DANGEROUS_ATTRIBUTES)
        self._stylers = [
            OpenTagRewriter(tag, lambda attrs, style=style: add_style(attrs, style))
            for tag, style in self.styles.items()
        ]
        self._mobile_images = OpenTagRewriter("img", _ensure_image_style)
        self._mobile_tables = OpenTagRewriter(
            "table", lambda attrs: add_style(attrs, MOBILE_TABLE_STYLE)
        )

    def platform(self) -> Platform:
        return Platform.WECHAT

    def adapt_html(self, html: str) -> str:
        logger.info("Adapting HTML for WeChat")
        html = self._sanitize(html)
        html = self._inline_styles(html)
        html = self._externalize_links(html)
        html = self._optimize_for_mobile(html)
        return html

    def _sanitize(self, html: str) -> str:
        html = self._strip_elements(html)
        html = self._strip_attributes(html)
        return strip_javascript_urls(html)

    def _inline_styles(self, html: str) -> str:
        for styler in self._stylers:
            html = styler(html)
        return html

    def _externalize_links(self, html: str) -> str:
        """Replace absolute links with numbered markers and list them at the end."""
        footnotes: list[str] = []

        def _replace(m: re.Match[str]) -> str:
            href = next(v for v in m.group(1, 2, 3) if v is not None)
            text = m.group(4)
            if is_absolute_url(href):
                footnotes.append(href)
                return f"{text}[{len(footnotes)}]"
            return f'<span style="{RELATIVE_LINK_STYLE}">{text}</span>'

        result = _ANCHOR_RE.sub(_replace, html)
        if not footnotes:
            return result

        logger.debug("Collected %d link reference(s)", len(footnotes))
        return result + self._references_section(footnotes)

    def _references_section(self, footnotes: list[str]) -> str:
        entries = "<br>\n".join(f"[{i}] {url}" for i, url in enumerate(footnotes, start=1))
        return (
            '\n<hr style="margin: 30px 0; border: none; border-top: 1px solid #ddd;">\n'
            '<section style="font-size: 14px; font-weight: bold; color: #666; '
            f'margin-bottom: 10px;">{self.references_heading}</section>\n'
            '<section style="font-size: 12px; color: #666; line-height: 1.8;">\n'
            f"{entries}\n"
            "</section>\n"
        )

    def _optimize_for_mobile(self, html: str) -> str:
        html = self._mobile_images(html)
        return self._mobile_tables(html)

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
        elif len(content.title) > self.title_max_length:
            issues.append(
                ValidationError(
                    field="title",
                    message=f"title length {len(content.title)} exceeds the limit of "
                    f"{self.title_max_length} characters",
                )
            )

        cover = content.metadata.cover_image
        if cover and not (is_absolute_url(cover) or is_data_uri(cover)):
            issues.append(
                ValidationError(
                    field="cover_image",
                    message="cover image should be an http(s) URL or a data URI",
                    severity=ValidationSeverity.WARNING,
                )
            )

        for tag in sorted(self._unsupported_tags(content.html)):
            issues.append(
                ValidationError(
                    field="html",
                    message=f"<{tag}> is not supported by the WeChat editor",
                    severity=ValidationSeverity.INFO,
                )
            )

        return issues

    def _unsupported_tags(self, html: str) -> set[str]:
        return {
            name
            for name in (m.group(1).lower() for m in _TAG_NAME_RE.finditer(html))
            if name not in self.allowed_tags
        }

    def stylesheet(self) -> str:
        return "\n".join(f"{tag} {{ {style} }}" for tag, style in self.styles.items())


def _ensure_image_style(attrs: str) -> str:
    if get_attr(attrs, "style") is not None:
        return attrs
    return add_style(attrs, MOBILE_IMAGE_STYLE)
