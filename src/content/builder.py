"""Assemble a ``Content`` record from parsed document parts."""

from __future__ import annotations

from markflow.content.models import Content
from markflow.parsers.frontmatter import metadata_from_front_matter
from markflow.parsers.markdown import extract_title


def build_content(front_matter: dict[str, str], body: str, html: str = "") -> Content:
    """Merge front matter, the derived title and the rendering into a record.

    Word count and reading time are computed from ``body`` as part of
    construction.

    Args:
        front_matter: Parsed front-matter pairs (may be empty).
        body: Markdown body with the front-matter block removed.
        html: Compiled HTML for ``body``.

    Returns:
        A new ``Content`` with a fresh id and timestamps.
    """
    return Content(
        title=extract_title(body, front_matter),
        markdown=body,
        html=html,
        metadata=metadata_from_front_matter(front_matter),
    )
