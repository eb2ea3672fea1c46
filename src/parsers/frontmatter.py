"""Front-matter extraction for authored Markdown.

A front-matter block is a run of ``key: value`` lines fenced by two
``---`` lines, the first of which must be the very first line of the text::

    ---
    title: "My Post"
    tags: python, markdown
    ---
    # Body starts here

Parsing is deliberately tolerant: lines without a colon are skipped, and a
missing or unterminated block leaves the whole text as the body.
"""

from __future__ import annotations

import logging

from markflow.content.models import ContentMetadata

logger = logging.getLogger(__name__)

FRONT_MATTER_MARKER = "---"

# Keys consumed into first-class metadata; everything else is a custom field.
RECOGNIZED_KEYS = frozenset({"title", "author", "description", "tags", "cover"})


def _is_marker(line: str) -> bool:
    return line.rstrip("\r\n") == FRONT_MATTER_MARKER


def _unquote(value: str) -> str:
    if len(value) >= 2 and value[0] == value[-1] and value[0] in ('"', "'"):
        return value[1:-1]
    return value


def parse_front_matter(text: str) -> tuple[dict[str, str], str]:
    """Split raw source text into front-matter pairs and the body.

    Args:
        text: Raw document text.

    Returns:
        Tuple of (key/value map, body text with the block removed). When the
        text does not open with a marker line, or the block is never closed,
        the map is empty and the body is ``text`` unchanged.
    """
    lines = text.splitlines(keepends=True)
    if not lines or not _is_marker(lines[0]):
        return {}, text

    for end, line in enumerate(lines[1:], start=1):
        if _is_marker(line):
            break
    else:
        logger.debug("Front matter opened but never closed, treating as body")
        return {}, text

    front_matter: dict[str, str] = {}
    for line in lines[1:end]:
        key, sep, value = line.partition(":")
        if not sep:
            continue
        key = key.strip()
        if not key:
            continue
        front_matter[key] = _unquote(value.strip())

    body = "".join(lines[end + 1 :])
    return front_matter, body


def parse_tags(raw: str) -> list[str]:
    """Split a comma-separated tag string, trimming and dropping empties."""
    return [tag.strip() for tag in raw.split(",") if tag.strip()]


def metadata_from_front_matter(front_matter: dict[str, str]) -> ContentMetadata:
    """Build ``ContentMetadata`` from parsed front-matter pairs.

    ``title`` is recognized but not stored here; the title lives on the
    content record itself.
    """
    metadata = ContentMetadata(
        author=front_matter.get("author"),
        description=front_matter.get("description"),
        cover_image=front_matter.get("cover"),
    )
    if "tags" in front_matter:
        metadata.tags = parse_tags(front_matter["tags"])

    metadata.custom_fields = {
        key: value for key, value in front_matter.items() if key not in RECOGNIZED_KEYS
    }
    return metadata
