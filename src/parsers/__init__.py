"""Source parsing: front matter and Markdown compilation."""

from markflow.parsers.frontmatter import (
    FRONT_MATTER_MARKER,
    metadata_from_front_matter,
    parse_front_matter,
    parse_tags,
)
from markflow.parsers.markdown import UNTITLED, DocumentCompiler, extract_title

__all__ = [
    "DocumentCompiler",
    "FRONT_MATTER_MARKER",
    "UNTITLED",
    "extract_title",
    "metadata_from_front_matter",
    "parse_front_matter",
    "parse_tags",
]
