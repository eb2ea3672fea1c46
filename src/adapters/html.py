"""Regex rewrite primitives shared by the platform adapters.

Every function here is total over arbitrary markup: input that does not
match a rule passes through unchanged. Rewrites touch the opening tags of
the targeted elements only and leave all other markup byte-for-byte intact.
"""

from __future__ import annotations

import re
from collections.abc import Callable, Iterable

from markflow.errors import HtmlError

_TAG_NAME_RE = re.compile(r"^[A-Za-z][A-Za-z0-9-]*$")
_ANY_TAG_RE = re.compile(r"<[A-Za-z][^>]*>")
_JAVASCRIPT_RE = re.compile(r"javascript\s*:", re.IGNORECASE)


def compile_pattern(pattern: str, flags: int = 0) -> re.Pattern[str]:
    """Compile a rewrite pattern, reporting failures as ``HtmlError``."""
    try:
        return re.compile(pattern, flags)
    except re.error as exc:
        raise HtmlError(f"Invalid rewrite pattern {pattern!r}: {exc}") from exc


def _tag_alternation(tags: Iterable[str]) -> str:
    names = list(tags)
    for name in names:
        if not _TAG_NAME_RE.match(name):
            raise HtmlError(f"Invalid tag name: {name!r}")
    return "|".join(re.escape(name) for name in names)


def _attr_pattern(name: str) -> re.Pattern[str]:
    return compile_pattern(
        rf"""(\s){re.escape(name)}\s*=\s*(?:"([^"]*)"|'([^']*)'|([^\s"'>]+))""",
        re.IGNORECASE,
    )


# ── Element and attribute removal ────────────────────────────────


class ElementStripper:
    """Removes whole elements of the given tag names.

    Handles ``<tag>…</tag>`` pairs (content included), self-closing
    ``<tag/>`` forms and leftover unpaired opening or closing tags. Runs to a
    fixed point, so removals that splice a new match together are caught.

    With ``strict=True`` leftover tags are matched by prefix (``<script``
    anywhere, even ``<scriptx``), which guarantees the output never contains
    ``<tag`` for any of the names.
    """

    def __init__(self, tags: Iterable[str], *, strict: bool = False) -> None:
        names = _tag_alternation(tags)
        self._enabled = bool(names)
        boundary = "" if strict else r"(?![\w-])"
        flags = re.IGNORECASE | re.DOTALL
        self._paired = compile_pattern(rf"<({names}){boundary}[^>]*>.*?</\1\s*>", flags)
        self._self_closing = compile_pattern(rf"<(?:{names}){boundary}[^>]*/>", flags)
        self._leftover = compile_pattern(rf"</?(?:{names}){boundary}[^>]*>?", flags)

    def __call__(self, html: str) -> str:
        if not self._enabled:
            return html
        while True:
            result = self._paired.sub("", html)
            result = self._self_closing.sub("", result)
            result = self._leftover.sub("", result)
            if result == html:
                return result
            html = result


class AttributeStripper:
    """Drops the named attributes from every opening tag."""

    def __init__(self, names: Iterable[str]) -> None:
        alternation = _tag_alternation(names)
        self._enabled = bool(alternation)
        self._pattern = compile_pattern(
            rf"""\s+(?:{alternation})\s*=\s*(?:"[^"]*"|'[^']*'|[^\s>]+)""",
            re.IGNORECASE,
        )

    def __call__(self, html: str) -> str:
        if not self._enabled:
            return html
        return _ANY_TAG_RE.sub(lambda m: self._pattern.sub("", m.group(0)), html)


def strip_javascript_urls(html: str) -> str:
    """Remove ``javascript:`` schemes from inside tags."""
    return _ANY_TAG_RE.sub(lambda m: _JAVASCRIPT_RE.sub("", m.group(0)), html)


# ── Opening-tag rewriting ────────────────────────────────────────


class OpenTagRewriter:
    """Rewrites the attribute string of every opening ``<tag …>``.

    ``rewrite`` receives the raw attribute text (leading whitespace included,
    self-closing slash removed) and returns the replacement attribute text.
    """

    def __init__(self, tag: str, rewrite: Callable[[str], str]) -> None:
        name = _tag_alternation([tag])
        self._pattern = compile_pattern(rf"<({name})(?=[\s/>])([^>]*)>", re.IGNORECASE)
        self._rewrite = rewrite

    def _sub(self, m: re.Match[str]) -> str:
        name, attrs = m.group(1), m.group(2)
        closing = ""
        stripped = attrs.rstrip()
        if stripped.endswith("/"):
            attrs = stripped[:-1].rstrip()
            closing = " /"
        return f"<{name}{self._rewrite(attrs)}{closing}>"

    def __call__(self, html: str) -> str:
        return self._pattern.sub(self._sub, html)


def get_attr(attrs: str, name: str) -> str | None:
    """Return the value of an attribute, quoted or bare, or None when absent."""
    m = _attr_pattern(name).search(attrs)
    if m is None:
        return None
    return next(v for v in m.group(2, 3, 4) if v is not None)


def set_attr(attrs: str, name: str, value: str) -> str:
    """Replace the first ``name=…`` attribute, or append it.

    The written value is always double-quoted, whatever form it replaced.
    """
    rendered = value.replace('"', "&quot;")
    pattern = _attr_pattern(name)
    if pattern.search(attrs):
        return pattern.sub(lambda m: f'{m.group(1)}{name}="{rendered}"', attrs, count=1)
    return f'{attrs} {name}="{rendered}"'


# ── Style and class merging ──────────────────────────────────────


def _declarations(style: str) -> list[str]:
    return [d.strip() for d in style.split(";") if d.strip()]


def _normalize_declaration(declaration: str) -> str:
    prop, _, value = declaration.partition(":")
    return f"{prop.strip().lower()}:{' '.join(value.split()).lower()}"


def merge_style(existing: str, addition: str) -> str:
    """Append declarations to an inline style.

    Existing declarations come first, untouched; new ones follow after
    ``; ``. A declaration already present is not appended again, so merging
    the same rules repeatedly never grows the attribute.
    """
    base = existing.strip().rstrip(";").strip()
    present = {_normalize_declaration(d) for d in _declarations(base)}
    missing: list[str] = []
    for declaration in _declarations(addition):
        key = _normalize_declaration(declaration)
        if key not in present:
            present.add(key)
            missing.append(declaration)
    return "; ".join([base, *missing] if base else missing)


def merge_class(existing: str, token: str) -> str:
    """Add a class token unless it is already present."""
    tokens = existing.split()
    if token not in tokens:
        tokens.append(token)
    return " ".join(tokens)


def add_style(attrs: str, style: str) -> str:
    return set_attr(attrs, "style", merge_style(get_attr(attrs, "style") or "", style))


def add_class(attrs: str, token: str) -> str:
    return set_attr(attrs, "class", merge_class(get_attr(attrs, "class") or "", token))
