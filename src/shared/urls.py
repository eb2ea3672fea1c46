"""URL classification shared by the compiler, the pipeline and the adapters."""

from __future__ import annotations


def is_absolute_url(url: str) -> bool:
    """True for ``http://`` and ``https://`` targets."""
    return url.strip().lower().startswith(("http://", "https://"))


def is_data_uri(url: str) -> bool:
    return url.strip().lower().startswith("data:")


def is_relative_reference(url: str) -> bool:
    """True when ``url`` is neither absolute nor an inline data URI."""
    return not is_absolute_url(url) and not is_data_uri(url)
