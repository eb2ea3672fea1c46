"""Helpers shared across markflow packages."""
