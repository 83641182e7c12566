"""Utility modules for htmlguard."""

from .url_utils import get_scheme, is_relative_url, resolve_url, resolve_absolute_url

__all__ = ["get_scheme", "is_relative_url", "resolve_url", "resolve_absolute_url"]
