"""URL utilities for detecting schemes and resolving relative links."""

import re
from typing import Optional
from urllib.parse import urljoin


# A URL scheme as defined by RFC 3986, followed by its colon
_SCHEME_RE = re.compile(r'^([a-zA-Z][a-zA-Z0-9+.\-]*):')

# Browsers ignore ASCII whitespace and control characters inside a scheme
# ("java\tscript:" is still javascript:)
_IGNORED_URL_CHARS_RE = re.compile(r'[\x00-\x20\x7f]+')


def get_scheme(url: str) -> Optional[str]:
    """
    Get the lower-cased scheme of a URL.

    Args:
        url: The URL to inspect

    Returns:
        The scheme (e.g. "https"), or None if the URL is relative
    """
    match = _SCHEME_RE.match(_IGNORED_URL_CHARS_RE.sub('', url))
    return match.group(1).lower() if match else None


def is_relative_url(url: str) -> bool:
    """
    Check if a URL is a relative reference (it carries no scheme).

    Protocol-relative ("//host/path"), path-only and fragment-only URLs are
    all relative.
    """
    return get_scheme(url) is None


def resolve_url(base_url: str, url: str) -> str:
    """
    Resolve a URL relative to a base URL.

    Args:
        base_url: The base URL to resolve against
        url: The URL to resolve (can be relative or absolute)

    Returns:
        The resolved URL
    """
    return urljoin(base_url, url.strip())


def resolve_absolute_url(base_url: str, url: str) -> Optional[str]:
    """
    Resolve a URL into an absolute URL.

    Absolute URLs are returned unchanged. Relative URLs are resolved against
    the base URL.

    Args:
        base_url: The base URL to resolve against (may be empty)
        url: The URL to resolve

    Returns:
        The absolute URL, or None when there is no usable base URL or the
        URL cannot be resolved
    """
    if not is_relative_url(url):
        return url
    if not base_url or is_relative_url(base_url):
        return None
    try:
        resolved = resolve_url(base_url, url)
    except ValueError:
        # Malformed netloc, e.g. an unterminated IPv6 literal
        return None
    return None if is_relative_url(resolved) else resolved
