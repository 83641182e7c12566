"""Public entry points: clean() and parse()."""

import logging
from typing import Optional, Union

from .cleaner import clean_html, is_valid_html
from .nodes import Document, EMPTY_DOCUMENT
from .parser import parse_document
from .safelist import Safelist, resolve_safelist

logger = logging.getLogger(__name__)


def _require_markup(value, argument: str) -> None:
    if value is not None and not isinstance(value, str):
        raise TypeError(f"'{argument}' must be a string, got {type(value).__name__}")


def _to_safelist(safe_list: Union[str, Safelist]) -> Safelist:
    if isinstance(safe_list, Safelist):
        return safe_list
    return resolve_safelist(safe_list)


def clean(
    html: Optional[str],
    safe_list: Union[str, Safelist] = 'relaxed',
    preserve_relative_links: Optional[bool] = None,
    base_uri: str = '',
) -> str:
    """
    Clean untrusted HTML against a safelist.

    - `safe_list` names a preset (none, simpletext, basic, basicwithimages,
      relaxed; case-insensitive) or is a custom Safelist.
    - Relative links are resolved against `base_uri` and dropped when they
      cannot be resolved, unless `preserve_relative_links` is set, in which
      case they are kept as written and `base_uri` is ignored.

    Args:
        html: The HTML to clean
        safe_list: The safelist to apply (default: "relaxed")
        preserve_relative_links: Keep relative links unchanged (default: None,
            which uses the safelist's own setting)
        base_uri: Base URI for resolving relative links (default: "")

    Returns:
        The cleaned markup, or an empty string if html is None or empty

    Raises:
        ConfigurationError: If safe_list is not a known preset name
    """
    safelist = _to_safelist(safe_list)
    _require_markup(html, 'html')
    if not html:
        return ''

    if preserve_relative_links is not None:
        # Never modify the shared preset; the override lives on a copy
        safelist = safelist.with_preserve_relative_links(preserve_relative_links)
    logger.debug(f"Cleaning {len(html)} characters with safelist '{safelist.name}'")
    return clean_html(html, safelist, base_uri or '')


def is_valid(html: Optional[str], safe_list: Union[str, Safelist] = 'relaxed') -> bool:
    """
    Check whether HTML would pass through clean() without losing elements or attributes.

    Raises:
        ConfigurationError: If safe_list is not a known preset name
    """
    safelist = _to_safelist(safe_list)
    _require_markup(html, 'html')
    return is_valid_html(html or '', safelist)


def parse(html: Optional[str], base_uri: str = '') -> Document:
    """
    Parse HTML into a Document.

    Malformed markup never fails; missing html, head and body elements are
    synthesized.

    Args:
        html: The HTML to parse
        base_uri: The URL the HTML came from (default: "")

    Returns:
        The parsed document; a copy of the empty document shell if html is
        None or empty
    """
    _require_markup(html, 'html')
    if not html:
        return Document.from_document(EMPTY_DOCUMENT)
    return parse_document(html, base_uri or '')
