"""Safelist-driven HTML cleaning."""

import logging
from typing import Iterator, Optional

from .nodes import Comment, Document, Element, Node, TextNode
from .parser import parse_body_fragment
from .safelist import Safelist
from .serializer import inner_markup
from ..utils.url_utils import get_scheme

logger = logging.getLogger(__name__)


class Cleaner:
    """
    Copies the safe parts of a document into a new document.

    Disallowed elements are unwrapped: their children are cleaned and promoted
    into the element's place. Disallowed content-opaque elements (script,
    style, ...) are dropped together with everything inside them.
    """

    def __init__(self, safelist: Safelist):
        """
        Initialize the cleaner.

        Args:
            safelist: The policy to enforce
        """
        self.safelist = safelist

    def clean(self, dirty: Document) -> Document:
        """
        Clean a document's body.

        The head is never copied. The source document is left untouched.

        Args:
            dirty: The parsed, untrusted document

        Returns:
            A new document containing only safelisted content
        """
        clean = Document.create_shell(dirty.base_uri)
        if dirty.body is not None:
            discarded = self._copy_safe_nodes(dirty.body, clean.body)
            if discarded:
                logger.debug(f"Discarded {discarded} elements/attributes using safelist '{self.safelist.name}'")
        return clean

    def is_valid(self, dirty: Document) -> bool:
        """
        Check whether a document would pass through cleaning unchanged.

        Returns:
            True if no element or attribute would be removed and the head is empty
        """
        scratch = Document.create_shell(dirty.base_uri)
        discarded = self._copy_safe_nodes(dirty.body, scratch.body) if dirty.body is not None else 0
        head = dirty.head
        return discarded == 0 and (head is None or not head.child_nodes)

    def _copy_safe_nodes(self, source: Element, destination: Element) -> int:
        """
        Copy safe descendants of source into destination.

        Returns:
            The number of elements and attributes discarded
        """
        discarded = 0
        stack: list[tuple[Iterator[Node], Element]] = [(iter(source.child_nodes), destination)]
        while stack:
            children, target = stack[-1]
            node = next(children, None)
            if node is None:
                stack.pop()
                continue

            if isinstance(node, Element):
                if self.safelist.is_safe_tag(node.tag_name):
                    safe_element, dropped = self._create_safe_element(node)
                    discarded += dropped
                    target.append_child(safe_element)
                    stack.append((iter(node.child_nodes), safe_element))
                else:
                    discarded += 1
                    if self.safelist.is_content_opaque(node.tag_name):
                        logger.debug(f"Dropped <{node.tag_name}> and its content")
                        continue
                    # Promote the children into the current target
                    stack.append((iter(node.child_nodes), target))
            elif isinstance(node, TextNode):
                target.append_text(node.data)
            elif isinstance(node, Comment) and self.safelist.allow_comments:
                target.append_child(Comment(node.data))
        return discarded

    def _create_safe_element(self, source: Element) -> tuple[Element, int]:
        tag_name = source.tag_name
        element = Element(tag_name)
        discarded = 0

        for name, value in source.attributes.items():
            if not self.safelist.is_safe_attribute(tag_name, name):
                discarded += 1
                continue
            if self.safelist.is_url_attribute(tag_name, name):
                value = self._filter_url(source, name, value)
                if value is None:
                    logger.debug(f"Dropped unsafe URL in <{tag_name} {name}>")
                    discarded += 1
                    continue
            element.set(name, value)

        for name, value in self.safelist.enforced_attributes_for(tag_name).items():
            element.set(name, value)

        return element, discarded

    def _filter_url(self, source: Element, name: str, value: str) -> Optional[str]:
        """
        Validate (and, unless relative links are preserved, absolutize) a URL.

        Returns:
            The value to keep, or None when the attribute must be dropped
        """
        allowed = self.safelist.protocols_for(source.tag_name, name)
        scheme = get_scheme(value)
        if scheme is not None:
            return value if scheme in allowed else None

        if self.safelist.preserve_relative_links:
            return value

        absolute = source.abs_url(name)
        if not absolute:
            return None
        return absolute if get_scheme(absolute) in allowed else None


def clean_html(markup: str, safelist: Safelist, base_uri: str = '') -> str:
    """
    Clean an HTML fragment against a safelist.

    Args:
        markup: The untrusted HTML fragment
        safelist: The policy to apply
        base_uri: Base URI for resolving relative links (ignored when the
            safelist preserves relative links)

    Returns:
        The cleaned body markup, compact; an empty string for empty input
    """
    if not markup:
        return ''
    if safelist.preserve_relative_links:
        base_uri = ''
    dirty = parse_body_fragment(markup, base_uri)
    clean = Cleaner(safelist).clean(dirty)
    return inner_markup(clean.body, pretty=False)


def is_valid_html(markup: str, safelist: Safelist) -> bool:
    """Check whether an HTML fragment contains only safelisted content."""
    if not markup:
        return True
    return Cleaner(safelist).is_valid(parse_body_fragment(markup))
