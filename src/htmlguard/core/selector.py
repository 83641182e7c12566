"""CSS selector queries using cssselect and lxml XPath."""

import re
from typing import Optional

from cssselect import HTMLTranslator, SelectorError
from lxml import etree

from .nodes import Document, Element, TextNode


# Characters XML (and therefore lxml) refuses in text and attribute values
_INVALID_XML_CHARS_RE = re.compile('[\x00-\x08\x0b\x0c\x0e-\x1f\ud800-\udfff\ufffe\uffff]')

_translator = HTMLTranslator()


def _xml_safe(text: str) -> str:
    return _INVALID_XML_CHARS_RE.sub('', text)


def _mirror_node(element: Element, mapping: dict) -> etree._Element:
    try:
        mirror = etree.Element(element.tag_name)
    except ValueError:
        # Tag names libxml2's HTML parser accepts but XML does not
        mirror = etree.Element('htmlguard-unnamed')
    for name, value in element.attributes.items():
        try:
            mirror.set(name, _xml_safe(value))
        except ValueError:
            continue
    mapping[mirror] = element
    return mirror


def _mirror_element(element: Element, mapping: dict) -> etree._Element:
    """Build an lxml copy of an element subtree, recording lxml -> node pairs."""
    root = _mirror_node(element, mapping)
    stack = [(element, root)]
    while stack:
        source, mirror = stack.pop()
        last = None
        for child in source.child_nodes:
            if isinstance(child, Element):
                last = _mirror_node(child, mapping)
                mirror.append(last)
                stack.append((child, last))
            elif isinstance(child, TextNode):
                text = _xml_safe(child.data)
                if last is None:
                    mirror.text = (mirror.text or '') + text
                else:
                    last.tail = (last.tail or '') + text
    return root


def css_to_xpath(css: str) -> str:
    """
    Translate a CSS selector into an XPath expression.

    Raises:
        ValueError: If the selector is not valid CSS
    """
    try:
        return _translator.css_to_xpath(css)
    except SelectorError as e:
        raise ValueError(f"Invalid CSS selector '{css}': {e}") from e


def select(root: Element, css: str) -> list[Element]:
    """
    Find the elements under root (root included) matching a CSS selector.

    Args:
        root: The element or document to search
        css: The CSS selector

    Returns:
        Matching elements in document order
    """
    xpath = etree.XPath(css_to_xpath(css))
    scopes = root.children if isinstance(root, Document) else [root]

    matches: list[Element] = []
    for scope in scopes:
        mapping: dict = {}
        mirror = _mirror_element(scope, mapping)
        for found in xpath(mirror):
            element = mapping.get(found)
            if element is not None:
                matches.append(element)
    return matches


def select_first(root: Element, css: str) -> Optional[Element]:
    matches = select(root, css)
    return matches[0] if matches else None
