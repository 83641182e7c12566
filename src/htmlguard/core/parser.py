"""Forgiving HTML parsing into the htmlguard node tree using lxml."""

import logging
import re
from typing import Optional

from lxml import etree, html as lxml_html

from .nodes import Comment, Doctype, Document, Element, TextNode
from ..utils.url_utils import resolve_absolute_url

logger = logging.getLogger(__name__)


# Same check lxml.html uses to tell full documents from fragments
_FULL_HTML_RE = re.compile(r'^\s*<(?:html|!doctype)', re.I)
_CONTENT_TYPE_CHARSET_RE = re.compile(r'charset\s*=\s*["\']?([\w.:-]+)', re.I)
_XML_NAMESPACE = 'http://www.w3.org/XML/1998/namespace'


def _make_parser() -> lxml_html.HTMLParser:
    # lxml parser objects must not be shared between threads
    return lxml_html.HTMLParser(
        encoding='utf-8',
        remove_comments=False,
        remove_pis=True,
        default_doctype=False,
        no_network=True,
        # Without it libxml2 stops at nesting depth 256 and drops the rest
        huge_tree=True,
    )


def _parse_lxml(markup: str) -> Optional[etree._Element]:
    """Run libxml2's HTML parser, returning None when nothing could be parsed."""
    # NUL characters are dropped by HTML parsers; libxml2 would stop at them
    data = markup.replace('\x00', '').encode('utf-8', 'replace')
    try:
        return lxml_html.document_fromstring(data, parser=_make_parser())
    except etree.ParserError as e:
        logger.debug(f"Nothing parseable in input, using an empty document: {e}")
        return None


def _attribute_name(name: str) -> str:
    # libxml2 puts xml:lang and friends in the XML namespace
    if name.startswith('{'):
        namespace, local = name[1:].split('}', 1)
        return f'xml:{local}' if namespace == _XML_NAMESPACE else local
    return name


def _convert_node(source: etree._Element):
    """Convert a single lxml node (without its children) to a tree node."""
    if isinstance(source.tag, str):
        attributes = {_attribute_name(name): value for name, value in source.attrib.items()}
        return Element(source.tag, attributes)
    if source.tag is etree.Comment:
        return Comment(source.text or '')
    # Processing instructions and entity references carry no content
    return None


def _append_text(target: Element, text: Optional[str]) -> None:
    if text:
        target.append_text(text)


def _copy_children(source: etree._Element, target: Element) -> None:
    """Copy the lxml subtree under source into target, preserving order."""
    stack = [(source, target)]
    while stack:
        lxml_parent, parent = stack.pop()
        _append_text(parent, lxml_parent.text)
        for lxml_child in lxml_parent:
            node = _convert_node(lxml_child)
            if node is not None:
                parent.append_child(node)
                if isinstance(node, Element):
                    stack.append((lxml_child, node))
            _append_text(parent, lxml_child.tail)


def _build_document(root: Optional[etree._Element], base_uri: str) -> Document:
    document = Document(base_uri)
    if root is None:
        return document.normalise()

    tree = root.getroottree()
    docinfo = tree.docinfo
    if docinfo.doctype:
        document.append_child(Doctype(
            docinfo.root_name or 'html',
            docinfo.public_id or '',
            docinfo.system_url or '',
        ))

    # Content after a stray </html> ends up in a second root element after
    # this one; normalise() moves it into the body
    top_level = list(reversed(list(root.itersiblings(preceding=True))))
    top_level += [root] + list(root.itersiblings())
    for lxml_node in top_level:
        node = _convert_node(lxml_node)
        if node is None:
            continue
        document.append_child(node)
        if isinstance(node, Element):
            _copy_children(lxml_node, node)

    return document.normalise()


def _detect_charset(document: Document) -> Optional[str]:
    head = document.head
    if head is None:
        return None
    for meta in head.get_elements_by_tag('meta'):
        if meta.get('charset').strip():
            return meta.get('charset').strip()
        if meta.get('http-equiv').lower() == 'content-type':
            match = _CONTENT_TYPE_CHARSET_RE.search(meta.get('content'))
            if match:
                return match.group(1)
    return None


def parse_document(markup: str, base_uri: str = '') -> Document:
    """
    Parse a full HTML document or a fragment into a Document.

    Parsing never fails: malformed markup is repaired and html, head and body
    elements are synthesized when missing.

    Args:
        markup: The HTML to parse
        base_uri: The URL the markup was loaded from, used to resolve links

    Returns:
        The parsed document
    """
    if not _FULL_HTML_RE.match(markup) and not markup.lstrip().startswith('<'):
        # libxml2 wraps leading bare text in <p> unless a body is already open
        markup = '<body>' + markup

    document = _build_document(_parse_lxml(markup), base_uri)

    head = document.head
    base = next((b for b in head.get_elements_by_tag('base') if b.has_attr('href')), None)
    if base is not None:
        resolved = resolve_absolute_url(base_uri, base.get('href'))
        if resolved:
            document.base_uri = resolved

    charset = _detect_charset(document)
    if charset:
        document._charset = charset

    logger.debug(f"Parsed document with {sum(1 for _ in document.iter()) - 1} elements")
    return document


def parse_body_fragment(markup: str, base_uri: str = '') -> Document:
    """
    Parse an HTML fragment as the content of a document body.

    Args:
        markup: The HTML fragment
        base_uri: The base URI assigned to the resulting document

    Returns:
        A document whose <body> holds the parsed fragment
    """
    return _build_document(_parse_lxml(f'<html><body>{markup}</body></html>'), base_uri)
