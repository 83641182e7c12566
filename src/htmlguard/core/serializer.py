"""Rendering of node trees to markup and to JSON-ready structures."""

import json
from typing import Any, Optional

from .nodes import Comment, Doctype, Document, Element, Node, OutputSettings, TextNode


class SerializationError(Exception):
    """Raised when a tree cannot be encoded into a structured output format."""

    pass


VOID_ELEMENTS = frozenset({
    'area', 'base', 'br', 'col', 'embed', 'hr', 'img', 'input', 'keygen', 'link',
    'meta', 'param', 'source', 'track', 'wbr',
})

# Contents are emitted without entity escaping
RAW_TEXT_ELEMENTS = frozenset({'script', 'style'})

# Whitespace inside these is significant, so pretty printing leaves them alone
PREFORMATTED_ELEMENTS = frozenset({'pre', 'textarea', 'script', 'style', 'title', 'plaintext', 'xmp'})

INLINE_ELEMENTS = frozenset({
    'a', 'abbr', 'acronym', 'b', 'bdi', 'bdo', 'big', 'br', 'button', 'cite', 'code',
    'data', 'del', 'dfn', 'em', 'font', 'i', 'img', 'input', 'ins', 'kbd', 'label',
    'mark', 'q', 's', 'samp', 'select', 'small', 'span', 'strike', 'strong', 'sub',
    'sup', 'time', 'tt', 'u', 'var', 'wbr',
})


def escape_text(text: str) -> str:
    return (
        text.replace('&', '&amp;')
        .replace('<', '&lt;')
        .replace('>', '&gt;')
        .replace('\xa0', '&nbsp;')
    )


def escape_attribute(value: str) -> str:
    return value.replace('&', '&amp;').replace('"', '&quot;').replace('\xa0', '&nbsp;')


def escape_comment(data: str) -> str:
    """
    Make comment data safe to place between <!-- and -->.

    Runs of dashes are split so the data can never contain "-->" or "--!>",
    and dashes or ">" next to the delimiters are padded with a space.
    """
    while '--' in data:
        data = data.replace('--', '- -')
    if data.startswith(('>', '->')):
        data = ' ' + data
    if data.endswith('-'):
        data += ' '
    return data


def start_tag(element: Element) -> str:
    parts = ['<', element.tag_name]
    for name, value in element.attributes.items():
        parts.append(f' {name}="{escape_attribute(value)}"')
    parts.append('>')
    return ''.join(parts)


def _render_leaf(node: Node) -> str:
    if isinstance(node, TextNode):
        parent = node.parent
        if isinstance(parent, Element) and parent.tag_name in RAW_TEXT_ELEMENTS:
            return node.data
        return escape_text(node.data)
    if isinstance(node, Comment):
        return f'<!--{escape_comment(node.data)}-->'
    if isinstance(node, Doctype):
        declaration = f'<!DOCTYPE {node.name}'
        if node.public_id:
            declaration += f' PUBLIC "{node.public_id}"'
            if node.system_id:
                declaration += f' "{node.system_id}"'
        elif node.system_id:
            declaration += f' SYSTEM "{node.system_id}"'
        return declaration + '>'
    return ''


def _render_compact(node: Node) -> str:
    out: list[str] = []
    stack: list[Any] = [node]
    while stack:
        item = stack.pop()
        if isinstance(item, str):
            out.append(item)
        elif isinstance(item, Document):
            stack.extend(reversed(item.child_nodes))
        elif isinstance(item, Element):
            out.append(start_tag(item))
            if item.tag_name not in VOID_ELEMENTS:
                stack.append(f'</{item.tag_name}>')
                stack.extend(reversed(item.child_nodes))
        else:
            out.append(_render_leaf(item))
    return ''.join(out)


def _is_significant(node: Node) -> bool:
    return not (isinstance(node, TextNode) and node.is_blank())


def _renders_inline(element: Element) -> bool:
    """Elements holding text or inline content keep their markup on one line."""
    if element.tag_name in PREFORMATTED_ELEMENTS or element.tag_name in INLINE_ELEMENTS:
        return True
    for child in element.child_nodes:
        if isinstance(child, TextNode) and not child.is_blank():
            return True
        if isinstance(child, Element) and child.tag_name in INLINE_ELEMENTS:
            return True
    return False


def _render_pretty(node: Node, indent: int) -> str:
    lines: list[str] = []
    stack: list[tuple[Any, int]] = [(node, 0)]
    while stack:
        item, depth = stack.pop()
        pad = ' ' * (indent * depth)
        if isinstance(item, str):
            lines.append(pad + item)
        elif isinstance(item, Document):
            children = [child for child in item.child_nodes if _is_significant(child)]
            stack.extend((child, depth) for child in reversed(children))
        elif isinstance(item, Element) and item.tag_name not in VOID_ELEMENTS and not _renders_inline(item):
            children = [child for child in item.child_nodes if _is_significant(child)]
            if not children:
                lines.append(pad + _render_compact(item))
                continue
            lines.append(pad + start_tag(item))
            stack.append((f'</{item.tag_name}>', depth))
            stack.extend((child, depth + 1) for child in reversed(children))
        elif isinstance(item, TextNode):
            lines.append(pad + _render_leaf(item).strip())
        else:
            lines.append(pad + _render_compact(item))
    return '\n'.join(lines)


def _settings_for(node: Node) -> OutputSettings:
    document = node.owner_document()
    return document.output_settings if document is not None else OutputSettings()


def to_markup(node: Node, pretty: Optional[bool] = None, indent: Optional[int] = None) -> str:
    """
    Render a node and its subtree as HTML markup.

    Args:
        node: The node to render (a Document renders all of its top-level nodes)
        pretty: Pretty print with one block per line (default: the owning
            document's output settings)
        indent: Spaces per nesting level when pretty printing (default: the
            owning document's output settings)

    Returns:
        The markup string
    """
    settings = _settings_for(node)
    pretty = settings.pretty_print if pretty is None else pretty
    indent = settings.indent_amount if indent is None else indent
    if pretty:
        return _render_pretty(node, max(indent, 0))
    return _render_compact(node)


def inner_markup(element: Element, pretty: Optional[bool] = None, indent: Optional[int] = None) -> str:
    """Render the children of an element, without the element's own tags."""
    separator = '\n' if (pretty if pretty is not None else _settings_for(element).pretty_print) else ''
    return separator.join(
        to_markup(child, pretty, indent)
        for child in element.child_nodes
        if not separator or _is_significant(child)
    )


def _element_to_map(element: Element) -> dict[str, Any]:
    root: dict[str, Any] = {}
    stack: list[tuple[Element, dict[str, Any]]] = [(element, root)]
    while stack:
        current, result = stack.pop()
        result['tag'] = current.tag_name
        if current.attributes:
            result['attributes'] = dict(current.attributes)

        children: list[dict[str, Any]] = []
        for child in current.child_nodes:
            if isinstance(child, Element):
                child_map: dict[str, Any] = {}
                children.append(child_map)
                stack.append((child, child_map))
            elif isinstance(child, TextNode):
                text = child.data.strip()
                if text:
                    children.append({'text': text})
        if children:
            result['children'] = children

    return root


def to_structured(node: Element) -> dict[str, Any]:
    """
    Convert an element tree into nested dictionaries.

    Each element becomes {"tag": ..., "attributes": {...}, "children": [...]},
    with "attributes" and "children" present only when non-empty. Text nodes
    are trimmed and become {"text": ...}; blank text, comments and doctypes
    are left out. A Document is converted starting at its <html> element.

    Args:
        node: The element or document to convert

    Returns:
        The structured form of the tree
    """
    if isinstance(node, Document):
        root = node.html_element or next(iter(node.children), None)
        if root is None:
            return {'tag': node.tag_name}
        return _element_to_map(root)
    return _element_to_map(node)


def to_json(node: Element, pretty: bool = False, indent: int = 2) -> str:
    """
    Serialize the structured form of a tree as a JSON string.

    Args:
        node: The element or document to serialize
        pretty: Indent the JSON output
        indent: Spaces per nesting level when pretty printing

    Returns:
        The JSON string

    Raises:
        SerializationError: If the tree cannot be encoded
    """
    try:
        return json.dumps(
            to_structured(node),
            ensure_ascii=False,
            indent=indent if pretty else None,
        )
    except (TypeError, ValueError, RecursionError) as e:
        raise SerializationError(f"Failed to convert {node.node_name} to JSON: {e}") from e


def to_xml(node: Node, pretty: bool = False, indent: int = 0) -> str:
    """
    Render a tree as markup, optionally pretty printed.

    This is the HTML serializer; the output is HTML-flavored, not XML.
    """
    return to_markup(node, pretty, indent)
