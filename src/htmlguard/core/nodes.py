"""In-memory node tree for parsed HTML documents."""

from dataclasses import dataclass, replace
from typing import Iterator, Optional

from ..utils.url_utils import resolve_absolute_url


# Elements that contribute a word boundary when extracting normalized text
BLOCK_ELEMENTS = frozenset({
    'address', 'article', 'aside', 'blockquote', 'body', 'br', 'caption', 'center',
    'dd', 'details', 'dialog', 'dir', 'div', 'dl', 'dt', 'fieldset', 'figcaption',
    'figure', 'footer', 'form', 'h1', 'h2', 'h3', 'h4', 'h5', 'h6', 'head', 'header',
    'hgroup', 'hr', 'html', 'li', 'main', 'menu', 'nav', 'ol', 'p', 'pre', 'section',
    'summary', 'table', 'tbody', 'td', 'tfoot', 'th', 'thead', 'title', 'tr', 'ul',
})

# Text inside these elements is data, not document text
DATA_ELEMENTS = frozenset({'script', 'style'})

# Elements that only exist once, at the top of a normalised document
SECTION_ELEMENTS = frozenset({'html', 'head', 'body'})


@dataclass
class OutputSettings:
    """Markup output settings carried by a document."""
    pretty_print: bool = False
    indent_amount: int = 1

    def clone(self) -> 'OutputSettings':
        return replace(self)


class Node:
    """Base class for every node in a document tree."""

    node_name = '#node'

    def __init__(self):
        self.parent: Optional['Element'] = None

    @property
    def child_nodes(self) -> tuple:
        """Leaf nodes have no children."""
        return ()

    @property
    def index(self) -> int:
        """Position of this node among its parent's children (0 for detached nodes)."""
        if self.parent is None:
            return 0
        for i, sibling in enumerate(self.parent.child_nodes):
            if sibling is self:
                return i
        return 0

    @property
    def next_sibling(self) -> Optional['Node']:
        if self.parent is None:
            return None
        siblings = self.parent.child_nodes
        i = self.index + 1
        return siblings[i] if i < len(siblings) else None

    @property
    def previous_sibling(self) -> Optional['Node']:
        if self.parent is None:
            return None
        i = self.index
        return self.parent.child_nodes[i - 1] if i > 0 else None

    def root(self) -> 'Node':
        """Return the topmost ancestor of this node (itself when detached)."""
        node = self
        while node.parent is not None:
            node = node.parent
        return node

    def owner_document(self) -> Optional['Document']:
        root = self.root()
        return root if isinstance(root, Document) else None

    def remove(self) -> None:
        """Detach this node from its parent."""
        if self.parent is not None:
            self.parent._remove_child(self)

    def replace_with(self, node: 'Node') -> None:
        """Replace this node in its parent with another node."""
        if self.parent is None:
            raise ValueError('Cannot replace a node that has no parent')
        self.parent.insert_child(self.index, node)
        self.remove()

    def before(self, node: 'Node') -> None:
        """Insert a node immediately before this one."""
        if self.parent is None:
            raise ValueError('Cannot insert a sibling next to a node that has no parent')
        self.parent.insert_child(self.index, node)

    def after(self, node: 'Node') -> None:
        """Insert a node immediately after this one."""
        if self.parent is None:
            raise ValueError('Cannot insert a sibling next to a node that has no parent')
        self.parent.insert_child(self.index + 1, node)

    def clone(self) -> 'Node':
        """Return a deep, detached copy of this node."""
        raise NotImplementedError

    def outer_html(self) -> str:
        """Render this node as markup using its document's output settings."""
        from .serializer import to_markup
        return to_markup(self)

    def __str__(self) -> str:
        return self.outer_html()


class TextNode(Node):
    """Character data."""

    node_name = '#text'

    def __init__(self, data: str = ''):
        super().__init__()
        self.data = data

    def text(self) -> str:
        """Return the text with whitespace runs collapsed."""
        return ' '.join(self.data.split())

    def is_blank(self) -> bool:
        return not self.data.strip()

    def clone(self) -> 'TextNode':
        return TextNode(self.data)

    def __repr__(self) -> str:
        return f'TextNode({self.data!r})'


class Comment(Node):
    """An HTML comment, kept verbatim."""

    node_name = '#comment'

    def __init__(self, data: str = ''):
        super().__init__()
        self.data = data

    def clone(self) -> 'Comment':
        return Comment(self.data)

    def __repr__(self) -> str:
        return f'Comment({self.data!r})'


class Doctype(Node):
    """A document type declaration."""

    node_name = '#doctype'

    def __init__(self, name: str = 'html', public_id: str = '', system_id: str = ''):
        super().__init__()
        self.name = name
        self.public_id = public_id
        self.system_id = system_id

    def clone(self) -> 'Doctype':
        return Doctype(self.name, self.public_id, self.system_id)

    def __repr__(self) -> str:
        return f'Doctype({self.name!r})'


class Element(Node):
    """An element with ordered attributes and owned child nodes."""

    def __init__(self, tag_name: str, attributes: Optional[dict[str, str]] = None):
        super().__init__()
        if not tag_name:
            raise ValueError('Element tag name must be non-empty')
        self.tag_name = tag_name.lower()
        self.attributes: dict[str, str] = {}
        for name, value in (attributes or {}).items():
            self.attributes.setdefault(name.lower(), value)
        self._children: list[Node] = []

    @property
    def node_name(self) -> str:
        return self.tag_name

    @property
    def child_nodes(self) -> tuple:
        return tuple(self._children)

    @property
    def children(self) -> list['Element']:
        """Element children only."""
        return [child for child in self._children if isinstance(child, Element)]

    # Attributes

    def get(self, name: str, default: str = '') -> str:
        return self.attributes.get(name.lower(), default)

    def set(self, name: str, value: str) -> 'Element':
        self.attributes[name.lower()] = value
        return self

    def has_attr(self, name: str) -> bool:
        return name.lower() in self.attributes

    def remove_attr(self, name: str) -> 'Element':
        self.attributes.pop(name.lower(), None)
        return self

    @property
    def id(self) -> str:
        return self.get('id')

    @property
    def class_names(self) -> list[str]:
        return self.get('class').split()

    def has_class(self, class_name: str) -> bool:
        wanted = class_name.lower()
        return any(name.lower() == wanted for name in self.class_names)

    def abs_url(self, name: str) -> str:
        """
        Resolve a URL attribute against the owning document's base URI.

        Args:
            name: The attribute holding the URL

        Returns:
            The absolute URL, or an empty string when the attribute is missing
            or cannot be made absolute
        """
        if not self.has_attr(name):
            return ''
        document = self.owner_document()
        base_uri = document.base_uri if document is not None else ''
        return resolve_absolute_url(base_uri, self.get(name)) or ''

    # Tree mutation

    def _adopt(self, node: Node) -> None:
        ancestor: Optional[Node] = self
        while ancestor is not None:
            if ancestor is node:
                raise ValueError(f'Cannot insert <{node.node_name}> into its own subtree')
            ancestor = ancestor.parent
        node.remove()
        node.parent = self

    def _remove_child(self, node: Node) -> None:
        for i, child in enumerate(self._children):
            if child is node:
                del self._children[i]
                node.parent = None
                return

    def append_child(self, node: Node) -> Node:
        """Append a node, detaching it from any previous parent first."""
        self._adopt(node)
        self._children.append(node)
        return node

    def prepend_child(self, node: Node) -> Node:
        return self.insert_child(0, node)

    def insert_child(self, index: int, node: Node) -> Node:
        """Insert a node at a position among this element's children."""
        if node.parent is self and node.index < index:
            index -= 1
        self._adopt(node)
        self._children.insert(index, node)
        return node

    def append_text(self, text: str) -> TextNode:
        """Append text, merging it into a trailing text node when there is one."""
        if self._children and isinstance(self._children[-1], TextNode):
            last = self._children[-1]
            last.data += text
            return last
        return self.append_child(TextNode(text))

    def append_element(self, tag_name: str) -> 'Element':
        return self.append_child(Element(tag_name))

    def empty(self) -> 'Element':
        """Remove all child nodes."""
        for child in self._children:
            child.parent = None
        self._children = []
        return self

    def unwrap(self) -> Optional[Node]:
        """
        Remove this element but keep its children in its place.

        Returns:
            The first promoted child, or None when there were no children
        """
        if self.parent is None:
            raise ValueError('Cannot unwrap an element that has no parent')
        parent, position = self.parent, self.index
        promoted = list(self._children)
        self.remove()
        for offset, child in enumerate(promoted):
            parent.insert_child(position + offset, child)
        return promoted[0] if promoted else None

    # Traversal

    def iter(self) -> Iterator['Element']:
        """Yield this element and every descendant element, depth first."""
        stack: list[Element] = [self]
        while stack:
            element = stack.pop()
            yield element
            stack.extend(reversed(element.children))

    def iter_nodes(self) -> Iterator[Node]:
        """Yield every descendant node (not this element), depth first."""
        stack: list[Node] = list(reversed(self._children))
        while stack:
            node = stack.pop()
            yield node
            stack.extend(reversed(node.child_nodes))

    def get_element_by_id(self, element_id: str) -> Optional['Element']:
        for element in self.iter():
            if element.get('id') == element_id:
                return element
        return None

    def get_elements_by_tag(self, tag_name: str) -> list['Element']:
        wanted = tag_name.strip().lower()
        return [element for element in self.iter() if element.tag_name == wanted]

    def get_elements_by_class(self, class_name: str) -> list['Element']:
        return [element for element in self.iter() if element.has_class(class_name)]

    def get_elements_by_attribute(self, name: str) -> list['Element']:
        return [element for element in self.iter() if element.has_attr(name)]

    def select(self, css: str) -> list['Element']:
        """Find elements matching a CSS selector, including this element."""
        from .selector import select
        return select(self, css)

    def select_first(self, css: str) -> Optional['Element']:
        from .selector import select_first
        return select_first(self, css)

    # Content

    def text(self) -> str:
        """
        Return the combined text of this element and its descendants.

        Whitespace is normalized and block elements separate words. Script and
        style contents are not text.
        """
        parts: list[str] = []
        stack: list[object] = [self]
        while stack:
            item = stack.pop()
            if isinstance(item, str):
                parts.append(item)
            elif isinstance(item, TextNode):
                if not (isinstance(item.parent, Element) and item.parent.tag_name in DATA_ELEMENTS):
                    parts.append(item.data)
            elif isinstance(item, Element):
                boundary = item.tag_name in BLOCK_ELEMENTS
                if boundary:
                    parts.append(' ')
                    stack.append(' ')
                stack.extend(reversed(item._children))
        return ' '.join(''.join(parts).split())

    def own_text(self) -> str:
        """Return the normalized text of this element's direct text children."""
        return ' '.join(' '.join(
            child.data for child in self._children if isinstance(child, TextNode)
        ).split())

    def whole_text(self) -> str:
        """Return all descendant text without normalization."""
        return ''.join(node.data for node in self.iter_nodes() if isinstance(node, TextNode))

    def html(self) -> str:
        """Return the inner markup of this element."""
        from .serializer import inner_markup
        return inner_markup(self)

    def set_html(self, markup: str) -> 'Element':
        """Replace this element's children with parsed markup."""
        from .parser import parse_body_fragment
        fragment = parse_body_fragment(markup)
        self.empty()
        for child in fragment.body.child_nodes:
            self.append_child(child)
        return self

    # Conversions

    def to_markup(self, pretty: bool = False, indent: int = 2) -> str:
        from .serializer import to_markup
        return to_markup(self, pretty, indent)

    def to_xml(self, pretty: bool = False, indent: int = 0) -> str:
        from .serializer import to_xml
        return to_xml(self, pretty, indent)

    def to_structured(self) -> dict:
        from .serializer import to_structured
        return to_structured(self)

    def to_json(self, pretty: bool = False, indent: int = 2) -> str:
        from .serializer import to_json
        return to_json(self, pretty, indent)

    def clone(self) -> 'Element':
        copy = self._shallow_copy()
        stack: list[tuple[Element, Element]] = [(self, copy)]
        while stack:
            source, target = stack.pop()
            for child in source._children:
                if isinstance(child, Element):
                    child_copy = child._shallow_copy()
                    target._children.append(child_copy)
                    child_copy.parent = target
                    stack.append((child, child_copy))
                else:
                    leaf = child.clone()
                    target._children.append(leaf)
                    leaf.parent = target
        return copy

    def _shallow_copy(self) -> 'Element':
        return Element(self.tag_name, dict(self.attributes))

    def __repr__(self) -> str:
        return f'Element({self.tag_name!r}, {self.attributes!r})'


class Document(Element):
    """
    Root of a parsed tree.

    Owns its top-level nodes (doctype, comments and the <html> element) and
    carries the base URI, character set and output settings.
    """

    def __init__(self, base_uri: str = '', charset: str = 'UTF-8'):
        super().__init__('#document')
        self.base_uri = base_uri
        self._charset = charset
        self.output_settings = OutputSettings()

    @classmethod
    def create_shell(cls, base_uri: str = '') -> 'Document':
        """Create a document holding an empty html/head/body skeleton."""
        document = cls(base_uri)
        document.normalise()
        return document

    @classmethod
    def from_document(cls, document: 'Document') -> 'Document':
        """Create an independent copy of a document, settings included."""
        return document.clone()

    @property
    def location(self) -> str:
        """The URL the document was loaded from (its base URI)."""
        return self.base_uri

    @property
    def charset(self) -> str:
        return self._charset

    @charset.setter
    def charset(self, charset: str) -> None:
        """Set the character set and keep a <meta charset> element in sync."""
        self._charset = charset
        head = self.head
        if head is None:
            return
        meta = next((m for m in head.get_elements_by_tag('meta') if m.has_attr('charset')), None)
        if meta is None:
            meta = head.prepend_child(Element('meta'))
        meta.set('charset', charset)

    @property
    def doctype(self) -> Optional[Doctype]:
        return next((node for node in self._children if isinstance(node, Doctype)), None)

    @property
    def html_element(self) -> Optional[Element]:
        return next((child for child in self.children if child.tag_name == 'html'), None)

    def _section(self, tag_name: str) -> Optional[Element]:
        root = self.html_element
        if root is None:
            return None
        return next((child for child in root.children if child.tag_name == tag_name), None)

    @property
    def head(self) -> Optional[Element]:
        return self._section('head')

    @property
    def body(self) -> Optional[Element]:
        return self._section('body')

    @property
    def title(self) -> str:
        """The trimmed text of the first <title> element, or an empty string."""
        title = next(iter(self.get_elements_by_tag('title')), None)
        return title.text().strip() if title is not None else ''

    @title.setter
    def title(self, value: str) -> None:
        title = next(iter(self.get_elements_by_tag('title')), None)
        if title is None:
            self.normalise()
            title = self.head.append_child(Element('title'))
        title.empty()
        title.append_text(value)

    def create_element(self, tag_name: str) -> Element:
        """Create a new, detached element."""
        return Element(tag_name)

    def normalise(self) -> 'Document':
        """
        Ensure the document has html, head and body elements.

        Stray top-level content and html-level content other than head and
        body are moved into the body. Extra html, head and body elements
        are replaced by their children, so the body never holds another
        document section.
        """
        root = self.html_element
        if root is None:
            root = Element('html')
            position = next(
                (i for i, node in enumerate(self._children) if not isinstance(node, (Doctype, Comment))),
                len(self._children),
            )
            self.insert_child(position, root)

        head = self.head
        if head is None:
            head = root.prepend_child(Element('head'))
        body = self.body
        if body is None:
            body = root.append_child(Element('body'))

        for node in list(self._children):
            if node is root or isinstance(node, (Doctype, Comment)):
                continue
            if isinstance(node, TextNode) and node.is_blank():
                node.remove()
                continue
            body.append_child(node)

        for node in list(root.child_nodes):
            if node is head or node is body or isinstance(node, Comment):
                continue
            if isinstance(node, TextNode) and node.is_blank():
                continue
            body.append_child(node)

        # A second <html> (content after a stray </html>) or a nested body
        for section in [e for e in body.iter() if e is not body and e.tag_name in SECTION_ELEMENTS]:
            if section.tag_name == 'head':
                for child in list(section.child_nodes):
                    head.append_child(child)
                section.remove()
            else:
                section.unwrap()
        return self

    def _shallow_copy(self) -> 'Document':
        copy = Document(self.base_uri, self._charset)
        copy.output_settings = self.output_settings.clone()
        return copy

    def __repr__(self) -> str:
        return f'Document(base_uri={self.base_uri!r})'


EMPTY_DOCUMENT = Document.create_shell('')
