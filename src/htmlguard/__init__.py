"""htmlguard - sanitize untrusted HTML against named safelists."""

from .core import (
    Cleaner,
    Comment,
    ConfigurationError,
    Doctype,
    Document,
    Element,
    Node,
    Safelist,
    SerializationError,
    TextNode,
    clean,
    is_valid,
    parse,
    resolve_safelist,
)
from .core.config import load_safelist
from .core.serializer import to_json, to_markup, to_structured, to_xml

__version__ = "0.1.0"

__all__ = [
    "Cleaner", "Comment", "ConfigurationError", "Doctype", "Document", "Element",
    "Node", "Safelist", "SerializationError", "TextNode",
    "clean", "is_valid", "parse", "resolve_safelist", "load_safelist",
    "to_json", "to_markup", "to_structured", "to_xml",
]
