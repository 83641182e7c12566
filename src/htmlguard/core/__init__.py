"""Core modules for htmlguard."""

from .api import clean, is_valid, parse
from .cleaner import Cleaner
from .nodes import Comment, Doctype, Document, Element, Node, TextNode
from .safelist import ConfigurationError, Safelist, resolve_safelist
from .serializer import SerializationError

__all__ = [
    "clean", "is_valid", "parse", "Cleaner",
    "Comment", "Doctype", "Document", "Element", "Node", "TextNode",
    "ConfigurationError", "Safelist", "resolve_safelist", "SerializationError",
]
