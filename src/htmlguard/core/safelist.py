"""Named safelists: the allow-list policies used by the cleaner."""

from dataclasses import dataclass, field, replace
from types import MappingProxyType
from typing import Iterable, Mapping


class ConfigurationError(Exception):
    """Raised when a safelist cannot be resolved or loaded."""

    pass


# Disallowed elements whose whole subtree is discarded instead of unwrapped
CONTENT_OPAQUE_TAGS = frozenset({
    'applet', 'embed', 'frame', 'frameset', 'head', 'iframe', 'noembed', 'noframes',
    'object', 'plaintext', 'script', 'style', 'template', 'title', 'xmp',
})

# Attributes that hold URLs; absolute URLs in these are denied unless their
# scheme is explicitly allowed
URL_ATTRIBUTES = frozenset({
    'action', 'background', 'cite', 'classid', 'codebase', 'data', 'dynsrc',
    'formaction', 'href', 'longdesc', 'lowsrc', 'manifest', 'ping', 'poster',
    'profile', 'src', 'usemap', 'xlink:href',
})

# Attribute key applying to every allowed tag
ALL_TAGS = ':all'


def _freeze_sets(mapping: Mapping[str, Iterable[str]]) -> Mapping[str, frozenset]:
    return MappingProxyType({
        key.lower(): frozenset(value.lower() for value in values)
        for key, values in mapping.items()
    })


def _freeze_protocols(mapping: Mapping[str, Mapping[str, Iterable[str]]]) -> Mapping:
    return MappingProxyType({tag.lower(): _freeze_sets(attrs) for tag, attrs in mapping.items()})


def _freeze_enforced(mapping: Mapping[str, Mapping[str, str]]) -> Mapping:
    return MappingProxyType({
        tag.lower(): MappingProxyType({name.lower(): value for name, value in attrs.items()})
        for tag, attrs in mapping.items()
    })


@dataclass(frozen=True, eq=False)
class Safelist:
    """
    An immutable allow-list policy.

    - Elements whose tag is not in `tags` are removed.
    - Attributes not in `attributes[tag]` (or `attributes[":all"]`) are removed.
    - URL attributes must use a scheme from `protocols[tag][attribute]`.
    - `enforced_attributes[tag]` are always set on kept elements.

    Instances are never modified. The builder methods and
    `with_preserve_relative_links` return copies, so the presets can be shared
    freely.
    """

    name: str
    tags: frozenset = frozenset()
    attributes: Mapping[str, frozenset] = field(default_factory=dict)
    protocols: Mapping[str, Mapping[str, frozenset]] = field(default_factory=dict)
    enforced_attributes: Mapping[str, Mapping[str, str]] = field(default_factory=dict)
    content_opaque_tags: frozenset = CONTENT_OPAQUE_TAGS
    preserve_relative_links: bool = False
    allow_comments: bool = True

    def __post_init__(self) -> None:
        # Accept plain sets/dicts from callers, store read-only copies
        object.__setattr__(self, 'tags', frozenset(tag.lower() for tag in self.tags))
        object.__setattr__(self, 'attributes', _freeze_sets(self.attributes))
        object.__setattr__(self, 'protocols', _freeze_protocols(self.protocols))
        object.__setattr__(self, 'enforced_attributes', _freeze_enforced(self.enforced_attributes))
        object.__setattr__(
            self, 'content_opaque_tags', frozenset(tag.lower() for tag in self.content_opaque_tags)
        )

    def is_safe_tag(self, tag_name: str) -> bool:
        return tag_name.lower() in self.tags

    def is_content_opaque(self, tag_name: str) -> bool:
        return tag_name.lower() in self.content_opaque_tags

    def is_safe_attribute(self, tag_name: str, attribute: str) -> bool:
        tag_name, attribute = tag_name.lower(), attribute.lower()
        if attribute in self.attributes.get(tag_name, ()):
            return True
        return tag_name in self.tags and attribute in self.attributes.get(ALL_TAGS, ())

    def is_url_attribute(self, tag_name: str, attribute: str) -> bool:
        attribute = attribute.lower()
        if attribute in URL_ATTRIBUTES:
            return True
        return any(attribute in self.protocols.get(tag, {}) for tag in (tag_name.lower(), ALL_TAGS))

    def protocols_for(self, tag_name: str, attribute: str) -> frozenset:
        """The schemes allowed for a URL attribute (empty when none are)."""
        attribute = attribute.lower()
        allowed = self.protocols.get(tag_name.lower(), {}).get(attribute, frozenset())
        return allowed | self.protocols.get(ALL_TAGS, {}).get(attribute, frozenset())

    def enforced_attributes_for(self, tag_name: str) -> Mapping[str, str]:
        return self.enforced_attributes.get(tag_name.lower(), MappingProxyType({}))

    # Builders; each returns a new Safelist

    def with_preserve_relative_links(self, preserve: bool) -> 'Safelist':
        return replace(self, preserve_relative_links=bool(preserve))

    def add_tags(self, *tags: str) -> 'Safelist':
        return replace(self, tags=self.tags | set(tags))

    def remove_tags(self, *tags: str) -> 'Safelist':
        removed = {tag.lower() for tag in tags}
        return replace(
            self,
            tags=self.tags - removed,
            attributes={k: v for k, v in self.attributes.items() if k not in removed},
            protocols={k: v for k, v in self.protocols.items() if k not in removed},
            enforced_attributes={k: v for k, v in self.enforced_attributes.items() if k not in removed},
        )

    def add_attributes(self, tag_name: str, *attributes: str) -> 'Safelist':
        merged = dict(self.attributes)
        merged[tag_name.lower()] = merged.get(tag_name.lower(), frozenset()) | set(attributes)
        tags = self.tags if tag_name == ALL_TAGS else self.tags | {tag_name}
        return replace(self, tags=tags, attributes=merged)

    def add_protocols(self, tag_name: str, attribute: str, *protocols: str) -> 'Safelist':
        merged = {tag: dict(attrs) for tag, attrs in self.protocols.items()}
        by_attribute = merged.setdefault(tag_name.lower(), {})
        by_attribute[attribute.lower()] = by_attribute.get(attribute.lower(), frozenset()) | set(protocols)
        return replace(self, protocols=merged)

    def add_enforced_attribute(self, tag_name: str, attribute: str, value: str) -> 'Safelist':
        merged = {tag: dict(attrs) for tag, attrs in self.enforced_attributes.items()}
        merged.setdefault(tag_name.lower(), {})[attribute.lower()] = value
        return replace(self, tags=self.tags | {tag_name}, enforced_attributes=merged)

    def __repr__(self) -> str:
        return f'Safelist(name={self.name!r}, tags={len(self.tags)}, preserve_relative_links={self.preserve_relative_links})'


NONE = Safelist(name='none', allow_comments=False)

SIMPLE_TEXT = Safelist(
    name='simpletext',
    tags={'b', 'br', 'em', 'i', 'strong', 'u'},
)

_BASIC_TAGS = {
    'a', 'b', 'blockquote', 'br', 'cite', 'code', 'dd', 'dl', 'dt', 'em', 'i', 'li',
    'ol', 'p', 'pre', 'q', 'small', 'span', 'strike', 'strong', 'sub', 'sup', 'u', 'ul',
}
_BASIC_ATTRIBUTES = {
    'a': {'href'},
    'blockquote': {'cite'},
    'q': {'cite'},
}
_BASIC_PROTOCOLS = {
    'a': {'href': {'ftp', 'http', 'https', 'mailto'}},
    'blockquote': {'cite': {'http', 'https'}},
    'cite': {'cite': {'http', 'https'}},
    'q': {'cite': {'http', 'https'}},
}
_IMG_ATTRIBUTES = {'align', 'alt', 'height', 'src', 'title', 'width'}

BASIC = Safelist(
    name='basic',
    tags=_BASIC_TAGS,
    attributes=_BASIC_ATTRIBUTES,
    protocols=_BASIC_PROTOCOLS,
    enforced_attributes={'a': {'rel': 'nofollow'}},
)

BASIC_WITH_IMAGES = Safelist(
    name='basicwithimages',
    tags=_BASIC_TAGS | {'img'},
    attributes={**_BASIC_ATTRIBUTES, 'img': _IMG_ATTRIBUTES},
    protocols={**_BASIC_PROTOCOLS, 'img': {'src': {'http', 'https'}}},
    enforced_attributes={'a': {'rel': 'nofollow'}},
)

RELAXED = Safelist(
    name='relaxed',
    tags=_BASIC_TAGS | {
        'caption', 'col', 'colgroup', 'div', 'h1', 'h2', 'h3', 'h4', 'h5', 'h6', 'img',
        'table', 'tbody', 'td', 'tfoot', 'th', 'thead', 'tr',
    },
    attributes={
        'a': {'href', 'title'},
        'blockquote': {'cite'},
        'col': {'span', 'width'},
        'colgroup': {'span', 'width'},
        'img': _IMG_ATTRIBUTES,
        'ol': {'start', 'type'},
        'q': {'cite'},
        'table': {'summary', 'width'},
        'td': {'abbr', 'axis', 'colspan', 'rowspan', 'width'},
        'th': {'abbr', 'axis', 'colspan', 'rowspan', 'scope', 'width'},
        'ul': {'type'},
    },
    protocols={**_BASIC_PROTOCOLS, 'img': {'src': {'http', 'https'}}},
)

SAFELISTS: Mapping[str, Safelist] = MappingProxyType({
    safelist.name: safelist
    for safelist in (NONE, SIMPLE_TEXT, BASIC, BASIC_WITH_IMAGES, RELAXED)
})


def resolve_safelist(name: str) -> Safelist:
    """
    Look up a preset safelist by name, ignoring case.

    Args:
        name: One of none, simpletext, basic, basicwithimages, relaxed

    Returns:
        The shared preset instance

    Raises:
        ConfigurationError: If the name is not a known preset
    """
    if not isinstance(name, str):
        raise ConfigurationError(f"Unknown HTML Safelist: {name!r}")
    try:
        return SAFELISTS[name.lower()]
    except KeyError:
        raise ConfigurationError(
            f"Unknown HTML Safelist: {name} (expected one of: {', '.join(SAFELISTS)})"
        ) from None
