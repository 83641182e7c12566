"""Loader for custom safelist definitions stored as TOML files."""

import tomllib
from dataclasses import replace
from pathlib import Path
from typing import Any

from .safelist import ConfigurationError, Safelist, SAFELISTS, resolve_safelist


class SafelistConfig:
    """
    Parser for safelist TOML files.

    Example file::

        name = "comments"
        extends = "basic"
        tags = ["h2", "h3"]
        preserve_relative_links = true

        [attributes]
        span = ["class"]

        [protocols.a]
        href = ["https"]

        [enforced_attributes.a]
        target = "_blank"
    """

    def __init__(self, filepath: Path | str):
        """
        Initialize the parser with a safelist file path.

        Args:
            filepath: Path to the TOML file
        """
        self.filepath = Path(filepath)
        self.data: dict[str, Any] = {}
        self._parse()

    def _parse(self) -> None:
        """Parse and validate the TOML file."""
        try:
            with open(self.filepath, 'rb') as f:
                self.data = tomllib.load(f)
        except OSError as e:
            raise ConfigurationError(f"Cannot read safelist file {self.filepath}: {e}") from e
        except tomllib.TOMLDecodeError as e:
            raise ConfigurationError(f"Invalid TOML in safelist file {self.filepath}: {e}") from e

        self._validate()

    @staticmethod
    def _is_string_list(value: Any) -> bool:
        return isinstance(value, list) and all(isinstance(item, str) for item in value)

    def _validate(self) -> None:
        """Validate the parsed safelist data."""
        if 'name' not in self.data or not isinstance(self.data['name'], str) or not self.data['name'].strip():
            raise ConfigurationError("'name' is required and must be a non-empty string")

        if 'extends' in self.data:
            extends = self.data['extends']
            if not isinstance(extends, str) or extends.lower() not in SAFELISTS:
                raise ConfigurationError(
                    f"'extends' must be one of: {', '.join(SAFELISTS)}"
                )

        for key in ('tags', 'content_opaque_tags'):
            if key in self.data and not self._is_string_list(self.data[key]):
                raise ConfigurationError(f"'{key}' must be a list of strings")

        for key in ('preserve_relative_links', 'allow_comments'):
            if key in self.data and not isinstance(self.data[key], bool):
                raise ConfigurationError(f"'{key}' must be a boolean (true or false)")

        attributes = self.data.get('attributes', {})
        if not isinstance(attributes, dict):
            raise ConfigurationError("'attributes' must be a [attributes] section")
        for tag, names in attributes.items():
            if not self._is_string_list(names):
                raise ConfigurationError(f"attributes.{tag} must be a list of strings")

        protocols = self.data.get('protocols', {})
        if not isinstance(protocols, dict):
            raise ConfigurationError("'protocols' must be a [protocols.<tag>] section")
        for tag, by_attribute in protocols.items():
            if not isinstance(by_attribute, dict):
                raise ConfigurationError(f"protocols.{tag} must be a section")
            for attribute, schemes in by_attribute.items():
                if not self._is_string_list(schemes):
                    raise ConfigurationError(f"protocols.{tag}.{attribute} must be a list of strings")

        enforced = self.data.get('enforced_attributes', {})
        if not isinstance(enforced, dict):
            raise ConfigurationError("'enforced_attributes' must be a [enforced_attributes.<tag>] section")
        for tag, values in enforced.items():
            if not isinstance(values, dict) or not all(isinstance(v, str) for v in values.values()):
                raise ConfigurationError(f"enforced_attributes.{tag} must map attribute names to strings")

    @property
    def name(self) -> str:
        return self.data['name'].strip()

    def build(self) -> Safelist:
        """
        Build the Safelist described by the file.

        Returns:
            A new Safelist, starting from the `extends` preset when given
        """
        if 'extends' in self.data:
            safelist = resolve_safelist(self.data['extends'])
        else:
            safelist = Safelist(name=self.name)

        safelist = safelist.add_tags(*self.data.get('tags', []))
        for tag, names in self.data.get('attributes', {}).items():
            safelist = safelist.add_attributes(tag, *names)
        for tag, by_attribute in self.data.get('protocols', {}).items():
            for attribute, schemes in by_attribute.items():
                safelist = safelist.add_protocols(tag, attribute, *schemes)
        for tag, values in self.data.get('enforced_attributes', {}).items():
            for attribute, value in values.items():
                safelist = safelist.add_enforced_attribute(tag, attribute, value)

        changes: dict[str, Any] = {'name': self.name}
        for key in ('preserve_relative_links', 'allow_comments'):
            if key in self.data:
                changes[key] = self.data[key]
        if 'content_opaque_tags' in self.data:
            changes['content_opaque_tags'] = frozenset(self.data['content_opaque_tags'])

        return replace(safelist, **changes)


def load_safelist(filepath: Path | str) -> Safelist:
    """
    Load a custom safelist from a TOML file.

    Raises:
        ConfigurationError: If the file cannot be read or is invalid
    """
    return SafelistConfig(filepath).build()

