"""Tests for loading custom safelists from TOML files."""

import pytest
from htmlguard import clean
from htmlguard.core.config import SafelistConfig, load_safelist
from htmlguard.core.safelist import BASIC, ConfigurationError


class TestLoadSafelist:
    """Test building safelists from TOML."""

    def test_minimal_file(self, write_safelist):
        """Test a file with only a name and tags."""
        path = write_safelist('name = "tiny"\ntags = ["p", "B"]\n')
        safelist = load_safelist(path)

        assert safelist.name == 'tiny'
        assert safelist.tags == {'p', 'b'}
        assert not safelist.preserve_relative_links

    def test_extends_preset(self, write_safelist):
        """Test extending a preset."""
        path = write_safelist("""
name = "comments"
extends = "Basic"
tags = ["h2"]
preserve_relative_links = true

[attributes]
span = ["class"]

[protocols.a]
href = ["tel"]

[enforced_attributes.a]
target = "_blank"
""")
        safelist = load_safelist(path)

        assert safelist.name == 'comments'
        assert safelist.tags == BASIC.tags | {'h2'}
        assert safelist.is_safe_attribute('span', 'class')
        assert 'tel' in safelist.protocols_for('a', 'href')
        assert dict(safelist.enforced_attributes_for('a')) == {'rel': 'nofollow', 'target': '_blank'}
        assert safelist.preserve_relative_links is True
        assert BASIC.name == 'basic'
        assert not BASIC.is_safe_attribute('span', 'class')

    def test_loaded_safelist_cleans(self, write_safelist):
        """Test using a loaded safelist with clean()."""
        path = write_safelist('name = "headings"\ntags = ["h1"]\nallow_comments = false\n')
        safelist = load_safelist(path)

        assert clean('<h1>A</h1><!-- c --><p>B</p>', safelist) == '<h1>A</h1>B'

    def test_content_opaque_tags(self, write_safelist):
        """Test overriding content-opaque tags."""
        path = write_safelist('name = "x"\ncontent_opaque_tags = ["aside"]\n')
        safelist = load_safelist(path)

        assert safelist.is_content_opaque('aside')
        assert not safelist.is_content_opaque('script')

    def test_config_object(self, write_safelist):
        """Test the SafelistConfig parser directly."""
        config = SafelistConfig(write_safelist('name = "  spaced  "\n'))

        assert config.name == 'spaced'
        assert config.data == {'name': '  spaced  '}
        assert config.build().tags == frozenset()


class TestInvalidSafelistFiles:
    """Test validation of safelist files."""

    def test_missing_file(self, tmp_path):
        """Test a file that does not exist."""
        with pytest.raises(ConfigurationError, match='Cannot read safelist file'):
            load_safelist(tmp_path / 'missing.toml')

    def test_invalid_toml(self, write_safelist):
        """Test a file that is not TOML."""
        with pytest.raises(ConfigurationError, match='Invalid TOML'):
            load_safelist(write_safelist('name = \n[[['))

    @pytest.mark.parametrize("content,message", [
        ('tags = ["p"]\n', "'name' is required"),
        ('name = ""\n', "'name' is required"),
        ('name = 1\n', "'name' is required"),
        ('name = "x"\nextends = "strict"\n', "'extends' must be one of"),
        ('name = "x"\ntags = "p"\n', "'tags' must be a list of strings"),
        ('name = "x"\ntags = [1]\n', "'tags' must be a list of strings"),
        ('name = "x"\npreserve_relative_links = "yes"\n', "'preserve_relative_links' must be a boolean"),
        ('name = "x"\nattributes = ["p"]\n', "'attributes' must be"),
        ('name = "x"\n[attributes]\np = "class"\n', "attributes.p must be a list of strings"),
        ('name = "x"\n[protocols]\na = ["https"]\n', "protocols.a must be a section"),
        ('name = "x"\n[protocols.a]\nhref = "https"\n', "protocols.a.href must be a list of strings"),
        ('name = "x"\n[enforced_attributes.a]\nrel = 1\n', "enforced_attributes.a must map"),
    ])
    def test_validation_errors(self, write_safelist, content, message):
        """Test that malformed definitions are rejected."""
        with pytest.raises(ConfigurationError, match=message):
            load_safelist(write_safelist(content))
