"""Tests for lxml-backed parsing into the node tree."""

import pytest
from htmlguard.core.nodes import Comment, Doctype, Document, Element, TextNode
from htmlguard.core.parser import parse_body_fragment, parse_document


class TestParseDocument:
    """Test parsing of full documents."""

    def test_parse_full_document(self, sample_document):
        """Test parsing a complete page."""
        assert sample_document.title == "Test Page"
        assert sample_document.head is not None
        assert sample_document.body is not None
        assert sample_document.get_element_by_id("main").has_class("wide")

    def test_doctype_is_kept(self, sample_document):
        """Test that the doctype survives parsing."""
        assert isinstance(sample_document.doctype, Doctype)
        assert sample_document.doctype.name == "html"
        assert sample_document.to_markup().startswith("<!DOCTYPE html>")

    def test_charset_from_meta(self, sample_document):
        """Test charset detection from <meta charset>."""
        assert sample_document.charset == "utf-8"

    def test_charset_from_http_equiv(self):
        """Test charset detection from a Content-Type meta element."""
        doc = parse_document(
            '<html><head><meta http-equiv="Content-Type" content="text/html; charset=ISO-8859-1">'
            '</head><body></body></html>'
        )

        assert doc.charset == "ISO-8859-1"

    def test_default_charset(self):
        """Test the default charset."""
        assert parse_document("<p>x</p>").charset == "UTF-8"

    def test_base_uri(self, sample_document):
        """Test that the base URI is recorded."""
        assert sample_document.base_uri == "https://example.com/articles/"
        assert sample_document.location == "https://example.com/articles/"

    def test_base_element_updates_base_uri(self):
        """Test that <base href> changes the document base URI."""
        doc = parse_document(
            '<html><head><base href="https://cdn.example.com/dir/"></head>'
            '<body><a href="page">x</a></body></html>',
            'https://example.com/'
        )

        assert doc.base_uri == "https://cdn.example.com/dir/"
        assert doc.select_first("a").abs_url("href") == "https://cdn.example.com/dir/page"

    def test_script_text_is_raw(self, sample_document):
        """Test that script content is kept as unescaped data."""
        script = sample_document.get_elements_by_tag("script")[0]

        assert script.whole_text() == "var x = 1 < 2;"
        assert "var x = 1 < 2;" in sample_document.to_markup()

    def test_entities_are_decoded(self):
        """Test that character references are decoded in text and attributes."""
        doc = parse_document('<p title="a &amp; b">x &lt; y&nbsp;z</p>')
        p = doc.select_first("p")

        assert p.get("title") == "a & b"
        assert p.whole_text() == "x < y\xa0z"

    def test_names_are_lowercased(self):
        """Test that tag and attribute names are lower-cased."""
        doc = parse_document('<DIV CLASS="Box"><P>x</P></DIV>')
        div = doc.body.children[0]

        assert div.tag_name == "div"
        assert div.attributes == {"class": "Box"}

    def test_comments_are_kept(self):
        """Test that comments are parsed as Comment nodes."""
        doc = parse_document("<html><body><!-- hello --><p>x</p></body></html>")
        comments = [node for node in doc.body.child_nodes if isinstance(node, Comment)]

        assert len(comments) == 1
        assert comments[0].data == " hello "


class TestForgivingParse:
    """Test that malformed input is repaired, never rejected."""

    def test_fragment_gets_html_head_body(self):
        """Test that a fragment is wrapped in a document skeleton."""
        doc = parse_document("<p>Hello</p>")

        assert [child.tag_name for child in doc.html_element.children] == ["head", "body"]
        assert doc.body.html() == "<p>Hello</p>"

    def test_leading_text_is_not_wrapped(self):
        """Test that bare text is kept as body text."""
        doc = parse_document("Hello <b>world</b>")

        assert doc.body.html() == "Hello <b>world</b>"

    def test_unclosed_tags(self):
        """Test parsing unclosed tags."""
        doc = parse_document("<p>Unclosed paragraph<div>Nested div")

        assert doc.body.text() == "Unclosed paragraph Nested div"

    def test_stray_end_tags(self):
        """Test that stray end tags are ignored."""
        doc = parse_document("</div><p>x</span></p>")

        assert doc.body.text() == "x"

    def test_nul_characters_are_dropped(self):
        """Test that NUL characters do not truncate the input."""
        doc = parse_document("<p>a\x00b</p>")

        assert doc.body.text() == "ab"

    def test_whitespace_only(self):
        """Test that whitespace-only input gives an empty skeleton."""
        doc = parse_document("   \n\t ")

        assert doc.body is not None
        assert doc.body.text() == ""

    def test_deeply_nested_markup_is_kept(self):
        """Test that nesting deeper than libxml2's default limit is not truncated."""
        markup = '<div>' * 300 + 'secret text' + '</div>' * 300 + '<p>after</p>'
        doc = parse_document(markup)

        assert doc.body.text() == 'secret text after'
        assert len(doc.get_elements_by_tag('div')) == 300
        assert doc.select_first('p').text() == 'after'

    def test_content_after_html_end_tag(self):
        """Test that markup after </html> is moved into the body."""
        doc = parse_document('<html><body><p>a</p></body></html>\n<p>b</p>')

        assert doc.body.html() == '<p>a</p><p>b</p>'
        assert [child.tag_name for child in doc.children] == ['html']

    def test_content_after_body_end_tag(self):
        """Test that markup after </body> stays in the body."""
        doc = parse_document('<html><body><p>a</p></body><p>b</p></html>')

        assert doc.body.html() == '<p>a</p><p>b</p>'

    def test_tree_invariants(self, sample_document):
        """Test that every node has exactly one parent, its container."""
        for node in sample_document.iter_nodes():
            assert node.parent is not None
            assert sum(1 for sibling in node.parent.child_nodes if sibling is node) == 1

    def test_comment_splits_text(self):
        """Test that text around a comment stays in order."""
        doc = parse_document("<p>a<!--x-->b</p>")
        p = doc.select_first("p")

        assert [type(node) for node in p.child_nodes] == [TextNode, Comment, TextNode]
        assert p.whole_text() == "ab"


class TestParseBodyFragment:
    """Test fragment parsing used by the cleaner."""

    def test_fragment_is_body_content(self):
        """Test that the fragment lands in the body."""
        doc = parse_body_fragment("Text <i>italic</i>")

        assert isinstance(doc, Document)
        assert doc.body.html() == "Text <i>italic</i>"

    def test_fragment_base_uri(self):
        """Test the fragment document base URI."""
        assert parse_body_fragment("<p>x</p>", "https://example.com/").base_uri == "https://example.com/"

    def test_head_elements_stay_in_fragment(self):
        """Test that script in a fragment stays in the body."""
        doc = parse_body_fragment("<script>x()</script><p>y</p>")

        assert [child.tag_name for child in doc.body.children] == ["script", "p"]

    @pytest.mark.parametrize("markup", [
        "<p>a</p></html><p>b</p>",
        "<p>a</p></body><p>b</p>",
        "<p>a</p></body></html><p>b</p>",
    ])
    def test_stray_document_end_tags(self, markup):
        """Test that stray </body> and </html> do not cut the fragment short."""
        doc = parse_body_fragment(markup)

        assert doc.body.html() == "<p>a</p><p>b</p>"
        assert not any(e.tag_name in ("html", "head", "body") for e in doc.body.iter() if e is not doc.body)

    def test_empty_fragment(self):
        """Test parsing an empty fragment."""
        doc = parse_body_fragment("")

        assert doc.body.child_nodes == ()

    @pytest.mark.parametrize("markup", [
        "<table><td>cell",
        "<ul><li>one<li>two",
        "<a href='x'><a href='y'>nested</a></a>",
        "<b><i>mis</b>nested</i>",
        "<<<>>>",
        "<p attr=\"unterminated>text",
    ])
    def test_malformed_fragments_parse(self, markup):
        """Test that malformed fragments always parse."""
        doc = parse_body_fragment(markup)

        assert isinstance(doc.body, Element)
