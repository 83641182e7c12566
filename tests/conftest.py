"""Shared fixtures for htmlguard tests."""

import pytest
from pathlib import Path

from htmlguard.core.nodes import Document, Element


@pytest.fixture
def sample_html():
    """Sample full HTML document for testing."""
    return """<!DOCTYPE html>
<html>
<head>
    <title>Test Page</title>
    <meta charset="utf-8">
    <meta name="author" content="Test Author">
</head>
<body>
    <div id="main" class="content wide">
        <h1 class="title">Test Article</h1>
        <p>This is <b>test</b> content.</p>
        <ul>
            <li class="item">Item 1</li>
            <li class="item special">Item 2</li>
        </ul>
        <a href="/about" title="About">About us</a>
        <img src="images/photo.jpg" alt="Photo">
    </div>
    <script>var x = 1 < 2;</script>
</body>
</html>
"""


@pytest.fixture
def sample_document(sample_html):
    """The sample HTML parsed with a base URI."""
    from htmlguard.core.parser import parse_document
    return parse_document(sample_html, 'https://example.com/articles/')


@pytest.fixture
def simple_tree():
    """
    A hand-built document: body > div > (p "a", p "b").

    Built without the parser so serializer tests do not depend on parser
    whitespace handling.
    """
    document = Document.create_shell('https://example.com/')
    div = document.body.append_child(Element('div', {'class': 'box'}))
    first = div.append_child(Element('p'))
    first.append_text('a')
    second = div.append_child(Element('p'))
    second.append_text('b')
    return document


@pytest.fixture
def xss_vectors():
    """Markup that must never survive cleaning with its payload intact."""
    return [
        "<script>alert('XSS')</script>",
        '<img src="x" onerror="alert(1)">',
        '<a href="javascript:alert(1)">click</a>',
        '<a href="JaVaScRiPt:alert(1)">click</a>',
        '<a href="java&#9;script:alert(1)">click</a>',
        '<a href="  javascript:alert(1)">click</a>',
        '<a href="vbscript:msgbox(1)">click</a>',
        '<a href="data:text/html;base64,PHNjcmlwdD5hbGVydCgxKTwvc2NyaXB0Pg==">click</a>',
        '<iframe src="https://evil.example/"></iframe>',
        '<div style="background:url(javascript:alert(1))">styled</div>',
        '<svg onload="alert(1)"><circle r="1"></circle></svg>',
        '<p onclick="alert(1)">paragraph</p>',
        '<style>body { background: red; }</style>',
        '<object data="javascript:alert(1)"></object>',
        '<form action="javascript:alert(1)"><input type="submit"></form>',
    ]


@pytest.fixture
def write_safelist(tmp_path):
    """Return a callable that writes TOML content to a safelist file."""
    def _write(content: str, name: str = 'safelist.toml') -> Path:
        path = tmp_path / name
        path.write_text(content, encoding='utf-8')
        return path
    return _write
