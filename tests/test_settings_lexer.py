"""
Settings and lexer tests

Tests environment-driven configuration, raw placeholders and the
Pygments lexer used for ```docmark fences.
"""

import pytest
from pygments.token import Keyword, Name

from docmark.config import AppSettings
from docmark.lib.lexer import DocmarkLexer
from docmark.lib.markdown import MarkdownConverter, lexer_get, slug_make
from docmark.lib.registry import render_document


class TestSettings:
    """Test AppSettings"""

    def test_placeholder_round_trip(self):
        """Indexes survive make/extract"""
        settings = AppSettings()
        assert settings.placeHolder_make(3) == "<!--docmark-raw:3-->"
        assert settings.rawIndex_extract("<!--docmark-raw:3-->") == 3

    def test_invalid_placeholder(self):
        """Foreign strings give None"""
        settings = AppSettings()
        assert settings.rawIndex_extract("<!-- note -->") is None
        assert settings.rawIndex_extract("<!--docmark-raw:x-->") is None

    def test_environment_override(self, monkeypatch):
        """DOCMARK_ variables override defaults"""
        monkeypatch.setenv("DOCMARK_LINE_NUMBERS_DEFAULT", "true")
        monkeypatch.setenv("DOCMARK_TOOLTIP_LINK_TEXT", "Read more")
        settings = AppSettings()
        assert settings.line_numbers_default is True
        assert settings.tooltip_link_text == "Read more"


class TestLexer:
    """Test DocmarkLexer tokens"""

    def test_container_name(self):
        """Container names are declarations"""
        tokens = list(DocmarkLexer().get_tokens(":::note Heads up\n"))
        assert (Keyword.Declaration, "note") in tokens

    def test_inline_directive(self):
        """Inline directives and their attributes"""
        tokens = list(DocmarkLexer().get_tokens(':badge[Beta]{type="warning"}\n'))
        assert (Name.Function, "badge") in tokens
        assert (Name.Attribute, "type") in tokens

    def test_icon_and_variable(self):
        """Icons are decorators, interpolations are variables"""
        tokens = list(DocmarkLexer().get_tokens("Go :rocket: {{ app.version }}\n"))
        assert (Name.Decorator, ":rocket:") in tokens
        assert (Name.Variable, "{{ app.version }}") in tokens

    def test_lexer_lookup(self):
        """docmark fences use the custom lexer, unknown languages plain text"""
        assert isinstance(lexer_get("docmark"), DocmarkLexer)
        assert lexer_get("no-such-language").name == "Text only"

    def test_docmark_fence_rendered(self):
        """Directive samples in a docmark fence are highlighted, not rendered"""
        html = render_document("```docmark\n:::note\nx\n:::\n```\n")
        assert "docmark-callout" not in html
        assert '<span class="kd">note</span>' in html


class TestConverter:
    """Test the markdown-it adapter"""

    def test_slug(self):
        """Tags and punctuation are dropped"""
        assert slug_make("Getting Started: <em>Install</em>") == "getting-started-install"
        assert slug_make("!!!") == "heading"

    def test_gfm_extensions(self):
        """Strikethrough and task lists are enabled"""
        html = MarkdownConverter().convert("~~old~~\n\n- [x] done\n")
        assert "<s>old</s>" in html
        assert 'type="checkbox"' in html

    def test_highlight_wrapper(self):
        """Fences come out in the highlight wrapper"""
        html = MarkdownConverter().convert("```python\nx = 1\n```\n")
        assert html.startswith('<div class="highlight" data-lang="python"><pre>')
