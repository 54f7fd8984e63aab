"""
Markdown to HTML conversion

Thin adapter around markdown-it-py, the CommonMark/GFM engine the pipeline
feeds between its two phases. Fenced code is highlighted with Pygments
into ``<div class="highlight">`` blocks tagged with the fence's language
and block ordinal, which the code-block renderer later decorates, and
headings receive unique slug ids.
"""

import re
from functools import lru_cache
from html import escape
from typing import Any, Dict, Optional, TYPE_CHECKING

from markdown_it import MarkdownIt
from mdit_py_plugins.footnote import footnote_plugin
from mdit_py_plugins.tasklists import tasklists_plugin
from pygments import highlight
from pygments.formatters import HtmlFormatter
from pygments.lexer import Lexer
from pygments.lexers import get_lexer_by_name, TextLexer
from pygments.util import ClassNotFound

from .fences import literal_restore, stamp_split, stamps_strip
from .languages import highlightLanguage_get
from .lexer import DocmarkLexer

if TYPE_CHECKING:
    from ..models.context import ProcessingContext


def slug_make(text: str) -> str:
    """
    Convert heading text to a URL-safe id.

    Example:
        >>> slug_make("Getting Started: <em>Install</em>")
        'getting-started-install'
    """
    text = re.sub(r"<[^>]+>", "", text)
    text = text.lower()
    text = re.sub(r"[^\w\s-]", "", text)
    text = re.sub(r"[\s_-]+", "-", text)
    return text.strip("-") or "heading"


def lexer_get(lang: str) -> Lexer:
    """Pygments lexer for a fence language, plain text if unknown"""
    if not lang:
        return TextLexer(stripnl=False)
    if lang.lower() in DocmarkLexer.aliases:
        return DocmarkLexer(stripnl=False)
    try:
        return get_lexer_by_name(highlightLanguage_get(lang), stripnl=False)
    except ClassNotFound:
        return TextLexer(stripnl=False)


class MarkdownConverter:
    """
    CommonMark + GFM tables/strikethrough/tasklists/footnotes to HTML.

    Raw HTML is allowed through, which is what lets processors hand over
    pre-rendered fragments (or raw placeholders) in the markdown stream.

    Example:
        >>> MarkdownConverter().convert("# Hi")
        '<h1 id="hi">Hi</h1>\\n'
    """

    def __init__(self) -> None:
        self.md = MarkdownIt("commonmark", {"html": True, "linkify": False, "typographer": False})
        self.md.enable(["table", "strikethrough"])
        self.md.use(footnote_plugin)
        self.md.use(tasklists_plugin)

        self.md.renderer.rules["fence"] = self.fence_render
        self.md.renderer.rules["heading_open"] = self.headingOpen_render

        self.formatter = HtmlFormatter(cssclass="highlight", wrapcode=True)

    def convert(self, text: str, env: Optional[Dict[str, Any]] = None) -> str:
        """
        Render markdown to HTML.

        Args:
            text: Markdown source
            env: markdown-it environment; heading ids are kept unique
                within one env (key ``heading_ids``)
        """
        # stamps on fences markdown-it did not parse as fences end up in text
        return stamps_strip(self.md.render(text, env if env is not None else {}))

    def fence_render(self, tokens: list, idx: int, options: Any, env: Dict[str, Any]) -> str:
        """
        Highlight a fence into ``<div class="highlight" data-lang data-ordinal>``.

        The ordinal stamp left on the info string by the code-block
        extractors becomes ``data-ordinal``; literal placeholders from
        extended fences are restored before the lexer can split them.
        """
        token = tokens[idx]
        info, ordinal = stamp_split(token.info or "")
        info = info.strip()
        lang = info.split()[0] if info else ""

        attrs = f' data-lang="{escape(lang)}"' if lang else ""
        if ordinal is not None:
            attrs += f' data-ordinal="{ordinal}"'
        highlighted = highlight(literal_restore(token.content), lexer_get(lang), self.formatter)
        return highlighted.replace('<div class="highlight">', f'<div class="highlight"{attrs}>', 1)

    def headingOpen_render(self, tokens: list, idx: int, options: Any, env: Dict[str, Any]) -> str:
        token = tokens[idx]
        text = ""
        if idx + 1 < len(tokens) and tokens[idx + 1].type == "inline":
            text = tokens[idx + 1].content

        used = env.setdefault("heading_ids", set())
        base_id = slug_make(text)
        unique_id = base_id
        counter = 1
        while unique_id in used:
            unique_id = f"{base_id}-{counter}"
            counter += 1
        used.add(unique_id)

        token.attrSet("id", unique_id)
        return self.md.renderer.renderToken(tokens, idx, options, env)


@lru_cache(maxsize=1)
def converter_default() -> MarkdownConverter:
    return MarkdownConverter()


def fragment_render(text: str, context: Optional["ProcessingContext"] = None) -> str:
    """
    Render a markdown fragment (container body, annotation, tab panel).

    Uses the renderer installed on the context by the registry, which also
    expands nested containers; without one, converts with the plain
    converter.
    """
    if context is not None and context.fragment_renderer is not None:
        return context.fragment_renderer(text)
    return converter_default().convert(text, context.converter_env if context is not None else None)


def paragraph_unwrap(html: str) -> str:
    """Drop the <p> wrapper of a single-paragraph fragment"""
    html = html.strip()
    match = re.fullmatch(r"<p>(.*)</p>", html, re.DOTALL)
    if match and "<p>" not in match.group(1):
        return match.group(1)
    return html
