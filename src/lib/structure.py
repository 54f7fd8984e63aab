"""
Document structure processors

FileTreeProcessor turns ```filetree blocks into a nested list before
conversion; the rest work on the converted HTML: custom heading ids,
heading anchor links, the table of contents and table wrappers.
"""

import html
import re
from typing import Any, Dict, List, Optional, Pattern

from ..models.context import ProcessingContext
from ..models.processor import Processor, ProcessorCategory
from .fences import fences_all, fences_replace
from .languages import phosphorIcon_render
from .log import LOG

HEADING_PATTERN: Pattern[str] = re.compile(r'<h([1-6])(\s+id="([^"]*)")?>(.*?)</h\1>', re.DOTALL)
CUSTOM_ID_PATTERN: Pattern[str] = re.compile(r"\s*\{#([\w-]+)\}\s*$")
HEADING_ANCHOR_PATTERN: Pattern[str] = re.compile(r'<a[^>]*class="heading-anchor"[^>]*>.*?</a>', re.DOTALL)


class FileTreeProcessor(Processor):
    """
    Render ```filetree blocks as a folder/file outline.

        ```filetree
        src/
          app.py *       # highlighted
          utils/
            io.py
        README.md
        ```

    Indentation nests entries, a trailing ``/`` marks a folder, a trailing
    `` *`` highlights the entry and `` # text`` adds a comment.
    """
    name = "filetree"
    priority = 9
    category = ProcessorCategory.STRUCTURE

    def preprocess(self, text: str, context: ProcessingContext) -> str:
        if "```filetree" not in text:
            return text
        fences = [fence for fence in fences_all(text) if fence.header.lang == "filetree"]
        if not fences:
            return text
        LOG(f"Rendering {len(fences)} file trees", level=2)
        return fences_replace(text, fences, lambda fence: context.raw_stash(fileTree_render(fence.body)))


def fileTree_parse(body: str) -> List[Dict[str, Any]]:
    """Nested entries of {name, folder, highlighted, comment, children}"""
    root: List[Dict[str, Any]] = []
    stack: List[tuple] = [(-1, root)]
    for line in body.splitlines():
        name = line.strip()
        if not name:
            continue
        indent = len(line) - len(line.lstrip(" "))

        highlighted = name.endswith(" *")
        if highlighted:
            name = name[:-2].rstrip()
        comment: Optional[str] = None
        if " # " in name:
            name, comment = name.split(" # ", 1)
            name = name.rstrip()
        folder = name.endswith("/")
        item = {
            "name": name.rstrip("/"),
            "folder": folder,
            "highlighted": highlighted,
            "comment": comment,
            "children": [],
        }

        while len(stack) > 1 and stack[-1][0] >= indent:
            stack.pop()
        stack[-1][1].append(item)
        if folder:
            stack.append((indent, item["children"]))
    return root


def fileTree_render(body: str) -> str:
    return f'<div class="docmark-filetree">\n{fileTreeItems_render(fileTree_parse(body))}</div>'


def fileTreeItems_render(items: List[Dict[str, Any]]) -> str:
    if not items:
        return ""
    lines = ['<ul class="docmark-filetree__list">']
    for item in items:
        kind = "folder" if item["folder"] else "file"
        classes = f"docmark-filetree__item docmark-filetree__item--{kind}"
        if item["highlighted"]:
            classes += " docmark-filetree__item--highlighted"
        icon = phosphorIcon_render("folder-open" if item["folder"] else "file-text")
        entry = f'<span class="docmark-filetree__entry">{icon}<span class="docmark-filetree__name">{html.escape(item["name"])}</span>'
        if item["comment"]:
            entry += f'<span class="docmark-filetree__comment">{html.escape(item["comment"])}</span>'
        entry += "</span>"
        lines.append(f'<li class="{classes}">{entry}\n{fileTreeItems_render(item["children"])}</li>')
    lines.append("</ul>\n")
    return "\n".join(lines)


class CustomAnchorProcessor(Processor):
    """``## Title {#my-id}`` sets the heading id to ``my-id``"""
    name = "custom-anchor"
    priority = 25
    category = ProcessorCategory.STRUCTURE

    def postprocess(self, html_text: str, context: ProcessingContext) -> str:
        if "{#" not in html_text:
            return html_text

        def heading_fix(match: "re.Match[str]") -> str:
            level, content = match.group(1), match.group(4)
            custom = CUSTOM_ID_PATTERN.search(content)
            if not custom:
                return match.group(0)
            return f'<h{level} id="{custom.group(1)}">{content[:custom.start()]}</h{level}>'

        return HEADING_PATTERN.sub(heading_fix, html_text)


class HeadingAnchorProcessor(Processor):
    """Append a ``#`` permalink to headings that carry an id"""
    name = "heading-anchor"
    priority = 30
    category = ProcessorCategory.STRUCTURE

    def postprocess(self, html_text: str, context: ProcessingContext) -> str:
        levels = set(self.settings.heading_anchor_levels)

        def anchor_add(match: "re.Match[str]") -> str:
            level, heading_id, content = int(match.group(1)), match.group(3), match.group(4)
            if level not in levels or not heading_id or 'class="heading-anchor"' in content:
                return match.group(0)
            anchor = (
                f'<a href="#{heading_id}" class="heading-anchor" '
                f'aria-label="Link to this section">#</a>'
            )
            return f'<h{level} id="{heading_id}">{content}{anchor}</h{level}>'

        return HEADING_PATTERN.sub(anchor_add, html_text)


class TocProcessor(Processor):
    """
    Collect the heading outline into ``context.toc``.

    Each entry is ``{level, id, text, children}``; a heading nests under
    the closest preceding heading of a lower level. The HTML is unchanged.
    """
    name = "toc"
    priority = 35
    category = ProcessorCategory.STRUCTURE

    def postprocess(self, html_text: str, context: ProcessingContext) -> str:
        levels = set(self.settings.toc_levels)
        headings = []
        for match in HEADING_PATTERN.finditer(html_text):
            level, heading_id = int(match.group(1)), match.group(3)
            if level not in levels or not heading_id:
                continue
            text = html.unescape(re.sub(r"<[^>]+>", "", HEADING_ANCHOR_PATTERN.sub("", match.group(4)))).strip()
            headings.append({"level": level, "id": heading_id, "text": text, "children": []})
        context.toc = toc_nest(headings)
        LOG(f"Table of contents: {len(headings)} headings", level=3)
        return html_text


def toc_nest(headings: List[Dict[str, Any]]) -> List[Dict[str, Any]]:
    root: List[Dict[str, Any]] = []
    stack: List[Dict[str, Any]] = []
    for heading in headings:
        while stack and stack[-1]["level"] >= heading["level"]:
            stack.pop()
        (stack[-1]["children"] if stack else root).append(heading)
        stack.append(heading)
    return root


class TableWrapperProcessor(Processor):
    """Wrap tables in a scrollable container"""
    name = "table-wrapper"
    priority = 100
    category = ProcessorCategory.STRUCTURE

    def postprocess(self, html_text: str, context: ProcessingContext) -> str:
        if "<table" not in html_text:
            return html_text
        html_text = re.sub(r"<table\b([^>]*)>", r'<div class="table-wrapper"><table\1>', html_text)
        return html_text.replace("</table>", "</table></div>")
