"""
Skip-range detection and code-aware text splitting

Every directive scan in the pipeline must ignore literal examples of
directive syntax shown inside code samples, and most must also leave the
interiors of :::tabs / :::code-group containers alone (those containers
render their own content). This module finds those regions:

- ranges_find(): regex-driven spans, e.g. fenced code blocks
- containers_find(): nesting-aware ::: container matching
- htmlContainerRanges_find(): div-depth matching over rendered HTML
- markdown_transform() / html_transform(): apply a function only to the
  parts of a document that are neither code nor markup
"""

import re
from dataclasses import dataclass
from typing import Callable, Iterable, List, Optional, Pattern, Sequence, Tuple

from ..models.context import SkipRange

# Line-anchored fenced code block (any info string, 3+ backticks)
FENCE_PATTERN: Pattern[str] = re.compile(
    r"^[ ]{0,3}(?P<ticks>`{3,})[^\n`]*\n.*?^[ ]{0,3}(?P=ticks)`*[ \t]*$",
    re.MULTILINE | re.DOTALL,
)

INLINE_CODE_PATTERN: Pattern[str] = re.compile(r"(?<!`)(`+)(?!`)(.+?)(?<!`)\1(?!`)")

CONTAINER_OPEN_PATTERN: Pattern[str] = re.compile(r"^:::[ \t]*(?P<name>[A-Za-z][\w-]*)(?P<rest>[^\n]*)$")
CONTAINER_CLOSE_PATTERN: Pattern[str] = re.compile(r"^:::[ \t]*$")
FENCE_LINE_PATTERN: Pattern[str] = re.compile(r"^[ ]{0,3}(`{3,})")

# Containers that render their own interiors
OPAQUE_CONTAINERS: Tuple[str, ...] = ("tabs", "code-group")

# Rendered HTML for opaque containers (already fully rendered code blocks)
OPAQUE_HTML_CLASSES: Tuple[str, ...] = ("docmark-tabs", "docmark-code-group")

# Regions of rendered HTML whose text must not be touched
HTML_PROTECTED_PATTERN: Pattern[str] = re.compile(
    r"<pre\b.*?</pre>|<code\b.*?</code>|<script\b.*?</script>|<style\b.*?</style>|<!--.*?-->|<[^>]+>",
    re.DOTALL | re.IGNORECASE,
)


@dataclass
class ContainerMatch:
    """
    A ::: container located in source text.

    Attributes:
        name: Container name as written after ``:::``
        rest: Remainder of the opening line (title and/or {attrs}), stripped
        body: Text between the opening and closing lines (keeps final newline)
        start: Offset of the opening ``:::``
        end: Offset just past the closing ``:::`` (excludes its newline)
    """
    name: str
    rest: str
    body: str
    start: int
    end: int


def ranges_find(text: str, *patterns: Pattern[str]) -> List[SkipRange]:
    """
    Collect the match spans of every pattern as sorted, disjoint ranges.

    Overlapping or touching spans are merged.
    """
    spans = sorted(
        (match.start(), match.end())
        for pattern in patterns
        for match in pattern.finditer(text)
    )
    merged: List[SkipRange] = []
    for start, end in spans:
        if merged and start <= merged[-1].end:
            merged[-1].end = max(merged[-1].end, end)
        else:
            merged.append(SkipRange(start, end))
    return merged


def inside(position: int, ranges: Iterable[SkipRange]) -> bool:
    """True if any range covers ``position``"""
    return any(skip.contains(position) for skip in ranges)


def fenceRanges_find(text: str) -> List[SkipRange]:
    return ranges_find(text, FENCE_PATTERN)


def containers_find(
    text: str,
    names: Iterable[str],
    opaque: Sequence[str] = OPAQUE_CONTAINERS,
) -> List[ContainerMatch]:
    """
    Find ::: containers by name, honoring nesting and code fences.

    Walks the text line by line keeping a stack of open containers, so an
    inner ``:::`` closer no longer terminates the outer block. Lines inside
    fenced code are ignored. A container is reported only if it is not
    nested inside another container with a requested name (the outer
    one is responsible for its interior) nor inside an opaque container
    (tabs/code-group render their own content).

    Args:
        text: Markdown source
        names: Container names to report
        opaque: Containers whose interiors are never searched

    Returns:
        Outermost matching containers in document order
    """
    wanted = set(names)
    blocked = wanted | set(opaque)
    matches: List[ContainerMatch] = []
    stack: List[Tuple[str, str, int, int]] = []
    fence: Optional[str] = None
    position = 0

    for line in text.splitlines(keepends=True):
        line_start = position
        position += len(line)
        content = line.rstrip("\r\n")

        ticks = FENCE_LINE_PATTERN.match(content)
        if fence is not None:
            if ticks and len(ticks.group(1)) >= len(fence) and not content.strip().strip("`"):
                fence = None
            continue
        if ticks:
            fence = ticks.group(1)
            continue

        if CONTAINER_CLOSE_PATTERN.match(content):
            if not stack:
                continue
            name, rest, start, body_start = stack.pop()
            enclosing = {entry[0] for entry in stack}
            if name in wanted and not (enclosing & blocked):
                matches.append(
                    ContainerMatch(
                        name=name,
                        rest=rest.strip(),
                        body=text[body_start:line_start],
                        start=start,
                        end=line_start + len(content),
                    )
                )
            continue

        opened = CONTAINER_OPEN_PATTERN.match(content)
        if opened:
            stack.append((opened.group("name"), opened.group("rest"), line_start, position))

    matches.sort(key=lambda match: match.start)
    return matches


def containerRanges_find(text: str, names: Iterable[str] = OPAQUE_CONTAINERS) -> List[SkipRange]:
    """Ranges covered by the named containers (default: tabs and code-group)"""
    return [SkipRange(match.start, match.end) for match in containers_find(text, names, opaque=())]


def htmlContainerRanges_find(html: str, class_names: Iterable[str] = OPAQUE_HTML_CLASSES) -> List[SkipRange]:
    """
    Locate rendered container divs by class and return their full extent.

    The closing tag is found by counting nested <div> depth.
    """
    ranges: List[SkipRange] = []
    for class_name in class_names:
        opener = re.compile(r'<div class="' + re.escape(class_name) + r'[" ]')
        for match in opener.finditer(html):
            if inside(match.start(), ranges):
                continue
            end = divEnd_find(html, match.start())
            ranges.append(SkipRange(match.start(), end))
    ranges.sort(key=lambda skip: skip.start)
    return ranges


def divEnd_find(html: str, start: int) -> int:
    """
    Return the offset just past the </div> closing the <div> at ``start``.

    Falls back to the end of the string for unbalanced markup.
    """
    depth = 0
    tag = re.compile(r"<div\b|</div>")
    for match in tag.finditer(html, start):
        if match.group(0) == "</div>":
            depth -= 1
            if depth == 0:
                return match.end()
        else:
            depth += 1
    return len(html)


def markdown_segments(text: str) -> List[Tuple[str, bool]]:
    """
    Split markdown into (chunk, is_code) pieces.

    Fenced code blocks and inline code spans are code; everything else
    is prose. Joining the chunks reproduces the input exactly.
    """
    segments: List[Tuple[str, bool]] = []
    cursor = 0
    for fence in fenceRanges_find(text):
        segments.extend(_inlineCode_split(text[cursor:fence.start]))
        segments.append((text[fence.start:fence.end], True))
        cursor = fence.end
    segments.extend(_inlineCode_split(text[cursor:]))
    return [segment for segment in segments if segment[0]]


def _inlineCode_split(text: str) -> List[Tuple[str, bool]]:
    segments: List[Tuple[str, bool]] = []
    cursor = 0
    for match in INLINE_CODE_PATTERN.finditer(text):
        segments.append((text[cursor:match.start()], False))
        segments.append((match.group(0), True))
        cursor = match.end()
    segments.append((text[cursor:], False))
    return segments


def markdown_transform(text: str, transform: Callable[[str], str]) -> str:
    """Apply ``transform`` to every prose chunk of markdown, leaving code intact"""
    return "".join(chunk if is_code else transform(chunk) for chunk, is_code in markdown_segments(text))


def html_segments(html: str) -> List[Tuple[str, bool]]:
    """
    Split HTML into (chunk, is_text) pieces.

    Tags, comments and the whole of <pre>, <code>, <script> and <style>
    elements are non-text. Joining the chunks reproduces the input.
    """
    segments: List[Tuple[str, bool]] = []
    cursor = 0
    for match in HTML_PROTECTED_PATTERN.finditer(html):
        if match.start() > cursor:
            segments.append((html[cursor:match.start()], True))
        segments.append((match.group(0), False))
        cursor = match.end()
    if cursor < len(html):
        segments.append((html[cursor:], True))
    return segments


def html_transform(html: str, transform: Callable[[str], str]) -> str:
    """Apply ``transform`` to text nodes outside code and markup"""
    return "".join(transform(chunk) if is_text else chunk for chunk, is_text in html_segments(html))
