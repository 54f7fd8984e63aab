"""
Fenced code block enumeration and parsing helpers

All code-block feature extractors walk fences through this module, so
every pass sees the same blocks, in the same order, with the same
tabs/code-group exclusions.

The option parser enumerates fences once, creates one descriptor per
block, and stamps the block's ordinal onto its opening line. Later
extractors look the descriptor up through the stamp instead of counting
blocks again. The stamp stays in the fence info string through
conversion: the markdown converter moves it onto the highlighted block
as ``data-ordinal``, and the renderer pairs blocks with descriptors by
that number. Fences the scanner never saw (``~~~``, blockquoted,
unclosed) carry no ordinal and so cannot shift the others.

Fence header grammar:  ```lang [title] :option {1,3-5}
"""

import re
from dataclasses import dataclass
from typing import Callable, Dict, Iterable, List, Optional, Pattern, Tuple

from .skipranges import containerRanges_find, inside

FENCE_PATTERN: Pattern[str] = re.compile(
    r"^(?P<indent>[ \t]*)```(?P<info>[^\n`]*)\n(?P<body>.*?)^[ \t]*```[ \t]*$",
    re.MULTILINE | re.DOTALL,
)

HEADER_PATTERN: Pattern[str] = re.compile(
    r"^(?P<lang>[\w+#.-]*)"
    r"(?:\s*\[(?P<title>[^\]]*)\])?"
    r"(?:\s*(?P<option>:[\w-]+(?:=\d+)?))?"
    r"(?:\s*\{(?P<highlights>[^}\n]*)\})?"
)

STAMP_MARK = "\u2063"
STAMP_PATTERN: Pattern[str] = re.compile(r" ?" + STAMP_MARK + r"(\d+)" + STAMP_MARK)


def _commentMarker_compile(marker: str, tail: str = "") -> Pattern[str]:
    """
    Build a pattern for ``[!code <marker>]`` behind any common comment token.

    Leading horizontal whitespace is part of the match, so stripping the
    marker leaves no trailing blanks on the code line.
    """
    return re.compile(
        r"[^\S\n]*" + COMMENT_OPEN + r"\s*" + marker + COMMENT_CLOSE + r"[^\S\n]*" + tail
    )


# //, #, /* */, --, <!-- -->, ;
COMMENT_OPEN = r"(?://|\#|/\*|<!--|--|;)"
COMMENT_CLOSE = r"(?:\s*\*/|\s*-->)?"

DIFF_MARKER_PATTERN = _commentMarker_compile(r"\[!code\s*(?P<kind>\+\+|--)\]")
FOCUS_MARKER_PATTERN = _commentMarker_compile(r"\[!code\s+focus\]")
ERROR_MARKER_PATTERN = _commentMarker_compile(r"\[!code\s+error\]")
WARNING_MARKER_PATTERN = _commentMarker_compile(r"\[!code\s+warning\]")
ANNOTATION_MARKER_PATTERN = _commentMarker_compile(r"\((?P<ordinal>\d+)\)", tail="$")

# Zero-width-space sequences standing in for literal syntax inside
# extended fences until the code is highlighted
BACKTICK_PLACEHOLDER = "\u200b\u200b\u200b"
CODE_MARKER_PLACEHOLDER = "\u200b!\u200bcode"
ANNOTATION_PLACEHOLDER = "\u200b(\u200b"

LIST_START_PATTERN: Pattern[str] = re.compile(r"\A(?:[ \t]*\n)*(?=\d+\.\s)")
LIST_ITEM_PATTERN: Pattern[str] = re.compile(r"^(\d+)\.\s+(.*)$")
LIST_CONTINUATION_PATTERN: Pattern[str] = re.compile(r"^\s{2,}(\S.*)$")


@dataclass
class FenceHeader:
    """Parsed ```lang [title] :option {highlights} header"""
    lang: str = ""
    title: Optional[str] = None
    option: Optional[str] = None
    highlights: str = ""


@dataclass
class FenceMatch:
    """
    One fenced code block located in markdown.

    Attributes:
        start: Offset of the opening line
        end: Offset just past the closing ``` (excludes its newline)
        indent: Indentation of the opening line
        info: Header text after the backticks, stamp removed
        body: Code lines, each keeping its newline
        ordinal: Block ordinal from the stamp, None if unstamped
    """
    start: int
    end: int
    indent: str
    info: str
    body: str
    ordinal: Optional[int] = None

    @property
    def header(self) -> FenceHeader:
        return header_parse(self.info)

    def render(self, info: str, body: str) -> str:
        """Rebuild the fence text with a new header and body"""
        if body and not body.endswith("\n"):
            body += "\n"
        return f"{self.indent}```{info}\n{body}{self.indent}```"

    def rebuild(self, body: str) -> str:
        """Re-emit the fence with a new body, keeping its header and stamp"""
        info = self.info if self.ordinal is None else self.info + stamp_make(self.ordinal)
        return self.render(info, body)


def header_parse(info: str) -> FenceHeader:
    """
    Parse a fence header.

    Example:
        >>> header_parse("js [app.js] :line-numbers=3 {1,2}")
        FenceHeader(lang='js', title='app.js', option=':line-numbers=3', highlights='1,2')
    """
    match = HEADER_PATTERN.match(info.strip())
    if not match:
        return FenceHeader()
    title = match.group("title")
    return FenceHeader(
        lang=match.group("lang") or "",
        title=title.strip() if title and title.strip() else None,
        option=match.group("option"),
        highlights=match.group("highlights") or "",
    )


def highlights_parse(spec: Optional[str]) -> List[int]:
    """
    Expand a highlight spec into sorted, de-duplicated line numbers.

    Tokens are ``N`` or inclusive ``N-M`` ranges; malformed tokens are
    ignored.

    Example:
        >>> highlights_parse("1,3-5,7")
        [1, 3, 4, 5, 7]
        >>> highlights_parse("1-3,2")
        [1, 2, 3]
    """
    if not spec or not spec.strip():
        return []

    lines = set()
    for token in spec.split(","):
        token = token.strip()
        if "-" in token:
            low, _, high = token.partition("-")
            if low.strip().isdigit() and high.strip().isdigit():
                lines.update(range(int(low), int(high) + 1))
        elif token.isdigit():
            lines.add(int(token))
    return sorted(lines)


def fences_enumerate(text: str, excluded: Iterable[str] = ()) -> List[FenceMatch]:
    """
    List the fenced code blocks the global extractors own.

    Blocks inside :::tabs or :::code-group are skipped (those containers
    number their own blocks), as are blocks whose language is excluded.

    Args:
        text: Markdown with 4+-backtick fences already escaped
        excluded: Fence languages to leave out

    Returns:
        Fences in document order
    """
    excluded = {lang.lower() for lang in excluded}
    skip = containerRanges_find(text)
    fences: List[FenceMatch] = []
    for match in FENCE_PATTERN.finditer(text):
        if inside(match.start(), skip):
            continue
        fence = _fence_build(match)
        if fence.header.lang.lower() in excluded:
            continue
        fences.append(fence)
    return fences


def fences_all(text: str) -> List[FenceMatch]:
    """Every fence in the text, with no exclusions"""
    return [_fence_build(match) for match in FENCE_PATTERN.finditer(text)]


def fences_stamped(text: str) -> List[FenceMatch]:
    """Fences carrying an ordinal stamp, in document order"""
    return [fence for fence in fences_all(text) if fence.ordinal is not None]


def _fence_build(match: "re.Match[str]") -> FenceMatch:
    info, ordinal = stamp_split(match.group("info"))
    return FenceMatch(
        start=match.start(),
        end=match.end(),
        indent=match.group("indent"),
        info=info,
        body=match.group("body"),
        ordinal=ordinal,
    )


def fences_replace(text: str, fences: List[FenceMatch], render: Callable[[FenceMatch], str]) -> str:
    """Replace each fence span with ``render(fence)``; other text is kept"""
    pieces: List[str] = []
    cursor = 0
    for fence in fences:
        pieces.append(text[cursor:fence.start])
        pieces.append(render(fence))
        cursor = fence.end
    pieces.append(text[cursor:])
    return "".join(pieces)


def stamp_make(ordinal: int) -> str:
    return f" {STAMP_MARK}{ordinal}{STAMP_MARK}"


def stamps_strip(text: str) -> str:
    """Remove every ordinal stamp from fence headers"""
    if STAMP_MARK not in text:
        return text
    return STAMP_PATTERN.sub("", text)


def stamp_split(info: str) -> Tuple[str, Optional[int]]:
    """
    Separate a fence info string from its ordinal stamp.

    Example:
        >>> stamp_split("python \\u20633\\u2063")
        ('python', 3)
        >>> stamp_split("python")
        ('python', None)
    """
    stamp = STAMP_PATTERN.search(info)
    if not stamp:
        return info, None
    return STAMP_PATTERN.sub("", info), int(stamp.group(1))


def literal_escape(code: str) -> str:
    """Hide backticks, ``[!code`` and ``(N)`` markers behind placeholders"""
    code = code.replace("`", BACKTICK_PLACEHOLDER).replace("[!code", CODE_MARKER_PLACEHOLDER)
    lines = []
    for line in code.split("\n"):
        match = ANNOTATION_MARKER_PATTERN.search(line)
        if match:
            marker = match.group(0).replace("(", ANNOTATION_PLACEHOLDER, 1)
            line = line[:match.start()] + marker + line[match.end():]
        lines.append(line)
    return "\n".join(lines)


def literal_restore(text: str) -> str:
    # markers first: a marker placeholder may directly follow a backtick one
    return (
        text.replace(ANNOTATION_PLACEHOLDER, "(")
        .replace(CODE_MARKER_PLACEHOLDER, "[!code")
        .replace(BACKTICK_PLACEHOLDER, "`")
    )


def markerLines_extract(body: str, pattern: Pattern[str]) -> Tuple[Dict[int, str], str]:
    """
    Strip a comment marker from every line of a code body.

    Args:
        body: Code lines (newline-terminated)
        pattern: One of the *_MARKER_PATTERN regexes

    Returns:
        (line -> matched marker text, cleaned body). Line numbers are
        1-based; every line keeps its terminator.
    """
    found: Dict[int, str] = {}
    cleaned: List[str] = []
    for number, line in enumerate(body.splitlines(keepends=True), start=1):
        match = pattern.search(line)
        if match:
            found[number] = match.group(0)
            line = pattern.sub("", line)
        cleaned.append(line)
    return found, "".join(cleaned)


def diffLines_extract(body: str) -> Tuple[Dict[int, str], str]:
    """Return ({line: "addition"|"deletion"}, cleaned body)"""
    found, cleaned = markerLines_extract(body, DIFF_MARKER_PATTERN)
    lines = {}
    for number, marker in found.items():
        kind = DIFF_MARKER_PATTERN.search(marker).group("kind")
        lines[number] = "addition" if kind == "++" else "deletion"
    return lines, cleaned


def annotationMarkers_extract(body: str) -> Tuple[Dict[int, int], str]:
    """Return ({line: annotation ordinal}, cleaned body)"""
    found, cleaned = markerLines_extract(body, ANNOTATION_MARKER_PATTERN)
    markers = {}
    for number, marker in found.items():
        markers[number] = int(ANNOTATION_MARKER_PATTERN.search(marker).group("ordinal"))
    return markers, cleaned


def annotationList_find(text: str, position: int) -> Optional[Tuple[Dict[int, str], int]]:
    """
    Find an ordered list starting at ``position`` (blank lines allowed).

    Items begin with ``N. ``; indented lines (2+ spaces) and blank lines
    continue the current item; anything else ends the list.

    Args:
        text: Document text
        position: Offset just past a closing fence

    Returns:
        ({N: item markdown}, offset just past the list) or None
    """
    rest = text[position:]
    if rest.startswith("\n"):
        rest = rest[1:]
        position += 1
    preamble = LIST_START_PATTERN.match(rest)
    if not preamble:
        return None

    items: Dict[int, str] = {}
    current: Optional[int] = None
    lines: List[str] = []
    consumed = preamble.end()

    def finalize() -> None:
        if current is not None:
            items[current] = "\n".join(lines).strip()

    for line in rest[preamble.end():].splitlines(keepends=True):
        content = line.rstrip("\r\n")
        item = LIST_ITEM_PATTERN.match(content)
        if item:
            finalize()
            current, lines = int(item.group(1)), [item.group(2).rstrip()]
        elif current is not None and LIST_CONTINUATION_PATTERN.match(content):
            lines.append(LIST_CONTINUATION_PATTERN.match(content).group(1).rstrip())
        elif current is not None and not content.strip():
            lines.append("")
        else:
            break
        consumed += len(line)
    finalize()

    if not items:
        return None
    return items, position + consumed


def lineNumbers_enabled(option: Optional[str], default: bool = False) -> bool:
    if option == ":no-line-numbers":
        return False
    if option and option.startswith(":line-numbers"):
        return True
    return default


def lineNumbers_start(option: Optional[str]) -> int:
    if not option or "=" not in option:
        return 1
    value = option.rsplit("=", 1)[1]
    return int(value) if value.isdigit() else 1


def lineNumbers_generate(code_text: str, start: int = 1) -> List[int]:
    """One number per code line (at least one), counting from ``start``"""
    count = max(len(code_text.splitlines()), 1)
    return list(range(start, start + count))
