"""
Per-document render context models

ProcessingContext is created fresh for every render call and handed by
reference to every processor in both phases. It is never shared between
documents, so concurrent renders need no locking.
"""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Callable, Dict, List, Optional, Set

from ..config import AppSettings, appsettings

DIFF_ADDITION = "addition"
DIFF_DELETION = "deletion"


@dataclass
class SkipRange:
    """
    Half-open character interval [start, end) a directive scan must ignore.

    Example:
        >>> SkipRange(4, 10).contains(10)
        False
    """
    start: int
    end: int

    def contains(self, position: int) -> bool:
        return self.start <= position < self.end


@dataclass
class CodeBlockDescriptor:
    """
    Accumulated metadata for one fenced code block.

    Filled in stages: the option parser sets language, title, option and
    highlights; the marker extractors fill the per-line maps; the
    annotation extractor fills markers and rendered footnote content.
    The final renderer reads it back when it meets the converter's HTML
    for the same block.

    Attributes:
        lang: Fence language as written (``-vars`` suffix already removed)
        title: Text inside ``[...]`` in the fence header, if any
        option: Line-number option token (``:line-numbers=5`` etc.)
        highlights: Sorted, de-duplicated 1-based line numbers
        diff_lines: line -> DIFF_ADDITION | DIFF_DELETION
        focus_lines: lines carrying ``[!code focus]``
        error_lines: lines carrying ``[!code error]``
        warning_lines: lines carrying ``[!code warning]``
        annotation_markers: line -> annotation ordinal
        annotation_content: annotation ordinal -> rendered HTML
    """
    lang: str = ""
    title: Optional[str] = None
    option: Optional[str] = None
    highlights: List[int] = field(default_factory=list)
    diff_lines: Dict[int, str] = field(default_factory=dict)
    focus_lines: Set[int] = field(default_factory=set)
    error_lines: Set[int] = field(default_factory=set)
    warning_lines: Set[int] = field(default_factory=set)
    annotation_markers: Dict[int, int] = field(default_factory=dict)
    annotation_content: Dict[int, str] = field(default_factory=dict)

    def lineFeatures_has(self) -> bool:
        """True if any per-line decoration must be applied when rendering"""
        return bool(
            self.highlights
            or self.diff_lines
            or self.focus_lines
            or self.error_lines
            or self.warning_lines
            or self.annotation_markers
        )


@dataclass
class ProcessingContext:
    """
    Mutable state shared by all processors during one document render.

    Seed values (variables, docs_root, current_file) come from the caller;
    everything else is produced by the pipeline. After the render the
    caller may read ``toc`` and ``code_blocks``.

    Attributes:
        variables: Nested map used for {{ a.b.c }} interpolation
        docs_root: Root for docs-relative includes and @/ snippet paths
        current_file: Source path of the document (relative includes)
        code_blocks: Descriptors indexed by block ordinal
        raw_blocks: Stashed HTML fragments behind raw placeholders
        toc: Heading outline of {level, id, text, children}
        fragment_renderer: Callback rendering a markdown fragment to HTML,
            installed by the registry so containers can nest
        converter_env: markdown-it env shared by every conversion of the
            document, so heading ids stay unique across fragments
        id_counters: Per-prefix counters behind id_make()
        settings: Settings used for placeholders and defaults
    """
    variables: Dict[str, Any] = field(default_factory=dict)
    docs_root: Optional[Path] = None
    current_file: Optional[Path] = None
    code_blocks: List[CodeBlockDescriptor] = field(default_factory=list)
    raw_blocks: List[str] = field(default_factory=list)
    toc: List[Dict[str, Any]] = field(default_factory=list)
    fragment_renderer: Optional[Callable[[str], str]] = None
    converter_env: Dict[str, Any] = field(default_factory=dict)
    id_counters: Dict[str, int] = field(default_factory=dict)
    settings: AppSettings = field(default_factory=lambda: appsettings)

    def raw_stash(self, html: str) -> str:
        """
        Store an HTML fragment and return the placeholder standing in for it.

        The placeholder is an HTML comment, so the markdown converter passes
        it through untouched; RawBlockRestorer swaps the HTML back in.
        """
        self.raw_blocks.append(html)
        return self.settings.placeHolder_make(len(self.raw_blocks) - 1)

    def id_make(self, prefix: str) -> str:
        """
        Next document-unique element id for a prefix (tabs-0, tabs-1, ...).

        Counters live on the context and restart with every render.
        """
        count = self.id_counters.get(prefix, 0)
        self.id_counters[prefix] = count + 1
        return f"{prefix}-{count}"

    def docsRoot_resolve(self) -> Path:
        return Path(self.docs_root) if self.docs_root else Path(self.settings.docs_root)

    # Ordinal-indexed views over the descriptor list

    @property
    def code_block_options(self) -> List[Dict[str, Any]]:
        return [
            {"lang": d.lang, "title": d.title, "option": d.option, "highlights": d.highlights}
            for d in self.code_blocks
        ]

    @property
    def diff_lines(self) -> List[Dict[int, str]]:
        return [d.diff_lines for d in self.code_blocks]

    @property
    def focus_lines(self) -> List[Set[int]]:
        return [d.focus_lines for d in self.code_blocks]

    @property
    def error_lines(self) -> List[Set[int]]:
        return [d.error_lines for d in self.code_blocks]

    @property
    def warning_lines(self) -> List[Set[int]]:
        return [d.warning_lines for d in self.code_blocks]

    @property
    def annotation_markers(self) -> List[Dict[int, int]]:
        return [d.annotation_markers for d in self.code_blocks]

    @property
    def annotation_content(self) -> List[Dict[int, str]]:
        return [d.annotation_content for d in self.code_blocks]
