"""
Fenced code block processors

Preprocess stages (markdown -> markdown):
    ExtendedFenceEscaper        4+-backtick literal fences become plain fences
    CodeBlockOptionProcessor    ```lang [title] :option {lines} -> descriptor
    CodeBlockMarkerProcessor    // [!code ++|--|error|warning]
    CodeBlockFocusProcessor     // [!code focus]
    CodeBlockAnnotationProcessor  // (N) markers + the ordered list after the fence

Postprocess stages (HTML -> HTML):
    CodeBlockRenderer           decorates <div class="highlight"> blocks
    ExtendedFenceRestorer       puts literal backticks and markers back
"""

import html
import re
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from ..models.context import (
    CodeBlockDescriptor,
    DIFF_ADDITION,
    DIFF_DELETION,
    ProcessingContext,
    SkipRange,
)
from ..models.processor import Processor, ProcessorCategory
from .fences import (
    ERROR_MARKER_PATTERN,
    FOCUS_MARKER_PATTERN,
    WARNING_MARKER_PATTERN,
    annotationList_find,
    annotationMarkers_extract,
    diffLines_extract,
    fences_enumerate,
    fences_replace,
    fences_stamped,
    highlights_parse,
    literal_escape,
    literal_restore,
    lineNumbers_enabled,
    lineNumbers_generate,
    lineNumbers_start,
    markerLines_extract,
    stamp_make,
)
from .languages import highlightLanguage_get, phosphorIcon_render, titleIcon_detect
from .log import LOG
from .markdown import fragment_render, paragraph_unwrap
from .skipranges import htmlContainerRanges_find, inside

EXTENDED_FENCE_PATTERN = re.compile(r"^(`{4,})([\w+#-]*)[^\n]*\n(.*?)^\1[ \t]*$", re.MULTILINE | re.DOTALL)

HIGHLIGHT_BLOCK_PATTERN = re.compile(
    r'<div class="highlight"(?: data-lang="(?P<lang>[^"]*)")?(?: data-ordinal="(?P<ordinal>\d+)")?>'
    r'<pre[^>]*>(?:<span></span>)?<code[^>]*>(?P<code>.*?)</code></pre></div>\n?',
    re.DOTALL,
)

DIFF_CLASSES = {
    DIFF_ADDITION: "docmark-code-line--diff-add",
    DIFF_DELETION: "docmark-code-line--diff-remove",
}

TAG_OR_NEWLINE_PATTERN = re.compile(r"(<[^>]+>|\n)")


class ExtendedFenceEscaper(Processor):
    """
    Neutralize 4+-backtick fences used to show literal markdown.

    ````md
    ```js {1}
    code // [!code ++]
    ```
    ````

    The body is re-emitted as a plain 3-backtick fence with backticks,
    ``[!code`` markers and ``(N)`` annotation markers replaced by
    zero-width-space placeholders, so no later stage recognizes them.
    """
    name = "extended-fence-escape"
    priority = 0
    category = ProcessorCategory.CODE

    def preprocess(self, text: str, context: ProcessingContext) -> str:
        if "````" not in text:
            return text
        return EXTENDED_FENCE_PATTERN.sub(self.fence_escape, text)

    def fence_escape(self, match: "re.Match[str]") -> str:
        lang = match.group(2) or "text"
        code = match.group(3)
        if code.endswith("\n"):
            code = code[:-1]
        return f"```{lang}\n{literal_escape(code)}\n```"


class ExtendedFenceRestorer(Processor):
    """Restore the literal characters hidden by ExtendedFenceEscaper"""
    name = "extended-fence-restore"
    priority = 1000
    category = ProcessorCategory.CODE

    def postprocess(self, html: str, context: ProcessingContext) -> str:
        if "\u200b" not in html:
            return html
        return literal_restore(html)


class CodeBlockOptionProcessor(Processor):
    """
    Enumerate fenced code blocks and parse their headers.

    This is the only stage that assigns block ordinals. For each fence
    outside tabs/code-group it appends a CodeBlockDescriptor to the
    context, rewrites the header to the highlighter language alone, and
    stamps the ordinal for the later extractors.
    """
    name = "code-block-options"
    priority = 5
    category = ProcessorCategory.CODE

    def preprocess(self, text: str, context: ProcessingContext) -> str:
        fences = fences_enumerate(text, self.settings.option_excluded_languages)
        if not fences:
            return text

        def fence_stamp(fence) -> str:
            header = fence.header
            context.code_blocks.append(
                CodeBlockDescriptor(
                    lang=header.lang,
                    title=header.title,
                    option=header.option,
                    highlights=highlights_parse(header.highlights),
                )
            )
            ordinal = len(context.code_blocks) - 1
            LOG(f"Code block {ordinal}: lang={header.lang or '-'} title={header.title!r}", level=3)
            return fence.render(highlightLanguage_get(header.lang) + stamp_make(ordinal), fence.body)

        LOG(f"Found {len(fences)} code blocks", level=2)
        return fences_replace(text, fences, fence_stamp)


class CodeBlockMarkerProcessor(Processor):
    """Extract diff, error and warning marker comments from code lines"""
    name = "code-block-markers"
    priority = 6
    category = ProcessorCategory.CODE

    def preprocess(self, text: str, context: ProcessingContext) -> str:
        fences = fences_stamped(text)
        if not fences:
            return text

        def fence_clean(fence) -> str:
            descriptor = context.code_blocks[fence.ordinal]
            diff_lines, body = diffLines_extract(fence.body)
            error_lines, body = markerLines_extract(body, ERROR_MARKER_PATTERN)
            warning_lines, body = markerLines_extract(body, WARNING_MARKER_PATTERN)
            descriptor.diff_lines.update(diff_lines)
            descriptor.error_lines.update(error_lines)
            descriptor.warning_lines.update(warning_lines)
            return fence.rebuild(body)

        return fences_replace(text, fences, fence_clean)


class CodeBlockFocusProcessor(Processor):
    """Extract ``[!code focus]`` marker comments from code lines"""
    name = "code-block-focus"
    priority = 7
    category = ProcessorCategory.CODE

    def preprocess(self, text: str, context: ProcessingContext) -> str:
        fences = fences_stamped(text)
        if not fences:
            return text

        def fence_clean(fence) -> str:
            focus_lines, body = markerLines_extract(fence.body, FOCUS_MARKER_PATTERN)
            context.code_blocks[fence.ordinal].focus_lines.update(focus_lines)
            return fence.rebuild(body)

        return fences_replace(text, fences, fence_clean)


class CodeBlockAnnotationProcessor(Processor):
    """
    Pair ``// (N)`` code markers with the ordered list following the fence.

    When a fence has markers and an ordered list follows it (blank lines
    allowed), the list is removed from the document, each item is rendered
    to HTML and stored by ordinal, and the markers are stripped from the
    code. Without a following list the block is left untouched.

    Runs last among the extractors; the ordinal stamps are left for the
    markdown converter.
    """
    name = "code-block-annotations"
    priority = 8
    category = ProcessorCategory.CODE

    def preprocess(self, text: str, context: ProcessingContext) -> str:
        pieces: List[str] = []
        cursor = 0
        for fence in fences_stamped(text):
            if fence.start < cursor:
                continue
            pieces.append(text[cursor:fence.start])
            cursor = fence.end

            descriptor = context.code_blocks[fence.ordinal]
            markers, cleaned = annotationMarkers_extract(fence.body)
            found = annotationList_find(text, fence.end) if markers else None
            if found is None:
                if markers:
                    LOG(f"Code block {fence.ordinal}: annotation markers without a following list", level=1)
                pieces.append(fence.rebuild(fence.body))
                continue

            items, list_end = found
            descriptor.annotation_markers = markers
            descriptor.annotation_content = self.content_render(items, markers, fence.ordinal, context)
            pieces.append(fence.rebuild(cleaned))
            pieces.append("\n\n" if list_end < len(text) else "\n")
            cursor = list_end

        pieces.append(text[cursor:])
        return "".join(pieces)

    def content_render(
        self, items: Dict[int, str], markers: Dict[int, int], ordinal: int, context: ProcessingContext
    ) -> Dict[int, str]:
        referenced = set(markers.values())
        unreferenced = sorted(set(items) - referenced)
        if unreferenced:
            LOG(f"Code block {ordinal}: annotation items {unreferenced} have no marker", level=1)
        missing = sorted(referenced - set(items))
        if missing:
            LOG(f"Code block {ordinal}: markers {missing} have no annotation item", level=1)

        return {
            number: paragraph_unwrap(fragment_render(items[number], context))
            for number in sorted(referenced)
            if number in items
        }


def codeFeatures_extract(text: str, context: ProcessingContext) -> Tuple[str, List[CodeBlockDescriptor]]:
    """
    Run option, marker and focus extraction on a container's own content.

    Tabs and code-group panels number their blocks locally, starting at 0,
    independent of the document ordinals. Annotations are not extracted
    inside these containers.

    Returns:
        (cleaned markdown still carrying the local stamps,
         descriptors indexed by local ordinal)
    """
    local = ProcessingContext(
        variables=context.variables,
        docs_root=context.docs_root,
        current_file=context.current_file,
        settings=context.settings,
    )
    for stage in (CodeBlockOptionProcessor, CodeBlockMarkerProcessor, CodeBlockFocusProcessor):
        text = stage(context.settings).preprocess(text, local)
    return text, local.code_blocks


def htmlLines_split(code_html: str) -> List[str]:
    """
    Split highlighted HTML into lines, keeping every line well formed.

    Elements open across a line break are closed at the end of the line
    and re-opened at the start of the next.
    """
    lines: List[str] = []
    open_tags: List[Tuple[str, str]] = []
    current = ""
    for token in TAG_OR_NEWLINE_PATTERN.split(code_html):
        if not token:
            continue
        if token == "\n":
            current += "".join(f"</{name}>" for name, _ in reversed(open_tags))
            lines.append(current)
            current = "".join(tag for _, tag in open_tags)
        elif token.startswith("</"):
            if open_tags:
                open_tags.pop()
            current += token
        elif token.startswith("<") and not token.endswith("/>"):
            name = re.match(r"<([\w-]+)", token)
            open_tags.append((name.group(1) if name else "span", token))
            current += token
        else:
            current += token
    if current and current != "".join(tag for _, tag in open_tags):
        lines.append(current + "".join(f"</{name}>" for name, _ in reversed(open_tags)))
    return lines


def lines_wrap(code_html: str, descriptor: CodeBlockDescriptor) -> str:
    """Wrap each line in a span carrying its per-line feature classes"""
    highlights = set(descriptor.highlights)
    wrapped = []
    for number, line in enumerate(htmlLines_split(code_html), start=1):
        classes = ["docmark-code-line"]
        if number in highlights:
            classes.append("docmark-code-line--highlighted")
        if number in descriptor.diff_lines:
            classes.append(DIFF_CLASSES[descriptor.diff_lines[number]])
        if number in descriptor.focus_lines:
            classes.append("docmark-code-line--focus")
        if number in descriptor.error_lines:
            classes.append("docmark-code-line--error")
        if number in descriptor.warning_lines:
            classes.append("docmark-code-line--warning")

        attrs = f' class="{" ".join(classes)}"'
        button = ""
        annotation = descriptor.annotation_markers.get(number)
        if annotation is not None and annotation in descriptor.annotation_content:
            attrs += f' data-annotation="{annotation}"'
            button = (
                f'<button type="button" class="docmark-code-annotation" data-annotation="{annotation}" '
                f'aria-label="Annotation {annotation}">{annotation}</button>'
            )
        wrapped.append(f"<span{attrs}>{line}{button}</span>")
    return "\n".join(wrapped) + "\n"


class CodeBlockRenderer(Processor):
    """
    Final rendering of highlighted code blocks.

    Walks the converter's ``<div class="highlight">`` blocks, pairs each
    with the descriptor named by its ``data-ordinal`` and emits the
    interactive block: optional title header, line numbers, per-line
    classes, copy button and annotation footnotes. Blocks without an
    ordinal (``~~~`` fences, fences in blockquotes or lists) get a bare
    descriptor for their language. Blocks inside rendered tabs/code-group
    containers are already final and are skipped.
    """
    name = "code-block-renderer"
    priority = 20
    category = ProcessorCategory.CODE

    def postprocess(self, html: str, context: ProcessingContext) -> str:
        if '<div class="highlight"' not in html:
            return html
        return self.blocks_render(html, context.code_blocks, htmlContainerRanges_find(html))

    def blocks_render(
        self,
        html: str,
        descriptors: Sequence[CodeBlockDescriptor],
        skip: Iterable[SkipRange] = (),
    ) -> str:
        skip = list(skip)
        pieces: List[str] = []
        cursor = 0
        paired = set()
        for match in HIGHLIGHT_BLOCK_PATTERN.finditer(html):
            if inside(match.start(), skip):
                continue
            ordinal = match.group("ordinal")
            if ordinal is not None and int(ordinal) < len(descriptors):
                descriptor = descriptors[int(ordinal)]
                paired.add(int(ordinal))
            else:
                descriptor = CodeBlockDescriptor(lang=match.group("lang") or "")
            pieces.append(html[cursor:match.start()])
            pieces.append(self.block_render(match.group("code"), descriptor))
            cursor = match.end()
        pieces.append(html[cursor:])

        unrendered = sorted(set(range(len(descriptors))) - paired)
        if unrendered:
            LOG(f"Code blocks {unrendered} were dropped before conversion", level=2)
        return "".join(pieces)

    def block_render(self, code_html: str, descriptor: CodeBlockDescriptor, title: Optional[str] = None) -> str:
        """
        Render one block.

        Args:
            code_html: Highlighted HTML found inside <pre><code>
            descriptor: Metadata collected for this block
            title: Overrides the descriptor title ("" suppresses the header)
        """
        code_text = html.unescape(re.sub(r"<[^>]+>", "", code_html))
        title, icon = titleIcon_detect(descriptor.title if title is None else title, descriptor.lang)

        show_numbers = lineNumbers_enabled(descriptor.option, self.settings.line_numbers_default)
        start_line = lineNumbers_start(descriptor.option)

        body_html = lines_wrap(code_html, descriptor) if descriptor.lineFeatures_has() else code_html
        if not title:
            body_html = scrollSpacer_inject(body_html)

        classes = ["docmark-code-block"]
        if title:
            classes.append("docmark-code-block--titled")
        if show_numbers:
            classes.append("docmark-code-block--line-numbers")
        if descriptor.focus_lines:
            classes.append("docmark-code-block--has-focus")

        parts = [f'<div class="{" ".join(classes)}" data-lang="{html.escape(descriptor.lang)}">']
        if title:
            icon_html = f'<span class="docmark-code-block__icon">{icon}</span>' if icon else ""
            parts.append(
                f'<div class="docmark-code-block__header">{icon_html}'
                f'<span class="docmark-code-block__title">{html.escape(title)}</span></div>'
            )
        parts.append(
            '<button type="button" class="docmark-code-block__copy" aria-label="Copy code" '
            f'data-code="{html.escape(code_text.rstrip(chr(10)))}">{phosphorIcon_render("copy")}</button>'
        )
        parts.append('<div class="docmark-code-block__body">')
        if show_numbers:
            numbers = "".join(f"<span>{n}</span>" for n in lineNumbers_generate(code_text, start_line))
            parts.append(f'<div class="docmark-code-block__lines" aria-hidden="true">{numbers}</div>')
        parts.append(f'<div class="highlight"><pre><code>{body_html}</code></pre></div>')
        parts.append("</div>")
        parts.append(annotations_render(descriptor))
        parts.append("</div>\n")
        return "".join(parts)


def scrollSpacer_inject(code_html: str) -> str:
    """Reserve room for the copy button at the end of the first line"""
    spacer = '<span class="docmark-code-block__scroll-spacer" aria-hidden="true"></span>'
    if "\n" not in code_html:
        return code_html + spacer
    # wrapped lines end in </span> before the newline
    first, rest = code_html.split("\n", 1)
    return f"{first}{spacer}\n{rest}"


def annotations_render(descriptor: CodeBlockDescriptor) -> str:
    referenced = sorted(
        {n for n in descriptor.annotation_markers.values() if n in descriptor.annotation_content}
    )
    if not referenced:
        return ""
    items = "".join(
        f'<div class="docmark-code-annotation__content" data-annotation="{n}">'
        f"{descriptor.annotation_content[n]}</div>"
        for n in referenced
    )
    return f'<div class="docmark-code-block__annotations">{items}</div>'
