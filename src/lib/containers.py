"""
Container directive processors

Block directives of the form

    :::name optional title {key="value"}
    body markdown
    :::

are matched with nesting-aware scanning, their bodies rendered through the
fragment renderer (so containers nest), and the resulting HTML stashed on
the context behind a raw placeholder the markdown converter passes through
untouched. RawBlockRestorer swaps the HTML back in after conversion.
"""

import html
import re
from typing import Dict, List, Optional, Pattern, Tuple

from ..models.context import ProcessingContext
from ..models.processor import Processor, ProcessorCategory
from .attributes import attrs_parse, attrsBlock_split
from .codeblocks import CodeBlockRenderer, codeFeatures_extract
from .fences import FENCE_PATTERN, fences_all, header_parse
from .languages import languageIcon_render, phosphorIcon_render
from .log import LOG
from .markdown import fragment_render
from .skipranges import (
    FENCE_LINE_PATTERN,
    ContainerMatch,
    containers_find,
    fenceRanges_find,
    htmlContainerRanges_find,
    inside,
)

CALLOUT_TYPES: Dict[str, Dict[str, str]] = {
    "note": {"title": "Note", "icon": "info"},
    "tip": {"title": "Tip", "icon": "lightbulb"},
    "important": {"title": "Important", "icon": "warning-circle"},
    "warning": {"title": "Warning", "icon": "warning"},
    "danger": {"title": "Danger", "icon": "siren"},
}

GITHUB_ALERT_TYPES: Dict[str, str] = {
    "NOTE": "note",
    "TIP": "tip",
    "IMPORTANT": "important",
    "WARNING": "warning",
    "CAUTION": "danger",
}

GITHUB_ALERT_PATTERN: Pattern[str] = re.compile(
    r"<blockquote>\s*<p>\[!(NOTE|TIP|IMPORTANT|WARNING|CAUTION)\]\s*(?:<br\s*/?>)?\s*(.*?)</p>(.*?)</blockquote>\n?",
    re.DOTALL,
)

CARD_PATTERN: Pattern[str] = re.compile(r"^::card(\{[^}\n]*\})?[ \t]*\n(.*?)^::[ \t]*$", re.MULTILINE | re.DOTALL)
STEP_HEADING_PATTERN: Pattern[str] = re.compile(r"^###[ \t]+(.+?)[ \t]*$")
TAB_SEPARATOR_PATTERN: Pattern[str] = re.compile(r"^==[ \t]+(.+?)[ \t]*$")
MANUAL_ICON_PATTERN: Pattern[str] = re.compile(r"^:([a-z0-9-]+):\s*(.+)$", re.IGNORECASE)


def sections_split(body: str, heading: Pattern[str]) -> List[Tuple[str, str]]:
    """
    Split a container body on heading lines outside fenced code.

    Text before the first heading is dropped.

    Returns:
        [(heading text, section markdown), ...]
    """
    sections: List[Tuple[str, List[str]]] = []
    fence: Optional[str] = None
    for line in body.splitlines(keepends=True):
        content = line.rstrip("\r\n")
        ticks = FENCE_LINE_PATTERN.match(content)
        if fence is not None:
            if ticks and len(ticks.group(1)) >= len(fence) and not content.strip().strip("`"):
                fence = None
        elif ticks:
            fence = ticks.group(1)
        else:
            match = heading.match(content)
            if match:
                sections.append((match.group(1), []))
                continue
        if sections:
            sections[-1][1].append(line)
    return [(title, "".join(lines)) for title, lines in sections]


class ContainerProcessor(Processor):
    """
    Base class for ``:::name`` block directives.

    Subclasses list the names they own and implement container_render(),
    returning the HTML for one container, or None to leave it as written.
    """
    name = "container"
    priority = 10
    category = ProcessorCategory.CONTAINER
    names: Tuple[str, ...] = ()

    def preprocess(self, text: str, context: ProcessingContext) -> str:
        if ":::" not in text:
            return text
        matches = containers_find(text, self.names)
        if not matches:
            return text

        pieces: List[str] = []
        cursor = 0
        rendered = 0
        for match in matches:
            html_fragment = self.container_render(match, context)
            if html_fragment is None:
                continue
            pieces.append(text[cursor:match.start])
            pieces.append(context.raw_stash(html_fragment))
            cursor = match.end
            rendered += 1
        pieces.append(text[cursor:])

        if rendered:
            LOG(f"{self.name}: rendered {rendered} containers", level=2)
        return "".join(pieces)

    def container_render(self, match: ContainerMatch, context: ProcessingContext) -> Optional[str]:
        raise NotImplementedError

    def body_render(self, body: str, context: ProcessingContext) -> str:
        body = body.strip()
        if not body:
            return ""
        return fragment_render(body, context).strip()


class CalloutProcessor(ContainerProcessor):
    """
    Admonition boxes.

        :::warning Mind the gap
        Body markdown.
        :::

    GitHub alert blockquotes (``> [!NOTE]``) are converted to the same
    markup after conversion.
    """
    name = "callout"
    names = tuple(CALLOUT_TYPES)

    def container_render(self, match: ContainerMatch, context: ProcessingContext) -> Optional[str]:
        kind = match.name.lower()
        config = CALLOUT_TYPES[kind]
        title, attrs = attrsBlock_split(match.rest)
        title = attrs.get("title") or title or config["title"]
        return callout_render(kind, title, self.body_render(match.body, context))

    def postprocess(self, html_text: str, context: ProcessingContext) -> str:
        if "[!" not in html_text:
            return html_text
        return GITHUB_ALERT_PATTERN.sub(self.alert_render, html_text)

    def alert_render(self, match: "re.Match[str]") -> str:
        kind = GITHUB_ALERT_TYPES[match.group(1)]
        first, rest = match.group(2).strip(), match.group(3).strip()
        content = f"<p>{first}</p>" if first else ""
        if rest:
            content += rest
        return callout_render(kind, CALLOUT_TYPES[kind]["title"], content) + "\n"


def callout_render(kind: str, title: str, content_html: str) -> str:
    icon = phosphorIcon_render(CALLOUT_TYPES[kind]["icon"])
    return (
        f'<div class="docmark-callout docmark-callout--{kind}" role="note">\n'
        f'<div class="docmark-callout__icon">{icon}</div>\n'
        f'<div class="docmark-callout__content">\n'
        f'<div class="docmark-callout__title">{html.escape(title)}</div>\n'
        f'<div class="docmark-callout__body">{content_html}</div>\n'
        f"</div>\n"
        f"</div>"
    )


class AccordionProcessor(ContainerProcessor):
    """
    Collapsible section rendered as <details>.

        :::details{title="Show more" open}
        Hidden content.
        :::
    """
    name = "accordion"
    names = ("details",)

    def container_render(self, match: ContainerMatch, context: ProcessingContext) -> Optional[str]:
        title, attrs = attrsBlock_split(match.rest)
        title = attrs.get("title") or title or "Details"
        open_attr = " open" if "open" in attrs else ""
        icon = phosphorIcon_render("caret-right")
        return (
            f'<details class="docmark-accordion"{open_attr}>\n'
            f'<summary class="docmark-accordion__summary">'
            f'<span class="docmark-accordion__icon">{icon}</span>'
            f'<span class="docmark-accordion__title">{html.escape(title)}</span></summary>\n'
            f'<div class="docmark-accordion__content">{self.body_render(match.body, context)}</div>\n'
            f"</details>"
        )


class CardsProcessor(ContainerProcessor):
    """Grid of ``::card{title icon href}`` units"""
    name = "cards"
    names = ("cards",)

    def container_render(self, match: ContainerMatch, context: ProcessingContext) -> Optional[str]:
        skip = fenceRanges_find(match.body)
        cards = []
        for unit in CARD_PATTERN.finditer(match.body):
            if inside(unit.start(), skip):
                continue
            cards.append(self.card_render(attrs_parse(unit.group(1)), unit.group(2), context))
        LOG(f"cards: {len(cards)} cards", level=3)
        return '<div class="docmark-cards">\n' + "\n".join(cards) + "\n</div>"

    def card_render(self, attrs: Dict[str, str], body: str, context: ProcessingContext) -> str:
        title = attrs.get("title") or "Card"
        icon = attrs.get("icon")
        href = attrs.get("href")

        inner = ""
        if icon:
            inner += f'<div class="docmark-card__icon">{phosphorIcon_render(icon)}</div>'
        inner += f'<div class="docmark-card__title">{html.escape(title)}</div>'
        content = self.body_render(body, context)
        if content:
            inner += f'<div class="docmark-card__content">{content}</div>'

        if href:
            return f'<a class="docmark-card docmark-card--link" href="{html.escape(href)}">{inner}</a>'
        return f'<div class="docmark-card">{inner}</div>'


class StepsProcessor(ContainerProcessor):
    """Numbered procedure; every ``### Title`` line starts a step"""
    name = "steps"
    names = ("steps",)

    def container_render(self, match: ContainerMatch, context: ProcessingContext) -> Optional[str]:
        steps = sections_split(match.body, STEP_HEADING_PATTERN)
        items = []
        for number, (title, body) in enumerate(steps, start=1):
            last = " docmark-step--last" if number == len(steps) else ""
            items.append(
                f'<div class="docmark-step{last}">'
                f'<div class="docmark-step__number" aria-hidden="true">{number}</div>'
                f'<div class="docmark-step__body">'
                f'<div class="docmark-step__title">{html.escape(title)}</div>'
                f'<div class="docmark-step__content">{self.body_render(body, context)}</div>'
                f"</div></div>"
            )
        return '<div class="docmark-steps">\n' + "\n".join(items) + "\n</div>"


class CodeBlocksContainer(ContainerProcessor):
    """
    Containers that render their own code blocks.

    The global code-block extractors leave these interiors alone; here each
    piece of content is extracted with block ordinals local to the piece,
    converted, and given its final code-block markup immediately.
    """

    def codeContent_render(self, markdown: str, context: ProcessingContext, titles: bool = True) -> str:
        cleaned, descriptors = codeFeatures_extract(markdown, context)
        if not titles:
            for descriptor in descriptors:
                descriptor.title = None
        rendered = fragment_render(cleaned, context)
        renderer = CodeBlockRenderer(self.settings)
        return renderer.blocks_render(rendered, descriptors, htmlContainerRanges_find(rendered)).strip()


class CodeGroupProcessor(CodeBlocksContainer):
    """
    Tabbed group of code blocks, one tab per ``[label]`` fence.

        :::code-group
        ```bash [npm]
        npm install docmark
        ```
        ```bash [yarn]
        yarn add docmark
        ```
        :::
    """
    name = "code-group"
    priority = 12
    names = ("code-group",)

    def container_render(self, match: ContainerMatch, context: ProcessingContext) -> Optional[str]:
        blocks = []
        for fence in fences_all(match.body):
            header = fence.header
            if not header.title:
                continue
            markdown = match.body[fence.start:fence.end] + "\n"
            cleaned, _ = codeFeatures_extract(markdown, context)
            code_fence = FENCE_PATTERN.search(cleaned)
            code_text = code_fence.group("body") if code_fence else fence.body
            blocks.append(
                {
                    "label": header.title,
                    "lang": header.lang,
                    "content": self.codeContent_render(markdown, context, titles=False),
                    "code": code_text.rstrip("\n"),
                }
            )
        if not blocks:
            LOG("code-group without labelled code blocks", level=1)
            return ""
        return self.group_render(blocks, context.id_make("cg"))

    def group_render(self, blocks: List[Dict[str, str]], group_id: str) -> str:
        tabs = []
        panels = []
        for index, block in enumerate(blocks):
            first = index == 0
            label = html.escape(block["label"])
            tabs.append(
                f'<button type="button" role="tab" class="docmark-code-group__tab" '
                f'id="{group_id}-tab-{index}" aria-controls="{group_id}-panel-{index}" '
                f'aria-selected="{"true" if first else "false"}" tabindex="{"0" if first else "-1"}" '
                f'data-label="{label}">{languageIcon_render(block["lang"])}{label}</button>'
            )
            panels.append(
                f'<div role="tabpanel" class="docmark-code-group__panel" id="{group_id}-panel-{index}" '
                f'aria-labelledby="{group_id}-tab-{index}" aria-hidden="{"false" if first else "true"}" '
                f'tabindex="0" data-code="{html.escape(block["code"])}">{block["content"]}</div>'
            )
        return (
            f'<div class="docmark-code-group" data-code-group="{group_id}">\n'
            f'<div class="docmark-code-group__tabs-wrapper">\n'
            f'<div role="tablist" aria-label="Code examples" class="docmark-code-group__tabs">\n'
            + "\n".join(tabs)
            + '\n<div class="docmark-code-group__indicator" aria-hidden="true"></div>\n'
            f"</div>\n"
            f'<button type="button" class="docmark-code-group__copy" aria-label="Copy code to clipboard">'
            f'{phosphorIcon_render("copy")}</button>\n'
            f"</div>\n"
            f'<div class="docmark-code-group__panels">\n'
            + "\n".join(panels)
            + "\n</div>\n</div>"
        )


class TabsProcessor(CodeBlocksContainer):
    """
    Tabbed content; ``== Name`` lines separate the tabs.

    A ``:icon: Name`` label sets an explicit Phosphor icon; a tab holding a
    single code block gets the icon of its language.
    """
    name = "tabs"
    priority = 15
    names = ("tabs",)

    def container_render(self, match: ContainerMatch, context: ProcessingContext) -> Optional[str]:
        tabs = []
        for label, body in sections_split(match.body, TAB_SEPARATOR_PATTERN):
            label, icon = tabIcon_detect(label, body)
            tabs.append({"label": label, "icon": icon, "content": self.codeContent_render(body.strip(), context)})
        if not tabs:
            LOG("tabs container without == separators", level=1)
            return ""
        return self.tabs_render(tabs, context.id_make("tabs"))

    def tabs_render(self, tabs: List[Dict[str, str]], group_id: str) -> str:
        buttons = []
        panels = []
        for index, tab in enumerate(tabs):
            first = index == 0
            buttons.append(
                f'<button type="button" role="tab" class="docmark-tabs__tab" '
                f'id="{group_id}-tab-{index}" aria-controls="{group_id}-panel-{index}" '
                f'aria-selected="{"true" if first else "false"}" tabindex="{"0" if first else "-1"}">'
                f'{tab["icon"]}{html.escape(tab["label"])}</button>'
            )
            panels.append(
                f'<div role="tabpanel" class="docmark-tabs__panel" id="{group_id}-panel-{index}" '
                f'aria-labelledby="{group_id}-tab-{index}" aria-hidden="{"false" if first else "true"}" '
                f'tabindex="0">\n{tab["content"]}\n</div>'
            )
        return (
            f'<div class="docmark-tabs" data-tabs="{group_id}">\n'
            f'<div class="docmark-tabs__list-wrapper">\n'
            f'<div role="tablist" aria-label="Content tabs" class="docmark-tabs__list">\n'
            + "\n".join(buttons)
            + '\n<div class="docmark-tabs__indicator" aria-hidden="true"></div>\n'
            "</div>\n</div>\n"
            '<div class="docmark-tabs__panels">\n'
            + "\n".join(panels)
            + "\n</div>\n</div>"
        )


def tabIcon_detect(label: str, body: str) -> Tuple[str, str]:
    """(display label, icon HTML) for a tab"""
    manual = MANUAL_ICON_PATTERN.match(label)
    if manual:
        return manual.group(2).strip(), phosphorIcon_render(manual.group(1).lower())
    fences = fences_all(body.strip())
    if len(fences) == 1 and fences[0].start == 0 and fences[0].end == len(body.strip()):
        return label, languageIcon_render(header_parse(fences[0].info).lang)
    return label, ""


class RawBlockRestorer(Processor):
    """
    Swap raw placeholders back for the HTML they stand in for.

    Stashed fragments may themselves contain placeholders (nested
    containers), so restoring repeats until none are left.
    """
    name = "raw-restore"
    priority = 0
    category = ProcessorCategory.STRUCTURE

    def postprocess(self, html_text: str, context: ProcessingContext) -> str:
        return rawBlocks_restore(html_text, context)


def rawBlocks_restore(text: str, context: ProcessingContext) -> str:
    settings = context.settings
    if settings.raw_placeholder_prefix not in text:
        return text
    pattern = re.compile(
        re.escape(settings.raw_placeholder_prefix)
        + r"\d+"
        + re.escape(settings.raw_placeholder_suffix)
    )

    def block_get(match: "re.Match[str]") -> str:
        index = settings.rawIndex_extract(match.group(0))
        if index is None or index >= len(context.raw_blocks):
            LOG(f"Unknown raw block placeholder {match.group(0)!r}", level=1)
            return match.group(0)
        return context.raw_blocks[index]

    for _ in range(len(context.raw_blocks) + 1):
        restored = pattern.sub(block_get, text)
        if restored == text:
            break
        text = restored
    return text
