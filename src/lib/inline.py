"""
Inline directive processors

Preprocess (markdown, prose only):
    :tooltip[term]{description="" link="" link_text=""}
    *[TERM]: definition
    ![alt](src){caption="" width="" height="" nozoom}
    ::youtube[id]{...}  ::vimeo[id]{...}  ::video[src]{...}

Postprocess (HTML text nodes only):
    :badge[text]{type="success"}
    :icon-name:  :icon-name:weight:

Malformed attributes never raise; unknown values fall back to defaults.
"""

import html
import re
from typing import Dict, List, Pattern, Tuple

from ..models.context import ProcessingContext
from ..models.processor import Processor, ProcessorCategory
from .attributes import attrs_parse
from .languages import PHOSPHOR_WEIGHTS, phosphorIcon_render
from .log import LOG
from .skipranges import html_transform, markdown_transform

BADGE_TYPES = ("default", "success", "warning", "danger")

BADGE_PATTERN: Pattern[str] = re.compile(r":badge\[([^\]]*)\](?:\{([^}]*)\})?")
ICON_PATTERN: Pattern[str] = re.compile(r"(?<![\w:/]):([a-z][a-z0-9-]*):(?:([a-z]+):)?", re.IGNORECASE)
TOOLTIP_PATTERN: Pattern[str] = re.compile(r":tooltip\[([^\]]+)\]\{([^}]*)\}")
ABBREVIATION_PATTERN: Pattern[str] = re.compile(r"^[ \t]*\*\[([^\]]+)\]:[ \t]*(.+?)[ \t]*$\n?", re.MULTILINE)
IMAGE_ATTRS_PATTERN: Pattern[str] = re.compile(r"!\[([^\]]*)\]\(([^)\s]+)\)\{([^}]+)\}")
VIDEO_PATTERN: Pattern[str] = re.compile(r"::(youtube|vimeo|video)\[([^\]]+)\](?:\{([^}]*)\})?")

VIDEO_TITLES = {
    "youtube": "YouTube video player",
    "vimeo": "Vimeo video player",
}


class BadgeProcessor(Processor):
    """``:badge[Beta]{type="warning"}`` -> pill-shaped label"""
    name = "badge"
    priority = 15
    category = ProcessorCategory.INLINE

    def postprocess(self, html_text: str, context: ProcessingContext) -> str:
        if ":badge[" not in html_text:
            return html_text
        return html_transform(html_text, lambda text: BADGE_PATTERN.sub(self.badge_render, text))

    def badge_render(self, match: "re.Match[str]") -> str:
        attrs = attrs_parse(html.unescape(match.group(2) or ""))
        kind = attrs.get("type", "default")
        if kind not in BADGE_TYPES:
            LOG(f"Unknown badge type {kind!r}, using default", level=1)
            kind = "default"
        return f'<span class="docmark-badge docmark-badge--{kind}">{match.group(1)}</span>'


class IconProcessor(Processor):
    """
    ``:rocket:`` and ``:rocket:bold:`` -> Phosphor icon element.

    Unknown weights render the regular weight.
    """
    name = "icon"
    priority = 22
    category = ProcessorCategory.INLINE

    def postprocess(self, html_text: str, context: ProcessingContext) -> str:
        return html_transform(html_text, lambda text: ICON_PATTERN.sub(self.icon_render, text))

    def icon_render(self, match: "re.Match[str]") -> str:
        weight = (match.group(2) or "regular").lower()
        if weight not in PHOSPHOR_WEIGHTS:
            LOG(f"Unknown icon weight {weight!r}, using regular", level=1)
        return phosphorIcon_render(match.group(1).lower(), weight)


class TooltipProcessor(Processor):
    name = "tooltip"
    priority = 4
    category = ProcessorCategory.INLINE

    def preprocess(self, text: str, context: ProcessingContext) -> str:
        if ":tooltip[" not in text:
            return text
        return markdown_transform(text, lambda chunk: TOOLTIP_PATTERN.sub(
            lambda match: self.tooltip_render(match, context), chunk
        ))

    def tooltip_render(self, match: "re.Match[str]", context: ProcessingContext) -> str:
        attrs = attrs_parse(match.group(2))
        data = f'data-description="{html.escape(attrs.get("description", ""))}"'
        link = attrs.get("link")
        if link:
            link_text = attrs.get("link_text") or self.settings.tooltip_link_text
            data += f' data-link="{html.escape(link)}" data-link-text="{html.escape(link_text)}"'
        return f'<span class="docmark-tooltip" {data}>{match.group(1)}</span>'


class AbbreviationProcessor(Processor):
    """
    Abbreviation tables.

        The API is great.

        *[API]: Application Programming Interface

    Definitions are removed from the output and every whole-word,
    case-sensitive occurrence of the term in prose becomes an <abbr>.
    """
    name = "abbreviation"
    priority = 4
    category = ProcessorCategory.INLINE

    def preprocess(self, text: str, context: ProcessingContext) -> str:
        if "*[" not in text:
            return text
        definitions: Dict[str, str] = {}

        def definition_take(match: "re.Match[str]") -> str:
            definitions[match.group(1)] = match.group(2)
            return ""

        text = markdown_transform(text, lambda chunk: ABBREVIATION_PATTERN.sub(definition_take, chunk))
        if not definitions:
            return text

        LOG(f"Abbreviations: {', '.join(sorted(definitions))}", level=2)
        patterns = abbreviationPatterns_build(definitions)
        return markdown_transform(text, lambda chunk: abbreviations_apply(chunk, patterns))


def abbreviationPatterns_build(definitions: Dict[str, str]) -> List[Tuple[Pattern[str], str]]:
    # longest terms first so "HTTP API" wins over "API"
    terms = sorted(definitions, key=len, reverse=True)
    return [
        (re.compile(r"(?<![<\w])" + re.escape(term) + r"(?![>\w])"), definitions[term])
        for term in terms
    ]


def abbreviations_apply(chunk: str, patterns: List[Tuple[Pattern[str], str]]) -> str:
    for pattern, definition in patterns:
        tag_open = f'<abbr class="docmark-abbr" data-definition="{html.escape(definition)}">'
        pieces = re.split(r"(<abbr\b.*?</abbr>)", chunk, flags=re.DOTALL)
        chunk = "".join(
            piece if piece.startswith("<abbr") else pattern.sub(lambda m: f"{tag_open}{m.group(0)}</abbr>", piece)
            for piece in pieces
        )
    return chunk


class ImageCaptionProcessor(Processor):
    """
    Images with an attribute block.

    With a caption the image is wrapped in a <figure>; width, height and
    ``nozoom`` become attributes of the <img>.
    """
    name = "image-caption"
    priority = 4
    category = ProcessorCategory.INLINE

    def preprocess(self, text: str, context: ProcessingContext) -> str:
        if "](" not in text:
            return text
        return markdown_transform(text, lambda chunk: IMAGE_ATTRS_PATTERN.sub(
            lambda match: self.image_render(match, context), chunk
        ))

    def image_render(self, match: "re.Match[str]", context: ProcessingContext) -> str:
        alt, src = match.group(1), match.group(2)
        attrs = attrs_parse(match.group(3))
        parts = [f'src="{html.escape(src)}"', f'alt="{html.escape(alt)}"']
        for key in ("width", "height"):
            if attrs.get(key):
                parts.append(f'{key}="{html.escape(attrs[key])}"')
        if "nozoom" in attrs:
            parts.append("data-no-zoom")
        img = f"<img {' '.join(parts)}>"

        caption = attrs.get("caption")
        if not caption:
            return img
        figure = (
            f'<figure class="docmark-figure">\n{img}\n'
            f"<figcaption>{html.escape(caption)}</figcaption>\n</figure>"
        )
        return f"\n\n{context.raw_stash(figure)}\n\n"


class VideoProcessor(Processor):
    """
    Video embeds.

    ``::youtube[id]`` and ``::vimeo[id]`` build privacy-friendly iframes,
    ``::video[src]`` a native <video>. Flags: autoplay, loop, muted,
    playsinline, nofullscreen; ``controls="false"`` hides controls.
    """
    name = "video"
    priority = 4
    category = ProcessorCategory.INLINE

    def preprocess(self, text: str, context: ProcessingContext) -> str:
        if "::" not in text:
            return text
        return markdown_transform(text, lambda chunk: VIDEO_PATTERN.sub(
            lambda match: self.video_render(match, context), chunk
        ))

    def video_render(self, match: "re.Match[str]", context: ProcessingContext) -> str:
        provider, target = match.group(1), match.group(2)
        attrs = attrs_parse(match.group(3))
        if provider == "video":
            markup = nativeVideo_render(target, attrs)
        else:
            markup = iframe_render(provider, embedUrl_make(provider, target, attrs), attrs)
        LOG(f"Video embed: {provider} {target}", level=3)
        return f"\n\n{context.raw_stash(markup)}\n\n"


def controls_disabled(attrs: Dict[str, str]) -> bool:
    return attrs.get("controls") == "false"


def embedUrl_make(provider: str, target: str, attrs: Dict[str, str]) -> str:
    """
    Example:
        >>> embedUrl_make("youtube", "abc", {"autoplay": "", "start": "30"})
        'https://www.youtube-nocookie.com/embed/abc?autoplay=1&start=30&rel=0'
    """
    params = []
    if "autoplay" in attrs:
        params.append("autoplay=1")
    if "loop" in attrs:
        params.append("loop=1")
    if "muted" in attrs:
        params.append("mute=1" if provider == "youtube" else "muted=1")
    if controls_disabled(attrs):
        params.append("controls=0")
    if provider == "youtube":
        if attrs.get("start"):
            params.append(f"start={html.escape(attrs['start'])}")
        params.append("rel=0")
        url = f"https://www.youtube-nocookie.com/embed/{html.escape(target)}"
    else:
        params.append("dnt=1")
        url = f"https://player.vimeo.com/video/{html.escape(target)}"
    return f"{url}?{'&'.join(params)}"


def wrapperStyle_make(attrs: Dict[str, str]) -> str:
    styles = []
    if attrs.get("width"):
        styles.append(f"max-width: {html.escape(attrs['width'])}px")
    if attrs.get("height"):
        styles.append(f"height: {html.escape(attrs['height'])}px")
    return f' style="{"; ".join(styles)}"' if styles else ""


def iframe_render(provider: str, url: str, attrs: Dict[str, str]) -> str:
    allow = ["encrypted-media", "picture-in-picture", "web-share"]
    if "autoplay" in attrs:
        allow.insert(0, "autoplay")
    if "nofullscreen" not in attrs:
        allow.append("fullscreen")

    parts = [
        f'src="{url}"',
        f'title="{html.escape(attrs.get("title") or VIDEO_TITLES[provider])}"',
        'frameborder="0"',
        f'allow="{"; ".join(allow)}"',
    ]
    if "nofullscreen" not in attrs:
        parts.append("allowfullscreen")
    return (
        f'<div class="docmark-video docmark-video--{provider}"{wrapperStyle_make(attrs)}>\n'
        f"<iframe {' '.join(parts)}></iframe>\n</div>"
    )


def nativeVideo_render(src: str, attrs: Dict[str, str]) -> str:
    parts = [f'src="{html.escape(src)}"']
    for key in ("poster", "preload"):
        if attrs.get(key):
            parts.append(f'{key}="{html.escape(attrs[key])}"')
    if not controls_disabled(attrs):
        parts.append("controls")
    parts.extend(flag for flag in ("autoplay", "muted", "loop", "playsinline") if flag in attrs)
    return (
        f'<div class="docmark-video docmark-video--native"{wrapperStyle_make(attrs)}>\n'
        f"<video {' '.join(parts)}></video>\n</div>"
    )
