"""
Inline directive tests

Tests badges, icons, tooltips, abbreviations, captioned images and video
embeds, and that none of them fire inside code.
"""

import pytest

from docmark.lib.inline import (
    AbbreviationProcessor,
    BadgeProcessor,
    IconProcessor,
    ImageCaptionProcessor,
    TooltipProcessor,
    VideoProcessor,
    embedUrl_make,
)
from docmark.lib.registry import render_document
from docmark.models import ProcessingContext


class TestBadges:
    """Test :badge[text]{type}"""

    def test_badge_type(self):
        """Known types are applied"""
        html = render_document(':badge[Beta]{type="warning"} feature')
        assert '<span class="docmark-badge docmark-badge--warning">Beta</span>' in html

    def test_default_type(self):
        """No attribute block means the default type"""
        html = BadgeProcessor().postprocess("<p>:badge[New]</p>", ProcessingContext())
        assert html == '<p><span class="docmark-badge docmark-badge--default">New</span></p>'

    def test_unknown_type_falls_back(self):
        """Unknown types use the default style"""
        html = BadgeProcessor().postprocess('<p>:badge[X]{type="rainbow"}</p>', ProcessingContext())
        assert "docmark-badge--default" in html

    def test_badge_in_inline_code(self):
        """Directive syntax inside code is shown literally"""
        html = render_document("Use `:badge[Beta]` in text.")
        assert "docmark-badge" not in html
        assert "<code>:badge[Beta]</code>" in html


class TestIcons:
    """Test :name: and :name:weight:"""

    def test_regular(self):
        """Plain icon"""
        html = IconProcessor().postprocess("<p>Launch :rocket: now</p>", ProcessingContext())
        assert html == '<p>Launch <i class="ph ph-rocket" aria-hidden="true"></i> now</p>'

    def test_weight(self):
        """Known weights select the weight class"""
        html = IconProcessor().postprocess("<p>:rocket:bold:</p>", ProcessingContext())
        assert '<i class="ph-bold ph-rocket" aria-hidden="true"></i>' in html

    def test_unknown_weight(self):
        """Unknown weights render the regular weight"""
        html = IconProcessor().postprocess("<p>:rocket:heavy:</p>", ProcessingContext())
        assert '<i class="ph ph-rocket" aria-hidden="true"></i>' in html

    def test_times_and_urls_untouched(self):
        """Colons in times and URLs are not icons"""
        text = "<p>At 10:30:00 see http://example.com:8080</p>"
        assert IconProcessor().postprocess(text, ProcessingContext()) == text

    def test_code_untouched(self):
        """Icons in code are not replaced"""
        html = render_document("```yaml\nkey: :value:\n```\n")
        assert "ph-value" not in html


class TestTooltips:
    """Test :tooltip[term]{description link link_text}"""

    def test_tooltip_with_link(self):
        """Link text falls back to the configured default"""
        text = ':tooltip[API]{description="App Interface" link="/api"}'
        result = TooltipProcessor().preprocess(text, ProcessingContext())
        assert result == (
            '<span class="docmark-tooltip" data-description="App Interface" '
            'data-link="/api" data-link-text="Learn more">API</span>'
        )

    def test_tooltip_without_link(self):
        """Only the description is carried"""
        result = TooltipProcessor().preprocess(':tooltip[CLI]{description="Shell"}', ProcessingContext())
        assert "data-link" not in result
        assert 'data-description="Shell"' in result


class TestAbbreviations:
    """Test *[TERM]: definition"""

    def test_single_abbreviation(self):
        """The term is wrapped once and the definition removed"""
        html = render_document("The API is great.\n\n*[API]: App Interface")

        assert html.count('<abbr class="docmark-abbr" data-definition="App Interface">API</abbr>') == 1
        assert "*[API]" not in html
        assert "App Interface</p>" not in html

    def test_whole_words_only(self):
        """Terms inside longer words are not wrapped"""
        result = AbbreviationProcessor().preprocess("APIs and API\n\n*[API]: App Interface\n", ProcessingContext())
        assert result.count("<abbr") == 1
        assert result.startswith("APIs and <abbr")

    def test_longest_term_first(self):
        """A longer term is not split by a shorter one"""
        text = "The HTTP API and the API.\n\n*[API]: Interface\n*[HTTP API]: Web interface\n"
        result = AbbreviationProcessor().preprocess(text, ProcessingContext())
        assert '<abbr class="docmark-abbr" data-definition="Web interface">HTTP API</abbr>' in result
        assert result.count("<abbr") == 2

    def test_code_untouched(self):
        """Terms in inline code stay plain"""
        result = AbbreviationProcessor().preprocess("`API` and API\n\n*[API]: Interface\n", ProcessingContext())
        assert result.startswith("`API` and <abbr")


class TestImages:
    """Test ![alt](src){caption width height nozoom}"""

    def test_captioned_image(self):
        """A caption produces a figure"""
        context = ProcessingContext()
        text = '![Logo](logo.png){caption="Our logo" width="200" nozoom}'
        result = ImageCaptionProcessor().preprocess(text, context)

        assert context.settings.placeHolder_make(0) in result
        figure = context.raw_blocks[0]
        assert '<figure class="docmark-figure">' in figure
        assert '<img src="logo.png" alt="Logo" width="200" data-no-zoom>' in figure
        assert "<figcaption>Our logo</figcaption>" in figure

    def test_uncaptioned_image(self):
        """Without a caption only the <img> is emitted, inline"""
        context = ProcessingContext()
        result = ImageCaptionProcessor().preprocess('![A](a.png){height="50"}', context)
        assert result == '<img src="a.png" alt="A" height="50">'
        assert context.raw_blocks == []

    def test_plain_image_untouched(self):
        """Images without attributes are left to the converter"""
        text = "![A](a.png)"
        assert ImageCaptionProcessor().preprocess(text, ProcessingContext()) == text


class TestVideo:
    """Test ::youtube, ::vimeo and ::video"""

    def test_youtube(self):
        """Privacy-friendly embed with flags as parameters"""
        context = ProcessingContext()
        VideoProcessor().preprocess("::youtube[abc123]{autoplay}", context)
        markup = context.raw_blocks[0]

        assert 'class="docmark-video docmark-video--youtube"' in markup
        assert "https://www.youtube-nocookie.com/embed/abc123?autoplay=1&rel=0" in markup
        assert "allowfullscreen" in markup

    def test_vimeo(self):
        """Vimeo embeds are do-not-track"""
        assert embedUrl_make("vimeo", "42", {}) == "https://player.vimeo.com/video/42?dnt=1"

    def test_native_video(self):
        """Native video keeps controls unless disabled"""
        context = ProcessingContext()
        VideoProcessor().preprocess('::video[/media/demo.mp4]{muted loop width="640"}', context)
        markup = context.raw_blocks[0]

        assert '<video src="/media/demo.mp4" controls muted loop></video>' in markup
        assert 'style="max-width: 640px"' in markup

    def test_controls_disabled(self):
        """controls="false" removes the controls"""
        context = ProcessingContext()
        VideoProcessor().preprocess('::video[a.mp4]{controls="false"}', context)
        assert "controls" not in context.raw_blocks[0]

    def test_rendered_embed(self):
        """The embed survives conversion as a block"""
        html = render_document("Watch:\n\n::youtube[abc123]\n\nDone.")
        assert "<iframe" in html
        assert "<p>::youtube" not in html
