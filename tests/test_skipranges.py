"""
Skip-range tests

Tests fence and container detection, HTML container ranges and the
code-aware text transforms every directive scan relies on.
"""

import re

import pytest

from docmark.lib.skipranges import (
    containers_find,
    containerRanges_find,
    fenceRanges_find,
    htmlContainerRanges_find,
    html_transform,
    markdown_segments,
    markdown_transform,
    ranges_find,
)
from docmark.models import SkipRange


class TestRanges:
    """Test regex-driven range collection"""

    def test_touching_spans_merge(self):
        """Adjacent matches collapse into one range"""
        assert ranges_find("abab", re.compile("ab")) == [SkipRange(0, 4)]

    def test_disjoint_spans_sorted(self):
        """Separate matches stay separate, in order"""
        ranges = ranges_find("ab--cd", re.compile("cd"), re.compile("ab"))
        assert ranges == [SkipRange(0, 2), SkipRange(4, 6)]

    def test_half_open(self):
        """End offset is excluded"""
        skip = SkipRange(4, 10)
        assert skip.contains(4)
        assert not skip.contains(10)

    def test_fence_ranges(self):
        """Fenced code blocks are found with their closing line"""
        text = "Intro\n\n```js\nconst a = 1;\n```\n\nOutro"
        ranges = fenceRanges_find(text)
        assert len(ranges) == 1
        assert text[ranges[0].start:ranges[0].end] == "```js\nconst a = 1;\n```"


class TestContainers:
    """Test nesting-aware ::: container matching"""

    def test_simple_container(self):
        """Name, rest and body are reported"""
        matches = containers_find(":::note Heads up\nBody\n:::\n", ["note"])
        assert len(matches) == 1
        assert matches[0].name == "note"
        assert matches[0].rest == "Heads up"
        assert matches[0].body == "Body\n"

    def test_inner_closer_does_not_end_outer(self):
        """An inner ::: closes the inner container only"""
        text = ":::note\n:::tip\ninner\n:::\nouter\n:::\n"
        matches = containers_find(text, ["note", "tip"])
        assert [match.name for match in matches] == ["note"]
        assert matches[0].body == ":::tip\ninner\n:::\nouter\n"

    def test_nested_other_name_reported(self):
        """A container inside a container of another name is reported"""
        text = ":::note\n:::tip\ninner\n:::\nouter\n:::\n"
        matches = containers_find(text, ["tip"])
        assert len(matches) == 1
        assert matches[0].body == "inner\n"

    def test_opaque_interior_ignored(self):
        """Containers inside tabs belong to the tabs container"""
        text = ":::tabs\n== A\n:::note\nx\n:::\n:::\n"
        assert containers_find(text, ["note"]) == []
        tabs = containers_find(text, ["tabs"])
        assert tabs[0].body == "== A\n:::note\nx\n:::\n"

    def test_fenced_directive_ignored(self):
        """Directive syntax inside a code sample is not a container"""
        text = "```md\n:::note\nx\n:::\n```\n"
        assert containers_find(text, ["note"]) == []

    def test_unclosed_container(self):
        """An opener without closer is not reported"""
        assert containers_find(":::note\nnever closed\n", ["note"]) == []

    def test_container_ranges(self):
        """Tabs and code-group extents are found, even when nested"""
        text = ":::note\n:::code-group\n```js [a]\nx\n```\n:::\n:::\n"
        ranges = containerRanges_find(text)
        assert len(ranges) == 1
        assert text[ranges[0].start:].startswith(":::code-group")


class TestHtmlRanges:
    """Test rendered container detection"""

    def test_nested_divs(self):
        """The closing tag is matched by div depth"""
        html = 'x<div class="docmark-tabs" data-tabs="tabs-0"><div>a</div></div>y'
        assert htmlContainerRanges_find(html) == [SkipRange(1, len(html) - 1)]

    def test_other_classes_ignored(self):
        """Only the requested classes are matched"""
        assert htmlContainerRanges_find('<div class="docmark-tabsx"></div>') == []


class TestTransforms:
    """Test code-aware transforms"""

    def test_segments_round_trip(self):
        """Joining the segments reproduces the input"""
        text = "a `b` c\n\n```\nd\n```\ne"
        assert "".join(chunk for chunk, _ in markdown_segments(text)) == text

    def test_markdown_transform_skips_code(self):
        """Inline code and fences are untouched"""
        text = "word `word`\n\n```\nword\n```\nword"
        result = markdown_transform(text, lambda chunk: chunk.replace("word", "WORD"))
        assert result == "WORD `word`\n\n```\nword\n```\nWORD"

    def test_html_transform_skips_markup(self):
        """Tags, attributes and code elements are untouched"""
        html = '<p title="a">a <code>a</code></p>'
        assert html_transform(html, str.upper) == '<p title="a">A <code>a</code></p>'
