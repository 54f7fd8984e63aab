"""
Fence parsing tests

Tests header parsing, highlight specs, marker extraction, annotation
lists and fence enumeration.
"""

import pytest

from docmark.lib.fences import (
    annotationList_find,
    annotationMarkers_extract,
    diffLines_extract,
    fences_enumerate,
    fences_stamped,
    header_parse,
    highlights_parse,
    lineNumbers_enabled,
    lineNumbers_generate,
    lineNumbers_start,
    markerLines_extract,
    stamp_make,
    stamps_strip,
    FOCUS_MARKER_PATTERN,
)


class TestHeader:
    """Test ```lang [title] :option {lines} parsing"""

    def test_full_header(self):
        """All parts present"""
        header = header_parse("js [app.js] :line-numbers=3 {1,2}")
        assert header.lang == "js"
        assert header.title == "app.js"
        assert header.option == ":line-numbers=3"
        assert header.highlights == "1,2"

    def test_language_only(self):
        """Bare language"""
        header = header_parse("python")
        assert header.lang == "python"
        assert header.title is None
        assert header.option is None
        assert header.highlights == ""

    def test_empty_title_is_none(self):
        """Brackets with only whitespace carry no title"""
        assert header_parse("js [ ]").title is None

    def test_empty_header(self):
        """No header at all"""
        assert header_parse("").lang == ""


class TestHighlights:
    """Test highlight spec expansion"""

    def test_ranges_and_singles(self):
        """Ranges expand inclusively"""
        assert highlights_parse("1,3-5,7") == [1, 3, 4, 5, 7]

    def test_overlap_deduplicated(self):
        """Repeated lines appear once, sorted"""
        assert highlights_parse("1-3,2") == [1, 2, 3]

    def test_malformed_tokens_ignored(self):
        """Garbage tokens are skipped"""
        assert highlights_parse("2,x,4-a, 5") == [2, 5]

    def test_empty(self):
        """Empty spec highlights nothing"""
        assert highlights_parse("") == []
        assert highlights_parse(None) == []


class TestMarkers:
    """Test comment marker extraction"""

    def test_diff_markers(self):
        """++ and -- markers map to additions and deletions"""
        body = "const a = 1; // [!code ++]\nconst b = 2; // [!code --]\nconst c = 3;\n"
        lines, cleaned = diffLines_extract(body)
        assert lines == {1: "addition", 2: "deletion"}
        assert cleaned == "const a = 1;\nconst b = 2;\nconst c = 3;\n"

    def test_hash_comment(self):
        """Shell and Python comments carry markers too"""
        lines, cleaned = markerLines_extract("echo hi # [!code focus]\n", FOCUS_MARKER_PATTERN)
        assert list(lines) == [1]
        assert cleaned == "echo hi\n"

    def test_block_comment(self):
        """Closing comment tokens are removed with the marker"""
        lines, cleaned = diffLines_extract("<p>hi</p> <!-- [!code ++] -->\n")
        assert lines == {1: "addition"}
        assert cleaned == "<p>hi</p>\n"

    def test_annotation_markers(self):
        """(N) markers at line end map lines to ordinals"""
        markers, cleaned = annotationMarkers_extract("a = 1  # (1)\nb = 2\nc = 3 # (2)\n")
        assert markers == {1: 1, 3: 2}
        assert cleaned == "a = 1\nb = 2\nc = 3\n"

    def test_annotation_marker_mid_line_ignored(self):
        """A marker followed by more code is not an annotation"""
        markers, _ = annotationMarkers_extract("call() // (1) and more\n")
        assert markers == {}


class TestAnnotationList:
    """Test locating the ordered list after a fence"""

    def test_list_with_continuation(self):
        """Indented and blank lines continue the current item"""
        text = "```js\nx // (1)\n```\n\n1. First\n   continued\n2. Second\n\nAfter"
        position = text.index("```\n\n1.") + 3
        items, end = annotationList_find(text, position)
        assert items == {1: "First\ncontinued", 2: "Second"}
        assert text[end:] == "After"

    def test_no_list(self):
        """Prose after the fence is not a list"""
        text = "```js\nx // (1)\n```\n\nJust prose."
        assert annotationList_find(text, text.index("```\n\nJust") + 3) is None


class TestLineNumbers:
    """Test :line-numbers options"""

    def test_enabled(self):
        """Options override the default"""
        assert lineNumbers_enabled(":line-numbers") is True
        assert lineNumbers_enabled(":no-line-numbers", default=True) is False
        assert lineNumbers_enabled(None, default=True) is True

    def test_start(self):
        """=N sets the first number"""
        assert lineNumbers_start(":line-numbers=5") == 5
        assert lineNumbers_start(":line-numbers") == 1

    def test_generate(self):
        """One number per line, at least one"""
        assert lineNumbers_generate("a\nb\n", 5) == [5, 6]
        assert lineNumbers_generate("") == [1]


class TestEnumeration:
    """Test which fences the global extractors own"""

    def test_excluded_language(self):
        """Excluded languages are not enumerated"""
        text = "```filetree\nsrc/\n```\n\n```js\nx\n```\n"
        fences = fences_enumerate(text, ["filetree"])
        assert [fence.header.lang for fence in fences] == ["js"]

    def test_tabs_and_code_group_skipped(self):
        """Fences inside tabs and code-group are left to those containers"""
        text = (
            "```py\na\n```\n\n"
            ":::tabs\n== One\n```js\nb\n```\n:::\n\n"
            ":::code-group\n```bash [npm]\nc\n```\n:::\n"
        )
        fences = fences_enumerate(text)
        assert [fence.body for fence in fences] == ["a\n"]

    def test_stamps(self):
        """Stamped fences report their ordinal; stripping removes stamps"""
        text = f"```js{stamp_make(3)}\nx\n```\n"
        fences = fences_stamped(text)
        assert fences[0].ordinal == 3
        assert fences[0].info == "js"
        assert stamps_strip(text) == "```js\nx\n```\n"

    def test_rebuild_keeps_stamp(self):
        """Rebuilding a stamped fence keeps the stamp for later stages"""
        fence = fences_stamped(f"```js{stamp_make(0)}\nx // [!code ++]\n```")[0]
        assert fence.rebuild("x\n") == f"```js{stamp_make(0)}\nx\n```"
