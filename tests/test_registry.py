"""
Registry and pipeline tests

Tests processor ordering, registration, determinism of a render, error
wrapping and a full document through every stage.
"""

from pathlib import Path

import pytest

from docmark.lib import RenderError, render_document
from docmark.lib.registry import ProcessorRegistry
from docmark.models import Processor, ProcessorCategory, ProcessingContext


DOCUMENT = """# Guide

Install :badge[Stable]{type="success"} with the CLI :rocket:.

:::code-group
```bash [npm]
npm install docmark
```
```bash [pip]
pip install docmark
```
:::

## Configure {#config}

```yaml [docmark.yml] {2}
docs: ./docs
theme: dark # (1)
```

1. Any installed theme

:::tabs
== Python
```python
print("hi")
```
== Notes
:::tip
Tabs nest containers.
:::
:::

| Key | Value |
|-----|-------|
| a   | 1     |

*[CLI]: Command Line Interface
"""


class Exploding(Processor):
    name = "exploding"
    priority = 50
    category = ProcessorCategory.STRUCTURE

    def postprocess(self, html, context):
        raise ValueError("boom")


class TestOrdering:
    """Test phase ordering"""

    def test_preprocess_order(self):
        """Ascending priority, ties in registration order"""
        names = [processor.name for processor in ProcessorRegistry().preprocessors]
        assert names == [
            "include",
            "extended-fence-escape",
            "snippet",
            "variables",
            "abbreviation",
            "tooltip",
            "image-caption",
            "video",
            "code-block-options",
            "code-block-markers",
            "code-block-focus",
            "code-block-annotations",
            "filetree",
            "callout",
            "accordion",
            "cards",
            "steps",
            "code-group",
            "tabs",
        ]

    def test_postprocess_order(self):
        """Raw blocks first, literal restore last"""
        names = [processor.name for processor in ProcessorRegistry().postprocessors]
        assert names == [
            "raw-restore",
            "callout",
            "badge",
            "code-block-renderer",
            "icon",
            "custom-anchor",
            "heading-anchor",
            "toc",
            "table-wrapper",
            "extended-fence-restore",
        ]

    def test_register_custom(self):
        """Custom processors slot in by priority"""
        registry = ProcessorRegistry()
        registry.register(Exploding())
        names = [processor.name for processor in registry.postprocessors]
        assert names.index("toc") < names.index("exploding") < names.index("table-wrapper")
        assert registry.get("exploding").priority == 50

    def test_empty_registry(self):
        """Without built-ins the render is a plain conversion"""
        registry = ProcessorRegistry(builtins=False)
        assert registry.processors == []
        assert registry.render(":::note\nx\n:::") == "<p>:::note\nx\n:::</p>\n"

    def test_categories(self):
        """Container stages are the ones re-run on fragments"""
        names = {p.name for p in ProcessorRegistry().processors_listByCategory(ProcessorCategory.CONTAINER)}
        assert names == {"callout", "accordion", "cards", "steps", "code-group", "tabs"}


class TestRender:
    """Test whole-document renders"""

    def test_full_document(self):
        """Every feature of a realistic page renders"""
        context = ProcessingContext()
        html = render_document(DOCUMENT, context)

        assert "docmark-badge--success" in html
        assert "ph-rocket" in html
        assert "docmark-code-group" in html
        assert '<h2 id="config">' in html
        assert "docmark-code-line--highlighted" in html
        assert "docmark-code-block__annotations" in html
        assert "docmark-tabs" in html
        assert "docmark-callout--tip" in html
        assert '<abbr class="docmark-abbr" data-definition="Command Line Interface">CLI</abbr>' in html
        assert "table-wrapper" in html
        assert "docmark-raw" not in html

        assert len(context.code_blocks) == 1
        assert context.code_blocks[0].title == "docmark.yml"
        assert [entry["id"] for entry in context.toc] == ["config"]

    def test_deterministic(self):
        """Two renders of the same input are identical"""
        first_context, second_context = ProcessingContext(), ProcessingContext()
        registry = ProcessorRegistry()

        first = registry.preprocessors_run(DOCUMENT, first_context)
        second = registry.preprocessors_run(DOCUMENT, second_context)
        assert first == second
        assert first_context.raw_blocks == second_context.raw_blocks
        assert render_document(DOCUMENT) == render_document(DOCUMENT)

    def test_fresh_context_per_render(self):
        """Omitting the context starts clean every time"""
        registry = ProcessorRegistry()
        registry.render(":::tabs\n== A\na\n:::\n")
        html = registry.render(":::tabs\n== A\na\n:::\n")
        assert 'data-tabs="tabs-0"' in html

    def test_error_wrapped(self):
        """Stage failures surface as RenderError naming the document"""
        registry = ProcessorRegistry()
        registry.register(Exploding())
        context = ProcessingContext(current_file=Path("guide.md"))

        with pytest.raises(RenderError) as excinfo:
            registry.render("text", context)

        assert excinfo.value.path == Path("guide.md")
        assert "ValueError: boom" in str(excinfo.value)
        assert isinstance(excinfo.value.__cause__, ValueError)
