"""
End-to-end CLI pipeline tests

Tests the pipeline stages behind the docmark command: environment check,
variables loading, per-document rendering and the final report.
"""

import pytest
from argparse import Namespace
from pathlib import Path
import tempfile

import docmark.__main__ as cli
from docmark.lib import ProcessorRegistry, RenderError
from docmark.lib.log import document_current
from docmark.models import ProgramState, pipeline


def tree_write(root: Path) -> None:
    (root / "docs" / "guide").mkdir(parents=True)
    (root / "docs" / "index.md").write_text(
        "---\ntitle: Home\n---\n# {{ site.name }}\n\n:::tip\nWelcome.\n:::\n", encoding="utf-8"
    )
    (root / "docs" / "guide" / "install.md").write_text(
        "## Install\n\n<!--@include: shared.md-->\n", encoding="utf-8"
    )
    (root / "docs" / "shared.md").write_text("Shared text.", encoding="utf-8")
    (root / "docs" / "notes.txt").write_text("not markdown", encoding="utf-8")
    (root / "vars.yml").write_text("site:\n  name: Docmark\n", encoding="utf-8")


class BrokenRegistry(ProcessorRegistry):
    """Fails on documents named broken.md"""

    def render(self, text, context=None):
        if context is not None and context.current_file.name == "broken.md":
            raise RenderError(context.current_file, "boom")
        return super().render(text, context)


class RecordingRegistry(ProcessorRegistry):
    """Remembers which document the log context named during each render"""

    seen = []

    def render(self, text, context=None):
        RecordingRegistry.seen.append(document_current())
        return super().render(text, context)


class TestPipeline:
    """Test the CLI stages"""

    def test_full_pipeline(self):
        """Every document renders to the mirrored .html path"""
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            tree_write(root)
            state = ProgramState(
                inputdir=root / "docs",
                outputdir=root / "site",
                variablesFile=str(root / "vars.yml"),
            )

            final = pipeline(state, cli.env_check, cli.variables_load, cli.documents_render, cli.results_report)

            assert [path.name for path in final.sourceFiles] == ["install.md", "index.md", "shared.md"]
            assert all(result["status"] for result in final.renderResults)

            index = (root / "site" / "index.html").read_text(encoding="utf-8")
            assert "title: Home" not in index
            assert '<h1 id="docmark">Docmark</h1>' in index
            assert "docmark-callout--tip" in index

            install = (root / "site" / "guide" / "install.html").read_text(encoding="utf-8")
            assert "Shared text." in install

    def test_missing_input(self):
        """A missing input directory stops the run"""
        with tempfile.TemporaryDirectory() as tmpdir:
            state = ProgramState(inputdir=Path(tmpdir) / "nope", outputdir=Path(tmpdir) / "out")
            with pytest.raises(SystemExit):
                cli.env_check(state)

    def test_variables_must_be_mapping(self):
        """A YAML list is rejected"""
        with tempfile.TemporaryDirectory() as tmpdir:
            path = Path(tmpdir) / "vars.yml"
            path.write_text("- a\n- b\n", encoding="utf-8")
            state = ProgramState(inputdir=Path(tmpdir), variablesFile=str(path))
            with pytest.raises(SystemExit):
                cli.variables_load(state)

    def test_no_variables_file(self):
        """Without a file the variables are empty"""
        assert cli.variables_load(ProgramState()).variables == {}

    def test_failure_isolated(self, monkeypatch):
        """One broken document does not stop the others, but fails the run"""
        monkeypatch.setattr(cli, "ProcessorRegistry", BrokenRegistry)
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            (root / "docs").mkdir()
            (root / "docs" / "broken.md").write_text("# Broken", encoding="utf-8")
            (root / "docs" / "fine.md").write_text("# Fine", encoding="utf-8")
            state = ProgramState(inputdir=root / "docs", outputdir=root / "site")

            state = cli.documents_render(cli.variables_load(cli.env_check(state)))

            statuses = {Path(result["source"]).name: result["status"] for result in state.renderResults}
            assert statuses == {"broken.md": False, "fine.md": True}
            assert (root / "site" / "fine.html").exists()
            assert not (root / "site" / "broken.html").exists()

            with pytest.raises(SystemExit):
                cli.results_report(state)

    def test_document_named_in_log_context(self, monkeypatch):
        """Each render runs under its document's name, cleared afterwards"""
        monkeypatch.setattr(cli, "ProcessorRegistry", RecordingRegistry)
        monkeypatch.setattr(RecordingRegistry, "seen", [])
        with tempfile.TemporaryDirectory() as tmpdir:
            root = Path(tmpdir)
            (root / "docs" / "guide").mkdir(parents=True)
            (root / "docs" / "guide" / "a.md").write_text("# A", encoding="utf-8")
            state = ProgramState(inputdir=root / "docs", outputdir=root / "site")

            cli.documents_render(cli.variables_load(cli.env_check(state)))

            assert RecordingRegistry.seen == [str(Path("guide") / "a.md")]
            assert document_current() == "-"

    def test_state_from_namespace(self):
        """Only ProgramState fields are taken from the CLI namespace"""
        options = Namespace(pattern="*.md", verbosity=3, variablesFile=None, docsRoot=None, json=False)
        state = ProgramState.state_createFromNamespace(options, Path("in"), Path("out"))
        assert state.pattern == "*.md"
        assert state.verbosity == 3
        assert state.inputdir == Path("in")
