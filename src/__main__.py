#!/usr/bin/env python3
"""
docmark - Directive and code-block markdown renderer

Renders a tree of markdown documents, written with docmark's container,
inline and code-block directives, to HTML fragments ready to be dropped
into a static-site layout.

As an aside, this codebase leverages the ChRIS "plugin" concept/pattern as
general purpose python app development framework.

Philosophy:
    - Text-first: Sources stay readable as plain markdown
    - Directive markup: :::containers, :inline[directives], ```lang [title] {1,3}
    - One document in, one fragment out: layout and navigation live elsewhere
    - Failure isolation: a broken document never stops the rest of the build

Usage:
    docmark inputdir/ outputdir/ [--pattern '**/*.md'] [--variables vars.yml]

    Every matching document under inputdir/ is rendered to the same
    relative path under outputdir/ with an .html suffix.

Examples:
    # Render a docs tree
    docmark docs/ site/

    # Interpolate {{ variables }} from a YAML file
    docmark docs/ site/ --variables docs/variables.yml

    # Verbose output
    docmark docs/ site/ -vv
"""

import re
import sys
from pathlib import Path
from argparse import ArgumentParser, Namespace, ArgumentDefaultsHelpFormatter

import yaml
from chris_plugin import chris_plugin

from .lib import ProcessorRegistry, RenderError, __version__, LOG, state_connectToLogger, document_connectToLogger
from .models import ProgramState, ProcessingContext, pipeline


DISPLAY_TITLE = r"""
     _                                 _
  __| | ___   ___ _ __ ___   __ _ _ __| | __
 / _` |/ _ \ / __| '_ ` _ \ / _` | '__| |/ /
| (_| | (_) | (__| | | | | | (_| | |  |   <
 \__,_|\___/ \___|_| |_| |_|\__,_|_|  |_|\_\

  Directive and code-block markdown renderer
"""

FRONT_MATTER_PATTERN = re.compile(r"\A---[ \t]*\n.*?\n---[ \t]*\n", re.DOTALL)

# Define CLI arguments
parser = ArgumentParser(
    description="docmark - Directive and code-block markdown renderer",
    formatter_class=ArgumentDefaultsHelpFormatter,
)

parser.add_argument(
    "--pattern",
    default="**/*.md",
    type=str,
    help="Glob (relative to inputdir) selecting the documents to render",
)

parser.add_argument(
    "--variables",
    dest="variablesFile",
    default=None,
    type=str,
    help="YAML file with values for {{ variable.path }} interpolation",
)

parser.add_argument(
    "--docsRoot",
    default=None,
    type=str,
    help="Root for docs-relative includes and @/ snippet imports. Defaults to inputdir",
)

parser.add_argument(
    "-v",
    "--verbosity",
    action="count",
    default=1,
    help="Increase output verbosity (can be repeated: -v, -vv, -vvv)",
)

parser.add_argument("-V", "--version", action="version", version=f"%(prog)s {__version__}")


def env_check(inputstate: ProgramState) -> ProgramState:
    """
    Validate the environment and collect the documents to render.

    Args:
        inputstate: Initial program state with CLI options

    Returns:
        ProgramState with added fields:
            - sourceFiles: Documents matching the pattern, sorted
            - docsRootdir: Resolved docs root
            - envOK: True if environment is valid

    Exits:
        1 if the input or docs root directory is missing
    """

    state = inputstate.copy()

    if state.verbosity >= 2:
        LOG(DISPLAY_TITLE, level=2)

    LOG("Checking environment...", level=2)

    if not state.inputdir or not state.inputdir.is_dir():
        print(f"Error: Input directory not found: {state.inputdir}", file=sys.stderr)
        state.envOK = False
        sys.exit(1)

    state.docsRootdir = Path(state.docsRoot) if state.docsRoot else state.inputdir
    if not state.docsRootdir.is_dir():
        print(f"Error: Docs root not found: {state.docsRootdir}", file=sys.stderr)
        state.envOK = False
        sys.exit(1)
    LOG(f"Docs root: {state.docsRootdir}", level=2)

    state.sourceFiles = sorted(path for path in state.inputdir.glob(state.pattern) if path.is_file())
    LOG(f"Found {len(state.sourceFiles)} documents matching {state.pattern}", level=1)

    state.outputdir.mkdir(parents=True, exist_ok=True)
    LOG(f"Output directory: {state.outputdir}", level=2)

    state.envOK = True
    return state


def variables_load(inputstate: ProgramState) -> ProgramState:
    """
    Load the interpolation variables.

    Returns:
        ProgramState with added field:
            - variables: Mapping read from the YAML file (empty without one)

    Exits:
        1 if the file cannot be read or is not a YAML mapping
    """

    state = inputstate.copy()
    if not state.variablesFile:
        state.variables = {}
        return state

    path = Path(state.variablesFile)
    if not path.is_absolute() and not path.exists():
        path = state.inputdir / path

    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except (OSError, yaml.YAMLError) as e:
        print(f"Error reading variables file: {e}", file=sys.stderr)
        sys.exit(1)

    if not isinstance(data, dict):
        print(f"Error: Variables file must contain a mapping: {path}", file=sys.stderr)
        sys.exit(1)

    state.variables = data
    LOG(f"Loaded {len(data)} top-level variables from {path}", level=2)
    return state


def documents_render(inputstate: ProgramState) -> ProgramState:
    """
    Render every source document, isolating failures per document.

    Returns:
        ProgramState with added field:
            - renderResults: One dict per document with
                - source: str (input path)
                - output: str (written path, None on failure)
                - status: bool
                - error: str (None on success)
    """

    state = inputstate.copy()
    registry = ProcessorRegistry()
    results = []

    LOG("Rendering documents...", level=1)
    for source in state.sourceFiles:
        relative = source.relative_to(state.inputdir)
        target = state.outputdir / relative.with_suffix(".html")
        result = {"source": str(source), "output": None, "status": False, "error": None}
        document_connectToLogger(relative)

        try:
            text = FRONT_MATTER_PATTERN.sub("", source.read_text(encoding="utf-8"), count=1)
            context = ProcessingContext(
                variables=state.variables,
                docs_root=state.docsRootdir,
                current_file=source,
            )
            html = registry.render(text, context)
            target.parent.mkdir(parents=True, exist_ok=True)
            target.write_text(html, encoding="utf-8")
        except (RenderError, OSError) as e:
            print(f"Render error: {e}", file=sys.stderr)
            if state.verbosity >= 3:
                import traceback

                traceback.print_exc()
            result["error"] = str(e)
        else:
            result.update(output=str(target), status=True)
            LOG(f"{relative} -> {target.name} ({len(context.code_blocks)} code blocks)", level=2)
        results.append(result)
    document_connectToLogger(None)

    state.renderResults = results
    return state


def results_report(inputstate: ProgramState) -> ProgramState:
    """
    Summarize the run.

    Returns:
        ProgramState unchanged (terminal pipeline stage)

    Exits:
        1 if any document failed to render
    """
    state: ProgramState = inputstate.copy()
    failed = [result for result in state.renderResults if not result["status"]]
    rendered = len(state.renderResults) - len(failed)

    LOG(f"\n✓ Rendered {rendered} of {len(state.renderResults)} documents", level=1)
    LOG(f"  Output: {state.outputdir}", level=1)
    for result in failed:
        LOG(f"  ✗ {result['source']}: {result['error']}", level=1)

    if failed:
        print(f"Error: {len(failed)} documents failed to render", file=sys.stderr)
        sys.exit(1)
    return state


@chris_plugin(
    parser=parser,
    title="docmark - Directive and code-block markdown renderer",
    category="Utility",
    min_memory_limit="100Mi",
    min_cpu_limit="500m",
)
def main(options: Namespace, inputdir: Path, outputdir: Path):
    """
    Main entry point - render a tree of docmark documents to HTML.

    Orchestrates the full pipeline:
        1. env_check: Validate paths and collect documents
        2. variables_load: Read the YAML variables file
        3. documents_render: Render each document independently
        4. results_report: Summarize, exit non-zero on failures

    Args:
        options: CLI arguments from argparse
            - pattern: str - Glob selecting documents
            - variablesFile: Optional[str] - YAML variables file
            - docsRoot: Optional[str] - Docs root override
            - verbosity: int - Logging verbosity level (1-3)
        inputdir: Directory containing the markdown sources
        outputdir: Directory where rendered HTML is written

    Note:
        This function is wrapped by @chris_plugin which handles CLI
        argument parsing and invokes this function with parsed values.
    """

    state: ProgramState = ProgramState.state_createFromNamespace(
        options=options, inputdir=inputdir, outputdir=outputdir
    )

    # Connect state to logger for entire pipeline
    state_connectToLogger(state)

    pipeline(state, env_check, variables_load, documents_render, results_report)


if __name__ == "__main__":
    main()  # type: ignore  # @chris_plugin decorator transforms signature
