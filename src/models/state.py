"""
Program state model and pipeline helper

Defines ProgramState dataclass for the functional CLI pipeline and the
pipeline() helper for composing transformation stages.
"""

from pathlib import Path
from argparse import Namespace
from typing import Any, Optional, Type, TypeVar, List, Dict, Callable
from dataclasses import dataclass, field
from functools import reduce
import dataclasses


PS = TypeVar("PS", bound="ProgramState")


@dataclass
class ProgramState:
    """
    Central state container for the CLI render pipeline (state bus pattern).

    Pipeline stages and their state additions:
        - Initial: inputdir, outputdir, verbosity, pattern, variablesFile, docsRoot
        - env_check: sourceFiles, docsRootdir, envOK
        - variables_load: variables
        - documents_render: renderResults
        - results_report: (no additions, terminal stage)

    Attributes:
        inputdir: Directory holding the markdown sources
        outputdir: Base output directory for rendered HTML
        verbosity: Logging verbosity level (1-3)
        pattern: Glob (relative to inputdir) selecting documents to render
        variablesFile: Optional YAML file with interpolation variables
        docsRoot: Optional docs root override (defaults to inputdir)
        envOK: Environment validation passed
        sourceFiles: Documents selected for rendering
        docsRootdir: Resolved docs root
        variables: Loaded variable map
        renderResults: One dict per document (source, output, status, error)
    """

    # CLI arguments
    inputdir: Optional[Path] = field(default=None)
    outputdir: Optional[Path] = field(default=None)
    verbosity: int = field(default=1)
    pattern: str = field(default="**/*.md")
    variablesFile: Optional[str] = field(default=None)
    docsRoot: Optional[str] = field(default=None)

    # Pipeline state
    envOK: bool = field(default=False)
    sourceFiles: List[Path] = field(default_factory=list)
    docsRootdir: Path = field(default=Path("/"))
    variables: Dict[str, Any] = field(default_factory=dict)
    renderResults: List[Dict[str, Any]] = field(default_factory=list)

    @classmethod
    def state_createFromNamespace(
        cls: Type["ProgramState"], options: Namespace, inputdir: Path, outputdir: Path
    ) -> "ProgramState":
        """
        Create ProgramState from argparse Namespace and directory paths.

        Args:
            options: Parsed CLI arguments
            inputdir: Directory containing source files
            outputdir: Directory for render output

        Returns:
            ProgramState instance with all CLI options as attributes
        """
        options_dict = vars(options)

        # Only keep options that are ProgramState fields
        valid_fields = {f.name for f in dataclasses.fields(cls)}
        filtered_options = {k: v for k, v in options_dict.items() if k in valid_fields}

        merged_args = {**filtered_options, "inputdir": inputdir, "outputdir": outputdir}
        return cls(**merged_args)

    def copy(self: PS) -> PS:
        """
        Creates a shallow copy of the ProgramState instance.

        Returns:
            A new ProgramState instance.
        """
        return type(self)(**self.__dict__)


def pipeline(
    initial_state: ProgramState, *stages: Callable[[ProgramState], ProgramState]
) -> ProgramState:
    """
    Execute a functional pipeline of state transformations.

    Each stage is a function (ProgramState) -> ProgramState that receives
    the output of the previous stage and returns a new state.

    Example:
        final_state = pipeline(
            initial_state,
            env_check,
            variables_load,
            documents_render,
            results_report
        )

    This is equivalent to:
        results_report(documents_render(variables_load(env_check(initial_state))))
    """
    return reduce(lambda state, stage: stage(state), stages, initial_state)
