"""
Models package for docmark

Contains data structures shared by the render pipeline and the CLI.
"""

from .state import ProgramState, pipeline
from .processor import Processor, ProcessorCategory
from .context import (
    ProcessingContext,
    CodeBlockDescriptor,
    SkipRange,
    DIFF_ADDITION,
    DIFF_DELETION,
)

__all__ = [
    "ProgramState",
    "pipeline",
    "Processor",
    "ProcessorCategory",
    "ProcessingContext",
    "CodeBlockDescriptor",
    "SkipRange",
    "DIFF_ADDITION",
    "DIFF_DELETION",
]
