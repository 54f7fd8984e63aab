"""
docmark - Directive and code-block markdown renderer

Library layer: the processor pipeline and its supporting modules.
"""

__version__ = "1.0.0"
__author__ = "docmark maintainers"

from .registry import ProcessorRegistry, render_document
from .markdown import MarkdownConverter
from .errors import DocmarkError, RenderError, IncludeError
from .log import LOG, state_connectToLogger, document_connectToLogger

__all__ = [
    "ProcessorRegistry",
    "render_document",
    "MarkdownConverter",
    "DocmarkError",
    "RenderError",
    "IncludeError",
    "LOG",
    "state_connectToLogger",
    "document_connectToLogger",
    "__version__",
]
