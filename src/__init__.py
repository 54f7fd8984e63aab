"""
docmark - Directive and code-block markdown renderer

Turns markdown extended with container, inline and code-block directives
into HTML fragments for static documentation sites.
"""

__version__ = "1.0.0"
__author__ = "docmark maintainers"

from .lib import ProcessorRegistry, render_document, RenderError, LOG, state_connectToLogger
from .models import ProcessingContext

__all__ = [
    "ProcessorRegistry",
    "render_document",
    "RenderError",
    "ProcessingContext",
    "LOG",
    "state_connectToLogger",
    "__version__",
]
