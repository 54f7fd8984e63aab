"""
Exception types raised by the render pipeline
"""

from pathlib import Path
from typing import Optional, Union


class DocmarkError(Exception):
    """Base class for docmark errors"""


class RenderError(DocmarkError):
    """
    A document failed to render.

    The original exception is chained as ``__cause__``.
    """

    def __init__(self, path: Optional[Union[str, Path]], message: str) -> None:
        self.path = path
        super().__init__(f"{path or '<string>'}: {message}")


class IncludeError(DocmarkError):
    """An include or snippet target could not be imported"""

    def __init__(self, target: str, reason: str) -> None:
        self.target = target
        self.reason = reason
        super().__init__(f"{target}: {reason}")
