"""
Processor interface and metadata models

Defines the base class every pipeline stage derives from and the categories
used by the registry for organization and nested fragment rendering.
"""

from enum import Enum
from typing import Optional, TYPE_CHECKING

from ..config import AppSettings, appsettings

if TYPE_CHECKING:
    from .context import ProcessingContext


class ProcessorCategory(Enum):
    """
    Categories of docmark processors

    Used for organization and to select the stages re-run on nested fragments.
    """
    SOURCE = "source"          # includes, snippets, variables
    CODE = "code"              # extended fences, code-block extractors, renderer
    CONTAINER = "container"    # :::callout, :::tabs, :::code-group, ...
    INLINE = "inline"          # badges, icons, tooltips, abbreviations, media
    STRUCTURE = "structure"    # headings, toc, tables, raw block restore


class Processor:
    """
    A single stage of the render pipeline.

    Subclasses declare a class-level ``priority`` (ascending = earlier) and
    override ``preprocess`` (markdown -> markdown) and/or ``postprocess``
    (HTML -> HTML). Both default to returning their input unchanged, so a
    stage only implements the phases it takes part in.

    Processors hold no per-document state: everything that must survive
    between stages lives on the ProcessingContext passed to each call.

    Attributes:
        name: Short identifier used in logs and listings
        priority: Sort key within a phase; ties keep registration order
        category: Grouping used by the registry
    """
    name: str = "processor"
    priority: int = 100
    category: ProcessorCategory = ProcessorCategory.INLINE

    def __init__(self, settings: Optional[AppSettings] = None) -> None:
        self.settings: AppSettings = settings or appsettings

    def preprocess(self, text: str, context: "ProcessingContext") -> str:
        return text

    def postprocess(self, html: str, context: "ProcessingContext") -> str:
        return html

    @property
    def preprocess_has(self) -> bool:
        """True if this stage takes part in the preprocess phase"""
        return type(self).preprocess is not Processor.preprocess

    @property
    def postprocess_has(self) -> bool:
        """True if this stage takes part in the postprocess phase"""
        return type(self).postprocess is not Processor.postprocess

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.name!r} priority={self.priority}>"
