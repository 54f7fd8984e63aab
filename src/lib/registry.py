"""
Processor registry and render pipeline for docmark

The registry owns one ordered list of processors built at startup. A
render runs every preprocess stage (ascending priority, ties in
registration order), converts the markdown, then runs every postprocess
stage the same way.
"""

from typing import Iterable, List, Optional

from ..config import AppSettings, appsettings
from ..models.context import ProcessingContext
from ..models.processor import Processor, ProcessorCategory
from .codeblocks import (
    CodeBlockAnnotationProcessor,
    CodeBlockFocusProcessor,
    CodeBlockMarkerProcessor,
    CodeBlockOptionProcessor,
    CodeBlockRenderer,
    ExtendedFenceEscaper,
    ExtendedFenceRestorer,
)
from .containers import (
    AccordionProcessor,
    CalloutProcessor,
    CardsProcessor,
    CodeGroupProcessor,
    RawBlockRestorer,
    StepsProcessor,
    TabsProcessor,
    rawBlocks_restore,
)
from .errors import RenderError
from .inline import (
    AbbreviationProcessor,
    BadgeProcessor,
    IconProcessor,
    ImageCaptionProcessor,
    TooltipProcessor,
    VideoProcessor,
)
from .log import LOG
from .markdown import MarkdownConverter, converter_default
from .sources import IncludeProcessor, SnippetProcessor, VariableProcessor
from .structure import (
    CustomAnchorProcessor,
    FileTreeProcessor,
    HeadingAnchorProcessor,
    TableWrapperProcessor,
    TocProcessor,
)


class ProcessorRegistry:
    """
    Registry of pipeline processors

    Holds processor instances in registration order; phase lists are
    derived by a stable sort on priority, so processors sharing a priority
    keep the order they were registered in.
    """

    def __init__(
        self,
        settings: Optional[AppSettings] = None,
        converter: Optional[MarkdownConverter] = None,
        builtins: bool = True,
    ) -> None:
        """Initialize the registry and register all built-in processors"""
        self.settings: AppSettings = settings or appsettings
        self.converter: MarkdownConverter = converter or converter_default()
        self.processors: List[Processor] = []
        if builtins:
            self.sourceProcessors_register()
            self.codeProcessors_register()
            self.inlineProcessors_register()
            self.containerProcessors_register()
            self.structureProcessors_register()

    def register(self, processor: Processor) -> None:
        """Register a processor instance"""
        self.processors.append(processor)

    def get(self, name: str) -> Optional[Processor]:
        """Get a registered processor by name"""
        for processor in self.processors:
            if processor.name == name:
                return processor
        return None

    def processors_listByCategory(self, category: ProcessorCategory) -> List[Processor]:
        return [processor for processor in self.processors if processor.category == category]

    @property
    def preprocessors(self) -> List[Processor]:
        """Processors taking part in the preprocess phase, in run order"""
        return sorted(
            (processor for processor in self.processors if processor.preprocess_has),
            key=lambda processor: processor.priority,
        )

    @property
    def postprocessors(self) -> List[Processor]:
        """Processors taking part in the postprocess phase, in run order"""
        return sorted(
            (processor for processor in self.processors if processor.postprocess_has),
            key=lambda processor: processor.priority,
        )

    def sourceProcessors_register(self) -> None:
        """Register includes, snippet imports and variables"""
        self.register(IncludeProcessor(self.settings))
        self.register(SnippetProcessor(self.settings))
        self.register(VariableProcessor(self.settings))

    def codeProcessors_register(self) -> None:
        """Register extended fences, code-block extractors and the renderer"""
        # Same priority as includes; registered later so included files are escaped too
        self.register(ExtendedFenceEscaper(self.settings))
        self.register(CodeBlockOptionProcessor(self.settings))
        self.register(CodeBlockMarkerProcessor(self.settings))
        self.register(CodeBlockFocusProcessor(self.settings))
        self.register(CodeBlockAnnotationProcessor(self.settings))
        self.register(CodeBlockRenderer(self.settings))
        self.register(ExtendedFenceRestorer(self.settings))

    def inlineProcessors_register(self) -> None:
        """Register inline directives"""
        self.register(AbbreviationProcessor(self.settings))
        self.register(TooltipProcessor(self.settings))
        self.register(ImageCaptionProcessor(self.settings))
        self.register(VideoProcessor(self.settings))
        self.register(BadgeProcessor(self.settings))
        self.register(IconProcessor(self.settings))

    def containerProcessors_register(self) -> None:
        """Register ::: container directives"""
        self.register(CalloutProcessor(self.settings))
        self.register(AccordionProcessor(self.settings))
        self.register(CardsProcessor(self.settings))
        self.register(StepsProcessor(self.settings))
        self.register(CodeGroupProcessor(self.settings))
        self.register(TabsProcessor(self.settings))

    def structureProcessors_register(self) -> None:
        """Register file trees, heading and table processors"""
        self.register(FileTreeProcessor(self.settings))
        self.register(RawBlockRestorer(self.settings))
        self.register(CustomAnchorProcessor(self.settings))
        self.register(HeadingAnchorProcessor(self.settings))
        self.register(TocProcessor(self.settings))
        self.register(TableWrapperProcessor(self.settings))

    def preprocessors_run(self, text: str, context: ProcessingContext) -> str:
        """Fold every preprocess stage over the markdown"""
        self.context_prepare(context)
        return self.stages_run(self.preprocessors, text, context, "preprocess")

    def postprocessors_run(self, html: str, context: ProcessingContext) -> str:
        """Fold every postprocess stage over the converted HTML"""
        self.context_prepare(context)
        return self.stages_run(self.postprocessors, html, context, "postprocess")

    def stages_run(self, stages: Iterable[Processor], text: str, context: ProcessingContext, phase: str) -> str:
        for processor in stages:
            LOG(f"{phase}: {processor.name}", level=3)
            text = getattr(processor, phase)(text, context)
        return text

    def context_prepare(self, context: ProcessingContext) -> None:
        if context.fragment_renderer is None:
            context.fragment_renderer = lambda text: self.fragment_render(text, context)

    def fragment_render(self, text: str, context: ProcessingContext) -> str:
        """
        Render a nested markdown fragment (container body, tab panel).

        Only container stages run on the fragment: everything else already
        ran over the whole document, fragment included.
        """
        for processor in self.preprocessors:
            if processor.category == ProcessorCategory.CONTAINER:
                text = processor.preprocess(text, context)
        html = self.converter.convert(text, context.converter_env)
        return rawBlocks_restore(html, context)

    def render(self, text: str, context: Optional[ProcessingContext] = None) -> str:
        """
        Render one document to an HTML fragment.

        Args:
            text: Markdown source (front matter already removed)
            context: Seeded render context; a fresh one is created if None.
                After the call it holds ``toc`` and ``code_blocks``.

        Returns:
            Final HTML

        Raises:
            RenderError: any stage or the converter failed
        """
        if context is None:
            context = ProcessingContext(settings=self.settings)
        try:
            markdown = self.preprocessors_run(text, context)
            html = self.converter.convert(markdown, context.converter_env)
            return self.postprocessors_run(html, context)
        except RenderError:
            raise
        except Exception as error:
            raise RenderError(context.current_file, f"{type(error).__name__}: {error}") from error


def render_document(
    text: str,
    context: Optional[ProcessingContext] = None,
    registry: Optional[ProcessorRegistry] = None,
) -> str:
    """
    Render markdown with the built-in pipeline.

    Example:
        >>> render_document(":::tip\\nUse **docmark**.\\n:::")
        '<div class="docmark-callout docmark-callout--tip" ...'
    """
    return (registry or ProcessorRegistry()).render(text, context)
