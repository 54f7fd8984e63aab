"""
Source-level preprocessors: includes, snippet imports, variables

These run before every other stage, so content they pull in takes part
in the rest of the pipeline exactly like text written in the document.
File access is local and synchronous; failures never abort the render
but turn into visible warnings in the output.
"""

import re
from pathlib import Path
from typing import Any, Dict, List, Optional, Pattern, Set

from ..models.context import ProcessingContext
from ..models.processor import Processor, ProcessorCategory
from .errors import IncludeError
from .languages import snippetLanguage_get
from .log import LOG
from .skipranges import fenceRanges_find, inside, markdown_transform

INCLUDE_PATTERN: Pattern[str] = re.compile(r"<!--\s*@include:\s*(\S+?)\s*-->")
SNIPPET_PATTERN: Pattern[str] = re.compile(r"^<<<[ \t]+@/([^\s{#]+)(?:#([\w-]+))?(?:\{([^}]+)\})?[ \t]*$", re.MULTILINE)
VARIABLE_PATTERN: Pattern[str] = re.compile(r"\{\{\s*([A-Za-z0-9_.]+)\s*\}\}")
VARS_FENCE_PATTERN: Pattern[str] = re.compile(r"\A([ ]{0,3}`{3,})([\w+#.]+)-vars\b")


class IncludeProcessor(Processor):
    """
    ``<!--@include: path-->`` inlines another markdown file.

    Paths starting with ``./`` or ``../`` resolve against the including
    file, anything else against the docs root. Included files may include
    further files; a file that is already being included higher up the
    chain is reported as circular instead of recursing.
    """
    name = "include"
    priority = 0
    category = ProcessorCategory.SOURCE

    def preprocess(self, text: str, context: ProcessingContext) -> str:
        if "@include:" not in text:
            return text
        current = Path(context.current_file).resolve() if context.current_file else None
        chain = {current} if current else set()
        return self.includes_expand(text, current, chain, context)

    def includes_expand(
        self, text: str, current: Optional[Path], chain: Set[Path], context: ProcessingContext
    ) -> str:
        skip = fenceRanges_find(text)

        def include_replace(match: "re.Match[str]") -> str:
            if inside(match.start(), skip):
                return match.group(0)
            target = match.group(1)
            try:
                path = self.path_resolve(target, current, context)
                if path in chain:
                    raise IncludeError(target, "Circular include detected")
                content = path.read_text(encoding="utf-8").strip()
            except IncludeError as error:
                LOG(f"Include failed: {error}", level=1)
                return includeError_render(error)
            LOG(f"Including {path}", level=2)
            return self.includes_expand(content, path, chain | {path}, context)

        return INCLUDE_PATTERN.sub(include_replace, text)

    def path_resolve(self, target: str, current: Optional[Path], context: ProcessingContext) -> Path:
        if target.startswith(("./", "../")):
            if current is None:
                raise IncludeError(target, "Relative include without a current file")
            path = (current.parent / target).resolve()
        else:
            path = (context.docsRoot_resolve() / target).resolve()

        if not path.is_file():
            raise IncludeError(target, "File not found")
        if path.suffix.lower() not in self.settings.include_extensions:
            raise IncludeError(target, "Use code snippets for non-markdown files")
        return path


def includeError_render(error: IncludeError) -> str:
    return f"> [!WARNING]\n> Include error: {error.target} - {error.reason}\n"


class SnippetProcessor(Processor):
    """
    ``<<< @/path/to/file.py#region{lang 1,3}`` imports code from a file.

    ``#name`` keeps only the lines between ``#region name`` and
    ``#endregion`` comments. Options are a language override and a highlight
    spec; a lone ``N-M`` range extracts those lines instead of highlighting.
    """
    name = "snippet"
    priority = 1
    category = ProcessorCategory.SOURCE

    def preprocess(self, text: str, context: ProcessingContext) -> str:
        if "<<<" not in text:
            return text
        skip = fenceRanges_find(text)

        def snippet_replace(match: "re.Match[str]") -> str:
            if inside(match.start(), skip):
                return match.group(0)
            target, region, options = match.groups()
            try:
                return self.snippet_build(target, region, options, context)
            except IncludeError as error:
                LOG(f"Snippet import failed: {error}", level=1)
                return f"```\nError importing {error.target}: {error.reason}\n```"

        return SNIPPET_PATTERN.sub(snippet_replace, text)

    def snippet_build(
        self, target: str, region: Optional[str], options: Optional[str], context: ProcessingContext
    ) -> str:
        path = context.docsRoot_resolve() / target
        if not path.is_file():
            raise IncludeError(target, "File not found")
        content = path.read_text(encoding="utf-8")
        if region:
            content = region_extract(content, region)
            if content is None:
                raise IncludeError(target, f"Region '{region}' not found")

        lang = snippetLanguage_get(target)
        highlights = None
        for part in (options or "").split():
            if re.fullmatch(r"[\d,-]+", part):
                highlights = part
            else:
                lang = part

        meta = f" [{Path(target).name}]"
        if highlights and re.fullmatch(r"\d+-\d+", highlights):
            content = lineRange_extract(content, highlights)
        elif highlights:
            meta += f" {{{highlights}}}"

        LOG(f"Imported snippet {target}{'#' + region if region else ''}", level=2)
        return f"```{lang}{meta}\n{content.rstrip(chr(10))}\n```"


def region_extract(content: str, name: str) -> Optional[str]:
    """
    Lines strictly between ``#region name`` and the next ``#endregion``.

    Example:
        >>> region_extract("# #region a\\nx = 1\\n# #endregion a\\n", "a")
        'x = 1\\n'
    """
    start = re.compile(r"^[ \t]*(?://|#|/\*|<!--|--)\s*#region\s+" + re.escape(name) + r"\b")
    end = re.compile(r"^[ \t]*(?://|#|/\*|\*/|<!--|--)\s*#endregion\b")

    lines = content.splitlines(keepends=True)
    begin = next((i for i, line in enumerate(lines) if start.match(line)), None)
    if begin is None:
        return None
    finish = next((i for i in range(begin + 1, len(lines)) if end.match(lines[i])), None)
    if finish is None:
        return None
    return "".join(lines[begin + 1:finish])


def lineRange_extract(content: str, spec: str) -> str:
    low, high = (int(value) for value in spec.split("-"))
    lines = content.splitlines(keepends=True)
    selected = lines[max(low, 1) - 1:high]
    return "".join(selected) if selected else content


class VariableProcessor(Processor):
    """
    ``{{ product.version }}`` interpolation.

    Paths are looked up through nested mappings; unresolved paths (or paths
    running through a non-mapping value) are left as written. Fenced code is
    untouched unless its language carries a ``-vars`` suffix, which is
    removed either way.
    """
    name = "variables"
    priority = 2
    category = ProcessorCategory.SOURCE

    def preprocess(self, text: str, context: ProcessingContext) -> str:
        if "{{" not in text and "-vars" not in text:
            return text
        variables = context.variables or {}

        pieces: List[str] = []
        cursor = 0
        for fence in fenceRanges_find(text):
            pieces.append(self.variables_substitute(text[cursor:fence.start], variables))
            pieces.append(self.fence_process(text[fence.start:fence.end], variables))
            cursor = fence.end
        pieces.append(self.variables_substitute(text[cursor:], variables))
        return "".join(pieces)

    def fence_process(self, fence: str, variables: Dict[str, Any]) -> str:
        match = VARS_FENCE_PATTERN.match(fence)
        if not match:
            return fence
        fence = match.group(1) + match.group(2) + fence[match.end():]
        return variables_substitute(fence, variables)

    def variables_substitute(self, text: str, variables: Dict[str, Any]) -> str:
        if not variables or "{{" not in text:
            return text
        return markdown_transform(text, lambda chunk: variables_substitute(chunk, variables))


def variables_substitute(text: str, variables: Dict[str, Any]) -> str:
    def value_get(match: "re.Match[str]") -> str:
        value = variable_resolve(match.group(1), variables)
        return match.group(0) if value is None else str(value)

    return VARIABLE_PATTERN.sub(value_get, text)


def variable_resolve(path: str, variables: Dict[str, Any]) -> Optional[Any]:
    """
    Example:
        >>> variable_resolve("app.version", {"app": {"version": "2.1"}})
        '2.1'
        >>> variable_resolve("app.version.major", {"app": {"version": "2.1"}}) is None
        True
    """
    current: Any = variables
    for key in path.split("."):
        if not isinstance(current, dict) or key not in current:
            return None
        current = current[key]
    return current
