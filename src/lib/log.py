"""
Render logging on top of Loguru.

Processors run deep inside ProcessorRegistry.render() and never see the
CLI state, so two context variables carry what LOG() needs: the
ProgramState whose verbosity gates output, and the document currently
being rendered, which is stamped on every record.

Usage:
    from docmark.lib.log import LOG, state_connectToLogger, document_connectToLogger

    # At start of a CLI stage:
    state_connectToLogger(state)

    # Before rendering each source file:
    document_connectToLogger(source)

    # Inside any processor:
    LOG("callout: rendered 3 containers", level=2)
    LOG("Code block 4: annotation markers without a following list", level=1)
"""

from loguru import logger
from pathlib import Path
from typing import Any, Optional, Union
from contextvars import ContextVar
import sys

_program_state: ContextVar[Optional[Any]] = ContextVar('program_state', default=None)
_current_document: ContextVar[str] = ContextVar('current_document', default="-")

logger_format = (
    "<green>{time:HH:mm:ss}</green> │ "
    "<level>{level: <5}</level> │ "
    "<magenta>{extra[document]: <24}</magenta> │ "
    "<cyan>{function: <20}</cyan> ║ "
    "<level>{message}</level>"
)

logger.remove()
logger.configure(extra={"document": "-"})
logger.add(sys.stderr, format=logger_format, level="DEBUG")


def state_connectToLogger(state: Any) -> None:
    """
    Make a ProgramState's verbosity govern LOG() in this context.

    Args:
        state: Object with a ``verbosity`` attribute
    """
    _program_state.set(state)


def document_connectToLogger(document: Optional[Union[str, Path]]) -> None:
    """Name the document subsequent LOG() records belong to ("-" for none)"""
    _current_document.set(str(document) if document else "-")


def document_current() -> str:
    return _current_document.get()


def LOG(message: str, level: int = 1, **kwargs: Any) -> None:
    """
    Log a message when the connected state's verbosity is at least ``level``.

    Nothing is emitted until a state is connected, so library use of the
    pipeline (tests, render_document()) stays silent.

    Levels:
        1 = lenient fallbacks and run summaries
        2 = one line per processor that matched something
        3 = per-block and per-stage trace

    Example:
        LOG(f"Unknown badge type {kind!r}, using default", level=1)
        LOG(f"Found {len(fences)} code blocks", level=2)
        LOG(f"preprocess: {processor.name}", level=3)
    """
    state = _program_state.get()
    if state is None or getattr(state, 'verbosity', 0) < level:
        return
    # depth=1 reports the caller, not this wrapper
    logger.opt(depth=1).bind(document=document_current()).debug(message, **kwargs)
