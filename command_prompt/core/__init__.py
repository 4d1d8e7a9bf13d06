"""Core history, completion and composing state."""

from .completion import CompleterCache, CompletionOptions, CompletionResult, build_completer, complete
from .history import HistoryHandler, HistoryStore, is_history_handler, select_history_handler
from .multiline import Composing, Idle, MultilineComposer
from .session_log import SessionLogger

__all__ = [
    "CompleterCache",
    "CompletionOptions",
    "CompletionResult",
    "Composing",
    "HistoryHandler",
    "HistoryStore",
    "Idle",
    "MultilineComposer",
    "SessionLogger",
    "build_completer",
    "complete",
    "is_history_handler",
    "select_history_handler",
]
