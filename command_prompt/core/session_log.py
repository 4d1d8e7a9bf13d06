from __future__ import annotations

import json
import traceback
from dataclasses import dataclass
from datetime import datetime, timezone
from pathlib import Path
from typing import Any

from ..config.paths import PromptPaths

LOG_LEVELS = ("error", "warn", "info", "debug")
LOG_LEVEL_PRIORITY = {level: idx for idx, level in enumerate(LOG_LEVELS)}
LOG_TYPE_KEYS = "keys"

_FALSY_TOKENS = {"", "none", "null", "off", "false", "0", "no", "n"}
_TRUTHY_TOKENS = {"true", "1", "yes", "y", "on", "all"}


@dataclass(frozen=True)
class LogSelection:
    enabled_types: frozenset[str]
    enabled_levels: frozenset[str]


def resolve_debug_config(raw: Any) -> LogSelection:
    """Turn a ``debug`` option into the set of enabled log types and levels.

    Accepts ``True``/``False``, a single token (``"all"``, ``"keys"`` or a
    level name) or a list of tokens. A level enables every more severe level.
    """
    enabled_types: set[str] = set()
    enabled_levels: set[str] = set()

    def handle_token(token: str) -> None:
        token = token.strip().lower()
        if token in _FALSY_TOKENS:
            return
        if token in _TRUTHY_TOKENS:
            enabled_types.add(LOG_TYPE_KEYS)
            enabled_levels.update(LOG_LEVELS)
            return
        if token == LOG_TYPE_KEYS:
            enabled_types.add(LOG_TYPE_KEYS)
            return
        if token in LOG_LEVEL_PRIORITY:
            idx = LOG_LEVEL_PRIORITY[token]
            enabled_levels.update(LOG_LEVELS[: idx + 1])

    if raw is True:
        handle_token("all")
    elif isinstance(raw, str):
        handle_token(raw)
    elif isinstance(raw, (list, tuple, set)):
        for item in raw:
            if isinstance(item, str):
                handle_token(item)
    return LogSelection(frozenset(enabled_types), frozenset(enabled_levels))


class SessionLogger:
    """Write Markdown debug logs when enabled."""

    def __init__(self, paths: PromptPaths, debug_config: Any) -> None:
        self.paths = paths
        self._session_id = datetime.now().strftime("%Y%m%d_%H%M%S")
        self._started_at = datetime.now(timezone.utc)
        self._path: Path | None = None
        self.enabled = False
        self._enabled_types: set[str] = set()
        self._enabled_levels: set[str] = set()
        self.configure(debug_config)

    @property
    def path(self) -> Path | None:
        return self._path

    def configure(self, debug_config: Any) -> None:
        selection = resolve_debug_config(debug_config)
        self._enabled_types = set(selection.enabled_types)
        self._enabled_levels = set(selection.enabled_levels)
        self.enabled = bool(self._enabled_types or self._enabled_levels)

    def close(self) -> None:
        self.enabled = False

    def log_keypress(self, source: str, key: Any, action: str) -> None:
        if not (self.enabled and LOG_TYPE_KEYS in self._enabled_types):
            return
        self._write(source, LOG_TYPE_KEYS, "keypress", {"key": str(key), "action": action})

    def log_level(self, source: str, level: str, event: str, content: Any | None = None) -> None:
        if not (self.enabled and level in self._enabled_levels):
            return
        self._write(source, level, event, content)

    def log_exception(self, source: str, exc: BaseException) -> None:
        location = None
        frames = traceback.extract_tb(exc.__traceback__) if exc.__traceback__ else []
        if frames:
            last = frames[-1]
            location = f"{last.filename}:{last.lineno} in {last.name}"
        self.log_level(
            source,
            "error",
            "exception",
            {
                "type": type(exc).__name__,
                "message": str(exc),
                "location": location,
                "traceback": "".join(
                    traceback.format_exception(type(exc), exc, exc.__traceback__)
                ),
            },
        )

    def _ensure_path(self) -> Path:
        if self._path is None:
            logs_dir = self.paths.logs_dir
            logs_dir.mkdir(parents=True, exist_ok=True)
            self._path = logs_dir / f"command_prompt_{self._session_id}.md"
            if not self._path.exists():
                self._path.write_text(self._header_text(), encoding="utf-8")
        return self._path

    def _header_text(self) -> str:
        return (
            "# Command Prompt Session Log\n\n"
            f"- Session: {self._session_id}\n"
            f"- Started: {self._started_at.isoformat()}\n\n"
            "---\n\n"
        )

    def _write(self, source: str, log_type: str, event: str, content: Any) -> None:
        try:
            path = self._ensure_path()
            timestamp = datetime.now(timezone.utc).isoformat()
            header = f"## {timestamp} · {log_type}/{source} · {event}\n"
            with path.open("a", encoding="utf-8") as handle:
                handle.write(f"{header}{self._format_content_block(content)}\n\n")
        except OSError:
            self.close()

    def _format_content_block(self, content: Any) -> str:
        if isinstance(content, (dict, list)):
            body = json.dumps(content, indent=2, ensure_ascii=False, default=str)
            language = "json"
        else:
            body = "" if content is None else str(content)
            language = "text"
        return f"```{language}\n{body.rstrip()}\n```"


_ACTIVE_LOGGER: SessionLogger | None = None


def set_active_logger(logger: SessionLogger | None) -> None:
    global _ACTIVE_LOGGER
    _ACTIVE_LOGGER = logger


def get_active_logger() -> SessionLogger | None:
    return _ACTIVE_LOGGER


def log_exception(source: str, exc: BaseException) -> None:
    logger = _ACTIVE_LOGGER
    if logger is not None:
        logger.log_exception(source, exc)


def log_error(source: str, event: str, content: Any | None = None) -> None:
    logger = _ACTIVE_LOGGER
    if logger is not None:
        logger.log_level(source, "error", event, content)


def log_warn(source: str, event: str, content: Any | None = None) -> None:
    logger = _ACTIVE_LOGGER
    if logger is not None:
        logger.log_level(source, "warn", event, content)


def log_info(source: str, event: str, content: Any | None = None) -> None:
    logger = _ACTIVE_LOGGER
    if logger is not None:
        logger.log_level(source, "info", event, content)


def log_debug(source: str, event: str, content: Any | None = None) -> None:
    logger = _ACTIVE_LOGGER
    if logger is not None:
        logger.log_level(source, "debug", event, content)


def log_keypress(source: str, key: Any, action: str) -> None:
    logger = _ACTIVE_LOGGER
    if logger is not None:
        logger.log_keypress(source, key, action)
