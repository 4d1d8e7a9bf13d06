from __future__ import annotations

import json
import time
from pathlib import Path
from typing import Any, Mapping, Optional, Protocol

from rich.console import Console
from rich.markup import escape

from ..config.paths import PromptPaths
from ..config.settings import DEFAULT_HISTORY_CONFIG, merge_dicts, normalize_history_config
from .session_log import log_error, log_exception, log_info

REQUIRED_HISTORY_METHODS = (
    "init",
    "add",
    "get_previous",
    "get_next",
    "get_all",
    "reset_index",
)


class HistoryHandler(Protocol):
    """Contract shared by the default store and caller-supplied stores."""

    def init(self, context: str) -> None: ...

    def add(self, context: str, value: str) -> None: ...

    def get_previous(self, context: str) -> Optional[str]: ...

    def get_next(self, context: str) -> Optional[str]: ...

    def get_all(self, context: str) -> list[str]: ...

    def reset_index(self, context: str) -> None: ...


def is_history_handler(candidate: Any) -> bool:
    if candidate is None:
        return False
    return all(callable(getattr(candidate, name, None)) for name in REQUIRED_HISTORY_METHODS)


def select_history_handler(
    candidate: Any,
    config: Mapping[str, Any],
    *,
    console: Optional[Console] = None,
) -> HistoryHandler:
    """Use ``candidate`` when it fulfils the contract, else a new HistoryStore."""
    if is_history_handler(candidate):
        set_config = getattr(candidate, "set_config", None)
        if callable(set_config):
            set_config(dict(config))
        return candidate
    return HistoryStore(config, console=console)


class HistoryStore:
    """Per-context command history with a navigation cursor and JSON persistence."""

    def __init__(
        self,
        config: Optional[Mapping[str, Any]] = None,
        *,
        console: Optional[Console] = None,
    ) -> None:
        self.console = console or Console(stderr=True)
        self.histories: dict[str, list[str]] = {}
        self.history_indexes: dict[str, int] = {}
        self.config: dict[str, Any] = merge_dicts(
            DEFAULT_HISTORY_CONFIG, normalize_history_config(config)
        )
        self._history_file: Optional[Path] = None
        if self.config["save"]:
            self._history_file = self._resolve_history_file()
            self.load()

    @property
    def history_file(self) -> Optional[Path]:
        return self._history_file

    def set_config(self, config: Any) -> None:
        partial = normalize_history_config(config)
        if not partial:
            return
        self.config = merge_dicts(self.config, partial)
        path_changed = "folder" in partial or "file_name" in partial
        if path_changed or (self.config["save"] and self._history_file is None):
            self._history_file = self._resolve_history_file()

    def _resolve_history_file(self) -> Path:
        return PromptPaths(Path(self.config["folder"]), self.config["file_name"]).history_file

    def init(self, context: str) -> None:
        if context not in self.histories:
            self.histories[context] = []
            self.history_indexes[context] = 0

    def add(self, context: str, value: str) -> None:
        self.init(context)
        if value in self.config.get("blacklist", ()):
            return
        entries = self.histories[context]
        if not entries or entries[-1] != value:
            entries.append(value)
            limit = self.config.get("limit")
            if limit:
                del entries[: max(0, len(entries) - limit)]
        self.history_indexes[context] = len(entries)
        if self.config["save"]:
            self.save()

    def get_previous(self, context: str) -> Optional[str]:
        self.init(context)
        index = self.history_indexes[context]
        if index > 0:
            index -= 1
            self.history_indexes[context] = index
            return self.histories[context][index]
        return None

    def get_next(self, context: str) -> Optional[str]:
        self.init(context)
        index = self.history_indexes[context]
        last = len(self.histories[context]) - 1
        if index < last:
            index += 1
            self.history_indexes[context] = index
            return self.histories[context][index]
        if index == last:
            # One step past the newest entry stands for a blank input line.
            self.history_indexes[context] = index + 1
        return None

    def reset_index(self, context: str) -> None:
        self.init(context)
        self.history_indexes[context] = len(self.histories[context])

    def get_all(self, context: str) -> list[str]:
        self.init(context)
        return list(self.histories[context])

    def limited_histories(self) -> dict[str, list[str]]:
        """Snapshot of every context trimmed to the configured limit."""
        limit = self.config.get("limit")
        snapshot: dict[str, list[str]] = {}
        for context, entries in self.histories.items():
            snapshot[context] = list(entries[-limit:]) if limit else list(entries)
        return snapshot

    def save(self) -> None:
        if not self.config["save"] or self._history_file is None:
            return
        path = self._history_file
        try:
            path.parent.mkdir(parents=True, exist_ok=True)
        except OSError as exc:
            self._report("Could not create history directory", exc)
            return
        payload = json.dumps({"histories": self.limited_histories()}, indent=2, ensure_ascii=False)
        try:
            path.write_text(payload, encoding="utf-8")
        except OSError as exc:
            self._report("Could not save history file", exc)

    def load(self) -> None:
        path = self._history_file
        if not self.config["save"] or path is None or not path.exists():
            return
        try:
            data = json.loads(path.read_text(encoding="utf-8"))
            histories = _parse_histories(data)
        except (OSError, ValueError) as exc:
            self._report("Invalid or corrupted history file", exc)
            self._backup_corrupted(path)
            self.histories = {}
            self.history_indexes = {}
            return
        if histories is None:
            return
        self.histories = histories
        self.history_indexes = {context: len(entries) for context, entries in histories.items()}

    def _backup_corrupted(self, path: Path) -> None:
        stamp = int(time.time() * 1000)
        backup = PromptPaths(path.parent, path.name).corrupted_backup(stamp)
        try:
            path.rename(backup)
        except OSError as exc:
            self._report("Could not back up corrupted history file", exc)
            return
        log_info("history", "history.backup", {"path": str(backup)})
        self.console.print(
            f"[yellow]Corrupted history file backed up to {escape(str(backup))}[/yellow]"
        )

    def _report(self, message: str, exc: BaseException) -> None:
        log_error("history", "history.error", {"message": message, "file": str(self._history_file)})
        log_exception("history", exc)
        self.console.print(f"[red]History error: {message}: {escape(str(exc))}[/red]")


def _parse_histories(data: Any) -> Optional[dict[str, list[str]]]:
    """Validate the persisted document; ``None`` means nothing to load."""
    if not isinstance(data, dict) or data.get("histories") is None:
        return None
    raw = data["histories"]
    if not isinstance(raw, dict):
        raise ValueError("'histories' must be an object")
    histories: dict[str, list[str]] = {}
    for context, entries in raw.items():
        if not isinstance(entries, list) or not all(isinstance(e, str) for e in entries):
            raise ValueError(f"history for context {context!r} must be a list of strings")
        histories[str(context)] = list(entries)
    return histories
