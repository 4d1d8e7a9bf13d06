from __future__ import annotations

import asyncio
import inspect
import re
from typing import Any, Awaitable, Callable, Mapping, Optional, Protocol

from rich.console import Console
from rich.markup import escape
from rich.text import Text

from ..config.settings import DEFAULT_LIMIT, PromptOptions, get_config
from ..core.completion import CompleterCache, CompletionFunc, CompletionResult
from ..core.history import HistoryHandler
from ..core.multiline import MultilineComposer
from ..core.session_log import log_exception, log_keypress
from .formatting import format_index, format_list, short
from .keys import KeyAction, KeyPress, classify_key

AUTOCOMPLETE_HEADER = "[red]>> [/red][grey50]Available commands:[/grey50]"

_LEADING_SPACES_RE = re.compile(r"^ +")
_SPACE_RUN_RE = re.compile(r" +")
_LEADING_INDEX_RE = re.compile(r"\s*(\d+)")


class LineHost(Protocol):
    """What the controller needs from the line-editing surface."""

    line: str

    def render(self) -> None: ...

    def submit(self, value: str) -> None: ...


def normalize_completion_line(line: str) -> str:
    line = _LEADING_SPACES_RE.sub("", line).replace("\t", "", 1)
    return _SPACE_RUN_RE.sub(" ", line)


class InteractionController:
    """Routes keypresses to history navigation, completion and multi-line input."""

    def __init__(
        self,
        host: LineHost,
        history: HistoryHandler,
        options: Optional[PromptOptions] = None,
        *,
        console: Optional[Console] = None,
    ) -> None:
        self.host = host
        self.history = history
        self.options = options or PromptOptions()
        self.context = self.options.context
        self.console = console or Console()
        self.composer = MultilineComposer()
        self.completers = CompleterCache()
        self.toggle_key = KeyPress.coerce(self.options.multiline_toggle_key)
        self.cancel_key = KeyPress.coerce(self.options.multiline_cancel_key)
        self._pending: Optional[asyncio.Future[None]] = None
        self.history.init(self.context)

    @property
    def composing(self) -> bool:
        return self.composer.active

    @property
    def completion_pending(self) -> bool:
        return self._pending is not None and not self._pending.done()

    async def wait_pending(self) -> None:
        """Wait until no async completion is in flight."""
        while self.completion_pending:
            await self._pending

    def handle_keypress(self, key: KeyPress) -> Optional[Awaitable[None]]:
        """Dispatch one keypress.

        Returns ``None`` when the keypress was fully handled, or an awaitable
        that finishes the work when an async completion source is pending.
        """
        if self.options.on_before_key_press is not None:
            self._call_hook("on_before_key_press", self.options.on_before_key_press, key)
        self.history.init(self.context)
        completer = self.completers.get(self.context, self.options.auto_completion)
        action = classify_key(
            key,
            composing=self.composer.active,
            toggle_key=self.toggle_key,
            cancel_key=self.cancel_key,
        )
        log_keypress("controller", key, action.value)

        if action is KeyAction.COMPLETE:
            pending = self._handle_completion(completer)
            if pending is not None:
                return pending
        elif action is KeyAction.MULTILINE_TOGGLE:
            self._handle_toggle()
        elif action is KeyAction.MULTILINE_CANCEL:
            self.composer.cancel()
            self._rewrite_line("")
        elif action is KeyAction.HISTORY_PREVIOUS:
            previous = self.history.get_previous(self.context)
            if previous is not None:
                self._rewrite_line(previous)
        elif action is KeyAction.HISTORY_NEXT:
            following = self.history.get_next(self.context)
            self._rewrite_line(following if following is not None else "")
        elif action is KeyAction.HISTORY_SHOW:
            self._show_history()
        elif action is KeyAction.HISTORY_RECALL:
            self._recall_history()
        elif action is KeyAction.CTRL_END:
            self._handle_ctrl_end()
        self.host.render()
        return None

    async def press(self, key: KeyPress) -> None:
        await self.wait_pending()
        pending = self.handle_keypress(key)
        if pending is not None:
            await pending

    def on_line(self, line: str) -> Optional[str]:
        """Handle the line-complete signal (Enter).

        While composing the line is buffered and ``None`` is returned;
        otherwise the line is submitted and returned.
        """
        if self.composer.active:
            self.composer.line_complete(line)
            self._rewrite_line("")
            self.host.render()
            return None
        return self.submit(line)

    def submit(self, value: str) -> str:
        self.history.add(self.context, value)
        self.host.submit(value)
        return value

    def _handle_toggle(self) -> None:
        value = self.composer.toggle(self.host.line)
        self._rewrite_line("")
        if value is not None:
            self.submit(value)

    def _handle_completion(self, completer: CompletionFunc) -> Optional[Awaitable[None]]:
        line = normalize_completion_line(self.host.line)
        try:
            outcome = completer(line)
            if inspect.isawaitable(outcome):
                self._pending = asyncio.ensure_future(self._finish_completion(outcome, line))
                return self._pending
            self._apply_completion(outcome, line)
        except Exception as exc:
            self._report("tab completion", exc)
            self._rewrite_line(line)
        return None

    async def _finish_completion(self, outcome: Awaitable[CompletionResult], line: str) -> None:
        try:
            self._apply_completion(await outcome, line)
        except Exception as exc:
            self._report("tab completion", exc)
            self._rewrite_line(line)
        self.host.render()

    def _apply_completion(self, result: CompletionResult, line: str) -> None:
        if result.match:
            self._rewrite_line(result.match)
        elif result.matches is not None:
            self.console.print()
            self.console.print(self.options.autocomplete_prompt or AUTOCOMPLETE_HEADER)
            grid = format_list(
                self._shorten(line, list(result.matches)),
                self.options.max_size,
                self.options.ellipsize,
                self.options.ellipsis,
                width=self.console.width,
            )
            self.console.print(Text.from_ansi(grid), soft_wrap=True)
            self._rewrite_line(line)

    def _shorten(self, line: str, matches: list[str]) -> list[str]:
        shortener = self.options.short
        if not shortener:
            return matches
        if callable(shortener):
            return list(shortener(line, matches))
        return short(line, matches)

    def _show_history(self) -> None:
        entries = self.history.get_all(self.context)
        limit = _history_limit(self.history)
        self.console.print()
        self.console.print("[bold]History:[/bold]")
        if not entries:
            self.console.print("[grey50]  (No history)[/grey50]")
        for index, entry in enumerate(entries):
            self.console.print(
                f"[grey50]{format_index(index, limit)}[/grey50]  {escape(entry)}",
                highlight=False,
            )
        self._rewrite_line("")

    def _recall_history(self) -> None:
        found = _LEADING_INDEX_RE.match(self.host.line)
        if found is None:
            self._rewrite_line("")
            return
        index = int(found.group(1))
        entries = self.history.get_all(self.context)
        self._rewrite_line(entries[index] if 0 <= index < len(entries) else "")

    def _handle_ctrl_end(self) -> None:
        hook = self.options.on_ctrl_end or get_config().get("on_ctrl_end")
        if not callable(hook):
            self._rewrite_line("")
            return
        line = self.host.line
        self._rewrite_line(self._call_hook("on_ctrl_end", hook, line, fallback=line))

    def _rewrite_line(self, line: str) -> None:
        hook = self.options.on_before_rewrite
        if hook is not None:
            line = self._call_hook("on_before_rewrite", hook, line, fallback=line)
        self.host.line = line

    def _call_hook(self, name: str, hook: Callable[..., Any], *args: Any, fallback: Any = None) -> Any:
        try:
            return hook(*args)
        except Exception as exc:
            self._report(name, exc)
            return fallback

    def _report(self, name: str, exc: Exception) -> None:
        log_exception("controller", exc)
        self.console.print(f"[red]Error in {name}: {escape(str(exc))}[/red]")


def _history_limit(history: Any) -> Optional[int]:
    config = getattr(history, "config", None)
    if isinstance(config, Mapping):
        return config.get("limit", DEFAULT_LIMIT)
    return getattr(config, "limit", DEFAULT_LIMIT)
