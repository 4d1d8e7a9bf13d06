from __future__ import annotations

import inspect
from dataclasses import dataclass
from typing import Any, Awaitable, Callable, Dict, Mapping, Optional, Sequence, Union

OutputFilter = Callable[[str], str]
CompletionOutcome = Union["CompletionResult", Awaitable["CompletionResult"]]
CompletionFunc = Callable[[str], CompletionOutcome]


@dataclass(frozen=True)
class CompletionOptions:
    """Leading candidate marker carrying an output filter for completions."""

    filter: Optional[OutputFilter] = None


@dataclass(frozen=True)
class CompletionResult:
    match: Optional[str] = None
    matches: Optional[list[str]] = None

    @property
    def is_ambiguous(self) -> bool:
        return self.matches is not None


def _identity(value: str) -> str:
    return value


def _is_marker(item: Any) -> bool:
    if isinstance(item, (CompletionOptions, Mapping)):
        return True
    return not isinstance(item, str) and hasattr(item, "filter")


def split_options(candidates: Sequence[Any]) -> tuple[OutputFilter, list[str]]:
    """Strip a leading configuration marker and return its filter."""
    items = list(candidates)
    output_filter: OutputFilter = _identity
    if items and _is_marker(items[0]):
        marker = items.pop(0)
        if isinstance(marker, Mapping):
            candidate_filter = marker.get("filter")
        else:
            candidate_filter = getattr(marker, "filter", None)
        if callable(candidate_filter):
            output_filter = candidate_filter
    return output_filter, [str(item) for item in items]


def common_prefix_from(candidates: Sequence[str], start: int) -> str:
    """Characters shared by every candidate from ``start`` on."""
    common = []
    position = start
    while True:
        chars = set()
        for candidate in candidates:
            if position >= len(candidate):
                return "".join(common)
            chars.add(candidate[position])
        if len(chars) != 1:
            return "".join(common)
        common.append(chars.pop())
        position += 1


def complete(line: str, candidates: Sequence[Any]) -> CompletionResult:
    """Complete ``line`` against ``candidates``.

    A single match (or an unambiguous common prefix) comes back as ``match``;
    several matches without a shared continuation come back as ``matches``.
    With no match at all the line is returned unchanged as ``match``.
    """
    output_filter, items = split_options(candidates)
    matching = [item for item in items if item.startswith(line)]
    if len(matching) > 1:
        common = common_prefix_from(matching, len(line))
        if common:
            return CompletionResult(match=output_filter(line + common))
        return CompletionResult(matches=matching)
    if len(matching) == 1:
        return CompletionResult(match=output_filter(matching[0]))
    return CompletionResult(match=output_filter(line))


def _no_completion(line: str) -> CompletionResult:
    return CompletionResult()


def build_completer(source: Any) -> CompletionFunc:
    """Resolve a candidate source into a completion function.

    Static sequences and plain callables complete synchronously. Coroutine
    functions, and callables that hand back an awaitable, make the completer
    return a coroutine instead.
    """
    if source is None:
        return _no_completion
    if inspect.iscoroutinefunction(source):

        async def complete_async(line: str) -> CompletionResult:
            return complete(line, await source(line))

        return complete_async
    if callable(source):

        def complete_call(line: str) -> CompletionOutcome:
            candidates = source(line)
            if inspect.isawaitable(candidates):
                return _complete_awaitable(line, candidates)
            return complete(line, candidates)

        return complete_call
    candidates = list(source)
    return lambda line: complete(line, candidates)


async def _complete_awaitable(line: str, pending: Awaitable[Sequence[Any]]) -> CompletionResult:
    return complete(line, await pending)


class CompleterCache:
    """Completion functions per context, resolved on first use."""

    def __init__(self) -> None:
        self._completers: Dict[str, CompletionFunc] = {}

    def get(self, context: str, source: Any) -> CompletionFunc:
        completer = self._completers.get(context)
        if completer is None:
            completer = build_completer(source)
            self._completers[context] = completer
        return completer

    def __contains__(self, context: object) -> bool:
        return context in self._completers

    def clear(self) -> None:
        self._completers.clear()
