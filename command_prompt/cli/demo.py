from __future__ import annotations

import argparse
import asyncio
import re
from pathlib import Path
from typing import Any, Optional, Sequence

from rich.console import Console

from .. import __version__
from ..config.paths import PromptPaths
from ..config.settings import history_config_for, load_config_file, set_config
from ..core.completion import CompletionOptions
from ..core.history import HistoryStore
from ..core.session_log import SessionLogger, set_active_logger
from .prompt import CommandPrompt

DEMO_COMMANDS: list[Any] = [
    CompletionOptions(filter=lambda text: re.sub(r" \[.*$", "", text)),
    "foo a",
    "foo b",
    "foo ba mike",
    "foo bb buck",
    "foo bb jick",
    "boo",
    "fuu",
    "quit",
    "show john [first option]",
    "show mike [second option]",
    "isb -b --aab-long -a optA",
    "isb -b --aab-long -a optB",
    "isb -b --aab-long -a optC",
]


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Interactive demo of the command prompt (history, completion, multi-line)."
    )
    parser.add_argument("-v", "--version", action="store_true", help="Show version and exit")
    parser.add_argument("-c", "--context", default="demo", help="History context name")
    parser.add_argument("--folder", default=None, help="Directory holding the history file")
    parser.add_argument("--limit", type=int, default=None, help="Maximum entries kept per context")
    parser.add_argument("--no-save", action="store_true", help="Keep history in memory only")
    parser.add_argument("--config", type=Path, default=None, help="JSON config file")
    parser.add_argument(
        "--debug",
        nargs="?",
        const="all",
        default=None,
        help="Write a session log (all, keys, error, warn, info, debug)",
    )
    return parser


def _history_overrides(args: argparse.Namespace) -> dict[str, Any]:
    overrides: dict[str, Any] = {}
    if args.folder is not None:
        overrides["folder"] = args.folder
    if args.limit is not None:
        overrides["limit"] = args.limit
    if args.no_save:
        overrides["save"] = False
    return overrides


async def run_demo(args: argparse.Namespace, console: Optional[Console] = None) -> int:
    console = console or Console()
    config = load_config_file(args.config, console) if args.config else {}
    history = dict(config.get("history") or {})
    history.update(_history_overrides(args))
    config["history"] = history
    set_config(config)

    if args.debug:
        logger = SessionLogger(PromptPaths(Path(history.get("folder", "."))), args.debug)
        set_active_logger(logger)

    console.print("[bold]Command prompt demo[/bold] · type [cyan]quit[/cyan] to leave")
    store = HistoryStore(history_config_for(), console=console)
    while True:
        prompt = CommandPrompt(
            console=console,
            message=">",
            context=args.context,
            auto_completion=DEMO_COMMANDS,
            history_handler=store,
            short=True,
            validate=lambda value: True if value else "Press TAB for suggestions",
        )
        answer = await prompt.run()
        if answer == "quit":
            return 0
        if not any(answer.startswith(cmd) for cmd in ("foo", "boo", "show")):
            console.print("Okedoke.")


def main(argv: Optional[Sequence[str]] = None) -> None:
    args = _build_parser().parse_args(argv)
    if args.version:
        print(__version__)
        return
    try:
        raise SystemExit(asyncio.run(run_demo(args)))
    except (EOFError, KeyboardInterrupt):
        return


if __name__ == "__main__":
    main()
