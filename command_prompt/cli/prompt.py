from __future__ import annotations

from typing import Any, Awaitable, Callable, Optional

from prompt_toolkit import PromptSession
from prompt_toolkit.application import Application
from prompt_toolkit.buffer import Buffer
from prompt_toolkit.document import Document
from prompt_toolkit.filters import Condition
from prompt_toolkit.key_binding import KeyBindings, KeyPressEvent
from prompt_toolkit.layout.processors import Processor, Transformation, TransformationInput
from prompt_toolkit.patch_stdout import patch_stdout
from prompt_toolkit.validation import ValidationError, Validator
from rich.console import Console
from rich.markup import escape
from rich.text import Text

from ..config.settings import PromptOptions, history_config_for
from ..core.history import select_history_handler
from ..core.session_log import log_exception
from .controller import InteractionController
from .keys import KeyPress

NAVIGATION_KEYS = (
    KeyPress("up"),
    KeyPress("down"),
    KeyPress("tab"),
    KeyPress("right", shift=True),
    KeyPress("right", ctrl=True, shift=True),
    KeyPress("end", ctrl=True),
)


class PromptToolkitHost:
    """Exposes the active prompt_toolkit buffer as the controller's line host."""

    def __init__(self) -> None:
        self.buffer: Optional[Buffer] = None
        self.app: Optional[Application] = None

    def bind(self, event: KeyPressEvent) -> None:
        self.buffer = event.current_buffer
        self.app = event.app

    @property
    def line(self) -> str:
        return self.buffer.text if self.buffer is not None else ""

    @line.setter
    def line(self, text: str) -> None:
        if self.buffer is not None:
            self.buffer.document = Document(text, cursor_position=len(text))

    def render(self) -> None:
        if self.app is not None:
            self.app.invalidate()

    def submit(self, value: str) -> None:
        if self.app is not None:
            self.app.exit(result=value)


class CallableValidator(Validator):
    """Adapts ``validate(text) -> True | message`` callables."""

    def __init__(self, validate: Callable[[str], Any]) -> None:
        self._validate = validate

    def validate(self, document: Document) -> None:
        outcome = self._validate(document.text)
        if outcome is True:
            return
        message = outcome if isinstance(outcome, str) and outcome else "Invalid input"
        raise ValidationError(message=message, cursor_position=len(document.text))


class TransformerProcessor(Processor):
    """Shows the transformer's rendition of the line while typing."""

    def __init__(self, prompt: "CommandPrompt") -> None:
        self.prompt = prompt

    def apply_transformation(self, transformation_input: TransformationInput) -> Transformation:
        source = transformation_input.document.text
        shown = self.prompt.transform(source, is_final=False)
        if shown == source:
            return Transformation(transformation_input.fragments)
        width = len(shown)
        return Transformation(
            [("", shown)],
            source_to_display=lambda i: min(i, width),
            display_to_source=lambda i: min(i, len(source)),
        )


class CommandPrompt:
    """A line prompt with history, tab completion and multi-line input."""

    def __init__(
        self,
        options: Optional[PromptOptions] = None,
        *,
        console: Optional[Console] = None,
        answers: Optional[dict[str, Any]] = None,
        input: Any = None,
        output: Any = None,
        **kwargs: Any,
    ) -> None:
        self.options = options or PromptOptions.from_kwargs(**kwargs)
        self.console = console or Console()
        self.answers = answers or {}
        self.context = self.options.context
        config = history_config_for(self.options.history)
        self.history_handler = select_history_handler(
            self.options.history_handler, config, console=self.console
        )
        self.history_handler.init(self.context)
        self.host = PromptToolkitHost()
        self.controller = InteractionController(
            self.host, self.history_handler, self.options, console=self.console
        )
        self._input = input
        self._output = output
        self._session: Optional[PromptSession] = None

    @property
    def session(self) -> PromptSession:
        # Created on first use so the terminal is only opened when prompting.
        if self._session is None:
            self._session = PromptSession(
                key_bindings=self._build_key_bindings(),
                validator=CallableValidator(self.options.validate) if self.options.validate else None,
                validate_while_typing=False,
                input_processors=[TransformerProcessor(self)] if self.options.transformer else None,
                bottom_toolbar=self._bottom_toolbar,
                erase_when_done=True,
                input=self._input,
                output=self._output,
            )
        return self._session

    def _build_key_bindings(self) -> KeyBindings:
        bindings = KeyBindings()
        composing = Condition(lambda: self.controller.composing)

        def bind(key: KeyPress, **kwargs: Any) -> None:
            @bindings.add(*key.prompt_toolkit_keys(), eager=True, **kwargs)
            def _(event: KeyPressEvent):  # type: ignore
                self.host.bind(event)
                return self._after_pending(lambda: self.controller.handle_keypress(key))

        for key in NAVIGATION_KEYS:
            bind(key, filter=~composing)
        bind(self.controller.toggle_key)
        bind(self.controller.cancel_key, filter=composing)

        @bindings.add("enter", eager=True)
        def _(event: KeyPressEvent):  # type: ignore
            self.host.bind(event)
            return self._after_pending(lambda: self._accept_line(event.current_buffer))

        return bindings

    def _accept_line(self, buf: Buffer) -> None:
        """Buffer the line while composing, else validate and submit."""
        if not self.controller.composing and not buf.validate(set_cursor=True):
            return
        self.controller.on_line(buf.text)

    def _after_pending(
        self, action: Callable[[], Optional[Awaitable[None]]]
    ) -> Optional[Awaitable[None]]:
        """Run ``action`` now, or once an in-flight async completion is done."""
        if not self.controller.completion_pending:
            return action()

        async def deferred() -> None:
            await self.controller.wait_pending()
            outcome = action()
            if outcome is not None:
                await outcome

        return deferred()

    def _bottom_toolbar(self) -> str:
        toggle = self.controller.toggle_key
        if not self.controller.composing:
            return f" up/down history · tab complete · {toggle} multi-line"
        count = len(self.controller.composer.buffered)
        return (
            f" multi-line: {count} line(s) buffered · "
            f"{toggle} submit · {self.controller.cancel_key} cancel"
        )

    def transform(self, text: str, *, is_final: bool) -> str:
        transformer = self.options.transformer
        if transformer is None:
            return text
        try:
            return str(transformer(text, self.answers, {"is_final": is_final}))
        except Exception as exc:
            log_exception("prompt", exc)
            self.console.print(f"[red]Error in transformer: {escape(str(exc))}[/red]")
            return text

    def render_answer(self, answer: str) -> Text:
        rendered = Text(self.options.message + " ")
        if self.options.transformer is not None:
            rendered.append(self.transform(answer, is_final=True))
        elif self.options.no_color_on_answered:
            rendered.append(answer)
        else:
            rendered.append(answer, style=self.options.color_on_answered)
        return rendered

    async def run(self) -> str:
        try:
            with patch_stdout(raw=True):
                answer = await self.session.prompt_async(
                    self.options.message + " ", default=self.options.default
                )
            self.console.print(self.render_answer(answer))
            return answer
        finally:
            self.close()

    def close(self) -> None:
        if self.options.on_close is None:
            return
        try:
            self.options.on_close()
        except Exception as exc:
            log_exception("prompt", exc)
            self.console.print(f"[red]Error in on_close: {escape(str(exc))}[/red]")


async def command_prompt(**kwargs: Any) -> str:
    """Ask one question and return the submitted (and recorded) line."""
    return await CommandPrompt(**kwargs).run()
