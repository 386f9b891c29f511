"""Terminal front end: prompt_toolkit key decoding and drawing."""

from __future__ import annotations

import logging
from collections.abc import Callable, Coroutine
from typing import TYPE_CHECKING, Any

from prompt_toolkit.application import Application
from prompt_toolkit.filters import Condition
from prompt_toolkit.formatted_text import StyleAndTextTuples
from prompt_toolkit.input import create_input
from prompt_toolkit.key_binding import KeyBindings, KeyPressEvent
from prompt_toolkit.keys import Keys
from prompt_toolkit.layout.containers import ConditionalContainer, HSplit, Window
from prompt_toolkit.layout.controls import FormattedTextControl
from prompt_toolkit.layout.layout import Layout

from qpick.models.actions import KeyAction, KeyMessage, Message
from qpick.ui.display import NO_ENTRIES, render_rows
from qpick.ui.theme import build_style, format_count

if TYPE_CHECKING:
    from prompt_toolkit.input import Input
    from prompt_toolkit.output import Output

    from qpick.config import Config
    from qpick.ui.state import UIState

logger = logging.getLogger(__name__)

QUERY_PREFIX = "Search > "

# prompt line and status line
_RESERVED_LINES = 2

_KEY_ACTIONS: dict[KeyAction, tuple[str, ...]] = {
    KeyAction.DELETE_BACKWARD: ("backspace",),
    KeyAction.DELETE_WORD: ("c-w",),
    KeyAction.CLEAR_QUERY: ("c-u",),
    KeyAction.MOVE_UP: ("up", "c-p"),
    KeyAction.MOVE_DOWN: ("down", "c-n"),
    KeyAction.PAGE_UP: ("pageup",),
    KeyAction.PAGE_DOWN: ("pagedown",),
    KeyAction.MOVE_FIRST: ("home",),
    KeyAction.MOVE_LAST: ("end",),
    KeyAction.CONFIRM: ("enter",),
    KeyAction.ABORT: ("escape", "c-c"),
}


def viewport_height_for(terminal_rows: int) -> int:
    return max(terminal_rows - _RESERVED_LINES, 1)


def status_line(state: UIState) -> tuple[str, str]:
    """Style class and text for the line under the prompt."""
    if state.error is not None:
        return "class:status.error", f"error: {state.error.message}"
    if state.results is None:
        if state.searching:
            return "class:status.searching", "searching..."
        return "class:status", ""
    count = state.result_count
    text = NO_ENTRIES if count == 0 else format_count(count)
    if state.searching:
        return "class:status.searching", f"{text} (searching...)"
    return "class:status", text


def build_key_bindings(post: Callable[[Message], None]) -> KeyBindings:
    """Map terminal keys onto logical key actions."""
    kb = KeyBindings()

    for action, keys in _KEY_ACTIONS.items():
        for key in keys:
            kb.add(key, eager=key == "escape")(_poster(post, action))

    @kb.add(Keys.Any)
    def _insert(event: KeyPressEvent) -> None:
        # unbound special keys such as Left or F1 land here too
        if isinstance(event.key_sequence[0].key, Keys):
            return
        text = "".join(char for char in event.data if char.isprintable())
        if text:
            post(KeyMessage(KeyAction.INSERT_TEXT, text=text))

    @kb.add(Keys.BracketedPaste)
    def _paste(event: KeyPressEvent) -> None:
        text = " ".join(event.data.split())
        if text:
            post(KeyMessage(KeyAction.INSERT_TEXT, text=text))

    return kb


def _poster(post: Callable[[Message], None], action: KeyAction) -> Callable[[KeyPressEvent], None]:
    def handler(_event: KeyPressEvent) -> None:
        post(KeyMessage(action))

    return handler


class TerminalView:
    """Draws :class:`UIState` and turns key presses into messages.

    The view never writes the state; it only reads it while rendering.
    """

    def __init__(
        self,
        config: Config,
        state: UIState,
        post: Callable[[Message], None],
        *,
        input: Input | None = None,
        output: Output | None = None,
    ) -> None:
        self._config = config
        self._state = state
        self._post = post
        self._reported_height = 0

        rows_window = Window(FormattedTextControl(self._rows_fragments), dont_extend_height=True)
        layout = Layout(
            HSplit(
                [
                    Window(FormattedTextControl(self._prompt_fragments, focusable=True), height=1),
                    Window(FormattedTextControl(self._status_fragments), height=1),
                    ConditionalContainer(
                        rows_window, filter=Condition(lambda: self._state.result_count > 0)
                    ),
                ]
            )
        )
        self._app: Application[str | None] = Application(
            layout=layout,
            key_bindings=build_key_bindings(post),
            style=build_style(),
            full_screen=False,
            erase_when_done=True,
            input=input if input is not None else create_input(always_prefer_tty=True),
            output=output,
        )
        self._app.before_render += self._check_size

    def invalidate(self) -> None:
        self._app.invalidate()

    async def run(self, interaction: Coroutine[Any, Any, str | None]) -> str | None:
        """Show the UI while ``interaction`` runs and return its result."""

        async def drive() -> None:
            try:
                chosen = await interaction
            except Exception as exc:
                logger.exception("Interaction loop failed")
                self._app.exit(exception=exc)
            else:
                self._app.exit(result=chosen)

        return await self._app.run_async(
            pre_run=lambda: self._app.create_background_task(drive())
        )

    def _check_size(self, app: Application[Any]) -> None:
        height = viewport_height_for(app.output.get_size().rows)
        if height != self._reported_height:
            self._reported_height = height
            self._post(KeyMessage(KeyAction.RESIZE, height=height))

    def _prompt_fragments(self) -> StyleAndTextTuples:
        return [
            ("class:prompt", QUERY_PREFIX),
            ("class:query", self._state.query),
            ("[SetCursorPosition]", ""),
        ]

    def _status_fragments(self) -> StyleAndTextTuples:
        return [status_line(self._state)]

    def _rows_fragments(self) -> StyleAndTextTuples:
        fragments: StyleAndTextTuples = []
        for row in render_rows(self._config.display_template, self._state):
            if fragments:
                fragments.append(("", "\n"))
            style = "class:row"
            if row.failed:
                style += " class:row.failed"
            if row.selected:
                style += " class:row.selected"
            fragments.append((style, " ".join(row.text.splitlines())))
        return fragments
