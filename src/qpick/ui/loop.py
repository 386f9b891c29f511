"""Interaction loop: the single consumer of key actions and query outcomes."""

from __future__ import annotations

import asyncio
import logging
import re
from collections.abc import Callable
from typing import TYPE_CHECKING

from qpick.models.actions import KeyAction, KeyMessage, Message
from qpick.models.outcome import QueryOutcome
from qpick.ui.state import LoopMode, ResultStore, UIState, select, set_viewport_height

if TYPE_CHECKING:
    from qpick.ui.scheduler import DebounceScheduler

logger = logging.getLogger(__name__)

_TRAILING_WORD_RE = re.compile(r"\S*\s*\Z")


class InteractionLoop:
    """Processes one message at a time until a result is confirmed or aborted.

    Key messages come from the terminal, outcome messages from the scheduler;
    both arrive through ``messages`` so :class:`UIState` has a single writer.
    """

    def __init__(
        self,
        scheduler: DebounceScheduler,
        messages: asyncio.Queue[Message],
        state: UIState | None = None,
        on_redraw: Callable[[], None] | None = None,
    ) -> None:
        self.state = state if state is not None else UIState()
        self._scheduler = scheduler
        self._messages = messages
        self._store = ResultStore(self.state, lambda: scheduler.latest_token)
        self._on_redraw = on_redraw

    def post(self, message: Message) -> None:
        self._messages.put_nowait(message)

    async def run(self) -> str | None:
        """Run until exit and return the chosen identifier, if any."""
        try:
            while self.state.mode is not LoopMode.EXITED:
                message = await self._messages.get()
                self.handle(message)
                if self._on_redraw is not None:
                    self._on_redraw()
        finally:
            self._scheduler.cancel()
        return self.state.chosen

    def handle(self, message: Message) -> None:
        if self.state.mode is LoopMode.EXITED:
            return
        if isinstance(message, QueryOutcome):
            self._store.apply(message)
        else:
            self._handle_key(message)

    def _handle_key(self, message: KeyMessage) -> None:
        state = self.state
        match message.action:
            case KeyAction.INSERT_TEXT:
                self._edit(state.query + message.text)
            case KeyAction.DELETE_BACKWARD:
                self._edit(state.query[:-1])
            case KeyAction.DELETE_WORD:
                self._edit(_TRAILING_WORD_RE.sub("", state.query, count=1))
            case KeyAction.CLEAR_QUERY:
                self._edit("")
            case KeyAction.MOVE_UP:
                self._navigate(state.selection - 1)
            case KeyAction.MOVE_DOWN:
                self._navigate(state.selection + 1)
            case KeyAction.PAGE_UP:
                self._navigate(state.selection - state.viewport_height)
            case KeyAction.PAGE_DOWN:
                self._navigate(state.selection + state.viewport_height)
            case KeyAction.MOVE_FIRST:
                self._navigate(0)
            case KeyAction.MOVE_LAST:
                self._navigate(state.result_count - 1)
            case KeyAction.RESIZE:
                set_viewport_height(state, message.height)
            case KeyAction.CONFIRM:
                self._confirm()
            case KeyAction.ABORT:
                logger.info("Selection aborted")
                state.chosen = None
                state.mode = LoopMode.EXITED

    def _edit(self, text: str) -> None:
        state = self.state
        state.mode = LoopMode.EDITING
        if text == state.query:
            return
        state.query = text
        state.searching = True
        self._scheduler.on_query_changed(text)

    def _navigate(self, index: int) -> None:
        if self.state.result_count == 0:
            return
        select(self.state, index)
        self.state.mode = LoopMode.SELECTING

    def _confirm(self) -> None:
        selected = self.state.selected
        if selected is None:
            return
        logger.info("Selected %r", selected.identifier)
        self.state.chosen = selected.identifier
        self.state.mode = LoopMode.EXITED
