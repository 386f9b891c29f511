"""UI state, result store and selection movement."""

from __future__ import annotations

import logging
from collections.abc import Callable
from dataclasses import dataclass
from enum import StrEnum

from result import Ok

from qpick.models.outcome import QueryFailure, QueryOutcome
from qpick.models.search import SearchResult, SearchResults

logger = logging.getLogger(__name__)


class LoopMode(StrEnum):
    EDITING = "editing"
    SELECTING = "selecting"
    EXITED = "exited"


@dataclass
class UIState:
    """Everything the terminal draws. Only the interaction loop writes it."""

    query: str = ""
    mode: LoopMode = LoopMode.EDITING
    selection: int = 0
    scroll_offset: int = 0
    viewport_height: int = 10
    results: SearchResults | None = None
    accepted_token: int = 0
    error: QueryFailure | None = None
    searching: bool = False
    chosen: str | None = None

    @property
    def result_count(self) -> int:
        return len(self.results.results) if self.results is not None else 0

    @property
    def selected(self) -> SearchResult | None:
        if self.results is None:
            return None
        return self.results.at(self.selection)

    def visible_range(self) -> range:
        end = min(self.scroll_offset + self.viewport_height, self.result_count)
        return range(self.scroll_offset, max(end, self.scroll_offset))


class ResultStore:
    """Applies query outcomes to :class:`UIState`, dropping stale ones."""

    def __init__(self, state: UIState, latest_token: Callable[[], int]) -> None:
        self._state = state
        self._latest_token = latest_token

    def apply(self, message: QueryOutcome) -> bool:
        """Apply ``message`` if it belongs to the latest query. Returns whether it did."""
        latest = self._latest_token()
        if message.token != latest:
            logger.debug("Discarding stale outcome %d (latest %d)", message.token, latest)
            return False

        state = self._state
        state.accepted_token = message.token
        state.searching = False
        outcome = message.outcome
        if isinstance(outcome, Ok):
            state.results = outcome.ok_value
            state.error = None
            state.selection = 0
            state.scroll_offset = 0
            logger.debug("Accepted %d result(s) for %r", state.result_count, message.query)
        else:
            # previous results, selection and scroll stay as they are
            state.error = outcome.err_value
            logger.debug("Query %r failed: %s", message.query, state.error)
        return True


def select(state: UIState, index: int) -> None:
    """Move the selection to ``index`` clamped to the result bounds."""
    count = state.result_count
    if count == 0:
        state.selection = 0
        state.scroll_offset = 0
        return
    state.selection = min(max(index, 0), count - 1)
    ensure_visible(state)


def move_selection(state: UIState, delta: int) -> None:
    select(state, state.selection + delta)


def set_viewport_height(state: UIState, height: int) -> None:
    state.viewport_height = max(height, 1)
    ensure_visible(state)


def ensure_visible(state: UIState) -> None:
    """Scroll the minimum amount needed to show the selected row."""
    height = state.viewport_height
    if state.selection < state.scroll_offset:
        state.scroll_offset = state.selection
    elif state.selection >= state.scroll_offset + height:
        state.scroll_offset = state.selection - height + 1
    max_offset = max(state.result_count - height, 0)
    state.scroll_offset = min(max(state.scroll_offset, 0), max_offset)
