"""Logical key actions consumed by the interaction loop."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TypeAlias

from qpick.models.outcome import QueryOutcome


class KeyAction(StrEnum):
    INSERT_TEXT = "insert_text"
    DELETE_BACKWARD = "delete_backward"
    DELETE_WORD = "delete_word"
    CLEAR_QUERY = "clear_query"
    MOVE_UP = "move_up"
    MOVE_DOWN = "move_down"
    PAGE_UP = "page_up"
    PAGE_DOWN = "page_down"
    MOVE_FIRST = "move_first"
    MOVE_LAST = "move_last"
    RESIZE = "resize"
    CONFIRM = "confirm"
    ABORT = "abort"


@dataclass(frozen=True)
class KeyMessage:
    """A decoded key press. ``text`` is used by INSERT_TEXT, ``height`` by RESIZE."""

    action: KeyAction
    text: str = ""
    height: int = 0


Message: TypeAlias = KeyMessage | QueryOutcome
