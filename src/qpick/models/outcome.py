"""Query execution outcomes and the messages that carry them."""

from __future__ import annotations

from dataclasses import dataclass
from enum import StrEnum
from typing import TypeAlias

from result import Result

from qpick.models.search import SearchResults


class FailureKind(StrEnum):
    SPAWN = "spawn"
    EXIT = "exit"
    PARSE = "parse"
    TIMEOUT = "timeout"


@dataclass(frozen=True)
class QueryFailure:
    """Why a query produced no result set."""

    kind: FailureKind
    message: str

    @property
    def timed_out(self) -> bool:
        return self.kind is FailureKind.TIMEOUT

    def __str__(self) -> str:
        return f"{self.kind}: {self.message}"


Outcome: TypeAlias = Result[SearchResults, QueryFailure]


@dataclass(frozen=True)
class QueryOutcome:
    """Outcome of one debounced query attempt, tagged with its token."""

    token: int
    query: str
    outcome: Outcome
