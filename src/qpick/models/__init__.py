"""Models for qpick."""

from qpick.models.actions import KeyAction, KeyMessage, Message
from qpick.models.outcome import FailureKind, Outcome, QueryFailure, QueryOutcome
from qpick.models.search import SearchResult, SearchResults

__all__ = [
    "FailureKind",
    "KeyAction",
    "KeyMessage",
    "Message",
    "Outcome",
    "QueryFailure",
    "QueryOutcome",
    "SearchResult",
    "SearchResults",
]
