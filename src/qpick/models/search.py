"""Search result models."""

from __future__ import annotations

from typing import Any

from pydantic import BaseModel, ConfigDict, Field


class SearchResult(BaseModel):
    """A single entry reported by the external search command.

    Fields beyond the three required ones are kept and exposed to the display
    template.
    """

    model_config = ConfigDict(extra="allow", frozen=True)

    identifier: str
    title: str
    confidence: float = Field(strict=True)

    @property
    def extra_fields(self) -> dict[str, Any]:
        return dict(self.model_extra or {})


class SearchResults(BaseModel):
    """Ordered result set, ranked by the external command."""

    model_config = ConfigDict(frozen=True)

    results: tuple[SearchResult, ...]

    def at(self, index: int) -> SearchResult | None:
        if 0 <= index < len(self.results):
            return self.results[index]
        return None
