"""Render result rows through the display template."""

from __future__ import annotations

import logging
from dataclasses import dataclass, replace
from typing import TYPE_CHECKING

from qpick.data.template import TemplateRenderError

if TYPE_CHECKING:
    from qpick.data.template import Template
    from qpick.models.search import SearchResult
    from qpick.ui.state import UIState

logger = logging.getLogger(__name__)

NO_ENTRIES = "no entries found"


@dataclass(frozen=True)
class DisplayRow:
    index: int
    display_index: int
    text: str
    selected: bool = False
    failed: bool = False


def row_context(result: SearchResult, index: int, display_index: int) -> dict[str, object]:
    """Template variables for one row. Extra result fields are passed through."""
    context: dict[str, object] = dict(result.extra_fields)
    context.update(
        identifier=result.identifier,
        title=result.title,
        confidence=result.confidence,
        index=index,
        display_index=display_index,
        one_based_index=index + 1,
        one_based_display_index=display_index + 1,
    )
    return context


def render_row(template: Template, result: SearchResult, index: int, display_index: int) -> DisplayRow:
    try:
        text = template.render(row_context(result, index, display_index))
    except TemplateRenderError as exc:
        logger.debug("Display template failed for %r: %s", result.identifier, exc)
        return DisplayRow(index, display_index, f"<display error: {exc}>", failed=True)
    return DisplayRow(index, display_index, text)


def render_rows(template: Template, state: UIState) -> list[DisplayRow]:
    """Render the rows inside the viewport; rows outside it are skipped."""
    if state.results is None:
        return []
    rows: list[DisplayRow] = []
    for index in state.visible_range():
        row = render_row(template, state.results.results[index], index, index - state.scroll_offset)
        if index == state.selection:
            row = replace(row, selected=True)
        rows.append(row)
    return rows
