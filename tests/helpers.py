"""Helpers shared by the qpick tests."""

from __future__ import annotations

import asyncio
from collections.abc import Callable

from qpick.models.search import SearchResults


def config_document(
    executable: str = "search",
    args: list[str] | None = None,
    timeout_millis: int = 0,
    display_template: str = "{one_based_index}. {title}",
    **extra: object,
) -> dict[str, object]:
    return {
        "query_command": {"executable": executable, "args": args if args is not None else ["{query}"]},
        "timeout_millis": timeout_millis,
        "display_template": display_template,
        **extra,
    }


def make_results(*titles: str, **extra: object) -> SearchResults:
    return SearchResults.model_validate(
        {
            "results": [
                {"identifier": f"id-{i}", "title": title, "confidence": 1.0 - i / 10, **extra}
                for i, title in enumerate(titles)
            ]
        }
    )


async def wait_until(predicate: Callable[[], bool], timeout: float = 3.0) -> None:
    """Poll ``predicate`` on the running loop until it holds."""
    loop = asyncio.get_running_loop()
    deadline = loop.time() + timeout
    while not predicate():
        if loop.time() > deadline:
            raise AssertionError("condition not reached in time")
        await asyncio.sleep(0.01)
