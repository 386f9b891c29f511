"""Debounced query scheduling with generation tokens."""

from __future__ import annotations

import asyncio
import logging
from collections.abc import Callable
from typing import TYPE_CHECKING

from qpick.models.outcome import QueryOutcome
from qpick.ui.async_bridge import schedule

if TYPE_CHECKING:
    from qpick.services.query_service import QueryService

logger = logging.getLogger(__name__)


class DebounceScheduler:
    """Runs a query once its text has been stable for ``delay`` seconds.

    Every text change supersedes the previous attempt: its timer is dropped,
    its process (if already running) is killed, and a fresh token is issued.
    Outcomes are handed to ``post`` tagged with the token of their attempt, so
    the consumer can drop anything that is not :attr:`latest_token`.
    """

    def __init__(
        self,
        service: QueryService,
        delay: float,
        post: Callable[[QueryOutcome], None],
    ) -> None:
        self._service = service
        self._delay = delay
        self._post = post
        self._token = 0
        self._task: asyncio.Task[None] | None = None

    @property
    def latest_token(self) -> int:
        return self._token

    @property
    def live(self) -> bool:
        return self._task is not None and not self._task.done()

    def on_query_changed(self, text: str) -> int:
        """Supersede pending work and schedule ``text``. Returns the new token."""
        self.cancel()
        self._token += 1
        token = self._token
        self._task = schedule(self._run(token, text))
        logger.debug("Scheduled query %d in %.3fs: %r", token, self._delay, text)
        return token

    def cancel(self) -> None:
        """Drop the pending timer or kill the running query, if any."""
        if self._task is not None and not self._task.done():
            logger.debug("Cancelling query %d", self._token)
            self._task.cancel()
        self._task = None

    async def _run(self, token: int, text: str) -> None:
        await asyncio.sleep(self._delay)
        logger.debug("Running query %d: %r", token, text)
        outcome = await self._service.run(text)
        self._post(QueryOutcome(token=token, query=text, outcome=outcome))
