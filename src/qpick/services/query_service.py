"""Query service: build the invocation for a query and execute it."""

from __future__ import annotations

from collections.abc import Awaitable, Callable
from typing import TYPE_CHECKING, TypeAlias

from result import Err

from qpick.data import executor
from qpick.data.command import Invocation, build_invocation
from qpick.data.template import TemplateRenderError
from qpick.models.outcome import FailureKind, Outcome, QueryFailure

if TYPE_CHECKING:
    from qpick.config import Config

Executor: TypeAlias = Callable[[Invocation, float], Awaitable[Outcome]]


class QueryService:
    """Runs one query through the configured external command."""

    def __init__(self, config: Config, execute: Executor = executor.execute) -> None:
        self._config = config
        self._execute = execute

    async def run(self, query: str) -> Outcome:
        try:
            invocation = build_invocation(self._config.query_command, query)
        except TemplateRenderError as exc:
            return Err(QueryFailure(FailureKind.SPAWN, f"cannot build command: {exc}"))
        return await self._execute(invocation, self._config.execution_timeout_seconds)
