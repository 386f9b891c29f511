"""Run the external search command and parse its JSON output."""

from __future__ import annotations

import asyncio
import logging
from typing import TYPE_CHECKING

from pydantic import ValidationError
from result import Err, Ok

from qpick.models.outcome import FailureKind, Outcome, QueryFailure
from qpick.models.search import SearchResults

if TYPE_CHECKING:
    from qpick.data.command import Invocation

logger = logging.getLogger(__name__)

_STDERR_LIMIT = 500


async def execute(invocation: Invocation, timeout: float) -> Outcome:
    """Spawn ``invocation``, wait at most ``timeout`` seconds and parse stdout.

    The child is killed when the deadline passes or when the calling task is
    cancelled; in the latter case ``CancelledError`` propagates after the
    process has been reaped.
    """
    try:
        process = await asyncio.create_subprocess_exec(
            invocation.executable,
            *invocation.args,
            stdin=asyncio.subprocess.DEVNULL,
            stdout=asyncio.subprocess.PIPE,
            stderr=asyncio.subprocess.PIPE,
        )
    except OSError as exc:
        logger.info("Failed to spawn %s: %s", invocation, exc)
        return Err(QueryFailure(FailureKind.SPAWN, f"cannot run {invocation.executable}: {exc}"))

    logger.debug("Spawned pid %s: %s", process.pid, invocation)
    try:
        stdout, stderr = await asyncio.wait_for(process.communicate(), timeout)
    except TimeoutError:
        await _kill(process)
        logger.info("Killed pid %s after %.3fs timeout", process.pid, timeout)
        return Err(QueryFailure(FailureKind.TIMEOUT, f"query timed out after {timeout:g}s"))
    except asyncio.CancelledError:
        await _kill(process)
        logger.debug("Killed pid %s for a superseded query", process.pid)
        raise

    if process.returncode != 0:
        detail = stderr.decode("utf-8", errors="replace").strip()[:_STDERR_LIMIT]
        message = f"exit status {process.returncode}"
        if detail:
            message = f"{detail}, {message}"
        logger.info("Query command failed: %s", message)
        return Err(QueryFailure(FailureKind.EXIT, message))

    return parse_results(stdout)


def parse_results(payload: bytes | str) -> Outcome:
    """Validate a ``{"results": [...]}`` document."""
    try:
        return Ok(SearchResults.model_validate_json(payload))
    except ValidationError as exc:
        logger.info("Invalid query output: %s", exc)
        return Err(QueryFailure(FailureKind.PARSE, _summarize(exc)))


def _summarize(exc: ValidationError) -> str:
    errors = exc.errors()
    if not errors:
        return "invalid search output"
    first = errors[0]
    location = ".".join(str(part) for part in first.get("loc", ()))
    message = first.get("msg", "invalid value")
    if location:
        message = f"{location}: {message}"
    if len(errors) > 1:
        message = f"{message} (+{len(errors) - 1} more)"
    return f"invalid search output: {message}"


async def _kill(process: asyncio.subprocess.Process) -> None:
    if process.returncode is None:
        try:
            process.kill()
        except ProcessLookupError:
            pass
    await asyncio.shield(process.wait())
