"""Tests for running the external search command."""

from __future__ import annotations

import asyncio
import os
import sys
import time
from pathlib import Path

import pytest
from result import Err, Ok

from helpers import wait_until
from qpick.data.command import Invocation
from qpick.data.executor import execute, parse_results
from qpick.models.outcome import FailureKind


def fake(script: Path, mode: str, *args: str) -> Invocation:
    return Invocation(sys.executable, (str(script), mode, *args))


def process_exists(pid: int) -> bool:
    try:
        os.kill(pid, 0)
    except ProcessLookupError:
        return False
    return True


@pytest.mark.asyncio
async def test_success_preserves_order_and_extra_fields(fake_search_script: Path) -> None:
    outcome = await execute(fake(fake_search_script, "ok", "beta alpha"), timeout=10)
    assert isinstance(outcome, Ok)
    results = outcome.ok_value.results
    assert [r.identifier for r in results] == ["id-beta", "id-alpha"]
    assert results[0].extra_fields == {"source": "fake"}


@pytest.mark.asyncio
async def test_nonzero_exit_reports_stderr(fake_search_script: Path) -> None:
    outcome = await execute(fake(fake_search_script, "fail"), timeout=10)
    assert isinstance(outcome, Err)
    assert outcome.err_value.kind is FailureKind.EXIT
    assert "search backend exploded" in outcome.err_value.message
    assert "exit status 3" in outcome.err_value.message


@pytest.mark.asyncio
async def test_invalid_output_is_a_parse_failure(fake_search_script: Path) -> None:
    outcome = await execute(fake(fake_search_script, "garbage"), timeout=10)
    assert isinstance(outcome, Err)
    assert outcome.err_value.kind is FailureKind.PARSE


@pytest.mark.asyncio
async def test_missing_executable_is_a_spawn_failure(tmp_path: Path) -> None:
    outcome = await execute(Invocation(str(tmp_path / "no-such-binary")), timeout=10)
    assert isinstance(outcome, Err)
    assert outcome.err_value.kind is FailureKind.SPAWN


@pytest.mark.asyncio
async def test_timeout_kills_the_process(fake_search_script: Path, tmp_path: Path) -> None:
    pid_file = tmp_path / "pid"
    started = time.monotonic()
    outcome = await execute(fake(fake_search_script, "hang", "", str(pid_file)), timeout=0.5)
    elapsed = time.monotonic() - started

    assert isinstance(outcome, Err)
    assert outcome.err_value.timed_out
    assert 0.45 <= elapsed < 10
    assert not process_exists(int(pid_file.read_text()))


@pytest.mark.asyncio
async def test_cancellation_kills_the_process(fake_search_script: Path, tmp_path: Path) -> None:
    pid_file = tmp_path / "pid"
    task = asyncio.create_task(execute(fake(fake_search_script, "hang", "", str(pid_file)), 30))
    await wait_until(lambda: pid_file.exists() and pid_file.read_text() != "", timeout=10)

    task.cancel()
    with pytest.raises(asyncio.CancelledError):
        await task
    assert not process_exists(int(pid_file.read_text()))


def test_parse_results_requires_schema() -> None:
    missing_title = b'{"results": [{"identifier": "a", "confidence": 1}]}'
    outcome = parse_results(missing_title)
    assert isinstance(outcome, Err)
    assert "title" in outcome.err_value.message


def test_parse_results_accepts_empty_list() -> None:
    outcome = parse_results('{"results": []}')
    assert isinstance(outcome, Ok)
    assert outcome.ok_value.results == ()


@pytest.mark.parametrize("payload", ["{}", '{"error": "backend down"}'])
def test_parse_results_requires_results_key(payload: str) -> None:
    outcome = parse_results(payload)
    assert isinstance(outcome, Err)
    assert outcome.err_value.kind is FailureKind.PARSE
    assert "results" in outcome.err_value.message


def test_parse_results_rejects_string_confidence() -> None:
    outcome = parse_results('{"results": [{"identifier": "a", "title": "A", "confidence": "0.5"}]}')
    assert isinstance(outcome, Err)
    assert outcome.err_value.kind is FailureKind.PARSE
    assert "confidence" in outcome.err_value.message
