"""Shared fixtures for qpick tests."""

from __future__ import annotations

import json
import sys
import textwrap
from collections.abc import Callable
from pathlib import Path

import pytest

from helpers import config_document
from qpick.config import Config, load_config

FAKE_SEARCH_SOURCE = textwrap.dedent(
    """
    import json
    import sys
    import time

    mode = sys.argv[1]
    query = sys.argv[2] if len(sys.argv) > 2 else ""

    if mode == "ok":
        words = query.split() or ["empty"]
        results = [
            {
                "identifier": f"id-{word}",
                "title": f"Title {word}",
                "confidence": 1.0 / (index + 1),
                "source": "fake",
            }
            for index, word in enumerate(words)
        ]
        print(json.dumps({"results": results}))
    elif mode == "fail":
        print("search backend exploded", file=sys.stderr)
        sys.exit(3)
    elif mode == "garbage":
        print("this is not json")
    elif mode == "hang":
        if len(sys.argv) > 3:
            with open(sys.argv[3], "w") as pid_file:
                pid_file.write(str(__import__("os").getpid()))
        time.sleep(60)
    """
)


@pytest.fixture
def fake_search_script(tmp_path: Path) -> Path:
    """Python script standing in for the external search command."""
    script = tmp_path / "fake_search.py"
    script.write_text(FAKE_SEARCH_SOURCE, encoding="utf-8")
    return script


@pytest.fixture
def make_config() -> Callable[..., Config]:
    """Build a compiled Config from keyword overrides."""

    def factory(**kwargs: object) -> Config:
        return load_config(json.dumps(config_document(**kwargs)))  # type: ignore[arg-type]

    return factory


@pytest.fixture
def fake_search_config(fake_search_script: Path, make_config: Callable[..., Config]) -> Callable[..., Config]:
    """Config whose command runs the fake search script in the given mode."""

    def factory(mode: str = "ok", **kwargs: object) -> Config:
        return make_config(
            executable=sys.executable,
            args=[str(fake_search_script), mode, "{query}"],
            **kwargs,
        )

    return factory

