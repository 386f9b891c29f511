"""Application bootstrap: wire the picker together and run it."""

from __future__ import annotations

import asyncio
import logging
from pathlib import Path
from typing import TYPE_CHECKING

from qpick.models.actions import Message
from qpick.services.query_service import QueryService
from qpick.ui.async_bridge import drain_tasks
from qpick.ui.loop import InteractionLoop
from qpick.ui.scheduler import DebounceScheduler
from qpick.ui.state import UIState
from qpick.ui.terminal import TerminalView

if TYPE_CHECKING:
    from prompt_toolkit.input import Input
    from prompt_toolkit.output import Output

    from qpick.config import Config

logger = logging.getLogger(__name__)

LOG_FORMAT = "%(levelname)s %(name)s: %(message)s"


def configure_logging(log_file: Path | None = None, verbose: bool = False) -> None:
    """Send log records to ``log_file``; stdout and stderr belong to the picker."""
    handler: logging.Handler = (
        logging.FileHandler(log_file, encoding="utf-8") if log_file else logging.NullHandler()
    )
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.INFO,
        format=LOG_FORMAT,
        handlers=[handler],
        force=True,
    )


async def run_picker(
    config: Config,
    *,
    input: Input | None = None,
    output: Output | None = None,
) -> str | None:
    """Run the interactive picker and return the chosen identifier, if any."""
    messages: asyncio.Queue[Message] = asyncio.Queue()
    scheduler = DebounceScheduler(QueryService(config), config.debounce_seconds, messages.put_nowait)
    state = UIState()
    view = TerminalView(config, state, messages.put_nowait, input=input, output=output)
    interaction = InteractionLoop(scheduler, messages, state, on_redraw=view.invalidate)

    logger.info("Starting picker")
    try:
        return await view.run(interaction.run())
    finally:
        scheduler.cancel()
        await drain_tasks()


def run_app(config: Config) -> str | None:
    """Entry point: run the picker on a fresh event loop."""
    return asyncio.run(run_picker(config))
