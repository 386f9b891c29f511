"""Render the configured query command into a concrete process invocation."""

from __future__ import annotations

import shlex
from dataclasses import dataclass

from qpick.data.template import Template, TemplateRenderError

COMMAND_VARIABLES = frozenset({"query", "query_escaped"})

_PROBE_QUERY = "probe query"


class CommandTemplateError(ValueError):
    """A command template cannot be rendered in the command-building context."""


@dataclass(frozen=True)
class QueryCommand:
    """Compiled executable and argument templates."""

    executable: Template
    args: tuple[Template, ...] = ()

    def templates(self) -> tuple[Template, ...]:
        return (self.executable, *self.args)


@dataclass(frozen=True)
class Invocation:
    """A fully rendered process invocation."""

    executable: str
    args: tuple[str, ...] = ()

    def argv(self) -> list[str]:
        return [self.executable, *self.args]

    def __str__(self) -> str:
        return shlex.join(self.argv())


def command_context(query: str) -> dict[str, str]:
    """Variables visible to command templates."""
    return {"query": query, "query_escaped": shlex.quote(query)}


def build_invocation(command: QueryCommand, query: str) -> Invocation:
    """Render every command template for ``query``."""
    context = command_context(query)
    return Invocation(
        executable=command.executable.render(context),
        args=tuple(arg.render(context) for arg in command.args),
    )


def validate_command(command: QueryCommand) -> None:
    """Fail fast on templates that reference anything but the query variables.

    Every branch is checked statically, then a probe render is done so that
    rendering at query time cannot fail.

    Raises:
        CommandTemplateError: on an unsupported variable or a failed probe.
    """
    for template in command.templates():
        unsupported = sorted(template.variables - COMMAND_VARIABLES)
        if unsupported:
            raise CommandTemplateError(
                f"template {template.source!r} references unsupported "
                f"variable(s): {', '.join(unsupported)}"
            )
    try:
        invocation = build_invocation(command, _PROBE_QUERY)
    except TemplateRenderError as exc:
        raise CommandTemplateError(str(exc)) from exc
    if not invocation.executable:
        raise CommandTemplateError("executable renders to an empty string")
