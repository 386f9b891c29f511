"""Configuration for qpick."""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Annotated

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from qpick.data.command import CommandTemplateError, QueryCommand, validate_command
from qpick.data.template import Template, TemplateCompileError, compile_template

logger = logging.getLogger(__name__)

DEFAULT_EXECUTION_TIMEOUT_MILLIS = 5000

Millis = Annotated[int, Field(ge=0, strict=True)]
PositiveMillis = Annotated[int, Field(gt=0, strict=True)]


class ConfigError(Exception):
    """The startup document is unusable. Fatal."""


class QueryCommandDocument(BaseModel):
    model_config = ConfigDict(extra="ignore")

    executable: str
    args: list[str] = Field(default_factory=list)


class ConfigDocument(BaseModel):
    """Startup document as read from stdin."""

    model_config = ConfigDict(extra="ignore")

    query_command: QueryCommandDocument
    timeout_millis: Millis
    display_template: str
    execution_timeout_millis: PositiveMillis | None = None


@dataclass(frozen=True)
class Config:
    """Application configuration with every template compiled."""

    query_command: QueryCommand
    timeout_millis: int
    display_template: Template
    execution_timeout_millis: int = DEFAULT_EXECUTION_TIMEOUT_MILLIS

    @property
    def debounce_seconds(self) -> float:
        return self.timeout_millis / 1000

    @property
    def execution_timeout_seconds(self) -> float:
        return self.execution_timeout_millis / 1000

    @classmethod
    def from_document(cls, document: ConfigDocument) -> Config:
        """Compile and validate every template in ``document``.

        Raises:
            ConfigError: a template is malformed or the command templates
                reference anything other than ``query``/``query_escaped``.
        """
        command = QueryCommand(
            executable=_compile("query_command.executable", document.query_command.executable),
            args=tuple(
                _compile(f"query_command.args[{i}]", arg)
                for i, arg in enumerate(document.query_command.args)
            ),
        )
        try:
            validate_command(command)
        except CommandTemplateError as exc:
            raise ConfigError(f"query_command: {exc}") from exc

        execution_timeout = document.execution_timeout_millis
        if execution_timeout is None:
            execution_timeout = max(document.timeout_millis, DEFAULT_EXECUTION_TIMEOUT_MILLIS)

        return cls(
            query_command=command,
            timeout_millis=document.timeout_millis,
            display_template=_compile("display_template", document.display_template),
            execution_timeout_millis=execution_timeout,
        )


def load_config(text: str | bytes) -> Config:
    """Parse and compile a JSON startup document."""
    try:
        document = ConfigDocument.model_validate_json(text)
    except ValidationError as exc:
        raise ConfigError(f"invalid config: {exc}") from exc
    config = Config.from_document(document)
    logger.info(
        "Loaded config: %d command argument(s), debounce %dms, execution timeout %dms",
        len(config.query_command.args),
        config.timeout_millis,
        config.execution_timeout_millis,
    )
    return config


def _compile(location: str, source: str) -> Template:
    try:
        return compile_template(source)
    except TemplateCompileError as exc:
        raise ConfigError(f"{location}: {exc}") from exc
