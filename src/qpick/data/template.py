"""Small template language for command lines and result rows.

Supported syntax::

    {name}              substitute a context value (``{extra.field}`` walks nested maps)
    \\{name}             emit ``{name}`` literally, nothing is evaluated
    \\}                  emit a literal ``}``
    {{ if name }}       render the block when ``name`` is present and truthy
    {{ if not name }}   the opposite
    {{ if name == "x" }}, {{ if name != 3 }}
    {{ else }}, {{ endif }}

Templates are compiled once and rendered many times; rendering never mutates
the template or the context.
"""

from __future__ import annotations

import json
import re
from collections.abc import Mapping
from dataclasses import dataclass, field
from typing import TypeAlias

_NAME_RE = re.compile(r"[A-Za-z_][A-Za-z0-9_]*(?:\.[A-Za-z_][A-Za-z0-9_]*)*\Z")
_INT_RE = re.compile(r"-?\d+\Z")
_FLOAT_RE = re.compile(r"-?\d+\.\d+\Z")

_MISSING = object()


class TemplateError(Exception):
    """Base class for template failures."""


class TemplateCompileError(TemplateError):
    """Raised when a template source is malformed."""

    def __init__(self, message: str, position: int) -> None:
        super().__init__(f"{message} (at position {position})")
        self.position = position


class TemplateRenderError(TemplateError):
    """Raised when a compiled template cannot be rendered against a context."""


class UndefinedVariableError(TemplateRenderError):
    """A referenced variable is missing from the render context."""

    def __init__(self, name: str) -> None:
        super().__init__(f"undefined variable '{name}'")
        self.name = name


@dataclass(frozen=True)
class Text:
    value: str


@dataclass(frozen=True)
class Variable:
    name: str


@dataclass(frozen=True)
class Literal:
    value: str | int | float | bool


@dataclass(frozen=True)
class Condition:
    """``name`` tested with ``op``: ``truthy``, ``not``, ``==`` or ``!=``."""

    name: str
    op: str = "truthy"
    operand: Literal | Variable | None = None


@dataclass(frozen=True)
class Conditional:
    condition: Condition
    then: tuple[Node, ...]
    otherwise: tuple[Node, ...] = ()


Node: TypeAlias = Text | Variable | Conditional


@dataclass(frozen=True)
class Template:
    """A compiled template."""

    source: str
    nodes: tuple[Node, ...]
    variables: frozenset[str] = field(default_factory=frozenset)

    def render(self, context: Mapping[str, object]) -> str:
        """Render against ``context``.

        Raises:
            UndefinedVariableError: a substituted name is not in ``context``.
        """
        parts: list[str] = []
        _render_nodes(self.nodes, context, parts)
        return "".join(parts)


def compile_template(source: str) -> Template:
    """Compile ``source`` into a reusable :class:`Template`.

    Raises:
        TemplateCompileError: on unmatched braces, bad names or malformed
            ``{{ ... }}`` blocks.
    """
    nodes = _parse(_tokenize(source))
    return Template(source=source, nodes=nodes, variables=frozenset(_collect_names(nodes)))


def format_value(value: object) -> str:
    """String form of a context value as it appears in rendered output."""
    match value:
        case None:
            return ""
        case bool():
            return "true" if value else "false"
        case str():
            return value
        case int():
            return str(value)
        case float():
            return str(int(value)) if value.is_integer() else repr(value)
        case _:
            return json.dumps(value, separators=(",", ":"), ensure_ascii=False)


# ── Tokenizer ──


@dataclass(frozen=True)
class _Tag:
    content: str
    position: int


def _tokenize(source: str) -> list[Text | Variable | _Tag]:
    tokens: list[Text | Variable | _Tag] = []
    buffer: list[str] = []

    def flush() -> None:
        if buffer:
            tokens.append(Text("".join(buffer)))
            buffer.clear()

    i = 0
    length = len(source)
    while i < length:
        char = source[i]
        if char == "\\" and i + 1 < length and source[i + 1] == "{":
            end = _matching_brace(source, i + 1)
            buffer.append(source[i + 1 : end + 1])
            i = end + 1
        elif char == "\\" and i + 1 < length and source[i + 1] == "}":
            buffer.append("}")
            i += 2
        elif char == "{" and source.startswith("{{", i):
            end = source.find("}}", i + 2)
            if end == -1:
                raise TemplateCompileError("unterminated '{{' block", i)
            flush()
            tokens.append(_Tag(source[i + 2 : end].strip(), i))
            i = end + 2
        elif char == "{":
            end = source.find("}", i + 1)
            if end == -1:
                raise TemplateCompileError("unmatched '{'", i)
            inner = source[i + 1 : end]
            if "{" in inner:
                raise TemplateCompileError("unexpected '{' in variable reference", i + 1 + inner.index("{"))
            name = inner.strip()
            if not _NAME_RE.match(name):
                raise TemplateCompileError(f"invalid variable name {name!r}", i)
            flush()
            tokens.append(Variable(name))
            i = end + 1
        elif char == "}":
            raise TemplateCompileError("unmatched '}'", i)
        else:
            buffer.append(char)
            i += 1
    flush()
    return tokens


def _matching_brace(source: str, start: int) -> int:
    depth = 0
    for index in range(start, len(source)):
        if source[index] == "{":
            depth += 1
        elif source[index] == "}":
            depth -= 1
            if depth == 0:
                return index
    raise TemplateCompileError("unmatched '{' in escaped run", start)


# ── Parser ──


@dataclass
class _OpenBlock:
    condition: Condition
    position: int
    then: list[Node] = field(default_factory=list)
    otherwise: list[Node] | None = None

    def target(self) -> list[Node]:
        return self.then if self.otherwise is None else self.otherwise

    def close(self) -> Conditional:
        return Conditional(self.condition, tuple(self.then), tuple(self.otherwise or ()))


def _parse(tokens: list[Text | Variable | _Tag]) -> tuple[Node, ...]:
    root: list[Node] = []
    stack: list[_OpenBlock] = []

    for token in tokens:
        target = stack[-1].target() if stack else root
        if not isinstance(token, _Tag):
            target.append(token)
            continue

        keyword, _, rest = token.content.partition(" ")
        rest = rest.strip()
        match keyword:
            case "if":
                stack.append(_OpenBlock(_parse_condition(rest, token.position), token.position))
            case "else":
                if not stack:
                    raise TemplateCompileError("'else' without 'if'", token.position)
                if rest:
                    raise TemplateCompileError("unexpected text after 'else'", token.position)
                if stack[-1].otherwise is not None:
                    raise TemplateCompileError("duplicate 'else'", token.position)
                stack[-1].otherwise = []
            case "endif":
                if not stack:
                    raise TemplateCompileError("'endif' without 'if'", token.position)
                if rest:
                    raise TemplateCompileError("unexpected text after 'endif'", token.position)
                block = stack.pop()
                (stack[-1].target() if stack else root).append(block.close())
            case _:
                raise TemplateCompileError(f"unknown block {keyword!r}", token.position)

    if stack:
        raise TemplateCompileError("'if' without 'endif'", stack[-1].position)
    return tuple(root)


def _parse_condition(expression: str, position: int) -> Condition:
    if not expression:
        raise TemplateCompileError("missing condition", position)

    operators = [(expression.find(op), op) for op in ("==", "!=") if op in expression]
    if operators:
        index, op = min(operators)
        name = expression[:index].strip()
        _check_name(name, position)
        return Condition(name, op, _parse_operand(expression[index + 2 :].strip(), position))

    negate, _, name = expression.partition(" ")
    if negate == "not":
        name = name.strip()
        _check_name(name, position)
        return Condition(name, "not")

    _check_name(expression, position)
    return Condition(expression)


def _parse_operand(text: str, position: int) -> Literal | Variable:
    if len(text) >= 2 and text[0] == text[-1] and text[0] in "\"'":
        return Literal(text[1:-1])
    if text in ("true", "false"):
        return Literal(text == "true")
    if _INT_RE.match(text):
        return Literal(int(text))
    if _FLOAT_RE.match(text):
        return Literal(float(text))
    if _NAME_RE.match(text):
        return Variable(text)
    raise TemplateCompileError(f"invalid comparison value {text!r}", position)


def _check_name(name: str, position: int) -> None:
    if not _NAME_RE.match(name):
        raise TemplateCompileError(f"invalid variable name {name!r}", position)


def _collect_names(nodes: tuple[Node, ...]) -> set[str]:
    names: set[str] = set()
    for node in nodes:
        match node:
            case Variable(name):
                names.add(name)
            case Conditional(condition, then, otherwise):
                names.add(condition.name)
                if isinstance(condition.operand, Variable):
                    names.add(condition.operand.name)
                names |= _collect_names(then)
                names |= _collect_names(otherwise)
    return names


# ── Renderer ──


def _render_nodes(nodes: tuple[Node, ...], context: Mapping[str, object], parts: list[str]) -> None:
    for node in nodes:
        match node:
            case Text(value):
                parts.append(value)
            case Variable(name):
                value = _lookup(context, name)
                if value is _MISSING:
                    raise UndefinedVariableError(name)
                parts.append(format_value(value))
            case Conditional(condition, then, otherwise):
                branch = then if _evaluate(condition, context) else otherwise
                _render_nodes(branch, context, parts)


def _lookup(context: Mapping[str, object], name: str) -> object:
    if name in context:
        return context[name]
    head, *rest = name.split(".")
    value = context.get(head, _MISSING)
    for part in rest:
        if not isinstance(value, Mapping):
            return _MISSING
        value = value.get(part, _MISSING)
    return value


def _evaluate(condition: Condition, context: Mapping[str, object]) -> bool:
    value = _lookup(context, condition.name)
    match condition.op:
        case "not":
            return not _truthy(value)
        case "==" | "!=":
            operand = condition.operand
            if isinstance(operand, Variable):
                other = _lookup(context, operand.name)
            else:
                other = operand.value if operand is not None else _MISSING
            equal = _equals(value, other)
            return equal if condition.op == "==" else not equal
        case _:
            return _truthy(value)


def _truthy(value: object) -> bool:
    if value is _MISSING or value is None:
        return False
    if isinstance(value, bool):
        return value
    if isinstance(value, int | float):
        return value != 0
    if isinstance(value, str | list | tuple | dict):
        return len(value) > 0
    return True


def _equals(left: object, right: object) -> bool:
    if left is _MISSING or right is _MISSING:
        return False
    # bool is an int subclass; only compare it to another bool
    if isinstance(left, bool) or isinstance(right, bool):
        return isinstance(left, bool) and isinstance(right, bool) and left == right
    return left == right
