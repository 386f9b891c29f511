"""Tests for the template engine."""

from __future__ import annotations

import pytest

from qpick.data.template import (
    Conditional,
    TemplateCompileError,
    UndefinedVariableError,
    Variable,
    compile_template,
    format_value,
)


def render(source: str, **context: object) -> str:
    return compile_template(source).render(context)


class TestSubstitution:
    def test_variable_is_replaced(self) -> None:
        assert render("{title}", title="Hello") == "Hello"

    def test_literal_text_around_variables(self) -> None:
        assert render("[{index}] {title}!", index=3, title="x") == "[3] x!"

    def test_whitespace_inside_braces_is_ignored(self) -> None:
        assert render("{ title }", title="Hi") == "Hi"

    def test_missing_variable_raises(self) -> None:
        with pytest.raises(UndefinedVariableError) as info:
            render("{missing}", title="Hello")
        assert info.value.name == "missing"

    def test_dotted_names_reach_into_nested_fields(self) -> None:
        assert render("{meta.author}", meta={"author": "ada"}) == "ada"

    def test_dotted_name_through_scalar_is_undefined(self) -> None:
        with pytest.raises(UndefinedVariableError):
            render("{meta.author}", meta="flat")

    def test_template_is_reusable(self) -> None:
        template = compile_template("{title}")
        assert template.render({"title": "a"}) == "a"
        assert template.render({"title": "b"}) == "b"

    def test_variables_are_collected(self) -> None:
        template = compile_template("{a} {{ if b == c }}{d}{{ else }}{e}{{ endif }}")
        assert template.variables == {"a", "b", "c", "d", "e"}


class TestEscaping:
    def test_escaped_reference_is_literal(self) -> None:
        assert render("\\{foo}") == "{foo}"

    def test_escaped_reference_ignores_defined_variable(self) -> None:
        assert render("\\{foo}", foo="bar") == "{foo}"

    def test_escaped_run_keeps_nested_braces(self) -> None:
        assert render("\\{a {b} c} {x}", x="1") == "{a {b} c} 1"

    def test_escaped_closing_brace(self) -> None:
        assert render("a\\}b") == "a}b"

    def test_other_backslashes_are_literal(self) -> None:
        assert render("C:\\path\\{name}", name="n") == "C:\\path{name}"

    def test_unmatched_escaped_run(self) -> None:
        with pytest.raises(TemplateCompileError):
            compile_template("\\{foo")


class TestConditionals:
    def test_presence(self) -> None:
        template = compile_template("{{ if author }}by {author}{{ endif }}")
        assert template.render({"author": "ada"}) == "by ada"
        assert template.render({}) == ""

    def test_else_branch(self) -> None:
        template = compile_template("{{ if author }}{author}{{ else }}anonymous{{ endif }}")
        assert template.render({"author": ""}) == "anonymous"

    def test_not(self) -> None:
        template = compile_template("{{ if not tags }}untagged{{ endif }}")
        assert template.render({}) == "untagged"
        assert template.render({"tags": ["a"]}) == ""

    def test_equality_with_string(self) -> None:
        template = compile_template('{{ if kind == "dir" }}/{{ endif }}{title}')
        assert template.render({"kind": "dir", "title": "src"}) == "/src"
        assert template.render({"kind": "file", "title": "a.py"}) == "a.py"

    def test_inequality_with_number(self) -> None:
        template = compile_template("{{ if index != 0 }}, {{ endif }}{title}")
        assert template.render({"index": 0, "title": "a"}) == "a"
        assert template.render({"index": 2, "title": "c"}) == ", c"

    def test_equality_against_variable(self) -> None:
        template = compile_template("{{ if index == display_index }}top{{ endif }}")
        assert template.render({"index": 4, "display_index": 4}) == "top"
        assert template.render({"index": 4, "display_index": 0}) == ""

    def test_booleans_do_not_equal_numbers(self) -> None:
        template = compile_template("{{ if flag == 1 }}one{{ endif }}")
        assert template.render({"flag": True}) == ""
        assert compile_template("{{ if flag == true }}yes{{ endif }}").render({"flag": True}) == "yes"

    def test_nested_blocks(self) -> None:
        template = compile_template(
            "{{ if a }}A{{ if b }}B{{ else }}-{{ endif }}{{ else }}none{{ endif }}"
        )
        assert template.render({"a": 1, "b": 1}) == "AB"
        assert template.render({"a": 1}) == "A-"
        assert template.render({}) == "none"

    def test_undefined_variable_only_fails_in_taken_branch(self) -> None:
        template = compile_template("{{ if a }}{missing}{{ endif }}ok")
        assert template.render({}) == "ok"
        with pytest.raises(UndefinedVariableError):
            template.render({"a": True})

    def test_parsed_structure(self) -> None:
        template = compile_template("{{ if a }}{b}{{ endif }}")
        (node,) = template.nodes
        assert isinstance(node, Conditional)
        assert node.then == (Variable("b"),)


class TestCompileErrors:
    @pytest.mark.parametrize(
        "source",
        [
            "{title",
            "title}",
            "{}",
            "{1abc}",
            "{a {b}}",
            "{{ if a }}x",
            "{{ endif }}",
            "{{ else }}",
            "{{ if }}x{{ endif }}",
            "{{ if a }}{{ else }}{{ else }}{{ endif }}",
            "{{ for x in y }}{{ endfor }}",
            "{{ if a == }}x{{ endif }}",
            "{{ if a == b c }}x{{ endif }}",
            "{{ if a",
        ],
    )
    def test_malformed_sources(self, source: str) -> None:
        with pytest.raises(TemplateCompileError):
            compile_template(source)

    def test_error_reports_position(self) -> None:
        with pytest.raises(TemplateCompileError) as info:
            compile_template("abc }")
        assert info.value.position == 4


class TestFormatValue:
    @pytest.mark.parametrize(
        ("value", "expected"),
        [
            ("text", "text"),
            (3, "3"),
            (1.0, "1"),
            (0.25, "0.25"),
            (True, "true"),
            (None, ""),
            ([1, "a"], '[1,"a"]'),
        ],
    )
    def test_formats(self, value: object, expected: str) -> None:
        assert format_value(value) == expected
