"""
Тесты генератора кода: поток спанов -> инструкции.
"""

import logging

from fragtpl.template.codegen import CodeGenerator, generate_program
from fragtpl.template.lexer import extract_spans
from fragtpl.template.nodes import (
    AppendLiteral, AppendExpr, AssignValue, OpenLoop, CloseLoop,
    OpenIf, ElseIf, Else, CloseIf, CaptureValue,
    OpenHasContent, OpenContent, CloseContent, CloseHasContent,
    format_program,
)


def gen(text, include_handler=None):
    return generate_program(extract_spans(text).segments, include_handler)


class TestCodeGenerator:

    def test_literal_and_expression(self):
        assert gen("a{$x}b") == [
            AppendLiteral("a"),
            AppendExpr('__scope__["x"]', escape=True, source="{$x}"),
            AppendLiteral("b"),
        ]

    def test_raw_forms(self):
        program = gen("{@$x}{{ $y }}")
        assert program == [
            AppendExpr('__scope__["x"]', escape=False, source="{@$x}"),
            AppendExpr('__scope__["y"]', escape=False, source="{{ $y }}"),
        ]

    def test_assign(self):
        assert gen("{assign n = $a * 2}") == [
            AssignValue("n", '__scope__["a"] * 2', "{assign n = $a * 2}"),
        ]

    def test_range_loop(self):
        program = gen("{for i=0;i<3;i++}{$i}{/for}")

        loop = program[0]
        assert isinstance(loop, OpenLoop)
        assert (loop.name, loop.mode) == ("i", "range")
        assert (loop.init, loop.cond, loop.step) == ("0", "i<3", "i += 1")
        assert isinstance(program[1], AppendExpr)
        assert program[2] == CloseLoop()

    def test_iter_loop(self):
        program = gen("{for x of $items}{/for}")

        loop = program[0]
        assert (loop.name, loop.mode, loop.iterable) == ("x", "of", '__scope__["items"]')

    def test_if_chain(self):
        program = gen("{if $a}1{else if $b}2{else}3{/if}")

        assert [type(i) for i in program] == [
            OpenIf, AppendLiteral, ElseIf, AppendLiteral, Else, AppendLiteral, CloseIf,
        ]
        assert program[0].cond == '__scope__["a"]'
        assert program[2].cond == '__scope__["b"]'

    def test_serialize(self):
        assert gen("{serialize $obj}") == [CaptureValue('__scope__["obj"]', "{serialize $obj}")]

    def test_content_blocks(self):
        program = gen("{hascontent}<p>{content}{$x}{/content}</p>{/hascontent}")

        assert [type(i) for i in program] == [
            OpenHasContent, AppendLiteral, OpenContent, AppendExpr,
            CloseContent, AppendLiteral, CloseHasContent,
        ]

    def test_literal_braces_restored(self):
        assert gen("{literal}{a}{/literal}") == [AppendLiteral("{a}")]

    def test_braces_in_expressions_restored(self):
        """Экранированные скобки внутри выражения становятся настоящими."""
        program = gen(r'{{ "\{" }}')
        assert program[0].expr == '"{"'

    def test_include_inlined(self):
        seen = []

        def handler(name):
            seen.append(name)
            return f"<{name}/>"

        assert gen("a{include footer}b", handler) == [
            AppendLiteral("a"), AppendLiteral("<footer/>"), AppendLiteral("b"),
        ]
        assert seen == ["footer"]

    def test_include_without_handler(self, caplog):
        with caplog.at_level(logging.WARNING, logger="fragtpl.template.codegen"):
            program = CodeGenerator().generate(extract_spans("{include footer}").segments)

        assert program == []
        assert "footer" in caplog.text

    def test_comments_produce_nothing(self):
        assert gen("{* nothing *}") == []


def test_format_program_indents_blocks():
    listing = format_program(gen("{for x of $a}{if $x}{$x}{/if}{/for}"))
    lines = listing.splitlines()

    assert len(lines) == 5
    assert "OpenLoop" in lines[0]
    assert lines[2].split("AppendExpr")[0].endswith("    ")
    assert "CloseLoop" in lines[4]
