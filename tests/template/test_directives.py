"""
Тесты грамматики директив.
"""

import pytest

from fragtpl.template.directives import (
    DirectiveKind, classify_span, lower_scope_refs, normalize_step, parse_directive,
)
from fragtpl.template.tokens import Span, SpanForm


class TestParseDirective:
    """Распознавание директив в порядке приоритета."""

    def test_assign(self):
        d = parse_directive("assign total = $a + $b")
        assert d.kind is DirectiveKind.ASSIGN
        assert d.name == "total"
        assert d.expr == "$a + $b"

    def test_assign_with_sigil_name(self):
        d = parse_directive("assign $x=1")
        assert d.kind is DirectiveKind.ASSIGN
        assert d.name == "x"
        assert d.expr == "1"

    def test_for_range(self):
        d = parse_directive("for i=0;i<3;i++")
        assert d.kind is DirectiveKind.FOR_RANGE
        assert (d.name, d.init, d.cond, d.step) == ("i", "0", "i<3", "i++")

    @pytest.mark.parametrize("keyword", ["for", "foreach"])
    @pytest.mark.parametrize("mode", ["of", "in"])
    def test_for_iter(self, keyword, mode):
        d = parse_directive(f"{keyword} $item {mode} $items")
        assert d.kind is DirectiveKind.FOR_ITER
        assert d.name == "item"
        assert d.mode == mode
        assert d.expr == "$items"

    @pytest.mark.parametrize("text", ["/for", "/foreach"])
    def test_end_for(self, text):
        assert parse_directive(text).kind is DirectiveKind.END_FOR

    def test_if_chain(self):
        assert parse_directive("if $a > 1").kind is DirectiveKind.IF
        assert parse_directive("if $a > 1").expr == "$a > 1"
        assert parse_directive("else if $b").kind is DirectiveKind.ELSE_IF
        assert parse_directive("else if $b").expr == "$b"
        assert parse_directive("else").kind is DirectiveKind.ELSE
        assert parse_directive("/if").kind is DirectiveKind.END_IF

    def test_serialize(self):
        d = parse_directive("serialize $obj")
        assert d.kind is DirectiveKind.SERIALIZE
        assert d.expr == "$obj"

    @pytest.mark.parametrize("text,kind", [
        ("hascontent", DirectiveKind.HASCONTENT),
        ("content", DirectiveKind.CONTENT),
        ("/content", DirectiveKind.END_CONTENT),
        ("/hascontent", DirectiveKind.END_HASCONTENT),
    ])
    def test_content_blocks(self, text, kind):
        assert parse_directive(text).kind is kind

    @pytest.mark.parametrize("text", ["include header", "include 'header'", 'include "header"'])
    def test_include(self, text):
        d = parse_directive(text)
        assert d.kind is DirectiveKind.INCLUDE
        assert d.name == "header"

    def test_raw_output(self):
        d = parse_directive("@ $html")
        assert d.kind is DirectiveKind.RAW
        assert d.expr == "$html"

    @pytest.mark.parametrize("text", ["$a + 1", "ifx", "format($x)", "contents"])
    def test_fallback_to_expression(self, text):
        d = parse_directive(text)
        assert d.kind is DirectiveKind.EXPR
        assert d.expr == text

    def test_surrounding_whitespace_ignored(self):
        assert parse_directive("  /if  ").kind is DirectiveKind.END_IF


class TestClassifySpan:
    """Влияние формы и сигила на классификацию."""

    def test_double_form_is_raw_expression(self):
        d = classify_span(Span(0, SpanForm.DOUBLE, " if $x "))
        assert d.kind is DirectiveKind.RAW
        assert d.expr == "if $x"

    def test_value_sigil_disables_keywords(self):
        d = classify_span(Span(0, SpanForm.SINGLE, "else", value_sigil=True))
        assert d.kind is DirectiveKind.EXPR
        assert d.expr == "else"

    def test_value_sigil_with_raw_marker(self):
        d = classify_span(Span(0, SpanForm.SINGLE, "@$x", value_sigil=True))
        assert d.kind is DirectiveKind.RAW
        assert d.expr == "$x"

    def test_single_form_uses_grammar(self):
        assert classify_span(Span(0, SpanForm.SINGLE, "/for")).kind is DirectiveKind.END_FOR


class TestLowering:

    def test_scope_refs(self):
        assert lower_scope_refs("$a + $b") == '__scope__["a"] + __scope__["b"]'

    def test_attribute_access(self):
        assert lower_scope_refs("$user.name") == '__scope__["user"].name'

    def test_strings_untouched(self):
        assert lower_scope_refs('"$x" + $y') == '"$x" + __scope__["y"]'
        assert lower_scope_refs("'$x'") == "'$x'"

    def test_custom_scope_var(self):
        assert lower_scope_refs("$a", scope_var="s") == 's["a"]'

    @pytest.mark.parametrize("step,expected", [
        ("i++", "i += 1"),
        ("++i", "i += 1"),
        ("i--", "i -= 1"),
        ("--i", "i -= 1"),
        ("i += 2", "i += 2"),
        (" i = i * 2 ", "i = i * 2"),
    ])
    def test_normalize_step(self, step, expected):
        assert normalize_step(step) == expected
