import pytest

from fragtpl.template.common import Scope, escape_html, stringify


@pytest.mark.parametrize("raw,expected", [
    ("plain", "plain"),
    ("<b>", "&lt;b&gt;"),
    ("a & b", "a &amp; b"),
    ('"q"', "&quot;q&quot;"),
    ("it's", "it&#39;s"),
    ("a b", "a b"),
    ("a  b", "a&nbsp; b"),
    ("a    b", "a&nbsp;&nbsp;&nbsp; b"),
    ("  x", "&nbsp; x"),
])
def test_escape_html(raw, expected):
    assert escape_html(raw) == expected


def test_escape_does_not_double_encode_markers():
    """Сначала кодируются спецсимволы, затем пробелы — &nbsp; не портится."""
    assert escape_html("&  ") == "&amp;&nbsp; "


def test_stringify():
    assert stringify(None) == ""
    assert stringify(0) == "0"
    assert stringify(False) == "False"


def test_scope_missing_is_none():
    scope = Scope({"a": 1})
    assert scope["a"] == 1
    assert scope["b"] is None
    assert "b" not in scope
