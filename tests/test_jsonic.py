"""
Тесты JSON-вывода CLI и сводки версий.
"""

import json
from enum import Enum
from pathlib import Path

import pytest

from fragtpl.cli import SpanReport
from fragtpl.jsonic import dumps
from fragtpl.template.tokens import SpanForm
from fragtpl.version import STACK_DISTS, dist_version, environment, tool_version


class Color(Enum):
    RED = "red"


def test_non_ascii_kept():
    assert dumps({"k": "значение"}) == '{"k": "значение"}'


def test_pretty():
    assert dumps({"a": [1]}, pretty=True) == '{\n  "a": [\n    1\n  ]\n}'


def test_extra_types():
    data = json.loads(dumps({
        "path": Path("a") / "b.tpl.html",
        "color": Color.RED,
        "form": SpanForm.DOUBLE,
        "tags": {"b", "a"},
    }))

    assert data == {"path": "a/b.tpl.html", "color": "red", "form": "d", "tags": ["a", "b"]}


def test_pydantic_model():
    report = SpanReport(index=0, form="s", source="{$a}", position=3, token="$ftpl-s-0$")

    assert json.loads(dumps([report])) == [report.model_dump(mode="json")]


def test_unknown_type_rejected():
    with pytest.raises(TypeError):
        dumps(object())


def test_missing_distribution():
    assert dist_version("fragtpl-no-such-dist") is None


def test_environment_lists_stack():
    info = environment()

    assert info["fragtpl"] == tool_version()
    for dist in STACK_DISTS:
        assert dist in info
    assert info["pydantic"] != "missing"
