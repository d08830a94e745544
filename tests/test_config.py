"""
Тесты загрузки fragtpl.yaml.
"""

import pytest

from fragtpl.config import EngineConfig, load_config
from fragtpl.errors import ConfigLoadError

from tests.infrastructure.file_utils import write


def test_missing_file_gives_defaults(tmp_path):
    cfg = load_config(tmp_path / "fragtpl.yaml")

    assert cfg == EngineConfig()
    assert cfg.trim_lines is True
    assert cfg.capture_reference == "fragtpl.lookup({id}, {index})"


def test_user_keys_override_defaults(tmp_path):
    p = write(tmp_path / "fragtpl.yaml", "trim_lines: false\ntemplates_dir: tpl\n")

    cfg = load_config(p)

    assert cfg.trim_lines is False
    assert cfg.templates_dir == "tpl"
    assert cfg.template_suffix == ".tpl.html"


def test_empty_file(tmp_path):
    p = write(tmp_path / "fragtpl.yaml", "")

    assert load_config(p) == EngineConfig()


def test_unsupported_schema(tmp_path):
    p = write(tmp_path / "fragtpl.yaml", "schema_version: 99\n")

    with pytest.raises(ConfigLoadError, match="Unsupported config schema"):
        load_config(p)


def test_unknown_key(tmp_path):
    p = write(tmp_path / "fragtpl.yaml", "no_such_option: 1\n")

    with pytest.raises(ConfigLoadError):
        load_config(p)


def test_bad_reference_format(tmp_path):
    p = write(tmp_path / "fragtpl.yaml", "capture_reference: 'x({name})'\n")

    with pytest.raises(ConfigLoadError):
        load_config(p)


def test_not_a_mapping(tmp_path):
    p = write(tmp_path / "fragtpl.yaml", "- a\n- b\n")

    with pytest.raises(ConfigLoadError):
        load_config(p)


def test_broken_yaml(tmp_path):
    p = write(tmp_path / "fragtpl.yaml", "a: [1, 2\n")

    with pytest.raises(ConfigLoadError):
        load_config(p)


def test_config_error_is_value_error():
    """CLI обрабатывает ошибки конфигурации так же, как ValueError."""
    assert issubclass(ConfigLoadError, ValueError)


def test_format_reference():
    assert EngineConfig().format_reference(3, 7) == "fragtpl.lookup(3, 7)"


@pytest.mark.parametrize("fmt, text, expected", [
    ("fragtpl.lookup({id}, {index})", "fragtpl.lookup(3, 7)", (3, 7)),
    ("fragtpl.lookup({id}, {index})", "  fragtpl.lookup(12, 0)\n", (12, 0)),
    ("ref:{index}@{id}", "ref:5@2", (2, 5)),
    ("{{{id}.{index}}}", "{4.1}", (4, 1)),
    ("v{id}-{index}-{id}", "v1-2-1", (1, 2)),
])
def test_parse_reference(fmt, text, expected):
    assert EngineConfig(capture_reference=fmt).parse_reference(text) == expected


@pytest.mark.parametrize("fmt, text", [
    ("fragtpl.lookup({id}, {index})", "fragtpl.lookup(3,7)"),
    ("fragtpl.lookup({id}, {index})", "fragtpl.lookup(a, 7)"),
    ("fragtpl.lookup({id}, {index})", "xfragtpl.lookup(3, 7)"),
    ("v{id}-{index}-{id}", "v1-2-3"),
    ("only-{index}", "only-1"),
])
def test_parse_reference_mismatch(fmt, text):
    assert EngineConfig(capture_reference=fmt).parse_reference(text) is None
