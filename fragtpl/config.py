from __future__ import annotations

import re
import string
from functools import lru_cache
from pathlib import Path
from typing import Any, Dict, Optional, Pattern, Tuple

from pydantic import BaseModel, ConfigDict, ValidationError, field_validator
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .errors import ConfigLoadError

SCHEMA_VERSION = 1
DEFAULT_CFG_FILE = "fragtpl.yaml"

# --------------------------------------------------------------------------- #
# ДЕФОЛТЫ
# --------------------------------------------------------------------------- #
_DEFAULT_CFG: Dict[str, Any] = {
    "schema_version": SCHEMA_VERSION,
    # обрезка пробелов по краям строк и склейка строк шаблона
    "trim_lines": True,
    # текст ссылки на захваченное значение; {id} — id экземпляра, {index} — индекс
    "capture_reference": "fragtpl.lookup({id}, {index})",
    "markup_parser": "html.parser",
    "template_suffix": ".tpl.html",
    "templates_dir": "templates",
}

# --------------------------------------------------------------------------- #
# YAML loader
# --------------------------------------------------------------------------- #
_yaml = YAML(typ="safe")


class EngineConfig(BaseModel):
    """Настройки движка шаблонов."""
    model_config = ConfigDict(extra="forbid", frozen=True)

    schema_version: int = SCHEMA_VERSION
    trim_lines: bool = True
    capture_reference: str = _DEFAULT_CFG["capture_reference"]
    markup_parser: str = "html.parser"
    template_suffix: str = ".tpl.html"
    templates_dir: str = "templates"

    @field_validator("capture_reference")
    @classmethod
    def _check_reference(cls, v: str) -> str:
        try:
            v.format(id=0, index=0)
        except (KeyError, IndexError, ValueError) as e:
            raise ValueError(
                f"capture_reference may only use {{id}} and {{index}} fields: {e}"
            ) from e
        return v

    def format_reference(self, instance_id: int, index: int) -> str:
        return self.capture_reference.format(id=instance_id, index=index)

    def parse_reference(self, text: str) -> Optional[Tuple[int, int]]:
        """
        Обратное к format_reference: достаёт (id, index) из текста ссылки.

        Returns:
            None, если текст не соответствует формату или формат
            не содержит обоих полей
        """
        pattern = _reference_pattern(self.capture_reference)
        if pattern is None:
            return None
        m = pattern.fullmatch(text.strip())
        if m is None:
            return None
        return int(m.group("id")), int(m.group("index"))


@lru_cache(maxsize=None)
def _reference_pattern(fmt: str) -> Optional[Pattern[str]]:
    """Регулярное выражение для формата ссылки; повторы поля должны совпадать."""
    parts = []
    seen = set()
    for literal, field, _spec, _conv in string.Formatter().parse(fmt):
        parts.append(re.escape(literal))
        if field is None:
            continue
        if field in seen:
            parts.append(f"(?P={field})")
        else:
            seen.add(field)
            parts.append(rf"(?P<{field}>\d+)")
    if seen != {"id", "index"}:
        return None
    return re.compile("".join(parts))


# --------------------------------------------------------------------------- #
# HELPERS
# --------------------------------------------------------------------------- #
def _merge_defaults(raw: Dict[str, Any]) -> Dict[str, Any]:
    """Накладываем значения пользователя поверх дефолтов."""
    cfg = _DEFAULT_CFG.copy()
    cfg.update(raw)                      # пользовательские ключи перекрывают
    return cfg


# --------------------------------------------------------------------------- #
# PUBLIC API
# --------------------------------------------------------------------------- #
def load_config(path: Optional[Path] = None) -> EngineConfig:
    """
    Загрузить fragtpl.yaml.

    • Если файла нет — вернуть дефолты.
    • Если schema_version отсутствует — считаем, что это актуальная версия.
    • Проверяем несовместимость схем и типы значений.
    """
    path = Path(path) if path is not None else Path(DEFAULT_CFG_FILE)
    if not path.exists():
        return EngineConfig(**_DEFAULT_CFG)

    try:
        with path.open(encoding="utf-8") as f:
            raw = _yaml.load(f) or {}
    except YAMLError as e:
        raise ConfigLoadError(f"Failed to parse {path}: {e}") from e

    if not isinstance(raw, dict):
        raise ConfigLoadError(f"Config {path} must be a mapping, got {type(raw).__name__}")

    if raw.get("schema_version", SCHEMA_VERSION) != SCHEMA_VERSION:
        raise ConfigLoadError(
            f"Unsupported config schema {raw.get('schema_version')} "
            f"(tool expects {SCHEMA_VERSION})"
        )

    try:
        return EngineConfig(**_merge_defaults(raw))
    except ValidationError as e:
        raise ConfigLoadError(f"Invalid config {path}: {e}") from e


__all__ = ["EngineConfig", "load_config", "SCHEMA_VERSION", "DEFAULT_CFG_FILE"]
