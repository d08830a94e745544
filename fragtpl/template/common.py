"""
Общие утилиты шаблонизатора: экранирование и область видимости.
"""

from __future__ import annotations

import re
from typing import Any

_HTML_ESCAPES = {
    "&": "&amp;",
    "<": "&lt;",
    ">": "&gt;",
    '"': "&quot;",
    "'": "&#39;",
}
_HTML_ESCAPE_PATTERN = re.compile(r"[&<>\"']")
_SPACE_RUN_PATTERN = re.compile(r" {2,}")

NBSP = "&nbsp;"


def escape_html(text: str) -> str:
    """
    HTML-экранирование значения выражения.

    Кодирует пять зарезервированных символов и сворачивает серии из двух
    и более пробелов: все пробелы, кроме последнего, становятся &nbsp;.

    Examples:
        >>> escape_html('<b a="1">')
        '&lt;b a=&quot;1&quot;&gt;'
        >>> escape_html("a   b")
        'a&nbsp;&nbsp; b'
    """
    text = _HTML_ESCAPE_PATTERN.sub(lambda m: _HTML_ESCAPES[m.group(0)], text)
    return _SPACE_RUN_PATTERN.sub(lambda m: NBSP * (len(m.group(0)) - 1) + " ", text)


def stringify(value: Any) -> str:
    """Строковое представление значения для вывода; None выводится пустой строкой."""
    if value is None:
        return ""
    return str(value)


class Scope(dict):
    """
    Область видимости шаблона: имя -> значение.

    Отсутствующие ключи читаются как None, чтобы $name для
    несвязанного имени не приводил к ошибке.
    """

    def __missing__(self, key: str) -> Any:
        return None

    def __repr__(self) -> str:
        return f"Scope({dict.__repr__(self)})"


__all__ = ["escape_html", "stringify", "Scope", "NBSP"]
