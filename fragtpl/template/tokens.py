"""
Лексические типы шаблонизатора.

Определяет спаны (вхождения плейсхолдеров), текстовые фрагменты
между ними и непрозрачные токены структурного снимка.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import List, Union

# Символы-заменители для защищённых фигурных скобок ({literal}-блоки и \{ \}).
# Private Use Area: HTML-парсер их не трогает, поэтому они переживают
# разбор снимка и обратную сборку фрагмента без изменений.
LBRACE_SENTINEL = "\ue07b"
RBRACE_SENTINEL = "\ue07d"

# Сигил значения перед открывающей скобкой: ${...} / ${{...}}
VALUE_SIGIL = "$"
# Сигил сырого вывода внутри одинарной формы: {@...}
RAW_SIGIL = "@"

SNAPSHOT_TOKEN_RE = re.compile(r"\$ftpl-([sd])-(\d+)\$")


class SpanForm(enum.Enum):
    """Синтаксическая форма плейсхолдера."""
    SINGLE = "s"    # { ... }
    DOUBLE = "d"    # {{ ... }}


def restore_braces(text: str) -> str:
    """Возвращает настоящие фигурные скобки на место заменителей."""
    return text.replace(LBRACE_SENTINEL, "{").replace(RBRACE_SENTINEL, "}")


def protect_braces(text: str) -> str:
    """Заменяет фигурные скобки заменителями."""
    return text.replace("{", LBRACE_SENTINEL).replace("}", RBRACE_SENTINEL)


@dataclass(frozen=True)
class TextChunk:
    """
    Обычный текст между плейсхолдерами.

    Может содержать заменители скобок, которые восстанавливаются
    только при выводе.
    """
    text: str
    position: int = 0


@dataclass(frozen=True)
class Span:
    """
    Одно вхождение плейсхолдера в исходном тексте шаблона.
    """
    index: int              # Порядковый номер (с нуля) в порядке исходника
    form: SpanForm
    text: str               # Сырой текст между скобками (с заменителями)
    value_sigil: bool = False
    position: int = 0       # Позиция в нормализованном тексте

    @property
    def source(self) -> str:
        """Исходная запись плейсхолдера, включая скобки и сигил."""
        prefix = VALUE_SIGIL if self.value_sigil else ""
        if self.form is SpanForm.DOUBLE:
            return f"{prefix}{{{{{self.text}}}}}"
        return f"{prefix}{{{self.text}}}"

    @property
    def directive(self) -> str:
        """Текст директивы, готовый к разбору грамматикой."""
        return restore_braces(self.text).strip()

    @property
    def token(self) -> str:
        """Непрозрачный токен, подставляемый вместо спана в структурный снимок."""
        return snapshot_token(self.form, self.index)

    def __repr__(self) -> str:
        return f"Span({self.index}, {self.source!r}, @{self.position})"


def snapshot_token(form: SpanForm, index: int) -> str:
    return f"$ftpl-{form.value}-{index}$"


# Элемент потока лексера
Segment = Union[TextChunk, Span]
SegmentList = List[Segment]


__all__ = [
    "LBRACE_SENTINEL",
    "RBRACE_SENTINEL",
    "VALUE_SIGIL",
    "RAW_SIGIL",
    "SNAPSHOT_TOKEN_RE",
    "SpanForm",
    "TextChunk",
    "Span",
    "Segment",
    "SegmentList",
    "restore_braces",
    "protect_braces",
    "snapshot_token",
]
