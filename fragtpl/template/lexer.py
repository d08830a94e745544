"""
Лексический анализатор шаблонов: извлечение спанов.

Нормализует исходный текст, удаляет комментарии {* ... *}, защищает
содержимое {literal}...{/literal} и экранированные скобки, после чего
разбивает текст на последовательность текстовых фрагментов и спанов
(плейсхолдеров одинарной { ... } и двойной {{ ... }} формы).
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import List, Optional, Tuple

from .tokens import (
    LBRACE_SENTINEL, RBRACE_SENTINEL, SNAPSHOT_TOKEN_RE, VALUE_SIGIL,
    Span, SpanForm, TextChunk, SegmentList, protect_braces,
)


@dataclass(frozen=True)
class ExtractedTemplate:
    """
    Результат извлечения спанов.

    segments — поток текста и спанов в порядке исходника,
    spans — только спаны (индекс = Span.index),
    snapshot — разметка, где каждый спан заменён непрозрачным токеном.
    """
    segments: SegmentList
    spans: List[Span]
    snapshot: str


class SpanExtractor:
    """
    Извлекатель спанов из исходного текста шаблона.

    Распознает следующие конструкции:
    - {* комментарий *}                — удаляется целиком
    - {literal}...{/literal}           — содержимое не интерпретируется
    - \\{ и \\}                          — буквальные скобки
    - {{ ... }} / ${{ ... }}           — двойная форма, произвольная вложенность скобок
    - { ... } / ${ ... }               — одинарная форма, не более одной вложенной пары
    """

    COMMENT_PATTERN = re.compile(r'\{\*.*?\*\}', re.DOTALL)
    LITERAL_PATTERN = re.compile(r'\{literal\}(.*?)\{/literal\}', re.DOTALL)
    ESCAPED_BRACE_PATTERN = re.compile(r'\\([{}])')

    # Максимальная глубина скобок для одинарной формы: внешняя пара + одна вложенная
    SINGLE_MAX_DEPTH = 2

    def __init__(self, trim_lines: bool = True):
        """
        Args:
            trim_lines: Обрезать пробелы по краям строк и склеивать строки
        """
        self.trim_lines = trim_lines

    def extract(self, source: str) -> ExtractedTemplate:
        """
        Извлекает спаны из исходного текста.

        Args:
            source: Исходный текст шаблона

        Returns:
            Поток сегментов, список спанов и текст структурного снимка
        """
        text = self.preprocess(source)
        segments: SegmentList = []
        spans: List[Span] = []
        snapshot_parts: List[str] = []

        pos = 0
        text_start = 0
        length = len(text)

        while pos < length:
            if text[pos] == "{" or text.startswith(VALUE_SIGIL + "{", pos):
                match = self._match_span(text, pos, len(spans))
                if match is not None:
                    span, end = match
                    if text_start < pos:
                        chunk = text[text_start:pos]
                        segments.append(TextChunk(chunk, text_start))
                        snapshot_parts.append(chunk)
                    segments.append(span)
                    spans.append(span)
                    snapshot_parts.append(span.token)
                    pos = end
                    text_start = end
                    continue
            pos += 1

        if text_start < length:
            chunk = text[text_start:]
            segments.append(TextChunk(chunk, text_start))
            snapshot_parts.append(chunk)

        return ExtractedTemplate(segments=segments, spans=spans, snapshot="".join(snapshot_parts))

    def preprocess(self, source: str) -> str:
        """
        Нормализация, удаление комментариев и защита скобок.

        Идемпотентна: повторная обработка уже обработанного текста
        ничего не меняет.
        """
        text = source
        if self.trim_lines:
            text = "".join(line.strip() for line in text.splitlines())
        text = self.COMMENT_PATTERN.sub("", text)
        text = self.LITERAL_PATTERN.sub(lambda m: protect_braces(m.group(1)), text)
        text = self.ESCAPED_BRACE_PATTERN.sub(
            lambda m: LBRACE_SENTINEL if m.group(1) == "{" else RBRACE_SENTINEL, text
        )
        return text

    def _match_span(self, text: str, pos: int, index: int) -> Optional[Tuple[Span, int]]:
        """
        Пытается распознать спан, начинающийся в позиции pos.

        Returns:
            Кортеж (спан, позиция после спана) или None, если здесь обычный текст
        """
        value_sigil = text.startswith(VALUE_SIGIL, pos)
        open_pos = pos + 1 if value_sigil else pos

        if text.startswith("{{", open_pos):
            end = self._scan_balanced(text, open_pos, max_depth=None)
            # Двойная форма обязана закрываться двумя скобками
            if end is not None and text[end - 2:end] == "}}" and end - open_pos >= 4:
                content = text[open_pos + 2:end - 2]
                return Span(index, SpanForm.DOUBLE, content, value_sigil, pos), end

        end = self._scan_balanced(text, open_pos, max_depth=self.SINGLE_MAX_DEPTH)
        if end is None:
            return None
        content = text[open_pos + 1:end - 1]
        if not content:
            return None
        return Span(index, SpanForm.SINGLE, content, value_sigil, pos), end

    @staticmethod
    def _scan_balanced(text: str, open_pos: int, max_depth: Optional[int]) -> Optional[int]:
        """
        Ищет закрывающую скобку для скобки в позиции open_pos.

        Строковые литералы внутри пропускаются. Если глубина превышает
        max_depth или скобка не закрыта — возвращает None.

        Returns:
            Позиция сразу после закрывающей скобки
        """
        depth = 0
        quote: Optional[str] = None
        i = open_pos
        length = len(text)

        while i < length:
            ch = text[i]
            if quote is not None:
                if ch == "\\":
                    i += 2
                    continue
                if ch == quote:
                    quote = None
            elif ch in ("'", '"') and depth > 0:
                quote = ch
            elif ch == "{":
                depth += 1
                if max_depth is not None and depth > max_depth:
                    return None
            elif ch == "}":
                depth -= 1
                if depth == 0:
                    return i + 1
            i += 1

        return None


def extract_spans(source: str, trim_lines: bool = True) -> ExtractedTemplate:
    """
    Удобная функция для извлечения спанов.

    Args:
        source: Исходный текст шаблона
        trim_lines: Нормализовать ли строки

    Returns:
        Результат извлечения
    """
    return SpanExtractor(trim_lines=trim_lines).extract(source)


def restore_spans(markup: str, spans: List[Span]) -> str:
    """
    Обратное преобразование: заменяет токены снимка исходными плейсхолдерами.

    Args:
        markup: Разметка фрагмента структурного снимка
        spans: Спаны, к которым относятся токены

    Returns:
        Исходный текст шаблона для фрагмента
    """
    def expand(match: re.Match) -> str:
        return spans[int(match.group(2))].source

    return SNAPSHOT_TOKEN_RE.sub(expand, markup)


__all__ = [
    "ExtractedTemplate",
    "SpanExtractor",
    "extract_spans",
    "restore_spans",
]
