"""
Генератор кода шаблонов.

Превращает поток сегментов (текст и спаны) в последовательность
инструкций. Обращения $name внутри выражений понижаются до доступа
к области видимости, директивы include раскрываются прямо во время
генерации.
"""

from __future__ import annotations

import logging
from typing import Callable, Optional

from .directives import Directive, DirectiveKind, classify_span, lower_scope_refs, normalize_step
from .nodes import (
    Program, AppendLiteral, AppendExpr, AssignValue, OpenLoop, CloseLoop,
    OpenIf, ElseIf, Else, CloseIf, CaptureValue,
    OpenHasContent, OpenContent, CloseContent, CloseHasContent,
)
from .tokens import Span, SegmentList, TextChunk, restore_braces

logger = logging.getLogger(__name__)

# Обработчик include: имя шаблона -> готовая разметка
IncludeHandler = Callable[[str], str]

_SIMPLE_DIRECTIVES = {
    DirectiveKind.END_FOR: CloseLoop,
    DirectiveKind.ELSE: Else,
    DirectiveKind.END_IF: CloseIf,
    DirectiveKind.HASCONTENT: OpenHasContent,
    DirectiveKind.CONTENT: OpenContent,
    DirectiveKind.END_CONTENT: CloseContent,
    DirectiveKind.END_HASCONTENT: CloseHasContent,
}


class CodeGenerator:
    """
    Генератор последовательности инструкций.
    """

    def __init__(self, include_handler: Optional[IncludeHandler] = None):
        """
        Args:
            include_handler: Функция, возвращающая разметку вложенного шаблона.
                Если не задана, директивы include ничего не выводят.
        """
        self.include_handler = include_handler

    def generate(self, segments: SegmentList) -> Program:
        """
        Генерирует программу для потока сегментов.

        Args:
            segments: Результат работы SpanExtractor

        Returns:
            Плоский список инструкций
        """
        program: Program = []

        for segment in segments:
            if isinstance(segment, TextChunk):
                program.append(AppendLiteral(restore_braces(segment.text)))
            else:
                self._emit_span(segment, program)

        return program

    def _emit_span(self, span: Span, program: Program) -> None:
        directive = classify_span(span)
        source = span.source
        kind = directive.kind

        if kind in (DirectiveKind.EXPR, DirectiveKind.RAW):
            program.append(AppendExpr(
                expr=lower_scope_refs(directive.expr),
                escape=kind is DirectiveKind.EXPR,
                source=source,
            ))
        elif kind is DirectiveKind.ASSIGN:
            program.append(AssignValue(directive.name, lower_scope_refs(directive.expr), source))
        elif kind is DirectiveKind.FOR_RANGE:
            program.append(OpenLoop(
                name=directive.name,
                mode="range",
                init=lower_scope_refs(directive.init),
                cond=lower_scope_refs(directive.cond),
                step=lower_scope_refs(normalize_step(directive.step)),
                source=source,
            ))
        elif kind is DirectiveKind.FOR_ITER:
            program.append(OpenLoop(
                name=directive.name,
                mode=directive.mode,
                iterable=lower_scope_refs(directive.expr),
                source=source,
            ))
        elif kind is DirectiveKind.IF:
            program.append(OpenIf(lower_scope_refs(directive.expr), source))
        elif kind is DirectiveKind.ELSE_IF:
            program.append(ElseIf(lower_scope_refs(directive.expr), source))
        elif kind is DirectiveKind.SERIALIZE:
            program.append(CaptureValue(lower_scope_refs(directive.expr), source))
        elif kind is DirectiveKind.INCLUDE:
            self._emit_include(directive, program)
        else:
            program.append(_SIMPLE_DIRECTIVES[kind]())

    def _emit_include(self, directive: Directive, program: Program) -> None:
        if self.include_handler is None:
            logger.warning("No include handler set, skipping include '%s'", directive.name)
            return
        logger.debug("Inlining include '%s'", directive.name)
        program.append(AppendLiteral(self.include_handler(directive.name)))


def generate_program(segments: SegmentList, include_handler: Optional[IncludeHandler] = None) -> Program:
    """
    Удобная функция для генерации программы.

    Args:
        segments: Поток сегментов
        include_handler: Обработчик include (опционально)

    Returns:
        Список инструкций
    """
    return CodeGenerator(include_handler).generate(segments)


__all__ = [
    "IncludeHandler",
    "CodeGenerator",
    "generate_program",
]
