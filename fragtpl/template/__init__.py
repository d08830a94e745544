"""
Компилятор шаблонов fragtpl.

Извлечение спанов, грамматика директив, генерация инструкций
и их исполнение рендерером.
"""

from __future__ import annotations

from .codegen import CodeGenerator, IncludeHandler, generate_program
from .common import Scope, escape_html
from .lexer import ExtractedTemplate, SpanExtractor, extract_spans, restore_spans
from .renderer import Renderer
from .tokens import Span, SpanForm

__all__ = [
    "CodeGenerator",
    "IncludeHandler",
    "generate_program",
    "Scope",
    "escape_html",
    "ExtractedTemplate",
    "SpanExtractor",
    "extract_spans",
    "restore_spans",
    "Renderer",
    "Span",
    "SpanForm",
]
