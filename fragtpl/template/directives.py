"""
Грамматика директив внутри одинарных плейсхолдеров.

Текст спана проверяется набором якорных регулярных выражений в порядке
приоритета; всё, что не распознано как директива, считается обычным
выражением вывода. Предварительной валидации выражений нет — ошибки
проявляются на этапе компиляции или выполнения.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass
from typing import Callable, List, Tuple

from .tokens import RAW_SIGIL, Span, SpanForm


class DirectiveKind(enum.Enum):
    """Типы директив."""
    EXPR = "expr"                   # выражение с экранированием
    RAW = "raw"                     # выражение без экранирования
    ASSIGN = "assign"
    FOR_RANGE = "for_range"         # for i=0;i<3;i++
    FOR_ITER = "for_iter"           # for x of items / for k in mapping
    END_FOR = "end_for"
    IF = "if"
    ELSE_IF = "else_if"
    ELSE = "else"
    END_IF = "end_if"
    SERIALIZE = "serialize"
    HASCONTENT = "hascontent"
    CONTENT = "content"
    END_CONTENT = "end_content"
    END_HASCONTENT = "end_hascontent"
    INCLUDE = "include"


@dataclass(frozen=True)
class Directive:
    """
    Разобранная директива.

    Назначение полей зависит от kind:
    - EXPR/RAW/IF/ELSE_IF/SERIALIZE: expr
    - ASSIGN: name, expr
    - FOR_RANGE: name, init, cond, step
    - FOR_ITER: name, mode ('of' | 'in'), expr
    - INCLUDE: name
    """
    kind: DirectiveKind
    expr: str = ""
    name: str = ""
    init: str = ""
    cond: str = ""
    step: str = ""
    mode: str = ""


_NAME = r'\$?([A-Za-z_][A-Za-z0-9_]*)'

# (pattern, builder) в порядке приоритета
_RULES: List[Tuple[re.Pattern, Callable[[re.Match], Directive]]] = [
    (re.compile(rf'^assign\s+{_NAME}\s*=(?!=)(.*)$', re.DOTALL),
     lambda m: Directive(DirectiveKind.ASSIGN, name=m.group(1), expr=m.group(2).strip())),
    (re.compile(rf'^(?:foreach|for)\s+{_NAME}\s*=(.*?);(.*?);(.*)$', re.DOTALL),
     lambda m: Directive(DirectiveKind.FOR_RANGE, name=m.group(1), init=m.group(2).strip(),
                         cond=m.group(3).strip(), step=m.group(4).strip())),
    (re.compile(rf'^(?:foreach|for)\s+{_NAME}\s+(of|in)\s+(.*)$', re.DOTALL),
     lambda m: Directive(DirectiveKind.FOR_ITER, name=m.group(1), mode=m.group(2),
                         expr=m.group(3).strip())),
    (re.compile(r'^/(?:foreach|for)$'),
     lambda m: Directive(DirectiveKind.END_FOR)),
    (re.compile(r'^if\s+(.*)$', re.DOTALL),
     lambda m: Directive(DirectiveKind.IF, expr=m.group(1).strip())),
    (re.compile(r'^else\s+if\s+(.*)$', re.DOTALL),
     lambda m: Directive(DirectiveKind.ELSE_IF, expr=m.group(1).strip())),
    (re.compile(r'^else$'),
     lambda m: Directive(DirectiveKind.ELSE)),
    (re.compile(r'^/if$'),
     lambda m: Directive(DirectiveKind.END_IF)),
    (re.compile(r'^serialize\s+(.*)$', re.DOTALL),
     lambda m: Directive(DirectiveKind.SERIALIZE, expr=m.group(1).strip())),
    (re.compile(r'^hascontent$'),
     lambda m: Directive(DirectiveKind.HASCONTENT)),
    (re.compile(r'^content$'),
     lambda m: Directive(DirectiveKind.CONTENT)),
    (re.compile(r'^/content$'),
     lambda m: Directive(DirectiveKind.END_CONTENT)),
    (re.compile(r'^/hascontent$'),
     lambda m: Directive(DirectiveKind.END_HASCONTENT)),
    (re.compile(r'^include\s+(.+)$'),
     lambda m: Directive(DirectiveKind.INCLUDE, name=m.group(1).strip().strip("'\""))),
    (re.compile(rf'^{re.escape(RAW_SIGIL)}(.*)$', re.DOTALL),
     lambda m: Directive(DirectiveKind.RAW, expr=m.group(1).strip())),
]


def parse_directive(text: str) -> Directive:
    """
    Разбирает текст одинарного плейсхолдера.

    Args:
        text: Текст между скобками (уже без заменителей)

    Returns:
        Директива; нераспознанный текст — выражение вывода с экранированием
    """
    text = text.strip()
    for pattern, build in _RULES:
        match = pattern.match(text)
        if match:
            return build(match)
    return Directive(DirectiveKind.EXPR, expr=text)


def classify_span(span: Span) -> Directive:
    """
    Определяет директиву для спана с учётом формы и сигила.

    Двойная форма — всегда выражение без экранирования,
    сигил значения отключает распознавание ключевых слов.
    """
    text = span.directive
    if span.form is SpanForm.DOUBLE:
        if text.startswith(RAW_SIGIL):
            text = text[len(RAW_SIGIL):].strip()
        return Directive(DirectiveKind.RAW, expr=text)
    if span.value_sigil:
        if text.startswith(RAW_SIGIL):
            return Directive(DirectiveKind.RAW, expr=text[len(RAW_SIGIL):].strip())
        return Directive(DirectiveKind.EXPR, expr=text)
    return parse_directive(text)


_SCOPE_REF_PATTERN = re.compile(
    r'("(?:\\.|[^"\\])*"|\'(?:\\.|[^\'\\])*\')|\$([A-Za-z_][A-Za-z0-9_]*)'
)


def lower_scope_refs(expr: str, scope_var: str = "__scope__") -> str:
    """
    Переписывает обращения $name в доступ к полю области видимости.

    Строковые литералы не затрагиваются.

    Examples:
        >>> lower_scope_refs('$user.name + "$x"')
        '__scope__["user"].name + "$x"'
    """
    def replace(match: re.Match) -> str:
        if match.group(1) is not None:
            return match.group(1)
        return f'{scope_var}["{match.group(2)}"]'

    return _SCOPE_REF_PATTERN.sub(replace, expr)


_INCREMENT_PATTERN = re.compile(
    r'^\s*(?:(\+\+|--)\s*([A-Za-z_][A-Za-z0-9_]*)|([A-Za-z_][A-Za-z0-9_]*)\s*(\+\+|--))\s*$'
)


def normalize_step(step: str) -> str:
    """
    Приводит шаг C-образного цикла к оператору Python.

    Examples:
        >>> normalize_step("i++")
        'i += 1'
        >>> normalize_step("--i")
        'i -= 1'
        >>> normalize_step("i += 2")
        'i += 2'
    """
    match = _INCREMENT_PATTERN.match(step)
    if not match:
        return step.strip()
    op = match.group(1) or match.group(4)
    name = match.group(2) or match.group(3)
    return f"{name} {'+' if op == '++' else '-'}= 1"


__all__ = [
    "DirectiveKind",
    "Directive",
    "parse_directive",
    "classify_span",
    "lower_scope_refs",
    "normalize_step",
]
