"""
Инструкции промежуточного представления шаблона.

Генератор кода превращает поток спанов в плоскую последовательность
неизменяемых инструкций; рендерер связывает блоки и исполняет их.
"""

from __future__ import annotations

from dataclasses import dataclass
from typing import List


@dataclass(frozen=True)
class Instruction:
    """Базовый класс для всех инструкций."""
    pass


@dataclass(frozen=True)
class AppendLiteral(Instruction):
    """Добавляет статический текст в аккумулятор вывода."""
    text: str


@dataclass(frozen=True)
class AppendExpr(Instruction):
    """
    Добавляет значение выражения в аккумулятор.

    При escape=True значение HTML-экранируется.
    """
    expr: str
    escape: bool = True
    source: str = ""     # Исходный текст спана (для диагностики)


@dataclass(frozen=True)
class AssignValue(Instruction):
    """Связывает значение выражения с именем в области видимости."""
    name: str
    expr: str
    source: str = ""


@dataclass(frozen=True)
class OpenLoop(Instruction):
    """
    Начало цикла.

    mode:
    - 'range' — C-образный цикл (init; cond; step)
    - 'of'    — перебор значений iterable
    - 'in'    — перебор ключей (индексов) iterable
    """
    name: str
    mode: str
    init: str = ""
    cond: str = ""
    step: str = ""
    iterable: str = ""
    source: str = ""


@dataclass(frozen=True)
class CloseLoop(Instruction):
    pass


@dataclass(frozen=True)
class OpenIf(Instruction):
    cond: str
    source: str = ""


@dataclass(frozen=True)
class ElseIf(Instruction):
    cond: str
    source: str = ""


@dataclass(frozen=True)
class Else(Instruction):
    pass


@dataclass(frozen=True)
class CloseIf(Instruction):
    pass


@dataclass(frozen=True)
class CaptureValue(Instruction):
    """
    Сохраняет значение в таблице захвата экземпляра и выводит ссылку на него.

    Вывод никогда не экранируется.
    """
    expr: str
    source: str = ""


@dataclass(frozen=True)
class OpenHasContent(Instruction):
    """Обёртка, которая откатывается, если вложенный content ничего не вывел."""
    pass


@dataclass(frozen=True)
class OpenContent(Instruction):
    pass


@dataclass(frozen=True)
class CloseContent(Instruction):
    pass


@dataclass(frozen=True)
class CloseHasContent(Instruction):
    pass


# Алиас для последовательности инструкций
Program = List[Instruction]

_OPENERS = (OpenLoop, OpenIf, OpenHasContent, OpenContent)
_CLOSERS = (CloseLoop, CloseIf, CloseHasContent, CloseContent)


def format_program(program: Program) -> str:
    """Форматирует программу с отступами по вложенности для отладки."""
    lines = []
    depth = 0

    for pc, instr in enumerate(program):
        if isinstance(instr, _CLOSERS) or isinstance(instr, (ElseIf, Else)):
            depth = max(depth - 1, 0)
        prefix = "  " * depth

        if isinstance(instr, AppendLiteral):
            preview = instr.text[:40] + "..." if len(instr.text) > 40 else instr.text
            lines.append(f"{pc:4d} {prefix}AppendLiteral({preview!r})")
        elif isinstance(instr, AppendExpr):
            lines.append(f"{pc:4d} {prefix}AppendExpr({instr.expr!r}, escape={instr.escape})")
        elif isinstance(instr, AssignValue):
            lines.append(f"{pc:4d} {prefix}AssignValue({instr.name!r}, {instr.expr!r})")
        elif isinstance(instr, OpenLoop):
            if instr.mode == "range":
                header = f"{instr.init!r}; {instr.cond!r}; {instr.step!r}"
            else:
                header = f"{instr.mode} {instr.iterable!r}"
            lines.append(f"{pc:4d} {prefix}OpenLoop({instr.name!r}, {header})")
        elif isinstance(instr, (OpenIf, ElseIf)):
            lines.append(f"{pc:4d} {prefix}{type(instr).__name__}({instr.cond!r})")
        elif isinstance(instr, CaptureValue):
            lines.append(f"{pc:4d} {prefix}CaptureValue({instr.expr!r})")
        else:
            lines.append(f"{pc:4d} {prefix}{type(instr).__name__}")

        if isinstance(instr, _OPENERS) or isinstance(instr, (ElseIf, Else)):
            depth += 1

    return "\n".join(lines)


__all__ = [
    "Instruction",
    "AppendLiteral",
    "AppendExpr",
    "AssignValue",
    "OpenLoop",
    "CloseLoop",
    "OpenIf",
    "ElseIf",
    "Else",
    "CloseIf",
    "CaptureValue",
    "OpenHasContent",
    "OpenContent",
    "CloseContent",
    "CloseHasContent",
    "Program",
    "format_program",
]
