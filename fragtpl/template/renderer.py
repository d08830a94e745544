"""
Рендерер шаблонов.

Связывает блочную структуру программы (циклы, условия, content-блоки),
один раз компилирует все встроенные выражения в объекты кода и
интерпретирует последовательность инструкций против области видимости.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from dataclasses import dataclass, field
from types import CodeType
from typing import Any, Dict, Iterator, List, Optional, Tuple

from .common import Scope, escape_html, stringify
from .nodes import (
    Program, Instruction, AppendLiteral, AppendExpr, AssignValue, OpenLoop, CloseLoop,
    OpenIf, ElseIf, Else, CloseIf, CaptureValue,
    OpenHasContent, OpenContent, CloseContent, CloseHasContent,
)
from .protocols import CaptureHost
from ..errors import FragTplUserError, TemplateGenerationError, TemplateRenderError

# Имя области видимости в пространстве имён выражений (см. lower_scope_refs)
SCOPE_VAR = "__scope__"
# Имя экземпляра шаблона в пространстве имён выражений
HOST_VAR = "tpl"

_MISSING = object()


@dataclass
class _Block:
    """Открытый блок при связывании программы."""
    kind: str
    pc: int
    branches: List[int] = field(default_factory=list)
    has_else: bool = False


@dataclass
class _LoopFrame:
    """Состояние выполняющегося цикла."""
    name: str
    saved_scope: Any
    saved_native: Any
    iterator: Optional[Iterator[Any]] = None


@dataclass
class _ContentFrame:
    """Состояние блока hascontent."""
    mark: int
    content_mark: int = 0
    has_content: bool = False


class Renderer:
    """
    Скомпилированный рендерер шаблона.

    Вызывается как функция (host, scope) -> str.
    """

    def __init__(self, program: Program, template_name: str = "",
                 globals: Optional[Dict[str, Any]] = None):
        """
        Args:
            program: Последовательность инструкций от генератора кода
            template_name: Имя шаблона для диагностики
            globals: Дополнительные имена, доступные выражениям

        Raises:
            TemplateGenerationError: Несбалансированные блоки или синтаксическая
                ошибка во встроенном выражении
        """
        self.program = program
        self.template_name = template_name
        self.globals: Dict[str, Any] = dict(globals or {})

        # Таблицы переходов
        self._loop_close: Dict[int, int] = {}
        self._loop_open: Dict[int, int] = {}
        self._next_branch: Dict[int, int] = {}
        self._if_end: Dict[int, int] = {}
        self._link()

        self._codes: Dict[int, Tuple[CodeType, ...]] = {}
        self._compile_expressions()

    def __call__(self, host: Optional[CaptureHost], scope: Scope) -> str:
        return self.render(host, scope)

    # ------------------------------------------------------------------ #
    # Связывание
    # ------------------------------------------------------------------ #

    def _link(self) -> None:
        stack: List[_Block] = []

        for pc, instr in enumerate(self.program):
            if isinstance(instr, OpenLoop):
                stack.append(_Block("loop", pc))
            elif isinstance(instr, CloseLoop):
                block = self._pop_block(stack, "loop", instr)
                self._loop_close[block.pc] = pc
                self._loop_open[pc] = block.pc
            elif isinstance(instr, OpenIf):
                stack.append(_Block("if", pc, branches=[pc]))
            elif isinstance(instr, (ElseIf, Else)):
                block = self._top_block(stack, "if", instr)
                if block.has_else:
                    raise self._generation_error(f"'{_label(instr)}' after 'else'", instr)
                block.branches.append(pc)
                block.has_else = isinstance(instr, Else)
            elif isinstance(instr, CloseIf):
                block = self._pop_block(stack, "if", instr)
                targets = block.branches[1:] + [pc]
                for branch_pc, next_pc in zip(block.branches, targets):
                    self._next_branch[branch_pc] = next_pc
                for branch_pc in block.branches[1:]:
                    self._if_end[branch_pc] = pc
            elif isinstance(instr, OpenHasContent):
                stack.append(_Block("hascontent", pc))
            elif isinstance(instr, OpenContent):
                # content может быть вложен в условия и циклы внутри hascontent
                if not any(b.kind == "hascontent" for b in stack) or stack[-1].kind == "content":
                    raise self._generation_error("'content' outside of 'hascontent'", instr)
                stack.append(_Block("content", pc))
            elif isinstance(instr, CloseContent):
                self._pop_block(stack, "content", instr)
            elif isinstance(instr, CloseHasContent):
                self._pop_block(stack, "hascontent", instr)

        if stack:
            unclosed = ", ".join(f"'{b.kind}' at #{b.pc}" for b in stack)
            raise TemplateGenerationError(f"Unclosed block(s): {unclosed}", self.template_name)

    def _top_block(self, stack: List[_Block], kind: str, instr: Instruction) -> _Block:
        if not stack or stack[-1].kind != kind:
            raise self._generation_error(f"'{_label(instr)}' without matching '{kind}'", instr)
        return stack[-1]

    def _pop_block(self, stack: List[_Block], kind: str, instr: Instruction) -> _Block:
        self._top_block(stack, kind, instr)
        return stack.pop()

    def _generation_error(self, message: str, instr: Instruction) -> TemplateGenerationError:
        return TemplateGenerationError(message, self.template_name, getattr(instr, "source", ""))

    # ------------------------------------------------------------------ #
    # Компиляция выражений
    # ------------------------------------------------------------------ #

    def _compile_expressions(self) -> None:
        filename = f"<fragtpl:{self.template_name or 'fragment'}>"

        for pc, instr in enumerate(self.program):
            if isinstance(instr, (AppendExpr, AssignValue, CaptureValue)):
                sources = [(instr.expr, "eval")]
            elif isinstance(instr, (OpenIf, ElseIf)):
                sources = [(instr.cond, "eval")]
            elif isinstance(instr, OpenLoop):
                if instr.mode == "range":
                    sources = [(instr.init, "eval"), (instr.cond, "eval"), (instr.step, "exec")]
                else:
                    sources = [(instr.iterable, "eval")]
            else:
                continue

            codes = []
            for source, mode in sources:
                try:
                    codes.append(compile(source, filename, mode))
                except SyntaxError as e:
                    raise TemplateGenerationError(
                        f"invalid expression {source!r}: {e.msg}",
                        self.template_name, instr.source, cause=e,
                    ) from e
            self._codes[pc] = tuple(codes)

    # ------------------------------------------------------------------ #
    # Исполнение
    # ------------------------------------------------------------------ #

    def render(self, host: Optional[CaptureHost], scope: Scope) -> str:
        """
        Исполняет программу.

        Args:
            host: Владелец таблицы захвата (экземпляр шаблона)
            scope: Область видимости; директивы assign изменяют её на месте

        Returns:
            Итоговая разметка

        Raises:
            TemplateRenderError: Если встроенное выражение выбросило исключение
        """
        ns: Dict[str, Any] = dict(self.globals)
        ns[SCOPE_VAR] = scope
        ns[HOST_VAR] = host

        program = self.program
        codes = self._codes
        out: List[str] = []
        loops: List[_LoopFrame] = []
        blocks: List[_ContentFrame] = []
        pc = 0

        try:
            while pc < len(program):
                instr = program[pc]

                if isinstance(instr, AppendLiteral):
                    out.append(instr.text)
                    pc += 1

                elif isinstance(instr, AppendExpr):
                    text = stringify(eval(codes[pc][0], ns))
                    out.append(escape_html(text) if instr.escape else text)
                    pc += 1

                elif isinstance(instr, AssignValue):
                    scope[instr.name] = eval(codes[pc][0], ns)
                    pc += 1

                elif isinstance(instr, OpenLoop):
                    frame = _LoopFrame(
                        instr.name,
                        saved_scope=scope.get(instr.name, _MISSING),
                        saved_native=ns.get(instr.name, _MISSING),
                    )
                    if instr.mode == "range":
                        ns[instr.name] = eval(codes[pc][0], ns)
                        proceed = bool(eval(codes[pc][1], ns))
                    else:
                        frame.iterator = _iterate(eval(codes[pc][0], ns), instr.mode)
                        proceed = _advance(frame, ns)

                    if proceed:
                        scope[instr.name] = ns[instr.name]
                        loops.append(frame)
                        pc += 1
                    else:
                        _restore(frame, ns, scope)
                        pc = self._loop_close[pc] + 1

                elif isinstance(instr, CloseLoop):
                    frame = loops[-1]
                    open_pc = self._loop_open[pc]
                    if program[open_pc].mode == "range":
                        exec(codes[open_pc][2], ns)
                        proceed = bool(eval(codes[open_pc][1], ns))
                    else:
                        proceed = _advance(frame, ns)

                    if proceed:
                        scope[frame.name] = ns[frame.name]
                        pc = open_pc + 1
                    else:
                        loops.pop()
                        _restore(frame, ns, scope)
                        pc += 1

                elif isinstance(instr, OpenIf):
                    pc = self._enter_branch(pc, ns)

                elif isinstance(instr, (ElseIf, Else)):
                    # Предыдущая ветка выполнена — выходим из условия
                    pc = self._if_end[pc] + 1

                elif isinstance(instr, CaptureValue):
                    index = host.capture(eval(codes[pc][0], ns))
                    out.append(host.capture_reference(index))
                    pc += 1

                elif isinstance(instr, OpenHasContent):
                    blocks.append(_ContentFrame(mark=len(out)))
                    pc += 1

                elif isinstance(instr, OpenContent):
                    blocks[-1].content_mark = len(out)
                    pc += 1

                elif isinstance(instr, CloseContent):
                    frame = blocks[-1]
                    if "".join(out[frame.content_mark:]):
                        frame.has_content = True
                    pc += 1

                elif isinstance(instr, CloseHasContent):
                    frame = blocks.pop()
                    if not frame.has_content:
                        del out[frame.mark:]
                    pc += 1

                else:
                    # CloseIf
                    pc += 1

        except FragTplUserError:
            raise
        except Exception as e:
            raise TemplateRenderError(
                f"{type(e).__name__}: {e}",
                self.template_name,
                getattr(program[pc], "source", ""),
                cause=e,
            ) from e
        finally:
            # Открытые циклы (при ошибке) возвращают затенённые значения
            while loops:
                _restore(loops.pop(), ns, scope)

        return "".join(out)

    def _enter_branch(self, pc: int, ns: Dict[str, Any]) -> int:
        """Находит первую ветку условия, которую нужно выполнить."""
        while True:
            instr = self.program[pc]
            if isinstance(instr, (OpenIf, ElseIf)):
                if eval(self._codes[pc][0], ns):
                    return pc + 1
                pc = self._next_branch[pc]
            else:
                # Else или CloseIf
                return pc + 1


def _iterate(value: Any, mode: str) -> Iterator[Any]:
    """
    Итератор для циклов of/in.

    'of' перебирает значения (для отображений — значения словаря),
    'in' перебирает ключи (для последовательностей — индексы).
    """
    if value is None:
        return iter(())
    if mode == "in":
        if isinstance(value, Mapping):
            return iter(list(value.keys()))
        if isinstance(value, Sequence):
            return iter(range(len(value)))
        return iter(value)
    if isinstance(value, Mapping):
        return iter(list(value.values()))
    return iter(value)


def _advance(frame: _LoopFrame, ns: Dict[str, Any]) -> bool:
    try:
        ns[frame.name] = next(frame.iterator)
    except StopIteration:
        return False
    return True


def _restore(frame: _LoopFrame, ns: Dict[str, Any], scope: Scope) -> None:
    """Возвращает значения, затенённые переменной цикла."""
    if frame.saved_scope is _MISSING:
        scope.pop(frame.name, None)
    else:
        scope[frame.name] = frame.saved_scope

    if frame.saved_native is _MISSING:
        ns.pop(frame.name, None)
    else:
        ns[frame.name] = frame.saved_native


def _label(instr: Instruction) -> str:
    return {
        ElseIf: "else if",
        Else: "else",
        CloseIf: "/if",
        CloseLoop: "/for",
        OpenContent: "content",
        CloseContent: "/content",
        CloseHasContent: "/hascontent",
    }.get(type(instr), type(instr).__name__)


__all__ = ["Renderer", "SCOPE_VAR", "HOST_VAR"]
