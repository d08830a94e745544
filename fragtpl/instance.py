"""
Экземпляр шаблона.

Хранит всё состояние одного именованного шаблона: спаны и структурный
снимок, скомпилированный рендерер, последнюю область видимости,
таблицу захваченных значений и живое дерево последнего запуска.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Callable, Dict, List, Mapping, Optional

from .reload import reload_instance
from .template.codegen import generate_program
from .template.common import Scope
from .template.renderer import Renderer
from .template.tokens import Span

if TYPE_CHECKING:
    from .engine import TemplateEngine

logger = logging.getLogger(__name__)

# Пост-рендер хук: получает затронутый узел дерева
RenderHook = Callable[[Any], None]


class TemplateInstance:
    """
    Состояние одного шаблона, зарегистрированное в движке.

    Создаётся через TemplateEngine.create(); id назначается при
    создании и никогда не переиспользуется.
    """

    def __init__(self, engine: TemplateEngine, instance_id: int, name: str,
                 on_render: Optional[RenderHook] = None):
        self.engine = engine
        self.id = instance_id
        self.name = name
        self.on_render = on_render

        # Результат компиляции
        self.spans: List[Span] = []
        self.snapshot: Optional[Any] = None
        self.snapshot_markup: str = ""
        self.renderer: Optional[Renderer] = None

        # Состояние выполнения
        self.scope: Scope = Scope()
        self.captured_values: List[Any] = []
        self._capture_index: Dict[int, int] = {}
        self.rendered_root: Optional[Any] = None
        # Владелец таблицы захвата; для вложенных include это внешний экземпляр
        self.capture_owner: TemplateInstance = self

    def __repr__(self) -> str:
        return f"TemplateInstance(id={self.id}, name={self.name!r})"

    # ------------------------------------------------------------------ #
    # Компиляция и рендеринг
    # ------------------------------------------------------------------ #

    def compile(self) -> Renderer:
        """
        Компилирует шаблон: ищет исходник, извлекает спаны, строит снимок,
        генерирует инструкции и создаёт рендерер.

        Повторный вызов заменяет рендерер. Директивы include раскрываются
        с текущей областью видимости.

        Raises:
            SourceNotFoundError: Функция поиска не вернула текст
            TemplateGenerationError: Битое выражение или несбалансированный блок
        """
        source = self.engine.load_source(self.name)
        extracted = self.engine.extractor.extract(source)

        self.spans = extracted.spans
        self.snapshot_markup = extracted.snapshot
        self.snapshot = self.engine.markup.parse(extracted.snapshot)

        program = generate_program(extracted.segments, self.include_handler(self.scope))
        self.renderer = Renderer(program, self.name, self.engine.globals)

        logger.debug(
            "Compiled template '%s' (#%d): %d spans, %d instructions",
            self.name, self.id, len(self.spans), len(program),
        )
        return self.renderer

    def render(self, args: Optional[Mapping[str, Any]] = None) -> str:
        """
        Привязывает аргументы и возвращает итоговую разметку.

        Аргументы копируются в новую область видимости, словарь вызывающего
        не изменяется. Компиляция выполняется при первом вызове.
        """
        self.scope = Scope(args or {})
        renderer = self.renderer if self.renderer is not None else self.compile()
        return renderer(self.capture_owner, self.scope)

    def run(self, args: Optional[Mapping[str, Any]] = None) -> Any:
        """
        Рендерит шаблон, разбирает результат в новый контейнер и вызывает хук.

        Returns:
            Корневой узел живого дерева (он же rendered_root)
        """
        markup = self.render(args)
        root = self.engine.markup.parse(markup)
        self.rendered_root = root
        if self.on_render is not None:
            self.on_render(root)
        return root

    def reload(self, selector: str, new_args: Optional[Mapping[str, Any]] = None) -> bool:
        """
        Перекомпилирует и заменяет одно поддерево живого вывода.

        Returns:
            False, если шаблон не запускался или селектор не найден
            в снимке или в живом дереве (ничего не меняется)
        """
        return reload_instance(self, selector, new_args)

    def dispose(self) -> None:
        """Удаляет экземпляр из реестра. Захваченные значения не очищаются."""
        self.engine.instances.pop(self.id, None)

    def include_handler(self, scope: Scope) -> Callable[[str], str]:
        """Обработчик include, рендерящий вложенные шаблоны с копией scope."""
        def include(name: str) -> str:
            return self.engine.render_include(name, scope, self.capture_owner)
        return include

    # ------------------------------------------------------------------ #
    # Таблица захвата
    # ------------------------------------------------------------------ #

    def capture(self, value: Any) -> int:
        key = id(value)
        index = self._capture_index.get(key)
        if index is None:
            index = len(self.captured_values)
            self.captured_values.append(value)
            self._capture_index[key] = index
        return index

    def capture_reference(self, index: int) -> str:
        return self.engine.config.format_reference(self.id, index)


__all__ = ["TemplateInstance", "RenderHook"]
