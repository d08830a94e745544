"""
Движок шаблонов: явный владелец реестра экземпляров.

Хранит коллабораторов (функцию поиска исходников, дерево разметки,
пост-рендер хук по умолчанию), конфигурацию, счётчик идентификаторов
и отображение id -> экземпляр.
"""

from __future__ import annotations

import itertools
import logging
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .config import EngineConfig
from .errors import SourceNotFoundError
from .instance import RenderHook, TemplateInstance
from .markup import MarkupTree, SoupMarkupTree
from .sources import DirectorySource, SourceLookup
from .template.lexer import SpanExtractor

logger = logging.getLogger(__name__)


class TemplateEngine:
    """
    Реестр экземпляров шаблонов и их общие зависимости.

    Экземпляры попадают в реестр при создании и удаляются только
    явным dispose(); идентификаторы монотонно растут и не переиспользуются.
    """

    def __init__(self,
                 source_lookup: SourceLookup,
                 markup: Optional[MarkupTree] = None,
                 config: Optional[EngineConfig] = None,
                 on_render: Optional[RenderHook] = None,
                 globals: Optional[Mapping[str, Any]] = None):
        """
        Args:
            source_lookup: Функция имя -> текст шаблона (None, если нет)
            markup: Реализация дерева разметки (по умолчанию BeautifulSoup)
            config: Настройки движка
            on_render: Хук по умолчанию для новых экземпляров
            globals: Дополнительные имена, доступные выражениям шаблонов
        """
        self.config = config or EngineConfig()
        self.source_lookup = source_lookup
        self.markup: MarkupTree = markup or SoupMarkupTree(self.config.markup_parser)
        self.on_render = on_render
        self.globals: Dict[str, Any] = dict(globals or {})
        self.extractor = SpanExtractor(trim_lines=self.config.trim_lines)

        self.instances: Dict[int, TemplateInstance] = {}
        self._ids = itertools.count(1)

    @classmethod
    def from_directory(cls, root: Path, config: Optional[EngineConfig] = None, **kwargs: Any) -> TemplateEngine:
        """Движок, читающий шаблоны из каталога с суффиксом из конфигурации."""
        config = config or EngineConfig()
        return cls(DirectorySource(root, config.template_suffix), config=config, **kwargs)

    # ------------------------------------------------------------------ #
    # Реестр
    # ------------------------------------------------------------------ #

    def create(self, name: str, on_render: Optional[RenderHook] = None) -> TemplateInstance:
        """Создаёт и регистрирует экземпляр шаблона (без компиляции)."""
        instance_id = next(self._ids)
        instance = TemplateInstance(self, instance_id, name, on_render or self.on_render)
        self.instances[instance_id] = instance
        return instance

    def get_by_id(self, instance_id: int) -> Optional[TemplateInstance]:
        return self.instances.get(instance_id)

    def lookup(self, instance_id: int, index: int) -> Any:
        """
        Разрешает ссылку на захваченное значение.

        Raises:
            KeyError: Экземпляр не зарегистрирован (или уже удалён)
            IndexError: Индекс за пределами таблицы захвата
        """
        instance = self.instances.get(instance_id)
        if instance is None:
            raise KeyError(f"Unknown template instance #{instance_id}")
        return instance.captured_values[index]

    def resolve(self, reference: str) -> Any:
        """
        Разрешает текст ссылки, выведенный директивой serialize.

        Raises:
            ValueError: Текст не соответствует формату capture_reference
            KeyError, IndexError: Как у lookup()
        """
        parsed = self.config.parse_reference(reference)
        if parsed is None:
            raise ValueError(
                f"Not a capture reference: {reference!r} "
                f"(expected format {self.config.capture_reference!r})"
            )
        return self.lookup(*parsed)

    # ------------------------------------------------------------------ #
    # Исходники и include
    # ------------------------------------------------------------------ #

    def load_source(self, name: str) -> str:
        text = self.source_lookup(name)
        if text is None:
            raise SourceNotFoundError(name)
        return text

    def render_include(self, name: str, scope: Mapping[str, Any],
                       owner: Optional[TemplateInstance] = None) -> str:
        """
        Рендерит вложенный шаблон для директивы include.

        Временный экземпляр рендерится с копией области видимости
        и сразу удаляется из реестра. Значения serialize попадают
        в таблицу захвата owner, чтобы ссылки оставались разрешимыми.
        """
        logger.debug("Including '%s'", name)
        nested = self.create(name)
        if owner is not None:
            nested.capture_owner = owner
        try:
            return nested.render(scope)
        finally:
            nested.dispose()

    def render(self, name: str, args: Optional[Mapping[str, Any]] = None) -> str:
        """Однократный рендеринг шаблона в строку без сохранения экземпляра."""
        instance = self.create(name)
        try:
            return instance.render(args)
        finally:
            instance.dispose()


__all__ = ["TemplateEngine"]
