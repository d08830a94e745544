"""
Точечная перезагрузка фрагмента отрендеренного вывода.

Узел структурного снимка сериализуется, токены спанов заменяются
исходными плейсхолдерами, и полученный текст компилируется в
одноразовый рендерер. Результат рендеринга подменяет соответствующий
узел живого дерева; остальная часть дерева не трогается.
"""

from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Any, Mapping, Optional

from .template.codegen import generate_program
from .template.common import Scope
from .template.lexer import SpanExtractor, restore_spans
from .template.renderer import Renderer
from .template.tokens import protect_braces

if TYPE_CHECKING:
    from .instance import TemplateInstance

logger = logging.getLogger(__name__)

# Текст фрагмента уже нормализован при компиляции шаблона
_FRAGMENT_EXTRACTOR = SpanExtractor(trim_lines=False)


def reload_fragment(instance: TemplateInstance, snapshot_node: Any, live_node: Any,
                    scope: Scope) -> Optional[Any]:
    """
    Перекомпилирует фрагмент снимка и подменяет им живой узел.

    Args:
        instance: Владелец спанов, таблицы захвата и коллабораторов
        snapshot_node: Узел структурного снимка
        live_node: Соответствующий узел живого дерева
        scope: Область видимости для рендеринга фрагмента

    Returns:
        Узел-замена или None, если фрагмент не дал ни одного элемента
        (живой узел в этом случае удаляется)
    """
    engine = instance.engine
    markup = engine.markup

    # Сериализатор декодирует сущности вроде &#123;, поэтому все настоящие
    # скобки снимка считаются текстом; скобки спанов вернёт restore_spans
    fragment_source = restore_spans(protect_braces(markup.serialize(snapshot_node)), instance.spans)
    extracted = _FRAGMENT_EXTRACTOR.extract(fragment_source)

    program = generate_program(extracted.segments, instance.include_handler(scope))
    renderer = Renderer(program, f"{instance.name}#fragment", engine.globals)
    rendered = renderer(instance.capture_owner, scope)

    return markup.replace(live_node, rendered)


def reload_instance(instance: TemplateInstance, selector: str,
                    new_args: Optional[Mapping[str, Any]] = None) -> bool:
    """
    Протокол reload для экземпляра шаблона.

    Новые аргументы накладываются на копию сохранённой области видимости;
    сама область видимости экземпляра не обновляется.

    Returns:
        True, если узел был перерендерен
    """
    markup = instance.engine.markup

    if instance.snapshot is None or instance.rendered_root is None:
        logger.debug("Reload miss in '%s' (#%d): template was never run", instance.name, instance.id)
        return False

    snapshot_node = markup.find(instance.snapshot, selector)
    if snapshot_node is None:
        logger.debug("Reload miss in '%s' (#%d): '%s' not in snapshot", instance.name, instance.id, selector)
        return False

    live_node = markup.find(instance.rendered_root, selector)
    if live_node is None:
        logger.debug("Reload miss in '%s' (#%d): '%s' not in output", instance.name, instance.id, selector)
        return False

    scope = Scope(instance.scope)
    scope.update(new_args or {})

    replacement = reload_fragment(instance, snapshot_node, live_node, scope)
    logger.debug("Reloaded '%s' in '%s' (#%d)", selector, instance.name, instance.id)

    if replacement is not None and instance.on_render is not None:
        instance.on_render(replacement)
    return True


__all__ = ["reload_fragment", "reload_instance", "restore_spans"]
