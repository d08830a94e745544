"""
Протоколы шаблонизатора.

Определяет интерфейс владельца таблицы захвата, через который
рендерер обрабатывает директиву serialize.
"""

from __future__ import annotations

from typing import Any, Protocol, runtime_checkable


@runtime_checkable
class CaptureHost(Protocol):
    """
    Владелец таблицы захваченных значений (обычно экземпляр шаблона).
    """

    def capture(self, value: Any) -> int:
        """
        Добавляет значение в таблицу (по идентичности) и возвращает его индекс.
        Повторная передача того же объекта возвращает прежний индекс.
        """
        ...

    def capture_reference(self, index: int) -> str:
        """Возвращает текст ссылки на захваченное значение для вставки в разметку."""
        ...


__all__ = ["CaptureHost"]
