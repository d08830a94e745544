"""
Дерево разметки: внешний коллаборатор для снимка и живого вывода.

Ядро разбирает разметку, ищет первого потомка по селектору, заменяет
узлы и сериализует их. Реализация по умолчанию
построена на BeautifulSoup и CSS-селекторах soupsieve.
"""

from __future__ import annotations

from typing import Any, Optional, Protocol, runtime_checkable

from bs4 import BeautifulSoup
from bs4.element import Tag


@runtime_checkable
class MarkupTree(Protocol):
    """
    Протокол дерева разметки.

    Узлы непрозрачны для ядра: оно лишь передаёт их обратно в методы
    протокола и в пост-рендер хук.
    """

    def parse(self, markup: str) -> Any:
        """Разбирает разметку в новый узел-контейнер и возвращает его."""
        ...

    def find(self, root: Any, selector: str) -> Optional[Any]:
        """Первый потомок root, соответствующий селектору, или None."""
        ...

    def replace(self, node: Any, markup: str) -> Optional[Any]:
        """
        Заменяет node первым элементом, полученным из markup.

        Returns:
            Новый узел или None, если markup не содержит элементов
            (в этом случае node удаляется).
        """
        ...

    def serialize(self, node: Any) -> str:
        """Внешняя разметка узла."""
        ...

    def inner(self, root: Any) -> str:
        """Разметка содержимого контейнера."""
        ...


class SoupMarkupTree:
    """
    Реализация MarkupTree на BeautifulSoup.
    """

    def __init__(self, parser: str = "html.parser", container_tag: str = "div"):
        """
        Args:
            parser: Имя парсера BeautifulSoup
            container_tag: Тег контейнера, в который помещается разобранная разметка
        """
        self.parser = parser
        self.container_tag = container_tag

    def parse(self, markup: str) -> Tag:
        soup = BeautifulSoup(markup, self.parser)
        root = soup.new_tag(self.container_tag)
        root.extend(list(soup.contents))
        soup.append(root)
        return root

    def find(self, root: Tag, selector: str) -> Optional[Tag]:
        return root.select_one(selector)

    def replace(self, node: Tag, markup: str) -> Optional[Tag]:
        fragment = BeautifulSoup(markup, self.parser)
        replacement = next((c for c in fragment.contents if isinstance(c, Tag)), None)
        if replacement is None:
            node.extract()
            return None
        node.replace_with(replacement.extract())
        return replacement

    def serialize(self, node: Tag) -> str:
        return str(node)

    def inner(self, root: Tag) -> str:
        return root.decode_contents()


__all__ = ["MarkupTree", "SoupMarkupTree"]
