"""
Source lookups: the pluggable ``name -> text | None`` collaborator.

The engine calls the lookup exactly once per compile and treats ``None``
as a hard failure. Two ready-made lookups are provided: one over a
directory of template files and one over an in-memory mapping.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Callable, Dict, List, Mapping, Optional

logger = logging.getLogger(__name__)

SourceLookup = Callable[[str], Optional[str]]

DEFAULT_SUFFIX = ".tpl.html"


class DirectorySource:
    """
    Looks templates up as ``<root>/<name><suffix>`` files.

    Names may contain ``/`` to address templates in subdirectories.
    """

    def __init__(self, root: Path, suffix: str = DEFAULT_SUFFIX):
        self.root = Path(root)
        self.suffix = suffix

    def __call__(self, name: str) -> Optional[str]:
        path = self.path_for(name)
        if not path.is_file():
            logger.debug("Template file not found: %s", path)
            return None
        return path.read_text(encoding="utf-8")

    def path_for(self, name: str) -> Path:
        return self.root / f"{name}{self.suffix}"

    def list_names(self) -> List[str]:
        """All template names available under the root, sorted."""
        if not self.root.is_dir():
            return []
        names = []
        for path in self.root.rglob(f"*{self.suffix}"):
            rel = path.relative_to(self.root).as_posix()
            names.append(rel[: -len(self.suffix)])
        return sorted(names)


class MappingSource:
    """Looks templates up in an in-memory mapping (handy for tests and embedding)."""

    def __init__(self, templates: Optional[Mapping[str, str]] = None):
        self.templates: Dict[str, str] = dict(templates or {})

    def __call__(self, name: str) -> Optional[str]:
        return self.templates.get(name)

    def add(self, name: str, text: str) -> None:
        self.templates[name] = text


__all__ = ["SourceLookup", "DirectorySource", "MappingSource", "DEFAULT_SUFFIX"]
