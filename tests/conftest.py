from pathlib import Path

import pytest

from fragtpl import EngineConfig, MappingSource, TemplateEngine

from tests.infrastructure.file_utils import write


@pytest.fixture
def templates() -> MappingSource:
    """Пустой набор шаблонов в памяти; тесты добавляют их через templates.add()."""
    return MappingSource()


@pytest.fixture
def engine(templates: MappingSource) -> TemplateEngine:
    return TemplateEngine(templates, config=EngineConfig())


@pytest.fixture
def tmpproj(tmp_path: Path) -> Path:
    """Минимальный проект: fragtpl.yaml + templates/ с двумя шаблонами."""
    root = tmp_path
    write(root / "fragtpl.yaml", "schema_version: 1\ntrim_lines: true\n")
    write(root / "templates" / "hello.tpl.html", "Hello {$name}!\n")
    write(
        root / "templates" / "parts" / "list.tpl.html",
        "<ul>\n  {for x of $items}\n    <li>{$x}</li>\n  {/for}\n</ul>\n",
    )
    return root
