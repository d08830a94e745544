"""
fragtpl — компилятор и движок шаблонов фрагментов разметки.
"""

from __future__ import annotations

from .config import EngineConfig, load_config
from .engine import TemplateEngine
from .errors import (
    FragTplUserError,
    SourceNotFoundError,
    TemplateGenerationError,
    TemplateRenderError,
    ConfigLoadError,
)
from .instance import TemplateInstance
from .markup import MarkupTree, SoupMarkupTree
from .sources import DirectorySource, MappingSource

__all__ = [
    "EngineConfig",
    "load_config",
    "TemplateEngine",
    "TemplateInstance",
    "MarkupTree",
    "SoupMarkupTree",
    "DirectorySource",
    "MappingSource",
    "FragTplUserError",
    "SourceNotFoundError",
    "TemplateGenerationError",
    "TemplateRenderError",
    "ConfigLoadError",
]
