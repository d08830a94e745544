"""
Base exceptions for user-facing errors.

All expected errors that should be displayed to the user
as clean messages (without stack traces) must inherit from FragTplUserError.

Programming errors and bugs should NOT inherit from FragTplUserError —
they will propagate with full tracebacks.
"""

from __future__ import annotations

from typing import Optional


class FragTplUserError(Exception):
    """
    Base class for all user-facing errors in fragtpl.

    These errors indicate problems that the user can fix:
    missing template sources, broken expressions, invalid configuration.
    """
    pass


class SourceNotFoundError(FragTplUserError):
    """Источник шаблона не найден через функцию поиска."""

    def __init__(self, name: str):
        super().__init__(f"Template source '{name}' doesn't exist")
        self.name = name


class TemplateGenerationError(FragTplUserError):
    """Ошибка генерации/компиляции шаблона (битое выражение, несбалансированный блок)."""

    def __init__(self, message: str, template_name: str = "", directive: str = "",
                 cause: Optional[Exception] = None):
        where = f" in '{template_name}'" if template_name else ""
        what = f" at {directive}" if directive else ""
        super().__init__(f"Template generation error{where}: {message}{what}")
        self.template_name = template_name
        self.directive = directive
        self.cause = cause


class TemplateRenderError(FragTplUserError):
    """Ошибка вычисления выражения во время рендеринга."""

    def __init__(self, message: str, template_name: str = "", directive: str = "",
                 cause: Optional[Exception] = None):
        where = f" in '{template_name}'" if template_name else ""
        what = f" at {directive}" if directive else ""
        super().__init__(f"Template render error{where}: {message}{what}")
        self.template_name = template_name
        self.directive = directive
        self.cause = cause


class ConfigLoadError(FragTplUserError, ValueError):
    """Ошибка загрузки конфигурации движка."""
    pass


__all__ = [
    "FragTplUserError",
    "SourceNotFoundError",
    "TemplateGenerationError",
    "TemplateRenderError",
    "ConfigLoadError",
]
