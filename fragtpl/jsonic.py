from __future__ import annotations

import json
from enum import Enum
from pathlib import PurePath
from typing import Any

from pydantic import BaseModel


def _default(obj: Any) -> Any:
    """Кодирование типов, которые встречаются в отчётах CLI."""
    if isinstance(obj, BaseModel):
        return obj.model_dump(mode="json")
    if isinstance(obj, PurePath):
        return obj.as_posix()
    if isinstance(obj, Enum):
        return obj.value
    if isinstance(obj, (set, frozenset)):
        return sorted(obj, key=str)
    raise TypeError(f"Object of type {type(obj).__name__} is not JSON serializable")


def dumps(obj: Any, *, pretty: bool = False) -> str:
    """
    JSON для ответов CLI (ensure_ascii=False).
    pretty включает отступы (флаг --pretty).
    """
    return json.dumps(obj, ensure_ascii=False, default=_default, indent=2 if pretty else None)


__all__ = ["dumps"]
