from __future__ import annotations

import platform
import sys
from importlib import metadata
from typing import Dict

DIST_NAME = "fragtpl"

# Дистрибутивы, от которых зависит движок (имена в индексе пакетов)
STACK_DISTS = ("ruamel.yaml", "pydantic", "beautifulsoup4", "soupsieve")


def dist_version(dist: str) -> str | None:
    try:
        return metadata.version(dist)
    except metadata.PackageNotFoundError:
        return None


def tool_version() -> str:
    """
    Версия установленного fragtpl.
    При запуске из исходников без установки возвращает "0.0.0".
    """
    return dist_version(DIST_NAME) or "0.0.0"


def environment() -> Dict[str, str]:
    """
    Сводка окружения для `fragtpl diag`: интерпретатор, платформа
    и версии зависимостей. Отсутствующий пакет помечается "missing".
    """
    info = {
        "fragtpl": tool_version(),
        "python": f"{sys.version_info.major}.{sys.version_info.minor}.{sys.version_info.micro}",
        "platform": f"{platform.system()} {platform.release()} ({platform.machine()})",
    }
    for dist in STACK_DISTS:
        info[dist] = dist_version(dist) or "missing"
    return info


__all__ = ["tool_version", "dist_version", "environment", "STACK_DISTS"]
