from __future__ import annotations

import argparse
import io
import logging
import os
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

from pydantic import BaseModel
from ruamel.yaml import YAML
from ruamel.yaml.error import YAMLError

from .config import DEFAULT_CFG_FILE, EngineConfig, load_config
from .engine import TemplateEngine
from .errors import FragTplUserError
from .jsonic import dumps as jdumps
from .sources import DirectorySource
from .template.nodes import format_program
from .template.renderer import Renderer
from .version import environment, tool_version

_yaml = YAML(typ="safe")


# --------------------------------------------------------------------------- #
# Модели отчёта inspect
# --------------------------------------------------------------------------- #
class SpanReport(BaseModel):
    index: int
    form: str
    source: str
    position: int
    token: str


class InspectReport(BaseModel):
    name: str
    spans: List[SpanReport]
    program: List[str]
    snapshot: str


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="fragtpl",
        description="Fragment template compiler and renderer",
        add_help=True,
    )
    p.add_argument("-v", "--version", action="version", version=f"%(prog)s {tool_version()}")
    sub = p.add_subparsers(dest="cmd", required=True)

    # Общие аргументы для всех подкоманд
    def add_common(sp: argparse.ArgumentParser) -> None:
        sp.add_argument(
            "--templates",
            metavar="DIR",
            help="каталог шаблонов (по умолчанию templates_dir из конфигурации)",
        )
        sp.add_argument(
            "--config",
            metavar="FILE",
            help=f"файл конфигурации (по умолчанию ./{DEFAULT_CFG_FILE})",
        )

    sp_render = sub.add_parser("render", help="Отрендерить шаблон и вывести разметку")
    sp_render.add_argument("name", help="имя шаблона (без суффикса)")
    add_common(sp_render)
    sp_render.add_argument(
        "--args",
        metavar="JSON|@FILE|-",
        help=(
            "аргументы шаблона: JSON/YAML-строка, @file для чтения из файла, "
            "или - для чтения из stdin"
        ),
    )

    sp_inspect = sub.add_parser("inspect", help="JSON-отчёт: спаны, инструкции, снимок")
    sp_inspect.add_argument("name", help="имя шаблона (без суффикса)")
    add_common(sp_inspect)

    sp_list = sub.add_parser("list", help="Список шаблонов (JSON)")
    add_common(sp_list)

    sp_diag = sub.add_parser("diag", help="Версии интерпретатора и зависимостей (JSON)")

    # JSON-ответы
    for sp in (sp_inspect, sp_list, sp_diag):
        sp.add_argument("--pretty", action="store_true", help="JSON с отступами")

    return p


def _setup_logging() -> None:
    level = logging.DEBUG if os.environ.get("FRAGTPL_DEBUG") else logging.WARNING
    root = logging.getLogger("fragtpl")
    root.setLevel(level)
    if not root.handlers:
        h = logging.StreamHandler()
        h.setFormatter(logging.Formatter("[%(levelname)s] %(message)s"))
        root.addHandler(h)


def _config(ns: argparse.Namespace) -> EngineConfig:
    path = Path(ns.config) if ns.config else Path.cwd() / DEFAULT_CFG_FILE
    if ns.config and not path.exists():
        raise ValueError(f"Config file not found: {path}")
    return load_config(path)


def _templates_dir(ns: argparse.Namespace, cfg: EngineConfig) -> Path:
    return Path(ns.templates) if ns.templates else Path.cwd() / cfg.templates_dir


def _parse_args_arg(args_arg: Optional[str]) -> Dict[str, Any]:
    """
    Разбирает аргумент --args.

    Поддерживает:
    - "-" для чтения из stdin
    - "@file" для чтения из файла
    - обычную строку (JSON является подмножеством YAML)
    """
    if not args_arg:
        return {}

    if args_arg == "-":
        text = sys.stdin.read()
    elif args_arg.startswith("@"):
        file_path = Path(args_arg[1:])
        if not file_path.exists():
            raise ValueError(f"Args file not found: {file_path}")
        text = file_path.read_text(encoding="utf-8")
    else:
        text = args_arg

    try:
        data = _yaml.load(io.StringIO(text))
    except YAMLError as e:
        raise ValueError(f"Failed to parse template args: {e}") from e

    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ValueError(f"Template args must be a mapping, got {type(data).__name__}")
    return data


def _inspect(engine: TemplateEngine, name: str) -> InspectReport:
    instance = engine.create(name)
    try:
        renderer: Renderer = instance.compile()
        spans = [
            SpanReport(
                index=s.index,
                form=s.form.value,
                source=s.source,
                position=s.position,
                token=s.token,
            )
            for s in instance.spans
        ]
        return InspectReport(
            name=name,
            spans=spans,
            program=format_program(renderer.program).splitlines(),
            snapshot=instance.snapshot_markup,
        )
    finally:
        instance.dispose()


def main(argv: list[str] | None = None) -> int:
    ns = _build_parser().parse_args(argv)
    _setup_logging()

    try:
        if ns.cmd == "diag":
            sys.stdout.write(jdumps(environment(), pretty=ns.pretty))
            return 0

        cfg = _config(ns)
        templates = _templates_dir(ns, cfg)

        if ns.cmd == "render":
            engine = TemplateEngine.from_directory(templates, cfg)
            sys.stdout.write(engine.render(ns.name, _parse_args_arg(ns.args)))
            return 0

        if ns.cmd == "inspect":
            engine = TemplateEngine.from_directory(templates, cfg)
            report = _inspect(engine, ns.name)
            sys.stdout.write(jdumps(report, pretty=ns.pretty))
            return 0

        if ns.cmd == "list":
            names = DirectorySource(templates, cfg.template_suffix).list_names()
            sys.stdout.write(jdumps({"templates": names}, pretty=ns.pretty))
            return 0

    except FragTplUserError as e:
        sys.stderr.write(str(e).rstrip() + "\n")
        return 2
    except ValueError as e:
        sys.stderr.write(str(e).rstrip() + "\n")
        return 2

    return 2


if __name__ == "__main__":
    raise SystemExit(main())
