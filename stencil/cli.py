from __future__ import annotations

import argparse
import logging
import sys
from pathlib import Path
from typing import Any, Dict, List, Optional

import pathspec

from .config import Options, load_data, load_options
from .environment import Environment
from .errors import StencilError
from .loaders import FileSystemLoader
from .version import tool_version

logger = logging.getLogger(__name__)

DEFAULT_PATTERNS = ["*.html"]


def _build_parser() -> argparse.ArgumentParser:
    p = argparse.ArgumentParser(
        prog="stencil",
        description="Stencil template engine",
        add_help=True,
    )
    p.add_argument("-V", "--version", action="version", version=f"%(prog)s {tool_version()}")
    p.add_argument("-v", "--verbose", action="store_true", help="подробный лог (DEBUG)")
    sub = p.add_subparsers(dest="cmd", required=True)

    def add_common(sp: argparse.ArgumentParser) -> None:
        sp.add_argument(
            "--config",
            metavar="FILE",
            help="YAML-файл опций (autoescape, varControls, ..., root)",
        )

    sp_render = sub.add_parser("render", help="Отрендерить шаблон в stdout")
    sp_render.add_argument("template", help="путь к шаблону")
    sp_render.add_argument("--data", metavar="FILE", help="YAML/JSON-файл с переменными")
    sp_render.add_argument(
        "--var",
        action="append",
        metavar="KEY=VALUE",
        help="переменная шаблона (можно указать несколько)",
    )
    sp_render.add_argument("--root", metavar="DIR", help="базовый каталог шаблонов")
    sp_render.add_argument("--no-autoescape", action="store_true", help="отключить автоэкранирование")
    add_common(sp_render)

    sp_check = sub.add_parser("check", help="Проверить синтаксис шаблонов")
    sp_check.add_argument("path", help="файл или каталог")
    sp_check.add_argument(
        "--pattern",
        action="append",
        metavar="GLOB",
        help="gitwildmatch-шаблон имён файлов (по умолчанию *.html)",
    )
    add_common(sp_check)

    return p


def _configure_logging(verbose: bool) -> None:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(levelname)s %(name)s: %(message)s",
    )


def _options(ns: argparse.Namespace) -> Options:
    options = load_options(Path(ns.config)) if getattr(ns, "config", None) else Options()
    overrides: Dict[str, Any] = {}
    if getattr(ns, "root", None):
        overrides["loader"] = FileSystemLoader(ns.root)
    if getattr(ns, "no_autoescape", False):
        overrides["autoescape"] = False
    return options.merged(**overrides)


def _parse_vars(items: Optional[List[str]]) -> Dict[str, str]:
    """Парсит список переменных в формате 'key=value' в словарь."""
    result: Dict[str, str] = {}
    if not items:
        return result

    for item in items:
        if "=" not in item:
            raise ValueError(f"Invalid variable format '{item}'. Expected 'key=value'")
        key, value = item.split("=", 1)
        result[key.strip()] = value
    return result


def _collect_templates(root: Path, patterns: List[str]) -> List[Path]:
    if root.is_file():
        return [root]
    if not root.is_dir():
        raise ValueError(f"Path not found: {root}")

    spec = pathspec.PathSpec.from_lines("gitwildmatch", patterns)
    files = []
    for path in sorted(root.rglob("*")):
        if path.is_file() and spec.match_file(path.relative_to(root).as_posix()):
            files.append(path)
    return files


def run_render(ns: argparse.Namespace) -> str:
    env = Environment(_options(ns))
    data: Dict[str, Any] = {}
    if ns.data:
        data.update(load_data(Path(ns.data)))
    data.update(_parse_vars(ns.var))

    return env.render_file(ns.template, data)


def run_check(ns: argparse.Namespace) -> int:
    env = Environment(_options(ns), cache=False)
    files = _collect_templates(Path(ns.path), ns.pattern or DEFAULT_PATTERNS)

    failed = 0
    for path in files:
        try:
            env.compile_file(str(path.resolve()))
        except StencilError as e:
            failed += 1
            sys.stderr.write(f"{path}: {e}\n")
        else:
            logger.debug(f"OK {path}")

    sys.stdout.write(f"Checked {len(files)} template(s), {failed} failed\n")
    return 1 if failed else 0


def main(argv: list[str] | None = None) -> int:
    ns = _build_parser().parse_args(argv)
    _configure_logging(ns.verbose)

    try:
        if ns.cmd == "render":
            sys.stdout.write(run_render(ns))
            return 0

        if ns.cmd == "check":
            return run_check(ns)

    except StencilError as e:
        sys.stderr.write(str(e).rstrip() + "\n")
        return 2
    except ValueError as e:
        sys.stderr.write(str(e).rstrip() + "\n")
        return 2

    return 2


if __name__ == "__main__":
    raise SystemExit(main())
