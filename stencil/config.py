"""
Опции компиляции и их загрузка из YAML.

Опции задаются при создании окружения и переопределяются для отдельных
вызовов ``compile``/``render``. Файл опций (``stencil.yaml``) может
содержать те же ключи, а также ``root`` (базовый каталог шаблонов).
"""

from __future__ import annotations

from dataclasses import dataclass, field, fields, replace
from pathlib import Path
from typing import Any, Dict, Mapping, Optional, Tuple, Union

from ruamel.yaml import YAML

from .errors import OptionsError

_yaml = YAML(typ="safe")

# camelCase-алиасы ключей опций
_ALIASES = {
    "varControls": "var_controls",
    "tagControls": "tag_controls",
    "cmtControls": "cmt_controls",
    "resolveFrom": "resolve_from",
}

_CONTROL_KEYS = ("var_controls", "tag_controls", "cmt_controls")


@dataclass(frozen=True)
class Options:
    """
    Опции компиляции шаблонов.

    Attributes:
        autoescape: True/"html", "js" или False
        var_controls: Разделители переменных
        tag_controls: Разделители тегов
        cmt_controls: Разделители комментариев
        locals: Локальные переменные по умолчанию
        cache: True (кэш в памяти окружения), False или объект с get/set
        loader: Загрузчик шаблонов (None - файловый загрузчик окружения)
        filename: Имя компилируемого шаблона
        resolve_from: Файл, относительно которого разрешаются пути
    """
    autoescape: Union[bool, str] = True
    var_controls: Tuple[str, str] = ("{{", "}}")
    tag_controls: Tuple[str, str] = ("{%", "%}")
    cmt_controls: Tuple[str, str] = ("{#", "#}")
    locals: Mapping[str, Any] = field(default_factory=dict)
    cache: Any = True
    loader: Any = None
    filename: Optional[str] = None
    resolve_from: Optional[str] = None

    def merged(self, **overrides: Any) -> Options:
        """Возвращает проверенную копию с переопределёнными опциями."""
        if not overrides:
            return self
        normalized = normalize_option_keys(overrides)
        for key in _CONTROL_KEYS:
            if key in normalized and isinstance(normalized[key], list):
                normalized[key] = tuple(normalized[key])
        options = replace(self, **normalized)
        validate_options(options)
        return options

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any], base_dir: Optional[Path] = None) -> Options:
        """
        Строит опции из словаря (например, содержимого YAML).

        Ключ ``root`` превращается в файловый загрузчик с этим базовым
        каталогом (относительно ``base_dir``).
        """
        data = dict(raw)
        root = data.pop("root", None)
        if root is not None:
            from .loaders import FileSystemLoader

            root_path = Path(str(root))
            if base_dir is not None and not root_path.is_absolute():
                root_path = base_dir / root_path
            data["loader"] = FileSystemLoader(str(root_path))
        return cls().merged(**data)


def normalize_option_keys(raw: Mapping[str, Any]) -> Dict[str, Any]:
    """Приводит ключи к snake_case и отклоняет неизвестные."""
    known = {f.name for f in fields(Options)}
    result: Dict[str, Any] = {}
    for key, value in raw.items():
        name = _ALIASES.get(key, key)
        if name not in known:
            raise OptionsError(f'Unknown option "{key}".')
        result[name] = value
    return result


def validate_options(options: Options) -> None:
    """
    Проверяет опции.

    Raises:
        OptionsError: При некорректных разделителях, autoescape или locals
    """
    for key in _CONTROL_KEYS:
        controls = getattr(options, key)
        if (not isinstance(controls, (tuple, list)) or len(controls) != 2
                or not all(isinstance(c, str) for c in controls)):
            raise OptionsError(f'Option "{key}" must be a pair of strings.')
        open_, close = controls
        if open_ == close:
            raise OptionsError(f'Option "{key}" open and close controls must not be the same.')
        for side, control in (("open", open_), ("close", close)):
            if len(control) < 2:
                raise OptionsError(
                    f'Option "{key}" {side} control must be at least 2 characters. Saw "{control}" instead.'
                )

    escape = options.autoescape
    if not (isinstance(escape, bool) or escape in ("html", "js")):
        raise OptionsError('Option "autoescape" must be true, false, "html" or "js".')

    if not isinstance(options.locals, Mapping):
        raise OptionsError('Option "locals" must be a mapping.')

    loader = options.loader
    if loader is not None and not (callable(getattr(loader, "resolve", None))
                                   and callable(getattr(loader, "load", None))):
        raise OptionsError('Option "loader" must provide resolve() and load().')


def _read_yaml_map(path: Path) -> dict:
    """Читает YAML файл и возвращает словарь."""
    raw = _yaml.load(path.read_text(encoding="utf-8")) or {}
    if not isinstance(raw, dict):
        raise OptionsError(f"YAML must be a mapping: {path}")
    return raw


def load_options(path: Path) -> Options:
    """Загружает опции из YAML-файла."""
    return Options.from_dict(_read_yaml_map(path), base_dir=path.parent)


def load_data(path: Path) -> Dict[str, Any]:
    """Загружает локальные переменные рендеринга из YAML/JSON-файла."""
    return _read_yaml_map(path)


__all__ = ["Options", "normalize_option_keys", "validate_options", "load_options", "load_data"]
