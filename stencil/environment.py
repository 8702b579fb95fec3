"""
Окружение шаблонизатора.

Владеет опциями по умолчанию, реестрами тегов и фильтров, глобальной
областью видимости и кэшем скомпилированных шаблонов. Каждое окружение
независимо: общего состояния между экземплярами нет.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from .config import Options, validate_options
from .errors import StencilError
from .filters import register_builtin_filters
from .loaders import BaseLoader, FileSystemLoader
from .runtime import Frame
from .template.base import FunctionTag
from .template.compiler import TemplateCompiler
from .template.inheritance import InheritanceResolver
from .template.nodes import ParsedTemplate, TagNode, TemplateNode
from .template.parser import parse_template
from .template.registry import FilterRegistry, TagRegistry
from .template.tags import register_builtin_tags
from .template.types import FilterSpec, Instruction

logger = logging.getLogger(__name__)

# callback(error, result)
Callback = Callable[[Optional[Exception], Any], None]


class Template:
    """
    Скомпилированный шаблон: вызывается с локальными переменными
    и возвращает строку.

    Attributes:
        name: Имя файла шаблона (None для строковых исходников)
        parent: Имя родителя из ``extends``
        tokens: Итоговое дерево после подстановки блоков
        blocks: Блоки верхнего уровня документа
        document: Исходный разобранный документ
    """

    def __init__(self, env: Environment, instruction: Instruction, document: ParsedTemplate,
                 tokens: List[TemplateNode], options: Options):
        self.env = env
        self.instruction = instruction
        self.document = document
        self.tokens = tokens
        self.options = options

    @property
    def name(self) -> Optional[str]:
        return self.document.name

    @property
    def parent(self) -> Optional[str]:
        return self.document.parent

    @property
    def blocks(self) -> Dict[str, TagNode]:
        return self.document.blocks

    def render(self, locals: Optional[Mapping[str, Any]] = None) -> str:
        context: Dict[str, Any] = {}
        context.update(self.env.options.locals)
        context.update(self.options.locals)
        if locals:
            context.update(locals)
        frame = Frame(self.env, context)
        self.instruction(frame)
        return frame.getvalue()

    __call__ = render

    def __repr__(self) -> str:
        return f"<Template {self.name or '<string>'}>"


class Environment:
    """
    Движок шаблонов.

    Attributes:
        options: Опции по умолчанию
        filters: Реестр фильтров
        tags: Реестр тегов
        globals: Окружающая область видимости (функции и значения, доступные
                 всем шаблонам, если их нет в контексте)
        extensions: Объекты, доступные пользовательским тегам
    """

    def __init__(self, options: Optional[Options] = None, **overrides: Any):
        self.options = (options or Options()).merged(**overrides)
        validate_options(self.options)
        self.loader: BaseLoader = self.options.loader or FileSystemLoader()

        self.filters = FilterRegistry()
        register_builtin_filters(self.filters)
        self.tags = TagRegistry()
        register_builtin_tags(self.tags)

        self.globals: Dict[str, Any] = {}
        self.extensions: Dict[str, Any] = {}
        self.cache: Dict[str, Template] = {}

        self.compiler = TemplateCompiler()
        self.resolver = InheritanceResolver(self)

    # ------------------------------------------------------------------
    # Опции, загрузчик, кэш
    # ------------------------------------------------------------------

    def get_options(self, overrides: Mapping[str, Any]) -> Options:
        return self.options.merged(**overrides)

    def get_loader(self, options: Options) -> BaseLoader:
        return options.loader or self.loader

    def cache_get(self, key: Optional[str], options: Options) -> Optional[Template]:
        if not key or not options.cache:
            return None
        if options.cache is True:
            template = self.cache.get(key)
        else:
            template = options.cache.get(key)
        if template is not None:
            logger.debug(f"Cache hit for {key}")
        return template

    def cache_set(self, key: Optional[str], options: Options, template: Template) -> None:
        if not key or not options.cache:
            return
        logger.debug(f"Caching template {key}")
        if options.cache is True:
            self.cache[key] = template
        else:
            options.cache.set(key, template)

    def invalidate_cache(self) -> None:
        """Очищает кэш шаблонов окружения."""
        logger.debug(f"Invalidating cache ({len(self.cache)} entries)")
        self.cache.clear()

    # ------------------------------------------------------------------
    # Расширение
    # ------------------------------------------------------------------

    def set_filter(self, name: str, func: Callable[..., Any], safe: bool = False) -> FilterSpec:
        if not callable(func):
            raise StencilError(f'Filter "{name}" is not a valid function.')
        return self.filters.register(name, func, safe=safe)

    def set_tag(self, name: str, parse: Callable[..., bool], compile: Callable[..., Optional[Instruction]],
                ends: bool = False, block_level: bool = False) -> None:
        if not callable(parse):
            raise StencilError(f'Tag "{name}" parse method is not a valid function.')
        if not callable(compile):
            raise StencilError(f'Tag "{name}" compile method is not a valid function.')
        self.tags.register(FunctionTag(name, parse, compile, ends=ends, block=block_level))

    def set_extension(self, name: str, obj: Any) -> None:
        self.extensions[name] = obj

    # ------------------------------------------------------------------
    # Разбор и компиляция
    # ------------------------------------------------------------------

    def parse(self, source: str, **options: Any) -> ParsedTemplate:
        return self._parse(source, self.get_options(options))

    def _parse(self, source: str, options: Options) -> ParsedTemplate:
        return parse_template(self, source, options, self.tags, self.filters)

    def parse_file(self, path: str, **options: Any) -> ParsedTemplate:
        """Разбирает файл, найденный загрузчиком относительно ``resolve_from``."""
        return self.load_document(path, self.get_options(options))

    def load_document(self, path: str, options: Options) -> ParsedTemplate:
        loader = self.get_loader(options)
        resolved = loader.resolve(path, options.resolve_from)
        source = loader.load(resolved)
        return self._parse(source, options.merged(filename=resolved))

    def precompile(self, source: str, **options: Any) -> Tuple[Instruction, List[TemplateNode]]:
        """Возвращает инструкцию рендеринга и итоговое дерево шаблона."""
        instruction, tokens, _ = self._precompile(source, self.get_options(options))
        return instruction, tokens

    def _precompile(self, source: str, options: Options) -> Tuple[Instruction, List[TemplateNode], ParsedTemplate]:
        document = self._parse(source, options)
        tokens, parents = self.resolver.resolve(document, options)
        instruction = self.compiler.compile(tokens, parents, options)
        return instruction, tokens, document

    def compile(self, source: str, **options: Any) -> Template:
        return self._compile(source, self.get_options(options))

    def _compile(self, source: str, options: Options) -> Template:
        key = options.filename
        cached = self.cache_get(key, options)
        if cached is not None:
            return cached

        logger.debug(f"Compiling template {key or '<string>'}")
        instruction, tokens, document = self._precompile(source, options)
        template = Template(self, instruction, document, tokens, options)
        self.cache_set(key, options, template)
        return template

    def compile_file(self, path: str, callback: Optional[Callback] = None, **options: Any) -> Optional[Template]:
        """
        Компилирует файл шаблона.

        С ``callback(err, template)`` ошибки загрузки и компиляции передаются
        в него, а метод возвращает None.
        """
        opts = self.get_options(options)
        loader = self.get_loader(opts)
        resolved = loader.resolve(path, opts.resolve_from)
        opts = opts.merged(filename=resolved)

        cached = self.cache_get(resolved, opts)
        if cached is not None:
            if callback is not None:
                callback(None, cached)
                return None
            return cached

        if callback is None:
            return self._compile(loader.load(resolved), opts)

        def on_load(err: Optional[Exception], source: Optional[str]) -> None:
            if err is not None:
                callback(err, None)
                return
            try:
                template = self._compile(source, opts)
            except StencilError as e:
                callback(e, None)
                return
            callback(None, template)

        loader.load(resolved, on_load)
        return None

    # ------------------------------------------------------------------
    # Рендеринг
    # ------------------------------------------------------------------

    def render(self, source: str, locals: Optional[Mapping[str, Any]] = None, **options: Any) -> str:
        return self.compile(source, **options)(locals)

    def render_file(self, path: str, locals: Optional[Mapping[str, Any]] = None,
                    callback: Optional[Callback] = None, **options: Any) -> Optional[str]:
        if callback is None:
            return self.compile_file(path, **options)(locals)

        def on_compiled(err: Optional[Exception], template: Optional[Template]) -> None:
            if err is not None:
                callback(err, None)
                return
            try:
                result = template(locals)
            except Exception as e:
                # Ошибки рендеринга (включая пользовательские фильтры) уходят в callback
                callback(e, None)
                return
            callback(None, result)

        self.compile_file(path, on_compiled, **options)
        return None


__all__ = ["Environment", "Template", "Callback"]
