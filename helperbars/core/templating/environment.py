# helperbars/core/templating/environment.py
"""
RenderEnvironment: everything a render needs, passed explicitly.

An environment owns the helper registry snapshot, the partials snapshot, the
two TTL caches, the HTTP session and the pybars compiler. Templates look up
the environment's current snapshots each time they execute, so toggling the
unsafe-render gate or loading a partial affects already-parsed templates too.
"""
import re
import threading
from datetime import timedelta
from pathlib import Path
from types import MappingProxyType
from typing import Any, Callable, Dict, List, Mapping, Optional, Union

import pybars  # type: ignore
import requests
import structlog

from helperbars.config.settings import RenderConfig
from helperbars.core.cache import TTLCache
from helperbars.core.coercion import JSONNumber
from helperbars.exceptions import ConfigError, FeatureDisabledError, RenderError, TemplateSyntaxError

from .markup import safe_string
from .registry import HelperFunc, HelperRegistry, build_default_registry

log = structlog.get_logger(__name__)

UNSAFE_RENDER_HELPER = "UNSAFE_render"
UNSAFE_RENDER_DISABLED_MESSAGE = "UNSAFE_render method is disabled"
TEMPLATE_CACHE_SWEEP_INTERVAL = timedelta(minutes=15)
TOKEN_CACHE_SWEEP_INTERVAL = timedelta(minutes=5)

CompiledTemplate = Callable[..., Any]

# pybars drops an unclosed block instead of failing, so block tags are paired here.
_COMMENT_RE = re.compile(r"\{\{~?!.*?\}\}", re.DOTALL)
_RAW_BLOCK_RE = re.compile(r"\{\{\{\{\s*([^\s}]+)[^}]*\}\}\}\}.*?\{\{\{\{/\1\}\}\}\}", re.DOTALL)
_BLOCK_TAG_RE = re.compile(r"\{\{~?\s*([#^/])\s*([^\s}~()]*)")


def _check_block_balance(source: str) -> None:
    """Raise TemplateSyntaxError unless every ``{{#x}}``/``{{^x}}`` has a matching ``{{/x}}``."""
    stripped = _RAW_BLOCK_RE.sub("", _COMMENT_RE.sub("", source))
    open_blocks: List[str] = []
    for match in _BLOCK_TAG_RE.finditer(stripped):
        sigil, name = match.groups()
        if sigil == "/":
            if not open_blocks:
                raise TemplateSyntaxError(f"unexpected closing tag {{{{/{name}}}}}")
            expected = open_blocks.pop()
            if name != expected:
                raise TemplateSyntaxError(f"{{{{/{name}}}}} does not close {{{{#{expected}}}}}")
        elif name:
            # a bare {{^}} is an else branch, not a block.
            open_blocks.append(name)
    if open_blocks:
        raise TemplateSyntaxError(f"unclosed block {{{{#{open_blocks[-1]}}}}}")


class RenderEnvironment:
    """Helper registry, partials, caches and HTTP session shared by a set of templates."""

    def __init__(
        self,
        config: Optional[RenderConfig] = None,
        session: Optional[requests.Session] = None,
        template_cache: Optional[TTLCache] = None,
        token_cache: Optional[TTLCache] = None,
    ):
        self.template_cache = template_cache if template_cache is not None else TTLCache(TEMPLATE_CACHE_SWEEP_INTERVAL)
        self.token_cache = token_cache if token_cache is not None else TTLCache(TOKEN_CACHE_SWEEP_INTERVAL)
        self.session = session if session is not None else requests.Session()
        self._compiler = pybars.Compiler()
        self._compile_lock = threading.Lock()
        # serializes snapshot swaps; renders only read the current references.
        self._lock = threading.Lock()
        self._unsafe_render_allowed = False
        registry = build_default_registry(self.template_cache, self.token_cache, self.session)
        self._registry = registry.replace(UNSAFE_RENDER_HELPER, self._disabled_unsafe_render)
        self._partials: Mapping[str, CompiledTemplate] = MappingProxyType({})
        if config is not None:
            self.configure(config)

    @property
    def registry(self) -> HelperRegistry:
        return self._registry

    @property
    def partials(self) -> Mapping[str, CompiledTemplate]:
        return self._partials

    @property
    def unsafe_render_allowed(self) -> bool:
        return self._unsafe_render_allowed

    def register_helper(self, name: str, func: HelperFunc) -> None:
        """Bind ``name`` to ``func`` for every subsequent render."""
        with self._lock:
            self._registry = self._registry.replace(name, func)
        log.debug("helper_registered", name=name)

    def allow_unsafe_render(self, allow: bool) -> None:
        """Open or close the UNSAFE_render gate."""
        handler = self._unsafe_render if allow else self._disabled_unsafe_render
        with self._lock:
            self._registry = self._registry.replace(UNSAFE_RENDER_HELPER, handler)
            self._unsafe_render_allowed = allow
        log.info("unsafe_render_toggled", allowed=allow)

    def configure(self, config: RenderConfig) -> None:
        self.allow_unsafe_render(config.allow_unsafe_render)
        if config.partials:
            self.load_partial_files(*config.partials)

    def compile(self, source: str, source_name: str = "<string>") -> CompiledTemplate:
        if not isinstance(source, str):
            raise TemplateSyntaxError(f"Template source for '{source_name}' must be text, got {type(source).__name__}")
        with self._compile_lock:
            try:
                _check_block_balance(source)
                compiled = self._compiler.compile(source)
            except Exception as e:
                log.error("template_compilation_failed", source=source_name, error=str(e))
                raise TemplateSyntaxError(f"Failed to compile template from '{source_name}': {e}") from e
        log.debug("template_compiled_successfully", source=source_name)
        return compiled

    def render(self, compiled: CompiledTemplate, data: Any, source_name: str = "<string>") -> str:
        """Run a compiled template against ``data``; any failure becomes a RenderError."""
        helpers = dict(self._registry.engine_helpers)
        partials = dict(self._partials)
        try:
            return str(compiled({} if data is None else data, helpers=helpers, partials=partials))
        except Exception as e:
            log.error("template_rendering_error_occurred", source=source_name, error_message=str(e))
            raise RenderError(f"Template render failed for '{source_name}': {e}") from e

    def load_partial(self, name: str, source: str) -> None:
        """Compile ``source`` and make it available as ``{{> name}}``."""
        compiled = self.compile(source, source_name=f"partial:{name}")
        with self._lock:
            partials = dict(self._partials)
            partials[name] = compiled
            self._partials = MappingProxyType(partials)
        log.info("partial_loaded", name=name)

    def load_partial_files(self, *paths: Union[str, Path]) -> None:
        """Load each file as a partial named after its file stem."""
        for raw_path in paths:
            path = Path(raw_path)
            try:
                source = path.read_text(encoding="utf-8")
            except OSError as e:
                log.error("partial_file_read_failed", path=str(path), error=str(e))
                raise ConfigError(f"Failed to read partial file {path}: {e}") from e
            self.load_partial(path.stem, source)

    def interpolate(self, data: Any, text: str) -> str:
        """Parse and render ``text`` in one step."""
        return self.render(self.compile(text), data)

    def interpolate_map(self, data: Any, mapping: Mapping[str, Any]) -> Dict[str, Any]:
        """Render every string value of ``mapping``, recursing into nested mappings.

        JSON numbers become floats; other values are copied unchanged.
        """
        result: Dict[str, Any] = {}
        for key, value in mapping.items():
            if isinstance(value, JSONNumber):
                result[key] = value.float64
            elif isinstance(value, str):
                result[key] = self.interpolate(data, value)
            elif isinstance(value, Mapping):
                result[key] = self.interpolate_map(data, value)
            else:
                result[key] = value
        return result

    def _disabled_unsafe_render(self, filename: Any, data: Any = None) -> str:
        raise FeatureDisabledError(UNSAFE_RENDER_DISABLED_MESSAGE)

    @safe_string
    def _unsafe_render(self, filename: str, data: Any = None) -> str:
        path = Path(filename)
        log.info("unsafe_render_reading_file", path=str(path))
        source = path.read_text(encoding="utf-8")
        return self.render(self.compile(source, source_name=str(path)), data, source_name=str(path))


_default_environment: Optional[RenderEnvironment] = None
_default_environment_lock = threading.Lock()


def get_default_environment() -> RenderEnvironment:
    """The process-wide environment used when no environment is passed."""
    global _default_environment
    with _default_environment_lock:
        if _default_environment is None:
            _default_environment = RenderEnvironment()
        return _default_environment
