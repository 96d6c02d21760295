# helperbars/core/templating/registry.py
"""
Immutable helper registry.

A HelperRegistry is never changed in place. Registering or replacing a helper
returns a new registry, which the owning RenderEnvironment swaps in as a
single reference assignment, so renders that already hold the old snapshot
keep a consistent view.
"""
import functools
from types import MappingProxyType
from typing import Any, Callable, Dict, Iterator, Mapping, Optional

import requests

from helperbars.core.cache import TTLCache

from .helpers import STATELESS_HELPERS, make_cache_helpers, make_network_helpers
from .markup import from_engine_text, is_safe_string, to_engine_text

HelperFunc = Callable[..., Any]


def _bind(func: HelperFunc) -> HelperFunc:
    # pybars passes the current scope ('this') first; plain helpers do not take it.
    safe = is_safe_string(func)

    @functools.wraps(func)
    def helper(this: Any, *args: Any, **kwargs: Any) -> Any:
        args = tuple(from_engine_text(arg) for arg in args)
        kwargs = {key: from_engine_text(value) for key, value in kwargs.items()}
        result = func(*args, **kwargs)
        return to_engine_text(result) if safe else result
    return helper


class HelperRegistry(Mapping[str, HelperFunc]):
    """Read-only mapping of helper name to plain Python callable."""

    def __init__(self, helpers: Optional[Mapping[str, HelperFunc]] = None):
        plain = dict(helpers or {})
        self._helpers = MappingProxyType(plain)
        self._engine_helpers = MappingProxyType({name: _bind(func) for name, func in plain.items()})

    def __getitem__(self, name: str) -> HelperFunc:
        return self._helpers[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._helpers)

    def __len__(self) -> int:
        return len(self._helpers)

    def __repr__(self) -> str:
        return f"HelperRegistry({len(self._helpers)} helpers)"

    @property
    def engine_helpers(self) -> Mapping[str, HelperFunc]:
        """The same helpers adapted to pybars' calling convention."""
        return self._engine_helpers

    def replace(self, name: str, func: HelperFunc) -> "HelperRegistry":
        """A new registry with ``name`` bound to ``func``."""
        helpers = dict(self._helpers)
        helpers[name] = func
        return HelperRegistry(helpers)

    def merge(self, helpers: Mapping[str, HelperFunc]) -> "HelperRegistry":
        merged = dict(self._helpers)
        merged.update(helpers)
        return HelperRegistry(merged)


def build_default_registry(
    template_cache: TTLCache,
    token_cache: TTLCache,
    session: requests.Session,
) -> HelperRegistry:
    """Every built-in helper, with stateful ones bound to the given cache and session."""
    helpers: Dict[str, HelperFunc] = dict(STATELESS_HELPERS)
    helpers.update(make_cache_helpers(template_cache))
    helpers.update(make_network_helpers(session, token_cache))
    return HelperRegistry(helpers)
