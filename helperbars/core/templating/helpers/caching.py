# helperbars/core/templating/helpers/caching.py
"""cacheSet / cacheGet over the environment's template cache."""
from typing import Any, Callable, Dict

import structlog

from helperbars.core.cache import TTLCache
from helperbars.core.durations import to_approx_duration

log = structlog.get_logger(__name__)


def make_cache_helpers(cache: TTLCache) -> Dict[str, Callable[..., Any]]:

    def cache_set(key: str, value: Any, expire: Any) -> Any:
        # returns the value so templates can store and print in one step.
        ttl = to_approx_duration(expire)
        cache.set_ex(key, value, ttl.to_timedelta())
        log.debug("template_cache_set", key=key, ttl=ttl.pretty)
        return value

    def cache_get(key: str) -> Any:
        value, found = cache.get(key)
        log.debug("template_cache_get", key=key, hit=found)
        return value

    return {
        "cacheSet": cache_set,
        "cacheGet": cache_get,
    }
