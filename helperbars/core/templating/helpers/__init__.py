# helperbars/core/templating/helpers/__init__.py
"""
Helper functions exposed to templates, grouped by category.

Stateless categories export a ``HELPERS`` mapping; helpers that need a
session or a cache are built by the ``make_*_helpers`` factories.
"""
from . import cloud, crypto, data, numbers, strings, timefmt
from .caching import make_cache_helpers
from .network import make_network_helpers

STATELESS_HELPERS = {
    **strings.HELPERS,
    **numbers.HELPERS,
    **data.HELPERS,
    **timefmt.HELPERS,
    **crypto.HELPERS,
    **cloud.HELPERS,
}

__all__ = [
    "STATELESS_HELPERS",
    "make_cache_helpers",
    "make_network_helpers",
]
