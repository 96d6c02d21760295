"""
helperbars: Handlebars templates with a registry of request-time helper
functions, JSON-embeddable template values, and ephemeral caching.
"""
__version__ = "0.4.0"

from helperbars.core.templating import (
    RenderEnvironment,
    Template,
    get_default_environment,
    parse,
)

__all__ = [
    "__version__",
    "RenderEnvironment",
    "Template",
    "get_default_environment",
    "parse",
]
