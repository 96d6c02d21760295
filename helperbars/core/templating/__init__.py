# helperbars/core/templating/__init__.py
"""
Templating module for helperbars.

Provides RenderEnvironment (helpers, partials, caches, the unsafe-render gate)
and Template (a parsed template and its JSON string form).
"""
from .environment import RenderEnvironment, get_default_environment
from .registry import HelperRegistry
from .template import Template, TemplateJSONEncoder, decode_template_fields, parse

__all__ = [
    "HelperRegistry",
    "RenderEnvironment",
    "Template",
    "TemplateJSONEncoder",
    "decode_template_fields",
    "get_default_environment",
    "parse",
]
