# helperbars/core/templating/markup.py
"""
Helpers whose result is finished text.

pybars HTML-escapes whatever ``{{ }}`` prints. A helper marked with
``safe_string`` returns text that must reach the output as it is (JSON
documents, whole rendered files), so the registry hands its result to pybars
as a ``strlist``, which pybars writes without escaping.
"""
from typing import Any, Callable, TypeVar

import pybars  # type: ignore

F = TypeVar("F", bound=Callable[..., Any])


def safe_string(func: F) -> F:
    """Mark ``func`` as returning text that pybars must not escape."""
    func.safe_string = True  # type: ignore[attr-defined]
    return func


def is_safe_string(func: Callable[..., Any]) -> bool:
    return bool(getattr(func, "safe_string", False))


def to_engine_text(value: Any) -> Any:
    # an empty strlist would still be truthy inside {{#if}}.
    if isinstance(value, str) and value:
        return pybars.strlist([value])
    return value


def from_engine_text(value: Any) -> Any:
    """Plain ``str`` for a safe-string result passed on as a helper argument."""
    if isinstance(value, pybars.strlist):
        return str(value)
    return value
