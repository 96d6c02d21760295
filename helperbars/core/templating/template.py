# helperbars/core/templating/template.py
"""
Template: a parsed template bound to a RenderEnvironment, and its JSON form.

In configuration documents a template is written as a plain JSON string.
``Template.from_json`` parses such a string value and ``Template.to_json``
writes it back unchanged; ``TemplateJSONEncoder`` and
``decode_template_fields`` handle whole documents.
"""
import json
from typing import IO, Any, Dict, Iterable, Mapping, Optional, Union

import structlog

from helperbars.core.coercion import to_int64
from helperbars.exceptions import CoercionError, RenderError, TemplateSyntaxError

from .environment import RenderEnvironment, get_default_environment

log = structlog.get_logger(__name__)


class Template:
    """A template source compiled against an environment."""

    def __init__(self, source: str, environment: Optional[RenderEnvironment] = None, name: str = "<string>"):
        self.environment = environment or get_default_environment()
        self.name = name
        self._compiled = self.environment.compile(source, source_name=name)
        self.source = source

    def __repr__(self) -> str:
        return f"Template({self.source!r})"

    def __eq__(self, other: Any) -> bool:
        if not isinstance(other, Template):
            return NotImplemented
        return self.source == other.source and self.environment is other.environment

    def __hash__(self) -> int:
        return hash((self.source, id(self.environment)))

    def execute(self, data: Any, out: IO[str]) -> None:
        """Render into ``out``. Nothing is written if rendering fails."""
        out.write(self.execute_to_string(data))

    def execute_to_string(self, data: Any) -> str:
        return self.environment.render(self._compiled, data, source_name=self.name)

    def execute_to_int(self, data: Any) -> int:
        """Render and read the whole output as a base-10 integer."""
        rendered = self.execute_to_string(data)
        try:
            return to_int64(rendered, label=f"output of '{self.name}'")
        except CoercionError as e:
            log.error("template_output_not_integer", source=self.name, output=rendered)
            raise RenderError(f"Template output of '{self.name}' is not an integer: {rendered!r}") from e

    @classmethod
    def from_json(cls, document: Union[str, bytes], environment: Optional[RenderEnvironment] = None) -> "Template":
        """Parse a template from a JSON string value such as ``"\\"{{name}}\\""``."""
        try:
            source = json.loads(document)
        except ValueError as e:
            raise TemplateSyntaxError(f"Template document is not valid JSON: {e}") from e
        if not isinstance(source, str):
            raise TemplateSyntaxError(f"Template document must be a JSON string, got {type(source).__name__}")
        return cls(source, environment)

    def to_json(self) -> str:
        return json.dumps(self.source, ensure_ascii=False)


class TemplateJSONEncoder(json.JSONEncoder):
    # templates inside a document serialize as their source string.
    def default(self, o: Any) -> Any:
        if isinstance(o, Template):
            return o.source
        return super().default(o)


def decode_template_fields(
    document: Mapping[str, Any],
    fields: Iterable[str],
    environment: Optional[RenderEnvironment] = None,
) -> Dict[str, Any]:
    """Copy of ``document`` with each named string field parsed into a Template."""
    result = dict(document)
    for field_name in fields:
        if field_name not in result:
            continue
        value = result[field_name]
        if not isinstance(value, str):
            raise TemplateSyntaxError(f"Field '{field_name}' must hold template text, got {type(value).__name__}")
        result[field_name] = Template(value, environment, name=field_name)
    return result


def parse(source: str, environment: Optional[RenderEnvironment] = None) -> Template:
    return Template(source, environment)
