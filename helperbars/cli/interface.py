# helperbars/cli/interface.py
import sys
from pathlib import Path
from typing import IO, Any, Optional, Tuple

import click
import structlog
from click_option_group import optgroup
from rich.console import Console as RichConsole
from rich.table import Table

from helperbars import __version__ as app_version
from helperbars.config.loader import load_config
from helperbars.core.coercion import loads_with_numbers
from helperbars.core.templating import RenderEnvironment, Template
from helperbars.exceptions import HelperbarsError
from helperbars.logging_setup import configure_logging

log = structlog.get_logger(__name__)

LOG_LEVELS = ["debug", "info", "warning", "error"]


def _read_data(data_file: Optional[IO[str]]) -> Any:
    if data_file is None:
        return {}
    text = data_file.read()
    if not text.strip():
        return {}
    try:
        return loads_with_numbers(text)
    except ValueError as e:
        raise click.BadParameter(f"data is not valid JSON: {e}", param_hint="--data") from e


def _build_environment(config_path: Optional[Path], partials: Tuple[Path, ...], allow_unsafe_render: bool) -> RenderEnvironment:
    config = load_config(config_path)
    if allow_unsafe_render:
        config.allow_unsafe_render = True
    config.partials = list(config.partials) + list(partials)
    return RenderEnvironment(config=config)


@click.group(context_settings=dict(help_option_names=["-h", "--help"]))
@click.option("--log-level", "log_level", type=click.Choice(LOG_LEVELS), default="warning", show_default=True, help="Log level for stderr diagnostics.")
@click.option("--force-json-logs", "force_json_logs", is_flag=True, default=False, help="Force JSON logs.")
@click.version_option(version=app_version, package_name="helperbars", prog_name="helperbars", help="Show version and exit.")
def main_cli_group(log_level: str, force_json_logs: bool):
    """helperbars: render Handlebars templates with request-time helpers."""
    configure_logging(log_level_str=log_level, force_json_logs=force_json_logs)


@main_cli_group.command("render")
@click.argument("template_path", type=click.Path(exists=True, dir_okay=False, readable=True, path_type=Path))
@optgroup.group("Input Options", help="Where template data and configuration come from.")
@optgroup.option("-d", "--data", "data_file", type=click.File("r", encoding="utf-8"), default=None, help="JSON data file for the template ('-' reads stdin).")
@optgroup.option("-c", "--config", "config_path", type=click.Path(exists=True, dir_okay=False, path_type=Path), default=None, help="TOML config file. Default: discovered in the working directory.")
@optgroup.option("-p", "--partial", "partials", multiple=True, type=click.Path(exists=True, dir_okay=False, path_type=Path), help="Partial template file, invoked by its file stem.")
@optgroup.group("Rendering Options", help="How the template is read and its output shaped.")
@optgroup.option("--allow-unsafe-render", "allow_unsafe_render", is_flag=True, default=False, help="Enable the UNSAFE_render helper.")
@optgroup.option("--json-template", "json_template", is_flag=True, default=False, help="The template file holds a JSON string value.")
@optgroup.option("--as-int", "as_int", is_flag=True, default=False, help="Require the output to be an integer.")
def render_command(template_path: Path, data_file, config_path, partials, allow_unsafe_render, json_template, as_int):
    """Render TEMPLATE_PATH against JSON data and print the result."""
    log.debug("render_command_invoked", template=str(template_path), json_template=json_template, as_int=as_int)
    try:
        environment = _build_environment(config_path, partials, allow_unsafe_render)
        source = template_path.read_text(encoding="utf-8")
        if json_template:
            template = Template.from_json(source, environment)
        else:
            template = Template(source, environment, name=str(template_path))
        data = _read_data(data_file)
        if as_int:
            click.echo(str(template.execute_to_int(data)))
        else:
            click.echo(template.execute_to_string(data), nl=False)
    except HelperbarsError as e:
        log.error("handled_application_error_in_cli", error_type=type(e).__name__, message=str(e))
        click.secho(f"Error: {e}", fg="red", err=True)
        sys.exit(1)


@main_cli_group.command("helpers")
def helpers_command():
    """List the helpers available to templates."""
    environment = RenderEnvironment()
    table = Table(title="helperbars helpers")
    table.add_column("Helper", style="cyan", no_wrap=True)
    table.add_column("Category")
    for name in sorted(environment.registry):
        func = environment.registry[name]
        table.add_row(name, func.__module__.rsplit(".", 1)[-1])
    RichConsole().print(table)
