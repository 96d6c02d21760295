# helperbars/config/loader.py
"""
Loads render configuration from TOML files.
"""
from pathlib import Path
from typing import Any, Dict, Optional

import structlog
import toml

from helperbars.exceptions import ConfigError

from .settings import RenderConfig

log = structlog.get_logger(__name__)

PROJECT_CONFIG_FILENAMES = [".helperbars.toml", "helperbars.toml", "pyproject.toml"]


def _load_toml_file_data(file_path: Path) -> Dict[str, Any]:
    log.debug("loading_toml_config_file", path=str(file_path))
    try:
        data = toml.load(file_path)
    except (OSError, toml.TomlDecodeError) as e:
        log.error("config_file_load_error", path=str(file_path), error=str(e))
        raise ConfigError(f"Failed to read config file {file_path}: {e}") from e
    return data.get("tool", {}).get("helperbars", {}) if file_path.name == "pyproject.toml" else data


def find_project_config(directory: Optional[Path] = None) -> Optional[Path]:
    """First project config file in ``directory`` (default: cwd) that has helperbars settings."""
    base = directory or Path.cwd()
    for filename in PROJECT_CONFIG_FILENAMES:
        candidate = base / filename
        if not candidate.is_file():
            continue
        if filename == "pyproject.toml" and not _load_toml_file_data(candidate):
            continue
        return candidate
    return None


def load_config(path: Optional[Path] = None) -> RenderConfig:
    """Load an explicit config file, or discover one in the working directory.

    With no file found, the defaults are returned.
    """
    if path is not None and not path.is_file():
        raise ConfigError(f"Config file not found: {path}")
    source = path or find_project_config()
    if source is None:
        log.debug("no_configuration_files_loaded")
        return RenderConfig()
    log.info("loading_project_config", path=str(source))
    return RenderConfig.from_mapping(_load_toml_file_data(source), base_dir=source.parent)
