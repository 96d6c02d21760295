# helperbars/config/settings.py
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, List, Mapping, Optional

import structlog

from helperbars.exceptions import ConfigError

log = structlog.get_logger(__name__)

# document key -> RenderConfig attribute; both spellings are accepted.
CONFIG_KEY_TO_ATTR = {
    "allowUnsafeRender": "allow_unsafe_render",
    "allow_unsafe_render": "allow_unsafe_render",
    "partials": "partials",
}


@dataclass
class RenderConfig:
    # options applied to a RenderEnvironment by configure().
    allow_unsafe_render: bool = False
    partials: List[Path] = field(default_factory=list)

    @classmethod
    def from_mapping(cls, data: Mapping[str, Any], base_dir: Optional[Path] = None) -> "RenderConfig":
        """Build a config from a decoded JSON/TOML table; relative partial paths resolve against ``base_dir``."""
        config = cls()
        for key, value in data.items():
            attr = CONFIG_KEY_TO_ATTR.get(key)
            if attr is None:
                log.warning("unknown_config_key_ignored", key=key)
                continue
            if attr == "allow_unsafe_render":
                if not isinstance(value, bool):
                    raise ConfigError(f"'{key}' must be a boolean, got {type(value).__name__}")
                config.allow_unsafe_render = value
            elif attr == "partials":
                if not isinstance(value, list) or not all(isinstance(p, str) for p in value):
                    raise ConfigError(f"'{key}' must be a list of file names")
                paths = [Path(p) for p in value]
                if base_dir is not None:
                    paths = [p if p.is_absolute() else base_dir / p for p in paths]
                config.partials = paths
        return config
