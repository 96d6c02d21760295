# helperbars/config/__init__.py
from .loader import load_config
from .settings import RenderConfig

__all__ = ["RenderConfig", "load_config"]
