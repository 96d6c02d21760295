# helperbars/cli/__init__.py
from .interface import main_cli_group

__all__ = ["main_cli_group"]
