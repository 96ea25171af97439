"""Polling dashboard client for the FloodNode API."""

from importlib import import_module
from types import ModuleType


def __getattr__(name: str) -> ModuleType:
    if name == "app":
        return import_module("dashboard.app")
    raise AttributeError(name)

# The Typer application lives in ``dashboard.app``. It is not re-exported here
# so that ``dashboard.app`` keeps resolving to the module; tests patch
# attributes on that module path.

__all__ = []
