"""Core configuration and factory components."""

from wishgen.core.config import Settings, get_settings
from wishgen.core.factory import ComponentFactory

__all__ = [
    "Settings",
    "get_settings",
    "ComponentFactory",
]
