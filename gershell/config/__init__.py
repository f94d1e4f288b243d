from .paths import GershellPaths
from .settings import ConfigError, Settings, load_settings

__all__ = ["ConfigError", "GershellPaths", "Settings", "load_settings"]
