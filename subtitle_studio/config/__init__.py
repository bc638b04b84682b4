"""Configuration for the subtitle result cache."""
from .settings import CacheSettings, ConfigurationError, load_settings

__all__ = ["CacheSettings", "ConfigurationError", "load_settings"]
