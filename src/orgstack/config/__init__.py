"""Configuration module for orgstack."""

from orgstack.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
