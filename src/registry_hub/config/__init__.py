"""Configuration management for RegistryHub.

Usage:
    >>> from registry_hub.config import get_settings
    >>> settings = get_settings()
    >>> settings.crawler_max_requests_per_minute
"""

from registry_hub.config.settings import ConfigurationError, Settings, get_settings

__all__ = ["ConfigurationError", "Settings", "get_settings"]
