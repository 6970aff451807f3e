"""
Configuration management for txcanon.

Loads and validates settings from environment variables and an optional
.env file. Exposes a single source of truth for fetch/batch configuration.
"""

from txcanon.config.settings import FetchSettings, get_settings  # noqa: F401

__all__ = ["FetchSettings", "get_settings"]
