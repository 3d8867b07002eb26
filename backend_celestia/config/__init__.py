"""
Configuration management for Celestia.

Loads and validates settings from environment variables and an optional .env
file. Exposes a single source of truth for all service configuration.
"""

from backend_celestia.config.settings import Settings, get_settings, reset_settings_cache  # noqa: F401

__all__ = ["Settings", "get_settings", "reset_settings_cache"]
