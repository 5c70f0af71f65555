"""
Configuration management for Sifa.

Loads settings from environment variables and .env, and target definitions
from the JSON config file and the target registry.
"""

from backend_sifa.config.settings import Settings, get_settings  # noqa: F401

__all__ = ["Settings", "get_settings"]
