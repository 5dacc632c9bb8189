"""
Configuration management for the Uploads API.

Contains the Pydantic settings model and the cached accessor used by the
application factory and the CLI.
"""

from uploads_api.config.settings import Settings, get_settings

__all__ = ["Settings", "get_settings"]
