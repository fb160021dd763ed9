"""Core: config, lifespan, and exception handlers.

Single place for settings and application bootstrap.
"""

from dealflow.core.config import Settings, get_settings

__all__ = ["Settings", "get_settings"]
