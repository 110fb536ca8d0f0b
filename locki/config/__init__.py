"""
Configuration loading and environment variable management.

Usage:
    from locki.config import load_settings

    settings = load_settings()
"""

from .env_loader import (
    EnvironmentError,
    Settings,
    load_environment,
    load_settings,
    get_required_env_var,
    get_optional_env_var,
)

__all__ = [
    "EnvironmentError",
    "Settings",
    "load_environment",
    "load_settings",
    "get_required_env_var",
    "get_optional_env_var",
]
