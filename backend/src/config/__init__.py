"""
Configuration module for CollabCal backend.

Provides centralized configuration for:
- Organization timezone and compliance cycle boundary
- Role-based capabilities
"""

from backend.src.config.settings import AppSettings, get_settings

__all__ = [
    "AppSettings",
    "get_settings",
]
