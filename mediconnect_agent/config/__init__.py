"""
Configuration management for the MediConnect agent.
"""

from .settings import Settings, get_settings
from .database import DatabaseConfig
from .external_apis import ExternalAPIConfig

__all__ = [
    "Settings",
    "get_settings",
    "DatabaseConfig",
    "ExternalAPIConfig",
]
