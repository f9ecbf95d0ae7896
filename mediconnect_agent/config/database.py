"""
Database configuration.
"""

from pydantic import BaseModel

from .settings import Settings


class DatabaseConfig(BaseModel):
    """Database configuration settings."""

    path: str = "mediconnect.db"
    timeout: float = 30.0

    @classmethod
    def from_settings(cls, settings: Settings) -> "DatabaseConfig":
        return cls(path=settings.database_path, timeout=settings.database_timeout)

    def get_url(self) -> str:
        """Get SQLite URL for the database."""
        return f"sqlite:///{self.path}"
