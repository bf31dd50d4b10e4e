"""Database configuration and adapter factory."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any
from urllib.parse import unquote, urlsplit

if TYPE_CHECKING:
    from mongoforge.model.base import BaseModel

MONGODB_SCHEMES = ("mongodb://", "mongodb+srv://")
DEFAULT_URL = "mongodb://localhost:27017/mongodb"


def database_from_url(url: str) -> str:
    """Return the URL-decoded first path segment, or "" when the path is empty.

    Example: database_from_url("mongodb://localhost/app%20db") -> "app db"
    """
    path = urlsplit(url).path
    return unquote(path.lstrip("/").split("/", 1)[0])


def sanitize_url(url: str) -> str:
    """Hide the password in a connection URL for safe logging."""
    parts = urlsplit(url)
    if parts.password is None:
        return url
    hosts = parts.netloc.rpartition("@")[2]
    return parts._replace(netloc=f"{parts.username}:***@{hosts}").geturl()


@dataclass
class DatabaseConfig:
    """Database connection configuration.

    Supports mongodb:// and mongodb+srv:// URL schemes.
    """

    url: str

    @classmethod
    def from_env(cls) -> DatabaseConfig:
        """Create config from environment variables.

        Resolution order:
        1. MONGODB_URL env var
        2. DATABASE_URL env var, when it is a MongoDB URL
        3. Default: mongodb://localhost:27017/mongodb
        """
        url = os.environ.get("MONGODB_URL")
        if url:
            return cls(url=url)

        url = os.environ.get("DATABASE_URL")
        if url and url.startswith(MONGODB_SCHEMES):
            return cls(url=url)

        return cls(url=DEFAULT_URL)

    @property
    def is_mongodb(self) -> bool:
        return self.url.startswith(MONGODB_SCHEMES)

    @property
    def database_name(self) -> str | None:
        return database_from_url(self.url) or None

    @property
    def sanitized_url(self) -> str:
        return sanitize_url(self.url)


async def create_adapter(config: DatabaseConfig, **options: Any) -> type[BaseModel]:
    """Connect and return a model base bound to the configured database.

    Args:
        config: Database configuration with URL.
        **options: Passed through to the motor client.

    Returns:
        A driver base class; call ``make_model(name)`` (or wrap it in a
        Modeller) to get collection-bound model types.

    Raises:
        ValueError: For unsupported URL schemes.
    """
    if config.is_mongodb:
        from mongoforge.persistence.mongodb import from_url

        return await from_url(config.url, **options)

    raise ValueError(f"Unsupported database URL scheme: {config.sanitized_url}")
