"""Persistence layer - MongoDB driver, identifier handling and configuration."""

from mongoforge.persistence.adapter import ModelDriver
from mongoforge.persistence.config import DatabaseConfig, create_adapter
from mongoforge.persistence.identifiers import fix_query_identifier, normalize_identifier
from mongoforge.persistence.mongodb import (
    MongoDatabaseModel,
    from_client,
    from_database,
    from_url,
    mongo_driver,
)

__all__ = [
    "DatabaseConfig",
    "ModelDriver",
    "MongoDatabaseModel",
    "create_adapter",
    "fix_query_identifier",
    "from_client",
    "from_database",
    "from_url",
    "mongo_driver",
    "normalize_identifier",
]
