"""Storage layer for short links."""

import logging
from typing import Optional

from .base import MappingStoreBase, UniqueConstraintError
from .memory import InMemoryMappingStore
from .postgres import PostgresMappingStore
from .cache import RedisCache
from .models import ShortLink, LinkPage, OwnerStatistics, DailyActivity

__all__ = [
    "MappingStoreBase",
    "UniqueConstraintError",
    "InMemoryMappingStore",
    "PostgresMappingStore",
    "RedisCache",
    "ShortLink",
    "LinkPage",
    "OwnerStatistics",
    "DailyActivity",
    "create_store",
]


def create_store(config, logger: Optional[logging.Logger] = None) -> MappingStoreBase:
    """Build the store selected by ``config.database_backend``.

    Args:
        config: Application configuration
        logger: Optional logger

    Returns:
        Store instance (not yet initialized)

    Raises:
        ValueError: If the backend is unknown or misconfigured
    """
    backend = config.database_backend.strip().lower()

    if backend == "memory":
        return InMemoryMappingStore(logger=logger)

    if backend == "postgres":
        if not config.database_url:
            raise ValueError("DATABASE_URL is required for the postgres backend")
        return PostgresMappingStore(
            db_config=config.database_url,
            pool_max_size=config.pool_max_size,
            create_tables=config.database_create_tables,
            logger=logger,
        )

    raise ValueError(f"Unknown database backend: {backend!r}")
