"""
Local Store Configuration and Factory

Provides factory function to get the appropriate local store implementation
based on environment configuration.
"""

import os
import logging
from dataclasses import dataclass
from enum import Enum
from typing import Optional

from .base import LocalStoreInterface

logger = logging.getLogger(__name__)


class StoreBackend(str, Enum):
    """Where the local mirror lives."""
    MEMORY = "memory"  # Per-process dict, no cross-instance events
    REDIS = "redis"    # Shared Redis keys with storage-change pub/sub


@dataclass
class StoreConfig:
    """
    Configuration for local store initialization.

    Loaded from environment variables with sensible defaults.
    """
    backend: StoreBackend = StoreBackend.MEMORY
    redis_url: Optional[str] = None
    key_prefix: str = ""
    events_channel: str = "career-sync:storage"

    @classmethod
    def from_env(cls) -> "StoreConfig":
        """
        Load configuration from environment variables.

        Environment variables:
        - LOCAL_STORE_BACKEND: memory or redis (default: memory)
        - REDIS_URL: Redis connection string (required for redis)
        - LOCAL_STORE_KEY_PREFIX: Prefix for every mirror key
        - STORAGE_EVENTS_CHANNEL: Pub/sub channel for change notifications

        Returns:
            StoreConfig instance

        Raises:
            ValueError: If the redis backend is selected without REDIS_URL
        """
        backend_str = os.getenv("LOCAL_STORE_BACKEND", "memory").lower()
        try:
            backend = StoreBackend(backend_str)
        except ValueError:
            logger.warning(f"Invalid LOCAL_STORE_BACKEND '{backend_str}', defaulting to memory")
            backend = StoreBackend.MEMORY

        redis_url = os.getenv("REDIS_URL")
        if backend == StoreBackend.REDIS and not redis_url:
            raise ValueError("REDIS_URL environment variable is required for the redis backend")

        return cls(
            backend=backend,
            redis_url=redis_url,
            key_prefix=os.getenv("LOCAL_STORE_KEY_PREFIX", ""),
            events_channel=os.getenv("STORAGE_EVENTS_CHANNEL", "career-sync:storage"),
        )


def create_local_store(
    config: StoreConfig, instance_id: Optional[str] = None
) -> LocalStoreInterface:
    """Build a store for config without touching the singleton."""
    if config.backend == StoreBackend.REDIS:
        from .redis_store import RedisLocalStore
        store = RedisLocalStore(
            redis_url=config.redis_url,
            key_prefix=config.key_prefix,
            events_channel=config.events_channel,
            instance_id=instance_id,
        )
        logger.info("Initialized Redis-backed local store")
        return store

    from .memory_store import InMemoryLocalStore
    logger.info("Initialized in-memory local store")
    return InMemoryLocalStore()


# Singleton store instance
_store_instance: Optional[LocalStoreInterface] = None


def get_local_store(instance_id: Optional[str] = None) -> LocalStoreInterface:
    """
    Get the local store instance.

    Factory function that returns the appropriate implementation based on
    configuration. Uses singleton pattern so every service in the process
    shares one mirror.

    Returns:
        LocalStoreInterface implementation

    Raises:
        ValueError: If the redis backend is selected without REDIS_URL
    """
    global _store_instance

    if _store_instance is None:
        _store_instance = create_local_store(StoreConfig.from_env(), instance_id=instance_id)

    return _store_instance


def reset_local_store() -> None:
    """
    Reset the local store singleton.

    Used for testing or when configuration changes.
    """
    global _store_instance
    _store_instance = None
    logger.info("Local store singleton reset")
