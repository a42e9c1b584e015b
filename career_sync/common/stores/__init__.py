"""
Local Store Package

Provides the local mirror abstraction for reconciled career data.

Usage:
    from career_sync.common.stores import get_local_store

    store = get_local_store()
    followups = store.read_list("mockFollowups_42")
"""

from .base import LocalStoreInterface, decode_records, encode_records
from .config import (
    StoreBackend,
    StoreConfig,
    create_local_store,
    get_local_store,
    reset_local_store,
)
from .memory_store import InMemoryLocalStore
from .redis_store import RedisLocalStore

__all__ = [
    "LocalStoreInterface",
    "InMemoryLocalStore",
    "RedisLocalStore",
    "StoreBackend",
    "StoreConfig",
    "create_local_store",
    "get_local_store",
    "reset_local_store",
    "decode_records",
    "encode_records",
]
