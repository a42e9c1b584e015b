"""
Redis-Backed Local Store

Shares one mirror between several service instances. Every write or
delete publishes a storage-change notification on a pub/sub channel so
other instances can invalidate their cached views of the changed key,
the same way a browser fires a storage event in every other tab.
"""

import json
import logging
from typing import List, Optional

import redis
from redis.exceptions import RedisError

from ..error_handling import LocalStoreError
from .base import LocalStoreInterface, Records, decode_records, encode_records

logger = logging.getLogger(__name__)


class RedisLocalStore(LocalStoreInterface):
    """
    Local mirror stored as Redis string keys.

    Connection Management:
    - The client is created lazily from the URL, or injected for tests
    - redis-py pools connections internally

    Error Handling:
    - Redis errors surface as LocalStoreError so callers see one kind
    - Failure to publish a change notification is logged, not raised
    """

    def __init__(
        self,
        redis_url: str = "redis://localhost:6379/0",
        key_prefix: str = "",
        events_channel: Optional[str] = "career-sync:storage",
        instance_id: Optional[str] = None,
        client: Optional[redis.Redis] = None,
    ):
        """
        Args:
            redis_url: Redis connection URL
            key_prefix: Prefix applied to every stored key
            events_channel: Pub/sub channel for change notifications,
                None to disable publishing
            instance_id: Identifies this process in published events so
                it can ignore its own notifications
            client: Pre-built client (tests inject a mock here)
        """
        self._redis_url = redis_url
        self._key_prefix = key_prefix
        self._events_channel = events_channel
        self.instance_id = instance_id
        self._client = client

    def _get_client(self) -> redis.Redis:
        if self._client is None:
            self._client = redis.Redis.from_url(self._redis_url, decode_responses=True)
            logger.info(f"Redis local store connected: {self._redis_url}")
        return self._client

    def _full_key(self, key: str) -> str:
        return f"{self._key_prefix}{key}"

    def get(self, key: str) -> Optional[Records]:
        try:
            raw = self._get_client().get(self._full_key(key))
        except RedisError as e:
            raise LocalStoreError(f"Failed to read local key '{key}': {e}", key=key) from e
        if isinstance(raw, bytes):
            raw = raw.decode("utf-8", errors="replace")
        return decode_records(key, raw)

    def set(self, key: str, records: Records) -> None:
        payload = encode_records(key, records)
        try:
            self._get_client().set(self._full_key(key), payload)
        except RedisError as e:
            raise LocalStoreError(f"Failed to write local key '{key}': {e}", key=key) from e
        self._notify(key)

    def delete(self, key: str) -> bool:
        try:
            removed = self._get_client().delete(self._full_key(key))
        except RedisError as e:
            raise LocalStoreError(f"Failed to delete local key '{key}': {e}", key=key) from e
        if removed:
            self._notify(key)
        return bool(removed)

    def keys(self, prefix: str = "") -> List[str]:
        pattern = f"{self._full_key(prefix)}*"
        try:
            found = list(self._get_client().scan_iter(match=pattern))
        except RedisError as e:
            raise LocalStoreError(f"Failed to list local keys '{prefix}*': {e}") from e
        strip = len(self._key_prefix)
        decoded = [k.decode("utf-8") if isinstance(k, bytes) else k for k in found]
        return sorted(k[strip:] for k in decoded)

    def _notify(self, key: str) -> None:
        """Publish a storage-change notification for key."""
        if not self._events_channel:
            return
        message = json.dumps({"key": key, "source_instance": self.instance_id})
        try:
            self._get_client().publish(self._events_channel, message)
        except RedisError as e:
            logger.warning(f"Failed to publish storage event for '{key}': {e}")
