"""
Cache Invalidation Signal

In-process pub/sub that tells dependent views "your data changed". Query
keys are tuples; a subscriber registered for ("applications", "42") is
notified by any publish of a key that starts with it, e.g.
("applications", "42", "stages").

Changes made by other service instances arrive as storage-change
notifications on a Redis channel (published by RedisLocalStore). They are
mapped through the namespace registry to query keys and delivered exactly
like a local publish.
"""

import asyncio
import json
import logging
import uuid
from dataclasses import dataclass, field
from typing import Any, Callable, Coroutine, Dict, Iterable, List, Optional, Tuple

import redis.asyncio as aioredis
from redis.asyncio import Redis

from ..common.entities import utc_now_iso
from ..common.namespaces import NamespaceRegistry, QueryKey

logger = logging.getLogger(__name__)


@dataclass
class InvalidationEvent:
    """One invalidation, as delivered to subscribers."""
    keys: List[QueryKey]
    source: str = "local"  # "local" or "storage"
    storage_key: Optional[str] = None
    timestamp: str = field(default_factory=utc_now_iso)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "keys": [list(key) for key in self.keys],
            "source": self.source,
            "storage_key": self.storage_key,
            "timestamp": self.timestamp,
        }


Subscriber = Callable[[InvalidationEvent], Coroutine[Any, Any, None]]


def key_matches(subscribed: QueryKey, published: QueryKey) -> bool:
    """True when subscribed is a prefix of (or equal to) published."""
    return len(subscribed) <= len(published) and tuple(published[: len(subscribed)]) == tuple(subscribed)


class InvalidationBus:
    """
    Query-key pub/sub for one application context.

    Subscribers are async callables. A failing subscriber is logged and
    never prevents the remaining subscribers from being notified.
    """

    DEFAULT_CHANNEL = "career-sync:storage"

    def __init__(self, registry: NamespaceRegistry, instance_id: Optional[str] = None):
        """
        Args:
            registry: Maps storage keys from other instances to query keys
            instance_id: Identifies this process; storage events carrying
                it are ignored (they were already published locally)
        """
        self.registry = registry
        self.instance_id = instance_id or uuid.uuid4().hex[:8]
        self._subscribers: List[Tuple[QueryKey, Subscriber]] = []
        self._listeners: List[Subscriber] = []
        self._redis: Optional[Redis] = None
        self._owns_redis = False
        self._pubsub = None
        self._listener_task: Optional[asyncio.Task] = None

    # ------------------------------------------------------------------
    # Subscription
    # ------------------------------------------------------------------

    def subscribe(self, query_key: Iterable[str], callback: Subscriber) -> None:
        """
        Register callback for query_key and every key it prefixes.

        Args:
            query_key: e.g. ("applications", "42", "followups")
            callback: Async function receiving the InvalidationEvent
        """
        self._subscribers.append((tuple(query_key), callback))

    def unsubscribe(self, query_key: Iterable[str], callback: Subscriber) -> None:
        entry = (tuple(query_key), callback)
        if entry in self._subscribers:
            self._subscribers.remove(entry)

    def add_listener(self, callback: Subscriber) -> None:
        """Receive every event regardless of key (used by the WebSocket relay)."""
        self._listeners.append(callback)

    def remove_listener(self, callback: Subscriber) -> None:
        if callback in self._listeners:
            self._listeners.remove(callback)

    @property
    def subscriber_count(self) -> int:
        return len(self._subscribers)

    @property
    def is_listening(self) -> bool:
        return self._listener_task is not None and not self._listener_task.done()

    # ------------------------------------------------------------------
    # Publishing
    # ------------------------------------------------------------------

    async def publish(
        self,
        keys: Iterable[Iterable[str]],
        source: str = "local",
        storage_key: Optional[str] = None,
    ) -> int:
        """
        Notify subscribers of every matching key.

        A subscriber matching several published keys is called once.

        Returns:
            Number of key subscribers notified
        """
        event = InvalidationEvent(
            keys=[tuple(key) for key in keys],
            source=source,
            storage_key=storage_key,
        )
        if not event.keys:
            return 0

        # Snapshot: callbacks may subscribe/unsubscribe while we iterate
        matched: List[Subscriber] = []
        for subscribed, callback in list(self._subscribers):
            if callback in matched:
                continue
            if any(key_matches(subscribed, published) for published in event.keys):
                matched.append(callback)

        logger.debug(
            f"Invalidating {len(event.keys)} keys ({source}) -> {len(matched)} subscribers"
        )

        for callback in matched + list(self._listeners):
            try:
                await callback(event)
            except Exception as e:
                logger.error(f"Invalidation subscriber error: {e}")

        return len(matched)

    async def handle_storage_event(
        self, storage_key: Optional[str], source_instance: Optional[str] = None
    ) -> int:
        """
        Translate a storage-change notification into an invalidation.

        Unknown keys and events originating from this instance are ignored.

        Returns:
            Number of key subscribers notified
        """
        if not storage_key:
            return 0
        if source_instance is not None and source_instance == self.instance_id:
            return 0

        resolved = self.registry.resolve_storage_key(storage_key)
        if resolved is None:
            logger.debug(f"Ignoring storage event for unknown key '{storage_key}'")
            return 0

        namespace, parent_id = resolved
        keys = namespace.query_keys(parent_id)
        return await self.publish(keys, source="storage", storage_key=storage_key)

    # ------------------------------------------------------------------
    # Cross-instance listener
    # ------------------------------------------------------------------

    async def start_storage_listener(
        self,
        redis_url: Optional[str] = None,
        channel: str = DEFAULT_CHANNEL,
        client: Optional[Redis] = None,
    ) -> None:
        """
        Subscribe to storage-change notifications from other instances.

        Does nothing when neither redis_url nor client is given.
        """
        if self._listener_task is not None:
            return
        if client is None and not redis_url:
            logger.info("No Redis configured, cross-instance invalidation disabled")
            return

        if client is None:
            client = aioredis.from_url(redis_url, encoding="utf-8", decode_responses=True)
            self._owns_redis = True
        self._redis = client

        self._pubsub = self._redis.pubsub()
        await self._pubsub.subscribe(channel)
        self._listener_task = asyncio.create_task(self._listen())
        logger.info(f"Storage listener subscribed to '{channel}' as instance {self.instance_id}")

    async def _listen(self) -> None:
        try:
            async for message in self._pubsub.listen():
                if message.get("type") != "message":
                    continue
                try:
                    payload = json.loads(message["data"])
                except (TypeError, ValueError) as e:
                    logger.warning(f"Invalid storage event payload: {e}")
                    continue
                if not isinstance(payload, dict):
                    continue
                await self.handle_storage_event(
                    payload.get("key"), payload.get("source_instance")
                )
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Storage listener stopped: {e}")

    async def stop(self) -> None:
        """Cancel the listener and release the Redis connection."""
        if self._listener_task is not None:
            self._listener_task.cancel()
            try:
                await self._listener_task
            except asyncio.CancelledError:
                pass
            self._listener_task = None

        if self._pubsub is not None:
            try:
                await self._pubsub.unsubscribe()
                await self._pubsub.aclose()
            except Exception as e:
                logger.warning(f"Error closing storage listener: {e}")
            self._pubsub = None

        if self._redis is not None and self._owns_redis:
            await self._redis.aclose()
        self._redis = None
        self._owns_redis = False
