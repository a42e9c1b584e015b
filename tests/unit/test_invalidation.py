"""
Unit tests for the cache invalidation signal.

Tests cover:
1. Prefix matching of subscribed keys against published keys
2. Each subscriber notified at most once per publish
3. A failing subscriber does not stop the others
4. Storage events from other instances (cross-tab propagation)
5. Redis pub/sub listener lifecycle
"""

import asyncio
import json
from unittest.mock import AsyncMock, MagicMock

import pytest

from career_sync.services.invalidation import InvalidationBus, key_matches


def collector():
    received = []

    async def callback(event):
        received.append(event)

    return received, callback


class TestKeyMatches:
    def test_prefix_matches(self):
        assert key_matches(("applications", "42"), ("applications", "42", "stages"))
        assert key_matches(("applications",), ("applications", "42"))

    def test_equal_matches(self):
        assert key_matches(("followups", "all"), ("followups", "all"))

    def test_longer_subscription_does_not_match(self):
        assert not key_matches(("applications", "42", "stages"), ("applications", "42"))

    def test_sibling_does_not_match(self):
        assert not key_matches(("applications", "43"), ("applications", "42", "stages"))


class TestPublish:
    @pytest.mark.asyncio
    async def test_notifies_matching_subscribers_only(self, bus):
        stages, on_stages = collector()
        other, on_other = collector()
        bus.subscribe(("applications", "42", "stages"), on_stages)
        bus.subscribe(("contacts",), on_other)

        notified = await bus.publish([("applications", "42", "stages")])

        assert notified == 1
        assert len(stages) == 1
        assert stages[0].keys == [("applications", "42", "stages")]
        assert stages[0].source == "local"
        assert other == []

    @pytest.mark.asyncio
    async def test_subscriber_notified_once_per_publish(self, bus):
        received, callback = collector()
        bus.subscribe(("applications", "42"), callback)

        await bus.publish([("applications", "42"), ("applications", "42", "followups")])

        assert len(received) == 1

    @pytest.mark.asyncio
    async def test_failing_subscriber_does_not_stop_others(self, bus, caplog):
        async def broken(event):
            raise RuntimeError("render failed")

        received, callback = collector()
        bus.subscribe(("followups", "all"), broken)
        bus.subscribe(("followups", "all"), callback)

        await bus.publish([("followups", "all")])

        assert len(received) == 1
        assert "render failed" in caplog.text

    @pytest.mark.asyncio
    async def test_unsubscribe(self, bus):
        received, callback = collector()
        bus.subscribe(("contacts",), callback)
        bus.unsubscribe(("contacts",), callback)

        await bus.publish([("contacts",)])

        assert received == []
        assert bus.subscriber_count == 0

    @pytest.mark.asyncio
    async def test_listeners_receive_every_event(self, bus, events):
        await bus.publish([("anything",)])
        assert len(events) == 1

    @pytest.mark.asyncio
    async def test_empty_publish_is_noop(self, bus, events):
        assert await bus.publish([]) == 0
        assert events == []


class TestStorageEvents:
    @pytest.mark.asyncio
    async def test_followups_key_from_other_tab_invalidates_list(self, bus):
        received, callback = collector()
        bus.subscribe(("applications", "42", "followups"), callback)

        notified = await bus.handle_storage_event("mockFollowups_42", "tab00002")

        assert notified == 1
        assert received[0].source == "storage"
        assert received[0].storage_key == "mockFollowups_42"
        assert ("applications", "42", "followups") in received[0].keys

    @pytest.mark.asyncio
    async def test_unrelated_key_is_ignored(self, bus, events):
        received, callback = collector()
        bus.subscribe(("applications", "42", "followups"), callback)

        notified = await bus.handle_storage_event("theme", "tab00002")

        assert notified == 0
        assert received == []
        assert events == []

    @pytest.mark.asyncio
    async def test_other_parent_does_not_match(self, bus):
        received, callback = collector()
        bus.subscribe(("applications", "42", "followups"), callback)

        await bus.handle_storage_event("mockFollowups_43", "tab00002")

        assert received == []

    @pytest.mark.asyncio
    async def test_own_instance_events_ignored(self, bus, events):
        await bus.handle_storage_event("mockFollowups_42", bus.instance_id)
        assert events == []

    @pytest.mark.asyncio
    async def test_notes_key_maps_to_contact(self, bus):
        received, callback = collector()
        bus.subscribe(("contacts", "3"), callback)

        await bus.handle_storage_event("notes.3", "tab00002")

        assert len(received) == 1


class TestStorageListener:
    @pytest.fixture
    def mock_redis(self):
        mock = AsyncMock()
        mock.pubsub = MagicMock(return_value=AsyncMock())
        return mock

    def _pubsub_with(self, mock_redis, messages):
        async def mock_listen():
            for message in messages:
                yield message

        pubsub = AsyncMock()
        pubsub.listen = mock_listen
        mock_redis.pubsub = MagicMock(return_value=pubsub)
        return pubsub

    def test_instance_id_is_8_char_hex(self, registry):
        bus = InvalidationBus(registry)
        assert len(bus.instance_id) == 8
        int(bus.instance_id, 16)
        assert InvalidationBus(registry).instance_id != bus.instance_id

    @pytest.mark.asyncio
    async def test_no_redis_means_no_listener(self, bus):
        await bus.start_storage_listener()
        assert bus._listener_task is None
        assert not bus.is_listening

    @pytest.mark.asyncio
    async def test_forwards_external_events(self, bus, events, mock_redis):
        pubsub = self._pubsub_with(mock_redis, [
            {"type": "subscribe", "data": 1},
            {"type": "message", "data": json.dumps(
                {"key": "mockFollowups_42", "source_instance": "other123"}
            )},
        ])

        await bus.start_storage_listener(client=mock_redis, channel="career-sync:storage")
        await asyncio.sleep(0.05)

        pubsub.subscribe.assert_called_once_with("career-sync:storage")
        assert len(events) == 1
        assert events[0].storage_key == "mockFollowups_42"
        await bus.stop()

    @pytest.mark.asyncio
    async def test_ignores_own_and_invalid_messages(self, bus, events, mock_redis):
        self._pubsub_with(mock_redis, [
            {"type": "message", "data": "not valid json {{{"},
            {"type": "message", "data": json.dumps(
                {"key": "mockFollowups_42", "source_instance": bus.instance_id}
            )},
        ])

        await bus.start_storage_listener(client=mock_redis)
        await asyncio.sleep(0.05)

        assert events == []
        await bus.stop()

    @pytest.mark.asyncio
    async def test_stop_cancels_listener(self, bus, mock_redis):
        async def endless():
            while True:
                await asyncio.sleep(0.01)
                yield {"type": "ping", "data": None}

        pubsub = AsyncMock()
        pubsub.listen = endless
        mock_redis.pubsub = MagicMock(return_value=pubsub)

        await bus.start_storage_listener(client=mock_redis)
        assert bus.is_listening

        await bus.stop()

        assert bus._listener_task is None
        assert bus._pubsub is None
        pubsub.unsubscribe.assert_called_once()
        # Injected clients belong to the caller
        mock_redis.aclose.assert_not_called()
