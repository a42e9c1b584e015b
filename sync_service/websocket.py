"""
WebSocket Handler for Invalidation Broadcasting

Relays every invalidation event from the bus to connected clients so
remote editors can refresh the views whose query keys changed.

Each connection drains its own outbox in a sender task, so publishing an
event never waits on a client's socket. A client whose outbox fills up is
disconnected.
"""

import asyncio
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Optional, Set

from fastapi import WebSocket, WebSocketDisconnect

from career_sync.common.entities import utc_now_iso
from career_sync.services.invalidation import InvalidationBus, InvalidationEvent

logger = logging.getLogger(__name__)

OUTBOX_SIZE = 100


@dataclass
class ConnectionState:
    """Tracks state for a single WebSocket connection."""

    websocket: WebSocket
    connection_id: str = ""
    connected_at: str = field(default_factory=utc_now_iso)
    messages_sent: int = 0
    outbox: asyncio.Queue = field(default_factory=lambda: asyncio.Queue(maxsize=OUTBOX_SIZE))
    sender: Optional[asyncio.Task] = None


class InvalidationWebSocketManager:
    """
    Manages WebSocket connections for invalidation events.

    Provides:
    - Connection lifecycle management
    - Event broadcasting through per-connection outboxes
    - Client keepalive (ping -> pong)
    """

    def __init__(self, bus: Optional[InvalidationBus] = None, outbox_size: int = OUTBOX_SIZE):
        self.bus = bus
        self.outbox_size = outbox_size
        self.active_connections: Set[WebSocket] = set()
        self._connection_states: Dict[WebSocket, ConnectionState] = {}
        self._connection_counter: int = 0
        self._lock = asyncio.Lock()

    def attach(self, bus: InvalidationBus) -> None:
        """Start relaying events published on bus."""
        self.bus = bus
        bus.add_listener(self.relay_event)

    def detach(self) -> None:
        if self.bus is not None:
            self.bus.remove_listener(self.relay_event)

    async def relay_event(self, event: InvalidationEvent) -> None:
        await self.broadcast({"type": "invalidation", "payload": event.to_dict()})

    async def connect(self, websocket: WebSocket) -> str:
        """
        Accept new WebSocket connection, send a hello message and start the
        connection's sender task.

        Returns:
            Connection ID for tracking
        """
        await websocket.accept()
        client_host = websocket.client.host if websocket.client else "unknown"

        async with self._lock:
            self._connection_counter += 1
            connection_id = f"conn_{self._connection_counter}"
            state = ConnectionState(
                websocket=websocket,
                connection_id=connection_id,
                outbox=asyncio.Queue(maxsize=self.outbox_size),
            )
            self.active_connections.add(websocket)
            self._connection_states[websocket] = state

        logger.info(
            f"[{connection_id}] WebSocket connected from {client_host}, "
            f"total connections: {len(self.active_connections)}"
        )

        await websocket.send_json({
            "type": "connected",
            "payload": {
                "connection_id": connection_id,
                "instance_id": self.bus.instance_id if self.bus else None,
            }
        })
        state.sender = asyncio.create_task(self._drain(state))
        return connection_id

    async def disconnect(self, websocket: WebSocket) -> None:
        async with self._lock:
            self.active_connections.discard(websocket)
            state = self._connection_states.pop(websocket, None)

        if state and state.sender and state.sender is not asyncio.current_task():
            state.sender.cancel()

        connection_id = state.connection_id if state else "unknown"
        logger.info(
            f"WebSocket {connection_id} disconnected, "
            f"total connections: {len(self.active_connections)}"
        )

    async def broadcast(self, message: Dict[str, Any]) -> None:
        """
        Queue message for every connected client.

        Returns without waiting for any socket. Clients whose outbox is
        full are dropped and closed.

        Args:
            message: Message dictionary to send
        """
        if not self.active_connections:
            return

        slow: Set[WebSocket] = set()

        async with self._lock:
            for websocket, state in self._connection_states.items():
                try:
                    state.outbox.put_nowait(message)
                except asyncio.QueueFull:
                    logger.warning(f"[{state.connection_id}] Outbox full, dropping slow client")
                    slow.add(websocket)

        for websocket in slow:
            await self.disconnect(websocket)
            try:
                await websocket.close(code=1013)
            except Exception as e:
                logger.debug(f"Closing slow WebSocket failed: {e}")

    async def _drain(self, state: ConnectionState) -> None:
        """Send queued messages to one client until it fails or disconnects."""
        while True:
            message = await state.outbox.get()
            try:
                await state.websocket.send_json(message)
            except Exception as e:
                logger.warning(f"[{state.connection_id}] Failed to send to WebSocket: {e}")
                await self.disconnect(state.websocket)
                return
            state.messages_sent += 1

    async def handle_message(self, websocket: WebSocket, data: Dict[str, Any]) -> None:
        """
        Handle incoming client message.

        Supported message types:
        - ping: Client keepalive (server responds with pong)
        """
        msg_type = data.get("type", "")

        if msg_type == "ping":
            await websocket.send_json({"type": "pong"})
        else:
            logger.warning(f"Unknown WebSocket message type: {msg_type}")
            await websocket.send_json({
                "type": "error",
                "payload": {"message": f"Unknown message type: {msg_type}"}
            })

    async def run_connection(self, websocket: WebSocket) -> None:
        """
        Run WebSocket connection lifecycle.

        Handles connection, message loop, and disconnection.
        """
        connection_id = await self.connect(websocket)

        try:
            while True:
                raw_data = await websocket.receive_text()
                try:
                    data = json.loads(raw_data)
                except json.JSONDecodeError:
                    logger.warning(f"[{connection_id}] Received invalid JSON")
                    await websocket.send_json({
                        "type": "error",
                        "payload": {"message": "Invalid JSON"}
                    })
                    continue
                if isinstance(data, dict):
                    await self.handle_message(websocket, data)

        except WebSocketDisconnect as e:
            logger.info(
                f"[{connection_id}] WebSocket disconnected by client "
                f"(code={getattr(e, 'code', 'unknown')})"
            )
        except Exception as e:
            logger.error(f"[{connection_id}] WebSocket error: {e}")
        finally:
            await self.disconnect(websocket)

    @property
    def connection_count(self) -> int:
        """Get number of active connections."""
        return len(self.active_connections)
