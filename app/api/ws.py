"""
WebSocket connection registry and room broadcasting
"""

import asyncio
import json
import logging
import uuid
from typing import Any, Awaitable, Callable, Dict, Iterable, List, Optional, Set, Union

from fastapi import APIRouter, Request, WebSocket, WebSocketDisconnect
from fastapi.encoders import jsonable_encoder

logger = logging.getLogger(__name__)

ADMIN_ROOM = "admin-room"

# Messages a slow client may have queued before it is dropped
OUTBOX_LIMIT = 1000


def session_room(session_id: str) -> str:
    """Room shared by a session's customer and admins watching that session"""
    return f"session:{session_id}"


def encode_message(event: str, data: Any) -> str:
    return json.dumps({"event": event, "data": jsonable_encoder(data)})


class Connection:
    """One live WebSocket plus the role and rooms it declared.

    Outbound messages go through a bounded outbox drained by one writer task,
    so a slow socket only ever delays its own messages. An outbox entry is
    either encoded text or a future that resolves to it (a snapshot still
    being read); the writer waits on such a future before sending anything
    queued behind it.
    """

    def __init__(self, websocket: WebSocket, outbox_limit: int = OUTBOX_LIMIT):
        self.id = uuid.uuid4().hex
        self.websocket = websocket
        self.role: Optional[str] = None
        self.session_id: Optional[str] = None
        self.rooms: Set[str] = set()
        self.outbox: asyncio.Queue = asyncio.Queue(maxsize=outbox_limit)
        self._writer: Optional[asyncio.Task] = None
        self._on_failure: Optional[Callable[["Connection"], None]] = None

    def start(self, on_failure: Callable[["Connection"], None]) -> None:
        """Start the writer task; ``on_failure`` runs once if a send fails"""
        self._on_failure = on_failure
        if self._writer is None:
            self._writer = asyncio.create_task(self._write_loop())

    def enqueue(self, message: Union[str, asyncio.Future]) -> None:
        """Queue a message without waiting; raises asyncio.QueueFull when the outbox is full"""
        self.outbox.put_nowait(message)

    async def send(self, text: str) -> None:
        await self.websocket.send_text(text)

    async def drain(self) -> None:
        """Wait until everything queued so far has been sent or discarded"""
        await self.outbox.join()

    async def _write_loop(self) -> None:
        while True:
            message = await self.outbox.get()
            try:
                if isinstance(message, asyncio.Future):
                    message = await message
                await self.send(message)
            except asyncio.CancelledError:
                self.outbox.task_done()
                raise
            except Exception as e:
                logger.error(f"Error sending to {self.id}: {e}")
                self.outbox.task_done()
                self._discard_pending()
                if self._on_failure is not None:
                    self._on_failure(self)
                return
            self.outbox.task_done()

    def _discard_pending(self) -> None:
        while True:
            try:
                message = self.outbox.get_nowait()
            except asyncio.QueueEmpty:
                return
            if isinstance(message, asyncio.Future) and not message.done():
                message.cancel()
            self.outbox.task_done()

    def close(self) -> None:
        """Stop the writer and drop whatever is still queued"""
        writer, self._writer = self._writer, None
        if writer is not None and writer is not asyncio.current_task():
            writer.cancel()
        self._discard_pending()

    def __repr__(self) -> str:
        return f"<Connection {self.id} role={self.role} rooms={sorted(self.rooms)}>"


SnapshotLoader = Callable[[], Awaitable[Dict[str, Any]]]


class ConnectionManager:
    """Tracks live connections and fans events out to rooms.

    Room membership changes and emissions never await between reading the
    rooms and queueing messages, so each one is atomic on the event loop.
    A join queues its ack and a placeholder for its snapshot before any later
    emission can reach the connection, then reads the snapshot. Events
    committed after the snapshot read are therefore queued behind it and are
    never missed.
    """

    def __init__(self):
        # room -> connection ids
        self.rooms: Dict[str, Set[str]] = {}
        self.connections: Dict[str, Connection] = {}

    async def connect(self, websocket: WebSocket) -> Connection:
        """Accept WebSocket connection and register it without any room"""
        await websocket.accept()
        connection = Connection(websocket)
        self.register(connection)
        logger.info(f"WebSocket {connection.id} connected. Total connections: {len(self.connections)}")
        return connection

    def register(self, connection: Connection) -> None:
        """Track an already-accepted connection and start its writer"""
        self.connections[connection.id] = connection
        connection.start(on_failure=self.disconnect)

    def disconnect(self, connection: Connection) -> None:
        """Remove the connection from every room it joined"""
        for room in list(connection.rooms):
            self._leave(connection, room)
        connection.close()
        if self.connections.pop(connection.id, None) is not None:
            logger.info(f"WebSocket {connection.id} disconnected. Remaining connections: {len(self.connections)}")

    def _leave(self, connection: Connection, room: str) -> None:
        members = self.rooms.get(room)
        if members is not None:
            members.discard(connection.id)
            # Clean up empty rooms
            if not members:
                del self.rooms[room]
        connection.rooms.discard(room)

    async def join(
        self,
        connection: Connection,
        room: str,
        role: str,
        ack_event: str,
        ack_data: Dict[str, Any],
        snapshot: Optional[SnapshotLoader] = None,
    ) -> None:
        """Join a room, acknowledge, then deliver the snapshot if one is given"""
        self.rooms.setdefault(room, set()).add(connection.id)
        connection.rooms.add(room)
        connection.role = role
        logger.info(f"Connection {connection.id} joined {room} as {role}. Room size: {len(self.rooms[room])}")

        if not self._queue(connection, encode_message(ack_event, ack_data)) or snapshot is None:
            return

        pending = asyncio.get_running_loop().create_future()
        if not self._queue(connection, pending):
            return

        try:
            snapshot_data = await snapshot()
        except Exception as e:
            logger.error(f"Error loading snapshot for {connection.id} in {room}: {e}")
            snapshot_data = {"orders": []}

        if not pending.done():
            pending.set_result(encode_message("initialOrders", snapshot_data))

    async def send_personal(self, connection: Connection, event: str, data: Any) -> None:
        """Send an event to one connection only"""
        self._queue(connection, encode_message(event, data))

    async def emit(self, event: str, data: Any, rooms: Iterable[str]) -> int:
        """Queue one event for every connection in any of the rooms, once each"""
        return self._deliver(self._members(rooms), event, data)

    async def broadcast_all(self, event: str, data: Any) -> int:
        """Queue an event for every live connection, joined to a room or not"""
        return self._deliver(list(self.connections.values()), event, data)

    async def flush(self) -> None:
        """Wait until every live connection's outbox has been written out"""
        await asyncio.gather(*(c.drain() for c in list(self.connections.values())))

    def _members(self, rooms: Iterable[str]) -> List[Connection]:
        seen: Set[str] = set()
        targets: List[Connection] = []
        for room in rooms:
            for connection_id in self.rooms.get(room, ()):
                if connection_id in seen:
                    continue
                seen.add(connection_id)
                connection = self.connections.get(connection_id)
                if connection is not None:
                    targets.append(connection)
        return targets

    def _deliver(self, targets: List[Connection], event: str, data: Any) -> int:
        # Encode once; every recipient gets the same text
        message = encode_message(event, data)
        return sum(1 for connection in targets if self._queue(connection, message))

    def _queue(self, connection: Connection, message: Union[str, asyncio.Future]) -> bool:
        try:
            connection.enqueue(message)
            return True
        except asyncio.QueueFull:
            logger.warning(f"Outbox full for {connection.id}; dropping the connection")
            self.disconnect(connection)
            return False

    def get_connection_count(self, room: str) -> int:
        """Get number of connections joined to a room"""
        return len(self.rooms.get(room, ()))

    def get_all_connection_counts(self) -> Dict[str, int]:
        """Get connection counts for all rooms"""
        return {room: len(members) for room, members in self.rooms.items()}


# Router for WebSocket endpoints
router = APIRouter()

@router.websocket("/orders")
async def websocket_endpoint(websocket: WebSocket):
    """Bidirectional order channel for customers and admin dashboards"""
    hub: ConnectionManager = websocket.app.state.hub
    handler = websocket.app.state.socket_handler

    connection = await hub.connect(websocket)
    try:
        while True:
            data = await websocket.receive_text()

            try:
                client_message = json.loads(data)
            except json.JSONDecodeError:
                logger.warning(f"Invalid JSON received from WebSocket {connection.id}: {data}")
                await hub.send_personal(connection, "error", {"message": "Invalid JSON message"})
                continue

            await handler.dispatch(connection, client_message)

    except WebSocketDisconnect:
        pass
    except Exception as e:
        logger.error(f"WebSocket error on {connection.id}: {e}")
    finally:
        hub.disconnect(connection)

@router.get("/stats")
async def websocket_stats(request: Request):
    """Get WebSocket connection statistics (for debugging)"""
    hub: ConnectionManager = request.app.state.hub
    counts = hub.get_all_connection_counts()
    return {
        "total_rooms": len(counts),
        "connection_counts": counts,
        "total_connections": len(hub.connections),
    }
