"""
Shared fixtures: a throwaway SQLite store, fake sockets and a recording hub
"""

import asyncio
import json
from typing import Any, Dict, List

import pytest

from app.api.ws import Connection, ConnectionManager
from app.core.config import Settings
from app.core.db import Base, create_db_engine, create_session_factory
from app.services.event_log import EventLog
from app.services.order_service import OrderService
from app.services.repositories import SessionRepo
from app.services.session_service import SessionService

import app.models  # noqa: F401  registers tables on Base


class FakeWebSocket:
    """Stands in for a starlette WebSocket and records what was sent.

    With ``blocked`` set, sends hang until ``release()`` is called.
    """

    def __init__(self, fail: bool = False, blocked: bool = False):
        self.fail = fail
        self.accepted = False
        self.sent: List[Dict[str, Any]] = []
        self._open = asyncio.Event()
        if not blocked:
            self._open.set()

    async def accept(self):
        self.accepted = True

    async def send_text(self, text: str):
        await self._open.wait()
        if self.fail:
            raise RuntimeError("socket closed")
        self.sent.append(json.loads(text))

    def release(self):
        self._open.set()

    def events(self) -> List[str]:
        return [message["event"] for message in self.sent]

    def of(self, event: str) -> List[Dict[str, Any]]:
        return [message["data"] for message in self.sent if message["event"] == event]


class RecordingHub(ConnectionManager):
    """ConnectionManager that records room emissions and waits for delivery.

    Every call returns only once the fake sockets have received what it
    queued, so tests can assert on them straight away.
    """

    def __init__(self):
        super().__init__()
        self.emitted: List[Dict[str, Any]] = []

    async def emit(self, event, data, rooms):
        rooms = list(rooms)
        self.emitted.append({"event": event, "data": data, "rooms": rooms})
        delivered = await super().emit(event, data, rooms)
        await self.flush()
        return delivered

    async def broadcast_all(self, event, data):
        delivered = await super().broadcast_all(event, data)
        await self.flush()
        return delivered

    async def send_personal(self, connection, event, data):
        await super().send_personal(connection, event, data)
        await self.flush()

    async def join(self, *args, **kwargs):
        await super().join(*args, **kwargs)
        await self.flush()


@pytest.fixture
def engine(tmp_path):
    engine = create_db_engine(f"sqlite:///{tmp_path / 'test_orders.db'}")
    Base.metadata.create_all(bind=engine)
    yield engine
    Base.metadata.drop_all(bind=engine)
    engine.dispose()

@pytest.fixture
def session_factory(engine):
    return create_session_factory(engine)

@pytest.fixture
def hub():
    return RecordingHub()

@pytest.fixture
def event_log():
    return EventLog(history_limit=100)

@pytest.fixture
def order_service(session_factory, hub, event_log):
    return OrderService(session_factory, hub, event_log)

@pytest.fixture
def session_service(session_factory, event_log):
    return SessionService(session_factory, event_log, base_url="http://localhost:5000")

@pytest.fixture
def table_session(session_factory):
    """A stored session called "Table 5" """
    with session_factory.begin() as db:
        session = SessionRepo.create(db, "11111111-2222-3333-4444-555555555555", "Table 5", "5")
        return session.session_id

@pytest.fixture
def test_settings(tmp_path):
    return Settings(DATABASE_URL=f"sqlite:///{tmp_path / 'api_orders.db'}")


async def attach(hub: ConnectionManager, room: str, role: str = "customer") -> FakeWebSocket:
    """Join a fake connection to a room and forget the join acknowledgement"""
    websocket = FakeWebSocket()
    connection = Connection(websocket)
    hub.register(connection)
    await hub.join(connection, room, role=role, ack_event="joined", ack_data={})
    await hub.flush()
    websocket.sent.clear()
    return websocket
