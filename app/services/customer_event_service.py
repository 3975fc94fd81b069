"""
Best-effort customer interaction signals and admin messages
"""

import logging
from typing import Any, Dict, Optional, Union

from sqlalchemy.orm import sessionmaker
from starlette.concurrency import run_in_threadpool

from app.api.ws import ADMIN_ROOM, ConnectionManager, session_room
from app.models import EventType
from app.services.event_log import EventLog
from app.utils.clock import utcnow

logger = logging.getLogger(__name__)


class CustomerEventService:
    """Relays interaction pings between a session and the dashboards.

    These are UX signals, not state changes: typing is never persisted, button
    and item pings only when ``persist_interactions`` is on, and admin messages
    always are.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        hub: ConnectionManager,
        event_log: EventLog,
        persist_interactions: bool = False,
    ):
        self.session_factory = session_factory
        self.hub = hub
        self.event_log = event_log
        self.persist_interactions = persist_interactions

    def _record_sync(self, session_id: str, event_type: EventType, data: Dict[str, Any]) -> None:
        with self.session_factory.begin() as db:
            self.event_log.append(db, session_id, event_type, data)

    async def _record(self, session_id: str, event_type: EventType, data: Dict[str, Any]) -> None:
        await run_in_threadpool(self._record_sync, session_id, event_type, data)

    async def _relay(self, session_id: str, event: str, payload: Dict[str, Any]) -> int:
        payload = {**payload, "sessionId": session_id, "timestamp": utcnow()}
        return await self.hub.emit(event, payload, [session_room(session_id), ADMIN_ROOM])

    async def button_clicked(
        self,
        session_id: str,
        button_id: Optional[Union[str, int]],
        button_label: Optional[str],
    ) -> int:
        data = {"buttonId": button_id, "buttonLabel": button_label}
        if self.persist_interactions:
            await self._record(session_id, EventType.BUTTON_CLICKED, data)
        return await self._relay(session_id, "customerEvent", {"type": EventType.BUTTON_CLICKED.value, **data})

    async def item_selected(
        self,
        session_id: str,
        item_id: Optional[Union[str, int]],
        item_name: Optional[str],
        selected: bool,
    ) -> int:
        data = {"itemId": item_id, "itemName": item_name, "selected": selected}
        if self.persist_interactions:
            await self._record(session_id, EventType.ITEM_SELECTED, data)
        return await self._relay(session_id, "customerEvent", {"type": EventType.ITEM_SELECTED.value, **data})

    async def customer_typing(self, session_id: str, is_typing: bool) -> int:
        return await self._relay(
            session_id,
            "customerEvent",
            {"type": EventType.CUSTOMER_TYPING.value, "isTyping": is_typing},
        )

    async def admin_message(self, session_id: str, message: str) -> int:
        await self._record(session_id, EventType.ADMIN_MESSAGE, {"message": message})
        return await self._relay(
            session_id,
            "adminEvent",
            {"type": EventType.ADMIN_MESSAGE.value, "message": message},
        )
