"""
Inbound WebSocket event handlers
"""

import logging
from functools import partial
from typing import Any, Awaitable, Callable, Dict, Optional, Type

from pydantic import BaseModel, ValidationError as PydanticValidationError

from app.api.ws import ADMIN_ROOM, Connection, ConnectionManager, session_room
from app.core.errors import AppError
from app.schemas.order import OrderCreate
from app.schemas.socket import (
    AdminMessageMessage,
    ButtonClickedMessage,
    CustomerTypingMessage,
    ItemSelectedMessage,
    JoinAdminMessage,
    JoinSessionMessage,
    OrderPlacedMessage,
    UpdateOrderStatusMessage,
)
from app.services.customer_event_service import CustomerEventService
from app.services.order_service import OrderService, order_payload
from app.services.session_service import SessionService
from app.services.snapshot_service import SnapshotService

logger = logging.getLogger(__name__)

Handler = Callable[[Connection, Dict[str, Any]], Awaitable[None]]


def _first_error(exc: PydanticValidationError) -> str:
    error = exc.errors()[0]
    location = ".".join(str(part) for part in error.get("loc", ()))
    return f"{location}: {error.get('msg')}" if location else error.get("msg", "Invalid message")


class SocketEventHandler:
    """Translates WebSocket messages into service calls.

    Messages look like ``{"event": "<name>", "data": {...}}``. Failed joins
    and mutations answer the sender with an ``error`` event; interaction
    pings and admin messages only log their failures.
    """

    def __init__(
        self,
        hub: ConnectionManager,
        orders: OrderService,
        sessions: SessionService,
        snapshots: SnapshotService,
        customer_events: CustomerEventService,
        admin_token: Optional[str] = None,
        require_admin_auth: bool = False,
    ):
        self.hub = hub
        self.orders = orders
        self.sessions = sessions
        self.snapshots = snapshots
        self.customer_events = customer_events
        self.admin_token = admin_token
        self.require_admin_auth = require_admin_auth

        self.mutations: Dict[str, Handler] = {
            "joinAdmin": self.on_join_admin,
            "joinSession": self.on_join_session,
            "orderPlaced": self.on_order_placed,
            "updateOrderStatus": self.on_update_order_status,
        }
        self.signals: Dict[str, Handler] = {
            "buttonClicked": self.on_button_clicked,
            "itemSelected": self.on_item_selected,
            "customerTyping": self.on_customer_typing,
            "adminMessage": self.on_admin_message,
        }

    async def dispatch(self, connection: Connection, message: Any) -> None:
        if not isinstance(message, dict):
            await self._error(connection, "Message must be a JSON object")
            return

        event = message.get("event") or message.get("type")
        data = message.get("data") or {}

        if not isinstance(data, dict):
            await self._error(connection, "Event data must be a JSON object")
            return

        # Handle heartbeat/ping
        if event == "ping":
            await self.hub.send_personal(connection, "pong", {"timestamp": data.get("timestamp")})
            return

        if event in self.mutations:
            try:
                await self.mutations[event](connection, data)
            except AppError as e:
                await self._error(connection, e.message)
            except Exception as e:
                logger.exception(f"Error handling {event} from {connection.id}: {e}")
                await self._error(connection, f"Failed to handle {event}")
        elif event in self.signals:
            try:
                await self.signals[event](connection, data)
            except Exception as e:
                logger.error(f"Error handling {event} from {connection.id}: {e}")
        else:
            await self._error(connection, f"Unknown event: {event}")

    async def _error(self, connection: Connection, message: str) -> None:
        await self.hub.send_personal(connection, "error", {"message": message})

    def _parse(self, model: Type[BaseModel], data: Dict[str, Any]):
        try:
            return model.model_validate(data)
        except PydanticValidationError as e:
            raise AppError(f"Invalid payload: {_first_error(e)}") from e

    def _check_admin(self, token: Optional[str]) -> None:
        if self.require_admin_auth and token != self.admin_token:
            raise AppError("Invalid admin token")

    # -------- Joins --------

    async def on_join_admin(self, connection: Connection, data: Dict[str, Any]) -> None:
        message = self._parse(JoinAdminMessage, data)
        self._check_admin(message.token)
        await self.hub.join(
            connection,
            ADMIN_ROOM,
            role="admin",
            ack_event="joinedAdmin",
            ack_data={"userType": "admin"},
            snapshot=self.snapshots.admin_snapshot,
        )

    async def on_join_session(self, connection: Connection, data: Dict[str, Any]) -> None:
        message = self._parse(JoinSessionMessage, data)
        if not message.session_id:
            raise AppError("Session ID is required")
        if message.role == "admin":
            self._check_admin(message.token)
        if not await self.sessions.session_exists(message.session_id):
            raise AppError("Session not found")

        session_id = message.session_id
        snapshot = None
        if message.role == "admin":
            snapshot = partial(self.snapshots.session_snapshot, session_id)

        connection.session_id = session_id
        await self.hub.join(
            connection,
            session_room(session_id),
            role=message.role,
            ack_event="joinedSession",
            ack_data={"sessionId": session_id, "userType": message.role},
            snapshot=snapshot,
        )

    # -------- Mutations --------

    async def on_order_placed(self, connection: Connection, data: Dict[str, Any]) -> None:
        message = self._parse(OrderPlacedMessage, data)
        placement = await self.orders.create_order(
            OrderCreate(
                session_id=message.session_id,
                items=message.items,
                customer_notes=message.customer_notes,
                idempotency_key=message.idempotency_key,
            )
        )
        order = placement.order
        await self.hub.send_personal(
            connection,
            "orderConfirmed",
            {"orderId": order.order_id, "order": order_payload(order), "replayed": placement.replayed},
        )

    async def on_update_order_status(self, connection: Connection, data: Dict[str, Any]) -> None:
        message = self._parse(UpdateOrderStatusMessage, data)
        self._check_admin(message.token)
        order = await self.orders.update_status(message.order_id, message.status, message.admin_notes)
        # The sender may not be in admin-room, so confirm to it directly as well
        if ADMIN_ROOM not in connection.rooms:
            await self.hub.send_personal(
                connection,
                "orderStatusUpdated",
                {
                    "orderId": order.order_id,
                    "status": order.status.value,
                    "adminNotes": order.admin_notes,
                    "order": order_payload(order),
                },
            )

    # -------- Best-effort signals --------

    async def on_button_clicked(self, connection: Connection, data: Dict[str, Any]) -> None:
        message = self._parse(ButtonClickedMessage, data)
        await self.customer_events.button_clicked(message.session_id, message.button_id, message.button_label)

    async def on_item_selected(self, connection: Connection, data: Dict[str, Any]) -> None:
        message = self._parse(ItemSelectedMessage, data)
        await self.customer_events.item_selected(
            message.session_id, message.item_id, message.item_name, message.selected
        )

    async def on_customer_typing(self, connection: Connection, data: Dict[str, Any]) -> None:
        message = self._parse(CustomerTypingMessage, data)
        await self.customer_events.customer_typing(message.session_id, message.is_typing)

    async def on_admin_message(self, connection: Connection, data: Dict[str, Any]) -> None:
        message = self._parse(AdminMessageMessage, data)
        await self.customer_events.admin_message(message.session_id, message.message)
