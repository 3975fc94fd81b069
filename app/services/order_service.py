"""
Order lifecycle service shared by the REST gateway and the WebSocket handlers
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Any, Callable, Dict, List, Optional, Sequence

from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from starlette.concurrency import run_in_threadpool

from app.api.ws import ADMIN_ROOM, ConnectionManager, session_room
from app.core.errors import InternalError, NotFoundError, ValidationError
from app.models import EventType, OrderStatus
from app.schemas.order import EventResponse, OrderCreate, OrderItemIn, OrderResponse
from app.services.event_log import EventLog
from app.services.order_state_machine import TransitionPolicy, ensure_transition
from app.services.repositories import OrderRepo, SessionRepo
from app.utils.locks import KeyedLock

logger = logging.getLogger(__name__)


@dataclass
class OrderPlacement:
    """Result of a create call; ``replayed`` is set when an idempotency key matched"""
    order: OrderResponse
    replayed: bool = False


def compute_total(items: Sequence[OrderItemIn]) -> float:
    """Sum of price x quantity; missing price counts as 0, missing quantity as 1"""
    return sum((item.price or 0) * (item.quantity or 1) for item in items)


def order_payload(order: OrderResponse) -> Dict[str, Any]:
    return order.model_dump(by_alias=True, mode="json")


class OrderService:
    """Creates orders and moves them through their status lifecycle.

    Every mutation commits the store change and its audit event in one
    transaction, then fans the result out to the session room and admin-room.
    Status changes on the same order are serialized; different orders are not.
    """

    def __init__(
        self,
        session_factory: sessionmaker,
        hub: ConnectionManager,
        event_log: EventLog,
        transition_policy: TransitionPolicy = TransitionPolicy.PERMISSIVE,
        recent_limit: int = 100,
    ):
        self.session_factory = session_factory
        self.hub = hub
        self.event_log = event_log
        self.transition_policy = TransitionPolicy(transition_policy)
        self.recent_limit = recent_limit
        self._order_locks = KeyedLock()
        self._idempotency_locks = KeyedLock()

    async def _run(self, func: Callable, *args):
        try:
            return await run_in_threadpool(func, *args)
        except SQLAlchemyError as e:
            logger.exception(f"Store failure in {func.__name__}: {e}")
            raise InternalError() from e

    # -------- Create --------

    def _create_order_sync(self, data: OrderCreate) -> OrderPlacement:
        with self.session_factory.begin() as db:
            if data.idempotency_key:
                existing = OrderRepo.get_by_idempotency_key(db, data.idempotency_key)
                if existing is not None:
                    logger.info(f"Replaying order {existing.order_id} for idempotency key {data.idempotency_key}")
                    return OrderPlacement(OrderResponse.model_validate(existing), replayed=True)

            if not SessionRepo.exists(db, data.session_id):
                raise NotFoundError("Session", data.session_id)

            order_id = str(uuid.uuid4())
            total_amount = compute_total(data.items)
            items = [
                {
                    "item_name": item.item_name,
                    "quantity": item.quantity or 1,
                    "price": item.price or 0,
                    "notes": item.notes or "",
                }
                for item in data.items
            ]

            order = OrderRepo.create(
                db,
                order_id=order_id,
                session_id=data.session_id,
                status=OrderStatus.PENDING.value,
                total_amount=total_amount,
                customer_notes=data.customer_notes or "",
                items=items,
                idempotency_key=data.idempotency_key,
            )
            self.event_log.append(
                db,
                data.session_id,
                EventType.ORDER_PLACED,
                {
                    "orderId": order_id,
                    "items": [item.model_dump(by_alias=True) for item in data.items],
                    "totalAmount": total_amount,
                },
                order_id=order_id,
            )
            return OrderPlacement(OrderResponse.model_validate(order))

    async def create_order(self, data: OrderCreate) -> OrderPlacement:
        """Persist a new pending order and announce it as ``newOrder``"""
        if not data.items:
            raise ValidationError("Order must contain at least one item")

        if data.idempotency_key:
            async with self._idempotency_locks.hold(data.idempotency_key):
                placement = await self._run(self._create_order_sync, data)
        else:
            placement = await self._run(self._create_order_sync, data)

        if placement.replayed:
            return placement

        order = placement.order
        logger.info(f"Order {order.order_id} placed in session {order.session_id} ({order.total_amount})")
        await self.hub.emit(
            "newOrder",
            {"order": order_payload(order)},
            [session_room(order.session_id), ADMIN_ROOM],
        )
        return placement

    # -------- Status lifecycle --------

    def _update_status_sync(self, order_id: str, status: OrderStatus, admin_notes: Optional[str]) -> OrderResponse:
        with self.session_factory.begin() as db:
            order = OrderRepo.get(db, order_id)
            if order is None:
                raise NotFoundError("Order", order_id)

            ensure_transition(order.status, status, self.transition_policy)

            notes = admin_notes or order.admin_notes or ""
            OrderRepo.set_status(db, order, status.value, notes)
            self.event_log.append(
                db,
                order.session_id,
                EventType.UPDATE_ORDER_STATUS,
                {"status": status.value, "adminNotes": admin_notes},
                order_id=order_id,
            )
            return OrderResponse.model_validate(order)

    async def update_status(
        self,
        order_id: str,
        status: OrderStatus,
        admin_notes: Optional[str] = None,
    ) -> OrderResponse:
        """Change an order's status and notify both the customer and the dashboards"""
        status = OrderStatus(status)

        async with self._order_locks.hold(order_id):
            order = await self._run(self._update_status_sync, order_id, status, admin_notes)
            logger.info(f"Order {order_id} set to {status.value}")

            payload = {
                "orderId": order.order_id,
                "status": order.status.value,
                "adminNotes": order.admin_notes,
                "order": order_payload(order),
            }
            await self.hub.emit("statusUpdated", payload, [session_room(order.session_id)])
            await self.hub.emit("orderStatusUpdated", payload, [ADMIN_ROOM])

        return order

    # -------- Reads --------

    def _get_order_sync(self, order_id: str) -> OrderResponse:
        with self.session_factory() as db:
            order = OrderRepo.get(db, order_id)
            if order is None:
                raise NotFoundError("Order", order_id)
            return OrderResponse.model_validate(order)

    def _session_orders_sync(self, session_id: str) -> List[OrderResponse]:
        with self.session_factory() as db:
            return [OrderResponse.model_validate(o) for o in OrderRepo.list_for_session(db, session_id)]

    def _recent_orders_sync(self) -> List[OrderResponse]:
        with self.session_factory() as db:
            return [OrderResponse.model_validate(o) for o in OrderRepo.list_recent(db, self.recent_limit)]

    def _session_events_sync(self, session_id: str) -> List[EventResponse]:
        with self.session_factory() as db:
            return [EventResponse.model_validate(e) for e in self.event_log.recent(db, session_id)]

    async def get_order(self, order_id: str) -> OrderResponse:
        return await self._run(self._get_order_sync, order_id)

    async def list_session_orders(self, session_id: str) -> List[OrderResponse]:
        return await self._run(self._session_orders_sync, session_id)

    async def list_recent_orders(self) -> List[OrderResponse]:
        return await self._run(self._recent_orders_sync)

    async def list_session_events(self, session_id: str) -> List[EventResponse]:
        return await self._run(self._session_events_sync, session_id)
