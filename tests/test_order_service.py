"""
Tests for the order lifecycle service
"""

import asyncio

import pytest

from app.api.ws import ADMIN_ROOM, Connection, ConnectionManager, session_room
from app.core.errors import InvalidTransitionError, NotFoundError, ValidationError
from app.models import Event, Order, OrderItem, OrderStatus
from app.schemas.order import OrderCreate, OrderItemIn
from app.services.order_service import OrderService, compute_total
from app.services.order_state_machine import TransitionPolicy
from tests.conftest import FakeWebSocket, attach

pytestmark = pytest.mark.asyncio


def burger_order(session_id, **extra):
    return OrderCreate(
        session_id=session_id,
        items=[OrderItemIn(item_name="Burger", quantity=2, price=12.99)],
        **extra
    )


async def test_create_order_scenario(order_service, table_session):
    """Table 5 orders two burgers"""
    placement = await order_service.create_order(burger_order(table_session))
    order = placement.order

    assert placement.replayed is False
    assert order.total_amount == 25.98
    assert order.status == OrderStatus.PENDING
    assert order.session_id == table_session
    assert [item.item_name for item in order.items] == ["Burger"]
    assert order.admin_notes == ""

async def test_missing_price_and_quantity_default(order_service, table_session):
    data = OrderCreate.model_validate({
        "sessionId": table_session,
        "items": [
            {"itemName": "Water"},
            {"itemName": "Fries", "price": 3.5},
            {"itemName": "Soda", "quantity": 3},
        ],
    })
    assert compute_total(data.items) == 3.5

    order = (await order_service.create_order(data)).order
    assert order.total_amount == 3.5
    water = order.items[0]
    assert water.quantity == 1
    assert water.price == 0

async def test_total_is_sum_of_price_times_quantity():
    items = [
        OrderItemIn(item_name="A", quantity=3, price=1.1),
        OrderItemIn(item_name="B", quantity=1, price=0.2),
        OrderItemIn(item_name="C", quantity=4, price=2.25),
    ]
    assert compute_total(items) == 1.1 * 3 + 0.2 * 1 + 2.25 * 4

async def test_total_keeps_sub_cent_prices():
    items = [OrderItemIn(item_name="Spice", quantity=3, price=0.333)]

    assert compute_total(items) == 0.333 * 3
    assert compute_total(items) != 1.0

async def test_stored_total_matches_exact_sum(order_service, table_session):
    data = OrderCreate(
        session_id=table_session,
        items=[
            OrderItemIn(item_name="Saffron", quantity=3, price=0.333),
            OrderItemIn(item_name="Tea", quantity=2, price=1.005),
        ],
    )

    order = (await order_service.create_order(data)).order

    assert order.total_amount == 0.333 * 3 + 1.005 * 2

async def test_create_persists_one_order_items_and_event(order_service, session_factory, table_session):
    data = OrderCreate(
        session_id=table_session,
        items=[
            OrderItemIn(item_name="Burger", quantity=2, price=12.99),
            OrderItemIn(item_name="Salad", price=8.5, notes="no onions"),
        ],
        customer_notes="window seat",
    )
    order = (await order_service.create_order(data)).order

    with session_factory() as db:
        assert db.query(Order).count() == 1
        items = db.query(OrderItem).filter(OrderItem.order_id == order.order_id).all()
        assert len(items) == 2
        assert items[1].notes == "no onions"

        events = db.query(Event).all()
        assert len(events) == 1
        assert events[0].event_type == "orderPlaced"
        assert events[0].order_id == order.order_id
        assert events[0].session_id == table_session
        assert events[0].data["totalAmount"] == 12.99 * 2 + 8.5

    assert order.customer_notes == "window seat"

async def test_new_order_reaches_session_room_and_admin_room(order_service, hub, table_session):
    customer = await attach(hub, session_room(table_session))
    admin = await attach(hub, ADMIN_ROOM, role="admin")
    bystander = await attach(hub, session_room("another-session"))

    order = (await order_service.create_order(burger_order(table_session))).order

    assert customer.events() == ["newOrder"]
    assert admin.events() == ["newOrder"]
    assert customer.of("newOrder") == admin.of("newOrder")
    assert customer.of("newOrder")[0]["order"]["orderId"] == order.order_id
    assert bystander.sent == []

async def test_connection_in_both_rooms_gets_one_copy(order_service, hub, table_session):
    websocket = await attach(hub, ADMIN_ROOM, role="admin")
    connection = next(iter(hub.connections.values()))
    await hub.join(connection, session_room(table_session), role="admin", ack_event="joined", ack_data={})
    websocket.sent.clear()

    await order_service.create_order(burger_order(table_session))

    assert websocket.events() == ["newOrder"]

async def test_create_for_unknown_session_is_not_found(order_service, hub, session_factory):
    with pytest.raises(NotFoundError):
        await order_service.create_order(burger_order("no-such-session"))

    assert hub.emitted == []
    with session_factory() as db:
        assert db.query(Order).count() == 0
        assert db.query(Event).count() == 0

async def test_create_without_items_is_rejected(order_service, hub, table_session):
    with pytest.raises(ValidationError):
        await order_service.create_order(OrderCreate(session_id=table_session, items=[]))
    assert hub.emitted == []

async def test_idempotency_key_replays_first_order(order_service, hub, session_factory, table_session):
    first = await order_service.create_order(burger_order(table_session, idempotency_key="attempt-1"))
    retry = await order_service.create_order(burger_order(table_session, idempotency_key="attempt-1"))

    assert retry.replayed is True
    assert retry.order.order_id == first.order.order_id
    assert [e["event"] for e in hub.emitted] == ["newOrder"]

    with session_factory() as db:
        assert db.query(Order).count() == 1
        assert db.query(Event).count() == 1

async def test_concurrent_retries_with_same_key_create_one_order(order_service, session_factory, table_session):
    results = await asyncio.gather(*[
        order_service.create_order(burger_order(table_session, idempotency_key="double-tap"))
        for _ in range(3)
    ])

    assert len({r.order.order_id for r in results}) == 1
    assert sum(1 for r in results if not r.replayed) == 1
    with session_factory() as db:
        assert db.query(Order).count() == 1

async def test_orders_without_key_are_never_deduplicated(order_service, session_factory, table_session):
    await order_service.create_order(burger_order(table_session))
    await order_service.create_order(burger_order(table_session))

    with session_factory() as db:
        assert db.query(Order).count() == 2

async def test_update_status_scenario(order_service, hub, table_session):
    order = (await order_service.create_order(burger_order(table_session))).order
    customer = await attach(hub, session_room(table_session))
    admin = await attach(hub, ADMIN_ROOM, role="admin")

    updated = await order_service.update_status(order.order_id, OrderStatus.READY, admin_notes="extra sauce")

    assert updated.status == OrderStatus.READY
    assert updated.admin_notes == "extra sauce"
    assert updated.total_amount == 25.98

    assert customer.events() == ["statusUpdated"]
    assert admin.events() == ["orderStatusUpdated"]
    customer_payload = customer.of("statusUpdated")[0]
    admin_payload = admin.of("orderStatusUpdated")[0]
    assert customer_payload == admin_payload
    assert customer_payload["status"] == "ready"
    assert customer_payload["adminNotes"] == "extra sauce"
    assert customer_payload["order"]["status"] == "ready"
    assert customer_payload["order"]["orderId"] == order.order_id

async def test_update_status_appends_event(order_service, session_factory, table_session):
    order = (await order_service.create_order(burger_order(table_session))).order
    await order_service.update_status(order.order_id, OrderStatus.ACCEPTED)

    with session_factory() as db:
        events = db.query(Event).order_by(Event.id).all()
        assert [e.event_type for e in events] == ["orderPlaced", "updateOrderStatus"]
        assert events[1].order_id == order.order_id
        assert events[1].data["status"] == "accepted"

async def test_update_unknown_order_is_not_found_without_emission(order_service, hub, session_factory):
    with pytest.raises(NotFoundError):
        await order_service.update_status("nonexistent-id", OrderStatus.ACCEPTED)

    assert hub.emitted == []
    with session_factory() as db:
        assert db.query(Event).count() == 0

async def test_admin_notes_fall_back_to_previous(order_service, table_session):
    order = (await order_service.create_order(burger_order(table_session))).order
    await order_service.update_status(order.order_id, OrderStatus.ACCEPTED, admin_notes="table by the door")

    updated = await order_service.update_status(order.order_id, OrderStatus.PREPARING)
    assert updated.admin_notes == "table by the door"

    updated = await order_service.update_status(order.order_id, OrderStatus.READY, admin_notes="")
    assert updated.admin_notes == "table by the door"

async def test_permissive_policy_allows_reopening(order_service, table_session):
    order = (await order_service.create_order(burger_order(table_session))).order
    await order_service.update_status(order.order_id, OrderStatus.COMPLETED)

    reopened = await order_service.update_status(order.order_id, OrderStatus.PENDING)
    assert reopened.status == OrderStatus.PENDING

async def test_forward_only_policy_rejects_reopening(session_factory, hub, event_log, table_session):
    service = OrderService(session_factory, hub, event_log, transition_policy=TransitionPolicy.FORWARD_ONLY)
    order = (await service.create_order(burger_order(table_session))).order
    await service.update_status(order.order_id, OrderStatus.CANCELLED)
    hub.emitted.clear()

    with pytest.raises(InvalidTransitionError):
        await service.update_status(order.order_id, OrderStatus.PENDING)

    assert hub.emitted == []
    assert (await service.get_order(order.order_id)).status == OrderStatus.CANCELLED

async def test_forward_only_policy_walks_the_happy_path(session_factory, hub, event_log, table_session):
    service = OrderService(session_factory, hub, event_log, transition_policy="forward_only")
    order = (await service.create_order(burger_order(table_session))).order

    for status in (OrderStatus.ACCEPTED, OrderStatus.PREPARING, OrderStatus.READY, OrderStatus.COMPLETED):
        order = await service.update_status(order.order_id, status)
    assert order.status == OrderStatus.COMPLETED

async def test_concurrent_updates_on_one_order_all_land(order_service, session_factory, table_session):
    order = (await order_service.create_order(burger_order(table_session))).order
    statuses = [OrderStatus.ACCEPTED, OrderStatus.PREPARING, OrderStatus.READY, OrderStatus.COMPLETED]

    await asyncio.gather(*[order_service.update_status(order.order_id, s) for s in statuses])

    with session_factory() as db:
        updates = db.query(Event).filter(Event.event_type == "updateOrderStatus").order_by(Event.id).all()
        assert len(updates) == 4
        final = db.query(Order).filter(Order.order_id == order.order_id).one()
        # Last committed update wins and matches the last logged event
        assert final.status == updates[-1].data["status"]

async def test_reads(order_service, session_factory, hub, event_log, table_session):
    first = (await order_service.create_order(burger_order(table_session))).order
    second = (await order_service.create_order(burger_order(table_session))).order

    assert (await order_service.get_order(first.order_id)).order_id == first.order_id
    session_orders = await order_service.list_session_orders(table_session)
    assert [o.order_id for o in session_orders] == [second.order_id, first.order_id]

    capped = OrderService(session_factory, hub, event_log, recent_limit=1)
    recent = await capped.list_recent_orders()
    assert [o.order_id for o in recent] == [second.order_id]

    events = await order_service.list_session_events(table_session)
    assert len(events) == 2
    assert all(e.event_type == "orderPlaced" for e in events)

    with pytest.raises(NotFoundError):
        await order_service.get_order("missing")

async def test_stuck_customer_socket_does_not_block_orders(session_factory, event_log, table_session):
    hub = ConnectionManager()
    stuck_ws = FakeWebSocket(blocked=True)
    stuck = Connection(stuck_ws)
    hub.register(stuck)
    await hub.join(stuck, session_room(table_session), "customer", "joinedSession", {})
    service = OrderService(session_factory, hub, event_log)

    order = (await asyncio.wait_for(service.create_order(burger_order(table_session)), timeout=2.0)).order
    updated = await asyncio.wait_for(service.update_status(order.order_id, OrderStatus.ACCEPTED), timeout=2.0)
    assert updated.status == OrderStatus.ACCEPTED

    stuck_ws.release()
    await asyncio.wait_for(stuck.drain(), timeout=1.0)
    assert stuck_ws.events() == ["joinedSession", "newOrder", "statusUpdated"]
