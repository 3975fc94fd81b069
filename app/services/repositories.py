"""
Repository layer over the SQLAlchemy store.

Repositories never commit; the calling service owns the transaction.
"""

from __future__ import annotations

from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session, selectinload

from app.models import Event, MenuItem, Order, OrderItem, TableSession
from app.utils.clock import utcnow


# -------- Session repository --------

class SessionRepo:
    @staticmethod
    def get(db: Session, session_id: str) -> Optional[TableSession]:
        return db.query(TableSession).filter(TableSession.session_id == session_id).first()

    @staticmethod
    def exists(db: Session, session_id: str) -> bool:
        return db.query(TableSession.id).filter(TableSession.session_id == session_id).first() is not None

    @staticmethod
    def list_all(db: Session) -> List[TableSession]:
        return db.query(TableSession).order_by(TableSession.created_at.desc(), TableSession.id.desc()).all()

    @staticmethod
    def create(db: Session, session_id: str, name: str, table_number: Optional[str]) -> TableSession:
        now = utcnow()
        session = TableSession(
            session_id=session_id,
            name=name,
            table_number=table_number,
            is_active=True,
            created_at=now,
            updated_at=now,
        )
        db.add(session)
        db.flush()
        return session

    @staticmethod
    def delete(db: Session, session: TableSession) -> None:
        db.delete(session)
        db.flush()


# -------- Order repository --------

class OrderRepo:
    @staticmethod
    def _with_items(db: Session):
        return db.query(Order).options(selectinload(Order.items))

    @staticmethod
    def get(db: Session, order_id: str) -> Optional[Order]:
        return OrderRepo._with_items(db).filter(Order.order_id == order_id).first()

    @staticmethod
    def get_by_idempotency_key(db: Session, key: str) -> Optional[Order]:
        return OrderRepo._with_items(db).filter(Order.idempotency_key == key).first()

    @staticmethod
    def list_for_session(db: Session, session_id: str) -> List[Order]:
        return (
            OrderRepo._with_items(db)
            .filter(Order.session_id == session_id)
            .order_by(Order.created_at.desc(), Order.id.desc())
            .all()
        )

    @staticmethod
    def list_recent(db: Session, limit: int) -> List[Order]:
        return (
            OrderRepo._with_items(db)
            .order_by(Order.created_at.desc(), Order.id.desc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def create(
        db: Session,
        order_id: str,
        session_id: str,
        status: str,
        total_amount: float,
        customer_notes: str,
        items: List[Dict[str, Any]],
        idempotency_key: Optional[str] = None,
    ) -> Order:
        now = utcnow()
        order = Order(
            order_id=order_id,
            session_id=session_id,
            status=status,
            total_amount=total_amount,
            customer_notes=customer_notes,
            admin_notes="",
            idempotency_key=idempotency_key,
            created_at=now,
            updated_at=now,
        )
        order.items = [OrderItem(**item) for item in items]
        db.add(order)
        db.flush()
        return order

    @staticmethod
    def set_status(db: Session, order: Order, status: str, admin_notes: str) -> Order:
        order.status = status
        order.admin_notes = admin_notes
        order.updated_at = utcnow()
        db.flush()
        return order


# -------- Event repository (append-only) --------

class EventRepo:
    @staticmethod
    def insert(
        db: Session,
        session_id: str,
        event_type: str,
        data: Dict[str, Any],
        order_id: Optional[str] = None,
    ) -> Event:
        event = Event(
            session_id=session_id,
            event_type=event_type,
            order_id=order_id,
            data=data,
            timestamp=utcnow(),
        )
        db.add(event)
        db.flush()
        return event

    @staticmethod
    def list_for_session(db: Session, session_id: str, limit: int) -> List[Event]:
        return (
            db.query(Event)
            .filter(Event.session_id == session_id)
            .order_by(Event.timestamp.desc(), Event.id.desc())
            .limit(limit)
            .all()
        )

    @staticmethod
    def delete_for_session(db: Session, session_id: str) -> int:
        return db.query(Event).filter(Event.session_id == session_id).delete(synchronize_session=False)


# -------- Menu repository --------

class MenuRepo:
    @staticmethod
    def list(db: Session, available_only: bool = False) -> List[MenuItem]:
        query = db.query(MenuItem)
        if available_only:
            query = query.filter(MenuItem.available == True)  # noqa: E712
        return query.order_by(MenuItem.name.asc()).all()

    @staticmethod
    def get(db: Session, item_id: str) -> Optional[MenuItem]:
        return db.query(MenuItem).filter(MenuItem.id == item_id).first()

    @staticmethod
    def create(db: Session, item_id: str, name: str, price: float, description: Optional[str], available: bool) -> MenuItem:
        now = utcnow()
        item = MenuItem(
            id=item_id,
            name=name,
            price=price,
            description=description,
            available=available,
            created_at=now,
            updated_at=now,
        )
        db.add(item)
        db.flush()
        return item

    @staticmethod
    def delete(db: Session, item: MenuItem) -> None:
        db.delete(item)
        db.flush()
