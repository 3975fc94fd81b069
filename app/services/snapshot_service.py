"""
Current-state snapshots delivered to connections when they join a room
"""

from typing import Any, Dict, List

from sqlalchemy.orm import sessionmaker
from starlette.concurrency import run_in_threadpool

from app.schemas.order import OrderResponse
from app.services.repositories import OrderRepo


class SnapshotService:
    """Reads the orders a newly joined connection should start from"""

    def __init__(self, session_factory: sessionmaker, admin_limit: int = 100):
        self.session_factory = session_factory
        self.admin_limit = admin_limit

    def _admin_orders(self) -> List[Dict[str, Any]]:
        with self.session_factory() as db:
            orders = OrderRepo.list_recent(db, self.admin_limit)
            return [OrderResponse.model_validate(o).model_dump(by_alias=True, mode="json") for o in orders]

    def _session_orders(self, session_id: str) -> List[Dict[str, Any]]:
        with self.session_factory() as db:
            orders = OrderRepo.list_for_session(db, session_id)
            return [OrderResponse.model_validate(o).model_dump(by_alias=True, mode="json") for o in orders]

    async def admin_snapshot(self) -> Dict[str, Any]:
        """Most recent orders across all sessions, newest first"""
        orders = await run_in_threadpool(self._admin_orders)
        return {"orders": orders}

    async def session_snapshot(self, session_id: str) -> Dict[str, Any]:
        """Every order of one session, newest first, uncapped"""
        orders = await run_in_threadpool(self._session_orders, session_id)
        return {"orders": orders}
