"""
Menu catalog with live change notifications
"""

import logging
import uuid
from typing import List

from sqlalchemy.orm import sessionmaker
from starlette.concurrency import run_in_threadpool

from app.api.ws import ConnectionManager
from app.core.errors import NotFoundError
from app.schemas.menu import MenuItemCreate, MenuItemResponse, MenuItemUpdate
from app.services.repositories import MenuRepo
from app.utils.clock import utcnow

logger = logging.getLogger(__name__)


class MenuService:
    """CRUD over menu items; every mutation is announced as ``menuUpdated``"""

    def __init__(self, session_factory: sessionmaker, hub: ConnectionManager):
        self.session_factory = session_factory
        self.hub = hub

    def _list_sync(self, available_only: bool) -> List[MenuItemResponse]:
        with self.session_factory() as db:
            return [MenuItemResponse.model_validate(item) for item in MenuRepo.list(db, available_only)]

    def _get_sync(self, item_id: str) -> MenuItemResponse:
        with self.session_factory() as db:
            item = MenuRepo.get(db, item_id)
            if item is None:
                raise NotFoundError("Product", item_id)
            return MenuItemResponse.model_validate(item)

    def _create_sync(self, data: MenuItemCreate) -> MenuItemResponse:
        with self.session_factory.begin() as db:
            item = MenuRepo.create(
                db,
                item_id=str(uuid.uuid4()),
                name=data.name,
                price=data.price,
                description=data.description.strip() if data.description else None,
                available=data.available,
            )
            return MenuItemResponse.model_validate(item)

    def _update_sync(self, item_id: str, data: MenuItemUpdate) -> MenuItemResponse:
        with self.session_factory.begin() as db:
            item = MenuRepo.get(db, item_id)
            if item is None:
                raise NotFoundError("Product", item_id)

            if data.name is not None:
                item.name = data.name.strip()
            if data.price is not None:
                item.price = data.price
            if "description" in data.model_fields_set:
                item.description = data.description.strip() if data.description else None
            if data.available is not None:
                item.available = data.available
            item.updated_at = utcnow()

            db.flush()
            return MenuItemResponse.model_validate(item)

    def _delete_sync(self, item_id: str) -> None:
        with self.session_factory.begin() as db:
            item = MenuRepo.get(db, item_id)
            if item is None:
                raise NotFoundError("Product", item_id)
            MenuRepo.delete(db, item)

    async def list_items(self, available_only: bool = False) -> List[MenuItemResponse]:
        return await run_in_threadpool(self._list_sync, available_only)

    async def get_item(self, item_id: str) -> MenuItemResponse:
        return await run_in_threadpool(self._get_sync, item_id)

    async def create_item(self, data: MenuItemCreate) -> MenuItemResponse:
        item = await run_in_threadpool(self._create_sync, data)
        await self.hub.broadcast_all(
            "menuUpdated",
            {"action": "create", "productId": item.id, "product": item.model_dump(by_alias=True)},
        )
        return item

    async def update_item(self, item_id: str, data: MenuItemUpdate) -> MenuItemResponse:
        item = await run_in_threadpool(self._update_sync, item_id, data)
        await self.hub.broadcast_all(
            "menuUpdated",
            {"action": "update", "productId": item.id, "product": item.model_dump(by_alias=True)},
        )
        return item

    async def delete_item(self, item_id: str) -> None:
        await run_in_threadpool(self._delete_sync, item_id)
        logger.info(f"Menu item {item_id} deleted")
        await self.hub.broadcast_all("menuUpdated", {"action": "delete", "productId": item_id})
