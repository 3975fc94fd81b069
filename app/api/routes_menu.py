"""
Menu catalog API routes
"""

from typing import Optional

from fastapi import APIRouter, Depends

from app.api.deps import get_menu_service
from app.schemas.menu import MenuItemCreate, MenuItemUpdate
from app.services.menu_service import MenuService
from app.utils.responses import success_response
from app.utils.security import verify_admin_token

router = APIRouter()

@router.get("")
async def list_menu(available: bool = False, menu: MenuService = Depends(get_menu_service)):
    """List menu items by name; ``?available=true`` hides unavailable ones"""
    return success_response(
        message="Menu retrieved successfully",
        data=await menu.list_items(available_only=available)
    )

@router.post("")
async def create_menu_item(
    item_data: MenuItemCreate,
    menu: MenuService = Depends(get_menu_service),
    token: Optional[str] = Depends(verify_admin_token)
):
    item = await menu.create_item(item_data)
    return success_response(message="Menu item created", data=item, status_code=201)

@router.get("/{item_id}")
async def get_menu_item(item_id: str, menu: MenuService = Depends(get_menu_service)):
    return success_response(message="Menu item retrieved", data=await menu.get_item(item_id))

@router.put("/{item_id}")
async def update_menu_item(
    item_id: str,
    item_update: MenuItemUpdate,
    menu: MenuService = Depends(get_menu_service),
    token: Optional[str] = Depends(verify_admin_token)
):
    item = await menu.update_item(item_id, item_update)
    return success_response(message="Menu item updated", data=item)

@router.delete("/{item_id}")
async def delete_menu_item(
    item_id: str,
    menu: MenuService = Depends(get_menu_service),
    token: Optional[str] = Depends(verify_admin_token)
):
    await menu.delete_item(item_id)
    return success_response(message="Menu item deleted", data={"productId": item_id})
