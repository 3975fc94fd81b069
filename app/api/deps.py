"""
Request-scoped access to the services built by the application factory
"""

from fastapi import Request

from app.services.menu_service import MenuService
from app.services.order_service import OrderService
from app.services.session_service import SessionService


def get_order_service(request: Request) -> OrderService:
    return request.app.state.order_service


def get_session_service(request: Request) -> SessionService:
    return request.app.state.session_service


def get_menu_service(request: Request) -> MenuService:
    return request.app.state.menu_service
