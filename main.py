"""
Table Ordering System - FastAPI Backend
Main application entry point
"""

import logging
from contextlib import asynccontextmanager
from typing import Optional

from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from starlette.exceptions import HTTPException as StarletteHTTPException
import uvicorn

from app.core.config import Settings, settings as default_settings
from app.core.db import Base, create_db_engine, create_session_factory
from app.core.errors import AppError, InternalError
from app.api import routes_menu, routes_orders, routes_public, routes_sessions, ws
from app.api.socket_events import SocketEventHandler
from app.services.customer_event_service import CustomerEventService
from app.services.event_log import EventLog
from app.services.menu_service import MenuService
from app.services.order_service import OrderService
from app.services.order_state_machine import TransitionPolicy
from app.services.session_service import SessionService
from app.services.snapshot_service import SnapshotService
from app.utils.responses import app_error_response, error_response

# Configure logging
logging.basicConfig(level=getattr(logging, default_settings.LOG_LEVEL.upper(), logging.INFO))
logger = logging.getLogger(__name__)


def create_app(settings: Optional[Settings] = None) -> FastAPI:
    """Build the application and wire the shared services into it"""
    settings = settings or default_settings

    engine = create_db_engine(settings.DATABASE_URL)
    session_factory = create_session_factory(engine)

    @asynccontextmanager
    async def lifespan(app: FastAPI):
        """Application lifespan management"""
        # Create database tables
        Base.metadata.create_all(bind=engine)
        logger.info("Database tables created")
        yield
        engine.dispose()
        logger.info("Application shutdown")

    # Create FastAPI application
    app = FastAPI(
        title="Table Ordering System",
        description="Live order-taking between table sessions and the admin dashboard",
        version="1.0.0",
        lifespan=lifespan
    )

    # Composition root: one hub and one order service for both entry points
    hub = ws.ConnectionManager()
    event_log = EventLog(history_limit=settings.EVENT_HISTORY_LIMIT)
    order_service = OrderService(
        session_factory,
        hub,
        event_log,
        transition_policy=TransitionPolicy(settings.STATUS_TRANSITION_POLICY),
        recent_limit=settings.ADMIN_SNAPSHOT_LIMIT,
    )
    session_service = SessionService(
        session_factory,
        event_log,
        base_url=settings.BASE_URL,
        cascade_events=settings.CASCADE_EVENTS_ON_SESSION_DELETE,
    )
    snapshot_service = SnapshotService(session_factory, admin_limit=settings.ADMIN_SNAPSHOT_LIMIT)
    customer_event_service = CustomerEventService(
        session_factory,
        hub,
        event_log,
        persist_interactions=settings.PERSIST_INTERACTION_EVENTS,
    )

    app.state.settings = settings
    app.state.engine = engine
    app.state.hub = hub
    app.state.order_service = order_service
    app.state.session_service = session_service
    app.state.menu_service = MenuService(session_factory, hub)
    app.state.socket_handler = SocketEventHandler(
        hub,
        order_service,
        session_service,
        snapshot_service,
        customer_event_service,
        admin_token=settings.ADMIN_TOKEN,
        require_admin_auth=settings.REQUIRE_ADMIN_AUTH,
    )

    # Add CORS middleware
    app.add_middleware(
        CORSMiddleware,
        allow_origins=settings.ALLOW_ORIGINS,
        allow_credentials=True,
        allow_methods=["*"],
        allow_headers=["*"],
    )

    @app.exception_handler(AppError)
    async def handle_app_error(request: Request, exc: AppError):
        return app_error_response(exc)

    @app.exception_handler(RequestValidationError)
    async def handle_request_validation(request: Request, exc: RequestValidationError):
        return error_response(
            message="Validation failed",
            error_code="VALIDATION_ERROR",
            details=exc.errors(),
            status_code=422
        )

    @app.exception_handler(StarletteHTTPException)
    async def handle_http_exception(request: Request, exc: StarletteHTTPException):
        return error_response(message=str(exc.detail), status_code=exc.status_code)

    @app.exception_handler(Exception)
    async def handle_unexpected(request: Request, exc: Exception):
        logger.exception(f"Unhandled error on {request.method} {request.url.path}: {exc}")
        return app_error_response(InternalError())

    # Include routers
    app.include_router(routes_public.router, tags=["public"])
    app.include_router(routes_sessions.router, prefix="/api/sessions", tags=["sessions"])
    app.include_router(routes_orders.router, prefix="/api/orders", tags=["orders"])
    app.include_router(routes_menu.router, prefix="/api/menu", tags=["menu"])
    app.include_router(ws.router, prefix="/ws", tags=["websocket"])

    return app


app = create_app()

# Note: Run this ASGI app directly with Uvicorn. The broadcast rooms live in
# process memory, so run a single worker.

if __name__ == "__main__":
    uvicorn.run(
        "main:app",
        host="127.0.0.1",
        port=5000,
        reload=True
    )
