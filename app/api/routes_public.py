"""
Public API routes - no authentication required
"""

from fastapi import APIRouter

from app.utils.clock import utcnow
from app.utils.responses import success_response

router = APIRouter()

@router.get("/")
async def root():
    """Service info with the main endpoint groups"""
    return success_response(
        message="Order System Backend API",
        data={
            "status": "running",
            "endpoints": {
                "health": "/health",
                "sessions": "/api/sessions",
                "orders": "/api/orders",
                "menu": "/api/menu",
                "websocket": "/ws/orders",
            },
            "timestamp": utcnow(),
        }
    )

@router.get("/health")
async def health_check():
    """Health check endpoint"""
    return {"status": "ok", "timestamp": utcnow().isoformat()}
