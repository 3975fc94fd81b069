"""
Session API routes
"""

from typing import Optional

from fastapi import APIRouter, Depends
from fastapi.responses import Response

from app.api.deps import get_session_service
from app.schemas.session import SessionCreate, SessionUpdate
from app.services.session_service import SessionService
from app.utils.responses import success_response
from app.utils.security import verify_admin_token

router = APIRouter()

@router.post("/create")
async def create_session(
    session_data: SessionCreate,
    sessions: SessionService = Depends(get_session_service),
    token: Optional[str] = Depends(verify_admin_token)
):
    """Open a new table session"""
    session = await sessions.create_session(session_data)
    return success_response(message="Session created successfully", data=session, status_code=201)

@router.get("/all")
async def list_sessions(sessions: SessionService = Depends(get_session_service)):
    return success_response(
        message="Sessions retrieved successfully",
        data=await sessions.list_sessions()
    )

@router.get("/{session_id}")
async def get_session(session_id: str, sessions: SessionService = Depends(get_session_service)):
    return success_response(
        message="Session retrieved successfully",
        data=await sessions.get_session(session_id)
    )

@router.get("/{session_id}/qr.png")
async def get_session_qr(session_id: str, sessions: SessionService = Depends(get_session_service)):
    """QR code image linking to the session's customer page"""
    qr_bytes = await sessions.qr_code(session_id)

    return Response(
        content=qr_bytes,
        media_type="image/png",
        headers={"Content-Disposition": f"inline; filename=qr_{session_id}.png"}
    )

@router.put("/{session_id}")
async def update_session(
    session_id: str,
    session_update: SessionUpdate,
    sessions: SessionService = Depends(get_session_service),
    token: Optional[str] = Depends(verify_admin_token)
):
    """Update name, table number or active flag"""
    session = await sessions.update_session(session_id, session_update)
    return success_response(message="Session updated successfully", data=session)

@router.delete("/{session_id}")
async def delete_session(
    session_id: str,
    sessions: SessionService = Depends(get_session_service),
    token: Optional[str] = Depends(verify_admin_token)
):
    """Delete a session together with its orders"""
    await sessions.delete_session(session_id)
    return success_response(
        message="Session deleted",
        data={"deletedSessionId": session_id}
    )
