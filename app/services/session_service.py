"""
Table session administration
"""

import io
import logging
import uuid
from typing import List

import qrcode
from qrcode.constants import ERROR_CORRECT_M
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import sessionmaker
from starlette.concurrency import run_in_threadpool

from app.core.errors import InternalError, NotFoundError
from app.models import TableSession
from app.schemas.session import SessionCreate, SessionResponse, SessionUpdate
from app.services.event_log import EventLog
from app.services.repositories import SessionRepo
from app.utils.clock import utcnow

logger = logging.getLogger(__name__)


class SessionService:
    """Create, edit and remove table sessions.

    Deleting a session removes its orders and their items. Its events stay in
    the log unless ``cascade_events`` is enabled.
    """

    def __init__(self, session_factory: sessionmaker, event_log: EventLog, base_url: str, cascade_events: bool = False):
        self.session_factory = session_factory
        self.event_log = event_log
        self.base_url = base_url.rstrip("/")
        self.cascade_events = cascade_events

    def customer_url(self, session_id: str) -> str:
        """Link encoded in the table's QR code"""
        return f"{self.base_url}/customer.html?sessionId={session_id}"

    @staticmethod
    def render_qr(url: str, box_size: int = 10) -> bytes:
        """PNG QR code for ``url`` at medium error correction"""
        qr = qrcode.QRCode(error_correction=ERROR_CORRECT_M, box_size=box_size, border=4)
        qr.add_data(url)
        qr.make(fit=True)

        buffer = io.BytesIO()
        qr.make_image(fill_color="black", back_color="white").save(buffer, format="PNG")
        return buffer.getvalue()

    def _to_response(self, session: TableSession) -> SessionResponse:
        return SessionResponse(
            session_id=session.session_id,
            name=session.name,
            table_number=session.table_number,
            is_active=session.is_active,
            customer_url=self.customer_url(session.session_id),
            created_at=session.created_at,
            updated_at=session.updated_at,
        )

    async def _run(self, func, *args):
        try:
            return await run_in_threadpool(func, *args)
        except SQLAlchemyError as e:
            logger.exception(f"Store failure in {func.__name__}: {e}")
            raise InternalError() from e

    def _create_sync(self, data: SessionCreate) -> SessionResponse:
        session_id = str(uuid.uuid4())
        name = (data.name or "").strip() or f"Session {session_id[:8]}"
        with self.session_factory.begin() as db:
            session = SessionRepo.create(db, session_id, name, data.table_number or None)
            return self._to_response(session)

    def _list_sync(self) -> List[SessionResponse]:
        with self.session_factory() as db:
            return [self._to_response(s) for s in SessionRepo.list_all(db)]

    def _get_sync(self, session_id: str) -> SessionResponse:
        with self.session_factory() as db:
            session = SessionRepo.get(db, session_id)
            if session is None:
                raise NotFoundError("Session", session_id)
            return self._to_response(session)

    def _update_sync(self, session_id: str, data: SessionUpdate) -> SessionResponse:
        provided = data.model_fields_set
        with self.session_factory.begin() as db:
            session = SessionRepo.get(db, session_id)
            if session is None:
                raise NotFoundError("Session", session_id)

            if "name" in provided and data.name is not None:
                session.name = data.name
            if "table_number" in provided:
                session.table_number = data.table_number
            if "is_active" in provided and data.is_active is not None:
                session.is_active = data.is_active
            session.updated_at = utcnow()

            db.flush()
            return self._to_response(session)

    def _delete_sync(self, session_id: str) -> int:
        with self.session_factory.begin() as db:
            session = SessionRepo.get(db, session_id)
            if session is None:
                raise NotFoundError("Session", session_id)

            SessionRepo.delete(db, session)
            purged = 0
            if self.cascade_events:
                purged = self.event_log.purge_session(db, session_id)
            return purged

    async def create_session(self, data: SessionCreate) -> SessionResponse:
        session = await self._run(self._create_sync, data)
        logger.info(f"Session {session.session_id} created ({session.name})")
        return session

    async def list_sessions(self) -> List[SessionResponse]:
        return await self._run(self._list_sync)

    async def get_session(self, session_id: str) -> SessionResponse:
        return await self._run(self._get_sync, session_id)

    async def qr_code(self, session_id: str) -> bytes:
        """QR code image linking to the session's customer page"""
        session = await self.get_session(session_id)
        return await run_in_threadpool(self.render_qr, session.customer_url)

    async def session_exists(self, session_id: str) -> bool:
        def _exists() -> bool:
            with self.session_factory() as db:
                return SessionRepo.exists(db, session_id)
        return await self._run(_exists)

    async def update_session(self, session_id: str, data: SessionUpdate) -> SessionResponse:
        return await self._run(self._update_sync, session_id, data)

    async def delete_session(self, session_id: str) -> None:
        purged = await self._run(self._delete_sync, session_id)
        logger.info(f"Session {session_id} deleted (events purged: {purged})")
