"""
Append-only audit trail of session activity
"""

from typing import Any, Dict, List, Optional, Union

from sqlalchemy.orm import Session

from app.models import Event, EventType
from app.services.repositories import EventRepo


class EventLog:
    """Writes and reads the audit trail.

    Appends join the caller's transaction so an event is only recorded when the
    change it describes is. Nothing here is consulted to rebuild snapshots.
    """

    def __init__(self, history_limit: int = 100):
        self.history_limit = history_limit

    def append(
        self,
        db: Session,
        session_id: str,
        event_type: Union[EventType, str],
        data: Optional[Dict[str, Any]] = None,
        order_id: Optional[str] = None,
    ) -> Event:
        event_type = EventType(event_type)
        return EventRepo.insert(db, session_id, event_type.value, data or {}, order_id=order_id)

    def recent(self, db: Session, session_id: str) -> List[Event]:
        """Newest-first events for a session, capped at the history limit"""
        return EventRepo.list_for_session(db, session_id, self.history_limit)

    def purge_session(self, db: Session, session_id: str) -> int:
        return EventRepo.delete_for_session(db, session_id)
