"""In-memory storage for interactive migration sessions."""

import logging
import threading
from datetime import datetime, timedelta
from typing import Dict, List, Optional

from ..models.execution import SessionState
from ..session import MigrationSession

logger = logging.getLogger(__name__)

# Exited sessions stay readable this long before they are dropped
EXITED_SESSION_TTL_SECONDS = 3600.0


class SessionStorage:
    """
    Thread-safe registry of live sessions, keyed by session id.

    Sessions that reached EXIT are evicted ``exited_ttl_seconds`` after they
    ended, whenever a session is added or the registry is listed. DELETE
    removes a session immediately.
    """

    def __init__(self, exited_ttl_seconds: float = EXITED_SESSION_TTL_SECONDS):
        self.exited_ttl_seconds = exited_ttl_seconds
        self._sessions: Dict[str, MigrationSession] = {}
        self._lock = threading.Lock()

    def add(self, session: MigrationSession) -> MigrationSession:
        self.purge_exited()
        with self._lock:
            self._sessions[session.id] = session
        return session

    def get(self, session_id: str) -> Optional[MigrationSession]:
        with self._lock:
            return self._sessions.get(session_id)

    def list_all(self) -> List[MigrationSession]:
        self.purge_exited()
        with self._lock:
            return list(self._sessions.values())

    def purge_exited(self, now: Optional[datetime] = None) -> List[str]:
        """Drop sessions that ended more than ``exited_ttl_seconds`` ago."""
        cutoff = (now or datetime.utcnow()) - timedelta(seconds=self.exited_ttl_seconds)

        with self._lock:
            expired = [
                session_id for session_id, session in self._sessions.items()
                if session.state == SessionState.EXIT
                and session.ended_at is not None
                and session.ended_at <= cutoff
            ]
            for session_id in expired:
                del self._sessions[session_id]

        if expired:
            logger.info(f"Evicted {len(expired)} exited sessions")
        return expired

    def delete(self, session_id: str) -> bool:
        """Remove a session, cancelling any migration it has in flight."""
        with self._lock:
            session = self._sessions.pop(session_id, None)

        if session is None:
            return False

        if session.cancel("session deleted"):
            logger.warning(f"Cancelled in-flight migration of deleted session {session_id}")
        return True

    def clear(self):
        with self._lock:
            self._sessions.clear()


session_storage = SessionStorage()
