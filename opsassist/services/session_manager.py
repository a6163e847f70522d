"""Conversation sessions kept in process memory."""

from datetime import UTC, datetime, timedelta

from cuid2 import cuid_wrapper

from opsassist.models.session import Session
from opsassist.utils.logging import get_logger

logger = get_logger(__name__)

cuid = cuid_wrapper()


class InMemorySessionManager:
    """Owns every live conversation; a session idle past the TTL is forgotten.

    Nothing is written to disk, so a restart starts every user over.
    """

    def __init__(self, session_timeout_minutes: int = 24 * 60):
        """Initialize session manager.

        Args:
            session_timeout_minutes: Idle minutes after which a conversation is dropped
        """
        self.sessions: dict[str, Session] = {}
        self.ttl = timedelta(minutes=session_timeout_minutes)

    def create_session(self, user_id: str | None = None) -> Session:
        """Start a new conversation owned by user_id."""
        self.purge_expired()
        session = Session(session_id=cuid(), user_id=user_id)
        self.sessions[session.session_id] = session
        logger.debug(f"Created session {session.session_id} for user {user_id}")
        return session

    def get_session(self, session_id: str) -> Session | None:
        """Look up a live conversation and mark it active.

        Returns:
            None when the id is unknown or the session has expired
        """
        session = self.sessions.get(session_id)
        if session is None:
            return None
        if self._is_expired(session, datetime.now(UTC)):
            del self.sessions[session_id]
            logger.info(f"Session {session_id} expired")
            return None

        session.update_activity()
        return session

    def list_sessions(self, user_id: str | None = None, limit: int = 20) -> list[Session]:
        """Most recently active sessions first, optionally only those owned by user_id."""
        self.purge_expired()

        sessions = [s for s in self.sessions.values() if user_id is None or s.user_id == user_id]
        sessions.sort(key=lambda s: s.last_activity, reverse=True)
        return sessions[:limit]

    def delete_session(self, session_id: str) -> bool:
        """Forget a conversation. Returns False if there was nothing to forget."""
        return self.sessions.pop(session_id, None) is not None

    def purge_expired(self) -> int:
        """Drop every idle session and return how many were dropped."""
        now = datetime.now(UTC)
        expired = [sid for sid, session in self.sessions.items() if self._is_expired(session, now)]
        for sid in expired:
            del self.sessions[sid]

        if expired:
            logger.info(f"Purged {len(expired)} expired sessions")
        return len(expired)

    def get_session_count(self) -> int:
        """Number of live sessions."""
        self.purge_expired()
        return len(self.sessions)

    def _is_expired(self, session: Session, now: datetime) -> bool:
        return now - session.last_activity > self.ttl
