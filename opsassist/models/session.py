"""Session state models."""

from dataclasses import dataclass, field
from datetime import UTC, datetime
from typing import Any, Literal

from opsassist.models.messages import ConversationMessage
from opsassist.utils.logging import get_logger

logger = get_logger(__name__)


@dataclass
class Session:
    """Conversation session for one user."""

    session_id: str
    user_id: str | None = None
    history: list[ConversationMessage] = field(default_factory=list)
    created_at: datetime = field(default_factory=lambda: datetime.now(UTC))
    last_activity: datetime = field(default_factory=lambda: datetime.now(UTC))

    def as_dict(self) -> dict[str, Any]:
        """Return the session as a dictionary."""
        return {
            "session_id": self.session_id,
            "user_id": self.user_id,
            "messages": len(self.history),
            "created_at": self.created_at.isoformat(),
            "last_activity": self.last_activity.isoformat(),
        }

    def update_activity(self) -> None:
        """Update the last activity timestamp."""
        self.last_activity = datetime.now(UTC)

    def add_message(self, role: Literal["user", "assistant"], content: str) -> None:
        """Append a turn to the conversation history."""
        self.history.append(ConversationMessage(role=role, content=content))
        self.update_activity()
        logger.debug(f"Session {self.session_id} recorded {role} turn, {len(self.history)} messages")

    def history_snapshot(self) -> list[ConversationMessage]:
        """Copy of the history, so a running ask never sees later turns."""
        return list(self.history)
