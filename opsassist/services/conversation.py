"""Conversation service: ties sessions, user configuration and the agent loop together."""

from opsassist.models.llm import AskOptions, AskResult, UserConfig
from opsassist.models.session import Session
from opsassist.services.llm import LLMService
from opsassist.utils.logging import get_logger

logger = get_logger(__name__)


class ConversationService:
    """Answers questions within a session and records the turns."""

    def __init__(self, llm_service: LLMService, max_message_chars: int = 4000):
        """Initialize conversation service.

        Args:
            llm_service: Agent loop used to answer questions
            max_message_chars: Longest question accepted
        """
        self.llm_service = llm_service
        self.max_message_chars = max_message_chars

    async def process_message(
        self,
        message: str,
        session: Session,
        user_config: UserConfig,
        options: AskOptions | None = None,
    ) -> AskResult:
        """Answer a user message and append both turns to the session.

        Raises:
            ValueError: If the message is empty or too long
            CliError: If the model backend fails; the session is left unchanged
        """
        self.validate_message(message)

        logger.info(f"Processing message for session {session.session_id} ({len(session.history)} prior messages)")

        result = await self.llm_service.ask(message, session.history_snapshot(), user_config, options)

        session.add_message("user", message)
        session.add_message("assistant", result.response)

        logger.info(f"Answered session {session.session_id} using {len(result.tool_calls)} tool calls")
        return result

    def validate_message(self, message: str) -> None:
        """Reject empty or oversized questions.

        Raises:
            ValueError: If the message is empty or exceeds the character limit
        """
        if not message or message.isspace():
            raise ValueError("Please provide a question.")
        if len(message) > self.max_message_chars:
            raise ValueError(f"Your message is too long. Please keep messages under {self.max_message_chars} characters.")
