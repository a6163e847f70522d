"""Transcript rendering and size control for the agent loop."""

import re

from opsassist.models.messages import ConversationMessage, ToolExecutionResult
from opsassist.utils.logging import get_logger

logger = get_logger(__name__)

# Roughly 25K tokens
MAX_CONTEXT_SIZE = 100_000

TRUNCATION_MARKER = "... [earlier context truncated] ...\n"

_USER_MARKER = re.compile(r"^User:", re.MULTILINE)
_ASSISTANT_MARKER = re.compile(r"^Assistant:", re.MULTILINE)


def escape_role_markers(text: str) -> str:
    """Neutralize lines that start with a transcript role marker.

    Only an exact ``User:`` or ``Assistant:`` prefix at the start of a line is
    rewritten, so quoted text cannot pose as a real turn.
    """
    text = _USER_MARKER.sub("[User]:", text)
    return _ASSISTANT_MARKER.sub("[Assistant]:", text)


def format_turn(role: str, content: str) -> str:
    """Render one turn with its role marker."""
    label = "User" if role == "user" else "Assistant"
    return f"{label}: {escape_role_markers(content)}"


def build_conversation_context(history: list[ConversationMessage], question: str) -> str:
    """Render prior turns and the new question as a single transcript."""
    turns = [format_turn(msg.role, msg.content) for msg in history]
    turns.append(format_turn("user", question))
    return "\n\n".join(turns) + "\n"


def format_tool_results(results: list[ToolExecutionResult]) -> str:
    """Render a batch of tool results as a Tool Results section."""
    if not results:
        return ""

    section = "\n## Tool Results\n\n"
    for result in results:
        section += f"### {result.name} ({result.id})\n"
        if result.is_error:
            section += "**Error:**\n"
        section += f"```\n{escape_role_markers(result.result)}\n```\n\n"
    section += "Please continue your analysis based on these results.\n"
    return section


class ContextGovernor:
    """Keeps the transcript under a hard size ceiling by dropping the oldest text."""

    def __init__(self, max_size: int = MAX_CONTEXT_SIZE, marker: str = TRUNCATION_MARKER):
        if max_size <= len(marker):
            raise ValueError(f"max_size must be larger than the truncation marker ({len(marker)} characters)")
        self.max_size = max_size
        self.marker = marker

    def enforce(self, context: str) -> str:
        """Return the context, front-truncated if it is over the ceiling."""
        if len(context) <= self.max_size:
            return context

        keep = self.max_size - len(self.marker)
        logger.warning(f"Context size {len(context)} exceeded limit {self.max_size}, truncating")
        return self.marker + context[-keep:]
