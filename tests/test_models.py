"""Tests for data models."""

import json

import pytest
from pydantic import ValidationError

from opsassist.models.conversation import AskRequest, AskResponse
from opsassist.models.llm import AskResult, LLMUsage, ToolConfig, UserConfig
from opsassist.models.messages import ConversationMessage, ToolCallRequest, ToolExecutionResult
from opsassist.models.session import Session


class TestConversationModels:
    """Tests for request/response models."""

    def test_ask_request_from_json(self):
        """Test ask request parsing from JSON."""
        data = json.loads('{"message": "Is nginx up?", "user_id": "U123", "session_id": "abc"}')
        request = AskRequest.model_validate(data)
        assert request.message == "Is nginx up?"
        assert request.user_id == "U123"
        assert request.session_id == "abc"
        assert request.images == []

    def test_ask_request_defaults(self):
        """Test ask request defaults for optional fields."""
        request = AskRequest(message="Hello")
        assert request.user_id == "anonymous"
        assert request.session_id is None

    def test_ask_response_defaults(self):
        """Test ask response has empty tool calls and zero usage by default."""
        response = AskResponse(response="Hi", session_id="s1")
        assert response.tool_calls == []
        assert response.usage.input_tokens == 0
        assert response.usage.output_tokens == 0


class TestMessageModels:
    """Tests for message and tool call models."""

    def test_conversation_message_valid(self):
        """Test valid conversation message."""
        message = ConversationMessage(role="user", content="Hello")
        assert message.role == "user"
        assert message.content == "Hello"
        assert message.timestamp is not None

    def test_conversation_message_is_immutable(self):
        """Test that a message cannot be changed after creation."""
        message = ConversationMessage(role="assistant", content="Hi")
        with pytest.raises(ValidationError):
            message.content = "changed"

    def test_conversation_message_invalid_role(self):
        """Test that only user and assistant roles are accepted."""
        with pytest.raises(ValidationError) as exc_info:
            ConversationMessage(role="system", content="Hello")  # type: ignore
        assert "Input should be 'user' or 'assistant'" in str(exc_info.value)

    def test_tool_call_request_default_input(self):
        """Test tool call request defaults to empty input."""
        request = ToolCallRequest(id="cli-1-0", name="get_system_resources")
        assert request.input == {}

    def test_tool_execution_result_error_flag(self):
        """Test tool execution result error flag."""
        result = ToolExecutionResult(id="cli-1-0", name="read_file", result="Error: nope", is_error=True)
        assert result.is_error is True


class TestLLMModels:
    """Tests for agent loop result models."""

    def test_ask_result_defaults(self):
        """Test ask result defaults to no tool calls and zero usage."""
        result = AskResult(response="Done")
        assert result.tool_calls == []
        assert result.usage == LLMUsage()
        assert result.usage.total_tokens == 0

    def test_user_config_defaults(self):
        """Test user config defaults."""
        config = UserConfig()
        assert config.disabled_tools == []
        assert config.tool_config == ToolConfig()
        assert config.tool_config.max_log_lines == 50


class TestSessionModel:
    """Tests for session model (dataclass)."""

    def test_session_creation(self):
        """Test session creation with defaults."""
        session = Session(session_id="test_session")
        assert session.session_id == "test_session"
        assert session.user_id is None
        assert session.history == []

    def test_session_add_message(self):
        """Test that turns are appended in order."""
        session = Session(session_id="test_session")
        session.add_message("user", "Disk?")
        session.add_message("assistant", "42%")

        assert [(m.role, m.content) for m in session.history] == [("user", "Disk?"), ("assistant", "42%")]
        assert session.as_dict()["messages"] == 2

    def test_history_snapshot_is_a_copy(self):
        """Test that a snapshot does not see later turns."""
        session = Session(session_id="test_session")
        session.add_message("user", "one")
        snapshot = session.history_snapshot()
        session.add_message("assistant", "two")

        assert len(snapshot) == 1
