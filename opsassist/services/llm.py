"""Agent loop that simulates tool calling over a text-only model CLI."""

from opsassist.clients.cli import CliClient, CliConfig, get_cli_client
from opsassist.config import get_settings
from opsassist.models.llm import AskOptions, AskResult, LLMUsage, UserConfig
from opsassist.models.messages import ConversationMessage, ToolCallLog, ToolExecutionResult
from opsassist.services.prompts import build_system_prompt
from opsassist.services.protocol import build_tool_system_prompt, parse_response
from opsassist.services.transcript import (
    MAX_CONTEXT_SIZE,
    ContextGovernor,
    build_conversation_context,
    escape_role_markers,
    format_tool_results,
)
from opsassist.tools.registry import ToolsRegistry, get_tools_registry
from opsassist.utils.logging import get_logger

logger = get_logger(__name__)

OUTPUT_PREVIEW_LENGTH = 200

EMPTY_RESPONSE_MESSAGE = "I apologize, but I was unable to generate a response."
MAX_ITERATIONS_MESSAGE = "I was unable to complete the analysis - maximum iterations reached."


class LLMService:
    """Runs the bounded call → parse → execute → re-call loop for one question at a time.

    Each ask builds its own transcript, so concurrent asks share nothing but
    the read-only tool registry.
    """

    def __init__(
        self,
        client: CliClient | None = None,
        tools_registry: ToolsRegistry | None = None,
        max_iterations: int = 50,
        max_tool_calls: int = 40,
        max_context_size: int = MAX_CONTEXT_SIZE,
    ):
        """Initialize LLM service.

        Args:
            client: Model CLI client (defaults to global instance)
            tools_registry: Tool catalog and executor (defaults to global instance)
            max_iterations: Model calls allowed per ask
            max_tool_calls: Soft ceiling on tool calls per ask, checked after each batch
            max_context_size: Transcript size ceiling in characters
        """
        self.client = client or get_cli_client()
        self.tools_registry = tools_registry or get_tools_registry()
        self.max_iterations = max_iterations
        self.max_tool_calls = max_tool_calls
        self.context_governor = ContextGovernor(max_context_size)

    async def ask(
        self,
        question: str,
        history: list[ConversationMessage],
        user_config: UserConfig,
        options: AskOptions | None = None,
    ) -> AskResult:
        """Answer a question, calling tools as the model requests them.

        Args:
            question: The new user question
            history: Prior turns, oldest first
            user_config: Per-user prompt additions, disabled tools and tool limits
            options: Backend extras; attached images are ignored by this backend

        Returns:
            Final answer, the audit log of tool calls, and zeroed usage

        Raises:
            CliError: If the model CLI fails; there is no automatic retry
        """
        if options and options.images:
            logger.warning(f"CLI backend does not support images, ignoring {len(options.images)} image(s)")

        tools = self.tools_registry.list_specs(user_config.disabled_tools)
        base_prompt = build_system_prompt(
            user_addition=user_config.system_prompt_addition,
            context_dir_content=user_config.context_dir_content,
        )
        system_prompt = build_tool_system_prompt(base_prompt, tools)

        context = build_conversation_context(history, question)

        logger.info(
            f"Starting agent loop with {len(history)} history messages, {len(tools)} tools, "
            f"max_iterations: {self.max_iterations}, max_tool_calls: {self.max_tool_calls}"
        )

        tool_calls: list[ToolCallLog] = []
        tool_call_count = 0
        iteration = 0

        while iteration < self.max_iterations:
            iteration += 1

            context = self.context_governor.enforce(context)
            logger.debug(f"Agent loop iteration {iteration}/{self.max_iterations}, prompt length {len(context)}")

            response = await self.client.complete(context, system_prompt)
            logger.debug(f"Model response length {len(response)}")

            parsed = parse_response(response)

            if not parsed.tool_calls:
                logger.info(f"Agent loop completed in {iteration} iterations with {len(tool_calls)} tool calls")
                return AskResult(
                    response=parsed.text or EMPTY_RESPONSE_MESSAGE,
                    tool_calls=tool_calls,
                    usage=LLMUsage(),
                )

            logger.info(f"Model requested {len(parsed.tool_calls)} tool calls")
            tool_call_count += len(parsed.tool_calls)
            limit_reached = tool_call_count > self.max_tool_calls

            # Sequential, in source order: later calls may depend on earlier results
            results: list[ToolExecutionResult] = []
            for request in parsed.tool_calls:
                result = await self.tools_registry.execute(
                    request.name,
                    request.input,
                    user_config.tool_config,
                    disabled=user_config.disabled_tools,
                )

                tool_calls.append(
                    ToolCallLog(
                        name=request.name,
                        input=request.input,
                        output_preview=result.content[:OUTPUT_PREVIEW_LENGTH],
                    )
                )
                results.append(
                    ToolExecutionResult(
                        id=request.id,
                        name=request.name,
                        result=result.content,
                        is_error=result.is_error,
                    )
                )
                logger.debug(
                    f"Tool executed: {request.name}, error: {result.is_error}, output length: {len(result.content)}"
                )

            if limit_reached:
                logger.warning(f"Tool call limit reached ({tool_call_count} > {self.max_tool_calls})")
                return AskResult(
                    response=(
                        f"I reached the maximum number of tool calls ({self.max_tool_calls}) while investigating. "
                        f"Here's what I found so far:\n\n{parsed.text}"
                    ),
                    tool_calls=tool_calls,
                    usage=LLMUsage(),
                )

            context += f"\nAssistant: {escape_role_markers(response)}\n"
            context += format_tool_results(results)

        logger.error(f"Max iterations reached in agent loop ({self.max_iterations})")
        return AskResult(response=MAX_ITERATIONS_MESSAGE, tool_calls=tool_calls, usage=LLMUsage())


_llm_service: LLMService | None = None


def get_llm_service() -> LLMService:
    """Get or create LLM service instance."""
    global _llm_service
    if _llm_service is None:
        settings = get_settings()
        client = get_cli_client(
            CliConfig(
                cli_path=settings.cli_path,
                model=settings.cli_model,
                timeout_seconds=settings.cli_timeout_seconds,
            )
        )
        _llm_service = LLMService(
            client=client,
            max_iterations=settings.max_iterations,
            max_tool_calls=settings.max_tool_calls,
        )
    return _llm_service
