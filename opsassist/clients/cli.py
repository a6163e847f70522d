"""Model CLI client: one subprocess per model call."""

import asyncio
from dataclasses import dataclass

from opsassist.utils.logging import get_logger
from opsassist.utils.scrub import scrub_sensitive_data

logger = get_logger(__name__)


class CliError(Exception):
    """The model CLI could not produce a response.

    The message has already been scrubbed of secrets.
    """

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        self.exit_code = exit_code


@dataclass
class CliConfig:
    """Configuration for the model CLI client."""

    cli_path: str = "claude"
    model: str = "sonnet"
    timeout_seconds: float = 120.0


class CliClient:
    """Runs the model CLI in single-shot print mode.

    The CLI's built-in tools are disabled with an empty allowlist, so the only
    tool access the model has is the text protocol described in its system prompt.
    """

    def __init__(self, config: CliConfig | None = None):
        """Initialize CLI client.

        Args:
            config: Client configuration
        """
        self.config = config or CliConfig()

    def build_args(self, prompt: str, system_prompt: str) -> list[str]:
        """Command line for a single model call."""
        return [
            "-p",
            prompt,
            "--model",
            self.config.model,
            "--print",
            "--system-prompt",
            system_prompt,
            "--tools",
            "",
        ]

    async def complete(self, prompt: str, system_prompt: str) -> str:
        """Run the CLI once and return its trimmed stdout.

        Raises:
            CliError: On spawn failure, timeout or non-zero exit
        """
        args = self.build_args(prompt, system_prompt)
        logger.debug(f"Spawning model CLI {self.config.cli_path} with model {self.config.model}")

        try:
            proc = await asyncio.create_subprocess_exec(
                self.config.cli_path,
                *args,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except (OSError, ValueError) as e:
            # ValueError: arguments the OS cannot pass, such as embedded NUL bytes
            scrubbed = scrub_sensitive_data(str(e))
            logger.error(f"Model CLI spawn error: {scrubbed}")
            raise CliError(f"Failed to spawn model CLI: {scrubbed}") from None

        # No interactive input; the CLI waits for EOF before answering
        if proc.stdin is not None:
            proc.stdin.close()

        try:
            stdout_b, stderr_b = await asyncio.wait_for(proc.communicate(), timeout=self.config.timeout_seconds)
        except TimeoutError:
            proc.kill()
            await proc.wait()
            logger.error(f"Model CLI timed out after {self.config.timeout_seconds}s")
            raise CliError(f"Model CLI timed out after {self.config.timeout_seconds:g} seconds") from None

        stdout = (stdout_b or b"").decode("utf-8", errors="replace")
        stderr = (stderr_b or b"").decode("utf-8", errors="replace")

        if proc.returncode != 0:
            scrubbed = scrub_sensitive_data(stderr.strip())
            logger.error(f"Model CLI failed with code {proc.returncode}: {scrubbed}")
            raise CliError(f"Model CLI exited with code {proc.returncode}: {scrubbed}", exit_code=proc.returncode)

        return stdout.strip()


_cli_client: CliClient | None = None


def get_cli_client(config: CliConfig | None = None) -> CliClient:
    """Get or create CLI client instance."""
    global _cli_client
    if _cli_client is None:
        _cli_client = CliClient(config)
    return _cli_client
