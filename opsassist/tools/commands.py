"""Allowlisted command tool."""

from pydantic import BaseModel, ConfigDict, Field

from opsassist.models.llm import ToolConfig
from opsassist.tools.base import ToolDefinition
from opsassist.tools.files import is_path_allowed
from opsassist.utils.shell import ShellSecurityError, execute_command, get_allowed_commands

FILE_COMMANDS = frozenset({"cat", "stat"})


class RunCommandInput(BaseModel):
    """Input schema for the run_command tool."""

    model_config = ConfigDict(extra="ignore")

    command: str = Field(..., min_length=1, max_length=64, description='The command to run (e.g., "docker", "df")')
    args: list[str] = Field(
        default_factory=list,
        max_length=32,
        description='Command arguments as an array (e.g., ["ps", "-a"] for docker ps -a)',
    )


async def run_command(params: RunCommandInput, config: ToolConfig) -> str:
    try:
        if params.command in FILE_COMMANDS:
            for arg in params.args:
                if not arg.startswith("-") and not is_path_allowed(arg, config.allowed_dirs):
                    raise ShellSecurityError(f"Path outside allowed directories: {arg}")

        result = await execute_command(params.command, params.args)
    except ShellSecurityError as e:
        return f"Error: {e}"

    output = result.stdout
    if params.command == "journalctl" or (params.command == "docker" and params.args[:1] == ["logs"]):
        output = "\n".join(output.splitlines()[-config.max_log_lines :])

    if result.exit_code != 0:
        return f"Command exited with code {result.exit_code}\n\nSTDOUT:\n{output}\n\nSTDERR:\n{result.stderr}"
    return output or "(no output)"


def create_run_command_tool() -> ToolDefinition:
    return ToolDefinition(
        name="run_command",
        description=(
            "Execute a read-only shell command for system diagnostics. "
            f"Available commands: {', '.join(get_allowed_commands())}.\n"
            "Commands have security restrictions:\n"
            "- docker: only ps, inspect, logs, network, images, version, info\n"
            "- systemctl: only status, show, list-units, list-unit-files, is-active, is-enabled, cat\n"
            "- journalctl: read-only (no flush/rotate/vacuum)\n"
            "- cat, stat: restricted to allowed directories"
        ),
        input_schema_class=RunCommandInput,
        handler=run_command,
    )
