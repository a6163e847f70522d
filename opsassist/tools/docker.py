"""Docker container and network inspection tools."""

import json
from dataclasses import asdict, dataclass, field
from typing import Any

from pydantic import BaseModel, ConfigDict, Field

from opsassist.models.llm import ToolConfig
from opsassist.tools.base import EmptyInput, ToolDefinition
from opsassist.utils.logging import get_logger
from opsassist.utils.shell import execute_command

logger = get_logger(__name__)

# Docker's own rule for container names, which also keeps flags out of argv
CONTAINER_NAME_PATTERN = r"^[a-zA-Z0-9][a-zA-Z0-9_.-]*$"

DEFAULT_LOG_LINES = 50


@dataclass
class ContainerInfo:
    """One row of `docker ps`."""

    name: str
    image: str
    state: str
    status: str
    ports: str


@dataclass
class ContainerDetails:
    """Selected fields of `docker inspect`. Environment variables are left out on purpose."""

    name: str
    image: str
    state: str
    running: bool
    started_at: str
    restart_count: int
    networks: list[str] = field(default_factory=list)
    ports: dict[str, str] = field(default_factory=dict)
    mounts: list[dict[str, str]] = field(default_factory=list)


@dataclass
class NetworkInfo:
    """One row of `docker network ls`."""

    name: str
    driver: str
    scope: str


def _json_lines(output: str) -> list[dict[str, Any]]:
    rows = []
    for line in output.strip().splitlines():
        if not line.strip():
            continue
        try:
            row = json.loads(line)
        except json.JSONDecodeError:
            logger.warning(f"Skipping unparseable docker output line: {line[:100]}")
            continue
        if isinstance(row, dict):
            rows.append(row)
    return rows


def parse_container_list(output: str) -> list[ContainerInfo]:
    """Parse `docker ps -a --format json` (one object per line)."""
    return [
        ContainerInfo(
            name=str(row.get("Names", "")),
            image=str(row.get("Image", "")),
            state=str(row.get("State", "")),
            status=str(row.get("Status", "")),
            ports=str(row.get("Ports", "")),
        )
        for row in _json_lines(output)
    ]


def parse_container_details(output: str) -> ContainerDetails:
    """Parse `docker inspect <name>` output.

    Raises:
        ValueError: If the output is not an inspect result
    """
    data = json.loads(output)
    if not isinstance(data, list) or not data or not isinstance(data[0], dict):
        raise ValueError("Invalid inspect response")

    container = data[0]
    state = container.get("State") or {}
    host_config = container.get("HostConfig") or {}
    networks = (container.get("NetworkSettings") or {}).get("Networks") or {}

    ports = {}
    for container_port, bindings in (host_config.get("PortBindings") or {}).items():
        if bindings:
            ports[container_port] = str(bindings[0].get("HostPort", ""))

    return ContainerDetails(
        name=str(container.get("Name", "")).lstrip("/"),
        image=str((container.get("Config") or {}).get("Image", "")),
        state=str(state.get("Status", "")),
        running=bool(state.get("Running", False)),
        started_at=str(state.get("StartedAt", "")),
        restart_count=int(container.get("RestartCount", state.get("RestartCount", 0)) or 0),
        networks=list(networks),
        ports=ports,
        mounts=[
            {
                "source": str(m.get("Source", "")),
                "destination": str(m.get("Destination", "")),
                "mode": str(m.get("Mode", "")),
            }
            for m in container.get("Mounts") or []
        ],
    )


def parse_network_list(output: str) -> list[NetworkInfo]:
    """Parse `docker network ls --format json`."""
    return [
        NetworkInfo(name=str(row.get("Name", "")), driver=str(row.get("Driver", "")), scope=str(row.get("Scope", "")))
        for row in _json_lines(output)
    ]


class ContainerStatusInput(BaseModel):
    """Input schema for the container status tool."""

    model_config = ConfigDict(extra="ignore")

    container_name: str | None = Field(
        default=None,
        max_length=128,
        pattern=CONTAINER_NAME_PATTERN,
        description="Optional container name for details including mounts, networks, and restart count",
    )


class ContainerLogsInput(BaseModel):
    """Input schema for the container logs tool."""

    model_config = ConfigDict(extra="ignore")

    container_name: str = Field(
        ..., max_length=128, pattern=CONTAINER_NAME_PATTERN, description="Name of the container to get logs from"
    )
    lines: int | None = Field(
        default=None,
        ge=1,
        description=f"Number of log lines to retrieve (default: {DEFAULT_LOG_LINES}, capped by the configured limit)",
    )


async def get_container_status(params: ContainerStatusInput, config: ToolConfig) -> str:
    if params.container_name:
        result = await execute_command("docker", ["inspect", params.container_name])
        if result.exit_code != 0:
            if "No such object" in result.stderr:
                return f"Error: Container not found: {params.container_name}"
            raise RuntimeError(f"Failed to inspect container: {result.stderr.strip()}")
        return json.dumps(asdict(parse_container_details(result.stdout)), indent=2)

    result = await execute_command("docker", ["ps", "-a", "--format", "json"])
    if result.exit_code != 0:
        raise RuntimeError(f"Failed to get container status: {result.stderr.strip()}")
    return json.dumps([asdict(c) for c in parse_container_list(result.stdout)], indent=2)


async def get_container_logs(params: ContainerLogsInput, config: ToolConfig) -> str:
    lines = min(params.lines or DEFAULT_LOG_LINES, config.max_log_lines)
    result = await execute_command("docker", ["logs", "--tail", str(lines), "--timestamps", params.container_name])

    # Containers write to both streams
    output = result.stdout + result.stderr
    if result.exit_code != 0 and not output.strip():
        raise RuntimeError(f"Failed to get logs for {params.container_name}")
    return output or "(no output)"


async def get_network_info(_: EmptyInput, config: ToolConfig) -> str:
    result = await execute_command("docker", ["network", "ls", "--format", "json"])
    if result.exit_code != 0:
        raise RuntimeError(f"Failed to list networks: {result.stderr.strip()}")
    return json.dumps([asdict(n) for n in parse_network_list(result.stdout)], indent=2)


def create_container_status_tool() -> ToolDefinition:
    return ToolDefinition(
        name="get_container_status",
        description=(
            "Get status of all Docker containers or detailed info for a specific container. "
            "Returns container names, images, states (running/stopped), uptime, and ports."
        ),
        input_schema_class=ContainerStatusInput,
        handler=get_container_status,
    )


def create_container_logs_tool() -> ToolDefinition:
    return ToolDefinition(
        name="get_container_logs",
        description=(
            "Get recent logs from a Docker container. "
            "Logs are automatically scrubbed to remove sensitive data like passwords and tokens."
        ),
        input_schema_class=ContainerLogsInput,
        handler=get_container_logs,
    )


def create_network_info_tool() -> ToolDefinition:
    return ToolDefinition(
        name="get_network_info",
        description="List all Docker networks with their drivers (bridge, host, overlay, etc.) and scope (local, swarm, global).",
        input_schema_class=EmptyInput,
        handler=get_network_info,
    )
