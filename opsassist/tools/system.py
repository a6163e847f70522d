"""System resource and disk usage tools."""

import asyncio
import json
import re
from dataclasses import asdict, dataclass

from pydantic import BaseModel, ConfigDict, Field

from opsassist.models.llm import ToolConfig
from opsassist.tools.base import EmptyInput, ToolDefinition
from opsassist.utils.shell import execute_command

PSEUDO_FILESYSTEM_PREFIXES = ("tmpfs", "devtmpfs", "overlay")


@dataclass
class MemoryInfo:
    """Memory or swap figures in MB."""

    total: int
    used: int
    available: int
    percent_used: int


@dataclass
class DiskMount:
    """One line of df output."""

    filesystem: str
    size: str
    used: str
    available: str
    percent_used: int
    mount_point: str


def _percent(used: int, total: int) -> int:
    return round(used / total * 100) if total > 0 else 0


def parse_memory_info(output: str, row: str = "Mem:") -> MemoryInfo | None:
    """Parse a row of `free -m` output."""
    line = next((line for line in output.strip().splitlines() if line.startswith(row)), None)
    if line is None:
        return None

    parts = line.split()
    numbers = [int(p) for p in parts[1:] if p.isdigit()]
    total = numbers[0] if numbers else 0
    used = numbers[1] if len(numbers) > 1 else 0
    free = numbers[2] if len(numbers) > 2 else 0
    # Swap rows have no "available" column
    available = numbers[5] if len(numbers) > 5 else free
    return MemoryInfo(total=total, used=used, available=available, percent_used=_percent(used, total))


def parse_uptime(output: str) -> tuple[str, list[float]]:
    """Parse `uptime` output into the uptime text and the three load averages."""
    text = output.strip()

    up_match = re.search(r"up\s+([^,]+(?:,\s*\d+:\d+)?)", text)
    uptime = up_match.group(1).strip() if up_match else "unknown"

    load_match = re.search(r"load averages?:\s*([\d.]+),?\s+([\d.]+),?\s+([\d.]+)", text)
    load = [float(v) for v in load_match.groups()] if load_match else [0.0, 0.0, 0.0]
    return uptime, load


def parse_disk_usage(output: str) -> list[DiskMount]:
    """Parse `df -h --output=source,size,used,avail,pcent,target`, skipping pseudo filesystems."""
    mounts = []
    for line in output.strip().splitlines()[1:]:
        parts = line.split()
        if len(parts) < 6:
            continue

        filesystem = parts[0]
        if filesystem.startswith(PSEUDO_FILESYSTEM_PREFIXES) or filesystem == "shm":
            continue

        try:
            percent_used = int(parts[4].rstrip("%"))
        except ValueError:
            percent_used = 0

        mounts.append(
            DiskMount(
                filesystem=filesystem,
                size=parts[1],
                used=parts[2],
                available=parts[3],
                percent_used=percent_used,
                mount_point=" ".join(parts[5:]),
            )
        )
    return mounts


async def get_system_resources(_: EmptyInput, config: ToolConfig) -> str:
    free_result, uptime_result = await asyncio.gather(
        execute_command("free", ["-m"]),
        execute_command("uptime", []),
    )
    if free_result.exit_code != 0:
        raise RuntimeError(f"Failed to get memory info: {free_result.stderr.strip()}")
    if uptime_result.exit_code != 0:
        raise RuntimeError(f"Failed to get uptime: {uptime_result.stderr.strip()}")

    memory = parse_memory_info(free_result.stdout, "Mem:")
    if memory is None:
        raise RuntimeError("Failed to parse memory info")
    swap = parse_memory_info(free_result.stdout, "Swap:") or MemoryInfo(0, 0, 0, 0)
    uptime, load = parse_uptime(uptime_result.stdout)

    return json.dumps(
        {
            "memory": {
                "totalMB": memory.total,
                "usedMB": memory.used,
                "availableMB": memory.available,
                "percentUsed": memory.percent_used,
            },
            "swap": {"totalMB": swap.total, "usedMB": swap.used, "percentUsed": swap.percent_used},
            "loadAverage": {"1min": load[0], "5min": load[1], "15min": load[2]},
            "uptime": uptime,
        },
        indent=2,
    )


class DiskUsageInput(BaseModel):
    """Input schema for the disk usage tool."""

    model_config = ConfigDict(extra="ignore")

    mount: str | None = Field(
        default=None,
        description="Optional mount point to report on (e.g. '/'). Omit to list all filesystems.",
        max_length=4096,
    )


async def get_disk_usage(params: DiskUsageInput, config: ToolConfig) -> str:
    result = await execute_command("df", ["-h", "--output=source,size,used,avail,pcent,target"])
    if result.exit_code != 0:
        raise RuntimeError(f"Failed to get disk info: {result.stderr.strip()}")

    mounts = parse_disk_usage(result.stdout)
    if params.mount:
        mounts = [m for m in mounts if m.mount_point == params.mount]
        if not mounts:
            return f"No filesystem mounted at {params.mount}"

    return json.dumps([asdict(m) for m in mounts], indent=2)


def create_system_resources_tool() -> ToolDefinition:
    return ToolDefinition(
        name="get_system_resources",
        description=(
            "Get current system resource usage including CPU load average (1, 5, 15 min), "
            "memory usage (total, used, available), swap usage, and system uptime."
        ),
        input_schema_class=EmptyInput,
        handler=get_system_resources,
    )


def create_disk_usage_tool() -> ToolDefinition:
    return ToolDefinition(
        name="get_disk_usage",
        description=(
            "Get disk usage for mounted filesystems. Returns size, used, available, and percent used "
            "for each mount point. Excludes temporary filesystems like tmpfs."
        ),
        input_schema_class=DiskUsageInput,
        handler=get_disk_usage,
    )
