"""Tests for the tools registry and the built-in diagnostic tools."""

import json
from unittest.mock import AsyncMock, patch

import pytest
from pydantic import BaseModel

from opsassist.models.llm import ToolConfig
from opsassist.tools.base import EmptyInput, ToolDefinition
from opsassist.tools.commands import RunCommandInput, run_command
from opsassist.tools.files import ReadFileInput, is_path_allowed, is_safe_extension, read_file
from opsassist.tools.registry import ToolsRegistry
from opsassist.tools.system import DiskUsageInput, get_disk_usage, parse_disk_usage, parse_memory_info, parse_uptime
from opsassist.utils.shell import ShellResult, ShellSecurityError, validate_command

FREE_OUTPUT = """\
               total        used        free      shared  buff/cache   available
Mem:            7951        2345        1200         120        4406        5300
Swap:           2047         512        1535
"""

DF_OUTPUT = """\
Filesystem      Size  Used Avail Use% Mounted on
/dev/sda1        50G   21G   27G  44% /
tmpfs           3.9G     0  3.9G   0% /dev/shm
overlay          50G   21G   27G  44% /var/lib/docker/overlay2/abc/merged
/dev/sdb1       200G  150G   50G  75% /mnt/data
"""


class EchoInput(BaseModel):
    value: str


async def echo(params: EchoInput, config: ToolConfig) -> str:
    return params.value


class TestToolDefinition:
    """Tests for tool definitions."""

    @pytest.mark.parametrize("name", ["", "ab", "Read_File", "1tool", "read-file", "a" * 51])
    def test_invalid_names_rejected(self, name):
        """Test the tool name rules."""
        with pytest.raises(ValueError):
            ToolDefinition(name, "bad", EmptyInput, echo)

    def test_json_schema(self):
        """Test the schema shown to the model."""
        tool = ToolDefinition("echo", "Echo", EchoInput, echo)
        schema = tool.get_json_schema()

        assert "title" not in schema
        assert schema["properties"]["value"]["type"] == "string"
        assert schema["required"] == ["value"]

    def test_empty_schema_has_properties(self):
        """Test that parameterless tools still expose an object schema."""
        tool = ToolDefinition("ping", "Ping", EmptyInput, echo)
        assert tool.get_json_schema()["properties"] == {}


class TestToolsRegistry:
    """Tests for tool registration and execution."""

    def test_default_tools(self):
        """Test the built-in catalog."""
        registry = ToolsRegistry()
        assert registry.get_tool_names() == [
            "get_container_status",
            "get_container_logs",
            "get_system_resources",
            "get_disk_usage",
            "get_network_info",
            "read_file",
            "run_command",
        ]
        assert registry.has_tool("read_file")

    def test_duplicate_registration_rejected(self):
        """Test that names are unique."""
        registry = ToolsRegistry(register_defaults=False)
        registry.register_tool(ToolDefinition("echo", "Echo", EchoInput, echo))

        with pytest.raises(ValueError):
            registry.register_tool(ToolDefinition("echo", "Echo again", EchoInput, echo))

    def test_disabled_tools_filtered(self):
        """Test that disabled tools are left out of the specs."""
        registry = ToolsRegistry()
        names = [spec.name for spec in registry.list_specs(["run_command", "read_file", "get_container_logs"])]
        assert names == ["get_container_status", "get_system_resources", "get_disk_usage", "get_network_info"]

    @pytest.mark.asyncio
    async def test_unknown_tool(self):
        """Test that an unknown name is an error result."""
        registry = ToolsRegistry(register_defaults=False)
        result = await registry.execute("nope", {}, ToolConfig())

        assert result.is_error
        assert result.content == 'Error: Unknown tool "nope"'

    @pytest.mark.asyncio
    async def test_disabled_tool_refused(self):
        """Test that a disabled tool cannot be executed."""
        registry = ToolsRegistry(register_defaults=False)
        registry.register_tool(ToolDefinition("echo", "Echo", EchoInput, echo))

        result = await registry.execute("echo", {"value": "hi"}, ToolConfig(), disabled=["echo"])

        assert result.is_error
        assert result.content == 'Error: Unknown tool "echo"'

    @pytest.mark.asyncio
    async def test_invalid_input(self):
        """Test that schema violations are error results."""
        registry = ToolsRegistry(register_defaults=False)
        registry.register_tool(ToolDefinition("echo", "Echo", EchoInput, echo))

        result = await registry.execute("echo", {"value": ["not", "a", "string"]}, ToolConfig())

        assert result.is_error
        assert result.content.startswith("Error: Invalid input for echo: value:")

    @pytest.mark.asyncio
    async def test_handler_exception_is_scrubbed(self):
        """Test that a failing handler becomes a redacted error result."""

        async def leaky(params: EmptyInput, config: ToolConfig) -> str:
            raise RuntimeError("connect failed password=hunter2")

        registry = ToolsRegistry(register_defaults=False)
        registry.register_tool(ToolDefinition("leaky", "Leaks", EmptyInput, leaky))

        result = await registry.execute("leaky", {}, ToolConfig())

        assert result.is_error
        assert "hunter2" not in result.content
        assert result.content.startswith("Error executing leaky: connect failed password=[REDACTED]")

    @pytest.mark.asyncio
    async def test_output_is_scrubbed(self):
        """Test that successful output is redacted."""
        registry = ToolsRegistry(register_defaults=False)
        registry.register_tool(ToolDefinition("echo", "Echo", EchoInput, echo))

        result = await registry.execute("echo", {"value": "DB_URL=postgres://app:s3cret@db:5432/app"}, ToolConfig())

        assert not result.is_error
        assert result.content == "DB_URL=postgres://[USER]:[REDACTED]@db:5432/app"


class TestSystemParsers:
    """Tests for command output parsing."""

    def test_parse_memory(self):
        """Test memory and swap rows."""
        memory = parse_memory_info(FREE_OUTPUT, "Mem:")
        swap = parse_memory_info(FREE_OUTPUT, "Swap:")

        assert memory.total == 7951
        assert memory.used == 2345
        assert memory.available == 5300
        assert memory.percent_used == 29
        assert swap.available == 1535
        assert parse_memory_info("garbage") is None

    def test_parse_uptime(self):
        """Test uptime text and load averages."""
        uptime, load = parse_uptime(" 10:21:03 up 12 days,  3:04,  2 users,  load average: 0.52, 0.48, 0.41")
        assert uptime == "12 days,  3:04"
        assert load == [0.52, 0.48, 0.41]

    def test_parse_uptime_unknown(self):
        """Test unparseable uptime output."""
        assert parse_uptime("???") == ("unknown", [0.0, 0.0, 0.0])

    def test_parse_disk_usage_skips_pseudo_filesystems(self):
        """Test that tmpfs and overlay mounts are dropped."""
        mounts = parse_disk_usage(DF_OUTPUT)

        assert [m.mount_point for m in mounts] == ["/", "/mnt/data"]
        assert mounts[1].percent_used == 75

    @pytest.mark.asyncio
    async def test_disk_usage_for_one_mount(self):
        """Test filtering to a single mount point."""
        result = ShellResult(stdout=DF_OUTPUT, stderr="", exit_code=0)
        with patch("opsassist.tools.system.execute_command", new=AsyncMock(return_value=result)):
            output = await get_disk_usage(DiskUsageInput(mount="/mnt/data"), ToolConfig())
            missing = await get_disk_usage(DiskUsageInput(mount="/srv"), ToolConfig())

        assert json.loads(output)[0]["filesystem"] == "/dev/sdb1"
        assert missing == "No filesystem mounted at /srv"

    @pytest.mark.asyncio
    async def test_disk_usage_failure_raises(self):
        """Test that a df failure surfaces as an exception for the registry."""
        result = ShellResult(stdout="", stderr="df: boom", exit_code=1)
        with patch("opsassist.tools.system.execute_command", new=AsyncMock(return_value=result)):
            with pytest.raises(RuntimeError):
                await get_disk_usage(DiskUsageInput(), ToolConfig())


class TestReadFile:
    """Tests for the read_file tool."""

    def test_path_allowed_by_whole_component(self):
        """Test that sibling directories with a shared prefix are refused."""
        assert is_path_allowed("/home/user/app.yml", ["/home/user"])
        assert not is_path_allowed("/home/username/app.yml", ["/home/user"])
        assert not is_path_allowed("/home/user/../other/x", ["/home/user"])
        assert not is_path_allowed("/home/user/app.yml", [])

    def test_env_files_refused(self):
        """Test the extension rules."""
        assert not is_safe_extension("/srv/.env")
        assert not is_safe_extension("/srv/.env.production")
        assert is_safe_extension("/srv/.env.example")
        assert is_safe_extension("/srv/docker-compose.yml")
        assert is_safe_extension("/srv/Dockerfile")
        assert not is_safe_extension("/srv/backup.tar.gz")

    @pytest.mark.asyncio
    async def test_reads_file_in_allowed_dir(self, tmp_path):
        """Test a normal read."""
        (tmp_path / "compose.yml").write_text("services:\n  web:\n    image: nginx\n")
        config = ToolConfig(allowed_dirs=[str(tmp_path)])

        output = await read_file(ReadFileInput(path=str(tmp_path / "compose.yml")), config)

        assert "image: nginx" in output

    @pytest.mark.asyncio
    async def test_outside_allowed_dir_denied(self, tmp_path):
        """Test that paths outside the allowed directories are refused."""
        config = ToolConfig(allowed_dirs=[str(tmp_path / "allowed")])
        output = await read_file(ReadFileInput(path=str(tmp_path / "secret.txt")), config)
        assert output.startswith("Error: Access denied")

    @pytest.mark.asyncio
    async def test_symlink_escape_denied(self, tmp_path):
        """Test that a symlink pointing outside is refused."""
        allowed = tmp_path / "allowed"
        allowed.mkdir()
        outside = tmp_path / "outside.txt"
        outside.write_text("nope")
        (allowed / "link.txt").symlink_to(outside)

        output = await read_file(ReadFileInput(path=str(allowed / "link.txt")), ToolConfig(allowed_dirs=[str(allowed)]))

        assert output == "Error: Symlink target is outside allowed directories"

    @pytest.mark.asyncio
    async def test_missing_file(self, tmp_path):
        """Test the not found message."""
        output = await read_file(ReadFileInput(path=str(tmp_path / "gone.md")), ToolConfig(allowed_dirs=[str(tmp_path)]))
        assert output.startswith("Error: File not found")

    @pytest.mark.asyncio
    async def test_line_limit(self, tmp_path):
        """Test truncation to max_lines."""
        (tmp_path / "big.txt").write_text("\n".join(f"line {i}" for i in range(10)))
        config = ToolConfig(allowed_dirs=[str(tmp_path)])

        output = await read_file(ReadFileInput(path=str(tmp_path / "big.txt"), max_lines=3), config)

        assert output.startswith("line 0\nline 1\nline 2\n")
        assert output.endswith("... [truncated, showing 3 of 10 lines]")

    @pytest.mark.asyncio
    async def test_binary_content_refused(self, tmp_path):
        """Test the null byte check."""
        (tmp_path / "data.txt").write_bytes(b"abc\x00def")
        output = await read_file(ReadFileInput(path=str(tmp_path / "data.txt")), ToolConfig(allowed_dirs=[str(tmp_path)]))
        assert output == "Error: File contains binary data and cannot be read as text."

    @pytest.mark.asyncio
    async def test_size_limit(self, tmp_path):
        """Test the file size ceiling."""
        (tmp_path / "huge.txt").write_text("x" * 4096)
        config = ToolConfig(allowed_dirs=[str(tmp_path)], max_file_size_kb=1)

        output = await read_file(ReadFileInput(path=str(tmp_path / "huge.txt")), config)

        assert output.startswith("Error: File too large")


class TestRunCommand:
    """Tests for the allowlisted command tool."""

    @pytest.mark.parametrize(
        ("command", "args"),
        [
            ("rm", ["-rf", "/"]),
            ("docker", ["rm", "web"]),
            ("docker", []),
            ("systemctl", ["restart", "nginx"]),
            ("aws", ["s3", "rm", "s3://bucket/key"]),
            ("journalctl", ["--vacuum-time=1d"]),
            ("df", ["-h; reboot"]),
            ("cat", ["$(whoami)"]),
        ],
    )
    def test_rejected_command_lines(self, command, args):
        """Test the read-only allowlist."""
        with pytest.raises(ShellSecurityError):
            validate_command(command, args)

    @pytest.mark.parametrize(
        ("command", "args"),
        [
            ("docker", ["ps", "-a"]),
            ("systemctl", ["status", "nginx"]),
            ("aws", ["s3", "ls"]),
            ("journalctl", ["-u", "nginx", "-n", "50"]),
            ("df", ["-h"]),
        ],
    )
    def test_accepted_command_lines(self, command, args):
        """Test that read-only commands pass validation."""
        validate_command(command, args)

    @pytest.mark.asyncio
    async def test_rejection_is_error_text(self):
        """Test that the tool reports rejections instead of raising."""
        output = await run_command(RunCommandInput(command="rm", args=["-rf", "/"]), ToolConfig())
        assert output == "Error: Command not in allowlist: rm"

    @pytest.mark.asyncio
    async def test_cat_outside_allowed_dirs(self):
        """Test that file commands are held to the allowed directories."""
        output = await run_command(
            RunCommandInput(command="cat", args=["/etc/shadow"]), ToolConfig(allowed_dirs=["/opt/homelab"])
        )
        assert output == "Error: Path outside allowed directories: /etc/shadow"

    @pytest.mark.asyncio
    async def test_log_output_capped(self):
        """Test that journalctl output keeps only the newest lines."""
        lines = "\n".join(f"entry {i}" for i in range(100))
        result = ShellResult(stdout=lines, stderr="", exit_code=0)
        with patch("opsassist.tools.commands.execute_command", new=AsyncMock(return_value=result)):
            output = await run_command(RunCommandInput(command="journalctl", args=["-u", "nginx"]), ToolConfig(max_log_lines=5))

        assert output.splitlines() == [f"entry {i}" for i in range(95, 100)]

    @pytest.mark.asyncio
    async def test_non_zero_exit(self):
        """Test that failures include both streams."""
        result = ShellResult(stdout="", stderr="Unit nope.service could not be found.", exit_code=4)
        with patch("opsassist.tools.commands.execute_command", new=AsyncMock(return_value=result)):
            output = await run_command(RunCommandInput(command="systemctl", args=["status", "nope"]), ToolConfig())

        assert output.startswith("Command exited with code 4")
        assert "could not be found" in output

    @pytest.mark.asyncio
    async def test_empty_output(self):
        """Test the placeholder for silent commands."""
        result = ShellResult(stdout="", stderr="", exit_code=0)
        with patch("opsassist.tools.commands.execute_command", new=AsyncMock(return_value=result)):
            output = await run_command(RunCommandInput(command="docker", args=["ps"]), ToolConfig())

        assert output == "(no output)"
