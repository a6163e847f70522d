"""Allowlisted, read-only command execution."""

import asyncio
import re
import shutil
from dataclasses import dataclass

from opsassist.utils.logging import get_logger

logger = get_logger(__name__)

ALLOWED_COMMANDS = frozenset(
    {
        "docker",
        "free",
        "df",
        "uptime",
        "fail2ban-client",
        "openssl",
        "pm2",
        "aws",
        "stat",
        "cat",
        "ps",
        "systemctl",
        "journalctl",
    }
)

ALLOWED_SUBCOMMANDS: dict[str, frozenset[str]] = {
    "docker": frozenset({"ps", "inspect", "logs", "network", "images", "version", "info"}),
    "aws": frozenset({"s3"}),
    "fail2ban-client": frozenset({"status", "banned"}),
    "systemctl": frozenset({"status", "show", "list-units", "list-unit-files", "is-active", "is-enabled", "cat"}),
    "pm2": frozenset({"list", "ls", "jlist", "show", "describe", "logs"}),
}

ALLOWED_S3_SUBCOMMANDS = frozenset({"ls"})

FORBIDDEN_JOURNALCTL_FLAGS = frozenset({"--flush", "--rotate", "--vacuum-size", "--vacuum-time", "--vacuum-files"})

SHELL_METACHARACTERS = re.compile(r"[;&|`$(){}\[\]<>!\n\r\\'\"]")

MAX_OUTPUT_BYTES = 1024 * 1024


class ShellSecurityError(Exception):
    """A command or argument was rejected by the allowlist."""


@dataclass
class ShellResult:
    """Result from a command execution."""

    stdout: str
    stderr: str
    exit_code: int


def validate_command(command: str, args: list[str]) -> None:
    """Check a command line against the read-only allowlist.

    Raises:
        ShellSecurityError: If the command, a subcommand or an argument is not allowed
    """
    if command not in ALLOWED_COMMANDS:
        raise ShellSecurityError(f"Command not in allowlist: {command}")

    for arg in args:
        if SHELL_METACHARACTERS.search(arg):
            raise ShellSecurityError(f"Argument contains forbidden characters: {arg}")

    allowed = ALLOWED_SUBCOMMANDS.get(command)
    if allowed is not None:
        if not args:
            raise ShellSecurityError(f"{command} command requires a subcommand")
        if args[0] not in allowed:
            raise ShellSecurityError(f"{command} subcommand not allowed: {args[0]}")

    if command == "aws" and len(args) > 1 and args[1] not in ALLOWED_S3_SUBCOMMANDS:
        raise ShellSecurityError(f"AWS S3 subcommand not allowed: {args[1]}")

    if command == "journalctl":
        for arg in args:
            if arg.split("=", 1)[0] in FORBIDDEN_JOURNALCTL_FLAGS:
                raise ShellSecurityError(f"journalctl flag not allowed: {arg}")


def get_allowed_commands() -> list[str]:
    """Allowed command names, for tool descriptions."""
    return sorted(ALLOWED_COMMANDS)


async def execute_command(command: str, args: list[str], timeout: float = 30.0) -> ShellResult:
    """Run an allowlisted command without a shell.

    Raises:
        ShellSecurityError: If the command line is not allowed or the binary is missing
    """
    validate_command(command, args)

    path = shutil.which(command)
    if path is None:
        raise ShellSecurityError(f"Command not found on this host: {command}")

    logger.debug(f"Running {command} {' '.join(args)}")
    proc = await asyncio.create_subprocess_exec(
        path,
        *args,
        stdin=asyncio.subprocess.DEVNULL,
        stdout=asyncio.subprocess.PIPE,
        stderr=asyncio.subprocess.PIPE,
    )
    try:
        stdout_b, stderr_b = await asyncio.wait_for(proc.communicate(), timeout=timeout)
    except TimeoutError:
        proc.kill()
        await proc.wait()
        return ShellResult(stdout="", stderr=f"Command timed out after {timeout:g} seconds", exit_code=-1)

    stdout = (stdout_b or b"")[:MAX_OUTPUT_BYTES].decode("utf-8", errors="replace")
    stderr = (stderr_b or b"")[:MAX_OUTPUT_BYTES].decode("utf-8", errors="replace")
    return ShellResult(stdout=stdout, stderr=stderr, exit_code=proc.returncode or 0)
