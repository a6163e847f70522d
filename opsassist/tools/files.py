"""File reading tool restricted to configured directories."""

import os
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field

from opsassist.models.llm import ToolConfig
from opsassist.tools.base import ToolDefinition

DEFAULT_MAX_LINES = 200
MAX_LINES_CAP = 500

# Real .env files are excluded, only examples are readable
SAFE_TEXT_EXTENSIONS = frozenset(
    {
        ".txt", ".md", ".json", ".yaml", ".yml", ".toml", ".ini", ".cfg", ".conf",
        ".sh", ".bash", ".zsh", ".fish",
        ".ts", ".js", ".py", ".rb", ".go", ".rs", ".java", ".c", ".cpp", ".h",
        ".html", ".css", ".xml", ".svg",
        ".example", ".gitignore", ".dockerignore", ".editorconfig",
        ".service", ".timer",
        "",
    }
)  # fmt: skip

SAFE_BARE_NAMES = frozenset({"dockerfile", "makefile", "readme", "license", "changelog"})


def is_path_allowed(file_path: str, allowed_dirs: list[str]) -> bool:
    """Check the logical path is inside one of the allowed directories.

    Whole path components are compared, so /home/user does not admit /home/username.
    """
    if not allowed_dirs:
        return False

    normalized = os.path.abspath(file_path)
    for directory in allowed_dirs:
        allowed = os.path.abspath(directory)
        if normalized == allowed or normalized.startswith(allowed.rstrip(os.sep) + os.sep):
            return True
    return False


def resolve_real_path(file_path: str, allowed_dirs: list[str]) -> Path:
    """Resolve symlinks and re-check the target against the allowed directories.

    Raises:
        PermissionError: If the real path escapes the allowed directories
        FileNotFoundError: If the path does not exist
    """
    real = Path(file_path).resolve(strict=True)
    # Allowed dirs may themselves be symlinks
    resolved_dirs = [str(Path(d).resolve()) for d in allowed_dirs]
    if not is_path_allowed(str(real), allowed_dirs) and not is_path_allowed(str(real), resolved_dirs):
        raise PermissionError("Symlink target is outside allowed directories")
    return real


def is_safe_extension(file_path: str) -> bool:
    """Only plain text files may be read."""
    path = Path(file_path)
    if path.name.lower() == ".env.example":
        return True
    if path.name.lower().startswith(".env"):
        return False
    if not path.suffix and path.name.lower() in SAFE_BARE_NAMES:
        return True
    return path.suffix.lower() in SAFE_TEXT_EXTENSIONS


class ReadFileInput(BaseModel):
    """Input schema for the read_file tool."""

    model_config = ConfigDict(extra="ignore")

    path: str = Field(..., min_length=1, max_length=4096, description="Absolute path to the file")
    max_lines: int | None = Field(
        default=None,
        ge=1,
        description=f"Maximum number of lines to read (default: {DEFAULT_MAX_LINES}, max: {MAX_LINES_CAP})",
    )


async def read_file(params: ReadFileInput, config: ToolConfig) -> str:
    if not is_path_allowed(params.path, config.allowed_dirs):
        allowed = "\n".join(config.allowed_dirs) or "(none configured)"
        return f"Error: Access denied. File must be in one of the allowed directories:\n{allowed}"

    try:
        real_path = resolve_real_path(params.path, config.allowed_dirs)
    except FileNotFoundError:
        return f"Error: File not found: {params.path}"
    except PermissionError as e:
        return f"Error: {e}"

    if not is_safe_extension(str(real_path)):
        return "Error: Cannot read binary or unsupported file type. Only text files are supported."

    if not real_path.is_file():
        return f"Error: Path is not a file: {params.path}"

    size_kb = real_path.stat().st_size / 1024
    if size_kb > config.max_file_size_kb:
        return f"Error: File too large ({size_kb:.1f}KB). Maximum allowed: {config.max_file_size_kb}KB"

    data = real_path.read_bytes()
    if b"\x00" in data:
        return "Error: File contains binary data and cannot be read as text."

    lines = data.decode("utf-8", errors="replace").split("\n")
    max_lines = min(params.max_lines or DEFAULT_MAX_LINES, MAX_LINES_CAP)
    content = "\n".join(lines[:max_lines])

    if len(lines) > max_lines:
        return f"{content}\n\n... [truncated, showing {max_lines} of {len(lines)} lines]"
    return content


def create_read_file_tool() -> ToolDefinition:
    return ToolDefinition(
        name="read_file",
        description=(
            "Read a text file from allowed directories (configs, docker-compose files, etc.). "
            "Only text files are supported. Sensitive data like passwords and tokens are automatically redacted."
        ),
        input_schema_class=ReadFileInput,
        handler=read_file,
    )
