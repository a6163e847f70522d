"""Per-user configuration: prompt additions, disabled tools and tool limits."""

import json
from pathlib import Path

from pydantic import BaseModel, ConfigDict, Field, ValidationError

from opsassist.config import Settings
from opsassist.models.llm import ToolConfig, UserConfig
from opsassist.utils.logging import get_logger

logger = get_logger(__name__)

PROMPT_FILE = "server-prompt.md"
CONFIG_FILE = "server-config.json"


class UserConfigFile(BaseModel):
    """Schema for server-config.json."""

    model_config = ConfigDict(extra="forbid", populate_by_name=True)

    allowed_dirs: list[str] | None = Field(default=None, alias="allowedDirs")
    disabled_tools: list[str] | None = Field(default=None, alias="disabledTools")
    max_log_lines: int | None = Field(default=None, alias="maxLogLines", gt=0, le=100)


def _read_config_file(path: Path) -> UserConfigFile | None:
    if not path.is_file():
        return None
    try:
        return UserConfigFile.model_validate(json.loads(path.read_text(encoding="utf-8")))
    except (json.JSONDecodeError, ValidationError) as e:
        logger.warning(f"Invalid user config file {path}: {e}")
        return None


def load_user_config(
    settings: Settings,
    config_dir: str | None = None,
    context_dir_content: str | None = None,
) -> UserConfig:
    """Merge the user's files in config_dir with the service defaults."""
    directory = Path(config_dir or settings.user_config_dir).expanduser()

    prompt_path = directory / PROMPT_FILE
    system_prompt_addition = None
    if prompt_path.is_file():
        system_prompt_addition = prompt_path.read_text(encoding="utf-8")
        logger.debug(f"Loaded user system prompt from {prompt_path}")

    file_config = _read_config_file(directory / CONFIG_FILE)

    allowed_dirs = list(settings.allowed_dirs)
    disabled_tools: list[str] = []
    max_log_lines = settings.max_log_lines
    if file_config is not None:
        if file_config.allowed_dirs is not None:
            allowed_dirs = list(file_config.allowed_dirs)
        disabled_tools = list(file_config.disabled_tools or [])
        max_log_lines = file_config.max_log_lines or max_log_lines

    if settings.context_dir:
        context_dir = str(Path(settings.context_dir).resolve())
        if context_dir not in allowed_dirs:
            allowed_dirs.append(context_dir)

    return UserConfig(
        system_prompt_addition=system_prompt_addition,
        context_dir_content=context_dir_content,
        disabled_tools=disabled_tools,
        tool_config=ToolConfig(
            allowed_dirs=allowed_dirs,
            max_file_size_kb=settings.max_file_size_kb,
            max_log_lines=max_log_lines,
        ),
    )
