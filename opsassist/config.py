"""Application settings loaded from environment variables."""

import os
from pathlib import Path

from pydantic import BaseModel, Field, field_validator

from opsassist.utils.logging import get_logger

logger = get_logger(__name__)


def parse_comma_separated(value: str | None) -> list[str]:
    """Split a comma separated value, dropping empty items."""
    if not value:
        return []
    return [item.strip() for item in value.split(",") if item.strip()]


def parse_int_with_default(value: str | None, default: int) -> int:
    """Parse an integer from an environment value, falling back to default."""
    if not value:
        return default
    try:
        return int(value.strip())
    except ValueError:
        logger.warning(f"Ignoring non-numeric setting value {value!r}, using {default}")
        return default


class Settings(BaseModel):
    """Service configuration."""

    cli_path: str = "claude"
    cli_model: str = "sonnet"
    cli_timeout_seconds: float = Field(default=120.0, gt=0)

    max_tool_calls: int = Field(default=40, ge=1, le=100)
    max_iterations: int = Field(default=50, ge=1, le=100)

    allowed_dirs: list[str] = Field(default_factory=list)
    max_file_size_kb: int = Field(default=100, gt=0)
    max_log_lines: int = Field(default=50, gt=0, le=100)

    context_dir: str | None = None
    user_config_dir: str = str(Path.home() / ".claude")

    rate_limit: str = "5/minute"
    conversation_ttl_hours: int = Field(default=24, gt=0)
    max_message_chars: int = Field(default=4000, gt=0)

    log_level: str = "INFO"
    audit_log_path: str | None = None

    @field_validator("cli_path", "cli_model")
    @classmethod
    def validate_not_blank(cls, v: str) -> str:
        """Reject blank CLI settings."""
        if not v or v.isspace():
            raise ValueError("Value cannot be empty or whitespace only")
        return v.strip()

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Normalize and check the log level name."""
        level = v.strip().upper()
        if level not in {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}:
            raise ValueError(f"Unknown log level: {v}")
        return level


def load_settings(environ: dict[str, str] | None = None) -> Settings:
    """Build settings from an environment mapping (defaults to os.environ)."""
    env = os.environ if environ is None else environ

    raw: dict[str, object] = {
        "cli_path": env.get("OPS_CLI_PATH", "claude"),
        "cli_model": env.get("OPS_CLI_MODEL", "sonnet"),
        "cli_timeout_seconds": parse_int_with_default(env.get("OPS_CLI_TIMEOUT_SECONDS"), 120),
        "max_tool_calls": parse_int_with_default(env.get("OPS_MAX_TOOL_CALLS"), 40),
        "max_iterations": parse_int_with_default(env.get("OPS_MAX_ITERATIONS"), 50),
        "allowed_dirs": parse_comma_separated(env.get("OPS_ALLOWED_DIRS")),
        "max_file_size_kb": parse_int_with_default(env.get("OPS_MAX_FILE_SIZE_KB"), 100),
        "max_log_lines": parse_int_with_default(env.get("OPS_MAX_LOG_LINES"), 50),
        "context_dir": env.get("OPS_CONTEXT_DIR") or None,
        "rate_limit": env.get("OPS_RATE_LIMIT", "5/minute"),
        "conversation_ttl_hours": parse_int_with_default(env.get("OPS_CONVERSATION_TTL_HOURS"), 24),
        "max_message_chars": parse_int_with_default(env.get("OPS_MAX_MESSAGE_CHARS"), 4000),
        "log_level": env.get("LOG_LEVEL", "INFO"),
        "audit_log_path": env.get("OPS_AUDIT_LOG_PATH") or None,
    }
    if env.get("OPS_USER_CONFIG_DIR"):
        raw["user_config_dir"] = env["OPS_USER_CONFIG_DIR"]

    return Settings.model_validate(raw)


_settings: Settings | None = None


def get_settings() -> Settings:
    """Get or create the settings instance."""
    global _settings
    if _settings is None:
        _settings = load_settings()
    return _settings
