"""Tests for settings and per-user configuration."""

import json

import pytest
from pydantic import ValidationError

from opsassist.config import Settings, load_settings, parse_comma_separated, parse_int_with_default
from opsassist.services.user_config import load_user_config


class TestParsingHelpers:
    """Tests for environment parsing helpers."""

    def test_parse_comma_separated(self):
        """Test splitting with blanks dropped."""
        assert parse_comma_separated("/opt/a, /opt/b,,") == ["/opt/a", "/opt/b"]
        assert parse_comma_separated(None) == []
        assert parse_comma_separated("") == []

    def test_parse_int_with_default(self):
        """Test integer parsing falls back on bad input."""
        assert parse_int_with_default("12", 5) == 12
        assert parse_int_with_default(None, 5) == 5
        assert parse_int_with_default("twelve", 5) == 5


class TestSettings:
    """Tests for settings loading."""

    def test_defaults(self):
        """Test defaults when the environment is empty."""
        settings = load_settings({})
        assert settings.cli_path == "claude"
        assert settings.cli_model == "sonnet"
        assert settings.cli_timeout_seconds == 120
        assert settings.max_tool_calls == 40
        assert settings.max_iterations == 50
        assert settings.allowed_dirs == []
        assert settings.rate_limit == "5/minute"

    def test_environment_overrides(self):
        """Test values read from the environment."""
        settings = load_settings(
            {
                "OPS_CLI_PATH": "/usr/local/bin/claude",
                "OPS_MAX_TOOL_CALLS": "10",
                "OPS_ALLOWED_DIRS": "/opt/homelab,/srv/compose",
                "LOG_LEVEL": "debug",
            }
        )
        assert settings.cli_path == "/usr/local/bin/claude"
        assert settings.max_tool_calls == 10
        assert settings.allowed_dirs == ["/opt/homelab", "/srv/compose"]
        assert settings.log_level == "DEBUG"

    def test_out_of_range_values_rejected(self):
        """Test that limits are bounded."""
        with pytest.raises(ValidationError):
            load_settings({"OPS_MAX_LOG_LINES": "500"})
        with pytest.raises(ValidationError):
            load_settings({"OPS_MAX_ITERATIONS": "0"})

    def test_blank_cli_path_rejected(self):
        """Test that a blank CLI path is rejected."""
        with pytest.raises(ValidationError):
            Settings(cli_path="   ")


class TestUserConfig:
    """Tests for per-user configuration files."""

    def test_missing_files_use_defaults(self, tmp_path):
        """Test defaults when the user has no files."""
        settings = Settings(allowed_dirs=["/opt/homelab"], max_log_lines=40)
        config = load_user_config(settings, config_dir=str(tmp_path))

        assert config.system_prompt_addition is None
        assert config.disabled_tools == []
        assert config.tool_config.allowed_dirs == ["/opt/homelab"]
        assert config.tool_config.max_log_lines == 40

    def test_user_files_override_defaults(self, tmp_path):
        """Test prompt addition and JSON overrides are applied."""
        (tmp_path / "server-prompt.md").write_text("Prefer short answers.")
        (tmp_path / "server-config.json").write_text(
            json.dumps({"allowedDirs": ["/srv"], "disabledTools": ["run_command"], "maxLogLines": 20})
        )
        config = load_user_config(Settings(), config_dir=str(tmp_path), context_dir_content="## Infra")

        assert config.system_prompt_addition == "Prefer short answers."
        assert config.context_dir_content == "## Infra"
        assert config.disabled_tools == ["run_command"]
        assert config.tool_config.allowed_dirs == ["/srv"]
        assert config.tool_config.max_log_lines == 20

    def test_invalid_config_file_is_ignored(self, tmp_path):
        """Test that unknown keys make the whole file invalid and ignored."""
        (tmp_path / "server-config.json").write_text(json.dumps({"disabledTools": ["x"], "sudo": True}))
        config = load_user_config(Settings(), config_dir=str(tmp_path))

        assert config.disabled_tools == []

    def test_context_dir_added_to_allowed_dirs(self, tmp_path):
        """Test that the context directory is always readable."""
        context_dir = tmp_path / "infra"
        context_dir.mkdir()
        settings = Settings(allowed_dirs=["/opt/homelab"], context_dir=str(context_dir))
        config = load_user_config(settings, config_dir=str(tmp_path / "missing"))

        assert config.tool_config.allowed_dirs == ["/opt/homelab", str(context_dir.resolve())]
