"""
Tests for configuration loading and validation.
"""

import pytest
import yaml

from cloudformation.models import ConfigurationError, StackStatus
from config import (
    CONFIG_ENV_VAR,
    DEFAULT_CONFIG_FILE,
    ConfigManager,
    ToolConfig,
    get_tool_config,
    validate_config,
)


class TestToolConfig:
    """Test ToolConfig."""

    def test_defaults(self) -> None:
        """Test built-in defaults."""
        config = ToolConfig()

        assert config.poll_interval_seconds == 5.0
        assert config.timeout_seconds is None
        assert config.recreate_after_delete is True
        assert config.renderer_command == ["pkl", "eval"]
        assert config.default_status_filter == [
            StackStatus.CREATE_COMPLETE,
            StackStatus.CREATE_IN_PROGRESS,
            StackStatus.IMPORT_COMPLETE,
            StackStatus.IMPORT_IN_PROGRESS,
        ]

    def test_with_overrides_ignores_none(self) -> None:
        """Test unset command line options keep file values."""
        config = ToolConfig(region="eu-west-1", poll_interval_seconds=2)

        updated = config.with_overrides(region=None, poll_interval_seconds=1.5)

        assert updated.region == "eu-west-1"
        assert updated.poll_interval_seconds == 1.5
        assert config.poll_interval_seconds == 2

    def test_with_overrides_validates(self) -> None:
        """Test overrides go through validation."""
        with pytest.raises(ConfigurationError, match="poll_interval_seconds"):
            ToolConfig().with_overrides(poll_interval_seconds=0)

    def test_round_trip_dict(self) -> None:
        """Test to_dict output is accepted by from_dict."""
        config = ToolConfig(capabilities=["CAPABILITY_IAM"], timeout_seconds=600)

        assert ToolConfig.from_dict(config.to_dict()) == config


class TestValidateConfig:
    """Test schema validation."""

    def test_unknown_key(self) -> None:
        """Test unknown settings are rejected."""
        with pytest.raises(ConfigurationError):
            validate_config({"poll_interval": 5})

    def test_unknown_capability(self) -> None:
        """Test capabilities are limited to CloudFormation's."""
        with pytest.raises(ConfigurationError, match="capabilities"):
            validate_config({"capabilities": ["CAPABILITY_EVERYTHING"]})

    def test_unknown_status_in_filter(self) -> None:
        """Test the list filter only accepts stack statuses."""
        with pytest.raises(ConfigurationError):
            validate_config({"list_status_filter": ["RUNNING"]})


class TestConfigManager:
    """Test ConfigManager."""

    def test_no_file_gives_defaults(self, tmp_path, monkeypatch) -> None:
        """Test defaults are used when no file is found."""
        monkeypatch.chdir(tmp_path)

        assert ConfigManager().load() == ToolConfig()

    def test_file_in_working_directory(self, tmp_path, monkeypatch) -> None:
        """Test ./stackctl.yaml is picked up."""
        monkeypatch.chdir(tmp_path)
        (tmp_path / DEFAULT_CONFIG_FILE).write_text(
            yaml.safe_dump({"region": "eu-central-1", "timeout_seconds": 900})
        )

        config = ConfigManager().load()

        assert config.region == "eu-central-1"
        assert config.timeout_seconds == 900
        assert config.poll_interval_seconds == 5.0

    def test_env_var_wins_over_working_directory(self, tmp_path, monkeypatch) -> None:
        """Test the environment variable points at the file to use."""
        monkeypatch.chdir(tmp_path)
        (tmp_path / DEFAULT_CONFIG_FILE).write_text("region: eu-central-1\n")
        other = tmp_path / "other.yaml"
        other.write_text("region: ap-south-1\n")
        monkeypatch.setenv(CONFIG_ENV_VAR, str(other))

        assert ConfigManager().load().region == "ap-south-1"

    def test_explicit_missing_file(self, tmp_path) -> None:
        """Test a missing explicit file is an error."""
        with pytest.raises(ConfigurationError, match="not found"):
            ConfigManager(tmp_path / "missing.yaml").load()

    def test_invalid_yaml(self, tmp_path) -> None:
        """Test unparsable YAML is an error."""
        path = tmp_path / "bad.yaml"
        path.write_text("region: [unclosed\n")

        with pytest.raises(ConfigurationError):
            ConfigManager(path).load()

    def test_non_mapping(self, tmp_path) -> None:
        """Test a YAML list is rejected."""
        path = tmp_path / "list.yaml"
        path.write_text("- a\n- b\n")

        with pytest.raises(ConfigurationError, match="mapping"):
            ConfigManager(path).load()

    def test_get_tool_config(self, tmp_path) -> None:
        """Test the module helper loads the given file."""
        path = tmp_path / "cfg.yaml"
        path.write_text("log_level: DEBUG\n")

        assert get_tool_config(path).log_level == "DEBUG"
