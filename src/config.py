"""
Configuration management for stackctl.

Settings come from built-in defaults, an optional YAML file and finally the
command line, in increasing order of precedence.
"""

import os
from dataclasses import dataclass, field, fields
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

import jsonschema
import yaml

from cloudformation.models import ConfigurationError, StackStatus

CONFIG_ENV_VAR = "STACKCTL_CONFIG"
DEFAULT_CONFIG_FILE = "stackctl.yaml"

DEFAULT_LIST_STATUS_FILTER = [
    StackStatus.CREATE_COMPLETE.value,
    StackStatus.CREATE_IN_PROGRESS.value,
    StackStatus.IMPORT_COMPLETE.value,
    StackStatus.IMPORT_IN_PROGRESS.value,
]

CONFIG_SCHEMA: Dict[str, Any] = {
    "type": "object",
    "additionalProperties": False,
    "properties": {
        "region": {"type": ["string", "null"]},
        "profile": {"type": ["string", "null"]},
        "poll_interval_seconds": {"type": "number", "exclusiveMinimum": 0},
        "timeout_seconds": {"type": ["number", "null"], "exclusiveMinimum": 0},
        "recreate_after_delete": {"type": "boolean"},
        "renderer_command": {
            "type": "array",
            "items": {"type": "string"},
            "minItems": 1,
        },
        "renderer_format": {"type": "string"},
        "capabilities": {
            "type": "array",
            "items": {
                "enum": [
                    "CAPABILITY_IAM",
                    "CAPABILITY_NAMED_IAM",
                    "CAPABILITY_AUTO_EXPAND",
                ]
            },
        },
        "list_status_filter": {
            "type": "array",
            "items": {"enum": [status.value for status in StackStatus]},
        },
        "log_level": {"enum": ["DEBUG", "INFO", "WARNING", "ERROR"]},
    },
}


@dataclass
class ToolConfig:
    """Settings for a stackctl run."""

    # AWS session
    region: Optional[str] = None
    profile: Optional[str] = None

    # Polling
    poll_interval_seconds: float = 5.0
    timeout_seconds: Optional[float] = None

    # After a pending change set is deleted, submit a fresh one
    recreate_after_delete: bool = True

    # Template rendering
    renderer_command: List[str] = field(default_factory=lambda: ["pkl", "eval"])
    renderer_format: str = "json"

    # Change set submission
    capabilities: List[str] = field(default_factory=list)

    # list command
    list_status_filter: List[str] = field(
        default_factory=lambda: list(DEFAULT_LIST_STATUS_FILTER)
    )

    log_level: str = "INFO"

    @property
    def default_status_filter(self) -> List[StackStatus]:
        """Status filter of the list command as enum members."""
        return [StackStatus(status) for status in self.list_status_filter]

    def to_dict(self) -> Dict[str, Any]:
        """Convert config to dictionary."""
        return {f.name: getattr(self, f.name) for f in fields(self)}

    @classmethod
    def from_dict(cls, data: Dict[str, Any]) -> "ToolConfig":
        """Create config from a validated dictionary."""
        validate_config(data)
        return cls(**data)

    def with_overrides(self, **overrides: Any) -> "ToolConfig":
        """Return a copy with every non-None override applied."""
        data = self.to_dict()
        data.update({k: v for k, v in overrides.items() if v is not None})
        return ToolConfig.from_dict(data)


def validate_config(data: Dict[str, Any]) -> None:
    """Validate raw configuration data against the schema."""
    try:
        jsonschema.validate(instance=data, schema=CONFIG_SCHEMA)
    except jsonschema.ValidationError as e:
        location = ".".join(str(p) for p in e.absolute_path) or "<root>"
        raise ConfigurationError(f"Invalid configuration at {location}: {e.message}")


class ConfigManager:
    """Locate, load and cache the tool configuration."""

    def __init__(self, config_path: Optional[Union[str, Path]] = None):
        """Initialize config manager.

        Args:
            config_path: Explicit YAML file; must exist when given
        """
        self.config_path = Path(config_path) if config_path else self._find_config_file()
        self._config: Optional[ToolConfig] = None

    def _find_config_file(self) -> Optional[Path]:
        """Find the configuration file from the environment or working directory."""
        env_path = os.environ.get(CONFIG_ENV_VAR)
        if env_path:
            return Path(env_path)

        candidate = Path.cwd() / DEFAULT_CONFIG_FILE
        if candidate.exists():
            return candidate
        return None

    def load(self) -> ToolConfig:
        """Load the configuration, merged over the defaults."""
        if self._config is not None:
            return self._config

        data: Dict[str, Any] = {}
        if self.config_path is not None:
            if not self.config_path.exists():
                raise ConfigurationError(
                    f"Configuration file not found: {self.config_path}"
                )
            with open(self.config_path, "r") as f:
                try:
                    data = yaml.safe_load(f) or {}
                except yaml.YAMLError as e:
                    raise ConfigurationError(
                        f"Cannot parse {self.config_path}: {e}"
                    ) from e
            if not isinstance(data, dict):
                raise ConfigurationError(
                    f"{self.config_path} must contain a mapping of settings"
                )

        merged = {**ToolConfig().to_dict(), **data}
        self._config = ToolConfig.from_dict(merged)
        return self._config


# Singleton instance
_config_manager: Optional[ConfigManager] = None


def get_config_manager(config_path: Optional[Union[str, Path]] = None) -> ConfigManager:
    """Get or create the config manager instance."""
    global _config_manager
    if _config_manager is None or config_path is not None:
        _config_manager = ConfigManager(config_path)
    return _config_manager


def get_tool_config(config_path: Optional[Union[str, Path]] = None) -> ToolConfig:
    """Get the tool configuration."""
    return get_config_manager(config_path).load()
