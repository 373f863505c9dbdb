"""
Configuration system using Pydantic for type-safe settings management.

Settings are loaded from a YAML file with ``${VAR}`` environment variable
interpolation, and can be overridden through ``IDLE_SWEEPER_*`` environment
variables (nested sections use ``__``, e.g. ``IDLE_SWEEPER_TIMERS__DISQUALIFY_AFTER``).
"""

from __future__ import annotations

import os
import re
from datetime import timedelta
from pathlib import Path
from typing import Any, Literal

import structlog
import yaml
from pydantic import BaseModel, Field, HttpUrl, SecretStr, ValidationError, field_validator, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from idle_sweeper.exceptions import ConfigurationError

log = structlog.get_logger(__name__)

_DURATION_UNITS = {
    "s": "seconds",
    "sec": "seconds",
    "second": "seconds",
    "m": "minutes",
    "min": "minutes",
    "minute": "minutes",
    "h": "hours",
    "hr": "hours",
    "hour": "hours",
    "d": "days",
    "day": "days",
    "w": "weeks",
    "week": "weeks",
}

_DURATION_PATTERN = re.compile(r"^\s*(\d+(?:\.\d+)?)\s*([a-zA-Z]+?)s?\s*$")


def parse_duration(value: Any) -> Any:
    """Convert human-readable durations such as ``"7 days"`` or ``"12h"``.

    Values that are not strings, or strings in another format (ISO 8601
    ``P7D``, plain seconds), are returned unchanged for Pydantic to parse.

    Raises:
        ValueError: If the string has a recognizable shape but an unknown unit.
    """
    if not isinstance(value, str):
        return value

    match = _DURATION_PATTERN.match(value)
    if not match:
        return value

    amount, unit = match.groups()
    unit = unit.lower()
    if unit not in _DURATION_UNITS:
        raise ValueError(f"Unknown duration unit '{unit}' in '{value}'")
    return timedelta(**{_DURATION_UNITS[unit]: float(amount)})


class GitProviderConfig(BaseModel):
    """Git provider configuration (GitHub or Gitea)."""

    provider_type: Literal["gitea", "github"] = Field(default="github", description="Type of Git provider")
    base_url: HttpUrl = Field(
        default="https://api.github.com", validate_default=True, description="API base URL of the provider"
    )
    api_token: SecretStr = Field(..., description="API token for authentication")


class RepositoryConfig(BaseModel):
    """Repository whose issues are swept."""

    owner: str = Field(..., description="Repository owner/organization")
    name: str = Field(..., description="Repository name")


class TimersConfig(BaseModel):
    """Inactivity windows.

    ``follow_up_after`` is expected to be shorter than ``disqualify_after``;
    the opposite is allowed but logged.
    """

    disqualify_after: timedelta = Field(
        default=timedelta(days=7), description="Inactivity after which assignees are unassigned"
    )
    follow_up_after: timedelta = Field(
        default=timedelta(days=3), description="Inactivity after which a reminder is posted"
    )

    @field_validator("disqualify_after", "follow_up_after", mode="before")
    @classmethod
    def _parse_human_duration(cls, value: Any) -> Any:
        return parse_duration(value)

    @field_validator("disqualify_after", "follow_up_after")
    @classmethod
    def _positive(cls, value: timedelta) -> timedelta:
        if value <= timedelta(0):
            raise ValueError("durations must be positive")
        return value

    @model_validator(mode="after")
    def _warn_on_inverted_windows(self) -> TimersConfig:
        if self.follow_up_after >= self.disqualify_after:
            log.warning(
                "follow_up_window_not_shorter",
                follow_up_after=str(self.follow_up_after),
                disqualify_after=str(self.disqualify_after),
            )
        return self


class SweeperConfig(BaseModel):
    """Sweep behavior configuration."""

    max_concurrent_items: int = Field(default=5, ge=1, le=50, description="Issues evaluated concurrently")
    page_size: int = Field(default=100, ge=1, le=100, description="Results requested per API page")
    dry_run: bool = Field(default=False, description="Compute outcomes without unassigning or commenting")


class SweeperSettings(BaseSettings):
    """Main idle-sweeper settings."""

    model_config = SettingsConfigDict(
        env_prefix="IDLE_SWEEPER_",
        env_nested_delimiter="__",
        case_sensitive=False,
    )

    git_provider: GitProviderConfig
    repository: RepositoryConfig
    timers: TimersConfig = Field(default_factory=TimersConfig)
    sweeper: SweeperConfig = Field(default_factory=SweeperConfig)

    @classmethod
    def from_yaml(cls, config_path: str) -> SweeperSettings:
        """Load settings from YAML file with environment variable interpolation.

        Args:
            config_path: Path to YAML configuration file

        Returns:
            SweeperSettings instance

        Raises:
            ConfigurationError: If config file is invalid or missing required fields
        """
        config_file = Path(config_path)
        if not config_file.exists():
            raise ConfigurationError(f"Configuration file not found: {config_path}")

        try:
            yaml_content = config_file.read_text()
        except OSError as e:
            raise ConfigurationError(f"Cannot read configuration file: {config_path}") from e

        try:
            yaml_content = cls._interpolate_env_vars(yaml_content)
        except ValueError as e:
            raise ConfigurationError(f"Invalid environment variable reference in config: {e}") from e

        try:
            config_dict = yaml.safe_load(yaml_content)
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML syntax in {config_path}: {e}") from e
        if not isinstance(config_dict, dict):
            raise ConfigurationError("Configuration must be a YAML object, not a list or scalar")

        try:
            return cls(**config_dict)
        except ValidationError as e:
            raise ConfigurationError(f"Failed to validate configuration: {e}") from e

    @staticmethod
    def _interpolate_env_vars(content: str) -> str:
        """Interpolate ``${VAR}`` and ``${VAR:-default}`` placeholders.

        YAML comment lines are left untouched.

        Raises:
            ValueError: If a required environment variable is not set
        """
        pattern = re.compile(r"\$\{([A-Z_][A-Z0-9_]*)(?::-([^}]*))?\}")

        def replace_var(match: re.Match[str]) -> str:
            var_name = match.group(1)
            default_value = match.group(2)
            value = os.getenv(var_name)

            if value is not None:
                return value
            elif default_value is not None:
                return default_value
            else:
                raise ValueError(f"Environment variable {var_name} is not set")

        def process_line(line: str) -> str:
            if line.lstrip().startswith("#"):
                return line
            return pattern.sub(replace_var, line)

        return "\n".join(process_line(line) for line in content.split("\n"))
