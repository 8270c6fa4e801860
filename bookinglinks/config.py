"""
Configuration management using Pydantic models loaded from YAML.
"""

from pathlib import Path
from typing import List, Optional

import yaml
from pydantic import BaseModel, Field, field_validator, model_validator

from .domain.exceptions import InvalidInputError
from .domain.models import AvailabilityRule
from .domain.time_utils import time_to_minutes, validate_timezone


class DefaultsConfig(BaseModel):
    """Default settings for slot lookups."""
    duration_minutes: int = 30

    @field_validator("duration_minutes")
    @classmethod
    def validate_duration(cls, value: int) -> int:
        """Ensure meeting duration is positive."""
        if value <= 0:
            raise ValueError("duration_minutes must be greater than zero")
        return value


class AvailabilityRuleConfig(BaseModel):
    """One weekly availability window (0=Sunday, 6=Saturday)."""
    day_of_week: int
    start_time: str
    end_time: str

    @field_validator("day_of_week")
    @classmethod
    def validate_day(cls, value: int) -> int:
        """Validate weekday is between 0 and 6."""
        if not 0 <= value <= 6:
            raise ValueError(f"day_of_week must be between 0 and 6, got {value}")
        return value

    @field_validator("start_time", "end_time")
    @classmethod
    def validate_time(cls, value: str) -> str:
        """Validate HH:MM format."""
        try:
            time_to_minutes(value)
        except InvalidInputError as exc:
            raise ValueError(str(exc)) from exc
        return value

    @model_validator(mode="after")
    def validate_window_order(self) -> "AvailabilityRuleConfig":
        """Ensure the window opens before it closes."""
        if time_to_minutes(self.end_time) <= time_to_minutes(self.start_time):
            raise ValueError("end_time must be later than start_time")
        return self

    def to_rule(self) -> AvailabilityRule:
        return AvailabilityRule(
            day_of_week=self.day_of_week,
            start_time=self.start_time,
            end_time=self.end_time,
        )


class AppConfig(BaseModel):
    """Application configuration."""
    timezone: str = "UTC"
    host_timezone: Optional[str] = None
    defaults: DefaultsConfig = Field(default_factory=DefaultsConfig)
    availability: List[AvailabilityRuleConfig] = Field(default_factory=list)
    data_file: Optional[Path] = None

    @field_validator("timezone", "host_timezone")
    @classmethod
    def validate_timezone_name(cls, value: Optional[str]) -> Optional[str]:
        """Ensure timezone names are known IANA identifiers."""
        if value is None:
            return value
        try:
            return validate_timezone(value)
        except InvalidInputError as exc:
            raise ValueError(str(exc)) from exc

    @field_validator("availability")
    @classmethod
    def validate_unique_days(cls, value: List[AvailabilityRuleConfig]) -> List[AvailabilityRuleConfig]:
        """Reject more than one rule per weekday."""
        seen: set[int] = set()
        for rule in value:
            if rule.day_of_week in seen:
                raise ValueError(f"Duplicate availability for day_of_week {rule.day_of_week}")
            seen.add(rule.day_of_week)
        return value

    def get_rules(self) -> List[AvailabilityRule]:
        """Availability rules as domain objects."""
        return [rule.to_rule() for rule in self.availability]

    def get_host_timezone(self) -> str:
        return self.host_timezone or self.timezone

    @classmethod
    def load_from_yaml(cls, config_path: Path) -> "AppConfig":
        """
        Load configuration from YAML file.

        Args:
            config_path: Path to the YAML config file

        Returns:
            AppConfig instance

        Raises:
            FileNotFoundError: If config file doesn't exist
            ValueError: If config is invalid
        """
        if not config_path.exists():
            raise FileNotFoundError(
                f"Config file not found: {config_path}\n"
                f"Please create a config.yaml file. See config.example.yaml for reference."
            )

        try:
            with open(config_path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}
        except yaml.YAMLError as exc:
            raise ValueError(f"Invalid YAML in {config_path}: {exc}") from exc

        if not isinstance(data, dict):
            raise ValueError("Config file must contain a mapping at the root level.")

        config = cls(**data)
        if config.data_file is not None and not config.data_file.is_absolute():
            config.data_file = config_path.parent / config.data_file
        return config


def get_default_config_path() -> Path:
    """Get the default configuration file path."""
    # Look for config.yaml in current directory
    current_dir = Path.cwd()
    config_path = current_dir / "config.yaml"

    if not config_path.exists():
        # Try in the project root (parent of the package)
        project_root = Path(__file__).parent.parent
        config_path = project_root / "config.yaml"

    return config_path
