"""
Configuration system for sqlalter using Pydantic.
"""

import os
from pathlib import Path
from typing import Any, Literal, Optional, Union

import yaml
from pydantic import BaseModel, Field, ValidationError, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from .exceptions import ConfigurationError


class PlannerConfig(BaseModel):
    """Alter planner configuration."""

    temp_table_prefix: str = Field(
        "_", description="Prefix of the replacement table name"
    )
    temp_table_suffix: str = Field(
        "_tmp", description="Suffix of the replacement table name"
    )
    finalize_rebuild: bool = Field(
        False, description="Emit DROP/RENAME statements that complete a rebuild"
    )
    strict_collisions: bool = Field(
        True, description="Reject rename targets that collide with renamed columns"
    )

    @model_validator(mode="after")
    def check_temp_table_affixes(self) -> "PlannerConfig":
        if not self.temp_table_prefix and not self.temp_table_suffix:
            raise ValueError(
                "temp_table_prefix and temp_table_suffix cannot both be empty"
            )
        return self


class LoggingConfig(BaseModel):
    """Logging configuration."""

    level: Literal["DEBUG", "INFO", "WARNING", "ERROR"] = Field(
        "WARNING", description="Log level"
    )
    format: str = Field(
        "%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        description="Log format",
    )
    file: Optional[str] = Field(None, description="Log file path")
    max_size: int = Field(10485760, description="Max log file size in bytes")  # 10MB
    backup_count: int = Field(5, description="Number of backup log files")


class SqlAlterConfig(BaseSettings):
    """Main sqlalter configuration."""

    debug: bool = Field(False, description="Enable debug mode")

    planner: PlannerConfig = Field(
        default_factory=PlannerConfig, description="Planner configuration"
    )
    logging: LoggingConfig = Field(
        default_factory=LoggingConfig, description="Logging configuration"
    )

    model_config = SettingsConfigDict(
        env_prefix="SQLALTER_",
        env_nested_delimiter="__",
        case_sensitive=False,
        extra="ignore",
    )

    @classmethod
    def from_yaml(cls, path: Union[str, Path]) -> "SqlAlterConfig":
        """Load configuration from a YAML file."""
        try:
            with open(path, "r", encoding="utf-8") as f:
                data = yaml.safe_load(f) or {}

            # Expand environment variables in the data
            data = cls._expand_env_vars(data)

            return cls(**data)
        except FileNotFoundError:
            raise ConfigurationError(f"Configuration file not found: {path}")
        except yaml.YAMLError as e:
            raise ConfigurationError(f"Invalid YAML in configuration file: {e}")
        except ValidationError as e:
            raise ConfigurationError(f"Invalid configuration: {e}")
        except TypeError as e:
            raise ConfigurationError(f"Invalid configuration: {e}")

    @classmethod
    def _expand_env_vars(cls, data: Any) -> Any:
        """Recursively expand environment variables in configuration data."""
        if isinstance(data, dict):
            return {k: cls._expand_env_vars(v) for k, v in data.items()}
        elif isinstance(data, list):
            return [cls._expand_env_vars(item) for item in data]
        elif isinstance(data, str):
            return os.path.expandvars(data)
        else:
            return data

    def validate_config(self) -> None:
        """Validate the configuration for consistency."""
        if self.logging.file:
            log_dir = Path(self.logging.file).expanduser().parent
            if not log_dir.is_dir():
                raise ConfigurationError(
                    f"Log file directory does not exist: {log_dir}"
                )
        if self.logging.max_size <= 0:
            raise ConfigurationError("logging.max_size must be positive")

    def to_yaml(self, path: Union[str, Path]) -> None:
        """Save configuration to a YAML file."""
        with open(path, "w", encoding="utf-8") as f:
            yaml.dump(
                self.model_dump(exclude_none=True),
                f,
                default_flow_style=False,
                indent=2,
                sort_keys=False,
            )
