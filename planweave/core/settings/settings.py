"""Settings and configuration loading for planweave.

Settings come from environment variables (``PLANWEAVE_`` prefix), an
optional ``.env`` file and optional YAML or JSON configuration files.
"""

import json
import logging
from pathlib import Path
from typing import Any, Literal

import yaml
from pydantic import AliasChoices, Field, field_validator
from pydantic import ValidationError as PydanticValidationError
from pydantic_settings import BaseSettings, SettingsConfigDict

from planweave.core.errors import ConfigurationError

logger = logging.getLogger(__name__)

StrategyName = Literal["sequential", "parallel", "hierarchical", "adaptive"]


class PlanweaveSettings(BaseSettings):
    """Runtime settings for planning, inference and execution."""

    log_level: str = Field(
        default="INFO", validation_alias=AliasChoices("PLANWEAVE_LOG_LEVEL", "log_level")
    )

    # Planning and execution
    default_strategy: StrategyName = Field(
        default="sequential",
        validation_alias=AliasChoices("PLANWEAVE_DEFAULT_STRATEGY", "default_strategy"),
    )
    max_parallel_tasks: int = Field(
        default=3, validation_alias=AliasChoices("PLANWEAVE_MAX_PARALLEL_TASKS", "max_parallel_tasks")
    )
    max_replans: int = Field(
        default=3, validation_alias=AliasChoices("PLANWEAVE_MAX_REPLANS", "max_replans")
    )
    task_timeout_seconds: float | None = Field(
        default=None,
        validation_alias=AliasChoices("PLANWEAVE_TASK_TIMEOUT", "task_timeout_seconds"),
    )
    summary_result_chars: int = Field(
        default=200,
        validation_alias=AliasChoices("PLANWEAVE_SUMMARY_RESULT_CHARS", "summary_result_chars"),
    )
    replan_result_chars: int = Field(
        default=100,
        validation_alias=AliasChoices("PLANWEAVE_REPLAN_RESULT_CHARS", "replan_result_chars"),
    )

    # Dependency inference
    enable_content_similarity: bool = Field(
        default=True,
        validation_alias=AliasChoices("PLANWEAVE_ENABLE_CONTENT_SIMILARITY", "enable_content_similarity"),
    )
    enable_type_hierarchy: bool = Field(
        default=True,
        validation_alias=AliasChoices("PLANWEAVE_ENABLE_TYPE_HIERARCHY", "enable_type_hierarchy"),
    )
    enable_information_flow: bool = Field(
        default=True,
        validation_alias=AliasChoices("PLANWEAVE_ENABLE_INFORMATION_FLOW", "enable_information_flow"),
    )
    min_dependency_certainty: float = Field(
        default=0.6,
        validation_alias=AliasChoices("PLANWEAVE_MIN_DEPENDENCY_CERTAINTY", "min_dependency_certainty"),
    )
    max_dependencies_per_task: int = Field(
        default=3,
        validation_alias=AliasChoices("PLANWEAVE_MAX_DEPENDENCIES_PER_TASK", "max_dependencies_per_task"),
    )
    similarity_threshold: float = Field(
        default=0.3,
        validation_alias=AliasChoices("PLANWEAVE_SIMILARITY_THRESHOLD", "similarity_threshold"),
    )
    vocabulary_file: Path | None = Field(
        default=None, validation_alias=AliasChoices("PLANWEAVE_VOCABULARY_FILE", "vocabulary_file")
    )

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, v: str) -> str:
        """Validate log level."""
        valid_levels = ["DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"]
        if v.upper() not in valid_levels:
            raise ValueError(f"Log level must be one of: {valid_levels}")
        return v.upper()

    @field_validator("max_parallel_tasks", "max_dependencies_per_task", "summary_result_chars", "replan_result_chars")
    @classmethod
    def validate_positive_integers(cls, v: int) -> int:
        """Validate positive integer fields."""
        if v <= 0:
            raise ValueError("Value must be positive")
        return v

    @field_validator("max_replans")
    @classmethod
    def validate_non_negative(cls, v: int) -> int:
        """Validate the replanning bound."""
        if v < 0:
            raise ValueError("Value must not be negative")
        return v

    @field_validator("min_dependency_certainty", "similarity_threshold")
    @classmethod
    def validate_unit_interval(cls, v: float) -> float:
        """Validate values that must lie in [0, 1]."""
        if not (0.0 <= v <= 1.0):
            raise ValueError("Value must be between 0.0 and 1.0")
        return v

    @field_validator("task_timeout_seconds")
    @classmethod
    def validate_timeout(cls, v: float | None) -> float | None:
        """Validate the optional per-task timeout."""
        if v is not None and v <= 0:
            raise ValueError("Timeout must be positive")
        return v

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )


def read_config_file(config_file: Path) -> dict[str, Any]:
    """Read a YAML or JSON configuration file into a dictionary.

    Args:
        config_file: Path of a ``.yaml``/``.yml`` or ``.json`` file

    Returns:
        The parsed top-level mapping (empty for an empty file)

    Raises:
        ConfigurationError: If the file is missing, unparsable or not a mapping
    """
    if not config_file.exists():
        raise ConfigurationError.for_file(f"Configuration file not found: {config_file}", config_file)

    try:
        with open(config_file, "r", encoding="utf-8") as f:
            if config_file.suffix.lower() in [".yml", ".yaml"]:
                config_data = yaml.safe_load(f)
            else:
                config_data = json.load(f)
    except (yaml.YAMLError, json.JSONDecodeError, OSError) as e:
        logger.error(f"Failed to read configuration file {config_file}: {e}")
        raise ConfigurationError.for_file(f"Failed to read configuration file {config_file}", config_file, e) from e

    if config_data is None:
        return {}
    if not isinstance(config_data, dict):
        raise ConfigurationError.for_file(
            f"Configuration file {config_file} must contain a mapping", config_file, key="<root>"
        )
    return config_data


def load_settings(config_file: Path | str | None = None) -> PlanweaveSettings:
    """Load settings from the environment and an optional configuration file.

    Values in the file take precedence over environment variables.

    Args:
        config_file: Optional YAML or JSON file with settings keys

    Returns:
        Validated settings

    Raises:
        ConfigurationError: If the file cannot be read or holds invalid values
    """
    if config_file is None:
        return PlanweaveSettings()

    path = Path(config_file)
    data = read_config_file(path)
    try:
        settings = PlanweaveSettings(**data)
    except PydanticValidationError as e:
        first_error = e.errors()[0]
        key = ".".join(str(part) for part in first_error["loc"]) or "<root>"
        raise ConfigurationError.for_file(
            f"Invalid configuration in {path}: {first_error['msg']}", path, e, key=key
        ) from e

    logger.info(f"Configuration loaded from {path}")
    return settings
