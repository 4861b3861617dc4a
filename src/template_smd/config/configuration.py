"""
Configuration management for template-smd with validation.
"""
import json
import logging
import os
from pathlib import Path
from typing import Any, Dict, Optional

import yaml
from pydantic import BaseModel, Field, field_validator

from ..error.exceptions import ConfigurationError

logger = logging.getLogger(__name__)

ENV_PREFIX = "TEMPLATE_SMD_"


class EngineConfiguration(BaseModel):
    """Configuration for the template engine."""

    # Template locations
    base_folder: str = Field(default="", description="Folder relative template references resolve against")
    partials_folder: str = Field(default="", description="Folder searched by register_partial_from_file")
    template_suffix: str = Field(default=".html", description="Suffix that marks a reference as a file")
    encoding: str = Field(default="utf-8", description="Encoding used to read template files")

    # Cache settings
    enable_cache: bool = Field(default=True, description="Cache file contents keyed by modification time")
    dedupe_inflight: bool = Field(default=False, description="Share one pending load per path")

    # Rendering limits
    max_partial_depth: int = Field(default=64, description="Maximum partial nesting depth", ge=1, le=10000)

    # Logging
    log_level: str = "INFO"
    json_logging: bool = False

    @field_validator("base_folder", "partials_folder")
    @classmethod
    def normalize_folder(cls, value: Any) -> str:
        """Strip whitespace and trailing separators from folder paths."""
        if value is None:
            return ""
        if isinstance(value, Path):
            value = str(value)
        if not isinstance(value, str):
            raise ValueError(f"Invalid folder value: {value!r}")
        return value.strip().rstrip("/\\")

    @field_validator("template_suffix")
    @classmethod
    def validate_suffix(cls, value: str) -> str:
        """Validate template suffix."""
        value = value.strip()
        if not value.startswith(".") or len(value) < 2:
            raise ValueError(f"Invalid template suffix '{value}'. Must look like '.html'")
        return value

    @field_validator("log_level")
    @classmethod
    def validate_log_level(cls, value: str) -> str:
        """Validate log level."""
        valid_levels = {"DEBUG", "INFO", "WARNING", "ERROR", "CRITICAL"}
        value_upper = value.upper()
        if value_upper not in valid_levels:
            raise ValueError(f"Invalid log level '{value}'. Must be one of: {valid_levels}")
        return value_upper

    class Config:
        """Pydantic configuration."""
        validate_assignment = True


def ensure_engine_config(config: Optional[Any] = None) -> EngineConfiguration:
    """Ensure a valid engine configuration."""
    if isinstance(config, EngineConfiguration):
        return config
    if config is None:
        config = {}
    try:
        return EngineConfiguration(**config)
    except Exception as e:
        raise ConfigurationError(f"Invalid configuration: {str(e)}")


def load_configuration_from_file(file_path: str) -> Dict[str, Any]:
    """
    Load configuration from a file (YAML or JSON).

    Args:
        file_path: Path to the configuration file

    Returns:
        Dictionary with configuration

    Raises:
        ConfigurationError: If the file is not found or cannot be parsed
    """
    path = Path(file_path).expanduser()

    if not path.exists():
        raise ConfigurationError(f"Configuration file not found: {file_path}")

    try:
        content = path.read_text(encoding='utf-8')

        if path.suffix in (".yaml", ".yml"):
            loaded_config = yaml.safe_load(content) or {}
        elif path.suffix == ".json":
            loaded_config = json.loads(content) or {}
        else:
            raise ConfigurationError(f"Unsupported config file format: {file_path}")

        if not isinstance(loaded_config, dict):
            raise ConfigurationError(f"Configuration in {file_path} must be a mapping")

        logger.debug(f"Loaded configuration from {file_path}")
        return loaded_config

    except ConfigurationError:
        raise
    except yaml.YAMLError as e:
        raise ConfigurationError(f"Invalid YAML format in {file_path}: {str(e)}")
    except json.JSONDecodeError as e:
        raise ConfigurationError(f"Invalid JSON format in {file_path}: {str(e)}")
    except Exception as e:
        raise ConfigurationError(f"Error reading config file {file_path}: {str(e)}")


def load_configuration_from_env(prefix: str = ENV_PREFIX) -> Dict[str, Any]:
    """
    Collect configuration values from environment variables.

    ``TEMPLATE_SMD_BASE_FOLDER=./views`` becomes ``{"base_folder": "./views"}``.
    Values stay strings; pydantic coerces them on validation.
    """
    known = set(EngineConfiguration.model_fields)
    config: Dict[str, Any] = {}
    for key, value in os.environ.items():
        if not key.startswith(prefix):
            continue
        name = key[len(prefix):].lower()
        if name in known:
            config[name] = value
    return config


def merge_configs(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """Merge two configuration dictionaries."""
    result = base.copy()
    for key, value in override.items():
        if isinstance(value, dict) and key in result and isinstance(result[key], dict):
            result[key] = merge_configs(result[key], value)
        else:
            result[key] = value
    return result


def load_config(
    config_path: Optional[str] = None,
    env_prefix: str = ENV_PREFIX,
    defaults: Optional[Dict[str, Any]] = None,
) -> EngineConfiguration:
    """
    Load configuration from defaults, an optional file and the environment.

    Environment values take precedence over the file, which takes
    precedence over *defaults*.
    """
    config = defaults or {}

    if config_path:
        logger.info(f"Loading configuration from {config_path}")
        config = merge_configs(config, load_configuration_from_file(config_path))

    config = merge_configs(config, load_configuration_from_env(env_prefix))
    return ensure_engine_config(config)
