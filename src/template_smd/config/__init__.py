"""
Configuration components for template-smd.
"""
from .configuration import (
    ENV_PREFIX,
    EngineConfiguration,
    ensure_engine_config,
    load_config,
    load_configuration_from_env,
    load_configuration_from_file,
    merge_configs,
)

__all__ = [
    "ENV_PREFIX",
    "EngineConfiguration",
    "ensure_engine_config",
    "load_config",
    "load_configuration_from_env",
    "load_configuration_from_file",
    "merge_configs",
]
