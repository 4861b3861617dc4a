"""
Logging setup for template-smd.
"""
from .config import LogConfig, JsonFormatter, PACKAGE_LOGGER

__all__ = ['LogConfig', 'JsonFormatter', 'PACKAGE_LOGGER']
