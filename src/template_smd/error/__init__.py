"""
Error handling utilities and exceptions.
"""
from .exceptions import (
    ErrorContext,
    TemplateSMDError,
    ConfigurationError,
    ValidationError,
    TemplateError,
    PartialRecursionError,
    StorageError,
    TemplateReadError,
)

__all__ = [
    'ErrorContext',
    'TemplateSMDError',
    'ConfigurationError',
    'ValidationError',
    'TemplateError',
    'PartialRecursionError',
    'StorageError',
    'TemplateReadError',
]
