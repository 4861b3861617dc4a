"""
Partial registry module.
"""
from .partial_registry import PartialRegistry

__all__ = [
    'PartialRegistry'
]
