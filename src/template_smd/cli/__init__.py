"""
Command line interface for template-smd.
"""
from .main import app, main

__all__ = ["app", "main"]
