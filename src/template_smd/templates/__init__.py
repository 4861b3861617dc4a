"""
Template system: parser, renderer, partial registry and file cache.
"""

from .context import ABSENT, Scope, LoopScope, resolve
from .values import stringify, escape_html, is_truthy
from .parser import parse, tokenize
from .registry import PartialRegistry
from .renderer import Renderer
from .manager import TemplateManager, TemplateCache, Section
from .utils import resolve_template_path

__all__ = [
    'ABSENT',
    'Scope',
    'LoopScope',
    'resolve',
    'stringify',
    'escape_html',
    'is_truthy',
    'parse',
    'tokenize',
    'PartialRegistry',
    'Renderer',
    'TemplateManager',
    'TemplateCache',
    'Section',
    'resolve_template_path',
]
