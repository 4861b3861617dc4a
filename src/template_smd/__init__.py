"""
template-smd: a micro-templating engine for HTML-like text.
"""
import logging

__version__ = "0.2.0"

# Library logging stays silent unless the application configures it
logging.getLogger(__name__).addHandler(logging.NullHandler())

from .config import EngineConfiguration, load_config  # noqa: E402
from .error import (  # noqa: E402
    TemplateSMDError,
    TemplateError,
    PartialRecursionError,
    TemplateReadError,
)
from .templates import TemplateManager, TemplateCache, PartialRegistry, Renderer  # noqa: E402

__all__ = [
    "TemplateManager",
    "TemplateCache",
    "PartialRegistry",
    "Renderer",
    "EngineConfiguration",
    "load_config",
    "TemplateSMDError",
    "TemplateError",
    "PartialRecursionError",
    "TemplateReadError",
    "__version__",
]
