"""
Conversion of bound values to text, HTML escaping and truthiness.
"""
import json
import logging
import math
from collections.abc import Mapping
from numbers import Number
from typing import Any

from .context import ABSENT

logger = logging.getLogger(__name__)

_HTML_REPLACEMENTS = (
    ("&", "&amp;"),
    ("<", "&lt;"),
    (">", "&gt;"),
    ('"', "&quot;"),
    ("'", "&#39;"),
)


def _format_float(value: float) -> str:
    if math.isnan(value):
        return "NaN"
    if math.isinf(value):
        return "Infinity" if value > 0 else "-Infinity"
    if value.is_integer():
        return str(int(value))
    return repr(value)


def stringify(value: Any) -> str:
    """Render *value* as text without escaping. Never raises."""
    if value is None or value is ABSENT:
        return ""
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return str(value)
    if isinstance(value, float):
        return _format_float(value)
    if isinstance(value, (Mapping, list, tuple)):
        try:
            return json.dumps(value, separators=(",", ":"), ensure_ascii=False, allow_nan=True)
        except (TypeError, ValueError) as e:
            logger.debug(f"Could not serialize {type(value).__name__}: {e}")
            return ""
    try:
        return str(value)
    except Exception as e:
        logger.debug(f"Could not stringify {type(value).__name__}: {e}")
        return ""


def escape_html(value: Any) -> str:
    """
    Stringify *value* and escape ``& < > " '``.

    Objects implementing ``__html__`` (for example ``markupsafe.Markup``)
    are trusted markup and are returned as-is.
    """
    if hasattr(value, "__html__"):
        return str(value.__html__())
    text = stringify(value)
    for char, entity in _HTML_REPLACEMENTS:
        text = text.replace(char, entity)
    return text


def is_truthy(value: Any) -> bool:
    """
    Truthiness used by ``{{#if}}`` and ``{{#unless}}``.

    Falsy: absent, None, False, numeric zero, NaN and the empty string.
    Empty sequences and mappings are truthy.
    """
    if value is None or value is ABSENT or value is False:
        return False
    if isinstance(value, str):
        return value != ""
    if isinstance(value, Number):
        try:
            # NaN is unequal to itself for float and Decimal alike
            if value != value:
                return False
            return value != 0
        except ArithmeticError:
            # Decimal("sNaN") refuses comparison
            return False
        except TypeError:
            return True
    return True
