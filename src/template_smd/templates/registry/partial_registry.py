"""
Registry of named partial templates.
"""
import logging
from typing import Dict, Iterator, List, Optional

from ...error.exceptions import ErrorContext, ValidationError
from ..parser import Node, parse

logger = logging.getLogger(__name__)


class PartialRegistry:
    """Maps partial names to raw template text."""

    def __init__(self, partials: Optional[Dict[str, str]] = None):
        """
        Initialize the partial registry.

        Args:
            partials: Optional initial ``name -> text`` mapping
        """
        self._partials: Dict[str, str] = {}
        self._parsed: Dict[str, List[Node]] = {}
        for name, text in (partials or {}).items():
            self.register(name, text)

    def register(self, name: str, text: str) -> None:
        """
        Register (or replace) a partial.

        Raises:
            ValidationError: If the name is empty or either argument is not a string
        """
        if not isinstance(name, str) or not name.strip():
            raise ValidationError(
                "Partial name must be a non-empty string.",
                ErrorContext("PartialRegistry", "register"),
            )
        if not isinstance(text, str):
            raise ValidationError(
                "Partial template must be a string.",
                ErrorContext("PartialRegistry", "register", name=name),
            )
        key = name.strip()
        if key in self._partials:
            logger.debug(f"Replacing partial '{key}'")
        self._partials[key] = text
        self._parsed.pop(key, None)

    def unregister(self, name: str) -> bool:
        """Remove a partial. Returns True if it was registered."""
        key = name.strip()
        self._parsed.pop(key, None)
        return self._partials.pop(key, None) is not None

    def get(self, name: str) -> Optional[str]:
        """Get the raw text of a partial, or None."""
        return self._partials.get(name.strip())

    def get_parsed(self, name: str) -> Optional[List[Node]]:
        """Get the parsed node tree of a partial, parsing it on first use."""
        key = name.strip()
        if key not in self._partials:
            return None
        nodes = self._parsed.get(key)
        if nodes is None:
            nodes = parse(self._partials[key])
            self._parsed[key] = nodes
        return nodes

    def clear(self) -> None:
        self._partials.clear()
        self._parsed.clear()

    def names(self) -> List[str]:
        return sorted(self._partials)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.strip() in self._partials

    def __len__(self) -> int:
        return len(self._partials)

    def __iter__(self) -> Iterator[str]:
        return iter(self._partials)
