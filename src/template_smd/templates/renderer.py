"""
Renderer: evaluates a parsed directive tree against a binding context.

Each directive kind has its own evaluator. Block evaluators hand their
bodies back to the renderer, so nested blocks, partials and placeholders are
always evaluated in the innermost enclosing scope.
"""
import logging
from collections.abc import Mapping
from typing import Any, List, Optional

from ..error.exceptions import ErrorContext, PartialRecursionError
from .context import Scope, is_missing
from .parser import (
    ConditionalNode,
    LoopNode,
    Node,
    PartialNode,
    TextNode,
    VariableNode,
    parse,
)
from .registry import PartialRegistry
from .values import escape_html, is_truthy, stringify

logger = logging.getLogger(__name__)

DEFAULT_MAX_PARTIAL_DEPTH = 64


class Interpolator:
    """Expands ``{{ path }}`` (escaped) and ``{{{ path }}}`` (raw) placeholders."""

    def evaluate(self, node: VariableNode, scope: Scope) -> str:
        value = scope.lookup(node.path)
        if not is_missing(value):
            return stringify(value) if node.raw else escape_html(value)
        if node.default is not None:
            return node.default if node.raw else escape_html(node.default)
        return ""


class ConditionalEvaluator:
    """Expands ``{{#if}}`` and ``{{#unless}}`` blocks."""

    def __init__(self, renderer: "Renderer"):
        self._renderer = renderer

    def evaluate(self, node: ConditionalNode, scope: Scope, depth: int) -> str:
        passed = is_truthy(scope.lookup(node.path))
        if node.negate:
            passed = not passed
        branch = node.body if passed else node.otherwise
        return self._renderer.render_nodes(branch, scope, depth)


class LoopEvaluator:
    """Expands ``{{#each}}`` blocks, one child scope per item."""

    def __init__(self, renderer: "Renderer"):
        self._renderer = renderer

    @staticmethod
    def _is_sequence(value: Any) -> bool:
        return isinstance(value, (list, tuple))

    def evaluate(self, node: LoopNode, scope: Scope, depth: int) -> str:
        items = scope.lookup(node.path)
        if not self._is_sequence(items) or not items:
            # The empty branch sees the enclosing scope, never an item scope
            return self._renderer.render_nodes(node.empty, scope, depth)
        return "".join(
            self._renderer.render_nodes(node.body, scope.child(item, index), depth)
            for index, item in enumerate(items)
        )


class PartialExpander:
    """Expands ``{{> name}}`` from the partial registry."""

    def __init__(self, renderer: "Renderer", partials: PartialRegistry, max_depth: int):
        self._renderer = renderer
        self._partials = partials
        self.max_depth = max_depth

    def evaluate(self, node: PartialNode, scope: Scope, depth: int) -> str:
        nodes = self._partials.get_parsed(node.name)
        if nodes is None:
            logger.warning(f'Missing partial "{node.name}".', extra={"partial": node.name})
            return ""
        if depth >= self.max_depth:
            raise PartialRecursionError(
                node.name,
                depth + 1,
                ErrorContext("PartialExpander", "evaluate", max_depth=self.max_depth),
            )
        return self._renderer.render_nodes(nodes, scope, depth + 1)


class Renderer:
    """Renders template strings against binding contexts."""

    def __init__(
        self,
        partials: Optional[PartialRegistry] = None,
        max_partial_depth: int = DEFAULT_MAX_PARTIAL_DEPTH,
    ):
        """
        Initialize the renderer.

        Args:
            partials: Registry consulted for ``{{> name}}``; an empty one is created if omitted
            max_partial_depth: Maximum nesting of partial inclusions
        """
        self.partials = partials if partials is not None else PartialRegistry()
        self.interpolator = Interpolator()
        self.conditionals = ConditionalEvaluator(self)
        self.loops = LoopEvaluator(self)
        self.partial_expander = PartialExpander(self, self.partials, max_partial_depth)

    @property
    def max_partial_depth(self) -> int:
        return self.partial_expander.max_depth

    @max_partial_depth.setter
    def max_partial_depth(self, value: int) -> None:
        self.partial_expander.max_depth = value

    def render_string(self, text: Any, context: Optional[Any] = None) -> str:
        """
        Render *text* against *context*.

        A non-string template is logged and renders as an empty string.

        Raises:
            PartialRecursionError: If partials nest deeper than the ceiling
        """
        if not isinstance(text, str):
            logger.error(f"Template must be a string, got {type(text).__name__}.")
            return ""
        if isinstance(context, Scope):
            scope = context
        else:
            if context is not None and not isinstance(context, Mapping):
                logger.debug(f"Rendering against non-mapping context of type {type(context).__name__}")
            scope = Scope(context if context is not None else {})
        return self.render_nodes(parse(text), scope, 0)

    def render_nodes(self, nodes: List[Node], scope: Scope, depth: int) -> str:
        parts = []
        for node in nodes:
            if isinstance(node, TextNode):
                parts.append(node.text)
            elif isinstance(node, VariableNode):
                parts.append(self.interpolator.evaluate(node, scope))
            elif isinstance(node, ConditionalNode):
                parts.append(self.conditionals.evaluate(node, scope, depth))
            elif isinstance(node, LoopNode):
                parts.append(self.loops.evaluate(node, scope, depth))
            elif isinstance(node, PartialNode):
                parts.append(self.partial_expander.evaluate(node, scope, depth))
        return "".join(parts)
