"""
Tokenizer and recursive-descent parser for template text.

The parser turns a template into a small directive tree:

    TextNode        literal text, emitted unchanged
    VariableNode    {{ path }} / {{{ path }}} with an optional literal default
    PartialNode     {{> name}}
    ConditionalNode {{#if path}} ... {{else}} ... {{/if}} and the #unless form
    LoopNode        {{#each path}} ... {{empty}} ... {{/each}}

Block tags are matched by nesting level, so an ``{{#if}}`` nested inside
another ``{{#if}}`` closes at its own ``{{/if}}``. Anything that looks like a
tag but is not one of the forms above is kept as literal text, and so is a
block tag without a partner: a stray or mismatched close tag, an open tag
that is never closed, or a second ``{{else}}``/``{{empty}}`` in one block.
Those are logged as warnings and parsing never fails.
"""
import logging
import re
from dataclasses import dataclass, field
from typing import Iterator, List, Optional, Union

logger = logging.getLogger(__name__)

_PATH = r"[\w.@]+"

_TAG_RE = re.compile(
    r"""
      \{\{\{\s*(?P<raw>""" + _PATH + r""")
            (?:\s*\|\|\s*(?P<rq>["'])(?P<rdefault>.*?)(?P=rq))?\s*\}\}\}
    | \{\{\#(?P<open>if|unless|each)\s+(?P<opath>""" + _PATH + r""")\s*\}\}
    | \{\{/(?P<close>if|unless|each)\s*\}\}
    | \{\{\s*(?P<marker>else|empty)\s*\}\}
    | \{\{>\s*(?P<partial>[\w./-]+)\s*\}\}
    | \{\{\s*(?P<var>""" + _PATH + r""")
            (?:\s*\|\|\s*(?P<q>["'])(?P<default>.*?)(?P=q))?\s*\}\}
    """,
    re.VERBOSE | re.DOTALL,
)

# Marker tag accepted by each block kind
_BLOCK_MARKERS = {"if": "else", "unless": "else", "each": "empty"}


@dataclass
class Token:
    kind: str  # text, var, open, close, marker, partial
    value: str = ""
    line: int = 1
    raw: bool = False
    default: Optional[str] = None
    path: Optional[str] = None
    source: str = ""


@dataclass
class TextNode:
    text: str


@dataclass
class VariableNode:
    path: str
    raw: bool = False
    default: Optional[str] = None


@dataclass
class PartialNode:
    name: str


@dataclass
class ConditionalNode:
    path: str
    negate: bool = False
    body: List["Node"] = field(default_factory=list)
    otherwise: List["Node"] = field(default_factory=list)


@dataclass
class LoopNode:
    path: str
    body: List["Node"] = field(default_factory=list)
    empty: List["Node"] = field(default_factory=list)


Node = Union[TextNode, VariableNode, PartialNode, ConditionalNode, LoopNode]


def tokenize(text: str) -> Iterator[Token]:
    """Split *text* into literal and directive tokens."""
    pos = 0
    line = 1
    for match in _TAG_RE.finditer(text):
        start, end = match.span()
        if start > pos:
            literal = text[pos:start]
            yield Token("text", literal, line)
            line += literal.count("\n")

        if match.group("raw") is not None:
            yield Token("var", match.group("raw"), line, raw=True, default=match.group("rdefault"))
        elif match.group("open") is not None:
            yield Token("open", match.group("open"), line, path=match.group("opath"), source=match.group(0))
        elif match.group("close") is not None:
            yield Token("close", match.group("close"), line, source=match.group(0))
        elif match.group("marker") is not None:
            yield Token("marker", match.group("marker"), line, source=match.group(0))
        elif match.group("partial") is not None:
            yield Token("partial", match.group("partial").strip(), line)
        else:
            yield Token("var", match.group("var"), line, default=match.group("default"))

        line += match.group(0).count("\n")
        pos = end

    if pos < len(text):
        yield Token("text", text[pos:], line)


class _Frame:
    """An open block while parsing."""

    def __init__(self, token: Token):
        self.token = token
        self.primary: List[Node] = []
        self.secondary: List[Node] = []
        self.marker: Optional[Token] = None

    @property
    def current(self) -> List[Node]:
        return self.secondary if self.marker is not None else self.primary

    def build(self) -> Node:
        kind = self.token.value
        path = self.token.path
        if kind == "each":
            return LoopNode(path, self.primary, self.secondary)
        return ConditionalNode(path, kind == "unless", self.primary, self.secondary)

    def unwind(self) -> List[Node]:
        """Nodes of a block that never closed, with its tags kept as text."""
        nodes: List[Node] = [TextNode(self.token.source)]
        for node in self.primary:
            _append(nodes, node)
        if self.marker is not None:
            _append(nodes, TextNode(self.marker.source))
            for node in self.secondary:
                _append(nodes, node)
        return nodes


def _append(nodes: List[Node], node: Node) -> None:
    if isinstance(node, TextNode) and nodes and isinstance(nodes[-1], TextNode):
        nodes[-1] = TextNode(nodes[-1].text + node.text)
    else:
        nodes.append(node)


def parse(text: str) -> List[Node]:
    """
    Parse *text* into a list of nodes.

    Unbalanced block tags are kept as literal text and logged as warnings.
    """
    root: List[Node] = []
    stack: List[_Frame] = []

    def target() -> List[Node]:
        return stack[-1].current if stack else root

    def keep_literal(token: Token, reason: str) -> None:
        logger.warning(f"{reason} {token.source} on line {token.line}, kept as text")
        _append(target(), TextNode(token.source))

    for token in tokenize(text):
        if token.kind == "text":
            _append(target(), TextNode(token.value))
        elif token.kind == "var":
            target().append(VariableNode(token.value, token.raw, token.default))
        elif token.kind == "partial":
            target().append(PartialNode(token.value))
        elif token.kind == "open":
            stack.append(_Frame(token))
        elif token.kind == "marker":
            frame = stack[-1] if stack else None
            if frame is None or _BLOCK_MARKERS[frame.token.value] != token.value:
                # Outside its block the marker is an ordinary placeholder
                target().append(VariableNode(token.value))
            elif frame.marker is not None:
                keep_literal(token, "Duplicate")
            else:
                frame.marker = token
        elif token.kind == "close":
            if not stack:
                keep_literal(token, "Unexpected")
            elif stack[-1].token.value != token.value:
                keep_literal(token, "Mismatched")
            else:
                frame = stack.pop()
                target().append(frame.build())

    while stack:
        frame = stack.pop()
        logger.warning(f"Unclosed {frame.token.source} on line {frame.token.line}, kept as text")
        for node in frame.unwind():
            _append(target(), node)
    return root
