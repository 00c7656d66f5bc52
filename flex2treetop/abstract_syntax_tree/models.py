from __future__ import annotations

import re
from abc import ABC
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, Mapping, Union

from flex2treetop.errors import shape_error

# ==================================================
# Kinds and schemas
# ==================================================

class NodeKind(str, Enum):
    """
    The closed set of node kinds. The value is the node's display name.
    """
    FILE = "file"
    START_DECLARATION = "start_declaration"
    NAME_DEFINITION = "name_definition"
    RULE = "rule"
    PATTERN_CHOICE = "pattern_choice"
    PATTERN_SEQUENCE = "pattern_sequence"
    PATTERN_PART = "pattern_part"
    USE_DEFINITION = "use_definition"
    LITERAL_CHARS = "literal_chars"
    CHAR_CLASS = "char_class"
    HEX = "hex"
    OCTAL = "octal"
    ASCII_NULL = "ascii_null"
    BACKSLASH_OTHER = "backslash_other"
    ACTION = "action"

PATTERN_KINDS = frozenset({
    NodeKind.PATTERN_CHOICE,
    NodeKind.PATTERN_SEQUENCE,
    NodeKind.PATTERN_PART,
    NodeKind.USE_DEFINITION,
    NodeKind.LITERAL_CHARS,
    NodeKind.CHAR_CLASS,
    NodeKind.HEX,
    NodeKind.OCTAL,
    NodeKind.ASCII_NULL,
    NodeKind.BACKSLASH_OTHER,
})

Child = Union["ASTNode", str]

@dataclass(frozen=True)
class SourceSpan:
    """Offsets of a node's matched text in the original source."""
    start: int
    end: int

@dataclass(frozen=True)
class ChildIndex:
    """A label bound to a single positional child."""
    index: int
    kinds: frozenset[NodeKind] | None = None # accepted node kinds, None for a raw text leaf

    def covers(self, position: int) -> bool:
        return position == self.index

    def accepts(self, child: Child) -> bool:
        if self.kinds is None:
            return isinstance(child, str)
        return isinstance(child, ASTNode) and child.kind in self.kinds

@dataclass(frozen=True)
class ChildRange:
    """A label bound to every child from `start` on whose kind is in `kinds`."""
    kinds: frozenset[NodeKind]
    start: int = 0

    def covers(self, position: int) -> bool:
        return position >= self.start

    def accepts(self, child: Child) -> bool:
        return isinstance(child, ASTNode) and child.kind in self.kinds

ChildBinding = Union[ChildIndex, ChildRange]

@dataclass(frozen=True)
class NodeSchema:
    """
    Static shape of one node kind: its labels, its arity and whether it collapses to raw text.
    """
    labels: Mapping[str, ChildBinding] = field(default_factory=dict)
    min_children: int = 0
    max_children: int | None = None
    terminal: bool = False

    def bindings_at(self, position: int) -> list[ChildBinding]:
        return [binding for binding in self.labels.values() if binding.covers(position)]

_DEFINITION_KINDS = frozenset({NodeKind.START_DECLARATION, NodeKind.NAME_DEFINITION})

NODE_SCHEMAS: dict[NodeKind, NodeSchema] = {
    NodeKind.FILE: NodeSchema(
        labels={
            "definitions": ChildRange(kinds=_DEFINITION_KINDS),
            "rules": ChildRange(kinds=frozenset({NodeKind.RULE})),
        },
    ),
    NodeKind.START_DECLARATION: NodeSchema(
        labels={"value": ChildIndex(0)},
        min_children=1,
        max_children=1,
    ),
    NodeKind.NAME_DEFINITION: NodeSchema(
        labels={"name": ChildIndex(0), "definition": ChildIndex(1, PATTERN_KINDS)},
        min_children=2,
        max_children=2,
    ),
    NodeKind.RULE: NodeSchema(
        labels={"pattern": ChildIndex(0, PATTERN_KINDS), "action": ChildIndex(1, frozenset({NodeKind.ACTION}))},
        min_children=2,
        max_children=2,
    ),
    NodeKind.PATTERN_CHOICE: NodeSchema(
        labels={"alternatives": ChildRange(kinds=PATTERN_KINDS)},
        min_children=1,
    ),
    NodeKind.PATTERN_SEQUENCE: NodeSchema(
        labels={"elements": ChildRange(kinds=PATTERN_KINDS)},
        min_children=1,
    ),
    NodeKind.PATTERN_PART: NodeSchema(
        labels={"base": ChildIndex(0, PATTERN_KINDS), "suffix": ChildIndex(1)},
        min_children=1,
        max_children=2,
    ),
    NodeKind.USE_DEFINITION: NodeSchema(
        labels={"name": ChildIndex(0)},
        min_children=1,
        max_children=1,
    ),
    NodeKind.LITERAL_CHARS: NodeSchema(terminal=True),
    NodeKind.CHAR_CLASS: NodeSchema(terminal=True),
    NodeKind.HEX: NodeSchema(terminal=True),
    NodeKind.OCTAL: NodeSchema(terminal=True),
    NodeKind.ASCII_NULL: NodeSchema(terminal=True),
    NodeKind.BACKSLASH_OTHER: NodeSchema(terminal=True),
    NodeKind.ACTION: NodeSchema(terminal=True),
}

# ==================================================
# Base node
# ==================================================

@dataclass(frozen=True)
class ASTNode(ABC):
    """
    A generic AST node. Every concrete node type fixes its `kind`, and the kind's
    schema fixes the node's shape.

    Composite kinds are built from `children` (nodes or raw text leaves). Terminal
    kinds are built from raw `text`, or from children that are collapsed into their
    concatenated text exactly once, here at construction.
    """
    children: tuple[Child, ...] = ()
    text: str | None = None
    span: SourceSpan | None = None

    kind: ClassVar[NodeKind]

    def __post_init__(self) -> None:
        object.__setattr__(self, "children", tuple(self.children))
        schema = self.schema()
        if schema.terminal:
            self._collapse()
        else:
            self._check_shape(schema)

    @classmethod
    def schema(cls) -> NodeSchema:
        return NODE_SCHEMAS[cls.kind]

    @property
    def node_name(self) -> str:
        return self.kind.value

    @property
    def is_terminal(self) -> bool:
        return self.schema().terminal

    @property
    def text_value(self) -> str:
        """
        The raw matched text of this subtree.
        """
        if self.text is not None:
            return self.text
        return "".join(_text_of(child) for child in self.children)

    def child(self, index: int) -> Child | None:
        """
        Returns the nth positional child, or None when there is no such child.
        """
        if 0 <= index < len(self.children):
            return self.children[index]
        return None

    def named(self, label: str) -> Child | list[Child] | None:
        """
        Returns the child bound to `label`: a single child (or None) for index
        labels, an ordered list for range labels.
        """
        binding = self.schema().labels.get(label)
        if binding is None:
            raise self._shape_error(f"{self.node_name} has no child labelled {label!r}")
        if isinstance(binding, ChildIndex):
            return self.child(binding.index)
        return [child for child in self.children[binding.start:] if binding.accepts(child)]

    def _collapse(self) -> None:
        if self.children:
            if self.text is not None:
                raise self._shape_error("terminal node given both children and text")
            object.__setattr__(self, "text", "".join(_text_of(child) for child in self.children))
            object.__setattr__(self, "children", ())
        elif self.text is None:
            raise self._shape_error("terminal node needs raw text")

    def _check_shape(self, schema: NodeSchema) -> None:
        if self.text is not None:
            raise self._shape_error("composite node takes children, not raw text")
        count = len(self.children)
        if count < schema.min_children or (schema.max_children is not None and count > schema.max_children):
            raise self._shape_error(f"{self.node_name} cannot have {count} children")
        for position, child in enumerate(self.children):
            if not any(binding.accepts(child) for binding in schema.bindings_at(position)):
                raise self._shape_error(
                    f"{self.node_name} does not accept {_describe(child)} at position {position}"
                )

    def _shape_error(self, message: str):
        return shape_error(self.kind.value, message, source_text=self.text, span=self.span)

def _text_of(child: Child) -> str:
    return child if isinstance(child, str) else child.text_value

def _describe(child: object) -> str:
    if isinstance(child, ASTNode):
        return f"a {child.node_name} node"
    if isinstance(child, str):
        return "a text leaf"
    return type(child).__name__

def resolve_child(child: Child | None) -> ASTNode | None:
    """
    Returns the node form of a child. An empty text leaf has no node form; a
    non-empty text leaf standing where a node is expected is a shape error.
    """
    if child is None or isinstance(child, ASTNode):
        return child
    if child == "":
        return None
    raise shape_error(None, f"expected a node, got raw text {child!r}", source_text=child)

# ==================================================
# Document nodes
# ==================================================

@dataclass(frozen=True)
class FileNode(ASTNode):
    """The document root: start declarations, name definitions and rules in source order."""
    kind: ClassVar[NodeKind] = NodeKind.FILE

@dataclass(frozen=True)
class StartDeclarationNode(ASTNode):
    """A `%option`-style declaration from the definitions section."""
    kind: ClassVar[NodeKind] = NodeKind.START_DECLARATION

@dataclass(frozen=True)
class NameDefinitionNode(ASTNode):
    """A named pattern (e.g. 'DIGIT [0-9]')."""
    kind: ClassVar[NodeKind] = NodeKind.NAME_DEFINITION

@dataclass(frozen=True)
class RuleNode(ASTNode):
    """A token rule: a pattern and the action code that follows it."""
    kind: ClassVar[NodeKind] = NodeKind.RULE

# ==================================================
# Pattern nodes
# ==================================================

@dataclass(frozen=True)
class PatternChoiceNode(ASTNode):
    """Alternatives separated by '|'."""
    kind: ClassVar[NodeKind] = NodeKind.PATTERN_CHOICE

@dataclass(frozen=True)
class PatternSequenceNode(ASTNode):
    """Patterns matched one after another."""
    kind: ClassVar[NodeKind] = NodeKind.PATTERN_SEQUENCE

@dataclass(frozen=True)
class PatternPartNode(ASTNode):
    """
    A pattern with an optional repetition suffix ('*', '+', '?') or bound ('{2,4}').
    """
    kind: ClassVar[NodeKind] = NodeKind.PATTERN_PART

@dataclass(frozen=True)
class UseDefinitionNode(ASTNode):
    """A reference to a named pattern (e.g. '{DIGIT}')."""
    kind: ClassVar[NodeKind] = NodeKind.USE_DEFINITION

# ==================================================
# Terminal nodes
# ==================================================

@dataclass(frozen=True)
class LiteralCharsNode(ASTNode):
    kind: ClassVar[NodeKind] = NodeKind.LITERAL_CHARS

@dataclass(frozen=True)
class CharClassNode(ASTNode):
    kind: ClassVar[NodeKind] = NodeKind.CHAR_CLASS

@dataclass(frozen=True)
class HexNode(ASTNode):
    kind: ClassVar[NodeKind] = NodeKind.HEX

@dataclass(frozen=True)
class OctalNode(ASTNode):
    kind: ClassVar[NodeKind] = NodeKind.OCTAL

@dataclass(frozen=True)
class AsciiNullNode(ASTNode):
    kind: ClassVar[NodeKind] = NodeKind.ASCII_NULL

@dataclass(frozen=True)
class BackslashOtherNode(ASTNode):
    kind: ClassVar[NodeKind] = NodeKind.BACKSLASH_OTHER

@dataclass(frozen=True)
class ActionNode(ASTNode):
    """The raw action code of a rule. Only ever read by the rule translation."""
    kind: ClassVar[NodeKind] = NodeKind.ACTION

NODE_TYPES: dict[NodeKind, type[ASTNode]] = {
    node_type.kind: node_type
    for node_type in (
        FileNode,
        StartDeclarationNode,
        NameDefinitionNode,
        RuleNode,
        PatternChoiceNode,
        PatternSequenceNode,
        PatternPartNode,
        UseDefinitionNode,
        LiteralCharsNode,
        CharClassNode,
        HexNode,
        OctalNode,
        AsciiNullNode,
        BackslashOtherNode,
        ActionNode,
    )
}

# ==================================================
# Construction helpers
# ==================================================

_SHAPE_SUFFIX = re.compile(r"^(?P<stem>[A-Za-z]+?)Node\d*$")
_CAMEL_BOUNDARY = re.compile(r"([a-z0-9])([A-Z])")

def infer_node_name(identifier: str) -> str:
    """
    Derives a node name from a shape identifier: 'PatternChoiceNode' -> 'pattern_choice'.
    """
    match = _SHAPE_SUFFIX.match(identifier)
    if match is None:
        raise shape_error(None, f"cannot infer a node name from {identifier!r}")
    return _CAMEL_BOUNDARY.sub(r"\1_\2", match.group("stem")).lower()

def kind_for_name(name: str) -> NodeKind:
    try:
        return NodeKind(name)
    except ValueError:
        raise shape_error(None, f"unknown node kind {name!r}") from None

def build_node(
    kind: NodeKind | str,
    children: list[Child] | tuple[Child, ...] | None = None,
    text: str | None = None,
    span: SourceSpan | None = None,
) -> ASTNode:
    """
    Builds the node for `kind` from either an ordered child list or raw text.
    """
    node_kind = kind if isinstance(kind, NodeKind) else kind_for_name(kind)
    return NODE_TYPES[node_kind](children=tuple(children or ()), text=text, span=span)
