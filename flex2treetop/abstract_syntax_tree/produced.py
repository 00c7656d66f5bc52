from __future__ import annotations

from typing import Protocol, Sequence, Union, runtime_checkable

from flex2treetop.abstract_syntax_tree.models import (
    NODE_SCHEMAS,
    ASTNode,
    Child,
    SourceSpan,
    build_node,
    infer_node_name,
    kind_for_name,
)

# ==================================================
# Front-end node capability
# ==================================================

@runtime_checkable
class ProducedNode(Protocol):
    """
    The minimal view of a parse-tree node that a parsing front-end must provide.
    """

    @property
    def kind(self) -> str | None:
        """The node's kind name, or None to infer it from the node's type name."""
        ...

    @property
    def elements(self) -> Sequence[Union["ProducedNode", str]]:
        ...

    @property
    def text(self) -> str:
        ...

    @property
    def span(self) -> tuple[int, int] | None:
        ...


def build_tree(produced: ProducedNode) -> ASTNode:
    """
    Converts a front-end parse tree into the core AST, depth-first.

    Terminal kinds are built from the produced node's own matched text; their
    elements are untyped syntax and are never converted.
    """
    name = produced.kind or infer_node_name(type(produced).__name__)
    kind = kind_for_name(name)
    span = SourceSpan(*produced.span) if produced.span is not None else None

    if NODE_SCHEMAS[kind].terminal:
        return build_node(kind, text=produced.text, span=span)

    children: list[Child] = []
    for element in produced.elements:
        children.append(element if isinstance(element, str) else build_tree(element))
    return build_node(kind, children=children, span=span)
