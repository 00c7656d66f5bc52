from __future__ import annotations

from dataclasses import dataclass
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from flex2treetop.abstract_syntax_tree.models import SourceSpan


# ==================================================
# Translation Errors
# ==================================================


@dataclass(slots=True)
class TranslationErrorDetails:
    """
    Structured metadata attached to every translation error.
    """

    node_kind: str | None
    message: str
    source_text: str | None = None
    span: "SourceSpan | None" = None


class TranslationError(Exception):
    """
    Base error type for everything raised while building or translating an AST.
    """

    def __init__(self, details: TranslationErrorDetails) -> None:
        self.details = details
        where = details.node_kind or "translation"
        super().__init__(f"[{where}] {self.__class__.__name__}: {details.message}")


class PathSyntaxError(TranslationError):
    """
    A tree-query path string could not be compiled.
    """


class NodeShapeError(TranslationError):
    """
    A node's children or text contradict the contract of its kind.
    """


class UnresolvedActionError(TranslationError):
    """
    A rule's action text matches none of the naming heuristics.
    """


class EmitterStateError(TranslationError):
    """
    Blocks were entered and exited out of order.
    """


class OverwriteRefusedError(TranslationError):
    """
    An existing grammar file was not produced by this tool.
    """


class FrontEndError(TranslationError):
    """
    The parsing front-end failed to produce a tree.
    """


def shape_error(
    node_kind: str | None,
    message: str,
    *,
    source_text: str | None = None,
    span: "SourceSpan | None" = None,
) -> NodeShapeError:
    return NodeShapeError(
        TranslationErrorDetails(
            node_kind=node_kind,
            message=message,
            source_text=source_text,
            span=span,
        )
    )
