from __future__ import annotations

import re
from dataclasses import dataclass
from functools import lru_cache
from typing import Union

from flex2treetop.abstract_syntax_tree.models import ASTNode, Child
from flex2treetop.errors import PathSyntaxError, TranslationErrorDetails

# ==================================================
# Path Expressions
# ==================================================

WILDCARD = "*"

PathStep = Union[str, int] # WILDCARD or a 0-based child index

_STEP = re.compile(r"\*|\[(\d+)\]")


@dataclass(frozen=True)
class PathExpression:
    """
    A compiled child-selection path such as '[1]*' or '*[0]'.

    The first step selects among the node's own children; every later step is
    applied to each node selected so far and the results are concatenated.
    """
    steps: tuple[PathStep, ...]
    source: str = ""

    @classmethod
    def compile(cls, path: str) -> "PathExpression":
        return compile_path(path)

    def evaluate(self, node: ASTNode) -> list[Child]:
        selected = _select(node, self.steps[0])
        for step in self.steps[1:]:
            selected = [found for current in selected for found in _select(current, step)]
        return selected

    def first(self, node: ASTNode) -> Child | None:
        selected = self.evaluate(node)
        return selected[0] if selected else None


def _select(child: Child, step: PathStep) -> list[Child]:
    # text leaves and collapsed terminals have no children
    if not isinstance(child, ASTNode):
        return []
    if step == WILDCARD:
        return list(child.children)
    found = child.child(step)
    return [] if found is None else [found]


@lru_cache(maxsize=256)
def compile_path(path: str) -> PathExpression:
    """
    Compiles a path string. Raises PathSyntaxError for anything but a non-empty
    run of '*' and '[<digits>]' steps.
    """
    if not path:
        raise _syntax_error(path, 0, "path must contain at least one step")

    steps: list[PathStep] = []
    position = 0
    while position < len(path):
        match = _STEP.match(path, position)
        if match is None:
            raise _syntax_error(path, position, f"expecting '*' or '[' near {path[position:]!r}")
        steps.append(WILDCARD if match.group(1) is None else int(match.group(1)))
        position = match.end()
    return PathExpression(steps=tuple(steps), source=path)


def _syntax_error(path: str, position: int, message: str) -> PathSyntaxError:
    return PathSyntaxError(
        TranslationErrorDetails(
            node_kind=None,
            message=f"{message} (offset {position} of {path!r})",
            source_text=path,
        )
    )

# ==================================================
# Convenience accessors
# ==================================================

def query_all(node: ASTNode, path: str | PathExpression) -> list[Child]:
    expression = path if isinstance(path, PathExpression) else compile_path(path)
    return expression.evaluate(node)


def query_first(node: ASTNode, path: str | PathExpression) -> Child | None:
    expression = path if isinstance(path, PathExpression) else compile_path(path)
    return expression.first(node)
