from typing import Any
from flex2treetop.abstract_syntax_tree.models import ASTNode, NODE_TYPES

class Visitor:
    """
    A base class for traversing the Abstract Syntax Tree.
    """
    def visit(self, node: ASTNode) -> Any:
        """
        The entry point for visiting a node. Dispatches to the correct visit method.
        """
        method_name = f'visit_{node.__class__.__name__}'
        visitor = getattr(self, method_name, self.generic_visit)
        return visitor(node)

    def generic_visit(self, node: ASTNode) -> Any:
        """
        Called if no explicit visit method exists for a node type.
        """
        raise NotImplementedError(f"No visit_{node.__class__.__name__} method defined in {self.__class__.__name__}")

    @classmethod
    def missing_handlers(cls) -> list[str]:
        """
        Names of the visit methods this visitor lacks for the closed set of node types.
        """
        return [
            f"visit_{node_type.__name__}"
            for node_type in NODE_TYPES.values()
            if not callable(getattr(cls, f"visit_{node_type.__name__}", None))
        ]
