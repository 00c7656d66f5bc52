__version__ = "0.1.0"

from flex2treetop.abstract_syntax_tree.models import ASTNode, NodeKind, SourceSpan, build_node
from flex2treetop.abstract_syntax_tree.produced import ProducedNode, build_tree
from flex2treetop.compiler import (
    BlockKind,
    BufferedSink,
    CompiledGrammar,
    Emitter,
    StreamingSink,
    TranslationSettings,
    TreetopCompiler,
)
from flex2treetop.compiler.observability import (
    ObservabilitySettings,
    TranslationEvent,
    TranslationNotice,
    UnknownDeclarationNotice,
    UnresolvedActionNotice,
    compose_observers,
    make_json_event_logger,
    make_json_notice_logger,
)
from flex2treetop.errors import (
    EmitterStateError,
    FrontEndError,
    NodeShapeError,
    OverwriteRefusedError,
    PathSyntaxError,
    TranslationError,
    UnresolvedActionError,
)
from flex2treetop.host import GrammarFileStatus, write_grammar_file
from flex2treetop.traversal.tree_query import PathExpression, compile_path, query_all, query_first

__all__ = [
    "__version__",
    "ASTNode",
    "NodeKind",
    "SourceSpan",
    "build_node",
    "ProducedNode",
    "build_tree",
    "BlockKind",
    "BufferedSink",
    "CompiledGrammar",
    "Emitter",
    "StreamingSink",
    "TranslationSettings",
    "TreetopCompiler",
    "ObservabilitySettings",
    "TranslationEvent",
    "TranslationNotice",
    "UnknownDeclarationNotice",
    "UnresolvedActionNotice",
    "compose_observers",
    "make_json_event_logger",
    "make_json_notice_logger",
    "EmitterStateError",
    "FrontEndError",
    "NodeShapeError",
    "OverwriteRefusedError",
    "PathSyntaxError",
    "TranslationError",
    "UnresolvedActionError",
    "GrammarFileStatus",
    "write_grammar_file",
    "PathExpression",
    "compile_path",
    "query_all",
    "query_first",
]
