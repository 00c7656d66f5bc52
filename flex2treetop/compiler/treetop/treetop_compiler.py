from __future__ import annotations

from contextlib import ExitStack
import json
import re
import time
from typing import TextIO

from flex2treetop.abstract_syntax_tree.models import (
    ASTNode,
    NodeKind,
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
    resolve_child,
)
from flex2treetop.compiler.compiled_grammar import CompiledGrammar
from flex2treetop.compiler.context import EmissionContext, TranslationSettings
from flex2treetop.compiler.emitter import BlockKind, BufferedSink, Emitter, StreamingSink
from flex2treetop.compiler.observability import (
    UnknownDeclarationNotice,
    UnresolvedActionNotice,
    emit_event,
)
from flex2treetop.errors import (
    TranslationErrorDetails,
    UnresolvedActionError,
    shape_error,
)
from flex2treetop.traversal.tree_query import compile_path, query_all, query_first
from flex2treetop.traversal.visitor_pattern import Visitor

# ==================================================
# Constants
# ==================================================

CASE_INSENSITIVE_DECLARATION = "case-insensitive"

DEFINITIONS_COMMENT = "# from flex name definitions"
RULES_COMMENT = "# flex rules"

UNSUPPORTED_HEX_ESCAPE = "UNSUPPORTED_HEX_ESCAPE"
UNSUPPORTED_OCTAL_ESCAPE = "UNSUPPORTED_OCTAL_ESCAPE"
UNSUPPORTED_NULL_ESCAPE = "UNSUPPORTED_NULL_ESCAPE"

REPETITION_OPERATORS = frozenset({"*", "+", "?"})

_FIRST_CHILD = compile_path("[0]")
_SECOND_CHILD = compile_path("[1]")
_ALL_CHILDREN = compile_path("*")

# ==================================================
# Translation helpers
# ==================================================

_ENCLOSING_BRACES = re.compile(r"\{(.+)\}", re.DOTALL)
_RETURN_CONSTANT = re.compile(r"return\s+([A-Za-z_][A-Za-z0-9_]*)\s*;")
_COMMENT_NAME = re.compile(r"/\*([A-Za-z0-9 ]+)\*/")
_BOUND = re.compile(r"\{\s*(\d*)\s*(,?)\s*(\d*)\s*\}")
_LETTER_RANGE = re.compile(r"[a-z]-[a-z]|[A-Z]-[A-Z]")


def strip_action_braces(action_text: str) -> str:
    """
    Removes one layer of enclosing braces, and the whitespace around the code.
    """
    text = action_text.strip()
    match = _ENCLOSING_BRACES.fullmatch(text)
    if match is not None:
        text = match.group(1)
    return text.strip()


def recover_rule_name(action_text: str) -> str:
    """
    Deduces a rule name from a flex action. Actions in lexer specs usually just
    return the token constant ('{ return FOO; }'); failing that, an action that
    is only a comment ('{/* LINE BREAK */}') names the rule after the comment.
    """
    body = strip_action_braces(action_text)

    match = _RETURN_CONSTANT.fullmatch(body)
    if match is not None:
        return match.group(1)

    match = _COMMENT_NAME.fullmatch(body)
    if match is not None and match.group(1).strip():
        return match.group(1).strip().replace(" ", "_")

    raise UnresolvedActionError(
        TranslationErrorDetails(
            node_kind=NodeKind.RULE.value,
            message=f"Can't deduce a treetop rule name from: {body!r}  Skipping.",
            source_text=body,
        )
    )


def render_suffix(suffix: str) -> str:
    """
    Translates a flex repetition suffix: '*', '+' and '?' are kept, and
    '{5}' -> '5', '{3,}' -> ' 3..', '{0,4}' -> '..4', '{2,4}' -> '2..4'.
    """
    if suffix in REPETITION_OPERATORS:
        return suffix

    match = _BOUND.fullmatch(suffix)
    if match is None:
        raise shape_error(NodeKind.PATTERN_PART.value, f"unrecognized repetition suffix {suffix!r}", source_text=suffix)
    minimum, comma, maximum = match.groups()

    if not comma:
        if not minimum:
            raise shape_error(NodeKind.PATTERN_PART.value, "empty repetition bound", source_text=suffix)
        return minimum
    if not maximum:
        if not minimum:
            raise shape_error(NodeKind.PATTERN_PART.value, "repetition bound has no limits", source_text=suffix)
        return f" {minimum}.."
    if not minimum or int(minimum) == 0:
        return f"..{maximum}"
    return f"{minimum}..{maximum}"


def fold_char_class_case(text: str) -> str:
    """
    Inserts the inverse-case counterpart after every single-letter range:
    '[a-z_]' -> '[a-zA-Z_]'. A counterpart already present right after its
    range is not repeated.
    """
    parts: list[str] = []
    position = 0
    match = _LETTER_RANGE.search(text, position)
    while match is not None:
        counterpart = match.group(0).swapcase()
        parts.append(text[position:match.end()])
        parts.append(counterpart)
        position = match.end()
        if text.startswith(counterpart, position):
            position += len(counterpart)
        match = _LETTER_RANGE.search(text, position)
    parts.append(text[position:])
    return "".join(parts)


def quote_literal(text: str) -> str:
    """
    Double-quotes and escapes literal text for a Treetop terminal.
    """
    return json.dumps(text, ensure_ascii=False).replace("#{", "\\#{")


def _rendered_node(node: ASTNode) -> ASTNode:
    # a one-branch choice or one-element sequence renders as its only child
    while node.kind in (NodeKind.PATTERN_CHOICE, NodeKind.PATTERN_SEQUENCE) and len(node.children) == 1:
        node = resolve_child(node.children[0])
    return node

# ==================================================
# Treetop Compiler
# ==================================================

class TreetopCompiler(Visitor):
    """
    A visitor that translates a flex AST into Treetop grammar source.
    """

    def __init__(self, settings: TranslationSettings | None = None) -> None:
        self._settings = settings or TranslationSettings()
        self._context: EmissionContext | None = None
        self._emitter: Emitter | None = None

    @property
    def context(self) -> EmissionContext | None:
        """The context of the latest run, or None before the first `compile()`."""
        return self._context

    def compile(self, node: ASTNode, stream: TextIO | None = None) -> CompiledGrammar:
        """
        The main entry point for translating an AST. With a `stream`, the grammar is
        written through to it as it is produced and the result carries no source.
        """
        sink = BufferedSink() if stream is None else StreamingSink(stream)
        self._context = EmissionContext(self._settings) # Fresh state for each run
        self._emitter = Emitter(sink, indent_width=self._settings.indent_width)

        observability = self._settings.observability
        emit_event(observability, "translation.start", success=True, grammar=self._settings.grammar)

        started = time.perf_counter()
        error: Exception | None = None
        try:
            self.visit(node)
            self._emitter.finish()
        except Exception as exc:
            error = exc
            raise
        finally:
            emit_event(
                observability,
                "translation.end",
                success=error is None,
                grammar=self._settings.grammar,
                duration_ms=(time.perf_counter() - started) * 1000,
                rules_emitted=self._context.rules_emitted,
                rules_skipped=self._context.rules_skipped,
                notice_count=len(self._context.notices),
                error_type=type(error).__name__ if error is not None else None,
                error_message=str(error) if error is not None else None,
            )

        return CompiledGrammar(
            source=sink.getvalue() if isinstance(sink, BufferedSink) else None,
            notices=list(self._context.notices),
            rules_emitted=self._context.rules_emitted,
            rules_skipped=self._context.rules_skipped,
        )

    # --------------------------------------------------
    # Document Nodes
    # --------------------------------------------------

    def visit_FileNode(self, node: FileNode) -> None:
        """
        Emits the definitions then the rules, nested in module/grammar blocks when
        a grammar qualifier was given.
        """
        parts = self._context.namespace_parts()
        if not parts:
            self._emit_document_body(node)
            return

        *modules, grammar_name = parts
        with ExitStack() as blocks:
            for module in modules:
                blocks.enter_context(self._emitter.block(BlockKind.MODULE, module))
            blocks.enter_context(self._emitter.block(BlockKind.GRAMMAR, grammar_name))
            self._emit_document_body(node)

    def _emit_document_body(self, node: FileNode) -> None:
        definitions = node.named("definitions")
        if definitions:
            self._emitter.line(DEFINITIONS_COMMENT)
            for definition in definitions:
                self.visit(definition)

        rules = node.named("rules")
        if rules:
            self._emitter.line(RULES_COMMENT)
            for rule in rules:
                self.visit(rule)

    def visit_StartDeclarationNode(self, node: StartDeclarationNode) -> None:
        """
        Switches on case-insensitive mode, or echoes the declaration as ignored.
        """
        value = node.named("value")
        if value == CASE_INSENSITIVE_DECLARATION:
            self._context.enable_case_insensitive()
            return

        self._emitter.line(f"# declaration ignored: {quote_literal(value)}")
        self._context.notify(
            UnknownDeclarationNotice(message=f"declaration ignored: {value!r}", source_text=value)
        )

    def visit_NameDefinitionNode(self, node: NameDefinitionNode) -> None:
        """Emits a named pattern as a rule."""
        self._emit_rule(node.named("name"), resolve_child(query_first(node, _SECOND_CHILD)))

    def visit_RuleNode(self, node: RuleNode) -> None:
        """
        Emits a token rule named after its action, or skips it with a notice.
        """
        action = resolve_child(query_first(node, _SECOND_CHILD))
        try:
            name = recover_rule_name(action.text)
        except UnresolvedActionError as exc:
            self._context.rules_skipped += 1
            self._context.notify(
                UnresolvedActionNotice(message=exc.details.message, source_text=exc.details.source_text)
            )
            return

        self._emit_rule(name, resolve_child(query_first(node, _FIRST_CHILD)))

    def visit_ActionNode(self, node: ActionNode) -> None:
        """Actions produce no output; the rule translation reads them."""
        return None

    def _emit_rule(self, flex_name: str, pattern: ASTNode | None) -> None:
        if pattern is None:
            raise shape_error(NodeKind.RULE.value, f"rule {flex_name!r} has no pattern")
        with self._emitter.block(BlockKind.RULE, self._context.rule_name(flex_name)):
            self.visit(pattern)
            self._emitter.newline()
        self._context.rules_emitted += 1

    # --------------------------------------------------
    # Pattern Nodes
    # --------------------------------------------------

    def visit_PatternChoiceNode(self, node: PatternChoiceNode) -> None:
        for index, alternative in enumerate(query_all(node, _ALL_CHILDREN)):
            if index:
                self._emitter.write(" / ")
            self.visit(alternative)

    def visit_PatternSequenceNode(self, node: PatternSequenceNode) -> None:
        for index, element in enumerate(query_all(node, _ALL_CHILDREN)):
            if index:
                self._emitter.write(" ")
            self._visit_grouped(element, (NodeKind.PATTERN_CHOICE,))

    def visit_PatternPartNode(self, node: PatternPartNode) -> None:
        """
        Emits the base pattern followed directly by its repetition suffix.
        """
        base = resolve_child(query_first(node, _FIRST_CHILD))
        self._visit_grouped(base, (NodeKind.PATTERN_CHOICE, NodeKind.PATTERN_SEQUENCE))

        suffix = node.named("suffix")
        if suffix:
            self._emitter.write(render_suffix(suffix))

    def _visit_grouped(self, node: ASTNode, grouped_kinds: tuple[NodeKind, ...]) -> None:
        # PEG sequencing binds tighter than choice
        node = _rendered_node(node)
        if node.kind in grouped_kinds and len(node.children) > 1:
            self._emitter.write("(")
            self.visit(node)
            self._emitter.write(")")
        else:
            self.visit(node)

    def visit_UseDefinitionNode(self, node: UseDefinitionNode) -> None:
        self._emitter.write(self._context.rule_name(node.named("name")))

    # --------------------------------------------------
    # Terminal Nodes
    # --------------------------------------------------

    def visit_LiteralCharsNode(self, node: LiteralCharsNode) -> None:
        self._emitter.write(quote_literal(node.text))

    def visit_CharClassNode(self, node: CharClassNode) -> None:
        text = node.text
        if self._context.case_insensitive:
            text = fold_char_class_case(text)
        self._emitter.write(text)

    def visit_HexNode(self, node: HexNode) -> None:
        self._emitter.write(UNSUPPORTED_HEX_ESCAPE)

    def visit_OctalNode(self, node: OctalNode) -> None:
        self._emitter.write(UNSUPPORTED_OCTAL_ESCAPE)

    def visit_AsciiNullNode(self, node: AsciiNullNode) -> None:
        self._emitter.write(UNSUPPORTED_NULL_ESCAPE)

    def visit_BackslashOtherNode(self, node: BackslashOtherNode) -> None:
        """Emits the escape exactly as written, wrapped in double quotes."""
        self._emitter.write(f'"{node.text}"')
