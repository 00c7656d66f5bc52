import logging

from flex2treetop.abstract_syntax_tree.models import ActionNode, FileNode, LiteralCharsNode, RuleNode, StartDeclarationNode
from flex2treetop.compiler import TranslationSettings, TreetopCompiler
from flex2treetop.compiler.observability import (
    ObservabilitySettings,
    TranslationEvent,
    compose_observers,
    make_json_event_logger,
    make_json_notice_logger,
)

logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s %(message)s")
logger = logging.getLogger("flex2treetop.sample")


def print_summary(event: TranslationEvent) -> None:
    if event.event != "translation.end":
        return
    print(
        f"success={event.success} duration_ms={event.duration_ms:.2f} "
        f"emitted={event.rules_emitted} skipped={event.rules_skipped} metadata={dict(event.metadata)}"
    )


settings = TranslationSettings(
    observability=ObservabilitySettings(
        event_observer=compose_observers(make_json_event_logger(logger=logger), print_summary),
        notice_observer=make_json_notice_logger(logger=logger),
        metadata={"service": "flex2treetop-sample"},
    ),
)

lexer = FileNode(
    children=[
        StartDeclarationNode(children=["yylineno"]),
        RuleNode(children=[LiteralCharsNode(text="while"), ActionNode(text="{ return WHILE; }")]),
        RuleNode(children=[LiteralCharsNode(text="\t"), ActionNode(text="{ column += 8; }")]),
    ]
)

print(TreetopCompiler(settings).compile(lexer).source)
