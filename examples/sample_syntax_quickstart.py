from flex2treetop.abstract_syntax_tree.models import (
    ActionNode,
    CharClassNode,
    FileNode,
    LiteralCharsNode,
    NameDefinitionNode,
    PatternChoiceNode,
    PatternPartNode,
    RuleNode,
    StartDeclarationNode,
    UseDefinitionNode,
)
from flex2treetop.compiler import TranslationSettings, TreetopCompiler


def main() -> None:
    # Syntax-only example: build a flex AST by hand and translate it to Treetop.
    lexer = FileNode(
        children=[
            StartDeclarationNode(children=["case-insensitive"]),
            NameDefinitionNode(children=["DIGIT", CharClassNode(text="[0-9]")]),
            RuleNode(
                children=[
                    PatternChoiceNode(children=[LiteralCharsNode(text="if"), LiteralCharsNode(text="when")]),
                    ActionNode(text="{ return IF; }"),
                ]
            ),
            RuleNode(
                children=[
                    PatternPartNode(children=[UseDefinitionNode(children=["DIGIT"]), "+"]),
                    ActionNode(text="{ return NUMBER; }"),
                ]
            ),
            RuleNode(
                children=[
                    CharClassNode(text="[a-z_]"),
                    ActionNode(text="{ yylval = strdup(yytext); }"),
                ]
            ),
        ]
    )

    compiled = TreetopCompiler(TranslationSettings(grammar="Calc::Lexer")).compile(lexer)

    print(compiled.source)
    print("Rules emitted:", compiled.rules_emitted)
    print("Rules skipped:", compiled.rules_skipped)
    for notice in compiled.notices:
        print(f"[{notice.code}] {notice.message}")


if __name__ == "__main__":
    main()
