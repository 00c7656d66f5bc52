from flex2treetop.host.grammar_file import (
    AUTOGENERATED_LINE,
    GENERATED_GRAMMAR_DIR,
    GrammarFileResult,
    GrammarFileStatus,
    is_autogenerated,
    write_grammar_file,
)

__all__ = [
    "AUTOGENERATED_LINE",
    "GENERATED_GRAMMAR_DIR",
    "GrammarFileResult",
    "GrammarFileStatus",
    "is_autogenerated",
    "write_grammar_file",
]
