from dataclasses import dataclass, field

from flex2treetop.compiler.observability import TranslationNotice

# ==================================================
# Compiled Output
# ==================================================

@dataclass
class CompiledGrammar:
    """
    Represents the result of the translation process.
    """
    source: str | None # None when the grammar was streamed to the caller's output
    notices: list[TranslationNotice] = field(default_factory=list)
    rules_emitted: int = 0
    rules_skipped: int = 0
