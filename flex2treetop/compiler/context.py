from __future__ import annotations

import re
from dataclasses import dataclass, field

from flex2treetop.compiler.observability import ObservabilitySettings, TranslationNotice

# ==================================================
# Settings
# ==================================================

_QUALIFIER_SEPARATOR = re.compile(r"::?|\.")
_CONSTANT_NAME = re.compile(r"[A-Za-z_][A-Za-z0-9_]*")


@dataclass(frozen=True)
class TranslationSettings:
    """
    Caller-supplied settings for one translation run.
    """

    grammar: str | None = None # namespace qualifier, e.g. "Mod1::Mod2::Grammar"
    case_sensitive: bool = True
    indent_width: int = 2
    observability: ObservabilitySettings = field(default_factory=ObservabilitySettings)

    def __post_init__(self) -> None:
        if self.indent_width < 0:
            raise ValueError("indent_width must be >= 0")
        if self.grammar is not None:
            for part in split_qualifier(self.grammar):
                if not _CONSTANT_NAME.fullmatch(part):
                    raise ValueError(f"invalid grammar qualifier {self.grammar!r}")


def split_qualifier(qualifier: str) -> list[str]:
    """
    Splits a qualifier on "::", ":" or ".": 'A::B::Grammar' and 'A:B.Grammar' -> ['A', 'B', 'Grammar'].
    """
    return _QUALIFIER_SEPARATOR.split(qualifier)

# ==================================================
# Emission Context
# ==================================================

class EmissionContext:
    """
    Mutable, run-scoped state shared by every translation handler.

    Not reentrant: one context belongs to exactly one in-flight run. Case
    insensitivity can be switched on once and is never switched back off.
    """

    def __init__(self, settings: TranslationSettings) -> None:
        self.settings = settings
        self._case_insensitive = not settings.case_sensitive
        self.notices: list[TranslationNotice] = []
        self.rules_emitted = 0
        self.rules_skipped = 0

    @property
    def case_insensitive(self) -> bool:
        return self._case_insensitive

    def enable_case_insensitive(self) -> None:
        self._case_insensitive = True

    def namespace_parts(self) -> list[str]:
        if self.settings.grammar is None:
            return []
        return split_qualifier(self.settings.grammar)

    def rule_name(self, flex_name: str) -> str:
        # identity for now; rule-name prefixing would go here
        return flex_name

    def notify(self, notice: TranslationNotice) -> None:
        self.notices.append(notice)
        observer = self.settings.observability.notice_observer
        if observer is not None:
            observer(notice)
