from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from pathlib import Path
from typing import Callable

from flex2treetop.abstract_syntax_tree.produced import ProducedNode, build_tree
from flex2treetop.compiler.compiled_grammar import CompiledGrammar
from flex2treetop.compiler.context import TranslationSettings
from flex2treetop.compiler.observability import emit_event
from flex2treetop.compiler.treetop.treetop_compiler import TreetopCompiler
from flex2treetop.errors import (
    FrontEndError,
    OverwriteRefusedError,
    TranslationError,
    TranslationErrorDetails,
)

# ==================================================
# Grammar Files
# ==================================================

AUTOGENERATED_LINE = "# Autogenerated by flex-to-treetop.  Edits may be lost."

# Where the bundled examples write grammars; `scripts.clean_project` removes it
GENERATED_GRAMMAR_DIR = Path("static") / "generated"

FrontEnd = Callable[[str], ProducedNode]


class GrammarFileStatus(str, Enum):
    CREATED = "created"
    REGENERATED = "regenerated"
    EXISTS = "exists"


@dataclass(frozen=True)
class GrammarFileResult:
    """
    Outcome of writing (or declining to write) a grammar file.
    """

    status: GrammarFileStatus
    output_path: Path
    compiled: CompiledGrammar | None = None


def is_autogenerated(path: Path) -> bool:
    """
    True when the file's first line is the autogenerated marker (or the file is empty).
    """
    with path.open("r", encoding="utf-8") as handle:
        first_line = handle.readline()
    return first_line == "" or first_line.rstrip("\r\n") == AUTOGENERATED_LINE


def write_grammar_file(
    flex_path: str | Path,
    output_path: str | Path,
    *,
    front_end: FrontEnd,
    settings: TranslationSettings | None = None,
    force: bool = False,
) -> GrammarFileResult:
    """
    Translates a flex file into a Treetop grammar file.

    An existing output file is left alone unless `force` is set, and even then it
    is only overwritten if it carries the autogenerated marker line.
    """
    settings = settings or TranslationSettings()
    flex_path = Path(flex_path)
    output_path = Path(output_path)

    if output_path.exists():
        if not force:
            emit_event(settings.observability, "grammar_file.reuse", success=True, output_path=str(output_path))
            return GrammarFileResult(status=GrammarFileStatus.EXISTS, output_path=output_path)
        if not is_autogenerated(output_path):
            raise OverwriteRefusedError(
                TranslationErrorDetails(
                    node_kind=None,
                    message=f"won't overwrite {output_path} without the autogenerated line",
                )
            )
        status = GrammarFileStatus.REGENERATED
    else:
        status = GrammarFileStatus.CREATED

    root = build_tree(_run_front_end(front_end, flex_path.read_text(encoding="utf-8")))

    with output_path.open("w", encoding="utf-8") as handle:
        handle.write(AUTOGENERATED_LINE + "\n")
        compiled = TreetopCompiler(settings).compile(root, stream=handle)

    event = "grammar_file.create" if status is GrammarFileStatus.CREATED else "grammar_file.regenerate"
    emit_event(
        settings.observability,
        event,
        success=True,
        grammar=settings.grammar,
        output_path=str(output_path),
        rules_emitted=compiled.rules_emitted,
        rules_skipped=compiled.rules_skipped,
        notice_count=len(compiled.notices),
    )
    return GrammarFileResult(status=status, output_path=output_path, compiled=compiled)


def _run_front_end(front_end: FrontEnd, source: str) -> ProducedNode:
    try:
        return front_end(source)
    except TranslationError:
        raise
    except Exception as exc:
        raise FrontEndError(
            TranslationErrorDetails(
                node_kind=None,
                message=f"front-end failed: {type(exc).__name__}: {exc}",
            )
        ) from exc
