from dataclasses import dataclass, field
from pathlib import Path
import os
import re

from dotenv import load_dotenv

from flex2treetop.compiler import TranslationSettings
from flex2treetop.host import GENERATED_GRAMMAR_DIR, write_grammar_file

LEXER_PATH = Path(__file__).with_name("calculator.l")

# One pattern unit (quoted literal, character class or {NAME}) with an optional suffix
_UNIT = re.compile(r'(?:"(?P<literal>[^"]*)"|(?P<char_class>\[[^\]]+\])|\{(?P<use>\w+)\})(?P<suffix>[*+?])?')


@dataclass
class Produced:
    kind: str
    elements: list = field(default_factory=list)
    text: str = ""
    span: tuple[int, int] | None = None


def _pattern(source: str) -> tuple[Produced, str]:
    match = _UNIT.match(source)
    if match is None:
        raise ValueError(f"unsupported pattern in {source!r}")

    if match.group("literal") is not None:
        base = Produced(kind="literal_chars", text=match.group("literal"))
    elif match.group("char_class") is not None:
        base = Produced(kind="char_class", text=match.group("char_class"))
    else:
        base = Produced(kind="use_definition", elements=[match.group("use")])

    if match.group("suffix"):
        base = Produced(kind="pattern_part", elements=[base, match.group("suffix")])
    return base, source[match.end():].strip()


def parse_simple_flex(source: str) -> Produced:
    """
    A tiny front-end covering single-unit patterns, enough for calculator.l.
    """
    definitions, _, rules = source.partition("%%")
    elements = []

    for line in definitions.splitlines():
        if line.startswith("%option"):
            elements.extend(Produced(kind="start_declaration", elements=[value]) for value in line.split()[1:])
        elif line.strip():
            name, pattern = line.split(None, 1)
            elements.append(Produced(kind="name_definition", elements=[name, _pattern(pattern.strip())[0]]))

    for line in rules.splitlines():
        if line.strip():
            pattern, action = _pattern(line)
            elements.append(Produced(kind="rule", elements=[pattern, Produced(kind="action", text=action)]))

    return Produced(kind="file", elements=elements)


def main() -> None:
    # Load environment variables from .env file
    load_dotenv()

    grammar = os.getenv("FLEX2TREETOP_GRAMMAR") or None
    case_insensitive = os.getenv("FLEX2TREETOP_CASE_INSENSITIVE", "false").lower() in ("1", "true", "yes")

    GENERATED_GRAMMAR_DIR.mkdir(parents=True, exist_ok=True)
    result = write_grammar_file(
        LEXER_PATH,
        GENERATED_GRAMMAR_DIR / "calculator.treetop",
        front_end=parse_simple_flex,
        settings=TranslationSettings(grammar=grammar, case_sensitive=not case_insensitive),
        force=True,
    )

    print(f"{result.status.value}: {result.output_path}")
    if result.compiled is not None:
        for notice in result.compiled.notices:
            print(f"[{notice.code}] {notice.message}")
        print(result.output_path.read_text(encoding="utf-8"))


if __name__ == "__main__":
    main()
