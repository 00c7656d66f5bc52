import os
import re
from dataclasses import dataclass, field

import pytest

from flex2treetop.compiler.context import TranslationSettings
from flex2treetop.compiler.observability import ObservabilitySettings

# Allow the namespace used by the integration tests to be overridden via environment variable
GRAMMAR_QUALIFIER = os.getenv("FLEX2TREETOP_TEST_GRAMMAR", "Flex::Lexer")

# ==============================================================================
# Minimal flex front-end
# ==============================================================================

@dataclass
class ProducedStub:
    """
    A parse-tree node as a front-end would hand it over.
    """
    kind: str | None
    elements: list = field(default_factory=list)
    text: str = ""
    span: tuple[int, int] | None = None


class FlexSyntaxError(Exception):
    pass


_OPTION_LINE = re.compile(r"%option\s+(.+)")
_DEFINITION_LINE = re.compile(r"([A-Za-z_][A-Za-z0-9_-]*)\s+(\S.*)")
_BOUND = re.compile(r"\{\d*,?\d*\}")
_NAME_USE = re.compile(r"\{([A-Za-z_][A-Za-z0-9_-]*)\}")
_HEX = re.compile(r"\\x[0-9A-Fa-f]{1,2}")
_OCTAL = re.compile(r"\\[0-7]{1,3}")


class _PatternReader:
    """
    Reads one flex pattern, stopping at the first unquoted whitespace.
    """

    def __init__(self, text: str) -> None:
        self.text = text
        self.pos = 0

    def read(self) -> ProducedStub:
        pattern = self._choice()
        if self.pos < len(self.text) and not self.text[self.pos].isspace():
            raise FlexSyntaxError(f"unexpected {self.text[self.pos]!r} at {self.pos} in {self.text!r}")
        return pattern

    def rest(self) -> str:
        return self.text[self.pos:].strip()

    def _peek(self) -> str:
        return self.text[self.pos] if self.pos < len(self.text) else ""

    def _choice(self) -> ProducedStub:
        start = self.pos
        alternatives = [self._sequence()]
        while self._peek() == "|":
            self.pos += 1
            alternatives.append(self._sequence())
        if len(alternatives) == 1:
            return alternatives[0]
        return ProducedStub(kind="pattern_choice", elements=alternatives, span=(start, self.pos))

    def _sequence(self) -> ProducedStub:
        start = self.pos
        elements = []
        while self._peek() and not self._peek().isspace() and self._peek() not in "|)":
            elements.append(self._part())
        if not elements:
            raise FlexSyntaxError(f"empty pattern at {self.pos} in {self.text!r}")
        if len(elements) == 1:
            return elements[0]
        return ProducedStub(kind="pattern_sequence", elements=elements, span=(start, self.pos))

    def _part(self) -> ProducedStub:
        start = self.pos
        base = self._base()
        suffix = self._suffix()
        if suffix is None:
            return base
        return ProducedStub(kind="pattern_part", elements=[base, suffix], span=(start, self.pos))

    def _suffix(self) -> str | None:
        char = self._peek()
        if char and char in "*+?":
            self.pos += 1
            return char
        match = _BOUND.match(self.text, self.pos)
        if char == "{" and match is not None:
            self.pos = match.end()
            return match.group(0)
        return None

    def _base(self) -> ProducedStub:
        start = self.pos
        char = self._peek()

        if char == "(":
            self.pos += 1
            inner = self._choice()
            if self._peek() != ")":
                raise FlexSyntaxError(f"unbalanced group in {self.text!r}")
            self.pos += 1
            return inner

        if char == '"':
            end = self.pos + 1
            while end < len(self.text) and self.text[end] != '"':
                end += 2 if self.text[end] == "\\" else 1
            if end >= len(self.text):
                raise FlexSyntaxError(f"unterminated string in {self.text!r}")
            literal = self.text[self.pos + 1:end].replace('\\"', '"')
            self.pos = end + 1
            return ProducedStub(kind="literal_chars", text=literal, span=(start, self.pos))

        if char == "[":
            end = self.text.find("]", self.pos + 2)
            if end < 0:
                raise FlexSyntaxError(f"unterminated character class in {self.text!r}")
            self.pos = end + 1
            return ProducedStub(kind="char_class", text=self.text[start:self.pos], span=(start, self.pos))

        match = _NAME_USE.match(self.text, self.pos)
        if match is not None:
            self.pos = match.end()
            return ProducedStub(kind="use_definition", elements=[match.group(1)], span=(start, self.pos))

        if char == "\\":
            return self._escape()

        self.pos += 1
        return ProducedStub(kind="literal_chars", text=char, span=(start, self.pos))

    def _escape(self) -> ProducedStub:
        start = self.pos
        for kind, pattern in (("hex", _HEX), ("octal", _OCTAL)):
            match = pattern.match(self.text, self.pos)
            if match is not None:
                if kind == "octal" and match.group(0) == "\\0":
                    kind = "ascii_null"
                self.pos = match.end()
                return ProducedStub(kind=kind, text=match.group(0), span=(start, self.pos))

        self.pos += 2
        return ProducedStub(kind="backslash_other", text=self.text[start:self.pos], span=(start, self.pos))


def parse_flex(source: str) -> ProducedStub:
    """
    Turns the definitions and rules sections of a flex file into a produced tree.
    User code after a second '%%' is ignored.
    """
    elements = []
    section = "definitions"

    for line in source.splitlines():
        if line.strip() == "%%":
            if section == "rules":
                break
            section = "rules"
            continue
        if not line.strip() or line.startswith(("%{", "%}", "/*")):
            continue

        if section == "definitions":
            option = _OPTION_LINE.match(line)
            if option is not None:
                for value in option.group(1).split():
                    elements.append(ProducedStub(kind="start_declaration", elements=[value]))
                continue
            definition = _DEFINITION_LINE.match(line)
            if definition is None:
                raise FlexSyntaxError(f"unrecognized definition line {line!r}")
            reader = _PatternReader(definition.group(2))
            elements.append(ProducedStub(kind="name_definition", elements=[definition.group(1), reader.read()]))
        else:
            reader = _PatternReader(line)
            pattern = reader.read()
            elements.append(
                ProducedStub(kind="rule", elements=[pattern, ProducedStub(kind="action", text=reader.rest())])
            )

    return ProducedStub(kind="file", elements=elements)

# ==============================================================================
# Fixtures
# ==============================================================================

@pytest.fixture
def front_end():
    """
    Yields the flex front-end used to feed the host layer.
    """
    return parse_flex


@pytest.fixture
def events():
    """
    Collects every TranslationEvent emitted during a test.
    """
    return []


@pytest.fixture
def settings(events):
    """
    Translation settings that record events and wrap output in the test grammar namespace.
    """
    return TranslationSettings(
        grammar=GRAMMAR_QUALIFIER,
        observability=ObservabilitySettings(event_observer=events.append, metadata={"suite": "integration"}),
    )


@pytest.fixture
def write_flex(tmp_path):
    """
    Writes flex source to a file under the test's temporary directory.
    """

    def _write(source: str, name: str = "lexer.l"):
        path = tmp_path / name
        path.write_text(source, encoding="utf-8")
        return path

    return _write
