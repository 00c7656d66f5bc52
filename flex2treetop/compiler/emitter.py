from __future__ import annotations

from abc import ABC, abstractmethod
from contextlib import contextmanager
from enum import Enum
from typing import Iterator, TextIO

from flex2treetop.errors import EmitterStateError, TranslationErrorDetails

# ==================================================
# Sinks
# ==================================================

class Sink(ABC):
    """
    Destination for emitted text fragments.
    """

    @abstractmethod
    def write(self, fragment: str) -> None:
        pass


class BufferedSink(Sink):
    """
    Accumulates every fragment in memory.
    """

    def __init__(self) -> None:
        self._parts: list[str] = []

    def write(self, fragment: str) -> None:
        self._parts.append(fragment)

    def getvalue(self) -> str:
        return "".join(self._parts)


class StreamingSink(Sink):
    """
    Writes fragments straight through to a caller-owned stream. Never closes it.
    """

    def __init__(self, stream: TextIO) -> None:
        self._stream = stream

    def write(self, fragment: str) -> None:
        self._stream.write(fragment)

# ==================================================
# Emitter
# ==================================================

class BlockKind(str, Enum):
    MODULE = "module"
    GRAMMAR = "grammar"
    RULE = "rule"


class Emitter:
    """
    Indentation-aware writer for nested Treetop declarations.

    Indentation is written lazily: the first fragment written after a line break
    is prefixed with the current indentation.
    """

    CLOSING_KEYWORD = "end"

    def __init__(self, sink: Sink, indent_width: int = 2) -> None:
        self._sink = sink
        self._indent_unit = " " * indent_width
        self._depth = 0
        self._open_blocks: list[BlockKind] = []
        self._at_line_start = True

    @property
    def depth(self) -> int:
        return self._depth

    @property
    def open_blocks(self) -> tuple[BlockKind, ...]:
        return tuple(self._open_blocks)

    def write(self, fragment: str) -> None:
        """
        Writes a fragment at the cursor, with no implicit newline.
        """
        if not fragment:
            return
        if self._at_line_start:
            self._sink.write(self._indent_unit * self._depth)
            self._at_line_start = False
        self._sink.write(fragment)

    def newline(self) -> None:
        self._sink.write("\n")
        self._at_line_start = True

    def line(self, text: str) -> None:
        """
        Writes a whole line at the current indentation.
        """
        if not self._at_line_start:
            self.newline()
        self.write(text)
        self.newline()

    def enter_block(self, kind: BlockKind, name: str) -> None:
        self.line(f"{kind.value} {name}")
        self._open_blocks.append(kind)
        self._depth += 1

    def exit_block(self, kind: BlockKind) -> None:
        self._pop_block(kind)
        self.line(self.CLOSING_KEYWORD)

    @contextmanager
    def block(self, kind: BlockKind, name: str) -> Iterator["Emitter"]:
        """
        Declares and enters a block, runs the body, then closes it. If the body
        raises, indentation is restored but no closing keyword is written.
        """
        self.enter_block(kind, name)
        try:
            yield self
        except BaseException:
            self._pop_block(kind)
            raise
        self.exit_block(kind)

    def finish(self) -> None:
        """
        Checks that every block entered has been exited.
        """
        if self._open_blocks:
            still_open = ", ".join(kind.value for kind in reversed(self._open_blocks))
            raise _state_error(f"blocks left open: {still_open}")
        if not self._at_line_start:
            self.newline()

    def _pop_block(self, kind: BlockKind) -> None:
        if not self._open_blocks:
            raise _state_error(f"cannot exit {kind.value}: no block is open")
        if self._open_blocks[-1] is not kind:
            raise _state_error(f"cannot exit {kind.value}: innermost open block is {self._open_blocks[-1].value}")
        self._open_blocks.pop()
        self._depth -= 1


def _state_error(message: str) -> EmitterStateError:
    return EmitterStateError(TranslationErrorDetails(node_kind=None, message=message))
