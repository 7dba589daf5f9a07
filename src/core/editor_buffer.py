from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol


@dataclass(frozen=True)
class CaretPosition:
    line: int
    ch: int


class EditorBuffer(Protocol):
    """Line-addressed view of the host editor's document.

    Positions are only meaningful against the buffer state at the moment
    they were read; any replace_range call invalidates them.
    """

    def line_count(self) -> int: ...

    def get_line(self, index: int) -> str: ...

    def get_cursor(self) -> CaretPosition: ...

    def set_cursor(self, position: CaretPosition) -> None: ...

    def replace_range(
        self,
        text: str,
        start: CaretPosition,
        end: CaretPosition,
    ) -> None: ...


class TextBuffer:
    """In-memory EditorBuffer used for headless runs and tests."""

    def __init__(self, text: str = "", cursor: CaretPosition | None = None) -> None:
        self.lines = text.split("\n")
        self.cursor = cursor or CaretPosition(0, 0)
        self.replace_calls: list[tuple[str, CaretPosition, CaretPosition]] = []

    @property
    def text(self) -> str:
        return "\n".join(self.lines)

    def line_count(self) -> int:
        return len(self.lines)

    def get_line(self, index: int) -> str:
        return self.lines[index]

    def get_cursor(self) -> CaretPosition:
        return self.cursor

    def set_cursor(self, position: CaretPosition) -> None:
        self.cursor = position

    def replace_range(
        self,
        text: str,
        start: CaretPosition,
        end: CaretPosition,
    ) -> None:
        if start.line != end.line:
            raise ValueError("TextBuffer only replaces within a single line")
        line = self.lines[start.line]
        if not 0 <= start.ch <= end.ch <= len(line):
            raise ValueError(
                f"range {start.ch}..{end.ch} outside line of length {len(line)}"
            )
        self.replace_calls.append((text, start, end))
        self.lines[start.line] = line[: start.ch] + text + line[end.ch :]
        if self.cursor.line == start.line and self.cursor.ch >= end.ch:
            self.cursor = CaretPosition(
                self.cursor.line,
                self.cursor.ch + len(text) - (end.ch - start.ch),
            )
