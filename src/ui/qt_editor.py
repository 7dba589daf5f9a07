from __future__ import annotations

from collections.abc import Callable

from PySide6.QtCore import QTimer
from PySide6.QtGui import QTextCursor
from PySide6.QtWidgets import QPlainTextEdit

from src.core.editor_buffer import CaretPosition


class QtEditorBuffer:
    """EditorBuffer over a QPlainTextEdit; one text block per line."""

    def __init__(self, editor: QPlainTextEdit) -> None:
        self.editor = editor
        self._listeners: list[Callable[[], None]] = []
        self._pending = False
        self._writing = False
        self.editor.document().contentsChange.connect(self._on_contents_change)

    def subscribe(self, callback: Callable[[], None]) -> None:
        self._listeners.append(callback)

    def line_count(self) -> int:
        return self.editor.document().blockCount()

    def get_line(self, index: int) -> str:
        return self.editor.document().findBlockByNumber(index).text()

    def get_cursor(self) -> CaretPosition:
        cursor = self.editor.textCursor()
        return CaretPosition(cursor.blockNumber(), cursor.positionInBlock())

    def set_cursor(self, position: CaretPosition) -> None:
        cursor = QTextCursor(self.editor.document())
        cursor.setPosition(self._absolute(position))
        self.editor.setTextCursor(cursor)

    def replace_range(
        self,
        text: str,
        start: CaretPosition,
        end: CaretPosition,
    ) -> None:
        cursor = QTextCursor(self.editor.document())
        cursor.setPosition(self._absolute(start))
        cursor.setPosition(self._absolute(end), QTextCursor.MoveMode.KeepAnchor)
        self._writing = True
        try:
            cursor.beginEditBlock()
            cursor.insertText(text)
            cursor.endEditBlock()
        finally:
            self._writing = False

    def _absolute(self, position: CaretPosition) -> int:
        block = self.editor.document().findBlockByNumber(position.line)
        if not block.isValid():
            block = self.editor.document().lastBlock()
        ch = max(0, min(position.ch, block.length() - 1))
        return block.position() + ch

    def _on_contents_change(self, _position: int, _removed: int, added: int) -> None:
        # Typed insertions only; our own writes must not re-trigger listeners.
        if self._writing or added <= 0 or self._pending:
            return
        self._pending = True
        QTimer.singleShot(0, self._dispatch)

    def _dispatch(self) -> None:
        self._pending = False
        for listener in list(self._listeners):
            listener()
