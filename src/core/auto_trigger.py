from __future__ import annotations

import logging
import re

from src.core.editor_buffer import CaretPosition, EditorBuffer
from src.core.resolver import ExpansionMode, resolve_rule
from src.core.settings_store import ExpansionSettings


TRIGGER_CHARACTER = re.compile(r"[\s.,!?;:]")
TRAILING_WORD = re.compile(r"(\S+)$")


class AutoTriggerDetector:
    def __init__(self) -> None:
        self.logger = logging.getLogger("shorthand.auto_trigger")
        self._replacing = False

    def handle_edit(
        self,
        buffer: EditorBuffer,
        document_path: str | None,
        settings: ExpansionSettings,
    ) -> bool:
        if not settings.auto_replace_enabled or self._replacing:
            return False
        if document_path is None:
            return False

        cursor = buffer.get_cursor()
        if cursor.ch < 1:
            return False
        line = buffer.get_line(cursor.line)
        if cursor.ch > len(line):
            return False
        if not TRIGGER_CHARACTER.fullmatch(line[cursor.ch - 1]):
            return False

        match = TRAILING_WORD.search(line[: cursor.ch - 1])
        if match is None:
            return False
        word = match.group(1)

        rule = resolve_rule(
            settings.replacements,
            word,
            document_path,
            ExpansionMode.AUTO,
        )
        if rule is None or rule.expansion == word:
            return False

        end_ch = cursor.ch - 1
        start_ch = end_ch - len(word)
        self._replacing = True
        try:
            buffer.replace_range(
                rule.expansion,
                CaretPosition(cursor.line, start_ch),
                CaretPosition(cursor.line, end_ch),
            )
        finally:
            self._replacing = False
        self.logger.debug(
            "Auto-expanded abbreviation. line=%s word=%r scope=%r",
            cursor.line,
            word,
            rule.folder_scope,
        )
        return True
