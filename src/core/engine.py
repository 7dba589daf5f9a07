from __future__ import annotations

import logging
from collections.abc import Callable

from src.core.auto_trigger import AutoTriggerDetector
from src.core.bulk_substitution import (
    BulkOutcome,
    BulkResult,
    apply_manual_rules,
    select_manual_rules,
)
from src.core.editor_buffer import EditorBuffer
from src.core.rules import sanitize_rules
from src.core.settings_store import ExpansionSettings, SettingsStore


NOTICE_NO_APPLICABLE_RULES = "No manual abbreviations to apply"
NOTICE_NONE_FOUND = "No manual abbreviations found in this note"
NOTICE_REPLACED = "Manual abbreviations replaced: {count}"


def _discard_notice(_message: str) -> None:
    return None


class ExpansionEngine:
    def __init__(
        self,
        settings_store: SettingsStore,
        notify: Callable[[str], None] | None = None,
    ) -> None:
        self.settings_store = settings_store
        self.notify = notify or _discard_notice
        self.detector = AutoTriggerDetector()
        self.logger = logging.getLogger("shorthand.engine")
        self._settings = ExpansionSettings()

    @property
    def settings(self) -> ExpansionSettings:
        return self._settings

    def load(self) -> ExpansionSettings:
        self._settings = self.settings_store.load()
        self.logger.info(
            "Settings loaded. rules=%s auto_replace=%s",
            len(self._settings.replacements),
            self._settings.auto_replace_enabled,
        )
        return self._settings

    def update_settings(self, settings: ExpansionSettings) -> ExpansionSettings:
        snapshot = ExpansionSettings(
            auto_replace_enabled=settings.auto_replace_enabled,
            replacements=sanitize_rules(settings.replacements),
        )
        self.settings_store.save(snapshot)
        self._settings = snapshot
        self.logger.info(
            "Settings saved. rules=%s auto_replace=%s",
            len(snapshot.replacements),
            snapshot.auto_replace_enabled,
        )
        return snapshot

    def on_buffer_changed(
        self,
        buffer: EditorBuffer,
        document_path: str | None,
    ) -> bool:
        return self.detector.handle_edit(buffer, document_path, self._settings)

    def apply_manual_rules_command(
        self,
        buffer: EditorBuffer | None,
        document_path: str | None,
    ) -> BulkResult:
        if buffer is None or document_path is None:
            self.notify(NOTICE_NO_APPLICABLE_RULES)
            return BulkResult(outcome=BulkOutcome.NO_APPLICABLE_RULES)

        settings = self._settings
        rules = select_manual_rules(settings.replacements, document_path)
        result = apply_manual_rules(buffer, rules)
        self.logger.info(
            "Manual rules applied. outcome=%s rules=%s replaced=%s lines=%s",
            result.outcome.value,
            len(rules),
            result.replaced_count,
            result.changed_lines,
        )

        if result.outcome is BulkOutcome.NO_APPLICABLE_RULES:
            self.notify(NOTICE_NO_APPLICABLE_RULES)
        elif result.outcome is BulkOutcome.NONE_FOUND:
            self.notify(NOTICE_NONE_FOUND)
        else:
            self.notify(NOTICE_REPLACED.format(count=result.replaced_count))
        return result
