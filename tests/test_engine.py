from __future__ import annotations

import json
import shutil
import unittest
import uuid
from pathlib import Path
from unittest.mock import Mock

from src.core.bulk_substitution import BulkOutcome
from src.core.editor_buffer import CaretPosition, TextBuffer
from src.core.engine import (
    NOTICE_NO_APPLICABLE_RULES,
    NOTICE_NONE_FOUND,
    ExpansionEngine,
)
from src.core.rules import ExpansionRule
from src.core.settings_store import ExpansionSettings, SettingsStore


class ExpansionEngineTests(unittest.TestCase):
    def setUp(self) -> None:
        self.tmp = Path(".test_tmp") / f"engine_{uuid.uuid4().hex}"
        self.tmp.mkdir(parents=True, exist_ok=True)
        self.store = SettingsStore(self.tmp / "settings.json")
        self.notify = Mock()

    def tearDown(self) -> None:
        shutil.rmtree(self.tmp, ignore_errors=True)

    def _engine(self, *rules: ExpansionRule) -> ExpansionEngine:
        self.store.save(ExpansionSettings(replacements=list(rules)))
        engine = ExpansionEngine(self.store, notify=self.notify)
        engine.load()
        return engine

    def test_manual_command_reports_replaced_count(self) -> None:
        engine = self._engine(
            ExpansionRule("АГ", "Артериальная гипертензия", "Терапия", True),
            ExpansionRule("АД", "Артериальное давление", "", True),
        )
        buffer = TextBuffer("АД 140/90\nанамнез: АГ, АД", cursor=CaretPosition(1, 0))

        result = engine.apply_manual_rules_command(buffer, "Терапия/Иванов.md")

        self.assertIs(result.outcome, BulkOutcome.REPLACED)
        self.assertEqual(result.replaced_count, 3)
        self.notify.assert_called_once_with("Manual abbreviations replaced: 3")

    def test_manual_command_ignores_rules_scoped_elsewhere(self) -> None:
        engine = self._engine(ExpansionRule("АГ", "Артериальная гипертензия", "Терапия", True))
        buffer = TextBuffer("АГ")

        result = engine.apply_manual_rules_command(buffer, "Хирургия/Петров.md")

        self.assertIs(result.outcome, BulkOutcome.NO_APPLICABLE_RULES)
        self.assertEqual(buffer.lines, ["АГ"])
        self.notify.assert_called_once_with(NOTICE_NO_APPLICABLE_RULES)

    def test_manual_command_distinguishes_none_found(self) -> None:
        engine = self._engine(ExpansionRule("АГ", "Артериальная гипертензия", "", True))

        result = engine.apply_manual_rules_command(TextBuffer("жалоб нет"), "")

        self.assertIs(result.outcome, BulkOutcome.NONE_FOUND)
        self.notify.assert_called_once_with(NOTICE_NONE_FOUND)

    def test_manual_command_without_document_notifies(self) -> None:
        engine = self._engine(ExpansionRule("АГ", "x", "", True))

        result = engine.apply_manual_rules_command(None, None)

        self.assertIs(result.outcome, BulkOutcome.NO_APPLICABLE_RULES)
        self.notify.assert_called_once_with(NOTICE_NO_APPLICABLE_RULES)

    def test_auto_rules_are_not_used_by_manual_command(self) -> None:
        engine = self._engine(ExpansionRule("АГ", "Артериальная гипертензия"))

        result = engine.apply_manual_rules_command(TextBuffer("АГ"), "")

        self.assertIs(result.outcome, BulkOutcome.NO_APPLICABLE_RULES)

    def test_buffer_change_uses_loaded_snapshot(self) -> None:
        engine = self._engine(ExpansionRule("чсс", "частота сердечных сокращений"))
        buffer = TextBuffer("ЧСС ", cursor=CaretPosition(0, 4))

        self.assertTrue(engine.on_buffer_changed(buffer, ""))
        self.assertEqual(buffer.lines[0], "частота сердечных сокращений ")

    def test_update_settings_sanitizes_saves_and_swaps_snapshot(self) -> None:
        engine = self._engine()
        previous = engine.settings

        saved = engine.update_settings(
            ExpansionSettings(
                auto_replace_enabled=False,
                replacements=[ExpansionRule(" btw ", "by the way"), ExpansionRule("", "x")],
            )
        )
        persisted = json.loads(self.store.path.read_text(encoding="utf-8"))

        self.assertIsNot(saved, previous)
        self.assertIs(engine.settings, saved)
        self.assertEqual(saved.replacements, [ExpansionRule("btw", "by the way")])
        self.assertFalse(persisted["autoReplaceEnabled"])
        self.assertEqual(len(persisted["replacements"]), 1)

    def test_disabled_auto_replace_leaves_buffer_alone(self) -> None:
        engine = self._engine(ExpansionRule("btw", "by the way"))
        engine.update_settings(ExpansionSettings(auto_replace_enabled=False, replacements=engine.settings.replacements))
        buffer = TextBuffer("btw ", cursor=CaretPosition(0, 4))

        self.assertFalse(engine.on_buffer_changed(buffer, ""))
        self.assertEqual(buffer.lines[0], "btw ")


if __name__ == "__main__":
    unittest.main()
