from __future__ import annotations

import unittest
from unittest.mock import Mock

from src.core.auto_trigger import AutoTriggerDetector
from src.core.editor_buffer import CaretPosition, TextBuffer
from src.core.rules import ExpansionRule
from src.core.settings_store import ExpansionSettings


def _settings(*rules: ExpansionRule, enabled: bool = True) -> ExpansionSettings:
    return ExpansionSettings(auto_replace_enabled=enabled, replacements=list(rules))


def _typed(text: str) -> TextBuffer:
    return TextBuffer(text, cursor=CaretPosition(0, len(text)))


class AutoTriggerDetectorTests(unittest.TestCase):
    def test_expands_word_completed_by_space(self) -> None:
        buffer = _typed("у пациента АГ ")
        settings = _settings(ExpansionRule("АГ", "Артериальная гипертензия"))

        replaced = AutoTriggerDetector().handle_edit(buffer, "Терапия/a.md", settings)

        self.assertTrue(replaced)
        self.assertEqual(buffer.lines[0], "у пациента Артериальная гипертензия ")
        self.assertEqual(buffer.get_cursor(), CaretPosition(0, len(buffer.lines[0])))

    def test_boundary_punctuation_stays_after_expansion(self) -> None:
        for mark in ".,!?;:":
            with self.subTest(mark=mark):
                buffer = _typed(f"btw{mark}")

                AutoTriggerDetector().handle_edit(buffer, "", _settings(ExpansionRule("btw", "by the way")))

                self.assertEqual(buffer.lines[0], f"by the way{mark}")

    def test_mid_word_typing_does_nothing(self) -> None:
        buffer = Mock()
        buffer.get_cursor.return_value = CaretPosition(0, 2)
        buffer.get_line.return_value = "АГ"

        replaced = AutoTriggerDetector().handle_edit(buffer, "", _settings(ExpansionRule("АГ", "x")))

        self.assertFalse(replaced)
        buffer.replace_range.assert_not_called()

    def test_boundary_without_preceding_word_does_nothing(self) -> None:
        buffer = _typed("текст  ")

        self.assertFalse(
            AutoTriggerDetector().handle_edit(buffer, "", _settings(ExpansionRule("текст", "x")))
        )
        self.assertEqual(buffer.replace_calls, [])

    def test_word_includes_attached_punctuation(self) -> None:
        buffer = _typed("(АГ ")

        replaced = AutoTriggerDetector().handle_edit(
            buffer, "", _settings(ExpansionRule("АГ", "Артериальная гипертензия"))
        )

        self.assertFalse(replaced)

    def test_equal_expansion_produces_no_replace_call(self) -> None:
        buffer = Mock()
        buffer.get_cursor.return_value = CaretPosition(0, 4)
        buffer.get_line.return_value = "FYI "

        replaced = AutoTriggerDetector().handle_edit(buffer, "", _settings(ExpansionRule("fyi", "FYI")))

        self.assertFalse(replaced)
        buffer.replace_range.assert_not_called()

    def test_case_difference_still_replaces(self) -> None:
        buffer = _typed("fyi ")

        AutoTriggerDetector().handle_edit(buffer, "", _settings(ExpansionRule("fyi", "FYI")))

        self.assertEqual(buffer.lines[0], "FYI ")

    def test_manual_only_rule_is_ignored(self) -> None:
        buffer = _typed("АГ ")
        settings = _settings(ExpansionRule("АГ", "Артериальная гипертензия", manual_only=True))

        self.assertFalse(AutoTriggerDetector().handle_edit(buffer, "", settings))
        self.assertEqual(buffer.lines[0], "АГ ")

    def test_disabled_feature_short_circuits_before_reading_buffer(self) -> None:
        buffer = Mock()

        replaced = AutoTriggerDetector().handle_edit(
            buffer, "note.md", _settings(ExpansionRule("АГ", "x"), enabled=False)
        )

        self.assertFalse(replaced)
        buffer.get_cursor.assert_not_called()
        buffer.get_line.assert_not_called()

    def test_no_active_document_disables_detector(self) -> None:
        buffer = Mock()

        self.assertFalse(AutoTriggerDetector().handle_edit(buffer, None, _settings(ExpansionRule("АГ", "x"))))
        buffer.get_cursor.assert_not_called()

    def test_uses_scope_of_active_document(self) -> None:
        rules = _settings(
            ExpansionRule("ОК", "общий кальций", folder_scope="Лаборатория"),
            ExpansionRule("ОК", "окружность"),
        )
        lab = _typed("ОК ")
        other = _typed("ОК ")

        AutoTriggerDetector().handle_edit(lab, "Лаборатория/анализ.md", rules)
        AutoTriggerDetector().handle_edit(other, "Антропометрия/замеры.md", rules)

        self.assertEqual(lab.lines[0], "общий кальций ")
        self.assertEqual(other.lines[0], "окружность ")

    def test_only_word_span_is_replaced_on_caret_line(self) -> None:
        buffer = TextBuffer("первая строка\nпишу АД, затем", cursor=CaretPosition(1, 8))

        AutoTriggerDetector().handle_edit(buffer, "", _settings(ExpansionRule("АД", "Артериальное давление")))

        text, start, end = buffer.replace_calls[0]
        self.assertEqual((start, end), (CaretPosition(1, 5), CaretPosition(1, 7)))
        self.assertEqual(buffer.lines, ["первая строка", "пишу Артериальное давление, затем"])

    def test_replacement_does_not_retrigger_itself(self) -> None:
        detector = AutoTriggerDetector()
        settings = _settings(ExpansionRule("АГ", "Артериальная гипертензия"))
        buffer = _typed("АГ ")
        calls: list[bool] = []
        original_replace = buffer.replace_range

        def replace_and_notify(text, start, end) -> None:
            original_replace(text, start, end)
            calls.append(detector.handle_edit(buffer, "", settings))

        buffer.replace_range = replace_and_notify  # type: ignore[method-assign]

        self.assertTrue(detector.handle_edit(buffer, "", settings))
        self.assertEqual(calls, [False])


if __name__ == "__main__":
    unittest.main()
