from __future__ import annotations

from collections.abc import Iterable
from dataclasses import dataclass
from enum import Enum

from src.core.editor_buffer import CaretPosition, EditorBuffer
from src.core.rules import ExpansionRule
from src.core.substitution import apply_rules_to_text, sort_by_abbreviation_length


class BulkOutcome(str, Enum):
    NO_APPLICABLE_RULES = "no_applicable_rules"
    NONE_FOUND = "none_found"
    REPLACED = "replaced"


@dataclass
class BulkResult:
    outcome: BulkOutcome
    replaced_count: int = 0
    changed_lines: int = 0
    caret: CaretPosition | None = None


def select_manual_rules(
    rules: Iterable[ExpansionRule],
    document_path: str,
) -> list[ExpansionRule]:
    return [
        rule
        for rule in rules
        if rule.manual_only and rule.applies_to(document_path)
    ]


def apply_manual_rules(
    buffer: EditorBuffer,
    rules: list[ExpansionRule],
) -> BulkResult:
    """Expand every occurrence of ``rules`` in ``buffer`` line by line.

    ``rules`` must already be narrowed with select_manual_rules. Only lines
    whose text changes are written back. When the caret's line changes, the
    caret is moved by the length delta of the text before it, so it keeps
    pointing at the same logical position.
    """
    if not rules:
        return BulkResult(outcome=BulkOutcome.NO_APPLICABLE_RULES)

    ordered = sort_by_abbreviation_length(rules)
    cursor = buffer.get_cursor()
    replaced_count = 0
    changed_lines = 0
    new_caret: CaretPosition | None = None

    for index in range(buffer.line_count()):
        original = buffer.get_line(index)
        result = apply_rules_to_text(original, ordered)
        replaced_count += result.replacement_hits
        if result.text == original:
            continue

        buffer.replace_range(
            result.text,
            CaretPosition(index, 0),
            CaretPosition(index, len(original)),
        )
        changed_lines += 1

        if index == cursor.line:
            before_caret = original[: cursor.ch]
            shifted = apply_rules_to_text(before_caret, ordered).text
            new_caret = CaretPosition(
                cursor.line,
                cursor.ch + len(shifted) - len(before_caret),
            )
            buffer.set_cursor(new_caret)

    if replaced_count == 0:
        return BulkResult(outcome=BulkOutcome.NONE_FOUND)
    return BulkResult(
        outcome=BulkOutcome.REPLACED,
        replaced_count=replaced_count,
        changed_lines=changed_lines,
        caret=new_caret,
    )
