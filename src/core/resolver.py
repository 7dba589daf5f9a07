from __future__ import annotations

from collections.abc import Iterable
from enum import Enum

from src.core.rules import ExpansionRule


class ExpansionMode(str, Enum):
    AUTO = "auto"
    MANUAL = "manual"


def resolve_rule(
    rules: Iterable[ExpansionRule],
    word: str,
    document_path: str,
    mode: ExpansionMode,
) -> ExpansionRule | None:
    """Pick the single rule that should expand ``word`` in ``document_path``.

    A rule whose folder scope is the longest literal prefix of the path
    wins; any matching scoped rule outranks an unscoped one. Among rules of
    equal scope length the first one in store order wins, and the rule
    editor inserts new rules at the front, so the most recently added rule
    takes precedence.
    """
    key = word.casefold()
    best_scoped: ExpansionRule | None = None
    fallback: ExpansionRule | None = None
    for rule in rules:
        if rule.abbreviation.casefold() != key:
            continue
        if mode is ExpansionMode.AUTO and rule.manual_only:
            continue
        if rule.is_scoped:
            if not document_path.startswith(rule.folder_scope):
                continue
            if best_scoped is None or len(rule.folder_scope) > len(best_scoped.folder_scope):
                best_scoped = rule
        elif fallback is None:
            fallback = rule
    return best_scoped or fallback
